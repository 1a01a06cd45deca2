# tercih_dialogue/text_normalizer.py
"""
Text Normalizer

Pure helpers shared by the extractors, the classifier and the context
store:
- normalize(): case-fold, drop punctuation (keeping Turkish letters and '%'),
  collapse whitespace.
- to_ascii_fold(): map Turkish letters to ASCII, for fuzzy comparison only.
- expand_abbreviations(): whole-word dictionary replacement.
- similarity(): normalized edit-distance closeness in [0, 1].
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from .lexicon import ABBREVIATIONS, ASCII_FOLD, SCRIPT_LETTERS


_STRIP_RE = re.compile(rf"[^a-z0-9_\s{SCRIPT_LETTERS}%]")
_SPACE_RE = re.compile(r"\s+")


def turkish_lower(text: str) -> str:
    """
    Lower-case without the combining dot str.lower() leaves after 'İ'.
    """
    return text.replace("İ", "i").lower()


def normalize(text: Optional[str]) -> str:
    if not text:
        return ""
    lowered = turkish_lower(text)
    stripped = _STRIP_RE.sub(" ", lowered)
    return _SPACE_RE.sub(" ", stripped).strip()


def to_ascii_fold(text: str) -> str:
    return "".join(ASCII_FOLD.get(ch, ch) for ch in text)


class AbbreviationExpander:
    """
    Whole-word replacement of abbreviations by their full forms.

    Patterns are compiled once per table; replacement runs left to right in
    table order, as a sequence of independent passes.
    """

    def __init__(self, abbreviations: Optional[Dict[str, str]] = None) -> None:
        table = ABBREVIATIONS if abbreviations is None else abbreviations
        self._rules = [
            (re.compile(rf"(?<!\w){re.escape(abbrev)}(?!\w)", re.IGNORECASE), full)
            for abbrev, full in table.items()
        ]

    def expand(self, text: str) -> str:
        expanded = text
        for pattern, full in self._rules:
            expanded = pattern.sub(full, expanded)
        return expanded


_default_expander = AbbreviationExpander()


def expand_abbreviations(text: str) -> str:
    return _default_expander.expand(text)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    1 - editDistance / longest length, over the ASCII-folded normalized
    forms. Two empty strings are identical (1.0).
    """
    left = to_ascii_fold(normalize(a))
    right = to_ascii_fold(normalize(b))
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(left, right) / longest


def best_fuzzy_match(
    candidate: str,
    choices: Iterable[str],
    threshold: float,
) -> Optional[Tuple[str, float]]:
    """
    Return (choice, score) for the closest choice scoring at least
    `threshold`, or None. Earlier choices win ties.
    """
    best_choice = None
    best_score = 0.0
    for choice in choices:
        score = similarity(candidate, choice)
        if score > best_score:
            best_score = score
            best_choice = choice

    if best_choice is not None and best_score >= threshold:
        return best_choice, best_score
    return None
