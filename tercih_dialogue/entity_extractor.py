# tercih_dialogue/entity_extractor.py
"""
Entity Extractor

Runs a registry of per-type extractors over normalized text and returns
candidate entities ranked by confidence.

Confidence tiers:
- closed vocabularies (score types) and subject answer counts: 0.95
- exact canonical name / alias hits, language mentions: 0.9
- generic numeric mentions, department patterns: 0.8
- university patterns: 0.7
- fuzzy fallback on canonical names: 0.75 x similarity

Overlapping matches from different extractors are all kept, and repeated
matches of the same type/value are not merged; callers decide how to
collapse them (see to_entity_map()).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from .lexicon import (
    CASE_SUFFIXES,
    DEPARTMENT_ALIASES,
    DEPARTMENT_PATTERNS,
    LANGUAGE_PATTERNS,
    NUMERIC_PATTERNS,
    SCORE_TYPES,
    SUBJECT_NET_PATTERNS,
    UNIVERSITY_ALIASES,
    UNIVERSITY_PATTERNS,
)
from .models import EntityMatch, SubjectNet
from .text_normalizer import AbbreviationExpander, best_fuzzy_match, normalize


LOGGER = structlog.get_logger(__name__)

NUMBERS = "numbers"
DEFAULT_ENTITY_TYPES: Tuple[str, ...] = ("university", "department", "scoreType", "language", NUMBERS)

# Aliases this short only match as whole words ("mü", "ir", "cs").
SHORT_ALIAS_LENGTH = 3

_SUFFIX_ALTERNATION = "|".join(re.escape(s) for s in sorted(CASE_SUFFIXES, key=len, reverse=True))


class EntityKind(str, Enum):
    """
    Closed set of entity kinds downstream consumers branch on.
    """
    UNIVERSITY = "university"
    DEPARTMENT = "department"
    SCORE_TYPE = "scoreType"
    LANGUAGE = "language"
    SUBJECT_NET = "subjectNet"
    NUMERIC = "numeric"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, entity_type: str) -> "EntityKind":
        if entity_type in _SUBJECT_KEYS:
            return cls.SUBJECT_NET
        if entity_type in _NUMERIC_KEYS:
            return cls.NUMERIC
        try:
            return cls(entity_type)
        except ValueError:
            return cls.UNKNOWN


_SUBJECT_KEYS = frozenset(subject for _, subject in SUBJECT_NET_PATTERNS)
_NUMERIC_KEYS = frozenset(entity_type for _, entity_type in NUMERIC_PATTERNS)


# ---------------------------------------------------------------------------
# Extractor interface
# ---------------------------------------------------------------------------

class Extractor:
    """
    One family of entity matching. `handles` lists the requested types this
    extractor answers to.
    """

    handles: Tuple[str, ...] = ()

    def can_handle(self, entity_type: str) -> bool:
        return entity_type in self.handles

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        raise NotImplementedError


class AliasExtractor(Extractor):
    """
    Canonical names with alias lists. Matching runs on the abbreviation-
    expanded text; spans refer to that text.
    """

    confidence = 0.9
    fuzzy_weight = 0.75

    def __init__(
        self,
        entity_type: str,
        aliases: Dict[str, List[str]],
        expander: Optional[AbbreviationExpander] = None,
        fuzzy_threshold: Optional[float] = None,
    ) -> None:
        self.entity_type = entity_type
        self.handles = (entity_type,)
        self.expander = expander or AbbreviationExpander()
        self.fuzzy_threshold = fuzzy_threshold

        self._rules: List[Tuple[str, re.Pattern]] = []
        self._canonical_forms: Dict[str, str] = {}
        for canonical, alias_list in aliases.items():
            self._canonical_forms[normalize(canonical)] = canonical
            for alias in [canonical, *alias_list]:
                form = normalize(alias)
                if not form:
                    continue
                self._rules.append((canonical, self._alias_pattern(form)))

    @staticmethod
    def _alias_pattern(form: str) -> re.Pattern:
        # "marmara'da" normalizes to "marmara da"; "marmarada" carries the
        # case suffix inline. "gaziantep" is not "gazi".
        escaped = re.escape(form)
        if len(form) <= SHORT_ALIAS_LENGTH:
            return re.compile(rf"(?<!\w){escaped}(?!\w)")
        return re.compile(rf"(?<!\w){escaped}(?:{_SUFFIX_ALTERNATION})?(?!\w)")

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        text = self.expander.expand(normalized_text)
        matches: List[EntityMatch] = []

        for canonical, pattern in self._rules:
            found = pattern.search(text)
            if found:
                matches.append(
                    EntityMatch(
                        entity_type=self.entity_type,
                        value=canonical,
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )

        if not matches and self.fuzzy_threshold is not None:
            fuzzy = self._fuzzy(text)
            if fuzzy is not None:
                matches.append(fuzzy)

        return matches

    def _fuzzy(self, text: str) -> Optional[EntityMatch]:
        """
        Compare every word window as long as a canonical name against that
        name; keep the single best window above the threshold.
        """
        words = list(re.finditer(r"\S+", text))
        best: Optional[EntityMatch] = None

        for form, canonical in self._canonical_forms.items():
            size = len(form.split())
            for i in range(len(words) - size + 1):
                start = words[i].start()
                end = words[i + size - 1].end()
                hit = best_fuzzy_match(text[start:end], [form], self.fuzzy_threshold)
                if hit is None:
                    continue
                confidence = round(self.fuzzy_weight * hit[1], 4)
                if best is None or confidence > best.confidence:
                    best = EntityMatch(
                        entity_type=self.entity_type,
                        value=canonical,
                        confidence=confidence,
                        span=(start, end),
                    )
        return best


class PatternExtractor(Extractor):
    """
    Regular expressions whose first group is the entity value.
    """

    def __init__(
        self,
        entity_type: str,
        patterns: Sequence[str],
        confidence: float,
        expander: Optional[AbbreviationExpander] = None,
    ) -> None:
        self.entity_type = entity_type
        self.handles = (entity_type,)
        self.confidence = confidence
        self.expander = expander or AbbreviationExpander()
        self._patterns = [re.compile(p, re.IGNORECASE) for p in patterns]

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        text = self.expander.expand(normalized_text)
        matches: List[EntityMatch] = []
        for pattern in self._patterns:
            for found in pattern.finditer(text):
                value = found.group(1).strip()
                if not value:
                    continue
                matches.append(
                    EntityMatch(
                        entity_type=self.entity_type,
                        value=value,
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )
        return matches


class VocabularyExtractor(Extractor):
    """
    Closed vocabulary: every synonym maps to one code.
    """

    confidence = 0.95

    def __init__(self, entity_type: str, vocabulary: Dict[str, str]) -> None:
        self.entity_type = entity_type
        self.handles = (entity_type,)
        self._rules = [
            (re.compile(rf"\b{re.escape(normalize(word))}\b"), code)
            for word, code in vocabulary.items()
        ]

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        matches: List[EntityMatch] = []
        for pattern, code in self._rules:
            for found in pattern.finditer(normalized_text):
                matches.append(
                    EntityMatch(
                        entity_type=self.entity_type,
                        value=code,
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )
        return matches


class LanguageExtractor(Extractor):
    """
    Teaching language, optionally with its percentage ("%30 İngilizce").
    """

    handles = ("language",)
    confidence = 0.9

    def __init__(self, patterns: Optional[Sequence[Tuple[str, str]]] = None) -> None:
        self._rules = [
            (re.compile(p, re.IGNORECASE), template)
            for p, template in (patterns or LANGUAGE_PATTERNS)
        ]

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        matches: List[EntityMatch] = []
        for pattern, template in self._rules:
            for found in pattern.finditer(normalized_text):
                matches.append(
                    EntityMatch(
                        entity_type="language",
                        value=template.format(*found.groups()),
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )
        return matches


class SubjectNetExtractor(Extractor):
    """
    "<subject> <correct> [doğru] [<wrong> yanlış]" pairs. A missing wrong
    count defaults to 0.
    """

    handles = (NUMBERS,)
    confidence = 0.95

    def __init__(self, patterns: Optional[Sequence[Tuple[str, str]]] = None) -> None:
        self._rules = [
            (re.compile(p, re.IGNORECASE), subject)
            for p, subject in (patterns or SUBJECT_NET_PATTERNS)
        ]

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        matches: List[EntityMatch] = []
        for pattern, subject in self._rules:
            for found in pattern.finditer(normalized_text):
                correct = int(found.group(1))
                wrong = int(found.group(2)) if found.group(2) else 0
                matches.append(
                    EntityMatch(
                        entity_type=subject,
                        value=SubjectNet(correct=correct, wrong=wrong),
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )
        return matches


class NumericExtractor(Extractor):
    """
    Bare numeric mentions: "<n> doğru", "<n> yanlış", "<n> net", "<n> puan".
    """

    handles = (NUMBERS,)
    confidence = 0.8

    def __init__(self, patterns: Optional[Sequence[Tuple[str, str]]] = None) -> None:
        self._rules = [
            (re.compile(p, re.IGNORECASE), entity_type)
            for p, entity_type in (patterns or NUMERIC_PATTERNS)
        ]

    def extract(self, normalized_text: str) -> List[EntityMatch]:
        matches: List[EntityMatch] = []
        for pattern, entity_type in self._rules:
            for found in pattern.finditer(normalized_text):
                matches.append(
                    EntityMatch(
                        entity_type=entity_type,
                        value=found.group(1),
                        confidence=self.confidence,
                        span=(found.start(), found.end()),
                    )
                )
        return matches


def default_extractors(fuzzy_threshold: Optional[float] = None) -> List[Extractor]:
    expander = AbbreviationExpander()
    return [
        AliasExtractor("university", UNIVERSITY_ALIASES, expander, fuzzy_threshold),
        PatternExtractor("university", UNIVERSITY_PATTERNS, 0.7, expander),
        AliasExtractor("department", DEPARTMENT_ALIASES, expander, fuzzy_threshold),
        PatternExtractor("department", DEPARTMENT_PATTERNS, 0.8, expander),
        VocabularyExtractor("scoreType", SCORE_TYPES),
        LanguageExtractor(),
        SubjectNetExtractor(),
        NumericExtractor(),
    ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class EntityExtractor:
    """
    Dispatches each requested entity type to every registered extractor
    that handles it.
    """

    def __init__(
        self,
        extractors: Optional[Iterable[Extractor]] = None,
        fuzzy_threshold: Optional[float] = None,
    ) -> None:
        self._extractors: List[Extractor] = (
            list(extractors) if extractors is not None else default_extractors(fuzzy_threshold)
        )

    def register(self, extractor: Extractor) -> None:
        self._extractors.append(extractor)

    def extract(
        self,
        text: Optional[str],
        wanted_types: Optional[Sequence[str]] = None,
    ) -> List[EntityMatch]:
        """
        Returns matches sorted by confidence, highest first. The sort is
        stable, so equal confidences keep extraction order.
        """
        normalized = normalize(text)
        if not normalized:
            return []

        matches: List[EntityMatch] = []
        for entity_type in wanted_types or DEFAULT_ENTITY_TYPES:
            for extractor in self._extractors:
                if extractor.can_handle(entity_type):
                    matches.extend(extractor.extract(normalized))

        ranked = sorted(matches, key=lambda m: -m.confidence)
        LOGGER.debug("entities_extracted", count=len(ranked), types=sorted({m.entity_type for m in ranked}))
        return ranked


def to_entity_map(matches: Iterable[EntityMatch]) -> Dict[str, Any]:
    """
    Collapse matches into one value per entity type: highest confidence
    first, then the longest span ("orta doğu teknik üniversitesi" beats the
    "teknik üniversitesi" inside it), then extraction order.
    """
    best: Dict[str, EntityMatch] = {}
    for match in matches:
        current = best.get(match.entity_type)
        if current is None or _rank(match) > _rank(current):
            best[match.entity_type] = match
    return {entity_type: _entity_value(match) for entity_type, match in best.items()}


def _rank(match: EntityMatch) -> Tuple[float, int]:
    return match.confidence, match.span[1] - match.span[0]


def _entity_value(match: EntityMatch) -> Any:
    if isinstance(match.value, SubjectNet):
        return match.value.model_dump()
    if EntityKind.of(match.entity_type) is EntityKind.NUMERIC:
        return int(match.value)
    return match.value
