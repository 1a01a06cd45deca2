# tercih_dialogue/intent_classifier.py
"""
Intent Classifier

Rule-based replacement for an LLM router: scores the utterance against
weighted keyword groups per intent, adds context bonuses for entities that
were already extracted, and picks the best intent.

Keyword scoring per group:
- single word present as a whole word: 1
- single word inside a longer word: 0.5
- multi-word phrase present: number of words in the phrase
- otherwise 0.3 per phrase word present

Confidence is min(score / 2, 1). With no keyword hit at all the classifier
infers an intent from the entities, or answers `clarification_needed`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import structlog

from .lexicon import (
    CLARIFICATION_INTENT,
    CONTEXT_BONUSES,
    DEFAULT_MIN_CONFIDENCE,
    ENTITY_INFERENCES,
    INTENT_PATTERNS,
    INTENT_SUGGESTIONS,
    QUESTION_WORDS,
    VALIDATION_RULES,
)
from .models import IntentClassification
from .text_normalizer import normalize


LOGGER = structlog.get_logger(__name__)

INFERENCE_CONFIDENCE = 0.6
QUESTION_CONFIDENCE = 0.7
UNKNOWN_CONFIDENCE = 0.5


class IntentClassifier:
    """
    Stateless; the entities passed to classify() are read-only context.
    """

    def __init__(
        self,
        patterns: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        context_bonuses: Optional[Dict[str, float]] = None,
        inferences: Optional[Sequence[Tuple[Tuple[str, ...], str]]] = None,
        question_words: Optional[Sequence[str]] = None,
    ) -> None:
        self.patterns = INTENT_PATTERNS if patterns is None else patterns
        self.context_bonuses = CONTEXT_BONUSES if context_bonuses is None else context_bonuses
        self.inferences = list(ENTITY_INFERENCES if inferences is None else inferences)
        self.question_words = list(QUESTION_WORDS if question_words is None else question_words)

    @property
    def intents(self) -> List[str]:
        """
        Every intent classify() can return.
        """
        inferred = [intent for _, intent in self.inferences]
        emitted = list(self.patterns) + inferred + [CLARIFICATION_INTENT]
        return list(dict.fromkeys(emitted))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def classify(
        self,
        text: Optional[str],
        entities: Optional[Mapping[str, Any]] = None,
    ) -> IntentClassification:
        raw = text or ""
        entities = entities or {}
        normalized = normalize(raw)
        words = normalized.split()

        best_intent: Optional[str] = None
        best_score = 0.0
        best_keywords: Set[str] = set()
        all_scores: Dict[str, float] = {}

        context_score = self._context_score(entities)

        for intent, groups in self.patterns.items():
            total = 0.0
            matched: Set[str] = set()
            for group in groups:
                keywords = group["keywords"]
                keyword_score = self._keyword_score(normalized, words, keywords)
                if keyword_score > 0:
                    total += keyword_score * group["weight"]
                    matched.update(k for k in keywords if k.lower() in normalized)

            if total > 0:
                total += context_score

            all_scores[intent] = total
            # Strict comparison: the first intent reaching the max wins.
            if total > best_score:
                best_intent = intent
                best_score = total
                best_keywords = matched

        if best_intent is None:
            return self._unknown_intent(raw, normalized, entities)

        confidence = min(best_score / 2, 1.0)
        LOGGER.debug(
            "intent_classified",
            intent=best_intent,
            confidence=confidence,
            matched_keywords=sorted(best_keywords),
            all_scores=all_scores,
        )
        return IntentClassification(
            intent=best_intent,
            confidence=confidence,
            matched_keywords=best_keywords,
        )

    def suggest_intents(self, entities: Mapping[str, Any]) -> List[str]:
        """
        Example questions the user could ask next, given the known anchors.
        """
        if entities.get("university") and entities.get("department"):
            return list(INTENT_SUGGESTIONS["university_and_department"])
        if entities.get("university"):
            return list(INTENT_SUGGESTIONS["university"])
        return list(INTENT_SUGGESTIONS["none"])

    def validate(
        self,
        classification: IntentClassification,
        entities: Mapping[str, Any],
    ) -> bool:
        """
        Whether the classification is trustworthy enough to act on.
        """
        min_confidence, anchors = VALIDATION_RULES.get(
            classification.intent, (DEFAULT_MIN_CONFIDENCE, ())
        )
        if classification.confidence > min_confidence:
            return True
        return bool(anchors) and all(entities.get(a) for a in anchors)

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------
    @staticmethod
    def _keyword_score(text: str, words: List[str], keywords: Sequence[str]) -> float:
        score = 0.0
        for keyword in keywords:
            keyword_words = keyword.lower().split()
            if len(keyword_words) == 1:
                single = keyword_words[0]
                if single in words:
                    score += 1
                elif any(single in word for word in words):
                    score += 0.5
            elif _contains_phrase(words, keyword_words):
                score += len(keyword_words)
            else:
                score += 0.3 * sum(1 for kw in keyword_words if kw in words)
        return score

    def _context_score(self, entities: Mapping[str, Any]) -> float:
        return sum(
            bonus for entity, bonus in self.context_bonuses.items()
            if entities.get(entity)
        )

    # -------------------------------------------------------------------------
    # Fallback
    # -------------------------------------------------------------------------
    def _unknown_intent(
        self,
        raw: str,
        normalized: str,
        entities: Mapping[str, Any],
    ) -> IntentClassification:
        for anchors, intent in self.inferences:
            if all(entities.get(a) for a in anchors):
                return IntentClassification(
                    intent=intent,
                    confidence=INFERENCE_CONFIDENCE,
                    matched_keywords={"inferred from entities"},
                )

        if self._is_question(raw, normalized):
            return IntentClassification(
                intent=CLARIFICATION_INTENT,
                confidence=QUESTION_CONFIDENCE,
                matched_keywords={"question detected"},
            )

        return IntentClassification(intent=CLARIFICATION_INTENT, confidence=UNKNOWN_CONFIDENCE)

    def _is_question(self, raw: str, normalized: str) -> bool:
        if "?" in raw:
            return True
        words = normalized.split()
        for question_word in self.question_words:
            parts = question_word.split()
            if len(parts) > 1:
                if _contains_phrase(words, parts):
                    return True
            elif any(word.startswith(question_word) for word in words):
                return True
        return False


def _contains_phrase(words: List[str], phrase: List[str]) -> bool:
    size = len(phrase)
    return any(words[i:i + size] == phrase for i in range(len(words) - size + 1))
