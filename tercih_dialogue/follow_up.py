# tercih_dialogue/follow_up.py
"""
Follow-up & Clarification Generator

- suggestions(): ranked next-step suggestions for the current intent,
  specialised by whichever accumulated entities are known, plus
  informational hints nudged by entity values.
- clarifications(): one canonical question per missing required entity.
- should_offer_help(): repeat / confusion detection over recent turns.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import structlog

from .lexicon import (
    CLARIFICATION_INTENT,
    CLARIFICATION_QUESTIONS,
    CONFUSION_LEXICON,
    CONTEXTUAL_HINTS,
    FALLBACK_SUGGESTIONS,
    FOLLOW_UP_TEMPLATES,
    GENERAL_FOLLOW_UPS,
    GENERIC_ENTITY_QUESTIONS,
    HELP_SUGGESTIONS,
)
from .memory_store import ContextStore
from .models import FollowUpSuggestion
from .text_normalizer import normalize


LOGGER = structlog.get_logger(__name__)

CLARIFICATION_PRIORITY = 10


class FollowUpGenerator:
    def __init__(
        self,
        store: ContextStore,
        *,
        limit: int = 4,
        confusion_window: int = 5,
        confusion_threshold: int = 2,
        templates: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        general: Optional[List[Dict[str, Any]]] = None,
        hints: Optional[List[Dict[str, Any]]] = None,
        questions: Optional[Dict[str, Dict[str, str]]] = None,
        generic_questions: Optional[Dict[str, str]] = None,
        confusion_lexicon: Optional[Sequence[str]] = None,
    ) -> None:
        self.store = store
        self.limit = limit
        self.confusion_window = confusion_window
        self.confusion_threshold = confusion_threshold
        self.templates = FOLLOW_UP_TEMPLATES if templates is None else templates
        self.general = GENERAL_FOLLOW_UPS if general is None else general
        self.hints = CONTEXTUAL_HINTS if hints is None else hints
        self.questions = CLARIFICATION_QUESTIONS if questions is None else questions
        self.generic_questions = GENERIC_ENTITY_QUESTIONS if generic_questions is None else generic_questions
        self._confusion_patterns = [
            re.compile(rf"(?<!\w){re.escape(normalize(token))}(?!\w)")
            for token in (CONFUSION_LEXICON if confusion_lexicon is None else confusion_lexicon)
        ]

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------
    def suggestions(
        self,
        session_id: Optional[str],
        intent: str,
        entities: Mapping[str, Any],
    ) -> List[FollowUpSuggestion]:
        """
        Top `limit` suggestions by descending priority, unique by text.
        Entities known to the session take precedence over `entities`.
        """
        known: Dict[str, Any] = dict(entities)
        if session_id:
            known.update(self.store.get_accumulated_entities(session_id))

        candidates = self._from_templates(self.templates.get(intent, self.general), known)
        candidates.extend(self._hints(known))
        return self.rank(candidates, self.limit)

    def clarifications(
        self,
        session_id: Optional[str],
        intent: str,
        missing: Optional[Sequence[str]] = None,
    ) -> List[FollowUpSuggestion]:
        """
        One question per missing required entity; entities with no question
        for this intent (nor a generic one) are skipped. `missing` overrides
        the store lookup (stateless turns).
        """
        if missing is None:
            missing = self.store.get_missing_entities(session_id, intent) if session_id else []

        result: List[FollowUpSuggestion] = []
        for entity in missing:
            text = self.questions.get(intent, {}).get(entity) or self.generic_questions.get(entity)
            if not text:
                continue
            result.append(
                FollowUpSuggestion(
                    kind="question",
                    text=text,
                    intent=CLARIFICATION_INTENT,
                    priority=CLARIFICATION_PRIORITY,
                )
            )
        return result

    def should_offer_help(self, session_id: Optional[str], text: Optional[str]) -> bool:
        if not session_id:
            return False
        if self.store.is_repeating(session_id, text):
            return True

        recent = self.store.recent_user_texts(session_id, self.confusion_window)
        confused = sum(1 for message in recent if self._is_confused(message))
        return confused >= self.confusion_threshold

    def help_suggestions(self) -> List[FollowUpSuggestion]:
        return [FollowUpSuggestion(**item) for item in HELP_SUGGESTIONS]

    def fallback_suggestions(self) -> List[FollowUpSuggestion]:
        return [FollowUpSuggestion(**item) for item in FALLBACK_SUGGESTIONS]

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def rank(candidates: Iterable[FollowUpSuggestion], limit: int) -> List[FollowUpSuggestion]:
        ordered = sorted(candidates, key=lambda s: -s.priority)
        seen = set()
        unique: List[FollowUpSuggestion] = []
        for suggestion in ordered:
            if suggestion.text in seen:
                continue
            seen.add(suggestion.text)
            unique.append(suggestion)
        return unique[:limit]

    @staticmethod
    def _from_templates(
        templates: Iterable[Dict[str, Any]],
        known: Mapping[str, Any],
    ) -> List[FollowUpSuggestion]:
        result: List[FollowUpSuggestion] = []
        for template in templates:
            required = template.get("requires", [])
            if not all(known.get(key) for key in required):
                continue
            carry = template.get("carry")
            result.append(
                FollowUpSuggestion(
                    kind=template["kind"],
                    text=template["text"].format(**{key: known[key] for key in required}),
                    intent=template.get("intent"),
                    entities={key: known[key] for key in carry} if carry else None,
                    priority=template["priority"],
                )
            )
        return result

    def _hints(self, known: Mapping[str, Any]) -> List[FollowUpSuggestion]:
        result: List[FollowUpSuggestion] = []
        for hint in self.hints:
            value = known.get(hint["entity"])
            if not isinstance(value, str):
                continue
            folded = normalize(value)
            if any(keyword in folded for keyword in hint["keywords"]):
                result.append(
                    FollowUpSuggestion(kind="information", text=hint["text"], priority=hint["priority"])
                )
        return result

    def _is_confused(self, message: str) -> bool:
        normalized = normalize(message)
        return any(pattern.search(normalized) for pattern in self._confusion_patterns)
