# tercih_dialogue/agent_core.py
"""
AgentCore

This is the main "brain" of the dialogue engine.

Responsibilities per turn:
- Normalize the text and extract every entity type.
- Classify intent, using this turn's entities as context.
- With a session id: record the turn in the ContextStore and read back the
  accumulated entities.
- Work out which required entities are still missing.
- Build ranked follow-up suggestions and clarification questions.
- Return one DialogueResult.

This module does NOT:
- Deal with HTTP / FastAPI directly (that happens in app.py).
- Compute scores or nets (the score-arithmetic collaborator does).
- Persist anything.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from .config import settings
from .conversation_state import ConversationState, missing_entities, unmapped_intents
from .entity_extractor import EntityExtractor, to_entity_map
from .errors import LexiconConfigError
from .follow_up import FollowUpGenerator
from .intent_classifier import IntentClassifier
from .memory_store import ContextStore
from .models import DialogueResult, FollowUpSuggestion, IntentClassification


LOGGER = structlog.get_logger(__name__)


class AgentCore:
    """
    The dialogue orchestrator.

    You typically create this once at startup and reuse it for all turns.
    """

    def __init__(
        self,
        store: Optional[ContextStore] = None,
        extractor: Optional[EntityExtractor] = None,
        classifier: Optional[IntentClassifier] = None,
        follow_up: Optional[FollowUpGenerator] = None,
    ) -> None:
        self.store = store or ContextStore(
            expiry_minutes=settings.CONTEXT_EXPIRY_MINUTES,
            max_entries=settings.CONTEXT_MAX_ENTRIES,
            repeat_window=settings.REPEAT_WINDOW,
        )
        self.extractor = extractor or EntityExtractor(fuzzy_threshold=settings.FUZZY_THRESHOLD)
        self.classifier = classifier or IntentClassifier()
        self.follow_up = follow_up or FollowUpGenerator(
            self.store,
            limit=settings.SUGGESTION_LIMIT,
            confusion_window=settings.CONFUSION_WINDOW,
            confusion_threshold=settings.CONFUSION_THRESHOLD,
        )

        unmapped = unmapped_intents(self.classifier.intents, self.store.required_entities)
        if unmapped:
            raise LexiconConfigError(f"No required-entity row for intents: {', '.join(unmapped)}")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def process_turn(
        self,
        text: Optional[str],
        user_id: str,
        session_id: Optional[str] = None,
        prior_entities: Optional[Mapping[str, Any]] = None,
    ) -> DialogueResult:
        """
        Main entrypoint for one user message.

        Without a session id the turn is handled statelessly and `entities`
        holds this turn's entities only; `prior_entities` still count as
        context for the intent, missing entities and suggestions. A failing
        context store degrades the turn to stateless handling as well.
        """
        text = text or ""

        # 1) Entities from this turn only
        matches = self.extractor.extract(text)
        turn_entities = to_entity_map(matches)

        # 2) Intent, with caller-supplied context under this turn's entities
        context_entities: Dict[str, Any] = {**(prior_entities or {}), **turn_entities}
        classification = self.classifier.classify(text, context_entities)
        intent = classification.intent

        # 3) Session bookkeeping
        stateful = None
        if session_id:
            stateful = self._record_turn(
                session_id=session_id,
                user_id=user_id,
                text=text,
                classification=classification,
                turn_entities=turn_entities,
                prior_entities=prior_entities,
            )

        if stateful is not None:
            entities, missing, state, help_offered = stateful
            known = entities
            suggestions_session = session_id
        else:
            entities = turn_entities
            known = context_entities
            missing = missing_entities(intent, known, self.store.required_entities)
            state = None
            help_offered = False
            suggestions_session = None

        # 4) Suggestions and clarifications
        suggestions = self.follow_up.suggestions(suggestions_session, intent, known)
        if help_offered:
            suggestions = FollowUpGenerator.rank(
                self.follow_up.help_suggestions() + suggestions, self.follow_up.limit
            )
        if not suggestions:
            suggestions = self.follow_up.fallback_suggestions()

        clarifications = self.follow_up.clarifications(suggestions_session, intent, missing)

        LOGGER.info(
            "turn_processed",
            user_id=user_id,
            session_id=session_id,
            intent=intent,
            confidence=classification.confidence,
            entity_types=sorted(entities),
            missing=missing,
            state=state.value if state else None,
        )

        return DialogueResult(
            intent=intent,
            entities=entities,
            confidence=classification.confidence,
            suggestions=_texts(suggestions),
            clarification_needed=bool(missing),
            follow_up_questions=_texts(clarifications),
            help_offered=help_offered,
            state=state,
        )

    def record_bot_reply(self, session_id: str, text: str) -> bool:
        return self.store.update_latest_bot_text(session_id, text)

    def clear_session(self, session_id: str) -> bool:
        return self.store.clear(session_id)

    def summary(self, session_id: str) -> str:
        return self.store.get_summary(session_id)

    def stats(self) -> Dict[str, Any]:
        return self.store.get_stats()

    def sweep_expired(self) -> int:
        return self.store.sweep_expired()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _record_turn(
        self,
        *,
        session_id: str,
        user_id: str,
        text: str,
        classification: IntentClassification,
        turn_entities: Dict[str, Any],
        prior_entities: Optional[Mapping[str, Any]],
    ) -> Optional[Tuple[Dict[str, Any], List[str], Optional[ConversationState], bool]]:
        """
        Returns (accumulated entities, missing entities, state, help offered),
        or None when the store failed and the turn must go stateless.
        """
        try:
            self.store.get_or_create(session_id, user_id, seed_entities=prior_entities)
            # Checked before appending, so the new text is compared with
            # earlier turns only.
            help_offered = self.follow_up.should_offer_help(session_id, text)
            state = self.store.add_entry(
                session_id,
                classification.intent,
                turn_entities,
                text,
            )
            entities = self.store.get_accumulated_entities(session_id)
            missing = self.store.get_missing_entities(session_id, classification.intent)
        except LexiconConfigError:
            raise
        except Exception:
            LOGGER.exception("context_store_failed", session_id=session_id)
            return None

        return entities, missing, state, help_offered


def _texts(suggestions: List[FollowUpSuggestion]) -> List[str]:
    return [s.text for s in suggestions]
