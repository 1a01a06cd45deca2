# tercih_dialogue/conversation_state.py
"""
Conversation state machine

initial -> gathering_info -> processing -> completed

Transitions only move forward. A session returns to `initial` solely by
being created again (after clear or expiry).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .lexicon import CLARIFICATION_INTENT, REQUIRED_ENTITIES


class ConversationState(str, Enum):
    INITIAL = "initial"
    GATHERING_INFO = "gathering_info"
    PROCESSING = "processing"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER = [
    ConversationState.INITIAL,
    ConversationState.GATHERING_INFO,
    ConversationState.PROCESSING,
    ConversationState.COMPLETED,
]


def next_state(
    state: ConversationState,
    *,
    intent: str,
    intent_satisfied: bool,
    entry_count: int,
) -> ConversationState:
    """
    Pure transition applied after every appended entry.

    - first entry moves `initial` to `gathering_info`
    - all required entities present (and not a clarification turn) means
      `processing`
    - required entities present with more than one entry means `completed`
      (kept from the earlier service; provisional heuristic)
    """
    candidate = state
    if candidate is ConversationState.INITIAL:
        candidate = ConversationState.GATHERING_INFO

    if intent_satisfied and intent != CLARIFICATION_INTENT:
        candidate = _max(candidate, ConversationState.PROCESSING)

    if intent_satisfied and entry_count > 1:
        candidate = _max(candidate, ConversationState.COMPLETED)

    return _max(state, candidate)


def _max(a: ConversationState, b: ConversationState) -> ConversationState:
    return a if a.rank >= b.rank else b


def required_entities_for(
    intent: str,
    table: Optional[Mapping[str, List[str]]] = None,
) -> List[str]:
    requirements = REQUIRED_ENTITIES if table is None else table
    return list(requirements.get(intent, []))


def missing_entities(
    intent: str,
    entities: Mapping[str, Any],
    table: Optional[Mapping[str, List[str]]] = None,
) -> List[str]:
    return [
        entity
        for entity in required_entities_for(intent, table)
        if entities.get(entity) is None
    ]


def unmapped_intents(
    intents: Iterable[str],
    table: Optional[Mapping[str, List[str]]] = None,
) -> List[str]:
    """
    Intents with no row in the required-entity table.
    """
    requirements: Dict[str, List[str]] = dict(REQUIRED_ENTITIES if table is None else table)
    return [intent for intent in intents if intent not in requirements]
