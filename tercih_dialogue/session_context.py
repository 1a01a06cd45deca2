# tercih_dialogue/session_context.py
"""
SessionContext

Represents everything the engine remembers about one conversation.

Contains:
- Session metadata (session_id, user_id, timestamps).
- A bounded, insertion-ordered history of ContextEntry turns.
- Entities accumulated across turns (last write wins).
- The coarse conversation state.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Deque, Dict, List, Mapping, Optional

from .conversation_state import ConversationState


@dataclass(frozen=True)
class ContextEntry:
    """
    One user turn. Only `bot_text` changes after creation, by replacing
    the entry (see SessionContext.set_latest_bot_text).
    """
    timestamp: datetime
    intent: str
    entities: Mapping[str, Any]
    user_text: str
    bot_text: Optional[str] = None


@dataclass
class SessionContext:
    session_id: str
    user_id: str
    created_at: datetime
    last_activity: datetime
    max_entries: int = 10
    entries: Deque[ContextEntry] = field(default_factory=deque)
    accumulated_entities: Dict[str, Any] = field(default_factory=dict)
    state: ConversationState = ConversationState.INITIAL

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------
    @classmethod
    def new(
        cls,
        *,
        session_id: str,
        user_id: str,
        created_at: datetime,
        max_entries: int = 10,
    ) -> "SessionContext":
        return cls(
            session_id=session_id,
            user_id=user_id,
            created_at=created_at,
            last_activity=created_at,
            max_entries=max_entries,
            entries=deque(maxlen=max_entries),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def touch(self, now: datetime) -> None:
        """
        Update last activity timestamp.
        """
        self.last_activity = now

    def append(self, entry: ContextEntry) -> None:
        """
        Append a turn; the deque drops the oldest entry past max_entries.
        """
        self.entries.append(entry)
        self.merge_entities(entry.entities)
        self.touch(entry.timestamp)

    def merge_entities(self, entities: Mapping[str, Any]) -> None:
        for key, value in entities.items():
            if value is not None:
                self.accumulated_entities[key] = value

    def latest_entry(self) -> Optional[ContextEntry]:
        return self.entries[-1] if self.entries else None

    def set_latest_bot_text(self, text: str, now: datetime) -> bool:
        if not self.entries:
            return False
        self.entries[-1] = replace(self.entries[-1], bot_text=text)
        self.touch(now)
        return True

    def recent_user_texts(self, n: int) -> List[str]:
        if n <= 0:
            return []
        return [entry.user_text for entry in list(self.entries)[-n:]]
