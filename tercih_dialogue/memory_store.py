# tercih_dialogue/memory_store.py
"""
ContextStore

In-memory, session-keyed store of SessionContext objects with idle expiry.

Locking:
- one store-wide lock guards the session map itself and is only held for
  short structural operations (lookup, insert, delete);
- one lock per session serializes turns of the same session, so turns of
  different sessions never wait on each other;
- the expiry sweep takes the session lock of every session it removes.
The store-wide lock is never held while waiting for a session lock.

Not persistent; everything here can be rebuilt from the conversation
history the caller supplies.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

import structlog

from .conversation_state import (
    ConversationState,
    missing_entities,
    next_state,
    required_entities_for,
)
from .lexicon import REQUIRED_ENTITIES
from .models import ContextSnapshot
from .session_context import ContextEntry, SessionContext
from .text_normalizer import normalize


LOGGER = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContextStore:
    """
    Owns every SessionContext. Read methods on unknown sessions return
    empty values instead of raising.
    """

    def __init__(
        self,
        *,
        expiry_minutes: int = 30,
        max_entries: int = 10,
        repeat_window: int = 3,
        required_entities: Optional[Mapping[str, List[str]]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.ttl = timedelta(minutes=expiry_minutes)
        self.max_entries = max_entries
        self.repeat_window = repeat_window
        self.required_entities = dict(REQUIRED_ENTITIES if required_entities is None else required_entities)
        self._clock = clock or utc_now
        self._sessions: Dict[str, SessionContext] = {}
        self._session_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    # -------------------------------------------------------------------------
    # Locking helpers
    # -------------------------------------------------------------------------
    @contextmanager
    def _session(self, session_id: str) -> Iterator[Optional[SessionContext]]:
        """
        Yield the live context with its session lock held, or None when the
        session does not exist (or was removed while we waited).
        """
        with self._lock:
            ctx = self._sessions.get(session_id)
            lock = self._session_locks.get(session_id)

        if ctx is None or lock is None:
            yield None
            return

        with lock:
            with self._lock:
                still_current = self._sessions.get(session_id) is ctx
            yield ctx if still_current else None

    def _missing_session(self, operation: str, session_id: str) -> None:
        LOGGER.warning("context_session_not_found", operation=operation, session_id=session_id)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def get_or_create(
        self,
        session_id: str,
        user_id: str,
        seed_entities: Optional[Mapping[str, Any]] = None,
    ) -> SessionContext:
        """
        Return the session, creating it on first reference. `seed_entities`
        (e.g. re-supplied by the caller after a restart) only apply to a
        newly created session. The returned object is owned by the store;
        treat it as read-only.
        """
        now = self._clock()
        with self._lock:
            ctx = self._sessions.get(session_id)
            if ctx is not None:
                ctx.touch(now)
                return ctx

            ctx = SessionContext.new(
                session_id=session_id,
                user_id=user_id,
                created_at=now,
                max_entries=self.max_entries,
            )
            if seed_entities:
                ctx.merge_entities(seed_entities)
            self._sessions[session_id] = ctx
            self._session_locks[session_id] = threading.Lock()

        LOGGER.info("context_created", session_id=session_id, user_id=user_id, seeded=bool(seed_entities))
        return ctx

    def get(self, session_id: str) -> Optional[SessionContext]:
        """
        The live context without creating it or touching its activity time.
        """
        with self._lock:
            return self._sessions.get(session_id)

    def clear(self, session_id: str) -> bool:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("clear", session_id)
                return False
            with self._lock:
                self._sessions.pop(session_id, None)
                self._session_locks.pop(session_id, None)

        LOGGER.info("context_cleared", session_id=session_id)
        return True

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove every session idle for longer than the expiry threshold.
        Returns the number of sessions removed.
        """
        now = now or self._clock()
        with self._lock:
            candidates = [
                (session_id, ctx, self._session_locks[session_id])
                for session_id, ctx in self._sessions.items()
                if self._is_expired(ctx, now)
            ]

        removed = 0
        for session_id, ctx, lock in candidates:
            with lock:
                # A turn may have landed between the scan and the lock.
                if not self._is_expired(ctx, now):
                    continue
                with self._lock:
                    if self._sessions.get(session_id) is ctx:
                        del self._sessions[session_id]
                        del self._session_locks[session_id]
                        removed += 1

        if removed:
            LOGGER.info("contexts_expired", expired_count=removed, remaining_count=len(self))
        return removed

    def _is_expired(self, ctx: SessionContext, now: datetime) -> bool:
        return now - ctx.last_activity > self.ttl

    # -------------------------------------------------------------------------
    # Turn updates
    # -------------------------------------------------------------------------
    def add_entry(
        self,
        session_id: str,
        intent: str,
        entities: Mapping[str, Any],
        user_text: str,
        bot_text: Optional[str] = None,
    ) -> Optional[ConversationState]:
        """
        Append a turn, merge its entities and advance the conversation state.
        Returns the new state, or None when the session does not exist.
        """
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("add_entry", session_id)
                return None

            entry = ContextEntry(
                timestamp=self._clock(),
                intent=intent,
                entities=dict(entities),
                user_text=user_text,
                bot_text=bot_text,
            )
            ctx.append(entry)
            satisfied = not missing_entities(intent, ctx.accumulated_entities, self.required_entities)
            ctx.state = next_state(
                ctx.state,
                intent=intent,
                intent_satisfied=satisfied,
                entry_count=len(ctx.entries),
            )
            state = ctx.state
            total_entries = len(ctx.entries)

        LOGGER.debug(
            "context_entry_added",
            session_id=session_id,
            intent=intent,
            entities_count=len(entities),
            total_entries=total_entries,
            state=state.value,
        )
        return state

    def update_latest_bot_text(self, session_id: str, text: str) -> bool:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("update_latest_bot_text", session_id)
                return False
            return ctx.set_latest_bot_text(text, self._clock())

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def get_accumulated_entities(self, session_id: str) -> Dict[str, Any]:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("get_accumulated_entities", session_id)
                return {}
            return dict(ctx.accumulated_entities)

    def get_state(self, session_id: str) -> Optional[ConversationState]:
        with self._session(session_id) as ctx:
            return ctx.state if ctx is not None else None

    def snapshot(self, session_id: str) -> Optional[ContextSnapshot]:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("snapshot", session_id)
                return None
            return ContextSnapshot.from_ctx(ctx)

    def has_required_entities(self, session_id: str, intent: str) -> bool:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("has_required_entities", session_id)
                return False
            return not missing_entities(intent, ctx.accumulated_entities, self.required_entities)

    def get_missing_entities(self, session_id: str, intent: str) -> List[str]:
        """
        Required entities for `intent` the session has not supplied yet; all
        of them for an unknown session.
        """
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("get_missing_entities", session_id)
                return required_entities_for(intent, self.required_entities)
            return missing_entities(intent, ctx.accumulated_entities, self.required_entities)

    def recent_user_texts(self, session_id: str, n: int) -> List[str]:
        with self._session(session_id) as ctx:
            if ctx is None:
                self._missing_session("recent_user_texts", session_id)
                return []
            return ctx.recent_user_texts(n)

    def is_repeating(self, session_id: str, text: Optional[str]) -> bool:
        """
        True when `text` normalizes to the same string as one of the last
        `repeat_window` stored user texts.
        """
        candidate = normalize(text)
        if not candidate:
            return False
        recent = self.recent_user_texts(session_id, self.repeat_window)
        return any(normalize(previous) == candidate for previous in recent)

    def get_summary(self, session_id: str) -> str:
        with self._session(session_id) as ctx:
            entries = list(ctx.entries)[-3:] if ctx is not None else []

        if not entries:
            return "Yeni konuşma başlatıldı."

        parts = []
        for entry in entries:
            if entry.entities:
                parts.append(f"{entry.intent} ({', '.join(entry.entities)} belirtildi)")
            else:
                parts.append(entry.intent)
        return "Son konuşma: " + " → ".join(parts)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            sessions = list(self._sessions.values())

        if not sessions:
            return {"total_sessions": 0, "average_entries": 0.0, "oldest_session": None}

        return {
            "total_sessions": len(sessions),
            "average_entries": sum(len(ctx.entries) for ctx in sessions) / len(sessions),
            "oldest_session": min(ctx.created_at for ctx in sessions),
        }
