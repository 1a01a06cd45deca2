# tercih_dialogue/analytics_gateway.py
"""
Turn Event Gateway

Sends one event per processed turn to a webhook so the persistence
collaborator can store the intent/entities as message metadata:
- session info
- user text
- the DialogueResult (intent, entities, confidence, suggestions, ...)

Best-effort: an unset URL is a no-op and delivery failures never affect
the user's response.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import httpx
import structlog

from .config import settings
from .models import DialogueResult


LOGGER = structlog.get_logger(__name__)


class TurnEventGateway:
    def __init__(
        self,
        url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = url if url is not None else settings.TURN_EVENTS_WEBHOOK_URL
        self.transport = transport
        self.timeout = timeout

    @staticmethod
    def build_payload(
        *,
        user_id: str,
        session_id: Optional[str],
        user_text: str,
        result: DialogueResult,
        timestamp: datetime,
    ) -> Dict[str, Any]:
        return {
            "timestamp": timestamp.isoformat(),
            "session": {
                "session_id": session_id,
                "user_id": user_id,
            },
            "turn": {
                "user_text": user_text,
                "intent": result.intent,
                "confidence": result.confidence,
                "state": result.state.value if result.state else None,
            },
            "metadata": {
                "intent": result.intent,
                "entities": result.entities,
            },
            "result": result.model_dump(mode="json", by_alias=True),
        }

    async def send_turn(
        self,
        *,
        user_id: str,
        session_id: Optional[str],
        user_text: str,
        result: DialogueResult,
        timestamp: datetime,
    ) -> bool:
        """
        Returns True when the webhook accepted the event.
        """
        if not self.url:
            return False

        payload = self.build_payload(
            user_id=user_id,
            session_id=session_id,
            user_text=user_text,
            result=result,
            timestamp=timestamp,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("turn_event_delivery_failed", session_id=session_id, error=str(exc))
            return False
        return True
