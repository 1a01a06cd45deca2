# app.py
"""
FastAPI entrypoint for the tercih dialogue engine.

Exposes:
- POST   /dialogue         → one user turn in, one DialogueResult out
- GET    /sessions/{id}    → context snapshot (debugging)
- DELETE /sessions/{id}    → drop a session's context
- GET    /stats            → context store statistics
- GET    /health           → simple health check

Context lives in process memory only; a background task sweeps idle
sessions.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from tercih_dialogue.agent_core import AgentCore
from tercih_dialogue.analytics_gateway import TurnEventGateway
from tercih_dialogue.config import settings
from tercih_dialogue.logging_setup import configure_logging
from tercih_dialogue.memory_store import ContextStore
from tercih_dialogue.models import ContextSnapshot, DialogueRequest, DialogueResult


configure_logging(settings.LOG_LEVEL)
LOGGER = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Dependencies wiring
# ---------------------------------------------------------------------------

context_store = ContextStore(
    expiry_minutes=settings.CONTEXT_EXPIRY_MINUTES,
    max_entries=settings.CONTEXT_MAX_ENTRIES,
    repeat_window=settings.REPEAT_WINDOW,
)
agent_core = AgentCore(store=context_store)
turn_events = TurnEventGateway()


async def _sweep_forever(interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            agent_core.sweep_expired()
        except Exception:
            LOGGER.exception("context_sweep_failed")


@asynccontextmanager
async def lifespan(_: FastAPI):
    task = asyncio.create_task(_sweep_forever(settings.CONTEXT_SWEEP_INTERVAL_SECONDS))
    LOGGER.info("app_started", app=settings.APP_NAME)
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Tercih Dialogue Engine", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": settings.APP_NAME}


@app.post("/dialogue", response_model=DialogueResult, response_model_by_alias=True)
async def dialogue(req: DialogueRequest) -> DialogueResult:
    """
    The chat transport should send:
    {
      "userId": "some-user",
      "sessionId": "conversation-id",
      "text": "Marmara bilgisayar için kaç net gerekir?"
    }
    """
    result = agent_core.process_turn(
        req.text,
        req.user_id,
        session_id=req.session_id,
        prior_entities=req.prior_entities,
    )
    await turn_events.send_turn(
        user_id=req.user_id,
        session_id=req.session_id,
        user_text=req.text or "",
        result=result,
        timestamp=datetime.now(timezone.utc),
    )
    return result


@app.get("/sessions/{session_id}", response_model=ContextSnapshot, response_model_by_alias=True)
async def session_snapshot(session_id: str) -> ContextSnapshot:
    snapshot = context_store.snapshot(session_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return snapshot


@app.delete("/sessions/{session_id}")
async def clear_session(session_id: str) -> dict:
    if not agent_core.clear_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"cleared": session_id}


@app.get("/stats")
async def stats() -> dict:
    return agent_core.stats()


# For local dev convenience:
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
