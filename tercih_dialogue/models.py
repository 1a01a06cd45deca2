# tercih_dialogue/models.py
"""
Pydantic models for request/response and the per-turn structures that
flow between extractor, classifier and follow-up generator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .conversation_state import ConversationState


# Longest user message accepted from the transport.
MAX_TEXT_LENGTH = 2000


class SubjectNet(BaseModel):
    """
    Correct / wrong answer counts given for one exam subject.
    """
    correct: int
    wrong: int = 0


class EntityMatch(BaseModel):
    """
    One candidate entity found in the normalized text.

    `value` is the canonical string for names and codes, or a SubjectNet
    for subject answer-count pairs.
    """
    entity_type: str
    value: Union[SubjectNet, str]
    confidence: float = Field(..., ge=0.0, le=1.0)
    span: Tuple[int, int]


class IntentClassification(BaseModel):
    intent: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    matched_keywords: Set[str] = Field(default_factory=set)


class FollowUpSuggestion(BaseModel):
    kind: Literal["question", "action", "information"]
    text: str
    intent: Optional[str] = None
    entities: Optional[Dict[str, Any]] = None
    priority: int = 0


class DialogueRequest(BaseModel):
    """
    Incoming payload from the transport layer.
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(default="", max_length=MAX_TEXT_LENGTH, description="User's message")
    user_id: str = Field(..., alias="userId", description="Stable user identifier")
    session_id: Optional[str] = Field(
        default=None, alias="sessionId", description="Opaque session identifier"
    )
    prior_entities: Optional[Dict[str, Any]] = Field(default=None, alias="priorEntities")


class DialogueResult(BaseModel):
    """
    Structured outcome of one turn, forwarded to response rendering and
    stored as message metadata by the persistence collaborator.
    """
    model_config = ConfigDict(populate_by_name=True)

    intent: str
    entities: Dict[str, Any] = Field(default_factory=dict)
    confidence: float
    suggestions: List[str] = Field(default_factory=list)
    clarification_needed: bool = Field(default=False, alias="clarificationNeeded")
    follow_up_questions: List[str] = Field(default_factory=list, alias="followUpQuestions")
    help_offered: bool = Field(default=False, alias="helpOffered")
    state: Optional[ConversationState] = None


class ContextSnapshot(BaseModel):
    """
    Lightweight view of a session's context, returned for debugging or
    external analytics.
    """
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    user_id: str = Field(..., alias="userId")
    state: ConversationState
    entry_count: int = Field(..., alias="entryCount")
    accumulated_entities: Dict[str, Any] = Field(default_factory=dict, alias="accumulatedEntities")
    last_intent: Optional[str] = Field(default=None, alias="lastIntent")
    created_at: datetime = Field(..., alias="createdAt")
    last_activity: datetime = Field(..., alias="lastActivity")

    @classmethod
    def from_ctx(cls, ctx) -> "ContextSnapshot":
        last = ctx.latest_entry()
        return cls(
            session_id=ctx.session_id,
            user_id=ctx.user_id,
            state=ctx.state,
            entry_count=len(ctx.entries),
            accumulated_entities=dict(ctx.accumulated_entities),
            last_intent=last.intent if last else None,
            created_at=ctx.created_at,
            last_activity=ctx.last_activity,
        )
