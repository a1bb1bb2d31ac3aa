"""Interview session request/response schemas."""

import json
from datetime import datetime
from typing import Any, Optional

from interview_api.models.interview_session import InterviewSession
from interview_api.models.transcript_segment import TranscriptSegment
from interview_api.schemas.base import CamelModel
from interview_api.services.snapshot_service import load_snapshot


class SessionCreate(CamelModel):
    # Presence is checked by the service so every failure reads the same way
    slug: Optional[str] = None
    participant_name: Optional[str] = None
    participant_email: Optional[str] = None
    mode: Optional[str] = None  # text | voice


class SessionCreateResponse(CamelModel):
    session_id: str
    session_token: str
    public_title: str
    interview_length: str
    mode: str
    participant_name: str
    participant_email: Optional[str] = None


class SegmentBatch(CamelModel):
    segments: Any = None  # list of {role, text, tsStart?, tsEnd?, metaJson?}


class SegmentResponse(CamelModel):
    id: str
    seq: int
    role: str
    text: str
    ts_start: Optional[float] = None
    ts_end: Optional[float] = None
    meta_json: Any = None
    created_at: datetime


class SessionPatch(CamelModel):
    status: Optional[str] = None
    ended_at: Optional[datetime] = None
    completed: Optional[bool] = None
    last_activity_at: Optional[datetime] = None
    compiled_prompt_hash: Optional[str] = None


class InternalSessionPatch(CamelModel):
    status: Optional[str] = None
    ended_at: Optional[datetime] = None
    completed: Optional[bool] = None


class SessionResponse(CamelModel):
    session_id: str
    interview_id: str
    research_id: str
    status: str
    mode: str
    public_title: str
    interview_length: str
    participant_name: str
    participant_email: Optional[str] = None
    prompt_version_id: str
    persona_id: str
    compiled_prompt_hash: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    last_activity_at: datetime
    completed: bool
    global_context_snapshot: dict
    research_context_snapshot: dict
    segments: list[SegmentResponse]


class ParticipantSessionResponse(SessionResponse):
    session_token: str


def patch_changes(patch: CamelModel) -> dict:
    """Fields the caller actually sent; explicit nulls count as absent."""
    return {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}


def segment_view(segment: TranscriptSegment) -> SegmentResponse:
    return SegmentResponse(
        id=segment.id,
        seq=segment.seq,
        role=segment.role,
        text=segment.text,
        ts_start=segment.ts_start,
        ts_end=segment.ts_end,
        meta_json=json.loads(segment.meta_json) if segment.meta_json else None,
        created_at=segment.created_at,
    )


def session_view(session: InterviewSession, segments: list[TranscriptSegment]) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        interview_id=session.interview_id,
        research_id=session.research_id,
        status=session.status,
        mode=session.mode,
        public_title=session.interview.public_title,
        interview_length=session.interview.interview_length,
        participant_name=session.participant_name,
        participant_email=session.participant_email,
        prompt_version_id=session.prompt_version_id,
        persona_id=session.persona_id,
        compiled_prompt_hash=session.compiled_prompt_hash,
        started_at=session.started_at,
        ended_at=session.ended_at,
        last_activity_at=session.last_activity_at,
        completed=session.completed,
        global_context_snapshot=load_snapshot(session.global_context_snapshot),
        research_context_snapshot=load_snapshot(session.research_context_snapshot),
        segments=[segment_view(s) for s in segments],
    )


def participant_session_view(session: InterviewSession, segments: list[TranscriptSegment]) -> ParticipantSessionResponse:
    """Session view for the token holder; owners get ``session_view`` without the token."""
    return ParticipantSessionResponse(
        **session_view(session, segments).model_dump(),
        session_token=session.session_token,
    )
