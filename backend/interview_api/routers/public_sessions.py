"""Public sessions router — participant-facing session lifecycle.

Participants hold only the session token. Routes with an ``{id}`` require the
token too and reject a missing token or one that belongs to a different session.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from interview_api.config import settings
from interview_api.database import get_db
from interview_api.errors import InvalidRequest, Unauthorized
from interview_api.middleware.auth import get_session_token
from interview_api.middleware.rate_limit import limiter
from interview_api.models.interview_session import InterviewSession
from interview_api.schemas.base import OkResponse
from interview_api.schemas.owner import PublishedInterview, ResearchBrief
from interview_api.schemas.report import ReportUpsert
from interview_api.schemas.session import (
    ParticipantSessionResponse,
    SegmentBatch,
    SessionCreate,
    SessionCreateResponse,
    SessionPatch,
    participant_session_view,
    patch_changes,
)
from interview_api.services import (
    report_service,
    session_service,
    state_service,
    transcript_service,
)

router = APIRouter(prefix="/api/public", tags=["public-sessions"])


def resolve_participant_session(
    id: str,
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> InterviewSession:
    # An id alone is an owner-side lookup; participants must present their token
    if not token:
        raise Unauthorized("Session token required")
    return session_service.resolve_session(db, token=token, session_id=id)


@router.get("/interviews/by-slug/{slug}", response_model=PublishedInterview)
def get_published_interview(slug: str, db: Session = Depends(get_db)):
    """Landing-page data for a published interview."""
    interview = session_service.get_published_interview(db, slug)
    research = interview.research
    return PublishedInterview(
        id=interview.id,
        interview_slug=interview.interview_slug,
        public_title=interview.public_title,
        interview_length=interview.interview_length,
        research=ResearchBrief(
            id=research.id,
            research_name=research.research_name,
            primary_goal=research.primary_goal,
        ) if research else None,
    )


@router.post("/sessions", response_model=SessionCreateResponse, status_code=201)
@limiter.limit(settings.PUBLIC_SESSION_RATE_LIMIT)
def create_session(
    request: Request,
    req: SessionCreate,
    db: Session = Depends(get_db),
):
    """Start a session against an active interview and hand out its token."""
    session = session_service.create_session(
        db,
        slug=req.slug,
        participant_name=req.participant_name,
        mode=req.mode,
        participant_email=req.participant_email,
    )
    return SessionCreateResponse(
        session_id=session.id,
        session_token=session.session_token,
        public_title=session.interview.public_title,
        interview_length=session.interview.interview_length,
        mode=session.mode,
        participant_name=session.participant_name,
        participant_email=session.participant_email,
    )


@router.get("/sessions/by-token", response_model=ParticipantSessionResponse)
def get_session_by_token(
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Full session view, including the ordered transcript, by token only."""
    if not token or not token.strip():
        raise InvalidRequest("token query is required")
    session = session_service.resolve_session(db, token=token)
    return participant_session_view(session, transcript_service.list_segments(db, session.id))


@router.get("/sessions/{id}", response_model=ParticipantSessionResponse)
def get_session(
    session: InterviewSession = Depends(resolve_participant_session),
    db: Session = Depends(get_db),
):
    """Full session view by id, checked against the supplied token."""
    return participant_session_view(session, transcript_service.list_segments(db, session.id))


@router.post("/sessions/{id}/transcript-segments", response_model=OkResponse)
def append_transcript_segments(
    req: SegmentBatch,
    session: InterviewSession = Depends(resolve_participant_session),
    db: Session = Depends(get_db),
):
    """Append a batch of transcript segments to an active session."""
    transcript_service.append_segments(db, session, req.segments)
    return OkResponse()


@router.patch("/sessions/{id}", response_model=OkResponse)
def patch_session(
    req: SessionPatch,
    session: InterviewSession = Depends(resolve_participant_session),
    db: Session = Depends(get_db),
):
    """Partial update of status, timestamps, completion or prompt hash."""
    state_service.update_partial(db, session.id, patch_changes(req))
    return OkResponse()


@router.post("/sessions/{id}/report", response_model=OkResponse)
def upsert_session_report(
    req: ReportUpsert,
    session: InterviewSession = Depends(resolve_participant_session),
    db: Session = Depends(get_db),
):
    """Store (or replace) the analysis report for this session."""
    report_service.upsert_report(
        db,
        session.id,
        summary=req.summary,
        key_quotes=req.key_quotes_json,
        pains=req.pains_json,
        opportunities=req.opportunities_json,
        review=req.review_json,
        interview_completed=req.interview_completed,
    )
    return OkResponse()
