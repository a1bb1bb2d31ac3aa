"""Interviews router — owner dashboard over sessions, reports and usage."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from interview_api.database import get_db
from interview_api.middleware.auth import get_current_owner
from interview_api.models.interview_session import InterviewSession
from interview_api.models.user import User
from interview_api.schemas.base import OkResponse
from interview_api.schemas.owner import ReportSummary, SessionListItem, SessionPage, UsageMetrics
from interview_api.schemas.report import ReportWithTranscript, report_view
from interview_api.schemas.session import SessionResponse, segment_view, session_view
from interview_api.services import (
    completion_service,
    owner_service,
    report_service,
    session_service,
    transcript_service,
)

router = APIRouter(prefix="/api/interviews", tags=["interviews"])


def _list_item(session: InterviewSession) -> SessionListItem:
    report = session.report
    return SessionListItem(
        id=session.id,
        status=session.status,
        mode=session.mode,
        participant_name=session.participant_name,
        participant_email=session.participant_email,
        started_at=session.started_at,
        ended_at=session.ended_at,
        completed=session.completed,
        created_at=session.created_at,
        report=ReportSummary(
            id=report.id,
            created_at=report.created_at,
            interview_completed=report.interview_completed,
        ) if report else None,
    )


@router.get("/metrics", response_model=UsageMetrics)
def usage_metrics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Interview, session and completed-session counts for the caller."""
    return UsageMetrics(**completion_service.get_usage_metrics(db, current_user))


@router.get("/{interview_id}/sessions", response_model=SessionPage)
def list_sessions(
    interview_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Paginated, sortable, searchable sessions of one of the caller's interviews."""
    interview = owner_service.get_owned_interview(db, current_user.id, interview_id)
    result = owner_service.list_interview_sessions(
        db, interview, page=page, limit=limit, sort_by=sort_by, sort_dir=sort_dir, search=search
    )
    return SessionPage(
        data=[_list_item(s) for s in result["data"]],
        page=result["page"],
        total_pages=result["total_pages"],
        total_count=result["total_count"],
    )


@router.get("/{interview_id}/sessions/{session_id}", response_model=SessionResponse)
def get_session(
    interview_id: str,
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Full session view with transcript."""
    session = session_service.get_session_for_owner(db, current_user.id, interview_id, session_id)
    return session_view(session, transcript_service.list_segments(db, session.id))


@router.delete("/{interview_id}/sessions/{session_id}", response_model=OkResponse)
def delete_session(
    interview_id: str,
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Delete a session together with its transcript and report."""
    session = session_service.get_session_for_owner(db, current_user.id, interview_id, session_id)
    session_service.delete_session(db, session)
    return OkResponse()


@router.get("/{interview_id}/sessions/{session_id}/report", response_model=ReportWithTranscript)
def get_session_report(
    interview_id: str,
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """The session's analysis report alongside its ordered transcript."""
    session = session_service.get_session_for_owner(db, current_user.id, interview_id, session_id)
    report = report_service.get_report(db, session.id)
    segments = transcript_service.list_segments(db, session.id)
    return ReportWithTranscript(
        report=report_view(report),
        participant_name=session.participant_name,
        participant_email=session.participant_email,
        mode=session.mode,
        status=session.status,
        started_at=session.started_at,
        ended_at=session.ended_at,
        segments=[segment_view(s) for s in segments],
    )
