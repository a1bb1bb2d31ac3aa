"""Internal router — privileged surface for the finalization/analysis job."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from interview_api.database import get_db
from interview_api.errors import InvalidRequest
from interview_api.middleware.auth import require_internal_secret
from interview_api.schemas.base import OkResponse
from interview_api.schemas.owner import StaleSegment, StaleSession
from interview_api.schemas.report import ReportUpsert
from interview_api.schemas.session import InternalSessionPatch, patch_changes
from interview_api.services import report_service, state_service

router = APIRouter(
    prefix="/api/internal",
    tags=["internal"],
    dependencies=[Depends(require_internal_secret)],
)


def _session_id(raw: str) -> str:
    session_id = (raw or "").strip()
    if not session_id:
        raise InvalidRequest("id required")
    return session_id


@router.get("/sessions/stale", response_model=list[StaleSession])
def list_stale_sessions(
    minutes: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Active sessions idle longer than ``minutes`` (clamped to 5-60, default 30)."""
    sessions = state_service.find_stale_sessions(db, minutes)
    return [
        StaleSession(
            id=s.id,
            interview_id=s.interview_id,
            mode=s.mode,
            participant_name=s.participant_name,
            participant_email=s.participant_email,
            started_at=s.started_at,
            ended_at=s.ended_at,
            last_activity_at=s.last_activity_at,
            segments=[StaleSegment(role=seg.role, text=seg.text) for seg in s.segments],
        )
        for s in sessions
    ]


@router.patch("/sessions/{id}", response_model=OkResponse)
def patch_session(
    id: str,
    req: InternalSessionPatch,
    db: Session = Depends(get_db),
):
    """Finalize a session: status, endedAt and/or completed."""
    state_service.update_partial(db, _session_id(id), patch_changes(req))
    return OkResponse()


@router.post("/sessions/{id}/report", response_model=OkResponse)
def upsert_session_report(
    id: str,
    req: ReportUpsert,
    db: Session = Depends(get_db),
):
    """Store (or replace) the analysis report, including the review payload."""
    report_service.upsert_report(
        db,
        _session_id(id),
        summary=req.summary,
        key_quotes=req.key_quotes_json,
        pains=req.pains_json,
        opportunities=req.opportunities_json,
        review=req.review_json,
        interview_completed=req.interview_completed,
    )
    return OkResponse()
