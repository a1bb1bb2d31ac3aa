"""Owner-facing queries — interviews and sessions scoped to one owner."""

import math
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from interview_api.config import settings
from interview_api.errors import InvalidRequest, NotFound
from interview_api.models.interview import Interview
from interview_api.models.interview_session import InterviewSession
from interview_api.models.user import User

SORT_FIELDS = ("date", "duration", "status", "type")


def get_owner_by_external_id(db: Session, external_id: str) -> User:
    """Identity seam: map a verified identity-provider subject to an owner row."""
    owner = db.query(User).filter(User.external_id == external_id).first()
    if not owner:
        raise NotFound("User not found")
    return owner


def get_owned_interview(db: Session, owner_id: str, interview_id: Optional[str]) -> Interview:
    interview_id = (interview_id or "").strip()
    if not interview_id:
        raise InvalidRequest("Interview id is required")
    interview = (
        db.query(Interview)
        .filter(Interview.id == interview_id, Interview.user_id == owner_id)
        .first()
    )
    if not interview:
        raise NotFound("Interview not found")
    return interview


def _int_or(raw: Any, default: int) -> int:
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return default
    return value or default


def _duration_expr(db: Session):
    """Seconds between start and end, 0 for sessions that never ended."""
    started = InterviewSession.started_at
    ended = InterviewSession.ended_at
    if db.get_bind().dialect.name == "sqlite":
        seconds = (func.julianday(ended) - func.julianday(started)) * 86400.0
    else:
        seconds = func.extract("epoch", ended - started)
    return func.coalesce(seconds, 0)


def list_interview_sessions(
    db: Session,
    interview: Interview,
    page: Any = None,
    limit: Any = None,
    sort_by: Optional[str] = None,
    sort_dir: Optional[str] = None,
    search: Optional[str] = None,
) -> dict:
    """One page of an interview's sessions.

    ``page`` is clamped to the last page, ``limit`` to the configured bounds.
    Ties fall back to the most recent start first.
    """
    page = max(1, _int_or(page, 1))
    limit = min(
        settings.OWNER_PAGE_SIZE_MAX,
        max(settings.OWNER_PAGE_SIZE_MIN, _int_or(limit, settings.OWNER_PAGE_SIZE_DEFAULT)),
    )
    sort_by = sort_by if sort_by in SORT_FIELDS else "date"
    ascending = sort_dir == "asc"

    def direction(column):
        return column.asc() if ascending else column.desc()

    query = db.query(InterviewSession).filter(InterviewSession.interview_id == interview.id)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                InterviewSession.participant_name.ilike(pattern),
                InterviewSession.participant_email.ilike(pattern),
            )
        )

    total_count = query.count()
    total_pages = max(1, math.ceil(total_count / limit))
    safe_page = min(page, total_pages)

    if sort_by == "duration":
        order = [direction(_duration_expr(db)), InterviewSession.started_at.desc()]
    elif sort_by == "type":
        order = [direction(InterviewSession.mode), InterviewSession.started_at.desc()]
    elif sort_by == "status":
        order = [
            direction(InterviewSession.status),
            direction(InterviewSession.completed),
            InterviewSession.started_at.desc(),
        ]
    else:
        order = [direction(InterviewSession.started_at), InterviewSession.created_at.desc()]

    sessions = (
        query.options(selectinload(InterviewSession.report))
        .order_by(*order)
        .offset((safe_page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": sessions,
        "page": safe_page,
        "total_pages": total_pages,
        "total_count": total_count,
    }
