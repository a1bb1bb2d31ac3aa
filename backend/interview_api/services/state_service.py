"""Session state machine — partial updates and the staleness sweep."""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session, selectinload

from interview_api.config import settings
from interview_api.database import as_utc, utcnow
from interview_api.errors import InvalidRequest, InvalidState, NotFound
from interview_api.models.interview_session import InterviewSession
from interview_api.services import completion_service

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("status", "ended_at", "completed", "last_activity_at", "compiled_prompt_hash")
MAX_STATUS_LENGTH = 32
MAX_PROMPT_HASH_LENGTH = 128


def _validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - set(PATCHABLE_FIELDS)
    if unknown:
        raise InvalidRequest(f"Unsupported field(s): {', '.join(sorted(unknown))}")

    clean: dict[str, Any] = {}
    if "status" in changes:
        status = changes["status"]
        if not isinstance(status, str) or not status.strip():
            raise InvalidRequest("status must be a non-empty string")
        status = status.strip()
        if len(status) > MAX_STATUS_LENGTH:
            raise InvalidRequest("status is too long")
        clean["status"] = status
    for field in ("ended_at", "last_activity_at"):
        if field in changes:
            if not isinstance(changes[field], datetime):
                raise InvalidRequest(f"{field} must be a timestamp")
            clean[field] = as_utc(changes[field])
    if "completed" in changes:
        if not isinstance(changes["completed"], bool):
            raise InvalidRequest("completed must be a boolean")
        clean["completed"] = changes["completed"]
    if "compiled_prompt_hash" in changes:
        value = changes["compiled_prompt_hash"]
        if not isinstance(value, str) or len(value) > MAX_PROMPT_HASH_LENGTH:
            raise InvalidRequest("compiled_prompt_hash is invalid")
        clean["compiled_prompt_hash"] = value
    return clean


def update_partial(db: Session, session_id: str, changes: dict[str, Any]) -> InterviewSession:
    """Apply only the supplied fields to a session.

    The single mutation entry point for participants and the maintenance job.
    When ``completed`` goes false -> true the owner's counter is incremented
    in the same transaction; repeating the request changes nothing.
    """
    clean = _validate_changes(changes)

    session = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == session_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not session:
        raise NotFound("Session not found")

    if session.completed and clean.get("completed") is False:
        raise InvalidState("A completed session cannot be reopened")
    if session.completed and clean.get("status") == "active":
        raise InvalidState("A completed session cannot become active again")

    newly_completed = False
    if clean.get("completed") is True:
        newly_completed = completion_service.claim_completion(db, session.id)
        if newly_completed:
            completion_service.increment_completed_count(db, session.created_by)
        session.completed = True

    if "status" in clean:
        session.status = clean["status"]
    if "ended_at" in clean:
        session.ended_at = clean["ended_at"]
    if "compiled_prompt_hash" in clean:
        session.compiled_prompt_hash = clean["compiled_prompt_hash"]
    if "last_activity_at" in clean:
        current = as_utc(session.last_activity_at)
        if current is None or clean["last_activity_at"] > current:
            session.last_activity_at = clean["last_activity_at"]

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    if newly_completed:
        logger.info("Session %s completed; counted for owner %s", session.id, session.created_by)
    return session


def clamp_stale_minutes(raw: Optional[Any]) -> int:
    """Sweep window in minutes; junk or zero falls back to the default.

    The value is clamped before truncation, so 0.5 means the minimum window
    and infinity the maximum.
    """
    try:
        minutes = float(raw) if raw is not None else 0.0
    except (TypeError, ValueError, OverflowError):
        minutes = 0.0
    if not minutes or math.isnan(minutes):
        minutes = settings.STALE_MINUTES_DEFAULT
    return int(min(settings.STALE_MINUTES_MAX, max(settings.STALE_MINUTES_MIN, minutes)))


def find_stale_sessions(db: Session, minutes: Optional[Any] = None) -> list[InterviewSession]:
    """Active sessions idle for longer than the window, with their transcripts.

    Read-only: finalizing them is left to the caller via ``update_partial``.
    """
    window = clamp_stale_minutes(minutes)
    cutoff = utcnow() - timedelta(minutes=window)
    sessions = (
        db.query(InterviewSession)
        .options(selectinload(InterviewSession.segments))
        .filter(InterviewSession.status == "active", InterviewSession.last_activity_at < cutoff)
        .order_by(InterviewSession.last_activity_at.asc())
        .all()
    )
    logger.info("Stale sweep (%d min) found %d session(s)", window, len(sessions))
    return sessions
