"""Session service — creating sessions and resolving them by token or id."""

import json
import logging
import secrets
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from interview_api.config import settings
from interview_api.errors import Conflict, Forbidden, InvalidRequest, NotFound
from interview_api.models.interview import Interview
from interview_api.models.interview_session import InterviewSession
from interview_api.services import snapshot_service

logger = logging.getLogger(__name__)

SESSION_MODES = ("text", "voice")
MAX_PARTICIPANT_FIELD = 255


def generate_session_token() -> str:
    return secrets.token_hex(settings.SESSION_TOKEN_BYTES)


def get_published_interview(db: Session, slug: str) -> Interview:
    """Return the interview behind a public slug, only while it is active."""
    slug = (slug or "").strip()
    if not slug:
        raise InvalidRequest("slug is required")
    interview = (
        db.query(Interview)
        .options(joinedload(Interview.research), joinedload(Interview.user))
        .filter(Interview.interview_slug == slug, Interview.active.is_(True))
        .first()
    )
    if not interview:
        raise NotFound("Interview not found or inactive")
    return interview


def _clean_participant(
    participant_name: Optional[str], participant_email: Optional[str], mode: Optional[str]
) -> tuple[str, Optional[str], str]:
    name = participant_name.strip() if isinstance(participant_name, str) else ""
    if not name:
        raise InvalidRequest("participantName is required")
    if len(name) > MAX_PARTICIPANT_FIELD:
        raise InvalidRequest("participantName is too long")

    email = None
    if participant_email is not None:
        if not isinstance(participant_email, str):
            raise InvalidRequest("participantEmail must be a string")
        email = participant_email.strip() or None
        if email and ("@" not in email or len(email) > MAX_PARTICIPANT_FIELD):
            raise InvalidRequest("participantEmail is invalid")

    if mode not in SESSION_MODES:
        raise InvalidRequest("mode must be 'text' or 'voice'")
    return name, email, mode


def create_session(
    db: Session,
    slug: Optional[str],
    participant_name: Optional[str],
    mode: Optional[str],
    participant_email: Optional[str] = None,
) -> InterviewSession:
    """Start a participant session against a published interview.

    Company and research configuration are copied into the session here and
    nowhere else.
    """
    if not isinstance(slug, str) or not slug.strip():
        raise InvalidRequest("slug is required")
    name, email, mode = _clean_participant(participant_name, participant_email, mode)

    interview = get_published_interview(db, slug)
    if not interview.research_id or not interview.research:
        raise NotFound("Interview not found or inactive")

    global_snapshot = snapshot_service.build_global_snapshot(interview.user)
    research_snapshot = snapshot_service.build_research_snapshot(interview.research)

    session = InterviewSession(
        research_id=interview.research.id,
        interview_id=interview.id,
        created_by=interview.user_id,
        status="active",
        mode=mode,
        participant_name=name,
        participant_email=email,
        session_token=generate_session_token(),
        prompt_version_id=settings.PROMPT_VERSION_ID,
        persona_id=snapshot_service.tone_to_persona_id(interview.interview_tone),
        global_context_snapshot=json.dumps(global_snapshot),
        research_context_snapshot=json.dumps(research_snapshot),
    )
    db.add(session)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Session token collision for interview %s", interview.id)
        raise Conflict("Could not allocate a session token, retry")
    except Exception:
        db.rollback()
        raise
    db.refresh(session)
    logger.info("Created session %s for interview %s (%s)", session.id, interview.id, mode)
    return session


def resolve_session(
    db: Session,
    token: Optional[str] = None,
    session_id: Optional[str] = None,
) -> InterviewSession:
    """Find a session by participant token, by id, or both.

    Precedence: the token is looked up first, and a hit is returned as long
    as any supplied id names the same session. Without a hit the id is used;
    a supplied token must then equal the stored token of the session found by
    id. Either mismatch is Forbidden. An id alone is accepted only from
    callers that already proved ownership some other way.
    """
    token = (token or "").strip() or None
    session_id = (session_id or "").strip() or None
    if not token and not session_id:
        raise InvalidRequest("Session token or session id required")

    query = db.query(InterviewSession).options(joinedload(InterviewSession.interview))
    if token:
        by_token = query.filter(InterviewSession.session_token == token).first()
        if by_token and session_id and by_token.id != session_id:
            logger.warning("Rejected token of session %s used for session %s", by_token.id, session_id)
            raise Forbidden("Invalid session token")
        if by_token:
            return by_token
        if not session_id:
            raise NotFound("Session not found")

    by_id = query.filter(InterviewSession.id == session_id).first()
    if not by_id:
        raise NotFound("Session not found")
    if token and not secrets.compare_digest(by_id.session_token.encode(), token.encode()):
        logger.warning("Rejected token/id mismatch for session %s", by_id.id)
        raise Forbidden("Invalid session token")
    return by_id


def get_session_for_owner(db: Session, owner_id: str, interview_id: str, session_id: str) -> InterviewSession:
    """Resolve by id after scoping to an interview the owner holds."""
    session = resolve_session(db, session_id=session_id)
    if session.interview_id != interview_id or session.interview.user_id != owner_id:
        raise NotFound("Session not found")
    return session


def delete_session(db: Session, session: InterviewSession) -> None:
    """Owner-initiated delete; transcript and report go with it."""
    session_id = session.id
    db.delete(session)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted session %s", session_id)
