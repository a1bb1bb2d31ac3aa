"""Completion counter — the owner's completed-session aggregate.

The authoritative fact is the number of sessions with ``completed = true``
per owner; ``User.completed_sessions_count`` is a denormalized copy that is
incremented once per completion and lazily caught up, never lowered.
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from interview_api.models.interview import Interview
from interview_api.models.interview_session import InterviewSession
from interview_api.models.user import User

logger = logging.getLogger(__name__)


def claim_completion(db: Session, session_id: str) -> bool:
    """Flip ``completed`` false -> true and report whether this call did it.

    A conditional update, so two writers racing on the same session cannot
    both observe ``completed = false`` and both win. Does not commit.
    """
    claimed = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == session_id, InterviewSession.completed.is_(False))
        .update({InterviewSession.completed: True}, synchronize_session=False)
    )
    return claimed == 1


def increment_completed_count(db: Session, owner_id: str) -> None:
    """Add one to the owner's aggregate in SQL. Does not commit."""
    db.query(User).filter(User.id == owner_id).update(
        {User.completed_sessions_count: User.completed_sessions_count + 1},
        synchronize_session=False,
    )


def count_completed_sessions(db: Session, owner_id: str) -> int:
    return (
        db.query(func.count(InterviewSession.id))
        .filter(InterviewSession.created_by == owner_id, InterviewSession.completed.is_(True))
        .scalar()
    ) or 0


def reconcile_completed_count(db: Session, owner_id: str) -> int:
    """Raise the stored aggregate to the true count if it lags behind.

    Returns the value readers should see. The update only ever moves the
    counter up, so a concurrent increment cannot be undone by it.
    """
    actual = count_completed_sessions(db, owner_id)
    raised = (
        db.query(User)
        .filter(User.id == owner_id, User.completed_sessions_count < actual)
        .update({User.completed_sessions_count: actual}, synchronize_session=False)
    )
    if raised:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Reconciled completed session count for owner %s to %d", owner_id, actual)

    stored = db.query(User.completed_sessions_count).filter(User.id == owner_id).scalar() or 0
    return max(stored, actual)


def get_usage_metrics(db: Session, owner: User) -> dict:
    """Owner dashboard counters; reading them reconciles the aggregate."""
    interviews_count = (
        db.query(func.count(Interview.id)).filter(Interview.user_id == owner.id).scalar()
    ) or 0
    sessions_count = (
        db.query(func.count(InterviewSession.id))
        .join(Interview, InterviewSession.interview_id == Interview.id)
        .filter(Interview.user_id == owner.id)
        .scalar()
    ) or 0
    completed = reconcile_completed_count(db, owner.id)
    return {
        "interviews_count": interviews_count,
        "sessions_count": sessions_count,
        "completed_sessions_count": completed,
    }
