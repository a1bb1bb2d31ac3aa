"""Report store — one analysis report per session, replaced on every write."""

import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from interview_api.errors import Conflict, InvalidRequest, NotFound
from interview_api.models.interview_report import InterviewReport
from interview_api.models.interview_session import InterviewSession

logger = logging.getLogger(__name__)


def _dump_collection(value: Any) -> str:
    return json.dumps(value if value is not None else [])


def _fill(report: InterviewReport, payload: dict) -> None:
    for key, value in payload.items():
        setattr(report, key, value)


def upsert_report(
    db: Session,
    session_id: str,
    summary: Any,
    key_quotes: Any = None,
    pains: Any = None,
    opportunities: Any = None,
    review: Any = None,
    interview_completed: Optional[bool] = True,
) -> InterviewReport:
    """Store the report for a session, overwriting any previous one.

    Re-analysis supersedes stale output: every field is replaced, nothing is
    merged. Missing collections are stored as empty lists.
    """
    if not isinstance(summary, str):
        raise InvalidRequest("summary is required")

    payload = {
        "summary": summary,
        "key_quotes_json": _dump_collection(key_quotes),
        "pains_json": _dump_collection(pains),
        "opportunities_json": _dump_collection(opportunities),
        "review_json": json.dumps(review) if review else None,
        "interview_completed": interview_completed is not False,
    }

    # Serialize concurrent writers for the same session on the session row
    session = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == session_id)
        .with_for_update()
        .first()
    )
    if not session:
        raise NotFound("Session not found")

    report = db.query(InterviewReport).filter(InterviewReport.interview_session_id == session_id).first()
    if report:
        _fill(report, payload)
    else:
        report = InterviewReport(interview_session_id=session_id, **payload)
        db.add(report)

    try:
        db.commit()
    except IntegrityError:
        # Concurrent first write for the same session; the caller may resend
        db.rollback()
        logger.warning("Concurrent report write for session %s", session_id)
        raise Conflict("Report was written concurrently, retry")
    except Exception:
        db.rollback()
        raise
    db.refresh(report)
    logger.info("Stored report for session %s", session_id)
    return report


def get_report(db: Session, session_id: str) -> InterviewReport:
    report = db.query(InterviewReport).filter(InterviewReport.interview_session_id == session_id).first()
    if not report:
        raise NotFound("Report not found")
    return report


def load_json(raw: Optional[str], default: Any = None) -> Any:
    if raw is None:
        return default
    return json.loads(raw)
