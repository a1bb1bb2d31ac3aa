"""Transcript append log — batched, append-only segments per session."""

import json
import logging
import math
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from interview_api.config import settings
from interview_api.database import as_utc, utcnow
from interview_api.errors import InvalidRequest, InvalidState, NotFound
from interview_api.models.interview_session import InterviewSession
from interview_api.models.transcript_segment import TranscriptSegment

logger = logging.getLogger(__name__)


def _pick(item: dict, *keys):
    for key in keys:
        if key in item:
            return item[key]
    return None


def _offset(value) -> float | None:
    """Seconds offset, or None for anything that is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _normalize_segment(item: Any) -> dict:
    if not isinstance(item, dict):
        raise InvalidRequest("each segment must be an object")
    role = item.get("role")
    text = item.get("text")
    meta = _pick(item, "metaJson", "meta_json", "meta")
    return {
        "role": str(role if role is not None else "user")[: settings.SEGMENT_ROLE_MAX_LENGTH],
        "text": "" if text is None else str(text),
        "ts_start": _offset(_pick(item, "tsStart", "ts_start")),
        "ts_end": _offset(_pick(item, "tsEnd", "ts_end")),
        "meta_json": json.dumps(meta) if meta is not None else None,
    }


def append_segments(db: Session, session: InterviewSession, batch: Any) -> list[TranscriptSegment]:
    """Append an ordered batch of segments and bump the session's activity time.

    Steps, all within one transaction:
    1. Lock the session row and confirm it is still active
    2. Number the batch after the session's current last segment
    3. Insert the segments
    4. Advance last_activity_at (never backwards)
    """
    if session.status != "active":
        raise InvalidState("Session is not active")
    if not isinstance(batch, list) or not batch:
        raise InvalidRequest("segments array is required")
    rows = [_normalize_segment(item) for item in batch]

    locked = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == session.id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not locked:
        raise NotFound("Session not found")
    if locked.status != "active":
        raise InvalidState("Session is not active")

    last = (
        db.query(TranscriptSegment.seq, TranscriptSegment.created_at)
        .filter(TranscriptSegment.interview_session_id == locked.id)
        .order_by(TranscriptSegment.seq.desc())
        .first()
    )
    last_seq = last.seq if last else 0
    now = utcnow()
    # Creation order must agree with insertion order even if the clock steps back
    created_at = max(now, as_utc(last.created_at)) if last else now
    segments = [
        TranscriptSegment(
            interview_session_id=locked.id,
            seq=last_seq + offset,
            created_at=created_at,
            **row,
        )
        for offset, row in enumerate(rows, start=1)
    ]
    db.add_all(segments)

    (
        db.query(InterviewSession)
        .filter(
            InterviewSession.id == locked.id,
            or_(InterviewSession.last_activity_at.is_(None), InterviewSession.last_activity_at < now),
        )
        .update({InterviewSession.last_activity_at: now}, synchronize_session=False)
    )

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Appended %d segment(s) to session %s", len(segments), locked.id)
    return segments


def list_segments(db: Session, session_id: str) -> list[TranscriptSegment]:
    """Segments in authoritative transcript order."""
    return (
        db.query(TranscriptSegment)
        .filter(TranscriptSegment.interview_session_id == session_id)
        .order_by(TranscriptSegment.created_at.asc(), TranscriptSegment.seq.asc())
        .all()
    )
