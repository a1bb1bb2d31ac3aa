"""Transcript segment model — append-only utterances of a session."""

import uuid

from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from interview_api.database import Base, utcnow


class TranscriptSegment(Base):
    __tablename__ = "transcript_segments"
    __table_args__ = (
        UniqueConstraint("interview_session_id", "seq", name="uq_transcript_segments_session_seq"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    interview_session_id = Column(
        String(36), ForeignKey("interview_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    seq = Column(Integer, nullable=False)  # insertion order within the session
    role = Column(String(32), nullable=False)
    text = Column(Text, nullable=False, default="")
    ts_start = Column(Float, nullable=True)  # seconds
    ts_end = Column(Float, nullable=True)
    meta_json = Column(Text, nullable=True)  # JSON, opaque
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    session = relationship("InterviewSession", back_populates="segments")
