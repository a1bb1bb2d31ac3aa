"""Interview report model — one analysis artifact per session."""

import uuid

from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from interview_api.database import Base, utcnow


class InterviewReport(Base):
    __tablename__ = "interview_reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    interview_session_id = Column(
        String(36), ForeignKey("interview_sessions.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    summary = Column(Text, nullable=False)
    key_quotes_json = Column(Text, nullable=False, default="[]")  # JSON
    pains_json = Column(Text, nullable=False, default="[]")  # JSON
    opportunities_json = Column(Text, nullable=False, default="[]")  # JSON
    review_json = Column(Text, nullable=True)  # JSON object from the reviewer pass
    interview_completed = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    session = relationship("InterviewSession", back_populates="report")
