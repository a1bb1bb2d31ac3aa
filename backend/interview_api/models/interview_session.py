"""Interview session model — one participant's run through a published interview."""

import uuid

from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship, validates

from interview_api.database import Base, utcnow
from interview_api.errors import InvalidState


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    research_id = Column(String(36), ForeignKey("researches.id", ondelete="CASCADE"), nullable=False)
    interview_id = Column(String(36), ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(32), nullable=False, default="active")  # active | completed | abandoned | ...
    mode = Column(String(16), nullable=False)  # text | voice
    participant_name = Column(String(255), nullable=False)
    participant_email = Column(String(255), nullable=True)
    session_token = Column(String(128), unique=True, nullable=False, index=True)

    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    last_activity_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    completed = Column(Boolean, nullable=False, default=False)

    prompt_version_id = Column(String(64), nullable=False, default="interviewer_v1")
    persona_id = Column(String(32), nullable=False, default="professional")
    compiled_prompt_hash = Column(String(128), nullable=True)

    # Written once at creation, never patched afterwards
    global_context_snapshot = Column(Text, nullable=False)  # JSON object
    research_context_snapshot = Column(Text, nullable=False)  # JSON object

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    interview = relationship("Interview", back_populates="sessions")
    research = relationship("Research")
    owner = relationship("User")
    segments = relationship(
        "TranscriptSegment",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[TranscriptSegment.created_at, TranscriptSegment.seq]",
    )
    report = relationship(
        "InterviewReport",
        back_populates="session",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("global_context_snapshot", "research_context_snapshot")
    def _freeze_snapshot(self, key, value):
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise InvalidState(f"{key} is immutable once the session exists")
        return value
