"""Published interview model — the public entry point participants start from."""

import uuid

from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from interview_api.database import Base, utcnow


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    research_id = Column(String(36), ForeignKey("researches.id", ondelete="SET NULL"), nullable=True)
    interview_slug = Column(String(32), unique=True, nullable=False, index=True)
    interview_url = Column(String(255), nullable=False)
    title = Column(String(80), nullable=False)
    public_title = Column(String(80), nullable=False)
    interview_length = Column(String(16), nullable=False)  # "15 min" | "30 min" | "45 min" | "60 min"
    interview_tone = Column(String(32), nullable=False)  # Conversational | Professional | Empathetic
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="interviews")
    research = relationship("Research", back_populates="interviews")
    sessions = relationship(
        "InterviewSession",
        back_populates="interview",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
