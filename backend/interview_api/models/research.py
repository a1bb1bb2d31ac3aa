"""Research brief model."""

import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from interview_api.database import Base, utcnow


class Research(Base):
    __tablename__ = "researches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    research_name = Column(String(255), nullable=False)
    research_about = Column(Text, nullable=True)
    primary_goal = Column(String(64), nullable=False)
    audiences = Column(Text, nullable=False, default="[]")  # JSON array
    focus_areas = Column(Text, nullable=False, default="[]")  # JSON array
    deep_dive = Column(Text, nullable=True)
    competitors = Column(Text, nullable=True)
    topics_to_avoid = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="researches")
    interviews = relationship("Interview", back_populates="research")
