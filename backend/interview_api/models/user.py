"""Owner (researcher) model.

Rows are provisioned by the identity provider sync; this service only reads
the company profile and maintains ``completed_sessions_count``.
"""

import uuid

from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.orm import relationship

from interview_api.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    external_id = Column(String(255), unique=True, nullable=False, index=True)  # identity provider subject
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)

    # Company profile, frozen into each session's global snapshot
    company_name = Column(String(255), nullable=True)
    short_about = Column(Text, nullable=True)
    blocked_topics = Column(Text, nullable=False, default="[]")  # JSON array
    interview_language = Column(String(32), nullable=False, default="English")
    primary_customer_type = Column(String(64), nullable=True)

    # Denormalized; the count of completed sessions is authoritative
    completed_sessions_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    researches = relationship("Research", back_populates="user", cascade="all, delete-orphan")
    interviews = relationship("Interview", back_populates="user", cascade="all, delete-orphan")
