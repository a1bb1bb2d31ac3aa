"""Owner dashboard and maintenance schemas."""

from datetime import datetime
from typing import Optional

from interview_api.schemas.base import CamelModel


class ReportSummary(CamelModel):
    id: str
    created_at: datetime
    interview_completed: bool


class SessionListItem(CamelModel):
    id: str
    status: str
    mode: str
    participant_name: str
    participant_email: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    completed: bool
    created_at: datetime
    report: Optional[ReportSummary] = None


class SessionPage(CamelModel):
    data: list[SessionListItem]
    page: int
    total_pages: int
    total_count: int


class UsageMetrics(CamelModel):
    interviews_count: int
    sessions_count: int
    completed_sessions_count: int


class StaleSegment(CamelModel):
    role: str
    text: str


class StaleSession(CamelModel):
    id: str
    interview_id: str
    mode: str
    participant_name: str
    participant_email: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    last_activity_at: datetime
    segments: list[StaleSegment]


class ResearchBrief(CamelModel):
    id: str
    research_name: str
    primary_goal: str


class PublishedInterview(CamelModel):
    id: str
    interview_slug: str
    public_title: str
    interview_length: str
    research: Optional[ResearchBrief] = None
