"""Interview report request/response schemas."""

import json
from datetime import datetime
from typing import Any, Optional

from interview_api.models.interview_report import InterviewReport
from interview_api.schemas.base import CamelModel
from interview_api.schemas.session import SegmentResponse


class ReportUpsert(CamelModel):
    summary: Any = None  # must be a string; checked by the report store
    key_quotes_json: Any = None
    pains_json: Any = None
    opportunities_json: Any = None
    review_json: Any = None
    interview_completed: Optional[bool] = None


class ReportResponse(CamelModel):
    id: str
    session_id: str
    summary: str
    key_quotes_json: Any
    pains_json: Any
    opportunities_json: Any
    review_json: Any = None
    interview_completed: bool
    created_at: datetime


class ReportWithTranscript(CamelModel):
    report: ReportResponse
    participant_name: str
    participant_email: Optional[str] = None
    mode: str
    status: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    segments: list[SegmentResponse]


def report_view(report: InterviewReport) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        session_id=report.interview_session_id,
        summary=report.summary,
        key_quotes_json=json.loads(report.key_quotes_json),
        pains_json=json.loads(report.pains_json),
        opportunities_json=json.loads(report.opportunities_json),
        review_json=json.loads(report.review_json) if report.review_json else None,
        interview_completed=report.interview_completed,
        created_at=report.created_at,
    )
