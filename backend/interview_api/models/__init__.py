"""SQLAlchemy ORM models."""

from interview_api.models.user import User
from interview_api.models.research import Research
from interview_api.models.interview import Interview
from interview_api.models.interview_session import InterviewSession
from interview_api.models.transcript_segment import TranscriptSegment
from interview_api.models.interview_report import InterviewReport

__all__ = [
    "User",
    "Research",
    "Interview",
    "InterviewSession",
    "TranscriptSegment",
    "InterviewReport",
]
