"""Snapshot builder — freezes owner and research configuration into a session.

Snapshots are plain dicts serialized into the session row at creation time.
Nothing here is ever re-run for an existing session: later edits to the
company profile or research brief must not reach sessions already created.
"""

import json

from interview_api.models.research import Research
from interview_api.models.user import User

# Evaluated in order; first keyword contained in the tone wins
PERSONA_KEYWORDS = ("conversational", "professional", "empathetic")
DEFAULT_PERSONA = "professional"


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def _items(raw) -> list:
    """Decode a JSON-array column, tolerating NULL and legacy garbage."""
    if isinstance(raw, list):
        return list(raw)
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def build_global_snapshot(user: User) -> dict:
    return {
        "companyName": _text(user.company_name),
        "shortAbout": _text(user.short_about),
        "blockedTopics": _items(user.blocked_topics),
        "interviewLanguage": _text(user.interview_language) or "English",
        "primaryCustomerType": _text(user.primary_customer_type),
    }


def build_research_snapshot(research: Research) -> dict:
    return {
        "researchName": _text(research.research_name),
        "researchAbout": _text(research.research_about),
        "primaryGoal": _text(research.primary_goal),
        "audiences": _items(research.audiences),
        "focusAreas": _items(research.focus_areas),
        "deepDive": _text(research.deep_dive),
        "competitors": _text(research.competitors),
        "topicsToAvoid": _text(research.topics_to_avoid),
    }


def tone_to_persona_id(tone: str | None) -> str:
    lower = (tone or "").lower()
    for keyword in PERSONA_KEYWORDS:
        if keyword in lower:
            return keyword
    return DEFAULT_PERSONA


def load_snapshot(raw: str | None) -> dict:
    if not raw:
        return {}
    return json.loads(raw)
