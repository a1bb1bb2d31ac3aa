"""Shared fixtures: in-memory database, seeded owner/interview, API client."""

import json
import os
import sys
from types import SimpleNamespace

# Must be set before interview_api.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INTERNAL_CRON_SECRET"] = "test-internal-secret"
os.environ["SECRET_KEY"] = "test-secret-key"

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from interview_api.config import settings
from interview_api.database import Base, SessionLocal, engine
from interview_api.main import app
from interview_api.models import Interview, Research, User

INTERNAL_SECRET = "test-internal-secret"


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_owner(db, external_id="user_ext_1", email="owner@acme.test", **overrides) -> User:
    fields = dict(
        external_id=external_id,
        email=email,
        first_name="Dana",
        company_name="Acme",
        short_about="We make onboarding tools",
        blocked_topics=json.dumps(["salaries"]),
        interview_language="English",
        primary_customer_type="Small teams",
    )
    fields.update(overrides)
    owner = User(**fields)
    db.add(owner)
    db.commit()
    return owner


def make_research(db, owner: User, **overrides) -> Research:
    fields = dict(
        user_id=owner.id,
        research_name="Onboarding study",
        research_about="Why trials stall",
        primary_goal="Discovery Research",
        audiences=json.dumps(["Existing Customers"]),
        focus_areas=json.dumps(["Challenges & blockers"]),
        deep_dive=None,
        competitors="Globex",
        topics_to_avoid=None,
    )
    fields.update(overrides)
    research = Research(**fields)
    db.add(research)
    db.commit()
    return research


def make_interview(db, owner: User, research: Research | None, slug="abc12345", **overrides) -> Interview:
    fields = dict(
        user_id=owner.id,
        research_id=research.id if research else None,
        interview_slug=slug,
        interview_url=f"call/{slug}",
        title="Onboarding interviews",
        public_title="Tell us about getting started",
        interview_length="30 min",
        interview_tone="Conversational",
        active=True,
    )
    fields.update(overrides)
    interview = Interview(**fields)
    db.add(interview)
    db.commit()
    return interview


@pytest.fixture
def seeded(db):
    owner = make_owner(db)
    research = make_research(db, owner)
    interview = make_interview(db, owner, research)
    return SimpleNamespace(owner=owner, research=research, interview=interview)


@pytest.fixture
def client(db):
    return TestClient(app)


def owner_headers(external_id: str) -> dict:
    token = jwt.encode({"sub": external_id}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def internal_headers():
    return {"X-Internal-Secret": INTERNAL_SECRET}


def start_session(client, slug="abc12345", name="Alex", mode="text", email=None) -> dict:
    body = {"slug": slug, "participantName": name, "mode": mode}
    if email:
        body["participantEmail"] = email
    response = client.post("/api/public/sessions", json=body)
    assert response.status_code == 201, response.text
    return response.json()
