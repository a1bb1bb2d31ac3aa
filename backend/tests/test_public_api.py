"""Tests for the participant-facing session API."""

import re
from datetime import datetime

from interview_api.models import InterviewSession, TranscriptSegment, User

from conftest import make_interview, start_session


def _token_headers(created):
    return {"X-Session-Token": created["sessionToken"]}


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


class TestPublishedInterview:

    def test_by_slug(self, client, seeded):
        response = client.get("/api/public/interviews/by-slug/abc12345")
        assert response.status_code == 200
        data = response.json()
        assert data["publicTitle"] == "Tell us about getting started"
        assert data["interviewLength"] == "30 min"
        assert data["research"]["researchName"] == "Onboarding study"

    def test_inactive_slug(self, client, db, seeded):
        make_interview(db, seeded.owner, seeded.research, slug="paused01", active=False)
        response = client.get("/api/public/interviews/by-slug/paused01")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Interview not found or inactive"}


class TestCreateSession:

    def test_happy_path(self, client, seeded):
        created = start_session(client, name="Alex", mode="text")
        assert re.fullmatch(r"[0-9a-f]{64}", created["sessionToken"])
        assert created["publicTitle"] == "Tell us about getting started"
        assert created["interviewLength"] == "30 min"
        assert created["participantEmail"] is None

    def test_missing_name(self, client, seeded):
        response = client.post("/api/public/sessions", json={"slug": "abc12345", "mode": "text"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_bad_mode(self, client, seeded):
        response = client.post(
            "/api/public/sessions", json={"slug": "abc12345", "participantName": "Alex", "mode": "video"}
        )
        assert response.status_code == 400

    def test_unknown_slug(self, client, seeded):
        response = client.post(
            "/api/public/sessions", json={"slug": "nope0000", "participantName": "Alex", "mode": "text"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_malformed_body(self, client, seeded):
        response = client.post("/api/public/sessions", json={"slug": 12, "participantName": "Alex", "mode": "text"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"


class TestSessionLifecycle:
    """Create, talk, complete, retry."""

    def test_full_flow(self, client, db, seeded):
        created = start_session(client)
        session_id = created["sessionId"]
        headers = _token_headers(created)

        response = client.post(
            f"/api/public/sessions/{session_id}/transcript-segments",
            json={"segments": [{"role": "user", "text": "Hi"}]},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        view = client.get(f"/api/public/sessions/{session_id}", headers=headers).json()
        assert [s["text"] for s in view["segments"]] == ["Hi"]
        assert view["segments"][0]["seq"] == 1
        assert _parse(view["lastActivityAt"]) >= _parse(view["startedAt"])
        assert view["globalContextSnapshot"]["companyName"] == "Acme"
        assert view["researchContextSnapshot"]["researchName"] == "Onboarding study"
        assert view["personaId"] == "conversational"

        patch = {"status": "completed", "completed": True, "endedAt": "2026-03-01T12:30:00Z"}
        assert client.patch(f"/api/public/sessions/{session_id}", json=patch, headers=headers).status_code == 200
        db.expire_all()
        assert db.get(User, seeded.owner.id).completed_sessions_count == 1

        assert client.patch(f"/api/public/sessions/{session_id}", json=patch, headers=headers).status_code == 200
        db.expire_all()
        assert db.get(User, seeded.owner.id).completed_sessions_count == 1

        # Inactive sessions refuse more transcript
        response = client.post(
            f"/api/public/sessions/{session_id}/transcript-segments",
            json={"segments": [{"role": "user", "text": "One more thing"}]},
            headers=headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_reopen_rejected(self, client, seeded):
        created = start_session(client)
        url = f"/api/public/sessions/{created['sessionId']}"
        headers = _token_headers(created)
        client.patch(url, json={"completed": True}, headers=headers)
        response = client.patch(url, json={"completed": False}, headers=headers)
        assert response.status_code == 409

    def test_patch_bad_types(self, client, seeded):
        created = start_session(client)
        response = client.patch(
            f"/api/public/sessions/{created['sessionId']}",
            json={"completed": "maybe"},
            headers=_token_headers(created),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_request", "message": "Invalid value for 'completed'"}

    def test_empty_batch(self, client, db, seeded):
        created = start_session(client)
        response = client.post(
            f"/api/public/sessions/{created['sessionId']}/transcript-segments",
            json={"segments": []},
            headers=_token_headers(created),
        )
        assert response.status_code == 400
        assert db.query(TranscriptSegment).count() == 0


class TestTokenChecks:
    """Participants are identified by their session token."""

    def test_by_token(self, client, seeded):
        created = start_session(client)
        response = client.get("/api/public/sessions/by-token", params={"token": created["sessionToken"]})
        assert response.status_code == 200
        assert response.json()["sessionId"] == created["sessionId"]

    def test_by_token_requires_token(self, client, seeded):
        response = client.get("/api/public/sessions/by-token")
        assert response.status_code == 400

    def test_by_token_unknown(self, client, seeded):
        response = client.get("/api/public/sessions/by-token", params={"token": "0" * 64})
        assert response.status_code == 404

    def test_token_of_other_session_forbidden(self, client, seeded):
        first = start_session(client, name="Alex")
        second = start_session(client, name="Blake")
        response = client.post(
            f"/api/public/sessions/{second['sessionId']}/transcript-segments",
            json={"segments": [{"role": "user", "text": "sneaky"}]},
            headers=_token_headers(first),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_wrong_token_forbidden(self, client, seeded):
        created = start_session(client)
        response = client.get(
            f"/api/public/sessions/{created['sessionId']}",
            headers={"Authorization": "Bearer " + "f" * 64},
        )
        assert response.status_code == 403

    def test_token_in_query(self, client, seeded):
        created = start_session(client)
        response = client.get(
            f"/api/public/sessions/{created['sessionId']}", params={"token": created["sessionToken"]}
        )
        assert response.status_code == 200

    def test_unknown_session(self, client, seeded):
        response = client.get("/api/public/sessions/does-not-exist", headers={"X-Session-Token": "0" * 64})
        assert response.status_code == 404

    def test_id_alone_is_rejected(self, client, db, seeded):
        created = start_session(client)
        url = f"/api/public/sessions/{created['sessionId']}"

        response = client.get(url)
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert created["sessionToken"] not in response.text

        assert client.patch(url, json={"completed": True}).status_code == 401
        response = client.post(f"{url}/transcript-segments", json={"segments": [{"role": "user", "text": "hi"}]})
        assert response.status_code == 401
        assert client.post(f"{url}/report", json={"summary": "x"}).status_code == 401

        db.expire_all()
        assert db.get(InterviewSession, created["sessionId"]).completed is False
        assert db.get(User, seeded.owner.id).completed_sessions_count == 0
        assert db.query(TranscriptSegment).count() == 0

    def test_participant_view_carries_token(self, client, seeded):
        created = start_session(client)
        response = client.get(f"/api/public/sessions/{created['sessionId']}", headers=_token_headers(created))
        assert response.json()["sessionToken"] == created["sessionToken"]


class TestParticipantReport:

    def test_upsert(self, client, db, seeded):
        created = start_session(client)
        response = client.post(
            f"/api/public/sessions/{created['sessionId']}/report",
            json={"summary": "Setup took a week", "painsJson": ["docs"], "interviewCompleted": False},
            headers=_token_headers(created),
        )
        assert response.status_code == 200
        session = db.get(InterviewSession, created["sessionId"])
        db.refresh(session)
        assert session.report.summary == "Setup took a week"
        assert session.report.interview_completed is False

    def test_summary_required(self, client, seeded):
        created = start_session(client)
        response = client.post(
            f"/api/public/sessions/{created['sessionId']}/report",
            json={"painsJson": ["docs"]},
            headers=_token_headers(created),
        )
        assert response.status_code == 400
