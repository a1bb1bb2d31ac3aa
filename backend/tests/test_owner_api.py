"""Tests for the owner dashboard endpoints."""

from datetime import timedelta

import pytest

from interview_api.database import utcnow
from interview_api.models import InterviewReport, InterviewSession, TranscriptSegment
from interview_api.services import report_service

from conftest import make_interview, make_owner, make_research, owner_headers, start_session


@pytest.fixture
def headers():
    return owner_headers("user_ext_1")


def _sessions_url(interview_id):
    return f"/api/interviews/{interview_id}/sessions"


def _set_times(db, session_id, started_minutes_ago, duration_minutes=None):
    started = utcnow() - timedelta(minutes=started_minutes_ago)
    ended = started + timedelta(minutes=duration_minutes) if duration_minutes is not None else None
    db.query(InterviewSession).filter(InterviewSession.id == session_id).update(
        {InterviewSession.started_at: started, InterviewSession.ended_at: ended},
        synchronize_session=False,
    )
    db.commit()


class TestOwnerAuth:

    def test_missing_token(self, client, seeded):
        response = client.get("/api/interviews/metrics")
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_bad_token(self, client, seeded):
        response = client.get("/api/interviews/metrics", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_unknown_owner(self, client, seeded):
        response = client.get("/api/interviews/metrics", headers=owner_headers("nobody"))
        assert response.status_code == 404


class TestMetrics:

    def test_counts_and_reconcile(self, client, db, seeded, headers):
        first = start_session(client, name="Alex")
        start_session(client, name="Blake")
        db.query(InterviewSession).filter(InterviewSession.id == first["sessionId"]).update(
            {InterviewSession.completed: True}, synchronize_session=False
        )
        db.commit()

        response = client.get("/api/interviews/metrics", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"interviewsCount": 1, "sessionsCount": 2, "completedSessionsCount": 1}


class TestListSessions:

    @pytest.fixture
    def three(self, client, db, seeded):
        ids = {}
        for name, email, mode, age, duration in (
            ("Alex", "alex@example.com", "text", 30, 10),
            ("Blake", None, "voice", 20, 2),
            ("Casey", "casey@example.com", "text", 10, None),
        ):
            created = start_session(client, name=name, mode=mode, email=email)
            _set_times(db, created["sessionId"], age, duration)
            ids[name] = created["sessionId"]
        return ids

    def test_default_newest_first(self, client, seeded, headers, three):
        data = client.get(_sessions_url(seeded.interview.id), headers=headers).json()
        assert [s["participantName"] for s in data["data"]] == ["Casey", "Blake", "Alex"]
        assert data["page"] == 1
        assert data["totalPages"] == 1
        assert data["totalCount"] == 3

    def test_sort_by_duration(self, client, seeded, headers, three):
        params = {"sortBy": "duration", "sortDir": "desc"}
        data = client.get(_sessions_url(seeded.interview.id), params=params, headers=headers).json()
        assert [s["participantName"] for s in data["data"]] == ["Alex", "Blake", "Casey"]

    def test_sort_by_type(self, client, seeded, headers, three):
        params = {"sortBy": "type", "sortDir": "asc"}
        data = client.get(_sessions_url(seeded.interview.id), params=params, headers=headers).json()
        assert [s["mode"] for s in data["data"]] == ["text", "text", "voice"]

    def test_search(self, client, seeded, headers, three):
        params = {"search": "CASEY@"}
        data = client.get(_sessions_url(seeded.interview.id), params=params, headers=headers).json()
        assert [s["participantName"] for s in data["data"]] == ["Casey"]
        assert data["totalCount"] == 1

    def test_paging_clamps(self, client, db, seeded, headers):
        for i in range(7):
            start_session(client, name=f"P{i}")
        params = {"page": "99", "limit": "1"}
        data = client.get(_sessions_url(seeded.interview.id), params=params, headers=headers).json()
        # limit raised to the minimum page size, page pulled back to the last page
        assert data["totalPages"] == 2
        assert data["page"] == 2
        assert len(data["data"]) == 2

    def test_report_summary_in_list(self, client, db, seeded, headers):
        created = start_session(client)
        report_service.upsert_report(db, created["sessionId"], "Done", interview_completed=False)
        item = client.get(_sessions_url(seeded.interview.id), headers=headers).json()["data"][0]
        assert item["report"]["interviewCompleted"] is False

    def test_foreign_interview(self, client, db, seeded):
        other = make_owner(db, external_id="user_ext_2", email="other@globex.test")
        make_interview(db, other, make_research(db, other), slug="zzz99999")
        response = client.get(_sessions_url(seeded.interview.id), headers=owner_headers("user_ext_2"))
        assert response.status_code == 404


class TestSessionDetail:

    def test_detail_and_delete(self, client, db, seeded, headers):
        created = start_session(client)
        session_id = created["sessionId"]
        client.post(
            f"/api/public/sessions/{session_id}/transcript-segments",
            json={"segments": [{"role": "assistant", "text": "Welcome"}]},
            headers={"X-Session-Token": created["sessionToken"]},
        )
        report_service.upsert_report(db, session_id, "Short")
        url = f"{_sessions_url(seeded.interview.id)}/{session_id}"

        detail = client.get(url, headers=headers).json()
        assert [s["text"] for s in detail["segments"]] == ["Welcome"]
        assert "sessionToken" not in detail
        assert created["sessionToken"] not in str(detail)

        assert client.delete(url, headers=headers).json() == {"ok": True}
        db.expire_all()
        assert db.query(InterviewSession).count() == 0
        assert db.query(TranscriptSegment).count() == 0
        assert db.query(InterviewReport).count() == 0
        assert client.get(url, headers=headers).status_code == 404

    def test_session_of_other_interview(self, client, db, seeded, headers):
        created = start_session(client)
        second = make_interview(db, seeded.owner, seeded.research, slug="second01")
        response = client.get(f"{_sessions_url(second.id)}/{created['sessionId']}", headers=headers)
        assert response.status_code == 404

    def test_report(self, client, db, seeded, headers):
        created = start_session(client)
        url = f"{_sessions_url(seeded.interview.id)}/{created['sessionId']}/report"
        assert client.get(url, headers=headers).status_code == 404

        report_service.upsert_report(db, created["sessionId"], "Done", key_quotes=[{"quote": "slow"}])
        data = client.get(url, headers=headers).json()
        assert data["report"]["summary"] == "Done"
        assert data["report"]["keyQuotesJson"] == [{"quote": "slow"}]
        assert data["report"]["reviewJson"] is None
        assert data["participantName"] == "Alex"
        assert data["segments"] == []
