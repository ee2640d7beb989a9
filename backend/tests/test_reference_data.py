from datetime import datetime, timedelta

from novalearn.cleanup import purge_stale_sessions
from novalearn.models import AssessmentSession, EducationLevel, Subject, Topic
from novalearn.seed import seed_reference_data


def test_seed_is_idempotent(db_session):
	assert seed_reference_data(db_session) == 0
	assert db_session.query(Subject).count() == 10
	assert db_session.query(EducationLevel).count() == 5
	assert {t.name for t in db_session.query(Topic)} == {"Algebra", "Geometry", "Statistics"}


def test_list_subjects(client, auth_headers):
	r = client.get("/api/v1/subjects", headers=auth_headers)
	assert r.status_code == 200
	body = r.json()
	math = next(s for s in body["subjects"] if s["name"] == "mathematics")
	assert math["displayName"] == "Mathematics"
	assert math["category"] == "STEM"
	assert {lvl["name"] for lvl in body["educationLevels"]} == {"primary", "o_level", "a_level", "undergraduate", "postgraduate"}


def test_subjects_require_auth(client):
	assert client.get("/api/v1/subjects").status_code == 401


def test_health(client):
	r = client.get("/health")
	assert r.status_code == 200
	assert r.json() == {"status": "ok", "database": "ok", "llm_configured": False}


def test_purge_only_removes_stale_unfinished_chats(db_session, user):
	old = datetime.utcnow() - timedelta(days=30)
	db_session.add_all([
		AssessmentSession(id="stale", user_id=user.id, context_json="{}", assessment_json="{}", updated_at=old),
		AssessmentSession(id="done", user_id=user.id, context_json="{}", assessment_json="{}", updated_at=old, is_completed=True),
		AssessmentSession(id="fresh", user_id=user.id, context_json="{}", assessment_json="{}"),
	])
	db_session.commit()

	assert purge_stale_sessions(db_session, days=7) == 1
	db_session.expire_all()
	assert {s.id for s in db_session.query(AssessmentSession)} == {"done", "fresh"}
