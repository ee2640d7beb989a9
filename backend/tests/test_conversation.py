import pytest

from novalearn.models import AssessmentSession, User, UserRole, XpTransaction
from novalearn.routers.auth import open_session


def _start(client, headers):
	r = client.post("/api/v1/assessment/chat", headers=headers)
	assert r.status_code == 201, r.text
	return r.json()


def _say(client, headers, session_id, text):
	r = client.post(f"/api/v1/assessment/chat/{session_id}/messages", json={"message": text}, headers=headers)
	assert r.status_code == 200, r.text
	return r.json()


def _submit(client, headers, session_id, kind, data):
	return client.post(f"/api/v1/assessment/chat/{session_id}/results", json={"kind": kind, "data": data}, headers=headers)


@pytest.fixture
def chat_to_cognitive(client, auth_headers):
	session_id = _start(client, auth_headers)["sessionId"]
	for text in (
		"Let's do this! I'm excited!",
		"I'm a student exploring options",
		"0-1 years (just starting!)",
		"High School",
		"Kenya",
		"AI and data analytics",
	):
		state = _say(client, auth_headers, session_id, text)
	assert state["phase"] == "cognitive-assessment"
	return session_id


def test_start_chat_greets_and_awards_xp(client, db_session, auth_headers):
	body = _start(client, auth_headers)
	assert body["phase"] == "welcome"
	assert body["response"]["xp_reward"] == 10
	assert body["xp"]["awarded"] == 10
	# welcome reward plus the first-day streak bonus
	assert body["xp"]["totalXp"] == 20
	assert body["isCompleted"] is False

	db_session.expire_all()
	row = db_session.get(AssessmentSession, body["sessionId"])
	assert row is not None
	assert row.user_id == "alice"


def test_messages_advance_through_basic_info(client, auth_headers):
	session_id = _start(client, auth_headers)["sessionId"]
	state = _say(client, auth_headers, session_id, "Let's do this! I'm excited!")
	assert state["phase"] == "basic-info"
	assert state["completedPhases"] == ["welcome"]

	state = _say(client, auth_headers, session_id, "I'm a student exploring options")
	assert state["response"]["achievement"] == "Future Tech Leader"
	assert state["xp"]["awarded"] == 20

	for text in ("0-1 years (just starting!)", "High School", "Lagos, Nigeria"):
		state = _say(client, auth_headers, session_id, text)
	assert state["phase"] == "technical-interests"

	r = client.get(f"/api/v1/assessment/chat/{session_id}", headers=auth_headers)
	assert r.status_code == 200
	snapshot = r.json()
	assert snapshot["assessment"]["basic_info"]["location"] == "Lagos, Nigeria"
	assert snapshot["history"][0] == "Let's do this! I'm excited!"
	assert "xp_reward" in snapshot["progress"]


def test_full_conversation_completes(client, db_session, auth_headers, chat_to_cognitive):
	session_id = chat_to_cognitive

	r = _submit(client, auth_headers, session_id, "cognitive", {"overall": 82, "logical_reasoning": 70})
	assert r.status_code == 200, r.text
	assert r.json()["phase"] == "personality-assessment"

	r = _submit(client, auth_headers, session_id, "personality", {"jung_type": "INTJ", "openness": 80, "conscientiousness": 70})
	assert r.json()["response"]["achievement"] == "Strategic Thinker"
	assert r.json()["phase"] == "learning-preferences"

	r = _submit(client, auth_headers, session_id, "learning", {"modality": "visual", "pace": "fast"})
	assert r.json()["phase"] == "results"

	r = client.post(f"/api/v1/assessment/chat/{session_id}/complete", headers=auth_headers)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["isCompleted"] is True
	assert body["response"]["achievement"] == "Assessment Master"
	unlocked = {a["id"] for a in body["achievementsUnlocked"]}
	assert {"first-steps", "deep-thinker", "assessment-champion"} <= unlocked
	assert body["assessment"]["completion_time_ms"] >= 0

	db_session.expire_all()
	row = db_session.get(AssessmentSession, session_id)
	assert row.is_completed is True
	assert row.completed_at is not None
	rewards = db_session.query(XpTransaction).filter_by(reason="nova_response", reference_id=session_id).all()
	assert 50 in [t.amount for t in rewards]

	again = client.post(f"/api/v1/assessment/chat/{session_id}/complete", headers=auth_headers)
	assert again.status_code == 409
	after = client.post(f"/api/v1/assessment/chat/{session_id}/messages", json={"message": "hi"}, headers=auth_headers)
	assert after.status_code == 409


def test_complete_before_results_is_rejected(client, auth_headers):
	session_id = _start(client, auth_headers)["sessionId"]
	r = client.post(f"/api/v1/assessment/chat/{session_id}/complete", headers=auth_headers)
	assert r.status_code == 409


def test_invalid_results_are_rejected(client, auth_headers, chat_to_cognitive):
	r = _submit(client, auth_headers, chat_to_cognitive, "cognitive", {"overall": "very high"})
	assert r.status_code == 400
	assert r.json()["detail"].startswith("Invalid cognitive results")


def test_unknown_result_kind_is_unprocessable(client, auth_headers, chat_to_cognitive):
	r = _submit(client, auth_headers, chat_to_cognitive, "mood", {})
	assert r.status_code == 422


def test_goals_do_not_change_phase(client, auth_headers, chat_to_cognitive):
	r = _submit(client, auth_headers, chat_to_cognitive, "goals", {"career_goals": "Build AI for farmers"})
	assert r.status_code == 200
	assert r.json()["phase"] == "cognitive-assessment"


def test_sessions_are_private(client, db_session, auth_headers):
	session_id = _start(client, auth_headers)["sessionId"]
	db_session.add(User(id="bob", current_role="student"))
	db_session.add(UserRole(user_id="bob", role="student"))
	db_session.commit()
	bob_headers = {"Authorization": f"Bearer {open_session(db_session, 'bob')}"}
	r = client.get(f"/api/v1/assessment/chat/{session_id}", headers=bob_headers)
	assert r.status_code == 404


def test_repeated_messages_do_not_farm_xp(client, auth_headers, chat_to_cognitive):
	session_id = chat_to_cognitive
	first = _say(client, auth_headers, session_id, "")
	for _ in range(4):
		state = _say(client, auth_headers, session_id, "")
		assert state["xp"]["awarded"] == 0
	assert state["xp"]["totalXp"] == first["xp"]["totalXp"]

	_submit(client, auth_headers, session_id, "cognitive", {"overall": 82})
	_submit(client, auth_headers, session_id, "personality", {"jung_type": "INTJ"})
	state = _submit(client, auth_headers, session_id, "learning", {"modality": "visual"}).json()
	assert state["phase"] == "results"
	before = state["xp"]["totalXp"]
	for _ in range(4):
		state = _say(client, auth_headers, session_id, "hi")
		assert state["xp"]["awarded"] == 0
		assert "achievement" not in state["response"]
	assert state["xp"]["totalXp"] == before


def test_resubmitted_results_pay_once(client, db_session, auth_headers, chat_to_cognitive):
	for overall in (82, 90):
		r = _submit(client, auth_headers, chat_to_cognitive, "cognitive", {"overall": overall})
		assert r.status_code == 200
	assert r.json()["xp"]["awarded"] == 0

	db_session.expire_all()
	rewards = db_session.query(XpTransaction).filter_by(reason="nova_response", reference_id=chat_to_cognitive, amount=25).all()
	assert len(rewards) == 1
