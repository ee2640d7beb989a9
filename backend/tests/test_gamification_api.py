from datetime import datetime, timedelta

from novalearn import ledger
from novalearn.models import XpTransaction


def test_profile_for_new_user(client, auth_headers):
	r = client.get("/api/v1/gamification/profile", headers=auth_headers)
	assert r.status_code == 200
	body = r.json()
	assert body["profile"]["level"] == 1
	assert body["progress"] == {"current": 0, "needed": 100, "percentage": 0.0}
	assert body["message"]


def test_achievement_catalog_marks_unlocked(client, db_session, auth_headers, user):
	ledger.sync_achievements(db_session, user.id, None)
	db_session.commit()
	r = client.get("/api/v1/gamification/achievements", headers=auth_headers)
	body = r.json()
	assert body["total"] == 10
	assert body["unlocked"] == 1
	first = next(a for a in body["achievements"] if a["id"] == "first-steps")
	assert first["unlocked"] is True


def test_transactions_newest_first(client, db_session, auth_headers, user):
	ledger.add_xp_transaction(db_session, user.id, 5, "first", category="bonus")
	db_session.query(XpTransaction).filter_by(reason="first").update({"created_at": datetime.utcnow() - timedelta(minutes=5)})
	db_session.commit()
	ledger.add_xp_transaction(db_session, user.id, 7, "second", reference_id="c1", reference_type="course", category="learning")
	db_session.commit()
	r = client.get("/api/v1/gamification/transactions?limit=1", headers=auth_headers)
	assert r.status_code == 200
	txs = r.json()["transactions"]
	assert len(txs) == 1
	assert txs[0]["reason"] == "second"
	assert txs[0]["referenceType"] == "course"
