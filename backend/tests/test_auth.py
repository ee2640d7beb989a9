from novalearn.models import AuthSession
from novalearn.routers.auth import create_access_token


def test_register_then_login(client):
	r = client.post("/auth/register", json={"username": "wanjiru", "password": "s3cret-pass", "email": "w@example.com"})
	assert r.status_code == 201
	assert r.json() == {"ok": True}

	r = client.post("/auth/token", data={"username": "wanjiru", "password": "s3cret-pass"})
	assert r.status_code == 200
	token = r.json()["access_token"]

	r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
	assert r.status_code == 200
	me = r.json()
	assert me["id"] == "wanjiru"
	assert me["email"] == "w@example.com"
	assert me["current_role"] == "student"

	roles = client.get("/api/v1/auth/roles", headers={"Authorization": f"Bearer {token}"})
	assert roles.json()["roles"] == ["student"]


def test_register_rejects_duplicates_and_short_names(client, user):
	assert client.post("/auth/register", json={"username": "alice", "password": "x"}).status_code == 409
	assert client.post("/auth/register", json={"username": "al", "password": "x"}).status_code == 400


def test_wrong_password(client, user):
	r = client.post("/auth/token", data={"username": "alice", "password": "nope"})
	assert r.status_code == 401


def test_token_without_session_row_is_rejected(client, user):
	token = create_access_token({"sub": user.id, "jti": "never-stored"})
	r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
	assert r.status_code == 401
	assert r.headers["www-authenticate"] == "Bearer"


def test_revoked_session_stops_working(client, db_session, auth_headers):
	assert client.get("/auth/me", headers=auth_headers).status_code == 200
	db_session.query(AuthSession).delete()
	db_session.commit()
	assert client.get("/auth/me", headers=auth_headers).status_code == 401


def test_garbage_token(client, user):
	r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
	assert r.status_code == 401
