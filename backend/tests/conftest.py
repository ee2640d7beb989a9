"""Shared fixtures: in-memory database, an authenticated user and a fake LLM."""
import os
from datetime import datetime
from unittest.mock import AsyncMock

# Must be set before novalearn.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_REFERENCE_DATA"] = "false"
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LLM_RETRY_BACKOFF_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient

from novalearn import models
from novalearn.db import Base, SessionLocal, engine
from novalearn.llm_client import get_llm_client
from novalearn.main import app
from novalearn.routers.auth import hash_password, open_session
from novalearn.seed import seed_reference_data


@pytest.fixture
def db_session():
	Base.metadata.drop_all(bind=engine)
	Base.metadata.create_all(bind=engine)
	db = SessionLocal()
	seed_reference_data(db)
	try:
		yield db
	finally:
		db.close()


@pytest.fixture
def client(db_session):
	yield TestClient(app)
	app.dependency_overrides.clear()


@pytest.fixture
def user(db_session):
	row = models.User(
		id="alice",
		email="alice@example.com",
		first_name="Alice",
		last_name="Mwangi",
		password_hash=hash_password("correct horse"),
		current_role="student",
	)
	db_session.add(row)
	db_session.add(models.UserRole(user_id="alice", role="student"))
	db_session.commit()
	return row


@pytest.fixture
def auth_headers(db_session, user):
	token = open_session(db_session, user.id)
	return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_profile(db_session, user):
	profile = models.UserProfile(
		user_id=user.id,
		date_of_birth=datetime(2008, 5, 17),
		location="Nairobi, Kenya",
		education_level="o_level",
		career_goals="Become a data scientist",
		time_availability=60,
		preferred_study_time="evening",
		is_profile_complete=True,
	)
	db_session.add(profile)
	db_session.commit()
	return profile


@pytest.fixture
def fake_llm():
	"""An LLM stand-in whose generate_json result each test sets."""
	llm = AsyncMock()
	llm.generate_json = AsyncMock()
	app.dependency_overrides[get_llm_client] = lambda: llm
	return llm


@pytest.fixture
def math_and_o_level(db_session):
	math = db_session.query(models.Subject).filter_by(name="mathematics").one()
	o_level = db_session.query(models.EducationLevel).filter_by(name="o_level").one()
	return math, o_level
