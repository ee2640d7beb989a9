from __future__ import annotations
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./app.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_engine_kwargs = {}
# In-memory SQLite must share one connection or every session sees an empty database
if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
	_engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema() -> None:
	try:
		inspector = inspect(engine)
		tables = set(inspector.get_table_names())
	except Exception:
		return
	if "users" in tables:
		cols = {c["name"] for c in inspector.get_columns("users")}
		with engine.begin() as conn:
			if "current_role" not in cols:
				conn.exec_driver_sql("ALTER TABLE users ADD COLUMN current_role VARCHAR(32) DEFAULT 'student' NOT NULL")
	if "gamification_profiles" in tables:
		cols = {c["name"] for c in inspector.get_columns("gamification_profiles")}
		with engine.begin() as conn:
			if "longest_streak" not in cols:
				conn.exec_driver_sql("ALTER TABLE gamification_profiles ADD COLUMN longest_streak INTEGER DEFAULT 0 NOT NULL")
			if "badges_json" not in cols:
				conn.exec_driver_sql("ALTER TABLE gamification_profiles ADD COLUMN badges_json TEXT")
			if "last_streak_date" not in cols:
				conn.exec_driver_sql("ALTER TABLE gamification_profiles ADD COLUMN last_streak_date DATE")
				conn.exec_driver_sql("UPDATE gamification_profiles SET last_streak_date = DATE(last_activity_date)")
	if "courses" in tables:
		cols = {c["name"] for c in inspector.get_columns("courses")}
		with engine.begin() as conn:
			if "teacher_id" not in cols:
				conn.exec_driver_sql("ALTER TABLE courses ADD COLUMN teacher_id VARCHAR(128)")
			if "examination_board" not in cols:
				conn.exec_driver_sql("ALTER TABLE courses ADD COLUMN examination_board VARCHAR(64)")
			if "target_region" not in cols:
				conn.exec_driver_sql("ALTER TABLE courses ADD COLUMN target_region VARCHAR(128)")
	if "course_modules" in tables:
		cols = {c["name"] for c in inspector.get_columns("course_modules")}
		with engine.begin() as conn:
			for name, ddl in (
				("description", "TEXT"),
				("notes", "TEXT"),
				("content_data_json", "TEXT"),
				("generation_metadata_json", "TEXT"),
				("updated_at", "DATETIME"),
			):
				if name not in cols:
					conn.exec_driver_sql(f"ALTER TABLE course_modules ADD COLUMN {name} {ddl}")
