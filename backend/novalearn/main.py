import asyncio
import logging

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from .db import Base, engine, get_db, ensure_schema
from .cleanup import purge_stale_sessions
from .seed import seed_reference_data
from .settings import settings
from .routers import health
from .routers import auth
from .routers import subjects
from .routers import courses
from .routers import assessment
from .routers import conversation
from .routers import roles
from .routers import profile
from .routers import gamification
from .routers import teacher

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="NovaLearn API")
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(subjects.router)
app.include_router(courses.router)
app.include_router(assessment.router)
app.include_router(conversation.router)
app.include_router(roles.router)
app.include_router(profile.router)
app.include_router(gamification.router)
app.include_router(teacher.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


def _purge_once() -> None:
	db = next(get_db())
	try:
		removed = purge_stale_sessions(db)
		if removed:
			logger.info("Purged %d stale assessment chats", removed)
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Stale session cleanup failed")
	finally:
		db.close()


async def _cleanup_watcher():
	# Daily after the startup pass
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_once()


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	ensure_schema()
	if settings.seed_reference_data:
		db = next(get_db())
		try:
			seed_reference_data(db)
		except SQLAlchemyError:
			db.rollback()
			logger.exception("Seeding reference data failed")
		finally:
			db.close()
	_purge_once()
	asyncio.create_task(_cleanup_watcher())
