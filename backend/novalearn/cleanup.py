from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import AssessmentSession
from .settings import settings


def purge_stale_sessions(db: Session, days: Optional[int] = None) -> int:
	# Only unfinished chats are removed; completed sessions are the assessment record
	threshold = datetime.utcnow() - timedelta(days=days if days is not None else settings.stale_session_days)
	res = db.execute(
		delete(AssessmentSession).where(
			AssessmentSession.is_completed.is_(False),
			AssessmentSession.updated_at < threshold,
		)
	)
	db.commit()
	return res.rowcount or 0
