from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import get_current_user
from ..db import get_db
from ..models import EducationLevel, Subject, User

router = APIRouter(prefix="/api/v1", tags=["subjects"])


@router.get("/subjects")
def list_subjects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	subjects = db.query(Subject).filter(Subject.is_active.is_(True)).order_by(Subject.display_name).all()
	levels = db.query(EducationLevel).filter(EducationLevel.is_active.is_(True)).all()
	return {
		"subjects": [
			{
				"id": s.id,
				"name": s.name,
				"displayName": s.display_name,
				"description": s.description,
				"category": s.category,
			}
			for s in subjects
		],
		"educationLevels": [
			{"id": l.id, "name": l.name, "displayName": l.display_name, "description": l.description}
			for l in levels
		],
	}
