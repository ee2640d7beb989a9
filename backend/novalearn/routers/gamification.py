from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .auth import get_current_user
from .. import ledger
from ..db import get_db
from ..gamification import achievement_catalog, generate_motivational_message, get_progress_to_next_level
from ..models import User, XpTransaction

router = APIRouter(prefix="/api/v1/gamification", tags=["gamification"])


@router.get("/profile")
def get_gamification_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	profile = ledger.load_profile(db, user.id)
	db.commit()
	return {
		"profile": profile.model_dump(mode="json"),
		"progress": get_progress_to_next_level(profile.total_xp),
		"message": generate_motivational_message(profile),
	}


@router.get("/achievements")
def list_achievements(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	profile = ledger.load_profile(db, user.id)
	db.commit()
	catalog = achievement_catalog(profile)
	return {
		"achievements": [a.model_dump(mode="json") for a in catalog],
		"unlocked": sum(1 for a in catalog if a.unlocked),
		"total": len(catalog),
	}


@router.get("/transactions")
def list_transactions(
	limit: int = Query(default=50, ge=1, le=500),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	rows = (
		db.query(XpTransaction)
		.filter(XpTransaction.user_id == user.id)
		.order_by(XpTransaction.created_at.desc())
		.limit(limit)
		.all()
	)
	return {
		"transactions": [
			{
				"id": t.id,
				"amount": t.amount,
				"reason": t.reason,
				"category": t.category,
				"referenceId": t.reference_id,
				"referenceType": t.reference_type,
				"createdAt": t.created_at.isoformat(),
			}
			for t in rows
		]
	}
