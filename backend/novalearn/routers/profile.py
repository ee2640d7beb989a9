from __future__ import annotations
import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_user
from .. import ledger
from ..db import get_db
from ..models import (
	CognitiveAssessment,
	LearningPreference,
	PersonalityAssessment,
	User,
	UserProfile,
	XpTransaction,
)

router = APIRouter(prefix="/api/v1/users", tags=["profile"])

logger = logging.getLogger(__name__)

PROFILE_COMPLETION_XP = 100
REQUIRED_FIELDS = ("date_of_birth", "location", "education_level", "time_availability", "preferred_study_time")


class ProfileUpdate(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	first_name: Optional[str] = None
	last_name: Optional[str] = None
	date_of_birth: Optional[date] = None
	location: Optional[str] = None
	education_level: Optional[str] = None
	current_institution: Optional[str] = None
	field_of_study: Optional[str] = None
	career_goals: Optional[str] = None
	learning_objectives: Optional[List[str]] = None
	time_availability: Optional[int] = None
	preferred_study_time: Optional[str] = None


def check_completeness(profile: Optional[UserProfile]) -> Dict[str, Any]:
	missing = [f for f in REQUIRED_FIELDS if profile is None or getattr(profile, f) in (None, "")]
	return {
		"isComplete": not missing,
		"missingFields": missing,
		"completionPercentage": round((len(REQUIRED_FIELDS) - len(missing)) / len(REQUIRED_FIELDS) * 100),
	}


def profile_to_dict(user: User, profile: Optional[UserProfile]) -> Dict[str, Any]:
	data: Dict[str, Any] = {
		"id": user.id,
		"email": user.email,
		"firstName": user.first_name,
		"lastName": user.last_name,
		"currentRole": user.current_role,
	}
	if profile is not None:
		try:
			objectives = json.loads(profile.learning_objectives_json) if profile.learning_objectives_json else []
		except ValueError:
			objectives = []
		data.update({
			"dateOfBirth": profile.date_of_birth.date().isoformat() if profile.date_of_birth else None,
			"location": profile.location,
			"educationLevel": profile.education_level,
			"currentInstitution": profile.current_institution,
			"fieldOfStudy": profile.field_of_study,
			"careerGoals": profile.career_goals,
			"learningObjectives": objectives,
			"timeAvailability": profile.time_availability,
			"preferredStudyTime": profile.preferred_study_time,
			"isProfileComplete": profile.is_profile_complete,
		})
	return data


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()

	def latest(model):
		return db.query(model).filter(model.user_id == user.id).order_by(model.created_at.desc()).first()

	cognitive = latest(CognitiveAssessment)
	personality = latest(PersonalityAssessment)
	learning = latest(LearningPreference)
	return {
		"profile": profile_to_dict(user, profile),
		"completeness": check_completeness(profile),
		"assessments": {
			"cognitive": cognitive is not None and cognitive.is_completed,
			"personality": personality is not None and personality.is_completed,
			"learningPreferences": learning is not None and learning.is_completed,
		},
	}


@router.put("/profile")
def update_profile(req: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	fields = req.model_dump(exclude_unset=True)
	try:
		if "first_name" in fields:
			user.first_name = fields.pop("first_name")
		if "last_name" in fields:
			user.last_name = fields.pop("last_name")
		profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()
		if profile is None:
			profile = UserProfile(user_id=user.id)
			db.add(profile)
		if "learning_objectives" in fields:
			profile.learning_objectives_json = json.dumps(fields.pop("learning_objectives") or [])
		if "date_of_birth" in fields:
			dob = fields.pop("date_of_birth")
			profile.date_of_birth = datetime.combine(dob, datetime.min.time()) if dob else None
		for key, value in fields.items():
			setattr(profile, key, value)

		completeness = check_completeness(profile)
		newly_complete = completeness["isComplete"] and not profile.is_profile_complete
		profile.is_profile_complete = completeness["isComplete"]
		db.flush()
		# The completion bonus is paid once per user, even if the profile is later emptied and refilled
		already_paid = db.query(XpTransaction).filter(
			XpTransaction.user_id == user.id,
			XpTransaction.reason == "profile_completion",
		).first() is not None
		if newly_complete and not already_paid:
			ledger.add_xp_transaction(
				db, user.id, PROFILE_COMPLETION_XP, "profile_completion",
				reference_id=profile.id, reference_type="profile", category="bonus",
			)
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Profile update failed for %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to update user profile")
	return {
		"profile": profile_to_dict(user, profile),
		"completeness": completeness,
		"message": "Profile completed successfully!" if completeness["isComplete"] else "Profile updated successfully",
	}
