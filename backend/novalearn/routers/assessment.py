from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_user
from .. import ledger
from ..assessment import assessment_from_payload, mapping, text_value
from ..db import get_db
from ..generation import (
	analyze_cognitive,
	learning_recommendations,
	next_steps,
	overall_fit_score,
	recommend_careers,
)
from ..llm_client import GeminiClient, get_llm_client
from ..models import (
	CareerRecommendation,
	CognitiveAssessment,
	LearningPreference,
	LearningRoadmap,
	PersonalityAssessment,
	RoadmapMilestone,
	User,
	UserProfile,
)

router = APIRouter(prefix="/api/v1/assessment", tags=["assessment"])

logger = logging.getLogger(__name__)

ASSESSMENT_COMPLETION_XP = 150


class AnalyzeRequest(BaseModel):
	model_config = ConfigDict(extra="allow")

	cognitive_assessment: Optional[Dict[str, Any]] = None
	personality_assessment: Optional[Dict[str, Any]] = None
	learning_preferences: Optional[Dict[str, Any]] = None
	goals: Optional[Dict[str, Any]] = None


def _score(value: Any, default: int = 0) -> int:
	try:
		return int(round(float(value)))
	except (TypeError, ValueError):
		return default


def _dump(value: Any) -> Optional[str]:
	return json.dumps(value, default=str) if value is not None else None


def _save_cognitive(db: Session, user_id: str, cognitive: Dict[str, Any], analysis: Dict[str, Any]) -> None:
	scores = mapping(cognitive.get("scores"))
	detailed = dict(cognitive)
	detailed["strengths"] = analysis.get("cognitive_strengths") or []
	db.add(CognitiveAssessment(
		user_id=user_id,
		overall_score=_score(scores.get("overall")),
		logical_reasoning_score=_score(scores.get("logical_reasoning")),
		numerical_reasoning_score=_score(scores.get("numerical_reasoning")),
		verbal_reasoning_score=_score(scores.get("verbal_reasoning")),
		spatial_reasoning_score=_score(scores.get("spatial_reasoning")),
		working_memory_score=_score(scores.get("working_memory")),
		processing_speed_score=_score(scores.get("processing_speed")),
		detailed_results_json=_dump(detailed),
		completion_time=_score(cognitive.get("completion_time")),
		is_completed=True,
	))


def _save_personality(db: Session, user_id: str, personality: Dict[str, Any]) -> None:
	db.add(PersonalityAssessment(
		user_id=user_id,
		jung_type=text_value(personality.get("jung_type")),
		jung_description=text_value(personality.get("jung_description")),
		big_five_json=_dump(personality.get("big_five_scores")),
		key_traits_json=_dump(personality.get("key_traits")),
		work_style=text_value(personality.get("work_style")),
		communication_style=text_value(personality.get("communication_style")),
		leadership_potential=_score(personality.get("leadership_potential")),
		team_compatibility=_score(personality.get("team_compatibility")),
		detailed_results_json=_dump(personality),
		is_completed=True,
	))


def _save_learning(db: Session, user_id: str, prefs: Dict[str, Any]) -> None:
	db.add(LearningPreference(
		user_id=user_id,
		learning_style=text_value(prefs.get("learning_style")),
		preferred_content_format_json=_dump(prefs.get("preferred_content_format")),
		difficulty_preference=text_value(prefs.get("difficulty_preference")),
		pace_preference=text_value(prefs.get("pace_preference")),
		feedback_preference=text_value(prefs.get("feedback_preference")),
		motivational_factors_json=_dump(prefs.get("motivational_factors")),
		distraction_level=_score(prefs.get("distraction_level"), 5) or 5,
		attention_span=_score(prefs.get("attention_span"), 30) or 30,
		preferred_session_length=_score(prefs.get("preferred_session_length"), 30) or 30,
		is_completed=True,
	))


def _save_careers(db: Session, user_id: str, careers: List[Dict[str, Any]], is_fallback: bool) -> None:
	# A fresh analysis supersedes earlier recommendations
	db.query(CareerRecommendation).filter(
		CareerRecommendation.user_id == user_id,
		CareerRecommendation.is_active.is_(True),
	).update({CareerRecommendation.is_active: False}, synchronize_session=False)
	for career in careers:
		db.add(CareerRecommendation(
			user_id=user_id,
			title=career["title"],
			fit_score=career.get("fit_score") or 0,
			reasoning=career.get("reasoning"),
			timeline_estimate=career.get("timeline_estimate"),
			required_steps_json=_dump(career.get("required_steps") or []),
			skill_gaps_json=_dump(career.get("skill_gaps") or []),
			is_fallback=is_fallback,
		))


def _build_roadmap(db: Session, profile: UserProfile, careers: List[Dict[str, Any]], steps: List[str]) -> LearningRoadmap:
	target = careers[0]["title"] if careers else None
	roadmap = LearningRoadmap(
		user_id=profile.user_id,
		title=f"Roadmap to {target}" if target else "Your learning roadmap",
		description="Milestones generated from your assessment results.",
		current_education_level=profile.education_level,
		target_career=target,
		total_milestones=len(steps),
	)
	db.add(roadmap)
	db.flush()
	for index, step in enumerate(steps):
		db.add(RoadmapMilestone(roadmap_id=roadmap.id, title=step, order_index=index))
	return roadmap


@router.post("/analyze")
async def analyze(
	req: AnalyzeRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	llm: Optional[GeminiClient] = Depends(get_llm_client),
):
	profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()
	if profile is None:
		raise HTTPException(status_code=404, detail="User profile not found")
	payload = req.model_dump(exclude_none=True)
	profile_context = {
		"education_level": profile.education_level,
		"location": profile.location,
		"career_goals": (req.goals or {}).get("career_goals") or profile.career_goals,
	}

	cognitive_analysis = None
	cognitive_status = None
	if req.cognitive_assessment is not None:
		result = await analyze_cognitive(llm, mapping(req.cognitive_assessment.get("scores")), profile_context)
		cognitive_analysis, cognitive_status = result.data, result.status
	personality = req.personality_assessment
	learning = req.learning_preferences
	careers_result = await recommend_careers(llm, cognitive_analysis, personality, learning, profile_context)
	careers = careers_result.data
	steps = next_steps(careers)

	try:
		if req.cognitive_assessment is not None:
			_save_cognitive(db, user.id, req.cognitive_assessment, cognitive_analysis or {})
		if personality is not None:
			_save_personality(db, user.id, personality)
		if learning is not None:
			_save_learning(db, user.id, learning)
		_save_careers(db, user.id, careers, careers_result.status == "fallback")
		roadmap = _build_roadmap(db, profile, careers, steps)
		db.flush()
		ledger.record_activity(db, user.id)
		ledger.add_xp_transaction(
			db, user.id, ASSESSMENT_COMPLETION_XP, "assessment_completion",
			reference_type="assessment", category="assessment",
		)
		gamification, unlocked = ledger.sync_achievements(db, user.id, assessment_from_payload(payload))
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to store assessment for %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to analyze assessment")

	return {
		"success": True,
		"data": {
			"cognitive_profile": cognitive_analysis,
			"personality_profile": personality,
			"learning_preferences": learning,
			"career_recommendations": careers,
			"learning_recommendations": learning_recommendations(learning),
			"overall_fit_score": overall_fit_score(cognitive_analysis, personality),
			"next_steps": steps,
			"roadmap_id": roadmap.id,
			"generation_status": {
				"cognitive_profile": cognitive_status,
				"career_recommendations": careers_result.status,
			},
			"gamification": {
				"xp_awarded": ASSESSMENT_COMPLETION_XP + sum(a.xp for a in unlocked),
				"total_xp": gamification.total_xp,
				"level": gamification.level,
				"achievements_unlocked": [a.model_dump(mode="json") for a in unlocked],
			},
			"analysis_timestamp": datetime.utcnow().isoformat(),
		},
		"message": "Assessment analyzed successfully and saved to database",
	}
