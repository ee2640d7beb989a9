from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_user
from .. import ledger
from ..db import get_db
from ..generation import CourseRequest, generate_course
from ..llm_client import GeminiClient, get_llm_client
from ..models import (
	CognitiveAssessment,
	Course,
	CourseModule,
	EducationLevel,
	LearningPreference,
	PersonalityAssessment,
	Subject,
	Topic,
	User,
	UserProfile,
)

router = APIRouter(prefix="/api/v1/courses", tags=["courses"])

logger = logging.getLogger(__name__)

COURSE_GENERATION_XP = 50


class GenerateCourseRequest(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	subject_id: str
	topic_id: Optional[str] = None
	education_level_id: Optional[str] = None
	# study / assessment / hybrid
	content_type: str = "study"
	difficulty: int = Field(default=5, ge=1, le=10)
	time_allocation: int = Field(default=60, ge=5, le=600)
	learning_objectives: List[str] = Field(default_factory=list)
	custom_requirements: Optional[str] = None


def _latest(db: Session, model, user_id: str):
	return db.query(model).filter(model.user_id == user_id).order_by(model.created_at.desc()).first()


def _json(value: Optional[str], default: Any) -> Any:
	try:
		return json.loads(value) if value else default
	except ValueError:
		return default


def personalization_context(db: Session, profile: UserProfile) -> Dict[str, Any]:
	cognitive = _latest(db, CognitiveAssessment, profile.user_id)
	personality = _latest(db, PersonalityAssessment, profile.user_id)
	learning = _latest(db, LearningPreference, profile.user_id)
	strengths = _json(cognitive.detailed_results_json, {}).get("strengths") if cognitive else None
	return {
		"education_level": profile.education_level or "high_school",
		"location": profile.location or "Global",
		"career_goals": profile.career_goals or "STEM career",
		"cognitive_strengths": strengths if isinstance(strengths, list) and strengths else ["analytical thinking"],
		"learning_style": (learning.learning_style if learning else None) or "visual",
		"preferred_pace": (learning.pace_preference if learning else None) or "moderate",
		"attention_span": learning.attention_span if learning else 30,
		"personality_type": (personality.jung_type if personality else None) or "INTJ",
	}


def module_to_dict(m: CourseModule) -> Dict[str, Any]:
	return {
		"id": m.id,
		"title": m.title,
		"content": m.content,
		"contentType": m.content_type,
		"orderIndex": m.order_index,
		"duration": m.duration,
		"difficulty": m.difficulty,
		"learningObjectives": _json(m.learning_objectives_json, []),
	}


def course_to_dict(course: Course, modules: List[CourseModule]) -> Dict[str, Any]:
	return {
		"id": course.id,
		"userId": course.user_id,
		"title": course.title,
		"description": course.description,
		"subjectId": course.subject_id,
		"topicId": course.topic_id,
		"educationLevelId": course.education_level_id,
		"difficulty": course.difficulty,
		"estimatedDuration": course.estimated_duration,
		"contentType": course.content_type,
		"isPersonalized": course.is_personalized,
		"generationStatus": course.generation_status,
		"status": course.status,
		"progressPercentage": course.progress_percentage,
		"createdAt": course.created_at.isoformat() if course.created_at else None,
		"modules": [module_to_dict(m) for m in modules],
	}


@router.post("/generate")
async def generate(
	req: GenerateCourseRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	llm: Optional[GeminiClient] = Depends(get_llm_client),
):
	profile = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()
	if profile is None:
		raise HTTPException(status_code=404, detail="User profile not found")
	subject = db.get(Subject, req.subject_id)
	if subject is None:
		raise HTTPException(status_code=404, detail="Subject not found")
	level = None
	if req.education_level_id:
		level = db.get(EducationLevel, req.education_level_id)
		if level is None:
			raise HTTPException(status_code=404, detail="Education level not found")
	topic = None
	if req.topic_id:
		topic = db.get(Topic, req.topic_id)
		if topic is None or topic.subject_id != subject.id:
			raise HTTPException(status_code=404, detail="Topic not found")

	course_request = CourseRequest(
		subject_name=subject.display_name,
		topic_name=topic.name if topic else None,
		education_level_name=level.display_name if level else "High School",
		content_type=req.content_type,
		difficulty=req.difficulty,
		time_allocation=req.time_allocation,
		learning_objectives=req.learning_objectives,
		custom_requirements=req.custom_requirements,
	)
	result = await generate_course(llm, course_request, personalization_context(db, profile))
	content = result.data

	try:
		course = Course(
			user_id=user.id,
			title=content["title"],
			description=content.get("description"),
			subject_id=subject.id,
			topic_id=topic.id if topic else None,
			education_level_id=level.id if level else None,
			difficulty=req.difficulty,
			estimated_duration=req.time_allocation,
			content_type=req.content_type,
			generation_prompt=content.get("generation_prompt"),
			generation_status=result.status,
		)
		db.add(course)
		db.flush()
		modules = []
		for index, raw in enumerate(content["modules"]):
			module = CourseModule(
				course_id=course.id,
				title=raw["title"],
				content=raw.get("content"),
				content_type=raw.get("type"),
				order_index=index,
				duration=raw.get("estimated_duration"),
				difficulty=raw.get("difficulty"),
				learning_objectives_json=json.dumps(raw.get("learning_objectives") or []),
			)
			db.add(module)
			modules.append(module)
		db.flush()
		ledger.record_activity(db, user.id)
		ledger.add_xp_transaction(
			db, user.id, COURSE_GENERATION_XP, "course_generation",
			reference_id=course.id, reference_type="course", category="learning",
		)
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to save generated course for %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to generate course")

	return {
		"success": True,
		"course": course_to_dict(course, modules),
		"generationStatus": result.status,
		"message": "Personalized course generated successfully!",
	}


@router.get("")
def list_courses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	courses = db.query(Course).filter(Course.user_id == user.id, Course.teacher_id.is_(None)).order_by(Course.created_at.desc()).all()
	out = []
	for course in courses:
		modules = (
			db.query(CourseModule)
			.filter(CourseModule.course_id == course.id)
			.order_by(CourseModule.order_index)
			.all()
		)
		out.append(course_to_dict(course, modules))
	return {"courses": out}
