from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .courses import course_to_dict, module_to_dict
from .roles import require_role
from ..db import get_db
from ..generation import (
	CONTENT_KEYS,
	CONTENT_KINDS,
	CourseRequest,
	ModuleBrief,
	TeachingContext,
	content_quality,
	generate_course,
	generate_module_content,
)
from ..llm_client import GeminiClient, get_llm_client
from ..models import ContentVersion, Course, CourseModule, EducationLevel, Subject, User

router = APIRouter(prefix="/api/v1/teacher", tags=["teacher"])

logger = logging.getLogger(__name__)

get_teacher = require_role("teacher")


class _CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModuleDraft(_CamelModel):
	title: str = Field(min_length=1)
	description: str = ""
	learning_outcomes: List[str] = []
	notes: str = ""
	estimated_duration: int = Field(default=30, ge=1, le=600)


class CourseDraft(_CamelModel):
	title: str = Field(min_length=1)
	description: Optional[str] = None
	subject_id: str
	education_level_id: str
	region: str = Field(min_length=1)
	examination_board: str = Field(min_length=1)
	difficulty: int = Field(default=1, ge=1, le=10)
	estimated_duration: int = Field(default=60, ge=5, le=600)
	learning_objectives: List[str] = []
	syllabus_alignment: Optional[str] = None
	modules: List[ModuleDraft] = []


class CourseUpdate(_CamelModel):
	title: Optional[str] = Field(default=None, min_length=1)
	description: Optional[str] = None
	status: Optional[Literal["draft", "published", "archived"]] = None
	difficulty: Optional[int] = Field(default=None, ge=1, le=10)
	estimated_duration: Optional[int] = Field(default=None, ge=5, le=600)
	examination_board: Optional[str] = None
	region: Optional[str] = None


class GenerateContentRequest(_CamelModel):
	content_type: str
	# optional overrides for what is stored on the module
	title: Optional[str] = None
	description: Optional[str] = None
	learning_objectives: Optional[List[str]] = None
	region: str = "International"
	language: str = "English"
	teaching_style: str = "Balanced"


class SaveContentRequest(_CamelModel):
	content: Any
	creation_method: Literal["ai", "manual", "hybrid"] = "manual"
	change_summary: Optional[str] = None


def _loads(value: Optional[str], default: Any) -> Any:
	try:
		return json.loads(value) if value else default
	except ValueError:
		return default


def _commit(db: Session, what: str) -> None:
	try:
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to %s", what)
		raise HTTPException(status_code=500, detail=f"Failed to {what}")


def _check_kind(kind: str) -> None:
	if kind not in CONTENT_KINDS:
		raise HTTPException(status_code=400, detail=f"Invalid content type. Must be one of: {', '.join(CONTENT_KINDS)}")


def _owned_course(db: Session, user: User, course_id: str) -> Course:
	course = db.get(Course, course_id)
	if course is None:
		raise HTTPException(status_code=404, detail="Course not found")
	if course.teacher_id != user.id:
		raise HTTPException(status_code=403, detail="Access denied")
	return course


def _owned_module(db: Session, user: User, module_id: str) -> Tuple[CourseModule, Course]:
	module = db.get(CourseModule, module_id)
	if module is None:
		raise HTTPException(status_code=404, detail="Module not found")
	return module, _owned_course(db, user, module.course_id)


def _modules(db: Session, course_id: str) -> List[CourseModule]:
	return db.query(CourseModule).filter(CourseModule.course_id == course_id).order_by(CourseModule.order_index).all()


def _references(db: Session, req: CourseDraft) -> Tuple[Subject, EducationLevel]:
	subject = db.get(Subject, req.subject_id)
	if subject is None:
		raise HTTPException(status_code=404, detail="Subject not found")
	level = db.get(EducationLevel, req.education_level_id)
	if level is None:
		raise HTTPException(status_code=404, detail="Education level not found")
	return subject, level


def teacher_module_to_dict(m: CourseModule) -> Dict[str, Any]:
	return {
		**module_to_dict(m),
		"description": m.description,
		"notes": m.notes,
		"contentData": _loads(m.content_data_json, {}),
		"generationMetadata": _loads(m.generation_metadata_json, {}),
	}


def teacher_course_to_dict(course: Course, modules: List[CourseModule]) -> Dict[str, Any]:
	return {
		**course_to_dict(course, []),
		"teacherId": course.teacher_id,
		"examinationBoard": course.examination_board,
		"targetRegion": course.target_region,
		"modules": [teacher_module_to_dict(m) for m in modules],
	}


def _new_course(user: User, req: CourseDraft, subject: Subject, level: EducationLevel, **extra) -> Course:
	return Course(
		user_id=user.id,
		teacher_id=user.id,
		title=req.title,
		description=req.description,
		subject_id=subject.id,
		education_level_id=level.id,
		difficulty=req.difficulty,
		estimated_duration=req.estimated_duration,
		content_type="study",
		is_personalized=False,
		examination_board=req.examination_board,
		target_region=req.region,
		**extra,
	)


def _next_version(db: Session, module_id: str, kind: str) -> int:
	current = (
		db.query(func.max(ContentVersion.version_number))
		.filter(ContentVersion.module_id == module_id, ContentVersion.content_type == kind)
		.scalar()
	)
	return (current or 0) + 1


def _store_content(
	db: Session,
	user: User,
	module: CourseModule,
	kind: str,
	content: Any,
	method: str,
	summary: Optional[str],
	metadata: Optional[Dict[str, Any]] = None,
) -> ContentVersion:
	"""Append a version and make it the module's current content for ``kind``."""
	version = ContentVersion(
		module_id=module.id,
		content_type=kind,
		version_number=_next_version(db, module.id, kind),
		content=json.dumps(content),
		creation_method=method,
		summary=summary or f"{method} content update",
		created_by=user.id,
	)
	db.add(version)
	data = _loads(module.content_data_json, {})
	data[CONTENT_KEYS[kind]] = content
	module.content_data_json = json.dumps(data)
	if metadata is not None:
		meta = _loads(module.generation_metadata_json, {})
		meta[kind] = metadata
		module.generation_metadata_json = json.dumps(meta)
	module.updated_at = datetime.utcnow()
	db.flush()
	return version


# ---- courses ----

@router.get("/courses")
def list_courses(user: User = Depends(get_teacher), db: Session = Depends(get_db)):
	courses = db.query(Course).filter(Course.teacher_id == user.id).order_by(Course.created_at.desc()).all()
	logger.info("Retrieved %d courses for teacher %s", len(courses), user.id)
	return {
		"success": True,
		"courses": [teacher_course_to_dict(c, _modules(db, c.id)) for c in courses],
		"total": len(courses),
	}


@router.post("/courses", status_code=201)
def create_course(req: CourseDraft, user: User = Depends(get_teacher), db: Session = Depends(get_db)):
	subject, level = _references(db, req)
	course = _new_course(user, req, subject, level, generation_status="manual")
	db.add(course)
	db.flush()
	for index, draft in enumerate(req.modules):
		db.add(CourseModule(
			course_id=course.id,
			title=draft.title,
			description=draft.description,
			notes=draft.notes,
			content_type="text",
			order_index=index,
			duration=draft.estimated_duration,
			difficulty=req.difficulty,
			learning_objectives_json=json.dumps([o for o in draft.learning_outcomes if o.strip()]),
		))
	_commit(db, "create course")
	return {"success": True, "course": teacher_course_to_dict(course, _modules(db, course.id))}


@router.post("/courses/generate", status_code=201)
async def generate_teacher_course(
	req: CourseDraft,
	user: User = Depends(get_teacher),
	db: Session = Depends(get_db),
	llm: Optional[GeminiClient] = Depends(get_llm_client),
):
	subject, level = _references(db, req)
	requirements = f"Align with the {req.examination_board} syllabus used in {req.region}."
	if req.syllabus_alignment:
		requirements += f" {req.syllabus_alignment}"
	course_request = CourseRequest(
		subject_name=subject.display_name,
		education_level_name=level.display_name,
		difficulty=req.difficulty,
		time_allocation=req.estimated_duration,
		learning_objectives=req.learning_objectives,
		custom_requirements=requirements,
	)
	result = await generate_course(llm, course_request, {"education_level": level.name, "location": req.region})
	content = result.data

	course = _new_course(
		user, req, subject, level,
		generation_status=result.status,
		generation_prompt=content.get("generation_prompt"),
	)
	if not course.description:
		course.description = content.get("description")
	db.add(course)
	db.flush()
	for index, raw in enumerate(content["modules"]):
		db.add(CourseModule(
			course_id=course.id,
			title=raw["title"],
			content=raw.get("content"),
			content_type=raw.get("type"),
			order_index=index,
			duration=raw.get("estimated_duration"),
			difficulty=raw.get("difficulty"),
			learning_objectives_json=json.dumps(raw.get("learning_objectives") or []),
		))
	_commit(db, "generate course")
	logger.info("Teacher %s generated course %s (%s)", user.id, course.id, result.status)
	return {
		"success": True,
		"course": teacher_course_to_dict(course, _modules(db, course.id)),
		"generationStatus": result.status,
		"message": "Course generated successfully",
	}


@router.get("/courses/{course_id}")
def get_course(course_id: str, user: User = Depends(get_teacher), db: Session = Depends(get_db)):
	course = _owned_course(db, user, course_id)
	return {"success": True, "course": teacher_course_to_dict(course, _modules(db, course.id))}


@router.put("/courses/{course_id}")
def update_course(course_id: str, req: CourseUpdate, user: User = Depends(get_teacher), db: Session = Depends(get_db)):
	course = _owned_course(db, user, course_id)
	# only description may be cleared
	changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
	if "region" in changes:
		changes["target_region"] = changes.pop("region")
	for field, value in changes.items():
		setattr(course, field, value)
	_commit(db, "update course")
	return {"success": True, "course": teacher_course_to_dict(course, _modules(db, course.id))}


@router.delete("/courses/{course_id}", status_code=204)
def delete_course(course_id: str, user: User = Depends(get_teacher), db: Session = Depends(get_db)):
	course = _owned_course(db, user, course_id)
	module_ids = [m.id for m in _modules(db, course.id)]
	if module_ids:
		db.query(ContentVersion).filter(ContentVersion.module_id.in_(module_ids)).delete(synchronize_session=False)
		db.query(CourseModule).filter(CourseModule.id.in_(module_ids)).delete(synchronize_session=False)
	db.delete(course)
	_commit(db, "delete course")
	return Response(status_code=204)


# ---- module content ----

@router.post("/modules/{module_id}/generate-content")
async def generate_content(
	module_id: str,
	req: GenerateContentRequest,
	user: User = Depends(get_teacher),
	db: Session = Depends(get_db),
	llm: Optional[GeminiClient] = Depends(get_llm_client),
):
	_check_kind(req.content_type)
	module, course = _owned_module(db, user, module_id)
	subject = db.get(Subject, course.subject_id) if course.subject_id else None
	level = db.get(EducationLevel, course.education_level_id) if course.education_level_id else None
	brief = ModuleBrief(
		title=req.title or module.title,
		description=req.description or module.description or "",
		learning_objectives=req.learning_objectives or _loads(module.learning_objectives_json, []),
		estimated_duration=module.duration or 60,
		content_type=module.content_type or "text",
	)
	context = TeachingContext(
		course_title=course.title,
		subject=subject.display_name if subject else "General",
		education_level=level.display_name if level else "intermediate",
		difficulty=course.difficulty or 5,
		region=req.region,
		language=req.language,
		teaching_style=req.teaching_style,
	)
	result = await generate_module_content(llm, req.content_type, brief, context)
	metadata = {
		"generatedAt": datetime.utcnow().isoformat(),
		"generationStatus": result.status,
		"qualityScore": content_quality(result.data, req.content_type),
	}
	version = _store_content(
		db, user, module, req.content_type, result.data, "ai",
		f"AI-generated {req.content_type} content", metadata,
	)
	_commit(db, "generate content")
	logger.info("Generated %s content for module %s (%s)", req.content_type, module.id, result.status)
	return {
		"success": True,
		"content": result.data,
		"metadata": metadata,
		"version": version.version_number,
		"message": f"{req.content_type} content generated successfully",
	}


@router.post("/modules/{module_id}/content/{content_type}/save")
def save_content(
	module_id: str,
	content_type: str,
	req: SaveContentRequest,
	user: User = Depends(get_teacher),
	db: Session = Depends(get_db),
):
	_check_kind(content_type)
	module, _ = _owned_module(db, user, module_id)
	version = _store_content(db, user, module, content_type, req.content, req.creation_method, req.change_summary)
	_commit(db, "save content")
	return {
		"success": True,
		"message": "Content saved successfully",
		"version": {
			"id": version.id,
			"versionNumber": version.version_number,
			"createdAt": version.created_at.isoformat(),
		},
	}


@router.get("/modules/{module_id}/content/{content_type}/versions")
def list_versions(
	module_id: str,
	content_type: str,
	user: User = Depends(get_teacher),
	db: Session = Depends(get_db),
):
	_check_kind(content_type)
	module, _ = _owned_module(db, user, module_id)
	versions = (
		db.query(ContentVersion)
		.filter(ContentVersion.module_id == module.id, ContentVersion.content_type == content_type)
		.order_by(ContentVersion.version_number.desc())
		.all()
	)
	authors = {u.id: u for u in db.query(User).filter(User.id.in_(list({v.created_by for v in versions})))} if versions else {}
	out = []
	for v in versions:
		author = authors.get(v.created_by)
		name = " ".join(p for p in (author.first_name, author.last_name) if p) if author else ""
		out.append({
			"id": v.id,
			"version": v.version_number,
			"content": _loads(v.content, v.content),
			"createdAt": v.created_at.isoformat(),
			"createdBy": name or (author.id if author else "Unknown User"),
			"creationMethod": v.creation_method,
			"isPublished": v.is_published,
			"changeSummary": v.summary,
			"isCurrent": v is versions[0],
		})
	return {"success": True, "versions": out}
