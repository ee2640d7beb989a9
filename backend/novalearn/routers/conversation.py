from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_user
from .. import ledger
from ..assessment import AssessmentData, CognitiveScores, Goals, LearningStyle, PersonalityProfile
from ..db import get_db
from ..models import AssessmentSession, User
from ..nova import ConversationContext, NovaController, NovaResponse, Phase, lookup

router = APIRouter(prefix="/api/v1/assessment/chat", tags=["assessment-chat"])

logger = logging.getLogger(__name__)

RESULT_MODELS = {
	"cognitive": CognitiveScores,
	"personality": PersonalityProfile,
	"learning": LearningStyle,
	"goals": Goals,
}


class MessageRequest(BaseModel):
	message: str = ""


class ResultsRequest(BaseModel):
	kind: Literal["cognitive", "personality", "learning", "goals"]
	data: Dict[str, Any]


def _load(db: Session, user: User, session_id: str) -> AssessmentSession:
	row = db.get(AssessmentSession, session_id)
	if row is None or row.user_id != user.id:
		raise HTTPException(status_code=404, detail="Assessment session not found")
	return row


def _controller(row: AssessmentSession) -> NovaController:
	return NovaController(
		ConversationContext.model_validate_json(row.context_json),
		AssessmentData.model_validate_json(row.assessment_json),
	)


def _store(row: AssessmentSession, controller: NovaController) -> None:
	row.context_json = controller.context.model_dump_json()
	row.assessment_json = controller.data.model_dump_json()
	row.updated_at = datetime.utcnow()


def _award(db: Session, user: User, row: AssessmentSession, response: NovaResponse) -> int:
	if not response.xp_reward:
		return 0
	ledger.add_xp_transaction(
		db, user.id, response.xp_reward, "nova_response",
		reference_id=row.id, reference_type="assessment_session", category="assessment",
	)
	return response.xp_reward


def _state(row: AssessmentSession, controller: NovaController) -> Dict[str, Any]:
	ctx = controller.context
	return {
		"sessionId": row.id,
		"phase": ctx.current_phase.value,
		"completedPhases": [p.value for p in ctx.completed_phases],
		"engagementLevel": ctx.engagement_level,
		"personality": ctx.personality.model_dump(),
		"detectedTraits": list(ctx.detected_traits),
		"isCompleted": row.is_completed,
	}


def _reply(db: Session, user: User, row: AssessmentSession, controller: NovaController, response: NovaResponse) -> Dict[str, Any]:
	try:
		_store(row, controller)
		ledger.record_activity(db, user.id)
		awarded = _award(db, user, row, response)
		profile = ledger.load_profile(db, user.id)
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to store assessment chat %s", row.id)
		raise HTTPException(status_code=500, detail="Failed to save conversation")
	return {
		**_state(row, controller),
		"response": response.model_dump(mode="json", exclude_none=True),
		"xp": {"awarded": awarded, "totalXp": profile.total_xp, "level": profile.level},
	}


@router.post("", status_code=201)
def start_chat(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	controller = NovaController()
	row = AssessmentSession(
		user_id=user.id,
		context_json=controller.context.model_dump_json(),
		assessment_json=controller.data.model_dump_json(),
	)
	db.add(row)
	try:
		db.flush()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to open assessment chat for %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to start conversation")
	return _reply(db, user, row, controller, controller.respond(""))


@router.get("/{session_id}")
def get_chat(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = _load(db, user, session_id)
	controller = _controller(row)
	return {
		**_state(row, controller),
		"history": list(controller.context.conversation_history),
		"assessment": controller.data.model_dump(mode="json", exclude_none=True),
		"progress": controller.progress().model_dump(mode="json", exclude_none=True),
	}


@router.post("/{session_id}/messages")
def send_message(
	session_id: str,
	req: MessageRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	row = _load(db, user, session_id)
	if row.is_completed:
		raise HTTPException(status_code=409, detail="Assessment session already completed")
	controller = _controller(row)
	response = controller.respond(req.message)
	return _reply(db, user, row, controller, response)


@router.post("/{session_id}/results")
def submit_results(
	session_id: str,
	req: ResultsRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	row = _load(db, user, session_id)
	if row.is_completed:
		raise HTTPException(status_code=409, detail="Assessment session already completed")
	try:
		parsed = RESULT_MODELS[req.kind].model_validate(req.data)
	except ValidationError as e:
		raise HTTPException(status_code=400, detail=f"Invalid {req.kind} results: {e.errors()[0].get('msg')}")
	controller = _controller(row)
	if req.kind == "cognitive":
		response = controller.record_cognitive(parsed)
	elif req.kind == "personality":
		response = controller.record_personality(parsed)
	elif req.kind == "learning":
		response = controller.record_learning_style(parsed)
	else:
		response = controller.record_goals(parsed)
	return _reply(db, user, row, controller, response)


@router.post("/{session_id}/complete")
def complete_chat(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = _load(db, user, session_id)
	if row.is_completed:
		raise HTTPException(status_code=409, detail="Assessment session already completed")
	controller = _controller(row)
	if controller.context.current_phase != Phase.RESULTS:
		raise HTTPException(status_code=409, detail="Assessment is not finished yet")
	now = datetime.utcnow()
	controller.data.completion_time_ms = int((now - row.created_at).total_seconds() * 1000)
	response = lookup("results", "complete")
	try:
		row.is_completed = True
		row.completed_at = now
		_store(row, controller)
		awarded = _award(db, user, row, response)
		profile, unlocked = ledger.sync_achievements(db, user.id, controller.data)
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to complete assessment chat %s", row.id)
		raise HTTPException(status_code=500, detail="Failed to complete assessment")
	return {
		**_state(row, controller),
		"response": response.model_dump(mode="json", exclude_none=True),
		"assessment": controller.data.model_dump(mode="json", exclude_none=True),
		"achievementsUnlocked": [a.model_dump(mode="json") for a in unlocked],
		"xp": {
			"awarded": awarded + sum(a.xp for a in unlocked),
			"totalXp": profile.total_xp,
			"level": profile.level,
		},
	}
