from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError


class BasicInfo(BaseModel):
	current_role: Optional[str] = None
	experience: Optional[str] = None
	education: Optional[str] = None
	# primary / high-school / college / professional
	education_level: Optional[str] = None
	location: Optional[str] = None
	age_range: Optional[str] = None
	cultural_background: Optional[str] = None
	preferred_language: Optional[str] = None
	timezone: Optional[str] = None


class TechnicalInterests(BaseModel):
	interest_areas: List[str] = Field(default_factory=list)
	specific_interests: Optional[str] = None
	technology_comfort: Optional[str] = None
	problem_solving_approach: Optional[str] = None
	analytical_thinking: Optional[str] = None
	coding_experience: Optional[str] = None
	favorite_tools: List[str] = Field(default_factory=list)


class CognitiveScores(BaseModel):
	overall: Optional[float] = None
	logical_reasoning: Optional[float] = None
	numerical_reasoning: Optional[float] = None
	verbal_reasoning: Optional[float] = None
	spatial_reasoning: Optional[float] = None
	working_memory: Optional[float] = None
	processing_speed: Optional[float] = None
	creativity: Optional[float] = None


class PersonalityProfile(BaseModel):
	jung_type: Optional[str] = None
	openness: Optional[float] = None
	conscientiousness: Optional[float] = None
	extraversion: Optional[float] = None
	agreeableness: Optional[float] = None
	neuroticism: Optional[float] = None
	traits: List[str] = Field(default_factory=list)
	motivation_drivers: List[str] = Field(default_factory=list)
	work_style: Optional[str] = None

	def filled_fields(self) -> int:
		return sum(1 for value in self.model_dump().values() if value not in (None, [], ""))


class LearningStyle(BaseModel):
	modality: Optional[str] = None
	pace: Optional[str] = None
	support: Optional[str] = None
	schedule: Optional[str] = None
	attention_span: Optional[int] = None
	preferred_format: Optional[str] = None


class Goals(BaseModel):
	career_goals: Optional[str] = None
	timeline: Optional[str] = None
	salary_expectations: Optional[str] = None
	work_environment: Optional[str] = None
	personal_motivation: Optional[str] = None
	success_metrics: List[str] = Field(default_factory=list)


class AssessmentData(BaseModel):
	"""Everything learned about a user during one assessment, filled in as they answer."""
	basic_info: Optional[BasicInfo] = None
	technical_interests: Optional[TechnicalInterests] = None
	cognitive: Optional[CognitiveScores] = None
	personality_profile: Optional[PersonalityProfile] = None
	learning_style: Optional[LearningStyle] = None
	goals: Optional[Goals] = None
	completion_time_ms: Optional[int] = None


def _num(value: Any) -> Optional[float]:
	try:
		return float(value)
	except (TypeError, ValueError):
		return None


def mapping(value: Any) -> Dict[str, Any]:
	return value if isinstance(value, dict) else {}


def text_value(value: Any) -> Optional[str]:
	if isinstance(value, bool) or not isinstance(value, (str, int, float)):
		return None
	return str(value)


def assessment_from_payload(payload: Dict[str, Any]) -> AssessmentData:
	"""Map the /assessment/analyze payload onto AssessmentData; unknown or malformed parts are skipped."""
	data = AssessmentData()
	cognitive = payload.get("cognitive_assessment")
	if isinstance(cognitive, dict):
		scores = mapping(cognitive.get("scores"))
		data.cognitive = CognitiveScores(
			overall=_num(scores.get("overall")),
			logical_reasoning=_num(scores.get("logical_reasoning")),
			numerical_reasoning=_num(scores.get("numerical_reasoning")),
			verbal_reasoning=_num(scores.get("verbal_reasoning")),
			spatial_reasoning=_num(scores.get("spatial_reasoning")),
			working_memory=_num(scores.get("working_memory")),
			processing_speed=_num(scores.get("processing_speed")),
			creativity=_num(scores.get("creativity")),
		)
		completion = _num(cognitive.get("completion_time"))
		if completion is not None:
			# completion_time is reported in seconds
			data.completion_time_ms = int(completion * 1000)
	personality = payload.get("personality_assessment")
	if isinstance(personality, dict):
		big_five = mapping(personality.get("big_five_scores"))
		traits = personality.get("key_traits") or []
		data.personality_profile = PersonalityProfile(
			jung_type=text_value(personality.get("jung_type")),
			openness=_num(big_five.get("openness")),
			conscientiousness=_num(big_five.get("conscientiousness")),
			extraversion=_num(big_five.get("extraversion")),
			agreeableness=_num(big_five.get("agreeableness")),
			neuroticism=_num(big_five.get("neuroticism")),
			traits=[str(t) for t in traits] if isinstance(traits, list) else [],
			work_style=text_value(personality.get("work_style")),
		)
	prefs = payload.get("learning_preferences")
	if isinstance(prefs, dict):
		formats = prefs.get("preferred_content_format")
		attention = _num(prefs.get("attention_span"))
		data.learning_style = LearningStyle(
			modality=text_value(prefs.get("learning_style")),
			pace=text_value(prefs.get("pace_preference")),
			support=text_value(prefs.get("feedback_preference")),
			attention_span=int(attention) if attention is not None else None,
			preferred_format=", ".join(str(f) for f in formats) if isinstance(formats, list) else text_value(formats),
		)
	goals = payload.get("goals")
	if isinstance(goals, dict):
		try:
			data.goals = Goals(**{k: v for k, v in goals.items() if k in Goals.model_fields})
		except ValidationError:
			data.goals = None
	return data
