"""Prompted content generation behind the LLM client.

Every public coroutine returns a GenerationResult whose ``status`` says
whether the payload came from the model ("generated") or from the built-in
defaults ("fallback").
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from .llm_client import GeminiClient, LLMError

logger = logging.getLogger(__name__)

GenerationStatus = Literal["generated", "fallback"]

COURSE_SYSTEM_PROMPT = (
	"You are an expert educational content creator specializing in personalized STEM education. "
	"Create engaging, pedagogically sound learning materials tailored to individual student needs."
)
COGNITIVE_SYSTEM_PROMPT = (
	"You are an educational psychologist specializing in cognitive assessment analysis for students. "
	"Provide encouraging, actionable insights."
)
CAREER_SYSTEM_PROMPT = (
	"You are a career counselor specializing in STEM education and technology careers. "
	"Provide practical, achievable recommendations."
)

COGNITIVE_LABELS = {
	"logical_reasoning": "Logical Reasoning",
	"numerical_reasoning": "Numerical Reasoning",
	"verbal_reasoning": "Verbal Reasoning",
	"spatial_reasoning": "Spatial Reasoning",
	"working_memory": "Working Memory",
	"processing_speed": "Processing Speed",
}

FALLBACK_CAREERS: List[Dict[str, Any]] = [
	{
		"title": "Software Developer",
		"fit_score": 85,
		"reasoning": "Strong analytical skills and problem-solving abilities align well with software development",
		"timeline_estimate": "2-4 years",
		"required_steps": ["Learn programming languages", "Build portfolio projects", "Gain practical experience"],
		"skill_gaps": ["Programming", "Software architecture", "Version control"],
	},
	{
		"title": "Data Analyst",
		"fit_score": 80,
		"reasoning": "Numerical reasoning skills and attention to detail suit data analysis roles",
		"timeline_estimate": "1-3 years",
		"required_steps": ["Learn data analysis tools", "Study statistics", "Work on data projects"],
		"skill_gaps": ["SQL", "Python/R", "Data visualization"],
	},
]


class GenerationResult(BaseModel):
	data: Any
	status: GenerationStatus
	error: Optional[str] = None


class CourseRequest(BaseModel):
	subject_name: str = "General STEM"
	topic_name: Optional[str] = None
	education_level_name: str = "High School"
	content_type: str = "study"
	difficulty: int = 5
	time_allocation: int = 60
	learning_objectives: List[str] = []
	custom_requirements: Optional[str] = None


def _fallback(data: Any, reason: str) -> GenerationResult:
	logger.warning("Using fallback content: %s", reason)
	return GenerationResult(data=data, status="fallback", error=reason)


def _as_int(value: Any, default: int) -> int:
	try:
		return int(round(float(value)))
	except (TypeError, ValueError):
		return default


def _as_list(value: Any) -> List[str]:
	if isinstance(value, list):
		return [str(v) for v in value if v is not None]
	if isinstance(value, str) and value.strip():
		return [value.strip()]
	return []


# ---- courses ----

def build_course_prompt(req: CourseRequest, personalization: Dict[str, Any]) -> str:
	lines = [
		"Create a comprehensive, personalized learning course with the following specifications:",
		"",
		"COURSE REQUIREMENTS:",
		f"- Subject: {req.subject_name}",
		f"- Topic: {req.topic_name or 'Foundational concepts'}",
		f"- Education Level: {req.education_level_name}",
		f"- Content Type: {req.content_type}",
		f"- Difficulty: {req.difficulty}/10",
		f"- Time Allocation: {req.time_allocation} minutes",
		f"- Learning Objectives: {', '.join(req.learning_objectives) or 'Core understanding'}",
	]
	if req.custom_requirements:
		lines.append(f"- Custom Requirements: {req.custom_requirements}")
	lines += [
		"",
		"PERSONALIZATION CONTEXT:",
		f"- Student's Education Level: {personalization.get('education_level', 'high_school')}",
		f"- Location: {personalization.get('location', 'Global')}",
		f"- Career Goals: {personalization.get('career_goals', 'STEM career')}",
		f"- Cognitive Strengths: {', '.join(personalization.get('cognitive_strengths') or ['analytical thinking'])}",
		f"- Learning Style: {personalization.get('learning_style', 'visual')}",
		f"- Preferred Pace: {personalization.get('preferred_pace', 'moderate')}",
		f"- Attention Span: {personalization.get('attention_span', 30)} minutes",
		f"- Personality Type: {personalization.get('personality_type', 'INTJ')}",
		"",
		"Return ONLY JSON shaped as:",
		'{"title": str, "description": str, "modules": [{"title": str, "content": str, '
		'"type": "text"|"interactive"|"quiz"|"video-script", "estimated_duration": int, '
		'"difficulty": int, "learning_objectives": [str]}]}',
		"Use 3-6 modules of 5-15 minutes each. Include assessment components if the content type includes assessment, "
		"and real-world applications relevant to the student's location and career goals.",
	]
	return "\n".join(lines)


def fallback_course(req: CourseRequest) -> Dict[str, Any]:
	topic = req.topic_name or "Fundamentals"
	return {
		"title": f"{req.subject_name} Course: {topic}",
		"description": f"A personalized learning experience covering {req.topic_name or 'essential concepts'}.",
		"modules": [
			{
				"title": "Getting Started",
				"content": f"Welcome to your personalized {req.subject_name} course! This course is designed for your learning style and goals.",
				"type": "text",
				"estimated_duration": 10,
				"difficulty": max(1, req.difficulty - 1),
				"learning_objectives": ["Understand course structure", "Set learning goals"],
			},
			{
				"title": "Core Learning",
				"content": f"Let's dive into the main concepts of {req.topic_name or 'this subject'} with examples relevant to your interests.",
				"type": "interactive",
				"estimated_duration": max(req.time_allocation - 20, 5),
				"difficulty": req.difficulty,
				"learning_objectives": list(req.learning_objectives),
			},
			{
				"title": "Practice and Review",
				"content": "Test your understanding with practice exercises and review key concepts.",
				"type": "quiz",
				"estimated_duration": 10,
				"difficulty": req.difficulty,
				"learning_objectives": ["Apply knowledge", "Self-assessment"],
			},
		],
	}


def _normalize_module(raw: Any, req: CourseRequest) -> Optional[Dict[str, Any]]:
	if not isinstance(raw, dict) or not raw.get("title"):
		return None
	content = raw.get("content")
	if not isinstance(content, str):
		content = json.dumps(content) if content is not None else ""
	return {
		"title": str(raw["title"]),
		"content": content,
		"type": str(raw.get("type") or raw.get("content_type") or raw.get("contentType") or "text"),
		"estimated_duration": _as_int(raw.get("estimated_duration", raw.get("estimatedDuration")), 10),
		"difficulty": _as_int(raw.get("difficulty"), req.difficulty),
		"learning_objectives": _as_list(raw.get("learning_objectives", raw.get("learningObjectives"))),
	}


async def generate_course(
	client: Optional[GeminiClient],
	req: CourseRequest,
	personalization: Dict[str, Any],
) -> GenerationResult:
	prompt = build_course_prompt(req, personalization)
	if client is None:
		result = _fallback(fallback_course(req), "no LLM configured")
	else:
		try:
			parsed = await client.generate_json(prompt, system_prompt=COURSE_SYSTEM_PROMPT, temperature=0.8)
		except LLMError as e:
			result = _fallback(fallback_course(req), str(e))
		else:
			raw_modules = parsed.get("modules") if isinstance(parsed, dict) else None
			if not isinstance(raw_modules, list):
				raw_modules = []
			modules = [m for m in (_normalize_module(raw, req) for raw in raw_modules) if m]
			if not modules:
				result = _fallback(fallback_course(req), "model returned no usable modules")
			else:
				result = GenerationResult(
					data={
						"title": str(parsed.get("title") or fallback_course(req)["title"]),
						"description": str(parsed.get("description") or ""),
						"modules": modules,
					},
					status="generated",
				)
	result.data["generation_prompt"] = prompt
	return result


# ---- assessment analysis ----

def fallback_cognitive_analysis(scores: Dict[str, Any]) -> Dict[str, Any]:
	numeric = {k: _as_int(scores.get(k), 0) for k in COGNITIVE_LABELS if scores.get(k) is not None}
	strengths = [COGNITIVE_LABELS[k] for k, v in sorted(numeric.items(), key=lambda kv: -kv[1]) if v >= 70]
	weaknesses = [COGNITIVE_LABELS[k] for k, v in sorted(numeric.items(), key=lambda kv: kv[1]) if v < 50]
	return {
		"overall_iq": _as_int(scores.get("overall"), 0),
		"cognitive_strengths": strengths or ["Balanced profile across domains"],
		"cognitive_weaknesses": weaknesses or ["No significant weaknesses detected"],
		"learning_capacity": "Detailed analysis temporarily unavailable",
		"problem_solving_style": "Standard approach recommended",
		"education_adjusted_profile": scores,
	}


async def analyze_cognitive(
	client: Optional[GeminiClient],
	scores: Dict[str, Any],
	profile_context: Dict[str, Any],
) -> GenerationResult:
	if client is None:
		return _fallback(fallback_cognitive_analysis(scores), "no LLM configured")
	score_lines = "\n".join(
		f"- {label}: {scores.get(key) or 0}/100" for key, label in [("overall", "Overall")] + list(COGNITIVE_LABELS.items())
	)
	prompt = (
		"Analyze the following cognitive assessment results for educational career guidance:\n\n"
		f"Cognitive Scores:\n{score_lines}\n\n"
		"User Profile:\n"
		f"- Education Level: {profile_context.get('education_level') or 'Unknown'}\n"
		f"- Location: {profile_context.get('location') or 'Unknown'}\n"
		f"- Career Goals: {profile_context.get('career_goals') or 'Not specified'}\n\n"
		"Return ONLY a JSON object with keys overall_iq (int), cognitive_strengths (list), "
		"cognitive_weaknesses (list), learning_capacity (str), problem_solving_style (str), "
		"recommended_learning_approaches (list). Use clear, encouraging language suitable for students."
	)
	try:
		parsed = await client.generate_json(prompt, system_prompt=COGNITIVE_SYSTEM_PROMPT, temperature=0.7)
	except LLMError as e:
		return _fallback(fallback_cognitive_analysis(scores), str(e))
	if not isinstance(parsed, dict):
		return _fallback(fallback_cognitive_analysis(scores), "model returned a non-object analysis")
	parsed.setdefault("overall_iq", _as_int(scores.get("overall"), 0))
	return GenerationResult(data=parsed, status="generated")


def _normalize_career(raw: Any) -> Optional[Dict[str, Any]]:
	if not isinstance(raw, dict):
		return None
	title = raw.get("title") or raw.get("career_title") or raw.get("career")
	if not title:
		return None
	return {
		"title": str(title),
		"fit_score": max(0, min(100, _as_int(raw.get("fit_score", raw.get("fitScore")), 0))),
		"reasoning": str(raw.get("reasoning") or ""),
		"timeline_estimate": str(raw.get("timeline_estimate") or raw.get("timeline") or ""),
		"required_steps": _as_list(raw.get("required_steps", raw.get("requiredSteps"))),
		"skill_gaps": _as_list(raw.get("skill_gaps", raw.get("skillGaps"))),
	}


async def recommend_careers(
	client: Optional[GeminiClient],
	cognitive: Optional[Dict[str, Any]],
	personality: Optional[Dict[str, Any]],
	learning: Optional[Dict[str, Any]],
	profile_context: Dict[str, Any],
) -> GenerationResult:
	fallback = [dict(c) for c in FALLBACK_CAREERS]
	if client is None:
		return _fallback(fallback, "no LLM configured")
	prompt = (
		"Generate career recommendations based on:\n\n"
		f"Cognitive Profile: {json.dumps(cognitive, default=str)}\n"
		f"Personality: {json.dumps(personality, default=str)}\n"
		f"Learning Preferences: {json.dumps(learning, default=str)}\n"
		f"User Profile: Education Level: {profile_context.get('education_level')}, Goals: {profile_context.get('career_goals')}\n\n"
		"Provide 3-5 STEM and technology career recommendations. Return ONLY a JSON array of objects with keys "
		"title, fit_score (0-100), reasoning, timeline_estimate, required_steps (list), skill_gaps (list)."
	)
	try:
		parsed = await client.generate_json(prompt, system_prompt=CAREER_SYSTEM_PROMPT, temperature=0.8)
	except LLMError as e:
		return _fallback(fallback, str(e))
	if isinstance(parsed, dict):
		parsed = parsed.get("career_recommendations") or parsed.get("recommendations") or []
	careers = [c for c in (_normalize_career(raw) for raw in (parsed if isinstance(parsed, list) else [])) if c]
	if not careers:
		return _fallback(fallback, "model returned no usable recommendations")
	return GenerationResult(data=careers, status="generated")


def learning_recommendations(learning: Optional[Dict[str, Any]]) -> Dict[str, Any]:
	learning = learning or {}
	session = learning.get("preferred_session_length")
	return {
		"optimal_learning_style": learning.get("learning_style") or "visual",
		"recommended_pace": learning.get("pace_preference") or "moderate",
		"support_level": "moderate",
		"study_schedule": f"{session} minute sessions" if session else "30 minute sessions",
		"motivational_approach": "achievement-oriented",
		"engagement_strategies": [
			"Interactive content",
			"Real-world applications",
			"Progress tracking",
			"Bite-sized learning modules",
		],
	}


def overall_fit_score(cognitive: Optional[Dict[str, Any]], personality: Optional[Dict[str, Any]]) -> int:
	cognitive_score = _as_int((cognitive or {}).get("overall_iq"), 0) or 70
	personality_factor = _as_int((personality or {}).get("leadership_potential"), 0) or 70
	return int(round((cognitive_score + personality_factor) / 2))


def next_steps(careers: List[Dict[str, Any]]) -> List[str]:
	if not careers:
		return [
			"Complete your profile setup",
			"Explore STEM subjects that interest you",
			"Consider taking additional assessments",
		]
	return careers[0].get("required_steps") or [
		"Research your recommended career paths",
		"Identify relevant educational programs",
		"Start building foundational skills",
	]


# ---- teacher module content ----

CONTENT_KINDS = ("core", "bite-sized", "video-script", "image-prompts", "voice-script", "assessments")

# where each kind lives inside CourseModule.content_data_json
CONTENT_KEYS = {
	"core": "coreContent",
	"bite-sized": "biteSizedContent",
	"video-script": "videoScript",
	"image-prompts": "imagePrompts",
	"voice-script": "voiceScript",
	"assessments": "assessments",
}

# top-level sections the model is asked for, with their share of the quality score
CONTENT_SECTIONS: Dict[str, Dict[str, float]] = {
	"core": {"introduction": 0.2, "mainContent": 0.3, "practicalApplications": 0.2, "summary": 0.2, "engagementElements": 0.1},
	"bite-sized": {"microLessons": 0.3, "quickFacts": 0.2, "keyTerms": 0.2, "quickQuizzes": 0.2, "mnemonics": 0.1},
	"video-script": {"mainVideo": 0.4, "microVideos": 0.3, "interactiveElements": 0.2, "productionNotes": 0.1},
	"image-prompts": {"conceptIllustrations": 0.25, "diagrams": 0.25, "realWorldExamples": 0.25, "infographics": 0.25},
	"voice-script": {"mainNarration": 0.4, "conceptExplanations": 0.3, "exampleWalkthroughs": 0.2, "summaryReview": 0.1},
	"assessments": {"formativeAssessments": 0.3, "summativeAssessments": 0.3, "practicalAssessments": 0.2, "rubrics": 0.2},
}

CONTENT_BRIEFS = {
	"core": "comprehensive core educational content with worked examples, exercises and a summary",
	"bite-sized": "bite-sized content chunks optimised for quick consumption and retention",
	"video-script": "a video script with a main video, short micro videos and production notes",
	"image-prompts": "detailed image-generation prompts for educational illustrations, diagrams and infographics",
	"voice-script": "voice scripts optimised for audio-only learning",
	"assessments": "formative, summative and practical assessments with marking rubrics",
}

CONTENT_SYSTEM_PROMPT = (
	"You are an expert instructional designer helping teachers build course modules. "
	"Produce accurate, age-appropriate material aligned with the stated learning objectives."
)


class ModuleBrief(BaseModel):
	title: str
	description: str = ""
	learning_objectives: List[str] = []
	estimated_duration: int = 60
	content_type: str = "text"


class TeachingContext(BaseModel):
	course_title: str = ""
	subject: str = "General"
	education_level: str = "intermediate"
	difficulty: int = 5
	region: str = "International"
	language: str = "English"
	teaching_style: str = "Balanced"


def build_module_content_prompt(kind: str, module: ModuleBrief, context: TeachingContext) -> str:
	sections = ", ".join(CONTENT_SECTIONS[kind])
	return "\n".join([
		f'Create {CONTENT_BRIEFS[kind]} for a module titled "{module.title}".',
		"",
		"MODULE DETAILS:",
		f"- Title: {module.title}",
		f"- Description: {module.description or 'Not provided'}",
		f"- Learning Objectives: {', '.join(module.learning_objectives) or 'Core understanding'}",
		f"- Estimated Duration: {module.estimated_duration} minutes",
		f"- Content Type: {module.content_type}",
		"",
		"COURSE CONTEXT:",
		f"- Course: {context.course_title or module.title}",
		f"- Subject: {context.subject}",
		f"- Education Level: {context.education_level}",
		f"- Difficulty: {context.difficulty}/10",
		"",
		"TEACHER PREFERENCES:",
		f"- Region: {context.region}",
		f"- Language: {context.language}",
		f"- Teaching Style: {context.teaching_style}",
		"",
		f"Return ONLY a JSON object with the top-level keys: {sections}.",
	])


def content_quality(content: Any, kind: str) -> float:
	"""Share of the expected sections that came back non-empty, from 0.0 to 1.0."""
	if not isinstance(content, dict):
		return 0.0
	score = sum(weight for key, weight in CONTENT_SECTIONS[kind].items() if content.get(key))
	return round(min(score, 1.0), 2)


def fallback_module_content(kind: str, module: ModuleBrief) -> Dict[str, Any]:
	objectives = module.learning_objectives or [module.title]
	if kind == "core":
		return {
			"introduction": {"overview": module.description or f"An introduction to {module.title}."},
			"mainContent": {"sections": [{"title": o, "content": f"Explain and demonstrate: {o}."} for o in objectives]},
			"summary": {"keyTakeaways": list(objectives)},
		}
	if kind == "bite-sized":
		return {"microLessons": [{"title": o, "duration": "2-3 minutes", "keyPoint": o} for o in objectives]}
	if kind == "video-script":
		return {"mainVideo": {"title": module.title, "duration": f"{module.estimated_duration} minutes", "outline": list(objectives)}}
	if kind == "image-prompts":
		return {"conceptIllustrations": [{"concept": o, "prompt": f"Clear, labelled educational illustration of {o}"} for o in objectives]}
	if kind == "voice-script":
		return {"mainNarration": {"script": f"Welcome to {module.title}. In this lesson we will cover " + "; ".join(objectives) + "."}}
	return {
		"formativeAssessments": [{
			"type": "quick_check",
			"title": "Understanding Check",
			"questions": [{"type": "short_answer", "question": f"In your own words, explain: {o}"} for o in objectives],
		}],
	}


async def generate_module_content(
	client: Optional[GeminiClient],
	kind: str,
	module: ModuleBrief,
	context: TeachingContext,
) -> GenerationResult:
	if client is None:
		return _fallback(fallback_module_content(kind, module), "no LLM configured")
	prompt = build_module_content_prompt(kind, module, context)
	try:
		parsed = await client.generate_json(prompt, system_prompt=CONTENT_SYSTEM_PROMPT, temperature=0.7)
	except LLMError as e:
		return _fallback(fallback_module_content(kind, module), str(e))
	if not content_quality(parsed, kind):
		return _fallback(fallback_module_content(kind, module), f"model returned no usable {kind} content")
	return GenerationResult(data=parsed, status="generated")
