"""Nova, the conversational assessment guide.

The controller is a small state machine over ``Phase``. Inside the basic-info
phase the current question is derived from which ``basic_info`` fields are
already set, so replaying the same partial data always lands on the same
question. Replies come from one table keyed by ``(step, input_class)``.
"""
from __future__ import annotations
import random
import re
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .assessment import (
	AssessmentData,
	BasicInfo,
	CognitiveScores,
	Goals,
	LearningStyle,
	PersonalityProfile,
	TechnicalInterests,
)


class Phase(str, Enum):
	WELCOME = "welcome"
	BASIC_INFO = "basic-info"
	TECHNICAL_INTERESTS = "technical-interests"
	COGNITIVE_ASSESSMENT = "cognitive-assessment"
	PERSONALITY_ASSESSMENT = "personality-assessment"
	LEARNING_PREFERENCES = "learning-preferences"
	RESULTS = "results"


PHASE_ORDER: List[Phase] = list(Phase)

AnimationType = Literal["celebration", "thinking", "excitement", "encouragement"]


class TraitScores(BaseModel):
	extraversion: Optional[int] = None
	openness: Optional[int] = None
	conscientiousness: Optional[int] = None
	agreeableness: Optional[int] = None
	neuroticism: Optional[int] = None


class ConversationContext(BaseModel):
	current_phase: Phase = Phase.WELCOME
	user_responses: Dict[str, str] = Field(default_factory=dict)
	personality: TraitScores = Field(default_factory=TraitScores)
	detected_traits: List[str] = Field(default_factory=list)
	conversation_history: List[str] = Field(default_factory=list)
	engagement_level: int = 100
	completed_phases: List[Phase] = Field(default_factory=list)
	cultural_context: Optional[str] = None
	education_level: Optional[str] = None
	# "<step>:<input>" keys whose xp has already been paid
	rewarded: List[str] = Field(default_factory=list)


class NovaResponse(BaseModel):
	message: str
	emoji: Optional[str] = None
	xp_reward: Optional[int] = None
	achievement: Optional[str] = None
	options: Optional[List[str]] = None
	follow_up: Optional[str] = None
	next_phase: Optional[Phase] = None
	animation_type: Optional[AnimationType] = None


# ---- keyword heuristics ----

TRAIT_START = 50
TRAIT_STEP = 10

# (trait, direction, label, keywords)
TRAIT_KEYWORDS: List[Tuple[str, int, str, Tuple[str, ...]]] = [
	("extraversion", 1, "social", ("team", "people", "social")),
	("extraversion", -1, "independent", ("alone", "quiet", "independent")),
	("openness", 1, "creative", ("creative", "innovative", "new")),
	("conscientiousness", 1, "organized", ("organized", "plan", "systematic")),
	("agreeableness", 1, "supportive", ("help", "support", "together")),
	("neuroticism", 1, "anxious", ("nervous", "worried", "stress")),
	("neuroticism", -1, "calm", ("calm", "relaxed")),
]


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
	return max(low, min(high, value))


def apply_trait_keywords(context: ConversationContext, text: str) -> None:
	"""Nudge trait scores by TRAIT_STEP for every keyword bucket the text hits."""
	lowered = text.lower()
	for trait, direction, label, keywords in TRAIT_KEYWORDS:
		if not any(k in lowered for k in keywords):
			continue
		current = getattr(context.personality, trait)
		start = TRAIT_START if current is None else current
		setattr(context.personality, trait, _clamp(start + direction * TRAIT_STEP))
		if label not in context.detected_traits:
			context.detected_traits.append(label)


def update_engagement(context: ConversationContext, text: str) -> None:
	if len(text) > 50:
		context.engagement_level = _clamp(context.engagement_level + 5)
	elif len(text) < 10:
		context.engagement_level = _clamp(context.engagement_level - 5)


def adapt_tone(message: str, personality: TraitScores) -> str:
	extraversion = personality.extraversion
	if extraversion is not None and extraversion > 60:
		return message.replace(".", "!").replace("good", "AMAZING").replace("great", "FANTASTIC")
	if extraversion is not None and extraversion < 40:
		return message.replace("!", ".").replace("AMAZING", "good").replace("🔥", "💭")
	return message


# ---- input classifiers ----

def detect_enthusiasm(text: str) -> str:
	lowered = text.lower()
	if "excited" in lowered or "let's do this" in lowered or "yes!" in lowered:
		return "high"
	if "tell me more" in lowered or "what" in lowered or "how" in lowered:
		return "curious"
	if "nervous" in lowered or "worried" in lowered:
		return "low"
	return "medium"


def classify_role(text: str) -> str:
	lowered = text.lower()
	if "student" in lowered:
		return "student"
	if any(k in lowered for k in ("career-changer", "career changer", "change career", "switching career")):
		return "career-changer"
	if any(k in lowered for k in ("entry-level", "entry level", "just starting", "starting my professional")):
		return "entry-level"
	return "other"


def extract_experience_years(text: str) -> int:
	for marker, years in (("0-1", 1), ("2-3", 3), ("4-6", 5), ("7-10", 8), ("10+", 12)):
		if marker in text:
			return years
	match = re.search(r"\d+", text)
	return int(match.group()) if match else 0


def classify_experience(text: str) -> str:
	years = extract_experience_years(text)
	if years <= 1:
		return "fresh"
	if years <= 5:
		return "foundation"
	return "seasoned"


def determine_education_level(text: str) -> str:
	lowered = text.lower()
	if "phd" in lowered or "master" in lowered:
		return "professional"
	if "bachelor" in lowered or "college" in lowered or "associate" in lowered:
		return "college"
	return "high-school"


_US_PATTERN = re.compile(r"\b(us|usa|united states|america)\b")
_AFRICA_WORDS = ("africa", "nigeria", "kenya", "ghana")
_EUROPE_WORDS = ("europe", "uk", "united kingdom", "germany", "france")


def classify_location(text: str) -> str:
	lowered = text.lower()
	if any(k in lowered for k in _AFRICA_WORDS):
		return "africa"
	if _US_PATTERN.search(lowered):
		return "us"
	if any(re.search(rf"\b{k}\b", lowered) for k in _EUROPE_WORDS):
		return "europe"
	return "global"


def determine_cultural_context(text: str) -> str:
	lowered = text.lower()
	region = classify_location(text)
	if region == "africa":
		return "african"
	if region == "us":
		return "american"
	if region == "europe":
		return "european"
	if "asia" in lowered or "india" in lowered:
		return "asian"
	return "global"


def detect_technical_interests(text: str) -> List[str]:
	lowered = text.lower()
	found: List[str] = []
	if re.search(r"\bai\b", lowered) or "machine learning" in lowered or "intelligent" in lowered:
		found.append("machine-learning")
	if "security" in lowered or "protect" in lowered or "cyber" in lowered:
		found.append("cybersecurity")
	if "data" in lowered or "pattern" in lowered or "analytics" in lowered:
		found.append("data-science")
	if "web" in lowered or re.search(r"\bapps?\b", lowered) or "frontend" in lowered:
		found.append("web-development")
	if "automat" in lowered or "optim" in lowered or "process" in lowered:
		found.append("automation")
	return found


def basic_info_sub_phase(data: AssessmentData) -> str:
	"""Next basic-info question, from which fields are set: role, experience, education, location, then complete."""
	info = data.basic_info or BasicInfo()
	if not info.current_role:
		return "role"
	if not info.experience:
		return "experience"
	if not info.education:
		return "education"
	if not info.location:
		return "location"
	return "complete"


def cognitive_band(scores: CognitiveScores) -> str:
	if scores.overall is not None:
		overall = scores.overall
	else:
		values = [
			v for v in (
				scores.logical_reasoning, scores.numerical_reasoning, scores.verbal_reasoning,
				scores.spatial_reasoning, scores.working_memory, scores.processing_speed,
			) if v is not None
		]
		if not values:
			return "developing"
		overall = sum(values) / len(values)
	return "strong" if overall >= 70 else "developing"


# ---- response table ----

_ROLE_FOLLOW_UP = {
	"follow_up": "Now, let's talk experience! How many years have you been in the professional world? And don't worry if it's zero, everyone starts somewhere and I'll adjust everything to match your level! ⏰",
	"options": [
		"0-1 years (just starting!)",
		"2-3 years (getting my feet wet)",
		"4-6 years (building momentum)",
		"7-10 years (solid experience)",
		"10+ years (seasoned professional)",
	],
}

_EXPERIENCE_FOLLOW_UP = {
	"follow_up": "Education time! 🎓 What's your highest level of education? This helps me tailor our brain games so they're perfectly challenging for you! 📚",
	"options": [
		"High School",
		"Some College",
		"Associate Degree",
		"Bachelor's Degree",
		"Master's Degree",
		"PhD",
		"Coding Bootcamp",
		"Self-taught (the best kind!)",
		"Professional Certifications",
	],
}

_EDUCATION_FOLLOW_UP = {
	"follow_up": "Now for geography! 🌍 Where in the world are you? This helps me give you accurate salary insights and understand your local tech scene! 🗺️",
	"options": [
		"United States",
		"Canada",
		"United Kingdom",
		"Germany",
		"South Africa",
		"Nigeria",
		"Kenya",
		"India",
		"Australia",
		"Other (I'll specify)",
	],
}

_LOCATION_FOLLOW_UP = {
	"follow_up": "Fantastic! Now I'm getting a great picture of who you are. Let's explore what areas of tech make your brain light up! 🧠⚡ What draws you in: the logic of code, the creativity of design, the detective work of cybersecurity, or something else entirely?",
	"next_phase": Phase.TECHNICAL_INTERESTS,
	"animation_type": "excitement",
}

_SITUATION_OPTIONS = [
	"I'm a student exploring options",
	"I'm working but want to change careers",
	"I'm just starting my professional journey",
	"I'm experienced but want to specialize",
	"I'm between jobs and exploring",
]

_COGNITIVE_FOLLOW_UP = {
	"follow_up": "Next up, your personality! I'll describe some work scenarios and you pick what feels most natural. 🎭",
	"next_phase": Phase.PERSONALITY_ASSESSMENT,
}

_PERSONALITY_FOLLOW_UP = {
	"follow_up": "Last stop before your results: how do you learn best? 📚",
	"next_phase": Phase.LEARNING_PREFERENCES,
}

RESPONSES: Dict[Tuple[str, str], NovaResponse] = {
	# welcome
	("welcome", "intro"): NovaResponse(
		message="Hey there! 👋 I'm Nova, your AI career guide! I'm absolutely thrilled to help you discover your perfect tech career path! I'll ask engaging questions, we'll play some brain games, and together we'll uncover what makes you uniquely awesome! Ready to start this exciting journey? 🚀",
		emoji="🤖",
		xp_reward=10,
		options=["Let's do this! I'm excited!", "Tell me more about what we'll do", "I'm a bit nervous, but ready"],
		animation_type="excitement",
	),
	("welcome", "high"): NovaResponse(
		message="I LOVE that energy! 🔥 You're going to absolutely crush this! Let's dive right in and start discovering what makes you special! 💪✨",
		emoji="⚡",
		xp_reward=20,
		next_phase=Phase.BASIC_INFO,
		animation_type="celebration",
		follow_up="First up: what's your current situation? Are you a student diving into possibilities, a professional looking to pivot, or somewhere in between?",
		options=_SITUATION_OPTIONS + ["Let me explain my unique situation"],
	),
	("welcome", "curious"): NovaResponse(
		message="Great question! 🤔 Here's what we'll do: I'll chat with you about your background, interests, and goals. Then we'll play some brain games that adapt to your level. Finally, I'll put it all together into your personalized career roadmap. Sound good? 💡",
		emoji="🎯",
		xp_reward=15,
		next_phase=Phase.BASIC_INFO,
		options=["That sounds perfect!", "How long will it take?", "What kind of brain games?"],
	),
	("welcome", "low"): NovaResponse(
		message="Hey, no worries at all! 🤗 Feeling nervous is totally normal, it just shows you care about your future! There are no wrong answers, and we'll go at your pace. Ready to take the first small step? 🌟",
		emoji="💙",
		xp_reward=25,
		next_phase=Phase.BASIC_INFO,
		animation_type="encouragement",
		follow_up="Let's start with something easy! What's your current situation? Are you a student, working professional, or somewhere in between?",
		options=_SITUATION_OPTIONS,
	),
	("welcome", "medium"): NovaResponse(
		message="Wonderful, let's get going! 😊 We'll take this one step at a time, starting with a little about you. 📍",
		emoji="✨",
		xp_reward=15,
		next_phase=Phase.BASIC_INFO,
		follow_up="What's your current situation? Are you a student, working professional, or somewhere in between?",
		options=_SITUATION_OPTIONS,
	),
	# basic info
	("basic-info", "intro"): NovaResponse(
		message="Perfect! Let's start getting to know the amazing person behind the screen! 😊 First up: what's your current situation? Don't worry about labels, just tell me where you're at right now! 📍",
		emoji="💼",
		options=_SITUATION_OPTIONS + ["Let me explain my unique situation"],
		animation_type="thinking",
	),
	("role", "student"): NovaResponse(
		message="A student! 🎓 I absolutely LOVE working with students, you have endless possibilities ahead! The tech world is going to be so lucky to have fresh talent like you. Your timing is perfect! 🌟",
		emoji="📚",
		xp_reward=20,
		achievement="Future Tech Leader",
		**_ROLE_FOLLOW_UP,
	),
	("role", "career-changer"): NovaResponse(
		message="A career changer! 🔄 Career changers often become the most successful tech professionals because you bring unique perspectives and real-world experience. That's a superpower! 💪",
		emoji="🦋",
		xp_reward=25,
		achievement="Brave Transformer",
		**_ROLE_FOLLOW_UP,
	),
	("role", "entry-level"): NovaResponse(
		message="Starting your professional journey! 🌱 Your fresh perspective and eagerness to learn are exactly what the tech industry needs. Get ready to grow into something amazing! 🚀",
		emoji="🌟",
		xp_reward=20,
		**_ROLE_FOLLOW_UP,
	),
	("role", "other"): NovaResponse(
		message="Interesting background! 💼 Every path brings unique value to tech. I can already see some exciting possibilities forming. Let's keep building your profile! 🎯",
		emoji="✨",
		xp_reward=15,
		**_ROLE_FOLLOW_UP,
	),
	("experience", "fresh"): NovaResponse(
		message="Starting fresh, I love it! 🌱 You get to learn the latest technologies and best practices from day one, with no bad habits to unlearn! 💡",
		emoji="🎯",
		xp_reward=15,
		**_EXPERIENCE_FOLLOW_UP,
	),
	("experience", "foundation"): NovaResponse(
		message="Great foundation years! 🏗️ Enough experience to understand how things work, and still fresh enough to adapt quickly to new technologies. Employers love this combination! 📈",
		emoji="⚡",
		xp_reward=20,
		**_EXPERIENCE_FOLLOW_UP,
	),
	("experience", "seasoned"): NovaResponse(
		message="Seasoned professional! 🏆 You understand business needs, can mentor others, and bring strategic thinking to technical challenges. That's leadership material right there! 👑",
		emoji="💎",
		xp_reward=25,
		achievement="Experienced Professional",
		**_EXPERIENCE_FOLLOW_UP,
	),
	("education", "high-school"): NovaResponse(
		message="High school foundation, perfect! 🎯 You're getting into tech at the right time to grow with the industry, and I'll make sure our assessments match your level! 🌟",
		emoji="📖",
		**_EDUCATION_FOLLOW_UP,
	),
	("education", "college"): NovaResponse(
		message="College education, excellent! 🏛️ Your academic experience has given you critical thinking skills and the ability to learn complex concepts. That's exactly what tech careers need! 🧠",
		emoji="🎓",
		**_EDUCATION_FOLLOW_UP,
	),
	("education", "professional"): NovaResponse(
		message="Advanced education, impressive! 🎖️ Your deep academic background gives you a real advantage in understanding complex systems and research! ✨",
		emoji="👩‍🎓",
		xp_reward=15,
		**_EDUCATION_FOLLOW_UP,
	),
	("location", "africa"): NovaResponse(
		message="Africa represent! 🦁 The tech scene across Africa is absolutely BOOMING, from fintech in Nigeria to AI startups in South Africa. You're going to be part of that story! 🌍✨",
		emoji="🚀",
		xp_reward=25,
		achievement="African Tech Pioneer",
		**_LOCATION_FOLLOW_UP,
	),
	("location", "us"): NovaResponse(
		message="United States! 🇺🇸 You're in the heart of the global tech ecosystem, with opportunities everywhere from Silicon Valley to New York! 💰",
		emoji="🏙️",
		xp_reward=20,
		**_LOCATION_FOLLOW_UP,
	),
	("location", "europe"): NovaResponse(
		message="Europe! 🇪🇺 European tech hubs offer incredible opportunities with that famous work-life balance, and wonderfully diverse teams! 🌟",
		emoji="🏰",
		xp_reward=20,
		**_LOCATION_FOLLOW_UP,
	),
	("location", "global"): NovaResponse(
		message="Global perspective! 🌍 Tech is truly worldwide now, and global companies need people who understand different markets and cultures! 🗺️",
		emoji="🌐",
		xp_reward=15,
		**_LOCATION_FOLLOW_UP,
	),
	("basic-info", "complete"): NovaResponse(
		message="Thanks for sharing more about your background! 📝 Every detail helps me understand you better! 🎯",
		emoji="✨",
		xp_reward=15,
		next_phase=Phase.TECHNICAL_INTERESTS,
	),
	# technical interests
	("technical-interests", "intro"): NovaResponse(
		message="Now for my favorite part, let's explore what makes your tech heart beat faster! 💓 Be completely honest about what genuinely excites you. Passion is the best predictor of success in tech! 🔥",
		emoji="🎯",
		follow_up="When you think about technology, what aspect fascinates you most?",
		options=[
			"I love solving complex puzzles and problems",
			"I'm drawn to creating things people will use",
			"I want to protect people and systems from threats",
			"I'm fascinated by data and finding patterns",
			"I enjoy automating and optimizing processes",
			"I'm curious about how intelligent systems work",
		],
		animation_type="thinking",
	),
	("technical-interests", "machine-learning"): NovaResponse(
		message="Machine Learning and AI! 🤖 You're interested in the most transformative technology of our time, reshaping everything from healthcare to finance! 🧠✨",
		emoji="🔮",
		xp_reward=30,
		achievement="AI Visionary",
	),
	("technical-interests", "cybersecurity"): NovaResponse(
		message="Cybersecurity! 🛡️ The digital guardians! You're choosing to protect people and companies from digital attacks, in a field with massive demand! 🦸",
		emoji="🔒",
		xp_reward=30,
		achievement="Digital Guardian",
	),
	("technical-interests", "data-science"): NovaResponse(
		message="Data Science! 📊 The modern-day detective work: finding hidden patterns, predicting trends, and uncovering insights that drive real decisions! 🕵️",
		emoji="📈",
		xp_reward=25,
	),
	("technical-interests", "other"): NovaResponse(
		message="I can hear the passion in your response! 🔥 That genuine curiosity is exactly what successful tech careers are built on. Let me dig a little deeper! 💡",
		emoji="⭐",
		xp_reward=15,
	),
	# cognitive
	("cognitive-assessment", "pending"): NovaResponse(
		message="Time for some brain games! 🧩 They're designed to feel like games rather than tests, and tuned to your education level so they're challenging but fair. Ready to show off those thinking skills? 💪",
		emoji="🎮",
		follow_up="We'll start with some pattern recognition. Are you ready to begin?",
		options=["Let's do this!", "What exactly will we be doing?", "I'm ready but a bit nervous"],
		animation_type="excitement",
	),
	("cognitive-assessment", "strong"): NovaResponse(
		message="Brilliant thinking! 🧠 Your reasoning scores really stand out. That analytical mind is going to serve you incredibly well! ⭐",
		emoji="🎯",
		xp_reward=25,
		animation_type="celebration",
		**_COGNITIVE_FOLLOW_UP,
	),
	("cognitive-assessment", "developing"): NovaResponse(
		message="Good work on the brain games! 🤔 What matters most is how you approach problems, and you kept thinking it through! 💭",
		emoji="💡",
		xp_reward=15,
		animation_type="encouragement",
		**_COGNITIVE_FOLLOW_UP,
	),
	# personality
	("personality-assessment", "pending"): NovaResponse(
		message="Now for the personality exploration! 🌈 I'll present some work scenarios, and you just pick what feels most natural. There's no right or wrong, just authentic! 😊",
		emoji="🎭",
		animation_type="thinking",
	),
	("personality-assessment", "INTJ"): NovaResponse(
		message="The Architect! 🏗️ Strategic, independent, and a lover of long-term planning. Perfect for complex tech projects that need vision and execution! 🎯",
		emoji="🧠",
		xp_reward=30,
		achievement="Strategic Thinker",
		**_PERSONALITY_FOLLOW_UP,
	),
	("personality-assessment", "ENTJ"): NovaResponse(
		message="The Commander! 👑 Natural leadership combined with strategic thinking. You'll excel where you can lead tech teams and drive innovation! 🚀",
		emoji="⚡",
		xp_reward=30,
		achievement="Born Leader",
		**_PERSONALITY_FOLLOW_UP,
	),
	("personality-assessment", "ESFP"): NovaResponse(
		message="The Entertainer! 🎪 You bring energy and creativity to everything you do. Tech needs people like you to make it more human! 🌟",
		emoji="🎨",
		xp_reward=30,
		achievement="Creative Spirit",
		**_PERSONALITY_FOLLOW_UP,
	),
	("personality-assessment", "default"): NovaResponse(
		message="What a unique personality! 🌟 Your combination of traits is going to bring something special to the tech world! ✨",
		emoji="🎭",
		xp_reward=25,
		achievement="Personality Discovered",
		**_PERSONALITY_FOLLOW_UP,
	),
	# learning preferences
	("learning-preferences", "pending"): NovaResponse(
		message="Almost there! 🏁 Let's talk about how you learn best. This helps me recommend the perfect learning path for your unique style! 📚",
		emoji="🎯",
		animation_type="encouragement",
	),
	("learning-preferences", "recorded"): NovaResponse(
		message="Got it, I know exactly how you like to learn now! 📚 Let me put everything together for you. 🔮",
		emoji="🧩",
		xp_reward=20,
		next_phase=Phase.RESULTS,
		animation_type="thinking",
	),
	# results
	("results", "complete"): NovaResponse(
		message="WOW! 🤩 I've analyzed everything and your results are INCREDIBLE! I've found some amazing career paths that fit your unique combination of skills, personality, and interests. Ready to see your personalized roadmap? 🚀",
		emoji="🎊",
		xp_reward=50,
		achievement="Assessment Master",
		animation_type="celebration",
	),
	("results", "ready"): NovaResponse(
		message="Your results are ready and waiting! 🎉 Finish the assessment to unlock your personalized career roadmap. 🗺️",
		emoji="🏁",
		options=["Complete my assessment"],
		animation_type="excitement",
	),
}

ENCOURAGEMENT = [
	"You're doing fantastic! 🌟",
	"I'm impressed by your thoughtful answers! 💭",
	"Your potential is showing! ⭐",
	"Keep up the great work! 💪",
	"You're going to go far! 🚀",
	"I can see your passion shining through! ✨",
	"Your analytical mind is amazing! 🧠",
	"You're asking all the right questions! 🎯",
]

# intro prompts get their tone adapted to the detected personality
_TONE_ADAPTED = {("welcome", "intro"), ("basic-info", "intro"), ("technical-interests", "intro")}


def lookup(step: str, input_class: str) -> NovaResponse:
	response = RESPONSES[(step, input_class)]
	return response.model_copy(deep=True)


def technical_follow_up(interests: List[str]) -> Tuple[str, List[str]]:
	if not interests:
		return (
			"Let me ask differently: when you use technology, what do you find most interesting?",
			["How it solves real problems", "The creative possibilities", "The technical complexity", "The impact on people's lives"],
		)
	return (
		"Great! Now, what draws you to technology in general: the problem-solving aspect, the creativity, or something else?",
		[
			"I love the logical problem-solving",
			"I'm excited by the creative possibilities",
			"I want to make a positive impact",
			"I'm fascinated by how things work",
			"I enjoy the continuous learning",
		],
	)


def progress_motivation(completed_steps: int, total_steps: int) -> NovaResponse:
	progress = completed_steps / total_steps * 100 if total_steps else 0
	if progress >= 75:
		return NovaResponse(
			message="You're almost at the finish line! 🏁 Just a little more and we'll have your complete career profile! 🎯",
			emoji="🏆",
			xp_reward=25,
		)
	if progress >= 50:
		return NovaResponse(
			message="Halfway there! 🎉 I'm already seeing some exciting patterns in your responses! Keep going! 💪",
			emoji="⚡",
			xp_reward=20,
		)
	if progress >= 25:
		return NovaResponse(
			message="Great momentum! 🌟 I love seeing your personality shine through your answers! ✨",
			emoji="🚀",
			xp_reward=15,
		)
	return NovaResponse(
		message="You're off to a fantastic start! 🌱 Every answer helps me understand you better! 🎯",
		emoji="🌟",
		xp_reward=10,
	)


def encouragement(rng: Optional[random.Random] = None) -> str:
	return (rng or random).choice(ENCOURAGEMENT)


def contextual_response(personality: TraitScores, rng: Optional[random.Random] = None) -> NovaResponse:
	extraversion = personality.extraversion
	spark = "🌟"
	if extraversion is not None and extraversion > 60:
		spark = "🔥"
	elif extraversion is not None and extraversion < 40:
		spark = "💭"
	if personality.openness is not None and personality.openness > 70:
		return NovaResponse(
			message=f"I can see your creative mind at work! {spark} Your innovative thinking is exactly what the tech world needs right now! 🎨",
			emoji="🌈",
			xp_reward=15,
		)
	return NovaResponse(
		message=f"{encouragement(rng)} Your answers are giving me great insights into your potential! {spark}",
		emoji=spark,
		xp_reward=10,
	)


class NovaController:
	"""Drives one assessment conversation.

	Both ``context`` and ``data`` are plain pydantic models so a caller can
	persist them between turns and rebuild the controller from them.
	"""

	def __init__(self, context: Optional[ConversationContext] = None, data: Optional[AssessmentData] = None) -> None:
		self.context = context or ConversationContext()
		self.data = data or AssessmentData()

	def respond(self, user_input: str = "") -> NovaResponse:
		text = (user_input or "").strip()
		if text:
			self.context.conversation_history.append(text)
			apply_trait_keywords(self.context, text)
			update_engagement(self.context, text)

		phase = self.context.current_phase
		if phase == Phase.WELCOME:
			response = self._welcome(text)
		elif phase == Phase.BASIC_INFO:
			response = self._basic_info(text)
		elif phase == Phase.TECHNICAL_INTERESTS:
			response = self._technical_interests(text)
		elif phase == Phase.COGNITIVE_ASSESSMENT:
			response = self._cognitive()
		elif phase == Phase.PERSONALITY_ASSESSMENT:
			response = self._personality()
		elif phase == Phase.LEARNING_PREFERENCES:
			response = self._learning()
		else:
			# results are paid once by the completion endpoint
			response = lookup("results", "ready")
		return self._advance(response)

	# structured results from the games and questionnaires

	def record_cognitive(self, scores: CognitiveScores) -> NovaResponse:
		self.data.cognitive = scores
		return self._advance(self._cognitive(), from_phase=Phase.COGNITIVE_ASSESSMENT)

	def record_personality(self, profile: PersonalityProfile) -> NovaResponse:
		self.data.personality_profile = profile
		return self._advance(self._personality(), from_phase=Phase.PERSONALITY_ASSESSMENT)

	def record_learning_style(self, style: LearningStyle) -> NovaResponse:
		self.data.learning_style = style
		return self._advance(self._learning(), from_phase=Phase.LEARNING_PREFERENCES)

	def record_goals(self, goals: Goals) -> NovaResponse:
		self.data.goals = goals
		return self._once("goals:recorded", contextual_response(self.context.personality))

	def progress(self) -> NovaResponse:
		completed = len([p for p in PHASE_ORDER if p in self.context.completed_phases])
		return progress_motivation(completed, len(PHASE_ORDER) - 1)

	# phase handlers

	def _tone(self, step: str, input_class: str) -> NovaResponse:
		response = lookup(step, input_class)
		if (step, input_class) in _TONE_ADAPTED:
			response.message = adapt_tone(response.message, self.context.personality)
		return response

	def _once(self, key: str, response: NovaResponse) -> NovaResponse:
		if not response.xp_reward:
			return response
		if key in self.context.rewarded:
			response.xp_reward = None
		else:
			self.context.rewarded.append(key)
		return response

	def _welcome(self, text: str) -> NovaResponse:
		if not text:
			return self._once("welcome:intro", self._tone("welcome", "intro"))
		self.context.user_responses["welcome"] = text
		return self._once("welcome:answer", lookup("welcome", detect_enthusiasm(text)))

	def _basic_info(self, text: str) -> NovaResponse:
		step = basic_info_sub_phase(self.data)
		if not text and step != "complete":
			return self._tone("basic-info", "intro")
		return self._once(f"basic-info:{step}", self._basic_info_answer(step, text))

	def _basic_info_answer(self, step: str, text: str) -> NovaResponse:
		if step == "complete":
			return lookup("basic-info", "complete")
		info = self.data.basic_info or BasicInfo()
		self.context.user_responses[step] = text
		if step == "role":
			self.data.basic_info = info.model_copy(update={"current_role": text})
			return lookup("role", classify_role(text))
		if step == "experience":
			self.data.basic_info = info.model_copy(update={"experience": text})
			return lookup("experience", classify_experience(text))
		if step == "education":
			level = determine_education_level(text)
			self.data.basic_info = info.model_copy(update={"education": text, "education_level": level})
			self.context.education_level = level
			return lookup("education", level)
		self.data.basic_info = info.model_copy(update={"location": text})
		self.context.cultural_context = determine_cultural_context(text)
		return lookup("location", classify_location(text))

	def _technical_interests(self, text: str) -> NovaResponse:
		if not text:
			return self._tone("technical-interests", "intro")
		current = self.data.technical_interests or TechnicalInterests()
		detected = detect_technical_interests(text)
		merged = list(dict.fromkeys(current.interest_areas + detected))
		self.data.technical_interests = current.model_copy(update={
			"interest_areas": merged,
			"specific_interests": text if not current.specific_interests else f"{current.specific_interests}\n{text}",
		})
		self.context.user_responses["technical-interests"] = text
		primary = detected[0] if detected else None
		input_class = primary if primary in ("machine-learning", "cybersecurity", "data-science") else "other"
		response = lookup("technical-interests", input_class)
		response.follow_up, response.options = technical_follow_up(merged)
		new_areas = [a for a in detected if a not in current.interest_areas]
		if detected and not new_areas:
			response.xp_reward = None
		else:
			response = self._once("technical-interests:" + ",".join(new_areas or ["other"]), response)
		if len(merged) >= 2:
			response.next_phase = Phase.COGNITIVE_ASSESSMENT
		return response

	def _cognitive(self) -> NovaResponse:
		if self.data.cognitive is None:
			return lookup("cognitive-assessment", "pending")
		return self._once("cognitive-assessment:recorded", lookup("cognitive-assessment", cognitive_band(self.data.cognitive)))

	def _personality(self) -> NovaResponse:
		profile = self.data.personality_profile
		if profile is None:
			return lookup("personality-assessment", "pending")
		jung = (profile.jung_type or "").upper()
		if ("personality-assessment", jung) in RESPONSES:
			response = lookup("personality-assessment", jung)
		else:
			response = lookup("personality-assessment", "default")
			if jung:
				response.message = f"{jung}, what a unique personality type! 🌟 Your combination of traits is going to bring something special to the tech world! ✨"
		return self._once("personality-assessment:recorded", response)

	def _learning(self) -> NovaResponse:
		if self.data.learning_style is None:
			return lookup("learning-preferences", "pending")
		return self._once("learning-preferences:recorded", lookup("learning-preferences", "recorded"))

	def _advance(self, response: NovaResponse, *, from_phase: Optional[Phase] = None) -> NovaResponse:
		if response.next_phase is None:
			return response
		leaving = from_phase or self.context.current_phase
		if leaving not in self.context.completed_phases:
			self.context.completed_phases.append(leaving)
		# results arriving out of order must never move the conversation backwards
		if PHASE_ORDER.index(response.next_phase) > PHASE_ORDER.index(self.context.current_phase):
			self.context.current_phase = response.next_phase
		return response
