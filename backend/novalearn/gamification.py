"""XP, levels, streaks and achievements.

Every function here is pure: it takes a GamificationProfile and returns a new
one. Persisting the result is the caller's job (see ledger.py).
"""
from __future__ import annotations
import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .assessment import AssessmentData


XP_THRESHOLDS: List[int] = [
	0, 100, 250, 450, 700, 1000, 1400, 1850, 2350, 2900, 3500, 4150, 4850, 5600, 6400, 7250
]
MAX_LEVEL = len(XP_THRESHOLDS)

XPCategory = Literal["assessment", "learning", "achievement", "streak", "bonus"]


class Achievement(BaseModel):
	id: str
	title: str
	description: str
	icon: str
	xp: int
	unlocked: bool = False
	unlocked_at: Optional[datetime] = None


class GamificationProfile(BaseModel):
	level: int = 1
	xp: int = 0
	total_xp: int = 0
	achievements: List[Achievement] = Field(default_factory=list)
	streak_days: int = 0
	longest_streak: int = 0
	last_activity: Optional[datetime] = None
	# day of the last record_activity; xp awards never move it
	last_streak_date: Optional[date] = None
	badges: List[str] = Field(default_factory=list)

	def is_unlocked(self, achievement_id: str) -> bool:
		return any(a.id == achievement_id and a.unlocked for a in self.achievements)


class XPGain(BaseModel):
	amount: int
	reason: str
	category: XPCategory = "bonus"


@dataclass(frozen=True)
class CatalogEntry:
	id: str
	title: str
	description: str
	icon: str
	xp: int
	condition: Callable[[AssessmentData, GamificationProfile], bool]

	def to_achievement(self) -> Achievement:
		return Achievement(id=self.id, title=self.title, description=self.description, icon=self.icon, xp=self.xp)


def _all_optional_fields_filled(data: AssessmentData, _: GamificationProfile) -> bool:
	basic = data.basic_info
	goals = data.goals
	personality = data.personality_profile
	optional = [
		basic.cultural_background if basic else None,
		basic.preferred_language if basic else None,
		goals.work_environment if goals else None,
		goals.salary_expectations if goals else None,
		personality is not None and len(personality.motivation_drivers) >= 3,
	]
	return len([v for v in optional if v]) >= 3


def _detailed_responses(data: AssessmentData, _: GamificationProfile) -> bool:
	goals = data.goals
	interests = data.technical_interests
	texts = [
		goals.career_goals if goals else None,
		goals.personal_motivation if goals else None,
		interests.specific_interests if interests else None,
	]
	return len([t for t in texts if t and len(t) > 50]) >= 2


def _score_at_least(field: str, threshold: float) -> Callable[[AssessmentData, GamificationProfile], bool]:
	def check(data: AssessmentData, _: GamificationProfile) -> bool:
		value = getattr(data.cognitive, field, None) if data.cognitive else None
		return value is not None and value >= threshold
	return check


ACHIEVEMENTS: List[CatalogEntry] = [
	CatalogEntry(
		"first-steps", "First Steps", "Started your career assessment journey", "🚀", 25,
		lambda data, profile: True,
	),
	CatalogEntry(
		"deep-thinker", "Deep Thinker", "Completed personality assessment thoroughly", "🧠", 50,
		lambda data, profile: data.personality_profile is not None and data.personality_profile.filled_fields() >= 3,
	),
	CatalogEntry(
		"tech-explorer", "Tech Explorer", "Explored multiple technical interest areas", "💻", 40,
		lambda data, profile: data.technical_interests is not None and len(data.technical_interests.interest_areas) >= 3,
	),
	CatalogEntry(
		"logic-master", "Logic Master", "Scored 85+ on logic assessment", "🔍", 75,
		_score_at_least("logical_reasoning", 85),
	),
	CatalogEntry(
		"creative-genius", "Creative Genius", "Showed exceptional creativity in challenges", "🎨", 60,
		_score_at_least("creativity", 80),
	),
	CatalogEntry(
		"goal-crusher", "Goal Crusher", "Set comprehensive career goals", "🎯", 45,
		lambda data, profile: data.goals is not None and bool(data.goals.career_goals) and bool(data.goals.timeline),
	),
	CatalogEntry(
		"assessment-champion", "Assessment Champion", "Completed full career assessment", "🏆", 100,
		lambda data, profile: all(
			part is not None
			for part in (data.basic_info, data.technical_interests, data.learning_style, data.personality_profile)
		),
	),
	CatalogEntry(
		"perfectionist", "Perfectionist", "Answered all optional questions", "⭐", 80,
		_all_optional_fields_filled,
	),
	CatalogEntry(
		"speed-demon", "Speed Demon", "Completed assessment in under 15 minutes", "⚡", 65,
		lambda data, profile: bool(data.completion_time_ms) and data.completion_time_ms < 15 * 60 * 1000,
	),
	CatalogEntry(
		"thoughtful-responder", "Thoughtful Responder", "Provided detailed responses to open questions", "💭", 55,
		_detailed_responses,
	),
]

ACHIEVEMENTS_BY_ID = {entry.id: entry for entry in ACHIEVEMENTS}

MOTIVATIONAL_MESSAGES = [
	"You're on fire! 🔥 Level {level} and climbing!",
	"Amazing progress! You've earned {total_xp} XP so far!",
	"Keep it up, champion! Your dedication is inspiring! 💪",
	"You're building an incredible career foundation! 🏗️",
	"Every step forward is a step toward your dream career! ✨",
	"Your future self will thank you for this effort! 🚀",
	"You're not just learning, you're transforming! 🦋",
	"Excellence is a habit, and you're building it! 🏆",
]


def calculate_level(total_xp: int) -> int:
	for i in range(MAX_LEVEL - 1, -1, -1):
		if total_xp >= XP_THRESHOLDS[i]:
			return i + 1
	return 1


def xp_for_next_level(level: int) -> int:
	if level >= MAX_LEVEL:
		return XP_THRESHOLDS[-1]
	return XP_THRESHOLDS[max(level, 1)]


def get_progress_to_next_level(total_xp: int) -> dict:
	"""Position of total_xp inside its level band as {current, needed, percentage}."""
	level = calculate_level(total_xp)
	band_start = XP_THRESHOLDS[level - 1]
	band_end = xp_for_next_level(level)
	current = max(total_xp - band_start, 0)
	needed = band_end - band_start
	if needed <= 0:
		return {"current": current, "needed": 0, "percentage": 100.0}
	percentage = min(current / needed * 100, 100.0)
	return {"current": current, "needed": needed, "percentage": round(percentage, 2)}


def award_xp(profile: GamificationProfile, gain: XPGain, *, now: Optional[datetime] = None) -> GamificationProfile:
	new_total = profile.total_xp + gain.amount
	return profile.model_copy(update={
		"xp": profile.xp + gain.amount,
		"total_xp": new_total,
		"level": calculate_level(new_total),
		"last_activity": now or datetime.utcnow(),
	})


def check_achievements(
	profile: GamificationProfile,
	assessment: Optional[AssessmentData],
	*,
	now: Optional[datetime] = None,
) -> Tuple[GamificationProfile, List[Achievement]]:
	"""Unlock every catalog achievement whose condition holds, in catalog order.

	Already-unlocked achievements are skipped, so calling this twice with the
	same data never awards anything the second time.
	"""
	now = now or datetime.utcnow()
	data = assessment or AssessmentData()
	achievements = [a.model_copy() for a in profile.achievements]
	unlocked: List[Achievement] = []

	for entry in ACHIEVEMENTS:
		index = next((i for i, a in enumerate(achievements) if a.id == entry.id), None)
		if index is not None and achievements[index].unlocked:
			continue
		try:
			passed = bool(entry.condition(data, profile))
		except (AttributeError, TypeError, ValueError):
			passed = False
		if not passed:
			continue
		achievement = entry.to_achievement().model_copy(update={"unlocked": True, "unlocked_at": now})
		if index is None:
			achievements.append(achievement)
		else:
			achievements[index] = achievement
		unlocked.append(achievement)

	updated = profile.model_copy(update={"achievements": achievements})
	for achievement in unlocked:
		updated = award_xp(updated, XPGain(
			amount=achievement.xp,
			reason=f"Achievement unlocked: {achievement.title}",
			category="achievement",
		), now=now)
	return updated, unlocked


def update_streak(profile: GamificationProfile, now: Optional[datetime] = None) -> GamificationProfile:
	now = now or datetime.utcnow()
	last = profile.last_streak_date
	if last is None:
		streak = 1
	else:
		gap = (now.date() - last).days
		if gap <= 0:
			streak = max(profile.streak_days, 1)
		elif gap == 1:
			streak = profile.streak_days + 1
		else:
			streak = 1
	return profile.model_copy(update={
		"streak_days": streak,
		"longest_streak": max(profile.longest_streak, streak),
		"last_activity": now,
		"last_streak_date": now.date(),
	})


def get_streak_bonus(streak_days: int) -> int:
	if streak_days >= 7:
		return 50
	if streak_days >= 3:
		return 25
	if streak_days >= 1:
		return 10
	return 0


def generate_motivational_message(profile: GamificationProfile, rng: Optional[random.Random] = None) -> str:
	template = (rng or random).choice(MOTIVATIONAL_MESSAGES)
	return template.format(level=profile.level, total_xp=profile.total_xp)


def initialize_profile() -> GamificationProfile:
	return GamificationProfile(last_activity=datetime.utcnow())


def achievement_catalog(profile: Optional[GamificationProfile] = None) -> List[Achievement]:
	"""The full catalog with the profile's unlock state merged in."""
	owned = {a.id: a for a in (profile.achievements if profile else [])}
	return [owned.get(entry.id) or entry.to_achievement() for entry in ACHIEVEMENTS]
