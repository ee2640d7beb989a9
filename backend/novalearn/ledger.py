"""Persistence side of the gamification engine.

The engine in gamification.py only computes; these helpers load the stored
profile, run the engine, and write the result back together with an
``xp_transactions`` row for every award. Callers commit.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from .assessment import AssessmentData
from .gamification import (
	ACHIEVEMENTS_BY_ID,
	Achievement,
	GamificationProfile,
	XPGain,
	award_xp,
	check_achievements,
	get_streak_bonus,
	update_streak,
)
from .models import GamificationProfileRow, UserAchievement, XpTransaction

logger = logging.getLogger(__name__)


def _get_or_create_row(db: Session, user_id: str) -> GamificationProfileRow:
	row = db.get(GamificationProfileRow, user_id)
	if row is None:
		row = GamificationProfileRow(user_id=user_id, xp=0, total_xp=0, current_level=1, current_streak=0, longest_streak=0)
		db.add(row)
		db.flush()
	return row


def load_profile(db: Session, user_id: str) -> GamificationProfile:
	row = _get_or_create_row(db, user_id)
	achievements: List[Achievement] = []
	for ua in db.query(UserAchievement).filter(UserAchievement.user_id == user_id).all():
		entry = ACHIEVEMENTS_BY_ID.get(ua.achievement_id)
		if entry is None:
			continue
		achievements.append(entry.to_achievement().model_copy(update={"unlocked": True, "unlocked_at": ua.unlocked_at}))
	try:
		badges = json.loads(row.badges_json) if row.badges_json else []
	except ValueError:
		badges = []
	return GamificationProfile(
		level=row.current_level,
		xp=row.xp,
		total_xp=row.total_xp,
		achievements=achievements,
		streak_days=row.current_streak,
		longest_streak=row.longest_streak,
		last_activity=row.last_activity_date,
		last_streak_date=row.last_streak_date,
		badges=badges,
	)


def _store_profile(db: Session, user_id: str, profile: GamificationProfile) -> None:
	row = _get_or_create_row(db, user_id)
	row.xp = profile.xp
	row.total_xp = profile.total_xp
	row.current_level = profile.level
	row.current_streak = profile.streak_days
	row.longest_streak = profile.longest_streak
	row.last_activity_date = profile.last_activity
	row.last_streak_date = profile.last_streak_date
	row.badges_json = json.dumps(profile.badges) if profile.badges else None


def _log_transaction(
	db: Session,
	user_id: str,
	gain: XPGain,
	reference_id: Optional[str],
	reference_type: Optional[str],
) -> XpTransaction:
	tx = XpTransaction(
		user_id=user_id,
		amount=gain.amount,
		reason=gain.reason,
		category=gain.category,
		reference_id=reference_id,
		reference_type=reference_type,
	)
	db.add(tx)
	return tx


def add_xp_transaction(
	db: Session,
	user_id: str,
	amount: int,
	reason: str,
	reference_id: Optional[str] = None,
	reference_type: Optional[str] = None,
	category: str = "bonus",
	now: Optional[datetime] = None,
) -> GamificationProfile:
	gain = XPGain(amount=amount, reason=reason, category=category)
	profile = award_xp(load_profile(db, user_id), gain, now=now)
	_log_transaction(db, user_id, gain, reference_id, reference_type)
	_store_profile(db, user_id, profile)
	db.flush()
	logger.info("Awarded %d XP to %s (%s)", amount, user_id, reason)
	return profile


def sync_achievements(
	db: Session,
	user_id: str,
	assessment: Optional[AssessmentData],
) -> Tuple[GamificationProfile, List[Achievement]]:
	"""Unlock whatever the assessment now satisfies and log one transaction per reward."""
	now = datetime.utcnow()
	profile, unlocked = check_achievements(load_profile(db, user_id), assessment, now=now)
	for achievement in unlocked:
		db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id, unlocked_at=now))
		_log_transaction(
			db,
			user_id,
			XPGain(amount=achievement.xp, reason=f"Achievement unlocked: {achievement.title}", category="achievement"),
			achievement.id,
			"achievement",
		)
	if unlocked:
		_store_profile(db, user_id, profile)
		db.flush()
		logger.info("User %s unlocked %s", user_id, ", ".join(a.id for a in unlocked))
	return profile, unlocked


def record_activity(db: Session, user_id: str, now: Optional[datetime] = None) -> GamificationProfile:
	"""Advance the daily streak and pay the streak bonus once per new day."""
	now = now or datetime.utcnow()
	before = load_profile(db, user_id)
	profile = update_streak(before, now)
	new_day = before.last_streak_date != now.date()
	_store_profile(db, user_id, profile)
	if new_day:
		bonus = get_streak_bonus(profile.streak_days)
		if bonus:
			profile = add_xp_transaction(
				db, user_id, bonus, f"{profile.streak_days}-day streak", reference_type="streak", category="streak", now=now,
			)
	db.flush()
	return profile
