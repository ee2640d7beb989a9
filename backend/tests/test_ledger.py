from datetime import datetime, timedelta

from novalearn import ledger
from novalearn.assessment import AssessmentData, PersonalityProfile
from novalearn.models import GamificationProfileRow, UserAchievement, XpTransaction


def _transactions(db, user_id):
	return db.query(XpTransaction).filter(XpTransaction.user_id == user_id).all()


def test_load_profile_creates_empty_row(db_session, user):
	profile = ledger.load_profile(db_session, user.id)
	assert profile.level == 1
	assert profile.total_xp == 0
	assert db_session.get(GamificationProfileRow, user.id) is not None


def test_add_xp_transaction_logs_and_levels(db_session, user):
	ledger.add_xp_transaction(db_session, user.id, 100, "course_generation", reference_id="c1", reference_type="course", category="learning")
	profile = ledger.add_xp_transaction(db_session, user.id, 200, "assessment_completion", category="assessment")
	db_session.commit()

	assert profile.total_xp == 300
	assert profile.level == 3
	row = db_session.get(GamificationProfileRow, user.id)
	assert row.total_xp == 300
	assert row.current_level == 3
	txs = _transactions(db_session, user.id)
	assert sorted(t.amount for t in txs) == [100, 200]
	course_tx = next(t for t in txs if t.reason == "course_generation")
	assert course_tx.reference_id == "c1"
	assert course_tx.reference_type == "course"
	assert course_tx.category == "learning"


def test_first_activity_pays_streak_bonus_once_per_day(db_session, user):
	day = datetime(2026, 4, 6, 8, 0)
	profile = ledger.record_activity(db_session, user.id, now=day)
	assert profile.streak_days == 1
	assert profile.total_xp == 10

	profile = ledger.record_activity(db_session, user.id, now=day + timedelta(hours=3))
	assert profile.total_xp == 10

	profile = ledger.record_activity(db_session, user.id, now=day + timedelta(days=1))
	assert profile.streak_days == 2
	assert profile.total_xp == 20

	profile = ledger.record_activity(db_session, user.id, now=day + timedelta(days=2))
	assert profile.streak_days == 3
	assert profile.total_xp == 45
	db_session.commit()

	streak_txs = [t for t in _transactions(db_session, user.id) if t.category == "streak"]
	assert sorted(t.reason for t in streak_txs) == ["1-day streak", "2-day streak", "3-day streak"]


def test_activity_after_gap_resets_streak(db_session, user):
	day = datetime(2026, 4, 6, 8, 0)
	ledger.record_activity(db_session, user.id, now=day)
	ledger.record_activity(db_session, user.id, now=day + timedelta(days=1))
	profile = ledger.record_activity(db_session, user.id, now=day + timedelta(days=4))
	assert profile.streak_days == 1
	assert profile.longest_streak == 2


def test_xp_award_earlier_in_the_day_keeps_streak_bonus(db_session, user):
	day = datetime(2026, 4, 6, 8, 0)
	ledger.record_activity(db_session, user.id, now=day)
	ledger.add_xp_transaction(db_session, user.id, 100, "profile_completion", now=day + timedelta(days=1))
	profile = ledger.record_activity(db_session, user.id, now=day + timedelta(days=1, hours=1))
	db_session.commit()

	assert profile.streak_days == 2
	assert profile.total_xp == 120
	row = db_session.get(GamificationProfileRow, user.id)
	assert row.last_streak_date == (day + timedelta(days=1)).date()


def test_sync_achievements_persists_unlocks(db_session, user):
	data = AssessmentData(personality_profile=PersonalityProfile(jung_type="INTJ", openness=70, extraversion=30))
	profile, unlocked = ledger.sync_achievements(db_session, user.id, data)
	db_session.commit()

	assert {a.id for a in unlocked} == {"first-steps", "deep-thinker"}
	assert profile.total_xp == 75
	stored = {ua.achievement_id for ua in db_session.query(UserAchievement).filter_by(user_id=user.id)}
	assert stored == {"first-steps", "deep-thinker"}
	achievement_txs = [t for t in _transactions(db_session, user.id) if t.category == "achievement"]
	assert len(achievement_txs) == 2
	assert all(t.reference_type == "achievement" for t in achievement_txs)


def test_sync_achievements_is_idempotent(db_session, user):
	ledger.sync_achievements(db_session, user.id, None)
	db_session.commit()
	profile, unlocked = ledger.sync_achievements(db_session, user.id, None)
	db_session.commit()
	assert unlocked == []
	assert profile.total_xp == 25
	assert profile.is_unlocked("first-steps")
