from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, Date, String, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from .db import Base


def _uuid() -> str:
	return uuid.uuid4().hex


class User(Base):
	__tablename__ = "users"
	# Primary key is the identity-provider subject (username for locally registered users)
	id = Column(String(128), primary_key=True, index=True)
	email = Column(String(256), nullable=True)
	first_name = Column(String(128), nullable=True)
	last_name = Column(String(128), nullable=True)
	# Only set for users registered through /auth/register
	password_hash = Column(String(256), nullable=True)
	current_role = Column(String(32), default="student", nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserRole(Base):
	__tablename__ = "user_roles"
	__table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	role = Column(String(32), nullable=False)
	preferences_json = Column(Text, nullable=True)
	last_accessed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserProfile(Base):
	__tablename__ = "user_profiles"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, unique=True)
	date_of_birth = Column(DateTime, nullable=True)
	location = Column(String(256), nullable=True)
	# 'primary', 'high_school', 'college', 'professional'
	education_level = Column(String(64), nullable=True)
	current_institution = Column(String(256), nullable=True)
	field_of_study = Column(String(256), nullable=True)
	career_goals = Column(Text, nullable=True)
	learning_objectives_json = Column(Text, nullable=True)
	time_availability = Column(Integer, nullable=True)  # minutes per day
	preferred_study_time = Column(String(32), nullable=True)  # morning / afternoon / evening / night
	is_profile_complete = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CognitiveAssessment(Base):
	__tablename__ = "cognitive_assessments"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	overall_score = Column(Integer, default=0, nullable=False)
	logical_reasoning_score = Column(Integer, default=0, nullable=False)
	numerical_reasoning_score = Column(Integer, default=0, nullable=False)
	verbal_reasoning_score = Column(Integer, default=0, nullable=False)
	spatial_reasoning_score = Column(Integer, default=0, nullable=False)
	working_memory_score = Column(Integer, default=0, nullable=False)
	processing_speed_score = Column(Integer, default=0, nullable=False)
	detailed_results_json = Column(Text, nullable=True)
	completion_time = Column(Integer, default=0, nullable=False)  # seconds
	is_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PersonalityAssessment(Base):
	__tablename__ = "personality_assessments"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	jung_type = Column(String(8), nullable=True)
	jung_description = Column(Text, nullable=True)
	big_five_json = Column(Text, nullable=True)
	key_traits_json = Column(Text, nullable=True)
	work_style = Column(String(256), nullable=True)
	communication_style = Column(String(256), nullable=True)
	leadership_potential = Column(Integer, default=0, nullable=False)
	team_compatibility = Column(Integer, default=0, nullable=False)
	detailed_results_json = Column(Text, nullable=True)
	is_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class LearningPreference(Base):
	__tablename__ = "learning_preferences"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	learning_style = Column(String(32), nullable=True)  # visual / auditory / kinesthetic / reading
	preferred_content_format_json = Column(Text, nullable=True)
	difficulty_preference = Column(String(32), nullable=True)
	pace_preference = Column(String(32), nullable=True)
	feedback_preference = Column(String(32), nullable=True)
	motivational_factors_json = Column(Text, nullable=True)
	distraction_level = Column(Integer, default=5, nullable=False)  # 1-10
	attention_span = Column(Integer, default=30, nullable=False)  # minutes
	preferred_session_length = Column(Integer, default=30, nullable=False)  # minutes
	is_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class EducationLevel(Base):
	__tablename__ = "education_levels"
	id = Column(String(32), primary_key=True, default=_uuid)
	name = Column(String(64), nullable=False, unique=True)  # 'o_level', 'a_level'
	display_name = Column(String(128), nullable=False)
	description = Column(Text, nullable=True)
	is_active = Column(Boolean, default=True, nullable=False)


class Subject(Base):
	__tablename__ = "subjects"
	id = Column(String(32), primary_key=True, default=_uuid)
	name = Column(String(64), nullable=False, unique=True)
	display_name = Column(String(128), nullable=False)
	description = Column(Text, nullable=True)
	category = Column(String(64), nullable=True)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Topic(Base):
	__tablename__ = "topics"
	id = Column(String(32), primary_key=True, default=_uuid)
	name = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	subject_id = Column(String(32), ForeignKey("subjects.id"), nullable=False, index=True)
	education_level_id = Column(String(32), ForeignKey("education_levels.id"), nullable=False, index=True)
	learning_objectives_json = Column(Text, nullable=True)
	difficulty = Column(Integer, nullable=True)  # 1-10
	estimated_duration = Column(Integer, nullable=True)  # minutes
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Course(Base):
	__tablename__ = "courses"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	title = Column(String(512), nullable=False)
	description = Column(Text, nullable=True)
	subject_id = Column(String(32), ForeignKey("subjects.id"), nullable=True)
	topic_id = Column(String(32), ForeignKey("topics.id"), nullable=True)
	education_level_id = Column(String(32), ForeignKey("education_levels.id"), nullable=True)
	difficulty = Column(Integer, nullable=True)
	estimated_duration = Column(Integer, nullable=True)
	content_type = Column(String(32), nullable=True)  # study / assessment / hybrid
	is_personalized = Column(Boolean, default=True, nullable=False)
	generation_prompt = Column(Text, nullable=True)
	generation_status = Column(String(16), default="generated", nullable=False)
	status = Column(String(16), default="draft", nullable=False)
	progress_percentage = Column(Integer, default=0, nullable=False)
	# set for courses authored in the teacher portal
	teacher_id = Column(String(128), ForeignKey("users.id"), nullable=True, index=True)
	examination_board = Column(String(64), nullable=True)
	target_region = Column(String(128), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CourseModule(Base):
	__tablename__ = "course_modules"
	id = Column(String(32), primary_key=True, default=_uuid)
	course_id = Column(String(32), ForeignKey("courses.id"), nullable=False, index=True)
	title = Column(String(512), nullable=False)
	content = Column(Text, nullable=True)
	content_type = Column(String(32), nullable=True)  # text / interactive / quiz / video-script
	order_index = Column(Integer, nullable=False)
	duration = Column(Integer, nullable=True)
	difficulty = Column(Integer, nullable=True)
	description = Column(Text, nullable=True)
	notes = Column(Text, nullable=True)
	learning_objectives_json = Column(Text, nullable=True)
	is_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	# {"coreContent": ..., "videoScript": ...} keyed by content kind
	content_data_json = Column(Text, nullable=True)
	generation_metadata_json = Column(Text, nullable=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=True)


class ContentVersion(Base):
	__tablename__ = "content_versions"
	__table_args__ = (UniqueConstraint("module_id", "content_type", "version_number", name="uq_content_version"),)
	id = Column(String(32), primary_key=True, default=_uuid)
	module_id = Column(String(32), ForeignKey("course_modules.id"), nullable=False, index=True)
	content_type = Column(String(32), nullable=False)  # core / bite-sized / video-script / image-prompts / voice-script / assessments
	version_number = Column(Integer, nullable=False)
	content = Column(Text, nullable=False)  # JSON
	creation_method = Column(String(16), default="manual", nullable=False)  # ai / manual / hybrid
	summary = Column(Text, nullable=True)
	is_published = Column(Boolean, default=False, nullable=False)
	created_by = Column(String(128), ForeignKey("users.id"), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class CareerRecommendation(Base):
	__tablename__ = "career_recommendations"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	title = Column(String(256), nullable=False)
	fit_score = Column(Integer, default=0, nullable=False)  # 0-100
	reasoning = Column(Text, nullable=True)
	timeline_estimate = Column(String(128), nullable=True)
	required_steps_json = Column(Text, nullable=True)
	skill_gaps_json = Column(Text, nullable=True)
	is_fallback = Column(Boolean, default=False, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LearningRoadmap(Base):
	__tablename__ = "learning_roadmaps"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	title = Column(String(512), nullable=False)
	description = Column(Text, nullable=True)
	current_education_level = Column(String(64), nullable=True)
	target_career = Column(String(256), nullable=True)
	total_milestones = Column(Integer, default=0, nullable=False)
	completed_milestones = Column(Integer, default=0, nullable=False)
	progress_percentage = Column(Integer, default=0, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RoadmapMilestone(Base):
	__tablename__ = "roadmap_milestones"
	id = Column(String(32), primary_key=True, default=_uuid)
	roadmap_id = Column(String(32), ForeignKey("learning_roadmaps.id"), nullable=False, index=True)
	title = Column(String(512), nullable=False)
	order_index = Column(Integer, nullable=False)
	is_completed = Column(Boolean, default=False, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class GamificationProfileRow(Base):
	__tablename__ = "gamification_profiles"
	user_id = Column(String(128), ForeignKey("users.id"), primary_key=True)
	xp = Column(Integer, default=0, nullable=False)
	total_xp = Column(Integer, default=0, nullable=False)
	current_level = Column(Integer, default=1, nullable=False)
	current_streak = Column(Integer, default=0, nullable=False)
	longest_streak = Column(Integer, default=0, nullable=False)
	badges_json = Column(Text, nullable=True)
	last_activity_date = Column(DateTime, nullable=True)
	last_streak_date = Column(Date, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserAchievement(Base):
	__tablename__ = "user_achievements"
	__table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	# Id from the static catalog in gamification.py
	achievement_id = Column(String(64), nullable=False)
	unlocked_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	is_notified = Column(Boolean, default=False, nullable=False)


class XpTransaction(Base):
	__tablename__ = "xp_transactions"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	amount = Column(Integer, nullable=False)
	reason = Column(String(256), nullable=False)
	category = Column(String(32), nullable=True)  # assessment / learning / achievement / streak / bonus
	reference_id = Column(String(64), nullable=True)
	reference_type = Column(String(32), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AssessmentSession(Base):
	__tablename__ = "assessment_sessions"
	id = Column(String(32), primary_key=True, default=_uuid)
	user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
	# ConversationContext / AssessmentData snapshots
	context_json = Column(Text, nullable=False)
	assessment_json = Column(Text, nullable=False)
	is_completed = Column(Boolean, default=False, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
