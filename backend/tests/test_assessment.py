import pytest

from novalearn.assessment import assessment_from_payload
from novalearn.models import (
	CareerRecommendation,
	CognitiveAssessment,
	LearningPreference,
	LearningRoadmap,
	PersonalityAssessment,
	RoadmapMilestone,
	UserAchievement,
)


@pytest.fixture
def analysis_payload():
	return {
		"cognitive_assessment": {
			"scores": {"overall": 78, "logical_reasoning": 88, "numerical_reasoning": 74, "verbal_reasoning": 45},
			"completion_time": 600,
		},
		"personality_assessment": {
			"jung_type": "INTJ",
			"big_five_scores": {"openness": 80, "conscientiousness": 70, "extraversion": 35},
			"key_traits": ["analytical", "independent"],
			"leadership_potential": 80,
		},
		"learning_preferences": {
			"learning_style": "visual",
			"pace_preference": "moderate",
			"preferred_session_length": 45,
		},
		"goals": {"career_goals": "Become a data scientist", "timeline": "3 years"},
	}


def test_analyze_with_fallback_content(client, db_session, auth_headers, student_profile, analysis_payload):
	r = client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["success"] is True
	data = body["data"]

	assert data["generation_status"] == {"cognitive_profile": "fallback", "career_recommendations": "fallback"}
	assert data["cognitive_profile"]["overall_iq"] == 78
	assert data["cognitive_profile"]["cognitive_strengths"] == ["Logical Reasoning", "Numerical Reasoning"]
	assert data["cognitive_profile"]["cognitive_weaknesses"] == ["Verbal Reasoning"]
	assert [c["title"] for c in data["career_recommendations"]] == ["Software Developer", "Data Analyst"]
	assert data["overall_fit_score"] == 79
	assert data["next_steps"] == ["Learn programming languages", "Build portfolio projects", "Gain practical experience"]
	assert data["learning_recommendations"]["study_schedule"] == "45 minute sessions"
	assert data["personality_profile"]["jung_type"] == "INTJ"

	gamification = data["gamification"]
	unlocked = [a["id"] for a in gamification["achievements_unlocked"]]
	assert unlocked == ["first-steps", "deep-thinker", "logic-master", "goal-crusher", "speed-demon"]
	assert gamification["xp_awarded"] == 150 + 25 + 50 + 75 + 45 + 65
	# 10 streak + 150 completion + 260 from achievements
	assert gamification["total_xp"] == 420
	assert gamification["level"] == 3


def test_analyze_persists_results(client, db_session, auth_headers, student_profile, analysis_payload):
	r = client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	roadmap_id = r.json()["data"]["roadmap_id"]
	db_session.expire_all()

	cognitive = db_session.query(CognitiveAssessment).one()
	assert cognitive.overall_score == 78
	assert cognitive.logical_reasoning_score == 88
	assert cognitive.completion_time == 600
	assert db_session.query(PersonalityAssessment).one().leadership_potential == 80
	assert db_session.query(LearningPreference).one().preferred_session_length == 45

	careers = db_session.query(CareerRecommendation).all()
	assert len(careers) == 2
	assert all(c.is_fallback and c.is_active for c in careers)

	roadmap = db_session.get(LearningRoadmap, roadmap_id)
	assert roadmap.target_career == "Software Developer"
	assert roadmap.total_milestones == 3
	milestones = db_session.query(RoadmapMilestone).filter_by(roadmap_id=roadmap_id).order_by(RoadmapMilestone.order_index).all()
	assert [m.title for m in milestones] == ["Learn programming languages", "Build portfolio projects", "Gain practical experience"]
	assert db_session.query(UserAchievement).count() == 5


def test_reanalysis_supersedes_careers_and_keeps_achievements(client, db_session, auth_headers, student_profile, analysis_payload):
	client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	r = client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	data = r.json()["data"]
	assert data["gamification"]["achievements_unlocked"] == []
	assert data["gamification"]["xp_awarded"] == 150

	db_session.expire_all()
	assert db_session.query(CareerRecommendation).count() == 4
	assert db_session.query(CareerRecommendation).filter_by(is_active=True).count() == 2


def test_analyze_with_model(client, auth_headers, student_profile, analysis_payload, fake_llm):
	fake_llm.generate_json.side_effect = [
		{
			"overall_iq": 81,
			"cognitive_strengths": ["Pattern recognition"],
			"cognitive_weaknesses": ["Verbal fluency"],
			"learning_capacity": "High",
			"problem_solving_style": "Systematic",
		},
		[
			{
				"title": "Data Scientist",
				"fit_score": 92,
				"reasoning": "Strong numbers and curiosity",
				"timeline_estimate": "3-4 years",
				"required_steps": ["Learn Python", "Study statistics"],
				"skill_gaps": ["SQL"],
			},
		],
	]
	r = client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	assert r.status_code == 200, r.text
	data = r.json()["data"]
	assert data["generation_status"] == {"cognitive_profile": "generated", "career_recommendations": "generated"}
	assert data["cognitive_profile"]["cognitive_strengths"] == ["Pattern recognition"]
	assert data["career_recommendations"][0]["title"] == "Data Scientist"
	assert data["next_steps"] == ["Learn Python", "Study statistics"]
	assert data["overall_fit_score"] == 80
	assert fake_llm.generate_json.await_count == 2


def test_analyze_without_cognitive_section(client, auth_headers, student_profile):
	r = client.post("/api/v1/assessment/analyze", json={"goals": {"career_goals": "Nurse"}}, headers=auth_headers)
	assert r.status_code == 200, r.text
	data = r.json()["data"]
	assert data["cognitive_profile"] is None
	assert data["generation_status"]["cognitive_profile"] is None
	assert data["overall_fit_score"] == 70


def test_analyze_requires_profile(client, auth_headers, analysis_payload):
	r = client.post("/api/v1/assessment/analyze", json=analysis_payload, headers=auth_headers)
	assert r.status_code == 404
	assert r.json()["detail"] == "User profile not found"


def test_analyze_tolerates_mistyped_fields(client, db_session, auth_headers, student_profile):
	payload = {
		"cognitive_assessment": {"scores": "high", "completion_time": "soon"},
		"personality_assessment": {"jung_type": 7, "big_five_scores": [1, 2], "work_style": {"mode": "remote"}},
		"learning_preferences": {"learning_style": {"kind": "visual"}, "preferred_content_format": 3},
	}
	r = client.post("/api/v1/assessment/analyze", json=payload, headers=auth_headers)
	assert r.status_code == 200, r.text

	db_session.expire_all()
	personality = db_session.query(PersonalityAssessment).filter_by(user_id="alice").one()
	assert personality.jung_type == "7"
	assert personality.work_style is None
	learning = db_session.query(LearningPreference).filter_by(user_id="alice").one()
	assert learning.learning_style is None


def test_payload_mapper_drops_values_of_the_wrong_shape():
	data = assessment_from_payload({
		"personality_assessment": {"jung_type": 7, "key_traits": "curious", "big_five_scores": "n/a"},
		"learning_preferences": {"pace_preference": ["fast"], "preferred_content_format": ["video", 2]},
	})
	assert data.personality_profile.jung_type == "7"
	assert data.personality_profile.traits == []
	assert data.personality_profile.openness is None
	assert data.learning_style.pace is None
	assert data.learning_style.preferred_format == "video, 2"
