import pytest

from novalearn.models import ContentVersion, Course, CourseModule, User, UserRole
from novalearn.routers.auth import open_session


@pytest.fixture
def teacher_headers(db_session, user, auth_headers):
	db_session.add(UserRole(user_id=user.id, role="teacher"))
	db_session.commit()
	return auth_headers


def _course_payload(math, o_level, **overrides):
	payload = {
		"title": "Form 3 Quadratics",
		"description": "Quadratic equations for KCSE candidates",
		"subjectId": math.id,
		"educationLevelId": o_level.id,
		"region": "Kenya",
		"examinationBoard": "KNEC",
		"difficulty": 4,
		"modules": [
			{"title": "Factorising", "learningOutcomes": ["Factorise quadratics", " "], "estimatedDuration": 20},
			{"title": "The formula", "description": "Deriving and using the quadratic formula", "notes": "Bring calculators"},
		],
	}
	payload.update(overrides)
	return payload


def _create(client, headers, math_and_o_level, **overrides):
	r = client.post("/api/v1/teacher/courses", json=_course_payload(*math_and_o_level, **overrides), headers=headers)
	assert r.status_code == 201, r.text
	return r.json()["course"]


def _save(client, headers, module_id, kind, content, **extra):
	return client.post(
		f"/api/v1/teacher/modules/{module_id}/content/{kind}/save",
		json={"content": content, **extra},
		headers=headers,
	)


def test_portal_requires_teacher_role(client, auth_headers):
	r = client.get("/api/v1/teacher/courses", headers=auth_headers)
	assert r.status_code == 403
	assert r.json()["detail"] == "Teacher role required"
	assert client.get("/api/v1/teacher/courses").status_code == 401


def test_create_and_list_courses(client, teacher_headers, math_and_o_level):
	course = _create(client, teacher_headers, math_and_o_level)
	assert course["teacherId"] == "alice"
	assert course["examinationBoard"] == "KNEC"
	assert course["targetRegion"] == "Kenya"
	assert course["generationStatus"] == "manual"
	assert [m["title"] for m in course["modules"]] == ["Factorising", "The formula"]
	assert course["modules"][0]["learningObjectives"] == ["Factorise quadratics"]
	assert course["modules"][1]["notes"] == "Bring calculators"

	listed = client.get("/api/v1/teacher/courses", headers=teacher_headers).json()
	assert listed["success"] is True
	assert listed["total"] == 1
	assert listed["courses"][0]["id"] == course["id"]

	detail = client.get(f"/api/v1/teacher/courses/{course['id']}", headers=teacher_headers)
	assert detail.status_code == 200
	assert len(detail.json()["course"]["modules"]) == 2

	# authored courses stay out of the learner's own course list
	assert client.get("/api/v1/courses", headers=teacher_headers).json()["courses"] == []


def test_create_course_with_unknown_subject(client, teacher_headers, math_and_o_level):
	r = client.post(
		"/api/v1/teacher/courses",
		json=_course_payload(*math_and_o_level, subjectId="nope"),
		headers=teacher_headers,
	)
	assert r.status_code == 404
	assert r.json()["detail"] == "Subject not found"


def test_create_course_requires_examination_board(client, teacher_headers, math_and_o_level):
	payload = _course_payload(*math_and_o_level)
	del payload["examinationBoard"]
	assert client.post("/api/v1/teacher/courses", json=payload, headers=teacher_headers).status_code == 422


def test_update_and_delete_course(client, db_session, teacher_headers, math_and_o_level):
	course = _create(client, teacher_headers, math_and_o_level)
	module_id = course["modules"][0]["id"]
	_save(client, teacher_headers, module_id, "core", {"summary": "draft"})

	r = client.put(
		f"/api/v1/teacher/courses/{course['id']}",
		json={"title": "Form 3 Quadratics (revised)", "status": "published", "region": "Uganda", "description": None},
		headers=teacher_headers,
	)
	assert r.status_code == 200, r.text
	updated = r.json()["course"]
	assert updated["title"] == "Form 3 Quadratics (revised)"
	assert updated["status"] == "published"
	assert updated["targetRegion"] == "Uganda"
	assert updated["description"] is None
	assert updated["examinationBoard"] == "KNEC"

	assert client.put(f"/api/v1/teacher/courses/{course['id']}", json={"status": "live"}, headers=teacher_headers).status_code == 422

	r = client.delete(f"/api/v1/teacher/courses/{course['id']}", headers=teacher_headers)
	assert r.status_code == 204
	assert client.get(f"/api/v1/teacher/courses/{course['id']}", headers=teacher_headers).status_code == 404
	db_session.expire_all()
	assert db_session.query(Course).count() == 0
	assert db_session.query(CourseModule).count() == 0
	assert db_session.query(ContentVersion).count() == 0


def test_other_teachers_cannot_touch_a_course(client, db_session, teacher_headers, math_and_o_level):
	course = _create(client, teacher_headers, math_and_o_level)
	db_session.add(User(id="bob", current_role="teacher"))
	db_session.add(UserRole(user_id="bob", role="teacher"))
	db_session.commit()
	bob = {"Authorization": f"Bearer {open_session(db_session, 'bob')}"}

	assert client.get(f"/api/v1/teacher/courses/{course['id']}", headers=bob).status_code == 403
	assert client.delete(f"/api/v1/teacher/courses/{course['id']}", headers=bob).status_code == 403
	r = _save(client, bob, course["modules"][0]["id"], "core", "hijacked")
	assert r.status_code == 403
	assert client.get("/api/v1/teacher/courses", headers=bob).json()["total"] == 0


def test_saving_content_creates_versions(client, db_session, teacher_headers, math_and_o_level):
	module_id = _create(client, teacher_headers, math_and_o_level)["modules"][0]["id"]

	first = _save(client, teacher_headers, module_id, "core", {"summary": {"keyTakeaways": ["Find two numbers"]}})
	assert first.status_code == 200, first.text
	assert first.json()["version"]["versionNumber"] == 1
	second = _save(client, teacher_headers, module_id, "core", "Plain text rewrite", creationMethod="hybrid", changeSummary="Simplified wording")
	assert second.json()["version"]["versionNumber"] == 2
	# versions are numbered per content type
	other = _save(client, teacher_headers, module_id, "video-script", {"mainVideo": {"title": "Factorising"}})
	assert other.json()["version"]["versionNumber"] == 1

	r = client.get(f"/api/v1/teacher/modules/{module_id}/content/core/versions", headers=teacher_headers)
	assert r.status_code == 200
	versions = r.json()["versions"]
	assert [v["version"] for v in versions] == [2, 1]
	assert versions[0]["content"] == "Plain text rewrite"
	assert versions[0]["creationMethod"] == "hybrid"
	assert versions[0]["changeSummary"] == "Simplified wording"
	assert versions[0]["isCurrent"] is True
	assert versions[1]["content"] == {"summary": {"keyTakeaways": ["Find two numbers"]}}
	assert versions[1]["changeSummary"] == "manual content update"
	assert versions[1]["createdBy"] == "Alice Mwangi"

	course = client.get("/api/v1/teacher/courses", headers=teacher_headers).json()["courses"][0]
	data = course["modules"][0]["contentData"]
	assert data["coreContent"] == "Plain text rewrite"
	assert data["videoScript"] == {"mainVideo": {"title": "Factorising"}}


def test_unknown_content_type_and_module(client, teacher_headers, math_and_o_level):
	module_id = _create(client, teacher_headers, math_and_o_level)["modules"][0]["id"]
	r = _save(client, teacher_headers, module_id, "podcast", "x")
	assert r.status_code == 400
	assert r.json()["detail"].startswith("Invalid content type")
	assert client.get(f"/api/v1/teacher/modules/{module_id}/content/podcast/versions", headers=teacher_headers).status_code == 400
	assert _save(client, teacher_headers, "missing", "core", "x").status_code == 404


def test_generate_module_content_without_llm(client, teacher_headers, math_and_o_level):
	module_id = _create(client, teacher_headers, math_and_o_level)["modules"][0]["id"]
	r = client.post(
		f"/api/v1/teacher/modules/{module_id}/generate-content",
		json={"contentType": "assessments"},
		headers=teacher_headers,
	)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["metadata"]["generationStatus"] == "fallback"
	assert body["version"] == 1
	questions = body["content"]["formativeAssessments"][0]["questions"]
	assert questions[0]["question"] == "In your own words, explain: Factorise quadratics"

	versions = client.get(f"/api/v1/teacher/modules/{module_id}/content/assessments/versions", headers=teacher_headers).json()["versions"]
	assert versions[0]["creationMethod"] == "ai"


def test_generate_module_content_with_model(client, teacher_headers, math_and_o_level, fake_llm):
	module_id = _create(client, teacher_headers, math_and_o_level)["modules"][1]["id"]
	fake_llm.generate_json.return_value = {
		"introduction": {"overview": "Why the formula always works"},
		"mainContent": {"sections": [{"title": "Completing the square"}]},
		"summary": {"keyTakeaways": ["Check the discriminant first"]},
	}
	r = client.post(
		f"/api/v1/teacher/modules/{module_id}/generate-content",
		json={"contentType": "core", "region": "Kenya", "teachingStyle": "Socratic"},
		headers=teacher_headers,
	)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["metadata"]["generationStatus"] == "generated"
	assert body["metadata"]["qualityScore"] == 0.7
	prompt = fake_llm.generate_json.await_args.args[0]
	assert "Deriving and using the quadratic formula" in prompt
	assert "Teaching Style: Socratic" in prompt
	assert "Education Level: O Level" in prompt
	assert "Subject: Mathematics" in prompt

	course = client.get("/api/v1/teacher/courses", headers=teacher_headers).json()["courses"][0]
	module = course["modules"][1]
	assert module["contentData"]["coreContent"]["summary"] == {"keyTakeaways": ["Check the discriminant first"]}
	assert module["generationMetadata"]["core"]["qualityScore"] == 0.7


def test_generate_teacher_course_falls_back(client, db_session, teacher_headers, math_and_o_level):
	r = client.post(
		"/api/v1/teacher/courses/generate",
		json=_course_payload(*math_and_o_level, modules=[], description=None, learningObjectives=["Solve quadratics"]),
		headers=teacher_headers,
	)
	assert r.status_code == 201, r.text
	body = r.json()
	assert body["generationStatus"] == "fallback"
	course = body["course"]
	assert course["title"] == "Form 3 Quadratics"
	assert course["teacherId"] == "alice"
	assert course["description"]
	assert len(course["modules"]) == 3
	assert course["modules"][1]["learningObjectives"] == ["Solve quadratics"]

	db_session.expire_all()
	stored = db_session.get(Course, course["id"])
	assert "KNEC syllabus used in Kenya" in stored.generation_prompt
