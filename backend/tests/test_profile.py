from novalearn.models import XpTransaction


COMPLETE_PROFILE = {
	"firstName": "Alice",
	"dateOfBirth": "2008-05-17",
	"location": "Mombasa, Kenya",
	"educationLevel": "o_level",
	"timeAvailability": 45,
	"preferredStudyTime": "morning",
	"learningObjectives": ["Pass mathematics", "Learn to code"],
}


def test_get_profile_without_row(client, auth_headers):
	r = client.get("/api/v1/users/profile", headers=auth_headers)
	assert r.status_code == 200
	body = r.json()
	assert body["profile"]["id"] == "alice"
	assert body["completeness"]["isComplete"] is False
	assert body["completeness"]["completionPercentage"] == 0
	assert body["assessments"] == {"cognitive": False, "personality": False, "learningPreferences": False}


def test_partial_update_reports_missing_fields(client, auth_headers):
	r = client.put("/api/v1/users/profile", json={"location": "Accra"}, headers=auth_headers)
	assert r.status_code == 200, r.text
	completeness = r.json()["completeness"]
	assert completeness["isComplete"] is False
	assert completeness["completionPercentage"] == 20
	assert "date_of_birth" in completeness["missingFields"]
	assert r.json()["message"] == "Profile updated successfully"


def test_completing_profile_pays_bonus_once(client, db_session, auth_headers):
	r = client.put("/api/v1/users/profile", json=COMPLETE_PROFILE, headers=auth_headers)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["message"] == "Profile completed successfully!"
	assert body["profile"]["dateOfBirth"] == "2008-05-17"
	assert body["profile"]["learningObjectives"] == ["Pass mathematics", "Learn to code"]

	# emptying and refilling must not pay again
	client.put("/api/v1/users/profile", json={"location": ""}, headers=auth_headers)
	client.put("/api/v1/users/profile", json={"location": "Kisumu"}, headers=auth_headers)

	db_session.expire_all()
	bonuses = db_session.query(XpTransaction).filter_by(reason="profile_completion").all()
	assert len(bonuses) == 1
	assert bonuses[0].amount == 100
	assert bonuses[0].reference_type == "profile"
