"""
Tests for Survey System Endpoints

Creation and details, listings, status changes, deletion, response
submission, statistics and the maintenance sweep.
"""

from datetime import timedelta

import pytest

from app.core.timezone_utils import utcnow
from app.models.survey import Survey, Question, Option, Response, SurveyStatus
from tests.conftest import create_survey


def _create_payload(title="Team lunch", questions=None, **extra):
    payload = {
        "title": title,
        "description": "Where should we go?",
        "questions": questions if questions is not None else [
            {"question": "Cuisine?", "options": ["Thai", "Mexican", "Italian"]},
            {"question": "Which day?", "options": ["Monday", "Friday"]},
        ],
    }
    payload.update(extra)
    return payload


def _questions(client, survey_id):
    return client.get(f"/api/survey-details/{survey_id}").json()["survey"]["questions"]


class TestCreateAndDetails:

    def test_create_then_read_back_in_order(self, client, user_headers):
        questions = [
            {"question": f"Question {n}?", "options": [f"Q{n} option {m}" for m in range(1, 5)]}
            for n in range(1, 4)
        ]

        created = client.post(
            "/api/create-survey",
            json=_create_payload(questions=questions, category="Office"),
            headers=user_headers,
        )

        assert created.status_code == 201
        summary = created.json()["survey"]
        assert summary["status"] == "ACTIVE"
        assert summary["creatorEmail"] == "user@test.com"
        assert summary["questionCount"] == 3

        details = client.get(f"/api/survey-details/{summary['id']}")
        assert details.status_code == 200
        survey = details.json()["survey"]
        assert survey["description"] == "Where should we go? | Category: Office"
        assert survey["isAcceptingResponses"] is True
        assert [q["question"] for q in survey["questions"]] == ["Question 1?", "Question 2?", "Question 3?"]
        for n, question in enumerate(survey["questions"], start=1):
            assert question["type"] == "multiple_choice"
            assert question["required"] is True
            assert question["orderIndex"] == n
            assert question["options"] == [f"Q{n} option {m}" for m in range(1, 5)]
            assert question["optionLabels"] == ["A", "B", "C", "D"]

    def test_create_requires_authentication(self, client):
        response = client.post("/api/create-survey", json=_create_payload())
        assert response.status_code == 401
        assert response.json()["errorType"] == "MISSING_TOKEN"

    def test_create_with_short_title(self, client, user_headers):
        response = client.post("/api/create-survey", json=_create_payload(title="ab"), headers=user_headers)
        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION_ERROR"

    def test_admin_creates_on_behalf_of_user(self, client, admin_headers, user):
        response = client.post(
            "/api/create-survey",
            json=_create_payload(creatorEmail="user@test.com"),
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["survey"]["creatorId"] == user.id

    def test_details_of_missing_survey(self, client):
        response = client.get("/api/survey-details/999")
        assert response.status_code == 404
        body = response.json()
        assert body["errorType"] == "SURVEY_NOT_FOUND"
        assert body["path"] == "/api/survey-details/999"

    def test_details_without_creator(self, client, db, survey):
        survey.creator = None
        db.commit()
        response = client.get(f"/api/survey-details/{survey.id}")
        assert response.json()["survey"]["creatorEmail"] == "Unknown"


class TestListings:

    def test_list_all_surveys_anonymously(self, client, survey):
        response = client.get("/api/list-all-surveys")

        assert response.status_code == 200
        body = response.json()
        assert body["totalSurveysCount"] == 1
        assert body["surveys"][0]["title"] == "Customer Satisfaction"
        assert body["surveys"][0]["isCompleted"] is False

    def test_list_marks_answered_surveys(self, client, survey, other_headers):
        questions = _questions(client, survey.id)
        client.post(
            "/api/submit-survey-response",
            json={"surveyId": survey.id, "responses": {str(questions[0]["id"]): "Red"}},
            headers=other_headers,
        )

        body = client.get("/api/list-all-surveys", headers=other_headers).json()

        assert body["surveys"][0]["isCompleted"] is True
        assert body["surveys"][0]["responseCount"] == 1

    def test_my_surveys(self, client, db, survey, other_user, other_headers):
        create_survey(db, other_user, title="Other's survey")

        body = client.get("/api/my-surveys", headers=other_headers).json()

        assert [s["title"] for s in body["surveys"]] == ["Other's survey"]

    def test_including_inactive_is_admin_only(self, client, db, survey, user_headers, admin_headers):
        survey.soft_delete()
        db.commit()

        assert client.get("/api/list-all-surveys").json()["totalSurveysCount"] == 0
        assert client.get("/api/list-all-surveys-including-inactive", headers=user_headers).status_code == 403

        body = client.get("/api/list-all-surveys-including-inactive", headers=admin_headers).json()
        assert body["totalSurveysCount"] == 1
        assert body["surveys"][0]["isActive"] is False


class TestUpdateAndStatus:

    def test_update_title_and_questions(self, client, survey, user_headers):
        response = client.put(
            f"/api/update-survey/{survey.id}",
            json={"title": "Renamed", "questions": [{"question": "Only one?", "options": ["Yes", "No"]}]},
            headers=user_headers,
        )

        assert response.status_code == 200
        assert response.json()["survey"]["title"] == "Renamed"
        questions = _questions(client, survey.id)
        assert [q["question"] for q in questions] == ["Only one?"]

    def test_update_by_stranger_is_forbidden(self, client, survey, other_headers):
        response = client.put(f"/api/update-survey/{survey.id}", json={"title": "Mine now"}, headers=other_headers)
        assert response.status_code == 403
        assert response.json()["errorType"] == "ACCESS_DENIED"

    def test_close_survey_then_submission_is_rejected(self, client, survey, user_headers, other_headers):
        closed = client.put(f"/api/surveys/{survey.id}/status", json={"status": "CLOSED"}, headers=user_headers)
        assert closed.status_code == 200
        assert closed.json()["survey"]["status"] == "CLOSED"

        questions = _questions(client, survey.id)
        response = client.post(
            "/api/submit-survey-response",
            json={"surveyId": survey.id, "responses": {str(questions[0]["id"]): "Red"}},
            headers=other_headers,
        )
        assert response.status_code == 400
        assert response.json()["errorType"] == "SURVEY_NOT_ACCEPTING_RESPONSES"

    def test_invalid_transition(self, client, survey, user_headers):
        response = client.put(f"/api/surveys/{survey.id}/status", json={"status": "DRAFT"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["errorType"] == "INVALID_TRANSITION"

    def test_unknown_status_value(self, client, survey, user_headers):
        response = client.put(f"/api/surveys/{survey.id}/status", json={"status": "ARCHIVED"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION_ERROR"


class TestDelete:

    def test_owner_deletes_survey_and_dependents(self, client, db, survey, user_headers, other_headers):
        questions = _questions(client, survey.id)
        client.post(
            "/api/submit-survey-response",
            json={"surveyId": survey.id, "responses": {str(q["id"]): q["options"][0] for q in questions}},
            headers=other_headers,
        )
        survey_id = survey.id

        response = client.delete(f"/api/delete-survey/{survey_id}", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["deletedSurveyId"] == survey_id
        assert client.get(f"/api/survey-details/{survey_id}").status_code == 404
        assert db.query(Survey).count() == 0
        assert db.query(Question).count() == 0
        assert db.query(Option).count() == 0
        assert db.query(Response).count() == 0

    def test_stranger_cannot_delete(self, client, db, survey, other_headers):
        response = client.delete(f"/api/delete-survey/{survey.id}", headers=other_headers)
        assert response.status_code == 403
        assert db.query(Survey).count() == 1

    def test_admin_can_delete(self, client, survey, admin_headers):
        response = client.delete(f"/api/delete-survey/{survey.id}", headers=admin_headers)
        assert response.status_code == 200

    def test_delete_missing_survey(self, client, user_headers):
        response = client.delete("/api/delete-survey/4242", headers=user_headers)
        assert response.status_code == 404
        assert response.json()["errorType"] == "SURVEY_NOT_FOUND"


class TestResponsesAndStatistics:

    def test_submit_and_read_statistics(self, client, survey, other_headers):
        questions = _questions(client, survey.id)
        colour_id, size_id = questions[0]["id"], questions[1]["id"]

        submitted = client.post(
            "/api/submit-survey-response",
            json={
                "surveyId": survey.id,
                "responses": {str(colour_id): "Green", str(size_id): "Extra large"},
                "respondentName": "Luis",
            },
            headers=other_headers,
        )
        assert submitted.status_code == 201
        assert submitted.json()["responseCount"] == 2

        anonymous = client.post(
            "/api/submit-survey-response",
            json={"surveyId": survey.id, "responses": {str(colour_id): "Green"}, "sessionId": "browser-1"},
        )
        assert anonymous.status_code == 201

        stats = client.get(f"/api/survey-statistics/{survey.id}").json()

        assert stats["surveyTitle"] == "Customer Satisfaction"
        assert stats["totalQuestions"] == 2
        assert stats["totalResponses"] == 3
        assert stats["uniqueUsers"] == 1
        colour, size = stats["questionStatistics"]
        green = next(o for o in colour["options"] if o["text"] == "Green")
        assert green["responseCount"] == 2
        assert green["percentage"] == 100.0
        assert size["totalResponses"] == 1
        assert all(o["responseCount"] == 0 for o in size["options"])

    def test_duplicate_submission(self, client, survey, other_headers):
        questions = _questions(client, survey.id)
        payload = {"surveyId": survey.id, "responses": {str(questions[0]["id"]): "Red"}}

        assert client.post("/api/submit-survey-response", json=payload, headers=other_headers).status_code == 201
        second = client.post("/api/submit-survey-response", json=payload, headers=other_headers)

        assert second.status_code == 409
        assert second.json()["errorType"] == "ALREADY_RESPONDED"

    def test_submit_with_invalid_survey_id_type(self, client):
        response = client.post("/api/submit-survey-response", json={"surveyId": "abc", "responses": {}})
        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION_ERROR"

    def test_statistics_of_missing_survey(self, client):
        assert client.get("/api/survey-statistics/31337").status_code == 404


class TestCleanDatabase:

    def test_regular_user_is_forbidden(self, client, user_headers):
        response = client.post("/api/clean-database", headers=user_headers)
        assert response.status_code == 403

    def test_requires_token(self, client):
        assert client.post("/api/clean-database").status_code == 401

    def test_admin_runs_sweep(self, client, db, survey, admin_headers):
        orphan = create_survey(db, survey.creator, title="Orphaned")
        orphan.creator = None
        db.commit()

        response = client.post("/api/clean-database?daysOld=365", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["usersKept"] == 2
        report = body["cleanupReport"]
        assert report["orphanedDeleted"] == 1
        assert report["daysOld"] == 365
        assert report["totalProcessed"] == 1

    def test_negative_days(self, client, admin_headers):
        response = client.post("/api/clean-database?daysOld=-5", headers=admin_headers)
        assert response.status_code == 400


class TestAdmin:

    def test_admin_routes_reject_regular_users(self, client, user_headers):
        for path in ("/api/admin/surveys/orphaned", "/api/admin/users", "/api/admin/surveys/statistics"):
            response = client.get(path, headers=user_headers)
            assert response.status_code == 403, path

    def test_preview_and_comprehensive_cleanup(self, client, db, user, admin_headers):
        db.add(Survey(title="No questions", creator=user))
        db.commit()

        preview = client.get("/api/admin/surveys/without-questions", headers=admin_headers).json()
        assert preview["count"] == 1
        assert preview["surveys"][0]["title"] == "No questions"

        report = client.post("/api/admin/surveys/comprehensive-cleanup?daysOld=365", headers=admin_headers).json()
        assert report["withoutQuestionsSoftDeleted"] == 1

        preview = client.get("/api/admin/surveys/without-questions", headers=admin_headers).json()
        assert preview["count"] == 0

    def test_global_statistics(self, client, survey, admin_headers):
        stats = client.get("/api/admin/surveys/statistics", headers=admin_headers).json()
        assert stats["totalSurveys"] == 1
        assert stats["surveysByStatus"]["ACTIVE"] == 1
        assert stats["adminUsers"] == 1

    @pytest.mark.parametrize("term,expected", [("customer", 1), ("nothing-like-this", 0)])
    def test_search(self, client, survey, admin_headers, term, expected):
        body = client.get(f"/api/admin/surveys?search={term}", headers=admin_headers).json()
        assert body["totalSurveysCount"] == expected

    def test_deactivated_user_cannot_log_in(self, client, user, admin_headers):
        response = client.post(f"/api/admin/users/{user.id}/deactivate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["isActive"] is False

        login = client.post("/api/simple-login", json={"email": user.email, "password": "secret123"})
        assert login.status_code == 401
        assert login.json()["errorType"] == "ACCOUNT_DISABLED"

    def test_promote_user(self, client, user, admin_headers):
        response = client.put(f"/api/admin/users/{user.id}/role", json={"role": "ADMIN"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["authorities"] == ["ROLE_ADMIN"]

    def test_cleanup_actions_run_one_category_at_a_time(self, client, db, user, other_user, survey, admin_headers):
        orphan = create_survey(db, user, title="Orphaned")
        orphan.creator = None
        create_survey(db, other_user, title="Abandoned")
        other_user.soft_delete()
        db.add(Survey(title="No questions", creator=user))
        db.commit()

        orphaned = client.delete("/api/admin/surveys/orphaned", headers=admin_headers)
        assert orphaned.status_code == 200
        assert orphaned.json()["affectedCount"] == 1
        assert client.delete("/api/admin/surveys/orphaned", headers=admin_headers).json()["affectedCount"] == 0

        inactive = client.put("/api/admin/surveys/inactive-creator/soft-delete", headers=admin_headers).json()
        assert inactive["success"] is True
        assert inactive["affectedCount"] == 1

        empty = client.put("/api/admin/surveys/without-questions/cleanup", headers=admin_headers).json()
        assert empty["affectedCount"] == 1

        titles = [s["title"] for s in client.get("/api/list-all-surveys").json()["surveys"]]
        assert titles == ["Customer Satisfaction"]

    def test_old_without_responses_action(self, client, db, survey, admin_headers):
        survey.created_at = utcnow() - timedelta(days=60)
        db.commit()

        recent = client.put("/api/admin/surveys/old-without-responses/cleanup?daysOld=90", headers=admin_headers)
        assert recent.json()["affectedCount"] == 0
        assert recent.json()["daysOld"] == 90

        old = client.put("/api/admin/surveys/old-without-responses/cleanup?daysOld=30", headers=admin_headers)
        assert old.status_code == 200
        assert old.json()["affectedCount"] == 1
        assert client.get(f"/api/survey-details/{survey.id}").status_code == 404

    def test_cleanup_actions_validate_input_and_role(self, client, admin_headers, user_headers):
        negative = client.put("/api/admin/surveys/old-without-responses/cleanup?daysOld=-1", headers=admin_headers)
        assert negative.status_code == 400
        assert client.delete("/api/admin/surveys/orphaned", headers=user_headers).status_code == 403

    def test_filter_surveys_by_status_and_users_by_role(self, client, db, survey, user, other_user, admin_headers):
        survey.status = SurveyStatus.CLOSED
        db.commit()

        closed = client.get("/api/admin/surveys?status=CLOSED", headers=admin_headers).json()
        assert [s["title"] for s in closed["surveys"]] == ["Customer Satisfaction"]
        assert client.get("/api/admin/surveys?status=DRAFT", headers=admin_headers).json()["totalSurveysCount"] == 0

        admins = client.get("/api/admin/users?role=ADMIN", headers=admin_headers).json()
        assert [u["email"] for u in admins] == ["admin@test.com"]
        found = client.get("/api/admin/users?search=luis", headers=admin_headers).json()
        assert [u["email"] for u in found] == ["other@test.com"]
