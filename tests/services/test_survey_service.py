"""
Tests para SurveyService

Creación con preguntas anidadas, reemplazo de preguntas, transiciones de
estado y el borrado completo de una encuesta.
"""

from datetime import timedelta

import pytest

from app.core.exceptions import (
    ValidationError, SurveyNotFoundError, SurveyDeletionError,
    PermissionDeniedError, InvalidStatusTransitionError
)
from app.core.timezone_utils import utcnow
from app.models.survey import Survey, Question, Option, Response, SurveyStatus, QuestionType
from app.repositories.question import question_repository
from app.schemas.survey import SurveyCreate, SurveyUpdate, QuestionInput
from app.services.response import response_service
from app.services.survey import survey_service, TransitionOk, InvalidTransition
from tests.conftest import create_survey, create_user


class TestCreateSurvey:

    def test_questions_and_options_keep_submission_order(self, db, user):
        survey = create_survey(db, user, questions=[
            ("First?", ["A1", "A2", "A3"]),
            ("Second?", ["B1", "B2"]),
            ("Third?", ["C1", "C2", "C3", "C4"]),
        ])

        assert survey.status == SurveyStatus.ACTIVE
        assert survey.creator_id == user.id
        assert survey.start_date is not None
        assert [q.question_text for q in survey.questions] == ["First?", "Second?", "Third?"]
        assert [q.order_index for q in survey.questions] == [1, 2, 3]
        assert all(q.question_type == QuestionType.MULTIPLE_CHOICE for q in survey.questions)
        assert [o.option_text for o in survey.questions[2].options] == ["C1", "C2", "C3", "C4"]
        assert [o.option_label for o in survey.questions[2].options] == ["A", "B", "C", "D"]

    def test_blank_questions_and_options_are_skipped(self, db, user):
        survey = create_survey(db, user, questions=[
            ("  ", ["x", "y"]),
            ("Kept?", ["Yes", "", "  ", "No"]),
        ])

        assert survey.question_count == 1
        question = survey.questions[0]
        assert question.order_index == 1
        assert [o.option_text for o in question.options] == ["Yes", "No"]
        assert [o.order_index for o in question.options] == [1, 2]

    def test_category_is_appended_to_description(self, db, user):
        survey = create_survey(db, user, description="About the gym", category="Feedback")
        assert survey.description == "About the gym | Category: Feedback"

        only_category = create_survey(db, user, title="Only category", category="Ops")
        assert only_category.description == "Category: Ops"

    @pytest.mark.parametrize("title", [None, "", "   ", "ab", "x" * 201])
    def test_invalid_title(self, db, user, title):
        with pytest.raises(ValidationError):
            create_survey(db, user, title=title)
        assert db.query(Survey).count() == 0

    @pytest.mark.parametrize("text", ["Q?", "Why", "x" * 501])
    def test_invalid_question_text(self, db, user, text):
        with pytest.raises(ValidationError):
            create_survey(db, user, questions=[(text, ["Yes", "No"])])
        assert db.query(Survey).count() == 0

    @pytest.mark.parametrize("description,category", [
        ("d" * 1001, None),
        ("d" * 990, "Feedback"),
        (None, "c" * 1000),
    ])
    def test_description_too_long(self, db, user, description, category):
        with pytest.raises(ValidationError):
            create_survey(db, user, description=description, category=category)
        assert db.query(Survey).count() == 0

    def test_description_at_the_limit(self, db, user):
        survey = create_survey(db, user, description="d" * 1000)
        assert len(survey.description) == 1000

    def test_question_needs_two_options(self, db, user):
        with pytest.raises(ValidationError):
            create_survey(db, user, questions=[("Lonely?", ["Only one"])])
        assert db.query(Survey).count() == 0
        assert db.query(Question).count() == 0

    def test_end_date_before_start_date(self, db, user):
        now = utcnow()
        with pytest.raises(ValidationError):
            create_survey(db, user, start_date=now, end_date=now - timedelta(days=1))

    def test_admin_can_create_for_another_user(self, db, admin_user, user):
        creator = survey_service.resolve_creator(db, admin_user, "  USER@test.com ")
        assert creator.id == user.id

    def test_regular_user_cannot_impersonate(self, db, user, other_user):
        assert survey_service.resolve_creator(db, user, other_user.email).id == user.id

    def test_unknown_creator_email(self, db, admin_user):
        with pytest.raises(ValidationError):
            survey_service.resolve_creator(db, admin_user, "ghost@test.com")


class TestUpdateSurvey:

    def test_update_metadata_keeps_questions(self, db, survey, user):
        question_ids = [q.id for q in survey.questions]

        updated = survey_service.update_survey(db, survey.id, SurveyUpdate(title="Renamed survey"), user)

        assert updated.title == "Renamed survey"
        assert [q.id for q in updated.questions] == question_ids

    def test_replace_questions_discards_previous_responses(self, db, survey, user, other_user):
        first = survey.questions[0]
        response_service.submit(db, survey.id, {str(first.id): "Red"}, user=other_user)
        assert db.query(Response).count() == 1

        updated = survey_service.update_survey(
            db,
            survey.id,
            SurveyUpdate(questions=[QuestionInput(question="Brand new?", options=["Yes", "No", "Maybe"])]),
            user,
        )

        assert [q.question_text for q in updated.questions] == ["Brand new?"]
        assert [o.option_label for o in updated.questions[0].options] == ["A", "B", "C"]
        assert db.query(Question).count() == 1
        assert db.query(Option).count() == 3
        assert db.query(Response).count() == 0

    def test_category_only_update_replaces_description(self, db, user):
        survey = create_survey(db, user, description="About", category="Ops")
        assert survey.description == "About | Category: Ops"

        for _ in range(2):
            updated = survey_service.update_survey(db, survey.id, SurveyUpdate(category="Ops"), user)
            assert updated.description == "Category: Ops"

    def test_explicit_description_wins_over_category(self, db, survey, user):
        updated = survey_service.update_survey(
            db, survey.id, SurveyUpdate(description="  Plain text  ", category="Ignored"), user
        )
        assert updated.description == "Plain text"

    def test_update_rejects_long_description(self, db, survey, user):
        with pytest.raises(ValidationError):
            survey_service.update_survey(db, survey.id, SurveyUpdate(description="d" * 1001), user)

    def test_only_creator_or_admin_can_update(self, db, survey, other_user, admin_user):
        with pytest.raises(PermissionDeniedError):
            survey_service.update_survey(db, survey.id, SurveyUpdate(title="Hijacked"), other_user)

        updated = survey_service.update_survey(db, survey.id, SurveyUpdate(title="By admin"), admin_user)
        assert updated.title == "By admin"


class TestTransitions:

    def test_draft_to_active_sets_start_date(self, db, survey):
        survey.status = SurveyStatus.DRAFT
        survey.start_date = None
        db.commit()

        result = survey_service.transition(db, survey, SurveyStatus.ACTIVE)

        assert isinstance(result, TransitionOk)
        assert result.survey.status == SurveyStatus.ACTIVE
        assert result.survey.start_date is not None

    def test_invalid_transition_leaves_survey_untouched(self, db, survey):
        result = survey_service.transition(db, survey, SurveyStatus.DRAFT)

        assert isinstance(result, InvalidTransition)
        assert result.current == SurveyStatus.ACTIVE
        assert "ACTIVE to DRAFT" in result.message
        db.refresh(survey)
        assert survey.status == SurveyStatus.ACTIVE

    def test_close_then_reopen(self, db, survey, user):
        closed = survey_service.change_status(db, survey.id, SurveyStatus.CLOSED, user)
        assert closed.status == SurveyStatus.CLOSED
        assert closed.end_date is not None

        later = utcnow() + timedelta(minutes=5)
        result = survey_service.transition(db, closed, SurveyStatus.ACTIVE, now=later)
        assert isinstance(result, TransitionOk)
        assert result.survey.end_date is None
        assert result.survey.is_accepting_responses(later)

    def test_change_status_raises_on_invalid_transition(self, db, survey, user):
        with pytest.raises(InvalidStatusTransitionError):
            survey_service.change_status(db, survey.id, SurveyStatus.DRAFT, user)


class TestDeleteSurvey:

    def test_delete_removes_every_dependent_row(self, db, survey, user, other_user):
        answers = {str(q.id): q.options[0].option_text for q in survey.questions}
        response_service.submit(db, survey.id, answers, user=other_user)
        survey_id = survey.id

        deletion = survey_service.delete_survey(db, survey_id, user)

        assert deletion.deleted_survey_id == survey_id
        assert deletion.responses_deleted == 2
        assert deletion.options_deleted == 5
        assert deletion.questions_deleted == 2
        assert db.query(Survey).filter(Survey.id == survey_id).count() == 0
        assert db.query(Question).count() == 0
        assert db.query(Option).count() == 0
        assert db.query(Response).count() == 0

    def test_delete_leaves_other_surveys_alone(self, db, survey, user):
        other = create_survey(db, user, title="Keep me")
        other_id = other.id

        survey_service.delete_survey(db, survey.id, user)

        assert db.query(Survey).filter(Survey.id == other_id).count() == 1
        assert db.query(Question).filter(Question.survey_id == other_id).count() == 2

    def test_delete_missing_survey(self, db):
        with pytest.raises(SurveyNotFoundError):
            survey_service.delete_survey(db, 999)

    def test_delete_requires_owner(self, db, survey, other_user):
        with pytest.raises(PermissionDeniedError):
            survey_service.delete_survey(db, survey.id, other_user)

    def test_failed_delete_rolls_back_everything(self, db, survey, user, other_user, monkeypatch):
        answers = {str(q.id): q.options[1].option_text for q in survey.questions}
        response_service.submit(db, survey.id, answers, user=other_user)
        survey_id = survey.id

        def boom(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(question_repository, "delete_for_surveys", boom)

        with pytest.raises(SurveyDeletionError):
            survey_service.delete_survey(db, survey_id, user)

        assert db.query(Survey).filter(Survey.id == survey_id).count() == 1
        assert db.query(Question).count() == 2
        assert db.query(Option).count() == 5
        assert db.query(Response).count() == 2


def test_list_surveys_marks_completed_for_viewer(db, survey, user, other_user):
    create_survey(db, user, title="Unanswered")
    response_service.submit(db, survey.id, {str(survey.questions[0].id): "Green"}, user=other_user)

    summaries = {s.title: s for s in survey_service.list_surveys(db, viewer=other_user)}

    assert summaries["Customer Satisfaction"].is_completed
    assert summaries["Customer Satisfaction"].response_count == 1
    assert not summaries["Unanswered"].is_completed
    assert summaries["Unanswered"].creator_email == "user@test.com"


def test_summary_without_creator(db, survey):
    survey.creator = None
    db.commit()
    assert survey_service.to_summary(survey).creator_email == "NO_CREATOR"


def test_search_matches_title_and_description(db, user):
    create_survey(db, user, title="Gym hours", description="Opening times")
    create_survey(db, user, title="Coffee", description="Which roast")

    assert [s.title for s in survey_service.search(db, "OPENING")] == ["Gym hours"]
    assert [s.title for s in survey_service.search(db, "coff")] == ["Coffee"]
