"""
Survey API Endpoints

This module provides REST API endpoints for the survey system: listings,
creation and editing, deletion, details, statistics, response submission
and the maintenance sweep.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, Request, status
from sqlalchemy.orm import Session

from app.core.auth import Principal, get_current_principal, get_optional_principal, require_admin
from app.db.session import get_db
from app.schemas.survey import (
    SurveyCreate,
    SurveyUpdate,
    StatusUpdate,
    ResponseSubmit,
    SurveyList,
    SurveyMutationResponse,
    SurveyDeleteResponse,
    SurveyDetail,
    SurveyDetailResponse,
    QuestionDetail,
    SubmissionResponse,
)
from app.schemas.statistics import SurveyStatistics, CleanupResponse
from app.services.response import response_service
from app.services.statistics import statistics_service
from app.services.survey import survey_service
from app.services.user import user_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


# ============= Listings =============

@router.get("/list-all-surveys", response_model=SurveyList)
def list_all_surveys(
    *,
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> SurveyList:
    """
    List every visible survey.

    isCompleted is true when the caller (if authenticated) has already
    answered the survey; responseCount is the number of distinct users.
    """
    surveys = survey_service.list_surveys(db, viewer=principal.user if principal else None)
    return SurveyList(
        message="All surveys listed successfully",
        total_surveys_count=len(surveys),
        surveys=surveys,
    )


@router.get("/list-all-surveys-including-inactive", response_model=SurveyList)
def list_all_surveys_including_inactive(
    *,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> SurveyList:
    """List every survey including soft-deleted ones (admin only)."""
    surveys = survey_service.list_surveys(db, viewer=principal.user, include_deleted=True)
    return SurveyList(
        message="All surveys (including inactive) listed successfully",
        total_surveys_count=len(surveys),
        surveys=surveys,
    )


@router.get("/my-surveys", response_model=SurveyList)
def get_my_surveys(
    *,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> SurveyList:
    """List the surveys created by the authenticated user."""
    surveys = survey_service.list_by_creator(db, principal.user)
    return SurveyList(
        message=f"Surveys created by {principal.email}",
        total_surveys_count=len(surveys),
        surveys=surveys,
    )


# ============= Survey Management =============

@router.post("/create-survey", response_model=SurveyMutationResponse, status_code=status.HTTP_201_CREATED)
def create_survey(
    *,
    db: Session = Depends(get_db),
    survey_in: SurveyCreate,
    principal: Principal = Depends(get_current_principal),
) -> SurveyMutationResponse:
    """
    Create an ACTIVE survey with its multiple-choice questions.

    Blank questions and options are skipped. Administrators may pass
    creatorEmail to create on behalf of another user.
    """
    creator = survey_service.resolve_creator(db, principal.user, survey_in.creator_email)
    survey = survey_service.create_survey(db, survey_in, creator)
    return SurveyMutationResponse(
        message="Survey created successfully",
        survey=survey_service.to_summary(survey),
    )


@router.put("/update-survey/{survey_id}", response_model=SurveyMutationResponse)
def update_survey(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
    survey_in: SurveyUpdate,
    principal: Principal = Depends(get_current_principal),
) -> SurveyMutationResponse:
    """
    Update title, description or category. When questions are sent the
    whole question set is replaced and previous responses are discarded.
    """
    survey = survey_service.update_survey(db, survey_id, survey_in, principal.user)
    summary = survey_service.summarize(db, [survey], principal.user)[0]
    return SurveyMutationResponse(message="Survey updated successfully", survey=summary)


@router.put("/surveys/{survey_id}/status", response_model=SurveyMutationResponse)
def update_survey_status(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
    status_in: StatusUpdate,
    principal: Principal = Depends(get_current_principal),
) -> SurveyMutationResponse:
    """Move a survey to another status; invalid transitions return 400."""
    survey = survey_service.change_status(db, survey_id, status_in.status, principal.user)
    summary = survey_service.summarize(db, [survey], principal.user)[0]
    return SurveyMutationResponse(
        message=f"Survey status changed to {survey.status.value}",
        survey=summary,
    )


@router.delete("/delete-survey/{survey_id}", response_model=SurveyDeleteResponse)
def delete_survey(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
    principal: Principal = Depends(get_current_principal),
) -> SurveyDeleteResponse:
    """
    Permanently delete a survey with its responses, options and questions.

    Raises:
        404 if the survey does not exist; 500 if the cascade fails (nothing
        is deleted in that case)
    """
    deletion = survey_service.delete_survey(db, survey_id, principal.user)
    return SurveyDeleteResponse(
        message="Survey deleted successfully",
        deleted_survey_id=deletion.deleted_survey_id,
    )


# ============= Details & Statistics =============

@router.get("/survey-details/{survey_id}", response_model=SurveyDetailResponse)
def get_survey_details(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
) -> SurveyDetailResponse:
    """
    Get a survey with its questions and option texts in their original order.
    """
    survey = survey_service.get_survey(db, survey_id)
    questions = [
        QuestionDetail(
            id=question.id,
            question=question.question_text,
            type=question.question_type.value.lower(),
            required=question.is_required,
            order_index=question.order_index,
            options=[option.option_text for option in question.options if option.is_active],
            option_labels=[option.option_label for option in question.options if option.is_active],
        )
        for question in survey.active_questions
    ]
    return SurveyDetailResponse(
        survey=SurveyDetail(
            id=survey.id,
            title=survey.title,
            description=survey.description,
            status=survey.status,
            created_date=survey.created_at,
            creator_email=survey.creator_email or "Unknown",
            start_date=survey.start_date,
            end_date=survey.end_date,
            is_accepting_responses=survey.is_accepting_responses(),
            questions=questions,
        )
    )


@router.get("/survey-statistics/{survey_id}", response_model=SurveyStatistics)
def get_survey_statistics(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
) -> SurveyStatistics:
    """
    Get per-question and per-option response counts for a survey.
    """
    return statistics_service.survey_statistics(db, survey_id)


# ============= Responses =============

@router.post("/submit-survey-response", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_survey_response(
    *,
    db: Session = Depends(get_db),
    request: Request,
    response_in: ResponseSubmit,
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> SubmissionResponse:
    """
    Submit answers to a survey as {questionId: answer}.

    Anonymous submissions are accepted. A multiple-choice answer that matches
    no option text is stored as free text.
    """
    result = response_service.submit(
        db,
        survey_id=response_in.survey_id,
        answers=response_in.responses,
        user=principal.user if principal else None,
        respondent_name=response_in.respondent_name,
        session_id=response_in.session_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return SubmissionResponse(
        message="Survey response submitted successfully",
        survey_id=result.survey_id,
        response_count=result.response_count,
    )


# ============= Maintenance =============

@router.post("/clean-database", response_model=CleanupResponse)
def clean_database(
    *,
    db: Session = Depends(get_db),
    days_old: Optional[int] = Query(None, alias="daysOld", ge=0),
    principal: Principal = Depends(require_admin),
) -> CleanupResponse:
    """
    Run the maintenance sweep and return the per-category report (admin only).
    """
    logger.info(f"Cleanup solicitado por {principal.email}")
    report = survey_service.run_cleanup(db, days_old=days_old)
    return CleanupResponse(
        success=report.success,
        message=report.message,
        users_kept=user_service.count_active(db),
        cleanup_report=report,
    )
