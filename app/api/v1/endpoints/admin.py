"""
Admin API Endpoints

Maintenance previews, the single-category cleanup actions, the comprehensive
sweep, survey listing/deletion overrides, global statistics and user
administration. Every route here requires ROLE_ADMIN.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.core.auth import Principal, require_admin
from app.core.config import get_settings
from app.db.session import get_db
from app.models.survey import SurveyStatus
from app.models.user import UserRole
from app.schemas.statistics import CleanupActionResult, CleanupCandidates, CleanupReport, GlobalStatistics
from app.schemas.survey import SurveyList, SurveyDeleteResponse
from app.schemas.user import CurrentUser, RoleUpdate
from app.services.statistics import statistics_service
from app.services.survey import survey_service
from app.services.user import user_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _candidates(db: Session, category: str, days_old: Optional[int] = None) -> CleanupCandidates:
    surveys = survey_service.find_cleanup_candidates(db, days_old=days_old)[category]
    return CleanupCandidates(count=len(surveys), surveys=survey_service.summarize(db, surveys))


# ============= Cleanup previews =============

@router.get("/surveys/orphaned", response_model=CleanupCandidates)
def list_orphaned_surveys(*, db: Session = Depends(get_db)) -> CleanupCandidates:
    """Surveys without a creator; the sweep hard-deletes them."""
    return _candidates(db, "orphaned")


@router.get("/surveys/inactive-creator", response_model=CleanupCandidates)
def list_surveys_with_inactive_creator(*, db: Session = Depends(get_db)) -> CleanupCandidates:
    return _candidates(db, "inactive_creator")


@router.get("/surveys/without-questions", response_model=CleanupCandidates)
def list_surveys_without_questions(*, db: Session = Depends(get_db)) -> CleanupCandidates:
    return _candidates(db, "without_questions")


@router.get("/surveys/old-without-responses", response_model=CleanupCandidates)
def list_old_surveys_without_responses(
    *,
    db: Session = Depends(get_db),
    days_old: Optional[int] = Query(None, alias="daysOld", ge=0),
) -> CleanupCandidates:
    return _candidates(db, "old_without_responses", days_old)


# ============= Cleanup actions =============

@router.delete("/surveys/orphaned", response_model=CleanupActionResult)
def delete_orphaned_surveys(*, db: Session = Depends(get_db)) -> CleanupActionResult:
    """Hard-delete surveys without a creator, with their questions, options and responses."""
    count = survey_service.delete_orphaned(db)
    return CleanupActionResult(message="Orphaned surveys deleted successfully", affected_count=count)


@router.put("/surveys/inactive-creator/soft-delete", response_model=CleanupActionResult)
def soft_delete_surveys_with_inactive_creator(*, db: Session = Depends(get_db)) -> CleanupActionResult:
    count = survey_service.soft_delete_with_inactive_creator(db)
    return CleanupActionResult(
        message="Surveys with inactive creator soft deleted successfully",
        affected_count=count,
    )


@router.put("/surveys/without-questions/cleanup", response_model=CleanupActionResult)
def cleanup_surveys_without_questions(*, db: Session = Depends(get_db)) -> CleanupActionResult:
    count = survey_service.soft_delete_without_questions(db)
    return CleanupActionResult(message="Surveys without questions cleaned successfully", affected_count=count)


@router.put("/surveys/old-without-responses/cleanup", response_model=CleanupActionResult)
def cleanup_old_surveys_without_responses(
    *,
    db: Session = Depends(get_db),
    days_old: Optional[int] = Query(None, alias="daysOld", ge=0),
) -> CleanupActionResult:
    if days_old is None:
        days_old = get_settings().CLEANUP_DAYS_OLD
    count = survey_service.soft_delete_old_without_responses(db, days_old=days_old)
    return CleanupActionResult(
        message="Old surveys without responses cleaned successfully",
        affected_count=count,
        days_old=days_old,
    )


@router.post("/surveys/comprehensive-cleanup", response_model=CleanupReport)
def comprehensive_cleanup(
    *,
    db: Session = Depends(get_db),
    days_old: Optional[int] = Query(None, alias="daysOld", ge=0),
    principal: Principal = Depends(require_admin),
) -> CleanupReport:
    """Run every sweep category and return the report."""
    logger.info(f"Comprehensive cleanup solicitado por {principal.email}")
    return survey_service.run_cleanup(db, days_old=days_old)


# ============= Surveys =============

@router.get("/surveys", response_model=SurveyList)
def list_surveys(
    *,
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None, description="Texto a buscar en título o descripción"),
    survey_status: Optional[SurveyStatus] = Query(None, alias="status"),
) -> SurveyList:
    if search:
        summaries = survey_service.search(db, search)
    elif survey_status is not None:
        summaries = survey_service.list_by_status(db, survey_status)
    else:
        summaries = survey_service.list_surveys(db, include_deleted=True)
    return SurveyList(
        message="Admin survey listing",
        total_surveys_count=len(summaries),
        surveys=summaries,
    )


@router.delete("/surveys/{survey_id}", response_model=SurveyDeleteResponse)
def force_delete_survey(
    *,
    db: Session = Depends(get_db),
    survey_id: int = Path(..., title="Survey ID"),
) -> SurveyDeleteResponse:
    deletion = survey_service.delete_survey(db, survey_id)
    return SurveyDeleteResponse(
        message="Survey deleted successfully",
        deleted_survey_id=deletion.deleted_survey_id,
    )


@router.get("/surveys/statistics", response_model=GlobalStatistics)
def get_global_statistics(*, db: Session = Depends(get_db)) -> GlobalStatistics:
    return statistics_service.global_statistics(db)


# ============= Users =============

@router.get("/users", response_model=List[CurrentUser])
def list_users(
    *,
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None, description="Texto a buscar en nombre o email"),
    role: Optional[UserRole] = Query(None),
) -> List[CurrentUser]:
    users = user_service.list_active(db, search=search, role=role)
    return [CurrentUser.from_user(user) for user in users]


@router.put("/users/{user_id}/role", response_model=CurrentUser)
def update_user_role(
    *,
    db: Session = Depends(get_db),
    user_id: int = Path(..., title="User ID"),
    role_in: RoleUpdate,
) -> CurrentUser:
    return CurrentUser.from_user(user_service.update_role(db, user_id, role_in.role))


@router.post("/users/{user_id}/deactivate", response_model=CurrentUser)
def deactivate_user(
    *,
    db: Session = Depends(get_db),
    user_id: int = Path(..., title="User ID"),
) -> CurrentUser:
    return CurrentUser.from_user(user_service.deactivate(db, user_id))


@router.post("/users/{user_id}/reactivate", response_model=CurrentUser)
def reactivate_user(
    *,
    db: Session = Depends(get_db),
    user_id: int = Path(..., title="User ID"),
) -> CurrentUser:
    return CurrentUser.from_user(user_service.reactivate(db, user_id))
