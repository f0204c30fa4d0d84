from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import Principal, get_current_principal
from app.db.session import get_db
from app.schemas.user import CurrentUser, UserUpdate, PasswordChange
from app.services.user import user_service

router = APIRouter()


@router.get("/me", response_model=CurrentUser)
def read_users_me(principal: Principal = Depends(get_current_principal)) -> CurrentUser:
    """
    Returns the profile of the currently authenticated user together with
    the authorities derived from their role.
    """
    return CurrentUser.from_user(principal.user)


@router.put("/me", response_model=CurrentUser)
def update_users_me(
    *,
    db: Session = Depends(get_db),
    user_in: UserUpdate,
    principal: Principal = Depends(get_current_principal),
) -> CurrentUser:
    """
    Update first name, last name or email of the current user.

    Changing the email invalidates existing tokens, since their subject is
    the old address.
    """
    return CurrentUser.from_user(user_service.update_user(db, principal.user_id, user_in))


@router.put("/me/password", response_model=CurrentUser)
def change_my_password(
    *,
    db: Session = Depends(get_db),
    password_in: PasswordChange,
    principal: Principal = Depends(get_current_principal),
) -> CurrentUser:
    return CurrentUser.from_user(
        user_service.update_password(db, principal.user_id, password_in.old_password, password_in.new_password)
    )
