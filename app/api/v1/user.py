from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...dependencies import get_current_user
from app.models.user import User
from ...schemas.user import UserResponse, PasswordChange, MessageResponse
from ...schemas.result import Result
from ...services.userService import UserService

router = APIRouter()


@router.get("/me", response_model=Result[UserResponse])
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """
    Get current user's profile.

    Returns:
        Result[UserResponse]: Success result with user profile data
    """
    return Result.successful(data=current_user)


@router.delete("/me", response_model=Result[MessageResponse], status_code=status.HTTP_200_OK)
async def delete_my_account(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """
    Delete current user's account.

    Removes the user's bills and tokens. If the user was the last member of
    a household, the household is removed too. This cannot be undone.
    """
    user_service = UserService(db)
    user_service.delete_user(current_user.id)
    return Result.successful(data={"message": "Account deleted successfully"})


@router.post("/me/change-password", response_model=Result[UserResponse])
async def change_my_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Change current user's password.

    Requires old password for verification.
    """
    user_service = UserService(db)
    updated_user = user_service.change_password(
        current_user.id, password_data.old_password, password_data.new_password
    )
    return Result.successful(data=updated_user)
