from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas.user import (
    UserCreate,
    UserResponse,
    Token,
    RefreshRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from ...schemas.result import Result
from ...services.authService import AuthService
from ...services.password_reset_service import PasswordResetService
from ...services.email_service import EmailSender, get_email_sender
from ...dependencies import get_current_user
from app.models.user import User

router = APIRouter()


@router.post(
    "/register",
    response_model=Result[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user.

    - **email**: Valid email address (unique)
    - **username**: Username (unique, at least 3 chars)
    - **password**: Password (at least 6 chars)

    Returns:
        Result[UserResponse]: Success result with created user data
    """
    auth_service = AuthService(db)
    user = auth_service.register(user_data)
    return Result.successful(data=user)


@router.post("/login", response_model=Result[Token])
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
):
    """
    Login with username and password.

    Returns a 15-minute access token and a rotating refresh token.
    """
    auth_service = AuthService(db)
    token = auth_service.login(form_data.username, form_data.password)
    return Result.successful(data=token)


@router.get("/me", response_model=Result[UserResponse])
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user's profile.

    Requires valid access token in Authorization header.
    """
    return Result.successful(data=current_user)


@router.post("/refresh", response_model=Result[Token])
async def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)):
    """
    Exchange a refresh token for a new access/refresh pair.

    The presented refresh token is revoked and cannot be used again.
    """
    auth_service = AuthService(db)
    new_token = auth_service.refresh_access_token(payload.refresh_token)
    return Result.successful(data=new_token)


@router.post("/logout", response_model=Result[MessageResponse])
async def logout(payload: RefreshRequest, db: Session = Depends(get_db)):
    """
    Revoke a refresh token.

    Always succeeds, whether or not the token was known.
    """
    AuthService(db).logout(payload.refresh_token)
    return Result.successful(data={"message": "Successfully logged out"})


@router.post("/forgot-password", response_model=Result[MessageResponse])
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Request a password reset link. The response never reveals whether the email is registered."""
    message = PasswordResetService(db, email_sender).request_reset(payload.email)
    return Result.successful(data={"message": message})


@router.post("/reset-password", response_model=Result[MessageResponse])
async def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Set a new password using the emailed reset token."""
    PasswordResetService(db, email_sender).complete_reset(
        payload.user_id, payload.token, payload.new_password
    )
    return Result.successful(data={"message": "Password has been reset successfully"})
