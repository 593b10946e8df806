from sqlalchemy.orm import Session
from datetime import timedelta
from urllib.parse import urlencode
import html
import logging
from app.config import settings
from app.models.base import utcnow
from app.models.password_reset_token import PasswordResetToken
from app.repositories.password_reset_repository import PasswordResetRepository
from app.repositories.userRepository import UserRepository
from app.services.email_service import EmailSender, EmailDeliveryError
from app.utils.security import generate_opaque_token, get_password_hash, hash_token
from app.core.exception import InvalidOrExpiredTokenException

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."
RESET_SUBJECT = "Reset your password"


class PasswordResetService:
    """Forgot-password flow built on single-use, hashed, short-lived tokens."""

    def __init__(self, db: Session, email_sender: EmailSender):
        self.db = db
        self.email_sender = email_sender
        self.user_repo = UserRepository(db)
        self.reset_repo = PasswordResetRepository(db)

    def request_reset(self, email: str) -> str:
        """
        Issue a reset token and email the link.

        The answer is the same whether or not the address is registered, and
        a failed send is only logged: the stored token stays valid.
        """
        user = self.user_repo.get_by_email(email)
        if user is None:
            return RESET_REQUESTED_MESSAGE

        token = generate_opaque_token()
        self.reset_repo.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=hash_token(token),
                expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
                used=False,
            )
        )
        self.db.commit()

        link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?" + urlencode(
            {"userId": user.id, "token": token}
        )
        body = (
            f"<p>Hello {html.escape(user.username)},</p>"
            "<p>We received a request to reset your password.</p>"
            f'<p><a href="{html.escape(link)}">Choose a new password</a></p>'
            f"<p>This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
            "If you did not ask for a reset, you can ignore this email.</p>"
        )
        try:
            self.email_sender.send(user.email, RESET_SUBJECT, body)
        except EmailDeliveryError as exc:
            logger.error("Password reset email for user %s failed: %s", user.id, exc)

        return RESET_REQUESTED_MESSAGE

    def complete_reset(self, user_id: int, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token.

        The token is consumed in the same transaction as the password change.

        Raises:
            InvalidOrExpiredTokenException: Wrong, expired or used token
        """
        reset = self.reset_repo.get_active(user_id, hash_token(token), utcnow())
        if reset is None:
            raise InvalidOrExpiredTokenException("Invalid or expired reset token.")

        user = self.user_repo.get(user_id)
        if user is None or not self.reset_repo.mark_used(reset.id):
            raise InvalidOrExpiredTokenException("Invalid or expired reset token.")

        self.user_repo.update_password(user, get_password_hash(new_password))
        self.db.commit()
        logger.info("Password reset completed for user %s", user_id)
