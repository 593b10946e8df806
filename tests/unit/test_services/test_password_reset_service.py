import pytest
from datetime import timedelta
from sqlalchemy.orm import Session

from app.models.base import utcnow
from app.models.password_reset_token import PasswordResetToken
from app.services.authService import AuthService
from app.services.password_reset_service import PasswordResetService, RESET_REQUESTED_MESSAGE
from app.utils.security import hash_token, verify_password
from app.core.exception import AuthenticationException, InvalidOrExpiredTokenException


@pytest.mark.unit
class TestPasswordResetService:
    """Unit tests for the forgot-password flow."""

    def test_unknown_email_gets_same_answer(self, db_session: Session, email_sender):
        service = PasswordResetService(db_session, email_sender)

        message = service.request_reset("ghost@example.com")

        assert message == RESET_REQUESTED_MESSAGE
        assert email_sender.outbox == []
        assert db_session.query(PasswordResetToken).count() == 0

    def test_request_reset_emails_link_and_stores_hash(self, db_session: Session, email_sender, test_user):
        service = PasswordResetService(db_session, email_sender)

        message = service.request_reset("Test@Example.com")

        assert message == RESET_REQUESTED_MESSAGE
        assert email_sender.outbox[-1]["to"] == "test@example.com"
        assert f"userId={test_user.id}" in email_sender.outbox[-1]["html"]
        token = email_sender.last_token_for("test@example.com")
        stored = db_session.query(PasswordResetToken).filter_by(user_id=test_user.id).one()
        assert stored.token_hash == hash_token(token)
        assert stored.used is False

    def test_email_failure_is_not_reported(self, db_session: Session, email_sender, test_user):
        email_sender.fail = True
        service = PasswordResetService(db_session, email_sender)

        assert service.request_reset("test@example.com") == RESET_REQUESTED_MESSAGE
        assert db_session.query(PasswordResetToken).filter_by(user_id=test_user.id).count() == 1

    def test_complete_reset_changes_password_once(self, db_session: Session, email_sender, test_user):
        service = PasswordResetService(db_session, email_sender)
        service.request_reset("test@example.com")
        token = email_sender.last_token_for("test@example.com")

        service.complete_reset(test_user.id, token, "brandnew123")

        db_session.refresh(test_user)
        assert verify_password("brandnew123", test_user.hashed_password)
        assert AuthService(db_session).login("testuser", "brandnew123").access_token
        with pytest.raises(AuthenticationException):
            AuthService(db_session).login("testuser", "testpass123")

        with pytest.raises(InvalidOrExpiredTokenException):
            service.complete_reset(test_user.id, token, "another123")

    def test_complete_reset_rejects_wrong_user_or_token(self, db_session: Session, email_sender, test_user, make_user):
        other = make_user("other")
        service = PasswordResetService(db_session, email_sender)
        service.request_reset("test@example.com")
        token = email_sender.last_token_for("test@example.com")

        with pytest.raises(InvalidOrExpiredTokenException):
            service.complete_reset(other.id, token, "brandnew123")
        with pytest.raises(InvalidOrExpiredTokenException):
            service.complete_reset(test_user.id, "wrong-token", "brandnew123")

    def test_complete_reset_rejects_expired_token(self, db_session: Session, email_sender, test_user):
        service = PasswordResetService(db_session, email_sender)
        service.request_reset("test@example.com")
        token = email_sender.last_token_for("test@example.com")
        stored = db_session.query(PasswordResetToken).filter_by(user_id=test_user.id).one()
        stored.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        with pytest.raises(InvalidOrExpiredTokenException):
            service.complete_reset(test_user.id, token, "brandnew123")

    def test_multiple_outstanding_tokens_each_work(self, db_session: Session, email_sender, test_user):
        service = PasswordResetService(db_session, email_sender)
        service.request_reset("test@example.com")
        first = email_sender.last_token_for("test@example.com")
        service.request_reset("test@example.com")
        second = email_sender.last_token_for("test@example.com")

        service.complete_reset(test_user.id, first, "brandnew123")
        service.complete_reset(test_user.id, second, "evennewer123")

        db_session.refresh(test_user)
        assert verify_password("evennewer123", test_user.hashed_password)
