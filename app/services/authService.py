from sqlalchemy.orm import Session
from datetime import timedelta
import logging
from ..models.base import utcnow
from ..models.refresh_token import RefreshToken
from ..models.user import User
from ..repositories.refresh_token_repository import RefreshTokenRepository
from ..services.userService import UserService
from ..schemas.user import UserCreate, Token
from ..utils.security import (
    create_access_token,
    decode_access_token,
    generate_opaque_token,
)
from ..config import settings
from ..core.exception import AuthenticationException

logger = logging.getLogger(__name__)


class AuthService:
    """Service layer for authentication operations."""

    def __init__(self, db: Session):
        self.db = db
        self.user_service = UserService(db)
        self.refresh_repo = RefreshTokenRepository(db)

    def register(self, user_data: UserCreate) -> User:
        """
        Register a new user.
        Returns the created user.
        """
        return self.user_service.create_user(user_data)

    def login(self, username: str, password: str) -> Token:
        """
        Login user and return an access + refresh token pair.

        Unknown username and wrong password fail identically.
        """
        user = self.user_service.authenticate_user(username, password)

        if not user:
            raise AuthenticationException("Incorrect username or password")

        token = self._issue_tokens(user)
        self.db.commit()
        return token

    def refresh_access_token(self, refresh_token: str) -> Token:
        """
        Exchange a refresh token for a new pair, revoking the presented one.

        The revocation is a compare-and-set, so a token can only be rotated
        once even when the same value is presented concurrently.
        """
        stored = self.refresh_repo.get_by_token(refresh_token)
        if stored is None:
            raise AuthenticationException("Could not validate refresh token")

        was_revoked = stored.is_revoked
        if not self.refresh_repo.revoke_if_active(stored.id, utcnow()):
            if was_revoked:
                logger.warning("Revoked refresh token presented for user %s", stored.user_id)
            raise AuthenticationException("Could not validate refresh token")

        user = self.user_service.get_user_by_id(stored.user_id)
        if user is None:
            raise AuthenticationException("Could not validate refresh token")

        token = self._issue_tokens(user)
        self.db.commit()
        return token

    def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Succeeds whether or not the token exists."""
        self.refresh_repo.revoke(refresh_token)
        self.db.commit()

    def verify_token(self, token: str) -> User:
        """
        Verify an access token and return its user.
        """
        payload = decode_access_token(token)
        if payload is None:
            raise AuthenticationException("Could not validate credentials")

        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            raise AuthenticationException("Could not validate credentials")

        try:
            user_id = int(user_id_str)
        except (ValueError, TypeError):
            raise AuthenticationException("Invalid token format")

        user = self.user_service.get_user_by_id(user_id)
        if user is None:
            raise AuthenticationException("Could not validate credentials")

        return user

    def _issue_tokens(self, user: User) -> Token:
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.id), "username": user.username, "email": user.email},
            expires_delta=access_token_expires,
        )

        refresh = RefreshToken(
            token=generate_opaque_token(),
            user_id=user.id,
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            is_revoked=False,
        )
        self.refresh_repo.add(refresh)

        return Token(
            access_token=access_token,
            token_type="bearer",
            refresh_token=refresh.token,
            expires_in=int(access_token_expires.total_seconds()),
        )
