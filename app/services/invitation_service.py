from sqlalchemy.orm import Session
from datetime import timedelta
from urllib.parse import quote
import html
import logging
from app.config import settings
from app.models.base import utcnow
from app.models.household import Household
from app.models.household_invitation import HouseholdInvitation
from app.models.user import User
from app.repositories.household_repository import HouseholdRepository
from app.repositories.invitation_repository import InvitationRepository
from app.repositories.userRepository import UserRepository
from app.schemas.household import InvitationPreview
from app.services.email_service import EmailSender, EmailDeliveryError
from app.services.household_service import HouseholdService, ALREADY_IN_HOUSEHOLD
from app.utils.security import generate_opaque_token, hash_token
from app.core.exception import (
    BadRequestException,
    ConflictException,
    EmailDeliveryException,
    InvalidOrExpiredTokenException,
    ResourceNotFoundException,
)

logger = logging.getLogger(__name__)

INVITATION_SUBJECT = "You're invited to join a household"


class InvitationService:
    """
    Email invitations into a household.

    Only the SHA-256 of each token is stored. An invitation is pending until
    accepted; expired, unknown or already accepted tokens all fail the same
    way.
    """

    def __init__(self, db: Session, email_sender: EmailSender):
        self.db = db
        self.email_sender = email_sender
        self.user_repo = UserRepository(db)
        self.household_repo = HouseholdRepository(db)
        self.invitation_repo = InvitationRepository(db)
        self.household_service = HouseholdService(db)

    def invite(self, inviter_id: int, email: str) -> HouseholdInvitation:
        """
        Invite a registered, unaffiliated user into the inviter's household.

        The email is sent before the invitation is stored, so a delivery
        failure leaves nothing behind and the invite can simply be retried.

        Raises:
            BadRequestException: Inviter not in a household, no account for
                the email, or the invitee is already in a household
            ConflictException: A pending invitation already exists for this
                email and household
            EmailDeliveryException: The invitation email could not be sent
        """
        inviter = self._get_user(inviter_id)
        if inviter.household_id is None:
            raise BadRequestException("You must be in a household to invite others")

        # Serializes concurrent invites into the same household
        household = self.household_repo.get_for_update(inviter.household_id)
        if household is None:
            raise ResourceNotFoundException("Household", inviter.household_id)

        invitee = self.user_repo.get_by_email(email)
        if invitee is None:
            raise BadRequestException(
                "No account exists for that email. The user must register first."
            )
        if invitee.household_id is not None:
            raise BadRequestException("That user is already in a household")

        now = utcnow()
        if self.invitation_repo.get_pending(household.id, invitee.email, now) is not None:
            raise ConflictException("An invitation is already pending for that email")

        token = generate_opaque_token()
        invitation = HouseholdInvitation(
            household_id=household.id,
            email=invitee.email,
            token_hash=hash_token(token),
            invited_by_user_id=inviter.id,
            created_at=now,
            expires_at=now + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
            accepted=False,
        )

        try:
            self.email_sender.send(
                invitee.email,
                INVITATION_SUBJECT,
                self._render_email(household, inviter, token),
            )
        except EmailDeliveryError as exc:
            logger.error("Invitation email for household %s failed: %s", household.id, exc)
            raise EmailDeliveryException(
                "The invitation email could not be sent. Please try again later."
            ) from exc

        self.invitation_repo.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)
        logger.info("User %s invited user %s to household %s", inviter.id, invitee.id, household.id)
        return invitation

    def view_invitation(self, token: str) -> InvitationPreview:
        """
        Read-only preview of a pending invitation.

        Raises:
            InvalidOrExpiredTokenException: Unknown, expired or accepted token
        """
        invitation = self.invitation_repo.get_pending_by_hash(hash_token(token), utcnow())
        if invitation is None:
            raise InvalidOrExpiredTokenException("This invitation is invalid or has expired.")

        return InvitationPreview(
            household_name=invitation.household.name,
            invited_by=invitation.invited_by.username,
            email=invitation.email,
            expires_at=invitation.expires_at,
        )

    def accept_invitation(self, user_id: int, token: str) -> Household:
        """
        Join the invitation's household as the authenticated invitee.

        The invitation must be addressed to the caller's email. A mismatch is
        reported exactly like an expired token.

        Raises:
            BadRequestException: If the caller is already in a household
            InvalidOrExpiredTokenException: No usable invitation for this
                token and caller
        """
        user = self._get_user(user_id)
        if user.household_id is not None:
            raise BadRequestException(ALREADY_IN_HOUSEHOLD)

        now = utcnow()
        invitation = self.invitation_repo.get_pending_by_hash(
            hash_token(token), now, email=user.email
        )
        if invitation is None:
            raise InvalidOrExpiredTokenException("This invitation is invalid or has expired.")

        household_id = invitation.household_id
        household = self.household_repo.get_for_update(household_id)
        if household is None or not self.invitation_repo.mark_accepted(invitation.id, now):
            raise InvalidOrExpiredTokenException("This invitation is invalid or has expired.")

        if not self.household_service.attach_member(household_id, user.id):
            raise BadRequestException(ALREADY_IN_HOUSEHOLD)

        self.db.commit()
        self.db.refresh(household)
        logger.info("User %s accepted invitation into household %s", user.id, household_id)
        return household

    def _render_email(self, household: Household, inviter: User, token: str) -> str:
        link = (
            f"{settings.PUBLIC_API_URL.rstrip('/')}{settings.API_V1_STR}"
            f"/households/invitations/accept?token={quote(token)}"
        )
        return (
            "<p>Hello,</p>"
            f"<p><strong>{html.escape(inviter.username)}</strong> has invited you to join "
            f"the household <strong>{html.escape(household.name)}</strong>.</p>"
            f'<p><a href="{html.escape(link)}">Accept the invitation</a></p>'
            f"<p>This link expires in {settings.INVITATION_EXPIRE_DAYS} days. "
            "If you were not expecting it, you can ignore this email.</p>"
        )

    def _get_user(self, user_id: int) -> User:
        user = self.user_repo.get(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)
        return user
