from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
import html
import json

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.household import (
    HouseholdCreate,
    HouseholdResponse,
    MyHouseholdResponse,
    InviteRequest,
    InvitationResponse,
    AcceptInvitationRequest,
    InvitationPreview,
)
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.household_service import HouseholdService
from app.services.invitation_service import InvitationService
from app.services.email_service import EmailSender, get_email_sender
from app.core.exception import InvalidOrExpiredTokenException

router = APIRouter()


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""
        <!doctype html><html lang='en'><head>
        <meta charset='utf-8'><meta name='viewport' content='width=device-width,initial-scale=1'>
        <title>{html.escape(title)}</title>
        <style>body {{font-family: sans-serif; max-width: 32rem; margin: 3rem auto; padding: 0 1rem}}</style>
        </head><body>
        <main>{body}</main>
        </body></html>
        """,
        status_code=status_code,
    )


def _invitation_page(preview: InvitationPreview, token: str) -> HTMLResponse:
    accept_url = f"{settings.API_V1_STR}/households/invitations/accept"
    login_url = f"{settings.FRONTEND_URL.rstrip('/')}/login"
    body = f"""
        <h1>Join {html.escape(preview.household_name)}</h1>
        <p><strong>{html.escape(preview.invited_by)}</strong> invited
           <strong>{html.escape(preview.email)}</strong> to share bills in this household.</p>
        <p>Sign in as that account, then accept below.</p>
        <button id='accept'>Accept invitation</button>
        <p id='status'></p>
        <script>
          const token = {json.dumps(token)};
          document.getElementById('accept').addEventListener('click', async () => {{
            const status = document.getElementById('status');
            const accessToken = localStorage.getItem('accessToken');
            if (!accessToken) {{
              window.location.href = {json.dumps(login_url)} + '?next=' + encodeURIComponent(window.location.href);
              return;
            }}
            const res = await fetch({json.dumps(accept_url)}, {{
              method: 'POST',
              headers: {{'Content-Type': 'application/json', 'Authorization': 'Bearer ' + accessToken}},
              body: JSON.stringify({{token}}),
            }});
            const result = await res.json();
            status.textContent = result.success
              ? 'You joined the household.'
              : (result.error && result.error.message) || 'Could not accept the invitation.';
          }});
        </script>
    """
    return _page("Household invitation", body)


@router.get("/me", response_model=Result[MyHouseholdResponse])
async def get_my_household(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the current user's household with its members, or null."""
    service = HouseholdService(db)
    household = service.get_my_household(current_user.id)
    return Result.successful(data={"household": household})


@router.post("", response_model=Result[HouseholdResponse], status_code=status.HTTP_201_CREATED)
async def create_household(
    household_data: HouseholdCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a household; the caller's existing bills move into it."""
    service = HouseholdService(db)
    household = service.create_household(current_user.id, household_data)
    return Result.successful(data=household)


@router.delete("", response_model=Result[MessageResponse])
async def delete_household(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Dissolve the caller's household for all members."""
    service = HouseholdService(db)
    result = service.delete_household(current_user.id)
    return Result.successful(data=result)


@router.post("/leave", response_model=Result[MessageResponse])
async def leave_household(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Leave the current household. The last member leaving removes it."""
    service = HouseholdService(db)
    result = service.leave_household(current_user.id)
    return Result.successful(data=result)


@router.delete("/members/{member_id}", response_model=Result[MessageResponse])
async def remove_member(
    member_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove a member from the caller's household."""
    service = HouseholdService(db)
    result = service.remove_member(current_user.id, member_id)
    return Result.successful(data=result)


@router.post("/invite", response_model=Result[InvitationResponse], status_code=status.HTTP_201_CREATED)
async def invite_to_household(
    invite_data: InviteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Email an invitation to a registered user who is not in a household."""
    service = InvitationService(db, email_sender)
    invitation = service.invite(current_user.id, invite_data.email)
    return Result.successful(data=invitation)


@router.get("/invitations/accept", response_class=HTMLResponse, include_in_schema=False)
async def view_invitation(
    token: str = Query(""),
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Unauthenticated acceptance page linked from the invitation email."""
    service = InvitationService(db, email_sender)
    try:
        preview = service.view_invitation(token)
    except InvalidOrExpiredTokenException:
        return _page(
            "Invitation unavailable",
            "<h1>Invitation unavailable</h1>"
            "<p>This invitation link is invalid, has expired or has already been used.</p>",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return _invitation_page(preview, token)


@router.post("/invitations/accept", response_model=Result[HouseholdResponse])
async def accept_invitation(
    payload: AcceptInvitationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Join the household of an invitation addressed to the caller."""
    service = InvitationService(db, email_sender)
    household = service.accept_invitation(current_user.id, payload.token)
    return Result.successful(data=household)
