"""Linked YouTube account endpoints."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from urllib.parse import urlencode
from uuid import UUID
import logging

from spectral.config import settings
from spectral.database import get_db
from spectral.middleware.auth import get_current_active_user, get_current_creator
from spectral.models.account_schemas import (
    AccountEditorMapResponse,
    AccountEditorMapWithEditor,
    AccountLinkRequest,
    AccountLinkUrl,
    AccountResponse,
    AccountUpdate,
    ChannelInfo,
    MapStatusUpdate,
)
from spectral.models.enums import AccountStatus
from spectral.models.user import User
from spectral.platforms.youtube.youtube_service import YouTubeIntegrationService, get_youtube_service
from spectral.services.account_service import AccountService
from spectral.services.errors import ConflictError, ServiceError
from spectral.services.map_service import MapService
from spectral.utils.security import read_oauth_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _frontend_redirect(**params) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL.rstrip('/')}/accounts?{urlencode(params)}",
        status_code=status.HTTP_302_FOUND
    )


@router.get("/link-url", response_model=AccountLinkUrl)
async def get_link_url(
    current_user: User = Depends(get_current_creator),
    youtube: YouTubeIntegrationService = Depends(get_youtube_service),
    db: Session = Depends(get_db)
):
    """
    Google consent URL for linking a YouTube channel.

    The ``state`` parameter is a short-lived signed token naming the creator.
    """
    return AccountLinkUrl(url=AccountService(db, youtube).get_link_url(current_user))


@router.get("/oauth/callback", include_in_schema=False)
def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    youtube: YouTubeIntegrationService = Depends(get_youtube_service),
    db: Session = Depends(get_db)
):
    """
    OAuth redirect target. Always redirects back to the frontend accounts page.
    """
    if error:
        return _frontend_redirect(error=error)

    if not code:
        return _frontend_redirect(error="missing_code")

    creator_id = read_oauth_state(state) if state else None
    if not creator_id:
        return _frontend_redirect(error="invalid_state")

    try:
        AccountService(db, youtube).link_account(UUID(creator_id), code)
    except ConflictError:
        return _frontend_redirect(error="already_linked")
    except ServiceError as e:
        logger.error(f"OAuth callback failed for creator {creator_id}: {e}")
        return _frontend_redirect(error="callback_failed")

    return _frontend_redirect(success="linked")


@router.post("/link", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def link_account(
    link_data: AccountLinkRequest,
    current_user: User = Depends(get_current_creator),
    youtube: YouTubeIntegrationService = Depends(get_youtube_service),
    db: Session = Depends(get_db)
):
    """
    Link a YouTube account from an authorization code.

    Returns 409 if the Google account is already actively linked.
    """
    return AccountService(db, youtube).link_account(current_user.id, link_data.code)


@router.get("", response_model=List[AccountResponse])
async def list_accounts(
    account_status: Optional[AccountStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """List the creator's linked accounts."""
    return AccountService(db).get_creator_entries(current_user.id, account_status)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get a linked account (owner or editor with access)."""
    return AccountService(db).get_account(account_id, current_user)


@router.get("/{account_id}/channel", response_model=ChannelInfo)
def get_channel(
    account_id: UUID,
    current_user: User = Depends(get_current_active_user),
    youtube: YouTubeIntegrationService = Depends(get_youtube_service),
    db: Session = Depends(get_db)
):
    """Live channel details from YouTube."""
    return AccountService(db, youtube).get_channel_info(account_id, current_user)


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: UUID,
    update_data: AccountUpdate,
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """Update a linked account's status or email."""
    return AccountService(db).update_entry(
        account_id,
        current_user.id,
        status=update_data.status,
        email=update_data.email
    )


@router.post("/{account_id}/unlink", response_model=AccountResponse)
async def unlink_account(
    account_id: UUID,
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """Unlink an account. Editors lose access to it."""
    return AccountService(db).unlink(account_id, current_user.id)


@router.get("/{account_id}/editors", response_model=List[AccountEditorMapWithEditor])
async def list_account_editors(
    account_id: UUID,
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """Editors with ACTIVE access to the account."""
    return MapService(db).find_account_editors(current_user.id, account_id)


@router.put("/{account_id}/editors/{editor_id}", response_model=AccountEditorMapResponse)
async def change_account_editor(
    account_id: UUID,
    editor_id: UUID,
    update_data: MapStatusUpdate,
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """
    Grant or revoke an editor's access to the account.

    The editor must have an ACTIVE relationship with the creator.
    """
    return MapService(db).change_account_editor_status(
        current_user.id, account_id, editor_id, update_data.status
    )
