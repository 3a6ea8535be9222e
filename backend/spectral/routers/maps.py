"""Creator-editor relationship endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Union
from uuid import UUID

from spectral.database import get_db
from spectral.middleware.auth import get_current_active_user, get_current_creator, get_current_editor
from spectral.models.account_schemas import (
    AccountEditorMapWithAccount,
    CreatorEditorMapResponse,
    CreatorEditorMapWithCreator,
    CreatorEditorMapWithEditor,
    EditorLookup,
    MapStatusUpdate,
)
from spectral.models.enums import UserRole
from spectral.models.user import User
from spectral.services.map_service import MapService

router = APIRouter()
account_editors_router = APIRouter()


@router.get("/search", response_model=EditorLookup)
async def search_editor(
    editor_email: str = Query(..., min_length=3),
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """Find an editor by email and show the current relationship status."""
    return MapService(db).find_creator_editor_map(current_user.id, editor_email)


@router.get("", response_model=Union[List[CreatorEditorMapWithEditor], List[CreatorEditorMapWithCreator]])
async def list_maps(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Relationships of the current user.

    Creators get their editors; editors get their creators.
    """
    service = MapService(db)
    if current_user.role == UserRole.CREATOR.value:
        maps = service.find_maps_by_creator_id(current_user.id)
        return [CreatorEditorMapWithEditor.model_validate(m) for m in maps]

    maps = service.find_maps_by_editor_id(current_user.id)
    return [CreatorEditorMapWithCreator.model_validate(m) for m in maps]


@router.post("/request/{editor_id}", response_model=CreatorEditorMapResponse)
async def request_editor(
    editor_id: UUID,
    current_user: User = Depends(get_current_creator),
    db: Session = Depends(get_db)
):
    """Invite an editor (status PENDING)."""
    return MapService(db).request_editor(current_user.id, editor_id)


@router.put("/{map_id}/status", response_model=CreatorEditorMapResponse)
async def update_map_status(
    map_id: UUID,
    update_data: MapStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Accept, decline or remove a relationship.

    Setting INACTIVE also revokes the editor's access to the creator's accounts.
    """
    return MapService(db).update_creator_editor_status(map_id, update_data.status, current_user)


@account_editors_router.get("/mine", response_model=List[AccountEditorMapWithAccount])
async def my_accounts(
    current_user: User = Depends(get_current_editor),
    db: Session = Depends(get_db)
):
    """Accounts the current editor has ACTIVE access to."""
    return MapService(db).find_accounts_by_editor_id(current_user.id)
