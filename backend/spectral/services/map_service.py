"""Creator-editor and account-editor relationship maps."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from typing import Any, Dict, List
from uuid import UUID
import logging

from spectral.models.account import Account, AccountEditorMap, CreatorEditorMap
from spectral.models.enums import MapStatus, UserRole
from spectral.models.user import User
from spectral.services.access import get_owned_account
from spectral.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)

logger = logging.getLogger(__name__)


class MapService:
    """Invitations between creators and editors, and per-account editor grants."""

    def __init__(self, db: Session):
        self.db = db

    # ============================================
    # Creator <-> Editor
    # ============================================

    def find_creator_editor_map(self, creator_id: UUID, editor_email: str) -> Dict[str, Any]:
        """
        Look up an editor by email together with the creator's relationship to them.

        Args:
            creator_id: Searching creator
            editor_email: Editor's email address

        Returns:
            Lookup dictionary; status is INACTIVE when no map exists

        Raises:
            NotFoundError: If the editor or the creator is unknown
        """
        editor = self.db.query(User).filter(User.email == editor_email.strip().lower()).first()
        if not editor or editor.role != UserRole.EDITOR.value:
            raise NotFoundError("Editor not found")

        creator = self._get_creator(creator_id, "Creator not found")

        ce_map = self.db.query(CreatorEditorMap).filter(
            CreatorEditorMap.creator_id == creator.id,
            CreatorEditorMap.editor_id == editor.id
        ).first()

        return {
            "creator_id": creator.id,
            "editor_id": editor.id,
            "editor_mail": editor.email,
            "editor_name": editor.name,
            "editor_avatar": editor.image or "",
            "status": ce_map.status if ce_map else MapStatus.INACTIVE.value,
        }

    def find_maps_by_creator_id(self, creator_id: UUID) -> List[CreatorEditorMap]:
        """All of a creator's editor relationships, editor included."""
        return self.db.query(CreatorEditorMap).options(
            joinedload(CreatorEditorMap.editor)
        ).filter(
            CreatorEditorMap.creator_id == creator_id
        ).order_by(CreatorEditorMap.created_at.desc()).all()

    def find_maps_by_editor_id(self, editor_id: UUID) -> List[CreatorEditorMap]:
        """All of an editor's creator relationships, creator included."""
        return self.db.query(CreatorEditorMap).options(
            joinedload(CreatorEditorMap.creator)
        ).filter(
            CreatorEditorMap.editor_id == editor_id
        ).order_by(CreatorEditorMap.created_at.desc()).all()

    def request_editor(self, creator_id: UUID, editor_id: UUID) -> CreatorEditorMap:
        """
        Invite an editor. An existing relationship is reset to PENDING.

        Raises:
            NotFoundError: If the editor does not exist
        """
        editor = self.db.query(User).filter(User.id == editor_id).first()
        if not editor or editor.role != UserRole.EDITOR.value:
            raise NotFoundError("Editor not found")

        ce_map = self.db.query(CreatorEditorMap).filter(
            CreatorEditorMap.creator_id == creator_id,
            CreatorEditorMap.editor_id == editor_id
        ).first()

        if ce_map:
            ce_map.status = MapStatus.PENDING.value
        else:
            ce_map = CreatorEditorMap(
                creator_id=creator_id,
                editor_id=editor_id,
                status=MapStatus.PENDING.value
            )
            self.db.add(ce_map)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Invitation already exists")

        self.db.refresh(ce_map)
        logger.info(f"Creator {creator_id} invited editor {editor_id}")
        return ce_map

    def update_creator_editor_status(self, map_id: UUID, status: MapStatus, actor: User) -> CreatorEditorMap:
        """
        Change a creator-editor relationship.

        The editor accepts (ACTIVE) or declines (INACTIVE) an invitation; the
        creator may re-invite (PENDING) or remove (INACTIVE). Going INACTIVE
        revokes every grant the editor holds on the creator's accounts.

        Raises:
            NotFoundError: If the map does not exist or the actor is not part of it
            PermissionDenied: If the actor may not make this change
            ValidationError: If the invitation is not pending
        """
        ce_map = self.db.query(CreatorEditorMap).filter(CreatorEditorMap.id == map_id).first()
        if not ce_map or actor.id not in (ce_map.creator_id, ce_map.editor_id):
            raise NotFoundError("Relationship not found")

        if actor.id == ce_map.editor_id:
            if status == MapStatus.PENDING:
                raise PermissionDenied("Only the creator can send an invitation")
            if status == MapStatus.ACTIVE and ce_map.status == MapStatus.INACTIVE.value:
                raise ValidationError("Invitation is no longer pending")
        elif status == MapStatus.ACTIVE and ce_map.status != MapStatus.ACTIVE.value:
            raise PermissionDenied("Only the editor can accept an invitation")

        ce_map.status = status.value

        if status == MapStatus.INACTIVE:
            account_ids = [
                row.id for row in
                self.db.query(Account.id).filter(Account.creator_id == ce_map.creator_id).all()
            ]
            if account_ids:
                self.db.query(AccountEditorMap).filter(
                    AccountEditorMap.account_id.in_(account_ids),
                    AccountEditorMap.editor_id == ce_map.editor_id
                ).update({"status": MapStatus.INACTIVE.value}, synchronize_session=False)

        self.db.commit()
        self.db.refresh(ce_map)
        return ce_map

    # ============================================
    # Account <-> Editor
    # ============================================

    def find_account_editors(self, creator_id: UUID, account_id: UUID) -> List[AccountEditorMap]:
        """
        ACTIVE editor grants on one of the creator's accounts.

        Raises:
            NotFoundError: If the creator is invalid or does not own the account
        """
        self._get_creator(creator_id, "Invalid creator")
        get_owned_account(self.db, account_id, creator_id)

        return self.db.query(AccountEditorMap).options(
            joinedload(AccountEditorMap.editor)
        ).filter(
            AccountEditorMap.account_id == account_id,
            AccountEditorMap.status == MapStatus.ACTIVE.value
        ).all()

    def find_accounts_by_editor_id(self, editor_id: UUID) -> List[AccountEditorMap]:
        """ACTIVE grants held by an editor, account included."""
        return self.db.query(AccountEditorMap).options(
            joinedload(AccountEditorMap.account)
        ).filter(
            AccountEditorMap.editor_id == editor_id,
            AccountEditorMap.status == MapStatus.ACTIVE.value
        ).all()

    def change_account_editor_status(
        self,
        creator_id: UUID,
        account_id: UUID,
        editor_id: UUID,
        status: MapStatus
    ) -> AccountEditorMap:
        """
        Grant or revoke an editor's access to an account.

        Raises:
            NotFoundError: If the creator does not own the account
            ValidationError: If creator and editor are not actively connected
        """
        get_owned_account(self.db, account_id, creator_id)

        ce_map = self.db.query(CreatorEditorMap).filter(
            CreatorEditorMap.creator_id == creator_id,
            CreatorEditorMap.editor_id == editor_id,
            CreatorEditorMap.status == MapStatus.ACTIVE.value
        ).first()
        if not ce_map:
            raise ValidationError("No active relationship between creator and editor")

        ae_map = self.db.query(AccountEditorMap).filter(
            AccountEditorMap.account_id == account_id,
            AccountEditorMap.editor_id == editor_id
        ).first()

        if ae_map:
            ae_map.status = status.value
        else:
            ae_map = AccountEditorMap(account_id=account_id, editor_id=editor_id, status=status.value)
            self.db.add(ae_map)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Editor access was changed concurrently, please retry")

        self.db.refresh(ae_map)
        logger.info(f"Account {account_id} editor {editor_id} set to {status.value}")
        return ae_map

    def _get_creator(self, creator_id: UUID, message: str) -> User:
        creator = self.db.query(User).filter(User.id == creator_id).first()
        if not creator or creator.role != UserRole.CREATOR.value:
            raise NotFoundError(message)
        return creator
