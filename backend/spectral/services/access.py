"""Account access rules shared by the domain services."""

from sqlalchemy.orm import Session
from uuid import UUID

from spectral.models.account import Account, AccountEditorMap
from spectral.models.enums import MapStatus, UserRole
from spectral.models.user import User
from spectral.services.errors import NotFoundError, PermissionDenied


def has_account_access(db: Session, account: Account, user: User) -> bool:
    """
    Check whether a user may work inside an account.

    The owning creator always may; an editor needs an ACTIVE account-editor map.

    Args:
        db: Database session
        account: Linked account
        user: Current user

    Returns:
        True if access is granted
    """
    if account.creator_id == user.id:
        return True

    if user.role != UserRole.EDITOR.value:
        return False

    grant = db.query(AccountEditorMap).filter(
        AccountEditorMap.account_id == account.id,
        AccountEditorMap.editor_id == user.id,
        AccountEditorMap.status == MapStatus.ACTIVE.value
    ).first()
    return grant is not None


def get_accessible_account(db: Session, account_id: UUID, user: User) -> Account:
    """
    Load an account the user may access.

    Raises:
        NotFoundError: If the account does not exist
        PermissionDenied: If the user has no access
    """
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise NotFoundError("Account not found")

    if not has_account_access(db, account, user):
        raise PermissionDenied("You do not have access to this account")

    return account


def get_owned_account(db: Session, account_id: UUID, creator_id: UUID) -> Account:
    """Load an account owned by the creator, else 404 "Account not found or unauthorized"."""
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account or account.creator_id != creator_id:
        raise NotFoundError("Account not found or unauthorized")
    return account
