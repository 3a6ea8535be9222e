"""Linked YouTube account management."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from spectral.models.account import Account, AccountEditorMap
from spectral.models.enums import AccountStatus, MapStatus
from spectral.models.user import User
from spectral.platforms.youtube.youtube_service import YouTubeIntegrationService
from spectral.services.access import get_accessible_account, get_owned_account
from spectral.services.credential_service import CredentialService
from spectral.services.errors import ConflictError, IntegrationError
from spectral.utils.security import create_oauth_state

logger = logging.getLogger(__name__)


class AccountService:
    """Links, lists and unlinks creator YouTube accounts."""

    def __init__(
        self,
        db: Session,
        youtube: Optional[YouTubeIntegrationService] = None,
        credentials: Optional[CredentialService] = None
    ):
        self.db = db
        self.youtube = youtube
        self.credentials = credentials or CredentialService()

    def get_link_url(self, creator: User) -> str:
        """Consent URL whose state carries the creator id."""
        return self.youtube.get_auth_url(create_oauth_state(str(creator.id)))

    def link_account(self, creator_id: UUID, code: str) -> Account:
        """
        Exchange an authorization code and store the linked account.

        An inactive link to the same Google account is reactivated with the
        fresh tokens.

        Args:
            creator_id: Owning creator
            code: Authorization code from Google

        Returns:
            The linked Account

        Raises:
            ConflictError: If the Google account is already actively linked
            IntegrationError: If the code exchange fails
        """
        result = self.youtube.exchange_code(code)
        email = result["email"]

        account = self.db.query(Account).filter(
            Account.creator_id == creator_id,
            Account.email == email
        ).first()

        if account and account.status == AccountStatus.ACTIVE.value:
            raise ConflictError("This YouTube account is already linked")

        encrypted = self.credentials.encrypt_tokens(result["access_token"], result.get("refresh_token"))

        if account:
            account.encrypted_access_token = encrypted["encrypted_access_token"]
            if encrypted["encrypted_refresh_token"]:
                account.encrypted_refresh_token = encrypted["encrypted_refresh_token"]
            account.status = AccountStatus.ACTIVE.value
        else:
            account = Account(
                creator_id=creator_id,
                email=email,
                status=AccountStatus.ACTIVE.value,
                **encrypted
            )
            self.db.add(account)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("This YouTube account is already linked")
        self.db.refresh(account)

        try:
            self.refresh_channel_info(account)
        except IntegrationError as e:
            # Channel details are optional at link time
            logger.warning(f"Could not load channel for account {account.id}: {e}")

        logger.info(f"Creator {creator_id} linked YouTube account {account.id}")
        return account

    def get_creator_entries(self, creator_id: UUID, status: Optional[AccountStatus] = None) -> List[Account]:
        """List a creator's linked accounts, optionally filtered by status."""
        query = self.db.query(Account).filter(Account.creator_id == creator_id)
        if status:
            query = query.filter(Account.status == status.value)
        return query.order_by(Account.created_at.desc()).all()

    def get_account(self, account_id: UUID, user: User) -> Account:
        """Account visible to the user (owner or editor with access)."""
        return get_accessible_account(self.db, account_id, user)

    def update_entry(
        self,
        account_id: UUID,
        creator_id: UUID,
        status: Optional[AccountStatus] = None,
        email: Optional[str] = None
    ) -> Account:
        """
        Update a linked account's status or email.

        Deactivating an account also deactivates every editor grant on it.

        Raises:
            NotFoundError: If the creator does not own the account
        """
        account = get_owned_account(self.db, account_id, creator_id)

        if email:
            account.email = email.strip()

        if status:
            account.status = status.value
            if status == AccountStatus.INACTIVE:
                self._deactivate_editor_maps(account.id)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Another linked account already uses this email")
        self.db.refresh(account)
        return account

    def unlink(self, account_id: UUID, creator_id: UUID) -> Account:
        """Mark an account INACTIVE and revoke editor access to it."""
        account = self.update_entry(account_id, creator_id, status=AccountStatus.INACTIVE)
        logger.info(f"Creator {creator_id} unlinked account {account_id}")
        return account

    def get_tokens(self, account: Account) -> Dict[str, Optional[str]]:
        """Decrypted OAuth tokens of an account."""
        return self.credentials.decrypt_tokens(account)

    def get_channel_info(self, account_id: UUID, user: User) -> Dict[str, Any]:
        """Fetch live channel details for an account the user may access."""
        account = get_accessible_account(self.db, account_id, user)
        return self.refresh_channel_info(account)

    def refresh_channel_info(self, account: Account) -> Dict[str, Any]:
        """
        Fetch channel details and store the channel id/title.

        Tokens refreshed by the Google client during the call are persisted.
        """
        info, refreshed = self.youtube.get_channel_info(self.get_tokens(account))

        if refreshed:
            encrypted = self.credentials.encrypt_tokens(refreshed["access_token"], refreshed.get("refresh_token"))
            account.encrypted_access_token = encrypted["encrypted_access_token"]
            if encrypted["encrypted_refresh_token"]:
                account.encrypted_refresh_token = encrypted["encrypted_refresh_token"]

        if info.get("channel_id"):
            account.channel_id = info["channel_id"]
            account.channel_title = info.get("title")

        self.db.commit()
        return info

    def _deactivate_editor_maps(self, account_id: UUID):
        self.db.query(AccountEditorMap).filter(
            AccountEditorMap.account_id == account_id
        ).update({"status": MapStatus.INACTIVE.value}, synchronize_session=False)
