"""Service for encrypting and decrypting linked account OAuth tokens."""

import base64
import hashlib
from cryptography.fernet import Fernet, InvalidToken
from typing import Dict, Optional

from spectral.config import settings


class CredentialService:
    """Service for secure token storage."""

    def __init__(self, secret_key: Optional[str] = None):
        """Initialize credential service with an encryption key derived from SECRET_KEY."""
        self.cipher = self._get_cipher(secret_key or settings.SECRET_KEY)

    def _get_cipher(self, secret_key: str) -> Fernet:
        """
        Get Fernet cipher for encryption/decryption.

        Returns:
            Fernet cipher instance
        """
        # Create a 32-byte key from SECRET_KEY
        key = hashlib.sha256(secret_key.encode()).digest()
        return Fernet(base64.urlsafe_b64encode(key))

    def encrypt(self, value: str) -> str:
        """
        Encrypt a single token.

        Args:
            value: Plain text value

        Returns:
            Encrypted value as string
        """
        return self.cipher.encrypt(value.encode()).decode()

    def decrypt(self, encrypted_value: str) -> str:
        """
        Decrypt a single token.

        Raises:
            ValueError: If decryption fails
        """
        try:
            return self.cipher.decrypt(encrypted_value.encode()).decode()
        except InvalidToken as e:
            raise ValueError(f"Failed to decrypt credentials: {str(e) or 'invalid token'}")

    def encrypt_tokens(self, access_token: str, refresh_token: Optional[str]) -> Dict[str, Optional[str]]:
        """
        Encrypt an OAuth token pair for an Account row.

        Returns:
            Dict with encrypted_access_token and encrypted_refresh_token
        """
        return {
            "encrypted_access_token": self.encrypt(access_token),
            "encrypted_refresh_token": self.encrypt(refresh_token) if refresh_token else None,
        }

    def decrypt_tokens(self, account) -> Dict[str, Optional[str]]:
        """
        Decrypt the token pair stored on an Account.

        Returns:
            Dict with access_token and refresh_token
        """
        return {
            "access_token": self.decrypt(account.encrypted_access_token),
            "refresh_token": (
                self.decrypt(account.encrypted_refresh_token)
                if account.encrypted_refresh_token else None
            ),
        }
