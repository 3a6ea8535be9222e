"""Database models."""

from spectral.models.user import User
from spectral.models.session import UserSession
from spectral.models.account import Account, CreatorEditorMap, AccountEditorMap
from spectral.models.folder import Folder, FolderItem
from spectral.models.media import Media
from spectral.models.contribution import Contribution, ContributionVersion, VersionComment

__all__ = [
    "User",
    "UserSession",
    "Account",
    "CreatorEditorMap",
    "AccountEditorMap",
    "Folder",
    "FolderItem",
    "Media",
    "Contribution",
    "ContributionVersion",
    "VersionComment",
]
