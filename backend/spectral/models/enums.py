"""Status and role values shared by models and schemas."""

import enum


class UserRole(str, enum.Enum):
    CREATOR = "creator"
    EDITOR = "editor"


class AccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class MapStatus(str, enum.Enum):
    """Lifecycle of creator-editor and account-editor relationships."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class MediaType(str, enum.Enum):
    VIDEO = "VIDEO"
    IMAGE = "IMAGE"


class VersionStatus(str, enum.Enum):
    """Review status of a contribution version."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


# COMPLETED and REJECTED are terminal
VERSION_TRANSITIONS = {
    VersionStatus.PENDING: {VersionStatus.PROCESSING, VersionStatus.COMPLETED, VersionStatus.REJECTED},
    VersionStatus.PROCESSING: {VersionStatus.PENDING, VersionStatus.COMPLETED, VersionStatus.REJECTED},
    VersionStatus.COMPLETED: set(),
    VersionStatus.REJECTED: set(),
}
