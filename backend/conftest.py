"""
Pytest configuration and shared fixtures for Spectral tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("JWT_SECRET_KEY", "test_jwt_secret_key_for_testing_only")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SENTRY_DSN", "")

import pytest
from typing import Generator, Dict, List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from spectral.main import app
from spectral.database import Base, get_db
from spectral.models.account import Account, AccountEditorMap, CreatorEditorMap
from spectral.models.enums import AccountStatus, MapStatus, UserRole
from spectral.models.user import User
from spectral.platforms.drive.drive_service import get_drive_service
from spectral.platforms.youtube.youtube_service import get_youtube_service
from spectral.services.auth_service import AuthService
from spectral.services.credential_service import CredentialService
from spectral.services.errors import IntegrationError
from spectral.utils.security import hash_password


# Database setup
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "TestPassword123"

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64
IMAGE_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# ============================================
# External service fakes
# ============================================

class FakeDrive:
    """In-memory stand-in for DriveService."""

    root_folder_name = "spectral"

    def __init__(self):
        self.files: Dict[str, dict] = {}
        self.folders: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_uploads = False
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def upload_file(self, data, mime_type, folder_name=None, subfolder=None, file_name=None, parent_id=None):
        if self.fail_uploads:
            raise IntegrationError("Failed to upload file to Drive due to invalid authorization", upstream_status=401)
        file_id = self._next_id("file")
        self.files[file_id] = {
            "data": data,
            "mime_type": mime_type,
            "name": file_name,
            "parent_id": parent_id or folder_name,
        }
        return {"url": f"https://drive.google.com/file/d/{file_id}/view", "file_id": file_id}

    def create_folder(self, folder_name, parent_id=None):
        folder_id = self._next_id("folder")
        self.folders[folder_id] = folder_name
        return folder_id

    def update_folder(self, folder_id, folder_name):
        self.folders[folder_id] = folder_name

    def delete_file(self, file_id):
        self.deleted.append(file_id)
        self.files.pop(file_id, None)
        self.folders.pop(file_id, None)

    def get_file_content(self, file_id):
        return self.files[file_id]["data"]


class FakeYouTube:
    """In-memory stand-in for YouTubeIntegrationService."""

    def __init__(self):
        self.email = "channel@gmail.com"
        self.refresh_token: Optional[str] = "refresh-1"
        self.fail_upload = False
        self.uploads: List[dict] = []

    def get_auth_url(self, state):
        return f"https://accounts.google.com/o/oauth2/auth?state={state}"

    def exchange_code(self, code):
        if code == "bad-code":
            raise IntegrationError("Failed to link account due to invalid authorization", upstream_status=401)
        return {"access_token": f"access-{code}", "refresh_token": self.refresh_token, "email": self.email}

    def get_channel_info(self, tokens):
        return {
            "channel_id": "UC123",
            "title": "Test Channel",
            "description": "",
            "thumbnail_url": None,
            "uploads_playlist_id": "UU123",
            "subscriber_count": 10,
            "video_count": 2,
            "view_count": 100,
            "raw": {},
        }, None

    def upload_from_drive(self, tokens, drive, drive_video_id, drive_thumbnail_id, metadata):
        if self.fail_upload:
            raise IntegrationError("Failed to upload video due to invalid authorization", upstream_status=401)
        self.uploads.append({
            "tokens": tokens,
            "video": drive_video_id,
            "thumbnail": drive_thumbnail_id,
            "metadata": metadata,
        })
        return f"yt-{len(self.uploads)}"


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def fake_youtube() -> FakeYouTube:
    return FakeYouTube()


# ============================================
# Database / client
# ============================================

@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.
    """
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(test_db: Session, fake_drive: FakeDrive, fake_youtube: FakeYouTube) -> TestClient:
    """
    Create a test client with database and Google dependencies overridden.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_drive_service] = lambda: fake_drive
    app.dependency_overrides[get_youtube_service] = lambda: fake_youtube

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# Users
# ============================================

def create_user(db: Session, email: str, name: str, role: UserRole) -> User:
    """Insert an active user with TEST_PASSWORD."""
    user = User(
        email=email,
        name=name,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role.value,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(db: Session, user: User) -> Dict[str, str]:
    """Bearer headers backed by a real session row."""
    token = AuthService.create_user_session(db, user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def creator(test_db: Session) -> User:
    return create_user(test_db, "creator@example.com", "Casey Creator", UserRole.CREATOR)


@pytest.fixture
def editor(test_db: Session) -> User:
    return create_user(test_db, "editor@example.com", "Eddie Editor", UserRole.EDITOR)


@pytest.fixture
def other_editor(test_db: Session) -> User:
    return create_user(test_db, "other.editor@example.com", "Olive Editor", UserRole.EDITOR)


@pytest.fixture
def creator_headers(test_db: Session, creator: User) -> Dict[str, str]:
    return headers_for(test_db, creator)


@pytest.fixture
def editor_headers(test_db: Session, editor: User) -> Dict[str, str]:
    return headers_for(test_db, editor)


@pytest.fixture
def other_editor_headers(test_db: Session, other_editor: User) -> Dict[str, str]:
    return headers_for(test_db, other_editor)


# ============================================
# Accounts and relationships
# ============================================

@pytest.fixture
def account(test_db: Session, creator: User) -> Account:
    """An ACTIVE linked account with encrypted tokens."""
    tokens = CredentialService().encrypt_tokens("access-token", "refresh-token")
    account = Account(
        creator_id=creator.id,
        email="channel@gmail.com",
        channel_id="UC123",
        channel_title="Test Channel",
        status=AccountStatus.ACTIVE.value,
        **tokens
    )
    test_db.add(account)
    test_db.commit()
    test_db.refresh(account)
    return account


@pytest.fixture
def creator_editor_map(test_db: Session, creator: User, editor: User) -> CreatorEditorMap:
    """ACTIVE relationship between creator and editor."""
    ce_map = CreatorEditorMap(creator_id=creator.id, editor_id=editor.id, status=MapStatus.ACTIVE.value)
    test_db.add(ce_map)
    test_db.commit()
    test_db.refresh(ce_map)
    return ce_map


@pytest.fixture
def account_editor_map(test_db: Session, account: Account, editor: User, creator_editor_map) -> AccountEditorMap:
    """Editor holds ACTIVE access to the account."""
    ae_map = AccountEditorMap(account_id=account.id, editor_id=editor.id, status=MapStatus.ACTIVE.value)
    test_db.add(ae_map)
    test_db.commit()
    test_db.refresh(ae_map)
    return ae_map


# ============================================
# Upload helpers
# ============================================

def contribution_files(video_type: str = "video/mp4", image_type: str = "image/png") -> dict:
    """Multipart file fields for a contribution or version."""
    return {
        "video": ("clip.mp4", VIDEO_BYTES, video_type),
        "thumbnail": ("thumb.png", IMAGE_BYTES, image_type),
    }


@pytest.fixture
def contribution(client: TestClient, account: Account, account_editor_map, editor_headers) -> dict:
    """A contribution submitted through the API, as returned by it."""
    response = client.post(
        "/api/contributions",
        files=contribution_files(),
        data={
            "account_id": str(account.id),
            "title": "First cut",
            "description": "Rough edit",
            "tags": "vlog, travel,,  food ",
        },
        headers=editor_headers
    )
    assert response.status_code == 201, response.text
    return response.json()

