"""
Unit tests for the Google Drive client.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from spectral.config import settings
from spectral.platforms.drive.drive_service import DriveService, FOLDER_MIME_TYPE
from spectral.services.errors import IntegrationError


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "upstream"}}')


def make_credentials(token="access", refresh_token="refresh", expiry=None):
    credentials = MagicMock()
    credentials.token = token
    credentials.refresh_token = refresh_token
    credentials.expiry = expiry
    return credentials


@pytest.fixture
def drive_api():
    return MagicMock()


@pytest.fixture
def drive(drive_api) -> DriveService:
    return DriveService(root_folder_name="spectral", credentials=make_credentials(), service=drive_api)


@pytest.mark.unit
@pytest.mark.platform
class TestDriveAuthentication:
    """Token handling."""

    def test_missing_client_credentials(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "")
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "")

        with pytest.raises(ValueError, match="Google OAuth2 credentials are missing"):
            DriveService()

    def test_credentials_built_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_REFRESH_TOKEN", "app-refresh")

        service = DriveService()

        assert service.credentials.refresh_token == "app-refresh"
        assert service.credentials.client_id == settings.GOOGLE_CLIENT_ID
        assert service.root_folder_name == settings.DRIVE_ROOT_FOLDER_NAME

    def test_no_tokens(self, drive_api):
        service = DriveService(credentials=make_credentials(token=None, refresh_token=None), service=drive_api)

        with pytest.raises(IntegrationError) as exc_info:
            service.ensure_authenticated()

        assert exc_info.value.message == "No authentication tokens available."
        assert exc_info.value.upstream_status == 401

    def test_valid_token_not_refreshed(self, drive_api):
        credentials = make_credentials(expiry=datetime.utcnow() + timedelta(hours=1))
        DriveService(credentials=credentials, service=drive_api).ensure_authenticated()

        credentials.refresh.assert_not_called()

    def test_token_close_to_expiry_refreshed(self, drive_api):
        credentials = make_credentials(expiry=datetime.utcnow() + timedelta(minutes=2))
        DriveService(credentials=credentials, service=drive_api).ensure_authenticated()

        credentials.refresh.assert_called_once()

    def test_missing_access_token_refreshed(self, drive_api):
        credentials = make_credentials(token=None)
        DriveService(credentials=credentials, service=drive_api).ensure_authenticated()

        credentials.refresh.assert_called_once()

    def test_refresh_failure(self, drive_api):
        credentials = make_credentials(token=None)
        credentials.refresh.side_effect = RefreshError("invalid_grant")

        with pytest.raises(IntegrationError, match="Token refresh failed. Please re-authenticate."):
            DriveService(credentials=credentials, service=drive_api).ensure_authenticated()

    def test_refresh_unreachable(self, drive_api):
        credentials = make_credentials(token=None)
        credentials.refresh.side_effect = TransportError("Failed to establish a new connection")

        with pytest.raises(IntegrationError) as exc_info:
            DriveService(credentials=credentials, service=drive_api).ensure_authenticated()

        assert exc_info.value.message == "Failed to refresh Drive token: upstream service unreachable"
        assert exc_info.value.upstream_status is None


@pytest.mark.unit
@pytest.mark.platform
class TestDriveFiles:
    """Uploads, folders and downloads."""

    def test_upload_to_explicit_parent(self, drive, drive_api):
        request = drive_api.files.return_value.create.return_value
        request.next_chunk.side_effect = [
            (MagicMock(), None),
            (None, {"id": "file-1", "webViewLink": "https://drive.google.com/file/d/file-1/view?usp=drivesdk"}),
        ]

        result = drive.upload_file(b"data", "video/mp4", file_name="clip.mp4", parent_id="folder-9")

        assert result == {
            "url": "https://drive.google.com/file/d/file-1/view?usp=drivesdk",
            "file_id": "file-1",
        }
        kwargs = drive_api.files.return_value.create.call_args.kwargs
        assert kwargs["body"] == {"name": "clip.mp4", "parents": ["folder-9"]}
        assert kwargs["fields"] == "id, webViewLink"
        assert request.next_chunk.call_count == 2

    def test_upload_url_fallback(self, drive, drive_api):
        drive_api.files.return_value.create.return_value.next_chunk.return_value = (None, {"id": "file-2"})

        result = drive.upload_file(b"data", "image/png", parent_id="folder-9")

        assert result["url"] == "https://drive.google.com/file/d/file-2/view"

    def test_upload_resolves_root_folder(self, drive, drive_api):
        drive_api.files.return_value.list.return_value.execute.return_value = {"files": [{"id": "root-1"}]}
        drive_api.files.return_value.create.return_value.next_chunk.return_value = (None, {"id": "file-3"})

        drive.upload_file(b"data", "image/png")

        kwargs = drive_api.files.return_value.create.call_args.kwargs
        assert kwargs["body"]["parents"] == ["root-1"]

    def test_upload_http_error(self, drive, drive_api):
        drive_api.files.return_value.create.return_value.next_chunk.side_effect = http_error(403)

        with pytest.raises(IntegrationError) as exc_info:
            drive.upload_file(b"data", "image/png", parent_id="folder-9")

        assert exc_info.value.message == "Failed to upload file to Drive due to invalid authorization"
        assert exc_info.value.upstream_status == 403

    def test_upload_connection_dropped(self, drive, drive_api):
        drive_api.files.return_value.create.return_value.next_chunk.side_effect = ConnectionResetError("reset")

        with pytest.raises(IntegrationError) as exc_info:
            drive.upload_file(b"data", "image/png", parent_id="folder-9")

        assert exc_info.value.message == "Failed to upload file to Drive: upstream service unreachable"
        assert exc_info.value.status_code == 502

    def test_create_folder_under_root(self, drive, drive_api):
        drive_api.files.return_value.list.return_value.execute.return_value = {"files": [{"id": "root-1"}]}
        drive_api.files.return_value.create.return_value.execute.return_value = {"id": "folder-1"}

        assert drive.create_folder("Raw footage") == "folder-1"

        kwargs = drive_api.files.return_value.create.call_args.kwargs
        assert kwargs["body"] == {"name": "Raw footage", "mimeType": FOLDER_MIME_TYPE, "parents": ["root-1"]}

    def test_create_root_folder(self, drive, drive_api):
        drive_api.files.return_value.create.return_value.execute.return_value = {"id": "root-1"}

        drive.create_folder("spectral")

        kwargs = drive_api.files.return_value.create.call_args.kwargs
        assert kwargs["body"]["parents"] == []
        drive_api.files.return_value.list.assert_not_called()

    def test_get_folder_id_escapes_quotes(self, drive, drive_api):
        drive_api.files.return_value.list.return_value.execute.return_value = {"files": []}

        assert drive.get_folder_id("Bob's clips", parent_id="root-1") is None

        q = drive_api.files.return_value.list.call_args.kwargs["q"]
        assert "name = 'Bob\\'s clips'" in q
        assert "'root-1' in parents" in q
        assert "trashed = false" in q

    def test_ensure_folder_exists_creates_missing_path(self, drive):
        with patch.object(drive, "get_folder_id", side_effect=["root-1", "a-1", None]) as lookup, \
                patch.object(drive, "create_folder", return_value="b-1") as create:
            assert drive.ensure_folder_exists("spectral", "a/b") == "b-1"

        assert lookup.call_count == 3
        create.assert_called_once_with("b", "a-1")

    def test_rename_folder(self, drive, drive_api):
        drive.update_folder("folder-1", "Final")

        drive_api.files.return_value.update.assert_called_once_with(fileId="folder-1", body={"name": "Final"})

    def test_delete_not_found(self, drive, drive_api):
        drive_api.files.return_value.delete.return_value.execute.side_effect = http_error(404)

        with pytest.raises(IntegrationError) as exc_info:
            drive.delete_file("gone")

        assert exc_info.value.message == "Failed to delete file from Drive: resource not found"

    def test_download_timeout(self, drive, drive_api):
        drive_api.files.return_value.get_media.side_effect = TimeoutError("timed out")

        with pytest.raises(IntegrationError, match="Failed to download file from Drive: upstream service unreachable"):
            drive.get_file_content("file-1")

    def test_get_file_content(self, drive, drive_api):
        class FakeDownload:
            def __init__(self, fd, request, chunksize):
                self.fd = fd
                self.calls = 0

            def next_chunk(self):
                self.calls += 1
                self.fd.write(b"chunk%d" % self.calls)
                return None, self.calls == 2

        with patch("spectral.platforms.drive.drive_service.MediaIoBaseDownload", FakeDownload):
            content = drive.get_file_content("file-1")

        assert content == b"chunk1chunk2"
        drive_api.files.return_value.get_media.assert_called_once_with(fileId="file-1")
