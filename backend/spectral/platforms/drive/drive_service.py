"""Google Drive client used as the media store."""

from datetime import datetime, timedelta
from functools import lru_cache
from typing import Dict, Optional
import io
import logging
import uuid

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from spectral.config import settings
from spectral.services.errors import TRANSPORT_ERRORS, IntegrationError, from_http_error, from_transport_error

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Refresh this long before the access token actually expires
REFRESH_MARGIN = timedelta(minutes=5)


class DriveService:
    """Client for the Google Drive API v3, authenticated with the application's refresh token."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        root_folder_name: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        service=None
    ):
        """Initialize the Drive client.

        Args:
            client_id: OAuth client id, defaults to GOOGLE_CLIENT_ID
            client_secret: OAuth client secret, defaults to GOOGLE_CLIENT_SECRET
            refresh_token: Long-lived refresh token, defaults to GOOGLE_REFRESH_TOKEN
            root_folder_name: Top-level Drive folder, defaults to DRIVE_ROOT_FOLDER_NAME
            credentials: Prebuilt credentials (skips the settings lookup)
            service: Prebuilt Drive resource

        Raises:
            ValueError: If the OAuth client credentials are missing
        """
        self.root_folder_name = root_folder_name or settings.DRIVE_ROOT_FOLDER_NAME
        self.chunk_size = settings.DRIVE_UPLOAD_CHUNK_SIZE

        if credentials is None:
            client_id = client_id or settings.GOOGLE_CLIENT_ID
            client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
            if not client_id or not client_secret:
                raise ValueError("Google OAuth2 credentials are missing")

            credentials = Credentials(
                token=None,  # obtained through the refresh flow
                refresh_token=refresh_token or settings.GOOGLE_REFRESH_TOKEN or None,
                token_uri=TOKEN_URI,
                client_id=client_id,
                client_secret=client_secret,
                scopes=DRIVE_SCOPES,
            )

        self.credentials = credentials
        self._service = service

    @property
    def drive(self):
        """Lazily built Drive v3 resource."""
        if self._service is None:
            self._service = build("drive", "v3", credentials=self.credentials, cache_discovery=False)
        return self._service

    def ensure_authenticated(self):
        """Refresh the access token when it is missing or about to expire.

        Raises:
            IntegrationError: If no tokens are available or the refresh fails
        """
        creds = self.credentials

        if not creds.token and not creds.refresh_token:
            raise IntegrationError("No authentication tokens available.", upstream_status=401)

        expiry = creds.expiry
        needs_refresh = not creds.token or (expiry is not None and datetime.utcnow() >= expiry - REFRESH_MARGIN)
        if not needs_refresh:
            return

        try:
            creds.refresh(Request())
        except RefreshError as e:
            logger.error(f"Drive token refresh failed: {e}")
            raise IntegrationError("Token refresh failed. Please re-authenticate.", upstream_status=401)
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to refresh Drive token: {e}")
            raise from_transport_error(e, "refresh Drive token")

    def upload_file(
        self,
        data: bytes,
        mime_type: str,
        folder_name: Optional[str] = None,
        subfolder: Optional[str] = None,
        file_name: Optional[str] = None,
        parent_id: Optional[str] = None
    ) -> Dict[str, str]:
        """Upload bytes to Drive with a resumable chunked upload.

        Args:
            data: File content
            mime_type: Content type
            folder_name: Top-level folder to upload into (created if missing)
            subfolder: Optional ``/``-separated path below ``folder_name``
            file_name: Drive file name, defaults to a random UUID
            parent_id: Explicit parent folder id, overrides folder_name/subfolder

        Returns:
            Dictionary with ``url`` and ``file_id``
        """
        final_name = file_name or str(uuid.uuid4())
        self.ensure_authenticated()

        if parent_id is None:
            parent_id = self.ensure_folder_exists(folder_name or self.root_folder_name, subfolder)

        media = MediaIoBaseUpload(
            io.BytesIO(data),
            mimetype=mime_type or "application/octet-stream",
            chunksize=self.chunk_size,
            resumable=True
        )

        try:
            request = self.drive.files().create(
                body={"name": final_name, "parents": [parent_id]},
                media_body=media,
                fields="id, webViewLink"
            )
            response = None
            while response is None:
                _, response = request.next_chunk()
        except HttpError as e:
            logger.error(f"Drive upload failed for {final_name}: {e}")
            raise from_http_error(e, "upload file to Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to upload file to Drive: {e}")
            raise from_transport_error(e, "upload file to Drive")

        file_id = response["id"]
        return {
            "url": response.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view",
            "file_id": file_id,
        }

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> str:
        """Create a folder, by default inside the root folder.

        Args:
            folder_name: Name of the new folder
            parent_id: Parent folder id

        Returns:
            New folder id
        """
        self.ensure_authenticated()
        if not parent_id and folder_name != self.root_folder_name:
            parent_id = self.ensure_folder_exists(self.root_folder_name)

        body = {
            "name": folder_name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [parent_id] if parent_id else [],
        }

        try:
            response = self.drive.files().create(body=body, fields="id").execute()
        except HttpError as e:
            logger.error(f"Failed to create folder {folder_name}: {e}")
            raise from_http_error(e, "create folder in Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to create folder in Drive: {e}")
            raise from_transport_error(e, "create folder in Drive")

        return response["id"]

    def update_folder(self, folder_id: str, folder_name: str):
        """Rename a folder."""
        self.ensure_authenticated()
        try:
            self.drive.files().update(fileId=folder_id, body={"name": folder_name}).execute()
        except HttpError as e:
            logger.error(f"Failed to update folder {folder_id}: {e}")
            raise from_http_error(e, "update folder in Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to update folder in Drive: {e}")
            raise from_transport_error(e, "update folder in Drive")

    def delete_file(self, file_id: str):
        """Delete a file or folder."""
        self.ensure_authenticated()
        try:
            self.drive.files().delete(fileId=file_id).execute()
        except HttpError as e:
            logger.error(f"Failed to delete file {file_id}: {e}")
            raise from_http_error(e, "delete file from Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to delete file from Drive: {e}")
            raise from_transport_error(e, "delete file from Drive")

    def get_file_content(self, file_id: str) -> bytes:
        """Download a file into memory.

        Args:
            file_id: Drive file id

        Returns:
            File content
        """
        self.ensure_authenticated()
        buffer = io.BytesIO()
        try:
            request = self.drive.files().get_media(fileId=file_id)
            downloader = MediaIoBaseDownload(buffer, request, chunksize=self.chunk_size)
            done = False
            while not done:
                _, done = downloader.next_chunk()
        except HttpError as e:
            logger.error(f"Failed to download file {file_id}: {e}")
            raise from_http_error(e, "download file from Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to download file from Drive: {e}")
            raise from_transport_error(e, "download file from Drive")

        return buffer.getvalue()

    def get_folder_id(self, folder_name: str, parent_id: Optional[str] = None) -> Optional[str]:
        """Look up a non-trashed folder by name.

        Args:
            folder_name: Folder name
            parent_id: Restrict the search to this parent

        Returns:
            Folder id or None
        """
        self.ensure_authenticated()
        escaped = folder_name.replace("\\", "\\\\").replace("'", "\\'")
        q = f"name = '{escaped}' and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
        if parent_id:
            q += f" and '{parent_id}' in parents"

        try:
            response = self.drive.files().list(q=q, fields="files(id,name)").execute()
        except HttpError as e:
            logger.error(f"Failed to look up folder {folder_name}: {e}")
            raise from_http_error(e, "look up folder in Drive")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to look up folder in Drive: {e}")
            raise from_transport_error(e, "look up folder in Drive")

        files = response.get("files") or []
        return files[0]["id"] if files else None

    def ensure_folder_exists(self, folder_name: str, subfolder: Optional[str] = None) -> str:
        """Look up or create ``folder_name`` and every part of ``subfolder`` below it.

        Args:
            folder_name: Top-level folder name
            subfolder: Optional ``/``-separated path

        Returns:
            Id of the deepest folder
        """
        parent_id = self.get_folder_id(folder_name)
        if not parent_id:
            parent_id = self.create_folder(folder_name)

        if subfolder:
            for part in [p for p in subfolder.split("/") if p]:
                folder_id = self.get_folder_id(part, parent_id)
                if not folder_id:
                    folder_id = self.create_folder(part, parent_id)
                parent_id = folder_id

        return parent_id


@lru_cache()
def get_drive_service() -> DriveService:
    """FastAPI dependency returning the process-wide Drive client."""
    return DriveService()
