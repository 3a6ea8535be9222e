"""YouTube Data API client for linked creator channels."""

from functools import lru_cache
from typing import Any, Dict, Optional, Tuple
import io
import logging

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from spectral.config import settings
from spectral.services.errors import TRANSPORT_ERRORS, IntegrationError, from_http_error, from_transport_error

logger = logging.getLogger(__name__)

YOUTUBE_SCOPES = [
    "https://www.googleapis.com/auth/youtube.readonly",
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "openid",
]
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class YouTubeIntegrationService:
    """Links creator channels through Google OAuth and publishes videos to them."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None
    ):
        """Initialize the integration.

        Args:
            client_id: OAuth client id, defaults to GOOGLE_CLIENT_ID
            client_secret: OAuth client secret, defaults to GOOGLE_CLIENT_SECRET
            redirect_uri: OAuth callback, defaults to GOOGLE_REDIRECT_URI

        Raises:
            ValueError: If the OAuth client credentials are missing
        """
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.GOOGLE_REDIRECT_URI

        if not self.client_id or not self.client_secret:
            raise ValueError("Google credentials missing for YouTube integration")

    def _flow(self) -> Flow:
        client_config = {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }
        # Authorization and code exchange happen in different requests, so no PKCE verifier
        return Flow.from_client_config(
            client_config,
            scopes=YOUTUBE_SCOPES,
            redirect_uri=self.redirect_uri,
            autogenerate_code_verifier=False
        )

    def _credentials(self, tokens: Dict[str, Optional[str]]) -> Credentials:
        return Credentials(
            token=tokens.get("access_token"),
            refresh_token=tokens.get("refresh_token"),
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=YOUTUBE_SCOPES,
        )

    def _youtube(self, credentials: Credentials):
        return build("youtube", "v3", credentials=credentials, cache_discovery=False)

    def get_auth_url(self, state: str) -> str:
        """Build the Google consent URL.

        Args:
            state: Opaque value echoed back to the callback

        Returns:
            Authorization URL requesting offline access
        """
        url, _ = self._flow().authorization_url(
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
            state=state
        )
        return url

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for tokens and look up the Google account email.

        Args:
            code: Authorization code from the callback

        Returns:
            Dictionary with access_token, refresh_token and email

        Raises:
            IntegrationError: If the exchange fails or no email is returned
        """
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except OAuth2Error as e:
            logger.error(f"OAuth code exchange failed: {e}")
            raise IntegrationError("Failed to link account due to invalid authorization", upstream_status=401)
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to exchange authorization code: {e}")
            raise from_transport_error(e, "link account")

        credentials = flow.credentials

        try:
            people = build("people", "v1", credentials=credentials, cache_discovery=False)
            me = people.people().get(resourceName="people/me", personFields="emailAddresses").execute()
        except HttpError as e:
            raise from_http_error(e, "retrieve account email")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to retrieve account email: {e}")
            raise from_transport_error(e, "retrieve account email")

        addresses = me.get("emailAddresses") or []
        email = addresses[0].get("value") if addresses else None
        if not email:
            raise IntegrationError("Could not retrieve email")

        return {
            "access_token": credentials.token,
            "refresh_token": credentials.refresh_token,
            "email": email,
        }

    def get_channel_info(self, tokens: Dict[str, Optional[str]]) -> Tuple[Dict[str, Any], Optional[Dict[str, str]]]:
        """Fetch the authenticated user's channel.

        Args:
            tokens: Dictionary with access_token and refresh_token

        Returns:
            Tuple of (channel info, refreshed tokens or None)
        """
        credentials = self._credentials(tokens)
        try:
            response = self._youtube(credentials).channels().list(
                part="snippet,contentDetails,statistics",
                mine=True
            ).execute()
        except RefreshError as e:
            logger.error(f"YouTube token refresh failed: {e}")
            raise IntegrationError("Failed to fetch channel due to invalid authorization", upstream_status=401)
        except HttpError as e:
            raise from_http_error(e, "fetch channel")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to fetch channel: {e}")
            raise from_transport_error(e, "fetch channel")

        items = response.get("items") or []
        info: Dict[str, Any] = {"raw": response}
        if items:
            channel = items[0]
            snippet = channel.get("snippet", {})
            statistics = channel.get("statistics", {})
            thumbnails = snippet.get("thumbnails", {})
            info.update({
                "channel_id": channel.get("id"),
                "title": snippet.get("title"),
                "description": snippet.get("description"),
                "thumbnail_url": (thumbnails.get("default") or {}).get("url"),
                "uploads_playlist_id": channel.get("contentDetails", {}).get("relatedPlaylists", {}).get("uploads"),
                "subscriber_count": int(statistics.get("subscriberCount", 0)),
                "video_count": int(statistics.get("videoCount", 0)),
                "view_count": int(statistics.get("viewCount", 0)),
            })

        return info, self._refreshed(credentials, tokens)

    def upload_video(self, tokens: Dict[str, Optional[str]], data: bytes, metadata: Dict[str, Any]) -> str:
        """Upload video bytes to the channel.

        Args:
            tokens: Dictionary with access_token and refresh_token
            data: Video content
            metadata: title, description, tags, privacy_status, mime_type

        Returns:
            YouTube video id
        """
        return self._insert_video(self._youtube(self._credentials(tokens)), data, metadata)

    def upload_from_drive(
        self,
        tokens: Dict[str, Optional[str]],
        drive,
        drive_video_id: str,
        drive_thumbnail_id: str,
        metadata: Dict[str, Any]
    ) -> str:
        """Copy a Drive video and its thumbnail to the channel.

        Args:
            tokens: Dictionary with access_token and refresh_token
            drive: DriveService holding the files
            drive_video_id: Drive file id of the video
            drive_thumbnail_id: Drive file id of the thumbnail
            metadata: title, description, tags, privacy_status, mime types

        Returns:
            YouTube video id
        """
        youtube = self._youtube(self._credentials(tokens))

        video_id = self._insert_video(youtube, drive.get_file_content(drive_video_id), metadata)
        try:
            self._set_thumbnail(youtube, drive, drive_thumbnail_id, video_id, metadata)
        except Exception:
            self._discard_video(youtube, video_id)
            raise

        return video_id

    def _set_thumbnail(self, youtube, drive, drive_thumbnail_id: str, video_id: str, metadata: Dict[str, Any]):
        thumbnail = drive.get_file_content(drive_thumbnail_id)
        media = MediaIoBaseUpload(
            io.BytesIO(thumbnail),
            mimetype=metadata.get("thumbnail_mime_type") or "image/jpeg"
        )
        try:
            youtube.thumbnails().set(videoId=video_id, media_body=media).execute()
        except RefreshError as e:
            logger.error(f"YouTube token refresh failed: {e}")
            raise IntegrationError("Failed to set thumbnail due to invalid authorization", upstream_status=401)
        except HttpError as e:
            raise from_http_error(e, "set thumbnail")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to set thumbnail: {e}")
            raise from_transport_error(e, "set thumbnail")

    def _discard_video(self, youtube, video_id: str):
        """Delete an uploaded video whose thumbnail could not be set."""
        try:
            youtube.videos().delete(id=video_id).execute()
        except (RefreshError, HttpError) + TRANSPORT_ERRORS as e:
            logger.error(f"Could not delete orphaned YouTube video {video_id}: {e}")
            return
        logger.warning(f"Deleted YouTube video {video_id} after thumbnail upload failed")

    def _insert_video(self, youtube, data: bytes, metadata: Dict[str, Any]) -> str:
        body = {
            "snippet": {
                "title": metadata.get("title"),
                "description": metadata.get("description") or "",
                "tags": metadata.get("tags") or [],
                "categoryId": settings.YOUTUBE_CATEGORY_ID,
            },
            "status": {
                "privacyStatus": metadata.get("privacy_status") or settings.YOUTUBE_DEFAULT_PRIVACY,
                "selfDeclaredMadeForKids": False,
            },
        }
        media = MediaIoBaseUpload(
            io.BytesIO(data),
            mimetype=metadata.get("mime_type") or "video/mp4",
            chunksize=settings.DRIVE_UPLOAD_CHUNK_SIZE,
            resumable=True
        )

        try:
            request = youtube.videos().insert(part="snippet,status", body=body, media_body=media)
            response = None
            while response is None:
                _, response = request.next_chunk()
        except RefreshError as e:
            logger.error(f"YouTube token refresh failed: {e}")
            raise IntegrationError("Failed to upload video due to invalid authorization", upstream_status=401)
        except HttpError as e:
            raise from_http_error(e, "upload video")
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach Google to upload video: {e}")
            raise from_transport_error(e, "upload video")

        logger.info(f"Uploaded video {response['id']} to YouTube")
        return response["id"]

    @staticmethod
    def _refreshed(credentials: Credentials, tokens: Dict[str, Optional[str]]) -> Optional[Dict[str, str]]:
        """Tokens to persist when the client refreshed them during a call."""
        if credentials.token and credentials.token != tokens.get("access_token"):
            return {
                "access_token": credentials.token,
                "refresh_token": credentials.refresh_token or tokens.get("refresh_token"),
            }
        return None


@lru_cache()
def get_youtube_service() -> YouTubeIntegrationService:
    """FastAPI dependency returning the process-wide YouTube integration."""
    return YouTubeIntegrationService()
