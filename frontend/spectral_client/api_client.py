"""API client for backend communication."""

import requests
from typing import Optional, Dict, Any, Tuple
import os

from spectral_client.action_result import ActionResult, CONNECTION_ERROR_MESSAGE, status_message

# (file name, content, mime type)
FileTuple = Tuple[str, bytes, str]

DUPLICATE_EMAIL = "Email already registered"


class APIClient:
    """Client for communicating with the Spectral backend."""

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: int = 30):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the API (default: from environment or localhost)
            token: Bearer token from a previous login
            timeout: Request timeout in seconds
        """
        self.base_url = (base_url or os.getenv("API_BASE_URL", "http://localhost:8000")).rstrip("/")
        self.token = token
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        """
        Get request headers with authorization token if available.

        Returns:
            Headers dictionary
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _detail(response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return body["detail"]
        return None

    def _call(
        self,
        method: str,
        path: str,
        origin: str,
        action: str,
        success_message: str,
        success_status: int = 200,
        not_found: Optional[str] = None,
        conflict: Optional[str] = None,
        shown_details: Tuple[str, ...] = (),
        **kwargs
    ) -> ActionResult:
        """
        Perform a request and convert the response into an ActionResult.

        Args:
            method: HTTP method
            path: Path below the base URL
            origin: Result origin
            action: Verb phrase used in failure messages
            success_message: Message returned on success
            success_status: Expected status code
            not_found: Message for 404 responses
            conflict: Fallback message for 409 responses
            shown_details: Server details displayed as-is whatever the status

        Returns:
            ActionResult with the decoded body as data on success
        """
        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                headers=self._get_headers(),
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.ConnectionError:
            return ActionResult.fail(origin, CONNECTION_ERROR_MESSAGE)
        except requests.exceptions.RequestException as e:
            return ActionResult.fail(origin, f"Error: {str(e)}")

        if response.status_code != success_status:
            detail = self._detail(response)
            if detail in shown_details:
                return ActionResult.fail(origin, detail)
            message = status_message(
                response.status_code,
                action,
                detail=detail,
                not_found=not_found,
                conflict=conflict
            )
            return ActionResult.fail(origin, message)

        try:
            data = response.json()
        except ValueError:
            data = None
        return ActionResult.ok(origin, success_message, data)

    # ============================================
    # Authentication
    # ============================================

    def register(self, email: str, name: str, password: str, role: str, image: Optional[str] = None) -> ActionResult:
        """
        Register a new creator or editor.

        Stores the returned token on success.

        Args:
            email: User email
            name: Display name
            password: Password
            role: "creator" or "editor"
            image: Optional avatar URL
        """
        result = self._call(
            "POST", "/api/auth/register", "email", "register",
            "Registration successful",
            success_status=201,
            shown_details=(DUPLICATE_EMAIL,),
            json={"email": email, "name": name, "password": password, "role": role, "image": image}
        )
        if result.success:
            self.token = result.data["access_token"]
        return result

    def login(self, email: str, password: str) -> ActionResult:
        """
        Login with email and password.

        Stores the returned token on success.
        """
        result = self._call(
            "POST", "/api/auth/login", "password", "login",
            "Logged in successfully",
            json={"email": email, "password": password}
        )
        if not result.success and "invalid authorization" in result.message:
            result.message = "Incorrect email or password"
        if result.success:
            self.token = result.data["access_token"]
        return result

    def logout(self) -> ActionResult:
        """Logout current user and forget the token."""
        result = self._call("POST", "/api/auth/logout", "email", "logout", "Logged out successfully")
        if result.success:
            self.token = None
        return result

    def get_current_user(self) -> ActionResult:
        """Get current authenticated user information."""
        return self._call(
            "GET", "/api/auth/me", "email", "get user information",
            "User retrieved successfully"
        )

    def verify_token(self) -> bool:
        """
        Verify if the current token is valid.

        Returns:
            True if token is valid, False otherwise
        """
        if not self.token:
            return False
        return self._call("GET", "/api/auth/verify", "email", "verify token", "Token is valid").success

    # ============================================
    # Linked Accounts (creator)
    # ============================================

    def get_link_url(self) -> ActionResult:
        """Google consent URL for linking a YouTube channel."""
        return self._call(
            "GET", "/api/accounts/link-url", "callback", "get link url",
            "Link url retrieved successfully"
        )

    def link_account(self, code: str) -> ActionResult:
        """Exchange an authorization code and link the channel."""
        return self._call(
            "POST", "/api/accounts/link", "callback", "link account",
            "Account linked successfully",
            success_status=201,
            conflict="This YouTube account is already linked",
            json={"code": code}
        )

    def get_accounts(self, status: Optional[str] = None) -> ActionResult:
        """Linked accounts of the current creator."""
        params = {"status": status} if status else None
        return self._call(
            "GET", "/api/accounts", "account", "get accounts",
            "Accounts retrieved successfully",
            params=params
        )

    def get_account(self, account_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/accounts/{account_id}", "account", "get account",
            "Account retrieved successfully",
            not_found="Account not found"
        )

    def get_channel_info(self, account_id: str) -> ActionResult:
        """YouTube channel details of a linked account."""
        return self._call(
            "GET", f"/api/accounts/{account_id}/channel", "account", "get channel info",
            "Channel info retrieved successfully",
            not_found="Account not found"
        )

    def update_account(self, account_id: str, status: Optional[str] = None, email: Optional[str] = None) -> ActionResult:
        payload = {}
        if status is not None:
            payload["status"] = status
        if email is not None:
            payload["email"] = email
        return self._call(
            "PUT", f"/api/accounts/{account_id}", "account", "update account",
            "Account updated successfully",
            not_found="Account not found",
            json=payload
        )

    def unlink_account(self, account_id: str) -> ActionResult:
        return self._call(
            "POST", f"/api/accounts/{account_id}/unlink", "account", "unlink account",
            "Account unlinked successfully",
            not_found="Account not found"
        )

    def get_account_editors(self, account_id: str) -> ActionResult:
        """Editors with access records on an account."""
        return self._call(
            "GET", f"/api/accounts/{account_id}/editors", "editor", "get account editors",
            "Account editors retrieved successfully",
            not_found="Account not found"
        )

    def change_account_editor_status(self, account_id: str, editor_id: str, status: str) -> ActionResult:
        """Grant (ACTIVE) or revoke (INACTIVE) an editor's access to an account."""
        return self._call(
            "PUT", f"/api/accounts/{account_id}/editors/{editor_id}", "editor",
            "change account editor status",
            "Account editor status updated successfully",
            not_found="Account or editor not found",
            json={"status": status}
        )

    # ============================================
    # Creator / Editor relationships
    # ============================================

    def search_editor(self, editor_email: str) -> ActionResult:
        """Find an editor by email with the current relationship status."""
        return self._call(
            "GET", "/api/maps/search", "map", "find editor",
            "Editor found",
            not_found="Editor not found",
            params={"editor_email": editor_email}
        )

    def get_maps(self) -> ActionResult:
        """Relationships of the current user (editors for creators, creators for editors)."""
        return self._call(
            "GET", "/api/maps", "map", "get relationships",
            "Relationships retrieved successfully"
        )

    def request_editor(self, editor_id: str) -> ActionResult:
        """Invite an editor to work with the current creator."""
        return self._call(
            "POST", f"/api/maps/request/{editor_id}", "creator", "send editor request",
            "Request sent successfully",
            not_found="Editor not found"
        )

    def update_map_status(self, map_id: str, status: str) -> ActionResult:
        """Accept, decline or end a relationship."""
        return self._call(
            "PUT", f"/api/maps/{map_id}/status", "map", "update relationship",
            "Relationship updated successfully",
            not_found="Relationship not found",
            json={"status": status}
        )

    def get_editor_accounts(self) -> ActionResult:
        """Accounts the current editor has access records for."""
        return self._call(
            "GET", "/api/account-editors/mine", "editor", "get editor linked accounts",
            "Linked accounts retrieved successfully"
        )

    # ============================================
    # Folders
    # ============================================

    def get_folders(self, account_id: str) -> ActionResult:
        return self._call(
            "GET", "/api/folders", "folder", "get folders",
            "Folders retrieved successfully",
            not_found="Account not found",
            params={"account_id": account_id}
        )

    def create_folder(self, name: str, account_id: str) -> ActionResult:
        return self._call(
            "POST", "/api/folders", "folder", "create folder",
            "Folder created successfully",
            success_status=201,
            conflict="A folder with this name already exists",
            json={"name": name, "account_id": account_id}
        )

    def get_folder(self, folder_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/folders/{folder_id}", "folder", "get folder",
            "Folder retrieved successfully",
            not_found="Folder not found"
        )

    def rename_folder(self, folder_id: str, name: str) -> ActionResult:
        return self._call(
            "PATCH", f"/api/folders/{folder_id}", "folder", "update folder",
            "Folder updated successfully",
            not_found="Folder not found",
            conflict="A folder with this name already exists",
            json={"name": name}
        )

    def delete_folder(self, folder_id: str) -> ActionResult:
        return self._call(
            "DELETE", f"/api/folders/{folder_id}", "folder", "delete folder",
            "Folder deleted successfully",
            not_found="Folder not found"
        )

    def get_folder_items(self, folder_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/folders/{folder_id}/items", "folder", "get folder items",
            "Folder items retrieved successfully",
            not_found="Folder items not found"
        )

    def add_folder_item(self, folder_id: str, media_id: str) -> ActionResult:
        return self._call(
            "POST", f"/api/folders/{folder_id}/items", "folder", "add folder item",
            "Folder item added successfully",
            success_status=201,
            not_found="Folder or media not found",
            conflict="Media is already in this folder",
            json={"media_id": media_id}
        )

    def get_folder_item(self, folder_id: str, media_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/folders/{folder_id}/items/{media_id}", "folder", "get folder item",
            "Folder item retrieved successfully",
            not_found="Folder item not found"
        )

    def delete_folder_item(self, folder_id: str, media_id: str) -> ActionResult:
        return self._call(
            "DELETE", f"/api/folders/{folder_id}/items/{media_id}", "folder", "delete folder item",
            "Folder item deleted successfully",
            not_found="Folder item not found"
        )

    # ============================================
    # Media
    # ============================================

    def upload_media(self, file: FileTuple, media_type: str, folder_id: Optional[str] = None) -> ActionResult:
        """
        Upload a file to Drive storage.

        Args:
            file: (file name, content, mime type)
            media_type: "video" or "image"
            folder_id: Optional folder to add the media to
        """
        data = {"type": media_type}
        if folder_id:
            data["folder_id"] = folder_id
        return self._call(
            "POST", "/api/media", "media", "create media",
            "Media created successfully",
            success_status=201,
            not_found="Folder not found",
            files={"file": file},
            data=data
        )

    def get_media(self, media_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/media/{media_id}", "media", "get media",
            "Media retrieved successfully",
            not_found="Media not found"
        )

    def delete_media(self, media_id: str) -> ActionResult:
        return self._call(
            "DELETE", f"/api/media/{media_id}", "media", "delete media",
            "Media deleted successfully",
            not_found="Media not found",
            conflict="Media is used by a contribution version"
        )

    # ============================================
    # Contributions
    # ============================================

    @staticmethod
    def _contribution_form(title: Optional[str], description: Optional[str], tags: Optional[str]) -> Dict[str, Any]:
        form = {}
        if title is not None:
            form["title"] = title
        if description is not None:
            form["description"] = description
        if tags is not None:
            form["tags"] = tags
        return form

    def get_contributions(self, account_id: str) -> ActionResult:
        return self._call(
            "GET", "/api/contributions", "contribute", "get contributions",
            "Contributions retrieved successfully",
            not_found="Account not found",
            params={"account_id": account_id}
        )

    def create_contribution(
        self,
        account_id: str,
        title: str,
        video: FileTuple,
        thumbnail: FileTuple,
        description: Optional[str] = None,
        tags: Optional[str] = None
    ) -> ActionResult:
        """
        Submit a new contribution with its first version.

        Args:
            account_id: Target linked account
            title: Video title
            video: (file name, content, mime type) of the video
            thumbnail: (file name, content, mime type) of the thumbnail
            description: Optional video description
            tags: Optional comma separated tags
        """
        form = self._contribution_form(title, description, tags)
        form["account_id"] = account_id
        return self._call(
            "POST", "/api/contributions", "contribute", "create contribution",
            "Contribution created successfully",
            success_status=201,
            files={"video": video, "thumbnail": thumbnail},
            data=form
        )

    def get_contribution(self, contribution_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/contributions/{contribution_id}", "contribute", "get contribution",
            "Contribution retrieved successfully",
            not_found="Contribution not found"
        )

    def create_version(
        self,
        contribution_id: str,
        video: FileTuple,
        thumbnail: FileTuple,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[str] = None
    ) -> ActionResult:
        """Submit a new version of an existing contribution."""
        return self._call(
            "POST", f"/api/contributions/{contribution_id}/versions", "contribute", "create version",
            "Version created successfully",
            success_status=201,
            not_found="Contribution not found",
            conflict="Contribution has already been published",
            files={"video": video, "thumbnail": thumbnail},
            data=self._contribution_form(title, description, tags)
        )

    def get_versions(self, contribution_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/contributions/{contribution_id}/versions", "contribute", "get versions",
            "Versions retrieved successfully",
            not_found="Contribution not found"
        )

    def get_version(self, version_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/versions/{version_id}", "contribute", "get version",
            "Version retrieved successfully",
            not_found="Version not found"
        )

    def update_version_status(self, version_id: str, status: str, privacy_status: Optional[str] = None) -> ActionResult:
        """
        Review a version.

        "completed" publishes the version to YouTube.
        """
        payload = {"status": status}
        if privacy_status:
            payload["privacy_status"] = privacy_status
        return self._call(
            "PATCH", f"/api/versions/{version_id}/status", "contribute", "update version status",
            "Version status updated successfully",
            not_found="Version not found",
            json=payload
        )

    def get_version_comments(self, version_id: str) -> ActionResult:
        return self._call(
            "GET", f"/api/versions/{version_id}/comments", "contribute", "get comments",
            "Comments retrieved successfully",
            not_found="Version not found"
        )

    def create_version_comment(self, version_id: str, content: str) -> ActionResult:
        return self._call(
            "POST", f"/api/versions/{version_id}/comments", "contribute", "create comment",
            "Comment created successfully",
            success_status=201,
            not_found="Version not found",
            json={"content": content}
        )


# Global API client instance
api_client = APIClient()
