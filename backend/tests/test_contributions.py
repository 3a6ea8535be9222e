"""
Tests for contributions, versions, review and publishing.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from spectral.models.contribution import ContributionVersion
from spectral.models.enums import VersionStatus
from spectral.models.media import Media
from spectral.services.logging_service import app_metrics

from conftest import VIDEO_BYTES, contribution_files


def set_status(client: TestClient, version_id: str, status: str, headers, **extra):
    return client.patch(
        f"/api/versions/{version_id}/status",
        json={"status": status, **extra},
        headers=headers
    )


@pytest.mark.integration
class TestCreateContribution:
    """POST /api/contributions."""

    def test_contribution_with_first_version(self, contribution: dict, editor):
        assert contribution["title"] == "First cut"
        assert contribution["tags"] == ["vlog", "travel", "food"]
        assert contribution["editor"]["id"] == str(editor.id)

        versions = contribution["versions"]
        assert len(versions) == 1
        first = versions[0]
        assert first["version_number"] == 1
        assert first["status"] == "PENDING"
        assert first["duration"] == len(VIDEO_BYTES)
        assert first["video"]["type"] == "VIDEO"
        assert first["thumbnail"]["type"] == "IMAGE"
        assert first["comments"] == []

    def test_editor_without_grant(self, client: TestClient, account, creator_editor_map, editor_headers, fake_drive):
        response = client.post(
            "/api/contributions",
            files=contribution_files(),
            data={"account_id": str(account.id), "title": "Nope"},
            headers=editor_headers
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Editor does not have access to this account"
        assert fake_drive.files == {}

    def test_creator_cannot_contribute(self, client: TestClient, account, creator_headers):
        response = client.post(
            "/api/contributions",
            files=contribution_files(),
            data={"account_id": str(account.id), "title": "Mine"},
            headers=creator_headers
        )
        assert response.status_code == 403

    def test_wrong_file_types(self, client: TestClient, account, account_editor_map, editor_headers):
        response = client.post(
            "/api/contributions",
            files=contribution_files(video_type="image/png"),
            data={"account_id": str(account.id), "title": "Swapped"},
            headers=editor_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "A video file is required"

    def test_blank_title(self, client: TestClient, account, account_editor_map, editor_headers):
        response = client.post(
            "/api/contributions",
            files=contribution_files(),
            data={"account_id": str(account.id), "title": "   "},
            headers=editor_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Title is required"

    def test_thumbnail_failure_discards_video(
        self, client: TestClient, test_db: Session, account, account_editor_map, editor_headers, fake_drive
    ):
        original_upload = fake_drive.upload_file

        def upload_once(data, mime_type, *args, **kwargs):
            if mime_type.startswith("image/"):
                fake_drive.fail_uploads = True
            return original_upload(data, mime_type, *args, **kwargs)

        fake_drive.upload_file = upload_once

        response = client.post(
            "/api/contributions",
            files=contribution_files(),
            data={"account_id": str(account.id), "title": "Half"},
            headers=editor_headers
        )

        assert response.status_code == 502
        assert test_db.query(Media).count() == 0
        assert fake_drive.files == {}

    def test_list_and_get(self, client: TestClient, contribution: dict, account, creator_headers):
        response = client.get("/api/contributions", params={"account_id": str(account.id)}, headers=creator_headers)
        assert [c["id"] for c in response.json()] == [contribution["id"]]

        response = client.get(f"/api/contributions/{contribution['id']}", headers=creator_headers)
        assert response.status_code == 200
        assert response.json()["versions"][0]["id"] == contribution["versions"][0]["id"]

    def test_outsider_cannot_read(self, client: TestClient, contribution: dict, other_editor_headers):
        response = client.get(f"/api/contributions/{contribution['id']}", headers=other_editor_headers)
        assert response.status_code == 403

    def test_missing_contribution(self, client: TestClient, creator_headers):
        response = client.get("/api/contributions/00000000-0000-0000-0000-000000000000", headers=creator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Contribution not found"


@pytest.mark.integration
class TestVersions:
    """New revisions of a contribution."""

    def test_create_second_version(self, client: TestClient, contribution: dict, editor_headers):
        response = client.post(
            f"/api/contributions/{contribution['id']}/versions",
            files=contribution_files(),
            data={"description": "Tighter cut", "tags": "vlog"},
            headers=editor_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["version_number"] == 2
        assert data["title"] == "First cut"
        assert data["tags"] == ["vlog"]

        response = client.get(f"/api/contributions/{contribution['id']}/versions", headers=editor_headers)
        assert [v["version_number"] for v in response.json()] == [2, 1]

        response = client.get(f"/api/contributions/{contribution['id']}", headers=editor_headers)
        assert response.json()["description"] == "Tighter cut"

    def test_other_editor_cannot_add_version(
        self, client: TestClient, contribution: dict, other_editor_headers
    ):
        response = client.post(
            f"/api/contributions/{contribution['id']}/versions",
            files=contribution_files(),
            headers=other_editor_headers
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Only the contributing editor can add versions"

    def test_no_versions_after_publication(self, client: TestClient, contribution: dict, creator_headers, editor_headers):
        set_status(client, contribution["versions"][0]["id"], "COMPLETED", creator_headers)

        response = client.post(
            f"/api/contributions/{contribution['id']}/versions",
            files=contribution_files(),
            headers=editor_headers
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Contribution has already been published"

    def test_get_version(self, client: TestClient, contribution: dict, editor_headers):
        version_id = contribution["versions"][0]["id"]

        response = client.get(f"/api/versions/{version_id}", headers=editor_headers)

        assert response.status_code == 200
        assert response.json()["id"] == version_id

    def test_missing_version(self, client: TestClient, creator_headers):
        response = client.get("/api/versions/00000000-0000-0000-0000-000000000000", headers=creator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Version not found"


@pytest.mark.integration
class TestReview:
    """Status changes and YouTube publishing."""

    def test_reject(self, client: TestClient, contribution: dict, creator_headers):
        version_id = contribution["versions"][0]["id"]

        response = set_status(client, version_id, "REJECTED", creator_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "REJECTED"

    def test_rejected_is_terminal(self, client: TestClient, contribution: dict, creator_headers):
        version_id = contribution["versions"][0]["id"]
        set_status(client, version_id, "REJECTED", creator_headers)

        response = set_status(client, version_id, "PENDING", creator_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot change status from REJECTED to PENDING"

    def test_same_status_is_noop(self, client: TestClient, contribution: dict, creator_headers):
        response = set_status(client, contribution["versions"][0]["id"], "PENDING", creator_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"

    def test_editor_cannot_review(self, client: TestClient, contribution: dict, editor_headers):
        response = set_status(client, contribution["versions"][0]["id"], "COMPLETED", editor_headers)
        assert response.status_code == 403

    def test_publish(self, client: TestClient, test_db: Session, contribution: dict, creator_headers, fake_youtube):
        version = contribution["versions"][0]
        before = app_metrics.get_metrics()["integrations"]["youtube_uploads"]

        response = set_status(client, version["id"], "COMPLETED", creator_headers, privacy_status="unlisted")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["youtube_video_id"] == "yt-1"

        upload = fake_youtube.uploads[0]
        assert upload["video"] == version["video"]["integration_key"]
        assert upload["thumbnail"] == version["thumbnail"]["integration_key"]
        assert upload["tokens"] == {"access_token": "access-token", "refresh_token": "refresh-token"}
        assert upload["metadata"]["title"] == "First cut"
        assert upload["metadata"]["tags"] == ["vlog", "travel", "food"]
        assert upload["metadata"]["privacy_status"] == "unlisted"
        assert upload["metadata"]["mime_type"] == "video/mp4"
        assert app_metrics.get_metrics()["integrations"]["youtube_uploads"] == before + 1

    def test_publish_failure_restores_status(
        self, client: TestClient, test_db: Session, contribution: dict, creator_headers, fake_youtube
    ):
        fake_youtube.fail_upload = True
        version_id = contribution["versions"][0]["id"]

        response = set_status(client, version_id, "COMPLETED", creator_headers)

        assert response.status_code == 502
        assert response.json()["detail"].startswith("YouTube upload failed:")

        version = test_db.query(ContributionVersion).one()
        test_db.refresh(version)
        assert version.status == VersionStatus.PENDING.value
        assert version.youtube_video_id is None

    def test_publish_network_failure_restores_status(
        self, client: TestClient, test_db: Session, contribution: dict, creator_headers, fake_youtube, monkeypatch
    ):
        def unreachable(*args, **kwargs):
            raise ConnectionError("connection reset by peer")

        monkeypatch.setattr(fake_youtube, "upload_from_drive", unreachable)
        before = app_metrics.get_metrics()["integrations"].get("youtube_errors", 0)

        response = set_status(client, contribution["versions"][0]["id"], "COMPLETED", creator_headers)

        assert response.status_code == 502
        assert response.json()["detail"] == "YouTube upload failed: connection reset by peer"
        assert app_metrics.get_metrics()["integrations"]["youtube_errors"] == before + 1

        version = test_db.query(ContributionVersion).one()
        test_db.refresh(version)
        assert version.status == VersionStatus.PENDING.value
        assert version.youtube_video_id is None

    def test_publish_from_processing_restores_processing(
        self, client: TestClient, test_db: Session, contribution: dict, creator_headers, fake_youtube
    ):
        version_id = contribution["versions"][0]["id"]
        set_status(client, version_id, "PROCESSING", creator_headers)
        fake_youtube.fail_upload = True

        set_status(client, version_id, "COMPLETED", creator_headers)

        version = test_db.query(ContributionVersion).one()
        test_db.refresh(version)
        assert version.status == VersionStatus.PROCESSING.value

    def test_publish_inactive_account(self, client: TestClient, contribution: dict, account, creator_headers):
        client.post(f"/api/accounts/{account.id}/unlink", headers=creator_headers)

        response = set_status(client, contribution["versions"][0]["id"], "COMPLETED", creator_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Account is not active"

    def test_only_one_version_published(self, client: TestClient, contribution: dict, creator_headers, editor_headers):
        second = client.post(
            f"/api/contributions/{contribution['id']}/versions",
            files=contribution_files(),
            headers=editor_headers
        ).json()
        set_status(client, second["id"], "COMPLETED", creator_headers)

        response = set_status(client, contribution["versions"][0]["id"], "COMPLETED", creator_headers)

        assert response.status_code == 409

    def test_invalid_privacy_status(self, client: TestClient, contribution: dict, creator_headers):
        response = set_status(
            client, contribution["versions"][0]["id"], "COMPLETED", creator_headers, privacy_status="secret"
        )
        assert response.status_code == 422


@pytest.mark.integration
class TestComments:
    """Review feedback threads."""

    def test_conversation(self, client: TestClient, contribution: dict, creator, editor, creator_headers, editor_headers):
        version_id = contribution["versions"][0]["id"]
        url = f"/api/versions/{version_id}/comments"

        first = client.post(url, json={"content": "Trim the intro"}, headers=creator_headers)
        second = client.post(url, json={"content": "Done in v2"}, headers=editor_headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["author"]["id"] == str(creator.id)

        response = client.get(url, headers=editor_headers)
        assert [c["content"] for c in response.json()] == ["Trim the intro", "Done in v2"]

        response = client.get(f"/api/versions/{version_id}", headers=creator_headers)
        assert len(response.json()["comments"]) == 2

    def test_outsider_cannot_comment(self, client: TestClient, contribution: dict, other_editor_headers):
        response = client.post(
            f"/api/versions/{contribution['versions'][0]['id']}/comments",
            json={"content": "Hi"},
            headers=other_editor_headers
        )

        assert response.status_code == 403

    def test_whitespace_comment(self, client: TestClient, contribution: dict, creator_headers):
        response = client.post(
            f"/api/versions/{contribution['versions'][0]['id']}/comments",
            json={"content": "   "},
            headers=creator_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Comment cannot be empty"

    def test_empty_comment(self, client: TestClient, contribution: dict, creator_headers):
        response = client.post(
            f"/api/versions/{contribution['versions'][0]['id']}/comments",
            json={"content": ""},
            headers=creator_headers
        )
        assert response.status_code == 422
