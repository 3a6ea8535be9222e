"""
Unit tests for authentication endpoints and helpers.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from datetime import datetime, timedelta

from spectral.models.session import UserSession
from spectral.models.user import User
from spectral.services.auth_service import AuthService
from spectral.utils.security import (
    create_access_token,
    create_oauth_state,
    decode_access_token,
    hash_password,
    read_oauth_state,
    validate_password_strength,
    verify_password,
)

from conftest import TEST_PASSWORD


@pytest.mark.unit
@pytest.mark.auth
class TestUserRegistration:
    """Test user registration endpoint."""

    def test_register_creator_success(self, client: TestClient, test_db: Session):
        """Test successful creator registration."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": "NewCreator@Example.com",
                "name": "New Creator",
                "password": "SecurePassword123",
                "role": "creator"
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["email"] == "newcreator@example.com"
        assert data["user"]["role"] == "creator"
        assert "hashed_password" not in data["user"]

        user = test_db.query(User).filter(User.email == "newcreator@example.com").first()
        assert user is not None
        assert user.role == "creator"
        assert test_db.query(UserSession).filter(UserSession.user_id == user.id).count() == 1

    def test_register_duplicate_email(self, client: TestClient, creator: User):
        """Test registration with existing email fails."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": creator.email,
                "name": "Someone",
                "password": "SecurePassword123",
                "role": "editor"
            }
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_register_weak_password(self, client: TestClient):
        """Test registration with weak password fails."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": "weak@example.com",
                "name": "Weak",
                "password": "alllowercase1",
                "role": "editor"
            }
        )

        assert response.status_code == 400
        assert "uppercase" in response.json()["detail"]

    def test_register_unknown_role(self, client: TestClient):
        """Test registration with a role outside creator/editor fails."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": "admin@example.com",
                "name": "Admin",
                "password": "SecurePassword123",
                "role": "admin"
            }
        )

        assert response.status_code == 422

    def test_register_invalid_email(self, client: TestClient):
        """Test registration with invalid email fails."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": "not-an-email",
                "name": "Nobody",
                "password": "SecurePassword123",
                "role": "creator"
            }
        )

        assert response.status_code == 422


@pytest.mark.unit
@pytest.mark.auth
class TestUserLogin:
    """Test login, logout and token verification."""

    def test_login_success(self, client: TestClient, creator: User):
        """Test successful login."""
        response = client.post(
            "/api/auth/login",
            json={"email": creator.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == str(creator.id)

        payload = decode_access_token(data["access_token"])
        assert payload["sub"] == str(creator.id)
        assert payload["role"] == "creator"

    def test_login_is_case_insensitive_on_email(self, client: TestClient, creator: User):
        response = client.post(
            "/api/auth/login",
            json={"email": creator.email.upper(), "password": TEST_PASSWORD}
        )

        assert response.status_code == 200

    def test_login_wrong_password(self, client: TestClient, creator: User):
        """Test login with wrong password fails."""
        response = client.post(
            "/api/auth/login",
            json={"email": creator.email, "password": "WrongPassword123"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_inactive_user(self, client: TestClient, test_db: Session, creator: User):
        creator.is_active = False
        test_db.commit()

        response = client.post(
            "/api/auth/login",
            json={"email": creator.email, "password": TEST_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Account is deactivated"

    def test_me(self, client: TestClient, creator: User, creator_headers):
        response = client.get("/api/auth/me", headers=creator_headers)

        assert response.status_code == 200
        assert response.json()["email"] == creator.email

    def test_verify(self, client: TestClient, editor: User, editor_headers):
        response = client.get("/api/auth/verify", headers=editor_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Token is valid"
        assert "editor" in response.json()["detail"]

    def test_logout_invalidates_session(self, client: TestClient, creator_headers):
        """Test a token stops working after logout."""
        response = client.post("/api/auth/logout", headers=creator_headers)
        assert response.status_code == 200

        response = client.get("/api/auth/me", headers=creator_headers)
        assert response.status_code == 401

    def test_missing_token(self, client: TestClient):
        response = client.get("/api/auth/me")
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client: TestClient):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_oauth_state_is_not_a_login_token(self, client: TestClient, creator: User):
        """Test the signed OAuth state cannot be used as a bearer token."""
        state = create_oauth_state(str(creator.id))
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {state}"})
        assert response.status_code == 401

    def test_expired_session_rejected(self, client: TestClient, test_db: Session, creator: User):
        token = AuthService.create_user_session(test_db, creator)
        session = test_db.query(UserSession).filter(UserSession.session_token == token).first()
        session.expires_at = datetime.utcnow() - timedelta(minutes=1)
        test_db.commit()

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired"


@pytest.mark.unit
@pytest.mark.auth
class TestRoleGuards:
    """Creator-only and editor-only routes."""

    def test_editor_cannot_list_accounts(self, client: TestClient, editor_headers):
        response = client.get("/api/accounts", headers=editor_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Creator role required"

    def test_creator_cannot_list_editor_accounts(self, client: TestClient, creator_headers):
        response = client.get("/api/account-editors/mine", headers=creator_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Editor role required"


@pytest.mark.unit
@pytest.mark.auth
class TestSecurityHelpers:
    """Password hashing, JWT and OAuth state helpers."""

    def test_password_hash_roundtrip(self):
        hashed = hash_password("SecurePassword123")
        assert hashed != "SecurePassword123"
        assert verify_password("SecurePassword123", hashed)
        assert not verify_password("securepassword123", hashed)

    @pytest.mark.parametrize("password,valid", [
        ("Short1A", False),
        ("nouppercase123", False),
        ("NOLOWERCASE123", False),
        ("NoDigitsHere", False),
        ("GoodPassword1", True),
    ])
    def test_password_strength(self, password, valid):
        assert validate_password_strength(password)[0] is valid

    def test_tokens_are_unique(self):
        """Test two tokens with the same claims issued together differ."""
        first = create_access_token({"sub": "same"})
        second = create_access_token({"sub": "same"})
        assert first != second

    def test_expired_token(self):
        token = create_access_token({"sub": "someone"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_oauth_state_roundtrip(self):
        state = create_oauth_state("creator-123")
        assert read_oauth_state(state) == "creator-123"

    def test_login_token_is_not_an_oauth_state(self):
        token = create_access_token({"sub": "creator-123"})
        assert read_oauth_state(token) is None

    def test_cleanup_expired_sessions(self, test_db: Session, creator: User):
        live = AuthService.create_user_session(test_db, creator)
        stale = AuthService.create_user_session(test_db, creator)
        session = test_db.query(UserSession).filter(UserSession.session_token == stale).first()
        session.expires_at = datetime.utcnow() - timedelta(hours=1)
        test_db.commit()

        assert AuthService.cleanup_expired_sessions(test_db) == 1
        remaining = [s.session_token for s in test_db.query(UserSession).all()]
        assert remaining == [live]
