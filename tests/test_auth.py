"""
Tests for authentication: credentials, session tokens, revocation and the login gate
"""

from datetime import datetime, timedelta, timezone

import pytest

from stocklet.core.config import settings
from stocklet.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from stocklet.core.security import (
    TokenClaims, create_access_token, decode_access_token, needs_refresh, utcnow
)
from stocklet.models.auth import RevokedToken
from stocklet.services.auth_service import AuthService


def bearer(token: str):
    return {"Authorization": f"Bearer {token}"}


class TestSessionTokens:
    """Test suite for token issue and verification"""

    def test_round_trip_claims(self):
        issued = create_access_token(7, "owner@stocklet.test")
        claims = decode_access_token(issued.token)

        assert claims.user_id == 7
        assert claims.email == "owner@stocklet.test"
        assert claims.jti == issued.jti
        assert claims.expires_at == issued.expires_at

    def test_each_token_gets_a_fresh_jti(self):
        first = create_access_token(1, "a@stocklet.test")
        second = create_access_token(1, "a@stocklet.test")
        assert first.jti != second.jti

    def test_accepted_within_clock_skew_after_expiry(self):
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        issued = create_access_token(1, "a@stocklet.test", now=utcnow() - lifetime - timedelta(seconds=30))
        assert decode_access_token(issued.token) is not None

    def test_rejected_beyond_clock_skew(self):
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        issued = create_access_token(1, "a@stocklet.test", now=utcnow() - lifetime - timedelta(seconds=90))
        assert decode_access_token(issued.token) is None

    def test_rejected_with_wrong_audience(self, monkeypatch):
        issued = create_access_token(1, "a@stocklet.test")
        monkeypatch.setattr(settings, "JWT_AUDIENCE", "someone-else")
        assert decode_access_token(issued.token) is None

    def test_rejected_when_tampered(self):
        issued = create_access_token(1, "a@stocklet.test")
        assert decode_access_token(issued.token[:-2] + "xx") is None
        assert decode_access_token("not-a-token") is None
        assert decode_access_token(None) is None

    def test_needs_refresh_threshold(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        def claims_expiring_in(seconds):
            return TokenClaims(1, "a@stocklet.test", "jti", now + timedelta(seconds=seconds))

        assert needs_refresh(claims_expiring_in(100), now=now)
        assert needs_refresh(claims_expiring_in(359), now=now)
        assert not needs_refresh(claims_expiring_in(361), now=now)
        assert not needs_refresh(claims_expiring_in(900), now=now)


class TestAuthService:
    """Test suite for AuthService"""

    def test_register_disabled_by_default(self, db_session):
        with pytest.raises(ForbiddenError):
            AuthService(db_session).register("new@stocklet.test", "secret123")

    def test_register_normalizes_email(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "REGISTRATION_ENABLED", True)
        user = AuthService(db_session).register("  New@Stocklet.TEST ", "secret123")

        assert user.email == "new@stocklet.test"
        assert user.password_hash != "secret123"

    def test_register_rejects_duplicates_and_short_passwords(self, db_session, test_user, monkeypatch):
        monkeypatch.setattr(settings, "REGISTRATION_ENABLED", True)
        service = AuthService(db_session)

        with pytest.raises(ConflictError):
            service.register(test_user.email.upper(), "secret123")
        with pytest.raises(ValidationError):
            service.register("short@stocklet.test", "abc")
        with pytest.raises(ValidationError):
            service.register("", "secret123")

    def test_authenticate(self, db_session, test_user, test_password):
        service = AuthService(db_session)

        assert service.authenticate("OWNER@stocklet.test", test_password).id == test_user.id
        with pytest.raises(UnauthorizedError) as exc:
            service.authenticate(test_user.email, "wrong-password")
        assert exc.value.message == "Invalid credentials."
        with pytest.raises(UnauthorizedError):
            service.authenticate("nobody@stocklet.test", test_password)

    def test_revoke_is_idempotent(self, db_session, test_user):
        service = AuthService(db_session)
        claims = decode_access_token(create_access_token(test_user.id, test_user.email).token)

        assert service.revoke(claims) is True
        assert service.is_revoked(claims.jti)
        assert service.revoke(claims) is False
        assert db_session.query(RevokedToken).count() == 1

    def test_purge_keeps_rows_inside_the_skew_window(self, db_session):
        now = datetime(2024, 1, 1, 12, 0)
        db_session.add_all([
            RevokedToken(jti="long-gone", expires_at=now - timedelta(hours=1)),
            RevokedToken(jti="just-expired", expires_at=now - timedelta(seconds=30)),
            RevokedToken(jti="still-valid", expires_at=now + timedelta(minutes=10)),
        ])
        db_session.commit()

        removed = AuthService(db_session).purge_expired(now=now.replace(tzinfo=timezone.utc))
        db_session.commit()

        assert removed == 1
        remaining = {row.jti for row in db_session.query(RevokedToken).all()}
        assert remaining == {"just-expired", "still-valid"}


class TestAuthAPI:
    """Authentication endpoints"""

    def test_login_sets_cookie(self, client, test_user, test_password):
        response = client.post(
            "/api/auth/login", json={"email": test_user.email, "password": test_password}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful."
        assert body["user"] == {"id": test_user.id, "email": test_user.email}
        assert settings.COOKIE_NAME in response.cookies
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie

    def test_login_bad_credentials(self, client, test_user):
        response = client.post(
            "/api/auth/login", json={"email": test_user.email, "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials."}

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": "x@stocklet.test"})
        assert response.status_code == 400
        assert response.json() == {"message": "Email and password are required."}

    def test_cookie_session_reaches_protected_routes(self, logged_in_client):
        response = logged_in_client.get("/api/items")
        assert response.status_code == 200

    def test_register_disabled(self, client):
        response = client.post(
            "/api/auth/register", json={"email": "new@stocklet.test", "password": "secret123"}
        )
        assert response.status_code == 403

    def test_register_enabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "REGISTRATION_ENABLED", True)
        response = client.post(
            "/api/auth/register", json={"email": "New@Stocklet.test", "password": "secret123"}
        )

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "new@stocklet.test"

        response = client.post(
            "/api/auth/register", json={"email": "new@stocklet.test", "password": "secret123"}
        )
        assert response.status_code == 409

    def test_logout_revokes_the_token(self, client, db_session, test_user):
        issued = create_access_token(test_user.id, test_user.email)
        assert client.get("/api/items", headers=bearer(issued.token)).status_code == 200

        response = client.post("/api/auth/logout", headers=bearer(issued.token))
        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}

        response = client.get("/api/items", headers=bearer(issued.token))
        assert response.status_code == 401
        assert AuthService(db_session).is_revoked(issued.jti)

    def test_logout_without_token_still_succeeds(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200

    def test_refresh_issues_new_jti(self, client, test_user):
        issued = create_access_token(test_user.id, test_user.email)

        response = client.post("/api/auth/refresh", headers=bearer(issued.token))

        assert response.status_code == 200
        assert response.json()["message"] == "Token refreshed successfully"
        new_claims = decode_access_token(response.cookies[settings.COOKIE_NAME])
        assert new_claims.user_id == test_user.id
        assert new_claims.jti != issued.jti

    def test_refresh_rejects_revoked_token(self, client, test_user):
        issued = create_access_token(test_user.id, test_user.email)
        client.post("/api/auth/logout", headers=bearer(issued.token))

        response = client.post("/api/auth/refresh", headers=bearer(issued.token))
        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized: Token has been revoked."}

    def test_refresh_rejects_invalid_token(self, client):
        response = client.post("/api/auth/refresh", headers=bearer("garbage"))
        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized: Invalid or expired token."}

    def test_near_expiry_token_is_reissued(self, client, test_user):
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        aging = create_access_token(test_user.id, test_user.email, now=utcnow() - lifetime + timedelta(minutes=2))

        response = client.get("/api/items", headers=bearer(aging.token))

        assert response.status_code == 200
        reissued = decode_access_token(response.cookies[settings.COOKIE_NAME])
        assert reissued.jti != aging.jti

    def test_fresh_token_is_not_reissued(self, client, auth_headers):
        response = client.get("/api/items", headers=auth_headers)
        assert response.status_code == 200
        assert "set-cookie" not in response.headers

    def test_unauthorized_clears_cookie(self, client):
        client.cookies.set(settings.COOKIE_NAME, "stale-token")
        response = client.get("/api/items")

        assert response.status_code == 401
        assert settings.COOKIE_NAME in response.headers.get("set-cookie", "")


class TestLoginGate:
    """Redirects for browser navigation"""

    def test_page_without_cookie_redirects_to_login(self, client):
        response = client.get("/items", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/login?redirect=%2Fitems"

    def test_nested_page_keeps_full_path(self, client):
        response = client.get("/reports/sales", follow_redirects=False)
        assert response.headers["location"] == "/login?redirect=%2Freports%2Fsales"

    @pytest.mark.parametrize("path", ["/login", "/register", "/health", "/static/app.css", "/"])
    def test_public_paths_pass(self, client, path):
        response = client.get(path, follow_redirects=False)
        assert response.status_code != 307

    def test_api_routes_answer_401_not_redirect(self, client):
        response = client.get("/api/items", follow_redirects=False)
        assert response.status_code == 401

    def test_page_with_cookie_passes_gate(self, logged_in_client):
        response = logged_in_client.get("/items", follow_redirects=False)
        # No page is served here, but the gate no longer redirects
        assert response.status_code == 404
