"""
Tests for authentication and authorization.

Covers:
- Password hashing
- JWT creation, decoding, revocation
- CSRF and security headers middleware
- Role-rank checks and role dependencies
- Language resolution for error messages
- Register / login / logout / me endpoints
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import jwt as pyjwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.auth import (
    RequestContext,
    create_jwt,
    decode_jwt,
    ensure_at_least,
    generate_csrf_token,
    hash_password,
    remaining_ttl,
    require_admin,
    require_owner,
    require_user,
    verify_password,
)
from app.core.errors import AuthorizationError
from app.core.i18n import resolve_language, translate
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware, SECURITY_HEADERS
from quizory_shared.schemas.common import Language, Role

REGISTER_BODY = {
    "email": "Owner@Example.com",
    "password": "correct-horse",
    "display_name": "Owner",
    "organization_name": "Trivia Night",
}


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        password = "MySecureP@ssw0rd!"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_different_hashes_for_same_password(self):
        """bcrypt uses random salt, so hashes differ."""
        h1 = hash_password("same")
        h2 = hash_password("same")
        assert h1 != h2
        assert verify_password("same", h1)
        assert verify_password("same", h2)


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token, jti = create_jwt(uid, Language.EN.value)
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["lang"] == "en"
        assert payload["jti"] == jti
        assert 0 < remaining_ttl(payload) <= 24 * 60 * 60

    def test_expired_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token, _ = create_jwt(uuid.uuid4())
        tampered = token[:-5] + "XXXXX"
        with pytest.raises(pyjwt.PyJWTError):
            decode_jwt(tampered)


class TestJWTRevocation:
    async def test_revoke_and_check(self):
        mock_redis = AsyncMock()
        mock_redis.exists = AsyncMock(return_value=1)

        with patch("app.core.redis.get_redis", new=AsyncMock(return_value=mock_redis)):
            from app.core.redis import is_jti_revoked, revoke_jti

            await revoke_jti("test-jti-123", 3600)
            mock_redis.setex.assert_awaited_once_with("jwt:revoked:test-jti-123", 3600, "1")
            assert await is_jti_revoked("test-jti-123") is True

    async def test_ttl_is_at_least_one_second(self):
        mock_redis = AsyncMock()

        with patch("app.core.redis.get_redis", new=AsyncMock(return_value=mock_redis)):
            from app.core.redis import revoke_jti

            await revoke_jti("old", -20)
            mock_redis.setex.assert_awaited_once_with("jwt:revoked:old", 1, "1")


class TestCSRFToken:
    def test_generates_unique_tokens(self):
        t1 = generate_csrf_token()
        t2 = generate_csrf_token()
        assert t1 != t2
        assert len(t1) > 20


# ---------------------------------------------------------------------------
# Integration Tests: Middleware
# ---------------------------------------------------------------------------

class TestSecurityHeadersMiddleware:
    def test_headers_present(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value


class TestCSRFMiddleware:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(CSRFMiddleware)

        @app.get("/test")
        async def get_test():
            return {"ok": True}

        @app.post("/test")
        async def post_test():
            return {"ok": True}

        return app

    def test_get_passes_without_csrf(self):
        client = TestClient(self._make_app())
        assert client.get("/test").status_code == 200

    def test_post_with_bearer_skips_csrf(self):
        client = TestClient(self._make_app(), cookies={"qz_session": "some-jwt"})
        resp = client.post("/test", headers={"Authorization": "Bearer some-jwt"})
        assert resp.status_code == 200

    def test_post_without_session_cookie_passes(self):
        """No session cookie = not a browser request, skip CSRF."""
        client = TestClient(self._make_app())
        assert client.post("/test").status_code == 200

    def test_post_with_session_but_no_csrf_fails(self):
        client = TestClient(self._make_app(), cookies={"qz_session": "some-jwt"})
        resp = client.post("/test")
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "csrf_validation_failed"

    def test_post_with_matching_csrf_passes(self):
        csrf_token = "test-csrf-token"
        client = TestClient(
            self._make_app(),
            cookies={"qz_session": "some-jwt", "qz_csrf": csrf_token},
        )
        resp = client.post("/test", headers={"X-CSRF-Token": csrf_token})
        assert resp.status_code == 200

    def test_post_with_mismatched_csrf_fails(self):
        client = TestClient(
            self._make_app(),
            cookies={"qz_session": "some-jwt", "qz_csrf": "token-a"},
        )
        resp = client.post("/test", headers={"X-CSRF-Token": "token-b"})
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Unit Tests: Role-based auth matrix
# ---------------------------------------------------------------------------

class TestAuthorizationMatrix:
    def _ctx(self, role: Role) -> RequestContext:
        return RequestContext(user_id=uuid.uuid4(), org_id=uuid.uuid4(), role=role)

    def test_ranks_are_ordered(self):
        assert self._ctx(Role.USER).rank < self._ctx(Role.ADMIN).rank < self._ctx(Role.OWNER).rank

    def test_ensure_at_least(self):
        ensure_at_least(self._ctx(Role.OWNER), Role.ADMIN)
        ensure_at_least(self._ctx(Role.ADMIN), Role.ADMIN)
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_at_least(self._ctx(Role.USER), Role.ADMIN)
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "insufficient_role"

    async def test_user_allows_all_roles(self):
        for role in Role:
            ctx = self._ctx(role)
            assert await require_user(ctx) == ctx

    async def test_admin_allows_admin_and_owner(self):
        for role in (Role.ADMIN, Role.OWNER):
            ctx = self._ctx(role)
            assert await require_admin(ctx) == ctx

    async def test_admin_rejects_user(self):
        with pytest.raises(AuthorizationError):
            await require_admin(self._ctx(Role.USER))

    async def test_owner_rejects_admin(self):
        with pytest.raises(AuthorizationError) as exc_info:
            await require_owner(self._ctx(Role.ADMIN))
        assert exc_info.value.code == "owner_only"


# ---------------------------------------------------------------------------
# Unit Tests: Language resolution
# ---------------------------------------------------------------------------

class TestLanguage:
    def test_header_wins_over_claim(self):
        assert resolve_language("en-US,en;q=0.9", "sr") == Language.EN
        assert resolve_language("sr-Latn", "en") == Language.SR

    def test_claim_used_without_header(self):
        assert resolve_language(None, "en") == Language.EN

    def test_default_is_serbian(self):
        assert resolve_language(None, None) == Language.SR
        assert resolve_language("de-DE") == Language.SR

    def test_translate_with_params(self):
        message = translate("feature_requires_premium", Language.EN, feature="leagues")
        assert message == "Feature 'leagues' requires a premium plan."

    def test_unknown_code_is_returned(self):
        assert translate("something_new", Language.EN) == "something_new"


# ---------------------------------------------------------------------------
# Integration Tests: Auth Endpoints
# ---------------------------------------------------------------------------

class TestAuthEndpoints:
    async def test_register_creates_free_org_owner(self, client):
        resp = await client.post("/api/v1/auth/register", json=REGISTER_BODY)
        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "owner@example.com"
        assert data["role"] == "owner"
        assert data["preferred_language"] == "sr"
        set_cookie = " ".join(resp.headers.get_list("set-cookie"))
        assert "qz_session=" in set_cookie
        assert "qz_csrf=" in set_cookie

        headers = {"Authorization": f"Bearer {data['token']}"}
        sub = await client.get(
            f"/api/v1/orgs/{data['organization_id']}/subscription", headers=headers
        )
        assert sub.status_code == 200
        assert sub.json()["plan"] == "free"
        assert sub.json()["member_count"] == 1

    async def test_register_duplicate_email(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER_BODY)
        resp = await client.post(
            "/api/v1/auth/register", json={**REGISTER_BODY, "email": "owner@example.com"}
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "email_already_exists"

    async def test_register_short_password(self, client):
        resp = await client.post(
            "/api/v1/auth/register",
            json={**REGISTER_BODY, "password": "short"},
            headers={"Accept-Language": "en"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == {
            "code": "password_too_short",
            "message": "Password must be at least 8 characters.",
            "status": 400,
        }

    async def test_register_invalid_body(self, client):
        resp = await client.post("/api/v1/auth/register", json={"email": "not-an-email"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    async def test_login(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER_BODY)
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": "owner@example.com", "password": "correct-horse"},
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "owner"

    async def test_login_wrong_password_is_localized(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER_BODY)
        body = {"email": "owner@example.com", "password": "wrong-horse"}

        serbian = await client.post("/api/v1/auth/login", json=body)
        english = await client.post(
            "/api/v1/auth/login", json=body, headers={"Accept-Language": "en"}
        )

        assert serbian.status_code == english.status_code == 401
        assert serbian.json()["error"]["message"] == "Pogrešan email ili lozinka."
        assert english.json()["error"]["message"] == "Invalid email or password."

    async def test_login_pending_invite(self, client, make_org, add_member):
        org = await make_org()
        await add_member(org, Role.USER, email="invited@example.com")

        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": "invited@example.com", "password": "anything-long"},
        )
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "account_pending_invite"

    async def test_me(self, client):
        reg = (await client.post("/api/v1/auth/register", json=REGISTER_BODY)).json()
        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {reg['token']}"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["display_name"] == "Owner"
        assert data["memberships"] == [
            {"org_id": reg["organization_id"], "org_name": "Trivia Night", "role": "owner"}
        ]

    async def test_me_requires_auth(self, client):
        resp = await client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "authentication_required"

    async def test_garbage_token_rejected(self, client):
        resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_session"

    async def test_logout_revokes_token(self, client, no_redis):
        reg = (await client.post("/api/v1/auth/register", json=REGISTER_BODY)).json()
        headers = {"Authorization": f"Bearer {reg['token']}"}

        resp = await client.post("/api/v1/auth/logout", headers=headers)

        assert resp.status_code == 204
        jti = decode_jwt(reg["token"])["jti"]
        no_redis.assert_awaited_once()
        assert no_redis.await_args.args[0] == jti

    async def test_revoked_token_rejected(self, client):
        reg = (await client.post("/api/v1/auth/register", json=REGISTER_BODY)).json()
        with patch("app.core.auth.is_jti_revoked", new=AsyncMock(return_value=True)):
            resp = await client.get(
                "/api/v1/auth/me", headers={"Authorization": f"Bearer {reg['token']}"}
            )
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "session_revoked"
