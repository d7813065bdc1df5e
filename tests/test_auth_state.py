"""Supabase SSR cookie construction and password sign-in wrapping."""
from types import SimpleNamespace

import pytest

from membership_e2e import auth_state
from membership_e2e.auth_state import (
    MAX_CHUNK_SIZE,
    AuthenticationError,
    auth_cookie_name,
    build_auth_cookies,
    decode_session,
    encode_session,
    login_as_user,
    session_payload,
    sign_in_with_password,
)

SESSION = {
    "access_token": "header.payload.signature",
    "refresh_token": "refresh",
    "token_type": "bearer",
    "user": {"id": "user-1", "email": "member@test.com"},
}


class ModelSession:
    """Mimics the pydantic Session returned by supabase-py."""

    def __init__(self, data):
        self.data = data

    def model_dump(self, mode="python"):
        return dict(self.data)


class FakeContext:
    def __init__(self):
        self.cookies = []

    async def add_cookies(self, cookies):
        self.cookies.extend(cookies)


class TestSessionEncoding:
    def test_encoded_value_is_unpadded_base64url_with_prefix(self):
        value = encode_session(SESSION)
        assert value.startswith("base64-")
        assert "=" not in value
        assert "+" not in value and "/" not in value

    def test_decode_reverses_encode(self):
        assert decode_session(encode_session(SESSION)) == SESSION

    def test_decode_accepts_plain_json(self):
        assert decode_session('{"access_token": "abc"}') == {"access_token": "abc"}

    def test_session_payload_uses_model_dump(self):
        assert session_payload(ModelSession(SESSION)) == SESSION


class TestAuthCookies:
    def test_cookie_name_uses_project_ref(self):
        assert auth_cookie_name("127") == "sb-127-auth-token"

    def test_small_session_yields_single_cookie(self):
        cookies = build_auth_cookies(SESSION, "127", "127.0.0.1")

        assert len(cookies) == 1
        cookie = cookies[0]
        assert cookie["name"] == "sb-127-auth-token"
        assert cookie["domain"] == "127.0.0.1"
        assert cookie["path"] == "/"
        assert cookie["httpOnly"] is False
        assert cookie["secure"] is False
        assert cookie["sameSite"] == "Lax"
        assert decode_session(cookie["value"]) == SESSION

    def test_large_session_is_chunked(self):
        session = dict(SESSION, access_token="x" * (MAX_CHUNK_SIZE * 2))
        cookies = build_auth_cookies(session, "127", "127.0.0.1")

        assert len(cookies) >= 2
        assert [cookie["name"] for cookie in cookies] == [
            f"sb-127-auth-token.{index}" for index in range(len(cookies))
        ]
        assert all(len(cookie["value"]) <= MAX_CHUNK_SIZE for cookie in cookies)
        joined = "".join(cookie["value"] for cookie in cookies)
        assert decode_session(joined) == session


class TestSignIn:
    def _client(self, sign_in):
        signed_out = []
        auth = SimpleNamespace(sign_in_with_password=sign_in, sign_out=lambda: signed_out.append(True))
        return SimpleNamespace(auth=auth), signed_out

    def test_returns_session_and_signs_out(self, monkeypatch):
        session = SimpleNamespace(access_token="token")
        client, signed_out = self._client(lambda credentials: SimpleNamespace(session=session))
        monkeypatch.setattr(auth_state, "get_supabase_service_client", lambda: client)

        assert sign_in_with_password("member@test.com", "secret") is session
        assert signed_out == [True]

    def test_missing_session_raises(self, monkeypatch):
        client, _ = self._client(lambda credentials: SimpleNamespace(session=None))
        monkeypatch.setattr(auth_state, "get_supabase_service_client", lambda: client)

        with pytest.raises(AuthenticationError, match="No session data returned"):
            sign_in_with_password("member@test.com")

    def test_auth_failure_is_wrapped(self, monkeypatch):
        def refuse(credentials):
            raise ValueError("Invalid login credentials")

        client, _ = self._client(refuse)
        monkeypatch.setattr(auth_state, "get_supabase_service_client", lambda: client)

        with pytest.raises(AuthenticationError, match="Invalid login credentials"):
            sign_in_with_password("member@test.com")


@pytest.mark.asyncio
async def test_login_as_user_adds_cookie_to_context(monkeypatch, supabase_target):
    monkeypatch.setattr(auth_state, "sign_in_with_password", lambda email, password=None: SESSION)
    context = FakeContext()

    payload = await login_as_user(context, "member@test.com")

    assert payload == SESSION
    assert [cookie["name"] for cookie in context.cookies] == ["sb-127-auth-token"]
    assert decode_session(context.cookies[0]["value"]) == SESSION
