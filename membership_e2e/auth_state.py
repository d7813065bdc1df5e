"""
Authentication state for browser sessions.

The dashboard reads its Supabase session from the `sb-<project-ref>-auth-token`
cookie written by @supabase/ssr. Instead of driving the login form, tests sign
in with the service client and inject that cookie into the Playwright context.
"""

import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from playwright.async_api import BrowserContext

from membership_e2e.clients import get_supabase_service_client
from membership_e2e.config import settings

logger = logging.getLogger(__name__)

# @supabase/ssr splits cookie values above this size into `<name>.0`, `<name>.1`, ...
MAX_CHUNK_SIZE = 3180
BASE64_PREFIX = "base64-"


class AuthenticationError(RuntimeError):
    """Raised when Supabase refuses a password sign-in."""


def sign_in_with_password(email: str, password: Optional[str] = None):
    """Sign in through Supabase Auth and return the session.

    Uses a throwaway service client because a successful sign-in replaces the
    client's service-role authorization with the user's token.
    """
    client = get_supabase_service_client()
    try:
        response = client.auth.sign_in_with_password(
            {"email": email, "password": password or settings.default_password}
        )
    except Exception as exc:
        raise AuthenticationError(f"Sign-in failed for {email}: {exc}") from exc

    if not response.session:
        raise AuthenticationError(f"No session data returned for {email}")
    client.auth.sign_out()
    return response.session


def session_payload(session: Any) -> Dict[str, Any]:
    """Serialize a gotrue session (pydantic model or plain dict) to JSON-safe data."""
    if isinstance(session, Mapping):
        return dict(session)
    return session.model_dump(mode="json")


def encode_session(session: Any) -> str:
    raw = json.dumps(session_payload(session), separators=(",", ":")).encode("utf-8")
    return BASE64_PREFIX + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_session(value: str) -> Dict[str, Any]:
    """Inverse of encode_session; accepts the joined value of chunked cookies."""
    if not value.startswith(BASE64_PREFIX):
        return json.loads(value)
    encoded = value[len(BASE64_PREFIX):]
    encoded += "=" * (-len(encoded) % 4)
    return json.loads(base64.urlsafe_b64decode(encoded))


def auth_cookie_name(project_ref: str) -> str:
    return f"sb-{project_ref}-auth-token"


def build_auth_cookies(session: Any, project_ref: str, domain: str) -> List[Dict[str, Any]]:
    """Build the cookie list Playwright's `add_cookies` expects."""
    name = auth_cookie_name(project_ref)
    value = encode_session(session)

    if len(value) <= MAX_CHUNK_SIZE:
        chunks = [(name, value)]
    else:
        chunks = [
            (f"{name}.{index}", value[start:start + MAX_CHUNK_SIZE])
            for index, start in enumerate(range(0, len(value), MAX_CHUNK_SIZE))
        ]

    return [
        {
            "name": chunk_name,
            "value": chunk_value,
            "domain": domain,
            "path": "/",
            "httpOnly": False,
            "secure": False,
            "sameSite": "Lax",
        }
        for chunk_name, chunk_value in chunks
    ]


async def login_as_user(context: BrowserContext, email: str, password: Optional[str] = None) -> Dict[str, Any]:
    """Sign `email` in and attach the Supabase auth cookie(s) to `context`.

    Returns the serialized session so callers can reuse the access token.
    """
    session = sign_in_with_password(email, password)
    project_ref = settings.supabase_project_ref
    cookies = build_auth_cookies(session, project_ref, settings.cookie_domain)
    await context.add_cookies(cookies)
    logger.debug("Set %d auth cookie(s) %s for %s", len(cookies), auth_cookie_name(project_ref), email)
    return session_payload(session)
