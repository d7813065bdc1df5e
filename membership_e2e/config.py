"""Shared configuration for the membership end-to-end suite.

Values are read from the environment. A `.env` file at the repository root is
loaded first (python-dotenv, never overriding variables that are already set)
and `.env.defaults` provides fallbacks for a local Supabase stack:

- E2E_BASE_URL: where the application under test is served
- PUBLIC_SUPABASE_URL / SERVICE_ROLE_KEY: service-role access for seeding
- STRIPE_SECRET_KEY: test-mode Stripe key for subscription fixtures
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator
from urllib.parse import urljoin, urlparse

from dotenv import load_dotenv

from membership_e2e.env_defaults import REPO_ROOT, get_env_default

load_dotenv(REPO_ROOT / ".env", override=False)

TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigurationError(RuntimeError):
    """Raised when a required credential is missing from the environment."""


def _env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key)
    if value:
        return value
    return get_env_default(key) or default


def _env_flag(key: str, default: str = "false") -> bool:
    return (_env(key, default) or default).strip().lower() in TRUE_VALUES


@dataclass
class E2eTarget:
    """Concrete host + credentials the suite runs against."""

    base_url: str
    supabase_url: str | None
    service_role_key: str | None
    stripe_secret_key: str | None
    cookie_domain: str = "127.0.0.1"
    default_password: str = "password"


class MembershipTestConfig:
    """Configuration loaded from the environment.

    Missing Supabase/Stripe credentials are tolerated at import time so that
    helper unit tests can run without a stack; they raise ConfigurationError
    from the accessors below instead.
    """

    def __init__(self) -> None:
        self.playwright_headless: bool = _env_flag("PLAYWRIGHT_HEADLESS", "true")
        self.browser_type: str = (_env("PLAYWRIGHT_BROWSER", "chromium") or "chromium").lower()
        self.default_timeout_ms: int = int(_env("PLAYWRIGHT_TIMEOUT_MS", "30000") or "30000")
        self.skip_global_reset: bool = _env_flag("E2E_SKIP_GLOBAL_RESET")

        self.membership_fee_lookup: str = (
            _env("MEMBERSHIP_FEE_LOOKUP_NAME", "standard_membership_fee") or "standard_membership_fee"
        )
        self.annual_fee_lookup: str = (
            _env("ANNUAL_FEE_LOOKUP", "annual_membership_fee_revised") or "annual_membership_fee_revised"
        )
        self.stripe_api_version: str = _env("STRIPE_API_VERSION", "2025-04-30.basil") or "2025-04-30.basil"

        self._target = E2eTarget(
            base_url=_env("E2E_BASE_URL", "http://localhost:5173") or "http://localhost:5173",
            supabase_url=_env("PUBLIC_SUPABASE_URL"),
            service_role_key=_env("SERVICE_ROLE_KEY"),
            stripe_secret_key=_env("STRIPE_SECRET_KEY"),
            cookie_domain=_env("E2E_COOKIE_DOMAIN", "127.0.0.1") or "127.0.0.1",
            default_password=_env("E2E_DEFAULT_PASSWORD", "password") or "password",
        )
        print(
            f"[CONFIG] base_url={self._target.base_url} "
            f"supabase={self._target.supabase_url or 'unset'} browser={self.browser_type}"
        )

    # ---- active target helpers --------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._target.base_url

    @property
    def cookie_domain(self) -> str:
        return self._target.cookie_domain

    @property
    def default_password(self) -> str:
        return self._target.default_password

    @property
    def supabase_url(self) -> str:
        if not self._target.supabase_url or not self._target.service_role_key:
            raise ConfigurationError("Missing PUBLIC_SUPABASE_URL or SERVICE_ROLE_KEY in environment variables")
        return self._target.supabase_url

    @property
    def service_role_key(self) -> str:
        if not self._target.supabase_url or not self._target.service_role_key:
            raise ConfigurationError("Missing PUBLIC_SUPABASE_URL or SERVICE_ROLE_KEY in environment variables")
        return self._target.service_role_key

    @property
    def stripe_secret_key(self) -> str:
        if not self._target.stripe_secret_key:
            raise ConfigurationError("Missing STRIPE_SECRET_KEY in environment variables")
        return self._target.stripe_secret_key

    @property
    def supabase_project_ref(self) -> str:
        """First host label of the Supabase URL (`http://127.0.0.1:54321` -> `127`)."""
        return project_ref_from_url(self.supabase_url)

    # ---- target orchestration ---------------------------------------------------
    @contextmanager
    def use_target(self, **overrides) -> Iterator[E2eTarget]:
        """Temporarily swap target values (base_url, supabase_url, ...)."""
        previous = self._target
        self._target = replace(previous, **overrides)
        try:
            yield self._target
        finally:
            self._target = previous

    # ---- utility helpers --------------------------------------------------------
    def url(self, path: str) -> str:
        """Return an absolute URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


def project_ref_from_url(supabase_url: str) -> str:
    host = urlparse(supabase_url).hostname or supabase_url.split("://", 1)[-1]
    ref = host.split(".", 1)[0]
    if not ref:
        raise ConfigurationError(f"Could not extract project ref from SUPABASE_URL: {supabase_url}")
    return ref


# Singleton instance - initialized on first import
settings = MembershipTestConfig()
