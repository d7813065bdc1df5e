"""Factories for the Supabase service-role client and the Stripe API."""
from __future__ import annotations

import stripe
from supabase import Client, create_client

from membership_e2e.config import settings


def get_supabase_service_client() -> Client:
    """Return a fresh service-role client.

    Signing in with a password on a client swaps its Authorization header for
    the user's token, so callers that need service-role privileges afterwards
    must ask for a new client instead of reusing one.
    """
    return create_client(settings.supabase_url, settings.service_role_key)


def get_stripe_client():
    """Configure and return the `stripe` module for test-mode calls."""
    stripe.api_key = settings.stripe_secret_key
    stripe.api_version = settings.stripe_api_version
    return stripe
