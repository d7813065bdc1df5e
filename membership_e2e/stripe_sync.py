"""Drive the `stripe-sync` edge function and wait for its effect.

The function answers immediately and updates `user_profiles.is_active` in the
background, so tests invoke it with a short retry and then poll the column.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import anyio
import httpx

from membership_e2e.clients import get_stripe_client, get_supabase_service_client
from membership_e2e.config import settings

logger = logging.getLogger(__name__)


class StripeSyncError(RuntimeError):
    """Raised when the sync cannot be invoked or its result never lands."""


def stripe_sync_url() -> str:
    return settings.supabase_url.rstrip("/") + "/functions/v1/stripe-sync"


def _describe_failure(response: httpx.Response) -> str:
    body = response.text or response.reason_phrase
    return f"FunctionsHttpError: {response.status_code} {body}"


async def invoke_stripe_sync_with_retry(
    customer_id: str,
    attempts: int = 3,
    base_delay: float = 1.0,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """POST `{customer_ids: [customer_id]}` to stripe-sync, retrying transient failures.

    Waits `base_delay * attempt` seconds between attempts and raises
    StripeSyncError carrying the last failure once attempts are exhausted.
    """
    last_error = "Unknown stripe-sync invocation failure"
    headers = {
        "Authorization": f"Bearer {settings.service_role_key}",
        "apikey": settings.service_role_key,
    }
    client = http_client or httpx.AsyncClient(timeout=30.0)
    try:
        for attempt in range(1, attempts + 1):
            try:
                response = await client.post(
                    stripe_sync_url(),
                    json={"customer_ids": [customer_id]},
                    headers=headers,
                )
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if not response.is_success:
                    last_error = _describe_failure(response)
                else:
                    try:
                        return response.json()
                    except ValueError as exc:
                        last_error = f"Invalid JSON in {response.status_code} response: {exc}"

            logger.warning("stripe-sync attempt %d failed: %s", attempt, last_error)
            if attempt < attempts:
                await anyio.sleep(base_delay * attempt)
    finally:
        if http_client is None:
            await client.aclose()

    raise StripeSyncError(f"stripe-sync invocation failed after retries: {last_error}")


async def wait_for_user_active_state(
    profile_id: str,
    expected_is_active: bool,
    attempts: int = 20,
    interval: float = 1.0,
    client=None,
) -> Dict[str, Any]:
    """Poll `user_profiles.is_active` for `profile_id` until it equals the expected value."""
    client = client or get_supabase_service_client()
    last_value: Optional[bool] = None

    for attempt in range(1, attempts + 1):
        response = (
            client.table("user_profiles")
            .select("is_active")
            .eq("id", profile_id)
            .single()
            .execute()
        )
        profile = response.data
        last_value = profile["is_active"]
        if last_value == expected_is_active:
            return profile
        if attempt < attempts:
            await anyio.sleep(interval)

    raise StripeSyncError(
        f"Timed out waiting for user is_active={expected_is_active}. Last value: {last_value}"
    )


def get_profile_customer_id(profile_id: str) -> str:
    client = get_supabase_service_client()
    response = (
        client.table("user_profiles").select("customer_id").eq("id", profile_id).single().execute()
    )
    customer_id = response.data["customer_id"]
    if not customer_id:
        raise StripeSyncError("Expected created member to have a Stripe customer_id")
    return customer_id


def find_membership_subscription(customer_id: str, lookup_key: Optional[str] = None):
    """Newest subscription (any status) with an item priced at the membership lookup key."""
    lookup_key = lookup_key or settings.membership_fee_lookup
    subscriptions = get_stripe_client().Subscription.list(
        customer=customer_id,
        status="all",
        limit=100,
        expand=["data.items.data.price"],
    )

    def has_membership_price(subscription) -> bool:
        for item in subscription["items"]["data"]:
            price = item["price"]
            if not isinstance(price, str) and getattr(price, "lookup_key", None) == lookup_key:
                return True
        return False

    matching = [subscription for subscription in subscriptions.data if has_membership_price(subscription)]
    if not matching:
        raise StripeSyncError(f"No {lookup_key} subscription found for {customer_id}")
    return max(matching, key=lambda subscription: subscription["created"])


def cancel_subscription(subscription_id: str) -> None:
    get_stripe_client().Subscription.cancel(subscription_id)
