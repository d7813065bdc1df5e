"""Database housekeeping shared by the whole session.

`reset_application_state` mirrors a fresh deployment: no auth users and only
the two settings the dashboard expects to exist.
"""
from __future__ import annotations

import logging
from typing import Dict, List

from membership_e2e.clients import get_supabase_service_client

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: List[Dict[str, str]] = [
    {"key": "waitlist_open", "value": "true", "type": "boolean"},
    {"key": "hema_insurance_form_link", "value": "", "type": "text"},
]


def delete_all_auth_users(client=None, per_page: int = 1000) -> int:
    """Delete auth users page by page until the listing comes back empty."""
    client = client or get_supabase_service_client()
    removed = 0
    while True:
        # Deleting shifts the remaining users forward, so always read page 1
        users = client.auth.admin.list_users(page=1, per_page=per_page)
        if not users:
            return removed
        for user in users:
            client.auth.admin.delete_user(user.id)
        removed += len(users)


def reset_settings(client=None) -> None:
    client = client or get_supabase_service_client()
    client.table("settings").delete().neq("key", "").execute()
    client.table("settings").insert(DEFAULT_SETTINGS).execute()


def reset_application_state() -> None:
    """Delete every auth user and restore the default settings rows."""
    client = get_supabase_service_client()
    removed = delete_all_auth_users(client)
    reset_settings(client)
    logger.info("Reset application state (removed %d auth users)", removed)


def set_waitlist_open(is_open: bool) -> None:
    client = get_supabase_service_client()
    client.table("settings").update({"value": "true" if is_open else "false"}).eq(
        "key", "waitlist_open"
    ).execute()


def get_setting(key: str) -> str | None:
    client = get_supabase_service_client()
    response = client.table("settings").select("value").eq("key", key).execute()
    return response.data[0]["value"] if response.data else None
