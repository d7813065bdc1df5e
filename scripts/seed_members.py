#!/usr/bin/env python3
"""Seed a local Supabase stack with active members.

Creates, per member: a confirmed auth user, a completed waitlist row, a
user profile, a member profile and the `member` role.

    python scripts/seed_members.py 25
"""

from __future__ import annotations

import argparse
import logging
import random
from datetime import date

from postgrest.exceptions import APIError

from membership_e2e.clients import get_supabase_service_client
from membership_e2e.seeding import GENDERS, PRONOUNS, fake, irish_phone_number
from membership_e2e.workflows import years_ago

logger = logging.getLogger("seed_members")

PREFERRED_WEAPONS = ["longsword", "sword_and_buckler"]
SOCIAL_MEDIA_CONSENT = ["no", "yes_recognizable", "yes_unrecognizable"]
SEED_PASSWORD = "password123"


def fake_member() -> dict:
    first_name = fake.first_name()
    last_name = fake.last_name()
    return {
        "first_name": first_name,
        "last_name": last_name,
        "email": f"{first_name}.{last_name}.{fake.random_int(100, 999)}@example.com".lower(),
        "phone_number": irish_phone_number(),
        "date_of_birth": fake.date_between(start_date=date(1970, 1, 1), end_date=years_ago(16)).isoformat(),
        "pronouns": random.choice(PRONOUNS),
        "gender": random.choice(GENDERS),
        "medical_conditions": random.choice([None, fake.sentence()]),
    }


def seed_member(client, member: dict) -> dict | None:
    """Create auth user, waitlist row and user profile; None when any step fails."""
    try:
        auth_user = client.auth.admin.create_user(
            {
                "email": member["email"],
                "email_confirm": True,
                "password": SEED_PASSWORD,
                "user_metadata": {"full_name": f"{member['first_name']} {member['last_name']}"},
            }
        ).user
    except Exception as exc:
        logger.error("Error creating auth user %s: %s", member["email"], exc)
        return None

    try:
        waitlist = (
            client.table("waitlist").insert({"email": member["email"], "status": "completed"}).execute().data[0]
        )
    except APIError as exc:
        logger.error("Error creating waitlist entry for %s: %s", member["email"], exc.message)
        return None

    try:
        profile = (
            client.table("user_profiles")
            .insert(
                {
                    "supabase_user_id": auth_user.id,
                    "first_name": member["first_name"],
                    "last_name": member["last_name"],
                    "phone_number": member["phone_number"],
                    "date_of_birth": member["date_of_birth"],
                    "pronouns": member["pronouns"],
                    "gender": member["gender"],
                    "is_active": True,
                    "waitlist_id": waitlist["id"],
                    "medical_conditions": member["medical_conditions"],
                    "social_media_consent": random.choice(SOCIAL_MEDIA_CONSENT),
                }
            )
            .execute()
            .data[0]
        )
    except APIError as exc:
        logger.error("Error creating user profile for %s: %s", member["email"], exc.message)
        return None
    return {"user_id": auth_user.id, "profile_id": profile["id"]}


def member_profile(user_id: str, profile_id: str) -> dict:
    return {
        "id": user_id,
        "user_profile_id": profile_id,
        "next_of_kin_name": fake.name(),
        "next_of_kin_phone": irish_phone_number(),
        "preferred_weapon": random.sample(PREFERRED_WEAPONS, k=random.randint(1, 2)),
        "membership_start_date": fake.date_between(start_date="-2y").isoformat(),
        "last_payment_date": fake.date_between(start_date="-30d").isoformat(),
        "insurance_form_submitted": fake.boolean(),
        "additional_data": {},
    }


def insert_member_profiles(client, profiles: list) -> bool:
    try:
        client.table("member_profiles").insert(profiles).execute()
    except APIError as exc:
        logger.error("Error inserting member profiles: %s", exc.message)
        return False
    try:
        client.table("user_roles").insert(
            [{"user_id": profile["id"], "role": "member"} for profile in profiles]
        ).execute()
    except APIError as exc:
        logger.error("Error adding member roles: %s", exc.message)
        return False
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("count", nargs="?", type=int, default=10, help="Number of members (default: 10)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    client = get_supabase_service_client()

    created = [seed_member(client, fake_member()) for _ in range(args.count)]
    created = [entry for entry in created if entry]
    if not created:
        print("No member profiles to create")
        return 0

    profiles = [member_profile(entry["user_id"], entry["profile_id"]) for entry in created]
    if not insert_member_profiles(client, profiles):
        return 1

    print(f"Successfully created {len(profiles)} member profiles")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
