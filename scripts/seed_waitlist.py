#!/usr/bin/env python3
"""Seed waitlist entries through the `insert_waitlist_entry` rpc.

Entries younger than 18 also get a `waitlist_guardians` row.

    python scripts/seed_waitlist.py 40
"""

from __future__ import annotations

import argparse
import random
from datetime import date

from membership_e2e.clients import get_supabase_service_client
from membership_e2e.seeding import GENDERS, PRONOUNS, fake, irish_phone_number
from membership_e2e.workflows import years_ago

SOCIAL_MEDIA_CONSENT = ["no", "yes_recognizable", "yes_unrecognizable"]
ALL_GENDERS = GENDERS + ["man (trans)", "woman (trans)", "other"]


def fake_entry() -> dict:
    return {
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "email": fake.email().lower(),
        "date_of_birth": fake.date_between(start_date=date(1970, 1, 1), end_date=years_ago(16)),
        "phone_number": irish_phone_number(),
        "pronouns": random.choice(PRONOUNS),
        "gender": random.choice(ALL_GENDERS),
        "medical_conditions": random.choice([None, fake.sentence()]),
        "social_media_consent": random.choice(SOCIAL_MEDIA_CONSENT),
    }


def needs_guardian(date_of_birth: date) -> bool:
    return date_of_birth > years_ago(18)


def seed_waitlist(count: int) -> int:
    client = get_supabase_service_client()
    guardians = 0
    for _ in range(count):
        entry = fake_entry()
        params = dict(entry, date_of_birth=entry["date_of_birth"].isoformat())
        rows = client.rpc("insert_waitlist_entry", params).execute().data
        if not needs_guardian(entry["date_of_birth"]):
            continue
        client.table("waitlist_guardians").insert(
            {
                "profile_id": rows[0]["profile_id"],
                "first_name": fake.first_name(),
                "last_name": fake.last_name(),
                "phone_number": irish_phone_number(),
            }
        ).execute()
        guardians += 1
    return guardians


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("count", nargs="?", type=int, default=10, help="Number of entries (default: 10)")
    args = parser.parse_args()

    guardians = seed_waitlist(args.count)
    print(f"Successfully inserted {args.count} waitlist entries ({guardians} with guardians)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
