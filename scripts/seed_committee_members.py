#!/usr/bin/env python3
"""Create committee accounts from a CSV export.

Expected columns: email, first_name, last_name, dob (DD/MM/YYYY),
displayname, roles (comma separated, quoted).

    python scripts/seed_committee_members.py committee.csv
"""

from __future__ import annotations

import argparse
import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from postgrest.exceptions import APIError

from membership_e2e.clients import get_supabase_service_client

logger = logging.getLogger("seed_committee_members")


def read_records(csv_path: Path) -> List[Dict[str, str]]:
    with csv_path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle, skipinitialspace=True)
        return [
            {key.strip(): (value or "").strip() for key, value in row.items() if key}
            for row in reader
            if any((value or "").strip() for value in row.values())
        ]


def parse_roles(raw: str) -> List[str]:
    return [role.strip() for role in raw.split(",") if role.strip()]


def seed_committee_member(client, record: Dict[str, str]) -> bool:
    roles = parse_roles(record["roles"])
    date_of_birth = datetime.strptime(record["dob"], "%d/%m/%Y").date()

    try:
        auth_user = client.auth.admin.create_user(
            {
                "email": record["email"],
                "email_confirm": True,
                "user_metadata": {"display_name": record["displayname"]},
                "app_metadata": {"roles": roles},
            }
        ).user
    except Exception as exc:
        logger.error("Error creating auth user for %s: %s", record["email"], exc)
        return False

    try:
        client.table("user_profiles").insert(
            {
                "id": auth_user.id,
                "first_name": record["first_name"],
                "last_name": record["last_name"],
                "date_of_birth": date_of_birth.isoformat(),
                "is_active": True,
            }
        ).execute()
    except APIError as exc:
        logger.error("Error creating profile for %s: %s", record["email"], exc.message)
        return False

    try:
        client.table("user_roles").insert([{"user_id": auth_user.id, "role": role} for role in roles]).execute()
    except APIError as exc:
        logger.error("Error inserting roles for %s: %s", record["email"], exc.message)
        return False
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("csv_path", type=Path, help="Path to the committee CSV file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    if not args.csv_path.exists():
        parser.error(f"CSV file not found: {args.csv_path}")

    client = get_supabase_service_client()
    records = read_records(args.csv_path)
    created = sum(seed_committee_member(client, record) for record in records)

    print(f"Finished processing {len(records)} users ({created} created)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
