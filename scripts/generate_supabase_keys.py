#!/usr/bin/env python3
"""Print `service_role` and `anon` API keys for a self-hosted Supabase.

Both are HS256 JWTs signed with SUPABASE_JWT_SECRET (or --secret) and valid
for five years.
"""

from __future__ import annotations

import argparse
import os
import time

import jwt

FIVE_YEARS = 60 * 60 * 24 * 365 * 5


def generate_supabase_key(role: str, jwt_secret: str, now: int | None = None) -> str:
    issued_at = int(time.time()) if now is None else now
    payload = {
        "role": role,
        "iss": "supabase",
        "iat": issued_at,
        "exp": issued_at + FIVE_YEARS,
    }
    return jwt.encode(payload, jwt_secret, algorithm="HS256")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--secret",
        default=os.environ.get("SUPABASE_JWT_SECRET", ""),
        help="JWT secret (default: $SUPABASE_JWT_SECRET)",
    )
    args = parser.parse_args()
    if not args.secret:
        parser.error("SUPABASE_JWT_SECRET is not set and --secret was not given")

    print("SERVICE_ROLE Key:")
    print(generate_supabase_key("service_role", args.secret))
    print("\nANON Key:")
    print(generate_supabase_key("anon", args.secret))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
