"""Read fallback values from the repository's .env.defaults file.

A developer's own `.env` (loaded by `membership_e2e.config`) always wins;
`.env.defaults` only fills in what points at a local `supabase start` stack.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

from dotenv import dotenv_values

REPO_ROOT = Path(__file__).resolve().parents[1]


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    env_defaults = REPO_ROOT / ".env.defaults"
    if not env_defaults.exists():
        return {}
    return {key: value for key, value in dotenv_values(env_defaults).items() if value is not None}


def get_env_default(key: str) -> str | None:
    return _load_env_defaults().get(key)
