"""
Declarative rule tables for environment validation.

Everything here is immutable data; the loader and validator interpret it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from showcase.core.environment import Mode, Provider

# ---------------------------------------------------------------------------
# Required variables
# ---------------------------------------------------------------------------

BASE_REQUIRED: tuple[str, ...] = (
    "APP_ENV",
    "DATABASE_PROVIDER",
    "DATABASE_URL",
    "AUTH_URL",
    "AUTH_SECRET",
)

MODE_REQUIRED: Mapping[Mode, tuple[str, ...]] = MappingProxyType({
    Mode.DEVELOPMENT: (),
    Mode.PRODUCTION: ("SUPABASE_URL", "SUPABASE_ANON_KEY"),
    Mode.TEST: (),
})

OPTIONAL_VARIABLES: tuple[str, ...] = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GITHUB_CLIENT_ID",
    "GITHUB_CLIENT_SECRET",
)


def required_variables(mode: Mode) -> tuple[str, ...]:
    return BASE_REQUIRED + MODE_REQUIRED[mode]


# ---------------------------------------------------------------------------
# Database provider / URL prefix
# ---------------------------------------------------------------------------

PROVIDER_URL_PREFIX: Mapping[Provider, str] = MappingProxyType({
    Provider.SQLITE: "file:",
    Provider.POSTGRESQL: "postgres",
})

# ---------------------------------------------------------------------------
# OAuth pairs (both present or both absent)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OAuthPair:
    name: str
    label: str
    id_variable: str
    secret_variable: str


OAUTH_PAIRS: tuple[OAuthPair, ...] = (
    OAuthPair("google", "Google", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"),
    OAuthPair("github", "GitHub", "GITHUB_CLIENT_ID", "GITHUB_CLIENT_SECRET"),
)

# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

KNOWN_SECRET_VARIABLES: frozenset[str] = frozenset({
    "AUTH_SECRET",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "GOOGLE_CLIENT_SECRET",
    "GITHUB_CLIENT_SECRET",
})

SENSITIVE_NAME_MARKERS: tuple[str, ...] = ("SECRET", "KEY", "PASSWORD", "TOKEN")

MIN_PRODUCTION_SECRET_LENGTH = 32
DEVELOPMENT_SECRET_WARN_LENGTH = 50

PLACEHOLDER_SECRET_WORDS: tuple[str, ...] = (
    "dev",
    "test",
    "changeme",
    "change_me",
    "placeholder",
    "example",
)

# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------

LOOPBACK_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})
MANAGED_DATABASE_HOST_MARKERS: tuple[str, ...] = ("supabase.co",)

# ---------------------------------------------------------------------------
# Misspellings (typo -> canonical)
# ---------------------------------------------------------------------------

COMMON_TYPOS: Mapping[str, str] = MappingProxyType({
    "DATABSE_URL": "DATABASE_URL",
    "DATABASE_URI": "DATABASE_URL",
    "DB_URL": "DATABASE_URL",
    "DATABASE_PROVDER": "DATABASE_PROVIDER",
    "DB_PROVIDER": "DATABASE_PROVIDER",
    "AUTH_SECRET_KEY": "AUTH_SECRET",
    "AUTHSECRET": "AUTH_SECRET",
    "AUTH_KEY": "AUTH_SECRET",
    "AUTH_URI": "AUTH_URL",
    "AUTHURL": "AUTH_URL",
    "SUPABASE_URI": "SUPABASE_URL",
    "SUPA_BASE_URL": "SUPABASE_URL",
})

# Startup errors mentioning these block a development server from starting.
CRITICAL_ERROR_KEYWORDS: tuple[str, ...] = ("DATABASE_URL", "AUTH_SECRET", "DATABASE_PROVIDER")


def find_typos(raw: Mapping[str, str]) -> dict[str, list[str]]:
    """Group misspelled variable names present in ``raw`` by canonical name."""
    found: dict[str, list[str]] = {}
    for typo, canonical in COMMON_TYPOS.items():
        if raw.get(typo):
            found.setdefault(canonical, []).append(typo)
    return found


def is_sensitive_name(name: str) -> bool:
    upper = name.upper()
    return any(marker in upper for marker in SENSITIVE_NAME_MARKERS)


def has_placeholder_word(secret: str) -> bool:
    """True when a placeholder word appears as a whole token of ``secret``.

    Tokens are split on non-alphanumerics, so ``my-dev-secret`` and
    ``change_me`` match while a random string that merely contains ``DeV``
    does not.
    """
    tokens = [token for token in re.split(r"[^a-z0-9]+", secret.lower()) if token]
    candidates = set(tokens) | {a + b for a, b in zip(tokens, tokens[1:])}
    return any(re.sub(r"[^a-z0-9]", "", word) in candidates for word in PLACEHOLDER_SECRET_WORDS)
