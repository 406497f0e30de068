"""
Classified validation issues and the checks shared by the loader and the
runtime validator.

Every check returns a list of issues instead of raising, so callers can run
all of them and report the complete set in one pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from showcase.core.diagnostics import mask_database_url
from showcase.core.environment import Mode, Provider, parse_provider
from showcase.core.rules import (
    LOOPBACK_HOSTS,
    OAUTH_PAIRS,
    PROVIDER_URL_PREFIX,
    required_variables,
)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    MISSING_VARIABLE = "missing_variable"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_URL_FORMAT = "invalid_url_format"
    INCOMPLETE_OAUTH_PAIR = "incomplete_oauth_pair"
    INSECURE_PRODUCTION_VALUE = "insecure_production_value"
    TYPO_DETECTED = "typo_detected"
    # warning-only
    ENVIRONMENT_MISMATCH = "environment_mismatch"
    SUSPICIOUS_VARIABLE = "suspicious_variable"


@dataclass(frozen=True)
class Issue:
    code: IssueCode
    message: str
    variable: str | None = None
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


def error(code: IssueCode, message: str, variable: str | None = None) -> Issue:
    return Issue(code=code, message=message, variable=variable, severity=Severity.ERROR)


def warning(code: IssueCode, message: str, variable: str | None = None) -> Issue:
    return Issue(code=code, message=message, variable=variable, severity=Severity.WARNING)


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def url_host(url: str | None) -> str | None:
    """Lower-cased host of ``url``, or None when it has none."""
    if not url:
        return None
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def is_loopback_url(url: str | None) -> bool:
    host = url_host(url)
    if host is None:
        return bool(url) and "localhost" in url
    return host in LOOPBACK_HOSTS


def is_absolute_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def check_required(
    raw: Mapping[str, str],
    mode: Mode,
    typos: Mapping[str, list[str]] | None = None,
    *,
    skip_misspelled: bool = False,
) -> list[Issue]:
    """One issue per absent required variable.

    ``typos`` maps canonical names to misspellings found in the environment.
    With ``skip_misspelled`` a missing variable that has a misspelling is left
    to the typo check instead of being reported twice.
    """
    typos = typos or {}
    issues = []
    for name in required_variables(mode):
        if raw.get(name):
            continue
        misspelled = typos.get(name)
        if misspelled and skip_misspelled:
            continue
        message = f"Missing required environment variable: {name}"
        if misspelled:
            message += f" (found misspelled as {', '.join(misspelled)})"
        issues.append(error(IssueCode.MISSING_VARIABLE, message, name))
    return issues


def check_database(raw: Mapping[str, str]) -> list[Issue]:
    """Provider must be known and the URL must carry that provider's prefix."""
    raw_provider = raw.get("DATABASE_PROVIDER")
    url = raw.get("DATABASE_URL")
    if not raw_provider:
        return []

    provider = parse_provider(raw_provider)
    if provider is None:
        return [
            error(
                IssueCode.INVALID_ENUM_VALUE,
                f'Invalid DATABASE_PROVIDER: "{raw_provider}". Must be "sqlite" or "postgresql".',
                "DATABASE_PROVIDER",
            )
        ]

    prefix = PROVIDER_URL_PREFIX[provider]
    if url and not url.startswith(prefix):
        label = "SQLite" if provider is Provider.SQLITE else "PostgreSQL"
        return [
            error(
                IssueCode.INVALID_URL_FORMAT,
                f'{label} DATABASE_URL must start with "{prefix}" but got: "{mask_database_url(url)}"',
                "DATABASE_URL",
            )
        ]
    return []


def check_oauth_pairs(raw: Mapping[str, str]) -> list[Issue]:
    """Each OAuth client id/secret pair is all-or-nothing."""
    issues = []
    for pair in OAUTH_PAIRS:
        has_id = bool(raw.get(pair.id_variable))
        has_secret = bool(raw.get(pair.secret_variable))
        if has_id == has_secret:
            continue
        present, missing = (
            (pair.id_variable, pair.secret_variable)
            if has_id
            else (pair.secret_variable, pair.id_variable)
        )
        issues.append(
            error(
                IssueCode.INCOMPLETE_OAUTH_PAIR,
                f"{pair.label} OAuth configuration incomplete: {present} is set but {missing} is missing.",
                missing,
            )
        )
    return issues


def check_auth_url(raw: Mapping[str, str]) -> list[Issue]:
    url = raw.get("AUTH_URL")
    if url and not is_absolute_url(url):
        return [
            error(
                IssueCode.INVALID_URL_FORMAT,
                f'Invalid AUTH_URL: "{url}". Must be a valid absolute URL.',
                "AUTH_URL",
            )
        ]
    return []
