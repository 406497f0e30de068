"""
Runtime environment validation.

``validate_environment`` runs the loader's checks plus mode-aware heuristics
(environment appropriateness, secret strength, transport security) and
returns classified results. It never raises; callers decide what an error
means for them.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import structlog

from showcase.core.checks import (
    Issue,
    IssueCode,
    check_auth_url,
    check_database,
    check_oauth_pairs,
    check_required,
    error,
    is_loopback_url,
    url_host,
    warning,
)
from showcase.core.environment import MODE_VARIABLE, Mode, detect_environment
from showcase.core.rules import (
    DEVELOPMENT_SECRET_WARN_LENGTH,
    KNOWN_SECRET_VARIABLES,
    LOOPBACK_HOSTS,
    MANAGED_DATABASE_HOST_MARKERS,
    MIN_PRODUCTION_SECRET_LENGTH,
    OAUTH_PAIRS,
    find_typos,
    has_placeholder_word,
)
from showcase.core.settings import read_environment

log = structlog.get_logger()


@dataclass(frozen=True)
class ValidationResult:
    issues: tuple[Issue, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not any(issue.is_error for issue in self.issues)

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if not issue.is_error]

    def codes(self) -> set[IssueCode]:
        return {issue.code for issue in self.issues}

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": self.errors, "warnings": self.warnings}


# ---------------------------------------------------------------------------
# Mode-specific rules
# ---------------------------------------------------------------------------

def _development_rules(raw: Mapping[str, str]) -> list[Issue]:
    issues = []
    url = raw.get("DATABASE_URL", "")
    provider = raw.get("DATABASE_PROVIDER")
    secret = raw.get("AUTH_SECRET", "")

    if any(marker in url for marker in MANAGED_DATABASE_HOST_MARKERS):
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "Using a Supabase database URL in development. Consider SQLite for faster "
            "local development and offline capability.",
            "DATABASE_URL",
        ))

    if provider == "postgresql" and url_host(url) not in LOOPBACK_HOSTS:
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "Using remote PostgreSQL in development. Consider SQLite for faster local development.",
            "DATABASE_URL",
        ))

    if raw.get("SUPABASE_URL") and provider == "sqlite":
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "SUPABASE_URL is configured but DATABASE_PROVIDER is sqlite. "
            "This configuration is likely left over and unnecessary for development.",
            "SUPABASE_URL",
        ))

    if raw.get("SUPABASE_SERVICE_ROLE_KEY"):
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "SUPABASE_SERVICE_ROLE_KEY is set in development but is only needed in production.",
            "SUPABASE_SERVICE_ROLE_KEY",
        ))

    configured = [pair for pair in OAUTH_PAIRS if raw.get(pair.id_variable)]
    if configured and is_loopback_url(raw.get("AUTH_URL")):
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "OAuth providers configured with a localhost AUTH_URL. Ensure the provider callback "
            "URLs point at {}/api/auth/callback/<provider>.".format(raw["AUTH_URL"].rstrip("/")),
            "AUTH_URL",
        ))

    if len(secret) > DEVELOPMENT_SECRET_WARN_LENGTH:
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            "AUTH_SECRET appears to be a production-grade secret. A simpler secret is fine for development.",
            "AUTH_SECRET",
        ))

    if provider == "sqlite" and url.startswith("file:"):
        issues.append(warning(
            IssueCode.ENVIRONMENT_MISMATCH,
            f"SQLite database will be created at: {url[len('file:'):]}. "
            "Run the seed command if this is a new setup.",
            "DATABASE_URL",
        ))
    return issues


def _production_rules(raw: Mapping[str, str]) -> list[Issue]:
    issues = []
    url = raw.get("DATABASE_URL", "")
    provider = raw.get("DATABASE_PROVIDER")
    auth_url = raw.get("AUTH_URL", "")
    secret = raw.get("AUTH_SECRET", "")

    if url.startswith("file:"):
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            "Using SQLite (file: URL) in production is not allowed. Use PostgreSQL with Supabase "
            "for production deployments.",
            "DATABASE_URL",
        ))

    auth_is_loopback = bool(auth_url) and is_loopback_url(auth_url)
    if auth_is_loopback:
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            "AUTH_URL points to localhost in production. Use the actual production domain "
            "(e.g. https://yourdomain.com).",
            "AUTH_URL",
        ))

    if secret and len(secret) < MIN_PRODUCTION_SECRET_LENGTH:
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            f"AUTH_SECRET is too short for production. Use at least "
            f"{MIN_PRODUCTION_SECRET_LENGTH} characters.",
            "AUTH_SECRET",
        ))

    if secret and has_placeholder_word(secret):
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            "AUTH_SECRET looks like a development or placeholder value. Generate a new one with: "
            "openssl rand -base64 32",
            "AUTH_SECRET",
        ))

    if auth_url and not auth_url.startswith("https://"):
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            "AUTH_URL must use HTTPS in production.",
            "AUTH_URL",
        ))

    if auth_is_loopback and any(
        raw.get(pair.id_variable) or raw.get(pair.secret_variable) for pair in OAUTH_PAIRS
    ):
        issues.append(error(
            IssueCode.INSECURE_PRODUCTION_VALUE,
            "OAuth providers are configured but AUTH_URL points to localhost. Update the OAuth "
            "callback URLs to the production domain.",
            "AUTH_URL",
        ))

    if provider == "postgresql":
        if not raw.get("SUPABASE_URL"):
            issues.append(warning(
                IssueCode.ENVIRONMENT_MISMATCH,
                "Using PostgreSQL without Supabase configuration. Ensure the database has "
                "connection pooling and SSL configured.",
                "SUPABASE_URL",
            ))
        if not raw.get("SUPABASE_SERVICE_ROLE_KEY"):
            issues.append(warning(
                IssueCode.ENVIRONMENT_MISMATCH,
                "SUPABASE_SERVICE_ROLE_KEY is not set. Administrative Supabase operations will be unavailable.",
                "SUPABASE_SERVICE_ROLE_KEY",
            ))
    return issues


# ---------------------------------------------------------------------------
# Cross-mode rules
# ---------------------------------------------------------------------------

def _suspicious_variables(raw: Mapping[str, str]) -> list[Issue]:
    names = sorted(
        name for name in raw
        if "_" in name
        and ("secret" in name.lower() or "key" in name.lower())
        and name not in KNOWN_SECRET_VARIABLES
    )
    if not names:
        return []
    return [warning(
        IssueCode.SUSPICIOUS_VARIABLE,
        f"Found additional environment variables that may contain secrets: {', '.join(names)}. "
        "Ensure these are intentional and properly protected.",
    )]


def _typo_issues(typos: Mapping[str, list[str]], raw: Mapping[str, str]) -> list[Issue]:
    issues = []
    for canonical, misspelled in typos.items():
        for typo in misspelled:
            message = f'Found "{typo}" but expected "{canonical}". Check for typos in variable names.'
            if not raw.get(canonical):
                message += f" {canonical} itself is not set."
            issues.append(error(IssueCode.TYPO_DETECTED, message, canonical))
    return issues


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def validate_environment(raw: Mapping[str, str], mode: Mode) -> ValidationResult:
    """Run every rule for ``mode`` against ``raw`` and collect the results."""
    typos = find_typos(raw)
    issues: list[Issue] = []
    issues += check_required(raw, mode, typos, skip_misspelled=True)
    issues += check_database(raw)
    issues += check_oauth_pairs(raw)
    issues += check_auth_url(raw)

    if mode is Mode.DEVELOPMENT:
        issues += _development_rules(raw)
    elif mode is Mode.PRODUCTION:
        issues += _production_rules(raw)

    issues += _suspicious_variables(raw)
    issues += _typo_issues(typos, raw)
    return ValidationResult(issues=tuple(issues))


class EnvironmentValidator:
    """Owns the environment snapshot and the memoized validation result.

    The first computed result is kept for the life of the instance whether it
    passed or failed.
    """

    def __init__(
        self,
        raw: Mapping[str, str] | None = None,
        mode: Mode | None = None,
        *,
        reader: Callable[[], Mapping[str, str]] = read_environment,
    ):
        self._raw = dict(raw) if raw is not None else None
        self._mode = mode
        self._reader = reader
        self._result: ValidationResult | None = None
        self._lock = threading.Lock()

    @property
    def raw(self) -> Mapping[str, str]:
        if self._raw is None:
            self._raw = dict(self._reader())
        return self._raw

    @property
    def mode(self) -> Mode:
        if self._mode is None:
            self._mode = detect_environment(self.raw.get(MODE_VARIABLE))
        return self._mode

    def current(self) -> ValidationResult:
        if self._result is not None:
            return self._result
        with self._lock:
            if self._result is None:
                self._result = validate_environment(self.raw, self.mode)
                log.debug(
                    "validation.computed",
                    mode=self.mode.value,
                    errors=len(self._result.errors),
                    warnings=len(self._result.warnings),
                )
        return self._result
