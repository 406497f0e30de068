"""
Validated runtime configuration.

``load_configuration`` turns raw environment variables into an immutable
``Configuration`` or raises a single ``ConfigurationError`` listing every
problem found. ``get_configuration`` memoizes the first successful load for
the lifetime of the process.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

import structlog
from pydantic import BaseModel, ConfigDict

from showcase.core.checks import (
    Issue,
    check_database,
    check_oauth_pairs,
    check_required,
)
from showcase.core.diagnostics import remediation_hints
from showcase.core.environment import (
    MODE_VARIABLE,
    Mode,
    Provider,
    detect_environment,
    is_build_phase,
)
from showcase.core.rules import OAUTH_PAIRS, find_typos
from showcase.core.settings import read_environment

log = structlog.get_logger()

# Substituted for missing values while the app is being built, never served.
BUILD_PHASE_PLACEHOLDERS: Mapping[str, str] = {
    "DATABASE_PROVIDER": "sqlite",
    "DATABASE_URL": "file:./dev.db",
    "AUTH_URL": "http://localhost:8000",
    "AUTH_SECRET": "build-phase-placeholder-secret",
}


class ConfigurationError(ValueError):
    """Aggregated configuration failure carrying every issue found."""

    def __init__(self, mode: Mode, issues: list[Issue]):
        self.mode = mode
        self.issues = issues
        lines = [f"Environment configuration is invalid for {mode.value} mode:"]
        lines += [f"  - {issue.message}" for issue in issues]
        lines.append("")
        lines += remediation_hints(mode)
        super().__init__("\n".join(lines))


# ---------------------------------------------------------------------------
# Configuration records
# ---------------------------------------------------------------------------

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SupabaseConfig(_Frozen):
    url: str
    anon_key: str
    service_role_key: str | None = None


class OAuthClient(_Frozen):
    client_id: str
    client_secret: str


class OAuthProviders(_Frozen):
    google: OAuthClient | None = None
    github: OAuthClient | None = None

    def enabled(self) -> list[str]:
        return [name for name in ("google", "github") if getattr(self, name) is not None]


class Configuration(_Frozen):
    mode: Mode
    database_url: str
    database_provider: Provider
    auth_url: str
    auth_secret: str
    supabase: SupabaseConfig | None = None
    oauth_providers: OAuthProviders | None = None
    build_placeholder: bool = False


class DatabaseConfig(_Frozen):
    """What the persistence client needs to open connections."""

    provider: Provider
    url: str
    connection_limit: int | None = None
    ssl: bool | None = None


def build_database_config(configuration: Configuration) -> DatabaseConfig:
    if configuration.mode is Mode.PRODUCTION and configuration.database_provider is Provider.POSTGRESQL:
        return DatabaseConfig(
            provider=configuration.database_provider,
            url=configuration.database_url,
            connection_limit=10,
            ssl=True,
        )
    return DatabaseConfig(provider=configuration.database_provider, url=configuration.database_url)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_configuration(
    raw: Mapping[str, str],
    mode: Mode,
    *,
    build_phase: bool = False,
) -> Configuration:
    """Validate ``raw`` for ``mode`` and assemble a Configuration.

    Secret strength is not checked here; that belongs to the runtime
    validator. During the build phase missing variables only warn and are
    replaced by placeholders.
    """
    missing = check_required(raw, mode, find_typos(raw))
    values = dict(raw)
    if missing and build_phase:
        log.warning(
            "config.build_phase_incomplete",
            mode=mode.value,
            missing=[issue.variable for issue in missing],
        )
        for issue in missing:
            if issue.variable in BUILD_PHASE_PLACEHOLDERS:
                values[issue.variable] = BUILD_PHASE_PLACEHOLDERS[issue.variable]
        missing = []

    issues = missing + check_database(values) + check_oauth_pairs(values)
    if issues:
        raise ConfigurationError(mode, issues)

    supabase = None
    if mode is Mode.PRODUCTION and values.get("SUPABASE_URL"):
        supabase = SupabaseConfig(
            url=values["SUPABASE_URL"],
            anon_key=values.get("SUPABASE_ANON_KEY", ""),
            service_role_key=values.get("SUPABASE_SERVICE_ROLE_KEY"),
        )

    clients = {
        pair.name: OAuthClient(
            client_id=values[pair.id_variable],
            client_secret=values[pair.secret_variable],
        )
        for pair in OAUTH_PAIRS
        if values.get(pair.id_variable) and values.get(pair.secret_variable)
    }

    return Configuration(
        mode=mode,
        database_url=values["DATABASE_URL"],
        database_provider=Provider(values["DATABASE_PROVIDER"]),
        auth_url=values["AUTH_URL"],
        auth_secret=values["AUTH_SECRET"],
        supabase=supabase,
        oauth_providers=OAuthProviders(**clients) if clients else None,
        build_placeholder=build_phase and values != dict(raw),
    )


# ---------------------------------------------------------------------------
# Process-wide cache
# ---------------------------------------------------------------------------

_configuration: Configuration | None = None
_configuration_lock = threading.Lock()


def get_configuration(raw: Mapping[str, str] | None = None) -> Configuration:
    """Load the configuration once per process and return the cached instance.

    Later calls ignore ``raw`` and any change to the environment.
    """
    global _configuration
    if _configuration is not None:
        return _configuration

    with _configuration_lock:
        if _configuration is None:
            if raw is None:
                raw = read_environment()
            configuration = load_configuration(
                raw,
                detect_environment(raw.get(MODE_VARIABLE)),
                build_phase=is_build_phase(raw),
            )
            if configuration.build_placeholder:
                return configuration
            _configuration = configuration
            log.info(
                "config.loaded",
                mode=configuration.mode.value,
                database_provider=configuration.database_provider.value,
            )
    return _configuration


def reset_configuration_cache() -> None:
    """Forget the cached configuration. Intended for tests."""
    global _configuration
    with _configuration_lock:
        _configuration = None
