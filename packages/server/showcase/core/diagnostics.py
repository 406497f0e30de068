"""
Human-readable, secret-masked rendering of configuration and validation
results for logs, the CLI report and the error page.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

from showcase.core.environment import Mode
from showcase.core.rules import is_sensitive_name

if TYPE_CHECKING:
    from showcase.core.config import Configuration
    from showcase.core.validation import ValidationResult

MASK = "***"

# ---------------------------------------------------------------------------
# Masking
# ---------------------------------------------------------------------------


def mask_database_url(url: str) -> str:
    """Hide credentials embedded in a connection URL.

    File URLs and URLs without credentials are returned unchanged. The
    password is replaced and any username other than the stock ``postgres``
    role is truncated.
    """
    if url.startswith("file:") or "@" not in url:
        return url

    try:
        parts = urlsplit(url)
        username = parts.username
        password = parts.password
        if not parts.scheme or not parts.netloc:
            raise ValueError("not an absolute URL")
    except ValueError:
        if len(url) > 20:
            return url[:10] + MASK + url[-10:]
        return MASK

    userinfo = ""
    if username:
        userinfo = username if username == "postgres" else username[:3] + MASK
    if password:
        userinfo += ":" + MASK
    hostinfo = parts.netloc.rpartition("@")[2]
    netloc = f"{userinfo}@{hostinfo}" if userinfo else hostinfo
    return urlunsplit(parts._replace(netloc=netloc))


def mask_sensitive_value(name: str, value: str) -> str:
    """Mask a variable's value for display based on its name."""
    if is_sensitive_name(name):
        if len(value) <= 8:
            return MASK
        return value[:4] + MASK + value[-4:]
    if "URL" in name.upper():
        return mask_database_url(value)
    return value


# ---------------------------------------------------------------------------
# Guidance
# ---------------------------------------------------------------------------

def remediation_hints(mode: Mode) -> list[str]:
    """Short hints appended to loader errors."""
    if mode is Mode.DEVELOPMENT:
        location = "Ensure a .env.local file exists with the required variables"
    else:
        location = "Ensure the variables are set in the hosting platform's environment settings"
    return [
        "Please check your environment configuration:",
        f"  - {location}",
        "",
        "See .env.example for required variable templates.",
    ]


def troubleshooting_guidance(mode: Mode) -> list[str]:
    lines: list[str] = []
    if mode is Mode.DEVELOPMENT:
        lines += [
            "Development environment:",
            "  1. Check that .env.local exists and contains the required variables",
            "  2. Copy .env.example to .env.local if it doesn't exist",
            "  3. Generate AUTH_SECRET: openssl rand -base64 32",
            '  4. Use DATABASE_PROVIDER="sqlite" for local development',
            '  5. Set DATABASE_URL="file:./dev.db" for SQLite',
            "  6. Restart the development server after making changes",
        ]
    elif mode is Mode.PRODUCTION:
        lines += [
            "Production environment:",
            "  1. Verify every variable is set in the hosting platform dashboard",
            '  2. Use DATABASE_PROVIDER="postgresql" for production',
            "  3. Set DATABASE_URL to the Supabase connection string",
            "  4. Configure SUPABASE_URL and SUPABASE_ANON_KEY",
            "  5. Set AUTH_URL to the public https:// domain",
            "  6. Use a freshly generated AUTH_SECRET (32+ characters)",
            "  7. Redeploy after updating environment variables",
        ]
    lines += [
        "General:",
        "  - See .env.example for the complete variable reference",
        "  - Check variable names for typos",
        "  - Check values for trailing spaces",
        "  - Verify URL formats",
    ]
    return lines


def recommendations(mode: Mode) -> list[str]:
    if mode is Mode.DEVELOPMENT:
        return [
            "Use SQLite for faster local development",
            'Set DATABASE_PROVIDER="sqlite" and DATABASE_URL="file:./dev.db"',
            "Generate AUTH_SECRET with: openssl rand -base64 32",
            "Use http://localhost:8000 for AUTH_URL",
        ]
    if mode is Mode.PRODUCTION:
        return [
            "Use PostgreSQL with Supabase for scalability",
            'Set DATABASE_PROVIDER="postgresql"',
            "Configure SUPABASE_URL and SUPABASE_ANON_KEY",
            "Use HTTPS for AUTH_URL",
            "Use a secure AUTH_SECRET (32+ characters)",
        ]
    return ["Test runs accept any well-formed configuration; keep secrets out of fixtures"]


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def configuration_summary(configuration: Configuration) -> dict[str, Any]:
    """Structured, log-safe description of a loaded configuration."""
    supabase = configuration.supabase
    oauth = configuration.oauth_providers
    return {
        "mode": configuration.mode.value,
        "database_provider": configuration.database_provider.value,
        "database_url": mask_database_url(configuration.database_url),
        "auth_url": configuration.auth_url,
        "auth_secret": "configured" if configuration.auth_secret else "missing",
        "supabase": "configured" if supabase else "not configured",
        "supabase_url": supabase.url if supabase else None,
        "supabase_service_role_key": bool(supabase and supabase.service_role_key),
        "oauth_providers": oauth.enabled() if oauth else [],
    }


def format_validation_report(result: ValidationResult) -> str:
    """Markdown report of errors, warnings and troubleshooting steps."""
    if result.is_valid and not result.warnings:
        return "Environment configuration is valid."

    messages: list[str] = []
    if result.errors:
        messages.append("## Environment Configuration Errors")
        messages.extend(f"- {message}" for message in result.errors)

    if result.warnings:
        if messages:
            messages.append("")
        messages.append("## Environment Configuration Warnings")
        messages.extend(f"- {message}" for message in result.warnings)

    messages += [
        "",
        "## Troubleshooting",
        "- Check your .env.local file for development",
        "- Verify the hosting platform's environment variables for production",
        "- See .env.example for required variables",
    ]
    return "\n".join(messages)
