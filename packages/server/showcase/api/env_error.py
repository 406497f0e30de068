"""
Configuration-error page.

The per-request gate redirects here while the environment is invalid. Details
are only rendered when the redirect carried them, which the gate does in
development only.
"""

from __future__ import annotations

import json
from html import escape

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse

log = structlog.get_logger()
router = APIRouter()


def parse_message_list(raw: str | None) -> list[str]:
    """Decode a JSON list of messages; anything malformed yields nothing."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        log.debug("env_error.unparseable_query", value=raw)
        return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _section(title: str, css_class: str, messages: list[str]) -> str:
    if not messages:
        return ""
    items = "".join(f"<li>{escape(message)}</li>" for message in messages)
    return f'<section class="{css_class}"><h2>{escape(title)}</h2><ol>{items}</ol></section>'


def render_error_page(
    errors: list[str],
    warnings: list[str],
    *,
    production: bool,
    timestamp: str | None,
) -> str:
    if production:
        body = (
            "<p>The application is not configured correctly and cannot serve requests.</p>"
            "<p>Please contact the site administrator. Details have been logged on the server.</p>"
        )
    else:
        body = (
            "<p>The environment configuration is invalid. Fix the problems below and "
            "restart the server.</p>"
            + _section("Errors", "errors", errors)
            + _section("Warnings", "warnings", warnings)
            + "<p>Run <code>showcase-validate-env</code> for a full report.</p>"
        )

    stamp = f'<p class="timestamp">{escape(timestamp)}</p>' if timestamp else ""
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<title>Configuration Error</title></head><body>"
        f"<h1>Configuration Error</h1>{body}{stamp}</body></html>"
    )


@router.get("/env-error", response_class=HTMLResponse, include_in_schema=False)
async def env_error(
    errors: str | None = Query(default=None),
    warnings: str | None = Query(default=None),
    production: str | None = Query(default=None),
    timestamp: str | None = Query(default=None),
):
    """Render the configuration-error page from the redirect query."""
    is_production = production == "true"
    html = render_error_page(
        [] if is_production else parse_message_list(errors),
        [] if is_production else parse_message_list(warnings),
        production=is_production,
        timestamp=timestamp,
    )
    return HTMLResponse(content=html, status_code=503)
