"""
Environment presence check.

Reports which auth variables are set without revealing their values.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from showcase.core.rules import OAUTH_PAIRS

router = APIRouter()


@router.get("/env-check")
async def env_check(request: Request):
    validator = request.app.state.validator
    raw = validator.raw

    presence = {
        "AUTH_URL": bool(raw.get("AUTH_URL")),
        "AUTH_SECRET": bool(raw.get("AUTH_SECRET")),
    }
    for pair in OAUTH_PAIRS:
        presence[pair.id_variable] = bool(raw.get(pair.id_variable))
        presence[pair.secret_variable] = bool(raw.get(pair.secret_variable))

    return {
        "variables": presence,
        "mode": validator.mode.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
