"""
API Router

Everything under /api bypasses the per-request environment gate.
"""

from fastapi import APIRouter

from . import auth, env_check

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(env_check.router, tags=["System"])
