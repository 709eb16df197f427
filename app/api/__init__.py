"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import ai

router = APIRouter()

# Content intelligence routes (query, search, suggestions, analysis, media)
router.include_router(ai.router, prefix="/ai", tags=["ai"])
