"""Dependency wiring: the pipeline per request."""

from fastapi import Depends

from app.core.collaborators import Collaborators
from app.core.config import get_settings
from app.core.pipeline import ContentIntelligencePipeline
from app.services.collaborator_factory import get_collaborators


def get_pipeline(
    collaborators: Collaborators = Depends(get_collaborators),
) -> ContentIntelligencePipeline:
    settings = get_settings()
    return ContentIntelligencePipeline(
        collaborators, max_concurrency=settings.MAX_FETCH_CONCURRENCY
    )
