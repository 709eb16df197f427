"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

from app.core.pipeline import ContentIntelligencePipeline
from app.main import app
from app.services.collaborator_factory import get_collaborators
from tests.fakes.fake_collaborators import build_fake_collaborators


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["KB_ENV"] = "test"


@pytest.fixture
def fakes():
    """In-memory collaborators seeded with one knowledge base per user."""
    return build_fake_collaborators()


@pytest.fixture
def pipeline(fakes):
    return ContentIntelligencePipeline(fakes, max_concurrency=4, clock=lambda: 1700000000.0)


@pytest.fixture
def client(fakes):
    """TestClient whose requests run against the fake collaborators."""
    app.dependency_overrides[get_collaborators] = lambda: fakes
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
