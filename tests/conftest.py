"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment to ``testing`` with the in-memory store, so no
Supabase project is ever contacted.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["APP_STORE_BACKEND"] = "memory"
os.environ.setdefault("APP_ALLOWED_EMAIL_DOMAIN", "wesleyan.edu")
os.environ.setdefault("APP_POSTS_PER_WINDOW", "10")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW", "rolling_24h")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from wescollab.adapters.identity.in_memory import InMemoryIdentityProvider
from wescollab.adapters.posts.in_memory import InMemoryPostRepository
from wescollab.core.app_factory import create_app
from wescollab.core.dependencies import (
    get_identity_provider,
    get_post_repository,
    reset_adapters,
)
from wescollab.schemas.user import AuthenticatedUser

ALICE = AuthenticatedUser(
    id="0b6f2c1e-8d4a-4c55-9a1e-3f1d2b7c9e01",
    email="alice@wesleyan.edu",
    name="Alice Author",
)
BOB = AuthenticatedUser(
    id="5d0e9a7b-2c3f-4e81-b6a4-7e8f9d0c1b22",
    email="bob@wesleyan.edu",
    name="Bob Browser",
)
OUTSIDER = AuthenticatedUser(
    id="9c8b7a6d-5e4f-4a3b-8c2d-1e0f9a8b7c63",
    email="mallory@gmail.com",
    name="Mallory",
)

TOKENS = {
    "alice-token": ALICE,
    "bob-token": BOB,
    "outsider-token": OUTSIDER,
}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _fresh_adapters():
    """Drop cached adapters between tests."""
    reset_adapters()
    yield
    reset_adapters()


@pytest.fixture
def repository() -> InMemoryPostRepository:
    return InMemoryPostRepository()


@pytest.fixture
def identity() -> InMemoryIdentityProvider:
    provider = InMemoryIdentityProvider()
    for token, user in TOKENS.items():
        provider.register(token, user)
    return provider


@pytest.fixture
def app(repository: InMemoryPostRepository, identity: InMemoryIdentityProvider) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_post_repository] = lambda: repository
    application.dependency_overrides[get_identity_provider] = lambda: identity
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
