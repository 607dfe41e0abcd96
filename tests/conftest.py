"""
Shared pytest fixtures for the load generator test suite.

Most tests drive the simulator through :class:`FakeClient`, a stand-in
for Locust's ``HttpSession`` that records each request and answers
with scripted status codes.  No test starts a Locust runner; only the
cookie-isolation tests open a socket, to an in-process server.

Key SDET Concepts Demonstrated:
- Stub objects that satisfy the ``catch_response`` interface contract
- Deterministic seeds and a no-op sleep so simulations run instantly
- Faker-generated credential pools instead of hard-coded accounts
"""

from __future__ import annotations

import os
from dataclasses import replace

import pytest
from faker import Faker

os.environ["LOADGEN_ENV"] = "testing"

from classifieds_load.config import SessionMode, Settings, TestingConfig
from classifieds_load.credentials import Credential
from tests.fakes import FakeClient


fake = Faker()


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def sleeps() -> list[float]:
    """List that collects every pause the simulator asks for."""
    return []


@pytest.fixture(scope="session")
def settings() -> Settings:
    """Authenticated-mode settings built from ``TestingConfig``."""
    return Settings.from_config(TestingConfig)


@pytest.fixture(scope="session")
def stateless_settings(settings: Settings) -> Settings:
    return replace(settings, mode=SessionMode.STATELESS)


@pytest.fixture
def credential_pool() -> tuple[Credential, ...]:
    """Six Faker-generated accounts."""
    return tuple(Credential(fake.unique.user_name(), fake.password()) for _ in range(6))
