"""
Unit tests for header building and the named-check helper.
"""

from __future__ import annotations

import pytest

from classifieds_load.helpers import check_status, client_headers
from tests.fakes import FakeResponse

pytestmark = pytest.mark.unit


def test_client_headers_without_token_only_mark_client():
    assert client_headers() == {"Datastar-Request": "true"}


def test_client_headers_with_token_add_csrf_bypass():
    assert client_headers("bypass") == {"Datastar-Request": "true", "X-CSRF-Token": "bypass"}


def test_client_headers_return_independent_dicts():
    first = client_headers("bypass")
    first["X-Extra"] = "1"
    assert "X-Extra" not in client_headers("bypass")


@pytest.mark.parametrize("status", [200, 302, 404, 500, 599])
def test_status_below_limit_passes(status):
    # Arrange
    response = FakeResponse(status)

    # Act
    passed = check_status(response, "status is valid", 600)

    # Assert
    assert passed is True
    assert response.passed


@pytest.mark.parametrize(("status", "limit"), [(600, 600), (400, 400), (503, 400)])
def test_status_at_or_above_limit_fails(status, limit):
    response = FakeResponse(status)

    assert check_status(response, "login ok", limit) is False
    assert response.outcome == f"failure: login ok: got status {status}, expected < {limit}"


def test_transport_error_fails_without_raising():
    response = FakeResponse(0, error=TimeoutError("read timed out"))

    assert check_status(response, "sign-out ok", 400) is False
    assert "transport error" in response.outcome


def test_status_zero_without_error_still_fails():
    response = FakeResponse(0)

    assert check_status(response, "status is valid", 600) is False
