"""Shared pytest fixtures for the draft notes test suite."""

from __future__ import annotations

import pytest

from draftnotes.config import ClientSettings
from tests.factories import API_BASE

pytest_plugins = ("respx",)


@pytest.fixture
def settings() -> ClientSettings:
    """Provide client settings with deterministic defaults for tests."""
    return ClientSettings.model_validate(
        {
            "gitlab_api_base": API_BASE,
            "gitlab_token": "token",  # pragma: allowlist secret
            "max_attempts": 1,
        },
    )
