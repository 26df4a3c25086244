"""Shared test fixtures for the composer test suite."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from mime_composer.config import ComposerConfig
from mime_composer.encoder import MimeEncoder
from mime_composer.message import OutboundEmail


@pytest.fixture
def config() -> ComposerConfig:
    return ComposerConfig()


@pytest.fixture
def mock_encoder() -> AsyncMock:
    encoder = AsyncMock(spec=MimeEncoder)
    encoder.build_message = AsyncMock(return_value=b"encoded")
    return encoder


# ------------------------------------------------------------------
# Request parameter builders
# ------------------------------------------------------------------


@pytest.fixture
def make_params() -> Callable[..., dict[str, str | None]]:
    """Build request parameters for Scenario-A style messages.

    Keyword ``from_`` maps to the ``from`` parameter; any value can be
    overridden and ``None`` removes the key.
    """

    def _make(**overrides: str | None) -> dict[str, str | None]:
        params: dict[str, str | None] = {
            "from": "Alice <a@x.com>",
            "to": "Bob <b@x.com>",
            "subject": "Hi",
            "content": "hello",
        }
        if "from_" in overrides:
            overrides["from"] = overrides.pop("from_")
        params.update(overrides)
        return {key: value for key, value in params.items() if value is not None}

    return _make


@pytest.fixture
def make_email(
    make_params: Callable[..., dict[str, str | None]], config: ComposerConfig
) -> Callable[..., OutboundEmail]:
    def _make(**overrides: str | None) -> OutboundEmail:
        return OutboundEmail.from_params("acct-1", make_params(**overrides), config=config)

    return _make
