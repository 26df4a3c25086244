"""Composer configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars,
which keeps the request layer free to tune limits per deployment.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_EXCLUDED_RAW_HEADERS = [
    "to",
    "from",
    "cc",
    "bcc",
    "subject",
    "mime-version",
    "message-id",
    "messageid",
]


class ComposerConfig(BaseSettings):
    """Limits and header policy for outbound message composition."""

    model_config = {"env_prefix": "COMPOSER_"}

    max_subject_chars: int = Field(
        default=700,
        description="Longest subject accepted by validate()",
    )
    mime_version: str = Field(
        default="1.0",
        description="Value of the MIME-Version header emitted in raw mode",
    )
    message_id_domain: str | None = Field(
        default=None,
        description="Domain used when the encoder generates a Message-ID",
    )
    excluded_raw_headers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_RAW_HEADERS),
        description="Raw-block header names superseded by structured fields (case-insensitive)",
    )
    log_json: bool = Field(default=True, description="Emit JSON log lines")
    log_level: str = Field(default="INFO", description="Root log level name")
