"""Fatal composition errors.

Validation problems are never raised: they are collected into a
``ValidationResult``.  The classes here cover the structural failures that
abort composition before any output is produced.
"""

from __future__ import annotations


class ComposeError(Exception):
    """Base class for errors that abort message composition."""

    code: str = "E_COMPOSE"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class UnsupportedModeError(ComposeError):
    """The message carries neither a parametrized body nor a raw MIME payload."""

    code = "E_UNSUPPORTED_MODE"


class MissingDelimiterError(ComposeError):
    """The raw MIME payload has no blank line between header block and body."""

    code = "E_MISSING_DELIMITER"
