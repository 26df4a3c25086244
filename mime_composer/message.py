"""OutboundEmail: the aggregate that validates and composes one message.

A message is built either from structured parameters (parametrized mode) or
from a user-supplied raw MIME blob plus structured routing fields (raw mode).
The mode is fixed by the payload variant at construction.

Typical use from a request handler::

    message = OutboundEmail.from_params(account_id, params, sender_ip=ip)
    result = message.validate()
    if not result.ok:
        return result.to_response()
    mime = await message.generate_mime_message()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

from .addresses import (
    Address,
    check_and_filter_email_list,
    extract_address_list,
    parse_addresses,
    unique_addresses,
    validate_email,
)
from .config import ComposerConfig
from .encoder import MimeEncoder, StdlibMimeEncoder
from .errors import UnsupportedModeError
from .headers import CustomHeaders, HeaderParser, StdlibHeaderParser, parse_custom_headers
from .parametrized import ParametrizedComposer
from .raw import RawModeReconciler

logger = structlog.get_logger()


class ComposeMode(str, Enum):
    """How the message body is produced."""

    PARAMETRIZED = "parametrized"
    RAW = "raw"


@dataclass(frozen=True)
class ParametrizedPayload:
    """Plain and/or HTML body; the encoder builds the whole message."""

    content: str = ""
    html_content: str = ""


@dataclass(frozen=True)
class RawPayload:
    """A complete or partial MIME message supplied by the caller."""

    raw_message: str


Payload = ParametrizedPayload | RawPayload


class ValidationResult(BaseModel):
    """Outcome of :meth:`OutboundEmail.validate`; every error is reported."""

    status: Literal["ok", "error"]
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_response(self) -> dict[str, Any]:
        """Response body for the request layer (no ``errors`` key when ok)."""
        if self.ok:
            return {"status": "ok"}
        return {"status": "error", "errors": list(self.errors)}


# (list attribute, error label) in the order validate() filters them
_RECIPIENT_LISTS = (
    ("to", "'to' email not valid"),
    ("bcc", "'bcc' email not valid"),
    ("cc", "'cc' email not valid"),
)


class OutboundEmail:
    """One outbound message and its routing information."""

    def __init__(
        self,
        *,
        from_address: Address | None,
        to: Iterable[Address],
        payload: Payload | None,
        cc: Iterable[Address] | None = None,
        bcc: Iterable[Address] | None = None,
        subject: str = "",
        custom_headers: CustomHeaders | None = None,
        sender_account_id: str = "",
        sender_ip: str = "",
        message_id: str | None = None,
        config: ComposerConfig | None = None,
        encoder: MimeEncoder | None = None,
        header_parser: HeaderParser | None = None,
    ) -> None:
        self.config = config or ComposerConfig()
        self.from_address = from_address
        self.to: list[Address] = list(to)
        self.cc: list[Address] = list(cc or [])
        self.bcc: list[Address] = list(bcc or [])
        self.subject = subject
        self.payload = payload
        self.custom_headers = custom_headers or CustomHeaders()
        self.sender_account_id = sender_account_id
        self.sender_ip = sender_ip
        self.message_id = message_id
        self._encoder = encoder or StdlibMimeEncoder(self.config.message_id_domain)
        self._header_parser = header_parser or StdlibHeaderParser()

    @classmethod
    def from_params(
        cls,
        account_id: str,
        params: Mapping[str, str | None],
        *,
        sender_ip: str = "",
        config: ComposerConfig | None = None,
        encoder: MimeEncoder | None = None,
        header_parser: HeaderParser | None = None,
    ) -> OutboundEmail:
        """Build a message from already-extracted request parameters.

        Recognised keys: ``from``, ``to``, ``cc``, ``bcc``, ``subject``,
        ``mime_raw``, ``content``, ``html_content``, ``custom_headers``.
        A non-empty ``mime_raw`` selects raw mode.
        """
        senders = parse_addresses(params.get("from"))

        payload: Payload
        raw_message = params.get("mime_raw")
        if raw_message:
            payload = RawPayload(raw_message=raw_message)
        else:
            payload = ParametrizedPayload(
                content=params.get("content") or "",
                html_content=params.get("html_content") or "",
            )

        return cls(
            from_address=senders[0] if senders else None,
            to=parse_addresses(params.get("to")),
            cc=parse_addresses(params.get("cc")),
            bcc=parse_addresses(params.get("bcc")),
            subject=params.get("subject") or "",
            payload=payload,
            custom_headers=parse_custom_headers(params.get("custom_headers")),
            sender_account_id=str(account_id),
            sender_ip=sender_ip,
            config=config,
            encoder=encoder,
            header_parser=header_parser,
        )

    @property
    def mode(self) -> ComposeMode | None:
        if isinstance(self.payload, RawPayload):
            return ComposeMode.RAW
        if isinstance(self.payload, ParametrizedPayload):
            return ComposeMode.PARAMETRIZED
        return None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """Check the message and filter its recipient lists.

        Errors are accumulated, not short-circuited.  ``to``, ``bcc`` and
        ``cc`` are replaced by their valid subsets whatever the outcome.
        """
        errors: list[str] = []
        max_chars = self.config.max_subject_chars

        if len(self.subject) > max_chars:
            errors.append(f"subject too long (max {max_chars} chars )")
        if not validate_email(self.from_address):
            errors.append("missing or not valid sender email (from)")
        if len(self.to) == 0:
            errors.append("missing recipients (to)")

        for attr, label in _RECIPIENT_LISTS:
            result = check_and_filter_email_list(getattr(self, attr), label)
            setattr(self, attr, result.list)
            errors.extend(result.errors)

        if not self.custom_headers.is_valid:
            errors.append("headers not valid")

        if errors:
            logger.warning(
                "message_validated",
                status="error",
                error_count=len(errors),
                sender_account_id=self.sender_account_id,
            )
            return ValidationResult(status="error", errors=errors)

        logger.info(
            "message_validated",
            status="ok",
            sender_account_id=self.sender_account_id,
        )
        return ValidationResult(status="ok")

    # ------------------------------------------------------------------
    # Recipients
    # ------------------------------------------------------------------

    def get_all_addresses_unique(self) -> list[str]:
        """Bare addresses of to, then bcc, then cc, without duplicates."""
        addresses = extract_address_list(self.to)
        if self.bcc:
            addresses += extract_address_list(self.bcc)
        if self.cc:
            addresses += extract_address_list(self.cc)
        return unique_addresses(addresses)

    def filter_addresses(self, allowed: Iterable[str]) -> None:
        """Keep only recipients whose bare address is in *allowed*."""
        allowed_set = set(allowed)
        self.to = [addr for addr in self.to if addr.address in allowed_set]
        self.cc = [addr for addr in self.cc if addr.address in allowed_set]
        self.bcc = [addr for addr in self.bcc if addr.address in allowed_set]

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    async def generate_mime_message(self) -> str | bytes:
        """Compose the message according to its mode.

        Raw mode returns the reconciled MIME text; parametrized mode returns
        the encoder's bytes unchanged.  Call :meth:`validate` first: invalid
        custom headers are otherwise silently left out.
        """
        match self.payload:
            case ParametrizedPayload():
                composer = ParametrizedComposer(self._encoder)
                result: str | bytes = await composer.compose(self, self.payload)
            case RawPayload():
                reconciler = RawModeReconciler(self._header_parser, self.config)
                result = await reconciler.reconcile(self, self.payload)
            case _:
                raise UnsupportedModeError(
                    "Neither html_content (and optional content) OR mime_raw message was passed"
                )

        logger.info(
            "mime_generated",
            mode=self.mode.value,
            size=len(result),
            sender_account_id=self.sender_account_id,
        )
        return result
