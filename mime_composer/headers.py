"""Custom-header payloads and the raw header-block parser.

``parse_custom_headers`` turns the JSON string supplied by the request layer
into an explicit :class:`CustomHeaders` result; a parse failure is recorded,
not raised, and surfaces later through ``OutboundEmail.validate()``.

``HeaderParser`` is the collaborator the raw-mode reconciler uses to read the
header block of a user-supplied MIME message.  ``StdlibHeaderParser`` parses
*only* headers via ``email.parser.HeaderParser``, so the cost is proportional
to the header block, never to the body.
"""

from __future__ import annotations

import abc
import email.errors
import email.message
import email.parser
import email.policy
import json
import re
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger()

HeaderValue = str | list[str]

_FOLD_RE = re.compile(r"(?:\r\n|\r|\n)(?=[ \t])")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

# printable ASCII except colon
_HEADER_NAME_RE = re.compile(r"[\x21-\x39\x3b-\x7e]+")


@dataclass(frozen=True)
class CustomHeaders:
    """Ordered extra headers, or the reason they could not be parsed."""

    headers: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def items(self) -> list[tuple[str, str]]:
        """Header pairs in insertion order; empty when parsing failed."""
        if not self.is_valid:
            return []
        return list(self.headers.items())


def parse_custom_headers(raw: str | None) -> CustomHeaders:
    """Parse a JSON object of header name → value.

    Empty input and JSON ``null`` mean "no custom headers".  Anything that
    is not a JSON object is an error.  Non-string values are kept in their
    JSON text form; ``null`` values are dropped.  A name outside printable
    ASCII (or containing a colon) and a value containing CR or LF are
    errors, so no header can smuggle in another one.
    """
    if not raw:
        return CustomHeaders()

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("custom_headers_invalid", reason="json_decode", error=str(exc))
        return CustomHeaders(error=f"invalid JSON: {exc}")

    if data is None:
        return CustomHeaders()
    if not isinstance(data, dict):
        logger.warning("custom_headers_invalid", reason="not_an_object", type=type(data).__name__)
        return CustomHeaders(error=f"expected a JSON object, got {type(data).__name__}")

    headers = {
        name: value if isinstance(value, str) else json.dumps(value)
        for name, value in data.items()
        if value is not None
    }
    for name, value in headers.items():
        if not _HEADER_NAME_RE.fullmatch(name):
            logger.warning("custom_headers_invalid", reason="bad_name")
            return CustomHeaders(error=f"invalid header name: {name!r}")
        if "\r" in value or "\n" in value:
            logger.warning("custom_headers_invalid", reason="line_break_in_value", header=name)
            return CustomHeaders(error=f"line break in value of header {name!r}")
    return CustomHeaders(headers=headers)


class HeaderParser(abc.ABC):
    """Parses a raw header block into an ordered name → value(s) mapping.

    Names are matched case-insensitively: repeated headers that differ only
    in case are grouped under one key, with their values in a list.
    """

    @abc.abstractmethod
    async def parse(self, header_block: str) -> dict[str, HeaderValue]:
        ...


class StdlibHeaderParser(HeaderParser):
    """Header-only parse on top of ``email.parser.HeaderParser``.

    Uses the ``compat32`` policy so values come back exactly as sent
    (encoded words are not decoded); folded values are unfolded.  The key
    of each group is the spelling of its first occurrence.  A line that is
    neither a header nor a continuation is skipped and parsing resumes on
    the next line.
    """

    async def parse(self, header_block: str) -> dict[str, HeaderValue]:
        headers: dict[str, HeaderValue] = {}
        spellings: dict[str, str] = {}
        skipped = 0

        remaining = header_block
        while remaining:
            msg = email.parser.HeaderParser(policy=email.policy.compat32).parsestr(remaining)
            for name, value in msg.items():
                _add_value(headers, spellings, name, _unfold(str(value)))

            # the parser stops at the first malformed line and keeps the rest as payload
            remaining = ""
            rest = msg.get_payload()
            if isinstance(rest, str) and rest and _stopped_early(msg):
                parts = _LINE_BREAK_RE.split(rest, maxsplit=1)
                remaining = parts[1] if len(parts) > 1 else ""
                skipped += 1

        if skipped:
            logger.warning("raw_header_line_skipped", count=skipped)
        return headers


def _stopped_early(msg: email.message.Message) -> bool:
    return any(
        isinstance(defect, email.errors.MissingHeaderBodySeparatorDefect)
        for defect in msg.defects
    )


def _add_value(
    headers: dict[str, HeaderValue], spellings: dict[str, str], name: str, value: str
) -> None:
    key = spellings.setdefault(name.lower(), name)
    existing = headers.get(key)
    if existing is None:
        headers[key] = value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        headers[key] = [existing, value]


def _unfold(value: str) -> str:
    """Remove the line breaks of folded header continuation lines."""
    return _FOLD_RE.sub("", value).strip()
