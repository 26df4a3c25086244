"""Raw mode: merge structured routing fields into a user-supplied MIME message.

The user's header block is reparsed and rebuilt so that structured fields
(from, to, cc, subject, custom headers) always win over routing headers
found in the raw block.  The body is passed through untouched apart from
line-terminator normalization to CRLF.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

import structlog

from .addresses import build_mime_address, build_mime_address_list
from .config import ComposerConfig
from .errors import MissingDelimiterError
from .headers import HeaderParser, HeaderValue

if TYPE_CHECKING:
    from .message import OutboundEmail, RawPayload

logger = structlog.get_logger()

HeaderEntry = tuple[str, str]

CRLF = "\r\n"

_LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")


def split_raw_message(raw_message: str) -> tuple[str, str]:
    """Split a raw message at its first blank line.

    Returns ``(header_block, body)``: the header block is CRLF-joined with a
    trailing CRLF, the body CRLF-joined.  The blank line itself belongs to
    neither.  Raises :class:`MissingDelimiterError` when there is no blank line.
    """
    lines = _LINE_BREAK_RE.split(raw_message)
    try:
        delimiter = lines.index("")
    except ValueError:
        raise MissingDelimiterError(
            "raw MIME message has no blank line between headers and body"
        ) from None

    header_block = CRLF.join(lines[:delimiter]) + CRLF
    body = CRLF.join(lines[delimiter + 1:])
    return header_block, body


def structured_headers(message: OutboundEmail, mime_version: str) -> list[HeaderEntry]:
    """Headers derived from the structured fields, in emission order.

    Bcc is never emitted.  Empty values are left out.
    """
    entries: list[HeaderEntry] = []
    _add_if_present(entries, "MIME-Version", mime_version)
    _add_if_present(entries, "from", build_mime_address(message.from_address))
    _add_if_present(entries, "to", build_mime_address_list(message.to))
    _add_if_present(entries, "cc", build_mime_address_list(message.cc))
    _add_if_present(entries, "subject", message.subject)
    for name, value in message.custom_headers.items():
        _add_if_present(entries, name, value)
    return entries


def surviving_raw_headers(
    parsed: Mapping[str, HeaderValue], excluded: Iterable[str]
) -> list[HeaderEntry]:
    """Raw-block headers that structured fields do not supersede.

    Names in *excluded* are compared case-insensitively.  Multi-valued
    headers yield one entry per non-empty value.
    """
    excluded_names = {name.lower() for name in excluded}
    entries: list[HeaderEntry] = []
    for name, value in parsed.items():
        if name.lower() in excluded_names:
            logger.debug("raw_header_dropped", header=name)
            continue
        values = value if isinstance(value, list) else [value]
        for item in values:
            _add_if_present(entries, name, item)
    return entries


def serialize_headers(entries: Iterable[HeaderEntry]) -> str:
    return "".join(f"{name}: {value}{CRLF}" for name, value in entries)


def _add_if_present(entries: list[HeaderEntry], name: str, value: str | None) -> None:
    if value:
        entries.append((name, value))


class RawModeReconciler:
    """Rebuilds the header block of a raw MIME message around structured fields.

    The header list is built per call, so one reconciler (and one message)
    can serve any number of concurrent compositions.
    """

    def __init__(self, header_parser: HeaderParser, config: ComposerConfig) -> None:
        self._header_parser = header_parser
        self._config = config

    async def reconcile(self, message: OutboundEmail, payload: RawPayload) -> str:
        try:
            header_block, body = split_raw_message(payload.raw_message)
        except MissingDelimiterError:
            logger.warning("raw_delimiter_missing", raw_size=len(payload.raw_message))
            raise

        entries = structured_headers(message, self._config.mime_version)
        parsed = await self._header_parser.parse(header_block)
        entries.extend(surviving_raw_headers(parsed, self._config.excluded_raw_headers))

        logger.debug(
            "raw_headers_reconciled",
            parsed_headers=len(parsed),
            emitted_headers=len(entries),
        )
        return serialize_headers(entries) + CRLF + body
