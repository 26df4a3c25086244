"""Address parsing, validation, rendering and list filtering.

Everything here is pure: no I/O and no logging.  ``OutboundEmail`` builds
its validation and routing behaviour on top of these helpers.
"""

from __future__ import annotations

import email.utils
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import NamedTuple

# RFC 2822 style local part (dot-atom or quoted string) @ domain or [dotted quad]
EMAIL_REGEX = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))"
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])"
    r"|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)

# ``Display Name <addr>`` and ``addr (Display Name)`` list entries
_ANGLE_RE = re.compile(r"^(?P<name>.*?)<(?P<address>[^<>]*)>$", re.DOTALL)
_COMMENT_RE = re.compile(r"^(?P<address>[^\s()]+)\s*\((?P<name>[^()]*)\)$")


@dataclass(frozen=True)
class Address:
    """A sender or recipient: bare address plus optional display name."""

    address: str
    name: str = ""


class FilterResult(NamedTuple):
    """Outcome of :func:`check_and_filter_email_list`."""

    errors: list[str]
    list: list[Address]


def split_address_list(value: str) -> list[str]:
    """Split a header-style address string on commas outside quotes and brackets.

    Empty entries (for example from a trailing comma) are dropped.
    """
    entries: list[str] = []
    current: list[str] = []
    quoted = escaped = False
    depth = 0
    for char in value:
        if escaped:
            escaped = False
        elif quoted and char == "\\":
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif not quoted and char == "<":
            depth += 1
        elif not quoted and char == ">" and depth:
            depth -= 1
        elif not quoted and not depth and char == ",":
            entries.append("".join(current))
            current = []
            continue
        current.append(char)
    entries.append("".join(current))
    return [entry.strip() for entry in entries if entry.strip()]


def parse_address(entry: str) -> Address:
    """Parse one list entry: ``Name <addr>``, ``addr (Name)`` or a bare address.

    Anything else is kept verbatim as the address, so that validation can
    report it instead of it disappearing.
    """
    entry = entry.strip()
    match = _ANGLE_RE.match(entry)
    if match:
        return Address(address=match["address"].strip(), name=_display_name(match["name"]))
    match = _COMMENT_RE.match(entry)
    if match:
        return Address(address=match["address"], name=match["name"].strip())
    return Address(address=entry)


def parse_addresses(value: str | None) -> list[Address]:
    """Parse a header-style address string into an ordered list of Address.

    ``"Alice <a@x.com>, b@x.com"`` yields two entries.  Each entry is parsed
    on its own, so one malformed entry never hides its neighbours.  Empty
    input yields an empty list.
    """
    if not value:
        return []
    return [parse_address(entry) for entry in split_address_list(value)]


def _display_name(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        return email.utils.unquote(raw)
    return raw


def validate_email(email_address: Address | str | None) -> bool:
    """Return True when the address matches the accepted grammar.

    Never raises: ``None``, empty and malformed input are simply invalid.
    """
    if email_address is None:
        return False
    value = email_address.address if isinstance(email_address, Address) else email_address
    if not isinstance(value, str):
        return False
    return EMAIL_REGEX.fullmatch(value) is not None


def build_mime_address(email_address: Address | None) -> str | None:
    """Render a single address as ``"Name" <address>``, or bare when unnamed."""
    if email_address is None:
        return None
    if not email_address.name:
        return email_address.address
    return f'"{email_address.name}" <{email_address.address}>'


def build_mime_address_list(addresses: Sequence[Address] | None) -> str:
    """Render a list as comma-separated addresses, skipping empty ones."""
    if not addresses:
        return ""
    return ", ".join(
        build_mime_address(addr) for addr in addresses if addr.address
    )


def extract_address_list(addresses: Iterable[Address] | None) -> list[str]:
    """Return the bare address strings of *addresses*."""
    if addresses is None:
        return []
    return [addr.address for addr in addresses]


def unique_addresses(addresses: Iterable[str]) -> list[str]:
    """Drop repeated addresses, keeping the first occurrence of each."""
    return list(dict.fromkeys(addresses))


def check_and_filter_email_list(
    addresses: Iterable[Address], error_label: str
) -> FilterResult:
    """Split *addresses* into the valid subset and per-address error strings.

    Entries with an empty address are skipped without an error.  Invalid
    entries produce ``"'<address>' <error_label>"`` and are left out; valid
    entries keep their input order.
    """
    errors: list[str] = []
    filtered: list[Address] = []
    for addr in addresses:
        if not addr.address:
            continue
        if validate_email(addr):
            filtered.append(addr)
        else:
            errors.append(f"'{addr.address}' {error_label}")
    return FilterResult(errors=errors, list=filtered)
