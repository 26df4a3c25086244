"""Outbound MIME message composition: parametrized and raw (user MIME) modes."""

from .addresses import (
    Address,
    FilterResult,
    build_mime_address,
    build_mime_address_list,
    check_and_filter_email_list,
    extract_address_list,
    parse_addresses,
    validate_email,
)
from .config import ComposerConfig
from .encoder import MessageOptions, MimeEncoder, StdlibMimeEncoder
from .errors import ComposeError, MissingDelimiterError, UnsupportedModeError
from .headers import CustomHeaders, HeaderParser, StdlibHeaderParser, parse_custom_headers
from .logging import setup_logging
from .message import (
    ComposeMode,
    OutboundEmail,
    ParametrizedPayload,
    RawPayload,
    ValidationResult,
)
from .parametrized import ParametrizedComposer
from .raw import RawModeReconciler, split_raw_message

__all__ = [
    "Address",
    "ComposeError",
    "ComposeMode",
    "ComposerConfig",
    "CustomHeaders",
    "FilterResult",
    "HeaderParser",
    "MessageOptions",
    "MimeEncoder",
    "MissingDelimiterError",
    "OutboundEmail",
    "ParametrizedComposer",
    "ParametrizedPayload",
    "RawModeReconciler",
    "RawPayload",
    "StdlibHeaderParser",
    "StdlibMimeEncoder",
    "UnsupportedModeError",
    "ValidationResult",
    "build_mime_address",
    "build_mime_address_list",
    "check_and_filter_email_list",
    "extract_address_list",
    "parse_addresses",
    "parse_custom_headers",
    "setup_logging",
    "split_raw_message",
    "validate_email",
]
