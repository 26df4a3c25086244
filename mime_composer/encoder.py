"""MIME encoder collaborator for parametrized messages.

``MimeEncoder`` turns structured message options plus extra headers into
wire bytes.  ``StdlibMimeEncoder`` is the default implementation, built on
the ``email.mime`` classes with the ``compat32`` policy so that address
headers are written exactly as rendered by the composer.
"""

from __future__ import annotations

import abc
import email.charset
import email.policy
import email.utils
from dataclasses import dataclass
from email.message import Message
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

logger = structlog.get_logger()

WIRE_POLICY = email.policy.compat32.clone(linesep="\r\n")


@dataclass
class MessageOptions:
    """Structured fields handed to the encoder.

    ``from_`` carries a trailing underscore because ``from`` is a Python
    reserved word.  Address fields are already rendered strings.
    """

    from_: str = ""
    to: str = ""
    cc: str = ""
    bcc: str = ""
    body: str = ""
    html: str = ""
    subject: str = ""
    message_id: str | None = None


class MimeEncoder(abc.ABC):
    """Serializes a structured message into raw MIME bytes."""

    @abc.abstractmethod
    async def build_message(
        self, options: MessageOptions, headers: list[tuple[str, str]]
    ) -> bytes:
        """Return the wire form of the message.

        *headers* are added after the standard ones, in list order.
        """


class StdlibMimeEncoder(MimeEncoder):
    """Default encoder: UTF-8 quoted-printable text parts, CRLF line endings.

    Bcc is accepted but never written to the output; it is envelope-only.
    """

    def __init__(self, message_id_domain: str | None = None) -> None:
        self._message_id_domain = message_id_domain

    async def build_message(
        self, options: MessageOptions, headers: list[tuple[str, str]]
    ) -> bytes:
        msg = self._build_body(options.body, options.html)

        for name, value in (
            ("From", options.from_),
            ("To", options.to),
            ("Cc", options.cc),
            ("Subject", options.subject),
        ):
            if value:
                msg[name] = value

        msg["Date"] = email.utils.formatdate(localtime=False)

        custom_names = {name.lower() for name, _ in headers}
        if "message-id" not in custom_names:
            msg["Message-ID"] = options.message_id or email.utils.make_msgid(
                domain=self._message_id_domain
            )

        for name, value in headers:
            msg[name] = value

        raw = msg.as_bytes(policy=WIRE_POLICY)
        logger.debug(
            "mime_encoded",
            size_bytes=len(raw),
            extra_headers=len(headers),
            multipart=msg.is_multipart(),
        )
        return raw

    @staticmethod
    def _build_body(body: str, html: str) -> Message:
        """Pick the MIME structure for the given text and HTML bodies."""
        if body and html:
            alt = MIMEMultipart("alternative")
            alt.attach(_text_part(body, "plain"))
            alt.attach(_text_part(html, "html"))
            return alt
        if html:
            return _text_part(html, "html")
        return _text_part(body, "plain")


def _text_part(text: str, subtype: str) -> MIMEText:
    charset = email.charset.Charset("utf-8")
    charset.body_encoding = email.charset.QP
    return MIMEText(text, subtype, charset)
