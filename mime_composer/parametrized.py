"""Parametrized mode: build the whole message from structured fields."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from .addresses import build_mime_address, build_mime_address_list
from .encoder import MessageOptions, MimeEncoder

if TYPE_CHECKING:
    from .message import OutboundEmail, ParametrizedPayload

logger = structlog.get_logger()


class ParametrizedComposer:
    """Hands the structured fields of a message to a :class:`MimeEncoder`.

    The encoder's result, or its exception, is passed through unchanged.
    """

    def __init__(self, encoder: MimeEncoder) -> None:
        self._encoder = encoder

    def build_options(
        self, message: OutboundEmail, payload: ParametrizedPayload
    ) -> MessageOptions:
        return MessageOptions(
            from_=build_mime_address(message.from_address) or "",
            to=build_mime_address_list(message.to),
            cc=build_mime_address_list(message.cc),
            bcc=build_mime_address_list(message.bcc),
            body=payload.content or "",
            html=payload.html_content or "",
            subject=message.subject or "",
            message_id=message.message_id,
        )

    async def compose(
        self, message: OutboundEmail, payload: ParametrizedPayload
    ) -> bytes:
        options = self.build_options(message, payload)
        # JSON insertion order decides the order of the extra headers
        headers = message.custom_headers.items()
        logger.debug("parametrized_compose", extra_headers=len(headers))
        return await self._encoder.build_message(options, headers)
