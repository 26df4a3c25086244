"""Tests for mime_composer.encoder (StdlibMimeEncoder)."""

from __future__ import annotations

import email

import pytest

from mime_composer.encoder import MessageOptions, StdlibMimeEncoder


@pytest.fixture
def encoder() -> StdlibMimeEncoder:
    return StdlibMimeEncoder(message_id_domain="composer.test")


def _options(**overrides: str) -> MessageOptions:
    fields = {
        "from_": '"Alice" <a@x.com>',
        "to": '"Bob" <b@x.com>',
        "subject": "Hi",
        "body": "hello",
    }
    fields.update(overrides)
    return MessageOptions(**fields)


class TestStdlibMimeEncoderHeaders:
    @pytest.mark.asyncio
    async def test_address_headers_written_verbatim(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(), [])
        text = raw.decode("ascii")
        assert 'From: "Alice" <a@x.com>\r\n' in text
        assert 'To: "Bob" <b@x.com>\r\n' in text
        assert "Subject: Hi\r\n" in text
        assert "MIME-Version: 1.0\r\n" in text

    @pytest.mark.asyncio
    async def test_bcc_never_written(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(bcc="hidden@x.com"), [])
        assert b"hidden@x.com" not in raw
        assert b"Bcc" not in raw

    @pytest.mark.asyncio
    async def test_empty_fields_omitted(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(subject="", cc=""), [])
        assert b"Subject:" not in raw
        assert b"Cc:" not in raw

    @pytest.mark.asyncio
    async def test_generated_message_id_uses_domain(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(), [])
        msg = email.message_from_bytes(raw)
        assert msg["Message-ID"].endswith("@composer.test>")

    @pytest.mark.asyncio
    async def test_explicit_message_id(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(message_id="<fixed@x.com>"), [])
        msg = email.message_from_bytes(raw)
        assert msg["Message-ID"] == "<fixed@x.com>"

    @pytest.mark.asyncio
    async def test_custom_message_id_replaces_generated(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(), [("Message-ID", "<custom@x.com>")])
        assert raw.lower().count(b"message-id:") == 1
        assert b"<custom@x.com>" in raw

    @pytest.mark.asyncio
    async def test_custom_headers_in_call_order(self, encoder: StdlibMimeEncoder):
        headers = [("X-Second", "2"), ("X-First", "1"), ("X-Third", "3")]
        raw = await encoder.build_message(_options(), headers)
        positions = [raw.index(f"{name}: ".encode()) for name, _ in headers]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(), [])
        assert b"\n" not in raw.replace(b"\r\n", b"")


class TestStdlibMimeEncoderBody:
    @pytest.mark.asyncio
    async def test_plain_body(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(), [])
        msg = email.message_from_bytes(raw)
        assert msg.get_content_type() == "text/plain"
        assert msg.get_payload(decode=True) == b"hello"
        assert raw.endswith(b"hello")

    @pytest.mark.asyncio
    async def test_html_only(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(body="", html="<p>hi</p>"), [])
        msg = email.message_from_bytes(raw)
        assert msg.get_content_type() == "text/html"
        assert msg.get_payload(decode=True) == b"<p>hi</p>"

    @pytest.mark.asyncio
    async def test_plain_and_html_alternative(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(html="<p>hello</p>"), [])
        msg = email.message_from_bytes(raw)
        assert msg.get_content_type() == "multipart/alternative"
        parts = [part.get_content_type() for part in msg.get_payload()]
        assert parts == ["text/plain", "text/html"]

    @pytest.mark.asyncio
    async def test_non_ascii_body_round_trips(self, encoder: StdlibMimeEncoder):
        raw = await encoder.build_message(_options(body="café"), [])
        msg = email.message_from_bytes(raw)
        assert msg.get_payload(decode=True).decode("utf-8") == "café"
