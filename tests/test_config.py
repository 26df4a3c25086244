"""Tests for mime_composer.config."""

from __future__ import annotations

from mime_composer.config import DEFAULT_EXCLUDED_RAW_HEADERS, ComposerConfig


class TestComposerConfig:
    def test_defaults(self):
        cfg = ComposerConfig()
        assert cfg.max_subject_chars == 700
        assert cfg.mime_version == "1.0"
        assert cfg.message_id_domain is None
        assert cfg.log_json is True
        assert cfg.log_level == "INFO"

    def test_default_exclusions(self):
        cfg = ComposerConfig()
        assert set(cfg.excluded_raw_headers) == {
            "to", "from", "cc", "bcc", "subject", "mime-version", "message-id", "messageid",
        }

    def test_exclusions_not_shared(self):
        cfg = ComposerConfig()
        cfg.excluded_raw_headers.append("x-extra")
        assert "x-extra" not in DEFAULT_EXCLUDED_RAW_HEADERS
        assert "x-extra" not in ComposerConfig().excluded_raw_headers

    def test_override(self):
        cfg = ComposerConfig(max_subject_chars=100, message_id_domain="mail.example.com")
        assert cfg.max_subject_chars == 100
        assert cfg.message_id_domain == "mail.example.com"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("COMPOSER_MAX_SUBJECT_CHARS", "250")
        monkeypatch.setenv("COMPOSER_LOG_JSON", "false")
        monkeypatch.setenv("COMPOSER_EXCLUDED_RAW_HEADERS", '["to", "from"]')
        cfg = ComposerConfig()
        assert cfg.max_subject_chars == 250
        assert cfg.log_json is False
        assert cfg.excluded_raw_headers == ["to", "from"]
