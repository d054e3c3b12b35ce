"""Tests for environment configuration."""

from pathlib import Path

import pytest

from dispatch_engine.config import DEFAULT_SETTLE_INTERVAL_SECONDS, get_settings
from dispatch_engine.services.supabase_client import get_supabase


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SETTLE_INTERVAL_SECONDS", "DOCUMENT_OUTPUT_DIR", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = get_settings()

        assert settings.settle_interval_seconds == DEFAULT_SETTLE_INTERVAL_SECONDS
        assert settings.document_output_dir == Path("documents")
        assert settings.log_level == "INFO"

    def test_settle_interval_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("SETTLE_INTERVAL_SECONDS", "0")

        assert get_settings().settle_interval_seconds == 0.0

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_bad_settle_interval(self, monkeypatch, value):
        monkeypatch.setenv("SETTLE_INTERVAL_SECONDS", value)

        with pytest.raises(ValueError):
            get_settings()

    def test_missing_supabase_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)

        with pytest.raises(RuntimeError):
            get_supabase()
