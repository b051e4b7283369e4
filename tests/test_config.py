"""Tests for settings."""

from diffreview.config import Settings


class TestSettings:
    """SUT: Settings"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DIFFREVIEW_PORT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.port == 7790
        assert settings.default_user == "anonymous"
        assert settings.list_stale_seconds == 60.0
        assert settings.single_stale_seconds == 10.0
        assert settings.log_file is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DIFFREVIEW_PORT", "9000")
        monkeypatch.setenv("diffreview_default_user", "reviewer")
        settings = Settings(_env_file=None)
        assert settings.port == 9000
        assert settings.default_user == "reviewer"
