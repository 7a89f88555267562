"""
Tests for environment-driven configuration
"""

from fund_ledger import config as config_module
from fund_ledger.config import LedgerConfig, get_config, reload_config


class TestLedgerConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_STORAGE_TYPE", raising=False)
        monkeypatch.delenv("LEDGER_TRANSACTION_PAGE_SIZE", raising=False)

        config = LedgerConfig(_env_file=None)
        assert config.storage_type == "sqlite"
        assert config.session_cookie_name == "ledger_session"
        assert config.transaction_page_size == 50
        assert config.username_max_length == 30

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_TYPE", "postgresql")
        monkeypatch.setenv("LEDGER_TRANSACTION_PAGE_SIZE", "10")
        monkeypatch.setenv("ledger_session_cookie_secure", "false")

        config = LedgerConfig(_env_file=None)
        assert config.storage_type == "postgresql"
        assert config.transaction_page_size == 10
        assert config.session_cookie_secure is False

    def test_reload(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("LEDGER_API_PORT", "8123")
        try:
            reloaded = reload_config()
            assert reloaded.api_port == 8123
            assert get_config() is reloaded
        finally:
            config_module.config = original
