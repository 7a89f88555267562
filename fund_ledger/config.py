"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Fund ledger service configuration"""

    # Database configuration
    storage_type: str = "sqlite"  # sqlite or postgresql
    database_url: str = "fund_ledger.db"  # SQLite path or PostgreSQL DSN
    database_pool_size: int = 10
    database_command_timeout: float = 30.0

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 5000

    # Session configuration
    session_secret: str = "change-me-in-production"
    session_algorithm: str = "HS256"
    session_cookie_name: str = "ledger_session"
    session_expiry_hours: int = 24
    session_cookie_secure: bool = True

    # Logging configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None  # If None, logs to stdout

    # Business rules configuration
    transaction_page_size: int = 50
    username_max_length: int = 30
    email_max_length: int = 254

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
