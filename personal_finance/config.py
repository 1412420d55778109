"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class FinanceConfig(BaseSettings):
    """Personal finance ledger configuration"""

    # Storage configuration
    storage_backend: Literal["memory", "sqlite"] = "sqlite"
    database_path: str = "personal_finance.db"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Security configuration
    auth_enabled: bool = True
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Logging configuration
    log_level: str = "INFO"

    # Deleting an account removes its transactions ("cascade") or keeps
    # them with dangling references ("retain")
    account_delete_policy: Literal["cascade", "retain"] = "cascade"

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        env_file=".env",
        case_sensitive=False
    )


# Global configuration instance
config = FinanceConfig()


def get_config() -> FinanceConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> FinanceConfig:
    """Reload configuration from environment"""
    global config
    config = FinanceConfig()
    return config
