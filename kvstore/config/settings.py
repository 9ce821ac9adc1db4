"""
KV-Store Configuration Settings

This module contains the configuration defaults for the KV-Store engine.
Every value can be overridden per instance through constructor arguments;
the environment variables only change the process-wide defaults.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Engine configuration settings."""

    # Capacity settings
    MAX_KEYS: int = int(os.environ.get("KV_STORE_MAX_KEYS", "10000"))

    # TTL settings (milliseconds)
    DEFAULT_TTL: int = int(os.environ.get("KV_STORE_DEFAULT_TTL", "0"))  # 0 means no expiration
    CLEANUP_INTERVAL: int = int(os.environ.get("KV_STORE_CLEANUP_INTERVAL", "60000"))  # 0 disables the sweep

    # Facade settings
    NAMESPACE: str = os.environ.get("KV_STORE_NAMESPACE", "")

    # Memory estimate: bytes added per entry for the expiry timestamp and bookkeeping
    ENTRY_OVERHEAD_BYTES: int = 16

    # Logging settings
    DEBUG: bool = os.environ.get("KV_STORE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KV_STORE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
