"""
Configuration settings for HTML decoding.

Environment variables:
    GRUNDRISSE_XTAG_PARSER_ENCODING     Force the input encoding (default: sniffed by libxml2)
    GRUNDRISSE_XTAG_REMOVE_COMMENTS     Drop comments while parsing
    GRUNDRISSE_XTAG_REMOVE_PIS          Drop processing instructions while parsing
    GRUNDRISSE_XTAG_HUGE_TREE           Lift libxml2's depth/size safety limits
    GRUNDRISSE_XTAG_USER_AGENT          User-Agent for CLI fetches
    GRUNDRISSE_XTAG_REQUEST_TIMEOUT_S   Timeout for CLI fetches
    GRUNDRISSE_XTAG_MAX_BYTES           Refuse fetched documents larger than this
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GRUNDRISSE_XTAG_", extra="ignore")

    # Parser settings
    parser_encoding: str | None = None
    remove_comments: bool = False
    remove_pis: bool = False
    huge_tree: bool = False

    # CLI fetch settings
    user_agent: str = "grundrisse-xtag/0.1 (declarative html decoder)"
    request_timeout_s: float = 30.0
    max_bytes: int = 20_000_000


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
