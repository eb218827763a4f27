from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def _first_env(*names: str) -> str:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


@dataclass(frozen=True)
class Settings:
    token: str
    sync_guild_id: int
    sqlite_path: str
    log_level: str
    cache_default_ttl_seconds: int

    # AI gateway (OpenAI-compatible chat completions endpoint)
    ai_gateway_url: str
    ai_gateway_key: str
    ai_model: str = "gpt-4o-mini"
    ai_max_tokens: int = 2048
    ai_max_attempts: int = 3

    # Cooldowns enforced by the /setup command layer
    server_cooldown_seconds: int = 300
    user_cooldown_seconds: int = 120

    # Post a "server was built" notice in a general channel after each build
    general_notice_enabled: bool = True


def load_settings() -> Settings:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise RuntimeError("DISCORD_TOKEN is required")
    return Settings(
        token=token,
        sync_guild_id=_get_int("SYNC_GUILD_ID", 0),
        sqlite_path=_get_str("SQLITE_PATH", "guildsmith.sqlite3"),
        log_level=_get_str("LOG_LEVEL", "INFO"),
        cache_default_ttl_seconds=_get_int("CACHE_DEFAULT_TTL_SECONDS", 3600),
        ai_gateway_url=os.getenv("AI_GATEWAY_URL", "").strip(),
        ai_gateway_key=_first_env("AI_GATEWAY_KEY", "AI_GATEWAY_API_KEY", "OPEN_AI_API_KEY"),
        ai_model=_get_str("AI_MODEL", "gpt-4o-mini"),
        ai_max_tokens=_get_int("AI_MAX_TOKENS", 2048),
        ai_max_attempts=max(1, _get_int("AI_MAX_ATTEMPTS", 3)),
        server_cooldown_seconds=_get_int("SERVER_COOLDOWN_SECONDS", 300),
        user_cooldown_seconds=_get_int("USER_COOLDOWN_SECONDS", 120),
        general_notice_enabled=_get_bool("GENERAL_NOTICE_ENABLED", True),
    )
