"""
Access config: typed wrappers over the settings store and app config.
"""
from __future__ import annotations

from filestore.core.config import settings
from filestore.storage.base import SettingsStore


def get_auto_delete_seconds(store: SettingsStore) -> int:
    try:
        return max(0, int(store.get("auto_delete_seconds", 0) or 0))
    except (TypeError, ValueError):
        return 0


def get_protect_content(store: SettingsStore) -> bool:
    return bool(store.get("protect_content", False))


def get_shortener_credentials(store: SettingsStore) -> tuple[str, str]:
    domain = store.get("shortener_domain") or settings.shortener_domain
    api_key = store.get("shortener_api_key") or settings.shortener_api_key
    return domain, api_key


def build_deep_link(short_code: str, bot_username: str | None = None) -> str:
    username = (bot_username if bot_username is not None else settings.telegram_bot_username).lstrip("@")
    return f"https://t.me/{username}?start={short_code}"
