"""
Admin operations over the stores: gate channels, bot settings, files, bans, stats.
Shared by the bot admin commands and the /admin HTTP routes; every mutation is audited.
"""
import logging
from typing import Any

from filestore.access.audit import AuditTrail
from filestore.access.models import ChatInfo
from filestore.core.config import settings
from filestore.core.exceptions import NotFound
from filestore.storage.base import RecordStore, SettingsStore
from filestore.storage.records import GateChannelInfo, UserRecord

logger = logging.getLogger(__name__)

API_KEY_VISIBLE_CHARS = 10


def mask_api_key(api_key: str | None) -> str:
    if not api_key:
        return ""
    return f"{api_key[:API_KEY_VISIBLE_CHARS]}..."


def is_admin(telegram_id: int | str) -> bool:
    return str(telegram_id) in settings.admin_ids_set


class AdminService:
    def __init__(
        self,
        store: RecordStore,
        settings_store: SettingsStore,
        audit: AuditTrail | None = None,
        actor_id: str | None = None,
    ) -> None:
        self.store = store
        self.settings_store = settings_store
        self.audit = audit or AuditTrail(store)
        self.actor_id = actor_id

    def _audit(self, action: str, entity_type: str, entity_id: str | None, payload: dict[str, Any] | None = None) -> None:
        self.audit.admin_action(self.actor_id, action, entity_type, entity_id, payload)

    # ----- gate channels -----

    def list_channels(self) -> list[GateChannelInfo]:
        return self.store.list_channels()

    def add_channel(self, display_handle: str, chat: ChatInfo) -> GateChannelInfo | None:
        """Returns None when the resolved chat is already gated."""
        channel = self.store.add_channel(chat.id, display_handle, chat.title)
        if channel is not None:
            self._audit("channel_add", "gate_channel", chat.id, {"display_handle": display_handle, "title": chat.title})
        return channel

    def remove_channel(self, handle_or_id: str) -> int:
        removed = self.store.remove_channel(handle_or_id)
        if removed:
            self._audit("channel_remove", "gate_channel", handle_or_id)
        return removed

    # ----- settings -----

    def set_setting(self, key: str, value: Any) -> Any:
        stored = self.settings_store.set(key, value)
        audited = mask_api_key(stored) if key == "shortener_api_key" else stored
        self._audit("setting_update", "bot_setting", key, {"value": audited})
        return stored

    def set_auto_delete(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("auto_delete_seconds must be >= 0")
        return self.set_setting("auto_delete_seconds", seconds)

    def set_protect_content(self, enabled: bool) -> bool:
        return self.set_setting("protect_content", enabled)

    def set_shortener(self, domain: str, api_key: str) -> None:
        self.set_setting("shortener_domain", domain)
        self.set_setting("shortener_api_key", api_key)

    def set_start_message(self, text: str) -> str:
        return self.set_setting("start_message", text)

    def set_help_message(self, text: str) -> str:
        return self.set_setting("help_message", text)

    def settings_view(self) -> dict[str, Any]:
        """Current settings with the shortener API key masked."""
        data = dict(self.settings_store.as_dict())
        data["shortener_api_key"] = mask_api_key(data.get("shortener_api_key"))
        data["gate_channels"] = len(self.store.list_channels())
        return data

    # ----- files / users -----

    def delete_file(self, short_code: str) -> None:
        if not self.store.soft_delete_file(short_code):
            raise NotFound("file not found", {"short_code": short_code})
        self._audit("file_delete", "file", short_code)

    def ban(self, telegram_id: str, reason: str | None = None) -> UserRecord:
        user = self.store.set_banned(telegram_id, True, reason)
        self._audit("user_ban", "user", telegram_id, {"reason": reason})
        return user

    def unban(self, telegram_id: str) -> UserRecord:
        user = self.store.set_banned(telegram_id, False)
        self._audit("user_unban", "user", telegram_id)
        return user

    def stats(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.store.stats())
        data["protect_content"] = bool(self.settings_store.get("protect_content", False))
        data["auto_delete_seconds"] = int(self.settings_store.get("auto_delete_seconds", 0) or 0)
        return data
