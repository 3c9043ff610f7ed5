"""Admin-editable bot settings: key/value rows with typed defaults."""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from filestore.core.config import settings
from filestore.models.bot_setting import BotSetting

START_MESSAGE_DEFAULT = (
    "👋 Welcome to File Store Bot!\n\n"
    "📤 Send me any file and I'll give you a shareable link."
)
HELP_MESSAGE_DEFAULT = (
    "📚 *Help*\n\n"
    "1️⃣ Send file to bot\n"
    "2️⃣ Get shareable link\n"
    "3️⃣ Share with others\n"
    "4️⃣ First-time users verify\n"
    "5️⃣ Direct access after verification"
)

AUTO_DELETE_RANGE = (0, 7 * 24 * 3600)  # up to one week


def default_settings() -> dict[str, Any]:
    return {
        "auto_delete_seconds": 0,
        "protect_content": False,
        "shortener_domain": settings.shortener_domain,
        "shortener_api_key": settings.shortener_api_key,
        "start_message": START_MESSAGE_DEFAULT,
        "help_message": HELP_MESSAGE_DEFAULT,
    }


class BotSettingsService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, key: str, default: Any = None) -> Any:
        row = self.db.query(BotSetting).filter(BotSetting.key == key).first()
        if row is not None and row.value is not None:
            return row.value
        if default is not None:
            return default
        return default_settings().get(key)

    def set(self, key: str, value: Any) -> Any:
        value = self._validate_value(key, value)
        row = self.db.query(BotSetting).filter(BotSetting.key == key).first()
        if row is None:
            row = BotSetting(key=key, value=value)
        else:
            row.value = value
            row.updated_at = datetime.now(timezone.utc)
        self.db.add(row)
        self.db.commit()
        return value

    def as_dict(self) -> dict[str, Any]:
        data = default_settings()
        for row in self.db.query(BotSetting).all():
            if row.value is not None:
                data[row.key] = row.value
        return data

    def _validate_value(self, key: str, value: Any) -> Any:
        """Validate and clamp value to allowed range."""
        if key == "auto_delete_seconds":
            lo, hi = AUTO_DELETE_RANGE
            return max(lo, min(hi, int(value)))
        if key == "protect_content":
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "on", "yes")
            return bool(value)
        if key == "shortener_domain" and isinstance(value, str):
            return value.strip().rstrip("/")
        return value
