from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String

from filestore.db.base import Base


class BotSetting(Base):
    """Key/value settings editable by admins (auto delete, protect content, shortener, texts)."""

    __tablename__ = "bot_settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
