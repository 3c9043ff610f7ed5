from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from filestore.db.base import Base


class GateChannel(Base):
    """Channel the user must join before receiving files. Empty table = no gate."""

    __tablename__ = "gate_channels"

    channel_id = Column(String, primary_key=True)
    display_handle = Column(String, nullable=False, index=True)  # @channel
    title = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
