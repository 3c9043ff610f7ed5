from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from filestore.models.gate_channel import GateChannel


class ChannelService:
    def __init__(self, db: Session):
        self.db = db

    def list_ordered(self) -> list[GateChannel]:
        return self.db.query(GateChannel).order_by(GateChannel.position.asc(), GateChannel.created_at.asc()).all()

    def get(self, channel_id: str) -> GateChannel | None:
        return self.db.query(GateChannel).filter(GateChannel.channel_id == channel_id).one_or_none()

    def add(self, channel_id: str, display_handle: str, title: str | None) -> GateChannel | None:
        """Append to the configured order. Returns None if the channel is already gated."""
        if self.get(channel_id):
            return None
        last = self.db.query(func.max(GateChannel.position)).scalar()
        channel = GateChannel(
            channel_id=channel_id,
            display_handle=display_handle,
            title=title,
            position=(last + 1) if last is not None else 0,
        )
        self.db.add(channel)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(channel)
        return channel

    def remove(self, handle_or_id: str) -> int:
        """Remove by @handle or numeric channel id; returns number of rows removed."""
        removed = (
            self.db.query(GateChannel)
            .filter(
                (GateChannel.display_handle == handle_or_id)
                | (GateChannel.channel_id == handle_or_id)
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
