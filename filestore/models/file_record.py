from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, Text

from filestore.db.base import Base


class FileRecord(Base):
    __tablename__ = "files"

    # PK doubles as the reservation: a concurrent insert of the same code fails
    short_code = Column(String(16), primary_key=True)
    file_ref = Column(String, nullable=False)  # Telegram file_id
    file_type = Column(String(16), nullable=False)  # document | video | audio | photo
    caption = Column(Text, nullable=True)
    size = Column(BigInteger, nullable=True)
    uploaded_by = Column(String, nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    downloads = Column(Integer, nullable=False, default=0)
    # Soft delete: the row stays so the code is never reissued
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
