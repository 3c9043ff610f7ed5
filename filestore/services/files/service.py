from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from filestore.core.exceptions import CodeCollision
from filestore.models.file_record import FileRecord


class FileService:
    def __init__(self, db: Session):
        self.db = db

    def code_exists(self, short_code: str) -> bool:
        """True for any code ever issued, active or soft-deleted."""
        stmt = self.db.query(FileRecord.short_code).filter(FileRecord.short_code == short_code).exists()
        return self.db.query(stmt).scalar() or False

    def create(
        self,
        short_code: str,
        file_ref: str,
        file_type: str,
        caption: str | None,
        size: int | None,
        uploaded_by: str,
    ) -> FileRecord:
        record = FileRecord(
            short_code=short_code,
            file_ref=file_ref,
            file_type=file_type,
            caption=caption,
            size=size,
            uploaded_by=uploaded_by,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise CodeCollision(f"short code already reserved: {short_code}", {"short_code": short_code}) from e
        self.db.refresh(record)
        return record

    def get(self, short_code: str) -> FileRecord | None:
        return self.db.query(FileRecord).filter(FileRecord.short_code == short_code).one_or_none()

    def get_active(self, short_code: str) -> FileRecord | None:
        return (
            self.db.query(FileRecord)
            .filter(FileRecord.short_code == short_code, FileRecord.is_active.is_(True))
            .one_or_none()
        )

    def list_active(self, limit: int = 100) -> list[FileRecord]:
        return (
            self.db.query(FileRecord)
            .filter(FileRecord.is_active.is_(True))
            .order_by(FileRecord.created_at.desc())
            .limit(limit)
            .all()
        )

    def increment_views(self, short_code: str) -> None:
        self.db.execute(
            update(FileRecord)
            .where(FileRecord.short_code == short_code)
            .values(views=FileRecord.views + 1)
        )
        self.db.commit()

    def increment_downloads(self, short_code: str) -> None:
        self.db.execute(
            update(FileRecord)
            .where(FileRecord.short_code == short_code)
            .values(downloads=FileRecord.downloads + 1)
        )
        self.db.commit()

    def soft_delete(self, short_code: str) -> bool:
        """Deactivate; the row is kept so the code is never reissued."""
        result = self.db.execute(
            update(FileRecord)
            .where(FileRecord.short_code == short_code, FileRecord.is_active.is_(True))
            .values(is_active=False, deleted_at=datetime.now(timezone.utc))
        )
        self.db.commit()
        return result.rowcount > 0

    def counts(self) -> dict[str, int]:
        total = self.db.query(func.count(FileRecord.short_code)).scalar() or 0
        active = (
            self.db.query(func.count(FileRecord.short_code))
            .filter(FileRecord.is_active.is_(True))
            .scalar()
            or 0
        )
        downloads = self.db.query(func.coalesce(func.sum(FileRecord.downloads), 0)).scalar() or 0
        return {"total": total, "active": active, "downloads": int(downloads)}
