"""
SQLAlchemy-backed stores. Every call runs in its own short session, so no
transaction is left open while the caller waits on Telegram or the shortener.
"""
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy.orm import Session, sessionmaker

from filestore.services.audit.service import AuditService
from filestore.services.bot_settings.service import BotSettingsService
from filestore.services.channels.service import ChannelService
from filestore.services.files.service import FileService
from filestore.services.users.service import UserService
from filestore.storage.base import RecordStore, SettingsStore
from filestore.storage.records import GateChannelInfo, StoredFile, UserRecord


class _SessionScoped:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class SqlRecordStore(_SessionScoped, RecordStore):
    def get_or_create_user(
        self,
        telegram_id: str,
        username: str | None = None,
        first_name: str | None = None,
    ) -> UserRecord:
        with self._session() as db:
            user = UserService(db).get_or_create_user(
                telegram_id,
                telegram_username=username,
                telegram_first_name=first_name,
            )
            return UserRecord.model_validate(user)

    def get_user(self, telegram_id: str) -> UserRecord | None:
        with self._session() as db:
            user = UserService(db).get_by_telegram_id(telegram_id)
            return UserRecord.model_validate(user) if user else None

    def mark_verified(self, telegram_id: str) -> bool:
        with self._session() as db:
            svc = UserService(db)
            svc.get_or_create_user(telegram_id)
            return svc.mark_verified(telegram_id)

    def set_banned(self, telegram_id: str, banned: bool, reason: str | None = None) -> UserRecord:
        with self._session() as db:
            user = UserService(db).set_banned(telegram_id, banned, reason)
            return UserRecord.model_validate(user)

    def increment_files_shared(self, telegram_id: str) -> None:
        with self._session() as db:
            UserService(db).increment_files_shared(telegram_id)

    def list_recipient_ids(self, include_banned: bool = False) -> list[str]:
        with self._session() as db:
            return UserService(db).list_recipient_ids(include_banned)

    def code_exists(self, short_code: str) -> bool:
        with self._session() as db:
            return FileService(db).code_exists(short_code)

    def create_file(
        self,
        short_code: str,
        file_ref: str,
        file_type: str,
        caption: str | None,
        size: int | None,
        uploaded_by: str,
    ) -> StoredFile:
        with self._session() as db:
            record = FileService(db).create(short_code, file_ref, file_type, caption, size, uploaded_by)
            return StoredFile.model_validate(record)

    def get_file(self, short_code: str) -> StoredFile | None:
        with self._session() as db:
            record = FileService(db).get(short_code)
            return StoredFile.model_validate(record) if record else None

    def get_active_file(self, short_code: str) -> StoredFile | None:
        with self._session() as db:
            record = FileService(db).get_active(short_code)
            return StoredFile.model_validate(record) if record else None

    def increment_views(self, short_code: str) -> None:
        with self._session() as db:
            FileService(db).increment_views(short_code)

    def record_download(self, short_code: str, telegram_id: str) -> None:
        with self._session() as db:
            FileService(db).increment_downloads(short_code)
            UserService(db).increment_files_accessed(telegram_id)

    def soft_delete_file(self, short_code: str) -> bool:
        with self._session() as db:
            return FileService(db).soft_delete(short_code)

    def list_channels(self) -> list[GateChannelInfo]:
        with self._session() as db:
            return [GateChannelInfo.model_validate(c) for c in ChannelService(db).list_ordered()]

    def add_channel(self, channel_id: str, display_handle: str, title: str | None) -> GateChannelInfo | None:
        with self._session() as db:
            channel = ChannelService(db).add(channel_id, display_handle, title)
            return GateChannelInfo.model_validate(channel) if channel else None

    def remove_channel(self, handle_or_id: str) -> int:
        with self._session() as db:
            return ChannelService(db).remove(handle_or_id)

    def log_audit(
        self,
        actor_type: str,
        actor_id: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        with self._session() as db:
            AuditService(db).log(actor_type, actor_id, action, entity_type, entity_id, payload)

    def stats(self) -> dict[str, int]:
        with self._session() as db:
            users = UserService(db).counts()
            files = FileService(db).counts()
            return {
                "users_total": users["total"],
                "users_verified": users["verified"],
                "users_banned": users["banned"],
                "files_total": files["total"],
                "files_active": files["active"],
                "downloads_total": files["downloads"],
                "gate_channels": len(ChannelService(db).list_ordered()),
            }


class SqlSettingsStore(_SessionScoped, SettingsStore):
    def get(self, key: str, default: Any = None) -> Any:
        with self._session() as db:
            return BotSettingsService(db).get(key, default)

    def set(self, key: str, value: Any) -> Any:
        with self._session() as db:
            return BotSettingsService(db).set(key, value)

    def as_dict(self) -> dict[str, Any]:
        with self._session() as db:
            return BotSettingsService(db).as_dict()
