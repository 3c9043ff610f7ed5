from abc import ABC, abstractmethod
from typing import Any

from filestore.storage.records import GateChannelInfo, StoredFile, UserRecord


class RecordStore(ABC):
    """
    Users, file records and gate channels. Pure data access, no policy.
    Counter mutations must be atomic increments; create_file must reject a code
    that already exists (active or not) with CodeCollision.
    """

    # ----- users -----

    @abstractmethod
    def get_or_create_user(
        self,
        telegram_id: str,
        username: str | None = None,
        first_name: str | None = None,
    ) -> UserRecord:
        raise NotImplementedError

    @abstractmethod
    def get_user(self, telegram_id: str) -> UserRecord | None:
        raise NotImplementedError

    @abstractmethod
    def mark_verified(self, telegram_id: str) -> bool:
        """Returns True if this call flipped the flag."""
        raise NotImplementedError

    @abstractmethod
    def set_banned(self, telegram_id: str, banned: bool, reason: str | None = None) -> UserRecord:
        raise NotImplementedError

    @abstractmethod
    def increment_files_shared(self, telegram_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_recipient_ids(self, include_banned: bool = False) -> list[str]:
        raise NotImplementedError

    # ----- files -----

    @abstractmethod
    def code_exists(self, short_code: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def create_file(
        self,
        short_code: str,
        file_ref: str,
        file_type: str,
        caption: str | None,
        size: int | None,
        uploaded_by: str,
    ) -> StoredFile:
        raise NotImplementedError

    @abstractmethod
    def get_file(self, short_code: str) -> StoredFile | None:
        raise NotImplementedError

    @abstractmethod
    def get_active_file(self, short_code: str) -> StoredFile | None:
        raise NotImplementedError

    @abstractmethod
    def increment_views(self, short_code: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def record_download(self, short_code: str, telegram_id: str) -> None:
        """downloads += 1 on the file and files_accessed += 1 on the user."""
        raise NotImplementedError

    @abstractmethod
    def soft_delete_file(self, short_code: str) -> bool:
        raise NotImplementedError

    # ----- gate channels -----

    @abstractmethod
    def list_channels(self) -> list[GateChannelInfo]:
        """In configured order."""
        raise NotImplementedError

    @abstractmethod
    def add_channel(self, channel_id: str, display_handle: str, title: str | None) -> GateChannelInfo | None:
        raise NotImplementedError

    @abstractmethod
    def remove_channel(self, handle_or_id: str) -> int:
        raise NotImplementedError

    # ----- audit / stats -----

    @abstractmethod
    def log_audit(
        self,
        actor_type: str,
        actor_id: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        raise NotImplementedError


class SettingsStore(ABC):
    """key -> value with process-defined defaults."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> Any:
        raise NotImplementedError

    @abstractmethod
    def as_dict(self) -> dict[str, Any]:
        raise NotImplementedError
