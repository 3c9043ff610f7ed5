"""
Upload: FileRegistry.store резервирует код и сохраняет запись о файле.
"""
from __future__ import annotations

import logging

from filestore.access.codes import CodeGenerator
from filestore.core.exceptions import Blocked, CodeCollision
from filestore.storage.base import RecordStore
from filestore.storage.records import FileType
from filestore.utils.metrics import code_collisions_total, uploads_total

logger = logging.getLogger(__name__)


class FileRegistry:
    def __init__(self, store: RecordStore, codes: CodeGenerator | None = None) -> None:
        self._store = store
        self._codes = codes or CodeGenerator(store)

    def store(
        self,
        uploader_id: str,
        file_ref: str,
        file_type: FileType | str,
        caption: str | None = None,
        size: int | None = None,
        *,
        username: str | None = None,
        first_name: str | None = None,
    ) -> str:
        """Persist a new file record and return its short code."""
        if not file_ref:
            raise ValueError("file_ref is required")
        file_type = FileType(file_type)

        user = self._store.get_or_create_user(uploader_id, username, first_name)
        if user.is_banned:
            raise Blocked("uploader is banned", {"user_id": uploader_id})

        while True:
            code = self._codes.generate()
            try:
                self._store.create_file(code, file_ref, file_type.value, caption, size, uploader_id)
                break
            except CodeCollision:
                # код занят параллельной загрузкой между проверкой и вставкой
                code_collisions_total.inc()
                logger.info("short_code_reserve_race", extra={"short_code": code})

        self._store.increment_files_shared(uploader_id)
        uploads_total.labels(file_type=file_type.value).inc()
        logger.info(
            "file_stored",
            extra={"user_id": uploader_id, "short_code": code, "file_type": file_type.value},
        )
        return code
