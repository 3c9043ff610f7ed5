"""FileRegistry.store: сохранение, бан загрузчика, гонка за код."""
import unittest
from unittest.mock import MagicMock

import pytest

from filestore.access.codes import CodeGenerator
from filestore.access.registry import FileRegistry
from filestore.core.exceptions import Blocked, CodeCollision
from filestore.storage.records import FileType, StoredFile, UserRecord


class TestStoreOnSql:
    def test_persists_record(self, store):
        code = FileRegistry(store).store("7", "AgACAgIAAxk-photo", FileType.PHOTO, "Photo", 5120, username="up")

        record = store.get_active_file(code)
        assert record.file_type == FileType.PHOTO
        assert record.caption == "Photo"
        assert record.size == 5120
        assert record.uploaded_by == "7"
        assert store.get_user("7").files_shared == 1

    def test_codes_are_unique(self, store):
        registry = FileRegistry(store)
        codes = {registry.store("7", f"file-{i}", "document") for i in range(20)}
        assert len(codes) == 20

    def test_banned_uploader_rejected(self, store):
        store.set_banned("7", True)

        with pytest.raises(Blocked):
            FileRegistry(store).store("7", "file-1", "document")
        assert store.stats()["files_total"] == 0

    def test_unknown_type_rejected(self, store):
        with pytest.raises(ValueError):
            FileRegistry(store).store("7", "file-1", "sticker")

    def test_empty_file_ref_rejected(self, store):
        with pytest.raises(ValueError):
            FileRegistry(store).store("7", "", "document")


class TestReserveRace(unittest.TestCase):
    def test_retries_with_fresh_code(self):
        store = MagicMock()
        store.get_or_create_user.return_value = UserRecord(telegram_id="7")
        store.create_file.side_effect = [
            CodeCollision("short code already reserved: aaaa1111"),
            StoredFile(short_code="bbbb2222", file_ref="f", file_type=FileType.AUDIO, uploaded_by="7"),
        ]
        codes = MagicMock(spec=CodeGenerator)
        codes.generate.side_effect = ["aaaa1111", "bbbb2222"]

        code = FileRegistry(store, codes).store("7", "f", "audio", "Audio")

        self.assertEqual(code, "bbbb2222")
        self.assertEqual(store.create_file.call_count, 2)
        store.increment_files_shared.assert_called_once_with("7")


if __name__ == "__main__":
    unittest.main()
