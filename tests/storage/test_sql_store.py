"""SqlRecordStore / SqlSettingsStore на SQLite in-memory."""
import pytest

from filestore.core.exceptions import CodeCollision
from filestore.services.bot_settings.service import AUTO_DELETE_RANGE, START_MESSAGE_DEFAULT
from filestore.storage.records import FileType


def _file(store, code="a1b2c3d4", uploaded_by="42"):
    return store.create_file(code, "BQACAgIAAxk-file", "document", "report.pdf", 1024, uploaded_by)


class TestUsers:
    def test_get_or_create_is_lazy_and_unique(self, store):
        first = store.get_or_create_user("42", "alice", "Alice")
        second = store.get_or_create_user("42", "alice_new")

        assert first.telegram_id == second.telegram_id == "42"
        assert second.telegram_username == "alice_new"
        assert second.telegram_first_name == "Alice"
        assert store.stats()["users_total"] == 1

    def test_get_user_unknown(self, store):
        assert store.get_user("404") is None

    def test_mark_verified_is_idempotent(self, store):
        store.get_or_create_user("42")

        assert store.mark_verified("42") is True
        assert store.mark_verified("42") is False
        user = store.get_user("42")
        assert user.verified is True
        assert user.verified_at is not None

    def test_mark_verified_creates_missing_user(self, store):
        assert store.mark_verified("77") is True
        assert store.get_user("77").verified is True

    def test_ban_and_unban(self, store):
        banned = store.set_banned("42", True, "spam")
        assert banned.is_banned is True
        assert store.set_banned("42", False).is_banned is False

    def test_recipients_skip_banned(self, store):
        store.get_or_create_user("1")
        store.get_or_create_user("2")
        store.set_banned("3", True)

        assert sorted(store.list_recipient_ids()) == ["1", "2"]
        assert sorted(store.list_recipient_ids(include_banned=True)) == ["1", "2", "3"]


class TestFiles:
    def test_create_and_lookup(self, store):
        created = _file(store)

        assert created.file_type == FileType.DOCUMENT
        assert created.views == 0 and created.downloads == 0
        assert store.code_exists("a1b2c3d4")
        assert store.get_active_file("a1b2c3d4").caption == "report.pdf"

    def test_duplicate_code_rejected(self, store):
        _file(store)
        with pytest.raises(CodeCollision):
            _file(store, uploaded_by="43")

    def test_soft_deleted_code_never_reusable(self, store):
        _file(store)

        assert store.soft_delete_file("a1b2c3d4") is True
        assert store.soft_delete_file("a1b2c3d4") is False
        assert store.get_active_file("a1b2c3d4") is None
        assert store.get_file("a1b2c3d4").is_active is False
        assert store.code_exists("a1b2c3d4")

    def test_counters(self, store):
        _file(store)
        store.get_or_create_user("7")

        store.increment_views("a1b2c3d4")
        store.increment_views("a1b2c3d4")
        store.record_download("a1b2c3d4", "7")

        record = store.get_file("a1b2c3d4")
        assert record.views == 2
        assert record.downloads == 1
        assert store.get_user("7").files_accessed == 1

    def test_files_shared(self, store):
        store.get_or_create_user("42")
        store.increment_files_shared("42")
        assert store.get_user("42").files_shared == 1


class TestChannels:
    def test_order_and_duplicates(self, store):
        assert store.add_channel("-1001", "@first", "First") is not None
        assert store.add_channel("-1002", "@second", "Second") is not None
        assert store.add_channel("-1001", "@first", "First") is None

        assert [ch.display_handle for ch in store.list_channels()] == ["@first", "@second"]

    def test_remove_by_handle_or_id(self, store):
        store.add_channel("-1001", "@first", "First")
        store.add_channel("-1002", "@second", "Second")

        assert store.remove_channel("@first") == 1
        assert store.remove_channel("-1002") == 1
        assert store.remove_channel("@missing") == 0
        assert store.list_channels() == []

    def test_join_url(self, store):
        channel = store.add_channel("-1001", "@news", None)
        assert channel.join_url == "https://t.me/news"


class TestStats:
    def test_stats(self, store):
        _file(store, "aaaa1111")
        _file(store, "bbbb2222")
        store.soft_delete_file("bbbb2222")
        store.mark_verified("42")
        store.add_channel("-1001", "@first", None)

        stats = store.stats()
        assert stats["files_total"] == 2
        assert stats["files_active"] == 1
        assert stats["users_verified"] == 1
        assert stats["gate_channels"] == 1


class TestSettings:
    def test_defaults(self, settings_store):
        assert settings_store.get("auto_delete_seconds") == 0
        assert settings_store.get("protect_content") is False
        assert settings_store.get("start_message") == START_MESSAGE_DEFAULT

    def test_set_is_validated(self, settings_store):
        assert settings_store.set("protect_content", "on") is True
        assert settings_store.set("auto_delete_seconds", -5) == 0
        assert settings_store.set("auto_delete_seconds", 10**9) == AUTO_DELETE_RANGE[1]
        assert settings_store.set("shortener_domain", "https://short.example/ ") == "https://short.example"

    def test_as_dict_overlays_stored(self, settings_store):
        settings_store.set("auto_delete_seconds", 300)
        data = settings_store.as_dict()
        assert data["auto_delete_seconds"] == 300
        assert data["protect_content"] is False
