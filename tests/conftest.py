"""
Общие фикстуры: окружение до импорта filestore, SQLite in-memory стор, фейковый транспорт.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("TELEGRAM_BOT_USERNAME", "FileStoreTestBot")
os.environ.setdefault("ADMIN_IDS", "1001")
os.environ["REDIS_URL"] = ""
os.environ["LOG_CHANNEL_ID"] = ""
os.environ["ADMIN_API_KEY"] = "test-admin-key"

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import filestore.models  # noqa: E402,F401
from filestore.access.models import ChatInfo  # noqa: E402
from filestore.db.base import Base  # noqa: E402
from filestore.db.session import build_engine  # noqa: E402
from filestore.storage.sql import SqlRecordStore, SqlSettingsStore  # noqa: E402


class FakeTransport:
    """Async Transport in memory: records sends/deletes, membership from a dict."""

    def __init__(self):
        self.memberships: dict[tuple[str, str], str] = {}
        self.chats: dict[str, ChatInfo] = {}
        self.sent_files: list[dict] = []
        self.sent_texts: list[dict] = []
        self.forwarded: list[tuple[str, str, int]] = []
        self.deleted: list[tuple[str, int]] = []
        self.fail_send = False
        self.fail_delete = False
        self._next_message_id = 100

    def _message_id(self) -> int:
        self._next_message_id += 1
        return self._next_message_id

    async def send_file(self, chat_id, file_ref, file_type, caption, protect_content):
        if self.fail_send:
            raise RuntimeError("Bad Request: chat not found")
        message_id = self._message_id()
        self.sent_files.append(
            {
                "chat_id": chat_id,
                "file_ref": file_ref,
                "file_type": file_type,
                "caption": caption,
                "protect_content": protect_content,
                "message_id": message_id,
            }
        )
        return message_id

    async def delete_message(self, chat_id, message_id):
        if self.fail_delete:
            raise RuntimeError("Bad Request: message to delete not found")
        self.deleted.append((chat_id, message_id))
        return True

    async def get_chat_membership(self, channel_id, user_id):
        status = self.memberships.get((channel_id, user_id), "left")
        if isinstance(status, Exception):
            raise status
        return status

    async def get_chat_info(self, handle):
        if handle not in self.chats:
            raise RuntimeError("Bad Request: chat not found")
        return self.chats[handle]

    async def forward_message(self, to_chat_id, from_chat_id, message_id):
        self.forwarded.append((to_chat_id, from_chat_id, message_id))
        return self._message_id()

    async def send_text(self, chat_id, text, reply_markup=None, parse_mode=None):
        self.sent_texts.append({"chat_id": chat_id, "text": text, "reply_markup": reply_markup})
        return self._message_id()


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlRecordStore(session_factory)


@pytest.fixture
def settings_store(session_factory):
    return SqlSettingsStore(session_factory)


@pytest.fixture
def transport():
    return FakeTransport()
