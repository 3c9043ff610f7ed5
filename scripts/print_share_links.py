#!/usr/bin/env python3
"""
Вывести share-ссылки последних активных файлов (код + подпись + ссылка).
Запуск из корня проекта: python -m scripts.print_share_links [limit]
"""
import sys

from filestore.access.config import build_deep_link
from filestore.core.config import settings
from filestore.db.session import SessionLocal
from filestore.services.files.service import FileService


def main():
    username = (settings.telegram_bot_username or "").strip()
    if not username:
        print("TELEGRAM_BOT_USERNAME не задан в .env, ссылки недоступны.")
        return
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 100
    db = SessionLocal()
    try:
        files = FileService(db).list_active(limit)
        if not files:
            print("Активных файлов в БД нет.")
            return
        print(f"Ссылки (бот: @{username}):\n")
        for f in files:
            print(f"  [{f.short_code}] {f.caption or '-'} ({f.file_type}, downloads={f.downloads})")
            print(f"    {build_deep_link(f.short_code, username)}\n")
    finally:
        db.close()


if __name__ == "__main__":
    main()
