#!/usr/bin/env python3
"""
Создать таблицы (users, files, gate_channels, bot_settings, audit_logs).
Запуск из корня проекта: python -m scripts.init_db
"""
from filestore.db.base import Base
from filestore.db.session import engine
import filestore.models  # noqa: F401  регистрирует модели в Base.metadata


def main():
    Base.metadata.create_all(bind=engine)
    print("Tables: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    main()
