"""
Short codes: 8 символов [a-z0-9] из secrets, уникальность проверяется по стору
(включая soft-deleted записи: код никогда не переиспользуется).
"""
from __future__ import annotations

import logging
import secrets
import string
from typing import Callable

from filestore.storage.base import RecordStore
from filestore.utils.metrics import code_collisions_total

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_lowercase + string.digits
CODE_LENGTH = 8


def draw_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class CodeGenerator:
    def __init__(self, store: RecordStore, draw: Callable[[], str] = draw_code) -> None:
        self._store = store
        self._draw = draw

    def generate(self) -> str:
        """Draw until the store reports the code unused."""
        while True:
            code = self._draw()
            if not self._store.code_exists(code):
                return code
            code_collisions_total.inc()
            logger.info("short_code_collision", extra={"short_code": code})
