"""
Что именно прислали: file_id, тип, подпись и размер из входящего сообщения.
"""
from __future__ import annotations

from typing import Any, NamedTuple

from filestore.storage.records import FileType


class Upload(NamedTuple):
    file_ref: str
    file_type: FileType
    caption: str | None
    size: int | None


def extract_upload(message: Any) -> Upload | None:
    """
    Document -> file name, video -> «Video», audio -> title or «Audio», photo -> «Photo»
    (largest size). An explicit message caption always wins.
    """
    if message.document:
        item, file_type, caption = message.document, FileType.DOCUMENT, message.document.file_name
    elif message.video:
        item, file_type, caption = message.video, FileType.VIDEO, "Video"
    elif message.audio:
        item, file_type, caption = message.audio, FileType.AUDIO, message.audio.title or "Audio"
    elif message.photo:
        item, file_type, caption = message.photo[-1], FileType.PHOTO, "Photo"
    else:
        return None

    if message.caption:
        caption = message.caption
    return Upload(
        file_ref=item.file_id,
        file_type=file_type,
        caption=caption,
        size=getattr(item, "file_size", None),
    )
