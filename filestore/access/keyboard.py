"""
Тупой слой: на вход результат гейта, на выход reply_markup (dict для Telegram API).
"""
from __future__ import annotations

from typing import Any

from filestore.access.models import ChallengeLink
from filestore.storage.records import GateChannelInfo


def build_join_markup(missing: list[GateChannelInfo], recheck_callback: str) -> dict[str, Any]:
    """One «Join» button per missing channel plus the re-check button."""
    rows: list[list[dict[str, Any]]] = [
        [{"text": f"Join {ch.display_handle}", "url": ch.join_url}]
        for ch in missing
    ]
    rows.append([{"text": "✅ Verify", "callback_data": recheck_callback}])
    return {"inline_keyboard": rows}


def build_verification_markup(challenge: ChallengeLink) -> dict[str, Any]:
    return {
        "inline_keyboard": [
            [{"text": "🔗 Verify now", "url": challenge.url}],
            [{"text": "✅ I have verified", "callback_data": challenge.ack_callback}],
        ]
    }
