"""
Bot replies for redemption outcomes: RedemptionResult -> (text, reply_markup dict).
"""
from __future__ import annotations

from typing import Any

from filestore.access.keyboard import build_join_markup, build_verification_markup
from filestore.access.models import RedemptionOutcome, RedemptionResult

NOT_FOUND_TEXT = "❌ File not found or expired."
BLOCKED_TEXT = "🚫 You are banned from using this bot."
JOIN_REQUIRED_TEXT = "⚠️ Join required channels:"
JOIN_REQUIRED_ALERT = "❌ Please join all channels first!"
DELIVERY_FAILED_TEXT = "❌ Could not send the file right now. Please try again later."
GENERIC_ERROR_TEXT = "⚠️ Something went wrong. Please try again later."
VERIFIED_ALERT = "✅ Verified!"


def verification_text(url: str) -> str:
    return (
        "🔐 Verification Required\n\n"
        "Click the link below to verify and access the file:\n\n"
        f"🔗 {url}\n\n"
        "✅ After verification once, you'll get direct access to all files!"
    )


def purge_notice(seconds: int) -> str:
    return f"⏱ This file will be deleted in {seconds} seconds. Save it somewhere else."


def upload_reply(share_link: str, short_code: str) -> str:
    return (
        "✅ File Uploaded Successfully!\n\n"
        f"📎 Share Link:\n{share_link}\n\n"
        f"🔑 Code: {short_code}"
    )


def render_redemption(result: RedemptionResult) -> tuple[str | None, dict[str, Any] | None]:
    """Text and inline keyboard for the outcome; (None, None) when nothing needs saying."""
    if result.outcome == RedemptionOutcome.NOT_FOUND:
        return NOT_FOUND_TEXT, None
    if result.outcome == RedemptionOutcome.BLOCKED:
        return BLOCKED_TEXT, None
    if result.outcome == RedemptionOutcome.PENDING_SUBSCRIPTION:
        return JOIN_REQUIRED_TEXT, build_join_markup(result.missing_channels, result.recheck_callback)
    if result.outcome == RedemptionOutcome.PENDING_VERIFICATION and result.challenge is not None:
        return verification_text(result.challenge.url), build_verification_markup(result.challenge)
    if result.outcome == RedemptionOutcome.DELIVERY_FAILED:
        return DELIVERY_FAILED_TEXT, None
    if result.outcome == RedemptionOutcome.DELIVERED and result.delivered and result.delivered.purge_in_seconds:
        return purge_notice(result.delivered.purge_in_seconds), None
    return None, None


def stats_text(stats: dict[str, Any]) -> str:
    return (
        "📊 Bot Statistics\n\n"
        f"👥 Total Users: {stats.get('users_total', 0)}\n"
        f"✅ Verified Users: {stats.get('users_verified', 0)}\n"
        f"🚫 Banned Users: {stats.get('users_banned', 0)}\n"
        f"📁 Total Files: {stats.get('files_total', 0)} (active {stats.get('files_active', 0)})\n"
        f"📥 Downloads: {stats.get('downloads_total', 0)}\n"
        f"📺 Force Sub Channels: {stats.get('gate_channels', 0)}\n"
        f"🔐 Content Protection: {'ON' if stats.get('protect_content') else 'OFF'}\n"
        f"⏱ Auto Delete: {stats.get('auto_delete_seconds', 0)}s"
    )


def settings_text(view: dict[str, Any]) -> str:
    return (
        "⚙️ Current Settings\n\n"
        f"🔗 Shortener Domain: {view.get('shortener_domain') or '-'}\n"
        f"🔑 API Key: {view.get('shortener_api_key') or '-'}\n"
        f"⏱ Auto Delete: {view.get('auto_delete_seconds', 0)}s\n"
        f"🔐 Protect Content: {'ON' if view.get('protect_content') else 'OFF'}\n"
        f"📺 Force Sub Channels: {view.get('gate_channels', 0)}"
    )
