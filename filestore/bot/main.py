"""
Telegram bot using aiogram 3.x
Uploads -> short code; /start <code> -> AccessOrchestrator; admin commands for operators.
"""
import asyncio
import logging
from typing import Any

from aiogram import Bot, Dispatcher, F, Router
from aiogram.filters import BaseFilter, Command, CommandObject, CommandStart
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from aiogram.types import CallbackQuery, ErrorEvent, InlineKeyboardMarkup, Message

from filestore.access import (
    AccessOrchestrator,
    AuditTrail,
    DeliveryService,
    FileRegistry,
    SubscriptionGate,
    VerificationGate,
    build_purge_scheduler,
)
from filestore.access.config import build_deep_link
from filestore.access.models import RECHECK_PREFIX, VERIFY_PREFIX, RedemptionOutcome
from filestore.access.transport import Transport
from filestore.bot.texts import (
    GENERIC_ERROR_TEXT,
    JOIN_REQUIRED_ALERT,
    VERIFIED_ALERT,
    render_redemption,
    settings_text,
    stats_text,
    upload_reply,
)
from filestore.bot.uploads import extract_upload
from filestore.core.config import settings
from filestore.core.exceptions import Blocked, GateUnsatisfied, NotFound
from filestore.core.logging import configure_logging
from filestore.db.session import SessionLocal
from filestore.services.admin.service import AdminService, is_admin
from filestore.services.circuit_breaker import get_circuit_breaker
from filestore.services.shortener.client import ShortenerClient
from filestore.services.telegram.transport import AiogramTransport
from filestore.storage.base import RecordStore, SettingsStore
from filestore.storage.sql import SqlRecordStore, SqlSettingsStore
from filestore.workers.tasks.broadcast import broadcast_message

configure_logging()
logger = logging.getLogger("bot")

router = Router()
admin_router = Router()


class AdminFilter(BaseFilter):
    """Не-админам команды просто не матчатся (молча игнорируются)."""

    async def __call__(self, message: Message) -> bool:
        return bool(message.from_user) and is_admin(message.from_user.id)


admin_router.message.filter(AdminFilter())


def _markup(data: dict[str, Any] | None) -> InlineKeyboardMarkup | None:
    return InlineKeyboardMarkup.model_validate(data) if data else None


async def _redeem_and_reply(
    message: Message,
    orchestrator: AccessOrchestrator,
    telegram_id: str,
    short_code: str,
    username: str | None,
    first_name: str | None,
):
    try:
        result = await orchestrator.redeem(telegram_id, short_code, username, first_name)
    except Exception:
        logger.exception("redeem_failed", extra={"user_id": telegram_id, "short_code": short_code})
        await message.answer(GENERIC_ERROR_TEXT)
        return None
    text, markup = render_redemption(result)
    if text:
        await message.answer(text, reply_markup=_markup(markup))
    return result


# ---------- User surface ----------
@router.message(CommandStart(deep_link=True))
async def cmd_start_code(message: Message, command: CommandObject, orchestrator: AccessOrchestrator):
    short_code = (command.args or "").strip()
    user = message.from_user
    await _redeem_and_reply(message, orchestrator, str(user.id), short_code, user.username, user.first_name)


@router.message(CommandStart())
async def cmd_start(message: Message, settings_store: SettingsStore):
    await message.answer(settings_store.get("start_message"), parse_mode="Markdown")


@router.message(Command("help"))
async def cmd_help(message: Message, settings_store: SettingsStore):
    await message.answer(settings_store.get("help_message"), parse_mode="Markdown")


@router.callback_query(F.data.startswith(RECHECK_PREFIX))
async def on_recheck(callback: CallbackQuery, orchestrator: AccessOrchestrator):
    short_code = callback.data[len(RECHECK_PREFIX):]
    user = callback.from_user
    try:
        result = await orchestrator.redeem(str(user.id), short_code, user.username, user.first_name)
    except Exception:
        logger.exception("redeem_failed", extra={"user_id": str(user.id), "short_code": short_code})
        await callback.answer(GENERIC_ERROR_TEXT, show_alert=True)
        return
    if result.outcome == RedemptionOutcome.PENDING_SUBSCRIPTION:
        await callback.answer(JOIN_REQUIRED_ALERT, show_alert=True)
        return
    await callback.answer()
    text, markup = render_redemption(result)
    if text and callback.message:
        await callback.message.answer(text, reply_markup=_markup(markup))


@router.callback_query(F.data.startswith(VERIFY_PREFIX))
async def on_verify(callback: CallbackQuery, orchestrator: AccessOrchestrator):
    short_code = callback.data[len(VERIFY_PREFIX):]
    user = callback.from_user
    try:
        await orchestrator.confirm_verification(str(user.id))
    except GateUnsatisfied:
        await callback.answer(JOIN_REQUIRED_ALERT, show_alert=True)
        return
    except Exception:
        logger.exception("verify_failed", extra={"user_id": str(user.id), "short_code": short_code})
        await callback.answer(GENERIC_ERROR_TEXT, show_alert=True)
        return
    await callback.answer(VERIFIED_ALERT)
    if callback.message:
        await _redeem_and_reply(callback.message, orchestrator, str(user.id), short_code, user.username, user.first_name)


@router.message(F.document | F.video | F.audio | F.photo)
async def on_upload(message: Message, registry: FileRegistry, audit: AuditTrail, bot_username: str):
    upload = extract_upload(message)
    if upload is None:
        return
    user = message.from_user
    telegram_id = str(user.id)
    try:
        short_code = registry.store(
            telegram_id,
            upload.file_ref,
            upload.file_type,
            upload.caption,
            upload.size,
            username=user.username,
            first_name=user.first_name,
        )
    except Blocked:
        await message.answer("🚫 You are banned from using this bot.")
        return
    except Exception:
        logger.exception("upload_failed", extra={"user_id": telegram_id})
        await message.answer(GENERIC_ERROR_TEXT)
        return

    share_link = build_deep_link(short_code, bot_username)
    await audit.file_uploaded(
        telegram_id,
        user.first_name,
        short_code,
        upload.caption,
        share_link,
        source_chat_id=str(message.chat.id),
        source_message_id=message.message_id,
    )
    await message.answer(upload_reply(share_link, short_code))


# ---------- Admin surface ----------
def _admin(message: Message, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail) -> AdminService:
    return AdminService(store, settings_store, audit, actor_id=str(message.from_user.id))


@admin_router.message(Command("setadlink"))
async def cmd_setadlink(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    args = (command.args or "").split()
    if len(args) < 2:
        await message.answer("Usage: /setadlink <domain> <api_key>")
        return
    _admin(message, store, settings_store, audit).set_shortener(args[0], args[1])
    await message.answer("✅ Shortener settings updated!")


@admin_router.message(Command("setstart"))
async def cmd_setstart(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    if not command.args:
        await message.answer("Usage: /setstart <message>")
        return
    _admin(message, store, settings_store, audit).set_start_message(command.args)
    await message.answer("✅ Start message updated!")


@admin_router.message(Command("sethelp"))
async def cmd_sethelp(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    if not command.args:
        await message.answer("Usage: /sethelp <message>")
        return
    _admin(message, store, settings_store, audit).set_help_message(command.args)
    await message.answer("✅ Help message updated!")


@admin_router.message(Command("autodelete"))
async def cmd_autodelete(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    try:
        seconds = int((command.args or "").split()[0])
        seconds = _admin(message, store, settings_store, audit).set_auto_delete(seconds)
    except (IndexError, ValueError):
        await message.answer("Usage: /autodelete <seconds>\nExample: /autodelete 300 (5 min)\nUse 0 to disable")
        return
    await message.answer(f"✅ Auto-delete set to {seconds} seconds!")


@admin_router.message(Command("protect"))
async def cmd_protect(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    arg = (command.args or "").strip().lower()
    if arg not in ("on", "off"):
        await message.answer("Usage: /protect <on/off>")
        return
    _admin(message, store, settings_store, audit).set_protect_content(arg == "on")
    await message.answer("✅ Content protection enabled!" if arg == "on" else "✅ Content protection disabled!")


@admin_router.message(Command("addchannel"))
async def cmd_addchannel(
    message: Message,
    command: CommandObject,
    store: RecordStore,
    settings_store: SettingsStore,
    audit: AuditTrail,
    transport: Transport,
):
    handle = (command.args or "").strip().split(" ")[0]
    if not handle.startswith("@"):
        await message.answer("Usage: /addchannel @channelname")
        return
    try:
        chat = await transport.get_chat_info(handle)
    except Exception as e:
        logger.warning("channel_resolve_failed", extra={"channel_id": handle, "error": str(e)})
        await message.answer("❌ Error: Make sure bot is admin in the channel!")
        return
    channel = _admin(message, store, settings_store, audit).add_channel(handle, chat)
    if channel is None:
        await message.answer("❌ Channel already added!")
        return
    await message.answer(f"✅ Channel {handle} added for force subscription!")


@admin_router.message(Command("removechannel"))
async def cmd_removechannel(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    handle = (command.args or "").strip()
    if not handle:
        await message.answer("Usage: /removechannel @channelname")
        return
    removed = _admin(message, store, settings_store, audit).remove_channel(handle)
    await message.answer(f"✅ Channel {handle} removed!" if removed else f"❌ Channel {handle} is not in the list.")


@admin_router.message(Command("listchannels"))
async def cmd_listchannels(message: Message, store: RecordStore):
    channels = store.list_channels()
    if not channels:
        await message.answer("No force subscription channels added.")
        return
    lines = [f"{i}. {ch.display_handle} - {ch.title or ''}" for i, ch in enumerate(channels, start=1)]
    await message.answer("📋 Force Subscription Channels:\n\n" + "\n".join(lines))


@admin_router.message(Command("deletefile"))
async def cmd_deletefile(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    short_code = (command.args or "").strip()
    if not short_code:
        await message.answer("Usage: /deletefile <code>")
        return
    try:
        _admin(message, store, settings_store, audit).delete_file(short_code)
    except NotFound:
        await message.answer("❌ File not found.")
        return
    await message.answer(f"✅ File {short_code} deleted!")


@admin_router.message(Command("ban"))
async def cmd_ban(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    parts = (command.args or "").split(maxsplit=1)
    if not parts or not parts[0].isdigit():
        await message.answer("Usage: /ban <telegram_id> [reason]")
        return
    reason = parts[1] if len(parts) > 1 else None
    _admin(message, store, settings_store, audit).ban(parts[0], reason)
    await message.answer(f"🚫 User {parts[0]} banned.")


@admin_router.message(Command("unban"))
async def cmd_unban(message: Message, command: CommandObject, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    telegram_id = (command.args or "").strip()
    if not telegram_id.isdigit():
        await message.answer("Usage: /unban <telegram_id>")
        return
    _admin(message, store, settings_store, audit).unban(telegram_id)
    await message.answer(f"✅ User {telegram_id} unbanned.")


@admin_router.message(Command("stats"))
async def cmd_stats(message: Message, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    await message.answer(stats_text(_admin(message, store, settings_store, audit).stats()))


@admin_router.message(Command("settings"))
async def cmd_settings(message: Message, store: RecordStore, settings_store: SettingsStore, audit: AuditTrail):
    await message.answer(settings_text(_admin(message, store, settings_store, audit).settings_view()))


@admin_router.message(Command("broadcast"))
async def cmd_broadcast(message: Message, command: CommandObject, audit: AuditTrail):
    text = (command.args or "").strip()
    if not text:
        await message.answer("Usage: /broadcast <message>")
        return
    try:
        result = await asyncio.to_thread(broadcast_message.delay, text)
    except Exception:
        logger.exception("broadcast_enqueue_failed")
        await message.answer(GENERIC_ERROR_TEXT)
        return
    audit.admin_action(str(message.from_user.id), "broadcast", "broadcast", result.id, {"length": len(text)})
    await message.answer(f"📣 Broadcast queued (task {result.id}).")


async def on_error(event: ErrorEvent, *args, **kwargs):
    """Global error handler."""
    logger.exception(
        "Error in handler",
        extra={"error": str(event.exception)},
    )


def build_services(bot: Bot, bot_username: str) -> dict[str, Any]:
    """Wire stores, transport and gates; the result becomes Dispatcher workflow data."""
    store = SqlRecordStore(SessionLocal)
    settings_store = SqlSettingsStore(SessionLocal)
    transport = AiogramTransport(bot)
    shortener = ShortenerClient(breaker=get_circuit_breaker("shortener"))
    audit = AuditTrail(store, transport)
    orchestrator = AccessOrchestrator(
        store,
        settings_store,
        SubscriptionGate(store, transport),
        VerificationGate(store, settings_store, shortener, bot_username),
        DeliveryService(transport, settings_store, build_purge_scheduler(transport)),
        audit,
    )
    return {
        "store": store,
        "settings_store": settings_store,
        "transport": transport,
        "shortener": shortener,
        "audit": audit,
        "orchestrator": orchestrator,
        "registry": FileRegistry(store),
        "bot_username": bot_username,
    }


async def main():
    """Start the bot."""
    logger.info("Starting bot...")

    bot = Bot(token=settings.telegram_bot_token)
    bot_username = settings.telegram_bot_username
    if not bot_username:
        me = await bot.get_me()
        bot_username = me.username

    # Redis for FSM storage when available, memory otherwise
    storage = RedisStorage.from_url(settings.redis_url) if settings.redis_url else MemoryStorage()
    services = build_services(bot, bot_username)
    dp = Dispatcher(storage=storage, **services)

    dp.errors.register(on_error)

    dp.include_router(admin_router)
    dp.include_router(router)

    # Delete webhook if exists (we use polling)
    await bot.delete_webhook(drop_pending_updates=True)

    logger.info("Bot started successfully!")

    try:
        await dp.start_polling(bot, allowed_updates=["message", "callback_query"])
    finally:
        services["shortener"].close()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
