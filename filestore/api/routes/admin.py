"""
Admin API: settings, gate channels, files, users, stats, audit, broadcast.
All routes require the X-Admin-Key header when ADMIN_API_KEY is set.
"""
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from filestore.access.models import ChatInfo
from filestore.core.config import settings
from filestore.core.exceptions import NotFound
from filestore.db.session import SessionLocal, get_db
from filestore.schemas.admin import (
    AuditLogOut,
    BanIn,
    BroadcastIn,
    ChannelIn,
    ChannelOut,
    SettingsUpdate,
    UserOut,
)
from filestore.services.admin.service import AdminService
from filestore.services.audit.service import AuditService
from filestore.services.telegram.client import TelegramAPIError, TelegramClient
from filestore.storage.sql import SqlRecordStore, SqlSettingsStore
from filestore.workers.tasks.broadcast import broadcast_message


def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    if settings.admin_api_key and x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="unauthorized")


def get_admin_service() -> AdminService:
    return AdminService(SqlRecordStore(SessionLocal), SqlSettingsStore(SessionLocal), actor_id="admin_api")


def get_telegram_client():
    client = TelegramClient()
    try:
        yield client
    finally:
        client.close()


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------- Settings ----------
@router.get("/settings")
def settings_get(svc: AdminService = Depends(get_admin_service)):
    return svc.settings_view()


@router.put("/settings")
def settings_update(payload: SettingsUpdate, svc: AdminService = Depends(get_admin_service)):
    for key, value in payload.model_dump(exclude_none=True).items():
        svc.set_setting(key, value)
    return svc.settings_view()


# ---------- Gate channels ----------
def _channel_out(channel) -> ChannelOut:
    return ChannelOut(
        channel_id=channel.channel_id,
        display_handle=channel.display_handle,
        title=channel.title,
        join_url=channel.join_url,
    )


@router.get("/channels", response_model=list[ChannelOut])
def channels_list(svc: AdminService = Depends(get_admin_service)):
    return [_channel_out(ch) for ch in svc.list_channels()]


@router.post("/channels", response_model=ChannelOut, status_code=201)
def channels_add(
    payload: ChannelIn,
    svc: AdminService = Depends(get_admin_service),
    telegram: TelegramClient = Depends(get_telegram_client),
):
    handle = payload.handle.strip()
    if not handle:
        raise HTTPException(400, "handle is required")
    try:
        chat = telegram.get_chat(handle)
    except TelegramAPIError as e:
        raise HTTPException(400, f"cannot resolve channel (is the bot an admin there?): {e.description}")
    channel = svc.add_channel(handle, ChatInfo(id=str(chat["id"]), title=chat.get("title")))
    if channel is None:
        raise HTTPException(409, "channel already added")
    return _channel_out(channel)


@router.delete("/channels/{handle}")
def channels_remove(handle: str, svc: AdminService = Depends(get_admin_service)):
    removed = svc.remove_channel(handle)
    if not removed:
        raise HTTPException(404, "channel not found")
    return {"removed": removed}


# ---------- Files ----------
@router.delete("/files/{short_code}")
def files_delete(short_code: str, svc: AdminService = Depends(get_admin_service)):
    try:
        svc.delete_file(short_code)
    except NotFound:
        raise HTTPException(404, "file not found")
    return {"short_code": short_code, "is_active": False}


# ---------- Users ----------
def _user_out(user) -> UserOut:
    return UserOut(
        telegram_id=user.telegram_id,
        telegram_username=user.telegram_username,
        verified=user.verified,
        is_banned=user.is_banned,
        files_shared=user.files_shared,
        files_accessed=user.files_accessed,
    )


@router.post("/users/{telegram_id}/ban", response_model=UserOut)
def users_ban(telegram_id: str, payload: BanIn | None = None, svc: AdminService = Depends(get_admin_service)):
    return _user_out(svc.ban(telegram_id, payload.reason if payload else None))


@router.post("/users/{telegram_id}/unban", response_model=UserOut)
def users_unban(telegram_id: str, svc: AdminService = Depends(get_admin_service)):
    return _user_out(svc.unban(telegram_id))


# ---------- Stats / audit ----------
@router.get("/stats")
def stats(svc: AdminService = Depends(get_admin_service)):
    return svc.stats()


@router.get("/audit", response_model=list[AuditLogOut])
def audit_list(
    db: Session = Depends(get_db),
    action: str | None = None,
    limit: int = Query(50, ge=1, le=500),
):
    return AuditService(db).recent(limit=limit, action=action)


# ---------- Broadcast ----------
@router.post("/broadcast/send")
def broadcast_send(payload: BroadcastIn):
    message = payload.message.strip()
    if not message:
        raise HTTPException(400, "message is required")
    result = broadcast_message.delay(message, include_banned=payload.include_banned)
    return {"task_id": result.id, "message": "Broadcast task queued"}
