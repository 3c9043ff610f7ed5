"""Import every model so Base.metadata knows all tables."""
from filestore.models.audit_log import AuditLog
from filestore.models.bot_setting import BotSetting
from filestore.models.file_record import FileRecord
from filestore.models.gate_channel import GateChannel
from filestore.models.user import User

__all__ = ["AuditLog", "BotSetting", "FileRecord", "GateChannel", "User"]
