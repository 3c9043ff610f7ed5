"""
Access engine: выдача файлов по коротким кодам за подпиской и верификацией.
Гейты (subscription, verification) и исполнение (delivery) разделены;
AccessOrchestrator связывает их через инжектированные store/transport/shortener.
"""
from filestore.access.audit import AuditTrail
from filestore.access.codes import CodeGenerator
from filestore.access.delivery import (
    CeleryPurgeScheduler,
    DeliveryService,
    LocalPurgeScheduler,
    build_purge_scheduler,
)
from filestore.access.keyboard import build_join_markup, build_verification_markup
from filestore.access.models import (
    ChallengeLink,
    ChatInfo,
    DeliveredMessage,
    RedemptionOutcome,
    RedemptionResult,
    SubscriptionResult,
    VerifiedResult,
)
from filestore.access.orchestrator import AccessOrchestrator
from filestore.access.registry import FileRegistry
from filestore.access.subscription import SubscriptionGate
from filestore.access.verification import VerificationGate

__all__ = [
    "AccessOrchestrator",
    "AuditTrail",
    "CeleryPurgeScheduler",
    "ChallengeLink",
    "ChatInfo",
    "CodeGenerator",
    "DeliveredMessage",
    "DeliveryService",
    "FileRegistry",
    "LocalPurgeScheduler",
    "RedemptionOutcome",
    "RedemptionResult",
    "SubscriptionGate",
    "SubscriptionResult",
    "VerificationGate",
    "VerifiedResult",
    "build_join_markup",
    "build_purge_scheduler",
    "build_verification_markup",
]
