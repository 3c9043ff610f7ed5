"""
DTO access engine: gate results, challenge link, delivery handle, redemption result.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from filestore.storage.records import GateChannelInfo, StoredFile

RECHECK_PREFIX = "recheck:"
VERIFY_PREFIX = "verify:"


class ChatInfo(BaseModel):
    """Resolved chat: what getChat returns, trimmed to what gating needs."""

    id: str
    title: str | None = None

    model_config = {"frozen": True}


# ----- Subscription gate -----


class SubscriptionResult(BaseModel):
    passed: bool
    missing: list[GateChannelInfo] = Field(
        default_factory=list,
        description="Channels not joined (or not checkable), in configured order",
    )

    model_config = {"frozen": True}


# ----- Verification gate -----


class ChallengeLink(BaseModel):
    url: str = Field(..., description="Shortened link, or the raw deep link if shortening failed")
    deep_link: str = Field(..., description="https://t.me/<bot>?start=<code>")
    shortened: bool = False
    ack_callback: str = Field(..., description="callback_data of the «I have verified» button")

    model_config = {"frozen": True}


class VerifiedResult(BaseModel):
    telegram_id: str
    newly_verified: bool = Field(..., description="False when the user was already verified")
    verified_at: datetime | None = None

    model_config = {"frozen": True}


# ----- Delivery -----


class DeliveredMessage(BaseModel):
    chat_id: str
    message_id: int
    purge_in_seconds: int | None = None

    model_config = {"frozen": True}


# ----- Redemption -----


class RedemptionOutcome(str, Enum):
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"
    PENDING_SUBSCRIPTION = "pending_subscription"
    PENDING_VERIFICATION = "pending_verification"
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"


class RedemptionResult(BaseModel):
    outcome: RedemptionOutcome
    short_code: str
    file: StoredFile | None = None
    missing_channels: list[GateChannelInfo] = Field(default_factory=list)
    challenge: ChallengeLink | None = None
    delivered: DeliveredMessage | None = None

    model_config = {"frozen": True}

    @property
    def recheck_callback(self) -> str:
        return f"{RECHECK_PREFIX}{self.short_code}"
