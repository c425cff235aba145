"""Deposit models: upstream records and claim verification responses."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import JsonDecimal

# Binance deposit status: 0 pending, 6 credited but cannot withdraw, 1 success
DEPOSIT_STATUS_SUCCESS = 1


class DepositRecord(BaseModel):
    """
    A single deposit as reported by Binance deposit history.

    Only the fields used for matching are modelled; the rest are ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tx_id: str = Field(alias="txId", description="Transaction id (or off-chain transfer id)")
    coin: str = Field(default="", description="Asset code")
    amount: Decimal = Field(default=Decimal("0"), description="Deposited amount")
    status: int = Field(description="Deposit status code")
    insert_time: Optional[int] = Field(
        alias="insertTime", default=None, description="Timestamp in milliseconds"
    )
    network: Optional[str] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == DEPOSIT_STATUS_SUCCESS

    @property
    def confirmed_at(self) -> datetime:
        """Upstream confirmation time, falling back to now when Binance omits it."""
        if self.insert_time:
            return datetime.fromtimestamp(self.insert_time / 1000, tz=timezone.utc)
        return datetime.now(timezone.utc)


class DebugDeposit(BaseModel):
    """Redacted deposit record for the debug listing."""
    txId: str
    amount: JsonDecimal
    status: int
    insertTime: Optional[int] = None
    network: Optional[str] = None


class DebugDepositList(BaseModel):
    count: int
    deposits: list[DebugDeposit]


class VerificationStatus(str, Enum):
    COMPLETE = "complete"
    FAILED = "failed"


class VerificationFailure(str, Enum):
    """Reasons a claim was not settled by this request."""
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"
    AMOUNT_TOO_LOW = "amount_too_low"
    REGION_RESTRICTED = "region_restricted"
    VERIFICATION_ERROR = "verification_error"


class DepositVerificationResult(BaseModel):
    """
    Outcome of a txId claim.

    complete: confirmedAmount, confirmedAt, rewardKes
    failed: reason and message, plus whatever context the reason carries
    """
    status: VerificationStatus
    reason: Optional[VerificationFailure] = None
    message: Optional[str] = None
    confirmedAmount: Optional[JsonDecimal] = None
    confirmedAt: Optional[str] = None
    rewardKes: Optional[JsonDecimal] = None
    minDepositAmount: Optional[JsonDecimal] = None
    binanceMessage: Optional[str] = None
    details: Optional[str] = None


class DepositClaimRequest(BaseModel):
    """Body of POST /api/deposit/txid. Validated by the service, not by pydantic."""
    txId: Any = None
