"""Withdrawal request/response models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from .common import JsonDecimal

AMOUNT_UNIT = "USDT"


class WithdrawalStatus(str, Enum):
    COMPLETE = "complete"
    FAILED = "failed"


class WithdrawalFailure(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    AMOUNT_BELOW_MINIMUM = "amount_below_minimum"
    WITHDRAWAL_ERROR = "withdrawal_error"


class WithdrawalRequest(BaseModel):
    """Body of POST /api/withdraw. Values are validated by the service."""
    address: Any = None
    amount: Any = None
    network: Any = None


class WithdrawalResult(BaseModel):
    """Outcome of a withdrawal request."""
    status: WithdrawalStatus
    reason: Optional[WithdrawalFailure] = None
    message: Optional[str] = None
    withdrawalId: Optional[str] = None
    amount: Optional[JsonDecimal] = None
    amountUnit: Optional[str] = None
    address: Optional[str] = None
    network: Optional[str] = None
    requestedAmount: Optional[JsonDecimal] = None
    requestedAmountUnit: Optional[str] = None
    availableAmount: Optional[JsonDecimal] = None
    availableAmountUnit: Optional[str] = None
    minWithdrawalAmount: Optional[JsonDecimal] = None
    details: Optional[str] = None
