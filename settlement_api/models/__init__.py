from .common import JsonDecimal, to_iso_timestamp
from .deposit import (
    DepositRecord,
    DebugDeposit,
    DebugDepositList,
    DepositClaimRequest,
    DepositVerificationResult,
    VerificationStatus,
    VerificationFailure,
)
from .withdrawal import (
    WithdrawalRequest,
    WithdrawalResult,
    WithdrawalStatus,
    WithdrawalFailure,
)
from .settings import (
    RateResponse,
    RateUpdate,
    MinDepositResponse,
    MinDepositUpdate,
    MinWithdrawalResponse,
    MinWithdrawalUpdate,
)
from .settlement import SettledClaim, NewSettlement

__all__ = [
    "JsonDecimal",
    "to_iso_timestamp",
    "DepositRecord",
    "DebugDeposit",
    "DebugDepositList",
    "DepositClaimRequest",
    "DepositVerificationResult",
    "VerificationStatus",
    "VerificationFailure",
    "WithdrawalRequest",
    "WithdrawalResult",
    "WithdrawalStatus",
    "WithdrawalFailure",
    "RateResponse",
    "RateUpdate",
    "MinDepositResponse",
    "MinDepositUpdate",
    "MinWithdrawalResponse",
    "MinWithdrawalUpdate",
    "SettledClaim",
    "NewSettlement",
]
