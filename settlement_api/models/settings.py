"""Request/response models for the tunable settings endpoints."""

from typing import Any

from pydantic import BaseModel

from .common import JsonDecimal


class RateResponse(BaseModel):
    rate: JsonDecimal


class RateUpdate(BaseModel):
    rate: Any = None


class MinDepositResponse(BaseModel):
    minDepositAmount: JsonDecimal


class MinDepositUpdate(BaseModel):
    minDepositAmount: Any = None


class MinWithdrawalResponse(BaseModel):
    minWithdrawalAmount: JsonDecimal


class MinWithdrawalUpdate(BaseModel):
    minWithdrawalAmount: Any = None
