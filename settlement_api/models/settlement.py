"""Settled claim model."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SettledClaim(BaseModel):
    """
    A txId that has been honored.

    Read-only view of a processed_transactions row. Rows are never updated,
    so amount and reward_kes are the values frozen at settlement time.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    tx_id: str
    asset: str
    amount: Decimal
    reward_kes: Decimal
    confirmed_at: str
    created_at: Optional[datetime] = None


class NewSettlement(BaseModel):
    """Values for a settlement about to be inserted."""
    tx_id: str
    asset: str
    amount: Decimal
    reward_kes: Decimal
    confirmed_at: str
