"""Test doubles and sample data."""

import asyncio
from decimal import Decimal
from typing import Optional

from settlement_api.config import DEPOSIT_HISTORY_LIMIT
from settlement_api.datasources import ExchangeDataSource
from settlement_api.models import DepositRecord

TRC20_ADDRESS = "TJRyWwFs9wTFGZg3JbrVriFbNfCug5tDeC"
SOLANA_ADDRESS = "7EcDhSYGxXyscszYEp35KHN8vvw3svAuLKTzXwCFLtV3"


def deposit(tx_id: str, amount: str, status: int = 1, insert_time: int = 1700000000000) -> DepositRecord:
    return DepositRecord.model_validate({
        "txId": tx_id,
        "coin": "USDT",
        "amount": amount,
        "status": status,
        "insertTime": insert_time,
        "network": "TRX",
    })


class FakeExchange(ExchangeDataSource):
    """In-memory exchange account."""

    def __init__(self):
        self.deposits: list[DepositRecord] = []
        self.balance = Decimal("0")
        self.withdrawal_id = "wd-1"
        self.history_error: Optional[Exception] = None
        self.balance_error: Optional[Exception] = None
        self.withdraw_error: Optional[Exception] = None
        self.history_calls = 0
        self.withdrawals: list[dict] = []
        # When set, get_deposit_history waits until this many callers arrive
        self.history_barrier: Optional[int] = None
        self._arrived = 0
        self._released = asyncio.Event()

    async def get_deposit_history(
        self, coin, start_time_ms=None, end_time_ms=None, limit=DEPOSIT_HISTORY_LIMIT,
    ):
        self.history_calls += 1
        if self.history_barrier:
            self._arrived += 1
            if self._arrived >= self.history_barrier:
                self._released.set()
            try:
                await asyncio.wait_for(self._released.wait(), timeout=5)
            except asyncio.TimeoutError:
                pass
        if self.history_error is not None:
            raise self.history_error
        return list(self.deposits)[:limit]

    async def get_asset_balance(self, asset):
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance

    async def submit_withdrawal(self, coin, network, address, amount):
        if self.withdraw_error is not None:
            raise self.withdraw_error
        self.withdrawals.append({
            "coin": coin,
            "network": network,
            "address": address,
            "amount": amount,
        })
        return self.withdrawal_id


