"""Abstract base class for exchange data sources."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from settlement_api.config import DEPOSIT_HISTORY_LIMIT
from settlement_api.models import DepositRecord


class ExchangeDataSource(ABC):
    """
    Abstract interface for the exchange account we settle against.

    The engines only talk to this interface, so tests (or another exchange)
    can be swapped in without touching the settlement logic.

    Implementations must not retry: upstream failures are raised as
    ExchangeError subclasses and the caller decides what to do.
    """

    @abstractmethod
    async def get_deposit_history(
        self,
        coin: str,
        start_time_ms: Optional[int] = None,
        end_time_ms: Optional[int] = None,
        limit: int = DEPOSIT_HISTORY_LIMIT,
    ) -> list[DepositRecord]:
        """
        Retrieve recent deposits for a coin.

        Args:
            coin: Asset code, e.g. "USDT"
            start_time_ms: Start time in milliseconds, None for the exchange default
            end_time_ms: End time in milliseconds, None for now
            limit: Maximum number of records

        Returns:
            Deposit records in the order the exchange returned them
        """
        pass

    @abstractmethod
    async def get_asset_balance(self, asset: str) -> Decimal:
        """
        Get the free (available) balance of an asset in the spot wallet.

        Returns:
            Available amount, 0 if the account holds none
        """
        pass

    @abstractmethod
    async def submit_withdrawal(
        self,
        coin: str,
        network: str,
        address: str,
        amount: Decimal,
    ) -> str:
        """
        Submit a withdrawal.

        Returns:
            Exchange-assigned withdrawal id
        """
        pass

    async def close(self) -> None:
        """
        Clean up resources (e.g., close HTTP sessions).

        Override this if the data source holds resources that need cleanup.
        """
        pass
