"""Withdrawal service: sends USDT from the Binance account to an address."""

import logging
from decimal import Decimal
from typing import Any, Optional

from settlement_api.datasources import ExchangeDataSource
from settlement_api.errors import ExchangeError, InvalidInputError
from settlement_api.models import WithdrawalFailure, WithdrawalResult, WithdrawalStatus
from settlement_api.models.withdrawal import AMOUNT_UNIT
from settlement_api.networks import Network, classify_address, parse_network
from .settings_service import SettingsCache, parse_number

logger = logging.getLogger(__name__)

WITHDRAWAL_ASSET = "USDT"

# Substrings Binance uses in messages about a short balance
INSUFFICIENT_FUNDS_MARKERS = ("insufficient", "balance", "fund")


class WithdrawalService:
    """
    Service for submitting withdrawals.

    Binance is the system of record for withdrawal status; nothing is
    stored locally.
    """

    def __init__(
        self,
        datasource: ExchangeDataSource,
        settings: SettingsCache,
        include_error_details: bool = False,
    ):
        self.datasource = datasource
        self.settings = settings
        self.include_error_details = include_error_details

    async def withdraw(
        self,
        address: Any,
        amount: Any = None,
        network: Any = None,
    ) -> WithdrawalResult:
        """
        Withdraw USDT to a TRC20 or Solana address.

        Args:
            address: Destination address
            amount: Amount in USDT, None to withdraw the whole available balance
            network: "TRX" or "SOL", None to detect from the address

        Returns:
            WithdrawalResult, complete or failed with a reason

        Raises:
            InvalidInputError: for a malformed address, network or amount
            NotConfiguredError: if Binance credentials are missing
        """
        if not isinstance(address, str) or not address.strip():
            raise InvalidInputError("address is required")
        address = address.strip()

        if network not in (None, ""):
            resolved_network = parse_network(network)
        else:
            resolved_network = classify_address(address)

        requested: Optional[Decimal] = None
        if amount is not None:
            requested = parse_number(amount)
            if requested is None or requested <= 0:
                raise InvalidInputError("amount must be a positive number (in USDT)")

        try:
            return await self._withdraw(address, requested, resolved_network)
        except ExchangeError as e:
            return self._upstream_failure(e)

    async def _withdraw(
        self,
        address: str,
        requested: Optional[Decimal],
        network: Network,
    ) -> WithdrawalResult:
        available = await self.datasource.get_asset_balance(WITHDRAWAL_ASSET)
        if available <= 0:
            return WithdrawalResult(
                status=WithdrawalStatus.FAILED,
                reason=WithdrawalFailure.INSUFFICIENT_FUNDS,
                message=f"Insufficient {WITHDRAWAL_ASSET} balance",
                availableAmount=Decimal("0"),
                availableAmountUnit=AMOUNT_UNIT,
            )

        final_amount = requested if requested is not None else available

        min_withdrawal = await self.settings.get_min_withdrawal()
        if final_amount < min_withdrawal:
            return WithdrawalResult(
                status=WithdrawalStatus.FAILED,
                reason=WithdrawalFailure.AMOUNT_BELOW_MINIMUM,
                message=(
                    f"Withdrawal amount {final_amount} {AMOUNT_UNIT} is below minimum "
                    f"{min_withdrawal} {AMOUNT_UNIT}"
                ),
                requestedAmount=final_amount,
                minWithdrawalAmount=min_withdrawal,
                amountUnit=AMOUNT_UNIT,
            )

        if final_amount > available:
            return WithdrawalResult(
                status=WithdrawalStatus.FAILED,
                reason=WithdrawalFailure.INSUFFICIENT_FUNDS,
                message=(
                    f"Requested amount {final_amount} {AMOUNT_UNIT} exceeds available "
                    f"balance {available} {AMOUNT_UNIT}"
                ),
                requestedAmount=final_amount,
                requestedAmountUnit=AMOUNT_UNIT,
                availableAmount=available,
                availableAmountUnit=AMOUNT_UNIT,
            )

        withdrawal_id = await self.datasource.submit_withdrawal(
            coin=WITHDRAWAL_ASSET,
            network=network.value,
            address=address,
            amount=final_amount,
        )
        logger.info(
            f"Withdrawal {withdrawal_id} submitted: {final_amount} {AMOUNT_UNIT} "
            f"to {address} via {network.value}"
        )

        return WithdrawalResult(
            status=WithdrawalStatus.COMPLETE,
            withdrawalId=withdrawal_id,
            amount=final_amount,
            amountUnit=AMOUNT_UNIT,
            address=address,
            network=network.value,
            message="Withdrawal initiated successfully",
        )

    def _upstream_failure(self, error: ExchangeError) -> WithdrawalResult:
        logger.error(f"Error processing withdrawal: {error}")
        details = str(error) if self.include_error_details else None

        if error.payload is None:
            return WithdrawalResult(
                status=WithdrawalStatus.FAILED,
                reason=WithdrawalFailure.WITHDRAWAL_ERROR,
                message="Failed to process withdrawal",
                details=details,
            )

        logger.error(f"Binance error response: {error.payload}")
        upstream = error.upstream_message
        text = (upstream or error.message or "").lower()
        if any(marker in text for marker in INSUFFICIENT_FUNDS_MARKERS):
            return WithdrawalResult(
                status=WithdrawalStatus.FAILED,
                reason=WithdrawalFailure.INSUFFICIENT_FUNDS,
                message=upstream or "Insufficient funds",
            )

        return WithdrawalResult(
            status=WithdrawalStatus.FAILED,
            reason=WithdrawalFailure.WITHDRAWAL_ERROR,
            message=upstream or "Withdrawal failed",
            details=details,
        )
