"""Deposit service: verifies claimed txIds against Binance and settles them once."""

import logging
from decimal import Decimal
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool

from settlement_api.config import DEPOSIT_HISTORY_LIMIT
from settlement_api.datasources import ExchangeDataSource
from settlement_api.errors import ExchangeError
from settlement_api.identifiers import TxIdCandidates, normalize_tx_id
from settlement_api.models import (
    DebugDeposit,
    DebugDepositList,
    DepositRecord,
    DepositVerificationResult,
    NewSettlement,
    SettledClaim,
    VerificationFailure,
    VerificationStatus,
    to_iso_timestamp,
)
from settlement_api.storage import SettlementStore
from .settings_service import SettingsCache

logger = logging.getLogger(__name__)

DEPOSIT_ASSET = "USDT"
DEBUG_DEPOSIT_LIMIT = 50

# Unavailable For Legal Reasons: Binance blocks the caller's jurisdiction
HTTP_REGION_RESTRICTED = 451


class DepositService:
    """
    Service for verifying and settling deposit claims.

    A claim is settled at most once: the store's unique txId index decides
    the winner when two requests race, and the loser answers from the
    winner's row.
    """

    def __init__(
        self,
        datasource: ExchangeDataSource,
        store: SettlementStore,
        settings: SettingsCache,
        history_limit: int = DEPOSIT_HISTORY_LIMIT,
        include_error_details: bool = False,
    ):
        self.datasource = datasource
        self.store = store
        self.settings = settings
        self.history_limit = history_limit
        self.include_error_details = include_error_details

    async def verify_tx_id(self, tx_id: Any) -> DepositVerificationResult:
        """
        Verify a claimed txId with Binance and award KES for it.

        Args:
            tx_id: Claimed transaction id, with or without the off-chain prefix

        Returns:
            DepositVerificationResult, complete or failed with a reason

        Raises:
            InvalidInputError: if tx_id is missing or blank
            NotConfiguredError: if Binance credentials are missing
        """
        candidates = normalize_tx_id(tx_id)

        existing = await run_in_threadpool(self.store.find_settled, candidates.keys)
        if existing is not None:
            return self._already_used(existing)

        try:
            deposits = await self.datasource.get_deposit_history(
                coin=DEPOSIT_ASSET,
                limit=self.history_limit,
            )
        except ExchangeError as e:
            return self._upstream_failure(candidates, e)

        match = find_confirmed_deposit(deposits, candidates)
        if match is None:
            return DepositVerificationResult(
                status=VerificationStatus.FAILED,
                reason=VerificationFailure.NOT_FOUND,
                message="Transaction not found or does not exist",
            )

        confirmed_amount = match.amount
        min_deposit = await self.settings.get_min_deposit()
        if min_deposit > 0 and confirmed_amount < min_deposit:
            return DepositVerificationResult(
                status=VerificationStatus.FAILED,
                reason=VerificationFailure.AMOUNT_TOO_LOW,
                message=(
                    f"Deposit amount {confirmed_amount} {DEPOSIT_ASSET} is below minimum "
                    f"{min_deposit} {DEPOSIT_ASSET}"
                ),
                minDepositAmount=min_deposit,
                confirmedAmount=confirmed_amount,
            )

        # Rate is taken at match time, not when the claim was first submitted
        rate = await self.settings.get_rate()
        settlement = NewSettlement(
            tx_id=candidates.canonical,
            asset=DEPOSIT_ASSET,
            amount=confirmed_amount,
            reward_kes=confirmed_amount * rate,
            confirmed_at=to_iso_timestamp(match.confirmed_at),
        )

        claim, created = await run_in_threadpool(self.store.insert_if_absent, settlement)
        if not created:
            return self._already_used(claim)

        logger.info(
            f"Settled {claim.tx_id}: {claim.amount} {DEPOSIT_ASSET} -> {claim.reward_kes} KES"
        )
        return DepositVerificationResult(
            status=VerificationStatus.COMPLETE,
            confirmedAmount=claim.amount,
            confirmedAt=claim.confirmed_at,
            rewardKes=claim.reward_kes,
        )

    async def get_recent_deposits(self, limit: int = DEBUG_DEPOSIT_LIMIT) -> DebugDepositList:
        """Recent deposit records, reduced to the fields needed for debugging."""
        deposits = await self.datasource.get_deposit_history(coin=DEPOSIT_ASSET, limit=limit)
        safe = [
            DebugDeposit(
                txId=d.tx_id,
                amount=d.amount,
                status=d.status,
                insertTime=d.insert_time,
                network=d.network,
            )
            for d in deposits
        ]
        return DebugDepositList(count=len(safe), deposits=safe)

    @staticmethod
    def _already_used(claim: SettledClaim) -> DepositVerificationResult:
        return DepositVerificationResult(
            status=VerificationStatus.FAILED,
            reason=VerificationFailure.ALREADY_USED,
            message="Transaction ID already used",
            confirmedAmount=claim.amount,
            rewardKes=claim.reward_kes,
            confirmedAt=claim.confirmed_at,
        )

    def _upstream_failure(
        self,
        candidates: TxIdCandidates,
        error: ExchangeError,
    ) -> DepositVerificationResult:
        logger.error(f"Error verifying txId {candidates.original}: {error}")
        if error.payload is not None:
            logger.error(f"Binance error response: {error.payload}")

        binance_message = error.upstream_message
        if error.status_code == HTTP_REGION_RESTRICTED:
            return DepositVerificationResult(
                status=VerificationStatus.FAILED,
                reason=VerificationFailure.REGION_RESTRICTED,
                message=(
                    "Binance API is not available in this region. "
                    "Access may be restricted by jurisdiction."
                ),
                binanceMessage=binance_message,
            )

        return DepositVerificationResult(
            status=VerificationStatus.FAILED,
            reason=VerificationFailure.VERIFICATION_ERROR,
            message=binance_message or "Failed to verify transaction with Binance",
            details=str(error) if self.include_error_details else None,
        )


def find_confirmed_deposit(
    deposits: list[DepositRecord],
    candidates: TxIdCandidates,
) -> Optional[DepositRecord]:
    """First confirmed deposit whose txId matches the claim, in upstream order."""
    return next(
        (d for d in deposits if candidates.matches(d.tx_id) and d.is_confirmed),
        None,
    )
