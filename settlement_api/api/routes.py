"""API routes for the settlement service."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from settlement_api.config import Config
from settlement_api.errors import ExchangeError
from settlement_api.models import (
    DebugDepositList,
    DepositClaimRequest,
    DepositVerificationResult,
    MinDepositResponse,
    MinDepositUpdate,
    MinWithdrawalResponse,
    MinWithdrawalUpdate,
    RateResponse,
    RateUpdate,
    WithdrawalRequest,
    WithdrawalResult,
)
from settlement_api.services import (
    DepositService,
    SettingKey,
    SettingsCache,
    WithdrawalService,
)
from .dependencies import (
    get_config,
    get_deposit_service,
    get_settings_cache,
    get_withdrawal_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/rate", response_model=RateResponse)
async def get_rate(
    settings: SettingsCache = Depends(get_settings_cache),
) -> RateResponse:
    """Current KES per USDT rate."""
    return RateResponse(rate=await settings.get_rate())


@router.post("/rate", response_model=RateResponse)
async def update_rate(
    body: RateUpdate,
    settings: SettingsCache = Depends(get_settings_cache),
) -> RateResponse:
    """Update and persist the KES per USDT rate. Must be positive."""
    rate = await settings.set(SettingKey.KES_PER_USDT, body.rate)
    return RateResponse(rate=rate)


@router.get("/min-deposit", response_model=MinDepositResponse)
async def get_min_deposit(
    settings: SettingsCache = Depends(get_settings_cache),
) -> MinDepositResponse:
    """Current minimum deposit amount (USDT)."""
    return MinDepositResponse(minDepositAmount=await settings.get_min_deposit())


@router.post("/min-deposit", response_model=MinDepositResponse)
async def update_min_deposit(
    body: MinDepositUpdate,
    settings: SettingsCache = Depends(get_settings_cache),
) -> MinDepositResponse:
    """Update and persist the minimum deposit amount. Must be non-negative."""
    value = await settings.set(SettingKey.MIN_DEPOSIT_AMOUNT, body.minDepositAmount)
    return MinDepositResponse(minDepositAmount=value)


@router.get("/min-withdrawal", response_model=MinWithdrawalResponse)
async def get_min_withdrawal(
    settings: SettingsCache = Depends(get_settings_cache),
) -> MinWithdrawalResponse:
    """Current minimum withdrawal amount (USDT)."""
    return MinWithdrawalResponse(minWithdrawalAmount=await settings.get_min_withdrawal())


@router.post("/min-withdrawal", response_model=MinWithdrawalResponse)
async def update_min_withdrawal(
    body: MinWithdrawalUpdate,
    settings: SettingsCache = Depends(get_settings_cache),
) -> MinWithdrawalResponse:
    """Update and persist the minimum withdrawal amount. Must be positive."""
    value = await settings.set(SettingKey.MIN_WITHDRAWAL_AMOUNT, body.minWithdrawalAmount)
    return MinWithdrawalResponse(minWithdrawalAmount=value)


@router.post(
    "/deposit/txid",
    response_model=DepositVerificationResult,
    response_model_exclude_none=True,
)
async def verify_deposit(
    body: DepositClaimRequest,
    service: DepositService = Depends(get_deposit_service),
) -> DepositVerificationResult:
    """
    Verify a txId with Binance, award KES, and record it so it cannot be used again.

    Already-used, unconfirmed and below-minimum claims answer 200 with
    status "failed" and a reason.
    """
    return await service.verify_tx_id(body.txId)


@router.post(
    "/withdraw",
    response_model=WithdrawalResult,
    response_model_exclude_none=True,
)
async def withdraw(
    body: WithdrawalRequest,
    service: WithdrawalService = Depends(get_withdrawal_service),
) -> WithdrawalResult:
    """
    Withdraw USDT to a TRC20 or Solana address.

    amount defaults to the whole available balance; network is detected
    from the address when omitted.
    """
    return await service.withdraw(
        address=body.address,
        amount=body.amount,
        network=body.network,
    )


@router.get("/debug/deposits", response_model=DebugDepositList)
async def debug_deposits(
    config: Config = Depends(get_config),
    service: DepositService = Depends(get_deposit_service),
):
    """Recent USDT deposit records from Binance. Development only."""
    if not config.is_development:
        return JSONResponse(status_code=404, content={"error": "Not found"})
    try:
        return await service.get_recent_deposits()
    except ExchangeError as e:
        logger.error(f"Debug deposits error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
