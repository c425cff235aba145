"""Binance signed REST API data source implementation."""

import hashlib
import hmac
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from settlement_api.config import DEPOSIT_HISTORY_LIMIT
from settlement_api.errors import (
    ExchangeAPIError,
    ExchangeResponseError,
    ExchangeUnavailableError,
    NotConfiguredError,
)
from settlement_api.models import DepositRecord
from .base import ExchangeDataSource

logger = logging.getLogger(__name__)

# API constants
MAINNET_API_URL = "https://api.binance.com"
DEPOSIT_HISTORY_PATH = "/sapi/v1/capital/deposit/hisrec"
ACCOUNT_PATH = "/api/v3/account"
WITHDRAW_PATH = "/sapi/v1/capital/withdraw/apply"
API_KEY_HEADER = "X-MBX-APIKEY"
REQUEST_TIMEOUT = 10.0
RECV_WINDOW_MS = 60000


def _format_param(value: Any) -> str:
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


class BinanceDataSource(ExchangeDataSource):
    """
    Data source implementation using Binance signed (USER_DATA) endpoints.

    Every request carries recvWindow and timestamp, is signed with
    HMAC-SHA256 over the sorted query string, and sends the API key header.
    Responses are never retried.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        api_url: str = MAINNET_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        recv_window: int = RECV_WINDOW_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Binance data source.

        Args:
            api_key: Binance API key
            api_secret: Binance API secret used for signing
            api_url: Base URL for the Binance API
            timeout: Per-request timeout in seconds
            recv_window: Allowed clock skew in milliseconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_url = api_url
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.recv_window = recv_window
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def sign_params(self, params: dict[str, Any]) -> str:
        """
        Build the canonical query string and append its signature.

        Keys are sorted ascending and every key and value is percent-encoded,
        so the same parameters always produce the same signed string.
        """
        query = "&".join(
            f"{quote(str(key), safe='')}={quote(_format_param(value), safe='')}"
            for key, value in sorted(params.items())
        )
        signature = hmac.new(
            (self.api_secret or "").encode("utf-8"),
            query.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return f"{query}&signature={signature}"

    async def signed_request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send a signed request and return the raw response.

        Status codes are not interpreted here.

        Raises:
            NotConfiguredError: if the API key or secret is missing (before any I/O)
            ExchangeUnavailableError: if Binance could not be reached
        """
        if not self.is_configured:
            raise NotConfiguredError("Binance API credentials are not configured")

        signed_query = self.sign_params({
            "recvWindow": self.recv_window,
            **(params or {}),
            "timestamp": int(time.time() * 1000),
        })

        client = await self._get_client()
        try:
            return await client.request(
                method,
                f"{path}?{signed_query}",
                headers={API_KEY_HEADER: self.api_key},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise ExchangeUnavailableError(f"Binance request failed: {e}") from e

    async def _request_json(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a signed request and decode the JSON body, raising on non-2xx."""
        response = await self.signed_request(method, path, params)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            logger.error(f"HTTP error {response.status_code} for {path}: {payload}")
            message = None
            if isinstance(payload, dict):
                message = payload.get("msg") or payload.get("message")
            raise ExchangeAPIError(
                message or f"Binance returned HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        if payload is None:
            raise ExchangeResponseError(
                f"Unexpected non-JSON response from {path}",
                status_code=response.status_code,
            )
        return payload

    async def get_deposit_history(
        self,
        coin: str,
        start_time_ms: Optional[int] = None,
        end_time_ms: Optional[int] = None,
        limit: int = DEPOSIT_HISTORY_LIMIT,
    ) -> list[DepositRecord]:
        """
        Retrieve deposit history for a coin.

        Uses GET /sapi/v1/capital/deposit/hisrec. Entries that cannot be
        parsed (e.g. missing txId) are skipped.
        """
        params: dict[str, Any] = {"coin": coin, "limit": limit}
        if start_time_ms:
            params["startTime"] = start_time_ms
        if end_time_ms:
            params["endTime"] = end_time_ms

        data = await self._request_json("GET", DEPOSIT_HISTORY_PATH, params)
        if not isinstance(data, list):
            raise ExchangeResponseError("Unexpected Binance deposit history response format")

        records: list[DepositRecord] = []
        for entry in data:
            try:
                records.append(DepositRecord.model_validate(entry))
            except ValidationError:
                logger.debug(f"Skipping unparseable deposit record: {entry}")
        return records

    async def get_asset_balance(self, asset: str) -> Decimal:
        """Get the free balance of an asset from GET /api/v3/account."""
        account = await self._request_json("GET", ACCOUNT_PATH, {})

        if not isinstance(account, dict) or not isinstance(account.get("balances"), list):
            raise ExchangeResponseError("Unexpected Binance account response format")

        balance = next(
            (b for b in account["balances"] if isinstance(b, dict) and b.get("asset") == asset),
            None,
        )
        if balance is None:
            return Decimal("0")

        try:
            return Decimal(str(balance.get("free") or "0"))
        except InvalidOperation:
            raise ExchangeResponseError(
                f"Unexpected free balance for {asset}: {balance.get('free')!r}"
            ) from None

    async def submit_withdrawal(
        self,
        coin: str,
        network: str,
        address: str,
        amount: Decimal,
    ) -> str:
        """Submit a withdrawal via POST /sapi/v1/capital/withdraw/apply."""
        params = {
            "coin": coin,
            "network": network,
            "address": address,
            "amount": amount,
        }

        result = await self._request_json("POST", WITHDRAW_PATH, params)
        if not isinstance(result, dict) or not result.get("id"):
            raise ExchangeResponseError("Unexpected Binance withdrawal response format")
        return str(result["id"])

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
