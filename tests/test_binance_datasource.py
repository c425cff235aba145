"""Signed request client against a mocked Binance transport."""

import hashlib
import hmac
from decimal import Decimal
from urllib.parse import parse_qsl

import httpx
import pytest

from settlement_api.config import DEPOSIT_HISTORY_LIMIT, Config
from settlement_api.datasources import BinanceDataSource
from settlement_api.errors import (
    ExchangeAPIError,
    ExchangeResponseError,
    ExchangeUnavailableError,
    NotConfiguredError,
)

API_KEY = "test-key"
API_SECRET = "test-secret"


class RecordingTransport:
    """Collects requests and answers with a canned response."""

    def __init__(self, status_code=200, json=None, exc=None):
        self.status_code = status_code
        self.json = json
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.json)


def make_source(handler, api_key=API_KEY, api_secret=API_SECRET) -> BinanceDataSource:
    return BinanceDataSource(
        api_key=api_key,
        api_secret=api_secret,
        api_url="https://api.binance.test",
        transport=httpx.MockTransport(handler),
    )


def split_signature(request: httpx.Request) -> tuple[str, str]:
    query = request.url.query.decode()
    unsigned, _, signature = query.rpartition("&signature=")
    return unsigned, signature


class TestSigning:

    def test_sign_params_sorts_and_signs(self):
        source = make_source(RecordingTransport())

        signed = source.sign_params({"timestamp": 2, "coin": "USDT", "limit": 1000})

        expected_query = "coin=USDT&limit=1000&timestamp=2"
        expected_signature = hmac.new(
            API_SECRET.encode(), expected_query.encode(), hashlib.sha256
        ).hexdigest()
        assert signed == f"{expected_query}&signature={expected_signature}"

    def test_sign_params_is_deterministic(self):
        source = make_source(RecordingTransport())
        a = source.sign_params({"b": 1, "a": 2})
        b = source.sign_params({"a": 2, "b": 1})
        assert a == b

    def test_values_are_percent_encoded(self):
        source = make_source(RecordingTransport())
        signed = source.sign_params({"address": "a b&c", "amount": Decimal("12.50")})
        assert signed.startswith("address=a%20b%26c&amount=12.50&signature=")

    @pytest.mark.asyncio
    async def test_request_carries_signature_key_and_window(self):
        transport = RecordingTransport(json=[])
        source = make_source(transport)

        await source.get_deposit_history(coin="USDT", limit=1000)
        await source.close()

        request = transport.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/sapi/v1/capital/deposit/hisrec"
        assert request.headers["X-MBX-APIKEY"] == API_KEY

        unsigned, signature = split_signature(request)
        params = dict(parse_qsl(unsigned))
        assert params["coin"] == "USDT"
        assert params["limit"] == "1000"
        assert params["recvWindow"] == "60000"
        assert int(params["timestamp"]) > 0
        assert list(params) == sorted(params)
        assert signature == hmac.new(
            API_SECRET.encode(), unsigned.encode(), hashlib.sha256
        ).hexdigest()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key,secret", [(None, API_SECRET), (API_KEY, None), ("", "")])
    async def test_missing_credentials_fail_before_io(self, key, secret):
        transport = RecordingTransport(json=[])
        source = make_source(transport, api_key=key, api_secret=secret)

        with pytest.raises(NotConfiguredError):
            await source.signed_request("GET", "/api/v3/account")

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_signed_request_returns_response_verbatim(self):
        transport = RecordingTransport(status_code=418, json={"msg": "teapot"})
        source = make_source(transport)

        response = await source.signed_request("GET", "/api/v3/account")

        assert response.status_code == 418
        assert response.json() == {"msg": "teapot"}


class TestDepositHistory:

    @pytest.mark.asyncio
    async def test_parses_records(self):
        transport = RecordingTransport(json=[
            {
                "id": "769800519366885376",
                "amount": "9.00000000",
                "coin": "USDT",
                "network": "TRX",
                "status": 1,
                "txId": "Off-chain transfer 344178838453",
                "insertTime": 1700000000000,
            },
            {"amount": "1", "status": 1},  # no txId: skipped
        ])
        source = make_source(transport)

        records = await source.get_deposit_history(coin="USDT", start_time_ms=1, end_time_ms=2)

        assert len(records) == 1
        assert records[0].tx_id == "Off-chain transfer 344178838453"
        assert records[0].amount == Decimal("9.00000000")
        assert records[0].is_confirmed
        params = dict(parse_qsl(split_signature(transport.requests[0])[0]))
        assert params["startTime"] == "1"
        assert params["endTime"] == "2"

    @pytest.mark.asyncio
    async def test_default_limit_matches_config(self):
        transport = RecordingTransport(json=[])
        source = make_source(transport)

        await source.get_deposit_history(coin="USDT")

        params = dict(parse_qsl(split_signature(transport.requests[0])[0]))
        assert params["limit"] == str(DEPOSIT_HISTORY_LIMIT)
        assert Config().deposit_history_limit == DEPOSIT_HISTORY_LIMIT

    @pytest.mark.asyncio
    async def test_non_list_payload(self):
        source = make_source(RecordingTransport(json={"unexpected": True}))
        with pytest.raises(ExchangeResponseError):
            await source.get_deposit_history(coin="USDT")

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_message(self):
        source = make_source(RecordingTransport(
            status_code=451,
            json={"code": 0, "msg": "Service unavailable from a restricted location"},
        ))

        with pytest.raises(ExchangeAPIError) as exc_info:
            await source.get_deposit_history(coin="USDT")

        assert exc_info.value.status_code == 451
        assert exc_info.value.upstream_message == "Service unavailable from a restricted location"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        transport = RecordingTransport(exc=httpx.ConnectTimeout("timed out"))
        source = make_source(transport)

        with pytest.raises(ExchangeUnavailableError):
            await source.get_deposit_history(coin="USDT")

        # No retries
        assert len(transport.requests) == 1


class TestBalanceAndWithdraw:

    @pytest.mark.asyncio
    async def test_free_usdt_balance(self):
        source = make_source(RecordingTransport(json={"balances": [
            {"asset": "BTC", "free": "1.0", "locked": "0"},
            {"asset": "USDT", "free": "42.50000000", "locked": "3"},
        ]}))
        assert await source.get_asset_balance("USDT") == Decimal("42.50000000")

    @pytest.mark.asyncio
    async def test_missing_asset_is_zero(self):
        source = make_source(RecordingTransport(json={"balances": []}))
        assert await source.get_asset_balance("USDT") == Decimal("0")

    @pytest.mark.asyncio
    async def test_malformed_account(self):
        source = make_source(RecordingTransport(json={"nope": 1}))
        with pytest.raises(ExchangeResponseError):
            await source.get_asset_balance("USDT")

    @pytest.mark.asyncio
    async def test_submit_withdrawal(self):
        transport = RecordingTransport(json={"id": "7213fea8e94b4a5593d507237e5a555b"})
        source = make_source(transport)

        withdrawal_id = await source.submit_withdrawal(
            coin="USDT",
            network="TRX",
            address="TJRyWwFs9wTFGZg3JbrVriFbNfCug5tDeC",
            amount=Decimal("20"),
        )

        assert withdrawal_id == "7213fea8e94b4a5593d507237e5a555b"
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/sapi/v1/capital/withdraw/apply"
        params = dict(parse_qsl(split_signature(request)[0]))
        assert params["amount"] == "20"
        assert params["network"] == "TRX"
        assert params["coin"] == "USDT"

    @pytest.mark.asyncio
    async def test_withdrawal_rejected(self):
        source = make_source(RecordingTransport(
            status_code=400,
            json={"code": -4026, "msg": "Insufficient balance."},
        ))

        with pytest.raises(ExchangeAPIError) as exc_info:
            await source.submit_withdrawal("USDT", "TRX", "T" * 34, Decimal("5"))

        assert exc_info.value.message == "Insufficient balance."
        assert exc_info.value.payload == {"code": -4026, "msg": "Insufficient balance."}
