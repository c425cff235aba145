"""Shared fixtures: a fake exchange, a temporary SQLite store and wired services."""

import pytest

from settlement_api.config import Config
from settlement_api.services import DepositService, SettingsCache, WithdrawalService
from settlement_api.storage import SettlementStore

from tests.helpers import FakeExchange


@pytest.fixture
def config(tmp_path):
    return Config(
        sqlite_db_path=str(tmp_path / "settlement.db"),
        binance_api_key="test-key",
        binance_api_secret="test-secret",
        environment="test",
    )


@pytest.fixture
def store(config):
    store = SettlementStore(config.database_url)
    store.create_schema()
    yield store
    store.dispose()


@pytest.fixture
def exchange():
    return FakeExchange()


@pytest.fixture
def settings(store, config):
    return SettingsCache(store, config)


@pytest.fixture
def deposit_service(exchange, store, settings):
    return DepositService(exchange, store, settings)


@pytest.fixture
def withdrawal_service(exchange, settings):
    return WithdrawalService(exchange, settings)
