"""FastAPI dependencies for dependency injection."""

from dataclasses import dataclass

from settlement_api.config import Config
from settlement_api.services import DepositService, SettingsCache, WithdrawalService


@dataclass
class ServiceContainer:
    """Services shared by every request."""
    config: Config
    settings: SettingsCache
    deposits: DepositService
    withdrawals: WithdrawalService


# Global container - initialized at app startup
_services: ServiceContainer | None = None


def set_services(services: ServiceContainer | None) -> None:
    """Set the global service container."""
    global _services
    _services = services


def get_services() -> ServiceContainer:
    """Get the global service container."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call set_services() first.")
    return _services


def get_config() -> Config:
    return get_services().config


def get_settings_cache() -> SettingsCache:
    return get_services().settings


def get_deposit_service() -> DepositService:
    return get_services().deposits


def get_withdrawal_service() -> WithdrawalService:
    return get_services().withdrawals
