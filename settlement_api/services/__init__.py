from .settings_service import SettingsCache, SettingKey
from .deposit_service import DepositService
from .withdrawal_service import WithdrawalService

__all__ = [
    "SettingsCache",
    "SettingKey",
    "DepositService",
    "WithdrawalService",
]
