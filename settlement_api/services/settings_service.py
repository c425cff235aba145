"""Settings cache: in-memory mirror of the persisted tunables."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Optional

from starlette.concurrency import run_in_threadpool

from settlement_api.config import Config
from settlement_api.errors import InvalidInputError
from settlement_api.storage import SettlementStore

logger = logging.getLogger(__name__)

# Bounds for user-supplied amounts and rates
MAX_INTEGER_DIGITS = 15
MAX_DECIMAL_PLACES = 18


class SettingKey(str, Enum):
    """Keys of the settings table."""
    KES_PER_USDT = "KES_PER_USDT"
    MIN_DEPOSIT_AMOUNT = "MIN_DEPOSIT_AMOUNT"
    MIN_WITHDRAWAL_AMOUNT = "MIN_WITHDRAWAL_AMOUNT"


@dataclass(frozen=True)
class SettingRule:
    is_valid: Callable[[Decimal], bool]
    error: str
    fallback: Decimal


SETTING_RULES: dict[SettingKey, SettingRule] = {
    SettingKey.KES_PER_USDT: SettingRule(
        is_valid=lambda n: n > 0,
        error="rate must be a positive number",
        fallback=Decimal("150"),
    ),
    SettingKey.MIN_DEPOSIT_AMOUNT: SettingRule(
        is_valid=lambda n: n >= 0,
        error="minDepositAmount must be a non-negative number",
        fallback=Decimal("0"),
    ),
    SettingKey.MIN_WITHDRAWAL_AMOUNT: SettingRule(
        is_valid=lambda n: n > 0,
        error="minWithdrawalAmount must be a positive number",
        fallback=Decimal("10"),
    ),
}


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Parse a finite number from an int, float, Decimal or numeric string.

    Returns None for anything else (including booleans, NaN and infinity),
    and for values outside what an amount or rate can carry: more than
    MAX_INTEGER_DIGITS digits before the point or more than
    MAX_DECIMAL_PLACES after it. Such values would not survive the
    float conversion on the wire.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, Decimal, str)):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    if number.adjusted() >= MAX_INTEGER_DIGITS:
        return None
    if number.as_tuple().exponent < -MAX_DECIMAL_PLACES:
        return None
    return number


class SettingsCache:
    """
    Read-through / write-through cache of the tunables.

    get() hydrates a key from the store on first access, seeding the
    configured default (and persisting it) when the store has no valid
    value. set() persists before updating memory, so a value is never
    served that a restart would lose.
    """

    def __init__(self, store: SettlementStore, config: Config):
        self.store = store
        self._defaults = {
            SettingKey.KES_PER_USDT: config.kes_per_usdt,
            SettingKey.MIN_DEPOSIT_AMOUNT: config.min_deposit_amount,
            SettingKey.MIN_WITHDRAWAL_AMOUNT: config.min_withdrawal_amount,
        }
        self._values: dict[SettingKey, Decimal] = {}

    def _default_for(self, key: SettingKey) -> Decimal:
        rule = SETTING_RULES[key]
        configured = parse_number(self._defaults[key])
        if configured is not None and rule.is_valid(configured):
            return configured
        logger.warning(
            f"Configured default for {key.value} ({self._defaults[key]!r}) is invalid, "
            f"using {rule.fallback}"
        )
        return rule.fallback

    def _load(self, key: SettingKey) -> Decimal:
        """Blocking: read a key from the store, seeding the default if needed."""
        rule = SETTING_RULES[key]
        stored = parse_number(self.store.get_setting(key.value))
        if stored is not None and rule.is_valid(stored):
            return stored

        initial = self._default_for(key)
        self.store.set_setting(key.value, format(initial, "f"))
        logger.info(f"Seeded setting {key.value}={initial}")
        return initial

    async def get(self, key: SettingKey) -> Decimal:
        value = self._values.get(key)
        if value is None:
            value = await run_in_threadpool(self._load, key)
            self._values.setdefault(key, value)
            value = self._values[key]
        return value

    async def hydrate(self) -> None:
        """Load every key from the store (called at startup)."""
        for key in SettingKey:
            await self.get(key)

    async def set(self, key: SettingKey, value: Any) -> Decimal:
        """
        Validate and persist a new value.

        Raises:
            InvalidInputError: if the value breaks the key's rule
        """
        rule = SETTING_RULES[key]
        number = parse_number(value)
        if number is None or not rule.is_valid(number):
            raise InvalidInputError(rule.error)

        await run_in_threadpool(self.store.set_setting, key.value, format(number, "f"))
        self._values[key] = number
        logger.info(f"Updated setting {key.value}={number}")
        return number

    async def get_rate(self) -> Decimal:
        return await self.get(SettingKey.KES_PER_USDT)

    async def get_min_deposit(self) -> Decimal:
        return await self.get(SettingKey.MIN_DEPOSIT_AMOUNT)

    async def get_min_withdrawal(self) -> Decimal:
        return await self.get(SettingKey.MIN_WITHDRAWAL_AMOUNT)
