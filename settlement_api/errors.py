"""Exception types raised by the settlement service."""

from typing import Any, Optional


class SettlementError(Exception):
    """Base class for all service errors."""


class InvalidInputError(SettlementError):
    """Caller supplied a malformed value. Rejected before any I/O (HTTP 400)."""


class AddressClassificationError(InvalidInputError):
    """Address matches none of the supported network formats."""


class NotConfiguredError(SettlementError):
    """Exchange credentials are missing (HTTP 500)."""


class StorageError(SettlementError):
    """Settlement store is in a state it should never reach (HTTP 500)."""


class ExchangeError(SettlementError):
    """Upstream exchange call failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def upstream_message(self) -> Optional[str]:
        """Message reported by the exchange itself, if it sent one."""
        if isinstance(self.payload, dict):
            return self.payload.get("msg") or self.payload.get("message")
        return None


class ExchangeAPIError(ExchangeError):
    """Exchange answered with a non-2xx status."""


class ExchangeUnavailableError(ExchangeError):
    """Exchange could not be reached (connection error, timeout)."""


class ExchangeResponseError(ExchangeError):
    """Exchange answered 2xx but the payload has an unexpected shape."""
