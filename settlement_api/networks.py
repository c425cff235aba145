"""Withdrawal network detection from address format."""

import re
from enum import Enum
from typing import Any

from settlement_api.errors import AddressClassificationError, InvalidInputError


class Network(str, Enum):
    """Binance network codes supported for USDT withdrawals."""
    TRX = "TRX"  # TRC20
    SOL = "SOL"  # Solana


# TRC20: starts with T, 34 chars
TRC20_ADDRESS = re.compile(r"^T[A-Za-z1-9]{33}$")
# Solana: base58, 32-44 chars
SOLANA_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

# Real TRC20 addresses are base58 too and also fit the Solana pattern,
# so TRC20 is checked first.
_ADDRESS_PATTERNS = (
    (Network.TRX, TRC20_ADDRESS),
    (Network.SOL, SOLANA_ADDRESS),
)


def classify_address(address: str) -> Network:
    """
    Detect the withdrawal network from the shape of an address.

    Raises:
        AddressClassificationError: if the address fits no supported network
    """
    for network, pattern in _ADDRESS_PATTERNS:
        if pattern.match(address):
            return network

    raise AddressClassificationError(
        "Invalid address format. Supported networks: TRC20 (starts with T, 34 chars) "
        "or Solana (32-44 base58 chars)"
    )


def parse_network(value: Any) -> Network:
    """Validate an explicitly requested network code."""
    try:
        return Network(value)
    except ValueError:
        raise InvalidInputError("network must be 'TRX' (TRC20) or 'SOL' (Solana)") from None
