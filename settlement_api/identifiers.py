"""Transaction id normalization for deposit claims."""

from dataclasses import dataclass
from typing import Any

from settlement_api.errors import InvalidInputError

# Binance reports internal (off-chain) transfers with this prefix in txId
OFF_CHAIN_PREFIX = "Off-chain transfer "


@dataclass(frozen=True)
class TxIdCandidates:
    """
    Canonical and original forms of a claimed transaction id.

    Upstream data may or may not carry the off-chain prefix, so both forms
    are used for duplicate lookups and for matching deposit records.
    """
    canonical: str
    original: str

    @property
    def keys(self) -> tuple[str, ...]:
        """Distinct lookup keys, canonical first."""
        if self.canonical == self.original:
            return (self.canonical,)
        return (self.canonical, self.original)

    def matches(self, upstream_tx_id: Any) -> bool:
        """Check whether an upstream txId refers to this claim."""
        if not isinstance(upstream_tx_id, str):
            return False
        stripped = upstream_tx_id.strip()
        return any(
            upstream_tx_id == key or stripped == key
            for key in self.keys
        )


def normalize_tx_id(raw: Any) -> TxIdCandidates:
    """
    Trim a claimed txId and prepend the off-chain prefix if it is missing.

    Raises:
        InvalidInputError: if the value is not a string or is blank
    """
    if not isinstance(raw, str):
        raise InvalidInputError("txId is required")

    trimmed = raw.strip()
    if not trimmed:
        raise InvalidInputError("txId is required")

    if trimmed.startswith(OFF_CHAIN_PREFIX):
        canonical = trimmed
    else:
        canonical = f"{OFF_CHAIN_PREFIX}{trimmed}"

    return TxIdCandidates(canonical=canonical, original=trimmed)
