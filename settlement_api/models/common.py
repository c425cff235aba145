"""Shared field types."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Decimal in memory, plain JSON number on the wire
JsonDecimal = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]


def to_iso_timestamp(dt: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
