from .base import ExchangeDataSource
from .binance import BinanceDataSource

__all__ = ["ExchangeDataSource", "BinanceDataSource"]
