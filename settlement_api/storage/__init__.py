from .database import Base, ProcessedTransaction, Setting
from .store import SettlementStore

__all__ = [
    "Base",
    "ProcessedTransaction",
    "Setting",
    "SettlementStore",
]
