"""Application configuration."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Most deposit records Binance returns per history request
DEPOSIT_HISTORY_LIMIT = 1000


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # API settings
    host: str = "0.0.0.0"
    port: int = 4000
    environment: str = "production"

    # Binance API
    binance_api_url: str = "https://api.binance.com"
    binance_api_key: Optional[str] = None
    binance_api_secret: Optional[str] = None
    binance_timeout: float = 10.0
    # Leeway for small clock drift between us and Binance
    binance_recv_window: int = 60000
    deposit_history_limit: int = DEPOSIT_HISTORY_LIMIT

    # Settlement store
    sqlite_db_path: str = "data.db"

    log_level: str = "INFO"

    # Defaults seeded into the settings table on first access.
    # Kept as strings so the settings cache decides what is valid.
    kes_per_usdt: str = "150"
    min_deposit_amount: str = "0"
    min_withdrawal_amount: str = "10"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def has_credentials(self) -> bool:
        return bool(self.binance_api_key and self.binance_api_secret)

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.sqlite_db_path}"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables (and a local .env file)."""
        load_dotenv()
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "4000")),
            environment=os.getenv("APP_ENV", "production"),
            binance_api_url=os.getenv(
                "BINANCE_API_URL",
                "https://api.binance.com"
            ),
            binance_api_key=os.getenv("BINANCE_API_KEY") or None,
            binance_api_secret=os.getenv("BINANCE_API_SECRET") or None,
            binance_timeout=float(os.getenv("BINANCE_TIMEOUT", "10")),
            binance_recv_window=int(os.getenv("BINANCE_RECV_WINDOW", "60000")),
            deposit_history_limit=int(
                os.getenv("DEPOSIT_HISTORY_LIMIT", str(DEPOSIT_HISTORY_LIMIT))
            ),
            sqlite_db_path=os.getenv("SQLITE_DB_PATH", "data.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            kes_per_usdt=os.getenv("KES_PER_USDT", "150"),
            min_deposit_amount=os.getenv("MIN_DEPOSIT_AMOUNT", "0"),
            min_withdrawal_amount=os.getenv("MIN_WITHDRAWAL_AMOUNT", "10"),
        )
