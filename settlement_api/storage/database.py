"""
SQLAlchemy engine, declarative base and table definitions.

Two tables:
- processed_transactions: one row per settled txId (unique)
- settings: key/value tunables
"""

import logging
from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

logger = logging.getLogger(__name__)

Base = declarative_base()


class DecimalText(TypeDecorator):
    """Store Decimal as text so amounts round-trip exactly on SQLite."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return format(Decimal(value), "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class ProcessedTransaction(Base):
    """A txId that has already been rewarded."""
    __tablename__ = "processed_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_id = Column("txId", Text, nullable=False, unique=True, index=True)
    asset = Column(Text, nullable=False)
    amount = Column(DecimalText, nullable=False)
    reward_kes = Column("rewardKes", DecimalText, nullable=False)
    confirmed_at = Column("confirmedAt", Text, nullable=False)
    created_at = Column("createdAt", DateTime, nullable=False, server_default=func.now())


class Setting(Base):
    """Persisted tunable (rate, thresholds)."""
    __tablename__ = "settings"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)


def create_database_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine.

    SQLite connections are shared with the threadpool that runs store
    calls, so same-thread checking is disabled.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
