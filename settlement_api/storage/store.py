"""Durable store for settled txIds and persisted settings."""

import logging
from contextlib import contextmanager
from typing import Generator, Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from settlement_api.errors import StorageError
from settlement_api.models import NewSettlement, SettledClaim
from .database import (
    Base,
    ProcessedTransaction,
    Setting,
    create_database_engine,
    create_session_factory,
)

logger = logging.getLogger(__name__)


class SettlementStore:
    """
    SQLite-backed store.

    The unique index on processed_transactions.txId is what guarantees a
    claim is settled at most once; insert_if_absent relies on it instead of
    locking.

    All methods are blocking. Async callers should run them in a threadpool.
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_database_engine(database_url)
        self._session_factory = create_session_factory(self.engine)

    def create_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Session that rolls back on error and always closes."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error, rolling back: {e}")
            session.rollback()
            raise
        finally:
            session.close()

    def get_by_tx_id(self, tx_id: str) -> Optional[SettledClaim]:
        with self.session_scope() as session:
            row = session.scalars(
                select(ProcessedTransaction).where(ProcessedTransaction.tx_id == tx_id)
            ).first()
            return SettledClaim.model_validate(row) if row is not None else None

    def find_settled(self, tx_ids: Iterable[str]) -> Optional[SettledClaim]:
        """Return the first settled claim found among the candidate txIds."""
        for tx_id in tx_ids:
            existing = self.get_by_tx_id(tx_id)
            if existing is not None:
                return existing
        return None

    def insert_if_absent(self, settlement: NewSettlement) -> tuple[SettledClaim, bool]:
        """
        Insert a settlement unless its txId is already present.

        Returns:
            (claim, created). When another writer got there first, created is
            False and claim is the row that writer stored.
        """
        row = ProcessedTransaction(
            tx_id=settlement.tx_id,
            asset=settlement.asset,
            amount=settlement.amount,
            reward_kes=settlement.reward_kes,
            confirmed_at=settlement.confirmed_at,
        )

        session = self._session_factory()
        try:
            session.add(row)
            session.commit()
            session.refresh(row)
            return SettledClaim.model_validate(row), True
        except IntegrityError:
            session.rollback()
            logger.info(f"txId {settlement.tx_id} was settled concurrently")
        finally:
            session.close()

        existing = self.get_by_tx_id(settlement.tx_id)
        if existing is None:
            raise StorageError(
                f"Insert of {settlement.tx_id} violated a constraint but no row exists"
            )
        return existing, False

    def count_settled(self) -> int:
        with self.session_scope() as session:
            return session.scalar(select(func.count()).select_from(ProcessedTransaction))

    def get_setting(self, key: str) -> Optional[str]:
        with self.session_scope() as session:
            return session.scalar(select(Setting.value).where(Setting.key == key))

    def set_setting(self, key: str, value: str) -> None:
        """Upsert a setting."""
        stmt = sqlite_insert(Setting).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Setting.key],
            set_={"value": stmt.excluded.value},
        )
        with self.session_scope() as session:
            session.execute(stmt)
            session.commit()

    def clear(self) -> tuple[int, int]:
        """
        Delete every settled claim and setting.

        Maintenance only; normal operation never deletes rows.

        Returns:
            (transactions removed, settings removed)
        """
        with self.session_scope() as session:
            tx_count = session.scalar(select(func.count()).select_from(ProcessedTransaction))
            settings_count = session.scalar(select(func.count()).select_from(Setting))
            session.execute(delete(ProcessedTransaction))
            session.execute(delete(Setting))
            session.commit()
        return tx_count, settings_count

    def dispose(self) -> None:
        self.engine.dispose()
