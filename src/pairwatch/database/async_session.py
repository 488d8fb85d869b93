"""
Async persistence of ranked pair snapshots.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from pairwatch.database.models import Base, PairSnapshotDB
from pairwatch.models import RankedPair

logger = logging.getLogger(__name__)


class AsyncSnapshotStore:
    """Manages async database connections and snapshot operations."""

    def __init__(
        self,
        database_url: str = "sqlite+aiosqlite:///pairwatch.db",
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        """
        Initialize the snapshot store.

        Args:
            database_url: Database connection URL (async driver)
            echo: Whether to log SQL queries
            pool_size: Connection pool size
            max_overflow: Maximum overflow connections
        """
        self.database_url = database_url

        if database_url.startswith("sqlite"):
            # SQLite doesn't support connection pooling well
            self.engine = create_async_engine(
                database_url,
                echo=echo,
                poolclass=NullPool,
            )
        else:
            # PostgreSQL (asyncpg), MySQL (aiomysql), etc.
            self.engine = create_async_engine(
                database_url,
                echo=echo,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
            )

        self.AsyncSessionLocal = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info(f"Snapshot store initialized with URL: {database_url}")

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    async def close(self):
        await self.engine.dispose()
        logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Get an async database session with automatic cleanup.

        Yields:
            AsyncSession instance, committed on success and rolled back on error
        """
        session = self.AsyncSessionLocal()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}", exc_info=True)
            raise
        finally:
            await session.close()

    async def save_snapshot(self, pairs: Iterable[RankedPair]) -> int:
        """
        Upsert a batch of ranked pairs keyed by pair id.

        Args:
            pairs: Ranked pairs from one snapshot

        Returns:
            Number of pairs written
        """
        pairs = list(pairs)
        if not pairs:
            return 0

        async with self.get_session() as session:
            result = await session.execute(
                select(PairSnapshotDB).where(
                    PairSnapshotDB.pair_id.in_([pair.id for pair in pairs])
                )
            )
            existing = {row.pair_id: row for row in result.scalars().all()}

            for pair in pairs:
                row = existing.get(pair.id)
                if row is None:
                    row = PairSnapshotDB(pair_id=pair.id)
                    session.add(row)
                _apply_pair(row, pair)

        logger.info(f"Saved {len(pairs)} pair snapshots to database")
        return len(pairs)

    async def get_snapshot(self, pair_id: str) -> Optional[PairSnapshotDB]:
        async with self.get_session() as session:
            result = await session.execute(
                select(PairSnapshotDB).filter_by(pair_id=pair_id)
            )
            return result.scalar_one_or_none()

    async def get_top_by_volume(self, limit: int = 10) -> List[PairSnapshotDB]:
        async with self.get_session() as session:
            result = await session.execute(
                select(PairSnapshotDB)
                .order_by(PairSnapshotDB.volume_ranking)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def get_statistics(self) -> dict:
        """
        Get database statistics.

        Returns:
            Dictionary with the pair count and combined tracked liquidity
        """
        async with self.get_session() as session:
            total_result = await session.execute(select(func.count(PairSnapshotDB.id)))
            liquidity_result = await session.execute(
                select(func.sum(PairSnapshotDB.reserve_usd))
            )
            return {
                "total_pairs": total_result.scalar() or 0,
                "total_reserve_usd": liquidity_result.scalar() or 0.0,
            }


def _apply_pair(row: PairSnapshotDB, pair: RankedPair) -> None:
    row.token0_symbol = pair.token0.symbol if pair.token0 else None
    row.token1_symbol = pair.token1.symbol if pair.token1 else None
    row.volume_usd = pair.volume_usd
    row.reserve_usd = pair.reserve_usd
    row.fees_usd = pair.estimated_fees_usd
    row.tx_count = pair.tx_count
    row.volume_ranking = pair.volume_ranking
    row.liquidity_ranking = pair.liquidity_ranking


async def get_snapshot_store(
    database_url: str = "sqlite+aiosqlite:///pairwatch.db",
    echo: bool = False,
) -> AsyncSnapshotStore:
    """
    Create a snapshot store and make sure its tables exist.

    Args:
        database_url: Database connection URL (with async driver)
        echo: Whether to log SQL queries

    Returns:
        AsyncSnapshotStore instance
    """
    store = AsyncSnapshotStore(database_url=database_url, echo=echo)
    await store.create_tables()
    return store
