"""
SQLAlchemy models for storing ranked pair snapshots.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    DateTime,
    Index,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PairSnapshotDB(Base):
    """Latest ranked snapshot of a pair."""

    __tablename__ = "pair_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pair_id = Column(String, nullable=False, unique=True, index=True)
    token0_symbol = Column(String, nullable=True)
    token1_symbol = Column(String, nullable=True)
    volume_usd = Column(Float, nullable=False, default=0.0)
    reserve_usd = Column(Float, nullable=False, default=0.0)
    fees_usd = Column(Float, nullable=True)
    tx_count = Column(Integer, nullable=True)
    volume_ranking = Column(Integer, nullable=False)
    liquidity_ranking = Column(Integer, nullable=False)

    # Timestamps
    inserted_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_volume_ranking", "volume_ranking"),
        Index("idx_liquidity_ranking", "liquidity_ranking"),
    )

    def __repr__(self):
        return (
            f"<PairSnapshotDB(pair_id={self.pair_id}, "
            f"volume_ranking={self.volume_ranking}, "
            f"liquidity_ranking={self.liquidity_ranking})>"
        )
