from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

# Uniswap v2 charges 0.3% on every swap
UNISWAP_FEE_RATE = 0.003


class Token(BaseModel):
    id: str
    symbol: str | None = None
    name: str | None = None
    decimals: int | None = None
    model_config = {"frozen": True, "populate_by_name": True}


class Pair(BaseModel):
    """A pool snapshot as returned by the statistics API."""

    id: str
    token0: Token | None = None
    token1: Token | None = None
    volume_usd: float = Field(0.0, alias="volumeUSD")
    reserve_usd: float = Field(0.0, alias="reserveUSD")
    tracked_reserve_eth: float | None = Field(None, alias="trackedReserveETH")
    token0_price: float | None = Field(None, alias="token0Price")
    token1_price: float | None = Field(None, alias="token1Price")
    tx_count: int | None = Field(None, alias="txCount")
    created_at_timestamp: int | None = Field(None, alias="createdAtTimestamp")
    fees_usd: float | None = Field(None, alias="feesUSD")
    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def pair_readable(self) -> str:
        symbol0 = self.token0.symbol if self.token0 else None
        symbol1 = self.token1.symbol if self.token1 else None
        return f"{symbol0 or '?'}/{symbol1 or '?'}"

    @property
    def estimated_fees_usd(self) -> float:
        if self.fees_usd is not None:
            return self.fees_usd
        return self.volume_usd * UNISWAP_FEE_RATE


class RankedPair(Pair):
    """Pair with its position in the volume and liquidity rankings (0-based)."""

    volume_ranking: int = Field(..., alias="volumeRanking")
    liquidity_ranking: int = Field(..., alias="liquidityRanking")


class RankedPairSet(BaseModel):
    pairs: Tuple[RankedPair, ...] = ()
    lookup: Dict[str, RankedPair] = Field(default_factory=dict)
    by_liquidity: Tuple[RankedPair, ...] = ()
    model_config = {"frozen": True}


class AllPairsState(BaseModel):
    is_loading: bool = True
    pairs: Optional[Tuple[RankedPair, ...]] = None
    lookup: Optional[Dict[str, RankedPair]] = None
    by_liquidity: Optional[Tuple[RankedPair, ...]] = None
    model_config = {"frozen": True}

    @classmethod
    def from_ranked(cls, ranked: RankedPairSet) -> "AllPairsState":
        return cls(
            is_loading=False,
            pairs=ranked.pairs,
            lookup=ranked.lookup,
            by_liquidity=ranked.by_liquidity,
        )


class MarketStats(BaseModel):
    """Aggregate performance record for a pair over a stats window."""

    id: str
    ticker: str | None = None
    volume_usd: float | None = Field(None, alias="volumeUSD")
    liquidity: float | None = None
    fees_usd: float | None = Field(None, alias="feesUSD")
    pct_return: float | None = Field(None, alias="pctReturn")
    impermanent_loss: float | None = Field(None, alias="impermanentLoss")
    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}


class TopPairsSnapshot(BaseModel):
    daily: Tuple[MarketStats, ...] = ()
    weekly: Tuple[MarketStats, ...] = ()
    model_config = {"frozen": True}


class GasPrices(BaseModel):
    standard: float
    fast: float
    faster: float
    model_config = {"frozen": True}


class PendingTx(BaseModel):
    approval: Tuple[str, ...] = ()
    confirm: Tuple[str, ...] = ()
    model_config = {"frozen": True}


class PrefetchedPair(BaseModel):
    is_loading: bool = True
    error: str | None = None
    overview: Pair | None = None

