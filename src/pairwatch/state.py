"""
Application state for the dashboard.

One `DashboardState` is owned by each `Dashboard`; views read its slots.
Every slot is replaced wholesale, never mutated field by field.
"""

from typing import List, Optional

from pairwatch.models import AllPairsState, GasPrices, MarketStats, TopPairsSnapshot


class DashboardState:
    def __init__(self) -> None:
        self.all_pairs: AllPairsState = AllPairsState()
        self.top_pairs: Optional[TopPairsSnapshot] = None
        self.market_data: Optional[List[MarketStats]] = None
        self.gas_prices: Optional[GasPrices] = None

        # Acquisition failures from every flow share one slot; the last
        # flow to fail wins
        self.error: Optional[str] = None
        self.error_source: Optional[str] = None

        # Unexpected exceptions, rendered as a full failure view
        self.fatal_error: Optional[str] = None

    def set_error(self, source: str, message: str) -> None:
        self.error = message
        self.error_source = source

    @property
    def has_error(self) -> bool:
        return self.error is not None or self.fatal_error is not None
