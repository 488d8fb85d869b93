"""
Pair ranking engine.

Pure functions deriving the ranked views the dashboard renders from a raw
pair list. Nothing here performs I/O.
"""

from typing import Dict, Iterable, List

from pairwatch.models import Pair, RankedPair, RankedPairSet


def _positions(pairs: List[Pair]) -> Dict[str, int]:
    positions: Dict[str, int] = {}
    for index, pair in enumerate(pairs):
        positions[pair.id] = index
    return positions


def calculate_pair_rankings(raw_pairs: Iterable[Pair]) -> RankedPairSet:
    """
    Rank pairs by volume and by liquidity.

    ## Parameters
    - `raw_pairs`: Pairs in whatever order the API returned them

    ## Returns
    A `RankedPairSet` where:
    - `pairs` is ordered by `volume_usd` descending
    - `by_liquidity` is ordered by `reserve_usd` descending
    - `lookup` maps every id to its `RankedPair`

    ## Design Notes
    Rankings are 0-based positions. `sorted` is stable, so pairs with equal
    metrics keep their input order and the output is reproducible. When the
    same id appears twice only the first record is ranked.
    """
    unique: List[Pair] = []
    seen = set()
    for pair in raw_pairs:
        if pair.id in seen:
            continue
        seen.add(pair.id)
        unique.append(pair)

    by_volume = sorted(unique, key=lambda p: p.volume_usd, reverse=True)
    by_reserve = sorted(unique, key=lambda p: p.reserve_usd, reverse=True)

    volume_positions = _positions(by_volume)
    liquidity_positions = _positions(by_reserve)

    lookup: Dict[str, RankedPair] = {}
    for pair in unique:
        lookup[pair.id] = RankedPair.model_validate(
            {
                **pair.model_dump(),
                "volume_ranking": volume_positions[pair.id],
                "liquidity_ranking": liquidity_positions[pair.id],
            }
        )

    return RankedPairSet(
        pairs=tuple(lookup[pair.id] for pair in by_volume),
        lookup=lookup,
        by_liquidity=tuple(lookup[pair.id] for pair in by_reserve),
    )
