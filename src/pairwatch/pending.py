"""
Pending transaction tracking shared across the dashboard.

The store is owned by the `Dashboard` and handed to every consumer that
needs to reflect or mutate in-flight approvals and confirmations.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List

from pairwatch.exceptions import UnknownStageError
from pairwatch.models import PendingTx

logger = logging.getLogger(__name__)

STAGE_APPROVAL = "approval"
STAGE_CONFIRM = "confirm"
STAGES = (STAGE_APPROVAL, STAGE_CONFIRM)

PendingTxListener = Callable[[PendingTx], None]


class PendingTxStore:
    """
    Holds the in-flight transaction ids, partitioned by stage.

    `update()` takes a function of the previous value and is the only way
    to change the store, so two call sites appending in close succession
    both build on the latest value. The store never expires, dedups or
    removes ids on its own: whoever appends an id removes it when the
    transaction settles.
    """

    def __init__(self, initial: PendingTx | None = None) -> None:
        self._value = initial or PendingTx()
        self._listeners: List[PendingTxListener] = []

    @property
    def value(self) -> PendingTx:
        return self._value

    def update(self, updater: Callable[[PendingTx], PendingTx]) -> PendingTx:
        new_value = updater(self._value)
        if not isinstance(new_value, PendingTx):
            raise TypeError(
                f"Pending transaction updater must return PendingTx, got {type(new_value).__name__}"
            )

        self._value = new_value
        for listener in list(self._listeners):
            try:
                listener(new_value)
            except Exception as e:
                logger.error(f"Pending transaction listener failed: {e}", exc_info=True)
        return new_value

    def subscribe(self, listener: PendingTxListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add(self, stage: str, tx_id: str) -> PendingTx:
        _check_stage(stage)
        return self.update(
            lambda prev: prev.model_copy(update={stage: (*getattr(prev, stage), tx_id)})
        )

    def remove(self, stage: str, tx_id: str) -> PendingTx:
        _check_stage(stage)
        return self.update(
            lambda prev: prev.model_copy(
                update={stage: tuple(t for t in getattr(prev, stage) if t != tx_id)}
            )
        )

    def clear(self) -> PendingTx:
        return self.update(lambda prev: PendingTx())

    @contextmanager
    def track(self, stage: str, tx_id: str) -> Iterator[PendingTx]:
        """
        Mark a transaction as pending for the duration of the block.

        ## Example
        ```python
        with store.track("approval", tx_hash):
            await wait_for_receipt(tx_hash)
        ```
        """
        state = self.add(stage, tx_id)
        try:
            yield state
        finally:
            self.remove(stage, tx_id)
            logger.debug(f"Pending {stage} transaction settled: {tx_id}")


def _check_stage(stage: str) -> None:
    if stage not in STAGES:
        raise UnknownStageError(stage)
