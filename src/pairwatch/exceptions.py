"""
Exception hierarchy for pairwatch.

Acquisition failures are never raised: the API client reports them through
``FetchResult.error``. These exceptions cover misuse of the library.
"""


class PairwatchError(Exception):
    """Base class for all pairwatch errors."""


class FeedNotConnectedError(PairwatchError):
    """Raised when a control message is sent while the live feed is down."""


class UnknownStageError(PairwatchError, ValueError):
    """Raised when a pending transaction stage is not approval or confirm."""

    def __init__(self, stage: str):
        super().__init__(f"Unknown pending transaction stage: {stage!r}")
        self.stage = stage


class UnknownTopicError(PairwatchError, ValueError):
    """Raised when a feed handler is registered for a topic with no message model."""

    def __init__(self, topic: str):
        super().__init__(f"No feed message model for topic: {topic!r}")
        self.topic = topic
