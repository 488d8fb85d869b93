from pairwatch.feed._client import ConnectionState, LiveFeedClient
from pairwatch.feed.messages import (
    FeedMessage,
    GasPricesMessage,
    UnknownFeedMessage,
    decode_feed_message,
)

__all__ = [
    "ConnectionState",
    "LiveFeedClient",
    "FeedMessage",
    "GasPricesMessage",
    "UnknownFeedMessage",
    "decode_feed_message",
]
