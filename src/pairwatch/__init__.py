from pairwatch.api.client import FetchResult, StatsApiClient
from pairwatch.dashboard import Dashboard
from pairwatch.feed._client import LiveFeedClient
from pairwatch.pending import PendingTxStore

__version__ = "0.1.0"
__all__ = [
    "Dashboard",
    "FetchResult",
    "LiveFeedClient",
    "PendingTxStore",
    "StatsApiClient",
    "__version__",
]
