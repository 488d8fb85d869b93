from pairwatch.api.client import FetchResult, StatsApiClient

__all__ = ["FetchResult", "StatsApiClient"]
