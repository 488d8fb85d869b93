"""
Configuration for the pairwatch dashboard.
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# WETH/DAI is always shown and prefetched, whatever the rankings say
DEFAULT_PINNED_PAIR_ID = "0xa478c2975ab1ea89e8196811f51a7b7ade33eb11"

DEFAULT_STATS_API_URL = "http://localhost:3001/api/v1"
DEFAULT_WS_API_URL = "ws://localhost:3001/realtime"

# How many daily and weekly top performers get warmed on startup
PREFETCH_TOP_N = 10

GAS_PRICES_TOPIC = "ethGas:getGasPrices"


class Settings(BaseModel):
    stats_api_url: str = DEFAULT_STATS_API_URL
    ws_api_url: str = DEFAULT_WS_API_URL
    pinned_pair_id: str = DEFAULT_PINNED_PAIR_ID
    prefetch_top_n: int = Field(PREFETCH_TOP_N, ge=0)
    database_url: Optional[str] = None
    echo_sql: bool = False
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    log_file: str = "pairwatch.log"
    model_config = {"frozen": True}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    ## Parameters
    - `environ`: Mapping to read from (default: `os.environ` after loading `.env`)

    ## Environment Variables
    - `STATS_API_URL`: Base URL of the statistics REST API
    - `WS_API_URL`: Live feed websocket endpoint
    - `PINNED_PAIR_ID`: Reference pair that is always prefetched
    - `PREFETCH_TOP_N`: Daily/weekly top performers to warm (default: 10)
    - `DATABASE_URL`: Snapshot database, persistence disabled when unset
    - `ECHO_SQL`: Enable SQL query logging (default: false)
    - `TELEGRAM_BOT_TOKEN`, `TELEGRAM_CHAT_ID`: Operator notifications
    - `LOG_FILE`: Rotating warning log path

    ## Raises
    - `pydantic.ValidationError` if a value cannot be parsed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    values = {
        "stats_api_url": environ.get("STATS_API_URL"),
        "ws_api_url": environ.get("WS_API_URL"),
        "pinned_pair_id": environ.get("PINNED_PAIR_ID"),
        "prefetch_top_n": environ.get("PREFETCH_TOP_N"),
        "database_url": environ.get("DATABASE_URL"),
        "echo_sql": environ.get("ECHO_SQL"),
        "telegram_bot_token": environ.get("TELEGRAM_BOT_TOKEN"),
        "telegram_chat_id": environ.get("TELEGRAM_CHAT_ID"),
        "log_file": environ.get("LOG_FILE"),
    }
    # Unset variables fall back to the model defaults
    return Settings(**{key: value for key, value in values.items() if value})
