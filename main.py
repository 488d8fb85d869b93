"""
Main entry point for the pairwatch dashboard backend.

Bootstraps pair rankings, top performers and market data from the
statistics API, then follows the live gas-price feed until interrupted.
"""

import asyncio
import logging

from pairwatch.api.client import StatsApiClient
from pairwatch.config import load_settings
from pairwatch.dashboard import Dashboard
from pairwatch.database import get_snapshot_store
from pairwatch.feed import LiveFeedClient
from pairwatch.logging_config import setup_logging
from pairwatch.notifications import TelegramNotifier

settings = load_settings()

logger = setup_logging(settings.log_file)


async def main() -> None:
    """
    Main entry point for the dashboard backend.

    ## Initialization
    1. Open the snapshot database when `DATABASE_URL` is set
    2. Build the API client, notifier and live feed
    3. Run the dashboard (bootstrap flows + live feed)

    ## Error Handling
    - KeyboardInterrupt: graceful shutdown logging
    - Other exceptions: logged with full traceback and re-raised
    - Finally block: releases HTTP, database and Telegram resources
    """
    logger.info("=== Pairwatch Starting ===")

    snapshot_store = None
    if settings.database_url:
        logger.info(f"Initializing database: {settings.database_url}")
        snapshot_store = await get_snapshot_store(
            database_url=settings.database_url, echo=settings.echo_sql
        )
        stats = await snapshot_store.get_statistics()
        logger.info(f"Database ready: {stats['total_pairs']} existing pair snapshots")

    notifier = TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id)
    client = StatsApiClient(settings.stats_api_url)
    feed = LiveFeedClient(settings.ws_api_url, notifier=notifier)

    dashboard = Dashboard(
        settings,
        client,
        feed=feed,
        notifier=notifier,
        snapshot_store=snapshot_store,
    )

    try:
        await dashboard.run()
    except Exception as e:
        logger.error(f"Fatal error in main loop: {e}", exc_info=True)
        raise
    finally:
        await client.close()
        await notifier.close()
        if snapshot_store is not None:
            await snapshot_store.close()
        logger.info("=== Pairwatch Stopped ===")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.getLogger("pairwatch").info("✅ Shutdown completed gracefully")
