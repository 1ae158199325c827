"""Factory for the aggregator quote fetcher.

Creates the real LI.FI client unless dry-run mode is enabled, in which case a
simulated fetcher is returned.
"""

import logging
from typing import Optional

import httpx

from arbroute.config import Settings, get_settings
from arbroute.routing.base import QuoteFetcher

logger = logging.getLogger(__name__)


def create_quote_fetcher(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> QuoteFetcher:
    """Create the aggregator quote fetcher.

    Args:
        settings: Settings to use (cached settings if not provided)
        client: Shared HTTP client for the real fetcher
    """
    settings = settings or get_settings()

    if not settings.dry_run:
        from arbroute.routing.lifi import LifiQuoteClient

        logger.info(f"Using LI.FI quote fetcher at {settings.lifi_api_url}")
        return LifiQuoteClient(
            api_url=settings.lifi_api_url,
            api_key=settings.lifi_api_key,
            integrator=settings.lifi_integrator,
            timeout=settings.quote_timeout_seconds,
            client=client,
        )

    from arbroute.routing.dry_run import SimulatedAggregator

    logger.info("Dry-run mode: using simulated aggregator quotes")
    return SimulatedAggregator()
