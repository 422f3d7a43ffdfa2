"""
Periodic catalog reload using APScheduler.
Each run rebuilds the indexes off the event loop and swaps them in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from geo_suggest.config import ReloadConfig, get_settings
from geo_suggest.exceptions import CatalogLoadError
from geo_suggest.suggest import SuggestionService

logger = logging.getLogger(__name__)

_scheduler: Optional[AsyncIOScheduler] = None


async def reload_job(service: SuggestionService) -> None:
    """Catches load failures so the scheduler keeps running and the old index stays live."""
    try:
        logger.info("Scheduled catalog reload starting...")
        index = await asyncio.to_thread(service.reload)
        logger.info("Scheduled catalog reload completed: %d places", len(index.places))
    except CatalogLoadError as e:
        logger.error("Scheduled catalog reload failed, keeping current index: %s", e)


def create_scheduler(service: SuggestionService, config: Optional[ReloadConfig] = None) -> AsyncIOScheduler:
    global _scheduler
    config = config or get_settings().reload

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        reload_job,
        trigger=IntervalTrigger(minutes=config.interval_minutes),
        args=[service],
        id="geo_suggest_catalog_reload",
        name="Catalog reload",
        replace_existing=True,
        max_instances=1,  # prevent overlapping rebuilds
    )

    logger.info("Scheduler configured: catalog reloads every %d minutes", config.interval_minutes)
    return _scheduler


def start_scheduler(service: SuggestionService, config: Optional[ReloadConfig] = None) -> None:
    """Start the scheduler on the running event loop (non-blocking)."""
    config = config or get_settings().reload
    if not config.enabled:
        logger.info("Catalog reload scheduler disabled via config")
        return

    scheduler = create_scheduler(service, config)
    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
