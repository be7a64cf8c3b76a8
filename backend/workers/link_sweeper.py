"""Background sweeper for dead share links.

Periodically deletes links that expired (or were revoked) more than
``SHARE_SWEEP_GRACE_HOURS`` ago. Redemption never depends on this running;
an unswept expired row still redeems as expired.
"""

import asyncio
import logging
from datetime import timedelta

from config import settings
from models.base import async_session_factory, utcnow
from sharing.store import SqlLinkStore

logger = logging.getLogger(__name__)

_sweeper_task: asyncio.Task | None = None


async def _run_sweep_cycle(grace_hours: int | None = None) -> int:
    """Run one sweep. Returns the number of links deleted."""
    if grace_hours is None:
        grace_hours = settings.share_sweep_grace_hours
    cutoff = utcnow() - timedelta(hours=grace_hours)

    async with async_session_factory() as db:
        deleted = await SqlLinkStore(db).delete_expired(before=cutoff)

    if deleted > 0:
        logger.info("Link sweep complete: %d dead share links deleted (cutoff %s)", deleted, cutoff.isoformat())
    return deleted


async def _sweeper_loop(interval_seconds: int):
    """Background loop that runs the sweep periodically."""
    while True:
        try:
            await _run_sweep_cycle()
        except Exception as e:
            logger.error(f"Link sweep cycle error: {e}")
        await asyncio.sleep(interval_seconds)


def start_sweeper() -> asyncio.Task | None:
    """Start the background sweeper as an async task (disabled when the interval is 0)."""
    global _sweeper_task
    interval = settings.share_sweep_interval_seconds
    if interval <= 0:
        logger.info("Share link sweeper disabled")
        return None
    _sweeper_task = asyncio.get_running_loop().create_task(_sweeper_loop(interval))
    logger.info("Share link sweeper scheduled every %ds", interval)
    return _sweeper_task


async def stop_sweeper() -> None:
    global _sweeper_task
    if _sweeper_task is None:
        return
    _sweeper_task.cancel()
    try:
        await _sweeper_task
    except asyncio.CancelledError:
        pass
    _sweeper_task = None
