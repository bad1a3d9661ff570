"""Executable worker for notifications outbox processing."""

from __future__ import annotations

import asyncio
import logging
import os

from sqlalchemy.exc import SQLAlchemyError

from musicmentor.core.database import SessionLocal
from musicmentor.modules.notifications.outbox_worker import NotificationsOutboxWorker
from musicmentor.modules.notifications.repository import NotificationsRepository
from musicmentor.modules.notifications.service import NotificationsService
from musicmentor.modules.outbox.repository import OutboxRepository

logger = logging.getLogger(__name__)


async def run_cycle() -> dict[str, int]:
    """Run a single outbox processing cycle in one DB transaction."""
    async with SessionLocal() as session:
        worker = NotificationsOutboxWorker(
            outbox_repository=OutboxRepository(session),
            notifications_service=NotificationsService(NotificationsRepository(session)),
            batch_size=int(os.getenv("OUTBOX_WORKER_BATCH_SIZE", "100")),
            max_retries=int(os.getenv("OUTBOX_WORKER_MAX_RETRIES", "5")),
            base_backoff_seconds=int(os.getenv("OUTBOX_WORKER_BASE_BACKOFF_SECONDS", "30")),
            max_backoff_seconds=int(os.getenv("OUTBOX_WORKER_MAX_BACKOFF_SECONDS", "300")),
        )
        stats = await worker.run_once()
        await session.commit()
        return stats


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    logging.basicConfig(level=os.getenv("OUTBOX_WORKER_LOG_LEVEL", "INFO"))
    mode = os.getenv("OUTBOX_WORKER_MODE", "once").strip().lower()
    poll_seconds = int(os.getenv("OUTBOX_WORKER_POLL_SECONDS", "10"))

    if mode == "once":
        stats = await run_cycle()
        logger.info("Outbox notifications worker stats: %s", stats)
        return

    while True:
        try:
            stats = await run_cycle()
            logger.info("Outbox notifications worker stats: %s", stats)
        except (SQLAlchemyError, OSError):
            logger.exception("Outbox notifications worker cycle failed")
        await asyncio.sleep(poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())
