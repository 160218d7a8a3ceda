import logging
from typing import Awaitable, Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings

logger = logging.getLogger(__name__)


class TokenExpiryScheduler:
    """Recurring credential-expiry check owned by the session store."""

    JOB_ID = "token_expiry_check"

    def __init__(
        self,
        check: Callable[[], Awaitable[None]],
        interval_seconds: Optional[int] = None
    ):
        self.check = check
        self.interval_seconds = interval_seconds or settings.TOKEN_CHECK_INTERVAL_SECONDS
        self.scheduler = AsyncIOScheduler()

    def start(self):
        """Start (or restart) the check; at most one job ever exists"""
        if not self.scheduler.running:
            self.scheduler.start()
        self.scheduler.add_job(
            self.check,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1
        )
        logger.info(f"Token expiry check scheduled every {self.interval_seconds} seconds")

    def stop(self):
        if self.scheduler.get_job(self.JOB_ID) is not None:
            self.scheduler.remove_job(self.JOB_ID)
            logger.info("Token expiry check stopped")

    @property
    def active(self) -> bool:
        return self.scheduler.get_job(self.JOB_ID) is not None

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
