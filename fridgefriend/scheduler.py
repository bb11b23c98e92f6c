"""Scheduled expiry watch over the stored inventory."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date

from .expiry import format_expiry, remaining_days

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryAlert:
    item_id: int
    product_name: str
    quantity: int
    expiry_date: date
    remaining_days: int

    @property
    def formatted_expiry(self) -> str:
        return format_expiry(self.expiry_date)

    def describe(self) -> str:
        if self.remaining_days < 0:
            return (
                f"{self.product_name} x{self.quantity} expired on "
                f"{self.formatted_expiry}"
            )
        return (
            f"{self.product_name} x{self.quantity} expires on "
            f"{self.formatted_expiry} ({self.remaining_days} day(s) left)"
        )


Notifier = Callable[[ExpiryAlert], "Awaitable[None] | None"]


def _log_alert(alert: ExpiryAlert) -> None:
    logger.warning("Expiry alert: %s", alert.describe())


class ExpiryWatchScheduler:
    """Manages scheduled jobs that keep an eye on expiry dates.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config, notifier: Notifier | None = None) -> None:
        """Initialize scheduler with a FridgeConfig.

        Args:
            config: FridgeConfig instance.
            notifier: Called once per alert; sync or async. Defaults to
                logging the alert.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install apscheduler"
            )

        self._config = config
        self._notifier = notifier or _log_alert
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        trigger = self._parse_cron(self._config.watch.alert_schedule)
        self._scheduler.add_job(
            self._job_expiry_alerts,
            trigger=trigger,
            id="expiry_alerts",
            name="Expiring-soon alerts",
            replace_existing=True,
        )
        logger.info(
            "Registered expiry alert job: %s", self._config.watch.alert_schedule
        )

        # Expire old items (daily at midnight)
        trigger = self._parse_cron("0 0 * * *")
        self._scheduler.add_job(
            self._job_expire_items,
            trigger=trigger,
            id="expire_items",
            name="Expired item check",
            replace_existing=True,
        )
        logger.info("Registered expired item job: 0 0 * * *")

    def start(self) -> None:
        """Start the scheduler."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def check_expiring(self, today: date | None = None) -> list[ExpiryAlert]:
        """Notify about every item expiring within the alert window."""
        from .db import InventoryDB

        today = today or date.today()
        db = InventoryDB(self._config.database.path)
        try:
            rows = db.get_expiring_soon(
                owner=self._config.database.owner,
                days=self._config.watch.alert_days,
                today=today,
            )
        finally:
            db.close()

        alerts: list[ExpiryAlert] = []
        for row in rows:
            expiry_date = date.fromisoformat(row["expiry_date"])
            alert = ExpiryAlert(
                item_id=row["id"],
                product_name=row["product_name"],
                quantity=row["quantity"],
                expiry_date=expiry_date,
                remaining_days=remaining_days(expiry_date, today),
            )
            result = self._notifier(alert)
            if inspect.isawaitable(result):
                await result
            alerts.append(alert)
        return alerts

    async def _job_expiry_alerts(self) -> None:
        logger.info("Checking for expiring items...")
        try:
            alerts = await self.check_expiring()
            if alerts:
                logger.info("Sent %d expiry alert(s)", len(alerts))
        except Exception:
            logger.exception("Expiry alert job failed")

    async def _job_expire_items(self) -> None:
        """Mark expired items in the inventory."""
        logger.info("Checking for expired items...")

        try:
            from .db import InventoryDB

            db = InventoryDB(self._config.database.path)
            try:
                count = db.mark_expired()
                if count > 0:
                    logger.info("Marked %d item(s) as expired", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Expired item job failed")
