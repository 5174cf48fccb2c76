"""Scheduler service - runs each schedule tier on its own interval.

Design:
- Monitors belong to one tier (1, 5, 10, 30 or 60 minutes)
- Each tier has one TierScheduler; APScheduler fires its tick every period
- A tick checks every due monitor of the tier concurrently
- Ticks of one tier may overlap (monitors are independent); a backlog of
  missed runs is coalesced into a single run
- Concurrent checks within a tick are capped by a semaphore
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..models import Monitor
from .dispatcher import CheckOutcome, CheckStatus, Dispatcher
from .store import MonitorStore

logger = logging.getLogger(__name__)

# Monitors count as stale once this share of their period has passed.
# 45 seconds for the 1-minute tier leaves room for tick jitter.
STALENESS_RATIO = 0.75


class UnknownTier(LookupError):
    """No tier runs on the requested period."""


@dataclass(frozen=True)
class TierConfig:
    """One schedule tier: how often it ticks and when a monitor counts as due."""
    minutes: int
    staleness: timedelta

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.minutes)

    @classmethod
    def for_minutes(cls, minutes: int) -> "TierConfig":
        return cls(minutes=minutes, staleness=timedelta(minutes=minutes) * STALENESS_RATIO)


TIER_MINUTES = (1, 5, 10, 30, 60)
TIERS: Dict[int, TierConfig] = {m: TierConfig.for_minutes(m) for m in TIER_MINUTES}


@dataclass
class TickSummary:
    """Counts for one tick of one tier."""
    tier: int
    due: int = 0
    recorded: int = 0
    abandoned: int = 0
    failed: int = 0

    def add(self, outcome: CheckOutcome):
        if outcome.status == CheckStatus.RECORDED:
            self.recorded += 1
        elif outcome.status == CheckStatus.ABANDONED:
            self.abandoned += 1
        else:
            self.failed += 1


class TierScheduler:
    """Runs the checks of one tier."""

    def __init__(
        self,
        tier: TierConfig,
        store: MonitorStore,
        dispatcher: Dispatcher,
        max_concurrent_checks: int = 0,
    ):
        self.tier = tier
        self.store = store
        self.dispatcher = dispatcher
        self.max_concurrent_checks = max_concurrent_checks

    async def run_tick(self, now: Optional[datetime] = None) -> TickSummary:
        """Check every due monitor of this tier once.

        Never raises: a failing query or check is logged and counted.
        """
        summary = TickSummary(tier=self.tier.minutes)
        now = now or datetime.utcnow()

        try:
            monitors = await self.store.find_due_monitors(self.tier.minutes, now - self.tier.staleness)
        except Exception:
            logger.exception(f"Tier {self.tier.minutes}m: could not load due monitors")
            return summary

        summary.due = len(monitors)
        if not monitors:
            return summary

        logger.info(f"Tier {self.tier.minutes}m: checking {len(monitors)} due monitor(s)")

        if self.max_concurrent_checks > 0:
            semaphore = asyncio.Semaphore(self.max_concurrent_checks)

            async def check_with_limit(monitor: Monitor):
                async with semaphore:
                    return await self.dispatcher.check_monitor(monitor)

            tasks = [check_with_limit(m) for m in monitors]
        else:
            tasks = [self.dispatcher.check_monitor(m) for m in monitors]

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for monitor, result in zip(monitors, results):
            if isinstance(result, BaseException):
                logger.error(f"Tier {self.tier.minutes}m: check of monitor {monitor.id} crashed: {result!r}")
                summary.failed += 1
            else:
                summary.add(result)

        logger.info(
            f"Tier {self.tier.minutes}m done: {summary.recorded} recorded, "
            f"{summary.abandoned} abandoned, {summary.failed} failed"
        )
        return summary


class SchedulerService:
    """Owns one TierScheduler per tier and the timer that drives them."""

    def __init__(
        self,
        store: MonitorStore,
        dispatcher: Dispatcher,
        tiers: Iterable[TierConfig] = TIERS.values(),
        max_concurrent_checks: int = 0,
        max_overlapping_ticks: int = 1,
    ):
        self.tiers: Dict[int, TierScheduler] = {
            t.minutes: TierScheduler(t, store, dispatcher, max_concurrent_checks)
            for t in tiers
        }
        self.max_overlapping_ticks = max(1, max_overlapping_ticks)
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self):
        """Start one interval job per tier."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        for minutes, tier_scheduler in self.tiers.items():
            self.scheduler.add_job(
                tier_scheduler.run_tick,
                trigger=IntervalTrigger(seconds=tier_scheduler.tier.interval.total_seconds()),
                id=f"tier_{minutes}m",
                replace_existing=True,
                max_instances=self.max_overlapping_ticks,
                coalesce=True,
                misfire_grace_time=int(tier_scheduler.tier.staleness.total_seconds()),
            )

        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (tiers={sorted(self.tiers)}, "
            f"max_overlapping_ticks={self.max_overlapping_ticks})"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def run_tier_now(self, minutes: int) -> TickSummary:
        """Run one tier's tick immediately, outside its timer."""
        tier_scheduler = self.tiers.get(minutes)
        if tier_scheduler is None:
            raise UnknownTier(f"Unknown tier: {minutes} minutes")
        return await tier_scheduler.run_tick()

    @property
    def is_running(self) -> bool:
        """Whether tier jobs are scheduled; false as soon as stop() returns."""
        return self._running

    def known_tiers(self) -> List[int]:
        return sorted(self.tiers)
