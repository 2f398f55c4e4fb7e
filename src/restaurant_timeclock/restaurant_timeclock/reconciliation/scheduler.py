from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_local
from ..core.constants import RECONCILIATION_INTERVAL_MINUTES
from .model import ClockOutNudge
from .service import ReconciliationEngine

logger = logging.getLogger(__name__)

PRESENCE_POLL_SECONDS = 30


class ReconciliationWorker:
    """Runs the reconciliation checks on a background scheduler.

    Two interval jobs: the full check every few minutes and a lighter presence
    poll in between so short absences are still noticed. tick() runs one full
    check synchronously.
    """

    CHECKS_JOB_ID = "reconciliation-checks"
    PRESENCE_JOB_ID = "reconciliation-presence"

    def __init__(
        self,
        engine: ReconciliationEngine,
        *,
        interval_minutes: int = RECONCILIATION_INTERVAL_MINUTES,
        presence_poll_seconds: int = PRESENCE_POLL_SECONDS,
        clock: Callable[[], datetime] = now_local,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self._engine = engine
        self._interval_minutes = int(interval_minutes)
        self._presence_poll_seconds = int(presence_poll_seconds)
        self._clock = clock
        self._scheduler = scheduler or BackgroundScheduler(
            daemon=True,
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
        )

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def start(self) -> None:
        if self.running:
            return
        self._scheduler.add_job(
            self.tick,
            "interval",
            minutes=self._interval_minutes,
            id=self.CHECKS_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.add_job(
            self.poll_presence,
            "interval",
            seconds=self._presence_poll_seconds,
            id=self.PRESENCE_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "reconciliation worker started (checks every %s min, presence every %s s)",
            self._interval_minutes,
            self._presence_poll_seconds,
        )

    def stop(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("reconciliation worker stopped")

    def tick(self, now: Optional[datetime] = None) -> list[ClockOutNudge]:
        now = now or self._clock()
        try:
            nudges = self._engine.run_checks(now)
        except Exception:
            logger.exception("reconciliation checks failed")
            return []
        if nudges:
            logger.info("reconciliation created %s nudge(s)", len(nudges))
        return nudges

    def poll_presence(self, now: Optional[datetime] = None) -> list[ClockOutNudge]:
        now = now or self._clock()
        try:
            return self._engine.monitor_presence(now)
        except Exception:
            logger.exception("presence poll failed")
            return []
