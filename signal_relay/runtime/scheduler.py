"""Fixed-interval relay scheduling."""

from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from signal_relay.core.logging import system_logger
from signal_relay.runtime.cycle import RelayCycle

JOB_ID = "relay_cycle"


class RelayScheduler:
    """Runs RelayCycle every ``interval_minutes``; never two runs at once."""

    def __init__(self, cycle: RelayCycle, interval_minutes: int = 5, scheduler: AsyncIOScheduler = None):
        self.cycle = cycle
        self.interval_minutes = interval_minutes
        self.scheduler = scheduler or AsyncIOScheduler()
        self.running = False

    async def _run_cycle(self):
        try:
            await self.cycle.run_once()
        except Exception as e:
            system_logger.error(f"Relay cycle failed: {e}", exc_info=True)

    def start(self, run_immediately: bool = True):
        extra = {}
        if run_immediately:
            # next_run_time=None would add the job paused; omit it instead
            extra["next_run_time"] = datetime.now()
        self.scheduler.add_job(
            self._run_cycle,
            IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name=f"Relay cycle every {self.interval_minutes} min",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **extra,
        )
        self.scheduler.start()
        self.running = True
        system_logger.info("Relay scheduler started", {"interval_minutes": self.interval_minutes})

    def stop(self):
        if self.running:
            self.scheduler.shutdown(wait=False)
            self.running = False
            system_logger.info("Relay scheduler stopped")
