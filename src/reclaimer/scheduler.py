import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from src.reclaimer.policy.cooldown import CooldownLedger
from src.reclaimer.scanner import ScanReport, Scanner

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class Scheduler:
    """
    Runs a scan pass every `interval` seconds, measured from the start of
    each pass. A pass that overruns the interval is followed immediately by
    the next one.

    Give either `cooldown`, for a fresh ledger, or an existing `ledger`.

    `stop()` only flips a flag, so it is safe to call from a signal handler.
    The wait between passes checks it at least every `stop_poll` seconds; a
    running pass always completes. ParentNotFound escapes `run()`.
    """

    def __init__(
        self,
        scanner: Scanner,
        interval: float,
        cooldown: Optional[float] = None,
        ledger: Optional[CooldownLedger] = None,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
        stop_poll: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        if (cooldown is None) == (ledger is None):
            raise ValueError("pass exactly one of cooldown or ledger")
        if stop_poll <= 0:
            raise ValueError("stop_poll must be > 0")
        self.scanner = scanner
        self.interval = interval
        self.ledger = ledger if ledger is not None else CooldownLedger(cooldown)
        self.clock = clock
        self.stop_poll = stop_poll
        self.state = SchedulerState.IDLE
        self.passes = 0
        self._stop_requested = False
        # only ever waited on here; set() is left to callers outside signal handlers
        self._sleeper = stop_event or threading.Event()

    def run_once(self) -> ScanReport:
        self.state = SchedulerState.SCANNING
        try:
            return self.scanner.scan(self.ledger)
        finally:
            self.state = SchedulerState.IDLE
            self.passes += 1

    def run(self) -> None:
        while not self.stopped:
            started = self.clock()
            self.run_once()
            elapsed = self.clock() - started
            if elapsed > self.interval:
                logger.warning(
                    f"Reclaim loop took {elapsed * 1000:.0f}ms, longer than interval {self.interval * 1000:.0f}ms"
                )
                continue
            self._wait_until(started + self.interval)

    def _wait_until(self, deadline: float) -> None:
        while not self.stopped:
            remaining = deadline - self.clock()
            if remaining <= 0:
                return
            self._sleeper.wait(min(remaining, self.stop_poll))

    def stop(self) -> None:
        self._stop_requested = True

    @property
    def stopped(self) -> bool:
        return self._stop_requested or self._sleeper.is_set()
