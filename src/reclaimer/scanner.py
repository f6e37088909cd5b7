import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from shared.schemas.cgroup_schema import CgroupId
from src.reclaimer.cgroups.cgroup_reader import CgroupReader
from src.reclaimer.cgroups.discoverer import Discoverer
from src.reclaimer.cgroups.reclaim_trigger import ReclaimTrigger
from src.reclaimer.errors import CgroupError, CgroupVanished, StatParseError
from src.reclaimer.policy.cooldown import CooldownLedger
from src.reclaimer.policy.threshold import ThresholdSpec

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    discovered: int = 0
    over_threshold: int = 0
    cooling_down: int = 0
    failed: int = 0
    reclaimed: List[CgroupId] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"discovered={self.discovered} over_threshold={self.over_threshold} "
            f"reclaimed={len(self.reclaimed)} cooling_down={self.cooling_down} failed={self.failed}"
        )


class Scanner:
    """
    One scan pass: discover leaf cgroups, then read, evaluate and, when over
    the threshold and out of cooldown, reclaim each of them in turn.

    Per-cgroup errors are logged and skipped. ParentNotFound from discovery is
    left to the caller.
    """

    def __init__(
        self,
        discoverer: Discoverer,
        threshold: ThresholdSpec,
        reader: Optional[CgroupReader] = None,
        trigger: Optional[ReclaimTrigger] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.discoverer = discoverer
        self.threshold = threshold
        self.reader = reader or CgroupReader()
        self.trigger = trigger or ReclaimTrigger()
        self.clock = clock

    def scan(self, ledger: CooldownLedger) -> ScanReport:
        leaves = self.discoverer.discover()
        report = ScanReport(discovered=len(leaves))

        appeared, disappeared = ledger.observe(leaves)
        for cgroup_id in appeared:
            logger.info(f"New cgroup: {cgroup_id}")
        for cgroup_id in disappeared:
            logger.info(f"Old cgroup: {cgroup_id}")

        for cgroup_id in leaves:
            try:
                self._scan_cgroup(cgroup_id, ledger, report)
            except CgroupError as e:
                report.failed += 1
                # warn once per failure streak
                if ledger.record_failure(cgroup_id):
                    logger.warning(f"Failed to reclaim {e}")
                else:
                    logger.debug(f"Still failing {e}")
            else:
                ledger.clear_failure(cgroup_id)

        logger.debug(f"Scan finished: {report.summary()}")
        return report

    def _scan_cgroup(self, cgroup_id: CgroupId, ledger: CooldownLedger, report: ScanReport) -> None:
        snapshot = self.reader.read(cgroup_id)
        if not self.threshold.exceeds(snapshot):
            return
        report.over_threshold += 1

        if not ledger.ready_to_reclaim(cgroup_id, self.clock()):
            report.cooling_down += 1
            logger.debug(f"Cooling down {cgroup_id}: {snapshot.describe()}")
            return

        logger.info(f"Reclaiming {cgroup_id}: {snapshot.describe()}")
        self.trigger.trigger(cgroup_id)
        ledger.record_reclaim(cgroup_id, self.clock())
        report.reclaimed.append(cgroup_id)

        try:
            after = self.reader.read(cgroup_id)
        except (CgroupVanished, StatParseError) as e:
            logger.debug(f"Reclaimed {cgroup_id}, stats unavailable: {e}")
        else:
            logger.info(f"Reclaimed  {cgroup_id}: {after.describe()}")
