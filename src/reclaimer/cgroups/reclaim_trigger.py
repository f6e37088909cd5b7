import os

from shared.schemas.cgroup_schema import MEMORY_FORCE_EMPTY, CgroupId
from src.reclaimer.errors import ReclaimError


def _write(path: str, value: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(value)


class ReclaimTrigger:
    """Asks the kernel to synchronously reclaim a cgroup's page cache."""

    def trigger(self, cgroup_id: CgroupId) -> None:
        # the write blocks until the kernel is done reclaiming
        try:
            _write(os.path.join(cgroup_id, MEMORY_FORCE_EMPTY), "1")
        except OSError as e:
            raise ReclaimError(cgroup_id, f"cannot write {MEMORY_FORCE_EMPTY}: {e}") from e
