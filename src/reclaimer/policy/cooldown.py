from typing import Dict, Iterable, List, Optional, Set, Tuple

from shared.schemas.cgroup_schema import CgroupId


class CooldownLedger:
    """
    Remembers when each cgroup was last reclaimed successfully.

    Owned by a single scheduler and handed to every scan pass; it is not
    thread-safe. Entries of cgroups that went away are kept, they cost a few
    bytes each and a reused path simply inherits the old cooldown.
    """

    def __init__(self, cooldown: float):
        if cooldown < 0:
            raise ValueError("cooldown must be >= 0")
        self.cooldown = cooldown
        self._last_reclaim: Dict[CgroupId, float] = {}
        self._seen: Set[CgroupId] = set()
        self._failing: Set[CgroupId] = set()

    def __len__(self) -> int:
        return len(self._last_reclaim)

    def __contains__(self, cgroup_id: object) -> bool:
        return cgroup_id in self._last_reclaim

    def last_reclaim(self, cgroup_id: CgroupId) -> Optional[float]:
        return self._last_reclaim.get(cgroup_id)

    def ready_to_reclaim(self, cgroup_id: CgroupId, now: float) -> bool:
        last = self._last_reclaim.get(cgroup_id)
        return last is None or now - last >= self.cooldown

    def record_reclaim(self, cgroup_id: CgroupId, now: float) -> None:
        self._last_reclaim[cgroup_id] = now

    def observe(self, leaves: Iterable[CgroupId]) -> Tuple[List[CgroupId], List[CgroupId]]:
        """Return (appeared, disappeared) relative to the previous pass."""
        current = list(leaves)
        current_set = set(current)
        appeared = [c for c in current if c not in self._seen]
        disappeared = sorted(self._seen - current_set)
        self._seen = current_set
        self._failing &= current_set
        return appeared, disappeared

    def record_failure(self, cgroup_id: CgroupId) -> bool:
        """Mark a failure; True if it starts a new failure streak."""
        if cgroup_id in self._failing:
            return False
        self._failing.add(cgroup_id)
        return True

    def clear_failure(self, cgroup_id: CgroupId) -> None:
        self._failing.discard(cgroup_id)
