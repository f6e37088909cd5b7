from shared.schemas.cgroup_schema import CgroupId


class ReclaimerError(Exception):
    """Base class for everything the reclaim engine raises."""


class ParentNotFound(ReclaimerError):
    def __init__(self, path: str):
        super().__init__(f"Invalid directory: '{path}'")
        self.path = path


class InvalidThreshold(ReclaimerError, ValueError):
    def __init__(self, value: str, reason: str):
        super().__init__(f"Invalid threshold {value!r}: {reason}")
        self.value = value
        self.reason = reason


class CgroupError(ReclaimerError):
    """A failure scoped to a single cgroup; never fatal to a scan pass."""

    def __init__(self, cgroup_id: CgroupId, detail: str):
        super().__init__(f"{cgroup_id}: {detail}")
        self.cgroup_id = cgroup_id
        self.detail = detail


class CgroupVanished(CgroupError):
    pass


class StatParseError(CgroupError):
    pass


class ReclaimError(CgroupError):
    pass
