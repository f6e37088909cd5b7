from dataclasses import dataclass

# cgroup v1 memory controller files
MEMORY_STAT = "memory.stat"
MEMORY_LIMIT = "memory.limit_in_bytes"
MEMORY_FORCE_EMPTY = "memory.force_empty"

# PAGE_COUNTER_MAX rounded to the page size, what v1 reports for "no limit"
UNLIMITED_SENTINEL = 9223372036854771712

# a cgroup is identified by its directory path
CgroupId = str


@dataclass(frozen=True)
class CgroupSnapshot:
    id: CgroupId
    cache_bytes: int
    # 0 means the cgroup has no memory limit
    limit_bytes: int
    rss_bytes: int = 0

    @property
    def unlimited(self) -> bool:
        return self.limit_bytes == 0

    def describe(self) -> str:
        limit = "unlimited" if self.unlimited else str(self.limit_bytes)
        return f"cache={self.cache_bytes} rss={self.rss_bytes} limit={limit}"
