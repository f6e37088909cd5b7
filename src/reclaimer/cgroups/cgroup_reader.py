import os
from typing import Dict, Optional

from shared.schemas.cgroup_schema import (
    MEMORY_LIMIT, MEMORY_STAT, UNLIMITED_SENTINEL, CgroupId, CgroupSnapshot
)
from src.reclaimer.errors import CgroupVanished, StatParseError


def _read(cgroup_id: CgroupId, name: str) -> str:
    path = os.path.join(cgroup_id, name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        # the runtime tears cgroups down under us all the time
        raise CgroupVanished(cgroup_id, f"cannot read {name}: {e}") from e
    except UnicodeDecodeError as e:
        raise StatParseError(cgroup_id, f"{name} is not valid text: {e}") from e


def parse_memory_stat(text: str) -> Dict[str, str]:
    stats: Dict[str, str] = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) == 2:
            stats.setdefault(parts[0], parts[1])
    return stats


def _to_bytes(raw: Optional[str]) -> Optional[int]:
    if raw is None or not (raw.isascii() and raw.isdigit()):
        return None
    return int(raw)


def parse_limit(text: str) -> Optional[int]:
    """Return the limit in bytes, 0 when unlimited, None when unparsable."""
    value = text.strip()
    if value in ("max", "-1"):
        return 0
    limit = _to_bytes(value)
    if limit is None:
        return None
    return 0 if limit >= UNLIMITED_SENTINEL else limit


class CgroupReader:
    def read(self, cgroup_id: CgroupId) -> CgroupSnapshot:
        stats = parse_memory_stat(_read(cgroup_id, MEMORY_STAT))
        if "cache" not in stats:
            raise StatParseError(cgroup_id, f"no 'cache' entry in {MEMORY_STAT}")
        cache = _to_bytes(stats["cache"])
        if cache is None:
            raise StatParseError(cgroup_id, f"bad 'cache' value {stats['cache']!r} in {MEMORY_STAT}")

        raw_limit = _read(cgroup_id, MEMORY_LIMIT)
        limit = parse_limit(raw_limit)
        if limit is None:
            raise StatParseError(cgroup_id, f"bad value {raw_limit.strip()!r} in {MEMORY_LIMIT}")

        return CgroupSnapshot(
            id=cgroup_id,
            cache_bytes=cache,
            limit_bytes=limit,
            rss_bytes=_to_bytes(stats.get("rss")) or 0,
        )
