import os
from typing import Optional

import pytest

from shared.schemas.cgroup_schema import MEMORY_LIMIT, MEMORY_STAT


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_cgroup(path, cache: int = 0, limit: Optional[int] = 1_000_000, rss: int = 0) -> str:
    """Create a fake cgroup v1 memory directory with its control files."""
    os.makedirs(path, exist_ok=True)
    with open(os.path.join(path, MEMORY_STAT), "w", encoding="utf-8") as f:
        f.write(f"cache {cache}\nrss {rss}\nmapped_file 0\ntotal_cache {cache * 2}\n")
    if limit is not None:
        with open(os.path.join(path, MEMORY_LIMIT), "w", encoding="utf-8") as f:
            f.write(f"{limit}\n")
    return str(path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def parent(tmp_path):
    p = tmp_path / "kubepods"
    p.mkdir()
    return p
