import os

import pytest

from conftest import write_cgroup
from shared.schemas.cgroup_schema import MEMORY_LIMIT, MEMORY_STAT, UNLIMITED_SENTINEL
from src.reclaimer.cgroups.cgroup_reader import CgroupReader, parse_limit, parse_memory_stat
from src.reclaimer.errors import CgroupVanished, StatParseError


def test_read_snapshot(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=300_000, limit=1_000_000, rss=42)
    snap = CgroupReader().read(cg)
    assert snap.id == cg
    assert snap.cache_bytes == 300_000
    assert snap.limit_bytes == 1_000_000
    assert snap.rss_bytes == 42
    assert not snap.unlimited


def test_total_cache_is_not_cache(tmp_path):
    cg = tmp_path / "c1"
    cg.mkdir()
    (cg / MEMORY_STAT).write_text("total_cache 500\ncache 7\n")
    (cg / MEMORY_LIMIT).write_text("100\n")
    assert CgroupReader().read(str(cg)).cache_bytes == 7


@pytest.mark.parametrize("raw", [str(UNLIMITED_SENTINEL), str(2 ** 63 - 1), "-1", "max"])
def test_unlimited_maps_to_zero(tmp_path, raw):
    cg = write_cgroup(tmp_path / "c1", cache=5, limit=None)
    (tmp_path / "c1" / MEMORY_LIMIT).write_text(raw + "\n")
    snap = CgroupReader().read(cg)
    assert snap.limit_bytes == 0
    assert snap.unlimited


def test_missing_rss_defaults_to_zero(tmp_path):
    cg = tmp_path / "c1"
    cg.mkdir()
    (cg / MEMORY_STAT).write_text("cache 10\n")
    (cg / MEMORY_LIMIT).write_text("100\n")
    assert CgroupReader().read(str(cg)).rss_bytes == 0


@pytest.mark.parametrize("stat", ["rss 10\n", "cache abc\n", "cache -3\n", "cache 1.5\n", ""])
def test_bad_cache_is_parse_error(tmp_path, stat):
    cg = tmp_path / "c1"
    cg.mkdir()
    (cg / MEMORY_STAT).write_text(stat)
    (cg / MEMORY_LIMIT).write_text("100\n")
    with pytest.raises(StatParseError) as exc:
        CgroupReader().read(str(cg))
    assert exc.value.cgroup_id == str(cg)


def test_bad_limit_is_parse_error(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=1, limit=None)
    (tmp_path / "c1" / MEMORY_LIMIT).write_text("lots\n")
    with pytest.raises(StatParseError):
        CgroupReader().read(cg)


def test_missing_directory_is_vanished(tmp_path):
    with pytest.raises(CgroupVanished):
        CgroupReader().read(str(tmp_path / "gone"))


def test_missing_limit_file_is_vanished(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=1, limit=None)
    with pytest.raises(CgroupVanished):
        CgroupReader().read(cg)


def test_missing_stat_file_is_vanished(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=1)
    os.remove(os.path.join(cg, MEMORY_STAT))
    with pytest.raises(CgroupVanished):
        CgroupReader().read(cg)


def test_parse_memory_stat_keeps_first_and_skips_junk():
    stats = parse_memory_stat("cache 1\n\nweird line here\ncache 2\nrss 3\n")
    assert stats == {"cache": "1", "rss": "3"}


def test_parse_limit():
    assert parse_limit(" 4096\n") == 4096
    assert parse_limit("nope") is None


def test_undecodable_stat_is_parse_error(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=1)
    (tmp_path / "c1" / MEMORY_STAT).write_bytes(b"cache \xff\xfe\n")
    with pytest.raises(StatParseError) as exc:
        CgroupReader().read(cg)
    assert exc.value.cgroup_id == cg


def test_undecodable_limit_is_parse_error(tmp_path):
    cg = write_cgroup(tmp_path / "c1", cache=1)
    (tmp_path / "c1" / MEMORY_LIMIT).write_bytes(b"\xff\n")
    with pytest.raises(StatParseError):
        CgroupReader().read(cg)
