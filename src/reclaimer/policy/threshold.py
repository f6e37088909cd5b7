from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Union

from shared.schemas.cgroup_schema import CgroupSnapshot
from src.reclaimer.errors import InvalidThreshold

_SIZE_RE = re.compile(r"^(?P<number>[0-9]+(?:\.[0-9]+)?)\s*(?P<unit>[A-Za-z]*)$")

_PREFIXES = "kmgtpe"

# cgroup counters are unsigned 64-bit
MAX_BYTES = 2 ** 64 - 1


def _unit_multiplier(unit: str) -> int:
    unit = unit.lower()
    if unit in ("", "b"):
        return 1
    if unit.endswith("b"):
        unit = unit[:-1]
    prefix, binary = unit[0], unit[1:]
    if prefix not in _PREFIXES or binary not in ("", "i"):
        raise KeyError(unit)
    power = _PREFIXES.index(prefix) + 1
    return 1024 ** power if binary else 1000 ** power


@dataclass(frozen=True)
class Percentage:
    """Cache usage as a share of the cgroup's memory limit."""

    fraction: Fraction

    def exceeds(self, snapshot: CgroupSnapshot) -> bool:
        # no finite limit to take a share of
        if snapshot.unlimited:
            return False
        return snapshot.cache_bytes >= snapshot.limit_bytes * self.fraction

    def describe(self) -> str:
        return f"{float(self.fraction * 100):g}% of limit"


@dataclass(frozen=True)
class AbsoluteBytes:
    byte_count: int

    def exceeds(self, snapshot: CgroupSnapshot) -> bool:
        return snapshot.cache_bytes >= self.byte_count

    def describe(self) -> str:
        return f"{self.byte_count} bytes"


ThresholdSpec = Union[Percentage, AbsoluteBytes]


def _parse_percentage(value: str) -> Percentage:
    try:
        number = Decimal(value[:-1].strip())
    except InvalidOperation:
        raise InvalidThreshold(value, "percentage is not a number") from None
    if not number.is_finite() or number < 0:
        raise InvalidThreshold(value, "percentage must be a finite non-negative number")
    if number > 100:
        raise InvalidThreshold(value, "percentage cannot exceed 100")
    return Percentage(Fraction(number) / 100)


def _parse_bytes(value: str) -> AbsoluteBytes:
    match = _SIZE_RE.match(value)
    if match is None:
        raise InvalidThreshold(value, "expected a byte count such as 536870912, 512Mi or 1GB")
    number, unit = match.group("number"), match.group("unit")
    if not unit and "." in number:
        raise InvalidThreshold(value, "a byte count without a unit must be a whole number")
    try:
        multiplier = _unit_multiplier(unit)
    except KeyError:
        raise InvalidThreshold(value, f"unrecognized unit {unit!r}") from None
    byte_count = int(Decimal(number) * multiplier)
    if byte_count > MAX_BYTES:
        raise InvalidThreshold(value, "byte count does not fit in 64 bits")
    return AbsoluteBytes(byte_count)


def parse_threshold(value: str) -> ThresholdSpec:
    """
    Parse a threshold setting.

    "25%" is a share of the memory limit; "1048576", "512Mi", "1GB" and friends
    are absolute cache sizes. Decimal prefixes (K, M, G, ...) are powers of
    1000 and binary prefixes (Ki, Mi, Gi, ...) are powers of 1024.
    """
    if not isinstance(value, str):
        raise InvalidThreshold(str(value), "expected a string")
    value = value.strip()
    if not value:
        raise InvalidThreshold(value, "empty value")
    if value.endswith("%"):
        return _parse_percentage(value)
    return _parse_bytes(value)
