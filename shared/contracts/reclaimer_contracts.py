import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from src.reclaimer.policy.threshold import ThresholdSpec, parse_threshold

DEFAULT_PARENT = "/sys/fs/cgroup/memory/docker"
DEFAULT_THRESHOLD = "25%"
DEFAULT_INTERVAL = 10.0
DEFAULT_COOLDOWN = 30.0

ENV_PREFIX = "RECLAIMER_"


class ReclaimerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    parent: str = DEFAULT_PARENT                    # root of the cgroup subtree to scan
    threshold: str = DEFAULT_THRESHOLD              # "25%", "536870912", "512Mi", "1GB"
    interval: float = Field(DEFAULT_INTERVAL, gt=0, allow_inf_nan=False)   # seconds between passes
    cooldown: float = Field(DEFAULT_COOLDOWN, ge=0, allow_inf_nan=False)   # seconds between reclaims

    _threshold_spec: Optional[ThresholdSpec] = PrivateAttr(default=None)

    @field_validator("parent")
    @classmethod
    def _parent_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("parent must not be empty")
        return v

    @field_validator("threshold")
    @classmethod
    def _threshold_stripped(cls, v: str) -> str:
        return v.strip()

    # the string stays the field, parsed once here for the scanner
    @model_validator(mode="after")
    def _parse_threshold(self) -> "ReclaimerConfig":
        self._threshold_spec = parse_threshold(self.threshold)
        return self

    @property
    def threshold_spec(self) -> ThresholdSpec:
        return self._threshold_spec

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ReclaimerConfig":
        """Build a config from RECLAIMER_* variables; explicit overrides win."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in ("parent", "threshold", "interval", "cooldown"):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
