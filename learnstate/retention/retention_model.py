"""
Retention Model - forgetting-curve estimates and due dates.

Implements:
- Exponential decay R = exp(-dt / S), dt in days since the last review
- S (memory strength) from a replaceable mastery -> strength mapping
- A coarse fallback schedule from a replaceable mastery -> interval step function
- The urgency policy: due when retention drops below the threshold OR the
  fallback interval has elapsed, whichever fires first

Everything here is pure: no I/O, no shared state, safe to call concurrently.
Mapping constants are tunable policy, recalibrate them through configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol, Sequence

from learnstate.core.mastery import MasteryRecord, Urgency, clamp_mastery, ensure_utc

# Smallest positive float; only reached once exp() underflows to 0
MIN_RETENTION = math.ulp(0.0)

SECONDS_PER_DAY = 86400.0


# =============================================================================
# Strategies
# =============================================================================


class StrengthMapping(Protocol):
    """Mastery (0-1) -> memory strength S in days. Must be strictly increasing."""

    def __call__(self, mastery_level: float) -> float: ...


class IntervalPolicy(Protocol):
    """Mastery (0-1) -> fallback review interval. Must be non-decreasing."""

    def __call__(self, mastery_level: float) -> timedelta: ...


@dataclass(frozen=True)
class GeometricStrengthMapping:
    """
    Geometric interpolation between two strengths.

    S(m) = min_days * (max_days / min_days) ** m

    With the defaults a fresh concept (m=0) halves in under a day while a
    mastered one (m=1) keeps ~85% after ten days.
    """

    min_days: float = 1.0
    max_days: float = 60.0

    def __post_init__(self) -> None:
        if self.min_days <= 0 or self.max_days <= self.min_days:
            raise ValueError("strength mapping requires 0 < min_days < max_days")

    def __call__(self, mastery_level: float) -> float:
        m = clamp_mastery(mastery_level)
        return self.min_days * (self.max_days / self.min_days) ** m


@dataclass(frozen=True)
class BandedIntervalPolicy:
    """
    Step function over mastery bands.

    ``bands`` is a sequence of (lower_bound, days); the band with the highest
    lower bound not above the mastery level applies.
    """

    bands: tuple[tuple[float, float], ...] = ((0.0, 1.0), (0.4, 3.0), (0.7, 7.0), (0.9, 21.0))

    def __post_init__(self) -> None:
        ordered = tuple(sorted((float(lo), float(days)) for lo, days in self.bands))
        if not ordered or ordered[0][0] > 0.0:
            raise ValueError("interval bands must start at mastery 0.0")
        for (_, prev_days), (_, days) in zip(ordered, ordered[1:]):
            if days < prev_days:
                raise ValueError("interval bands must be non-decreasing in mastery")
        if any(days <= 0 for _, days in ordered):
            raise ValueError("interval band lengths must be positive")
        object.__setattr__(self, "bands", ordered)

    @classmethod
    def from_pairs(cls, pairs: Sequence[Sequence[float]]) -> BandedIntervalPolicy:
        return cls(tuple((lo, days) for lo, days in pairs))

    def __call__(self, mastery_level: float) -> timedelta:
        m = clamp_mastery(mastery_level)
        days = self.bands[0][1]
        for lower, band_days in self.bands:
            if m >= lower:
                days = band_days
            else:
                break
        return timedelta(days=days)


# =============================================================================
# Model
# =============================================================================


class DueTrigger(str, Enum):
    """Which condition made a concept due."""

    NONE = "none"
    DECAY = "decay"
    INTERVAL = "interval"
    BOTH = "both"


@dataclass(frozen=True)
class RetentionAssessment:
    """Retention and scheduling verdict for one record at one instant."""

    retention: float
    next_due_at: datetime
    trigger: DueTrigger
    urgency: Urgency | None

    @property
    def is_due(self) -> bool:
        return self.trigger is not DueTrigger.NONE


class RetentionModel:
    """
    Forgetting-curve engine.

    Thresholds are passed in, not hardwired, and both strategies are injectable
    so curves can be recalibrated without touching call sites.
    """

    def __init__(
        self,
        strength: StrengthMapping | None = None,
        interval: IntervalPolicy | None = None,
        retention_threshold: float = 0.70,
        medium_urgency_retention: float = 0.85,
    ):
        if not 0.0 <= retention_threshold <= 1.0:
            raise ValueError("retention_threshold must be within [0, 1]")
        self.strength = strength or GeometricStrengthMapping()
        self.interval = interval or BandedIntervalPolicy()
        self.retention_threshold = retention_threshold
        self.medium_urgency_retention = medium_urgency_retention

    @classmethod
    def from_settings(cls, settings) -> RetentionModel:
        """Build the model from learnstate.config.Settings."""
        return cls(
            strength=GeometricStrengthMapping(settings.min_strength_days, settings.max_strength_days),
            interval=BandedIntervalPolicy.from_pairs(settings.interval_bands),
            retention_threshold=settings.retention_threshold,
            medium_urgency_retention=settings.medium_urgency_retention,
        )

    def retention_estimate(self, record: MasteryRecord, now: datetime) -> float:
        """Estimated recall probability in (0, 1]."""
        elapsed = ensure_utc(now) - ensure_utc(record.last_reviewed_at)
        elapsed_days = max(0.0, elapsed.total_seconds() / SECONDS_PER_DAY)
        strength_days = self.strength(record.mastery_level)
        return math.exp(-elapsed_days / strength_days) or MIN_RETENTION

    def next_due_at(self, record: MasteryRecord) -> datetime:
        """Fallback schedule: last review plus the band interval."""
        return ensure_utc(record.last_reviewed_at) + self.interval(record.mastery_level)

    def assess(self, record: MasteryRecord, now: datetime) -> RetentionAssessment:
        """Evaluate both due conditions and classify urgency."""
        retention = self.retention_estimate(record, now)
        next_due = self.next_due_at(record)

        decayed = retention < self.retention_threshold
        interval_elapsed = ensure_utc(now) >= next_due

        if decayed and interval_elapsed:
            trigger = DueTrigger.BOTH
        elif decayed:
            trigger = DueTrigger.DECAY
        elif interval_elapsed:
            trigger = DueTrigger.INTERVAL
        else:
            trigger = DueTrigger.NONE

        return RetentionAssessment(
            retention=retention,
            next_due_at=next_due,
            trigger=trigger,
            urgency=self._urgency(trigger, retention),
        )

    def is_due(self, record: MasteryRecord, now: datetime) -> bool:
        return self.assess(record, now).is_due

    def _urgency(self, trigger: DueTrigger, retention: float) -> Urgency | None:
        if trigger is DueTrigger.NONE:
            return None
        if trigger in (DueTrigger.DECAY, DueTrigger.BOTH):
            return Urgency.HIGH
        if retention < self.medium_urgency_retention:
            return Urgency.MEDIUM
        return Urgency.LOW
