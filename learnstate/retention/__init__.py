"""Forgetting-curve retention model."""

from learnstate.retention.retention_model import (
    BandedIntervalPolicy,
    DueTrigger,
    GeometricStrengthMapping,
    IntervalPolicy,
    RetentionAssessment,
    RetentionModel,
    StrengthMapping,
)

__all__ = [
    "BandedIntervalPolicy",
    "DueTrigger",
    "GeometricStrengthMapping",
    "IntervalPolicy",
    "RetentionAssessment",
    "RetentionModel",
    "StrengthMapping",
]
