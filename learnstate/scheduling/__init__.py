"""Prerequisite revision scheduling."""

from learnstate.scheduling.scheduler import PrerequisiteSource, Scheduler

__all__ = ["PrerequisiteSource", "Scheduler"]
