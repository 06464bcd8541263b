"""Telemetry helpers.

This package emits deterministic run events for generation jobs and commands.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]
