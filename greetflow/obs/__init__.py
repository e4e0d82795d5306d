"""Metrics for flow execution."""

from .recorder import Recorder

__all__ = ["Recorder"]
