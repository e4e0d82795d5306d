from __future__ import annotations

import threading
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class Recorder:
    """Prometheus counters for flow runs and step latencies."""

    _default: Optional["Recorder"] = None
    _default_lock = threading.Lock()

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.runs = Counter(
            "greetflow_flow_runs_total",
            "Flow runs by outcome",
            ["flow", "status"],
            registry=self.registry,
        )
        self.steps = Counter(
            "greetflow_flow_steps_total",
            "Executed flow steps by outcome",
            ["flow", "step", "status"],
            registry=self.registry,
        )
        self.step_seconds = Histogram(
            "greetflow_flow_step_seconds",
            "Step execution time",
            ["flow", "step"],
            registry=self.registry,
        )

    @classmethod
    def default(cls) -> "Recorder":
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls(registry=REGISTRY)
            return cls._default

    def on_step(self, flow: str, step: str, status: str, seconds: float) -> None:
        self.steps.labels(flow=flow, step=step, status=status).inc()
        self.step_seconds.labels(flow=flow, step=step).observe(max(seconds, 0.0))

    def on_flow_finished(self, flow: str, status: str) -> None:
        self.runs.labels(flow=flow, status=status).inc()


__all__ = ["Recorder"]
