from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple
from uuid import uuid4

from greetflow.obs.recorder import Recorder

from .errors import StateValidationError, StepExecutionError
from .spec import FlowSpec
from .state import merge_delta
from .trace_store import TraceSink, TraceSpan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRecord:
    """Summary of one finished invocation, handed to the run exporter."""

    run_id: str
    flow: str
    flow_rev: str
    inputs: Mapping[str, Any]
    outputs: Mapping[str, Any]
    status: str
    start_time: float
    end_time: float
    steps: Tuple[str, ...] = ()
    error: Optional[str] = None


class RunExporter(Protocol):
    def export(self, record: RunRecord) -> None: ...


@dataclass
class CompiledFlow:
    """Executes the resolved step path of a :class:`FlowSpec`.

    Every invocation initializes its own working state from the caller's input,
    runs each step in order and merges the returned delta onto that state
    (shallow, last writer wins). The caller's mapping is never touched.
    """

    spec: FlowSpec
    path: Tuple[str, ...]
    trace_sink: Optional[TraceSink] = None
    recorder: Optional[Recorder] = None
    exporter: Optional[RunExporter] = None
    _flow_rev: str = field(init=False)

    def __post_init__(self) -> None:
        self.path = tuple(self.path)
        self._flow_rev = self.spec.flow_revision()
        if self.recorder is None:
            self.recorder = Recorder.default()

    @property
    def name(self) -> str:
        return self.spec.name

    def invoke(self, inputs: Mapping[str, Any]) -> Dict[str, Any]:
        run_id = uuid4().hex
        started = time.time()
        try:
            state = self.spec.schema.initial_state(inputs)
        except StateValidationError:
            self.recorder.on_flow_finished(self.name, "rejected")
            raise

        accepted = {key: state[key] for key in self.spec.schema.inputs}
        executed: List[str] = []
        try:
            for seq, name in enumerate(self.path):
                self._run_step(run_id, seq, name, state)
                executed.append(name)
        except Exception as exc:
            self.recorder.on_flow_finished(self.name, "error")
            self._export(
                RunRecord(
                    run_id=run_id,
                    flow=self.name,
                    flow_rev=self._flow_rev,
                    inputs=accepted,
                    outputs=dict(state),
                    status="error",
                    start_time=started,
                    end_time=time.time(),
                    steps=tuple(executed),
                    error=str(exc),
                )
            )
            raise

        self.recorder.on_flow_finished(self.name, "ok")
        self._export(
            RunRecord(
                run_id=run_id,
                flow=self.name,
                flow_rev=self._flow_rev,
                inputs=accepted,
                outputs=dict(state),
                status="ok",
                start_time=started,
                end_time=time.time(),
                steps=tuple(executed),
            )
        )
        return state

    async def ainvoke(self, inputs: Mapping[str, Any]) -> Dict[str, Any]:
        # trace sinks and the exporter block on I/O; keep them off the event loop
        return await asyncio.to_thread(self.invoke, inputs)

    def batch(self, inputs: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return [self.invoke(item) for item in inputs]

    async def abatch(self, inputs: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return list(await asyncio.gather(*(self.ainvoke(item) for item in inputs)))

    def _run_step(self, run_id: str, seq: int, name: str, state: Dict[str, Any]) -> None:
        step = self.spec.step(name)
        t0 = time.time()
        error: Optional[BaseException] = None
        try:
            raw = step.run(MappingProxyType(state))
            delta = self.spec.schema.validate_delta(name, raw)
        except StateValidationError as exc:
            error = exc
        except Exception as exc:
            error = StepExecutionError(self.name, name, exc)
            error.__cause__ = exc
        t1 = time.time()

        status = "error" if error is not None else "ok"
        self.recorder.on_step(self.name, name, status, t1 - t0)
        if self.trace_sink is not None:
            self.trace_sink.append(
                TraceSpan(
                    flow=self.name,
                    flow_id=self.spec.flow_id or self.name,
                    flow_rev=self._flow_rev,
                    run_id=run_id,
                    step=name,
                    seq=seq,
                    t0=t0,
                    t1=t1,
                    status=status,
                    error=str(error) if error is not None else None,
                )
            )
        if error is not None:
            raise error

        logger.debug("flow %s run %s step %s -> %s", self.name, run_id, name, sorted(delta))
        merge_delta(state, delta)

    def _export(self, record: RunRecord) -> None:
        if self.exporter is None:
            return
        try:
            self.exporter.export(record)
        except Exception:
            logger.warning("failed to export run %s of flow %s", record.run_id, record.flow, exc_info=True)


__all__ = ["CompiledFlow", "RunExporter", "RunRecord"]
