from __future__ import annotations

import os
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Protocol

import orjson


@dataclass(frozen=True)
class TraceSpan:
    """One executed step of one run."""

    flow: str
    flow_id: str
    flow_rev: str
    run_id: str
    step: str
    seq: int
    t0: float
    t1: float
    status: str = "ok"
    error: Optional[str] = None


class TraceSink(Protocol):
    def append(self, span: TraceSpan) -> None: ...


class InMemoryTraceSink:
    """Thread-safe list of spans, mostly useful in tests and demos."""

    def __init__(self) -> None:
        self._spans: List[TraceSpan] = []
        self._lock = threading.Lock()

    def append(self, span: TraceSpan) -> None:
        with self._lock:
            self._spans.append(span)

    def spans(self, run_id: Optional[str] = None) -> List[TraceSpan]:
        with self._lock:
            if run_id is None:
                return list(self._spans)
            return [span for span in self._spans if span.run_id == run_id]


class JsonlTraceSink:
    """Append-only JSON Lines sink; one line per span."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, span: TraceSpan) -> None:
        line = orjson.dumps(asdict(span)) + b"\n"
        with self._lock:
            with self._path.open("ab") as fh:
                fh.write(line)

    def read(self) -> Iterator[dict]:
        try:
            with self._path.open("rb") as fh:
                for raw in fh:
                    raw = raw.strip()
                    if raw:
                        yield orjson.loads(raw)
        except FileNotFoundError:
            return


__all__ = ["InMemoryTraceSink", "JsonlTraceSink", "TraceSink", "TraceSpan"]
