from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import orjson

from greetflow.flow.runtime import RunRecord

from .config import TracingConfig

logger = logging.getLogger(__name__)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class LangSmithExporter:
    """Posts finished runs to a LangSmith-compatible ``/runs`` endpoint."""

    def __init__(self, config: TracingConfig, client: httpx.Client | None = None) -> None:
        if not config.api_key:
            raise ValueError("LangSmithExporter requires an API key")
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_s)

    @property
    def config(self) -> TracingConfig:
        return self._config

    def payload(self, record: RunRecord) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "id": str(uuid.UUID(hex=record.run_id)),
            "name": record.flow,
            "run_type": "chain",
            "inputs": dict(record.inputs),
            "outputs": dict(record.outputs) if record.status == "ok" else None,
            "start_time": _iso(record.start_time),
            "end_time": _iso(record.end_time),
            "session_name": self._config.project,
            "extra": {"metadata": {"flow_rev": record.flow_rev, "steps": list(record.steps)}},
        }
        if record.error is not None:
            body["error"] = record.error
        return body

    def export(self, record: RunRecord) -> None:
        response = self._client.post(
            f"{self._config.endpoint}/runs",
            content=orjson.dumps(self.payload(record)),
            headers={"x-api-key": self._config.api_key or "", "content-type": "application/json"},
        )
        response.raise_for_status()
        logger.info("exported run %s of %s to project %s", record.run_id, record.flow, self._config.project)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "LangSmithExporter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def build_exporter(config: TracingConfig, client: httpx.Client | None = None) -> Optional[LangSmithExporter]:
    if not config.active:
        if config.enabled:
            logger.warning("tracing is enabled but no API key is configured; runs will not be exported")
        return None
    return LangSmithExporter(config, client=client)


__all__ = ["LangSmithExporter", "build_exporter"]
