"""Optional export of flow runs to a tracing service."""

from .config import TracingConfig, TracingConfigError, load_tracing_config
from .exporter import LangSmithExporter, build_exporter

__all__ = [
    "LangSmithExporter",
    "TracingConfig",
    "TracingConfigError",
    "build_exporter",
    "load_tracing_config",
]
