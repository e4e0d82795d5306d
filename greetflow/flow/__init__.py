"""Linear step flows with delta-merged state."""

from .errors import FlowCompileError, FlowError, StateValidationError, StepExecutionError
from .runtime import CompiledFlow, RunExporter, RunRecord
from .spec import END, START, FlowSpec, StepDef
from .state import StateSchema, merge_delta
from .trace_store import InMemoryTraceSink, JsonlTraceSink, TraceSpan

__all__ = [
    "END",
    "START",
    "CompiledFlow",
    "FlowCompileError",
    "FlowError",
    "FlowSpec",
    "InMemoryTraceSink",
    "JsonlTraceSink",
    "RunExporter",
    "RunRecord",
    "StateSchema",
    "StateValidationError",
    "StepDef",
    "StepExecutionError",
    "TraceSpan",
    "merge_delta",
]
