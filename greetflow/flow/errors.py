from __future__ import annotations

from typing import Sequence


class FlowError(RuntimeError):
    """Base class for errors raised while building or running a flow."""


class FlowCompileError(FlowError):
    def __init__(self, flow: str, problems: Sequence[str]) -> None:
        super().__init__(f"{flow} failed to compile")
        self.flow = flow
        self.problems = tuple(problems)

    def __str__(self) -> str:
        problems = "\n  - ".join(self.problems)
        return f"flow '{self.flow}' is not a single linear path:\n  - {problems}"


class StateValidationError(FlowError):
    def __init__(self, schema_name: str, errors: Sequence[str]) -> None:
        super().__init__(f"{schema_name} failed validation")
        self.schema_name = schema_name
        self.errors = tuple(errors)

    def __str__(self) -> str:
        errors = "\n  - ".join(self.errors)
        return f"{self.schema_name} validation failed:\n  - {errors}"


class StepExecutionError(FlowError):
    def __init__(self, flow: str, step: str, cause: BaseException) -> None:
        super().__init__(f"step '{step}' of flow '{flow}' raised {type(cause).__name__}: {cause}")
        self.flow = flow
        self.step = step
        self.cause = cause


__all__ = [
    "FlowCompileError",
    "FlowError",
    "StateValidationError",
    "StepExecutionError",
]
