from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from jsonschema import Draft202012Validator, ValidationError

from .errors import StateValidationError


def _format_error(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path) or "<root>"
    return f"{path}: {error.message}"


@dataclass(frozen=True)
class StateSchema:
    """Field layout of a flow's working state.

    ``inputs`` are supplied by the caller and must be strings. ``outputs`` map
    each step-produced field to the value it holds before any step has run.
    A caller-supplied value for an output field is discarded at initialization.
    """

    name: str
    inputs: Tuple[str, ...]
    outputs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        overlap = set(self.inputs) & set(self.outputs)
        if overlap:
            raise ValueError(f"fields declared as both input and output: {sorted(overlap)}")
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", dict(self.outputs))

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.inputs + tuple(self.outputs)

    def json_schema(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {key: {"type": "string"} for key in self.inputs}
        properties.update({key: {} for key in self.outputs})
        return {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "title": self.name,
            "type": "object",
            "properties": properties,
            "required": list(self.inputs),
            "additionalProperties": False,
        }

    def validate_input(self, payload: Any) -> None:
        validator = Draft202012Validator(self.json_schema())
        errors = sorted(validator.iter_errors(payload), key=lambda error: tuple(str(p) for p in error.path))
        if errors:
            raise StateValidationError(self.name, tuple(_format_error(error) for error in errors))

    def initial_state(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate ``payload`` and return a fresh working copy of the state."""

        candidate = dict(payload) if isinstance(payload, Mapping) else payload
        self.validate_input(candidate)
        state: Dict[str, Any] = dict(self.outputs)
        for key in self.inputs:
            state[key] = candidate[key]
        return state

    def validate_delta(self, step: str, delta: Any) -> Dict[str, Any]:
        if not isinstance(delta, Mapping):
            raise StateValidationError(
                self.name,
                (f"{step}: step must return a mapping, got {type(delta).__name__}",),
            )
        unknown = sorted(str(key) for key in delta if key not in self.fields)
        if unknown:
            raise StateValidationError(
                self.name,
                tuple(f"{step}.{key}: field is not declared by the state schema" for key in unknown),
            )
        return dict(delta)


def merge_delta(state: Dict[str, Any], delta: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow last-writer-wins merge of ``delta`` onto ``state`` (in place)."""

    state.update(delta)
    return state


__all__ = ["StateSchema", "merge_delta"]
