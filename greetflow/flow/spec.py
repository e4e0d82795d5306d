from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import FlowCompileError
from .state import StateSchema

if TYPE_CHECKING:  # pragma: no cover
    from .runtime import CompiledFlow

START = "__start__"
END = "__end__"

StepFn = Callable[[Mapping[str, Any]], Mapping[str, Any]]


@dataclass(frozen=True)
class StepDef:
    """A named step: reads the full state and returns a delta."""

    name: str
    run: StepFn


@dataclass
class FlowSpec:
    """In-memory builder for a flow: steps plus the edges between them."""

    name: str
    schema: StateSchema
    flow_id: Optional[str] = None
    steps: Dict[str, StepDef] = field(default_factory=dict)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    _flow_rev: int = field(init=False, default=1)

    def __post_init__(self) -> None:
        if self.flow_id is None:
            self.flow_id = self.name

    def add_step(self, step: StepDef | str, run: Optional[StepFn] = None) -> "FlowSpec":
        if isinstance(step, str):
            if run is None:
                raise ValueError(f"step '{step}' needs a callable")
            step = StepDef(step, run)
        if step.name in (START, END):
            raise ValueError(f"'{step.name}' is a reserved marker")
        if step.name in self.steps:
            raise ValueError(f"step '{step.name}' already registered")
        self.steps[step.name] = step
        self._flow_rev += 1
        return self

    def add_edge(self, source: str, target: str) -> "FlowSpec":
        self.edges.append((source, target))
        self._flow_rev += 1
        return self

    def step(self, name: str) -> StepDef:
        return self.steps[name]

    def adjacency(self) -> Dict[str, Tuple[str, ...]]:
        out: Dict[str, List[str]] = {}
        for source, target in self.edges:
            out.setdefault(source, []).append(target)
        return {name: tuple(targets) for name, targets in out.items()}

    def __iter__(self) -> Iterator[StepDef]:
        return iter(self.steps.values())

    def flow_revision(self) -> str:
        """Return the current revision marker for this flow spec."""

        return f"rev-{self._flow_rev}"

    def path(self) -> Tuple[str, ...]:
        """Resolve the ordered step names between ``START`` and ``END``.

        Raises :class:`FlowCompileError` unless the edges describe exactly one
        path with no branches and no loops that covers every registered step.
        """

        problems: List[str] = []
        known = set(self.steps) | {START, END}
        for source, target in self.edges:
            for endpoint in (source, target):
                if endpoint not in known:
                    problems.append(f"edge {source} -> {target} references unknown step '{endpoint}'")
            if target == START:
                problems.append(f"edge {source} -> {target} points back at START")
            if source == END:
                problems.append(f"edge {source} -> {target} leaves END")

        adjacency = self.adjacency()
        for source, targets in adjacency.items():
            if len(targets) > 1:
                problems.append(f"'{source}' has {len(targets)} outgoing edges; branching is not supported")
        if START not in adjacency:
            problems.append("no edge from START")
        if problems:
            raise FlowCompileError(self.name, problems)

        ordered: List[str] = []
        current = adjacency[START][0]
        while current != END:
            if current in ordered:
                raise FlowCompileError(self.name, [f"loop detected at '{current}'"])
            ordered.append(current)
            targets = adjacency.get(current)
            if not targets:
                raise FlowCompileError(self.name, [f"'{current}' has no outgoing edge and never reaches END"])
            current = targets[0]

        unreachable = sorted(set(self.steps) - set(ordered))
        if unreachable:
            raise FlowCompileError(
                self.name,
                [f"step '{name}' is not reachable from START" for name in unreachable],
            )
        return tuple(ordered)

    def compile(self, **options: Any) -> "CompiledFlow":
        from .runtime import CompiledFlow

        return CompiledFlow(self, self.path(), **options)


__all__ = ["END", "FlowSpec", "START", "StepDef", "StepFn"]
