"""Greeting agent: a single-step flow that turns a name into a greeting.

Flow layout::

    START -> greeting_node -> END

No model or network call is involved; the flow runtime only supplies state
initialization and delta merging around :func:`greeting_node`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, TypedDict

from greetflow.flow import END, START, CompiledFlow, FlowSpec, StateSchema

FLOW_NAME = "greeting"

GREETING_SCHEMA = StateSchema(name="GreetingState", inputs=("name",), outputs={"greeting": ""})


class GreetingState(TypedDict):
    name: str
    greeting: str


def greeting_node(state: Mapping[str, Any]) -> Dict[str, str]:
    """Return only the delta: the ``greeting`` field, never ``name``."""

    return {"greeting": f"Hello, {state['name']}! Welcome!"}


def create_greeting_graph(**options: Any) -> CompiledFlow:
    """Build and compile the greeting flow.

    ``options`` are passed to :class:`~greetflow.flow.runtime.CompiledFlow`
    (``trace_sink``, ``recorder``, ``exporter``).
    """

    spec = (
        FlowSpec(name=FLOW_NAME, schema=GREETING_SCHEMA)
        .add_step("greeting_node", greeting_node)
        .add_edge(START, "greeting_node")
        .add_edge("greeting_node", END)
    )
    return spec.compile(**options)


def main(app: CompiledFlow | None = None) -> int:
    app = app or create_greeting_graph()

    print("LangGraph Greeting Agent (No LLM)")
    print("=" * 40)

    for index, name in enumerate(("Alice", "Bob")):
        if index:
            print()
        input_state = {"name": name}
        result = app.invoke(input_state)
        print(f"Input: {input_state['name']}")
        print(f"Output: {result['greeting']}")
    return 0


__all__ = [
    "FLOW_NAME",
    "GREETING_SCHEMA",
    "GreetingState",
    "create_greeting_graph",
    "greeting_node",
    "main",
]
