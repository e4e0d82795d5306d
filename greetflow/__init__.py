"""greetflow: a single-step greeting agent on a small delta-merging flow runtime."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .agent import GREETING_SCHEMA, GreetingState, create_greeting_graph, greeting_node

__version__ = "0.1.0"


def invoke(inputs: Mapping[str, Any]) -> Dict[str, Any]:
    """Greet ``inputs["name"]`` with a freshly compiled flow."""

    return create_greeting_graph().invoke(inputs)


__all__ = [
    "GREETING_SCHEMA",
    "GreetingState",
    "__version__",
    "create_greeting_graph",
    "greeting_node",
    "invoke",
]
