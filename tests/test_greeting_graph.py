import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

import greetflow
from greetflow.agent import create_greeting_graph, main
from greetflow.flow import CompiledFlow, StateValidationError
from greetflow.tracing.config import ENV_API_KEY, ENV_ENDPOINT, ENV_PROJECT, ENV_TRACING


def test_create_graph_compiles_single_step_path():
    app = create_greeting_graph()

    assert isinstance(app, CompiledFlow)
    assert app.name == "greeting"
    assert app.path == ("greeting_node",)


def test_invoke_returns_name_and_greeting():
    app = create_greeting_graph()

    assert app.invoke({"name": "Alice"}) == {"name": "Alice", "greeting": "Hello, Alice! Welcome!"}


@pytest.mark.parametrize(
    "name, expected",
    [
        ("", "Hello, ! Welcome!"),
        ("John Doe", "Hello, John Doe! Welcome!"),
        ("O'Brien", "Hello, O'Brien! Welcome!"),
        ("François", "Hello, François! Welcome!"),
    ],
)
def test_invoke_edge_case_names(name, expected):
    result = create_greeting_graph().invoke({"name": name})

    assert result["name"] == name
    assert result["greeting"] == expected


def test_invoke_does_not_mutate_input():
    app = create_greeting_graph()
    input_state = {"name": "Alice"}

    result = app.invoke(input_state)

    assert input_state == {"name": "Alice"}
    assert result is not input_state


def test_supplied_greeting_is_ignored():
    input_state = {"name": "Bob", "greeting": "overwritten"}

    result = create_greeting_graph().invoke(input_state)

    assert result == {"name": "Bob", "greeting": "Hello, Bob! Welcome!"}
    assert input_state["greeting"] == "overwritten"


def test_results_are_independent_between_invocations():
    app = create_greeting_graph()

    first = app.invoke({"name": "Alice"})
    first["greeting"] = "tampered"
    second = app.invoke({"name": "Alice"})

    assert second["greeting"] == "Hello, Alice! Welcome!"


def test_missing_name_is_rejected():
    with pytest.raises(StateValidationError) as excinfo:
        create_greeting_graph().invoke({})

    assert any("'name' is a required property" in err for err in excinfo.value.errors)


def test_non_string_name_is_rejected():
    with pytest.raises(StateValidationError):
        create_greeting_graph().invoke({"name": 42})


def test_package_level_invoke():
    assert greetflow.invoke({"name": "Eve"}) == {"name": "Eve", "greeting": "Hello, Eve! Welcome!"}


def test_works_without_tracing_environment(monkeypatch):
    for key in (ENV_TRACING, ENV_API_KEY, ENV_PROJECT, ENV_ENDPOINT, "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(key, raising=False)

    result = create_greeting_graph().invoke({"name": "Test"})

    assert result["greeting"] == "Hello, Test! Welcome!"


def test_batch_preserves_order():
    names = ["Alice", "Bob", "Charlie"]

    results = create_greeting_graph().batch([{"name": n} for n in names])

    assert [r["name"] for r in results] == names
    assert [r["greeting"] for r in results] == [f"Hello, {n}! Welcome!" for n in names]


@pytest.mark.asyncio
async def test_concurrent_async_invocations_do_not_cross_talk():
    app = create_greeting_graph()
    names = ["Alice", "Bob", "Charlie", "David", "Eve"]

    results = await asyncio.gather(*(app.ainvoke({"name": n}) for n in names))

    for name, result in zip(names, results):
        assert result == {"name": name, "greeting": f"Hello, {name}! Welcome!"}


@pytest.mark.asyncio
async def test_abatch_matches_inputs():
    names = ["Alice", "Bob", "Charlie"]

    results = await create_greeting_graph().abatch([{"name": n} for n in names])

    assert [r["greeting"] for r in results] == [f"Hello, {n}! Welcome!" for n in names]


def test_concurrent_thread_invocations_do_not_cross_talk():
    app = create_greeting_graph()
    names = [f"user-{i}" for i in range(200)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda n: app.invoke({"name": n}), names))

    for name, result in zip(names, results):
        assert result["name"] == name
        assert result["greeting"] == f"Hello, {name}! Welcome!"


def test_main_prints_two_sample_runs(capsys):
    assert main() == 0

    out = capsys.readouterr().out.splitlines()
    assert out == [
        "LangGraph Greeting Agent (No LLM)",
        "=" * 40,
        "Input: Alice",
        "Output: Hello, Alice! Welcome!",
        "",
        "Input: Bob",
        "Output: Hello, Bob! Welcome!",
    ]
