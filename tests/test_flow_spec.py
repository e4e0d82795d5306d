import pytest

from greetflow.flow import END, START, FlowCompileError, FlowSpec, StateSchema, StepDef

SCHEMA = StateSchema(name="Doc", inputs=("text",), outputs={"upper": "", "length": 0})


def _upper(state):
    return {"upper": state["text"].upper()}


def _length(state):
    return {"length": len(state["upper"])}


def test_path_follows_edges_in_order():
    spec = (
        FlowSpec(name="doc", schema=SCHEMA)
        .add_step("length", _length)
        .add_step("upper", _upper)
        .add_edge(START, "upper")
        .add_edge("upper", "length")
        .add_edge("length", END)
    )

    assert spec.path() == ("upper", "length")
    assert spec.adjacency() == {START: ("upper",), "upper": ("length",), "length": (END,)}


def test_empty_flow_is_allowed():
    spec = FlowSpec(name="noop", schema=SCHEMA).add_edge(START, END)

    assert spec.path() == ()
    assert spec.compile().invoke({"text": "x"}) == {"text": "x", "upper": "", "length": 0}


def test_flow_id_defaults_to_name_and_revision_moves():
    spec = FlowSpec(name="doc", schema=SCHEMA)
    before = spec.flow_revision()

    spec.add_step(StepDef("upper", _upper))

    assert spec.flow_id == "doc"
    assert spec.flow_revision() != before
    assert [step.name for step in spec] == ["upper"]


def test_duplicate_and_reserved_step_names_rejected():
    spec = FlowSpec(name="doc", schema=SCHEMA).add_step("upper", _upper)

    with pytest.raises(ValueError):
        spec.add_step("upper", _upper)
    with pytest.raises(ValueError):
        spec.add_step(START, _upper)
    with pytest.raises(ValueError):
        spec.add_step("no-callable")


@pytest.mark.parametrize(
    "edges, fragment",
    [
        ([("upper", END)], "no edge from START"),
        ([(START, "upper"), ("upper", "missing")], "unknown step 'missing'"),
        ([(START, "upper"), ("upper", END), ("upper", "length"), ("length", END)], "branching"),
        ([(START, "upper"), ("upper", "length"), ("length", "upper")], "loop detected"),
        ([(START, "upper"), ("length", END)], "never reaches END"),
        ([(START, "upper"), ("upper", END)], "'length' is not reachable"),
        ([(START, "upper"), ("upper", START)], "points back at START"),
    ],
)
def test_compile_rejects_non_linear_graphs(edges, fragment):
    spec = FlowSpec(name="doc", schema=SCHEMA).add_step("upper", _upper).add_step("length", _length)
    for source, target in edges:
        spec.add_edge(source, target)

    with pytest.raises(FlowCompileError) as excinfo:
        spec.compile()

    assert fragment in str(excinfo.value)
    assert excinfo.value.flow == "doc"
