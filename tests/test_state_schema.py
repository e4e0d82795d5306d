from types import MappingProxyType

import pytest

from greetflow.flow import StateSchema, StateValidationError, merge_delta

SCHEMA = StateSchema(name="GreetingState", inputs=("name",), outputs={"greeting": ""})


def test_initial_state_defaults_outputs_and_copies_inputs():
    payload = {"name": "Alice"}

    state = SCHEMA.initial_state(payload)

    assert state == {"name": "Alice", "greeting": ""}
    state["name"] = "changed"
    assert payload == {"name": "Alice"}


def test_initial_state_discards_caller_output_values():
    assert SCHEMA.initial_state({"name": "Bob", "greeting": "hi"}) == {"name": "Bob", "greeting": ""}


def test_initial_state_accepts_read_only_mappings():
    assert SCHEMA.initial_state(MappingProxyType({"name": "Ann"}))["name"] == "Ann"


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ({}, "'name' is a required property"),
        ({"name": None}, "name: None is not of type 'string'"),
        ({"name": "x", "age": 3}, "Additional properties are not allowed"),
        (["name"], "is not of type 'object'"),
    ],
)
def test_invalid_input_is_rejected(payload, fragment):
    with pytest.raises(StateValidationError) as excinfo:
        SCHEMA.initial_state(payload)

    assert excinfo.value.schema_name == "GreetingState"
    assert any(fragment in err for err in excinfo.value.errors)
    assert "GreetingState validation failed" in str(excinfo.value)


def test_validate_delta_requires_mapping_of_known_fields():
    assert SCHEMA.validate_delta("step", {"greeting": "x"}) == {"greeting": "x"}

    with pytest.raises(StateValidationError, match="must return a mapping"):
        SCHEMA.validate_delta("step", "x")
    with pytest.raises(StateValidationError, match="step.extra"):
        SCHEMA.validate_delta("step", {"extra": 1})


def test_merge_delta_is_shallow_last_writer_wins():
    state = {"name": "a", "greeting": ""}

    merge_delta(state, {"greeting": "one"})
    merge_delta(state, {"greeting": "two"})

    assert state == {"name": "a", "greeting": "two"}


def test_json_schema_shape():
    schema = SCHEMA.json_schema()

    assert schema["required"] == ["name"]
    assert schema["properties"]["name"] == {"type": "string"}
    assert schema["additionalProperties"] is False


def test_overlapping_fields_rejected():
    with pytest.raises(ValueError):
        StateSchema(name="bad", inputs=("name",), outputs={"name": ""})
