import pytest

from greetflow.agent import greeting_node


def test_returns_only_greeting_delta():
    result = greeting_node({"name": "Bob", "greeting": ""})

    assert isinstance(result, dict)
    assert list(result) == ["greeting"]
    assert "name" not in result


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Alice", "Hello, Alice! Welcome!"),
        ("Bob", "Hello, Bob! Welcome!"),
        ("Charlie", "Hello, Charlie! Welcome!"),
        ("", "Hello, ! Welcome!"),
        ("John Doe", "Hello, John Doe! Welcome!"),
        ("O'Brien", "Hello, O'Brien! Welcome!"),
        ("José", "Hello, José! Welcome!"),
        ("Müller", "Hello, Müller! Welcome!"),
        ("  padded  ", "Hello,   padded  ! Welcome!"),
        ("<b>{name}</b>", "Hello, <b>{name}</b>! Welcome!"),
    ],
)
def test_greeting_format_is_exact(name, expected):
    assert greeting_node({"name": name}) == {"greeting": expected}


def test_only_reads_name():
    # greeting already present in state is irrelevant to the step
    assert greeting_node({"name": "Zara", "greeting": "stale"}) == {"greeting": "Hello, Zara! Welcome!"}


def test_missing_name_fails_loudly():
    with pytest.raises(KeyError):
        greeting_node({})
