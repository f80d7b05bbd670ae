from __future__ import annotations

import pytest

from tests.support.harness import InvocationError, K, T, one_to_ten
from ktlambda.combinators import kestrel, thrush

SPECS = [
    pytest.param(lambda recv: "ignored", id="function"),
    pytest.param("length", id="member-property"),
    pytest.param("pop", id="member-method"),
    pytest.param("x -> x.length * 2", id="arrow"),
    pytest.param(".length + 1", id="section"),
    pytest.param("_ + _", id="placeholder"),
]


@pytest.mark.parametrize("spec", SPECS)
def test_k_returns_receiver_identity(spec) -> None:
    receiver = one_to_ten()

    assert K(receiver, spec) is receiver


@pytest.mark.parametrize("spec", SPECS)
def test_t_returns_invocation_result(spec) -> None:
    from ktlambda.invoker import invoke

    expected = invoke(one_to_ten(), spec)

    assert T(one_to_ten(), spec) == expected


def test_pop_sequence() -> None:
    arr = one_to_ten()

    K(arr, "pop")
    K(arr, "pop")
    K(arr, "pop")

    assert T(arr, "pop") == 7
    assert len(arr) == 6
    assert T(arr, "length") == 6


def test_k_discards_result_but_keeps_mutation() -> None:
    arr = [1]

    result = K(arr, "push", 2, 3)

    assert result is arr
    assert arr == [1, 2, 3]


def test_k_and_t_forward_extra_args() -> None:
    assert T(10, "a, b, c -> a + b * c", 2, 3) == 16
    assert T("abc", "slice", 1) == "bc"


def test_k_propagates_errors() -> None:
    with pytest.raises(InvocationError):
        K("abc", "length", 1)


def test_scope_keyword() -> None:
    assert T("Hello", "_ + ' ' + world", scope={"world": "World"}) == "Hello World"
    greeting = "Hi"
    assert K(greeting, "_ + ' ' + world", scope={"world": "World"}) is greeting


def test_bird_aliases() -> None:
    assert kestrel is K
    assert thrush is T
    assert thrush("Hello", ".toUpperCase()") == "HELLO"
