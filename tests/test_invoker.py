from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest

from tests.support.harness import CompileError, InvocationError, UnresolvedName
from ktlambda.host import Member, PythonHost
from ktlambda.invoker import invoke


class Greeter:
    greeting = "hi"

    def __init__(self) -> None:
        self.calls = []

    def greet(self, name: str = "you") -> str:
        self.calls.append(name)
        return f"{self.greeting} {name}"


def test_callable_spec_gets_receiver_and_args() -> None:
    assert invoke(3, lambda recv, a, b: recv + a * b, (2, 5)) == 13


def test_member_method_is_called_with_args() -> None:
    g = Greeter()

    assert invoke(g, "greet", ("bob",)) == "hi bob"
    assert g.calls == ["bob"]


def test_member_property_is_read() -> None:
    assert invoke(Greeter(), "greeting") == "hi"


def test_property_with_args_is_invocation_error() -> None:
    g = Greeter()

    with pytest.raises(InvocationError) as exc_info:
        invoke(g, "greeting", (1,))

    err = exc_info.value
    assert err.receiver is g
    assert err.spec == "greeting"


def test_expression_spec_is_compiled() -> None:
    assert invoke("Hello", "str + ' World'") == "Hello World"
    assert invoke(2, "x, y -> x * y", (21,)) == 42


def test_member_wins_over_expression() -> None:
    class Shadow:
        def x(self):
            return "member"

    # as an expression 'x' would be the identity lambda
    assert invoke(Shadow(), "x") == "member"


def test_member_resolution_is_tried_exactly_once() -> None:
    calls = []

    class CountingHost(PythonHost):
        def find_member(self, receiver, name):
            calls.append(name)
            return super().find_member(receiver, name)

    assert invoke("abc", ".toUpperCase()", host=CountingHost()) == "ABC"
    # once by the invoker, once by the compiled lambda for '.toUpperCase'
    assert calls == [".toUpperCase()", "toUpperCase"]


def test_bare_unknown_name_compiles_to_identity() -> None:
    assert invoke(5, "whatever") == 5


def test_malformed_text_is_invocation_error() -> None:
    with pytest.raises(InvocationError) as exc_info:
        invoke("abc", "x ->")

    assert isinstance(exc_info.value.__cause__, CompileError)
    assert "neither a member" in str(exc_info.value)


@pytest.mark.parametrize(
    "spec",
    [
        pytest.param(42, id="int"),
        pytest.param(None, id="none"),
        pytest.param(["push"], id="list"),
    ],
)
def test_unsupported_spec_types(spec) -> None:
    with pytest.raises(InvocationError):
        invoke("abc", spec)


def test_runtime_errors_propagate_unchanged() -> None:
    def boom(recv):
        raise KeyError("inner")

    with pytest.raises(KeyError):
        invoke(1, boom)

    with pytest.raises(UnresolvedName):
        invoke("a", "_ + nope")


def test_scope_reaches_compiled_lambda() -> None:
    assert invoke("Hello", "_ + ' ' + world", scope={"world": "World"}) == "Hello World"
    assert invoke("a", "s + sep + s", scope={"sep": "-"}) == "a-a"


def test_custom_host_member() -> None:
    class FixedHost:
        def find_member(self, receiver, name):
            if name == "answer":
                return Member(name, 42, False)
            return None

    assert invoke(object(), "answer", host=FixedHost()) == 42


def test_resolution_path_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="ktlambda"):
        invoke("abc", "toUpperCase")
        invoke("abc", ".length")

    messages = [record.getMessage() for record in caplog.records]
    assert any("invoking member 'toUpperCase'" in msg for msg in messages)
    assert any("section lambda '.length'" in msg for msg in messages)


SRC_DIR = Path(__file__).resolve().parent.parent / "src"

FRESH_PROCESS_CASES = [
    pytest.param("T('Hello', 'length')", "5", id="property"),
    pytest.param("T([1, 2], 'map', 'x -> x * 2')", "[2, 4]", id="method-with-callback"),
    pytest.param("K([1], 'push', 2)", "[1, 2]", id="kestrel-method"),
]


@pytest.mark.parametrize("expr, expected", FRESH_PROCESS_CASES)
def test_member_names_resolve_before_any_compile(expr: str, expected: str) -> None:
    # a new interpreter, so nothing has loaded the stdlib members yet
    code = f"from ktlambda import K, T; print({expr})"
    pythonpath = os.pathsep.join(filter(None, [str(SRC_DIR), os.environ.get("PYTHONPATH")]))
    env = dict(os.environ, PYTHONPATH=pythonpath)

    result = subprocess.run(
        [sys.executable, "-c", code], capture_output=True, text=True, env=env, check=True
    )

    assert result.stdout.strip() == expected
