"""Interactive REPL for string lambdas, powered by prompt_toolkit."""

from __future__ import annotations

import re
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .chain import Wrapper, wrap
from .compiler import clear_cache, compile_lambda, lambda_cache
from .repl_highlight import LambdaLexer
from .runner import parse_literal, render, report_error
from .runtime import LambdaError, init_stdlib
from .utils import debug_py_trace_enabled, set_debug_py_trace

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/recv": ("Set the receiver", "EXPR"),
    "/k": ("Apply K to the receiver", "SPEC"),
    "/t": ("Apply T and keep the result as receiver", "SPEC"),
    "/show": ("Print the receiver", ""),
    "/ast": ("Show how a spec compiles", "SPEC"),
    "/cache": ("Show the lambda cache size", ""),
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the receiver and the lambda cache", ""),
}


class ReplState:
    """Current receiver, held in a Wrapper."""

    def __init__(self) -> None:
        self.wrapper: Wrapper = wrap(None)

    @property
    def receiver(self):
        return self.wrapper.value()

    def set_receiver(self, value) -> None:
        self.wrapper = wrap(value)


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/") or " " in text:
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=f"{hint}  {desc}" if hint else desc,
                )


def _require_arg(cmd: str, arg: str) -> bool:
    if arg:
        return True

    print(f"Usage: {cmd} {_SLASH_CMDS[cmd][1]}", file=sys.stderr)
    return False


def _handle_slash(line: str, state: ReplState) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1].strip() if len(parts) > 1 else ""

    if cmd == "/recv":
        if _require_arg(cmd, arg):
            state.set_receiver(parse_literal(arg))
            print(render(state.receiver))
        return True

    if cmd == "/k":
        if _require_arg(cmd, arg):
            state.wrapper.K(arg)
            print(render(state.receiver))
        return True

    if cmd == "/t":
        if _require_arg(cmd, arg):
            state.wrapper.chain().T(arg)
            print(render(state.receiver))
        return True

    if cmd == "/show":
        print(render(state.receiver))
        return True

    if cmd == "/ast":
        if _require_arg(cmd, arg):
            lam = compile_lambda(arg)
            print(repr(lam))
            print(lam.pretty(), end="")
        return True

    if cmd == "/cache":
        print(f"{len(lambda_cache())} cached lambda(s)")
        return True

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            set_debug_py_trace(True)
        elif arg.lower() in ("off", "0", "false", "no"):
            set_debug_py_trace(False)
        elif arg == "":
            # Toggle.
            set_debug_py_trace(not debug_py_trace_enabled())
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state_name = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state_name}")
        return True

    if cmd == "/reset":
        clear_cache()
        state.set_receiver(None)
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def handle_line(text: str, state: ReplState) -> None:
    """Run one line of input: a slash command, or a spec applied with T."""
    text = _normalize(text)
    if not text.strip():
        return

    try:
        if _handle_slash(text, state):
            return

        result = state.wrapper.T(text.strip())
    except LambdaError as exc:
        report_error(exc)
        return

    print(render(result))


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    init_stdlib()
    state = ReplState()

    history = InMemoryHistory()
    lexer = LambdaLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
    )

    print("ktlambda repl - Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(f"{render(state.receiver)} > ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        handle_line(text, state)
