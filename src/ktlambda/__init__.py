"""K and T combinators over string lambdas.

    >>> from ktlambda import K, T, wrap
    >>> T("Hello", ".toUpperCase()")
    'HELLO'
    >>> wrap([1, 2, 3]).chain().K("push", 4).T(".length").value()
    4
"""

from .chain import Wrapper, wrap
from .combinators import K, T, kestrel, thrush
from .compiler import CompiledLambda, LambdaCache, clear_cache, compile_lambda
from .host import Member, MemberHost, PythonHost, get_default_host, set_default_host
from .invoker import invoke
from .lexer_rd import LexError
from .parser_rd import ParseError
from .runtime import (
    CompileError,
    EvalTypeError,
    EvaluationError,
    InvocationError,
    LambdaError,
    MemberNotFound,
    UnresolvedName,
    register_global,
    register_member,
    register_property,
)

__version__ = "0.1.0"

__all__ = [
    "wrap",
    "Wrapper",
    "K",
    "T",
    "kestrel",
    "thrush",
    "invoke",
    "compile_lambda",
    "CompiledLambda",
    "LambdaCache",
    "clear_cache",
    "MemberHost",
    "PythonHost",
    "Member",
    "get_default_host",
    "set_default_host",
    "register_member",
    "register_property",
    "register_global",
    "LambdaError",
    "CompileError",
    "LexError",
    "ParseError",
    "InvocationError",
    "EvaluationError",
    "UnresolvedName",
    "MemberNotFound",
    "EvalTypeError",
]
