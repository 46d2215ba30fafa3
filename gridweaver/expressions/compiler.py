"""Expression compiler - turns expression source into a pure function of the scope.

The Lark parse tree is folded into a tree of Python closures once, at
compile time. Evaluation then walks only those closures against the
scope namespace; there is no ``eval`` and no access to host globals.

Value semantics follow the stored definitions' origin (JavaScript grids):
missing names and members are ``null``, ``+`` concatenates when either
side is a string, ``&&``/``||`` return an operand, and empty lists and
objects are truthy.
"""

import inspect
import logging
import math
import re
from typing import Any, Callable, Mapping, Union

from lark import Transformer
from lark.exceptions import LarkError, UnexpectedCharacters, UnexpectedEOF, UnexpectedToken, VisitError

from gridweaver.errors import CompileError, EvaluationError

from .filters import FILTERS
from .grammar import get_parser
from .scope import ExpressionScope

logger = logging.getLogger(__name__)

Node = Callable[[Mapping[str, Any]], Any]

# String methods callable from expressions, e.g. value.trim() / value.toLowerCase()
_STRING_METHODS: dict[str, Callable[..., Any]] = {
    "toUpperCase": str.upper,
    "toLowerCase": str.lower,
    "trim": str.strip,
    "startsWith": str.startswith,
    "endsWith": str.endswith,
    "includes": lambda s, sub: sub in s,
    "indexOf": str.find,
    "replace": lambda s, old, new: s.replace(old, new, 1),
    "substring": lambda s, start, end=None: s[start:end],
    "slice": lambda s, start, end=None: s[start:end],
    "split": lambda s, sep=None: [s] if sep is None else (list(s) if sep == "" else s.split(sep)),
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)


class _CompileProblem(Exception):
    """Raised inside the transformer; converted to CompileError with the source."""


def _unquote(literal: str) -> str:
    body = literal[1:-1]

    def replace(match: "re.Match[str]") -> str:
        seq = match.group(1)
        if seq.startswith("u") and len(seq) == 5:
            return chr(int(seq[1:], 16))
        return _ESCAPES.get(seq, seq)

    return _ESCAPE_RE.sub(replace, body)


def _truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _to_display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _plus(left: Any, right: Any) -> Any:
    if left is None:
        return right
    if right is None:
        return left
    if isinstance(left, str) or isinstance(right, str):
        return _to_display(left) + _to_display(right)
    return left + right


def _minus(left: Any, right: Any) -> Any:
    return (0 if left is None else left) - (0 if right is None else right)


def _modulo(left: Any, right: Any) -> Any:
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def _divide(left: Any, right: Any) -> Any:
    result = left / right
    if isinstance(result, float) and result.is_integer() and isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def _strict_equal(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _get_member(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    if isinstance(obj, str):
        if name == "length":
            return len(obj)
        method = _STRING_METHODS.get(name)
        if method is None:
            return None
        return lambda *args: method(obj, *args)
    if isinstance(obj, (list, tuple)):
        return len(obj) if name == "length" else None
    return getattr(obj, name, None)


def _get_index(obj: Any, key: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key if isinstance(key, str) else _to_display(key))
    if isinstance(obj, (list, tuple, str)):
        if _is_number(key) and float(key).is_integer():
            idx = int(key)
            if 0 <= idx < len(obj):
                return obj[idx]
        if key == "length":
            return len(obj)
        return None
    if isinstance(key, str) and not key.startswith("_"):
        return getattr(obj, key, None)
    return None


def _check_filter_arity(name: str, fn: Callable[..., Any], arg_count: int) -> None:
    try:
        inspect.signature(fn).bind(None, *([None] * arg_count))
    except TypeError:
        raise _CompileProblem(
            f"filter '{name}' does not accept {arg_count} argument(s)"
        ) from None


def _binary(op: Callable[[Any, Any], Any]) -> Callable[..., Node]:
    def build(self: "ExpressionCompiler", children: list) -> Node:
        left, right = children
        return lambda ns: op(left(ns), right(ns))

    return build


class ExpressionCompiler(Transformer):
    """Folds an expression parse tree into nested closures.

    Stateless; one instance can compile any number of expressions.
    """

    # -- literals --

    def number(self, children: list) -> Node:
        text = str(children[0])
        value: Union[int, float] = float(text) if any(c in text for c in ".eE") else int(text)
        return lambda ns: value

    def string(self, children: list) -> Node:
        value = _unquote(str(children[0]))
        return lambda ns: value

    def true(self, children: list) -> Node:
        return lambda ns: True

    def false(self, children: list) -> Node:
        return lambda ns: False

    def null(self, children: list) -> Node:
        return lambda ns: None

    def array(self, children: list) -> Node:
        items = children[0] if children and children[0] is not None else []
        return lambda ns: [item(ns) for item in items]

    def object(self, children: list) -> Node:
        pairs = [c for c in children if c is not None]
        return lambda ns: {key: value(ns) for key, value in pairs}

    def pair(self, children: list) -> tuple:
        key_token, value = children
        key = _unquote(str(key_token)) if key_token.type == "STRING" else str(key_token)
        return (key, value)

    def arguments(self, children: list) -> list:
        return list(children)

    # -- names and access --

    def name(self, children: list) -> Node:
        ident = str(children[0])
        if ident.startswith("_"):
            raise _CompileProblem(f"name '{ident}' is not accessible")
        return lambda ns: ns.get(ident)

    def member(self, children: list) -> Node:
        target, name_token = children
        attr = str(name_token)
        if attr.startswith("_"):
            raise _CompileProblem(f"member '{attr}' is not accessible")
        return lambda ns: _get_member(target(ns), attr)

    def index(self, children: list) -> Node:
        target, key = children
        return lambda ns: _get_index(target(ns), key(ns))

    def call(self, children: list) -> Node:
        target, args = children
        args = args or []

        def invoke(ns: Mapping[str, Any]) -> Any:
            fn = target(ns)
            if fn is None:
                return None
            if not callable(fn):
                raise TypeError(f"{_to_display(fn)!r} is not a function")
            return fn(*[a(ns) for a in args])

        return invoke

    # -- filters --

    def filter_args(self, children: list) -> list:
        return list(children)

    def filter_call(self, children: list) -> Node:
        source, name_token, args = children
        filter_name = str(name_token)
        fn = FILTERS.get(filter_name)
        if fn is None:
            raise _CompileProblem(
                f"unknown filter '{filter_name}' (available: {', '.join(sorted(FILTERS))})"
            )
        _check_filter_arity(filter_name, fn, len(args))
        return lambda ns: fn(source(ns), *[a(ns) for a in args])

    # -- operators --

    def conditional(self, children: list) -> Node:
        test, when_true, when_false = children
        return lambda ns: when_true(ns) if _truthy(test(ns)) else when_false(ns)

    def or_(self, children: list) -> Node:
        left, right = children

        def evaluate_or(ns: Mapping[str, Any]) -> Any:
            value = left(ns)
            return value if _truthy(value) else right(ns)

        return evaluate_or

    def and_(self, children: list) -> Node:
        left, right = children

        def evaluate_and(ns: Mapping[str, Any]) -> Any:
            value = left(ns)
            return right(ns) if _truthy(value) else value

        return evaluate_and

    def not_(self, children: list) -> Node:
        operand = children[0]
        return lambda ns: not _truthy(operand(ns))

    def neg(self, children: list) -> Node:
        operand = children[0]
        return lambda ns: -operand(ns)

    def pos(self, children: list) -> Node:
        operand = children[0]

        def to_number(ns: Mapping[str, Any]) -> Any:
            value = operand(ns)
            if isinstance(value, str):
                return float(value) if any(c in value for c in ".eE") else int(value)
            return value

        return to_number

    eq = _binary(lambda a, b: a == b)
    ne = _binary(lambda a, b: a != b)
    strict_eq = _binary(_strict_equal)
    strict_ne = _binary(lambda a, b: not _strict_equal(a, b))
    lt = _binary(lambda a, b: a < b)
    gt = _binary(lambda a, b: a > b)
    le = _binary(lambda a, b: a <= b)
    ge = _binary(lambda a, b: a >= b)
    add = _binary(_plus)
    sub = _binary(_minus)
    mul = _binary(lambda a, b: a * b)
    div = _binary(_divide)
    mod = _binary(_modulo)


_compiler = ExpressionCompiler()


class CompiledExpression:
    """A compiled formatter expression: a pure function of an ExpressionScope."""

    __slots__ = ("source", "_fn")

    def __init__(self, source: str, fn: Node):
        self.source = source
        self._fn = fn

    def __call__(self, scope: Union[ExpressionScope, Mapping[str, Any]]) -> Any:
        return evaluate(self, scope)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.source!r})"


def _describe_parse_error(e: LarkError) -> str:
    if isinstance(e, UnexpectedEOF):
        return "unexpected end of expression"
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return "unexpected end of expression"
        return f"unexpected '{e.token}' at column {e.column}"
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character {e.char!r} at column {e.column}"
    return str(e)


def compile_expression(source: str) -> CompiledExpression:
    """Compile expression source text.

    Raises:
        CompileError: On syntax errors, unknown filters, wrong filter
            arity, access to underscore-prefixed names, or nesting too
            deep to compile.
    """
    if not isinstance(source, str):
        raise CompileError(repr(source), "expression source must be a string")
    if not source.strip():
        raise CompileError(source, "expression is empty")

    try:
        tree = get_parser().parse(source)
        fn = _compiler.transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, _CompileProblem):
            raise CompileError(source, str(e.orig_exc)) from None
        if isinstance(e.orig_exc, RecursionError):
            raise CompileError(source, "expression nested too deeply") from None
        raise CompileError(source, str(e.orig_exc)) from e.orig_exc
    except LarkError as e:
        raise CompileError(source, _describe_parse_error(e)) from None
    except RecursionError:
        raise CompileError(source, "expression nested too deeply") from None

    return CompiledExpression(source, fn)


def _as_scope(scope: Union[ExpressionScope, Mapping[str, Any]]) -> ExpressionScope:
    if isinstance(scope, ExpressionScope):
        return scope
    return ExpressionScope(
        api=scope.get("api"),
        col_def=scope.get("colDef"),
        node=scope.get("node"),
        value=scope.get("value"),
    )


def evaluate(compiled: CompiledExpression, scope: Union[ExpressionScope, Mapping[str, Any]]) -> Any:
    """Evaluate a compiled expression against a scope.

    A plain mapping is accepted for convenience; only the scope's known
    names are taken from it.

    Raises:
        EvaluationError: If the expression fails for this scope.
    """
    namespace = _as_scope(scope).as_namespace()
    try:
        return compiled._fn(namespace)
    except RecursionError:
        raise EvaluationError(compiled.source, "expression nested too deeply") from None
    except Exception as e:
        raise EvaluationError(compiled.source, f"{type(e).__name__}: {e}") from e
