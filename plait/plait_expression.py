"""
The plait expression language: parsing and evaluation.

    parse(text)               -> tagged tree (see plait_transformer)
    reduce(tree, environment) -> value
    evaluate(text, environment) == reduce(parse(text), environment)

Evaluation always produces a single value. Boolean chains use the engine's
own truthiness (`true`), under which empty lists and mappings are false.
"""
import collections.abc
import functools
import inspect
from abc import ABC, abstractmethod
from typing import Any, Sequence

from parsimonious.exceptions import ParseError

from plait.plait_environment import Environment, index_list
from plait.plait_errors import (
    ExpressionError, GrammarError, NotCallableError, SubselectOnScalarError, UnknownMethodError,
)
from plait.plait_grammar import get_parser
from plait.plait_printer import Printer
from plait.plait_transformer import ExpressionTransformer


class Dispatcher(ABC):
    """Capability interface for host objects reachable from expressions.

    `obj.name` and `obj.name(a, b)` on such a value both end up in
    `call_method`, with an empty argument list for plain attribute access.
    """

    @abstractmethod
    def call_method(self, name: str, args: Sequence[Any]) -> Any:
        raise NotImplementedError


_SCALARS = (str, bytes, int, float, bool, type(None))


def is_object(value: Any) -> bool:
    """True for values that take name-based method dispatch in a dot chain."""
    if isinstance(value, Dispatcher):
        return True
    if isinstance(value, _SCALARS + (list, tuple, collections.abc.Mapping)):
        return False
    # plain functions and classes are callables, not objects
    return not (inspect.isroutine(value) or inspect.isclass(value))


def true(value: Any) -> bool:
    """Truthiness: empty lists and mappings count as false, callables and objects as true."""
    if isinstance(value, (list, tuple, collections.abc.Mapping)):
        return len(value) > 0
    if value is None:
        return False
    if isinstance(value, _SCALARS):
        return bool(value)
    return True


# =================================================================
# Parsing
# =================================================================

_transformer = ExpressionTransformer()
_printer = Printer()
PARSE_CACHE_SIZE = 1024


@functools.lru_cache(maxsize=PARSE_CACHE_SIZE)
def parse(text: str) -> tuple:
    """Parses expression text into a tagged tree. Trees are immutable, so recent ones are cached per text."""
    try:
        raw = get_parser().parse(text)
    except ParseError as e:
        raise GrammarError(text, str(e)) from e
    return _transformer.transform(raw)


# =================================================================
# Evaluation
# =================================================================

def _as_environment(environment) -> Environment:
    if isinstance(environment, Environment):
        return environment
    return Environment(environment, immutable=True)


def evaluate(expression, environment=None) -> Any:
    """Evaluates expression text (or an already parsed tree) in the given environment."""
    tree = parse(expression) if isinstance(expression, str) else expression
    return reduce(tree, environment)


def reduce(tree, environment=None) -> Any:
    """Evaluates a tagged tree. The environment may be an Environment or a plain mapping."""
    return _reduce(tree, _as_environment(environment))


def _reduce(tree, env: Environment) -> Any:
    match tree:
        case ('literal', value):
            return value
        case ('env', name):
            return env.get(_reduce(name, env))
        case ('indirect', inner):
            return _reduce(inner, env)
        case ('not', operand):
            return not true(_reduce(operand, env))
        case ('expression', first, steps):
            return _reduce_chain(first, steps, env)
        case ('dot', base, selectors):
            return _reduce_dot(base, selectors, env)
        case ('funccall', callee, args):
            func = _reduce(callee, env)
            if not callable(func):
                raise NotCallableError(func)
            return func(*[_reduce(arg, env) for arg in args])
        case ('methcall', name, _):
            raise ExpressionError(f"method {name!r} called on a value that is not an object")
    raise ExpressionError(f"malformed expression tree: {tree!r}")


def _reduce_chain(first, steps, env: Environment) -> Any:
    # '?' continues only from a true value, ':' only from a false one;
    # a skipped step leaves the current value for the next operator
    value = _reduce(first, env)
    for op, operand in steps:
        if op == '?':
            if true(value):
                value = _reduce(operand, env)
        elif not true(value):
            value = _reduce(operand, env)
    return value


def _reduce_dot(base, selectors, env: Environment) -> Any:
    value = _reduce(base, env)
    for selector in selectors:
        if is_object(value):
            match selector:
                case ('methcall', name, args):
                    value = call_method(value, name, [_reduce(arg, env) for arg in args])
                case _:
                    # attribute access is a method call without arguments
                    value = call_method(value, _reduce(selector, env), [])
        elif isinstance(value, collections.abc.Mapping):
            value = _select_key(value, _reduce(selector, env))
        elif isinstance(value, (list, tuple)):
            value = index_list(value, _reduce(selector, env))
        else:
            raise SubselectOnScalarError(value, _printer.pformat(selector))
    return value


def _select_key(mapping, key) -> Any:
    try:
        if key in mapping:
            return mapping[key]
    except TypeError:
        return None
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        # documents decoded from JSON/YAML only carry string keys
        return mapping.get(str(key))
    return None


def call_method(obj: Any, name: Any, args: list) -> Any:
    """Invokes a method by name on a dispatchable value."""
    if isinstance(obj, Dispatcher):
        return obj.call_method(name, args)
    if not isinstance(name, str):
        raise UnknownMethodError(obj, name)
    try:
        attr = getattr(obj, name)
    except AttributeError:
        raise UnknownMethodError(obj, name) from None
    if callable(attr):
        return attr(*args)
    if args:
        raise NotCallableError(attr)
    return attr


__all__ = [
    "Dispatcher", "is_object", "true", "parse", "evaluate", "reduce", "call_method",
]
