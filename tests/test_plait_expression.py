import json

import pytest

from plait.plait_environment import Environment
from plait.plait_errors import (
    ExpressionError, GrammarError, NotCallableError, SubselectOnScalarError, UnknownMethodError,
)
from plait.plait_expression import PARSE_CACHE_SIZE, Dispatcher, evaluate, is_object, parse, reduce, true


class Recorder(Dispatcher):
    """Answers every method call with the name and arguments it received."""

    def call_method(self, name, args):
        return (name, list(args))


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y

    def scaled(self, factor):
        return Point(self.x * factor, self.y * factor)

    def as_list(self):
        return [self.x, self.y]


def add(a, b):
    return a + b


DATA = {
    'title': 'top',
    'zero': 0,
    'empty': '',
    'nothing': None,
    'list': [10, 20, 30],
    'items': [{'title': 'first'}, {'title': 'second'}],
    'hash': {'a': 1, 'b': {'c': 'deep'}, '1': 'one'},
    'name': 'title',
    'k': 'a',
    'add': add,
    'now': lambda: 'tick',
    'rec': Recorder(),
    'point': Point(1, 2),
}

# --- truthiness ---

@pytest.mark.parametrize(
    "value,expected",
    [
        ([], False),
        ({}, False),
        ((), False),
        ([0], True),
        ({'a': 1}, True),
        (0, False),
        (0.0, False),
        ("", False),
        (None, False),
        (False, False),
        ("0", True),
        (1, True),
        (add, True),
        (Recorder(), True),
        (Point(0, 0), True),
    ],
)
def test_true(value, expected):
    assert true(value) is expected


def test_is_object():
    assert is_object(Recorder())
    assert is_object(Point(1, 2))
    assert not is_object(add)
    assert not is_object(Point)
    assert not is_object({'a': 1})
    assert not is_object([1])
    assert not is_object('text')
    assert not is_object(None)

# --- literals and lookups ---

@pytest.mark.parametrize(
    "source,expected",
    [
        ("42", 42),
        ("-3", -3),
        ("2.5", 2.5),
        ("'text'", "text"),
        ('"it\'s"', "it's"),
        ("title", "top"),
        ("unbound", None),
        ("$name", "top"),
        ("(title)", "top"),
        ("!zero", True),
        ("!title", False),
        ("!!list", True),
        ("!nothing", True),
    ],
)
def test_simple_values(source, expected):
    assert evaluate(source, DATA) == expected

# --- boolean chains ---

@pytest.mark.parametrize(
    "source,expected",
    [
        ('"" ? "yes" : "no"', "no"),
        ('1 ? "yes" : "no"', "yes"),
        ('list ? "full" : "empty"', "full"),
        ('hash.missing ? "set" : "unset"', "unset"),
        ("title : 'default'", "top"),
        ("nothing : 'default'", "default"),
        ("zero ? 'never'", 0),
        ("title ? 'yes'", "yes"),
    ],
)
def test_ternary(source, expected):
    assert evaluate(source, DATA) == expected


def test_chain_is_left_associative():
    calls = []

    def seen(value):
        calls.append(value)
        return value

    env = {'seen': seen}
    assert evaluate("seen(1) ? seen(2) ? seen(3)", env) == 3
    assert calls == [1, 2, 3]

    calls.clear()
    assert evaluate("seen(1) ? seen(0) ? seen(3)", env) == 0
    assert calls == [1, 0]

    calls.clear()
    assert evaluate("seen(0) ? seen(2) ? seen(3)", env) == 0
    assert calls == [0]


def test_skipped_step_keeps_value_for_next_operator():
    # a false condition skips '?' but the following ':' still sees it
    assert evaluate("zero ? 'a' : 'b' ? 'c'", DATA) == 'c'
    assert evaluate("title ? zero : 'fallback'", DATA) == 'fallback'

# --- dot chains ---

@pytest.mark.parametrize(
    "source,expected",
    [
        ("list.0", 10),
        ("list.-1", 30),
        ("list.-3", 10),
        ("list.3", None),
        ("list.-4", None),
        ("list.x", None),
        ("items.1.title", "second"),
        ("items.-1.title", "second"),
        ("hash.a", 1),
        ("hash.b.c", "deep"),
        ("hash.missing", None),
        ("hash.'a'", 1),
        ("hash.$k", 1),
        ("hash.(k)", 1),
        ("hash.1", "one"),
        ("hash . b . c", "deep"),
    ],
)
def test_dot_chain(source, expected):
    assert evaluate(source, DATA) == expected


@pytest.mark.parametrize("source", ["title.length", "zero.0", "nothing.x", "unbound.x", "add.x", "hash.a.b"])
def test_subselect_on_scalar(source):
    with pytest.raises(SubselectOnScalarError):
        evaluate(source, DATA)


def test_subselect_error_names_selector():
    with pytest.raises(SubselectOnScalarError) as e:
        evaluate("title.(k)", DATA)
    assert e.value.value == 'top'
    assert e.value.selector == "(k)"
    assert "subselect (k) on a scalar" in str(e.value)


def test_tuples_index_like_lists():
    assert evaluate("pair.-1", {'pair': ('a', 'b')}) == 'b'

# --- calls ---

def test_function_calls():
    assert evaluate("add(1, 2)", DATA) == 3
    assert evaluate("add(list.0, hash.a)", DATA) == 11
    assert evaluate("now()", DATA) == 'tick'
    assert evaluate("add('a', add('b', 'c'))", DATA) == 'abc'


def test_function_call_result_can_be_selected():
    env = {'make': lambda: {'x': [1, 2]}}
    assert evaluate("make().x.-1", env) == 2


def test_calling_a_non_callable():
    with pytest.raises(NotCallableError):
        evaluate("title()", DATA)
    with pytest.raises(NotCallableError):
        evaluate("unbound()", DATA)


def test_dispatcher_methods_and_attributes():
    assert evaluate("rec.hello('you', 2)", DATA) == ('hello', ['you', 2])
    assert evaluate("rec.size", DATA) == ('size', [])
    assert evaluate("rec.size()", DATA) == ('size', [])
    assert evaluate("rec.$k", DATA) == ('a', [])


def test_plain_object_dispatch():
    assert evaluate("point.x", DATA) == 1
    assert evaluate("point.scaled(3).y", DATA) == 6
    assert evaluate("point.as_list.-1", DATA) == 2
    assert evaluate("point.as_list().0", DATA) == 1


def test_plain_object_unknown_method():
    with pytest.raises(UnknownMethodError):
        evaluate("point.z", DATA)
    with pytest.raises(NotCallableError):
        evaluate("point.x(1)", DATA)


def test_method_call_on_container_fails():
    with pytest.raises(ExpressionError, match="not an object"):
        evaluate("hash.keys()", DATA)

# --- environments ---

def test_plain_mapping_is_wrapped_immutable():
    assert evaluate("a", {'a': 1}) == 1
    assert evaluate("a") is None


def test_environment_chain_lookup():
    root = Environment({'a': 1, 'b': 2})
    child = root.child({'a': 10})
    assert evaluate("add(a, b)", child.child({'add': add})) == 12


def test_none_binding_masks_parent():
    root = Environment({'a': 1})
    child = root.child({'a': None})
    assert evaluate("a : 'unset'", child) == 'unset'

# --- parse / reduce ---

def test_parse_is_cached():
    assert parse("items.0.title") is parse("items.0.title")


def test_parse_cache_is_bounded():
    for i in range(PARSE_CACHE_SIZE + 10):
        parse(f"list.{i}")
    info = parse.cache_info()
    assert info.maxsize == PARSE_CACHE_SIZE
    assert info.currsize <= PARSE_CACHE_SIZE


@pytest.mark.parametrize("source", ["a ?", "1.x", "'open", "a..b", "f(", "hash.", "", "a b"])
def test_grammar_error(source):
    with pytest.raises(GrammarError) as e:
        parse(source)
    assert e.value.clause == source


ROUND_TRIP_SOURCES = [
    "title",
    "$name",
    "list.-1",
    "items.0.title",
    "hash.$k",
    "add(1, hash.a)",
    "rec.hello('x')",
    "point.scaled(2).x",
    "!zero ? 'yes' : 'no'",
    "nothing : hash.b.c",
]


@pytest.mark.parametrize("source", ROUND_TRIP_SOURCES)
def test_reduce_of_parse_matches_evaluate(source):
    assert reduce(parse(source), DATA) == evaluate(source, DATA)


@pytest.mark.parametrize("source", ROUND_TRIP_SOURCES)
def test_trees_survive_json(source):
    restored = json.loads(json.dumps(parse(source)))
    assert reduce(restored, DATA) == evaluate(source, DATA)


def test_evaluate_accepts_trees():
    assert evaluate(('literal', 5)) == 5
    assert evaluate(parse("hash.a"), DATA) == 1


def test_malformed_tree():
    with pytest.raises(ExpressionError, match="malformed"):
        reduce(('bogus', 1), DATA)
