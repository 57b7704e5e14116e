"""
The structural template engine: plain data in, plain data out.

A template is an ordinary nesting of lists, mappings and scalars. Strings at
significant positions carry directive markers that change how the node around
them is processed:

    scalar leaves     &expr ,expr   value of expr ('-' after the marker splices lists)
                      $expr         string form of expr
                      #...          comment ('#+' keeps an empty string in lists)
                      .expr         include the file named by expr (processed in place)
                      ^expr         call the function expr without arguments
                      text          '{$expr}' replaced, '{#...}' removed
    first of a list   @expr         repeat the rest of the list for every item of expr
                      ?expr         [?cond, then, else]
    inside a list     //            stop here
                      /             skip the next element
                      ^expr         pass the next element to the function expr
                      <             splice the next element into this list
    mapping keys      %expr         merge the body once per key/value of expr
                      ?expr         switch on expr; '?' is the default case
                      <...          merge the processed value into this mapping
                      /...          comment out this key/value pair
                      ^expr         merge the result of expr(processed value)

Every node handler returns the list of values it emits. Lists collect all of
them; single-value positions (mapping keys and values, function arguments,
the template root) take the first one.
"""
import collections.abc
import functools
import os
import re
import sys
from typing import Any, Callable, List, NamedTuple, Optional

from plait.plait_environment import Environment
from plait.plait_errors import (
    CommentedValueError, HashConstructTypeError, IncludeDecodeError, IncludeNotFoundError,
    NotCallableError, PlaitError, TemplateError,
)
from plait.plait_expression import evaluate, true
from plait.plait_file import FileLoader, find_include, include_paths_from_env
from plait.plait_serialize import deserialize

CONTEXT_LIST = 'list'
CONTEXT_MAPPING = 'mapping'

# list element markers
_STOP_MARK = re.compile(r'//(-?)')
_SKIP_MARK = re.compile(r'/(-?)')
_CAPTURE_MARK = re.compile(r'\^(-?)\s*(.*)\Z', re.S)
_INTERPOLATE_MARK = '<'

# mapping keys
_CALL_KEY = re.compile(r'\^\s*(.*)\Z', re.S)

# inline text
_INLINE_VALUE = re.compile(r'\{\$([^}]*)\}')
_INLINE_DASH_COMMENT = re.compile(r'\s*\{#-[^}]*\}\s*')
# trailing whitespace (past any comments glued on) is only looked at, never consumed
_INLINE_COMMENT = re.compile(r'(\s*)\{#[^}]*\}(?=(?:\{#[^}]*\})*(\s*))')

_MISSING = object()


def _key_order(key):
    # merge keys first, the rest lexicographically
    text = str(key)
    return (not text.startswith('<'), text)


def _single(emitted: list) -> Any:
    return emitted[0] if emitted else None


def _stringify(value: Any) -> str:
    return '' if value is None else str(value)


def _strip_comment(match) -> str:
    # one run of whitespace survives: the trailing one, else the leading one
    before, after = match.groups()
    return '' if after else before


class _ListState(NamedTuple):
    """Pending effects carried from one element of a plain list to the next."""
    skip_next: bool = False
    capture: Optional[Callable] = None
    interpolate_next: bool = False
    interpolate: bool = False
    stopped: bool = False


class Template:
    """Processes data templates against an environment of parameters."""

    def __init__(self, include_paths=None, codec=None, loader=None):
        if include_paths is None:
            include_paths = ['.'] + include_paths_from_env()
        self.include_paths: List[str] = list(include_paths)
        self.codec = codec
        self.loader = loader or FileLoader()
        self._text_rules = self._create_text_rules()
        self._list_rules = self._create_list_rules()

    def _create_text_rules(self):
        # first match wins; unmarked text falls through to _text_plain
        return [
            (re.compile(r'[&,](-?)(.*)\Z', re.S), self._text_direct),
            (re.compile(r'\$(.*)\Z', re.S), self._text_string),
            (re.compile(r'#(\+?)'), self._text_comment),
            (re.compile(r'\.(-?)\s*(.*)\Z', re.S), self._text_include),
            (re.compile(r'\^(-?)\s*(.*)\Z', re.S), self._text_call),
        ]

    def _create_list_rules(self):
        # directives recognized on the first element of a list
        return [
            (re.compile(r'@(-?)(.*)\Z', re.S), self._list_loop),
            (re.compile(r'\?(-?)(.*)\Z', re.S), self._list_condition),
        ]

    def _dbg(self, *parts):
        if os.environ.get("PLAIT_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def add_include_paths(self, *paths: str):
        self.include_paths.extend(paths)

    # =================================================================
    # Entry points
    # =================================================================

    def process(self, template: Any, data: Any = None) -> Any:
        """Processes template against data and returns the resulting value."""
        if template is None:
            return None
        return _single(self._process(template, self._root(data), '', False))

    def process_all(self, template: Any, data: Any = None) -> list:
        """Processes template as a list element and returns every value it emits."""
        if template is None:
            return []
        return self._process(template, self._root(data), CONTEXT_LIST, False)

    def _root(self, data: Any) -> Environment:
        if isinstance(data, Environment):
            return data
        return Environment({} if data is None else data)

    # =================================================================
    # Dispatch
    # =================================================================

    def _process(self, template: Any, env: Environment, context: str, interpolate: bool) -> list:
        if isinstance(template, str):
            return self._process_text(template, env, context, interpolate)
        if isinstance(template, (list, tuple)):
            return self._process_list(template, env, context, interpolate)
        if isinstance(template, collections.abc.Mapping):
            return self._process_mapping(template, env, context, interpolate)
        return [template]

    def _emit(self, value: Any, context: str, interpolate: bool) -> list:
        # a list produced for a list splices into it; a mapping produced for a
        # mapping is merged by the caller, so it is handed up as-is
        if interpolate and context == CONTEXT_LIST and isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    def _evaluate(self, clause: str, env: Environment) -> Any:
        try:
            return evaluate(clause, env)
        except PlaitError as e:
            if e.clause is None:
                e.clause = clause
            raise

    def _callable(self, clause: str, env: Environment) -> Callable:
        func = self._evaluate(clause, env)
        if not callable(func):
            raise NotCallableError(func, clause=clause)
        return func

    # =================================================================
    # Scalars
    # =================================================================

    def _process_text(self, template: str, env: Environment, context: str, interpolate: bool) -> list:
        for pattern, handler in self._text_rules:
            match = pattern.match(template)
            if match:
                self._dbg(f"text directive {handler.__name__} {template!r}")
                return handler(match, env, context, interpolate)
        return [self._text_plain(template, env)]

    def _text_direct(self, match, env, context, interpolate):
        dash, clause = match.groups()
        return self._emit(self._evaluate(clause, env), context, interpolate or bool(dash))

    def _text_string(self, match, env, context, interpolate):
        return [_stringify(self._evaluate(match.group(1), env))]

    def _text_comment(self, match, env, context, interpolate):
        if context and not match.group(1):
            return []
        return ['']

    def _text_include(self, match, env, context, interpolate):
        dash, clause = match.groups()
        filename = _stringify(self._evaluate(clause, env))
        path = find_include(filename, self.include_paths, self.loader)
        if path is None:
            raise IncludeNotFoundError(filename, self.include_paths)
        decode = self.codec or functools.partial(deserialize, path=path)
        data = self.loader.read(path)
        try:
            included = decode(data)
        except Exception as e:
            raise IncludeDecodeError(path, str(e)) from e
        return self._process(included, env, context, interpolate or bool(dash))

    def _text_call(self, match, env, context, interpolate):
        dash, clause = match.groups()
        func = self._callable(clause, env)
        return self._emit(func(), context, interpolate or bool(dash))

    def _text_plain(self, template: str, env: Environment) -> str:
        if '{' not in template:
            return template
        text = _INLINE_DASH_COMMENT.sub('', template)
        text = _INLINE_COMMENT.sub(_strip_comment, text)
        return _INLINE_VALUE.sub(lambda m: _stringify(self._evaluate(m.group(1), env)), text)

    # =================================================================
    # Lists
    # =================================================================

    def _process_list(self, template, env: Environment, context: str, interpolate: bool) -> list:
        if not template:
            return self._emit([], context, interpolate)
        head = template[0]
        if isinstance(head, str):
            for pattern, handler in self._list_rules:
                match = pattern.match(head)
                if match:
                    self._dbg(f"list directive {handler.__name__} {head!r}")
                    return handler(match, template[1:], env, context, interpolate)
        return self._process_elements(template, env, context, interpolate)

    def _list_loop(self, match, body, env, context, interpolate):
        dash, clause = match.groups()
        items = self._evaluate(clause, env)
        if items is None:
            items = []
        if not isinstance(items, (list, tuple)):
            raise TemplateError(f"loop over {type(items).__name__}, expected a list", clause=clause)
        result = []
        for item in items:
            if isinstance(item, collections.abc.Mapping):
                scope = env.child(item)
            else:
                scope = env.child({'_': item})
            for element in body:
                result.extend(self._process(element, scope, CONTEXT_LIST, False))
        return self._emit(result, context, interpolate or bool(dash))

    def _list_condition(self, match, branches, env, context, interpolate):
        dash, clause = match.groups()
        if true(self._evaluate(clause, env)):
            chosen = branches[0] if branches else _MISSING
        else:
            chosen = branches[1] if len(branches) > 1 else _MISSING
        if chosen is _MISSING:
            return []
        return self._process(chosen, env, context, interpolate or bool(dash))

    def _process_elements(self, elements, env: Environment, context: str, interpolate: bool) -> list:
        state = _ListState()
        result = []
        for position, element in enumerate(elements):
            state, emitted = self._step(state, element, env, position == 0)
            result.extend(emitted)
            if state.stopped:
                break
        if state.capture is not None:
            # a capturing function still waiting for its argument gets none
            result.extend(self._emit(state.capture(), CONTEXT_LIST, state.interpolate_next))
        return self._emit(result, context, interpolate or state.interpolate)

    def _step(self, state: _ListState, element: Any, env: Environment, is_first: bool):
        """Processes one element of a plain list; returns the new state and the emitted values."""
        if isinstance(element, str):
            match = _STOP_MARK.match(element)
            if match:
                forced = state.interpolate or (is_first and bool(match.group(1)))
                return state._replace(stopped=True, interpolate=forced), []
            match = _SKIP_MARK.match(element)
            if match:
                forced = state.interpolate or (is_first and bool(match.group(1)))
                return state._replace(skip_next=True, interpolate=forced), []
            match = _CAPTURE_MARK.match(element)
            if match:
                forced = state.interpolate or (is_first and bool(match.group(1)))
                func = self._callable(match.group(2), env)
                return state._replace(capture=func, interpolate=forced), []
            if element.startswith(_INTERPOLATE_MARK):
                return state._replace(interpolate_next=True), []
        if state.skip_next:
            return state._replace(skip_next=False), []
        if state.capture is not None:
            argument = _single(self._process(element, env, '', False))
            emitted = self._emit(state.capture(argument), CONTEXT_LIST, state.interpolate_next)
            return state._replace(capture=None, interpolate_next=False), emitted
        emitted = self._process(element, env, CONTEXT_LIST, state.interpolate_next)
        return state._replace(interpolate_next=False), emitted

    # =================================================================
    # Mappings
    # =================================================================

    def _process_mapping(self, template, env: Environment, context: str, interpolate: bool) -> list:
        if not template:
            return self._emit({}, context, interpolate)
        for key in sorted(template, key=_key_order):
            if not isinstance(key, str):
                continue
            if key.startswith('%'):
                self._dbg(f"hash construct {key!r}")
                return self._emit(self._hash_construct(key, template[key], env), context, interpolate)
            if key.startswith('?'):
                self._dbg(f"switch construct {key!r}")
                return self._switch_construct(key, template[key], env, context, interpolate)
        return self._emit(self._merge_keys(template, env), context, interpolate)

    def _hash_construct(self, key: str, body: Any, env: Environment) -> dict:
        clause = key[1:]
        source = self._evaluate(clause, env)
        if not isinstance(source, collections.abc.Mapping):
            raise HashConstructTypeError(f"result of expression {clause!r}", source, clause=clause)
        result = {}
        for k, v in source.items():
            content = _single(self._process(body, env.child({'key': k, 'value': v}), '', False))
            if not isinstance(content, collections.abc.Mapping):
                raise HashConstructTypeError("content of % construct", content, clause=key)
            result.update(content)
        return result

    def _switch_construct(self, key: str, cases: Any, env: Environment, context: str, interpolate: bool) -> list:
        if not isinstance(cases, collections.abc.Mapping):
            raise TemplateError(f"switch cases must be a mapping, not {type(cases).__name__}", clause=key)
        value = self._evaluate(key[1:], env)
        case = self._switch_case(cases, value)
        if case is _MISSING and '?' in cases:
            case = '?'
        if case is _MISSING:
            return []
        return self._process(cases[case], env, context, interpolate)

    def _switch_case(self, cases, value):
        if value is None:
            return _MISSING
        try:
            if value in cases:
                return value
        except TypeError:
            return _MISSING
        if str(value) in cases:
            return str(value)
        return _MISSING

    def _merge_keys(self, template, env: Environment) -> dict:
        result = {}
        for key in sorted(template, key=_key_order):
            value = template[key]
            if isinstance(key, str) and key.startswith('/'):
                # structural comment
                continue
            if isinstance(value, str) and value.startswith('/'):
                raise CommentedValueError(key, value)
            if isinstance(key, str) and key.startswith('<'):
                for part in self._process(value, env, CONTEXT_MAPPING, True):
                    if not isinstance(part, collections.abc.Mapping):
                        raise HashConstructTypeError("content of < merge", part, clause=key)
                    result.update(part)
                continue
            match = _CALL_KEY.match(key) if isinstance(key, str) else None
            if match:
                func = self._callable(match.group(1), env)
                produced = func(_single(self._process(value, env, '', False)))
                if not isinstance(produced, collections.abc.Mapping):
                    raise HashConstructTypeError(f"result of {key!r}", produced, clause=key)
                result.update(produced)
                continue
            new_key = _single(self._process(key, env, '', False))
            result[new_key] = _single(self._process(value, env, '', False))
        return result


__all__ = ["Template", "CONTEXT_LIST", "CONTEXT_MAPPING"]
