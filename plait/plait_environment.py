"""
Hierarchical key/value scopes for template parameters.

An Environment wraps a mapping of bindings and optionally points upwards to a
parent environment. Lookups that miss the local bindings are forwarded to the
parent; writes only ever touch the local bindings.
"""

import collections.abc
from typing import Any, Optional

from plait.plait_errors import ImmutableWriteError


def index_list(seq, key) -> Any:
    """Index a list with list-selector rules: int coercion, negative from the end, None when out of range."""
    try:
        index = int(key)
    except (TypeError, ValueError):
        return None
    if -len(seq) <= index < len(seq):
        return seq[index]
    return None


class Environment:
    """A scope of template parameters with parent fallback.

    A key that is present in the local data stops the search, even when it is
    bound to None; only absent keys are forwarded to the parent. Children only
    ever reference their parent, never the other way round.
    """

    def __init__(self, data: Optional[collections.abc.Mapping] = None, immutable: bool = False,
                 parent: Optional['Environment'] = None):
        self.data = {} if data is None else data
        self._immutable = bool(immutable)
        self._parent = parent

    @property
    def parent(self) -> Optional['Environment']:
        return self._parent

    @property
    def immutable(self) -> bool:
        return self._immutable

    def _owns(self, key: Any) -> bool:
        data = self.data
        if not isinstance(data, collections.abc.Mapping):
            return False
        try:
            return key in data
        except TypeError:
            # unhashable keys can never be bound
            return False

    def get(self, key: Any, default: Any = None) -> Any:
        """Returns the value bound to key here or in the nearest ancestor, else default."""
        env = self
        while env is not None:
            if env._owns(key):
                return env.data[key]
            env = env._parent
        return default

    def set(self, key: Any, value: Any) -> Any:
        """Binds key locally and returns the value. Parents are never touched."""
        if self._immutable:
            raise ImmutableWriteError(key)
        self.data[key] = value
        return value

    def resolve(self, path: str) -> Any:
        """Looks up a dotted path such as 'list.0.title'.

        The path is split at its last dot; the left part is resolved
        recursively and the right part applied as one step: an integer index
        into a list, otherwise a key into a mapping. Anything else yields None.
        """
        head, sep, last = str(path).rpartition('.')
        if not sep:
            return self.get(path)
        container = self.resolve(head)
        if isinstance(container, (list, tuple)):
            return index_list(container, last)
        if isinstance(container, collections.abc.Mapping):
            return container.get(last)
        return None

    def child(self, data: Optional[collections.abc.Mapping] = None) -> 'Environment':
        """Creates a mutable child scope with this environment as parent."""
        return Environment(data, parent=self)

    def __contains__(self, key: Any) -> bool:
        env = self
        while env is not None:
            if env._owns(key):
                return True
            env = env._parent
        return False

    def keys(self) -> collections.abc.KeysView:
        """Returns a view of the keys bound in this environment only."""
        if isinstance(self.data, collections.abc.Mapping):
            return self.data.keys()
        return {}.keys()

    def __repr__(self) -> str:
        keys = ', '.join(map(str, self.keys()))
        flags = " immutable" if self._immutable else ""
        parent_id = f", parent=#{id(self._parent)}" if self._parent is not None else ""
        return f"<Environment bindings=[{keys}]{flags}{parent_id}>"
