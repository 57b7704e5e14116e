"""
Exception types raised by the plait expression language and template engine.

Every error is fatal for the `process`/`evaluate` call that raised it; the
engine never retries and never returns partial results. Errors carry the
clause (expression or template text) that failed when it is known, so an
outer boundary such as `TemplateRunner` can report it.
"""
from typing import Any, Optional


class PlaitError(Exception):
    """Base class of all plait errors."""

    def __init__(self, message: str, clause: Optional[str] = None):
        super().__init__(message)
        self.clause = clause


# =================================================================
# Expression errors
# =================================================================

class ExpressionError(PlaitError):
    pass


class GrammarError(ExpressionError):
    """Expression text that cannot be parsed."""

    def __init__(self, text: str, detail: str = ""):
        message = f"cannot parse expression {text!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, clause=text)
        self.text = text


class ImmutableWriteError(ExpressionError):
    def __init__(self, key: Any):
        super().__init__(f"immutable environment being changed (key {key!r})")
        self.key = key


class SubselectOnScalarError(ExpressionError):
    """A dot-chain selector applied to a value that is neither a container nor an object."""

    def __init__(self, value: Any, selector: Any = None):
        super().__init__(f"asked to subselect {selector} on a scalar ({type(value).__name__}: {value!r})")
        self.value = value
        self.selector = selector


class UnknownMethodError(ExpressionError, AttributeError):
    def __init__(self, obj: Any, name: Any):
        super().__init__(f"{type(obj).__name__} object has no method {name!r}")
        self.name = name


class NotCallableError(ExpressionError, TypeError):
    def __init__(self, value: Any, clause: Optional[str] = None):
        super().__init__(f"value is not callable ({type(value).__name__}: {value!r})", clause=clause)
        self.value = value


# =================================================================
# Template errors
# =================================================================

class TemplateError(PlaitError):
    pass


class IncludeNotFoundError(TemplateError):
    def __init__(self, filename: str, paths: list):
        super().__init__(f"can't find template {filename!r} in {':'.join(map(str, paths))}")
        self.filename = filename
        self.paths = list(paths)


class IncludeDecodeError(TemplateError):
    def __init__(self, path: str, detail: str = ""):
        message = f"cannot decode included file {path!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.path = path


class CommentedValueError(TemplateError):
    def __init__(self, key: Any, value: Any):
        super().__init__(f"cannot comment out a value (key {key!r}, value {value!r})")
        self.key = key
        self.value = value


class HashConstructTypeError(TemplateError, TypeError):
    """A construct that merges into a mapping produced something else."""

    def __init__(self, what: str, value: Any, clause: Optional[str] = None):
        super().__init__(f"{what} must be a mapping, not {type(value).__name__}", clause=clause)
        self.value = value


__all__ = [
    "PlaitError", "ExpressionError", "TemplateError",
    "GrammarError", "ImmutableWriteError", "SubselectOnScalarError",
    "UnknownMethodError", "NotCallableError",
    "IncludeNotFoundError", "IncludeDecodeError",
    "CommentedValueError", "HashConstructTypeError",
]
