"""
plait - templating plain data into plain data.

    from plait import Template
    Template().process({'titles': ['@list', '$title']}, {'list': [{'title': 'a'}, {'title': 'b'}]})
    # {'titles': ['a', 'b']}
"""
from plait.plait_environment import Environment
from plait.plait_errors import (
    PlaitError, ExpressionError, TemplateError,
    GrammarError, ImmutableWriteError, SubselectOnScalarError, UnknownMethodError, NotCallableError,
    IncludeNotFoundError, IncludeDecodeError, CommentedValueError, HashConstructTypeError,
)
from plait.plait_expression import Dispatcher, evaluate, parse, reduce, true
from plait.plait_printer import Printer
from plait.plait_runtime import ExecutionResult, TemplateRunner
from plait.plait_template import Template

__version__ = "0.1.0"
