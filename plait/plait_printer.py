"""
A printer that turns tagged expression trees back into expression source.
"""
import re

_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*\Z')
_DELIMITERS = ('"', "'", '`')


class Printer:
    """Formats parse trees into source text that parses back to the same tree."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, tree) -> str:
        """Public entry point to format a tree."""
        return self._get_handler(tree)(tree)

    def _get_handler(self, tree):
        if isinstance(tree, (tuple, list)) and tree and tree[0] in self._handlers:
            return self._handlers[tree[0]]
        # Default to Python's repr for anything that is not a tree
        return repr

    def _create_handlers(self):
        return {
            'literal': self._pformat_literal,
            'env': self._pformat_env,
            'indirect': self._pformat_indirect,
            'dot': self._pformat_dot,
            'funccall': self._pformat_funccall,
            'methcall': self._pformat_methcall,
            'not': self._pformat_not,
            'expression': self._pformat_expression,
        }

    def _pformat_literal(self, tree):
        value = tree[1]
        if isinstance(value, str):
            return self._quote(value)
        return str(value)

    def _quote(self, text: str) -> str:
        for delim in _DELIMITERS:
            if delim not in text:
                return f"{delim}{text}{delim}"
        raise ValueError(f"string {text!r} contains every string delimiter and cannot be printed")

    def _pformat_env(self, tree):
        name = tree[1]
        if name[0] == 'literal' and isinstance(name[1], str) and _IDENTIFIER.match(name[1]):
            return name[1]
        return f"${self.pformat(name)}"

    def _pformat_indirect(self, tree):
        return f"({self.pformat(tree[1])})"

    def _pformat_dot(self, tree):
        _, base, selectors = tree
        parts = [self.pformat(base)]
        parts.extend(self._pformat_selector(sel) for sel in selectors)
        return ".".join(parts)

    def _pformat_selector(self, sel):
        if sel[0] == 'literal':
            value = sel[1]
            if isinstance(value, str) and _IDENTIFIER.match(value):
                return value
            if isinstance(value, int) and not isinstance(value, bool):
                return str(value)
        return self.pformat(sel)

    def _pformat_args(self, args):
        return ", ".join(self.pformat(arg) for arg in args)

    def _pformat_funccall(self, tree):
        _, callee, args = tree
        return f"{self.pformat(callee)}({self._pformat_args(args)})"

    def _pformat_methcall(self, tree):
        _, name, args = tree
        return f"{name}({self._pformat_args(args)})"

    def _pformat_not(self, tree):
        operand = tree[1]
        if operand[0] == 'expression':
            return f"!({self.pformat(operand)})"
        return f"!{self.pformat(operand)}"

    def _pformat_expression(self, tree):
        _, first, steps = tree
        out = [self._pformat_chain_operand(first)]
        for op, operand in steps:
            out.append(f"{op} {self._pformat_chain_operand(operand)}")
        return " ".join(out)

    def _pformat_chain_operand(self, tree):
        if tree[0] == 'expression':
            return f"({self.pformat(tree)})"
        return self.pformat(tree)
