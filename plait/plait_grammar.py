"""
Loads the expression grammar and builds the parser.

The grammar is a constant, so the parsimonious Grammar object is built once,
on first use, and shared read-only afterwards.
"""
from pathlib import Path
from typing import Optional

from parsimonious.grammar import Grammar

GRAMMAR_PATH = Path(__file__).parent / "plait_expression.peg"

_parser: Optional[Grammar] = None


def grammar_source() -> str:
    return GRAMMAR_PATH.read_text(encoding="utf-8")


def get_parser() -> Grammar:
    """Returns the shared expression parser, building it on first call."""
    global _parser
    if _parser is None:
        _parser = Grammar(grammar_source())
    return _parser
