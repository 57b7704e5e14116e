"""
The outer boundary for template runs: errors become structured results.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional

from plait.plait_errors import GrammarError, PlaitError
from plait.plait_serialize import DecodeError, deserialize
from plait.plait_template import Template


@dataclass
class ExecutionResult:
    """The structured result of a template run."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None
    error_clause: Optional[str] = None

    def format_error(self) -> str:
        """Formats an error message, naming the failing clause when it is known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_type and not msg.startswith(f"{self.error_type}:"):
            msg = f"{self.error_type}: {msg}"
        if self.error_clause is not None:
            msg = f"{msg}\nIn clause: {self.error_clause}"
        return msg


class TemplateRunner:
    """Runs templates and reports engine failures as ExecutionResult instead of raising."""

    def __init__(self, template_engine: Optional[Template] = None):
        self.engine = template_engine or Template()

    def _error(self, e: Exception, clause: Optional[str] = None) -> ExecutionResult:
        match e:
            case GrammarError():
                # the clause is already part of the message
                clause = None
            case PlaitError():
                clause = e.clause if clause is None else clause
        return ExecutionResult('error', error_message=str(e), error_type=type(e).__name__, error_clause=clause)

    def run(self, template: Any, data: Any = None) -> ExecutionResult:
        try:
            value = self.engine.process(template, data)
        except PlaitError as e:
            return self._error(e)
        return ExecutionResult('success', value=value)

    def run_files(self, template_path: str, data_path: Optional[str] = None) -> ExecutionResult:
        """Loads template and data documents from disk, then runs them.

        The template's own directory is searched first for includes during this run only.
        """
        try:
            template = self._load(template_path)
            data = self._load(data_path) if data_path else None
        except (OSError, DecodeError) as e:
            return ExecutionResult('error', error_message=str(e), error_type=type(e).__name__)
        folder = str(Path(template_path).parent)
        paths = self.engine.include_paths
        added = folder not in paths
        if added:
            paths.insert(0, folder)
        try:
            return self.run(template, data)
        finally:
            if added:
                paths.remove(folder)

    def _load(self, path: str) -> Any:
        return deserialize(Path(path).read_bytes(), path=path)
