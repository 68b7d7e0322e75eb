"""ESLint running and report printing."""

from absolute_tools.lint.models import FileResult, LintMessage, LintReport, Severity
from absolute_tools.lint.printer import print_report
from absolute_tools.lint.runner import LintRunError, process_files

__all__ = [
    "FileResult",
    "LintMessage",
    "LintReport",
    "LintRunError",
    "Severity",
    "print_report",
    "process_files",
]
