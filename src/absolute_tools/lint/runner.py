"""Run ESLint and collect its report."""

import json
import logging
import subprocess
from collections.abc import Sequence
from typing import Any

from absolute_tools.lint.models import FileResult, LintReport

logger = logging.getLogger(__name__)

# 0 = no errors, 1 = lint errors found; anything else is a tool failure
_SUCCESS_CODES = {0, 1}


class LintRunError(Exception):
    """Raised when the lint tool cannot be run or its output cannot be read."""


def process_files(glob: str = "./test", command: Sequence[str] = ("eslint",)) -> LintReport:
    """Run ESLint over the files matching ``glob``.

    Args:
        glob: File or directory pattern handed to ESLint
        command: Executable (and leading arguments) used to invoke ESLint

    Returns:
        The parsed lint report

    Raises:
        LintRunError: if ESLint is missing, crashes, or prints invalid JSON
    """
    argv = [*command, "--format", "json", glob]
    logger.debug(f"Running {' '.join(argv)}")

    try:
        proc = subprocess.run(argv, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise LintRunError(f"Lint command not found: {command[0]}") from e

    if proc.returncode not in _SUCCESS_CODES:
        output = (proc.stderr or proc.stdout or "").strip()
        raise LintRunError(f"{command[0]} exited with status {proc.returncode}: {output[:500]}")

    try:
        data = json.loads(proc.stdout)
    except json.JSONDecodeError as e:
        raise LintRunError(f"Could not parse lint output: {e}") from e

    report = parse_report(data)
    logger.info(
        f"Linted {len(report.results)} files: "
        f"{report.error_count} errors, {report.warning_count} warnings"
    )
    return report


def parse_report(data: list[dict[str, Any]]) -> LintReport:
    """Build a LintReport from ESLint's JSON formatter output."""
    if not isinstance(data, list):
        raise LintRunError(f"Expected a list of file results, got {type(data).__name__}")
    return LintReport.from_results([FileResult.from_eslint(item) for item in data])
