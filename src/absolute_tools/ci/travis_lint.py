"""Lint the test suite, print the report and publish it as a commit status."""

import logging

from rich.console import Console

from absolute_tools.ci.status import CIEnvironment, update_status
from absolute_tools.config import Config
from absolute_tools.github.client import CommitStatus
from absolute_tools.lint.models import LintReport
from absolute_tools.lint.printer import print_report
from absolute_tools.lint.runner import process_files

logger = logging.getLogger(__name__)


def run_travis_lint(
    config: Config,
    console: Console,
    env: CIEnvironment | None = None,
    glob: str | None = None,
    dry_run: bool = False,
) -> tuple[LintReport, CommitStatus | None]:
    """Run the three lint build steps in order: lint, print, report status.

    Args:
        config: Loaded configuration
        console: Console the report is printed to
        env: CI environment (read from os.environ when omitted)
        glob: Files to lint (defaults to lint.glob from the config)
        dry_run: Build the status but don't send it

    Returns:
        The lint report and the status sent for it, if any
    """
    if env is None:
        env = CIEnvironment.from_env()
    if env.token is None and config.github.token:
        env.token = config.github.token

    report = process_files(glob or config.lint.glob, command=config.lint.command)
    print_report(report, console)

    status = update_status(
        report,
        env,
        travis_url=config.github.travis_url,
        base_url=config.github.base_url,
        dry_run=dry_run,
    )
    return report, status
