"""Commit status reporting for Travis-CI lint builds.

Usage:
    env    = CIEnvironment.from_env()
    status = build_status(report, env)         # None for unsupported events
    update_status(report, env)                 # builds and sends the status
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from absolute_tools.github.client import CommitStatus, GitHubClient
from absolute_tools.lint.models import LintReport

logger = logging.getLogger(__name__)

DEFAULT_TRAVIS_URL = "https://travis-ci.org"
COMMIT_RANGE_SEPARATOR = "..."


class MissingEnvironmentError(Exception):
    """Raised when a required CI environment variable is not set."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Environment variable {variable} is not set")
        self.variable = variable


@dataclass
class CIEnvironment:
    """The Travis-CI variables a lint build reports with."""

    slug: str | None = None
    job_id: str | None = None
    event_type: str | None = None
    commit: str | None = None
    commit_range: str | None = None
    token: str | None = None

    VARIABLES = {
        "slug": "TRAVIS_REPO_SLUG",
        "job_id": "TRAVIS_JOB_ID",
        "event_type": "TRAVIS_EVENT_TYPE",
        "commit": "TRAVIS_COMMIT",
        "commit_range": "TRAVIS_COMMIT_RANGE",
        "token": "TRAVIS_GITHUB_LINT_STATUS_TOKEN",
    }

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CIEnvironment":
        if environ is None:
            environ = os.environ
        return cls(**{attr: environ.get(var) for attr, var in cls.VARIABLES.items()})

    def require(self, attr: str) -> str:
        """Return a variable's value, raising if it was not set."""
        value = getattr(self, attr)
        if value is None:
            raise MissingEnvironmentError(self.VARIABLES[attr])
        return value


def get_commit_target(event_type: str | None, env: CIEnvironment) -> str | None:
    """Get the commit hash a status should be attached to.

    Args:
        event_type: How the build was triggered (TRAVIS_EVENT_TYPE)
        env: CI environment

    Returns:
        The commit hash, or None for unsupported event types
    """
    if event_type == "push":
        return env.require("commit")

    if event_type == "pull_request":
        commit_range = env.require("commit_range")
        parsed = commit_range.split(COMMIT_RANGE_SEPARATOR)
        if len(parsed) == 1:
            return commit_range
        return parsed[1]

    logger.warning(f"event type '{event_type}' not supported")
    return None


def build_status(
    report: LintReport,
    env: CIEnvironment,
    travis_url: str = DEFAULT_TRAVIS_URL,
) -> CommitStatus | None:
    """Build the status for a lint report, or None if it should not be sent."""
    sha = get_commit_target(env.event_type, env)
    if not sha:
        return None

    slug = env.require("slug")
    owner, _, repo = slug.partition("/")
    event = "pr" if env.event_type == "pull_request" else env.event_type

    return CommitStatus(
        owner=owner,
        repo=repo,
        sha=sha,
        state="success" if report.error_count == 0 else "failure",
        target_url=f"{travis_url}/{slug}/jobs/{env.job_id}",
        description=f"errors: {report.error_count}, warnings: {report.warning_count}",
        context=f"ci/lint/{event}",
    )


def update_status(
    report: LintReport,
    env: CIEnvironment,
    client: GitHubClient | None = None,
    travis_url: str = DEFAULT_TRAVIS_URL,
    base_url: str | None = None,
    dry_run: bool = False,
) -> CommitStatus | None:
    """Report the lint result to GitHub as a commit status.

    Returns:
        The status that was (or, in a dry run, would have been) sent; None
        when nothing was sent.
    """
    status = build_status(report, env, travis_url=travis_url)
    if status is None:
        logger.warning("not POSTing to GitHub")
        return None

    if dry_run:
        logger.info(f"Dry run - not sending {status.state} status for {status.sha}")
        return status

    if client is None:
        client = GitHubClient(env.require("token"), base_url=base_url)

    client.create_commit_status(status)
    return status
