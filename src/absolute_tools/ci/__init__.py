"""Continuous integration helpers."""

from absolute_tools.ci.status import (
    CIEnvironment,
    MissingEnvironmentError,
    build_status,
    get_commit_target,
    update_status,
)
from absolute_tools.ci.travis_lint import run_travis_lint

__all__ = [
    "CIEnvironment",
    "MissingEnvironmentError",
    "build_status",
    "get_commit_target",
    "run_travis_lint",
    "update_status",
]
