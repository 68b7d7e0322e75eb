"""Pytest configuration and shared fixtures."""

import io

import pytest
from rich.console import Console

from absolute_tools.ci.status import CIEnvironment

# Output of `eslint --format json` for a small test directory
SAMPLE_ESLINT_OUTPUT = [
    {
        "filePath": "/repo/test/clean.js",
        "messages": [],
        "errorCount": 0,
        "warningCount": 0,
    },
    {
        "filePath": "/repo/test/server.test.js",
        "messages": [
            {
                "ruleId": "no-unused-vars",
                "severity": 2,
                "message": "'app' is assigned a value but never used.",
                "line": 3,
                "column": 7,
            },
            {
                "ruleId": "no-console",
                "severity": 1,
                "message": "Unexpected console statement.",
                "line": 12,
                "column": 3,
            },
        ],
        "errorCount": 1,
        "warningCount": 1,
    },
    {
        "filePath": "/repo/test/broken.js",
        "messages": [
            {
                "ruleId": None,
                "fatal": True,
                "severity": 2,
                "message": "Parsing error: Unexpected token )",
                "line": 8,
                "column": 14,
            }
        ],
        "errorCount": 1,
        "warningCount": 0,
    },
]


@pytest.fixture
def eslint_output() -> list[dict]:
    """ESLint JSON output with one clean file and two files with problems."""
    return SAMPLE_ESLINT_OUTPUT


@pytest.fixture
def console() -> Console:
    """A console that records plain text instead of writing to a terminal."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def push_env() -> CIEnvironment:
    """Travis environment of a push build."""
    return CIEnvironment(
        slug="absolute-org/absolute",
        job_id="123456",
        event_type="push",
        commit="9f8e7d6c5b4a",
        commit_range="1111111...9f8e7d6c5b4a",
        token="gh-token",
    )


@pytest.fixture
def pr_env() -> CIEnvironment:
    """Travis environment of a pull request build."""
    return CIEnvironment(
        slug="absolute-org/absolute",
        job_id="654321",
        event_type="pull_request",
        commit="mergecommit00",
        commit_range="abc1234...def5678",
        token="gh-token",
    )
