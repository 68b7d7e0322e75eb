"""GitHub integration for the Absolute tools."""

from absolute_tools.github.client import CommitStatus, GitHubClient

__all__ = [
    "CommitStatus",
    "GitHubClient",
]
