"""GitHub API client for commit status reporting."""

import logging
from dataclasses import dataclass

from github import Github
from github.CommitStatus import CommitStatus as GithubCommitStatus
from github.Repository import Repository

logger = logging.getLogger(__name__)

VALID_STATES = frozenset({"error", "failure", "pending", "success"})


@dataclass
class CommitStatus:
    """A status to attach to a commit."""

    owner: str
    repo: str
    sha: str
    state: str
    target_url: str
    description: str
    context: str

    def __post_init__(self) -> None:
        """Validate status data."""
        if self.state not in VALID_STATES:
            raise ValueError(f"Invalid status state: {self.state!r}")

    @property
    def full_name(self) -> str:
        """Repository in "owner/name" format."""
        return f"{self.owner}/{self.repo}"


class GitHubClient:
    """Client for GitHub API operations."""

    def __init__(self, token: str, base_url: str | None = None) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token or OAuth token
            base_url: Optional base URL for GitHub Enterprise
        """
        # Lazy objects skip the GET a repository or commit lookup would make
        if base_url:
            self._gh = Github(token, base_url=base_url, lazy=True)
        else:
            self._gh = Github(token, lazy=True)

    def get_repo(self, repo_name: str) -> Repository:
        """Get a repository by name without fetching it.

        Args:
            repo_name: Repository in "owner/name" format

        Returns:
            Repository object
        """
        return self._gh.get_repo(repo_name)

    def create_commit_status(self, status: CommitStatus) -> GithubCommitStatus:
        """Create a status on a commit.

        Args:
            status: Status details, including the target repository and sha

        Returns:
            The status as recorded by GitHub

        Raises:
            GithubException: if the API rejects the request
        """
        logger.info(f"Setting {status.context} to {status.state} on {status.full_name}@{status.sha}")

        commit = self.get_repo(status.full_name).get_commit(status.sha)
        return commit.create_status(
            state=status.state,
            target_url=status.target_url,
            description=status.description,
            context=status.context,
        )
