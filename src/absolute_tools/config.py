"""Configuration loading and validation for the Absolute tools."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_BODY_LIMIT = 10 * 1024 * 1024


@dataclass
class ServerSettings:
    """Web server configuration."""

    hostname: str | None = None
    host: str = "0.0.0.0"
    https_port: int = 443
    http_port: int = 80
    certfile: str | None = None
    keyfile: str | None = None
    static_dir: str = "client"
    body_limit: int = DEFAULT_BODY_LIMIT


@dataclass
class LintSettings:
    """Lint run configuration."""

    glob: str = "./test"
    command: list[str] = field(default_factory=lambda: ["eslint"])


@dataclass
class GitHubSettings:
    """GitHub status reporting configuration."""

    token: str = ""
    base_url: str | None = None
    travis_url: str = "https://travis-ci.org"


@dataclass
class Config:
    """Complete application configuration."""

    server: ServerSettings = field(default_factory=ServerSettings)
    lint: LintSettings = field(default_factory=LintSettings)
    github: GitHubSettings = field(default_factory=GitHubSettings)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: absolute.yaml)

    Returns:
        Loaded configuration
    """
    if config_path is None:
        config_path = Path("absolute.yaml")
        if not config_path.exists():
            config_path = Path("absolute.example.yaml")

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    server_raw = raw.get("server", {})
    server = ServerSettings(
        hostname=server_raw.get("hostname") or None,
        host=server_raw.get("host", "0.0.0.0"),
        https_port=int(server_raw.get("https_port", 443)),
        http_port=int(server_raw.get("http_port", 80)),
        certfile=server_raw.get("certfile") or None,
        keyfile=server_raw.get("keyfile") or None,
        static_dir=server_raw.get("static_dir", "client"),
        body_limit=int(server_raw.get("body_limit", DEFAULT_BODY_LIMIT)),
    )

    lint_raw = raw.get("lint", {})
    command = lint_raw.get("command", ["eslint"])
    if isinstance(command, str):
        command = command.split()
    lint = LintSettings(
        glob=lint_raw.get("glob", "./test"),
        command=list(command),
    )

    github_raw = raw.get("github", {})
    github = GitHubSettings(
        token=github_raw.get("token") or os.environ.get("TRAVIS_GITHUB_LINT_STATUS_TOKEN", ""),
        base_url=github_raw.get("base_url") or None,
        travis_url=github_raw.get("travis_url", "https://travis-ci.org").rstrip("/"),
    )

    return Config(server=server, lint=lint, github=github)


def validate_config(config: Config, serving: bool = True) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate
        serving: Also check the settings only the web server needs

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not config.lint.command:
        errors.append("Lint command is empty (set lint.command)")

    if config.server.body_limit <= 0:
        errors.append(f"body_limit must be positive, got {config.server.body_limit}")

    for name in ("https_port", "http_port"):
        port = getattr(config.server, name)
        if not 0 < port < 65536:
            errors.append(f"server.{name} out of range: {port}")

    if serving:
        if not config.server.certfile or not config.server.keyfile:
            errors.append("Missing TLS certificate (set server.certfile and server.keyfile)")
        if not Path(config.server.static_dir).is_dir():
            errors.append(f"Static directory not found: {config.server.static_dir}")

    return errors
