"""Command-line interface for the Absolute tools."""

import logging
import sys
from pathlib import Path

import click
from github.GithubException import GithubException
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from absolute_tools import __version__
from absolute_tools.ci.status import MissingEnvironmentError
from absolute_tools.ci.travis_lint import run_travis_lint
from absolute_tools.config import load_config, validate_config
from absolute_tools.lint.runner import LintRunError
from absolute_tools.server.main import serve as serve_forever

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Absolute - web server bootstrap and CI lint reporting."""
    setup_logging(verbose)


@cli.command("serve")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def serve(config_path: str | None) -> None:
    """Serve the client over HTTPS and redirect HTTP to it."""
    config = load_config(Path(config_path) if config_path else None)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)

    console.print(
        f"🚀 Starting HTTPS server on {config.server.host}:{config.server.https_port} "
        f"(redirecting port {config.server.http_port})"
    )
    serve_forever(config)


@cli.command("travis-lint")
@click.option("--glob", default=None, help="Files to lint (default: lint.glob, ./test)")
@click.option("--dry-run", is_flag=True, help="Don't post the status to GitHub")
@click.option(
    "--fail-on-errors", is_flag=True, help="Exit with status 1 when the report has errors"
)
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def travis_lint(
    glob: str | None,
    dry_run: bool,
    fail_on_errors: bool,
    config_path: str | None,
) -> None:
    """Lint the test directory and report the result as a GitHub commit status."""
    config = load_config(Path(config_path) if config_path else None)
    errors = validate_config(config, serving=False)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)

    try:
        report, status = run_travis_lint(config, console, glob=glob, dry_run=dry_run)
    except LintRunError as e:
        console.print(f"[red]Lint error:[/red] {e}")
        sys.exit(1)
    except MissingEnvironmentError as e:
        console.print(f"[red]CI environment error:[/red] {e}")
        sys.exit(1)
    except GithubException as e:
        console.print(f"[red]GitHub error:[/red] {e}")
        sys.exit(1)

    if status is not None:
        verb = "Would set" if dry_run else "Set"
        console.print(f"📝 {verb} [bold]{status.context}[/bold] to {status.state} on {status.sha}")

    if fail_on_errors and report.error_count:
        sys.exit(1)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--lint-only", is_flag=True, help="Skip the checks only the web server needs")
def config_validate(config_path: str | None, lint_only: bool) -> None:
    """Validate configuration file."""
    try:
        config = load_config(Path(config_path) if config_path else None)
        errors = validate_config(config, serving=not lint_only)

        if errors:
            console.print("[red]Configuration is invalid:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            sys.exit(1)
        else:
            console.print("[green]✓ Configuration is valid[/green]")
    except Exception as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    config = load_config(Path(config_path) if config_path else None)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Server")
    table.add_column("Setting")
    table.add_column("Value")

    server = config.server
    table.add_row("hostname", server.hostname or "(from request)")
    table.add_row("bind", server.host)
    table.add_row("https_port", str(server.https_port))
    table.add_row("http_port", str(server.http_port))
    table.add_row("certfile", server.certfile or "-")
    table.add_row("keyfile", server.keyfile or "-")
    table.add_row("static_dir", server.static_dir)
    table.add_row("body_limit", f"{server.body_limit} bytes")

    console.print(table)

    console.print(f"\n[bold]Lint:[/bold] {' '.join(config.lint.command)} {config.lint.glob}")
    console.print(f"[bold]GitHub token:[/bold] {'set' if config.github.token else 'not set'}")
    console.print(f"[bold]Travis:[/bold] {config.github.travis_url}")


if __name__ == "__main__":
    cli()
