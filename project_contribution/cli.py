"""Command-line interface for the Project Contribution service."""

import logging
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn
from typing_extensions import Annotated

from project_contribution.config.settings import settings
from project_contribution.models.project_yaml import parse_project_yaml, validate_project_record

app = typer.Typer(help="Project Contribution service - turn project listings into pull requests")

logger = logging.getLogger(__name__)


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Interface to bind (overrides API_HOST)")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port to listen on (overrides API_PORT)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes (development only)")] = False,
) -> None:
    """Run the HTTP API."""
    uvicorn.run(
        "project_contribution.api.main:app",
        host=host or settings.API_HOST,
        port=port or settings.API_PORT,
        reload=reload,
        log_config=None,  # logging is configured by the application lifespan
    )


@app.command()
def validate(
    files: Annotated[List[Path], typer.Argument(help="Project YAML files to check", exists=True, dir_okay=False)],
) -> None:
    """Check project YAML files against the project schema."""
    failed = 0
    for path in files:
        try:
            record = parse_project_yaml(path.read_text(encoding="utf-8"))
        except ValueError as e:
            typer.echo(f"{path}: {e}", err=True)
            failed += 1
            continue

        errors = validate_project_record(record)
        if errors:
            failed += 1
            for error in errors:
                typer.echo(f"{path}: {error}", err=True)
        else:
            typer.echo(f"{path}: ok")

    if failed:
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config() -> None:
    """Print the effective GitHub targets without revealing the token."""
    repositories = settings.resolve_repositories()
    typer.echo(f"Projects repository: {repositories.projects.full_name}@{repositories.projects.base_branch}")
    typer.echo(f"Logos repository:    {repositories.logos.full_name}@{repositories.logos.base_branch}")
    typer.echo(f"Target owner:        {settings.OLI_GITHUB_TARGET_OWNER or '(authenticated user)'}")
    typer.echo(f"Auto-create fork:    {settings.OLI_GITHUB_AUTO_CREATE_FORK}")
    typer.echo(f"GitHub token:        {'configured' if settings.github_token() else 'missing'}")
    typer.echo(
        f"Rate limit:          {settings.RATE_LIMIT_MAX_REQUESTS} requests / "
        f"{settings.RATE_LIMIT_WINDOW_SECONDS}s"
    )


if __name__ == "__main__":
    app()
