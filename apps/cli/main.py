"""CLI application for depadd."""

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from core.config import Settings
from core.errors import DepAddError
from core.models import OperationOutcome
from core.orchestrator import UpdateOrchestrator

console = Console(soft_wrap=True)
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send core logging to stderr through rich."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def report_outcome(outcome: OperationOutcome) -> None:
    """Print the manifest and install results as separate lines."""
    console.print(f"{outcome.manifest_path} has been updated", style="green")
    for entry in outcome.requirements:
        console.print(f"  {outcome.section}: {entry.name} {entry.constraint}")

    if outcome.install_succeeded:
        console.print(f"Installed {', '.join(outcome.scope)}", style="green")
    else:
        detail = f": {outcome.install_error}" if outcome.install_error else ""
        console.print(f"Installation failed{detail}", style="red")


app = typer.Typer(
    name="depadd",
    help="depadd - Add required packages to your composer.json and install them",
    add_completion=False,
)


@app.command()
def require(
    packages: list[str] | None = typer.Argument(
        None,
        help='Required package with a version constraint, e.g. foo/bar:1.0.0 or foo/bar=1.0.0 or "foo/bar 1.0.0"',
    ),
    dev: bool = typer.Option(False, "--dev", help="Add requirement to require-dev."),
    prefer_source: bool = typer.Option(
        False,
        "--prefer-source",
        help="Forces installation from package sources when possible, including VCS information.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show installer and lookup details"),
    file_path: str | None = typer.Option(
        None, "--file", "-f", help="Manifest to update (defaults to $COMPOSER or composer.json)"
    ),
) -> None:
    """depadd - Add required packages to your composer.json and install them."""
    configure_logging(verbose)

    try:
        settings = Settings(manifest_path=file_path) if file_path else Settings()
        orchestrator = UpdateOrchestrator(settings)
        outcome = orchestrator.run(
            packages or [],
            dev=dev,
            verbose=verbose,
            prefer_source=prefer_source,
        )
    except ValidationError as e:
        console.print(f"Error: invalid settings: {e}", style="red")
        raise typer.Exit(1)
    except DepAddError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)

    report_outcome(outcome)
    raise typer.Exit(outcome.exit_code)


if __name__ == "__main__":
    app()
