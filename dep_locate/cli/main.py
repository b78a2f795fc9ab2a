"""Main CLI interface for DepLocate."""

from pathlib import Path
from typing import List, Optional
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..config import DEFAULT_MAX_MANIFEST_BYTES, LocatorConfig
from ..core.confidence import Confidence
from ..core.identifiers import VulnerableComponent, parse_package_url
from ..core.parsers import ManifestParseError, ManifestParser
from ..core.resolver import create_resolver
from ..output.formatters import ConsoleFormatter, JSONFormatter, LocationReport
from ..utils.logging import get_logger, setup_logging
from ..utils.path_utils import find_manifest_files

app = typer.Typer(
    name="deplocate",
    help="Locate vulnerable components inside Maven and .NET dependency manifests",
    add_completion=False
)

console = Console()
logger = get_logger("dep_locate.cli")


@app.command()
def locate(
    path: Path = typer.Argument(
        ...,
        help="Manifest file or project directory to search"
    ),
    purl: List[str] = typer.Option(
        ...,
        "--purl",
        "-p",
        help="Package identifier of the flagged component (repeatable)"
    ),
    included_by: Optional[List[str]] = typer.Option(
        None,
        "--included-by",
        "-i",
        help="Package identifier of a dependency that pulled the component in (repeatable)"
    ),
    min_confidence: str = typer.Option(
        "low",
        "--min-confidence",
        help="Hide results below this tier: low, medium, high or highest"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    max_bytes: int = typer.Option(
        DEFAULT_MAX_MANIFEST_BYTES,
        "--max-bytes",
        help="Skip manifests larger than this many bytes"
    ),
    ignore_patterns: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        help="Additional ignore patterns"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    )
) -> None:
    """Find where a flagged component is declared."""
    setup_logging(verbose=verbose)

    try:
        threshold = Confidence.from_name(min_confidence)
        config = LocatorConfig(max_manifest_bytes=max_bytes, verbose=verbose)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not path.exists():
        console.print(f"[red]Error: Path does not exist: {path}[/red]")
        raise typer.Exit(1)

    for package_id in [*purl, *(included_by or [])]:
        if parse_package_url(package_id) is None:
            console.print(f"[yellow]Warning: '{escape(package_id)}' is not a supported package identifier[/yellow]")

    manifests = find_manifest_files(path, ignore_patterns)
    if not manifests:
        console.print("[yellow]No supported manifests found[/yellow]")
        raise typer.Exit(1)

    component = VulnerableComponent(package_ids=tuple(purl), included_by=tuple(included_by or ()))

    reports = []
    for manifest in manifests:
        resolver = create_resolver(manifest.path, config=config)
        location = resolver.best_location(component)
        if location.confidence < threshold:
            continue
        reports.append(LocationReport(
            manifest=manifest.path,
            component=component,
            location=location,
            reasonable=resolver.is_reasonable(),
            snippet=resolver.line_text(location.start_line),
        ))

    ConsoleFormatter(console).format_locations(reports, threshold)

    if output:
        json_formatter = JSONFormatter(output)
        json_formatter.save_results(json_formatter.format_locations(reports))
        console.print(f"Results saved to {output}")


@app.command(name="list")
def list_dependencies(
    manifest: Path = typer.Argument(
        ...,
        help="Manifest file to list"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
) -> None:
    """List the dependencies declared in a manifest with their line spans."""
    setup_logging(verbose=verbose)

    try:
        model = ManifestParser.parse_file(manifest)
    except ManifestParseError as e:
        logger.debug("%s", e, exc_info=e)
        console.print(f"[red]Error: Could not parse manifest {manifest}[/red]")
        raise typer.Exit(1)

    if model is None:
        console.print(f"[red]Error: Unsupported manifest: {manifest}[/red]")
        raise typer.Exit(1)

    if not model.dependencies:
        console.print("[yellow]No dependencies declared[/yellow]")
        return

    ConsoleFormatter(console).format_manifest(model)


@app.command()
def info() -> None:
    """Show DepLocate information."""
    console.print(Panel.fit(
        "[bold blue]DepLocate[/bold blue]\n"
        "Finds where a vulnerable component is declared in a\n"
        "dependency manifest and how confident that location is",
        title="Information"
    ))

    ecosystems = ManifestParser.get_supported_ecosystems()
    console.print(f"\n[bold]Supported Ecosystems:[/bold] {', '.join(ecosystems)}")

    parsers = ManifestParser.get_supported_parser_types()
    console.print(f"[bold]Supported Parsers:[/bold] {', '.join(parsers)}")

    tiers = ", ".join(tier.name for tier in sorted(Confidence, reverse=True))
    console.print(f"[bold]Confidence Tiers:[/bold] {tiers}")


def main() -> None:
    """Main entry point for DepLocate CLI."""
    app()


if __name__ == "__main__":
    main()
