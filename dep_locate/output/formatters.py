"""Output formatters for DepLocate results."""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.confidence import Confidence
from ..core.identifiers import VulnerableComponent
from ..core.models import ManifestModel, ResolvedLocation
from ..utils.logging import get_logger

CONFIDENCE_STYLES = {
    Confidence.HIGHEST: "bold green",
    Confidence.HIGH: "green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "red",
}


@dataclass
class LocationReport:
    """Where one component was found in one manifest."""

    manifest: Path
    component: VulnerableComponent
    location: ResolvedLocation
    reasonable: bool
    snippet: str = ""


class ConsoleFormatter:
    """Rich console formatter for DepLocate output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()

    def format_locations(
        self,
        reports: List[LocationReport],
        min_confidence: Confidence = Confidence.LOW
    ) -> None:
        """Render resolved locations as a table followed by a summary.

        Args:
            reports: One entry per (manifest, component) lookup that was kept
            min_confidence: Threshold the reports were filtered with
        """
        if not reports:
            self.console.print(Panel(
                f"No location reached {min_confidence.name} confidence", style="yellow"
            ))
            return

        table = Table(title="Dependency Locations", show_lines=False)
        table.add_column("Manifest", style="cyan")
        table.add_column("Component", style="magenta")
        table.add_column("Lines", justify="right")
        table.add_column("Confidence")
        table.add_column("Declaration", overflow="fold")

        for report in reports:
            location = report.location
            lines = (
                str(location.start_line) if location.start_line == location.end_line
                else f"{location.start_line}-{location.end_line}"
            )
            manifest = str(report.manifest) if report.reasonable else f"{report.manifest} (unparsable)"
            table.add_row(
                escape(manifest),
                escape(report.component.display_name),
                lines,
                f"[{CONFIDENCE_STYLES[location.confidence]}]{location.confidence.name}[/]",
                escape(report.snippet.strip()),
            )

        self.console.print(table)
        self.console.print(self._create_summary_panel(reports))

    def _create_summary_panel(self, reports: List[LocationReport]) -> Panel:
        counts = {tier: 0 for tier in Confidence}
        for report in reports:
            counts[report.location.confidence] += 1
        summary = "  ".join(
            f"[{CONFIDENCE_STYLES[tier]}]{tier.name}: {counts[tier]}[/]"
            for tier in sorted(Confidence, reverse=True)
        )
        return Panel(summary, title="Summary", expand=False)

    def format_manifest(self, model: ManifestModel) -> None:
        """List the declarations of a parsed manifest."""
        table = Table(title=f"Declared dependencies ({model.ecosystem})")
        table.add_column("Group", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Lines", justify="right")

        for dep in model:
            table.add_row(
                escape(dep.group or ""), escape(dep.name), escape(dep.version or ""),
                f"{dep.start_line}-{dep.end_line}",
            )

        self.console.print(table)


class JSONFormatter:
    """JSON formatter for machine-readable output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        self.output_file = output_file
        self.logger = get_logger("dep_locate.output")

    def format_locations(self, reports: List[LocationReport]) -> Dict[str, Any]:
        """Convert location reports to a JSON-serializable dict.

        Args:
            reports: One entry per (manifest, component) lookup

        Returns:
            Dictionary with a timestamp and the serialized results
        """
        return {
            "generated_at": datetime.now().isoformat(),
            "results": [self._serialize(report) for report in reports],
        }

    @staticmethod
    def _serialize(report: LocationReport) -> Dict[str, Any]:
        text_range = report.location.text_range
        return {
            "manifest": str(report.manifest),
            "reasonable": report.reasonable,
            "component": {
                "package_ids": list(report.component.package_ids),
                "included_by": list(report.component.included_by),
            },
            "range": {
                "start_line": text_range.start_line,
                "start_offset": text_range.start_offset,
                "end_line": text_range.end_line,
                "end_offset": text_range.end_offset,
            },
            "confidence": report.location.confidence.name,
        }

    def save_results(self, results: Dict[str, Any]) -> None:
        """Write results to the configured output file.

        Raises:
            ValueError: If no output file was configured
        """
        if self.output_file is None:
            raise ValueError("No output file configured")
        self.output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_file, "w", encoding="utf-8") as f:
            json.dump(results, f, indent=2)
        self.logger.info("Results saved to %s", self.output_file)
