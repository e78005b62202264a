"""Rich terminal formatter for depshear."""

from io import StringIO
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models import DependencyReport, Report
from .base import BaseFormatter

_SEVERITY_STYLES = {"high": "red bold", "medium": "yellow", "low": "green"}


def _severity_label(severity: str) -> str:
    style = _SEVERITY_STYLES.get(severity, "dim")
    return f"[{style}]{severity}[/{style}]"


def _usage_label(dep: DependencyReport) -> str:
    if dep.total_exports_count <= 0:
        return "[dim]unknown[/dim]"
    if dep.used_percent < 20:
        return f"[red]{dep.used_percent:.1f}%[/red]"
    if dep.used_percent < 50:
        return f"[yellow]{dep.used_percent:.1f}%[/yellow]"
    return f"[green]{dep.used_percent:.1f}%[/green]"


class RichFormatter(BaseFormatter):
    """Rich terminal output: dependency table, per-dependency details, warnings."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, report: Report) -> None:
        self._print(report, self.console)

    def format(self, report: Report) -> str:
        buffer = StringIO()
        self._print(report, Console(file=buffer, width=120, force_terminal=False, color_system=None))
        return buffer.getvalue()

    # -- private helpers --

    def _print(self, report: Report, console: Console) -> None:
        self._print_summary(report, console)
        for dep in report.dependencies:
            self._print_dependency(dep, console)
        self._print_uncertainty(report, console)
        self._print_warnings(report, console)

    def _print_summary(self, report: Report, console: Console) -> None:
        if report.summary is not None:
            s = report.summary
            summary_text = (
                f"Analysed [bold]{s.dependency_count}[/bold] dependencies  |  "
                f"[cyan]{s.used_exports_count}[/cyan]/[cyan]{s.total_exports_count}[/cyan] exports used "
                f"([yellow]{s.used_percent:.1f}%[/yellow])"
            )
        else:
            summary_text = "No dependencies analysed"
        console.print(Panel(summary_text, title="[bold cyan]depshear[/bold cyan]", expand=False))
        console.print()

        if not report.dependencies:
            return

        table = Table(title="Dependency Usage", expand=True)
        table.add_column("#", style="dim", width=4)
        table.add_column("Dependency", style="yellow", ratio=2)
        table.add_column("Used / Total", justify="right", width=14)
        table.add_column("Used %", justify="right", width=10)
        table.add_column("Removal", justify="right", width=9)
        table.add_column("Top Symbols", ratio=3)

        for i, dep in enumerate(report.dependencies, 1):
            total = str(dep.total_exports_count) if dep.total_exports_count > 0 else "?"
            score = f"{dep.removal_candidate.score:.1f}" if dep.removal_candidate else "-"
            symbols = ", ".join(f"{s.name} ({s.count})" for s in dep.top_used_symbols) or "-"
            table.add_row(
                str(i),
                escape(dep.name),
                f"{dep.used_exports_count} / {total}",
                _usage_label(dep),
                score,
                escape(symbols),
            )

        console.print(table)
        console.print()

    def _print_dependency(self, dep: DependencyReport, console: Console) -> None:
        lines: list[str] = []

        if dep.unused_imports:
            lines.append("[dim]Unused imports:[/dim]")
            for imp in dep.unused_imports:
                where = ", ".join(str(loc) for loc in imp.locations)
                lines.append(f"  [red]-[/red] {escape(imp.module)}#{escape(imp.name)} [dim]({escape(where)})[/dim]")

        attributed = [imp for imp in dep.used_imports if imp.provenance]
        if attributed:
            lines.append("[dim]Re-export chains:[/dim]")
            for imp in attributed:
                for chain in imp.provenance:
                    lines.append(f"  [cyan]~[/cyan] {escape(chain)}")

        if dep.risk_cues:
            lines.append("[dim]Risk cues:[/dim]")
            for cue in dep.risk_cues:
                lines.append(f"  [red]![/red] {_severity_label(cue.severity)} {cue.code}: {escape(cue.message)}")

        if dep.recommendations:
            lines.append("[dim]Recommendations:[/dim]")
            for rec in dep.recommendations:
                lines.append(f"  [green]->[/green] {escape(rec.message)}")

        if dep.codemod is not None:
            lines.append(
                f"[dim]Codemod ({dep.codemod.mode}): {len(dep.codemod.suggestions)} suggestion(s), "
                f"{len(dep.codemod.skips)} skipped[/dim]"
            )
            for suggestion in dep.codemod.suggestions:
                lines.append(f"  [green]+[/green] {escape(suggestion.file)}:{suggestion.line}")
                lines.append(f"      [red]{escape(suggestion.original.strip())}[/red]")
                lines.append(f"      [green]{escape(suggestion.replacement.strip())}[/green]")

        if dep.removal_candidate is not None and dep.removal_candidate.rationale:
            lines.append("[dim]Score notes:[/dim]")
            for note in dep.removal_candidate.rationale:
                lines.append(f"  [dim]-[/dim] {escape(note)}")

        if not lines:
            return
        console.print(Panel("\n".join(lines), title=f"[bold yellow]{escape(dep.name)}[/bold yellow]", expand=True))
        console.print()

    def _print_uncertainty(self, report: Report, console: Console) -> None:
        u = report.usage_uncertainty
        if u is None:
            return
        console.print(
            f"Usage certainty: [green]{u.confirmed_import_uses}[/green] static imports, "
            f"[yellow]{u.uncertain_import_uses}[/yellow] dynamic"
        )
        for loc in u.samples:
            console.print(f"  [dim]{escape(str(loc))}[/dim]")
        console.print()

    def _print_warnings(self, report: Report, console: Console) -> None:
        if not report.warnings:
            return
        console.print("[bold yellow]Warnings:[/bold yellow]")
        for warning in report.warnings:
            console.print(f"  [yellow]-[/yellow] {escape(warning)}")
