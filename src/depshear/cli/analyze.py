"""Main analysis command."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis import DependencyAnalyzer, check_uncertainty_threshold
from ..exceptions import DepshearError, UncertaintyThresholdExceededError
from ..formatters import get_formatter
from ..logging_config import setup_logging
from . import app
from ._common import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_UNCERTAINTY_THRESHOLD,
    OutputFormat,
    err_console,
    resolve_config,
)


@app.command("analyse")
def analyse(
    dependency: Optional[str] = typer.Argument(
        None,
        help="Dependency to analyse (e.g. lodash or @scope/name)",
    ),
    top: int = typer.Option(
        0,
        "--top",
        help="Rank every installed dependency and keep the N most removable",
        min=0,
    ),
    repo: Path = typer.Option(
        Path("."),
        "-C",
        "--repo",
        help="Repository root (default: current directory)",
        file_okay=False,
        dir_okay=True,
    ),
    runtime_profile: Optional[str] = typer.Option(
        None,
        "--runtime-profile",
        help="Conditional exports profile: node-import | node-require | browser-import | browser-require",
    ),
    dependency_root: Optional[Path] = typer.Option(
        None,
        "--dependency-root",
        help="Use this installed package directory instead of node_modules lookup",
        file_okay=False,
        dir_okay=True,
    ),
    suggest_only: bool = typer.Option(
        False,
        "--suggest-only",
        help="Include subpath-import codemod suggestions (nothing is written)",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format",
        case_sensitive=False,
    ),
    min_usage_percent: Optional[int] = typer.Option(
        None,
        "--min-usage-percent",
        help="Usage below which root-only imports earn a subpath recommendation",
        min=0,
        max=100,
    ),
    max_uncertain_imports: Optional[int] = typer.Option(
        None,
        "--max-uncertain-imports",
        help="Exit 3 when more dynamic imports than this are found (0 disables)",
        min=0,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Analyse how much of a dependency's exported API the repository uses.

    [bold cyan]Examples:[/bold cyan]

      depshear analyse lodash

      depshear analyse @scope/pkg --runtime-profile browser-import

      depshear analyse --top 5 --format json
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(
            config=config,
            runtime_profile=runtime_profile,
            min_usage_percent=min_usage_percent,
            max_uncertain_imports=max_uncertain_imports,
            verbose=verbose,
            quiet=quiet,
        )
        formatter = get_formatter(output_format.value)

        analyzer = DependencyAnalyzer(repo, config=settings)
        if quiet or output_format is not OutputFormat.TABLE:
            report = analyzer.analyse(dependency, top, dependency_root, suggest_only)
        else:
            with err_console.status("[cyan]Analysing dependencies..."):
                report = analyzer.analyse(dependency, top, dependency_root, suggest_only)

        formatter.render(report)
        check_uncertainty_threshold(report, settings.max_uncertain_import_count)

    except typer.Exit:
        raise

    except UncertaintyThresholdExceededError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_UNCERTAINTY_THRESHOLD)

    except DepshearError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_ERROR)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        err_console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            err_console.print_exception()
        raise typer.Exit(EXIT_ERROR)


app.command("analyze", hidden=True, help="Alias for analyse.")(analyse)
