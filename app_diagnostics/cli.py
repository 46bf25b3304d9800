"""Click CLI for app diagnostics.

Commands:
- report: Compile a diagnostics report and save it
- log: Append a message or error to the diagnostics log
- show-log: Print the entries of the diagnostics log
- reset: Delete the diagnostics log
- insights: Evaluate the built-in smart insights
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from app_diagnostics import __version__
from app_diagnostics.config import (
    DiagnosticsConfig,
    ENV_LOG_PATH,
    ENV_MAXIMUM_LOG_SIZE,
    MINIMUM_LOG_SIZE,
)
from app_diagnostics.logs import DiagnosticsLogger, ErrorLog, Origin, parse_fragments, setup_logging
from app_diagnostics.report import (
    DirectoryTreeReporter,
    EmailRedactionFilter,
    ReportCompiler,
    default_insights,
    default_reporters,
    evaluate_insights,
)
from app_diagnostics.report.compiler import DEFAULT_FILENAME
from app_diagnostics.system import SystemInfo, format_bytes
from app_diagnostics.utils.errors import DiagnosticsError

console = Console()
logger = logging.getLogger(__name__)

CATEGORY_STYLES = {
    "system": "dim",
    "debug": "",
    "error": "red",
    "session": "bold cyan",
}


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def _diagnostics_logger(ctx) -> DiagnosticsLogger:
    # The CLI never hooks its own process output or exceptions
    config = DiagnosticsConfig.from_env(
        log_path=ctx.obj["log_path"],
        maximum_log_size=ctx.obj["max_log_size"],
        capture_output=False,
        monitor_crashes=False,
    )
    return DiagnosticsLogger(config, system_info=ctx.obj["system_info"])


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-path",
    envvar=ENV_LOG_PATH,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Diagnostics log file",
)
@click.option(
    "--max-log-size",
    envvar=ENV_MAXIMUM_LOG_SIZE,
    type=click.IntRange(min=MINIMUM_LOG_SIZE),
    help="Maximum size of the diagnostics log in bytes",
)
@click.option(
    "--distribution",
    envvar="APP_DIAGNOSTICS_DISTRIBUTION",
    help="Installed distribution to report the version of",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def cli(
    ctx,
    log_path: Optional[Path],
    max_log_size: Optional[int],
    distribution: Optional[str],
    debug: bool,
):
    """App Diagnostics - Bounded diagnostics logs and HTML reports."""
    ctx.ensure_object(dict)
    ctx.obj["log_path"] = log_path
    ctx.obj["max_log_size"] = max_log_size
    ctx.obj["system_info"] = SystemInfo.collect(distribution=distribution)

    setup_logging(level="DEBUG" if debug else "INFO")


@cli.command()
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to save the report in",
)
@click.option("--filename", default=DEFAULT_FILENAME, show_default=True, help="Report filename")
@click.option("--title", help="Report title (default: '<app name> - Diagnostics Report')")
@click.option("--redact-emails", is_flag=True, help="Redact email addresses from the report")
@click.option(
    "--tree",
    "trees",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Include a directory tree of this path (repeatable)",
)
@click.pass_context
def report(
    ctx,
    output_dir: Path,
    filename: str,
    title: Optional[str],
    redact_emails: bool,
    trees: Tuple[Path, ...],
):
    """Compile a diagnostics report and save it."""

    async def _report():
        diagnostics = _diagnostics_logger(ctx)
        with diagnostics:
            reporters = default_reporters(diagnostics, system_info=ctx.obj["system_info"])
            if trees:
                reporters.append(DirectoryTreeReporter([str(path) for path in trees]))

            compiler = ReportCompiler(
                reporters,
                filters=[EmailRedactionFilter()] if redact_emails else None,
                filename=filename,
                report_title=title,
            )
            with console.status("Compiling diagnostics report..."):
                return await compiler.compile()

    try:
        compiled = run_async(_report())
        path = compiled.save(output_dir)
    except (DiagnosticsError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise SystemExit(1)

    console.print(
        Panel(
            f"""[bold green]Report saved[/]

[bold]File:[/] {path}
[bold]Size:[/] {format_bytes(len(compiled.data))}
[bold]Type:[/] {compiled.mime_type}""",
            title="Diagnostics Report",
        )
    )


@cli.command()
@click.argument("message")
@click.option("--error", "is_error", is_flag=True, help="Log the message as an error")
@click.pass_context
def log(ctx, message: str, is_error: bool):
    """Append a message to the diagnostics log."""
    diagnostics = _diagnostics_logger(ctx)
    try:
        with diagnostics:
            if is_error:
                diagnostics.log_entry(ErrorLog(description=message, origin=Origin.caller(0)))
            else:
                diagnostics.log(message, origin=Origin.caller(0))
            diagnostics.flush()
    except (DiagnosticsError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise SystemExit(1)

    console.print(f"[green]Logged to {diagnostics.store.path}[/]")


@cli.command("show-log")
@click.option("--category", type=click.Choice(sorted(CATEGORY_STYLES)), help="Only show one category")
@click.option("--limit", type=int, default=50, show_default=True, help="Number of newest entries to show")
@click.pass_context
def show_log(ctx, category: Optional[str], limit: int):
    """Print the newest entries of the diagnostics log."""
    store = _diagnostics_logger(ctx).store
    if not store.exists():
        console.print(f"[yellow]No diagnostics log at {store.path}[/]")
        return

    try:
        text = store.read().decode("utf-8", errors="replace")
    except DiagnosticsError as e:
        console.print(f"[red]Error: {e}[/]")
        raise SystemExit(1)

    fragments = [f for f in parse_fragments(text) if category is None or f.css_class == category]
    shown = fragments[-limit:] if limit > 0 else fragments

    table = Table(title=f"Diagnostics Log ({len(shown)} of {len(fragments)} entries)")
    table.add_column("Category")
    table.add_column("Entry")
    for fragment in shown:
        style = CATEGORY_STYLES.get(fragment.css_class, "")
        table.add_row(fragment.css_class, Text(fragment.text), style=style)

    console.print(table)
    console.print(f"[dim]{store.path} ({format_bytes(store.size())})[/]")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx, yes: bool):
    """Delete the diagnostics log."""
    diagnostics = _diagnostics_logger(ctx)
    if not yes:
        click.confirm(f"Delete {diagnostics.store.path}?", abort=True)
    diagnostics.delete_logs()
    console.print("[green]Diagnostics log deleted[/]")


@cli.command()
@click.option("--timeout", type=float, default=10.0, show_default=True, help="Seconds per insight")
@click.pass_context
def insights(ctx, timeout: float):
    """Evaluate the built-in smart insights."""
    results = run_async(evaluate_insights(default_insights(ctx.obj["system_info"]), timeout))

    if not results:
        console.print("[yellow]No insights available[/]")
        return

    table = Table(title="Smart Insights")
    table.add_column("Insight")
    table.add_column("Result")
    for name in sorted(results):
        table.add_row(name, results[name])

    console.print(table)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
