"""Command line interface for ccmeter."""

import click
import json
from typing import Optional

from rich.console import Console

from .config import config_manager
from .cache.stats_cache import StatsCache
from .logging import setup_logging
from .pricing.rates import get_all_pricing
from .services.chart_builder import get_chart_data
from .services.live_monitor import LiveMonitor
from .services.report_generator import ReportGenerator, json_serializer
from .utils.data_source import ClaudeCodeDataSource
from .utils.error_handling import create_user_friendly_error
from . import __version__


def _fail(ctx: click.Context, action: str, error: Exception) -> None:
    click.echo(f"Error {action}: {create_user_friendly_error(error)}", err=True)
    if ctx.obj.get("verbose"):
        click.echo(f"Details: {error!r}", err=True)
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", type=click.Path(exists=True), help="Path to configuration file"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--projects-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Claude Code projects directory (default: ~/.claude/projects)",
)
@click.option(
    "--registry",
    type=click.Path(dir_okay=False),
    default=None,
    help="Project registry file (default: ~/.claude.json)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[str],
    verbose: bool,
    projects_dir: Optional[str],
    registry: Optional[str],
):
    """ccmeter - token and cost analytics for Claude Code sessions.

    Reads the JSONL transcripts Claude Code writes under ~/.claude/projects
    and reports usage for today, the current 5-hour session block and all
    time.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        if config:
            config_manager.config_path = config
            config_manager.reload()

        cfg = config_manager.config
        setup_logging("debug" if verbose else cfg.logging.level)

        console = Console(no_color=not cfg.ui.colors)
        source = ClaudeCodeDataSource(
            base_path=projects_dir or cfg.paths.claude_code_storage_dir,
            registry_path=registry or cfg.paths.project_registry_file,
        )

        ctx.obj["config"] = cfg
        ctx.obj["console"] = console
        ctx.obj["data_source"] = source
        ctx.obj["stats_cache"] = StatsCache(
            source, stale_after_seconds=cfg.cache.stale_after_seconds
        )
        ctx.obj["report_generator"] = ReportGenerator(console)

    except Exception as e:
        _fail(ctx, "initializing ccmeter", e)


@cli.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.option("--refresh", is_flag=True, help="Ignore cached stats")
@click.pass_context
def stats(ctx: click.Context, output_format: str, refresh: bool):
    """Show token usage and cost totals."""
    try:
        cache: StatsCache = ctx.obj["stats_cache"]
        report: ReportGenerator = ctx.obj["report_generator"]
        result = cache.refresh() if refresh else cache.get()

        if output_format == "json":
            click.echo(
                json.dumps(report.format_stats_json(result), indent=2, default=json_serializer)
            )
            return

        source: ClaudeCodeDataSource = ctx.obj["data_source"]
        if not source.has_data():
            click.echo(f"No {source.name} logs found under {source.base_path}", err=True)
        report.display_stats(result)

    except Exception as e:
        _fail(ctx, "computing stats", e)


@cli.command()
@click.option(
    "--days", "-d", type=click.IntRange(min=1), default=None, help="Days to look back"
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def chart(ctx: click.Context, days: Optional[int], output_format: str):
    """Show daily, hourly, per-model and per-project usage series."""
    days = days or ctx.obj["config"].analytics.chart_days

    try:
        data = get_chart_data(ctx.obj["data_source"], days)

        if output_format == "json":
            click.echo(json.dumps(data.model_dump(), indent=2, default=json_serializer))
        else:
            ctx.obj["report_generator"].display_chart(data, days)

    except Exception as e:
        _fail(ctx, "building charts", e)


@cli.command()
@click.option("--chars", type=click.IntRange(min=1), default=None, help="Excerpt length")
@click.option(
    "--files", type=click.IntRange(min=1), default=None, help="Recent log files to search"
)
@click.pass_context
def latest(ctx: click.Context, chars: Optional[int], files: Optional[int]):
    """Print an excerpt of the latest assistant response.

    Used by hook handlers to show what Claude just said when a response
    finishes.
    """
    settings = ctx.obj["config"].notifications
    excerpt = ctx.obj["data_source"].get_latest_response(
        max_chars=chars or settings.excerpt_chars,
        max_files=files or settings.recent_files,
    )
    if excerpt is None:
        click.echo("No assistant response found.", err=True)
        ctx.exit(1)
    click.echo(excerpt)


@cli.command()
@click.argument("project", required=False)
@click.option("--search", "-s", "query", default=None, help="Find sessions mentioning text")
@click.option(
    "--limit", "-n", type=click.IntRange(min=1), default=None, help="Show at most N sessions"
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def sessions(
    ctx: click.Context,
    project: Optional[str],
    query: Optional[str],
    limit: Optional[int],
    output_format: str,
):
    """List sessions, newest first, or search their messages.

    PROJECT may be a project path, a log folder name or the project name
    shown by the stats command.
    """
    source: ClaudeCodeDataSource = ctx.obj["data_source"]
    report: ReportGenerator = ctx.obj["report_generator"]

    try:
        if query is not None:
            results = source.search_sessions(query, project=project)[:limit]
        else:
            results = source.list_sessions(project=project)[:limit]

        if output_format == "json":
            click.echo(
                json.dumps(
                    [r.model_dump() for r in results], indent=2, default=json_serializer
                )
            )
        elif query is not None:
            report.display_search_results(results, query)
        else:
            report.display_sessions(results)

    except Exception as e:
        _fail(ctx, "listing sessions", e)


@cli.command()
@click.pass_context
def pricing(ctx: click.Context):
    """Show the per-model price table used for cost estimates."""
    ctx.obj["report_generator"].display_pricing(get_all_pricing())


@cli.command()
@click.option(
    "--interval",
    "-i",
    type=click.IntRange(1, 60),
    default=None,
    help="Refresh interval in seconds",
)
@click.option("--no-watch", is_flag=True, help="Do not watch log files for changes")
@click.pass_context
def live(ctx: click.Context, interval: Optional[int], no_watch: bool):
    """Start a live usage dashboard."""
    source: ClaudeCodeDataSource = ctx.obj["data_source"]
    monitor = LiveMonitor(
        ctx.obj["stats_cache"],
        console=ctx.obj["console"],
        watch_path=None if no_watch else source.base_path,
    )

    try:
        monitor.start_monitoring(interval or ctx.obj["config"].ui.live_refresh_interval)
    except Exception as e:
        _fail(ctx, "in live monitor", e)


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context):
    """Show the effective configuration."""
    cfg = ctx.obj["config"]
    click.echo(f"# {config_manager.config_path}")
    click.echo(json.dumps(cfg.model_dump(), indent=2, default=json_serializer))


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
