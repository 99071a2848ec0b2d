"""Report rendering for ccmeter."""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models.analytics import AggregatedStats, ChartData
from ..models.session import SessionInfo, SessionSearchResult
from ..pricing.rates import PricingRule


def json_serializer(obj):
    """Custom JSON serializer for special types."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    elif isinstance(obj, Decimal):
        return float(obj)
    elif hasattr(obj, "isoformat"):
        return obj.isoformat()
    else:
        return str(obj)


def format_tokens(value: int) -> str:
    """Compact token count: 1,234 / 12.3K / 4.56M."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 10_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:,}"


class ReportGenerator:
    """Service for rendering stats and chart data with rich."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize report generator.

        Args:
            console: Rich console for output
        """
        self.console = console or Console()

    # === Stats ===

    def build_summary_table(self, stats: AggregatedStats) -> Table:
        """Build the headline figures as a two-column table."""
        summary_table = Table(show_header=False, box=None, padding=(0, 2))
        summary_table.add_column("Label", style="bold")
        summary_table.add_column("Today", justify="right", style="cyan")
        summary_table.add_column("All time", justify="right", style="white")

        summary_table.add_row("", "[dim]Today[/dim]", "[dim]All time[/dim]")
        summary_table.add_row(
            "Messages",
            f"{stats.today_messages_count:,}",
            f"{stats.total_messages_count:,}",
        )
        summary_table.add_row(
            "Input tokens",
            format_tokens(stats.today_input_tokens),
            format_tokens(stats.total_input_tokens),
        )
        summary_table.add_row(
            "Output tokens",
            format_tokens(stats.today_output_tokens),
            format_tokens(stats.total_output_tokens),
        )
        summary_table.add_row(
            "Cache write",
            format_tokens(stats.today_cache_creation_tokens),
            format_tokens(stats.total_cache_creation_tokens),
        )
        summary_table.add_row(
            "Cache read",
            format_tokens(stats.today_cache_read_tokens),
            format_tokens(stats.total_cache_read_tokens),
        )
        summary_table.add_row(
            "Sessions (5h blocks)",
            f"{stats.today_session_count}",
            f"{stats.total_session_count}",
        )
        summary_table.add_row(
            "[bold]Cost[/bold]",
            f"[bold red]${stats.today_cost:.2f}[/bold red]",
            f"[bold red]${stats.total_cost:.2f}[/bold red]",
        )
        return summary_table

    def build_session_panel(self, stats: AggregatedStats) -> Panel:
        """Current session block and burn rate."""
        text = (
            f"Current session: [cyan]{format_tokens(stats.current_session_tokens)}[/cyan] tokens, "
            f"[red]${stats.current_session_cost:.2f}[/red]\n"
            f"Burn rate: [yellow]{stats.tokens_per_minute:,.0f}[/yellow] tokens/min, "
            f"[yellow]${stats.cost_per_hour:.2f}[/yellow]/hour\n"
            f"Cache hit rate: [green]{stats.cache_hit_rate:.0f}%[/green]"
        )
        return Panel(text, title="Session", border_style="blue")

    def build_model_table(self, stats: AggregatedStats) -> Table:
        table = Table(
            title="Model Usage Breakdown",
            show_header=True,
            header_style="bold blue",
            title_style="bold magenta",
        )
        table.add_column("Model", style="cyan", no_wrap=True)
        table.add_column("Messages", justify="right", style="yellow")
        table.add_column("Input", justify="right", style="white")
        table.add_column("Output", justify="right", style="white")
        table.add_column("Cache R/W", justify="right", style="dim")
        table.add_column("Cost", justify="right", style="red")

        for name, model in sorted(
            stats.by_model.items(), key=lambda item: item[1].cost, reverse=True
        ):
            table.add_row(
                name,
                f"{model.message_count:,}",
                format_tokens(model.input_tokens),
                format_tokens(model.output_tokens),
                f"{format_tokens(model.cache_read_tokens)} / "
                f"{format_tokens(model.cache_creation_tokens)}",
                f"${model.cost:.4f}",
            )
        return table

    def build_project_table(self, stats: AggregatedStats) -> Table:
        table = Table(title="Project Usage Breakdown", show_header=True)
        table.add_column("Project", style="cyan")
        table.add_column("Messages", justify="right", style="green")
        table.add_column("Total Tokens", justify="right", style="bold blue")
        table.add_column("Cost", justify="right", style="red")

        for project in sorted(
            stats.by_project.values(), key=lambda p: p.cost, reverse=True
        ):
            table.add_row(
                project.name,
                f"{project.message_count:,}",
                f"{project.total_tokens:,}",
                f"${project.cost:.4f}",
            )
        return table

    def display_stats(self, stats: AggregatedStats) -> None:
        """Print the full stats report."""
        updated = (
            stats.last_updated.strftime("%Y-%m-%d %H:%M:%S UTC")
            if stats.last_updated
            else "never"
        )
        self.console.print(
            Panel(
                self.build_summary_table(stats),
                title="Claude Code Usage",
                subtitle=f"updated {updated}",
                border_style="green",
            )
        )
        self.console.print(self.build_session_panel(stats))

        if not stats.by_model:
            self.console.print("[dim]No usage recorded yet.[/dim]")
            return

        self.console.print(self.build_model_table(stats))
        self.console.print(self.build_project_table(stats))

    def format_stats_json(self, stats: AggregatedStats) -> Dict[str, Any]:
        return stats.model_dump()

    # === Charts ===

    def build_chart_tables(self, chart: ChartData, days: int) -> List[Table]:
        """Render chart series as tables, one per grouping."""
        daily_table = Table(
            title=f"Daily Usage (last {days} days)",
            show_header=True,
            header_style="bold blue",
            title_style="bold magenta",
        )
        daily_table.add_column("Date", style="cyan", no_wrap=True)
        daily_table.add_column("Messages", justify="right", style="yellow")
        daily_table.add_column("Input", justify="right", style="white")
        daily_table.add_column("Output", justify="right", style="white")
        daily_table.add_column("Cost", justify="right", style="red")
        for day in chart.daily:
            daily_table.add_row(
                day.date,
                f"{day.messages:,}",
                format_tokens(day.input_tokens),
                format_tokens(day.output_tokens),
                f"${day.cost:.2f}",
            )

        peak = max((h.tokens for h in chart.hourly), default=0)
        hourly_table = Table(title="Activity by Hour (UTC)", show_header=True)
        hourly_table.add_column("Hour", style="cyan", justify="right")
        hourly_table.add_column("Messages", justify="right", style="yellow")
        hourly_table.add_column("Tokens", justify="right")
        hourly_table.add_column("", style="green")
        for hour in chart.hourly:
            bar_len = int(30 * hour.tokens / peak) if peak else 0
            hourly_table.add_row(
                f"{hour.hour:02d}:00",
                f"{hour.messages:,}",
                format_tokens(hour.tokens),
                "█" * bar_len,
            )

        model_table = Table(title="Tokens by Model", show_header=True)
        model_table.add_column("Model", style="cyan")
        model_table.add_column("Tokens", justify="right", style="bold blue")
        model_table.add_column("Cost", justify="right", style="red")
        for model in chart.by_model:
            model_table.add_row(model.name, f"{model.tokens:,}", f"${model.cost:.2f}")

        project_table = Table(title="Tokens by Project", show_header=True)
        project_table.add_column("Project", style="cyan")
        project_table.add_column("Tokens", justify="right", style="bold blue")
        project_table.add_column("Cost", justify="right", style="red")
        for project in chart.by_project:
            project_table.add_row(
                project.name, f"{project.tokens:,}", f"${project.cost:.2f}"
            )

        return [daily_table, hourly_table, model_table, project_table]

    def display_chart(self, chart: ChartData, days: int) -> None:
        if not chart.daily:
            self.console.print(f"[dim]No usage in the last {days} days.[/dim]")
            return
        self.console.print(Group(*self.build_chart_tables(chart, days)))

    # === Sessions ===

    def display_sessions(self, sessions: List[SessionInfo]) -> None:
        """Display session summaries, newest first."""
        if not sessions:
            self.console.print("[dim]No sessions found.[/dim]")
            return

        table = Table(
            title="Sessions",
            show_header=True,
            header_style="bold blue",
            title_style="bold magenta",
        )
        table.add_column("Last Activity", style="cyan", no_wrap=True)
        table.add_column("Session", style="dim", no_wrap=True)
        table.add_column("Title")
        table.add_column("Messages", justify="right", style="yellow")
        table.add_column("Tokens", justify="right", style="bold blue")
        table.add_column("Cost", justify="right", style="red")

        for session in sessions:
            last = (
                session.last_message_at.strftime("%Y-%m-%d %H:%M")
                if session.last_message_at
                else "-"
            )
            table.add_row(
                last,
                session.session_id[:8],
                escape(session.title),
                f"{session.message_count:,}",
                format_tokens(session.total_tokens),
                f"${session.cost:.4f}",
            )
        self.console.print(table)

    def display_search_results(
        self, results: List[SessionSearchResult], query: str
    ) -> None:
        """Display one matching excerpt per session."""
        if not results:
            self.console.print(f"[dim]No sessions mention '{escape(query)}'.[/dim]")
            return

        table = Table(title=f"Sessions matching '{escape(query)}'", show_header=True)
        table.add_column("Session", style="dim", no_wrap=True)
        table.add_column("Title", style="cyan")
        table.add_column("Role", style="yellow")
        table.add_column("Match")

        for result in results:
            table.add_row(
                result.session_id[:8],
                escape(result.summary or result.first_user_message or ""),
                result.message_role,
                escape(result.match_context),
            )
        self.console.print(table)

    # === Pricing ===

    def display_pricing(self, rules: List[PricingRule]) -> None:
        """Display pricing rules in match order."""
        table = Table(
            title="Model Pricing (USD per 1M tokens)",
            show_header=True,
            header_style="bold blue",
        )
        table.add_column("Model", style="cyan", no_wrap=True)
        table.add_column("Matches", style="dim")
        table.add_column("Input", justify="right")
        table.add_column("Output", justify="right")
        table.add_column("Cache Read", justify="right")
        table.add_column("Cache Write", justify="right")

        for rule in rules:
            s = rule.schedule
            table.add_row(
                rule.name,
                ", ".join(rule.keywords),
                f"${s.input:.2f}",
                f"${s.output:.2f}",
                f"${s.cache_read:.2f}",
                f"${s.cache_write:.2f}",
            )
        self.console.print(table)
        self.console.print("[dim]Unmatched models use Sonnet pricing.[/dim]")
