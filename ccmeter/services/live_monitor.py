"""Live monitoring dashboard for ccmeter."""

import threading
import time
from pathlib import Path
from typing import Optional

import structlog
import watchfiles
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel

from ..cache.stats_cache import StatsCache
from ..models.analytics import AggregatedStats
from .report_generator import ReportGenerator

logger = structlog.get_logger()


class LiveMonitor:
    """Periodically redraws usage stats read through a StatsCache."""

    def __init__(
        self,
        cache: StatsCache,
        console: Optional[Console] = None,
        watch_path: Optional[Path] = None,
    ):
        """Initialize live monitor.

        Args:
            cache: Stats cache to read from
            console: Rich console for output
            watch_path: Log directory to watch; changes invalidate the cache
        """
        self.cache = cache
        self.console = console or Console()
        self.report = ReportGenerator(self.console)
        self.watch_path = watch_path
        self._stop_watcher = threading.Event()
        self._watcher_thread: Optional[threading.Thread] = None

    def render(self, stats: AggregatedStats) -> Group:
        """Build the dashboard renderable for one tick."""
        parts = [
            Panel(
                self.report.build_summary_table(stats),
                title="Claude Code Usage",
                border_style="green",
            ),
            self.report.build_session_panel(stats),
        ]
        if stats.by_model:
            parts.append(self.report.build_model_table(stats))
        return Group(*parts)

    def _start_watcher(self) -> None:
        """Start file system watcher in background."""
        if self.watch_path is None or not self.watch_path.is_dir():
            return

        def watch_loop():
            try:
                for changes in watchfiles.watch(
                    self.watch_path,
                    stop_event=self._stop_watcher,
                    recursive=True,
                ):
                    if any(path.endswith(".jsonl") for _, path in changes):
                        self.cache.invalidate()
            except (OSError, RuntimeError) as e:
                logger.warning("log watcher stopped", error=str(e))

        self._watcher_thread = threading.Thread(target=watch_loop, daemon=True)
        self._watcher_thread.start()

    def _stop(self) -> None:
        self._stop_watcher.set()
        if self._watcher_thread:
            self._watcher_thread.join(timeout=1)

    def start_monitoring(self, refresh_interval: int = 10) -> None:
        """Run the dashboard until interrupted.

        Args:
            refresh_interval: Seconds between redraws
        """
        self._start_watcher()
        try:
            with Live(
                self.render(self.cache.get()),
                refresh_per_second=4,
                console=self.console,
                screen=True,
            ) as live:
                last_update = time.monotonic()
                while True:
                    if time.monotonic() - last_update >= refresh_interval:
                        live.update(self.render(self.cache.get()))
                        last_update = time.monotonic()
                    time.sleep(0.1)
        except KeyboardInterrupt:
            pass  # Clean exit
        finally:
            self._stop()
