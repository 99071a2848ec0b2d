"""Data source abstraction for ccmeter.

A data source owns the location of the logs and hands out the
deduplicated usage entry stream. The stats cache and chart builder only
talk to this interface, so tests can plug in their own source.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..models.log_entry import UsageRecord
from ..models.session import SessionInfo, SessionSearchResult
from .claude_code_processor import ClaudeCodeProcessor
from .project_registry import ProjectRegistry


class DataSource(ABC):
    """Abstract base class for usage data sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this data source."""
        pass

    @abstractmethod
    def read_entries(
        self,
        max_age_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[UsageRecord]:
        """Read the deduplicated usage records, oldest first.

        Args:
            max_age_days: Only keep records from the trailing N days
            now: Reference time for the age cutoff

        Returns:
            List of UsageRecord objects
        """
        pass

    def get_latest_response(
        self, max_chars: int = 120, max_files: int = 5
    ) -> Optional[str]:
        """Get an excerpt of the latest assistant response, if supported."""
        return None


class ClaudeCodeDataSource(DataSource):
    """Data source for Claude Code JSONL session logs."""

    def __init__(
        self,
        base_path: Optional[str] = None,
        registry_path: Optional[str] = None,
        registry: Optional[ProjectRegistry] = None,
    ):
        """Initialize the data source.

        Args:
            base_path: Projects directory (defaults to ~/.claude/projects)
            registry_path: Project registry file used to name projects
            registry: Prebuilt registry, takes precedence over registry_path

        Raises:
            LogRootNotFoundError: If the projects directory cannot be resolved
        """
        self.base_path = ClaudeCodeProcessor.get_claude_code_storage_path(base_path)
        self.registry = registry or ProjectRegistry(
            Path(registry_path) if registry_path else None
        )

    @property
    def name(self) -> str:
        return "claude-code"

    def has_data(self) -> bool:
        return ClaudeCodeProcessor.has_data(self.base_path)

    def find_log_files(self) -> List[Path]:
        """List log files, newest first."""
        return ClaudeCodeProcessor.find_session_files(self.base_path)

    def read_entries(
        self,
        max_age_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[UsageRecord]:
        return ClaudeCodeProcessor.read_entries(
            self.find_log_files(),
            self.registry.project_for_file,
            max_age_days=max_age_days,
            now=now,
        )

    def get_latest_response(
        self, max_chars: int = 120, max_files: int = 5
    ) -> Optional[str]:
        return ClaudeCodeProcessor.get_latest_response(
            self.find_log_files(), max_chars=max_chars, max_files=max_files
        )

    def list_sessions(self, project: Optional[str] = None) -> List[SessionInfo]:
        """List session summaries, newest first, optionally for one project."""
        return ClaudeCodeProcessor.list_sessions(
            self.find_log_files(), self.registry.project_for_file, project=project
        )

    def search_sessions(
        self, query: str, project: Optional[str] = None
    ) -> List[SessionSearchResult]:
        """Search session transcripts for text, newest session first."""
        return ClaudeCodeProcessor.search_sessions(
            self.find_log_files(),
            self.registry.project_for_file,
            query,
            project=project,
        )
