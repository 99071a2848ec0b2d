"""Claude Code log processor for ccmeter.

Handles discovery and parsing of Claude Code JSONL session logs.
"""

import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Set, Tuple

import structlog
from pydantic import ValidationError

from ..models.log_entry import RawLogEntry, UsageRecord
from ..models.session import SessionInfo, SessionSearchResult
from ..pricing.rates import cost_of
from .error_handling import LogRootNotFoundError
from .project_registry import encode_path_to_folder

logger = structlog.get_logger()

_NEVER = datetime.min.replace(tzinfo=timezone.utc)

RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)

TITLE_CHARS = 100
MATCH_CONTEXT_CHARS = 50


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp such as 2026-02-02T18:14:51.091Z

    Returns:
        UTC datetime, or None if missing, malformed or without an offset
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not RFC3339_PATTERN.match(value):
        return None
    try:
        dt = datetime.fromisoformat(value.upper().replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt.astimezone(timezone.utc)


def truncate(text: str, max_chars: int) -> str:
    """Cut text to max_chars, marking the cut with an ellipsis."""
    if len(text) > max_chars:
        return text[:max_chars] + "..."
    return text


def find_match_with_context(
    text: str, query: str, context_chars: int = MATCH_CONTEXT_CHARS
) -> Optional[Tuple[str, str]]:
    """Find a case-insensitive match of query in text.

    Returns:
        (matched text in its original case, surrounding context) or None.
        The context keeps up to context_chars on each side, with "..."
        where it was cut.
    """
    match = re.search(re.escape(query), text, re.IGNORECASE)
    if match is None:
        return None

    start = max(match.start() - context_chars, 0)
    end = min(match.end() + context_chars, len(text))
    context = text[start:end]
    if start > 0:
        context = "..." + context
    if end < len(text):
        context = context + "..."
    return match.group(0), context


def _file_mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0


class ClaudeCodeProcessor:
    """Handles Claude Code JSONL log files."""

    @staticmethod
    def get_claude_code_storage_path(configured: Optional[str] = None) -> Path:
        """Get Claude Code projects directory.

        Args:
            configured: Directory from configuration, if any

        Returns:
            Path to the projects directory (which may not exist yet)

        Raises:
            LogRootNotFoundError: If there is no home directory to resolve against
        """
        try:
            if configured:
                return Path(configured).expanduser()
            return Path.home() / ".claude" / "projects"
        except RuntimeError as e:
            raise LogRootNotFoundError(f"no home directory on this host ({e})") from e

    @staticmethod
    def find_session_files(base_path: Path) -> List[Path]:
        """Find all JSONL session files in Claude Code projects.

        Args:
            base_path: Root of the projects tree

        Returns:
            List of JSONL file paths sorted by modification time (newest first)
        """
        base_dir = Path(base_path).expanduser()
        if not base_dir.is_dir():
            return []

        try:
            jsonl_files = [p for p in base_dir.glob("**/*.jsonl") if p.is_file()]
        except OSError as e:
            logger.warning("log scan failed", path=str(base_dir), error=str(e))
            return []

        jsonl_files.sort(key=_file_mtime, reverse=True)
        return jsonl_files

    @staticmethod
    def iter_lines(file_path: Path) -> Iterator[str]:
        """Yield the non-blank lines of a log file.

        An unopenable file yields nothing; undecodable bytes are replaced so
        one bad line does not hide the rest of the file.
        """
        try:
            with open(file_path, "r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        yield line
        except OSError as e:
            logger.debug("skipping unreadable log", path=str(file_path), error=str(e))

    @staticmethod
    def parse_entry(line: str) -> Optional[RawLogEntry]:
        """Decode one JSONL line, or None if it is not a JSON object."""
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return RawLogEntry.model_validate(data)
        except ValidationError:
            return None

    @staticmethod
    def parse_line(line: str, project: str) -> Optional[UsageRecord]:
        """Parse a single JSONL line into a usage record.

        Only assistant messages with usage data, a model name and a valid
        timestamp qualify. Everything else is silently rejected.

        Args:
            line: Raw line from a log file
            project: Project identifier for the file the line came from

        Returns:
            UsageRecord or None
        """
        raw = ClaudeCodeProcessor.parse_entry(line)
        if raw is None:
            return None
        return ClaudeCodeProcessor.record_from_entry(raw, project)

    @staticmethod
    def record_from_entry(raw: RawLogEntry, project: str) -> Optional[UsageRecord]:
        """Build a usage record from a decoded entry, if it qualifies."""
        if not raw.is_assistant_message:
            return None

        message = raw.message
        if message.usage is None or message.model is None:
            return None

        timestamp = parse_timestamp(raw.timestamp)
        if timestamp is None:
            return None

        usage = message.usage
        return UsageRecord(
            timestamp=timestamp,
            session_id=raw.session_id or "",
            model=message.model,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
            cache_creation_tokens=usage.cache_creation_input_tokens or 0,
            cache_read_tokens=usage.cache_read_input_tokens or 0,
            unique_id=raw.uuid or "",
            project=project,
        )

    @staticmethod
    def read_entries(
        files: Iterable[Path],
        project_for: Callable[[Path], str],
        max_age_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[UsageRecord]:
        """Read, filter and deduplicate usage records from log files.

        Records sharing a non-empty unique id are kept once across all files
        of the run; records without an id are always kept.

        Args:
            files: Log files, usually newest first
            project_for: Maps a log file to its project identifier
            max_age_days: Drop records older than this many days (None keeps all)
            now: Reference time for the age cutoff (defaults to current UTC time)

        Returns:
            Records sorted by timestamp (oldest first)
        """
        cutoff = None
        if max_age_days is not None:
            cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=max_age_days)

        entries: List[UsageRecord] = []
        seen_ids: Set[str] = set()
        file_count = 0

        for file_path in files:
            file_count += 1
            project = project_for(file_path)

            for line in ClaudeCodeProcessor.iter_lines(file_path):
                entry = ClaudeCodeProcessor.parse_line(line, project)
                if entry is None:
                    continue

                if cutoff is not None and entry.timestamp < cutoff:
                    continue

                if entry.unique_id:
                    if entry.unique_id in seen_ids:
                        continue
                    seen_ids.add(entry.unique_id)

                entries.append(entry)

        entries.sort(key=lambda e: e.timestamp)
        logger.debug("usage entries read", files=file_count, entries=len(entries))
        return entries

    @staticmethod
    def get_latest_response(
        files: List[Path],
        max_chars: int = 120,
        max_files: int = 5,
    ) -> Optional[str]:
        """Get an excerpt of the most recent assistant text response.

        Args:
            files: Log files sorted newest first
            max_chars: Excerpt length before an ellipsis is appended
            max_files: How many of the newest files to search

        Returns:
            Excerpt text, or None if no assistant text was found
        """
        for file_path in files[:max_files]:
            lines = list(ClaudeCodeProcessor.iter_lines(file_path))

            for line in reversed(lines):
                raw = ClaudeCodeProcessor.parse_entry(line)
                if raw is None or not raw.is_assistant_message:
                    continue

                text = raw.message.text().strip()
                if not text:
                    continue

                return truncate(text, max_chars)

        return None

    @staticmethod
    def has_data(base_path: Path) -> bool:
        """Check if Claude Code has any session data.

        Args:
            base_path: Root of the projects tree

        Returns:
            True if there are JSONL files, False otherwise
        """
        return len(ClaudeCodeProcessor.find_session_files(base_path)) > 0

    @staticmethod
    def summarize_session(file_path: Path, project: str = "") -> Optional[SessionInfo]:
        """Summarize one session transcript.

        User and assistant turns are counted; assistant turns repeating a
        uuid already seen in the file are skipped. Cost is the sum of each
        assistant record's own cost.

        Args:
            file_path: Session log file; its stem is the session id
            project: Project identifier for the file

        Returns:
            SessionInfo, or None if the file holds no user or assistant turns
        """
        info = SessionInfo(session_id=file_path.stem, project=project)
        seen_ids: Set[str] = set()

        for line in ClaudeCodeProcessor.iter_lines(file_path):
            raw = ClaudeCodeProcessor.parse_entry(line)
            if raw is None:
                continue

            if raw.entry_type == "summary":
                if raw.summary:
                    info.summary = raw.summary
                continue
            if raw.entry_type not in ("user", "assistant"):
                continue

            if raw.entry_type == "assistant" and raw.uuid:
                if raw.uuid in seen_ids:
                    continue
                seen_ids.add(raw.uuid)

            info.message_count += 1
            timestamp = parse_timestamp(raw.timestamp)
            if timestamp is not None:
                if info.first_message_at is None or timestamp < info.first_message_at:
                    info.first_message_at = timestamp
                if info.last_message_at is None or timestamp > info.last_message_at:
                    info.last_message_at = timestamp

            if raw.message is None:
                continue

            if raw.entry_type == "user":
                if info.first_user_message is None:
                    parts = raw.message.text_parts()
                    if parts:
                        info.first_user_message = truncate(parts[0], TITLE_CHARS)
                continue

            if raw.message.model:
                info.model = raw.message.model
            record = ClaudeCodeProcessor.record_from_entry(raw, project)
            if record is not None:
                info.input_tokens += record.input_tokens
                info.output_tokens += record.output_tokens
                info.cache_creation_tokens += record.cache_creation_tokens
                info.cache_read_tokens += record.cache_read_tokens
                info.cost += cost_of(record)

        if info.message_count == 0:
            return None
        return info

    @staticmethod
    def in_project(file_path: Path, project_id: str, project: str) -> bool:
        """Check whether a log file belongs to the project the user named.

        The name may be the project identifier, the log folder name or an
        absolute project path.
        """
        folder = file_path.parent.name
        return project in (project_id, folder) or encode_path_to_folder(project) == folder

    @staticmethod
    def list_sessions(
        files: Iterable[Path],
        project_for: Callable[[Path], str],
        project: Optional[str] = None,
    ) -> List[SessionInfo]:
        """List session summaries, newest last message first.

        Args:
            files: Log files
            project_for: Maps a log file to its project identifier
            project: Only list sessions of this project (None lists all)

        Returns:
            SessionInfo objects; sessions without timestamps sort last
        """
        sessions: List[SessionInfo] = []
        for file_path in files:
            project_id = project_for(file_path)
            if project is not None and not ClaudeCodeProcessor.in_project(
                file_path, project_id, project
            ):
                continue
            info = ClaudeCodeProcessor.summarize_session(file_path, project_id)
            if info is not None:
                sessions.append(info)

        sessions.sort(key=lambda s: s.last_message_at or _NEVER, reverse=True)
        logger.debug("sessions listed", sessions=len(sessions))
        return sessions

    @staticmethod
    def search_session(
        file_path: Path, query: str, project: str = ""
    ) -> Optional[SessionSearchResult]:
        """Find the first user or assistant text in a session matching query."""
        summary: Optional[str] = None
        first_user_message: Optional[str] = None

        for line in ClaudeCodeProcessor.iter_lines(file_path):
            raw = ClaudeCodeProcessor.parse_entry(line)
            if raw is None:
                continue

            if raw.entry_type == "summary":
                if raw.summary:
                    summary = raw.summary
                continue
            if raw.entry_type not in ("user", "assistant") or raw.message is None:
                continue

            parts = raw.message.text_parts()
            if raw.entry_type == "user" and first_user_message is None and parts:
                first_user_message = truncate(parts[0], TITLE_CHARS)

            for text in parts:
                found = find_match_with_context(text, query)
                if found is None:
                    continue
                matched_text, context = found
                return SessionSearchResult(
                    session_id=file_path.stem,
                    project=project,
                    summary=summary,
                    first_user_message=first_user_message,
                    matched_text=matched_text,
                    match_context=context,
                    message_role=raw.entry_type,
                )

        return None

    @staticmethod
    def search_sessions(
        files: Iterable[Path],
        project_for: Callable[[Path], str],
        query: str,
        project: Optional[str] = None,
    ) -> List[SessionSearchResult]:
        """Search session transcripts for text, case-insensitively.

        Args:
            files: Log files, usually newest first
            project_for: Maps a log file to its project identifier
            query: Text to look for; an empty query matches nothing
            project: Only search sessions of this project (None searches all)

        Returns:
            At most one result per session, in file order
        """
        if not query:
            return []

        results: List[SessionSearchResult] = []
        for file_path in files:
            project_id = project_for(file_path)
            if project is not None and not ClaudeCodeProcessor.in_project(
                file_path, project_id, project
            ):
                continue
            result = ClaudeCodeProcessor.search_session(file_path, query, project_id)
            if result is not None:
                results.append(result)
        return results
