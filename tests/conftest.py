"""Shared fixtures for ccmeter tests."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from ccmeter.logging import setup_logging


setup_logging("warning")


def assistant_record(
    uuid: Optional[str] = "msg-1",
    timestamp: str = "2026-02-02T18:14:51.091Z",
    model: str = "claude-sonnet-4-20250514",
    input_tokens: Optional[int] = 100,
    output_tokens: Optional[int] = 50,
    cache_creation: Optional[int] = None,
    cache_read: Optional[int] = None,
    session_id: str = "session-1",
    text: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a Claude Code assistant log record."""
    usage: Dict[str, Any] = {}
    if input_tokens is not None:
        usage["input_tokens"] = input_tokens
    if output_tokens is not None:
        usage["output_tokens"] = output_tokens
    if cache_creation is not None:
        usage["cache_creation_input_tokens"] = cache_creation
    if cache_read is not None:
        usage["cache_read_input_tokens"] = cache_read

    record: Dict[str, Any] = {
        "type": "assistant",
        "sessionId": session_id,
        "timestamp": timestamp,
        "cwd": "/home/user/project",
        "message": {
            "role": "assistant",
            "model": model,
            "usage": usage,
            "content": [{"type": "text", "text": text}] if text is not None else [],
        },
    }
    if uuid is not None:
        record["uuid"] = uuid
    return record


def iso(dt: datetime) -> str:
    """Format an aware datetime the way Claude Code writes timestamps."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def write_log(directory: Path, name: str, records: List[Any]) -> Path:
    """Write records (dicts or raw strings) as a JSONL file."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def projects_dir(tmp_path: Path) -> Path:
    """Empty Claude Code projects directory."""
    path = tmp_path / "projects"
    path.mkdir()
    return path


@pytest.fixture()
def registry_file(tmp_path: Path) -> Path:
    """Project registry listing two projects."""
    path = tmp_path / "claude.json"
    path.write_text(
        json.dumps(
            {
                "numStartups": 3,
                "projects": {
                    "/home/user/alpha": {"allowedTools": []},
                    "/home/user/beta-app": {"mcpServers": {}},
                },
            }
        ),
        encoding="utf-8",
    )
    return path
