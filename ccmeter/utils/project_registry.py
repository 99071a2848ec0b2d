"""Project registry lookups.

Claude Code names each log folder after the absolute project path with path
separators replaced by hyphens. The registry file (``~/.claude.json``) lists
the known project paths, so the encoding can be reversed for those.
"""

import json
from pathlib import Path
from typing import Dict, Optional

import structlog

logger = structlog.get_logger()


def encode_path_to_folder(path: str) -> str:
    """Encode a project path the way Claude Code names its log folder.

    e.g. "/Users/foo/project" -> "-Users-foo-project". Hyphens already in the
    path are left alone, so the encoding is not reversible on its own.
    """
    return path.replace("\\", "-").replace("/", "-")


class ProjectRegistry:
    """Maps log folder names back to registered project paths."""

    def __init__(self, registry_path: Optional[Path] = None):
        """Initialize the registry.

        Args:
            registry_path: Path to the JSON registry file. None gives an
                empty lookup.
        """
        self.registry_path = Path(registry_path).expanduser() if registry_path else None
        self._lookup: Optional[Dict[str, str]] = None

    @property
    def lookup(self) -> Dict[str, str]:
        """Folder name -> project path table, built on first use."""
        if self._lookup is None:
            self._lookup = self._build_lookup()
        return self._lookup

    def _build_lookup(self) -> Dict[str, str]:
        if self.registry_path is None:
            return {}

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("project registry not found", path=str(self.registry_path))
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "project registry unreadable", path=str(self.registry_path), error=str(e)
            )
            return {}

        projects = data.get("projects") if isinstance(data, dict) else None
        if not isinstance(projects, dict):
            return {}

        lookup = {encode_path_to_folder(path): path for path in projects}
        logger.debug("project registry loaded", projects=len(lookup))
        return lookup

    def resolve(self, folder_name: str) -> str:
        """Get the project identifier for a log folder.

        Args:
            folder_name: Name of the folder holding a log file

        Returns:
            Registered project path, or the folder name itself when unknown
        """
        return self.lookup.get(folder_name, folder_name)

    def project_for_file(self, file_path: Path) -> str:
        """Get the project identifier for a log file from its parent folder."""
        return self.resolve(file_path.parent.name)
