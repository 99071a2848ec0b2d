"""ccmeter - usage analytics for Claude Code session logs."""

__version__ = "0.3.0"
