"""Exception types and user-facing error messages for ccmeter."""


class CCMeterError(Exception):
    """Base class for ccmeter errors."""


class LogRootNotFoundError(CCMeterError):
    """Raised when the Claude Code projects directory cannot be resolved.

    A directory that resolves but does not exist is not an error; this is
    only raised when there is no home directory to resolve it against.
    """


class ConfigError(CCMeterError, ValueError):
    """Raised for an unreadable or invalid configuration file."""


def create_user_friendly_error(error: Exception) -> str:
    """Turn an exception into a one-line message for the CLI.

    Args:
        error: Exception raised while running a command

    Returns:
        Message suitable for printing to stderr
    """
    if isinstance(error, LogRootNotFoundError):
        return f"Cannot locate Claude Code logs: {error}"
    if isinstance(error, ConfigError):
        return f"Configuration problem: {error}"
    if isinstance(error, PermissionError):
        return f"Permission denied: {error.filename or error}"
    if isinstance(error, FileNotFoundError):
        return f"File not found: {error.filename or error}"
    return str(error) or error.__class__.__name__
