"""Log discovery, parsing and project resolution helpers."""
