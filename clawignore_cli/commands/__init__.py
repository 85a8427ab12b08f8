"""CLI commands for clawignore."""

__all__ = [
    "docker_help",
    "ignore",
    "regenerate",
    "scan",
    "setup",
]
