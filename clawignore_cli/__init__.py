"""clawignore - decide what an AI agent may see, enforce it with container mounts."""

__version__ = "0.3.0"
