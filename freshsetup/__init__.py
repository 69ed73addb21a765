"""Fresh Setup — idempotent macOS bootstrap workflows."""

__version__ = "0.1.0"
