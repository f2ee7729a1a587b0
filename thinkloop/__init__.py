"""thinkloop -- streaming reasoning-aware chat client with a bounded tool loop."""

__version__ = "0.1.0"
