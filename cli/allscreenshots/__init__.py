"""allscreenshots command line client.

Captures website screenshots through the AllScreenshots API, saves them to
disk and, where the terminal supports it, shows them inline. Async jobs,
batches, schedules and local composition are layered on the same client.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .cli import app, main

__all__ = ["__version__", "app", "main"]
