"""DisasterWatch offline sync: cached reads, queued writes and replay on reconnect."""

__version__ = "1.0.0"
