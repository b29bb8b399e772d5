"""Persistent logging of battle events."""

from duelarena.server_logging.event_log import EventLogger

__all__ = ["EventLogger"]
