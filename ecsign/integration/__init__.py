# Integration Module
"""
Activity logging shared by the workbench and the console front end.

Entries are timestamped, newest first, and mirrored to the logging module.
"""

from .activity_log import (
    EventType,
    ActivityEvent,
    ActivityLog,
)

__all__ = [
    'EventType',
    'ActivityEvent',
    'ActivityLog',
]
