"""
Activity Log Module

The user-visible record of everything the workbench does.

Features:
- Key generation / import / export events
- Signing and verification events
- Package and external verifier events
- Errors caught at the triggering action
- Newest entry first, each line prefixed with an ISO-8601 timestamp

Every entry is also forwarded to the standard logging module under
the "ecsign.activity" logger. Key material is never recorded.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config import DEFAULT_MAX_LOG_ENTRIES


logger = logging.getLogger("ecsign.activity")


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of activity that can be logged."""

    # Key events
    KEY_GENERATED = "key_generated"
    KEY_IMPORTED = "key_imported"
    KEY_EXPORTED = "key_exported"

    # Signing events
    MESSAGE_SIGNED = "message_signed"
    SIGNATURE_VERIFIED = "signature_verified"
    SIGNATURE_FAILED = "signature_failed"

    # Exchange events
    PACKAGE_CREATED = "package_created"
    EXTERNAL_VERIFIER_OPENED = "external_verifier_opened"

    # Progress and failures
    INFO = "info"
    ERROR = "error"


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class ActivityEvent:
    """One line of the activity log."""
    event_type: EventType
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def iso_time(self) -> str:
        return self.timestamp.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')

    def __str__(self) -> str:
        return f"[{self.iso_time}] {self.message}"


# ============================================================================
# Activity Log
# ============================================================================

class ActivityLog:
    """
    Append-to-top activity log.

    Entries are kept in memory for the session only.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_LOG_ENTRIES):
        """
        Args:
            max_entries: Oldest entries are dropped beyond this count
        """
        self._entries: List[ActivityEvent] = []
        self._max_entries = max_entries
        self._callbacks: List[Callable[[ActivityEvent], None]] = []

    def record(self, event_type: EventType, message: str, **details: Any) -> ActivityEvent:
        """
        Add an entry at the top of the log.

        Args:
            event_type: Kind of activity
            message: Human-readable text
            **details: Extra non-secret fields

        Returns:
            The recorded event
        """
        event = ActivityEvent(event_type=event_type, message=message, details=details)
        self._entries.insert(0, event)
        del self._entries[self._max_entries:]

        level = logging.ERROR if event_type is EventType.ERROR else logging.INFO
        logger.log(level, "%s: %s", event_type.value, message)

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception:
                # A broken listener must not stop the log itself
                logger.exception("Activity log callback failed")
        return event

    def info(self, message: str, **details: Any) -> ActivityEvent:
        return self.record(EventType.INFO, message, **details)

    def error(self, message: str, **details: Any) -> ActivityEvent:
        return self.record(EventType.ERROR, message, **details)

    def add_callback(self, callback: Callable[[ActivityEvent], None]) -> None:
        """Add a callback to be notified of new entries."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[ActivityEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ========================================================================
    # Retrieval
    # ========================================================================

    def entries(self) -> List[ActivityEvent]:
        """All entries, newest first."""
        return list(self._entries)

    @property
    def latest(self) -> Optional[ActivityEvent]:
        return self._entries[0] if self._entries else None

    def get_events_by_type(self, event_type: EventType) -> List[ActivityEvent]:
        """Entries of one type, newest first."""
        return [e for e in self._entries if e.event_type == event_type]

    def render(self, last_n: Optional[int] = None) -> str:
        """The log as text, one entry per line, newest first."""
        events = self._entries[:last_n] if last_n else self._entries
        return "\n".join(str(e) for e in events)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
