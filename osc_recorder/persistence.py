"""
Session Persistence

Writes the recorded log to a JSON document at shutdown and loads it back
for replay. The document is a plain array:

    [ {"time": 0.0, "address": "/a", "data": [1, 2]}, ... ]
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .model import RecordedEvent, SessionSummary

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PersistenceError(Exception):
    """Raised when the session file cannot be created or written."""


class LoadError(Exception):
    """Raised when a session file is missing, unreadable or malformed."""


class EventRecord(BaseModel):
    """Schema of one persisted event."""
    time: float = Field(ge=0, allow_inf_nan=False, strict=True)
    address: str = Field(min_length=1)
    data: Any = None


_EVENTS = TypeAdapter(List[EventRecord])


def flush_events(events: Iterable[RecordedEvent], path: PathLike) -> int:
    """
    Write events to path as a JSON array, in log order.

    Args:
        events: Recorded events (usually Session.snapshot())
        path: Output file; parent directories are created

    Returns:
        Number of events written

    Raises:
        PersistenceError: If the file cannot be created or written
    """
    path = Path(path)
    payload = [event.to_dict() for event in events]

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to write {path}: {e}") from e

    logger.info(f"Saved {len(payload)} messages to {path}")
    return len(payload)


def load_events(path: PathLike) -> List[RecordedEvent]:
    """
    Load and validate a session file.

    Raises:
        LoadError: If the file cannot be read, is not valid JSON or does
            not match the [{time, address, data}] shape
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise LoadError(f"Failed to open {path}: {e}") from e
    except ValueError as e:
        raise LoadError(f"Failed to parse JSON in {path}: {e}") from e

    try:
        records = _EVENTS.validate_python(raw)
    except ValidationError as e:
        raise LoadError(f"Malformed session file {path}: {e}") from e

    events = [RecordedEvent(time=r.time, address=r.address, data=r.data) for r in records]
    logger.debug(f"Loaded {len(events)} messages from {path}")
    return events


def summarize(events: Sequence[RecordedEvent]) -> SessionSummary:
    """Message count, span between first and last event, per-address counts."""
    if not events:
        return SessionSummary()
    counts = Counter(event.address for event in events)
    return SessionSummary(
        message_count=len(events),
        duration_seconds=max(events[-1].time - events[0].time, 0.0),
        address_counts=dict(counts),
    )
