"""
Argument and Event Model

OSC payloads are modelled as a closed variant over int, float, str, bool,
list and None. ArgKind names each case and kind_of() is the single
classifier shared by the schemes and by replay coercion.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union

# int | float | str | bool | None | list of Argument
Argument = Union[int, float, str, bool, None, List[Any]]


# =============================================================================
# ARGUMENT VARIANT
# =============================================================================

class ArgKind(Enum):
    """Kinds of values an OSC payload may hold once recorded."""
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    LIST = "list"
    NULL = "null"
    OTHER = "other"  # anything outside the variant

    @property
    def is_numeric(self) -> bool:
        return self in (ArgKind.INTEGER, ArgKind.FLOAT)


def kind_of(value: Any) -> ArgKind:
    """
    Classify a value into its ArgKind.

    bool is checked before int since it subclasses int in Python;
    True is a Boolean, never an Integer.
    """
    if value is None:
        return ArgKind.NULL
    if isinstance(value, bool):
        return ArgKind.BOOLEAN
    if isinstance(value, int):
        return ArgKind.INTEGER
    if isinstance(value, float):
        return ArgKind.FLOAT
    if isinstance(value, str):
        return ArgKind.STRING
    if isinstance(value, list):
        return ArgKind.LIST
    return ArgKind.OTHER


def normalize_arg(value: Any) -> Argument:
    """
    Map a value received from the OSC transport into the Argument variant.

    python-osc can hand us blobs (bytes), MIDI packets and timetags (tuples)
    and the like. Blobs decode as UTF-8, tuples become lists and anything
    else unknown falls back to its string form so it stays JSON-serializable.
    """
    kind = kind_of(value)
    if kind is ArgKind.LIST:
        return [normalize_arg(v) for v in value]
    if kind is not ArgKind.OTHER:
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, tuple):
        return [normalize_arg(v) for v in value]
    return str(value)


# =============================================================================
# RECORDED EVENTS
# =============================================================================

@dataclass(frozen=True)
class RecordedEvent:
    """
    One recorded message.

    Attributes:
        time: Seconds since the session start (>= 0)
        address: OSC address the scheme produced
        data: Transformed payload
    """
    time: float
    address: str
    data: Argument = None

    def to_dict(self) -> Dict[str, Any]:
        """Persisted JSON shape: {time, address, data}."""
        return {"time": self.time, "address": self.address, "data": self.data}


@dataclass(frozen=True)
class SessionSummary:
    """Aggregate view of a recorded session."""
    message_count: int = 0
    duration_seconds: float = 0.0
    address_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def unique_addresses(self) -> List[str]:
        return sorted(self.address_counts)
