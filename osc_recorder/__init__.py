"""
osc_recorder - OSC session recorder and replayer

Records a live OSC stream to JSON, transforming each payload with a named
scheme, and replays a recording with the original timing (optionally
faster or slower).

Features:
- Schemes: basic, dirt_basic, dirt_strip, only_numbers
- Quantized sessions (first message at time 0)
- Live repeaters: untransformed copies forwarded to extra ports
- Wall-clock paced replay with speed factor and cancellation

Usage:
    from osc_recorder import (
        SchemeRegistry, Session, Recorder, OscListener,
        load_events, ReplayScheduler, OscSender,
    )

    session = Session(quantized=True)
    recorder = Recorder(SchemeRegistry.default().get("basic"), session, "out.json")
    listener = OscListener("127.0.0.1", 57120, recorder.handle_message)
    listener.start()
    ...
    listener.stop()
    recorder.finalize()

    scheduler = ReplayScheduler(OscSender("127.0.0.1", 8000))
    scheduler.run(load_events("out.json"), speed=2.0)
"""

from .model import (
    Argument,
    ArgKind,
    RecordedEvent,
    SessionSummary,
    kind_of,
    normalize_arg,
)
from .schemes import (
    BUILTIN_SCHEMES,
    Scheme,
    SchemeFn,
    SchemeRegistry,
    UnknownSchemeError,
)
from .session import Session
from .fanout import RepeaterFanout, RepeaterTarget, parse_repeater_ports
from .persistence import (
    LoadError,
    PersistenceError,
    flush_events,
    load_events,
    summarize,
)
from .replay import ReplayResult, ReplayScheduler, ReplayState, to_wire_args
from .transport import OscListener, OscSender
from .recorder import FlushResult, Recorder
from .config import (
    ConfigError,
    DEFAULT_CONFIG_PATH,
    RecorderConfig,
    ReplayConfig,
    load_defaults,
)

__all__ = [
    # Model
    "Argument",
    "ArgKind",
    "RecordedEvent",
    "SessionSummary",
    "kind_of",
    "normalize_arg",
    # Schemes
    "BUILTIN_SCHEMES",
    "Scheme",
    "SchemeFn",
    "SchemeRegistry",
    "UnknownSchemeError",
    # Recording
    "Session",
    "Recorder",
    "FlushResult",
    "RepeaterFanout",
    "RepeaterTarget",
    "parse_repeater_ports",
    # Persistence
    "LoadError",
    "PersistenceError",
    "flush_events",
    "load_events",
    "summarize",
    # Replay
    "ReplayResult",
    "ReplayScheduler",
    "ReplayState",
    "to_wire_args",
    # Transport
    "OscListener",
    "OscSender",
    # Config
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "RecorderConfig",
    "ReplayConfig",
    "load_defaults",
]

__version__ = "0.1.0"
