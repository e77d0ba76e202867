"""
osc_recorder - Command Line

Usage:
    osc-recorder record --address 127.0.0.1 --port 57120 --file session.json --scheme dirt_strip
    osc-recorder record ... --repeaters 57121,57122 --quantized
    osc-recorder replay --file session.json --port 57120 --speed 2.0
    osc-recorder info --file session.json

Exit codes:
    0  clean shutdown / replay finished
    1  bad configuration, bind failure, flush failure or unreadable session file
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .config import (
    ConfigError,
    RecorderConfig,
    ReplayConfig,
    load_defaults,
)
from .fanout import RepeaterFanout
from .persistence import LoadError, load_events, summarize
from .recorder import Recorder
from .replay import ReplayScheduler, ReplayState
from .schemes import SchemeRegistry, UnknownSchemeError
from .session import Session
from .transport import OscListener, OscSender

logger = logging.getLogger("osc_recorder")

SHUTDOWN_POLL_INTERVAL = 0.5


def _configure_logging(level: str, log_file: Optional[Path]) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=handlers,
    )


def _install_signal_handlers(on_signal: Callable[[], None]) -> Dict[int, Any]:
    """
    Route SIGINT/SIGTERM to on_signal.

    The handler only records the request; shutdown work happens on the
    main thread. Returns the previous handlers for restoring.
    """
    def _handler(signum, _frame):
        logger.info(f"Received signal {signum}, shutting down")
        on_signal()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


# =============================================================================
# COMMANDS
# =============================================================================

def record(config: RecorderConfig, shutdown: threading.Event,
           registry: Optional[SchemeRegistry] = None) -> int:
    """
    Record until shutdown is set, then flush.

    Configuration is validated before any socket is bound.
    """
    registry = registry or SchemeRegistry.default()
    try:
        scheme = config.validate(registry)
    except (ConfigError, UnknownSchemeError) as e:
        logger.error(str(e))
        return 1

    try:
        fanout = RepeaterFanout(config.repeater_targets())
    except OSError as e:
        logger.error(f"Failed to set up repeaters: {e}")
        return 1

    session = Session(quantized=config.quantized)
    recorder = Recorder(scheme, session, config.file, fanout)

    try:
        listener = OscListener(config.address, config.port, recorder.handle_message)
    except OSError as e:
        logger.error(f"Error listening for OSC on {config.address}:{config.port}: {e}")
        fanout.close(wait=False)
        return 1

    logger.info(f"Scheme: {config.scheme} | quantized: {config.quantized} | output: {config.file}")
    listener.start()
    try:
        while not shutdown.is_set():
            shutdown.wait(SHUTDOWN_POLL_INTERVAL)
    finally:
        listener.stop()

    result = recorder.finalize()
    fanout.close()
    return 0 if result.ok else 1


def replay(config: ReplayConfig, scheduler: Optional[ReplayScheduler] = None) -> int:
    """Load the session file and replay it; returns the exit code."""
    try:
        config.validate()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if scheduler is None:
        try:
            scheduler = ReplayScheduler(OscSender(config.address, config.port))
        except OSError as e:
            logger.error(f"Cannot send to {config.address}:{config.port}: {e}")
            return 1

    try:
        events = load_events(config.file)
    except LoadError as e:
        scheduler.state = ReplayState.LOAD_FAILED
        logger.error(f"Replay aborted: {e}")
        return 1

    if not events:
        logger.info("No messages found in JSON file. Exiting.")
        return 0

    logger.info(
        f"Replaying {len(events)} messages to {config.address}:{config.port} "
        f"at speed factor: {config.speed:.2f}"
    )

    while True:
        result = scheduler.run(events, config.speed)
        if not config.loop or result.state is ReplayState.CANCELLED:
            break
        logger.info("Looping...")
    return 0


def show_info(path: Path, console: Optional[Console] = None) -> int:
    """Print a summary table of a session file."""
    console = console or Console()
    try:
        events = load_events(path)
    except LoadError as e:
        logger.error(str(e))
        return 1

    summary = summarize(events)
    table = Table(title=str(path), box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Address", style="cyan")
    table.add_column("Messages", style="yellow", justify="right")
    for address in summary.unique_addresses:
        table.add_row(address, str(summary.address_counts[address]))
    table.add_row("[bold]TOTAL[/bold]", f"[bold]{summary.message_count}[/bold]")

    console.print(table)
    console.print(f"Duration: {summary.duration_seconds:.3f}s")
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="osc-recorder",
        description="Record OSC traffic to JSON and replay it with original timing",
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML file with record/replay defaults")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Optional path to append logs to")

    sub = parser.add_subparsers(dest="mode")

    rec = sub.add_parser("record", help="Listen for OSC and record to a JSON file")
    rec.add_argument("--address", help="IP address to listen on (required)")
    rec.add_argument("--port", type=int, help="Port to listen on (required)")
    rec.add_argument("--file", type=Path, help="Path to the output JSON file (required)")
    rec.add_argument("--scheme", help="Scheme for processing incoming OSC messages (required): "
                     + ", ".join(SchemeRegistry.default().names()))
    rec.add_argument("--repeaters", help="Comma-separated list of ports to forward messages to")
    rec.add_argument("--quantized", action="store_true", default=None,
                     help="Quantize timing so the first message is at time=0")

    rep = sub.add_parser("replay", help="Replay a recorded JSON file")
    rep.add_argument("--file", type=Path, help="JSON file with recorded OSC messages (required)")
    rep.add_argument("--address", help="IP address to send OSC messages to (default: 127.0.0.1)")
    rep.add_argument("--port", type=int, help="Port to send OSC messages to (default: 8000)")
    rep.add_argument("--speed", type=float,
                     help="Playback speed: 2.0 = double speed, 0.5 = half speed (default: 1.0)")
    rep.add_argument("--loop", action="store_true", default=None, help="Loop playback")

    info = sub.add_parser("info", help="Summarize a recorded JSON file")
    info.add_argument("--file", type=Path, required=True, help="JSON file to inspect")

    args = parser.parse_args(argv)
    if args.mode is None:
        parser.error("mode is required: record | replay | info")
    return args


def _overrides(args: argparse.Namespace, keys: List[str]) -> Dict[str, Any]:
    return {key: getattr(args, key, None) for key in keys}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.log_level, args.log_file)

    if args.mode == "info":
        return show_info(args.file)

    try:
        defaults = load_defaults(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if args.mode == "record":
        config = RecorderConfig.from_sources(
            defaults["record"],
            _overrides(args, ["address", "port", "file", "scheme", "repeaters", "quantized"]),
        )
        shutdown = threading.Event()
        previous = _install_signal_handlers(shutdown.set)
        try:
            return record(config, shutdown)
        finally:
            _restore_signal_handlers(previous)

    if args.mode == "replay":
        config = ReplayConfig.from_sources(
            defaults["replay"],
            _overrides(args, ["file", "address", "port", "speed", "loop"]),
        )
        try:
            config.validate()
            sender = OscSender(config.address, config.port)
        except ConfigError as e:
            logger.error(str(e))
            return 1
        except OSError as e:
            logger.error(f"Cannot send to {config.address}:{config.port}: {e}")
            return 1
        scheduler = ReplayScheduler(sender)
        previous = _install_signal_handlers(scheduler.cancel)
        try:
            return replay(config, scheduler)
        finally:
            _restore_signal_handlers(previous)

    logger.error(f"Unknown mode: {args.mode}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
