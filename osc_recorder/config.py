"""
Configuration

Recorder and replayer settings. Values come from an optional YAML file
(~/.config/osc_recorder/config.yaml by default) and are overridden by
command-line flags:

    record:
      address: 127.0.0.1
      port: 57120
      scheme: dirt_strip
      repeaters: "57121,57122"
      quantized: true
    replay:
      port: 57120
      speed: 1.0
"""

import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .fanout import MAX_PORT, RepeaterTarget, parse_repeater_ports
from .schemes import SchemeFn, SchemeRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "osc_recorder" / "config.yaml"

DEFAULT_REPLAY_ADDRESS = "127.0.0.1"
DEFAULT_REPLAY_PORT = 8000


class ConfigError(ValueError):
    """Missing or invalid configuration."""


def load_defaults(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load per-command defaults from YAML.

    A missing default file is fine; an explicitly given file must exist.

    Args:
        path: Explicit config file, or None for DEFAULT_CONFIG_PATH

    Returns:
        {"record": {...}, "replay": {...}}, sections possibly empty

    Raises:
        ConfigError: Explicit file missing, unreadable or not a mapping
    """
    explicit = path is not None
    path = Path(path) if explicit else DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug(f"No config file at {path}")
        return {"record": {}, "replay": {}}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    sections: Dict[str, Dict[str, Any]] = {}
    for name in ("record", "replay"):
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Section '{name}' in {path} must be a mapping")
        sections[name] = section

    logger.info(f"Loaded config from {path}")
    return sections


def _merge(cls, defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    values: Dict[str, Any] = {}
    for key, value in defaults.items():
        if key in names:
            values[key] = value
        else:
            logger.warning(f"Ignoring unknown config key: {key}")
    for key, value in overrides.items():
        if key in names and value is not None:
            values[key] = value
    return values


def _as_port(value: Any, what: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid {what}: {value!r}") from None
    if not 0 < port <= MAX_PORT:
        raise ConfigError(f"Invalid {what}: {value!r}")
    return port


# =============================================================================
# RECORDER
# =============================================================================

@dataclass
class RecorderConfig:
    """
    Recorder settings.

    Attributes:
        address: IP address to listen on (repeaters send to it too)
        port: Port to listen on
        file: Output JSON file
        scheme: Scheme name
        repeaters: Comma-separated repeater ports
        quantized: Shift time so the first message is at 0
    """
    address: str = ""
    port: int = 0
    file: Optional[Path] = None
    scheme: str = ""
    repeaters: str = ""
    quantized: bool = False

    @classmethod
    def from_sources(
        cls,
        defaults: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "RecorderConfig":
        values = _merge(cls, defaults or {}, overrides or {})
        config = cls(**values)
        if config.file is not None:
            config.file = Path(config.file)
        if isinstance(config.repeaters, (list, tuple)):
            config.repeaters = ",".join(str(p) for p in config.repeaters)
        elif config.repeaters is None:
            config.repeaters = ""
        elif not isinstance(config.repeaters, str):
            # a single port in YAML loads as an int
            config.repeaters = str(config.repeaters)
        return config

    def validate(self, registry: SchemeRegistry) -> SchemeFn:
        """
        Check required settings and resolve the scheme.

        Returns:
            The scheme transform

        Raises:
            ConfigError: A required setting is missing or invalid
            UnknownSchemeError: The scheme is not registered
        """
        missing: List[str] = []
        if not self.address:
            missing.append("address")
        if not self.port:
            missing.append("port")
        if not self.file:
            missing.append("file")
        if not self.scheme:
            missing.append("scheme")
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        self.port = _as_port(self.port, "port")
        return registry.get(self.scheme)

    def repeater_targets(self) -> List[RepeaterTarget]:
        return parse_repeater_ports(self.repeaters, self.address)


# =============================================================================
# REPLAYER
# =============================================================================

@dataclass
class ReplayConfig:
    """
    Replayer settings.

    Attributes:
        file: Recorded JSON file
        address: Destination IP address
        port: Destination port
        speed: Speed factor (> 0)
        loop: Replay repeatedly until interrupted
    """
    file: Optional[Path] = None
    address: str = DEFAULT_REPLAY_ADDRESS
    port: int = DEFAULT_REPLAY_PORT
    speed: float = 1.0
    loop: bool = False

    @classmethod
    def from_sources(
        cls,
        defaults: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ReplayConfig":
        values = _merge(cls, defaults or {}, overrides or {})
        config = cls(**values)
        if config.file is not None:
            config.file = Path(config.file)
        return config

    def validate(self) -> None:
        if not self.file:
            raise ConfigError("Missing required settings: file")
        self.port = _as_port(self.port, "port")
        try:
            speed = float(self.speed)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid speed: {self.speed!r}") from None
        if not (speed > 0 and math.isfinite(speed)):
            raise ConfigError(f"Speed factor must be > 0, got {self.speed!r}")
        self.speed = speed
