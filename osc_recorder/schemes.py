"""
Scheme Registry

Named, pure payload transforms applied to each inbound message before it is
recorded. A scheme takes (address, args) and returns (address, data).

Built-in schemes:
    basic        - keep the full argument list
    dirt_basic   - keep only the first argument (None when empty)
    dirt_strip   - keep arguments at odd positions (1, 3, 5, ...)
    only_numbers - keep int and float arguments, drop strings and booleans
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .model import Argument, kind_of

logger = logging.getLogger(__name__)

SchemeFn = Callable[[str, Sequence[Argument]], Tuple[str, Argument]]


class Scheme(str, Enum):
    """Closed set of built-in scheme names."""
    BASIC = "basic"
    DIRT_BASIC = "dirt_basic"
    DIRT_STRIP = "dirt_strip"
    ONLY_NUMBERS = "only_numbers"


class UnknownSchemeError(ValueError):
    """Raised when a scheme name is not registered."""

    def __init__(self, name: str, known: Sequence[str]):
        self.name = name
        self.known = list(known)
        super().__init__(f"Unknown scheme: {name!r} (expected one of: {', '.join(self.known)})")


# =============================================================================
# BUILT-IN TRANSFORMS
# =============================================================================

def basic(address: str, args: Sequence[Argument]) -> Tuple[str, Argument]:
    return address, list(args)


def dirt_basic(address: str, args: Sequence[Argument]) -> Tuple[str, Argument]:
    if args:
        return address, args[0]
    return address, None


def dirt_strip(address: str, args: Sequence[Argument]) -> Tuple[str, Argument]:
    # SuperDirt sends key/value pairs; the values sit at odd positions
    return address, list(args[1::2])


def only_numbers(address: str, args: Sequence[Argument]) -> Tuple[str, Argument]:
    return address, [arg for arg in args if kind_of(arg).is_numeric]


BUILTIN_SCHEMES: Dict[str, SchemeFn] = {
    Scheme.BASIC.value: basic,
    Scheme.DIRT_BASIC.value: dirt_basic,
    Scheme.DIRT_STRIP.value: dirt_strip,
    Scheme.ONLY_NUMBERS.value: only_numbers,
}


# =============================================================================
# REGISTRY
# =============================================================================

class SchemeRegistry:
    """
    Name -> transform lookup.

    The set of schemes is fixed once configuration is done; additional
    transforms go through register() on a registry instance, never by
    mutating BUILTIN_SCHEMES.

    Example:
        registry = SchemeRegistry.default()
        fn = registry.get("dirt_strip")
        address, data = fn("/dirt/play", ["s", "bd", "n", 3])
    """

    def __init__(self, schemes: Optional[Mapping[str, SchemeFn]] = None):
        self._schemes: Dict[str, SchemeFn] = dict(schemes or {})

    @classmethod
    def default(cls) -> "SchemeRegistry":
        """Registry holding exactly the built-in schemes."""
        return cls(BUILTIN_SCHEMES)

    def register(self, name: str, fn: SchemeFn) -> None:
        """
        Register a new transform.

        Args:
            name: Scheme name used on the command line
            fn: Pure function (address, args) -> (address, data)

        Raises:
            ValueError: If the name is empty or already registered
        """
        if not name:
            raise ValueError("Scheme name must not be empty")
        if name in self._schemes:
            raise ValueError(f"Scheme already registered: {name}")
        self._schemes[name] = fn
        logger.debug(f"Registered scheme {name}")

    def get(self, name: str) -> SchemeFn:
        """Look up a transform, raising UnknownSchemeError if missing."""
        try:
            return self._schemes[name]
        except KeyError:
            raise UnknownSchemeError(name, self.names()) from None

    def names(self) -> List[str]:
        return sorted(self._schemes)

    def transform(
        self, name: str, address: str, args: Sequence[Argument]
    ) -> Tuple[str, Argument]:
        return self.get(name)(address, args)

    def __contains__(self, name: object) -> bool:
        return name in self._schemes

    def __len__(self) -> int:
        return len(self._schemes)
