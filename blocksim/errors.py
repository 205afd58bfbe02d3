"""
errors.py
=========

Exception hierarchy for the BlockSim framework.

Errors fall into three families:

- Configuration errors: a model was constructed with an inconsistent bus
  shape, matrix size or parameter. Raised by constructors and setters.
- Wiring errors: a bus or model connection could not be made (duplicate
  names, unknown names, slot already bound, missing interface). Raised by
  the connect/push/disconnect API.
- Runtime access faults: a reference signal was read before it was bound.
  Raised from inside the simulation loop and never caught by the engine.

Classes:
    BlockSimError:          Base class of every framework error
    ConfigurationError:     Invalid model construction parameters
    WiringError:            Base class of connection errors
    DuplicateNameError:     Signal/recorder name already registered
    SignalNotFoundError:    Signal name not present in a bus
    AlreadyConnectedError:  Reference signal is already bound
    ConnectionFailedError:  Consolidated report of a failed bulk connect
    InterfaceError:         Model lacks the input/output bus required to wire
    UnboundSignalError:     Reference signal read while unbound

Author: BlockSim Framework
Version: 1.0.0
"""

from typing import List, Optional


class BlockSimError(Exception):
    """Base class for all BlockSim errors."""


# =========================
# Configuration Errors
# =========================

class ConfigurationError(BlockSimError, ValueError):
    """
    A model or simulation setting is inconsistent.

    Example:
        >>> ConstantFunc(make_sig_list(("a", "V")), [1.0, 2.0])
        Traceback (most recent call last):
        ...
        ConfigurationError: ConstantFunc: output bus has 1 signal(s) but 2 value(s) were given
    """


# =========================
# Wiring Errors
# =========================

class WiringError(BlockSimError, ValueError):
    """Base class for failures of the bus/model connection API."""


class DuplicateNameError(WiringError):
    """A name is already used in the bus (or recorder registry)."""

    def __init__(self, name: str, owner: str = "bus") -> None:
        self.name = name
        super().__init__(f"Duplicate signal name '{name}' in {owner}")


class SignalNotFoundError(WiringError):
    """A signal name could not be resolved in a bus."""

    def __init__(self, name: str, owner: str = "bus") -> None:
        self.name = name
        super().__init__(f"Signal '{name}' not found in {owner}")


class AlreadyConnectedError(WiringError):
    """A reference signal is bound already and must be disconnected first."""

    def __init__(self, dst_name: str, src_name: str) -> None:
        self.dst_name = dst_name
        self.src_name = src_name
        super().__init__(
            f"Reference signal '{dst_name}' is already connected "
            f"(attempted source: '{src_name}')"
        )


class ConnectionFailedError(WiringError):
    """
    Consolidated report of a bulk connect call that could not be completed.

    Every offending name of the call is listed, not only the first one.
    No binding from the failed call is kept.

    Attributes:
        missing_src (List[str]):   Source names not found in the source bus
        missing_dst (List[str]):   Destination names not found in the RefBus
        already_bound (List[str]): Destination slots that were already bound
        unbound_src (List[str]):   Source reference slots that are themselves
                                   unbound and therefore cannot be followed
    """

    def __init__(self, missing_src: Optional[List[str]] = None,
                 missing_dst: Optional[List[str]] = None,
                 already_bound: Optional[List[str]] = None,
                 unbound_src: Optional[List[str]] = None) -> None:
        self.missing_src: List[str] = list(missing_src or [])
        self.missing_dst: List[str] = list(missing_dst or [])
        self.already_bound: List[str] = list(already_bound or [])
        self.unbound_src: List[str] = list(unbound_src or [])

        lines = ["Failed to connect signals:"]
        if self.missing_dst:
            lines.append("  dstlist not found: " + ", ".join(f'"{n}"' for n in self.missing_dst))
        if self.missing_src:
            lines.append("  srclist not found: " + ", ".join(f'"{n}"' for n in self.missing_src))
        if self.already_bound:
            lines.append("  already connected: " + ", ".join(f'"{n}"' for n in self.already_bound))
        if self.unbound_src:
            lines.append("  source not connected: " + ", ".join(f'"{n}"' for n in self.unbound_src))
        super().__init__("\n".join(lines))


class InterfaceError(WiringError):
    """A model does not expose the bus needed for a connection."""


# =========================
# Runtime Faults
# =========================

class UnboundSignalError(BlockSimError, RuntimeError):
    """
    A reference signal was read before being connected.

    This indicates an incomplete wiring graph and is treated as a logic
    fault: the simulation loop does not catch it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Reference signal '{name}' is not connected to any source")


# =========================
# Module Metadata
# =========================

__all__ = [
    'BlockSimError',
    'ConfigurationError',
    'WiringError',
    'DuplicateNameError',
    'SignalNotFoundError',
    'AlreadyConnectedError',
    'ConnectionFailedError',
    'InterfaceError',
    'UnboundSignalError',
]

__version__ = '1.0.0'
