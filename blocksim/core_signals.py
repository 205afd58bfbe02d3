"""
core_signals.py
===============

Scalar signal representation for the BlockSim framework.

Every value exchanged between models is a named, unit-tagged float. A model
owns its outputs as ``Signal`` objects (value cells) and reads its inputs
through ``RefSignal`` objects (reference slots) that point at value cells
owned by other models.

Sharing works by Python object reference: a ``Signal`` keeps its value in a
private ``_SigCore`` object and every ``RefSignal`` bound to it holds the very
same core. Writing through the owning ``Signal`` is immediately visible to
all readers, and the core lives as long as its longest-lived holder.

Classes:
    SigDef:     Immutable (name, unit) pair describing a signal
    Signal:     Owned value cell
    RefSignal:  Named reference slot bound to a value cell owned elsewhere

Author: BlockSim Framework
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Optional, Union

from .errors import AlreadyConnectedError, UnboundSignalError


# =========================
# Signal Definition
# =========================

@dataclass(frozen=True)
class SigDef:
    """
    Immutable signal schema: a name and a physical unit.

    SigDef objects are compared by value and are used both to build buses and
    to describe the shape of an existing bus (see ``BusCore.get_sigdef()``).

    Attributes:
        name (str): Signal name, unique within one bus
        unit (str): Unit label, free text (e.g. "A", "m/s", "-")

    Example:
        >>> SigDef("motor_current", "A")
        SigDef(name='motor_current', unit='A')
        >>> str(SigDef("motor_current", "A"))
        'motor_current[A]'
    """
    name: str
    unit: str = "-"

    def __str__(self) -> str:
        return f"{self.name}[{self.unit}]"


class _SigCore:
    """Shared storage of one signal value. Never handed out to user code."""

    __slots__ = ("value", "sigdef")

    def __init__(self, value: float, sigdef: SigDef) -> None:
        self.value: float = float(value)
        self.sigdef: SigDef = sigdef

    def __repr__(self) -> str:
        return f"_SigCore({self.sigdef}, value={self.value})"


# =========================
# Value Cell
# =========================

class Signal:
    """
    Owned scalar value cell.

    The model that creates a Signal (normally through its output ``Bus``) is
    the only writer by convention. Any number of ``RefSignal`` slots can be
    bound to it and will observe every update.

    Attributes:
        name (str):   Signal name
        unit (str):   Unit label
        value (float): Current value (read/write)

    Example:
        >>> a = Signal(1.1, "motor_current", "A")
        >>> str(a)
        'motor_current: 1.1[A]'
        >>> a.value = 2.0
        >>> a.value
        2.0
    """

    def __init__(self, value: float = 0.0, name: str = "", unit: str = "-") -> None:
        self._core = _SigCore(value, SigDef(name, unit))

    @classmethod
    def from_sigdef(cls, sigdef: SigDef, value: float = 0.0) -> "Signal":
        return cls(value, sigdef.name, sigdef.unit)

    @property
    def name(self) -> str:
        return self._core.sigdef.name

    @property
    def unit(self) -> str:
        return self._core.sigdef.unit

    @property
    def sigdef(self) -> SigDef:
        return self._core.sigdef

    @property
    def value(self) -> float:
        return self._core.value

    @value.setter
    def value(self, val: float) -> None:
        self._core.value = float(val)

    def set_val(self, val: float) -> None:
        """Write a new value; equivalent to ``signal.value = val``."""
        self._core.value = float(val)

    @property
    def core(self) -> _SigCore:
        return self._core

    def __str__(self) -> str:
        return f"{self.name}: {self.value}[{self.unit}]"

    def __repr__(self) -> str:
        return f"Signal('{self.name}', unit='{self.unit}', value={self.value})"


# =========================
# Reference Slot
# =========================

class RefSignal:
    """
    Named reference to a value cell owned by another model.

    A RefSignal carries its own definition, so the consuming model can use a
    different name than the producer. It binds at most once: binding an
    already-bound slot raises ``AlreadyConnectedError`` until ``disconnect()``
    is called. Reading an unbound slot raises ``UnboundSignalError``.

    Binding to another RefSignal follows it to the underlying value cell, so
    chains of references never add indirection.

    Example:
        >>> a = Signal(1.0, "a")
        >>> b = RefSignal("b")
        >>> b.connect_to(a)
        >>> a.value = 2.0
        >>> b.value
        2.0
    """

    def __init__(self, name: str = "", unit: str = "-") -> None:
        self._sigdef: SigDef = SigDef(name, unit)
        self._core: Optional[_SigCore] = None

    @classmethod
    def from_sigdef(cls, sigdef: SigDef) -> "RefSignal":
        return cls(sigdef.name, sigdef.unit)

    @property
    def name(self) -> str:
        return self._sigdef.name

    @property
    def unit(self) -> str:
        return self._sigdef.unit

    @property
    def sigdef(self) -> SigDef:
        return self._sigdef

    @property
    def value(self) -> float:
        if self._core is None:
            raise UnboundSignalError(self.name)
        return self._core.value

    @property
    def core(self) -> _SigCore:
        if self._core is None:
            raise UnboundSignalError(self.name)
        return self._core

    def is_connected(self) -> bool:
        return self._core is not None

    def connect_to(self, signal: Union[Signal, "RefSignal"]) -> None:
        """
        Bind this slot to the value cell behind ``signal``.

        Args:
            signal: A Signal, or a bound RefSignal (the binding follows it to
                    its value cell).

        Raises:
            AlreadyConnectedError: If this slot is already bound.
            UnboundSignalError:    If ``signal`` is an unbound RefSignal.
        """
        if self._core is not None:
            raise AlreadyConnectedError(self.name, signal.name)
        self._core = signal.core

    def disconnect(self) -> None:
        self._core = None

    def source_name(self) -> Optional[str]:
        """Name of the value cell this slot reads, or None when unbound."""
        return self._core.sigdef.name if self._core is not None else None

    def __str__(self) -> str:
        if self._core is None:
            return f"{self.name} [{self.unit}] Referrer: Not Connected!"
        return (f"{self.name}: {self._core.value} [{self.unit}] "
                f"Referrer: {self._core.sigdef}")

    def __repr__(self) -> str:
        state = f"-> '{self.source_name()}'" if self._core is not None else "unbound"
        return f"RefSignal('{self.name}', unit='{self.unit}', {state})"


# =========================
# Module Metadata
# =========================

__all__ = [
    'SigDef',
    'Signal',
    'RefSignal',
]

__version__ = '1.0.0'
