"""
bus.py
======

Ordered, name-unique collections of signals used as model interfaces.

A model publishes its outputs on a ``Bus`` (a list of owned ``Signal`` value
cells) and consumes its inputs through a ``RefBus`` (a list of ``RefSignal``
reference slots). Both keep insertion order, so signals can be addressed by
position (``bus[0]``) as well as by name (``bus.get_by_name("x")``).

Wiring happens once, before the simulation starts:

    [producer.Bus] ──connect_to──► [consumer.RefBus]

``RefBus.connect_to()`` resolves every (source, destination) name pair before
binding anything, so a failed call leaves all of its slots untouched and
reports every offending name in a single ``ConnectionFailedError``.

Classes:
    BusCore: Shared container behaviour (push, lookup, export)
    Bus:     Bus of owned Signal value cells
    RefBus:  Bus of RefSignal reference slots with bulk connect

Functions:
    make_sig_list: Build a List[SigDef] from (name, unit) tuples

Author: BlockSim Framework
Version: 1.0.0
"""

import logging
from typing import Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from .core_signals import SigDef, Signal, RefSignal
from .errors import (
    ConfigurationError,
    ConnectionFailedError,
    DuplicateNameError,
    SignalNotFoundError,
    WiringError,
)

logger = logging.getLogger(__name__)

SigT = TypeVar("SigT", Signal, RefSignal)


def make_sig_list(*pairs: Tuple[str, str]) -> List[SigDef]:
    """
    Build a signal definition list from ``(name, unit)`` tuples.

    Example:
        >>> make_sig_list(("x", "m"), ("v", "m/s"))
        [SigDef(name='x', unit='m'), SigDef(name='v', unit='m/s')]
    """
    return [SigDef(name, unit) for name, unit in pairs]


def _as_name_list(names: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(names, str):
        return [names]
    return list(names)


# =========================
# Common Bus Container
# =========================

class BusCore(Generic[SigT]):
    """
    Ordered collection of signals with O(1) name lookup.

    Invariants:
        - signal names are unique within one bus
        - insertion order is preserved and externally indexable

    Attributes:
        signals (List): Signals in insertion order
        keytable (Dict[str, int]): Name to index map
    """

    def __init__(self) -> None:
        self.signals: List[SigT] = []
        self.keytable: Dict[str, int] = {}

    def push(self, signal: SigT) -> None:
        """
        Append a signal.

        Raises:
            DuplicateNameError: If a signal with the same name exists. The bus
                                is left unchanged.
        """
        if signal.name in self.keytable:
            raise DuplicateNameError(signal.name, owner=type(self).__name__)
        self.keytable[signal.name] = len(self.signals)
        self.signals.append(signal)

    def get_by_name(self, name: str) -> Optional[SigT]:
        """Return the signal called ``name``, or None if it is not in the bus."""
        index = self.keytable.get(name)
        if index is None:
            return None
        return self.signals[index]

    # Python hands out references, so the mutable lookup is the same call.
    get_by_name_mut = get_by_name

    def index_of(self, name: str) -> Optional[int]:
        return self.keytable.get(name)

    def names(self) -> List[str]:
        return [sig.name for sig in self.signals]

    def to_vec_f64(self) -> List[float]:
        """Signal values as a list of floats, in bus order."""
        return [sig.value for sig in self.signals]

    def to_array(self) -> np.ndarray:
        """Signal values as a 1-D float64 array, in bus order."""
        return np.array([sig.value for sig in self.signals], dtype=float)

    def get_sigdef(self) -> List[SigDef]:
        """Shape of this bus, usable to build another bus of the same layout."""
        return [sig.sigdef for sig in self.signals]

    def __len__(self) -> int:
        return len(self.signals)

    def __iter__(self) -> Iterator[SigT]:
        return iter(self.signals)

    def __getitem__(self, index: int) -> SigT:
        return self.signals[index]

    def __contains__(self, name: object) -> bool:
        return name in self.keytable

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.names()})"


# =========================
# Value Bus
# =========================

class Bus(BusCore[Signal]):
    """
    Bus of owned ``Signal`` value cells: a model's output interface.

    Example:
        >>> bus = Bus.from_sigdefs(make_sig_list(("test1", "A"), ("test2", "A")))
        >>> bus[0].value = 1.0
        >>> bus.to_vec_f64()
        [1.0, 0.0]
    """

    @classmethod
    def from_sigdefs(cls, sigdefs: Sequence[SigDef], initial: float = 0.0) -> "Bus":
        """
        Build a bus with one zero-initialised Signal per definition.

        Raises:
            DuplicateNameError: If two definitions share a name.
        """
        bus = cls()
        for sigdef in sigdefs:
            bus.push(Signal.from_sigdef(sigdef, initial))
        return bus

    def import_array(self, values: Union[Sequence[float], np.ndarray]) -> None:
        """
        Copy a numeric vector into the bus, element ``i`` to signal ``i``.

        Raises:
            ConfigurationError: If the vector length differs from the bus size.
        """
        flat = np.asarray(values, dtype=float).ravel()
        if flat.size != len(self.signals):
            raise ConfigurationError(
                f"Cannot import {flat.size} value(s) into a bus of size {len(self.signals)}"
            )
        for sig, val in zip(self.signals, flat):
            sig.value = val

    def zero_reset(self) -> None:
        for sig in self.signals:
            sig.value = 0.0

    def set_all(self, value: float) -> None:
        for sig in self.signals:
            sig.value = value

    def __str__(self) -> str:
        lines = [f"  {sig.name}: {sig.value}[{sig.unit}]" for sig in self.signals]
        return f"Bus: size = {len(self)}\nSignal List:\n" + "\n".join(lines) + "\n"


# =========================
# Reference Bus
# =========================

class RefBus(BusCore[RefSignal]):
    """
    Bus of ``RefSignal`` reference slots: a model's input interface.

    Example:
        >>> src = Bus.from_sigdefs(make_sig_list(("bus1", "A"), ("bus2", "A")))
        >>> dst = RefBus.from_sigdefs(make_sig_list(("ref1", "A"), ("ref2", "A")))
        >>> dst.connect_to(src, ["bus2", "bus1"], ["ref1", "ref2"])
        >>> src[1].value = 5.0
        >>> dst.get_by_name("ref1").value
        5.0
    """

    @classmethod
    def from_sigdefs(cls, sigdefs: Sequence[SigDef]) -> "RefBus":
        """
        Build a bus with one unbound RefSignal per definition.

        Raises:
            DuplicateNameError: If two definitions share a name.
        """
        bus = cls()
        for sigdef in sigdefs:
            bus.push(RefSignal.from_sigdef(sigdef))
        return bus

    def connect_to(self, srcbus: BusCore, srclist: Union[str, Sequence[str]],
                   dstlist: Union[str, Sequence[str]]) -> None:
        """
        Bind slots of this bus to signals of ``srcbus``, pairwise by name.

        ``srclist[i]`` (a name in ``srcbus``) is bound to ``dstlist[i]`` (a
        name in this bus). All pairs are resolved before any binding is made:
        if anything is wrong the call raises and none of its slots change.

        Args:
            srcbus:  Source bus, a Bus or a RefBus whose slots are bound.
            srclist: Source signal names.
            dstlist: Destination slot names, same length as srclist.

        Raises:
            WiringError: If srclist and dstlist differ in length. Raised
                before any name is looked up.
            ConnectionFailedError: If any source or destination name is
                unknown, a destination slot is already bound (or named twice),
                or a source slot is itself unbound. Lists every offender.
        """
        srcnames = _as_name_list(srclist)
        dstnames = _as_name_list(dstlist)
        if len(srcnames) != len(dstnames):
            raise WiringError(
                f"Source list ({len(srcnames)}) and destination list "
                f"({len(dstnames)}) must have the same length"
            )

        missing_src: List[str] = []
        missing_dst: List[str] = []
        already_bound: List[str] = []
        unbound_src: List[str] = []
        claimed = set()
        pairs = []

        for src_name, dst_name in zip(srcnames, dstnames):
            src = srcbus.get_by_name(src_name)
            dst = self.get_by_name(dst_name)
            ok = True

            if src is None:
                missing_src.append(src_name)
                ok = False
            elif isinstance(src, RefSignal) and not src.is_connected():
                unbound_src.append(src_name)
                ok = False

            if dst is None:
                missing_dst.append(dst_name)
                ok = False
            elif dst.is_connected() or dst_name in claimed:
                already_bound.append(dst_name)
                ok = False
            claimed.add(dst_name)

            if ok:
                pairs.append((src, dst))

        if missing_src or missing_dst or already_bound or unbound_src:
            err = ConnectionFailedError(missing_src, missing_dst, already_bound, unbound_src)
            logger.warning("%s", err)
            raise err

        for src, dst in pairs:
            dst.connect_to(src)
        logger.debug("Connected %d signal(s): %s -> %s", len(pairs), srcnames, dstnames)

    def disconnect(self, name: str) -> None:
        """
        Unbind one slot so it can be connected again.

        Raises:
            SignalNotFoundError: If no slot is called ``name``.
        """
        sig = self.get_by_name(name)
        if sig is None:
            raise SignalNotFoundError(name, owner="RefBus")
        sig.disconnect()

    def disconnect_all(self) -> None:
        for sig in self.signals:
            sig.disconnect()

    def unbound_names(self) -> List[str]:
        return [sig.name for sig in self.signals if not sig.is_connected()]

    def is_fully_connected(self) -> bool:
        return all(sig.is_connected() for sig in self.signals)

    def __str__(self) -> str:
        lines = [f"  {sig}" for sig in self.signals]
        return f"RefBus: size = {len(self)}\nSignal List:\n" + "\n".join(lines) + "\n"


# =========================
# Module Metadata
# =========================

__all__ = [
    'BusCore',
    'Bus',
    'RefBus',
    'make_sig_list',
]

__version__ = '1.0.0'
