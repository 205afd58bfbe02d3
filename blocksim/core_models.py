"""
core_models.py
==============

Model execution contract and ODE integration for the BlockSim framework.

Every simulation unit (source, controller, plant, recorder, subsystem)
derives from ``ModelCore`` and follows one lifecycle:

    Uninitialized ──initialize()──► Initialized ──nextstate()*──► ──finalize()──► Finalized
          ▲                                                                              │
          └──────────────────────── initialize() again (new run) ◄──────────────────────┘

A model talks to the outside world only through its buses:

- ``interface_in()``  returns its ``RefBus`` (or None for source-only models)
- ``interface_out()`` returns its ``Bus``    (or None for sink-only models)

``connect_models()`` is the sanctioned way to wire two models together.

Models that own continuous state add the ``DEModel`` capability: they supply
``derivative_func(x)`` and state accessors, and inherit Euler and RK4 steps.
All RK4 stages read the same input snapshot, taken once at the start of the
step (zero-order hold between ticks).

Classes:
    ModelState:  Lifecycle flag
    ModelCore:   Abstract base class of every model
    SolverType:  Available fixed-step ODE methods
    DEModel:     ModelCore extension with Euler / RK4 integration

Functions:
    connect_models: Wire an output bus to an input bus by signal names
    make_inbus:     Build a model input bus from signal definitions
    make_outbus:    Build a model output bus from signal definitions

Author: BlockSim Framework
Version: 1.0.0
"""

import enum
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Sequence, Union

import numpy as np

from .bus import Bus, RefBus
from .core_signals import SigDef
from .errors import ConfigurationError, InterfaceError, WiringError

if TYPE_CHECKING:
    from .simulation_engine import SimTime

logger = logging.getLogger(__name__)

DEFAULT_DELTA_T: float = 0.1


# =========================
# Lifecycle
# =========================

class ModelState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    FINALIZED = "finalized"


# =========================
# Base Model Class
# =========================

class ModelCore(ABC):
    """
    Abstract base class for all simulation models.

    Subclasses implement ``initialize`` and ``nextstate`` and expose their
    buses through ``interface_in`` / ``interface_out``. Models never touch
    the clock; they only read it.

    Attributes:
        name (str): Identifier used in logs and topology printouts
        state_flag (ModelState): Lifecycle position, maintained by the
            scheduler that owns the model

    Example:
        >>> class Doubler(ModelCore):
        ...     def __init__(self):
        ...         super().__init__("doubler")
        ...         self.inbus = RefBus.from_sigdefs([SigDef("u")])
        ...         self.outbus = Bus.from_sigdefs([SigDef("y")])
        ...     def initialize(self, sim_time):
        ...         self.outbus.zero_reset()
        ...     def nextstate(self, sim_time):
        ...         self.outbus[0].value = 2.0 * self.inbus[0].value
        ...     def interface_in(self):
        ...         return self.inbus
        ...     def interface_out(self):
        ...         return self.outbus
    """

    name: str = ""
    state_flag: ModelState = ModelState.UNINITIALIZED

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.state_flag = ModelState.UNINITIALIZED

    @abstractmethod
    def initialize(self, sim_time: "SimTime") -> None:
        """
        Establish initial outputs and reset internal state.

        Must be safe to call again after ``finalize()`` to start a new run.
        """

    @abstractmethod
    def nextstate(self, sim_time: "SimTime") -> None:
        """
        Advance the model by exactly one clock tick.

        Reads the bound input slots and writes the model's own output bus.
        Must not modify ``sim_time``.
        """

    def finalize(self) -> None:
        """Release external resources. The numeric models hold none."""

    def interface_in(self) -> Optional[RefBus]:
        return None

    def interface_out(self) -> Optional[Bus]:
        return None

    @property
    def label(self) -> str:
        return self.name or type(self).__name__

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.name}')"


# =========================
# Model Wiring
# =========================

def connect_models(srcmodel: ModelCore, srclist: Union[str, Sequence[str]],
                   dstmodel: ModelCore, dstlist: Union[str, Sequence[str]]) -> None:
    """
    Connect output signals of one model to input slots of another.

    Args:
        srcmodel: Producer; must expose an output bus.
        srclist:  Names in the producer's output bus.
        dstmodel: Consumer; must expose an input bus.
        dstlist:  Names in the consumer's input bus, paired with srclist.

    Raises:
        InterfaceError: If the producer has no output bus or the consumer has
            no input bus.
        WiringError / ConnectionFailedError: See ``RefBus.connect_to``.

    Example:
        >>> connect_models(step, ["st1", "st2"], scope, ["scp_st1", "scp_st2"])
    """
    srcbus = srcmodel.interface_out()
    if srcbus is None:
        raise InterfaceError(
            f"{srcmodel.label} has no output interface; its signals cannot be connected"
        )
    inbus = dstmodel.interface_in()
    if inbus is None:
        raise InterfaceError(
            f"{dstmodel.label} has no input interface; signals cannot be connected to it"
        )
    inbus.connect_to(srcbus, srclist, dstlist)
    logger.debug("Wired %s -> %s", srcmodel.label, dstmodel.label)


def make_inbus(owner: str, input_def: Sequence[SigDef]) -> RefBus:
    """Build a model's input bus, reporting bad definitions as ConfigurationError."""
    try:
        return RefBus.from_sigdefs(input_def)
    except WiringError as exc:
        raise ConfigurationError(f"{owner}: input bus is invalid: {exc}") from exc


def make_outbus(owner: str, output_def: Sequence[SigDef]) -> Bus:
    """Build a model's output bus, reporting bad definitions as ConfigurationError."""
    try:
        return Bus.from_sigdefs(output_def)
    except WiringError as exc:
        raise ConfigurationError(f"{owner}: output bus is invalid: {exc}") from exc


# =========================
# ODE Solver Selection
# =========================

class SolverType:
    """
    Enumeration of available fixed-step ODE methods.

    Methods:
        EULER: Forward Euler (first-order)
        RK4:   Classic Runge-Kutta (fourth-order)

    Example:
        >>> ssm = StateSpaceModel(inputs, outputs, 2, SolverType.RK4)
    """
    EULER = 'euler'
    RK4 = 'rk4'
    RUNGE_KUTTA = RK4

    ALL = (EULER, RK4)


def validate_solver(solver: str, owner: str) -> str:
    if solver not in SolverType.ALL:
        raise ConfigurationError(
            f"{owner}: unknown solver '{solver}', expected one of {SolverType.ALL}"
        )
    return solver


# =========================
# Differential Equation Capability
# =========================

class DEModel(ModelCore):
    """
    Model extension for continuous state ``dx/dt = f(x, u)``.

    Subclasses provide ``derivative_func``, ``get_state`` and ``set_state``.
    The input ``u`` is not an argument: ``freeze_inputs()`` copies the input
    bus into ``self.frozen_input`` once per step and ``derivative_func``
    reads it from there, so every RK4 stage sees the same input.
    ``derivative_func`` must be a pure function of (x, frozen_input).

    Attributes:
        solver (str): ``SolverType.EULER`` or ``SolverType.RK4``
        frozen_input (np.ndarray): Input snapshot of the current step
    """

    solver: str = SolverType.EULER
    frozen_input: np.ndarray = np.zeros(0)

    @abstractmethod
    def derivative_func(self, x: np.ndarray) -> np.ndarray:
        """Return dx/dt at state ``x`` for the frozen input."""

    @abstractmethod
    def get_state(self) -> np.ndarray:
        ...

    @abstractmethod
    def set_state(self, newstate: np.ndarray) -> None:
        ...

    def freeze_inputs(self) -> None:
        """Snapshot the input bus for the step about to be integrated."""
        inbus = self.interface_in()
        self.frozen_input = inbus.to_array() if inbus is not None else np.zeros(0)

    def euler_method(self, delta_t: float) -> None:
        """x(t + dt) = x(t) + f(x)·dt"""
        self.freeze_inputs()
        x = self.get_state()
        self.set_state(x + self.derivative_func(x) * delta_t)

    def rungekutta_method(self, delta_t: float) -> None:
        """
        Advance the state with the classic four-stage Runge-Kutta method.

        Stages:
          k1 = f(x)
          k2 = f(x + k1·dt/2)
          k3 = f(x + k2·dt/2)
          k4 = f(x + k3·dt)

        Final update:
          x(t + dt) = x(t) + (dt/6)·(k1 + 2·k2 + 2·k3 + k4)
        """
        self.freeze_inputs()
        x = self.get_state()
        k1 = self.derivative_func(x)
        k2 = self.derivative_func(x + 0.5 * delta_t * k1)
        k3 = self.derivative_func(x + 0.5 * delta_t * k2)
        k4 = self.derivative_func(x + delta_t * k3)
        self.set_state(x + (delta_t / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4))

    def integrate(self, delta_t: float) -> None:
        """Advance the state one step with the configured solver."""
        if self.solver == SolverType.EULER:
            self.euler_method(delta_t)
        elif self.solver == SolverType.RK4:
            self.rungekutta_method(delta_t)
        else:
            raise ConfigurationError(f"{self.label}: unknown solver '{self.solver}'")


# =========================
# Module Metadata
# =========================

__all__ = [
    'DEFAULT_DELTA_T',
    'ModelState',
    'ModelCore',
    'connect_models',
    'make_inbus',
    'make_outbus',
    'SolverType',
    'validate_solver',
    'DEModel',
]

__version__ = '1.0.0'
