"""
mechanical_models.py
====================

Point-mass and massless connector models for 3-D mechanical systems.

A ``MassModel`` integrates Newton's law for one point mass. Springs and
dampers connect two points: they read both end coordinates and output equal
and opposite forces along the line joining them, which are wired back into
the force inputs of the masses.

    [MassModel A] ──pos──►┐
                          ├──► [SimpleSpring] ──F1──► [MassModel A]
    [MassModel B] ──pos──►┘                   └─F2──► [MassModel B]

Connector buses:
    inputs (6):  x1, y1, z1, x2, y2, z2  (end 1 and end 2 coordinates)
    outputs (6): Fx1, Fy1, Fz1, Fx2, Fy2, Fz2  (F2 = -F1)

A positive scalar force pushes the ends apart.

Classes:
    MassModel:          Point mass, state (x, y, z, vx, vy, vz)
    SimpleSpring:       Linear spring with natural length
    SimpleDamper:       Linear damper on the rate of length change
    SimpleSpringDamper: Spring and damper in parallel

Author: BlockSim Framework
Version: 1.0.0
"""

import math
from typing import Sequence, Tuple

import numpy as np

from .bus import Bus, RefBus
from .core_models import ModelCore, SolverType, make_inbus, make_outbus
from .core_signals import SigDef
from .dynamic_models import StateSpaceModel
from .errors import ConfigurationError

Vector3 = Tuple[float, float, float]


# =========================
# Point Mass
# =========================

class MassModel(StateSpaceModel):
    """
    Point mass in 3-D space.

    State and outputs: (x, y, z, vx, vy, vz). Inputs: forces (Fx, Fy, Fz).

        ẋ = v,  v̇ = F / m

    Example:
        >>> mass = MassModel(make_sig_list(("fx", "N"), ("fy", "N"), ("fz", "N")),
        ...                  make_sig_list(("x", "m"), ("y", "m"), ("z", "m"),
        ...                                ("vx", "m/s"), ("vy", "m/s"), ("vz", "m/s")),
        ...                  mass=1.0, init_pos=(0.0, 0.0, 1.0))
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 mass: float, init_pos: Vector3 = (0.0, 0.0, 0.0),
                 init_velocity: Vector3 = (0.0, 0.0, 0.0),
                 solver: str = SolverType.EULER, name: str = "") -> None:
        if len(input_def) != 3:
            raise ConfigurationError("MassModel: input bus needs 3 forces (Fx, Fy, Fz)")
        if len(output_def) != 6:
            raise ConfigurationError("MassModel: output bus needs 6 signals (x, y, z, vx, vy, vz)")
        if mass <= 0.0:
            raise ConfigurationError(f"MassModel: mass must be positive, got {mass}")
        super().__init__(input_def, output_def, 6, solver, name)
        self.mass = float(mass)

        mtrx_a = np.zeros((6, 6))
        mtrx_a[0:3, 3:6] = np.eye(3)
        mtrx_b = np.zeros((6, 3))
        mtrx_b[3:6, 0:3] = np.eye(3) / self.mass
        self.set_mtrx_a(mtrx_a.ravel())
        self.set_mtrx_b(mtrx_b.ravel())
        self.set_mtrx_c(np.eye(6).ravel())
        self.set_init_state(list(init_pos) + list(init_velocity))


# =========================
# Two-Point Connectors
# =========================

class _Connector(ModelCore):
    """Common buses and geometry of the spring/damper elements."""

    kind = "Connector"

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 name: str = "") -> None:
        super().__init__(name)
        self.input_bus = make_inbus(self.kind, input_def)
        self.output_bus = make_outbus(self.kind, output_def)
        if len(self.input_bus) != 6:
            raise ConfigurationError(f"{self.kind}: input bus needs 6 signals, got {len(self.input_bus)}")
        if len(self.output_bus) != 6:
            raise ConfigurationError(f"{self.kind}: output bus needs 6 signals, got {len(self.output_bus)}")

    def _span(self) -> Tuple[np.ndarray, float]:
        """Vector from end 2 to end 1, and its length."""
        ends = self.input_bus.to_array()
        diff = ends[0:3] - ends[3:6]
        return diff, math.sqrt(float(diff @ diff))

    def _publish(self, force: float, diff: np.ndarray, distance: float) -> None:
        if distance > 0.0:
            f1 = force * diff / distance
        else:
            f1 = np.zeros(3)
        self.output_bus.import_array(np.concatenate((f1, -f1)))

    def interface_in(self) -> RefBus:
        return self.input_bus

    def interface_out(self) -> Bus:
        return self.output_bus


def _check_non_negative(owner: str, label: str, value: float) -> float:
    if value < 0.0:
        raise ConfigurationError(f"{owner}: {label} must be >= 0, got {value}")
    return float(value)


class SimpleSpring(_Connector):
    """
    Massless linear spring: F = k · (natural_length - distance).

    Example:
        >>> spring = SimpleSpring(ends_def, forces_def, natural_length=1.0,
        ...                       spring_constant=100.0)
    """

    kind = "SimpleSpring"

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 natural_length: float, spring_constant: float, name: str = "") -> None:
        super().__init__(input_def, output_def, name)
        self.natural_length = _check_non_negative(self.kind, "natural length", natural_length)
        self.spring_constant = _check_non_negative(self.kind, "spring constant", spring_constant)

    def initialize(self, sim_time) -> None:
        self.output_bus.zero_reset()

    def nextstate(self, sim_time) -> None:
        diff, distance = self._span()
        force = self.spring_constant * (self.natural_length - distance)
        self._publish(force, diff, distance)


class SimpleDamper(_Connector):
    """
    Massless linear damper: F = c · (previous_length - distance) / delta_t.

    The length at ``initialize`` is the reference for the first tick.
    """

    kind = "SimpleDamper"

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 damping_coeff: float, name: str = "") -> None:
        super().__init__(input_def, output_def, name)
        self.damping_coeff = _check_non_negative(self.kind, "damping coefficient", damping_coeff)
        self.damper_length = 0.0

    def initialize(self, sim_time) -> None:
        _diff, self.damper_length = self._span()
        self.output_bus.zero_reset()

    def nextstate(self, sim_time) -> None:
        diff, distance = self._span()
        force = self.damping_coeff * (self.damper_length - distance) / sim_time.delta_t()
        self.damper_length = distance
        self._publish(force, diff, distance)


class SimpleSpringDamper(_Connector):
    """Spring and damper acting in parallel between the same two ends."""

    kind = "SimpleSpringDamper"

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 natural_length: float, spring_constant: float, damping_coeff: float,
                 name: str = "") -> None:
        super().__init__(input_def, output_def, name)
        self.natural_length = _check_non_negative(self.kind, "natural length", natural_length)
        self.spring_constant = _check_non_negative(self.kind, "spring constant", spring_constant)
        self.damping_coeff = _check_non_negative(self.kind, "damping coefficient", damping_coeff)
        self.damper_length = 0.0

    def initialize(self, sim_time) -> None:
        _diff, self.damper_length = self._span()
        self.output_bus.zero_reset()

    def nextstate(self, sim_time) -> None:
        diff, distance = self._span()
        spring_force = self.spring_constant * (self.natural_length - distance)
        damper_force = self.damping_coeff * (self.damper_length - distance) / sim_time.delta_t()
        self.damper_length = distance
        self._publish(spring_force + damper_force, diff, distance)


__all__ = [
    'MassModel',
    'SimpleSpring',
    'SimpleDamper',
    'SimpleSpringDamper',
]
