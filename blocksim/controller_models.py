"""
controller_models.py
====================

Feedback controllers.

Classes:
    PIDController: PID with output saturation

Functions:
    guard_minmax: Clamp a value to a (min, max) range

Author: BlockSim Framework
Version: 1.0.0
"""

from typing import Sequence, Tuple

from .bus import Bus, RefBus
from .core_models import ModelCore, SolverType, make_inbus, make_outbus
from .core_signals import SigDef
from .dynamic_models import Integrator
from .errors import ConfigurationError


def guard_minmax(value: float, minmax: Tuple[float, float]) -> float:
    """
    Clamp ``value`` to ``[minmax[0], minmax[1]]``.

    Example:
        >>> guard_minmax(12.0, (-10.0, 10.0))
        10.0
    """
    lower, upper = minmax
    return min(max(value, lower), upper)


# =========================
# PID Controller
# =========================

class PIDController(ModelCore):
    """
    PID controller with output saturation.

    Computes, with e = target - actual:

        out = clip(P·e + I·∫e dt + D·(e - e_prev) / dt, min, max)

    The integral is kept by an internal ``Integrator`` that reads e from a
    private error bus, so it is advanced by the same solver as any other
    model. The derivative is a backward difference over one tick.

    Inputs (2):  [target, actual]
    Outputs (1): [command]

    Note:
        The integral is not clamped, only the output is.

    Example:
        >>> pid = PIDController(make_sig_list(("target", "rpm"), ("actual", "rpm")),
        ...                     make_sig_list(("torque", "Nm")),
        ...                     gain=(1.0, 0.5, 0.0), minmax=(-10.0, 10.0))
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 gain: Tuple[float, float, float] = (1.0, 0.0, 0.0),
                 minmax: Tuple[float, float] = (float("-inf"), float("inf")),
                 solver: str = SolverType.EULER, name: str = "") -> None:
        """
        Args:
            input_def: Exactly two inputs, target value then actual value.
            output_def: Exactly one output.
            gain: (P, I, D) gains.
            minmax: (min, max) output limits.
            solver: ODE method of the internal integrator.

        Raises:
            ConfigurationError: On wrong bus sizes or min > max.
        """
        super().__init__(name)
        self.input_bus = make_inbus("PIDController", input_def)
        self.output_bus = make_outbus("PIDController", output_def)
        if len(self.input_bus) != 2:
            raise ConfigurationError(
                "PIDController: input bus needs exactly 2 signals (target, actual), "
                f"got {len(self.input_bus)}"
            )
        if len(self.output_bus) != 1:
            raise ConfigurationError(
                f"PIDController: output bus needs exactly 1 signal, got {len(self.output_bus)}"
            )
        if minmax[0] > minmax[1]:
            raise ConfigurationError(f"PIDController: min {minmax[0]} exceeds max {minmax[1]}")

        self.gain = tuple(float(g) for g in gain)
        self.minmax = (float(minmax[0]), float(minmax[1]))

        self.error_bus = Bus.from_sigdefs([SigDef("error")])
        self.integrator = Integrator([SigDef("integ_in")], [SigDef("integ_out")], solver)
        self.integrator.input_bus.connect_to(self.error_bus, ["error"], ["integ_in"])
        self.e_old = 0.0

    def reset(self) -> None:
        """Clear the integral and the derivative memory."""
        self.integrator.reset(0.0)
        self.e_old = 0.0

    def initialize(self, sim_time) -> None:
        self.error_bus.zero_reset()
        self.integrator.initialize(sim_time)
        self.e_old = 0.0
        self.output_bus[0].value = guard_minmax(0.0, self.minmax)

    def nextstate(self, sim_time) -> None:
        err = self.input_bus[0].value - self.input_bus[1].value
        self.error_bus[0].value = err
        self.integrator.nextstate(sim_time)

        p_gain, i_gain, d_gain = self.gain
        integ = self.integrator.output_bus[0].value
        diff = (err - self.e_old) / sim_time.delta_t()
        out = p_gain * err + i_gain * integ + d_gain * diff
        self.output_bus[0].value = guard_minmax(out, self.minmax)
        self.e_old = err

    def interface_in(self) -> RefBus:
        return self.input_bus

    def interface_out(self) -> Bus:
        return self.output_bus


__all__ = [
    'guard_minmax',
    'PIDController',
]
