"""
dynamic_models.py
=================

Continuous-state models integrated with the DEModel solvers.

Classes:
    StateSpaceModel:       General state-space model (ẋ = Ax + Bu, y = Cx + Du)
    TransferFunctionModel: SISO transfer function realised as a state-space model
    Integrator:            Element-wise integrator (ẋ = u, y = x)

All models integrate one step per ``nextstate`` with the solver chosen at
construction, using the input values frozen at the start of the step, and
then publish their outputs.

Author: BlockSim Framework
Version: 1.0.0
"""

from typing import List, Sequence

import numpy as np

from .bus import Bus, RefBus
from .core_models import DEModel, SolverType, make_inbus, make_outbus, validate_solver
from .core_signals import SigDef
from .errors import ConfigurationError


def _format_matrix(title: str, mtrx: np.ndarray) -> str:
    rows, cols = mtrx.shape
    lines = [f"Matrix {title} ({rows} x {cols}): "]
    for r in range(rows):
        lines.append("|" + "".join(f"{mtrx[r, c]:>15.5f} " for c in range(cols)) + "|")
    return "\n".join(lines) + "\n"


# =========================
# State-Space Model
# =========================

class StateSpaceModel(DEModel):
    """
    Continuous state-space model.

    Implements:
        ẋ(t) = A·x(t) + B·u(t)
        y(t) = C·x(t) + D·u(t)

    The matrices start as zeros of the proper shape and are filled with the
    ``set_mtrx_*`` methods, which take row-major flat sequences.

    Attributes:
        mtrx_a, mtrx_b, mtrx_c, mtrx_d (np.ndarray): System matrices
        x (np.ndarray):      Current state vector
        init_x (np.ndarray): State restored by ``initialize``
        state_dim, input_dim, output_dim (int): Dimensions

    Example:
        >>> ssm = StateSpaceModel(make_sig_list(("u", "-")),
        ...                       make_sig_list(("y1", "-"), ("y2", "-")), 2)
        >>> ssm.set_mtrx_a([1.0, 0.0, 0.0, 1.0])
        >>> ssm.set_mtrx_b([1.0, 2.0])
        >>> ssm.set_mtrx_c([1.0, 0.0, 0.0, 1.0])
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 state_dim: int, solver: str = SolverType.EULER, name: str = "") -> None:
        super().__init__(name)
        self.input_bus = make_inbus("StateSpaceModel", input_def)
        self.output_bus = make_outbus("StateSpaceModel", output_def)
        self.state_dim = int(state_dim)
        self.input_dim = len(self.input_bus)
        self.output_dim = len(self.output_bus)
        if self.state_dim <= 0 or self.input_dim <= 0 or self.output_dim <= 0:
            raise ConfigurationError(
                "StateSpaceModel: state, input and output dimensions must be positive "
                f"(got {self.state_dim}, {self.input_dim}, {self.output_dim})"
            )
        self.solver = validate_solver(solver, "StateSpaceModel")

        self.mtrx_a = np.zeros((self.state_dim, self.state_dim))
        self.mtrx_b = np.zeros((self.state_dim, self.input_dim))
        self.mtrx_c = np.zeros((self.output_dim, self.state_dim))
        self.mtrx_d = np.zeros((self.output_dim, self.input_dim))
        self.x = np.zeros(self.state_dim)
        self.init_x = np.zeros(self.state_dim)
        self.frozen_input = np.zeros(self.input_dim)

    # ---- parameter setters ----

    def _set_matrix(self, label: str, values: Sequence[float], shape) -> np.ndarray:
        flat = np.asarray(values, dtype=float).ravel()
        if flat.size != shape[0] * shape[1]:
            raise ConfigurationError(
                f"StateSpaceModel: matrix {label} needs {shape[0] * shape[1]} "
                f"element(s) ({shape[0]} x {shape[1]}), got {flat.size}"
            )
        return flat.reshape(shape)

    def set_mtrx_a(self, values: Sequence[float]) -> None:
        self.mtrx_a = self._set_matrix("A", values, self.mtrx_a.shape)

    def set_mtrx_b(self, values: Sequence[float]) -> None:
        self.mtrx_b = self._set_matrix("B", values, self.mtrx_b.shape)

    def set_mtrx_c(self, values: Sequence[float]) -> None:
        self.mtrx_c = self._set_matrix("C", values, self.mtrx_c.shape)

    def set_mtrx_d(self, values: Sequence[float]) -> None:
        self.mtrx_d = self._set_matrix("D", values, self.mtrx_d.shape)

    def _state_vector(self, values: Sequence[float]) -> np.ndarray:
        vec = np.asarray(values, dtype=float).ravel()
        if vec.size != self.state_dim:
            raise ConfigurationError(
                f"StateSpaceModel: state vector needs {self.state_dim} element(s), got {vec.size}"
            )
        return vec

    def set_init_state(self, values: Sequence[float]) -> None:
        """Initial state applied at every ``initialize``."""
        self.init_x = self._state_vector(values)

    def set_x(self, values: Sequence[float]) -> None:
        """Overwrite the current state."""
        self.x = self._state_vector(values)

    # ---- DEModel ----

    def derivative_func(self, x: np.ndarray) -> np.ndarray:
        return self.mtrx_a @ x + self.mtrx_b @ self.frozen_input

    def get_state(self) -> np.ndarray:
        return self.x

    def set_state(self, newstate: np.ndarray) -> None:
        self.x = newstate

    def get_observation(self) -> np.ndarray:
        """y = C·x + D·u with the current input values."""
        return self.mtrx_c @ self.x + self.mtrx_d @ self.input_bus.to_array()

    # ---- ModelCore ----

    def initialize(self, sim_time) -> None:
        self.x = self.init_x.copy()
        if self.input_bus.is_fully_connected():
            self.output_bus.import_array(self.get_observation())
        else:
            self.output_bus.import_array(self.mtrx_c @ self.x)

    def nextstate(self, sim_time) -> None:
        self.integrate(sim_time.delta_t())
        self.output_bus.import_array(self.get_observation())

    def interface_in(self) -> RefBus:
        return self.input_bus

    def interface_out(self) -> Bus:
        return self.output_bus

    def __str__(self) -> str:
        return "\n".join([
            _format_matrix("A", self.mtrx_a),
            _format_matrix("B", self.mtrx_b),
            _format_matrix("C", self.mtrx_c),
            _format_matrix("D", self.mtrx_d),
        ])


# =========================
# Transfer Function Model
# =========================

def tf_to_ss_matrices(num: Sequence[float], den: Sequence[float]):
    """
    Canonical state-space realisation of ``num(s) / den(s)``.

    Coefficients are given highest power first, e.g. ``[a2, a1, a0]`` for
    ``a2·s² + a1·s + a0``. With n = len(den) - 1 the result is:

        A: ones on the sub-diagonal, last column -a_r / a_n
        B: B[r] = (b_r - a_r·d) / a_n
        C: [0 ... 0 1]
        D: d = b_n / a_n  (0 for strictly proper functions)

    Returns:
        Tuple of flat row-major lists (A, B, C, D).

    Raises:
        ConfigurationError: If the order is 0, the function is improper or
            the leading denominator coefficient is 0.
    """
    num = [float(v) for v in num]
    den = [float(v) for v in den]
    n = len(den) - 1
    if n < 1:
        raise ConfigurationError("TransferFunctionModel: state order must be at least 1")
    if len(num) > len(den):
        raise ConfigurationError(
            "TransferFunctionModel: transfer function is not proper "
            f"(numerator order {len(num) - 1} > denominator order {n})"
        )
    a_n = den[0]
    if a_n == 0.0:
        raise ConfigurationError("TransferFunctionModel: leading denominator coefficient is 0")

    # a[r], b[r]: coefficient of s^r
    a = den[::-1]
    b = num[::-1] + [0.0] * (n + 1 - len(num))
    d = b[n] / a_n

    mtrx_a = [0.0] * (n * n)
    for r in range(n):
        mtrx_a[r * n + n - 1] = -a[r] / a_n
        if r > 0:
            mtrx_a[r * n + r - 1] = 1.0
    mtrx_b = [(b[r] - a[r] * d) / a_n for r in range(n)]
    mtrx_c = [0.0] * n
    mtrx_c[n - 1] = 1.0
    return mtrx_a, mtrx_b, mtrx_c, [d]


class TransferFunctionModel(StateSpaceModel):
    """
    SISO transfer function ``G(s) = num(s) / den(s)``.

    Example:
        >>> # G(s) = 1 / (s + 1)
        >>> tf = TransferFunctionModel(make_sig_list(("u", "-")),
        ...                            make_sig_list(("y", "-")), [1.0], [1.0, 1.0])
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 num: Sequence[float], den: Sequence[float],
                 solver: str = SolverType.EULER, name: str = "") -> None:
        if len(input_def) != 1 or len(output_def) != 1:
            raise ConfigurationError(
                "TransferFunctionModel: input and output buses must have exactly one signal"
            )
        mtrx_a, mtrx_b, mtrx_c, mtrx_d = tf_to_ss_matrices(num, den)
        super().__init__(input_def, output_def, len(den) - 1, solver, name)
        self.num: List[float] = [float(v) for v in num]
        self.den: List[float] = [float(v) for v in den]
        self.set_mtrx_a(mtrx_a)
        self.set_mtrx_b(mtrx_b)
        self.set_mtrx_c(mtrx_c)
        self.set_mtrx_d(mtrx_d)

    def __str__(self) -> str:
        return f"Transfer Function Model -- >> \n\tnum: {self.num}\n\tden: {self.den}\n"


# =========================
# Integrator
# =========================

class Integrator(DEModel):
    """
    Element-wise continuous integrator: ẋ = u, y = x.

    Input and output buses must have the same length; element ``i`` of the
    input drives element ``i`` of the output.

    Example:
        >>> integ = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")))
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 solver: str = SolverType.EULER, name: str = "") -> None:
        super().__init__(name)
        self.input_bus = make_inbus("Integrator", input_def)
        self.output_bus = make_outbus("Integrator", output_def)
        if len(self.input_bus) != len(self.output_bus):
            raise ConfigurationError(
                f"Integrator: input ({len(self.input_bus)}) and output "
                f"({len(self.output_bus)}) buses must have the same length"
            )
        self.solver = validate_solver(solver, "Integrator")
        self.elemnum = len(self.input_bus)
        self.x = np.zeros(self.elemnum)
        self.init_x = np.zeros(self.elemnum)

    def set_init_state(self, values: Sequence[float]) -> None:
        vec = np.asarray(values, dtype=float).ravel()
        if vec.size != self.elemnum:
            raise ConfigurationError(
                f"Integrator: state vector needs {self.elemnum} element(s), got {vec.size}"
            )
        self.init_x = vec

    def reset(self, value: float = 0.0) -> None:
        """Set every element of the state to ``value``."""
        self.x = np.full(self.elemnum, float(value))

    def derivative_func(self, x: np.ndarray) -> np.ndarray:
        return self.frozen_input

    def get_state(self) -> np.ndarray:
        return self.x

    def set_state(self, newstate: np.ndarray) -> None:
        self.x = newstate

    def initialize(self, sim_time) -> None:
        self.x = self.init_x.copy()
        self.output_bus.import_array(self.x)

    def nextstate(self, sim_time) -> None:
        self.integrate(sim_time.delta_t())
        self.output_bus.import_array(self.x)

    def interface_in(self) -> RefBus:
        return self.input_bus

    def interface_out(self) -> Bus:
        return self.output_bus


__all__ = [
    'StateSpaceModel',
    'tf_to_ss_matrices',
    'TransferFunctionModel',
    'Integrator',
]
