"""
source_models.py
================

Signal source models: output-only models that generate signals from time.

Sources have no input bus. Each output signal is driven by its own setting,
so one source model can produce several independent signals.

Classes:
    ConstantFunc:    Fixed values set at construction
    StepFunc:        Switches from an initial to a final value at a given time
    RampFunc:        Linear ramp with an optional limit
    WaveType:        Waveform selector (sine, triangle, square)
    WaveFuncSetting: Amplitude / phase / period / offset of one waveform
    WaveFunc:        Periodic waveform generator

Author: BlockSim Framework
Version: 1.0.0
"""

import enum
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .bus import Bus
from .core_models import ModelCore, make_outbus
from .core_signals import SigDef
from .errors import ConfigurationError


def _check_settings(owner: str, outbus: Bus, settings: Sequence) -> None:
    if len(outbus) != len(settings):
        raise ConfigurationError(
            f"{owner}: output bus has {len(outbus)} signal(s) but "
            f"{len(settings)} setting(s) were given"
        )


# =========================
# Constant Source
# =========================

class ConstantFunc(ModelCore):
    """
    Outputs constant values regardless of simulation time.

    The values are written once, at construction; ``initialize`` and
    ``nextstate`` leave them untouched.

    Example:
        >>> con = ConstantFunc(make_sig_list(("Con1", "Nm"), ("Con2", "A")), [0.0, 1.0])
        >>> con.interface_out()[1].value
        1.0
    """

    def __init__(self, output_def: Sequence[SigDef], values: Sequence[float],
                 name: str = "") -> None:
        """
        Args:
            output_def: Output signal definitions.
            values: One value per output signal.

        Raises:
            ConfigurationError: If the number of values differs from the
                number of output signals, or the definitions are invalid.
        """
        super().__init__(name)
        self.outbus = make_outbus("ConstantFunc", output_def)
        if len(self.outbus) != len(values):
            raise ConfigurationError(
                f"ConstantFunc: output bus has {len(self.outbus)} signal(s) but "
                f"{len(values)} value(s) were given"
            )
        self.outbus.import_array(values)

    def initialize(self, sim_time) -> None:
        pass

    def nextstate(self, sim_time) -> None:
        pass

    def interface_out(self) -> Bus:
        return self.outbus


# =========================
# Step Source
# =========================

class StepFunc(ModelCore):
    """
    Outputs a step that switches value at a specified time.

    Each output follows its own ``(init_value, final_value, step_time)``
    setting: ``init_value`` before ``step_time``, ``final_value`` from the
    first tick whose time is ``>= step_time``. A step time at or before the
    start of the run switches at the first tick.

    Example:
        >>> sf = StepFunc(make_sig_list(("st1", "Nm"), ("st2", "A")),
        ...               [(0.5, 0.0, 1.0), (0.3, 1.0, -1.0)])
    """

    def __init__(self, output_def: Sequence[SigDef],
                 settings: Sequence[Tuple[float, float, float]], name: str = "") -> None:
        super().__init__(name)
        self.outbus = make_outbus("StepFunc", output_def)
        _check_settings("StepFunc", self.outbus, settings)
        self.settings: List[Tuple[float, float, float]] = [
            (float(init), float(final), float(step_time)) for init, final, step_time in settings
        ]

    def initialize(self, sim_time) -> None:
        for sig, (init, _final, _step_time) in zip(self.outbus, self.settings):
            sig.value = init

    def nextstate(self, sim_time) -> None:
        t = sim_time.time()
        for sig, (_init, final, step_time) in zip(self.outbus, self.settings):
            if t >= step_time:
                sig.value = final

    def interface_out(self) -> Bus:
        return self.outbus


# =========================
# Ramp Source
# =========================

class RampFunc(ModelCore):
    """
    Outputs a linear ramp with an optional limit.

    Setting per output: ``(init_value, limit_value, limit_enable, start_time,
    slope)``. From the first tick with time ``>= start_time`` the output grows
    by ``slope·delta_t`` per tick. With ``limit_enable`` the output is clamped
    to ``limit_value`` from above for a non-negative slope and from below for
    a negative slope.

    Example:
        >>> rf = RampFunc(make_sig_list(("rf1", "Nm")), [(0.5, 1.5, True, 0.2, 2.0)])
    """

    def __init__(self, output_def: Sequence[SigDef],
                 settings: Sequence[Tuple[float, float, bool, float, float]],
                 name: str = "") -> None:
        super().__init__(name)
        self.outbus = make_outbus("RampFunc", output_def)
        _check_settings("RampFunc", self.outbus, settings)
        self.settings = [
            (float(init), float(limit), bool(enable), float(start), float(slope))
            for init, limit, enable, start, slope in settings
        ]

    def initialize(self, sim_time) -> None:
        for sig, setting in zip(self.outbus, self.settings):
            sig.value = setting[0]

    def nextstate(self, sim_time) -> None:
        t = sim_time.time()
        for sig, (_init, limit, enable, start, slope) in zip(self.outbus, self.settings):
            if t < start:
                continue
            delta = slope * sim_time.delta_t()
            val = sig.value + delta
            if enable:
                val = min(val, limit) if delta >= 0.0 else max(val, limit)
            sig.value = val

    def interface_out(self) -> Bus:
        return self.outbus


# =========================
# Periodic Waveform Source
# =========================

class WaveType(enum.Enum):
    SIN = "sin"
    TRIANGLE = "triangle"
    SQUARE = "square"   # 50 % duty only


@dataclass
class WaveFuncSetting:
    """
    Parameters of one periodic output.

    Attributes:
        fn_type: Waveform shape.
        amplitude: Peak scaling factor.
        phase: Phase shift in radians.
        period: Period in seconds, must be positive.
        offset: Constant added to the scaled waveform.
    """
    fn_type: WaveType = WaveType.SIN
    amplitude: float = 1.0
    phase: float = 0.0
    period: float = 1.0
    offset: float = 0.0


def wave_value(fn_type: WaveType, angle: float) -> float:
    """
    Unit waveform with period 2π.

    Sine is ``sin(angle)``. Triangle rises from 0 to 1 in the first quarter,
    falls to -1 at three quarters and returns to 0. Square is 0 for the first
    half period and 1 for the second.
    """
    if fn_type is WaveType.SIN:
        return math.sin(angle)

    frac = (angle / (2.0 * math.pi)) % 1.0
    if fn_type is WaveType.TRIANGLE:
        if frac <= 0.25:
            return 4.0 * frac
        if frac <= 0.75:
            return 2.0 - 4.0 * frac
        return 4.0 * frac - 4.0
    return 0.0 if frac < 0.5 else 1.0


class WaveFunc(ModelCore):
    """
    Periodic waveform generator.

    Output value: ``amplitude · wave(2π·t / period + phase) + offset``.

    Example:
        >>> wf = WaveFunc(make_sig_list(("Sin1", "Nm")),
        ...               [WaveFuncSetting(WaveType.SIN, amplitude=2.0, period=0.5)])
    """

    def __init__(self, output_def: Sequence[SigDef], settings: Sequence[WaveFuncSetting],
                 name: str = "") -> None:
        super().__init__(name)
        self.outbus = make_outbus("WaveFunc", output_def)
        _check_settings("WaveFunc", self.outbus, settings)
        for setting in settings:
            if setting.period <= 0.0:
                raise ConfigurationError(f"WaveFunc: period must be positive, got {setting.period}")
        self.settings: List[WaveFuncSetting] = list(settings)

    def _publish(self, t: float) -> None:
        for sig, s in zip(self.outbus, self.settings):
            angle = 2.0 * math.pi * t / s.period + s.phase
            sig.value = s.amplitude * wave_value(s.fn_type, angle) + s.offset

    def initialize(self, sim_time) -> None:
        self._publish(sim_time.time())

    def nextstate(self, sim_time) -> None:
        self._publish(sim_time.time())

    def interface_out(self) -> Bus:
        return self.outbus


__all__ = [
    'ConstantFunc',
    'StepFunc',
    'RampFunc',
    'WaveType',
    'WaveFuncSetting',
    'wave_value',
    'WaveFunc',
]
