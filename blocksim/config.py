"""
config.py
=========

Run settings for the BlockSim framework.

``SimulationConfig`` gathers the values a script usually hard-codes when it
builds a ``SimSystem`` (time span, step size, default solver, progress
interval) so they can be kept in one place, validated once and shared
between scripts and tests.

Example:
    >>> cfg = SimulationConfig(end_time=5.0, delta_t=0.001, solver=SolverType.RK4)
    >>> sim = SimSystem.from_config(cfg)

Author: BlockSim Framework
Version: 1.0.0
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .core_models import SolverType
from .errors import ConfigurationError

# Slack for floating-point spans such as 0.3 / 0.1 = 2.9999999999999996
STEP_TOLERANCE: float = 1e-9


def count_steps(start_time: float, end_time: float, delta_t: float) -> int:
    """
    Number of whole ticks of ``delta_t`` that fit between start and end.

    A trailing partial step is dropped, so the last tick never lies after
    ``end_time``.

    Example:
        >>> count_steps(0.0, 1.75, 0.5)
        3
    """
    return int(math.floor((end_time - start_time) / delta_t + STEP_TOLERANCE))


@dataclass
class SimulationConfig:
    """
    Top-level settings of a simulation run.

    Attributes:
        start_time: Simulation start time in seconds.
        end_time: Simulation end time in seconds.
        delta_t: Fixed step size in seconds.
        solver: Default ODE method for models built by the script
            (``SolverType.EULER`` or ``SolverType.RK4``).
        progress_interval: Ticks between progress reports, 0 for automatic.
    """

    start_time: float = 0.0
    end_time: float = 10.0
    delta_t: float = 0.01
    solver: str = SolverType.EULER
    progress_interval: int = 0

    def validate(self) -> "SimulationConfig":
        """
        Check the settings for consistency.

        Raises:
            ConfigurationError: On a non-positive step, an end before the
                start, an unknown solver or a negative progress interval.
        """
        if self.delta_t <= 0.0:
            raise ConfigurationError(f"delta_t must be positive, got {self.delta_t}")
        if self.end_time < self.start_time:
            raise ConfigurationError(
                f"end_time ({self.end_time}) must not be before start_time ({self.start_time})"
            )
        if self.solver not in SolverType.ALL:
            raise ConfigurationError(
                f"Unknown solver '{self.solver}', expected one of {SolverType.ALL}"
            )
        if self.progress_interval < 0:
            raise ConfigurationError(
                f"progress_interval must be >= 0, got {self.progress_interval}"
            )
        return self

    @property
    def step_num(self) -> int:
        return count_steps(self.start_time, self.end_time, self.delta_t)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        """Build and validate a config from a plain mapping; unknown keys are rejected."""
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration key(s): {sorted(unknown)}")
        return cls(**data).validate()


__all__ = ['SimulationConfig', 'count_steps']

__version__ = '1.0.0'
