"""
sink_models.py
==============

Sink models: input-only models that observe the simulation.

``SimRecorder`` acts as an oscilloscope. It is wired like any other model
(its input bus names become the channel names), registered with
``SimSystem.register_recorder`` and samples every input at the initial
instant and after every tick, so a run of ``step_num`` ticks yields
``step_num + 1`` samples.

Classes:
    SimRecorder: Time-series recorder with CSV export and plotting

Author: BlockSim Framework
Version: 1.0.0
"""

import logging
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .bus import RefBus
from .core_models import ModelCore, make_inbus
from .core_signals import SigDef
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class SimRecorder(ModelCore):
    """
    Signal recorder for post-simulation analysis and plotting.

    Attributes:
        input_bus (RefBus): Channels to record, one per input slot.

    Typical usage:
        >>> scope = SimRecorder(make_sig_list(("scp_st1", "Nm"), ("scp_st2", "A")))
        >>> connect_models(step, ["st1", "st2"], scope, ["scp_st1", "scp_st2"])
        >>> sim.register_recorder("scope", scope)
        >>> sim.run()
        >>> st1 = scope.get_signal("scp_st1")   # → np.ndarray of shape (N,)
    """

    def __init__(self, input_def: Sequence[SigDef], name: str = "") -> None:
        super().__init__(name)
        self.input_bus = make_inbus("SimRecorder", input_def)
        self._times: List[float] = []
        self._values: List[np.ndarray] = []

    def record(self, t: float) -> None:
        """Append one sample of every input at time ``t``."""
        values = self.input_bus.to_array()
        self._times.append(t)
        self._values.append(values)

    def clear(self) -> None:
        self._times = []
        self._values = []

    # ---- ModelCore ----

    def initialize(self, sim_time) -> None:
        self.clear()
        self.record(sim_time.time())

    def nextstate(self, sim_time) -> None:
        self.record(sim_time.time())

    def interface_in(self) -> RefBus:
        return self.input_bus

    # ---- access ----

    def times(self) -> np.ndarray:
        return np.array(self._times, dtype=float)

    def to_array(self) -> np.ndarray:
        """Samples as an array of shape (N, number of channels)."""
        if not self._values:
            return np.zeros((0, len(self.input_bus)))
        return np.vstack(self._values)

    def get_signal(self, name: str) -> Optional[np.ndarray]:
        """
        Retrieve one recorded channel.

        Args:
            name: Input slot name of the recorder.

        Returns:
            np.ndarray of shape (N,), or None if there is no such channel.
        """
        index = self.input_bus.index_of(name)
        if index is None:
            return None
        return self.to_array()[:, index]

    def __len__(self) -> int:
        return len(self._times)

    # ---- output ----

    def export(self, path: str) -> None:
        """
        Write the recording as CSV.

        The header is ``time,name[unit],...``; one row per sample.
        """
        header = ",".join(["time"] + [str(sig.sigdef) for sig in self.input_bus])
        data = np.column_stack((self.times(), self.to_array()))
        np.savetxt(path, data, delimiter=",", header=header, comments="")
        logger.info("Exported %d sample(s) to %s", len(self), path)

    def timeplot_all(self, path: str, figsize: Tuple[float, float] = (10.0, 8.0),
                     layout: Optional[Tuple[int, int]] = None,
                     title: Optional[str] = None) -> None:
        """
        Plot every channel against time in a grid of subplots and save it.

        Args:
            path: Image file to write (format from the extension).
            figsize: Figure size in inches.
            layout: (rows, cols) of the grid. Defaults to one column.
            title: Optional figure title.

        Raises:
            ConfigurationError: If the grid has fewer cells than channels.
        """
        n_channels = len(self.input_bus)
        rows, cols = layout if layout is not None else (max(n_channels, 1), 1)
        if rows * cols < n_channels:
            raise ConfigurationError(
                f"SimRecorder: layout {rows}x{cols} cannot hold {n_channels} channel(s)"
            )

        t = self.times()
        data = self.to_array()
        fig, axes = plt.subplots(rows, cols, figsize=figsize, squeeze=False)
        try:
            for i, sig in enumerate(self.input_bus):
                ax = axes[i // cols][i % cols]
                ax.plot(t, data[:, i], linewidth=1.5)
                ax.set_title(sig.name, fontsize=10)
                ax.set_xlabel("Time [s]")
                ax.set_ylabel(f"[{sig.unit}]")
                ax.grid(True, alpha=0.3)
            for j in range(n_channels, rows * cols):
                axes[j // cols][j % cols].set_visible(False)
            if title:
                fig.suptitle(title, fontsize=14)
            fig.tight_layout()
            fig.savefig(path)
        finally:
            plt.close(fig)
        logger.info("Saved plot of %d channel(s) to %s", n_channels, path)


__all__ = ['SimRecorder']
