"""
subsystem.py
============

Composite model: a group of models presented as one model.

A ``SubSystem`` owns its internal models and exposes the ordinary bus
surface of a single model. Internally every value crosses a private buffer,
so internal models never bind directly to anything outside the composite:

    outside ──► inbus (RefBus) ──copy──► in_buffer (Bus) ──► internal models
    internal models ──► out_buffer (RefBus) ──copy──► outbus (Bus) ──► outside

One outer tick runs: copy inputs, step the internal models once in
registration order, copy outputs. ``delta_t`` is clamped to the outer clock
at initialization and reserved for multi-rate execution; it does not yet
change how many internal ticks run.

Author: BlockSim Framework
Version: 1.0.0
"""

import logging
from typing import List, Sequence, Union

from .bus import Bus, RefBus
from .core_models import DEFAULT_DELTA_T, ModelCore, ModelState, make_inbus, make_outbus
from .core_signals import SigDef
from .errors import ConfigurationError, InterfaceError

logger = logging.getLogger(__name__)


class SubSystem(ModelCore):
    """
    Composite model with its own input/output buses.

    Attributes:
        inbus (RefBus):      Public input interface.
        outbus (Bus):        Public output interface.
        in_buffer (Bus):     Private copy of the inputs, source for internal models.
        out_buffer (RefBus): Private slots bound to internal model outputs.
        delta_t (float):     Reserved internal step size.

    Example:
        >>> sub = SubSystem(make_sig_list(("u", "-")), make_sig_list(("y", "-")))
        >>> sub.register_model(gain)
        >>> sub.connect_inbus(gain, ["u"], ["in"])
        >>> sub.connect_outbus(gain, ["out"], ["y"])
        >>> connect_models(source, ["s"], sub, ["u"])
    """

    def __init__(self, input_def: Sequence[SigDef], output_def: Sequence[SigDef],
                 delta_t: float = DEFAULT_DELTA_T, name: str = "") -> None:
        super().__init__(name)
        self.inbus = make_inbus("SubSystem", input_def)
        self.in_buffer = Bus.from_sigdefs(self.inbus.get_sigdef())
        self.outbus = make_outbus("SubSystem", output_def)
        self.out_buffer = RefBus.from_sigdefs(self.outbus.get_sigdef())
        if delta_t <= 0.0:
            raise ConfigurationError(f"SubSystem delta_t must be positive, got {delta_t}")
        self.delta_t = float(delta_t)
        self._models: List[ModelCore] = []

    @property
    def models(self) -> List[ModelCore]:
        return list(self._models)

    def register_model(self, model: ModelCore) -> None:
        """Add an internal model; registration order is execution order."""
        self._models.append(model)

    def connect_inbus(self, target_model: ModelCore, srclist: Union[str, Sequence[str]],
                      dstlist: Union[str, Sequence[str]]) -> None:
        """
        Feed subsystem inputs to an internal model.

        Args:
            target_model: Internal model to receive the values.
            srclist: Subsystem input names.
            dstlist: Input slot names of ``target_model``.

        Raises:
            InterfaceError: If ``target_model`` has no input bus.
            WiringError / ConnectionFailedError: See ``RefBus.connect_to``.
        """
        target_in = target_model.interface_in()
        if target_in is None:
            raise InterfaceError(f"{target_model.label} has no input interface")
        target_in.connect_to(self.in_buffer, srclist, dstlist)

    def connect_outbus(self, target_model: ModelCore, srclist: Union[str, Sequence[str]],
                       dstlist: Union[str, Sequence[str]]) -> None:
        """
        Publish an internal model's outputs as subsystem outputs.

        Args:
            target_model: Internal model providing the values.
            srclist: Output signal names of ``target_model``.
            dstlist: Subsystem output names.

        Raises:
            InterfaceError: If ``target_model`` has no output bus.
            WiringError / ConnectionFailedError: See ``RefBus.connect_to``.
        """
        target_out = target_model.interface_out()
        if target_out is None:
            raise InterfaceError(f"{target_model.label} has no output interface")
        self.out_buffer.connect_to(target_out, srclist, dstlist)

    def _copy_inputs(self, bound_only: bool = False) -> None:
        for src, dst in zip(self.inbus, self.in_buffer):
            if bound_only and not src.is_connected():
                continue
            dst.value = src.value

    def _publish_outputs(self, bound_only: bool = False) -> None:
        for src, dst in zip(self.out_buffer, self.outbus):
            if bound_only and not src.is_connected():
                continue
            dst.value = src.value

    def initialize(self, sim_time) -> None:
        if self.delta_t > sim_time.delta_t():
            logger.debug("%s: delta_t %g clamped to %g", self.label, self.delta_t,
                         sim_time.delta_t())
            self.delta_t = sim_time.delta_t()

        self._copy_inputs(bound_only=True)
        for model in self._models:
            model.initialize(sim_time)
            model.state_flag = ModelState.INITIALIZED
        self._publish_outputs(bound_only=True)

    def nextstate(self, sim_time) -> None:
        self._copy_inputs()
        for model in self._models:
            model.state_flag = ModelState.STEPPING
            model.nextstate(sim_time)
        self._publish_outputs()

    def finalize(self) -> None:
        for model in self._models:
            model.finalize()
            model.state_flag = ModelState.FINALIZED

    def interface_in(self) -> RefBus:
        return self.inbus

    def interface_out(self) -> Bus:
        return self.outbus


__all__ = ['SubSystem']
