"""
simulation_engine.py
====================

Fixed-step simulation engine for the BlockSim framework.

This module provides:

1. **Simulation clock** (``SimTime``)
   - Start / end / step size, current time and step index.
   - Iterating a clock yields every tick time lazily; each new ``iter()``
     restarts from ``start_time``.

2. **Scheduler** (``SimSystem``)
   - Owns the registered models and recorders.
   - ``run()`` drives all of them in lockstep with one shared clock:

         reset clock
         initialize every model, then every recorder      (t = start)
         for each tick t_k, k = 1 .. step_num:
             nextstate every model in registration order
             nextstate every recorder
         finalize every model and recorder

   - Execution order is registration order. No dependency analysis is made
     inside ``run()``; a model reading an unbound input aborts the run with
     ``UnboundSignalError`` (no rollback, no finalize).

3. **Wiring diagnostics** (``check_wiring``, ``print_topology``)
   - Rebuild the producer → consumer graph from shared value cells and
     report unbound input slots, consumers registered before their
     producers, and feedback cycles. Advisory only, never called by ``run()``.

4. **Statistics and progress**
   - ``SimulationStats`` is filled in by every run.
   - An optional ``progress(step, total, time)`` callback is invoked every
     ``progress_interval`` ticks; the default reporter logs through ``logging``.

Author: BlockSim Framework
Version: 1.0.0
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .config import SimulationConfig, count_steps
from .core_models import ModelCore, ModelState
from .errors import ConfigurationError, DuplicateNameError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]


# =========================
# Simulation Clock
# =========================

class SimTime:
    """
    Fixed-step simulation clock.

    Tick times are computed as ``start + k·delta_t`` rather than accumulated,
    so long runs do not drift. ``step_num`` is the number of whole ticks after
    the initial instant; a trailing partial step is dropped, so no tick lies
    after ``end_time``.

    Example:
        >>> clock = SimTime(0.0, 1.0, 0.25)
        >>> clock.step_num()
        4
        >>> list(clock)
        [0.25, 0.5, 0.75, 1.0]
        >>> clock.time(), clock.step_index()
        (1.0, 4)
    """

    def __init__(self, start_time: float, end_time: float, delta_t: float) -> None:
        if delta_t <= 0.0:
            raise ConfigurationError(f"delta_t must be positive, got {delta_t}")
        if end_time < start_time:
            raise ConfigurationError(
                f"end_time ({end_time}) must not be before start_time ({start_time})"
            )
        self._start = float(start_time)
        self._end = float(end_time)
        self._delta_t = float(delta_t)
        self._step_num = self._count_steps()
        self._time = self._start
        self._step = 0

    def _count_steps(self) -> int:
        return count_steps(self._start, self._end, self._delta_t)

    def time(self) -> float:
        return self._time

    def delta_t(self) -> float:
        return self._delta_t

    def step_num(self) -> int:
        return self._step_num

    def step_index(self) -> int:
        return self._step

    def start_time(self) -> float:
        return self._start

    def end_time(self) -> float:
        return self._end

    def reset(self) -> None:
        """Rewind to ``start_time`` and step index 0."""
        self._time = self._start
        self._step = 0

    def change_delta_t(self, delta_t: float) -> None:
        """
        Replace the step size and recompute ``step_num``. Resets the clock.

        Raises:
            ConfigurationError: If ``delta_t`` is not positive.
        """
        if delta_t <= 0.0:
            raise ConfigurationError(f"delta_t must be positive, got {delta_t}")
        self._delta_t = float(delta_t)
        self._step_num = self._count_steps()
        self.reset()

    def __iter__(self) -> Iterator[float]:
        self.reset()
        return self._ticks()

    def _ticks(self) -> Iterator[float]:
        for k in range(1, self._step_num + 1):
            self._step = k
            self._time = self._start + k * self._delta_t
            yield self._time

    def __len__(self) -> int:
        return self._step_num

    def __repr__(self) -> str:
        return (f"SimTime(start={self._start}, end={self._end}, "
                f"delta_t={self._delta_t}, t={self._time}, step={self._step})")


# =========================
# Statistics / Progress
# =========================

@dataclass
class SimulationStats:
    """
    Runtime statistics collected during a simulation run.

    Populated by SimSystem.run() and available after the run completes.

    Attributes:
        total_steps (int):     Ticks executed (clock ``step_num``).
        compute_time (float):  Wall-clock time (seconds) of the whole run,
                               initialization and finalization included.
        avg_step_time (float): compute_time / total_steps.
        model_count (int):     Registered models.
        recorder_count (int):  Registered recorders.

    Example:
        >>> sim.run()
        >>> print(f"Ran {sim.stats.total_steps} steps in "
        ...       f"{sim.stats.compute_time:.3f} s")
    """
    total_steps: int = 0
    compute_time: float = 0.0
    avg_step_time: float = 0.0
    model_count: int = 0
    recorder_count: int = 0


def log_progress(step: int, total: int, sim_time: float) -> None:
    """Default progress reporter."""
    percent = 100.0 * step / total if total else 100.0
    logger.info("Progress: %5.1f%% (step %d/%d, t = %.6g s)", percent, step, total, sim_time)


# =========================
# Wiring Diagnostics
# =========================

@dataclass
class WiringReport:
    """
    Result of ``SimSystem.check_wiring()``.

    Attributes:
        unbound (Dict[str, List[str]]):  Model label → input slots still unbound
        order_violations (List[Tuple[str, str]]):
            (producer, consumer) pairs where the consumer is registered before
            the producer and therefore reads last tick's value
        cycles (List[List[str]]):  Feedback cycles, each as a list of labels
        edges (List[Tuple[str, str, str, str]]):
            (producer, signal, consumer, slot) for every bound input slot
    """
    unbound: Dict[str, List[str]] = field(default_factory=dict)
    order_violations: List[Tuple[str, str]] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    edges: List[Tuple[str, str, str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every input slot is bound."""
        return not self.unbound

    def __str__(self) -> str:
        lines = [f"Wiring report: {len(self.edges)} connection(s)"]
        for label, names in self.unbound.items():
            lines.append(f"  unbound inputs in {label}: {', '.join(names)}")
        for producer, consumer in self.order_violations:
            lines.append(f"  {consumer} runs before its producer {producer}")
        for cycle in self.cycles:
            lines.append(f"  feedback cycle: {' -> '.join(cycle)}")
        return "\n".join(lines)


# =========================
# Scheduler
# =========================

class SimSystem:
    """
    Top-level scheduler: owns models and recorders and runs them on one clock.

    Attributes:
        sim_time (SimTime):        Shared clock.
        stats (SimulationStats):   Populated after run().
        progress (Callable):       ``progress(step, total, time)`` reporter.
        progress_interval (int):   Ticks between progress reports
                                   (0 = every tenth of the run).

    Example:
        >>> sim = SimSystem(0.0, 10.0, 0.01)
        >>> sim.register_model(step)
        >>> sim.register_recorder("scope", scope)
        >>> sim.run()
        >>> len(sim.get_recorder("scope")) == sim.sim_time.step_num() + 1
        True
    """

    def __init__(self, start_time: float, end_time: float, delta_t: float,
                 progress: Optional[ProgressCallback] = None,
                 progress_interval: int = 0) -> None:
        if progress_interval < 0:
            raise ConfigurationError(
                f"progress_interval must be >= 0, got {progress_interval}"
            )
        self.sim_time = SimTime(start_time, end_time, delta_t)
        self.progress: ProgressCallback = progress if progress is not None else log_progress
        self.progress_interval = progress_interval
        self.stats = SimulationStats()
        self._models: List[ModelCore] = []
        self._recorders: Dict[str, ModelCore] = {}

    @classmethod
    def from_config(cls, config: SimulationConfig,
                    progress: Optional[ProgressCallback] = None) -> "SimSystem":
        """Build a scheduler from a validated ``SimulationConfig``."""
        config.validate()
        return cls(config.start_time, config.end_time, config.delta_t,
                   progress=progress, progress_interval=config.progress_interval)

    # ---- registration ----

    def register_model(self, model: ModelCore) -> None:
        """Append a model; registration order is execution order."""
        self._models.append(model)
        logger.debug("Registered model #%d: %s", len(self._models), model.label)

    def register_recorder(self, name: str, recorder: ModelCore) -> None:
        """
        Register a recorder under a unique name.

        Raises:
            DuplicateNameError: If ``name`` is already used by another recorder.
        """
        if name in self._recorders:
            raise DuplicateNameError(name, owner="recorder registry")
        if not recorder.name:
            recorder.name = name
        self._recorders[name] = recorder
        logger.debug("Registered recorder '%s'", name)

    def get_recorder(self, name: str) -> Optional[ModelCore]:
        return self._recorders.get(name)

    @property
    def models(self) -> List[ModelCore]:
        return list(self._models)

    @property
    def recorder_names(self) -> List[str]:
        return list(self._recorders)

    def _all_units(self) -> List[ModelCore]:
        return self._models + list(self._recorders.values())

    # ---- execution ----

    def run(self) -> None:
        """
        Execute the simulation from ``start_time`` to ``end_time``.

        Raises:
            UnboundSignalError: If any model reads an unbound input. The run
                stops at that point and nothing is finalized.
        """
        clock = self.sim_time
        clock.reset()
        total = clock.step_num()
        interval = self.progress_interval or max(1, total // 10)
        units = self._all_units()

        logger.info("Simulation started: t = [%g, %g] s, dt = %g s, %d step(s), "
                    "%d model(s), %d recorder(s)",
                    clock.start_time(), clock.end_time(), clock.delta_t(), total,
                    len(self._models), len(self._recorders))

        wall_start = time.time()

        for unit in units:
            unit.initialize(clock)
            unit.state_flag = ModelState.INITIALIZED

        for unit in units:
            unit.state_flag = ModelState.STEPPING

        for t in clock:
            for model in self._models:
                model.nextstate(clock)
            for recorder in self._recorders.values():
                recorder.nextstate(clock)

            step = clock.step_index()
            if step % interval == 0 or step == total:
                self.progress(step, total, t)

        for unit in units:
            unit.finalize()
            unit.state_flag = ModelState.FINALIZED

        compute_time = time.time() - wall_start
        self.stats = SimulationStats(
            total_steps=total,
            compute_time=compute_time,
            avg_step_time=compute_time / max(total, 1),
            model_count=len(self._models),
            recorder_count=len(self._recorders),
        )
        logger.info("Simulation complete: %d step(s) in %.3f s", total, compute_time)

    # ---- diagnostics ----

    def check_wiring(self) -> WiringReport:
        """
        Inspect the wiring of the registered models and recorders.

        An edge producer → consumer exists when one of the consumer's input
        slots shares its value cell with a signal of the producer's output
        bus. Registration order matters: a consumer registered before its
        producer sees the producer's previous-tick value.

        Returns:
            WiringReport: Unbound slots, order violations, cycles and edges.
        """
        report = WiringReport()
        units = self._all_units()
        position = {id(unit): i for i, unit in enumerate(units)}

        owner: Dict[int, Tuple[ModelCore, str]] = {}
        for unit in units:
            outbus = unit.interface_out()
            if outbus is None:
                continue
            for sig in outbus:
                owner[id(sig.core)] = (unit, sig.name)

        producers: Dict[int, List[ModelCore]] = {id(unit): [] for unit in units}
        for unit in units:
            inbus = unit.interface_in()
            if inbus is None:
                continue
            unbound = inbus.unbound_names()
            if unbound:
                report.unbound[unit.label] = unbound
            for slot in inbus:
                if not slot.is_connected():
                    continue
                found = owner.get(id(slot.core))
                if found is None:
                    continue
                producer, src_name = found
                report.edges.append((producer.label, src_name, unit.label, slot.name))
                if producer not in producers[id(unit)]:
                    producers[id(unit)].append(producer)
                if producer is not unit and position[id(producer)] > position[id(unit)]:
                    pair = (producer.label, unit.label)
                    if pair not in report.order_violations:
                        report.order_violations.append(pair)

        # Depth-first walk towards producers with an explicit stack; a producer
        # already on the current path closes a feedback cycle.
        done = set()
        for root in units:
            if id(root) in done:
                continue
            visiting: List[ModelCore] = [root]
            on_path = {id(root)}
            stack = [iter(producers[id(root)])]
            while stack:
                producer = next(stack[-1], None)
                if producer is None:
                    finished = visiting.pop()
                    on_path.discard(id(finished))
                    done.add(id(finished))
                    stack.pop()
                    continue
                if id(producer) in done:
                    continue
                if id(producer) in on_path:
                    start = [id(u) for u in visiting].index(id(producer))
                    report.cycles.append([u.label for u in visiting[start:]] + [producer.label])
                    continue
                visiting.append(producer)
                on_path.add(id(producer))
                stack.append(iter(producers[id(producer)]))

        if not report.ok:
            logger.warning("Unbound input slots: %s", report.unbound)
        return report

    def print_topology(self) -> None:
        """
        Print the execution order and the signal connections.

        Example output::

            ======================================================================
            SIMULATION TOPOLOGY
            ======================================================================
              1. step                      (StepFunc            ) <- 0 input(s)
              2. scope                     (SimRecorder         ) <- 2 input(s)  [recorder]
            ...
        """
        report = self.check_wiring()

        print("\n" + "=" * 70)
        print("SIMULATION TOPOLOGY")
        print("=" * 70)
        print(f"  Time:      [{self.sim_time.start_time()}, {self.sim_time.end_time()}] s")
        print(f"  Step size: {self.sim_time.delta_t()} s ({self.sim_time.step_num()} steps)")
        print(f"  Models:    {len(self._models)}")
        print(f"  Recorders: {len(self._recorders)}")

        print("\n" + "=" * 70)
        print("EXECUTION ORDER")
        print("=" * 70)
        for i, unit in enumerate(self._all_units(), 1):
            inbus = unit.interface_in()
            num_inputs = len(inbus) if inbus is not None else 0
            mark = "  [recorder]" if i > len(self._models) else ""
            print(f"{i:3d}. {unit.label:25s} ({type(unit).__name__:20s}) "
                  f"<- {num_inputs} input(s){mark}")

        print("\n" + "=" * 70)
        print("CONNECTIONS")
        print("=" * 70)
        for producer, src_name, consumer, dst_name in report.edges:
            print(f"  {producer}.{src_name} -> {consumer}.{dst_name}")
        for label, names in report.unbound.items():
            print(f"  ! {label}: not connected: {', '.join(names)}")
        for producer, consumer in report.order_violations:
            print(f"  ! {consumer} is registered before its producer {producer}")
        for cycle in report.cycles:
            print(f"  ~ feedback: {' -> '.join(cycle)}")
        print("=" * 70 + "\n")


# =========================
# Module Metadata
# =========================

__all__ = [
    'SimTime',
    'SimulationStats',
    'log_progress',
    'WiringReport',
    'SimSystem',
]

__version__ = '1.0.0'
