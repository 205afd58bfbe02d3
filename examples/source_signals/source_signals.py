"""
source_signals.py
=================
BlockSim — Example: Step, Ramp and Wave Sources

Category:
    Signal Generation / Time-Domain Simulation

Purpose:
    Shows the built-in source models feeding one recorder, and the
    recorder's CSV export and subplot grid.

Demonstrates:
    1. StepFunc     — two step outputs, one of them stepping down
    2. RampFunc     — a clamped rising ramp and a free-running ramp
    3. WaveFunc     — sine, triangle and square waves
    4. SimRecorder  — records every source output
    5. SimSystem    — runs the diagram with progress logging

Block Diagram:

      [steps (StepFunc)] ──►┐
      [ramps (RampFunc)] ──►┼──► [scope (SimRecorder)]
      [waves (WaveFunc)] ──►┘

Parameters:
    Time step   = 0.01 s
    Duration    = 4.0 s

Run:
    python source_signals.py
"""

import logging
import sys
from pathlib import Path

# Make the local blocksim package importable when running from this folder.
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from blocksim import (
    RampFunc,
    SimRecorder,
    SimSystem,
    StepFunc,
    WaveFunc,
    WaveFuncSetting,
    WaveType,
    connect_models,
    make_sig_list,
    setup_logging,
)


if __name__ == "__main__":
    setup_logging(logging.INFO)

    print("\n" + "=" * 70)
    print("EXAMPLE: Step, Ramp and Wave Sources")
    print("=" * 70)

    # ------------------------------------------------------------------------
    # CREATE SOURCES
    # ------------------------------------------------------------------------

    # (initial value, final value, step time)
    steps = StepFunc(make_sig_list(("st1", "Nm"), ("st2", "A")),
                     [(0.0, 1.0, 0.5), (1.0, -1.0, 2.0)], name="steps")

    # (initial value, limit, limit enabled, start time, slope)
    ramps = RampFunc(make_sig_list(("rf1", "Nm"), ("rf2", "A")),
                     [(0.5, 1.5, True, 0.2, 2.0), (0.0, 0.0, False, 1.0, -0.5)],
                     name="ramps")

    waves = WaveFunc(
        make_sig_list(("sin", "V"), ("tri", "V"), ("sqr", "V")),
        [
            WaveFuncSetting(WaveType.SIN, amplitude=2.0, period=1.0),
            WaveFuncSetting(WaveType.TRIANGLE, amplitude=1.0, period=2.0, offset=0.5),
            WaveFuncSetting(WaveType.SQUARE, amplitude=1.0, period=0.5),
        ],
        name="waves",
    )

    # ------------------------------------------------------------------------
    # CREATE RECORDER AND CONNECT
    # ------------------------------------------------------------------------

    scope = SimRecorder(make_sig_list(
        ("scp_st1", "Nm"), ("scp_st2", "A"),
        ("scp_rf1", "Nm"), ("scp_rf2", "A"),
        ("scp_sin", "V"), ("scp_tri", "V"), ("scp_sqr", "V"),
    ))
    connect_models(steps, ["st1", "st2"], scope, ["scp_st1", "scp_st2"])
    connect_models(ramps, ["rf1", "rf2"], scope, ["scp_rf1", "scp_rf2"])
    connect_models(waves, ["sin", "tri", "sqr"], scope, ["scp_sin", "scp_tri", "scp_sqr"])

    # ------------------------------------------------------------------------
    # SETUP AND RUN SIMULATION
    # ------------------------------------------------------------------------

    sim = SimSystem(0.0, 4.0, 0.01)
    sim.register_model(steps)
    sim.register_model(ramps)
    sim.register_model(waves)
    sim.register_recorder("scope", scope)

    sim.print_topology()
    print(sim.check_wiring())

    print("\nRunning simulation...")
    sim.run()
    print(sim.stats)

    out_dir = Path(__file__).resolve().parent
    scope.export(str(out_dir / "source_signals.csv"))
    scope.timeplot_all(str(out_dir / "source_signals.png"), figsize=(12.0, 10.0),
                       layout=(4, 2), title="Source Models")

    print("Complete")
