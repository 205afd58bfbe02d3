"""
speed_control_subsystem.py
==========================
BlockSim — Example: PID Speed Loop Packed in a SubSystem

Category:
    Control Systems / Hierarchical Diagrams

Purpose:
    A first-order motor model is driven by a PID controller. The controller
    and a torque filter live inside a SubSystem, so the top-level diagram
    only sees one composite block with a [target, speed] → [torque]
    interface.

Demonstrates:
    1. SubSystem              — composite model with buffered boundary buses
    2. PIDController          — saturated PID with internal integrator
    3. TransferFunctionModel  — plant and filter given as num/den
    4. StepFunc               — speed set-point step
    5. print_topology         — execution order and connections

Block Diagram:

    [target (StepFunc)] ──►┐
                           ├──► [speed_ctrl (SubSystem)] ──► [motor (TF)] ──┐
                      ┌───►┘     ┌──────────────────────────────┐           │
                      │          │ [pid] ──► [torque_filter]    │           │
                      │          └──────────────────────────────┘           │
                      └─────────────────────────────────────────────────────┘

Signal Description:
    motor(s)         = 10 / (0.5 s + 1)          torque → speed
    torque_filter(s) = 1 / (0.01 s + 1)

Parameters:
    PID gains    = (0.8, 2.0, 0.0)
    Torque limit = ±5 Nm
    Set-point    = 0 → 30 rpm at t = 0.2 s
    Time step    = 0.001 s
    Duration     = 3.0 s

Expected Behavior:
    • The speed settles at 30 rpm without steady-state error.
    • The torque saturates at 5 Nm right after the step.

Run:
    python speed_control_subsystem.py
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from blocksim import (
    PIDController,
    SimRecorder,
    SimSystem,
    SolverType,
    StepFunc,
    SubSystem,
    TransferFunctionModel,
    connect_models,
    make_sig_list,
    setup_logging,
)


def build_speed_controller():
    """PID followed by a torque filter, packed as one composite model."""
    ctrl = SubSystem(make_sig_list(("target", "rpm"), ("speed", "rpm")),
                     make_sig_list(("torque", "Nm")), name="speed_ctrl")

    pid = PIDController(make_sig_list(("ref", "rpm"), ("act", "rpm")),
                        make_sig_list(("cmd", "Nm")),
                        gain=(0.8, 2.0, 0.0), minmax=(-5.0, 5.0),
                        solver=SolverType.RK4, name="pid")
    torque_filter = TransferFunctionModel(make_sig_list(("in", "Nm")),
                                          make_sig_list(("out", "Nm")),
                                          [1.0], [0.01, 1.0],
                                          SolverType.RK4, name="torque_filter")

    ctrl.register_model(pid)
    ctrl.register_model(torque_filter)
    ctrl.connect_inbus(pid, ["target", "speed"], ["ref", "act"])
    connect_models(pid, ["cmd"], torque_filter, ["in"])
    ctrl.connect_outbus(torque_filter, ["out"], ["torque"])
    return ctrl


if __name__ == "__main__":
    setup_logging(logging.INFO)

    print("\n" + "=" * 70)
    print("EXAMPLE: PID Speed Loop in a SubSystem")
    print("=" * 70)

    # ------------------------------------------------------------------------
    # CREATE MODELS
    # ------------------------------------------------------------------------

    target = StepFunc(make_sig_list(("setpoint", "rpm")), [(0.0, 30.0, 0.2)], name="target")
    ctrl = build_speed_controller()
    motor = TransferFunctionModel(make_sig_list(("torque", "Nm")),
                                  make_sig_list(("speed", "rpm")),
                                  [10.0], [0.5, 1.0], SolverType.RK4, name="motor")

    # ------------------------------------------------------------------------
    # CONNECT
    # ------------------------------------------------------------------------

    connect_models(target, ["setpoint"], ctrl, ["target"])
    connect_models(motor, ["speed"], ctrl, ["speed"])
    connect_models(ctrl, ["torque"], motor, ["torque"])

    scope = SimRecorder(make_sig_list(("scp_target", "rpm"), ("scp_speed", "rpm"),
                                      ("scp_torque", "Nm")))
    connect_models(target, ["setpoint"], scope, ["scp_target"])
    connect_models(motor, ["speed"], scope, ["scp_speed"])
    connect_models(ctrl, ["torque"], scope, ["scp_torque"])

    # ------------------------------------------------------------------------
    # SETUP AND RUN SIMULATION
    # ------------------------------------------------------------------------

    sim = SimSystem(0.0, 3.0, 0.001, progress_interval=500)
    sim.register_model(target)
    sim.register_model(ctrl)
    sim.register_model(motor)
    sim.register_recorder("scope", scope)

    sim.print_topology()

    print("\nRunning simulation...")
    sim.run()

    speed = scope.get_signal("scp_speed")
    print(f"Final speed: {speed[-1]:.3f} rpm")

    out_dir = Path(__file__).resolve().parent
    scope.timeplot_all(str(out_dir / "speed_control.png"), title="PID Speed Loop")

    print("Complete")
