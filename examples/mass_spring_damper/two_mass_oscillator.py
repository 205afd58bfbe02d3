"""
two_mass_oscillator.py
======================
BlockSim — Example: Two Masses Joined by a Spring-Damper

Category:
    Mechanical Systems / Feedback Wiring

Purpose:
    Two point masses start stretched apart along x and oscillate around the
    natural length of the spring-damper that joins them. The connector reads
    both positions and feeds equal and opposite forces back to the masses,
    which closes a feedback loop across the diagram.

Demonstrates:
    1. MassModel           — Newton's law for a point mass (RK4)
    2. SimpleSpringDamper  — two-point connector producing F1 = -F2
    3. check_wiring        — reports the feedback cycle and the one-tick
                             delay of the forces
    4. SimRecorder         — positions and forces over time

Block Diagram:

    [mass_a (MassModel)] ──pos──►┐
                                 ├──► [link (SimpleSpringDamper)] ──F1──► [mass_a]
    [mass_b (MassModel)] ──pos──►┘                                └─F2──► [mass_b]

Parameters:
    Masses          = 1.0 kg, 2.0 kg
    Natural length  = 1.0 m
    Spring constant = 20.0 N/m
    Damping coeff.  = 0.5 N·s/m
    Initial gap     = 1.5 m
    Time step       = 0.001 s
    Duration        = 10.0 s

Expected Behavior:
    • The gap oscillates around 1.0 m and decays.
    • The centre of mass stays put since the forces cancel.

Run:
    python two_mass_oscillator.py
"""

import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from blocksim import (
    MassModel,
    SimpleSpringDamper,
    SimRecorder,
    SimSystem,
    SimulationConfig,
    SolverType,
    connect_models,
    make_sig_list,
    setup_logging,
)

FORCES = ["fx", "fy", "fz"]
POSITION = ["x", "y", "z"]


def make_mass(name, mass, init_pos, solver):
    return MassModel(
        make_sig_list(("fx", "N"), ("fy", "N"), ("fz", "N")),
        make_sig_list(("x", "m"), ("y", "m"), ("z", "m"),
                      ("vx", "m/s"), ("vy", "m/s"), ("vz", "m/s")),
        mass=mass, init_pos=init_pos, solver=solver, name=name,
    )


def plot_results(scope):
    t = scope.times()
    xa = scope.get_signal("xa")
    xb = scope.get_signal("xb")

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 7), sharex=True)
    ax1.plot(t, xa, label="mass_a", linewidth=1.5)
    ax1.plot(t, xb, label="mass_b", linewidth=1.5)
    ax1.set_ylabel("x [m]")
    ax1.grid(True, linestyle="--", alpha=0.7)
    ax1.legend(loc="upper right")

    ax2.plot(t, scope.get_signal("f_a"), color="r", linewidth=1.0)
    ax2.set_xlabel("Time [s]")
    ax2.set_ylabel("F on mass_a [N]")
    ax2.grid(True, linestyle="--", alpha=0.7)

    fig.suptitle("Two-Mass Oscillator", fontsize=14, fontweight="bold")
    fig.tight_layout()
    plt.show()


if __name__ == "__main__":
    setup_logging(logging.INFO)

    print("\n" + "=" * 70)
    print("EXAMPLE: Two Masses Joined by a Spring-Damper")
    print("=" * 70)

    # ------------------------------------------------------------------------
    # CREATE MODELS
    # ------------------------------------------------------------------------

    config = SimulationConfig(start_time=0.0, end_time=10.0, delta_t=0.001,
                              solver=SolverType.RK4, progress_interval=2000)

    mass_a = make_mass("mass_a", 1.0, (0.0, 0.0, 0.0), config.solver)
    mass_b = make_mass("mass_b", 2.0, (1.5, 0.0, 0.0), config.solver)

    link = SimpleSpringDamper(
        make_sig_list(("x1", "m"), ("y1", "m"), ("z1", "m"),
                      ("x2", "m"), ("y2", "m"), ("z2", "m")),
        make_sig_list(("fx1", "N"), ("fy1", "N"), ("fz1", "N"),
                      ("fx2", "N"), ("fy2", "N"), ("fz2", "N")),
        natural_length=1.0, spring_constant=20.0, damping_coeff=0.5, name="link",
    )

    # ------------------------------------------------------------------------
    # CONNECT (positions → connector → forces)
    # ------------------------------------------------------------------------

    connect_models(mass_a, POSITION, link, ["x1", "y1", "z1"])
    connect_models(mass_b, POSITION, link, ["x2", "y2", "z2"])
    connect_models(link, ["fx1", "fy1", "fz1"], mass_a, FORCES)
    connect_models(link, ["fx2", "fy2", "fz2"], mass_b, FORCES)

    scope = SimRecorder(make_sig_list(("xa", "m"), ("xb", "m"), ("f_a", "N")))
    connect_models(mass_a, ["x"], scope, ["xa"])
    connect_models(mass_b, ["x"], scope, ["xb"])
    connect_models(link, ["fx1"], scope, ["f_a"])

    # ------------------------------------------------------------------------
    # SETUP AND RUN SIMULATION
    # ------------------------------------------------------------------------

    sim = SimSystem.from_config(config)
    sim.register_model(mass_a)
    sim.register_model(mass_b)
    sim.register_model(link)
    sim.register_recorder("scope", scope)

    print(sim.check_wiring())

    print("\nRunning simulation...")
    sim.run()
    print(f"Ran {sim.stats.total_steps} steps in {sim.stats.compute_time:.3f} s")

    print("\nGenerating plot...")
    plot_results(scope)

    print("Complete")
