import math

import numpy as np
import pytest

from blocksim import (
    Bus,
    ConfigurationError,
    ConstantFunc,
    Integrator,
    SimRecorder,
    SimSystem,
    SimTime,
    SolverType,
    StateSpaceModel,
    TransferFunctionModel,
    connect_models,
    make_sig_list,
    tf_to_ss_matrices,
)


def _siso(name_in="u", name_out="y"):
    return make_sig_list((name_in, "-")), make_sig_list((name_out, "-"))


# ---------- StateSpaceModel ----------

def test_state_space_single_euler_step():
    ssm = StateSpaceModel(make_sig_list(("u", "-")),
                          make_sig_list(("y1", "-"), ("y2", "-")), 2, SolverType.EULER)
    ssm.set_mtrx_a([1.0, 0.0, 0.0, 1.0])
    ssm.set_mtrx_b([1.0, 2.0])
    ssm.set_mtrx_c([1.0, 0.0, 0.0, 1.0])
    ssm.set_mtrx_d([0.0, 0.0])
    ssm.set_init_state([0.0, 0.0])

    src = Bus.from_sigdefs(make_sig_list(("one", "-")), initial=1.0)
    ssm.interface_in().connect_to(src, ["one"], ["u"])

    clock = SimTime(0.0, 1.0, 1.0)
    ssm.initialize(clock)
    for _ in clock:
        ssm.nextstate(clock)

    assert ssm.interface_out().to_vec_f64() == [1.0, 2.0]


def test_state_space_setters_store_row_major():
    ssm = StateSpaceModel(make_sig_list(("i1", "Nm"), ("i2", "Nm")),
                          make_sig_list(("o1", "rpm")), 2)
    ssm.set_mtrx_a([1.0, 2.0, 3.0, 4.0])
    np.testing.assert_array_equal(ssm.mtrx_a, np.array([[1.0, 2.0], [3.0, 4.0]]))
    ssm.set_mtrx_b([1.0, 2.0, 3.0, 4.0])
    assert ssm.mtrx_b.shape == (2, 2)
    ssm.set_mtrx_c([5.0, 6.0])
    np.testing.assert_array_equal(ssm.mtrx_c, np.array([[5.0, 6.0]]))
    ssm.set_mtrx_d([7.0, 8.0])
    assert ssm.mtrx_d.shape == (1, 2)
    ssm.set_init_state([1.0, 2.0])
    ssm.set_x([3.0, 4.0])
    np.testing.assert_array_equal(ssm.init_x, [1.0, 2.0])
    np.testing.assert_array_equal(ssm.get_state(), [3.0, 4.0])
    assert "Matrix A (2 x 2)" in str(ssm)


def test_state_space_size_errors():
    ssm = StateSpaceModel(*_siso(), 2)
    with pytest.raises(ConfigurationError):
        ssm.set_mtrx_a([1.0, 2.0, 3.0])
    with pytest.raises(ConfigurationError):
        ssm.set_mtrx_b([1.0])
    with pytest.raises(ConfigurationError):
        ssm.set_mtrx_c([1.0, 2.0, 3.0])
    with pytest.raises(ConfigurationError):
        ssm.set_mtrx_d([1.0, 2.0])
    with pytest.raises(ConfigurationError):
        ssm.set_init_state([1.0])
    with pytest.raises(ConfigurationError):
        ssm.set_x([1.0, 2.0, 3.0])


def test_state_space_bad_dimensions():
    with pytest.raises(ConfigurationError):
        StateSpaceModel(*_siso(), 0)
    with pytest.raises(ConfigurationError):
        StateSpaceModel([], make_sig_list(("y", "-")), 1)
    with pytest.raises(ConfigurationError):
        StateSpaceModel(*_siso(), 1, solver="implicit")


def test_initialize_restores_initial_state():
    ssm = StateSpaceModel(*_siso(), 1)
    ssm.set_mtrx_c([1.0])
    ssm.set_init_state([4.0])
    ssm.set_x([9.0])
    ssm.initialize(SimTime(0.0, 1.0, 0.1))
    assert ssm.get_state()[0] == 4.0
    assert ssm.interface_out()[0].value == 4.0


# ---------- TransferFunctionModel ----------

def test_tf_first_order_realisation():
    a, b, c, d = tf_to_ss_matrices([1.0], [1.0, 1.0])
    assert a == [-1.0]
    assert b == [1.0]
    assert c == [1.0]
    assert d == [0.0]


def test_tf_second_order_realisation():
    # 1 / (s^2 + 3s + 2)
    a, b, c, d = tf_to_ss_matrices([1.0], [1.0, 3.0, 2.0])
    assert a == [0.0, -2.0, 1.0, -3.0]
    assert b == [1.0, 0.0]
    assert c == [0.0, 1.0]
    assert d == [0.0]


def test_tf_biproper_feedthrough():
    # (2s + 1) / (s + 1) = 2 - 1 / (s + 1)
    a, b, c, d = tf_to_ss_matrices([2.0, 1.0], [1.0, 1.0])
    assert a == [-1.0]
    assert b == [-1.0]
    assert d == [2.0]


def test_tf_step_response_matches_first_order_lag():
    tf = TransferFunctionModel(*_siso(), [1.0], [1.0, 1.0], SolverType.RK4)
    con = ConstantFunc(make_sig_list(("one", "-")), [1.0])
    scope = SimRecorder(make_sig_list(("y_rec", "-")))
    connect_models(con, ["one"], tf, ["u"])
    connect_models(tf, ["y"], scope, ["y_rec"])

    sim = SimSystem(0.0, 1.0, 0.01, progress=lambda *a: None)
    sim.register_model(con)
    sim.register_model(tf)
    sim.register_recorder("scope", scope)
    sim.run()

    assert scope.get_signal("y_rec")[-1] == pytest.approx(1.0 - math.exp(-1.0), abs=1e-6)


def test_tf_errors():
    with pytest.raises(ConfigurationError):
        TransferFunctionModel(*_siso(), [1.0], [1.0])                   # order 0
    with pytest.raises(ConfigurationError):
        TransferFunctionModel(*_siso(), [1.0, 0.0, 0.0], [1.0, 1.0])    # improper
    with pytest.raises(ConfigurationError):
        TransferFunctionModel(make_sig_list(("u1", "-"), ("u2", "-")),
                              make_sig_list(("y", "-")), [1.0], [1.0, 1.0])
    with pytest.raises(ConfigurationError):
        TransferFunctionModel(*_siso(), [1.0], [0.0, 1.0])


def test_tf_str():
    tf = TransferFunctionModel(*_siso(), [1.0], [1.0, 1.0])
    assert "num: [1.0]" in str(tf)


# ---------- Integrator ----------

def test_integrator_accumulates_input():
    integ = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")))
    src = Bus.from_sigdefs(make_sig_list(("rate", "-")), initial=2.0)
    integ.interface_in().connect_to(src, ["rate"], ["in"])

    clock = SimTime(0.0, 1.0, 0.1)
    integ.initialize(clock)
    for _ in clock:
        integ.nextstate(clock)
    assert integ.interface_out()[0].value == pytest.approx(2.0)


def test_integrator_reset_and_initial_state():
    integ = Integrator(make_sig_list(("a", "-"), ("b", "-")),
                       make_sig_list(("A", "-"), ("B", "-")))
    integ.reset(3.0)
    np.testing.assert_array_equal(integ.get_state(), [3.0, 3.0])

    integ.set_init_state([1.0, -1.0])
    integ.initialize(SimTime(0.0, 1.0, 0.1))
    assert integ.interface_out().to_vec_f64() == [1.0, -1.0]

    with pytest.raises(ConfigurationError):
        integ.set_init_state([1.0])


def test_integrator_bus_lengths_must_match():
    with pytest.raises(ConfigurationError):
        Integrator(make_sig_list(("a", "-")), make_sig_list(("A", "-"), ("B", "-")))
