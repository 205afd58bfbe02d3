import logging

import pytest

from blocksim import (
    ConfigurationError,
    ConstantFunc,
    DuplicateNameError,
    Integrator,
    ModelState,
    SimRecorder,
    SimSystem,
    SimTime,
    SimulationConfig,
    SolverType,
    StateSpaceModel,
    StepFunc,
    UnboundSignalError,
    connect_models,
    make_sig_list,
    setup_logging,
)


def _quiet(step, total, t):
    pass


# ---------- SimTime ----------

def test_clock_yields_tick_times():
    clock = SimTime(0.0, 1.0, 0.25)
    assert clock.step_num() == 4
    assert list(clock) == [0.25, 0.5, 0.75, 1.0]
    assert clock.time() == 1.0
    assert clock.step_index() == 4


def test_clock_iteration_is_lazy_and_restartable():
    clock = SimTime(1.0, 2.0, 0.5)
    it = iter(clock)
    assert clock.time() == 1.0
    assert next(it) == 1.5
    assert clock.step_index() == 1

    assert list(clock) == [1.5, 2.0]
    assert list(clock) == [1.5, 2.0]


def test_clock_accessors_and_reset():
    clock = SimTime(0.0, 10.0, 0.01)
    assert clock.step_num() == 1000
    assert clock.start_time() == 0.0
    assert clock.end_time() == 10.0
    assert clock.delta_t() == 0.01
    for _ in zip(range(5), clock):
        pass
    assert clock.step_index() == 5
    clock.reset()
    assert clock.step_index() == 0
    assert clock.time() == 0.0


def test_change_delta_t_recomputes_step_count():
    clock = SimTime(0.0, 1.0, 0.1)
    clock.change_delta_t(0.5)
    assert clock.delta_t() == 0.5
    assert clock.step_num() == 2
    with pytest.raises(ConfigurationError):
        clock.change_delta_t(0.0)


def test_partial_last_step_is_dropped():
    clock = SimTime(0.0, 1.75, 0.5)
    assert clock.step_num() == 3
    ticks = list(clock)
    assert ticks == [0.5, 1.0, 1.5]
    assert max(ticks) <= clock.end_time()
    assert SimulationConfig(end_time=1.75, delta_t=0.5).step_num == 3


def test_step_count_tolerates_rounding_of_the_span():
    # 0.3 / 0.1 evaluates to 2.9999999999999996
    assert SimTime(0.0, 0.3, 0.1).step_num() == 3
    assert SimTime(0.0, 10.0, 0.01).step_num() == 1000


def test_new_iteration_resets_clock_before_first_tick():
    clock = SimTime(0.0, 2.0, 0.5)
    list(clock)
    assert clock.step_index() == 4
    iter(clock)
    assert clock.step_index() == 0
    assert clock.time() == 0.0


def test_clock_rejects_bad_settings():
    with pytest.raises(ConfigurationError):
        SimTime(0.0, 1.0, -0.1)
    with pytest.raises(ConfigurationError):
        SimTime(2.0, 1.0, 0.1)


# ---------- SimSystem ----------

def _step_and_scope():
    sf = StepFunc(make_sig_list(("st1", "Nm"), ("st2", "A")),
                  [(0.5, 0.0, 1.0), (0.3, 1.0, -1.0)])
    scope = SimRecorder(make_sig_list(("scp_st1", "Nm"), ("scp_st2", "A")))
    connect_models(sf, ["st1", "st2"], scope, ["scp_st1", "scp_st2"])
    return sf, scope


def test_recorder_length_is_step_num_plus_one():
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 10.0, 0.01, progress=_quiet)
    sim.register_model(sf)
    sim.register_recorder("scp1", scope)
    assert sim.sim_time.step_num() == 1000

    sim.run()

    rec = sim.get_recorder("scp1")
    assert rec is scope
    assert len(rec) == sim.sim_time.step_num() + 1
    assert rec.times()[0] == 0.0
    assert rec.times()[-1] == pytest.approx(10.0)


def test_run_populates_stats_and_lifecycle():
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 1.0, 0.1, progress=_quiet)
    sim.register_model(sf)
    sim.register_recorder("scope", scope)
    assert sf.state_flag is ModelState.UNINITIALIZED

    sim.run()

    assert sim.stats.total_steps == 10
    assert sim.stats.model_count == 1
    assert sim.stats.recorder_count == 1
    assert sim.stats.compute_time >= 0.0
    assert sf.state_flag is ModelState.FINALIZED
    assert scope.state_flag is ModelState.FINALIZED


def test_rerun_starts_from_scratch():
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 2.0, 0.5, progress=_quiet)
    sim.register_model(sf)
    sim.register_recorder("scope", scope)
    sim.run()
    first = scope.to_array().copy()
    sim.run()
    assert len(scope) == 5
    assert (scope.to_array() == first).all()


def test_models_step_in_registration_order():
    con = ConstantFunc(make_sig_list(("c", "-")), [1.0])
    first = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="first")
    second = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="second")
    connect_models(con, ["c"], first, ["in"])
    connect_models(first, ["out"], second, ["in"])

    sim = SimSystem(0.0, 1.0, 1.0, progress=_quiet)
    sim.register_model(con)
    sim.register_model(first)
    sim.register_model(second)
    sim.run()

    # second integrates first's freshly updated output within the same tick
    assert first.output_bus[0].value == pytest.approx(1.0)
    assert second.output_bus[0].value == pytest.approx(1.0)
    assert [m.label for m in sim.models] == ["ConstantFunc", "first", "second"]


def test_duplicate_recorder_name_rejected():
    _, scope = _step_and_scope()
    other = SimRecorder(make_sig_list(("x", "-")))
    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_recorder("scope", scope)
    with pytest.raises(DuplicateNameError):
        sim.register_recorder("scope", other)
    assert sim.get_recorder("scope") is scope
    assert sim.recorder_names == ["scope"]
    assert sim.get_recorder("missing") is None


def test_unbound_input_aborts_run_without_finalize():
    ssm = StateSpaceModel(make_sig_list(("u", "-")), make_sig_list(("y", "-")), 1)
    sim = SimSystem(0.0, 1.0, 0.1, progress=_quiet)
    sim.register_model(ssm)
    with pytest.raises(UnboundSignalError):
        sim.run()
    assert ssm.state_flag is not ModelState.FINALIZED


def test_progress_callback_interval():
    calls = []
    sim = SimSystem(0.0, 1.0, 0.1,
                    progress=lambda step, total, t: calls.append((step, total, t)),
                    progress_interval=5)
    sim.register_model(ConstantFunc(make_sig_list(("c", "-")), [0.0]))
    sim.run()
    assert [(s, n) for s, n, _ in calls] == [(5, 10), (10, 10)]
    assert calls[-1][2] == pytest.approx(1.0)


def test_default_progress_logs(caplog):
    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(ConstantFunc(make_sig_list(("c", "-")), [0.0]))
    with caplog.at_level(logging.INFO, logger="blocksim"):
        sim.run()
    assert "Progress" in caplog.text
    assert "Simulation complete" in caplog.text


def test_negative_progress_interval_rejected():
    with pytest.raises(ConfigurationError):
        SimSystem(0.0, 1.0, 0.1, progress_interval=-1)


# ---------- Wiring diagnostics ----------

def test_check_wiring_reports_unbound_inputs():
    integ = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="integ")
    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(integ)
    report = sim.check_wiring()
    assert not report.ok
    assert report.unbound == {"integ": ["in"]}


def test_check_wiring_reports_order_violation():
    con = ConstantFunc(make_sig_list(("c", "-")), [1.0], name="source")
    integ = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="integ")
    connect_models(con, ["c"], integ, ["in"])

    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(integ)
    sim.register_model(con)
    report = sim.check_wiring()

    assert report.ok
    assert report.order_violations == [("source", "integ")]
    assert ("source", "c", "integ", "in") in report.edges
    assert report.cycles == []


def test_check_wiring_detects_feedback_cycle():
    i1 = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="i1")
    i2 = Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name="i2")
    connect_models(i1, ["out"], i2, ["in"])
    connect_models(i2, ["out"], i1, ["in"])

    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(i1)
    sim.register_model(i2)
    report = sim.check_wiring()

    assert len(report.cycles) == 1
    assert set(report.cycles[0]) == {"i1", "i2"}
    assert "feedback cycle" in str(report)


def test_check_wiring_walks_long_feedback_ring():
    count = 2000
    chain = [Integrator(make_sig_list(("in", "-")), make_sig_list(("out", "-")), name=f"i{k}")
             for k in range(count)]
    for prev, nxt in zip(chain, chain[1:]):
        connect_models(prev, ["out"], nxt, ["in"])
    connect_models(chain[-1], ["out"], chain[0], ["in"])

    sim = SimSystem(0.0, 1.0, 0.1)
    for model in chain:
        sim.register_model(model)
    report = sim.check_wiring()

    assert report.ok
    assert len(report.edges) == count
    assert report.order_violations == [(f"i{count - 1}", "i0")]
    assert len(report.cycles) == 1
    assert len(report.cycles[0]) == count + 1
    assert report.cycles[0][0] == report.cycles[0][-1]


def test_recorder_stops_at_last_whole_step():
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 1.75, 0.5, progress=_quiet)
    sim.register_model(sf)
    sim.register_recorder("scope", scope)
    sim.run()
    assert len(scope) == 4
    assert scope.times()[-1] == 1.5


def test_check_wiring_includes_recorders():
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(sf)
    sim.register_recorder("scope", scope)
    report = sim.check_wiring()
    assert report.ok
    assert len(report.edges) == 2
    assert report.order_violations == []


def test_print_topology(capsys):
    sf, scope = _step_and_scope()
    sim = SimSystem(0.0, 1.0, 0.1)
    sim.register_model(sf)
    sim.register_recorder("scope", scope)
    sim.print_topology()
    out = capsys.readouterr().out
    assert "EXECUTION ORDER" in out
    assert "StepFunc.st1 -> scope.scp_st1" in out


# ---------- Configuration / logging ----------

def test_from_config():
    cfg = SimulationConfig(start_time=0.0, end_time=2.0, delta_t=0.5,
                           solver=SolverType.RK4, progress_interval=2)
    sim = SimSystem.from_config(cfg, progress=_quiet)
    assert sim.sim_time.step_num() == 4
    assert sim.progress_interval == 2


def test_config_validation():
    with pytest.raises(ConfigurationError):
        SimulationConfig(delta_t=0.0).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(start_time=5.0, end_time=1.0).validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(solver="leapfrog").validate()
    with pytest.raises(ConfigurationError):
        SimulationConfig(progress_interval=-3).validate()
    assert SimulationConfig().validate().step_num == 1000


def test_config_from_dict():
    cfg = SimulationConfig.from_dict({"end_time": 1.0, "delta_t": 0.25})
    assert cfg.step_num == 4
    assert cfg.to_dict()["delta_t"] == 0.25
    with pytest.raises(ConfigurationError):
        SimulationConfig.from_dict({"duration": 1.0})


@pytest.fixture
def blocksim_logger():
    logger = logging.getLogger("blocksim")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_setup_logging_writes_file(tmp_path, blocksim_logger):
    log_file = tmp_path / "run.log"
    logger = setup_logging(logging.INFO, str(log_file))
    assert logger is blocksim_logger
    assert len(logger.handlers) == 2

    setup_logging(logging.INFO, str(log_file))
    assert len(logger.handlers) == 2

    logging.getLogger("blocksim.simulation_engine").info("hello from the engine")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the engine" in log_file.read_text(encoding="utf-8")
