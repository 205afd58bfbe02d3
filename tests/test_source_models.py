import math

import pytest

from blocksim import (
    ConfigurationError,
    ConstantFunc,
    RampFunc,
    SimRecorder,
    SimSystem,
    SimTime,
    StepFunc,
    WaveFunc,
    WaveFuncSetting,
    WaveType,
    connect_models,
    make_sig_list,
    wave_value,
)


def _record(source, names, start=0.0, end=1.0, dt=0.1):
    scope = SimRecorder(make_sig_list(*[(f"rec_{n}", "-") for n in names]))
    connect_models(source, names, scope, [f"rec_{n}" for n in names])
    sim = SimSystem(start, end, dt, progress=lambda *a: None)
    sim.register_model(source)
    sim.register_recorder("scope", scope)
    sim.run()
    return scope


def test_constant_values_set_at_construction():
    con = ConstantFunc(make_sig_list(("Con1", "Nm"), ("Con2", "A")), [0.0, 1.0])
    assert con.interface_out()[0].value == 0.0
    assert con.interface_out()[1].value == 1.0
    assert con.interface_in() is None


def test_constant_length_mismatch():
    with pytest.raises(ConfigurationError):
        ConstantFunc(make_sig_list(("Con1", "Nm"), ("Con2", "A")), [0.0, 1.0, 3.0])


def test_step_switches_at_step_time():
    sf = StepFunc(make_sig_list(("st1", "Nm")), [(0.5, 0.0, 1.0)])
    scope = _record(sf, ["st1"], end=2.0, dt=0.5)
    assert list(scope.times()) == [0.0, 0.5, 1.0, 1.5, 2.0]
    assert list(scope.get_signal("rec_st1")) == [0.5, 0.5, 0.0, 0.0, 0.0]


def test_step_in_the_past_switches_at_first_tick():
    sf = StepFunc(make_sig_list(("st2", "A")), [(0.3, 1.0, -1.0)])
    scope = _record(sf, ["st2"], end=0.2, dt=0.1)
    assert list(scope.get_signal("rec_st2")) == [0.3, 1.0, 1.0]


def test_step_settings_mismatch():
    with pytest.raises(ConfigurationError):
        StepFunc(make_sig_list(("Sf1", "Nm"), ("Sf2", "A")),
                 [(0.5, 0.0, 1.0), (0.3, 1.0, 1.5), (0.3, 1.0, 1.5)])


def test_ramp_limits_and_free_running():
    rf = RampFunc(
        make_sig_list(("rf1", "Nm"), ("rf2", "A"), ("rf3", "Nm")),
        [
            (0.5, 1.5, True, 0.2, 2.0),
            (0.5, 0.0, False, 0.3, 2.0),
            (-0.5, -1.5, True, 0.2, -2.0),
        ],
    )
    scope = _record(rf, ["rf1", "rf2", "rf3"])

    rising = scope.get_signal("rec_rf1")
    assert rising[0] == 0.5
    assert rising[1] == 0.5                     # t = 0.1 < start_time
    assert rising[2] == pytest.approx(0.7)      # t = 0.2
    assert rising.max() <= 1.5
    assert rising[-1] == pytest.approx(1.5)

    assert scope.get_signal("rec_rf2")[-1] == pytest.approx(0.5 + 8 * 0.2)

    falling = scope.get_signal("rec_rf3")
    assert falling.min() >= -1.5
    assert falling[-1] == pytest.approx(-1.5)


def test_ramp_settings_mismatch():
    with pytest.raises(ConfigurationError):
        RampFunc(make_sig_list(("Rf1", "Nm")), [(0.5, 1.5, True, 0.2, 2.0)] * 2)


def test_wave_shapes():
    assert wave_value(WaveType.SIN, math.pi / 2) == pytest.approx(1.0)
    assert wave_value(WaveType.TRIANGLE, 0.0) == pytest.approx(0.0)
    assert wave_value(WaveType.TRIANGLE, math.pi / 2) == pytest.approx(1.0)
    assert wave_value(WaveType.TRIANGLE, math.pi) == pytest.approx(0.0)
    assert wave_value(WaveType.TRIANGLE, 3 * math.pi / 2) == pytest.approx(-1.0)
    assert wave_value(WaveType.SQUARE, math.pi / 2) == 0.0
    assert wave_value(WaveType.SQUARE, 3 * math.pi / 2) == 1.0
    # periodic beyond the first cycle
    assert wave_value(WaveType.SQUARE, 2 * math.pi + 3 * math.pi / 2) == 1.0


def test_wave_func_scaling():
    wf = WaveFunc(
        make_sig_list(("sin", "-"), ("sqr", "-")),
        [
            WaveFuncSetting(WaveType.SIN, amplitude=2.0, phase=0.0, period=1.0, offset=1.0),
            WaveFuncSetting(WaveType.SQUARE, amplitude=2.0, phase=0.0, period=1.0, offset=0.0),
        ],
    )
    clock = SimTime(0.0, 1.0, 0.25)
    wf.initialize(clock)
    assert wf.interface_out()[0].value == pytest.approx(1.0)

    values = []
    for _ in clock:
        wf.nextstate(clock)
        values.append(wf.interface_out().to_vec_f64())

    assert values[0][0] == pytest.approx(3.0)     # t = 0.25: 2·sin(π/2) + 1
    assert values[1][1] == 2.0                    # t = 0.5: second half of the period
    assert values[0][1] == 0.0


def test_wave_func_validation():
    with pytest.raises(ConfigurationError):
        WaveFunc(make_sig_list(("w", "-")), [WaveFuncSetting(period=0.0)])
    with pytest.raises(ConfigurationError):
        WaveFunc(make_sig_list(("w", "-")), [WaveFuncSetting(), WaveFuncSetting()])
