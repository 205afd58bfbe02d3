import numpy as np
import pytest

from blocksim import (
    ConfigurationError,
    RampFunc,
    SimRecorder,
    SimSystem,
    connect_models,
    make_sig_list,
)


@pytest.fixture
def recorded():
    ramp = RampFunc(make_sig_list(("speed", "m/s"), ("angle", "rad")),
                    [(0.0, 1.0, False, 0.0, 1.0), (1.0, 0.0, False, 0.0, -1.0)])
    scope = SimRecorder(make_sig_list(("v", "m/s"), ("phi", "rad")))
    connect_models(ramp, ["speed", "angle"], scope, ["v", "phi"])
    sim = SimSystem(0.0, 1.0, 0.25, progress=lambda *a: None)
    sim.register_model(ramp)
    sim.register_recorder("scope", scope)
    sim.run()
    return scope


def test_recording_shape(recorded):
    assert len(recorded) == 5
    assert recorded.to_array().shape == (5, 2)
    np.testing.assert_allclose(recorded.times(), [0.0, 0.25, 0.5, 0.75, 1.0])
    np.testing.assert_allclose(recorded.get_signal("v"), [0.0, 0.25, 0.5, 0.75, 1.0])
    np.testing.assert_allclose(recorded.get_signal("phi"), [1.0, 0.75, 0.5, 0.25, 0.0])


def test_unknown_channel_is_none(recorded):
    assert recorded.get_signal("torque") is None


def test_empty_recorder():
    scope = SimRecorder(make_sig_list(("a", "-"), ("b", "-"), ("c", "-")))
    assert len(scope) == 0
    assert scope.to_array().shape == (0, 3)


def test_export_csv(recorded, tmp_path):
    path = tmp_path / "scope.csv"
    recorded.export(str(path))
    lines = path.read_text().splitlines()
    assert lines[0] == "time,v[m/s],phi[rad]"
    assert len(lines) == 6
    data = np.loadtxt(str(path), delimiter=",", skiprows=1)
    np.testing.assert_allclose(data[:, 0], recorded.times())
    np.testing.assert_allclose(data[:, 2], recorded.get_signal("phi"))


def test_timeplot_writes_image(recorded, tmp_path):
    path = tmp_path / "scope.png"
    recorded.timeplot_all(str(path), figsize=(6.0, 4.0), layout=(1, 3), title="ramps")
    assert path.exists()
    assert path.stat().st_size > 0


def test_timeplot_layout_too_small(recorded, tmp_path):
    with pytest.raises(ConfigurationError):
        recorded.timeplot_all(str(tmp_path / "scope.png"), layout=(1, 1))


def test_reinitialize_clears_previous_samples(recorded):
    sim = SimSystem(0.0, 0.5, 0.25, progress=lambda *a: None)
    sim.register_recorder("again", recorded)
    sim.run()
    assert len(recorded) == 3
    np.testing.assert_allclose(recorded.times(), [0.0, 0.25, 0.5])
    # registration keeps a name that was already assigned
    assert recorded.name == "scope"
