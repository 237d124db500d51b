"""
Tests for the simulation driver, the continuous reference and step metrics.
"""

import numpy as np
import pytest

from dynamics_simulation import (
    dynamic_driver,
    load_params,
    main,
    reference_response,
    step_metrics,
)
from dynamics.filters import DynamicsDomainError
from targets.profiles import step_profile


def _params(**overrides):
    params = load_params()
    params.update(overrides)
    return params


class TestDriver:

    def test_load_params(self):
        params = load_params()
        for key in ('frequency', 'damping_ratio', 'initial_response',
                    'initial_value', 'dt', 'duration', 'use_velocity'):
            assert key in params
        assert params['frequency'] > 0

    def test_result_shapes(self):
        res = dynamic_driver(step_profile(0.2, 0.0, 1.0), duration=1.0)
        n = len(res['time'])
        assert res['time'][0] == 0.0
        assert res['target'].shape == (n,)
        assert res['value'].shape == (n,)
        assert res['value'][0] == 0.0

    def test_no_profile_rests(self):
        res = dynamic_driver(duration=0.5)
        np.testing.assert_array_equal(res['value'], 0.0)

    def test_measured_velocity_matches_estimate(self):
        profile = step_profile(0.3, 0.0, 1.0)
        est = dynamic_driver(profile, duration=2.0, params=_params(use_velocity=False))
        meas = dynamic_driver(profile, duration=2.0, params=_params(use_velocity=True))
        np.testing.assert_allclose(est['value'], meas['value'], rtol=1e-9, atol=1e-12)

    @pytest.mark.parametrize("dt", [0.0, -0.01])
    def test_non_positive_dt_rejected(self, dt):
        with pytest.raises(DynamicsDomainError, match="dt must be > 0"):
            dynamic_driver(duration=1.0, params=_params(dt=dt))

    @pytest.mark.parametrize("duration, dt", [(3.0, 1.0 / 60.0), (1.0, 0.1),
                                              (2.0, 0.0005), (0.7, 0.3),
                                              (0.8, 0.3)])
    def test_grid_ends_at_duration(self, duration, dt):
        res = dynamic_driver(duration=duration, params=_params(dt=dt))
        time = res['time']
        assert time[-1] <= duration + 1e-9
        assert time[-1] > duration - dt
        np.testing.assert_allclose(np.diff(time), dt)

    def test_large_step_converges(self):
        params = _params(frequency=2.0, damping_ratio=0.5, dt=0.5)
        res = dynamic_driver(step_profile(0.0, 0.0, 1.0), duration=20.0, params=params)
        assert np.all(np.isfinite(res['value']))
        assert res['value'][-1] == pytest.approx(1.0, abs=1e-3)


class TestReferenceResponse:

    @pytest.mark.parametrize("z, r", [(1.0, 0.0), (1.0, 2.0), (0.5, 1.0), (2.0, 0.0)])
    def test_small_dt_tracks_continuous(self, z, r):
        params = _params(frequency=1.0, damping_ratio=z, initial_response=r,
                         dt=0.0005)
        profile = step_profile(0.5, 0.0, 1.0)
        res = dynamic_driver(profile, duration=3.0, params=params)
        ref = reference_response(res['time'], profile, params)
        assert np.max(np.abs(res['value'] - ref)) < 0.02

    def test_rests_before_step(self):
        params = _params(frequency=1.0, damping_ratio=1.0, initial_response=2.0)
        time = np.linspace(0.0, 2.0, 201)
        ref = reference_response(time, step_profile(1.0, 0.0, 1.0), params)
        np.testing.assert_allclose(ref[time < 1.0], 0.0, atol=1e-12)
        assert ref[-1] > 0.5


class TestStepMetrics:

    def test_overshoot_and_settling(self):
        time = np.arange(5) * 0.1
        m = step_metrics(time, [0.0, 0.5, 1.2, 1.0, 1.0], 1.0, 0.0)
        assert m['overshoot'] == pytest.approx(0.2)
        assert m['undershoot'] == 0.0
        assert m['final_error'] == 0.0
        assert m['settling_time'] == pytest.approx(0.3)

    def test_undershoot(self):
        time = np.arange(4) * 0.1
        m = step_metrics(time, [0.0, -0.2, 0.5, 1.0], 1.0, 0.0)
        assert m['undershoot'] == pytest.approx(0.2)
        assert m['overshoot'] == 0.0

    def test_downward_step(self):
        time = np.arange(4) * 0.1
        m = step_metrics(time, [0.0, -0.5, -1.1, -1.0], -1.0, 0.0)
        assert m['overshoot'] == pytest.approx(0.1)
        assert m['undershoot'] == 0.0

    def test_not_settled(self):
        m = step_metrics(np.array([0.0, 0.1]), [0.0, 0.5], 1.0, 0.0)
        assert m['settling_time'] is None
        assert m['final_error'] == pytest.approx(0.5)


class TestMain:

    def test_runs(self):
        assert main(['--duration', '0.5']) == 0

    def test_preset_with_velocity(self):
        assert main(['--preset', 'rope', '--duration', '0.5', '--use-velocity']) == 0

    def test_bad_frequency(self, caplog):
        assert main(['-f', '0', '--duration', '0.5']) == 2
        assert "Invalid simulation parameters" in caplog.text

    @pytest.mark.parametrize("dt", ['0', '-0.01'])
    def test_non_positive_dt(self, dt, caplog):
        assert main(['--dt', dt, '--duration', '0.5']) == 2
        assert "dt must be > 0" in caplog.text

    def test_negative_duration(self, caplog):
        assert main(['--duration', '-1']) == 2
        assert "duration must be >= 0" in caplog.text

    def test_zero_duration(self):
        assert main(['--duration', '0']) == 0
