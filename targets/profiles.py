"""
targets/profiles.py

Time-based target profiles and target velocities for driving a filter.
"""
import copy

import numpy as np


def interp_target(t, profile, base_target):
    """
    Return the target at time t.

    Args:
        t (float): Current time in seconds.
        profile (list of dict): Each dict has keys 'time' (float, seconds) and
            'values' (float or ndarray), sorted by time.
        base_target (float or ndarray): Target before the first profile entry.

    Returns:
        float or ndarray: Target for time t.
    """
    target = copy.copy(base_target)
    if profile:
        times = np.array([p['time'] for p in profile], dtype=float)
        idx = np.searchsorted(times, t, side='right') - 1
        if idx >= 0:
            values = profile[idx]['values']
            target = np.asarray(values, dtype=float) if np.ndim(values) else float(values)
    return target


def step_profile(t_step, before, after):
    """
    Profile holding `before` from t=0 and switching to `after` at t_step.
    """
    return [{'time': 0.0, 'values': before},
            {'time': float(t_step), 'values': after}]


def target_velocity(target, previous_target, dt):
    """
    Finite-difference target velocity as measured by the driver.

    A zero dt yields zero velocity rather than an error, so a driver can
    always supply an explicit velocity to the filter.
    """
    if dt == 0:
        return (target - previous_target) * 0.0
    return (target - previous_target) / dt
