"""
dynamics/filters.py

Coefficient compilation, derivative estimation and step stabilization for the
second-order smoothing filter:
    y + k1 * dy/dt + k2 * d2y/dt2 = x + k3 * dx/dt
"""
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


class DynamicsDomainError(ValueError):
    """Raised when a filter precondition (frequency > 0, dt != 0) fails."""


def compile_coefficients(frequency, damping_ratio, initial_response):
    """
    Convert physical tuning parameters into continuous-time coefficients.

    Args:
        frequency (float): Natural response frequency in Hz, must be > 0.
        damping_ratio (float): 0 undamped, 1 critically damped, >1 overdamped.
        initial_response (float): Anticipation; >0 overshoots, <0 undershoots.

    Returns:
        dict: keys 'w', 'z', 'd', 'k1', 'k2', 'k3'.
    """
    if not frequency > 0:
        raise DynamicsDomainError(
            "frequency must be > 0, got %r" % (frequency,))

    w = 2.0 * math.pi * frequency
    d = w * math.sqrt(abs(damping_ratio * damping_ratio - 1.0))
    return {
        'w':  w,
        'z':  damping_ratio,
        'd':  d,
        'k1': damping_ratio / (math.pi * frequency),
        'k2': 1.0 / (w * w),
        'k3': initial_response * damping_ratio / w,
    }


def estimate_derivative(dt, target, previous_target):
    """
    Backward-difference estimate of the target's rate of change.

    Args:
        dt (float): Time since the previous target sample (sec), must be != 0.
        target (float or ndarray): Current target sample.
        previous_target (float or ndarray): Previous target sample.

    Returns:
        float or ndarray: (target - previous_target) / dt
    """
    if dt == 0:
        raise DynamicsDomainError(
            "dt must be non-zero to estimate the target velocity")
    return (target - previous_target) / dt


def stable_coefficients(dt, k1, k2, w, z, d):
    """
    Step-local (k1, k2) that keep the semi-implicit Euler step stable.

    Small steps (w*dt < z) keep k1 and clamp k2 upward just enough to avoid
    jitter. Larger steps use pole matching, an exact discretization of the
    continuous poles.

    Args:
        dt (float): Time step (sec).
        k1, k2 (float): Base coefficients from compile_coefficients.
        w (float): Angular frequency (rad/s).
        z (float): Damping ratio.
        d (float): Damped frequency w*sqrt(|z^2 - 1|).

    Returns:
        (float, float): k1', k2' with k2' > 0.
    """
    if w * dt < z:
        return k1, _clamp_k2(dt, k1, k2)

    # pole matching
    t1 = math.exp(-z * w * dt)
    if z <= 1:
        alpha = 2.0 * t1 * math.cos(d * dt)
    else:
        # 2*t1*cosh(d*dt), expanded so large steps cannot overflow (d < z*w)
        alpha = math.exp((d - z * w) * dt) + math.exp(-(d + z * w) * dt)
    beta = t1 * t1
    denom = 1.0 + beta - alpha
    if denom <= 0:
        # undamped filter stepped by a whole number of periods
        logger.debug("pole matching degenerate at dt=%g (z=%g), clamping k2",
                     dt, z)
        return k1, _clamp_k2(dt, k1, k2)
    t2 = dt / denom
    return (1.0 - beta) * t2, dt * t2


def _clamp_k2(dt, k1, k2):
    return max(k2, dt * dt / 2.0 + dt * k1 / 2.0, dt * k1)


def filter_derivative(state, x, xd, coeffs):
    """
    Continuous-time right-hand side of the filter ODE.

    Args:
        state (ndarray): [y, dy/dt] for a scalar channel.
        x (float): Target.
        xd (float): Target velocity.
        coeffs (dict): Output of compile_coefficients.

    Returns:
        ndarray: [dy/dt, d2y/dt2]
    """
    y, yd = state
    ydd = (x + coeffs['k3'] * xd - y - coeffs['k1'] * yd) / coeffs['k2']
    return np.array([yd, ydd])
