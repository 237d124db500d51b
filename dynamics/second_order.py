"""
dynamics/second_order.py

Second-order smoothing filter that drives a value toward a moving target with
tunable frequency, damping and initial response.
"""
import copy
import logging

from dynamics.filters import (
    compile_coefficients,
    estimate_derivative,
    stable_coefficients,
)

logger = logging.getLogger(__name__)


class SecondOrderDynamics:
    """
    Second-order filter integrated with a semi-implicit Euler step.

    Works for any value type supporting +, -, and * / by a float: floats,
    complex numbers, numpy arrays (2-D/3-D positions, colours, rotation
    vectors). Values are never modified in place.

    Attributes:
        value (float or ndarray): Current filtered output.
        rate (float or ndarray): Current rate of change of value.
        previous_target (float or ndarray): Last target used for velocity
            estimation.
        angular_frequency (float): w = 2*pi*f (rad/s).
        damping_ratio (float): z.
        damped_frequency (float): d = w*sqrt(|z^2 - 1|).
        k1, k2, k3 (float): Base integration coefficients.
    """
    def __init__(self, frequency, damping_ratio, initial_response, initial_value):
        coeffs = compile_coefficients(frequency, damping_ratio, initial_response)
        self._w = coeffs['w']
        self._z = coeffs['z']
        self._d = coeffs['d']
        self._k1 = coeffs['k1']
        self._k2 = coeffs['k2']
        self._k3 = coeffs['k3']

        self._xp = copy.copy(initial_value)
        self._y = copy.copy(initial_value)
        self._yd = initial_value * 0.0
        logger.debug("SecondOrderDynamics f=%g z=%g r=%g -> k1=%g k2=%g k3=%g",
                     frequency, damping_ratio, initial_response,
                     self._k1, self._k2, self._k3)

    @property
    def value(self):
        return copy.copy(self._y)

    @property
    def rate(self):
        return copy.copy(self._yd)

    @property
    def previous_target(self):
        return copy.copy(self._xp)

    @property
    def angular_frequency(self):
        return self._w

    @property
    def damping_ratio(self):
        return self._z

    @property
    def damped_frequency(self):
        return self._d

    @property
    def k1(self):
        return self._k1

    @property
    def k2(self):
        return self._k2

    @property
    def k3(self):
        return self._k3

    def update(self, dt, target, target_velocity=None):
        """
        Advance the filter by one time step.

        Args:
            dt (float): Elapsed time since the previous call (sec). Must not
                be negative; must be non-zero when target_velocity is None.
            target (float or ndarray): Target the output is driven toward.
            target_velocity (float or ndarray or None): Target rate of change.
                When None it is estimated from the previous target.

        Returns:
            float or ndarray: Filtered value after the step.
        """
        if target_velocity is None:
            xd = estimate_derivative(dt, target, self._xp)
            self._xp = copy.copy(target)
        else:
            xd = target_velocity

        k1, k2 = stable_coefficients(dt, self._k1, self._k2,
                                     self._w, self._z, self._d)

        # Position first with the old rate, then rate against the new position
        self._y = self._y + dt * self._yd
        self._yd = self._yd + dt * (target + self._k3 * xd - self._y - k1 * self._yd) / k2

        return copy.copy(self._y)

    def __repr__(self):
        return ("SecondOrderDynamics(w=%g, z=%g, k1=%g, k2=%g, k3=%g, value=%r)"
                % (self._w, self._z, self._k1, self._k2, self._k3, self._y))
