"""
dynamics/tunable.py

Live-tunable holder for a SecondOrderDynamics filter. Changing a parameter
rebuilds the filter from its current output value.
"""
import logging

from dynamics.presets import PRESETS, clamp_to_range
from dynamics.second_order import SecondOrderDynamics

logger = logging.getLogger(__name__)


class Dynamics:
    """
    Filter parameters plus the filter state built from them.

    Attributes:
        frequency (float): Natural frequency (Hz).
        damping_ratio (float): Damping ratio.
        initial_response (float): Initial response.
        state (SecondOrderDynamics): Filter built from the parameters above.
    """
    def __init__(self, frequency, damping_ratio, initial_response, initial_value):
        self.state = SecondOrderDynamics(frequency, damping_ratio,
                                         initial_response, initial_value)
        self.frequency = frequency
        self.damping_ratio = damping_ratio
        self.initial_response = initial_response

    @classmethod
    def from_preset(cls, name, initial_value):
        """Build from a named preset in dynamics.presets.PRESETS."""
        try:
            f, z, r = PRESETS[name]
        except KeyError:
            raise KeyError("unknown preset %r, expected one of %s"
                           % (name, sorted(PRESETS))) from None
        return cls(f, z, r, initial_value)

    @property
    def value(self):
        return self.state.value

    def update(self, dt, target, target_velocity=None):
        """Advance the filter; see SecondOrderDynamics.update."""
        return self.state.update(dt, target, target_velocity)

    def retune(self, frequency=None, damping_ratio=None, initial_response=None):
        """
        Replace the given parameters and rebuild the filter.

        Values are clipped to the slider ranges in dynamics.presets. The new
        filter starts at the current output value; its rate and previous
        target are reset. A frequency that clips to 0 is rejected and the
        holder is left unchanged.

        Returns:
            bool: True if any parameter changed.
        """
        f, z, r = clamp_to_range(
            self.frequency if frequency is None else frequency,
            self.damping_ratio if damping_ratio is None else damping_ratio,
            self.initial_response if initial_response is None else initial_response)
        if (f, z, r) == (self.frequency, self.damping_ratio, self.initial_response):
            return False

        self.state = SecondOrderDynamics(f, z, r, self.state.value)
        self.frequency, self.damping_ratio, self.initial_response = f, z, r
        logger.debug("retuned to f=%g z=%g r=%g", f, z, r)
        return True

    def __repr__(self):
        return ("Dynamics(frequency=%g, damping_ratio=%g, initial_response=%g)"
                % (self.frequency, self.damping_ratio, self.initial_response))
