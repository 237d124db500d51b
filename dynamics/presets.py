"""
dynamics/presets.py

Named (frequency, damping_ratio, initial_response) presets and the ranges
used when tuning them live.
Simply import this module to access the variables.
"""
import numpy as np

# Sphere tracking the cursor: critically damped with mild anticipation
SPHERE = (2.5, 1.0, 1.0)

# Sag point of a hanging rope: underdamped, bouncy
ROPE = (3.0, 0.5, 2.0)

# Critically damped, no anticipation
CRITICAL = (1.0, 1.0, 0.0)

# Overdamped, never overshoots a held step
SLUGGISH = (0.5, 2.0, 0.0)

PRESETS = {
    'sphere':   SPHERE,
    'rope':     ROPE,
    'critical': CRITICAL,
    'sluggish': SLUGGISH,
}

# Slider ranges (min, max)
FREQUENCY_RANGE = (0.0, 10.0)    # Hz
DAMPING_RANGE   = (0.0, 10.0)
RESPONSE_RANGE  = (-10.0, 10.0)


def clamp_to_range(frequency, damping_ratio, initial_response):
    """
    Clip a parameter triple to the slider ranges.

    Note that a frequency of exactly 0 is inside FREQUENCY_RANGE but is
    rejected by the filter itself.

    Returns:
        (float, float, float): Clipped (frequency, damping_ratio, initial_response).
    """
    return (float(np.clip(frequency, *FREQUENCY_RANGE)),
            float(np.clip(damping_ratio, *DAMPING_RANGE)),
            float(np.clip(initial_response, *RESPONSE_RANGE)))
