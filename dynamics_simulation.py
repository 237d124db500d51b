"""
dynamics_simulation.py

Runs a second-order smoothing filter against a target profile, compares it to
the continuous-time response and reports step-response metrics.
"""
import argparse
import logging
import sys

import numpy as np
from scipy.integrate import solve_ivp

from dynamics.presets import PRESETS, SPHERE
from dynamics.filters import DynamicsDomainError, compile_coefficients, filter_derivative
from dynamics.second_order import SecondOrderDynamics
from targets.profiles import interp_target, step_profile, target_velocity

logger = logging.getLogger(__name__)


def load_params():
    """
    Assemble default simulation parameters.
    """
    f, z, r = SPHERE
    params = {}
    # Filter tuning
    params['frequency'] = f
    params['damping_ratio'] = z
    params['initial_response'] = r
    params['initial_value'] = 0.0
    # Simulation settings
    params['dt'] = 1.0 / 60.0       # one frame at 60 fps (s)
    params['duration'] = 3.0        # s
    # Feed the filter a measured target velocity instead of letting it estimate
    params['use_velocity'] = False
    return params


def dynamic_driver(target_profile=None, duration=None, params=None):
    """
    Run the discrete filter over a uniform time grid.

    Args:
        target_profile (list of dict): [{'time': s, 'values': target}, ...]
        duration (float): Total simulated time in seconds.
        params (dict): As returned by load_params().

    Returns:
        dict: results with keys 'time', 'target', 'value'.
    """
    if params is None:
        params = load_params()
    if target_profile is None:
        target_profile = []
    if duration is None:
        duration = params['duration']

    dt = params['dt']
    if not dt > 0:
        raise DynamicsDomainError("dt must be > 0, got %r" % (dt,))
    if duration < 0:
        raise DynamicsDomainError("duration must be >= 0, got %r" % (duration,))
    x0 = params['initial_value']
    # whole number of steps so the grid never runs past duration
    time = np.arange(int(np.floor(duration / dt + 1e-9)) + 1) * dt

    dyn = SecondOrderDynamics(params['frequency'], params['damping_ratio'],
                              params['initial_response'], x0)

    targets = [interp_target(time[0], target_profile, x0)]
    values = [dyn.value]
    # the filter rests at x0, so the first target change is a step from x0
    x_prev = x0
    for t in time[1:]:
        x = interp_target(t, target_profile, x0)
        xd = target_velocity(x, x_prev, dt) if params['use_velocity'] else None
        values.append(dyn.update(dt, x, xd))
        targets.append(x)
        x_prev = x

    res = {}
    res['time'] = time
    res['target'] = np.array(targets)
    res['value'] = np.array(values)
    return res


def reference_response(time, target_profile, params):
    """
    Continuous-time response of a scalar filter to a piecewise-constant profile.

    Each target step injects k3 * step / k2 into the rate, the impulse the
    k3 * dx/dt term produces at a discontinuity.

    Args:
        time (ndarray): Increasing sample times (s).
        target_profile (list of dict): Scalar profile, see interp_target.
        params (dict): As returned by load_params().

    Returns:
        ndarray: Filter output sampled at `time`.
    """
    coeffs = compile_coefficients(params['frequency'], params['damping_ratio'],
                                  params['initial_response'])
    x0 = float(params['initial_value'])
    t0, t_end = float(time[0]), float(time[-1])
    if t0 == t_end:
        # a target step at t0 only moves the rate, not the value
        return np.full(len(time), x0)

    # Segment edges at every profile change inside the window
    edges = [t0] + sorted({float(p['time']) for p in target_profile
                           if t0 < p['time'] < t_end}) + [t_end]

    out = np.empty(len(time))
    state = np.array([x0, 0.0])
    x_prev = x0
    for a, b in zip(edges[:-1], edges[1:]):
        x = float(interp_target(a, target_profile, x0))
        state[1] += coeffs['k3'] * (x - x_prev) / coeffs['k2']
        x_prev = x

        sol = solve_ivp(lambda t, s: filter_derivative(s, x, 0.0, coeffs),
                        (a, b), state, dense_output=True, rtol=1e-8, atol=1e-10)
        last = b == t_end
        mask = (time >= a) & ((time <= b) if last else (time < b))
        if mask.any():
            out[mask] = sol.sol(time[mask])[0]
        state = sol.sol(b)
    return out


def step_metrics(time, value, target, initial):
    """
    Step-response metrics for a scalar response.

    Args:
        time (ndarray): Sample times (s).
        value (ndarray): Filter output.
        target (float): Final target.
        initial (float): Starting value.

    Returns:
        dict: 'overshoot' (past the target), 'undershoot' (away from the
        target, past the start), 'final_error', and 'settling_time' (2% band,
        None if never settled).
    """
    value = np.asarray(value, dtype=float)
    span = target - initial
    sign = 1.0 if span >= 0 else -1.0

    metrics = {}
    metrics['overshoot'] = max(0.0, float(np.max(sign * (value - target))))
    metrics['undershoot'] = max(0.0, float(np.max(sign * (initial - value))))
    metrics['final_error'] = float(abs(value[-1] - target))

    band = 0.02 * abs(span)
    outside = np.nonzero(np.abs(value - target) > band)[0]
    if len(outside) == 0:
        metrics['settling_time'] = float(time[0])
    elif outside[-1] == len(value) - 1:
        metrics['settling_time'] = None
    else:
        metrics['settling_time'] = float(time[outside[-1] + 1])
    return metrics


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Step response of a second-order smoothing filter.")
    parser.add_argument('--preset', choices=sorted(PRESETS),
                        help="start from a named (f, z, r) preset")
    parser.add_argument('-f', '--frequency', type=float, help="natural frequency (Hz)")
    parser.add_argument('-z', '--damping', type=float, help="damping ratio")
    parser.add_argument('-r', '--response', type=float, help="initial response")
    parser.add_argument('--dt', type=float, help="time step (s)")
    parser.add_argument('--duration', type=float, help="simulated time (s)")
    parser.add_argument('--step-time', type=float, default=0.0,
                        help="time of the unit step (s)")
    parser.add_argument('--use-velocity', action='store_true',
                        help="pass a measured target velocity to the filter")
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    params = load_params()
    if args.preset:
        f, z, r = PRESETS[args.preset]
        params.update(frequency=f, damping_ratio=z, initial_response=r)
    overrides = {'frequency': args.frequency, 'damping_ratio': args.damping,
                 'initial_response': args.response, 'dt': args.dt,
                 'duration': args.duration}
    params.update({k: v for k, v in overrides.items() if v is not None})
    params['use_velocity'] = args.use_velocity

    profile = step_profile(args.step_time, 0.0, 1.0)
    try:
        results = dynamic_driver(profile, params=params)
    except DynamicsDomainError as exc:
        logger.error("Invalid simulation parameters: %s", exc)
        return 2

    reference = reference_response(results['time'], profile, params)
    metrics = step_metrics(results['time'], results['value'], 1.0, 0.0)
    logger.info("f=%g z=%g r=%g dt=%g: %d steps",
                params['frequency'], params['damping_ratio'],
                params['initial_response'], params['dt'], len(results['time']) - 1)
    logger.info("overshoot=%.4f undershoot=%.4f final_error=%.2e settling_time=%s",
                metrics['overshoot'], metrics['undershoot'],
                metrics['final_error'], metrics['settling_time'])
    logger.info("max deviation from continuous response: %.4f",
                float(np.max(np.abs(results['value'] - reference))))
    return 0


if __name__ == '__main__':
    sys.exit(main())
