"""
spirosynth - Cycle Analyzer
Predicts the angular extent after which rotor + hand motion exactly repeats.
"""

import math
from typing import Optional

# Rpms below this magnitude are treated as stationary
ACTIVE_RPM_EPSILON = 1e-4
# Rpms are rescaled to integers at this resolution
RPM_SCALE = 1000
# Running LCM above this is reported as unbounded
MAX_PERIOD = 5000
# Tolerance (radians) when deciding a run has reached its cycle
FINISH_TOLERANCE = 0.1

UNBOUNDED = math.inf


def _lcm(a: int, b: int) -> int:
    return a * b // math.gcd(a, b)


def calculate_cycle(rotor_rpm: float, lrpm: float, rrpm: float) -> float:
    """Return the period of the combined motion in normalized radians.

    Each active rpm becomes an integer I = round(|rpm| * 1000); it completes a
    whole number of turns after 1000 / gcd(I, 1000) unit periods. The overall
    period is the LCM of those, scaled by 2*pi. Returns UNBOUNDED when nothing
    rotates or when the LCM grows past MAX_PERIOD.
    """
    active = [
        int(round(abs(rpm) * RPM_SCALE))
        for rpm in (rotor_rpm, lrpm, rrpm)
        if abs(rpm) > ACTIVE_RPM_EPSILON
    ]
    if not active:
        return UNBOUNDED

    periods = [RPM_SCALE // math.gcd(value, RPM_SCALE) for value in active]

    full_cycle = periods[0]
    for period in periods[1:]:
        full_cycle = _lcm(full_cycle, period)
        if full_cycle > MAX_PERIOD:
            return UNBOUNDED
    return full_cycle * math.pi * 2


def is_unbounded(target: Optional[float]) -> bool:
    return target is None or math.isinf(target)


def cycle_progress(progress: float, target: Optional[float]) -> Optional[float]:
    """Percentage of the cycle covered, or None when the target is unbounded."""
    if is_unbounded(target) or target <= 0:
        return None
    return max(0.0, min(100.0, abs(progress) / target * 100.0))


def is_cycle_finished(progress: float, target: Optional[float]) -> bool:
    if is_unbounded(target) or target <= 0:
        return False
    return abs(progress) >= target - FINISH_TOLERANCE
