"""
spirosynth - Kinematics Solver
Resolves the two-hand linkage into the traced pen tip for one sub-step.

Two hands sit handdist apart around (center + base offset). Each hand turns a
first arm; the free ends are joined by the two second arms. The pen is the
right second arm extended by rarmext. The resolved point is then rotated
around the canvas center by the rotor accumulator.
"""

import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from config import LinkageConfig

DEG = math.pi / 180.0

# Floors for degenerate geometry
MIN_JOINT_DISTANCE = 0.1
MIN_SECOND_ARM = 1.0
MIN_GAMMA = 1e-3

# Pointer attraction
POINTER_RADIUS = 300.0
POINTER_STRENGTH = 0.5


@dataclass
class LinkageJoints:
    """Joint positions captured for inspection (show_arms)"""
    h1x: float
    h1y: float
    h2x: float
    h2y: float
    h1arm1x: float
    h1arm1y: float
    h2arm1x: float
    h2arm1y: float
    ext_x: float
    ext_y: float


@dataclass
class PenTip:
    x: float                  # Displayed point (after pointer attraction)
    y: float
    true_x: float             # Kinematic point
    true_y: float
    radius: float             # Distance of the kinematic point from center
    angle: float              # Polar angle after rotor rotation (radians)
    joints: Optional[LinkageJoints] = None


def clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def safe_asin(value: float) -> float:
    return math.asin(clamp_unit(value))


def safe_acos(value: float) -> float:
    return math.acos(clamp_unit(value))


def right_arm_angle(alpha: float, beta: float, gamma: float, delta: float,
                    l2: float, r2: float) -> float:
    """Absolute angle of the right second arm.

    The two branches are distinct solution regions of the linkage; which one
    applies depends only on which second arm is longer.
    """
    if l2 > r2:
        return math.pi - ((math.pi - alpha - gamma) - delta)
    return math.pi - (beta - delta)


def evolve_linkage(linkage: LinkageConfig, offset: float) -> LinkageConfig:
    """Return the linkage drifted by the auto-evolve offset."""
    return replace(
        linkage,
        larm2=linkage.larm2 + math.sin(offset * 3) * 50,
        rarm2=linkage.rarm2 + math.cos(offset * 2) * 50,
        handdist=linkage.handdist + math.sin(offset * 1.5) * 30,
    )


def attract_to_pointer(x: float, y: float, pointer: Tuple[float, float]) -> Tuple[float, float]:
    """Pull (x, y) toward the pointer; linear falloff to zero at POINTER_RADIUS."""
    mdx = pointer[0] - x
    mdy = pointer[1] - y
    mdist = math.hypot(mdx, mdy)
    if mdist < POINTER_RADIUS:
        force = (1 - mdist / POINTER_RADIUS) * POINTER_STRENGTH
        return x + mdx * force, y + mdy * force
    return x, y


def solve_pen_tip(lrot: float, rrot: float, crot: float,
                  linkage: LinkageConfig,
                  center: Tuple[float, float],
                  pointer: Optional[Tuple[float, float]] = None,
                  mouse_interaction: bool = False,
                  with_joints: bool = False) -> PenTip:
    """Compute the pen tip for the given accumulators (degrees)."""
    center_x, center_y = center

    hands_x = center_x + linkage.baseoffsx
    hands_y = center_y + linkage.baseoffsy

    h1x = hands_x - linkage.handdist / 2
    h1y = hands_y
    h2x = hands_x + linkage.handdist / 2
    h2y = hands_y

    l_angle = (lrot + linkage.larma) * DEG
    h1arm1x = math.cos(l_angle) * linkage.larm1 + h1x
    h1arm1y = math.sin(l_angle) * linkage.larm1 + h1y

    r_angle = rrot * DEG
    h2arm1x = math.cos(r_angle) * linkage.rarm1 + h2x
    h2arm1y = math.sin(r_angle) * linkage.rarm1 + h2y

    dx = h2arm1x - h1arm1x
    dy = h2arm1y - h1arm1y
    D = max(MIN_JOINT_DISTANCE, math.hypot(dx, dy))

    r2 = max(MIN_SECOND_ARM, linkage.rarm2)
    l2 = max(MIN_SECOND_ARM, linkage.larm2)

    # Law of cosines: interior angle between the second arms
    gamma = safe_acos((r2 * r2 + l2 * l2 - D * D) / (2 * r2 * l2))

    # Law of sines: D / sin(gamma) is the common ratio
    ratio = D / math.sin(max(gamma, MIN_GAMMA))
    alpha = safe_asin(r2 / ratio)
    beta = safe_asin(l2 / ratio)
    delta = safe_asin(dy / D)

    h2a = right_arm_angle(alpha, beta, gamma, delta, l2, r2)

    reach = r2 + linkage.rarmext
    ext_x = h2arm1x + math.cos(h2a) * reach
    ext_y = h2arm1y + math.sin(h2a) * reach

    # Re-express around the center and apply the rotor
    nx = ext_x - center_x
    ny = ext_y - center_y
    nd = math.hypot(nx, ny)
    na = 0.0 if nd == 0 else safe_asin(ny / nd)
    if nx < 0:
        na = math.pi - na
    na += crot * DEG

    true_x = center_x + math.cos(na) * nd
    true_y = center_y + math.sin(na) * nd

    fx, fy = true_x, true_y
    if mouse_interaction and pointer is not None:
        fx, fy = attract_to_pointer(fx, fy, pointer)

    joints = None
    if with_joints:
        joints = LinkageJoints(h1x, h1y, h2x, h2y, h1arm1x, h1arm1y,
                               h2arm1x, h2arm1y, ext_x, ext_y)

    return PenTip(fx, fy, true_x, true_y, nd, na, joints)
