"""
spirosynth - Style Engine
Pure color/width functions of the hand accumulators.
"""

import math
from dataclasses import dataclass

from config import BrightnessMode, PenStyle

DEG = math.pi / 180.0

# Fragmented pen: noise threshold for visibility (~60% duty)
FRAGMENT_THRESHOLD = -0.2


@dataclass(frozen=True)
class StrokeStyle:
    r: int
    g: int
    b: int
    a: float
    width: float
    visible: bool = True

    def rgba(self) -> str:
        return f"rgba({self.r},{self.g},{self.b},{self.a})"


def _rainbow_triple(rot: float) -> tuple[float, float, float]:
    return (
        math.sin(DEG * rot + math.pi * 0.666) * 127 + 127,
        math.sin(DEG * rot + math.pi * 0.333) * 127 + 127,
        math.sin(DEG * rot) * 127 + 127,
    )


def _holo_triple(shift: float) -> tuple[float, float, float]:
    return (
        math.sin(DEG * shift) * 100 + 155,
        math.sin(DEG * shift + math.pi * 0.5) * 100 + 155,
        math.sin(DEG * shift + math.pi) * 100 + 200,
    )


def fragment_visible(lrot: float, rrot: float) -> bool:
    """High-frequency noise gate used by the fragmented pen."""
    noise = math.sin(lrot * 10) * math.sin(rrot * 10)
    return noise > FRAGMENT_THRESHOLD


def _base_color(style: PenStyle, lrot: float, rrot: float) -> tuple[int, int, int, float, float]:
    """Return (r, g, b, alpha, base_width) for a style."""
    if style == PenStyle.RAINBOW:
        c1, c2, c3 = _rainbow_triple(lrot)
        c4, c5, c6 = _rainbow_triple(rrot)
        return (math.floor((c1 + c4) / 2), math.floor((c2 + c5) / 2),
                math.floor((c3 + c6) / 2), 1.0, 1.0)

    if style == PenStyle.BW:
        return 255, 255, 255, 0.3 + abs(math.sin(DEG * lrot * 2)) * 0.7, 1.0

    if style == PenStyle.KALEIDOSCOPE:
        kh = (abs(lrot + rrot) % 360) / 360
        kr = math.sin(kh * math.pi * 2) * 127 + 127
        kg = math.sin((kh + 0.33) * math.pi * 2) * 127 + 127
        kb = math.sin((kh + 0.66) * math.pi * 2) * 127 + 127
        return math.floor(kr), math.floor(kg), math.floor(kb), 0.8, 1.0

    if style == PenStyle.BLUE:
        b1 = math.sin(DEG * lrot) * 50 + 50
        return (math.floor(b1 * 0.2), math.floor(math.sin(DEG * rrot) * 100 + 155),
                255, 0.7, 1.0)

    if style == PenStyle.GOLDEN:
        gold_mix = math.sin(DEG * (lrot + rrot)) * 0.5 + 0.5
        return 255, math.floor(180 + gold_mix * 75), math.floor(gold_mix * 50), 0.8, 1.0

    if style == PenStyle.FRAGMENTED:
        f1, f2, f3 = _rainbow_triple(lrot)
        return math.floor(f1), math.floor(f2), math.floor(f3), 1.0, 1.0

    if style == PenStyle.HOLOGRAPHIC:
        h_r, h_g, h_b = _holo_triple((lrot + rrot) * 0.5)
        alpha = 0.4 + abs(math.sin(DEG * lrot)) * 0.6
        return math.floor(h_r), math.floor(h_g), math.floor(min(255, h_b)), alpha, 1.0

    if style == PenStyle.SILK:
        s_r, s_g, s_b = _holo_triple((lrot + rrot) * 0.5)
        return math.floor(s_r), math.floor(s_g), math.floor(min(255, s_b)), 0.25, 0.4

    if style == PenStyle.SILK_INVERSE:
        s_r, s_g, s_b = _holo_triple((lrot + rrot) * 0.5)
        # 180-degree inversion, then pushed warm
        r = min(255, math.floor((255 - s_r) + 200))
        g = min(255, math.floor((255 - s_g) + 100))
        b = min(255, math.floor((255 - s_b) + 50))
        return r, g, b, 0.25, 0.4

    return 255, 255, 255, 1.0, 1.0


def evaluate_style(lrot: float, rrot: float,
                   pen_style: PenStyle,
                   brightness_mode: BrightnessMode = BrightnessMode.X1,
                   line_width: float = 1.0,
                   step_distance: float = 0.0) -> StrokeStyle:
    """Color, alpha, width and visibility for one sub-step.

    step_distance is the raw distance moved since the previous sub-step; only
    the rainbow pen uses it (faster strokes are drawn thinner).
    """
    style = PenStyle(pen_style)
    mode = int(brightness_mode)
    r, g, b, alpha, width = _base_color(style, lrot, rrot)

    if style == PenStyle.RAINBOW:
        b_val = mode if mode < 4 else 1
        dd_val = math.sqrt(2 * step_distance / b_val) * 1.8
        width = max(1.0, min(5.0, 15 / (dd_val or 1))) / 2
    width *= line_width

    visible = True
    if style == PenStyle.FRAGMENTED:
        visible = fragment_visible(lrot, rrot)

    if mode > 3:
        alpha /= 5 * (mode - 2)
    alpha = max(0.0, min(1.0, alpha))

    return StrokeStyle(int(r), int(g), int(b), alpha, width, visible)
