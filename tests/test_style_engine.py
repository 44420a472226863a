import math
import unittest

from config import BrightnessMode, PenStyle
from style_engine import evaluate_style, fragment_visible


class TestStyleEngine(unittest.TestCase):
    def test_deterministic(self):
        for style in PenStyle:
            a = evaluate_style(12.5, -40.0, style, BrightnessMode.X1, 1.0, 3.0)
            b = evaluate_style(12.5, -40.0, style, BrightnessMode.X1, 1.0, 3.0)
            self.assertEqual(a, b)

    def test_channels_and_alpha_in_range(self):
        for style in PenStyle:
            for lrot in (0.0, 37.0, 181.0, -900.0):
                s = evaluate_style(lrot, lrot * 1.7, style)
                for channel in (s.r, s.g, s.b):
                    self.assertTrue(0 <= channel <= 255, (style, lrot, channel))
                self.assertTrue(0.0 <= s.a <= 1.0)

    def test_fragment_gate(self):
        q = math.pi / 20
        self.assertTrue(fragment_visible(q, q))
        self.assertFalse(fragment_visible(q, -q))
        self.assertFalse(evaluate_style(q, -q, PenStyle.FRAGMENTED).visible)
        self.assertTrue(evaluate_style(q, q, PenStyle.FRAGMENTED).visible)
        # Only the fragmented pen is gated
        self.assertTrue(evaluate_style(q, -q, PenStyle.RAINBOW).visible)

    def test_brightness_division(self):
        # lrot = 45 puts the bw alpha at its peak of 1.0
        base = evaluate_style(45.0, 0.0, PenStyle.BW, BrightnessMode.X1)
        self.assertAlmostEqual(base.a, 1.0)
        self.assertAlmostEqual(evaluate_style(45.0, 0.0, PenStyle.BW, BrightnessMode.X3).a, 1.0)
        self.assertAlmostEqual(evaluate_style(45.0, 0.0, PenStyle.BW, BrightnessMode.DIV10).a, 0.1)
        self.assertAlmostEqual(evaluate_style(45.0, 0.0, PenStyle.BW, BrightnessMode.DIV5).a, 1 / 15)

    def test_rainbow_width_tracks_speed(self):
        still = evaluate_style(0.0, 0.0, PenStyle.RAINBOW, step_distance=0.0)
        fast = evaluate_style(0.0, 0.0, PenStyle.RAINBOW, step_distance=1e6)
        self.assertAlmostEqual(still.width, 2.5)
        self.assertAlmostEqual(fast.width, 0.5)
        doubled = evaluate_style(0.0, 0.0, PenStyle.RAINBOW, line_width=2.0)
        self.assertAlmostEqual(doubled.width, 5.0)

    def test_rainbow_width_uses_brightness_factor(self):
        # sqrt(2 * 50 / 2) * 1.8 = 12.73 -> 15 / 12.73
        s = evaluate_style(0.0, 0.0, PenStyle.RAINBOW, BrightnessMode.X2, step_distance=50.0)
        self.assertAlmostEqual(s.width, (15 / (math.sqrt(50.0) * 1.8)) / 2)

    def test_silk_is_thin_and_faint(self):
        silk = evaluate_style(10.0, 20.0, PenStyle.SILK)
        inverse = evaluate_style(10.0, 20.0, PenStyle.SILK_INVERSE, line_width=2.0)
        self.assertAlmostEqual(silk.width, 0.4)
        self.assertAlmostEqual(silk.a, 0.25)
        self.assertAlmostEqual(inverse.width, 0.8)
        self.assertEqual(inverse.r, 255)

    def test_fixed_alphas(self):
        self.assertAlmostEqual(evaluate_style(0.0, 0.0, PenStyle.KALEIDOSCOPE).a, 0.8)
        self.assertAlmostEqual(evaluate_style(0.0, 0.0, PenStyle.BLUE).a, 0.7)
        golden = evaluate_style(0.0, 0.0, PenStyle.GOLDEN)
        self.assertEqual((golden.r, golden.g, golden.b), (255, 217, 25))

    def test_rgba_string(self):
        s = evaluate_style(0.0, 0.0, PenStyle.BLUE)
        self.assertEqual(s.rgba(), f"rgba({s.r},{s.g},{s.b},0.7)")


if __name__ == "__main__":
    unittest.main()
