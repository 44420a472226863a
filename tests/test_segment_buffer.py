import os
import tempfile
import unittest

from segment_buffer import MAX_SVG_LINES, Segment, SegmentBuffer


def seg(i):
    return Segment(float(i), 0.0, float(i) + 1, 1.0, 255, 128, 0, 0.5, 1.25)


class TestSegmentBuffer(unittest.TestCase):
    def test_default_capacity(self):
        self.assertEqual(SegmentBuffer().capacity, MAX_SVG_LINES)

    def test_overflow_keeps_newest_half(self):
        buf = SegmentBuffer(capacity=10)
        for i in range(10):
            buf.append(seg(i))
        self.assertEqual(len(buf), 10)
        self.assertEqual(buf.trim_count, 0)

        buf.append(seg(10))

        self.assertEqual(len(buf), 5)
        self.assertEqual([s.x1 for s in buf], [6.0, 7.0, 8.0, 9.0, 10.0])
        self.assertEqual(buf.trim_count, 1)

    def test_never_exceeds_capacity(self):
        buf = SegmentBuffer(capacity=100)
        for i in range(1000):
            buf.append(seg(i))
            self.assertLessEqual(len(buf), 100)
        self.assertEqual(buf[-1].x1, 999.0)

    def test_clear(self):
        buf = SegmentBuffer(capacity=10)
        buf.append(seg(1))
        buf.clear()
        self.assertEqual(len(buf), 0)

    def test_svg_line_format(self):
        line = Segment(1.0, 2.346, 3.0, 4.0, 10, 20, 30, 0.25, 0.4).to_svg_line()
        self.assertEqual(
            line,
            '<line x1="1.00" y1="2.35" x2="3.00" y2="4.00" '
            'stroke="rgba(10,20,30,0.25)" stroke-opacity="0.25" stroke-width="0.40"/>')

    def test_svg_document(self):
        buf = SegmentBuffer(capacity=10)
        buf.append(seg(0))
        buf.append(seg(1))
        svg = buf.to_svg(2400, 1800)

        self.assertTrue(svg.startswith(
            '<svg width="2400" height="1800" viewBox="0 0 2400 1800" '
            'xmlns="http://www.w3.org/2000/svg">'))
        self.assertTrue(svg.endswith('</svg>'))
        self.assertEqual(svg.count('<line '), 2)

    def test_empty_svg(self):
        svg = SegmentBuffer().to_svg(100, 50)
        self.assertEqual(svg, '<svg width="100" height="50" viewBox="0 0 100 50" '
                              'xmlns="http://www.w3.org/2000/svg"></svg>')

    def test_write_svg_to_directory(self):
        buf = SegmentBuffer(capacity=10)
        buf.append(seg(3))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = buf.write_svg(tmpdir, 640, 480)
            name = os.path.basename(path)
            self.assertTrue(name.startswith("spirosynth_"))
            self.assertTrue(name.endswith(".svg"))
            with open(path, encoding="utf-8") as f:
                self.assertEqual(f.read(), buf.to_svg(640, 480))

    def test_write_svg_to_file(self):
        buf = SegmentBuffer(capacity=10)
        with tempfile.TemporaryDirectory() as tmpdir:
            target = os.path.join(tmpdir, "trace.svg")
            self.assertEqual(buf.write_svg(target, 10, 10), target)
            self.assertTrue(os.path.exists(target))


if __name__ == "__main__":
    unittest.main()
