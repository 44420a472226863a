"""
spirosynth - Segment Buffer
Bounded history of drawn segments, used for vector export.
"""

import os
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional

from logging_utils import log_event

MAX_SVG_LINES = 50000


@dataclass(frozen=True)
class Segment:
    """One stored (un-rotated) segment"""
    x1: float
    y1: float
    x2: float
    y2: float
    r: int
    g: int
    b: int
    a: float
    width: float
    symmetry: int = 1         # Fold count in effect when drawn

    @property
    def stroke(self) -> str:
        return f"rgba({self.r},{self.g},{self.b},{self.a})"

    def to_svg_line(self) -> str:
        return (f'<line x1="{self.x1:.2f}" y1="{self.y1:.2f}" '
                f'x2="{self.x2:.2f}" y2="{self.y2:.2f}" '
                f'stroke="{self.stroke}" stroke-opacity="{self.a}" '
                f'stroke-width="{self.width:.2f}"/>')


class SegmentBuffer:
    """Append-only, capacity-bounded; overflow keeps the newest half."""

    def __init__(self, capacity: int = MAX_SVG_LINES):
        self.capacity = max(2, int(capacity))
        self._segments: List[Segment] = []
        self.trim_count = 0

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __getitem__(self, index):
        return self._segments[index]

    def append(self, segment: Segment) -> None:
        self._segments.append(segment)
        if len(self._segments) > self.capacity:
            keep = self.capacity // 2
            self._segments = self._segments[-keep:]
            self.trim_count += 1
            log_event("DEBUG", "Export", "Segment buffer trimmed", kept=keep,
                      trims=self.trim_count)

    def clear(self) -> None:
        self._segments = []

    def to_svg(self, width: int, height: int) -> str:
        parts = [f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
                 f'xmlns="http://www.w3.org/2000/svg">']
        parts.extend(segment.to_svg_line() for segment in self._segments)
        parts.append('</svg>')
        return ''.join(parts)

    def write_svg(self, path: Optional[str], width: int, height: int) -> str:
        """Write the SVG; a directory or None picks a timestamped file name."""
        if path is None:
            path = os.getcwd()
        if os.path.isdir(path):
            path = os.path.join(path, f"spirosynth_{int(time.time() * 1000)}.svg")
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_svg(width, height))
        log_event("INFO", "Export", "SVG written", path=path, lines=len(self._segments))
        return path
