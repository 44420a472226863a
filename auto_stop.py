"""
spirosynth - Geometric Auto-Stop Monitor
Detects when the trace returns to where the run started.
"""

from dataclasses import dataclass
from typing import Optional

from logging_utils import log_event

# Frames to wait after anchoring before closure may fire
SETTLE_FRAMES = 300
# Squared distance tolerance (~4 unit radius)
CLOSURE_TOLERANCE_SQ = 16.0


@dataclass
class ClosureAnchor:
    x: float
    y: float
    frame: int


class AutoStopMonitor:
    """Anchors the first pen position of a run and reports return-to-origin."""

    def __init__(self, settle_frames: int = SETTLE_FRAMES,
                 tolerance_sq: float = CLOSURE_TOLERANCE_SQ):
        self.settle_frames = settle_frames
        self.tolerance_sq = tolerance_sq
        self.anchor: Optional[ClosureAnchor] = None
        self._armed = False

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self) -> None:
        """Re-arm for a new run; the next observed point becomes the anchor."""
        self.anchor = None
        self._armed = True

    def clear(self) -> None:
        self.anchor = None
        self._armed = False

    def observe(self, x: float, y: float, frame: int) -> bool:
        """Feed one sub-step position. Returns True once when the trace closes."""
        if not self._armed:
            return False

        if self.anchor is None:
            self.anchor = ClosureAnchor(x, y, frame)
            return False

        if frame <= self.anchor.frame + self.settle_frames:
            return False

        dx = x - self.anchor.x
        dy = y - self.anchor.y
        if dx * dx + dy * dy < self.tolerance_sq:
            log_event("INFO", "AutoStop", "Geometric cycle complete",
                      frame=frame, anchor_frame=self.anchor.frame)
            self.clear()
            return True
        return False
