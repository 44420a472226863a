"""
spirosynth - Frame Driver
Runs one animation tick: N sub-steps of kinematics -> style -> harmony ->
segments -> accumulators -> auto-stop.

All cross-tick memory lives in EngineState, which the caller owns and passes
into every tick. The Config snapshot is read, never kept.
"""

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from auto_stop import AutoStopMonitor
from config import Config, MAX_ACCELERATION
from cycle_analyzer import UNBOUNDED
from harmonic_mapper import HarmonicMapper, NoteEvent, RampInstruction, VoiceState
from kinematics import LinkageJoints, PenTip, evolve_linkage, solve_pen_tip
from logging_utils import log_event, log_throttled
from segment_buffer import Segment, SegmentBuffer
from style_engine import StrokeStyle, evaluate_style

# Accumulator advance per sub-step for 1 rpm (degrees)
FIXED_STEP_DEG = 0.01666666 * 6
# Hard ceiling on ticks per session
MAX_FRAMES = 1_000_000
# Auto-evolve drift per sub-step
EVOLUTION_STEP = 0.0001
# Particle emission probability per symmetry copy
PARTICLE_CHANCE = 0.1
# Audio recovery backoff (seconds): first retry delay, doubling up to the cap
RECOVERY_MIN_INTERVAL = 0.5
RECOVERY_MAX_INTERVAL = 8.0

STOP_AUTO = 'auto_stop'
STOP_FRAME_LIMIT = 'frame_limit'
STOP_USER = 'user'


@dataclass
class EngineState:
    """Everything the engine remembers between ticks"""
    crot: float = 0.0                 # Rotor accumulator (degrees)
    lrot: float = 0.0                 # Left hand accumulator (degrees)
    rrot: float = 0.0                 # Right hand accumulator (degrees)
    cursor: Optional[Tuple[float, float]] = None
    auto_stop: AutoStopMonitor = field(default_factory=AutoStopMonitor)
    segments: SegmentBuffer = field(default_factory=SegmentBuffer)
    cycle_target: float = UNBOUNDED
    rotation_progress: float = 0.0    # Normalized 1-rpm clock (radians)
    frame_count: int = 0
    evolution_offset: float = 0.0
    voice: VoiceState = field(default_factory=VoiceState)
    running: bool = False
    pending_note: Optional[NoteEvent] = None
    last_note: Optional[NoteEvent] = None
    last_joints: Optional[LinkageJoints] = None
    stop_reason: Optional[str] = None
    substeps_total: int = 0
    last_timestamp: float = 0.0


@dataclass(frozen=True)
class DrawnSegment:
    """A segment as presented, already rotated for its symmetry copy"""
    x1: float
    y1: float
    x2: float
    y2: float
    style: StrokeStyle
    symmetry_index: int


@dataclass(frozen=True)
class ParticleEvent:
    x: float                          # Relative to the canvas center, before rotation
    y: float
    vx: float
    vy: float
    max_age: float
    r: int
    g: int
    b: int
    angle: float                      # Symmetry rotation (radians)


@dataclass
class TickResult:
    segments: List[DrawnSegment] = field(default_factory=list)
    particles: List[ParticleEvent] = field(default_factory=list)
    ramps: List[RampInstruction] = field(default_factory=list)
    note: Optional[NoteEvent] = None
    run_complete: bool = False
    stop_reason: Optional[str] = None
    substeps: int = 0


def rotate_about(x: float, y: float, center: Tuple[float, float],
                 cos_a: float, sin_a: float) -> Tuple[float, float]:
    rx = x - center[0]
    ry = y - center[1]
    return (center[0] + rx * cos_a - ry * sin_a,
            center[1] + rx * sin_a + ry * cos_a)


class FrameDriver:
    """Executes ticks against an EngineState.

    audio_sink is anything with `running`, `apply_ramp(ramp)` and
    `reinitialize()`; AudioEngine is the real one.
    """

    def __init__(self, mapper: Optional[HarmonicMapper] = None,
                 audio_sink=None,
                 rng: Optional[random.Random] = None):
        self.mapper = mapper or HarmonicMapper()
        self.audio_sink = audio_sink
        self.rng = rng or random.Random()
        self._next_recovery_at = -math.inf
        self._recovery_interval = RECOVERY_MIN_INTERVAL

    def tick(self, state: EngineState, config: Config, timestamp: float,
             pointer: Optional[Tuple[float, float]] = None) -> TickResult:
        result = TickResult()
        if not state.running:
            return result

        state.last_timestamp = timestamp
        state.frame_count += 1
        if state.frame_count > MAX_FRAMES:
            log_event("WARN", "Engine", "Max frames reached, stopping", frames=state.frame_count)
            self._stop(state, result, STOP_FRAME_LIMIT)
            return result

        steps = min(max(int(config.run.acceleration or 1), 1), MAX_ACCELERATION)
        center = (config.canvas.width / 2, config.canvas.height / 2)
        symmetry = max(1, int(config.pen.symmetry))

        if config.run.auto_stop:
            if not state.auto_stop.armed:
                state.auto_stop.arm()
        elif state.auto_stop.armed:
            state.auto_stop.clear()

        for i in range(steps):
            linkage = config.linkage
            if config.run.auto_evolve:
                state.evolution_offset += EVOLUTION_STEP
                linkage = evolve_linkage(linkage, state.evolution_offset)

            tip = solve_pen_tip(
                state.lrot, state.rrot, state.crot, linkage, center,
                pointer=pointer,
                mouse_interaction=config.run.mouse_interaction,
                with_joints=config.run.show_arms and i == steps - 1,
            )
            if tip.joints is not None:
                state.last_joints = tip.joints

            step_distance = 0.0
            if state.cursor is not None:
                step_distance = math.hypot(tip.x - state.cursor[0], tip.y - state.cursor[1])

            style = evaluate_style(state.lrot, state.rrot, config.pen.style,
                                   config.pen.brightness, config.pen.line_width,
                                   step_distance)

            if config.synth.sound_enabled:
                note = self.mapper.map_point(style, tip.x, tip.y, tip.radius,
                                             state.cursor, state.voice, config.synth,
                                             config.canvas.width)
                self._send_note(state, note, config.synth.ramp_ms, result)
                state.last_note = note
                result.note = note

            if state.cursor is not None and style.visible:
                self._emit_segments(state, tip, style, symmetry, center,
                                    config.run.particles_enabled, result)

            state.cursor = (tip.x, tip.y)
            state.crot += linkage.rotor_rpm * FIXED_STEP_DEG
            state.lrot += linkage.lrpm * FIXED_STEP_DEG
            state.rrot += linkage.rrpm * FIXED_STEP_DEG
            state.rotation_progress += FIXED_STEP_DEG * math.pi / 180
            state.substeps_total += 1
            result.substeps += 1

            if config.run.auto_stop and state.auto_stop.observe(tip.true_x, tip.true_y,
                                                                state.frame_count):
                self._stop(state, result, STOP_AUTO)
                break

        return result

    def _stop(self, state: EngineState, result: TickResult, reason: str) -> None:
        state.running = False
        state.stop_reason = reason
        state.auto_stop.clear()
        result.run_complete = True
        result.stop_reason = reason
        log_event("INFO", "Engine", "Run stopped", reason=reason, frames=state.frame_count,
                  substeps=state.substeps_total, segments=len(state.segments))

    def _try_recover(self, sink, now: float) -> None:
        """Reopen a stopped sink, backing off while it keeps failing."""
        if now < self._next_recovery_at:
            return
        if sink.reinitialize():
            self._next_recovery_at = -math.inf
            self._recovery_interval = RECOVERY_MIN_INTERVAL
            return
        self._next_recovery_at = now + self._recovery_interval
        log_throttled("audio-recovery", RECOVERY_MAX_INTERVAL, "WARN", "Audio",
                      "Output still unavailable, backing off",
                      retry_in=self._recovery_interval)
        self._recovery_interval = min(self._recovery_interval * 2, RECOVERY_MAX_INTERVAL)

    def _send_note(self, state: EngineState, note: NoteEvent, ramp_ms: float,
                   result: TickResult) -> None:
        sink = self.audio_sink
        ramp = note.to_ramp(ramp_ms)
        result.ramps.append(ramp)
        if sink is None:
            return

        if not sink.running:
            state.pending_note = note
            self._try_recover(sink, state.last_timestamp)
            return
        self._next_recovery_at = -math.inf
        self._recovery_interval = RECOVERY_MIN_INTERVAL

        try:
            if state.pending_note is not None:
                sink.apply_ramp(state.pending_note.to_ramp(ramp_ms))
                state.pending_note = None
            sink.apply_ramp(ramp)
        except Exception as e:
            log_throttled("ramp-failed", 1.0, "ERROR", "Audio", "Ramp failed, will retry",
                          error=e)
            state.pending_note = note

    def _emit_segments(self, state: EngineState, tip: PenTip, style: StrokeStyle,
                       symmetry: int, center: Tuple[float, float],
                       particles_enabled: bool, result: TickResult) -> None:
        x1, y1 = state.cursor
        x2, y2 = tip.x, tip.y
        fold = 2 * math.pi / symmetry

        for k in range(symmetry):
            angle = k * fold
            cos_a = math.cos(angle)
            sin_a = math.sin(angle)
            rx1, ry1 = rotate_about(x1, y1, center, cos_a, sin_a)
            rx2, ry2 = rotate_about(x2, y2, center, cos_a, sin_a)
            result.segments.append(DrawnSegment(rx1, ry1, rx2, ry2, style, k))

            if particles_enabled and self.rng.random() > 1 - PARTICLE_CHANCE:
                result.particles.append(ParticleEvent(
                    x=x2 - center[0],
                    y=y2 - center[1],
                    vx=(self.rng.random() - 0.5) * 2,
                    vy=(self.rng.random() - 0.5) * 2,
                    max_age=50 + self.rng.random() * 50,
                    r=style.r, g=style.g, b=style.b,
                    angle=angle,
                ))

        # Only the un-rotated representative is kept for export
        state.segments.append(Segment(x1, y1, x2, y2, style.r, style.g, style.b,
                                      style.a, style.width, symmetry))
