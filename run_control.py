from dataclasses import dataclass

from config import Config
from cycle_analyzer import calculate_cycle, cycle_progress, is_cycle_finished, is_unbounded
from frame_driver import STOP_USER, EngineState
from harmonic_mapper import VoiceState
from logging_utils import log_event


@dataclass(frozen=True)
class StartStopUiState:
    start_text: str
    clear_enabled: bool
    status_text: str


def start_new_run(state: EngineState, config: Config) -> None:
    """Arm the closure anchor, zero progress and recompute the cycle target."""
    linkage = config.linkage
    state.cycle_target = calculate_cycle(linkage.rotor_rpm, linkage.lrpm, linkage.rrpm)
    state.rotation_progress = 0.0
    state.stop_reason = None
    if config.run.auto_stop:
        state.auto_stop.arm()
    else:
        state.auto_stop.clear()
    state.running = True
    log_event("INFO", "Run", "Run started",
              cycle="unbounded" if is_unbounded(state.cycle_target) else f"{state.cycle_target:.2f}",
              auto_stop=config.run.auto_stop)


def stop_run(state: EngineState, reason: str = STOP_USER) -> None:
    if not state.running:
        return
    state.running = False
    state.stop_reason = reason
    state.auto_stop.clear()


def toggle_play(state: EngineState, config: Config) -> bool:
    """Pause/resume; a run that already covered its cycle starts over.
    Returns the new running flag."""
    if state.running:
        stop_run(state)
        return False

    if state.stop_reason is not None and state.stop_reason != STOP_USER:
        start_new_run(state, config)
    elif is_cycle_finished(state.rotation_progress, state.cycle_target):
        start_new_run(state, config)
    else:
        state.running = True
        if config.run.auto_stop and not state.auto_stop.armed:
            state.auto_stop.arm()
    return state.running


def clear_state(state: EngineState) -> None:
    """Drop the trace and rewind the accumulators; the run stops."""
    state.running = False
    state.crot = 0.0
    state.lrot = 0.0
    state.rrot = 0.0
    state.cursor = None
    state.auto_stop.clear()
    state.segments.clear()
    state.frame_count = 0
    state.evolution_offset = 0.0
    state.rotation_progress = 0.0
    state.pending_note = None
    state.last_joints = None
    state.stop_reason = None


def full_reset(state: EngineState, audio=None, synth=None) -> None:
    """Clear everything and rebuild the audio path from scratch."""
    clear_state(state)
    state.voice = VoiceState()
    state.last_note = None
    if audio is not None:
        audio.release()
        if synth is not None and synth.sound_enabled:
            audio.acquire(synth)
    log_event("INFO", "Run", "Full reset", audio=audio is not None)


def start_stop_ui_state(is_running: bool) -> StartStopUiState:
    """Return UI state for the Run control based on running state."""
    if is_running:
        return StartStopUiState(
            start_text="■ Stop",
            clear_enabled=False,
            status_text="Drawing",
        )

    return StartStopUiState(
        start_text="▶ Run",
        clear_enabled=True,
        status_text="Stopped",
    )


def play_button_text(is_playing: bool) -> str:
    """Return Play button text for playing/paused state."""
    return "⏸ Pause" if is_playing else "▶ Play"


def progress_text(state: EngineState) -> str:
    """Cycle progress for the status bar."""
    pct = cycle_progress(state.rotation_progress, state.cycle_target)
    if pct is None:
        return "Cycle: ∞"
    return f"Cycle: {pct:.1f}%"
