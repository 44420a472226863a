#!/usr/bin/env python3
"""
spirosynth - Two-armed linkage drawing machine with a synesthetic synth

Launches the Qt GUI, or with --headless steps the engine without a display
and writes the trace as SVG.
"""

import argparse
import cProfile
import sys
import time

from config import Config
from config_persistence import load_config
from logging_utils import log_event, set_log_level


def run_headless(config: Config, ticks: int, svg_path: str | None) -> int:
    """Step the engine for `ticks` ticks on a simulated clock."""
    from frame_driver import FrameDriver, EngineState
    from harmonic_mapper import AmbientChordScheduler
    from run_control import progress_text, start_new_run

    state = EngineState()
    driver = FrameDriver()
    chords = AmbientChordScheduler()
    start_new_run(state, config)

    interval = config.run.tick_interval_ms / 1000.0
    now = 0.0
    chord_count = 0
    t0 = time.perf_counter()
    for _ in range(ticks):
        now += interval
        result = driver.tick(state, config, now)
        if chords.poll(state.voice, now, config.synth) is not None:
            chord_count += 1
        if result.run_complete:
            break

    log_event("INFO", "Run", "Headless run finished",
              frames=state.frame_count,
              substeps=state.substeps_total,
              segments=len(state.segments),
              chords=chord_count,
              stop=state.stop_reason or "ticks",
              progress=progress_text(state),
              elapsed_ms=f"{(time.perf_counter() - t0) * 1000:.0f}")

    if svg_path:
        try:
            state.segments.write_svg(svg_path, config.canvas.width, config.canvas.height)
        except OSError as e:
            log_event("ERROR", "Export", "Failed to write SVG", path=svg_path, error=e)
            return 1
    return 0


def run_app(app_argv: list[str], config: Config) -> int:
    from PyQt6.QtWidgets import QApplication

    app = QApplication(app_argv)
    app.setStyle("Fusion")

    # Heavy imports (numpy, scipy, pyqtgraph) after the QApplication exists
    t_main = time.perf_counter()
    from main import SpiroWindow
    log_event("INFO", "Startup", "Loaded main module",
              ms=f"{(time.perf_counter() - t_main) * 1000:.0f}")

    window = SpiroWindow(config)
    window.show()
    return app.exec()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run spirosynth")
    parser.add_argument("--headless", action="store_true",
                        help="Run the engine without the GUI")
    parser.add_argument("--ticks", type=int, default=600,
                        help="Ticks to run in headless mode (default: 600)")
    parser.add_argument("--svg", default=None,
                        help="Write the trace to this SVG path (headless mode)")
    parser.add_argument("--config", default=None,
                        help="Load parameters from this JSON file")
    parser.add_argument("--log-level", default=None,
                        help="DEBUG/INFO/WARNING/ERROR (overrides the config)")
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    args = parser.parse_args()

    if args.config:
        config = load_config(args.config)
    elif args.headless:
        config = Config()
    else:
        config = load_config()

    if args.log_level:
        config.log_level = args.log_level.upper()
    set_log_level(config.log_level)

    # Keep Qt argument list clean; avoid passing our flags downstream
    app_argv = [sys.argv[0]]

    def target() -> int:
        if args.headless:
            return run_headless(config, max(0, args.ticks), args.svg)
        return run_app(app_argv, config)

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = target()
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = target()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
