"""Run history: one row per finished drawing, kept as JSON plus a CSV mirror."""
import csv
import json
import time
from pathlib import Path

from cycle_analyzer import cycle_progress, is_unbounded

REPORT_FIELDS = (
    "run_started_at",
    "run_ended_at",
    "seconds",
    "frames",
    "substeps",
    "segments_stored",
    "segment_trims",
    "cycle_target",
    "cycle_progress_pct",
    "stop_reason",
    "last_note",
)


class RunReporter:
    def __init__(self, report_dir: Path, max_runs: int = 200):
        self.report_dir = Path(report_dir)
        self.report_dir.mkdir(parents=True, exist_ok=True)
        self.json_path = self.report_dir / "run_report.json"
        self.csv_path = self.report_dir / "run_report.csv"
        self.max_runs = max(1, int(max_runs))

    @staticmethod
    def row_for(state, started_at: float, ended_at: float | None = None) -> dict:
        """Flatten an EngineState into a report row of plain JSON types."""
        ended_at = time.time() if ended_at is None else float(ended_at)
        progress = cycle_progress(state.rotation_progress, state.cycle_target)
        note = state.last_note
        return {
            "run_started_at": float(started_at),
            "run_ended_at": ended_at,
            "seconds": max(0.0, ended_at - float(started_at)),
            "frames": int(state.frame_count),
            "substeps": int(state.substeps_total),
            "segments_stored": len(state.segments),
            "segment_trims": int(state.segments.trim_count),
            "cycle_target": "unbounded" if is_unbounded(state.cycle_target) else float(state.cycle_target),
            "cycle_progress_pct": "" if progress is None else round(float(progress), 2),
            "stop_reason": state.stop_reason or "",
            "last_note": "" if note is None else f"{note.note}{note.octave}",
        }

    def load_runs(self) -> list[dict]:
        """Previously recorded rows; an unreadable report counts as empty."""
        try:
            with open(self.json_path, "r", encoding="utf-8") as f:
                runs = json.load(f).get("runs", [])
        except (OSError, ValueError, AttributeError):
            return []
        return [r for r in runs if isinstance(r, dict)] if isinstance(runs, list) else []

    def record(self, state, started_at: float, ended_at: float | None = None) -> dict:
        row = self.row_for(state, started_at, ended_at)
        runs = (self.load_runs() + [row])[-self.max_runs:]
        self._write(runs)
        return row

    def _write(self, runs: list[dict]) -> None:
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump({"generated_at": time.time(), "run_count": len(runs), "runs": runs}, f, indent=2)

        with open(self.csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=REPORT_FIELDS, extrasaction="ignore")
            writer.writeheader()
            for row in runs:
                writer.writerow({key: row.get(key, "") for key in REPORT_FIELDS})
