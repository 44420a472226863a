"""
spirosynth - Main Application
Qt GUI: linkage trace canvas, pitch trace, and run/pen/synth controls.
"""

import sys
import time
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QGroupBox, QLabel, QSlider, QComboBox, QPushButton, QCheckBox,
    QFileDialog, QScrollArea, QSplitter
)
from PyQt6.QtCore import Qt, QTimer, QPointF, pyqtSignal
from PyQt6.QtGui import QColor, QImage, QPainter, QPen

# PyQtGraph for the live pitch plot
import pyqtgraph as pg
pg.setConfigOptions(antialias=False, useOpenGL=False)

from audio_engine import AudioEngine
from config import SYMMETRY_FOLDS, BrightnessMode, Config, PenStyle, randomized_config
from config_persistence import get_config_dir, load_config, save_config
from frame_driver import DrawnSegment, EngineState, FrameDriver, ParticleEvent, TickResult
from harmonic_mapper import (
    CHROMATIC_NOTES,
    KEYBOARD_NOTES,
    SCALES,
    AmbientChordScheduler,
    build_chord_voicing,
)
from logging_utils import log_event, set_log_level
from run_control import (
    clear_state,
    full_reset,
    play_button_text,
    progress_text,
    start_new_run,
    start_stop_ui_state,
    stop_run,
    toggle_play,
)
from run_reporter import RunReporter

CHORD_POLL_MS = 250
PITCH_HISTORY = 300
PARTICLE_LIMIT = 2000


class SliderWithLabel(QWidget):
    """Slider with label showing current value"""

    valueChanged = pyqtSignal(float)

    def __init__(self, name: str, min_val: float, max_val: float,
                 default: float, decimals: int = 2, parent=None):
        super().__init__(parent)

        self.min_val = min_val
        self.max_val = max_val
        self.decimals = decimals
        self.multiplier = 10 ** decimals

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.label = QLabel(name)
        self.label.setFixedWidth(110)
        self.label.setStyleSheet("color: #aaa;")

        self.slider = QSlider(Qt.Orientation.Horizontal)
        self.slider.setMinimum(int(min_val * self.multiplier))
        self.slider.setMaximum(int(max_val * self.multiplier))
        self.slider.setValue(int(default * self.multiplier))
        self.slider.valueChanged.connect(self._on_change)

        self.value_label = QLabel(f"{default:.{decimals}f}")
        self.value_label.setFixedWidth(55)
        self.value_label.setStyleSheet("color: #0af;")

        layout.addWidget(self.label)
        layout.addWidget(self.slider)
        layout.addWidget(self.value_label)

    def _on_change(self, value: int):
        real_value = value / self.multiplier
        self.value_label.setText(f"{real_value:.{self.decimals}f}")
        self.valueChanged.emit(real_value)

    def value(self) -> float:
        return self.slider.value() / self.multiplier

    def setValue(self, value: float):
        self.slider.setValue(int(round(value * self.multiplier)))


class _Particle:
    __slots__ = ('x', 'y', 'vx', 'vy', 'age', 'max_age', 'color', 'angle')

    def __init__(self, event: ParticleEvent):
        self.x = event.x
        self.y = event.y
        self.vx = event.vx
        self.vy = event.vy
        self.age = 0
        self.max_age = event.max_age
        self.color = QColor(event.r, event.g, event.b, 128)
        self.angle = event.angle


class TraceCanvas(QWidget):
    """Offscreen QImage at canvas resolution, scaled into the widget.

    Segments accumulate on the image; particles and arms are drawn as an
    overlay on each repaint.
    """

    pointerMoved = pyqtSignal(float, float)

    def __init__(self, width: int, height: int, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setMouseTracking(True)
        self.particles: List[_Particle] = []
        self.joints = None
        self.resize_canvas(width, height)

    def resize_canvas(self, width: int, height: int) -> None:
        self.image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        self.clear()

    def clear(self) -> None:
        self.image.fill(QColor('#000000'))
        self.particles = []
        self.joints = None
        self.update()

    def draw_segments(self, segments: List[DrawnSegment]) -> None:
        if not segments:
            return
        painter = QPainter(self.image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        pen = QPen()
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        for seg in segments:
            style = seg.style
            pen.setColor(QColor(style.r, style.g, style.b, int(style.a * 255)))
            pen.setWidthF(style.width)
            painter.setPen(pen)
            painter.drawLine(QPointF(seg.x1, seg.y1), QPointF(seg.x2, seg.y2))
        painter.end()

    def add_particles(self, events: List[ParticleEvent]) -> None:
        self.particles.extend(_Particle(e) for e in events)
        if len(self.particles) > PARTICLE_LIMIT:
            self.particles = self.particles[-PARTICLE_LIMIT:]

    def _step_particles(self) -> None:
        alive = []
        for p in self.particles:
            p.x += p.vx
            p.y += p.vy
            p.age += 1
            if p.age < p.max_age:
                alive.append(p)
        self.particles = alive

    def _to_canvas(self, x: float, y: float):
        sx = self.image.width() / max(1, self.width())
        sy = self.image.height() / max(1, self.height())
        return x * sx, y * sy

    def mouseMoveEvent(self, event):
        pos = event.position()
        cx, cy = self._to_canvas(pos.x(), pos.y())
        self.pointerMoved.emit(cx, cy)

    def paintEvent(self, event):
        self._step_particles()
        painter = QPainter(self)
        painter.drawImage(self.rect(), self.image)

        scale_x = self.width() / max(1, self.image.width())
        scale_y = self.height() / max(1, self.image.height())
        painter.scale(scale_x, scale_y)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        cx = self.image.width() / 2
        cy = self.image.height() / 2
        for p in self.particles:
            painter.save()
            painter.translate(cx, cy)
            painter.rotate(p.angle * 180 / 3.141592653589793)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(p.color)
            painter.drawEllipse(QPointF(p.x, p.y), 1.5, 1.5)
            painter.restore()

        j = self.joints
        if j is not None:
            painter.setPen(QPen(QColor(255, 255, 255, 120), 2))
            painter.drawLine(QPointF(j.h1x, j.h1y), QPointF(j.h1arm1x, j.h1arm1y))
            painter.drawLine(QPointF(j.h2x, j.h2y), QPointF(j.h2arm1x, j.h2arm1y))
            painter.drawLine(QPointF(j.h1arm1x, j.h1arm1y), QPointF(j.ext_x, j.ext_y))
            painter.drawLine(QPointF(j.h2arm1x, j.h2arm1y), QPointF(j.ext_x, j.ext_y))
        painter.end()


class PitchTraceCanvas(pg.PlotWidget):
    """Scrolling history of the melody frequency"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setBackground('#232323')
        self.setMouseEnabled(x=False, y=False)
        self.setMenuEnabled(False)
        self.showGrid(x=False, y=True, alpha=0.2)
        self.hideAxis('bottom')
        self.setLogMode(y=True)
        self.setYRange(1.8, 3.3)

        self.history: List[float] = []
        self.curve = pg.PlotCurveItem(pen=pg.mkPen('#00aaff', width=1))
        self.addItem(self.curve)

    def push(self, frequency: Optional[float]) -> None:
        if frequency is None:
            return
        self.history.append(frequency)
        if len(self.history) > PITCH_HISTORY:
            self.history = self.history[-PITCH_HISTORY:]
        self.curve.setData(list(range(len(self.history))), self.history)

    def clear_history(self) -> None:
        self.history = []
        self.curve.setData([], [])


class SpiroWindow(QMainWindow):
    """Main application window"""

    def __init__(self, config: Optional[Config] = None):
        super().__init__()

        self.setWindowTitle("spirosynth")
        self.setMinimumSize(800, 600)
        self.resize(1400, 950)
        self.setStyleSheet(self._get_stylesheet())

        self.config = config or load_config()
        set_log_level(getattr(self.config, 'log_level', 'INFO'))

        self.state = EngineState()
        self.audio = AudioEngine()
        self.driver = FrameDriver(audio_sink=self.audio)
        self.chords = AmbientChordScheduler()
        self.reporter: Optional[RunReporter] = None
        if self.config.report_generation_enabled:
            self.reporter = RunReporter(get_config_dir())
        self._run_started_at = time.time()
        self._pointer = None

        self._setup_ui()

        self.tick_timer = QTimer(self)
        self.tick_timer.setInterval(self.config.run.tick_interval_ms)
        self.tick_timer.timeout.connect(self._on_tick)

        self.chord_timer = QTimer(self)
        self.chord_timer.setInterval(CHORD_POLL_MS)
        self.chord_timer.timeout.connect(self._on_chord_poll)
        self.chord_timer.start()

        if self.config.synth.sound_enabled:
            self.audio.acquire(self.config.synth)
        self._update_run_ui()

    # ------------------------------------------------------------------ UI

    def _setup_ui(self):
        """Build the user interface"""
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)

        splitter = QSplitter(Qt.Orientation.Vertical)
        self.canvas = TraceCanvas(self.config.canvas.width, self.config.canvas.height)
        self.canvas.pointerMoved.connect(self._on_pointer_moved)
        splitter.addWidget(self.canvas)
        self.pitch_plot = PitchTraceCanvas()
        self.pitch_plot.setMinimumHeight(80)
        splitter.addWidget(self.pitch_plot)
        splitter.setStretchFactor(0, 6)
        splitter.setStretchFactor(1, 1)
        main_layout.addWidget(splitter, stretch=3)

        controls = QWidget()
        controls_layout = QVBoxLayout(controls)
        controls_layout.addWidget(self._create_run_panel())
        controls_layout.addWidget(self._create_pen_panel())
        controls_layout.addWidget(self._create_linkage_panel())
        controls_layout.addWidget(self._create_synth_panel())
        controls_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(controls)
        scroll.setMinimumWidth(360)
        main_layout.addWidget(scroll, stretch=1)

    def _create_run_panel(self) -> QGroupBox:
        group = QGroupBox("Run")
        layout = QVBoxLayout(group)

        row = QHBoxLayout()
        self.start_btn = QPushButton("▶ Run")
        self.start_btn.setCheckable(True)
        self.start_btn.clicked.connect(self._on_start_stop)
        self.play_btn = QPushButton(play_button_text(False))
        self.play_btn.clicked.connect(self._on_play_pause)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self._on_clear)
        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(self._on_full_reset)
        for btn in (self.start_btn, self.play_btn, self.clear_btn, self.reset_btn):
            row.addWidget(btn)
        layout.addLayout(row)

        row = QHBoxLayout()
        random_a = QPushButton("Random A")
        random_a.setToolTip("Random linkage, 6-fold symmetry")
        random_a.clicked.connect(lambda: self._on_randomize('A'))
        random_b = QPushButton("Random B")
        random_b.setToolTip("Random linkage, no symmetry")
        random_b.clicked.connect(lambda: self._on_randomize('B'))
        redraw_btn = QPushButton("Redraw")
        redraw_btn.setToolTip("Clear the canvas and start over with the current linkage")
        redraw_btn.clicked.connect(self._on_redraw)
        export_btn = QPushButton("Export SVG")
        export_btn.clicked.connect(self._on_export_svg)
        save_btn = QPushButton("Save")
        save_btn.clicked.connect(lambda: save_config(self.config))
        for btn in (random_a, random_b, redraw_btn, export_btn, save_btn):
            row.addWidget(btn)
        layout.addLayout(row)

        self.accel_slider = SliderWithLabel("Acceleration", 1, 500,
                                            self.config.run.acceleration, 0)
        self.accel_slider.valueChanged.connect(
            lambda v: setattr(self.config.run, 'acceleration', int(v)))
        layout.addWidget(self.accel_slider)

        self.flag_boxes = {}
        for name, label in (('auto_stop', "Auto stop"), ('auto_evolve', "Auto evolve"),
                            ('mouse_interaction', "Mouse pull"), ('show_arms', "Show arms"),
                            ('particles_enabled', "Particles")):
            box = QCheckBox(label)
            box.setChecked(getattr(self.config.run, name))
            box.toggled.connect(lambda checked, n=name: setattr(self.config.run, n, checked))
            layout.addWidget(box)
            self.flag_boxes[name] = box

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: #0af;")
        layout.addWidget(self.status_label)
        self.note_label = QLabel("")
        layout.addWidget(self.note_label)
        return group

    def _create_pen_panel(self) -> QGroupBox:
        group = QGroupBox("Pen")
        layout = QVBoxLayout(group)

        self.style_combo = QComboBox()
        self.style_combo.addItems([s.name.replace('_', ' ').title() for s in PenStyle])
        self.style_combo.setCurrentIndex(int(self.config.pen.style))
        self.style_combo.currentIndexChanged.connect(
            lambda i: setattr(self.config.pen, 'style', PenStyle(i)))
        layout.addWidget(self.style_combo)

        self.brightness_combo = QComboBox()
        self.brightness_combo.addItems(["x1", "x2", "x3", "/10", "/5"])
        self.brightness_combo.setCurrentIndex(int(self.config.pen.brightness) - 1)
        self.brightness_combo.currentIndexChanged.connect(
            lambda i: setattr(self.config.pen, 'brightness', BrightnessMode(i + 1)))
        layout.addWidget(self.brightness_combo)

        self.symmetry_combo = QComboBox()
        self.symmetry_combo.addItems([str(fold) for fold in SYMMETRY_FOLDS])
        self.symmetry_combo.setCurrentIndex(SYMMETRY_FOLDS.index(self.config.pen.symmetry))
        self.symmetry_combo.currentIndexChanged.connect(
            lambda i: setattr(self.config.pen, 'symmetry', SYMMETRY_FOLDS[i]))
        layout.addWidget(self.symmetry_combo)

        self.width_slider = SliderWithLabel("Line width", 0.1, 5.0, self.config.pen.line_width, 1)
        self.width_slider.valueChanged.connect(lambda v: setattr(self.config.pen, 'line_width', v))
        layout.addWidget(self.width_slider)
        return group

    def _create_linkage_panel(self) -> QGroupBox:
        group = QGroupBox("Linkage")
        layout = QVBoxLayout(group)
        self.linkage_sliders = {}
        specs = [
            ('rotor_rpm', "Rotor rpm", -50, 50, 2),
            ('lrpm', "Left rpm", -50, 50, 2),
            ('rrpm', "Right rpm", -50, 50, 2),
            ('larma', "Left phase", 0, 360, 0),
            ('larm1', "Left arm 1", 20, 200, 0),
            ('larm2', "Left arm 2", 100, 400, 0),
            ('rarm1', "Right arm 1", 20, 200, 0),
            ('rarm2', "Right arm 2", 100, 400, 0),
            ('rarmext', "Extension", 0, 150, 0),
            ('handdist', "Hand dist", 50, 500, 0),
            ('baseoffsx', "Base x", -200, 200, 0),
            ('baseoffsy', "Base y", -500, -100, 0),
        ]
        for name, label, low, high, decimals in specs:
            slider = SliderWithLabel(label, low, high, getattr(self.config.linkage, name), decimals)
            slider.valueChanged.connect(lambda v, n=name: setattr(self.config.linkage, n, v))
            layout.addWidget(slider)
            self.linkage_sliders[name] = slider
        return group

    def _create_synth_panel(self) -> QGroupBox:
        group = QGroupBox("Sound")
        layout = QVBoxLayout(group)
        synth = self.config.synth

        self.sound_checkbox = QCheckBox("Sound")
        self.sound_checkbox.setChecked(synth.sound_enabled)
        self.sound_checkbox.toggled.connect(self._on_sound_toggled)
        layout.addWidget(self.sound_checkbox)

        row = QHBoxLayout()
        self.root_combo = QComboBox()
        self.root_combo.addItems(CHROMATIC_NOTES)
        self.root_combo.setCurrentText(synth.key_root)
        self.root_combo.currentTextChanged.connect(lambda t: self._set_synth('key_root', t))
        self.mode_combo = QComboBox()
        self.mode_combo.addItems(list(SCALES))
        self.mode_combo.setCurrentText(synth.key_mode)
        self.mode_combo.currentTextChanged.connect(lambda t: self._set_synth('key_mode', t))
        self.wave_combo = QComboBox()
        self.wave_combo.addItems(['sine', 'square', 'sawtooth', 'triangle'])
        self.wave_combo.setCurrentText(synth.waveform)
        self.wave_combo.currentTextChanged.connect(lambda t: self._set_synth('waveform', t))
        for combo in (self.root_combo, self.mode_combo, self.wave_combo):
            row.addWidget(combo)
        layout.addLayout(row)

        self.synth_sliders = {}
        specs = [
            ('transpose', "Transpose", -12, 12, 0),
            ('complexity', "Complexity", 0.5, 2.0, 2),
            ('drive', "Drive", 0, 100, 0),
            ('cutoff', "Cutoff", 200, 5000, 0),
            ('resonance', "Resonance", 1, 20, 1),
            ('lfo_freq', "LFO rate", 0, 10, 1),
            ('lfo_amount', "LFO depth", 0, 1, 2),
            ('arp_speed', "Arp speed", 0, 20, 0),
            ('arp_range', "Arp range", 1, 3, 0),
            ('delay', "Delay", 0, 1, 2),
            ('feedback', "Feedback", 0, 0.95, 2),
            ('reverb', "Reverb", 0, 1, 2),
            ('melody_volume', "Melody vol", 0, 1, 2),
            ('chord_volume', "Chord vol", 0, 1, 2),
        ]
        int_fields = {'transpose', 'arp_speed', 'arp_range'}
        for name, label, low, high, decimals in specs:
            slider = SliderWithLabel(label, low, high, getattr(synth, name), decimals)
            slider.valueChanged.connect(
                lambda v, n=name: self._set_synth(n, int(v) if n in int_fields else v))
            layout.addWidget(slider)
            self.synth_sliders[name] = slider
        return group

    def _get_stylesheet(self) -> str:
        """Dark theme"""
        return """
            QMainWindow, QWidget {
                background-color: #3d3d3d;
                color: #e0e0e0;
            }

            QGroupBox {
                border: 1px solid #5d5d5d;
                border-radius: 4px;
                margin-top: 12px;
                padding-top: 6px;
            }

            QGroupBox::title {
                subcontrol-origin: margin;
                left: 8px;
                color: #0af;
            }

            QPushButton {
                background-color: #565d7f;
                color: #ffffff;
                border: none;
                border-radius: 4px;
                padding: 5px 10px;
            }

            QPushButton:hover {
                background-color: #6d6d8f;
            }

            QPushButton:checked {
                background-color: #7f565d;
            }

            QPushButton:disabled {
                background-color: #424242;
                color: #757575;
            }

            QComboBox {
                background-color: #4d4d4d;
                border: 1px solid #5d5d5d;
                padding: 3px;
            }
        """

    # -------------------------------------------------------------- actions

    def _set_synth(self, name: str, value) -> None:
        setattr(self.config.synth, name, value)
        if self.audio.running:
            self.audio.apply_settings(self.config.synth)

    def _on_pointer_moved(self, x: float, y: float) -> None:
        self._pointer = (x, y)

    def _on_sound_toggled(self, checked: bool) -> None:
        self.config.synth.sound_enabled = checked
        if checked:
            self.audio.acquire(self.config.synth)
        else:
            self.audio.release()

    def _begin_run(self) -> None:
        start_new_run(self.state, self.config)
        self._run_started_at = time.time()
        self.tick_timer.start()

    def _on_start_stop(self, checked: bool):
        if checked:
            self._begin_run()
        else:
            stop_run(self.state)
            self.tick_timer.stop()
            self._save_report()
        self._update_run_ui()

    def _on_play_pause(self):
        was_stopped = not self.state.running
        playing = toggle_play(self.state, self.config)
        if playing:
            if was_stopped and self.state.rotation_progress == 0.0:
                self._run_started_at = time.time()
            self.tick_timer.start()
        else:
            self.tick_timer.stop()
        self._update_run_ui()

    def _on_clear(self):
        self.tick_timer.stop()
        clear_state(self.state)
        self.canvas.clear()
        self.pitch_plot.clear_history()
        self._update_run_ui()

    def _on_full_reset(self):
        self.tick_timer.stop()
        full_reset(self.state, self.audio, self.config.synth)
        self.canvas.clear()
        self.pitch_plot.clear_history()
        self._update_run_ui()

    def _on_randomize(self, variant: str):
        self.config = randomized_config(self.config, variant)
        for name, slider in self.linkage_sliders.items():
            slider.blockSignals(True)
            slider.setValue(getattr(self.config.linkage, name))
            slider.blockSignals(False)
        self.symmetry_combo.blockSignals(True)
        self.symmetry_combo.setCurrentIndex(SYMMETRY_FOLDS.index(self.config.pen.symmetry))
        self.symmetry_combo.blockSignals(False)
        # Redraw from scratch with the new linkage
        clear_state(self.state)
        self.canvas.clear()
        self._begin_run()
        self._update_run_ui()

    def _on_redraw(self):
        clear_state(self.state)
        self.canvas.clear()
        self.pitch_plot.clear_history()
        self._begin_run()
        self._update_run_ui()

    def _on_export_svg(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Export SVG", str(Path.home() / f"spirosynth_{int(time.time() * 1000)}.svg"),
            "SVG (*.svg)")
        if not path:
            return
        try:
            self.state.segments.write_svg(path, self.config.canvas.width, self.config.canvas.height)
        except OSError as e:
            log_event("ERROR", "Export", "Failed to write SVG", path=path, error=e)

    def _on_tick(self):
        result: TickResult = self.driver.tick(self.state, self.config, time.monotonic(),
                                              self._pointer)
        self.canvas.draw_segments(result.segments)
        self.canvas.add_particles(result.particles)
        self.canvas.joints = self.state.last_joints if self.config.run.show_arms else None
        self.canvas.update()

        if result.note is not None:
            self.pitch_plot.push(result.note.frequency)
            note = result.note
            self.note_label.setText(f"{note.note}{note.octave}  {round(note.frequency)} Hz  {note.role}")

        if result.run_complete or not self.state.running:
            self.tick_timer.stop()
            self._save_report()
            self._update_run_ui()
        else:
            self.status_label.setText(progress_text(self.state))

    def _on_chord_poll(self):
        if not self.audio.running:
            return
        request = self.chords.poll(self.state.voice, time.monotonic(), self.config.synth)
        if request is not None:
            self.audio.play_chord(request)

    def _update_run_ui(self) -> None:
        ui_state = start_stop_ui_state(self.state.running)
        self.start_btn.blockSignals(True)
        self.start_btn.setChecked(self.state.running)
        self.start_btn.blockSignals(False)
        self.start_btn.setText(ui_state.start_text)
        self.clear_btn.setEnabled(ui_state.clear_enabled)
        self.play_btn.setText(play_button_text(self.state.running))
        self.status_label.setText(f"{ui_state.status_text}  {progress_text(self.state)}")

    def _save_report(self) -> None:
        if self.reporter is None or self.state.frame_count == 0:
            return
        try:
            self.reporter.record(self.state, self._run_started_at)
        except OSError as e:
            log_event("ERROR", "Run", "Failed to save run report", error=e)

    def keyPressEvent(self, event):
        key = event.text().lower()
        if key in KEYBOARD_NOTES and self.config.synth.sound_enabled:
            note, octave = KEYBOARD_NOTES[key]
            if not self.audio.running:
                self.audio.acquire(self.config.synth)
            self.audio.play_chord(build_chord_voicing(note, octave, self.config.synth))
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        """Stop timers and audio before the window goes away"""
        self.tick_timer.stop()
        self.chord_timer.stop()
        if self.state.running:
            stop_run(self.state)
            self._save_report()
        self.audio.release()
        save_config(self.config)
        event.accept()


def main():
    """Main entry point - backup if not launched via run.py"""
    app = QApplication(sys.argv)
    app.setStyle('Fusion')

    window = SpiroWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
