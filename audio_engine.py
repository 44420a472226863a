"""
spirosynth - Audio Engine
Renders the melody voice, ambient chord pads and effects into a
sounddevice output stream.

Signal flow (stereo):
  melody osc -> gain (+LFO) -> bus -> equal-power pan -> out, delay
  chord voices -> chord gain -> low-pass biquad -> drive -> master 0.8 -> out
                                        \\-> reverb (convolver) -> reverb gain -> out
                                        \\-> delay
  delay <-> feedback -> out

All parameter changes go through AudioParam timelines anchored to the
render clock (frames rendered / sample rate).
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from scipy.fft import irfft, rfft
from scipy.signal import lfilter

from audio_params import AudioParam
from config import SynthConfig
from harmonic_mapper import ChordRequest, RampInstruction, MIN_FREQUENCY
from logging_utils import log_event

SAMPLE_RATE = 44100
BLOCK_SIZE = 512
CHANNELS = 2

MASTER_VOLUME = 0.8
REVERB_SECONDS = 3.0              # Procedural impulse length
REVERB_DECAY_SECONDS = 1.5        # exp(-t / decay) envelope on the impulse
REVERB_PARTITION = 512            # Convolver partition (also its latency in samples)
MAX_DELAY_SECONDS = 2.0
MAX_CHORD_VOICES = 64
CHORD_RELEASE_FLOOR = 0.001       # Exponential release target

SETTINGS_TIME_CONSTANT = 0.1
FILTER_TIME_CONSTANT = 0.05

WAVEFORMS = ('sine', 'square', 'sawtooth', 'triangle')

StreamFactory = Callable[[int, int, int, Callable], object]


def _open_output_stream(samplerate: int, blocksize: int, channels: int, callback):
    """Default stream factory: a sounddevice OutputStream."""
    import sounddevice as sd
    return sd.OutputStream(
        samplerate=samplerate,
        blocksize=blocksize,
        channels=channels,
        dtype='float32',
        callback=callback,
    )


def oscillator(phase: np.ndarray, waveform: str) -> np.ndarray:
    """Evaluate a periodic waveform at the given phases (radians)."""
    if waveform == 'square':
        return np.where(np.sin(phase) >= 0, 1.0, -1.0)
    if waveform == 'sawtooth':
        cycle = np.mod(phase / (2 * np.pi), 1.0)
        return 2.0 * cycle - 1.0
    if waveform == 'triangle':
        cycle = np.mod(phase / (2 * np.pi), 1.0)
        return 1.0 - 4.0 * np.abs(cycle - 0.5)
    return np.sin(phase)


def drive_curve(x: np.ndarray, amount: float) -> np.ndarray:
    """Soft-clip waveshaper: ((3+k) * x * 20deg) / (pi + k|x|)."""
    k = max(0.0, float(amount))
    x = np.clip(x, -1.0, 1.0)
    return ((3 + k) * x * 20 * (math.pi / 180)) / (math.pi + k * np.abs(x))


def lowpass_coefficients(cutoff: float, q: float, sample_rate: int):
    """Biquad low-pass (b, a), normalized so a[0] == 1."""
    cutoff = max(10.0, min(float(cutoff), sample_rate * 0.45))
    q = max(0.1, float(q))
    w0 = 2 * math.pi * cutoff / sample_rate
    cos_w0 = math.cos(w0)
    alpha = math.sin(w0) / (2 * q)
    a0 = 1 + alpha
    b = np.array([(1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2]) / a0
    a = np.array([1.0, -2 * cos_w0 / a0, (1 - alpha) / a0])
    return b, a


def equal_power_pan(pan: np.ndarray):
    angle = (np.clip(pan, -1.0, 1.0) + 1.0) * (math.pi / 4)
    return np.cos(angle), np.sin(angle)


def procedural_impulse(sample_rate: int, rng: np.random.Generator,
                       seconds: float = REVERB_SECONDS,
                       decay: float = REVERB_DECAY_SECONDS) -> np.ndarray:
    """Stereo noise burst with an exponential decay, shape (length, 2)."""
    length = int(sample_rate * seconds)
    envelope = np.exp(-np.arange(length) / (sample_rate * decay))
    noise = rng.uniform(-1.0, 1.0, size=(length, CHANNELS))
    return noise * envelope[:, None]


class PartitionedConvolver:
    """Streaming convolution with a long impulse (uniform partitioned overlap-save).

    The impulse is split into `partition`-sized pieces whose spectra are kept
    in memory; each full input chunk costs one FFT, one inverse FFT and a
    multiply-accumulate over the partitions. Output lags the input by exactly
    `partition` samples, and any block size may be fed.
    """

    def __init__(self, impulse: np.ndarray, partition: int = REVERB_PARTITION):
        self.partition = max(1, int(partition))
        size = self.partition
        channels = impulse.shape[1]
        count = max(1, -(-len(impulse) // size))
        padded = np.zeros((count * size, channels))
        padded[:len(impulse)] = impulse
        pieces = padded.reshape(count, size, channels)
        self._spectra = rfft(pieces, n=2 * size, axis=1)
        self._history = np.zeros_like(self._spectra)
        self.reset()

    @property
    def partitions(self) -> int:
        return len(self._spectra)

    def reset(self) -> None:
        size = self.partition
        channels = self._spectra.shape[2]
        self._history.fill(0.0)
        self._previous = np.zeros((size, channels))
        self._pending = np.zeros((0, channels))
        self._output = np.zeros((size, channels))
        self._silent_chunks = self.partitions + 1

    def _process_chunk(self, chunk: np.ndarray) -> np.ndarray:
        size = self.partition
        if np.any(chunk):
            self._silent_chunks = 0
        else:
            self._silent_chunks += 1
        if self._silent_chunks > self.partitions:
            # Every partition would multiply silence
            if self._silent_chunks == self.partitions + 1:
                self._history.fill(0.0)
            self._previous = chunk
            return np.zeros_like(chunk)

        spectrum = rfft(np.concatenate((self._previous, chunk)), axis=0)
        self._previous = chunk
        self._history = np.roll(self._history, 1, axis=0)
        self._history[0] = spectrum
        mixed = np.sum(self._history * self._spectra, axis=0)
        return irfft(mixed, n=2 * size, axis=0)[size:]

    def process(self, block: np.ndarray) -> np.ndarray:
        frames = len(block)
        size = self.partition
        pending = np.concatenate((self._pending, block))
        produced = [self._output]
        full = len(pending) // size
        for index in range(full):
            produced.append(self._process_chunk(pending[index * size:(index + 1) * size]))
        self._pending = pending[full * size:]
        output = np.concatenate(produced)
        self._output = output[frames:]
        return output[:frames]


@dataclass
class ChordVoice:
    """One oscillator layer of a chord voicing"""
    frequency: float
    waveform: str
    pan: float
    gain: AudioParam
    end_time: float
    phase: float = 0.0


class AudioEngine:
    """Output synthesizer with an explicit acquire/release lifecycle."""

    def __init__(self, sample_rate: int = SAMPLE_RATE, block_size: int = BLOCK_SIZE,
                 stream_factory: Optional[StreamFactory] = None,
                 seed: Optional[int] = None):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.stream_factory = stream_factory or _open_output_stream
        self._rng = np.random.default_rng(seed)

        self.lock = threading.Lock()
        self.stream = None
        self._running = False
        self._settings = SynthConfig()
        self._frames_rendered = 0

        self._build_graph(self._settings)
        self._reset_session_stats()

    # ------------------------------------------------------------------ graph

    def _build_graph(self, synth: SynthConfig) -> None:
        self.melody_freq = AudioParam('melody_freq', 440.0)
        self.melody_gain = AudioParam('melody_gain', 0.0)
        self.melody_pan = AudioParam('melody_pan', 0.0)
        self.melody_bus = AudioParam('melody_bus', synth.melody_volume)
        self.lfo_freq = AudioParam('lfo_freq', synth.lfo_freq)
        self.lfo_amount = AudioParam('lfo_amount', synth.lfo_amount)
        self.delay_time = AudioParam('delay_time', synth.delay)
        self.feedback = AudioParam('feedback', synth.feedback)
        self.reverb_mix = AudioParam('reverb_mix', synth.reverb)
        self.chord_gain = AudioParam('chord_gain', synth.chord_volume)
        self.cutoff = AudioParam('cutoff', synth.cutoff)
        self.resonance = AudioParam('resonance', synth.resonance)

        self.waveform = synth.waveform if synth.waveform in WAVEFORMS else 'sine'
        self.drive = synth.drive

        self._melody_phase = 0.0
        self._lfo_phase = 0.0
        self.voices: List[ChordVoice] = []

        self._filter_zi = np.zeros((2, CHANNELS))
        delay_len = int(MAX_DELAY_SECONDS * self.sample_rate) + self.block_size
        self._delay_buffer = np.zeros((delay_len, CHANNELS))
        self._delay_write = 0

        self._reverb = PartitionedConvolver(procedural_impulse(self.sample_rate, self._rng))

    def _params(self) -> List[AudioParam]:
        return [self.melody_freq, self.melody_gain, self.melody_pan, self.melody_bus,
                self.lfo_freq, self.lfo_amount, self.delay_time, self.feedback,
                self.reverb_mix, self.chord_gain, self.cutoff, self.resonance]

    # -------------------------------------------------------------- lifecycle

    @property
    def running(self) -> bool:
        return self._running and self.stream is not None

    @property
    def current_time(self) -> float:
        return self._frames_rendered / self.sample_rate

    def acquire(self, synth: Optional[SynthConfig] = None) -> bool:
        """Build the graph and open the output stream."""
        if self.running:
            return True
        if synth is not None:
            self._settings = synth

        with self.lock:
            self._build_graph(self._settings)
        self._reset_session_stats()

        try:
            self.stream = self.stream_factory(
                self.sample_rate, self.block_size, CHANNELS, self._audio_callback)
            self.stream.start()
            self._running = True
            log_event("INFO", "Audio", "Output stream started",
                      sample_rate=self.sample_rate, block=self.block_size,
                      waveform=self.waveform)
        except Exception as e:
            log_event("ERROR", "Audio", "Failed to open output stream", error=e)
            self._running = False
            self.stream = None
        return self._running

    def release(self) -> None:
        """Tear down in a fixed order so nothing keeps sounding."""
        with self.lock:
            now = self.current_time
            # 1. Silence the feedback loop
            self.feedback.cancel_scheduled_values(0.0)
            self.feedback.set_value_at_time(0.0, now)
            # 2. Cancel and zero the melody gain
            self.melody_gain.cancel_scheduled_values(0.0)
            self.melody_gain.set_value_at_time(0.0, now)
            # 3. Drop voices and effect state
            self.voices = []
            self._delay_buffer.fill(0.0)
            self._reverb.reset()
            self._filter_zi.fill(0.0)

        self._running = False
        stream, self.stream = self.stream, None
        # 4. Stop and close the stream
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                log_event("WARN", "Audio", "Error while closing output stream", error=e)
        self._log_shutdown_summary()
        log_event("INFO", "Audio", "Stopped")

    def reset(self, synth: Optional[SynthConfig] = None) -> bool:
        self.release()
        return self.acquire(synth)

    def reinitialize(self) -> bool:
        log_event("WARN", "Audio", "Output not running, reinitializing")
        return self.reset()

    # -------------------------------------------------------------- automation

    def apply_ramp(self, ramp: RampInstruction) -> None:
        """Schedule frequency/pan/gain ramps from their current values."""
        duration = max(0.001, ramp.ramp_ms / 1000.0)
        with self.lock:
            now = self.current_time
            self.melody_freq.ramp_to(max(MIN_FREQUENCY, ramp.frequency), now, duration,
                                     exponential=True)
            self.melody_pan.ramp_to(max(-1.0, min(1.0, ramp.pan)), now, duration)
            self.melody_gain.ramp_to(max(0.0, ramp.gain), now, duration)

    def apply_settings(self, synth: SynthConfig) -> None:
        """Glide effect and bus settings toward a new SynthConfig."""
        self._settings = synth
        with self.lock:
            now = self.current_time
            tc = SETTINGS_TIME_CONSTANT
            self.delay_time.set_target_at_time(synth.delay, now, tc)
            self.feedback.set_target_at_time(synth.feedback, now, tc)
            self.reverb_mix.set_target_at_time(synth.reverb, now, tc)
            self.lfo_freq.set_target_at_time(synth.lfo_freq, now, tc)
            self.lfo_amount.set_target_at_time(synth.lfo_amount, now, tc)
            self.melody_bus.set_target_at_time(synth.melody_volume, now, tc)
            self.chord_gain.set_target_at_time(synth.chord_volume, now, tc)
            self.cutoff.set_target_at_time(synth.cutoff, now, FILTER_TIME_CONSTANT)
            self.resonance.set_target_at_time(synth.resonance, now, FILTER_TIME_CONSTANT)
            self.waveform = synth.waveform if synth.waveform in WAVEFORMS else 'sine'
            self.drive = synth.drive

    def play_chord(self, request: ChordRequest) -> bool:
        """Start every layer of a chord voicing with its envelope."""
        if not self.running:
            return False
        with self.lock:
            now = self.current_time
            attack_end = now + request.attack
            sustain_end = attack_end + request.sustain
            end = sustain_end + request.release
            for layer in request.layers:
                gain = AudioParam('chord_layer', 0.0)
                gain.set_value_at_time(0.0, now)
                gain.linear_ramp_to_value_at_time(layer.gain, attack_end)
                gain.set_value_at_time(layer.gain, sustain_end)
                gain.exponential_ramp_to_value_at_time(CHORD_RELEASE_FLOOR, end)
                self.voices.append(ChordVoice(
                    frequency=layer.frequency * math.pow(2, layer.detune_cents / 1200),
                    waveform=layer.waveform,
                    pan=layer.pan,
                    gain=gain,
                    end_time=end,
                ))
            if len(self.voices) > MAX_CHORD_VOICES:
                self.voices = self.voices[-MAX_CHORD_VOICES:]
        log_event("DEBUG", "Audio", "Chord started", note=request.note,
                  octave=request.octave, layers=len(request.layers))
        return True

    # ---------------------------------------------------------------- render

    def render(self, frames: int) -> np.ndarray:
        """Render the next block, shape (frames, 2) float32."""
        with self.lock:
            return self._render_locked(frames)

    def _render_locked(self, frames: int) -> np.ndarray:
        if frames <= 0:
            return np.zeros((0, CHANNELS), dtype=np.float32)
        sr = self.sample_rate
        start = self.current_time
        t = start + np.arange(frames) / sr
        for param in self._params():
            param.prune(start)

        # Melody voice
        freq = self.melody_freq.values(t)
        phase_inc = 2 * np.pi * freq / sr
        phases = self._melody_phase + np.cumsum(phase_inc)
        self._melody_phase = float(phases[-1] % (2 * np.pi))
        lfo_inc = 2 * np.pi * self.lfo_freq.values(t) / sr
        lfo_phases = self._lfo_phase + np.cumsum(lfo_inc)
        self._lfo_phase = float(lfo_phases[-1] % (2 * np.pi))

        gain = self.melody_gain.values(t) + self.lfo_amount.values(t) * np.sin(lfo_phases)
        melody = oscillator(phases, self.waveform) * gain * self.melody_bus.values(t)
        left, right = equal_power_pan(self.melody_pan.values(t))
        melody_st = np.column_stack((melody * left, melody * right))

        # Chord bus
        chords = np.zeros((frames, CHANNELS))
        alive = []
        for voice in self.voices:
            inc = 2 * np.pi * voice.frequency / sr
            v_phases = voice.phase + inc * np.arange(1, frames + 1)
            voice.phase = float(v_phases[-1] % (2 * np.pi))
            signal = oscillator(v_phases, voice.waveform) * voice.gain.values(t)
            pan_l, pan_r = equal_power_pan(np.array([voice.pan]))
            chords[:, 0] += signal * pan_l[0]
            chords[:, 1] += signal * pan_r[0]
            if voice.end_time > start + frames / sr:
                alive.append(voice)
        self.voices = alive
        chords *= self.chord_gain.values(t)[:, None]

        b, a = lowpass_coefficients(self.cutoff.value_at(start),
                                    self.resonance.value_at(start), sr)
        filtered, self._filter_zi = lfilter(b, a, chords, axis=0, zi=self._filter_zi)
        master = drive_curve(filtered, self.drive) * MASTER_VOLUME

        # Reverb on the filtered chord bus
        reverb = self._reverb.process(filtered) * self.reverb_mix.values(t)[:, None]

        delayed = self._run_delay(melody_st + filtered, start)

        out = melody_st + master + reverb + delayed
        self._frames_rendered += frames
        self._update_session_stats(out)
        return np.clip(out, -1.0, 1.0).astype(np.float32)

    def _run_delay(self, send: np.ndarray, start: float) -> np.ndarray:
        """Feedback delay line; the delay is never shorter than one block."""
        frames = len(send)
        size = len(self._delay_buffer)
        delay_samples = int(round(self.delay_time.value_at(start) * self.sample_rate))
        delay_samples = max(frames, min(size - frames, delay_samples))
        fb = self.feedback.value_at(start)

        write_idx = (self._delay_write + np.arange(frames)) % size
        read_idx = (write_idx - delay_samples) % size
        out = self._delay_buffer[read_idx]
        self._delay_buffer[write_idx] = send + fb * out
        self._delay_write = (self._delay_write + frames) % size
        return out

    def _audio_callback(self, outdata, frames, time_info, status):
        """sounddevice callback - render straight into outdata"""
        if status:
            self._session_status_count += 1
        try:
            outdata[:] = self.render(frames)
        except Exception as e:
            outdata.fill(0)
            self._running = False
            log_event("ERROR", "Audio", "Render failed", error=e)

    # ------------------------------------------------------------- reporting

    def _reset_session_stats(self) -> None:
        self._session_started_at = time.time()
        self._session_blocks = 0
        self._session_peak = 0.0
        self._session_status_count = 0

    def _update_session_stats(self, block: np.ndarray) -> None:
        self._session_blocks += 1
        if block.size:
            self._session_peak = max(self._session_peak, float(np.max(np.abs(block))))

    def _log_shutdown_summary(self) -> None:
        if self._session_blocks <= 0:
            return
        elapsed_s = max(0.0, time.time() - self._session_started_at)
        log_event(
            "INFO",
            "Audio",
            "Shutdown levels summary",
            blocks=self._session_blocks,
            seconds=f"{elapsed_s:.1f}",
            peak=f"{self._session_peak:.4f}",
            status_flags=self._session_status_count,
        )
