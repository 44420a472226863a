"""
spirosynth - Harmonic Mapper
Turns the traced color + distance from center into a note, and drives the
ambient chord timer.

Per sub-step:
  hue -> chromatic pitch class -> quantized to the active key
  distance from center -> octave + voice role (solo near center, harmony outside)
  optional arpeggiator overrides the note on a fixed scale-degree pattern
  speed, alpha, register and role -> gain

The ambient chord scheduler runs off the wall clock and only shares the
VoiceState timestamps with the stepper.
"""

import math
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from config import SynthConfig
from logging_utils import log_event
from style_engine import StrokeStyle

CHROMATIC_NOTES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

# One octave starting at middle C (octave 4)
NOTE_FREQUENCIES: Dict[str, float] = {
    'C': 261.63, 'C#': 277.18, 'D': 293.66, 'D#': 311.13,
    'E': 329.63, 'F': 349.23, 'F#': 369.99, 'G': 392.00,
    'G#': 415.30, 'A': 440.00, 'A#': 466.16, 'B': 493.88,
}

SCALES: Dict[str, List[int]] = {
    'chromatic': [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
    'major': [0, 2, 4, 5, 7, 9, 11],
    'minor': [0, 2, 3, 5, 7, 8, 10],
    'pentatonic': [0, 3, 5, 7, 10],
    'blues': [0, 3, 5, 6, 7, 10],
}

ARP_PATTERN = [0, 2, 4, 2, 4, 6, 4, 2]
HARMONY_INTERVALS = [0, 4, 7]     # root, major third, fifth

MAX_DISTANCE = 1200.0
SOLO_THRESHOLD = 0.6
SOLO_GAIN = 1.0
HARMONY_GAIN = 0.4
IDLE_GAIN = 0.03                  # Gain before a previous point exists
MAX_SPEED_GAIN = 0.25
SPEED_DIVISOR = 50.0
MIN_FREQUENCY = 20.0

CHORD_INTERVAL_RANGE = (6.0, 8.0)

CHORD_TYPES: Dict[str, List[int]] = {
    'major': [0, 4, 7],
    'minor': [0, 3, 7],
    'sus2': [0, 2, 7],
    'sus4': [0, 5, 7],
    'maj7': [0, 4, 7, 11],
    'min7': [0, 3, 7, 10],
    'dom7': [0, 4, 7, 10],
    'add9': [0, 4, 7, 14],
    'min9': [0, 3, 7, 10, 14],
}

NOTE_CHORD_TYPES: Dict[str, str] = {
    'C': 'maj7', 'C#': 'dom7', 'D': 'sus2', 'D#': 'min7',
    'E': 'min9', 'F': 'major', 'F#': 'sus4', 'G': 'add9',
    'G#': 'min7', 'A': 'min7', 'A#': 'dom7', 'B': 'minor',
}

# Chord envelope (seconds)
CHORD_ATTACK = 0.5
CHORD_SUSTAIN = 1.0
CHORD_RELEASE = 1.5

# Computer keyboard -> (note, octave)
KEYBOARD_NOTES: Dict[str, Tuple[str, int]] = {
    'a': ('C', 3), 's': ('D', 3), 'd': ('E', 3), 'f': ('F', 3),
    'g': ('G', 3), 'h': ('A', 3), 'j': ('B', 3), 'k': ('C', 4),
    'l': ('D', 4), ';': ('E', 4), "'": ('F', 4),
    'w': ('C#', 3), 'e': ('D#', 3), 't': ('F#', 3), 'y': ('G#', 3),
    'u': ('A#', 3), 'o': ('C#', 4), 'p': ('D#', 4), '[': ('F#', 4),
    ']': ('G#', 4),
}


@dataclass(frozen=True)
class MusicalKey:
    root: str = 'C'
    mode: str = 'major'

    @property
    def root_index(self) -> int:
        return CHROMATIC_NOTES.index(self.root)

    @property
    def scale(self) -> List[int]:
        return SCALES.get(self.mode, SCALES['major'])

    @classmethod
    def from_synth(cls, synth: SynthConfig) -> "MusicalKey":
        root = synth.key_root if synth.key_root in CHROMATIC_NOTES else 'C'
        mode = synth.key_mode if synth.key_mode in SCALES else 'major'
        return cls(root, mode)


@dataclass
class VoiceState:
    """Arpeggiator position and ambient chord timing"""
    arp_index: int = 0
    arp_tick: int = 0
    arp_pass: int = 0             # Completed passes over ARP_PATTERN
    last_chord_time: float = 0.0
    next_chord_interval: float = 7.0


@dataclass(frozen=True)
class RampInstruction:
    """Target synthesis values, reached over ramp_ms on the audio clock"""
    frequency: float
    pan: float
    gain: float
    ramp_ms: float = 10.0


@dataclass(frozen=True)
class NoteEvent:
    note: str
    octave: int
    frequency: float
    pan: float
    gain: float
    role: str                     # 'solo' or 'harmony'

    def to_ramp(self, ramp_ms: float) -> RampInstruction:
        return RampInstruction(self.frequency, self.pan, self.gain, ramp_ms)


@dataclass(frozen=True)
class ChordLayer:
    frequency: float
    gain: float
    detune_cents: float = 0.0
    waveform: str = 'sine'
    pan: float = 0.0


@dataclass(frozen=True)
class ChordRequest:
    note: str
    octave: int
    layers: Tuple[ChordLayer, ...] = field(default_factory=tuple)
    attack: float = CHORD_ATTACK
    sustain: float = CHORD_SUSTAIN
    release: float = CHORD_RELEASE

    @property
    def duration(self) -> float:
        return self.attack + self.sustain + self.release


def rgb_to_hue(r: int, g: int, b: int) -> float:
    """Hue in [0, 1) for 0-255 channels."""
    rf, gf, bf = r / 255, g / 255, b / 255
    high = max(rf, gf, bf)
    low = min(rf, gf, bf)
    if high == low:
        return 0.0
    d = high - low
    if high == rf:
        h = (gf - bf) / d + (6 if gf < bf else 0)
    elif high == gf:
        h = (bf - rf) / d + 2
    else:
        h = (rf - gf) / d + 4
    return h / 6


def hue_to_pitch_class(hue: float) -> int:
    return math.floor(hue * 12) % 12


def quantize_to_key(note_index: int, key: MusicalKey) -> int:
    """Snap a chromatic pitch class to the nearest degree of the key.

    Ties keep the earlier scale degree.
    """
    root = key.root_index
    from_root = (note_index - root + 12) % 12
    closest = key.scale[0]
    for degree in key.scale[1:]:
        if abs(degree - from_root) < abs(closest - from_root):
            closest = degree
    return (root + closest) % 12


def note_frequency(note: str, octave: int, transpose: float = 0.0) -> float:
    return NOTE_FREQUENCIES[note] * math.pow(2, octave - 4 + transpose / 12)


def spectral_gain(octave: int) -> float:
    """Favor octave 4; extreme registers fade."""
    distance = abs(octave - 4)
    return math.exp(-(distance ** 2) / 2.5)


def advance_arpeggiator(voice: VoiceState, speed: int) -> None:
    voice.arp_tick += 1
    if voice.arp_tick >= 21 - speed:
        voice.arp_tick = 0
        voice.arp_index = (voice.arp_index + 1) % len(ARP_PATTERN)
        if voice.arp_index == 0:
            voice.arp_pass += 1


def arpeggio_note(voice: VoiceState, key: MusicalKey) -> int:
    degree = ARP_PATTERN[voice.arp_index]
    offset = key.scale[degree % len(key.scale)]
    return (key.root_index + offset) % 12


class HarmonicMapper:
    """Maps a traced point to a NoteEvent."""

    def __init__(self, max_distance: float = MAX_DISTANCE,
                 solo_threshold: float = SOLO_THRESHOLD):
        self.max_distance = max_distance
        self.solo_threshold = solo_threshold

    def map_point(self, style: StrokeStyle,
                  x: float, y: float, radius: float,
                  previous: Optional[Tuple[float, float]],
                  voice: VoiceState,
                  synth: SynthConfig,
                  canvas_width: float) -> NoteEvent:
        key = MusicalKey.from_synth(synth)

        raw_index = hue_to_pitch_class(rgb_to_hue(style.r, style.g, style.b))
        quantized = quantize_to_key(raw_index, key)
        note = CHROMATIC_NOTES[quantized]

        nd_factor = max(0.0, min(1.0, 1 - radius / self.max_distance))
        is_solo = nd_factor > self.solo_threshold
        octave = 3 + min(1, math.floor(nd_factor * 2))

        if synth.arp_speed > 0:
            advance_arpeggiator(voice, synth.arp_speed)
            note = CHROMATIC_NOTES[arpeggio_note(voice, key)]
            octave += voice.arp_pass % max(1, synth.arp_range)

        if not is_solo:
            slot = max(0, min(2, math.floor((x / canvas_width) * 3)))
            note = CHROMATIC_NOTES[(quantized + HARMONY_INTERVALS[slot]) % 12]
            octave = max(3, octave - 1)

        frequency = note_frequency(note, octave, synth.transpose or 0)

        center_x = canvas_width / 2
        pan = max(-1.0, min(1.0, (x - center_x) / center_x))

        volume = IDLE_GAIN
        if previous is not None:
            speed = math.hypot(x - previous[0], y - previous[1])
            volume = min(MAX_SPEED_GAIN, speed / SPEED_DIVISOR)

        role_gain = SOLO_GAIN if is_solo else HARMONY_GAIN
        gain = volume * style.a * (0.2 + spectral_gain(octave) * 0.8) * role_gain
        if not style.visible:
            gain = 0.0

        return NoteEvent(
            note=note,
            octave=octave,
            frequency=max(MIN_FREQUENCY, frequency),
            pan=pan,
            gain=max(0.0, gain),
            role='solo' if is_solo else 'harmony',
        )


def build_chord_voicing(note: str, octave: int, synth: SynthConfig) -> ChordRequest:
    """Layered pad voicing: sub-octave, detuned chord tones and a shimmer."""
    intervals = CHORD_TYPES[NOTE_CHORD_TYPES.get(note, 'major')]
    root = NOTE_FREQUENCIES[note] * math.pow(2, min(octave, 3) - 4 + (synth.transpose or 0) / 12)
    complexity = synth.complexity or 1.0
    tone_freqs = [root * math.pow(2, (semis * complexity) / 12) for semis in intervals]

    layers = [ChordLayer(root * 0.5, 0.08, 0.0, 'triangle', 0.0)]
    count = len(tone_freqs)
    for i, freq in enumerate(tone_freqs):
        pan = (-0.5 if i % 2 == 0 else 0.5) * (i / count)
        vol = 0.15 / count
        layers.append(ChordLayer(freq, vol, 5.0, 'sine', pan))
        layers.append(ChordLayer(freq, vol, -5.0, 'sine', -pan))
        if i == 0:
            layers.append(ChordLayer(freq * 2, 0.02, 10.0, 'sine', 0.2))
    return ChordRequest(note, octave, tuple(layers))


class AmbientChordScheduler:
    """Wall-clock chord trigger (every 6-8 s, re-drawn after each fire)."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def draw_interval(self) -> float:
        low, high = CHORD_INTERVAL_RANGE
        return low + self.rng.random() * (high - low)

    def poll(self, voice: VoiceState, now: float, synth: SynthConfig) -> Optional[ChordRequest]:
        if not synth.sound_enabled:
            return None
        if now - voice.last_chord_time < voice.next_chord_interval:
            return None

        key = MusicalKey.from_synth(synth)
        degree = key.scale[math.floor(self.rng.random() * len(key.scale))]
        note = CHROMATIC_NOTES[(key.root_index + degree) % 12]
        octave = 3 if self.rng.random() > 0.5 else 4

        voice.last_chord_time = now
        voice.next_chord_interval = self.draw_interval()
        log_event("DEBUG", "Chords", "Ambient chord", note=note, octave=octave,
                  next_in=f"{voice.next_chord_interval:.2f}s")
        return build_chord_voicing(note, octave, synth)
