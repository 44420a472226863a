# spirosynth Configuration
# All default values and constants

import random
from dataclasses import dataclass, field, is_dataclass, replace
from enum import IntEnum
from typing import Dict, Tuple

from logging_utils import log_event


CURRENT_CONFIG_VERSION = 1

SYMMETRY_FOLDS = (1, 2, 4, 6, 8, 12)
MAX_ACCELERATION = 500


class PenStyle(IntEnum):
    """Pen color/alpha functions - codes match the persisted/legacy values"""
    RAINBOW = 0           # Phase-shifted sine triple on both hands
    BW = 1                # White with alpha oscillation
    KALEIDOSCOPE = 2      # Hue cycling on lrot + rrot
    BLUE = 3              # Deep space blues
    GOLDEN = 4            # Yellow -> orange gradient
    FRAGMENTED = 5        # Rainbow with noise-gated breaks (also gates audio)
    HOLOGRAPHIC = 6       # Cyan/magenta/white with depth alpha
    SILK = 7              # Ultra-thin holographic
    SILK_INVERSE = 8      # Inverted (warm/gold) silk


class BrightnessMode(IntEnum):
    X1 = 1
    X2 = 2
    X3 = 3
    DIV10 = 4             # alpha / 10
    DIV5 = 5              # alpha / 15 (legacy label kept)


@dataclass
class LinkageConfig:
    """Rotor + two hands, each ending in a two-segment arm"""
    rotor_rpm: float = 4.0            # Outer rotation of the resolved point
    lrpm: float = 2.0                 # Left hand rpm
    rrpm: float = -3.0                # Right hand rpm
    larma: float = 0.0                # Left arm phase offset (degrees)
    larm1: float = 105.0              # Left first arm length
    larm2: float = 316.0              # Left second arm length
    rarm1: float = 95.0               # Right first arm length
    rarm2: float = 371.0              # Right second arm length
    rarmext: float = 53.0             # Pen extension beyond the right second arm
    handdist: float = 351.0           # Distance between the two hands
    baseoffsx: float = 0.0            # Hands base offset from canvas center (x)
    baseoffsy: float = -385.0         # Hands base offset from canvas center (y)


@dataclass
class RunConfig:
    """Per-run stepping behaviour"""
    acceleration: int = 73            # Sub-steps per tick (capped at MAX_ACCELERATION)
    auto_evolve: bool = False         # Slowly drift arm lengths / hand distance
    auto_stop: bool = True            # Stop when the trace returns to its start
    mouse_interaction: bool = False   # Pull the displayed point toward the pointer
    show_arms: bool = False           # Capture joint positions for inspection
    particles_enabled: bool = False   # Emit particle events alongside segments
    tick_interval_ms: int = 16        # GUI scheduler interval (~60 fps)


@dataclass
class PenConfig:
    """Pen style and replication"""
    style: PenStyle = PenStyle.RAINBOW
    brightness: BrightnessMode = BrightnessMode.X1
    line_width: float = 1.0           # Width multiplier (0.1-5.0)
    symmetry: int = 1                 # Fold count, one of SYMMETRY_FOLDS


@dataclass
class SynthConfig:
    """Sonification parameters"""
    sound_enabled: bool = False
    waveform: str = 'sine'            # sine, square, sawtooth, triangle
    key_root: str = 'C'               # Root note of the active key
    key_mode: str = 'major'           # chromatic, major, minor, pentatonic, blues
    transpose: int = 0                # -12 to +12 semitones
    complexity: float = 1.0           # 0.5 to 2.0 (chord interval spread)
    drive: float = 0.0                # 0 to 100 (saturation)
    cutoff: float = 800.0             # 200 - 5000 Hz
    resonance: float = 1.0            # 1 - 20 (filter Q)
    lfo_freq: float = 2.0             # 0-10 Hz
    lfo_amount: float = 0.0           # 0-1 (pulse intensity)
    arp_speed: int = 0                # 0-20 (0 = off)
    arp_range: int = 1                # 1-3 octaves
    delay: float = 0.3                # seconds
    feedback: float = 0.4             # 0-1
    reverb: float = 0.5               # 0-1
    melody_volume: float = 0.3        # 0-1 (continuous voice)
    chord_volume: float = 0.5         # 0-1 (ambient chord pad)
    ramp_ms: float = 10.0             # Parameter ramp length for per-step updates


@dataclass
class CanvasConfig:
    width: int = 2400
    height: int = 1800


@dataclass
class Config:
    """Master configuration"""
    version: int = 1                  # Schema version for persisted configs
    linkage: LinkageConfig = field(default_factory=LinkageConfig)
    run: RunConfig = field(default_factory=RunConfig)
    pen: PenConfig = field(default_factory=PenConfig)
    synth: SynthConfig = field(default_factory=SynthConfig)
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)
    report_generation_enabled: bool = True


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored; IntEnum fields are coerced when possible."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current) and isinstance(value, dict):
            apply_dict_to_dataclass(current, value)
            continue

        if isinstance(current, IntEnum):
            try:
                setattr(target, key, current.__class__(value))
            except ValueError:
                log_event("WARN", "Config", "Could not convert value, keeping default",
                          key=key, enum=current.__class__.__name__, value=value)
            continue

        setattr(target, key, value)


def _clamped(value, low, high, default):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, value))


def migrate_config(config: Config, loaded_version) -> None:
    """Upgrade older config structures to the current schema.
    Fills missing values with defaults, clamps ranges and bumps version."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except (TypeError, ValueError):
        version = 0

    if version < 1:
        # Flat parameter files carried synthScale, which can hold modes we never shipped
        if config.synth.key_mode not in ('chromatic', 'major', 'minor', 'pentatonic', 'blues'):
            config.synth.key_mode = 'major'

    defaults = Config()
    for section_name in ('linkage', 'run', 'pen', 'synth'):
        section = getattr(config, section_name)
        default_section = getattr(defaults, section_name)
        for key, default_value in vars(default_section).items():
            if getattr(section, key, None) is None:
                setattr(section, key, default_value)

    config.run.acceleration = int(_clamped(config.run.acceleration, 1, MAX_ACCELERATION, 73))

    try:
        sym = int(config.pen.symmetry)
    except (TypeError, ValueError):
        sym = 1
    if sym not in SYMMETRY_FOLDS:
        # Snap to the nearest supported fold
        sym = min(SYMMETRY_FOLDS, key=lambda fold: abs(fold - sym))
    config.pen.symmetry = sym

    config.pen.line_width = _clamped(config.pen.line_width, 0.1, 5.0, 1.0)
    config.synth.transpose = int(_clamped(config.synth.transpose, -12, 12, 0))
    config.synth.arp_speed = int(_clamped(config.synth.arp_speed, 0, 20, 0))
    config.synth.complexity = _clamped(config.synth.complexity, 0.5, 2.0, 1.0)
    config.synth.feedback = _clamped(config.synth.feedback, 0.0, 0.95, 0.4)

    config.version = CURRENT_CONFIG_VERSION


# Flat parameter names (unversioned files) -> (section, field)
LEGACY_KEY_MAP: Dict[str, Tuple[str, str]] = {
    'rotorRPM': ('linkage', 'rotor_rpm'),
    'lrpm': ('linkage', 'lrpm'),
    'rrpm': ('linkage', 'rrpm'),
    'larma': ('linkage', 'larma'),
    'larm1': ('linkage', 'larm1'),
    'larm2': ('linkage', 'larm2'),
    'rarm1': ('linkage', 'rarm1'),
    'rarm2': ('linkage', 'rarm2'),
    'rarmext': ('linkage', 'rarmext'),
    'handdist': ('linkage', 'handdist'),
    'baseoffsx': ('linkage', 'baseoffsx'),
    'baseoffsy': ('linkage', 'baseoffsy'),
    'acceleration': ('run', 'acceleration'),
    'autoEvolve': ('run', 'auto_evolve'),
    'autoStop': ('run', 'auto_stop'),
    'mouseInteraction': ('run', 'mouse_interaction'),
    'showArms': ('run', 'show_arms'),
    'particlesEnabled': ('run', 'particles_enabled'),
    'penStyle': ('pen', 'style'),
    'brightnessMode': ('pen', 'brightness'),
    'lineWidth': ('pen', 'line_width'),
    'symmetry': ('pen', 'symmetry'),
    'soundEnabled': ('synth', 'sound_enabled'),
    'synthWaveform': ('synth', 'waveform'),
    'synthScale': ('synth', 'key_mode'),
    'synthTranspose': ('synth', 'transpose'),
    'synthComplexity': ('synth', 'complexity'),
    'synthDrive': ('synth', 'drive'),
    'synthCutoff': ('synth', 'cutoff'),
    'synthResonance': ('synth', 'resonance'),
    'synthLFOFreq': ('synth', 'lfo_freq'),
    'synthLFOAmount': ('synth', 'lfo_amount'),
    'synthArpSpeed': ('synth', 'arp_speed'),
    'synthArpRange': ('synth', 'arp_range'),
    'synthDelay': ('synth', 'delay'),
    'synthFeedback': ('synth', 'feedback'),
    'synthReverb': ('synth', 'reverb'),
    'synthMelodyVol': ('synth', 'melody_volume'),
    'synthChordVol': ('synth', 'chord_volume'),
}


def nest_legacy_params(data: dict) -> dict:
    """Convert a flat parameter dict into the nested Config layout.
    Already-nested dicts are returned unchanged."""
    if not isinstance(data, dict) or 'linkage' in data:
        return data
    nested: dict = {'version': data.get('version', 0)}
    for key, value in data.items():
        target = LEGACY_KEY_MAP.get(key)
        if target is None:
            continue
        section, name = target
        nested.setdefault(section, {})[name] = value
    return nested


# Ranges used by the quick randomizer
RANDOM_RANGES: Dict[str, Tuple[float, float]] = {
    'baseoffsx': (-200.0, 200.0),
    'baseoffsy': (-500.0, -100.0),
    'handdist': (50.0, 500.0),
    'larm1': (20.0, 200.0),
    'rarm1': (20.0, 200.0),
    'larm2': (100.0, 400.0),
    'rarm2': (100.0, 400.0),
    'rarmext': (0.0, 150.0),
    'larma': (0.0, 360.0),
}


def randomized_config(base: Config, variant: str = '', rng: random.Random | None = None) -> Config:
    """Return a copy of base with a random linkage.

    variant 'A' forces 6-fold symmetry, 'B' forces none, anything else keeps the fold.
    """
    rng = rng or random.Random()

    def rand_rpm() -> float:
        sign = 1.0 if rng.random() > 0.5 else -1.0
        return sign * rng.uniform(0.01, 50.0)

    pen = replace(base.pen)
    if variant == 'A':
        pen.symmetry = 6
    elif variant == 'B':
        pen.symmetry = 1

    linkage = replace(
        base.linkage,
        rotor_rpm=rand_rpm() / 4,
        lrpm=rand_rpm(),
        rrpm=rand_rpm(),
        **{name: rng.uniform(low, high) for name, (low, high) in RANDOM_RANGES.items()},
    )
    return replace(
        base,
        linkage=linkage,
        pen=pen,
        run=replace(base.run),
        synth=replace(base.synth),
        canvas=replace(base.canvas),
    )
