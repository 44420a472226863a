import math
import unittest
from unittest import mock

import numpy as np
from scipy.signal import fftconvolve

from audio_engine import (
    CHANNELS,
    MAX_CHORD_VOICES,
    AudioEngine,
    PartitionedConvolver,
    drive_curve,
    equal_power_pan,
    lowpass_coefficients,
    oscillator,
    procedural_impulse,
)
from config import SynthConfig
from harmonic_mapper import ChordLayer, ChordRequest, RampInstruction, build_chord_voicing

SR = 8000
BLOCK = 64


class FakeStream:
    def __init__(self, callback):
        self.callback = callback
        self.calls = []

    def start(self):
        self.calls.append("start")

    def stop(self):
        self.calls.append("stop")

    def close(self):
        self.calls.append("close")


class FakeStreamFactory:
    def __init__(self):
        self.streams = []

    def __call__(self, samplerate, blocksize, channels, callback):
        stream = FakeStream(callback)
        self.streams.append(stream)
        return stream


def short_chord(gain=0.2):
    return ChordRequest('A', 3, (ChordLayer(220.0, gain),),
                        attack=0.01, sustain=0.01, release=0.01)


class TestAudioHelpers(unittest.TestCase):
    def test_oscillator_shapes(self):
        phase = np.array([0.0, math.pi / 2, math.pi, 3 * math.pi / 2])
        np.testing.assert_allclose(oscillator(phase, 'sine'), [0, 1, 0, -1], atol=1e-12)
        self.assertTrue(set(oscillator(phase + 0.1, 'square')) <= {1.0, -1.0})
        self.assertAlmostEqual(oscillator(np.array([0.0]), 'triangle')[0], -1.0)
        self.assertAlmostEqual(oscillator(np.array([math.pi]), 'triangle')[0], 1.0)
        self.assertAlmostEqual(oscillator(np.array([math.pi]), 'sawtooth')[0], 0.0)

    def test_drive_curve(self):
        x = np.linspace(-1, 1, 11)
        shaped = drive_curve(x, 20)
        self.assertEqual(drive_curve(np.array([0.0]), 50)[0], 0.0)
        self.assertTrue(np.all(np.diff(shaped) > 0))
        np.testing.assert_allclose(shaped, -shaped[::-1])

    def test_lowpass_passes_dc(self):
        b, a = lowpass_coefficients(800.0, 1.0, SR)
        self.assertEqual(a[0], 1.0)
        self.assertAlmostEqual(sum(b) / sum(a), 1.0)

    def test_equal_power_pan(self):
        left, right = equal_power_pan(np.array([-1.0, 0.0, 1.0]))
        np.testing.assert_allclose(left ** 2 + right ** 2, 1.0)
        self.assertAlmostEqual(right[0], 0.0)
        self.assertAlmostEqual(left[2], 0.0)

    def test_impulse_decays(self):
        impulse = procedural_impulse(SR, np.random.default_rng(0))
        self.assertEqual(impulse.shape, (SR * 3, CHANNELS))
        head = np.max(np.abs(impulse[:SR // 10]))
        tail = np.max(np.abs(impulse[-SR // 10:]))
        self.assertLess(tail, head * 0.2)


class TestPartitionedConvolver(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(3)
        self.impulse = rng.standard_normal((100, CHANNELS))
        burst = rng.standard_normal((50, CHANNELS))
        silence = np.zeros((200, CHANNELS))
        self.signal = np.concatenate((burst, silence, burst[::-1], silence, silence))

    def _feed(self, convolver, signal, sizes):
        out, pos = [], 0
        while pos < len(signal):
            for size in sizes:
                out.append(convolver.process(signal[pos:pos + size]))
                pos += size
        return np.concatenate(out)

    def test_matches_direct_convolution_with_fixed_latency(self):
        convolver = PartitionedConvolver(self.impulse, partition=16)
        self.assertEqual(convolver.partitions, 7)

        out = self._feed(convolver, self.signal, [7, 30, 13, 64, 1, 16, 45])
        expected = fftconvolve(self.signal, self.impulse, axes=0)

        self.assertEqual(out.shape, self.signal.shape)
        np.testing.assert_array_equal(out[:16], 0.0)
        np.testing.assert_allclose(out[16:], expected[:len(self.signal) - 16], atol=1e-9)

    def test_tail_decays_to_exact_silence(self):
        convolver = PartitionedConvolver(self.impulse, partition=16)
        out = self._feed(convolver, self.signal, [32])
        # Last burst ends at 300; the tail is gone 100 samples plus latency later
        np.testing.assert_allclose(out[300 + 100 + 16:], 0.0, atol=1e-12)
        # Long silence skips the transforms entirely
        np.testing.assert_array_equal(out[-100:], 0.0)
        self.assertGreater(np.max(np.abs(out[300:400])), 0.0)

    def test_reset_drops_history(self):
        convolver = PartitionedConvolver(self.impulse, partition=16)
        convolver.process(self.signal[:50])
        convolver.reset()

        out = convolver.process(np.zeros((200, CHANNELS)))
        np.testing.assert_array_equal(out, 0.0)

    def test_empty_block(self):
        convolver = PartitionedConvolver(self.impulse, partition=16)
        self.assertEqual(convolver.process(np.zeros((0, CHANNELS))).shape, (0, CHANNELS))


class TestAudioEngine(unittest.TestCase):
    def setUp(self):
        self.factory = FakeStreamFactory()
        self.engine = AudioEngine(sample_rate=SR, block_size=BLOCK,
                                  stream_factory=self.factory, seed=1)

    def test_render_shape_and_silence(self):
        out = self.engine.render(BLOCK)
        self.assertEqual(out.shape, (BLOCK, CHANNELS))
        self.assertEqual(out.dtype, np.float32)
        self.assertTrue(np.all(out == 0))
        self.assertAlmostEqual(self.engine.current_time, BLOCK / SR)
        self.assertEqual(self.engine.render(0).shape, (0, CHANNELS))

    def test_acquire_and_release_order(self):
        self.assertFalse(self.engine.running)
        self.assertTrue(self.engine.acquire(SynthConfig(waveform='square')))
        self.assertTrue(self.engine.running)
        self.assertEqual(self.engine.waveform, 'square')

        stream = self.factory.streams[0]
        self.assertEqual(stream.calls, ["start"])
        # Acquiring again reuses the stream
        self.assertTrue(self.engine.acquire())
        self.assertEqual(len(self.factory.streams), 1)

        self.engine.release()
        self.assertEqual(stream.calls, ["start", "stop", "close"])
        self.assertFalse(self.engine.running)
        self.assertIsNone(self.engine.stream)

    def test_release_silences_everything(self):
        self.engine.acquire()
        self.engine.apply_ramp(RampInstruction(440.0, 0.0, 0.2, 10.0))
        self.engine.play_chord(build_chord_voicing('C', 4, SynthConfig()))
        self.engine.render(BLOCK)

        self.engine.release()

        now = self.engine.current_time
        self.assertEqual(self.engine.feedback.value_at(now + 1.0), 0.0)
        self.assertEqual(self.engine.melody_gain.value_at(now + 1.0), 0.0)
        self.assertEqual(self.engine.voices, [])

    def test_release_drops_reverb_tail(self):
        self.engine.acquire()
        self.engine.play_chord(build_chord_voicing('A', 3, SynthConfig()))
        for _ in range(20):
            self.engine.render(BLOCK)
        self.assertTrue(np.any(self.engine._reverb._history))

        self.engine.release()

        out = np.concatenate([self.engine.render(BLOCK) for _ in range(20)])
        np.testing.assert_allclose(out, 0.0, atol=1e-9)

    def test_acquire_failure_is_logged(self):
        engine = AudioEngine(sample_rate=SR, block_size=BLOCK,
                             stream_factory=mock.Mock(side_effect=OSError("no device")))
        with mock.patch("audio_engine.log_event") as log_event_mock:
            self.assertFalse(engine.acquire())

        self.assertFalse(engine.running)
        levels = [call.args[0] for call in log_event_mock.call_args_list]
        self.assertIn("ERROR", levels)

    def test_reinitialize_opens_new_stream(self):
        self.engine.acquire()
        self.assertTrue(self.engine.reinitialize())
        self.assertEqual(len(self.factory.streams), 2)
        self.assertEqual(self.factory.streams[0].calls, ["start", "stop", "close"])
        self.assertTrue(self.engine.running)

    def test_apply_ramp(self):
        self.engine.apply_ramp(RampInstruction(880.0, 0.5, 0.2, 10.0))
        later = self.engine.current_time + 0.02
        self.assertAlmostEqual(self.engine.melody_freq.value_at(later), 880.0)
        self.assertAlmostEqual(self.engine.melody_pan.value_at(later), 0.5)
        self.assertAlmostEqual(self.engine.melody_gain.value_at(later), 0.2)

        self.engine.render(BLOCK)
        out = self.engine.render(BLOCK)
        self.assertGreater(np.max(np.abs(out)), 0.0)
        self.assertLessEqual(np.max(np.abs(out)), 1.0)

    def test_apply_ramp_clamps_targets(self):
        self.engine.apply_ramp(RampInstruction(1.0, 3.0, -1.0, 0.0))
        later = self.engine.current_time + 0.01
        self.assertAlmostEqual(self.engine.melody_freq.value_at(later), 20.0)
        self.assertAlmostEqual(self.engine.melody_pan.value_at(later), 1.0)
        self.assertEqual(self.engine.melody_gain.value_at(later), 0.0)

    def test_apply_settings_glides(self):
        self.engine.apply_settings(SynthConfig(feedback=0.9, cutoff=2000.0, waveform='bogus'))
        later = self.engine.current_time + 1.0
        self.assertAlmostEqual(self.engine.feedback.value_at(later), 0.9, places=3)
        self.assertAlmostEqual(self.engine.cutoff.value_at(later), 2000.0, places=3)
        self.assertEqual(self.engine.waveform, 'sine')

    def test_play_chord_requires_running(self):
        self.assertFalse(self.engine.play_chord(short_chord()))
        self.assertEqual(self.engine.voices, [])

    def test_chord_voices_expire(self):
        self.engine.acquire()
        self.assertTrue(self.engine.play_chord(short_chord()))
        self.assertEqual(len(self.engine.voices), 1)

        out = np.concatenate([self.engine.render(BLOCK) for _ in range(2)])
        self.assertGreater(np.max(np.abs(out)), 0.0)

        for _ in range(3):
            self.engine.render(BLOCK)
        self.assertEqual(self.engine.voices, [])

    def test_chord_detune(self):
        self.engine.acquire()
        self.engine.play_chord(ChordRequest('A', 3, (ChordLayer(440.0, 0.1, 1200.0),)))
        self.assertAlmostEqual(self.engine.voices[0].frequency, 880.0)

    def test_voice_cap(self):
        self.engine.acquire()
        request = build_chord_voicing('C', 4, SynthConfig())
        for _ in range(8):
            self.engine.play_chord(request)
        self.assertEqual(len(self.engine.voices), MAX_CHORD_VOICES)

    def test_callback_failure_silences_and_stops(self):
        self.engine.acquire()
        outdata = np.ones((BLOCK, CHANNELS), dtype=np.float32)
        with mock.patch.object(self.engine, "render", side_effect=RuntimeError("boom")), \
                mock.patch("audio_engine.log_event") as log_event_mock:
            self.engine._audio_callback(outdata, BLOCK, None, None)

        self.assertTrue(np.all(outdata == 0))
        self.assertFalse(self.engine.running)
        self.assertEqual(log_event_mock.call_args.args[0], "ERROR")

    def test_callback_fills_buffer(self):
        self.engine.acquire()
        outdata = np.ones((BLOCK, CHANNELS), dtype=np.float32)
        self.engine._audio_callback(outdata, BLOCK, None, "underflow")
        self.assertTrue(np.all(outdata == 0))
        self.assertEqual(self.engine._session_status_count, 1)


class TestAudioEngineShutdownSummary(unittest.TestCase):
    def test_shutdown_summary_logs_levels(self):
        engine = AudioEngine(sample_rate=SR, block_size=BLOCK, stream_factory=FakeStreamFactory())
        engine._reset_session_stats()
        engine._update_session_stats(np.full((BLOCK, CHANNELS), 0.25))
        engine._update_session_stats(np.full((BLOCK, CHANNELS), -0.5))

        with mock.patch("audio_engine.log_event") as log_event_mock:
            engine._log_shutdown_summary()

        self.assertTrue(log_event_mock.called)
        _, kwargs = log_event_mock.call_args
        self.assertEqual(kwargs["blocks"], 2)
        self.assertEqual(kwargs["peak"], "0.5000")
        self.assertEqual(kwargs["status_flags"], 0)

    def test_shutdown_summary_no_blocks_no_log(self):
        engine = AudioEngine(sample_rate=SR, block_size=BLOCK, stream_factory=FakeStreamFactory())
        engine._reset_session_stats()

        with mock.patch("audio_engine.log_event") as log_event_mock:
            engine._log_shutdown_summary()

        log_event_mock.assert_not_called()


if __name__ == "__main__":
    unittest.main()
