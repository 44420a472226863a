import math
import unittest
from unittest import mock

from config import Config
from frame_driver import STOP_AUTO, STOP_USER, EngineState
from harmonic_mapper import VoiceState
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
from segment_buffer import Segment


class TestRunControl(unittest.TestCase):
    def setUp(self):
        self.config = Config()
        self.state = EngineState()

    def test_start_new_run(self):
        self.state.rotation_progress = 3.0
        start_new_run(self.state, self.config)

        self.assertTrue(self.state.running)
        self.assertAlmostEqual(self.state.cycle_target, 2 * math.pi)
        self.assertEqual(self.state.rotation_progress, 0.0)
        self.assertTrue(self.state.auto_stop.armed)

    def test_start_without_auto_stop(self):
        self.config.run.auto_stop = False
        start_new_run(self.state, self.config)
        self.assertFalse(self.state.auto_stop.armed)

    def test_stop_run(self):
        start_new_run(self.state, self.config)
        stop_run(self.state)
        self.assertFalse(self.state.running)
        self.assertEqual(self.state.stop_reason, STOP_USER)
        self.assertFalse(self.state.auto_stop.armed)

    def test_toggle_pauses_and_resumes(self):
        start_new_run(self.state, self.config)
        self.state.rotation_progress = 1.0

        self.assertFalse(toggle_play(self.state, self.config))
        self.assertTrue(toggle_play(self.state, self.config))
        # Resuming keeps progress and re-arms the anchor
        self.assertEqual(self.state.rotation_progress, 1.0)
        self.assertTrue(self.state.auto_stop.armed)

    def test_toggle_after_finished_cycle_restarts(self):
        start_new_run(self.state, self.config)
        self.state.rotation_progress = self.state.cycle_target
        toggle_play(self.state, self.config)

        self.assertTrue(toggle_play(self.state, self.config))
        self.assertEqual(self.state.rotation_progress, 0.0)

    def test_toggle_after_auto_stop_restarts(self):
        start_new_run(self.state, self.config)
        self.state.rotation_progress = 1.0
        self.state.running = False
        self.state.stop_reason = STOP_AUTO

        self.assertTrue(toggle_play(self.state, self.config))
        self.assertEqual(self.state.rotation_progress, 0.0)
        self.assertIsNone(self.state.stop_reason)

    def test_clear_state(self):
        start_new_run(self.state, self.config)
        self.state.crot, self.state.lrot, self.state.rrot = 1.0, 2.0, 3.0
        self.state.cursor = (5.0, 5.0)
        self.state.frame_count = 10
        self.state.segments.append(Segment(0, 0, 1, 1, 1, 2, 3, 1.0, 1.0))

        clear_state(self.state)

        self.assertFalse(self.state.running)
        self.assertEqual((self.state.crot, self.state.lrot, self.state.rrot), (0.0, 0.0, 0.0))
        self.assertIsNone(self.state.cursor)
        self.assertEqual(self.state.frame_count, 0)
        self.assertEqual(len(self.state.segments), 0)
        self.assertFalse(self.state.auto_stop.armed)

    def test_full_reset_rebuilds_audio(self):
        audio = mock.Mock()
        self.state.voice.arp_index = 4
        self.config.synth.sound_enabled = True

        full_reset(self.state, audio, self.config.synth)

        audio.release.assert_called_once_with()
        audio.acquire.assert_called_once_with(self.config.synth)
        self.assertEqual(self.state.voice, VoiceState())

    def test_full_reset_with_sound_off(self):
        audio = mock.Mock()
        full_reset(self.state, audio, self.config.synth)
        audio.release.assert_called_once_with()
        audio.acquire.assert_not_called()

    def test_ui_texts(self):
        running = start_stop_ui_state(True)
        stopped = start_stop_ui_state(False)
        self.assertEqual(running.start_text, "■ Stop")
        self.assertFalse(running.clear_enabled)
        self.assertEqual(stopped.start_text, "▶ Run")
        self.assertTrue(stopped.clear_enabled)
        self.assertEqual(play_button_text(True), "⏸ Pause")
        self.assertEqual(play_button_text(False), "▶ Play")

    def test_progress_text(self):
        start_new_run(self.state, self.config)
        self.state.rotation_progress = self.state.cycle_target / 2
        self.assertEqual(progress_text(self.state), "Cycle: 50.0%")

        self.config.linkage.rotor_rpm = 0
        self.config.linkage.lrpm = 0
        self.config.linkage.rrpm = 0
        start_new_run(self.state, self.config)
        self.assertEqual(progress_text(self.state), "Cycle: ∞")


if __name__ == "__main__":
    unittest.main()
