import unittest
from unittest import mock

import logging_utils
from logging_utils import (
    format_message,
    get_log_level,
    log_event,
    log_throttled,
    reset_throttle,
    set_log_level,
)


class TestLoggingUtils(unittest.TestCase):
    def setUp(self):
        reset_throttle()

    def tearDown(self):
        set_log_level("INFO")
        reset_throttle()

    def test_format_fields(self):
        msg = format_message("Run stopped", frames=3, pos=(1.23456, 2.0), pct=12.345678,
                             reason="auto_stop")
        self.assertEqual(msg, "Run stopped | frames=3 pos=(1.235,2) pct=12.35 reason=auto_stop")
        self.assertEqual(format_message("Stopped"), "Stopped")

    def test_log_event_carries_tag(self):
        with self.assertLogs("spirosynth", level="WARNING") as cm:
            log_event("WARN", "Audio", "Output not running", frames=2)

        self.assertEqual(cm.records[0].levelname, "WARNING")
        self.assertEqual(cm.records[0].tag, "Audio")
        self.assertEqual(cm.records[0].getMessage(), "Output not running | frames=2")

    def test_throttled_counts_suppressed_calls(self):
        clock = [100.0, 100.2, 100.5, 101.1]
        with mock.patch.object(logging_utils.time, "monotonic", side_effect=clock), \
                mock.patch.object(logging_utils, "log_event") as log_event_mock:
            emitted = [log_throttled("ramp", 1.0, "ERROR", "Audio", "Ramp failed")
                       for _ in clock]

        self.assertEqual(emitted, [True, False, False, True])
        self.assertEqual(log_event_mock.call_count, 2)
        self.assertNotIn("suppressed", log_event_mock.call_args_list[0].kwargs)
        self.assertEqual(log_event_mock.call_args_list[1].kwargs["suppressed"], 2)

    def test_throttle_keys_are_independent(self):
        with mock.patch.object(logging_utils.time, "monotonic", return_value=5.0), \
                mock.patch.object(logging_utils, "log_event") as log_event_mock:
            self.assertTrue(log_throttled("a", 10.0, "INFO", "Run", "one"))
            self.assertTrue(log_throttled("b", 10.0, "INFO", "Run", "two"))
            self.assertFalse(log_throttled("a", 10.0, "INFO", "Run", "three"))
            reset_throttle("a")
            self.assertTrue(log_throttled("a", 10.0, "INFO", "Run", "four"))
        self.assertEqual(log_event_mock.call_count, 3)

    def test_set_log_level_accepts_warn_alias(self):
        set_log_level("warn")
        self.assertEqual(get_log_level(), "WARNING")
        set_log_level(None)
        self.assertEqual(get_log_level(), "INFO")


if __name__ == "__main__":
    unittest.main()
