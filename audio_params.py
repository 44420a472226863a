"""
spirosynth - Audio parameter automation
Scheduled value changes anchored to the audio render clock.

The frame loop writes automation from the GUI thread while the audio
callback reads it on its own clock, so every change is a timeline event
(set / linear ramp / exponential ramp / exponential approach) rather than an
immediate assignment. Callers hold AudioEngine's lock around both sides.
"""

import math
from dataclasses import dataclass

import numpy as np

SET = "set"
LINEAR = "linear"
EXPONENTIAL = "exponential"
TARGET = "target"


@dataclass(frozen=True)
class AutomationEvent:
    kind: str
    time: float
    value: float
    time_constant: float = 0.0


class AudioParam:
    """Automation timeline for one synthesis parameter."""

    def __init__(self, name: str, value: float):
        self.name = name
        self.default = float(value)
        self.events: list[AutomationEvent] = []

    def _insert(self, event: AutomationEvent) -> None:
        # Keep time order; equal times keep insertion order
        index = len(self.events)
        while index > 0 and self.events[index - 1].time > event.time:
            index -= 1
        self.events.insert(index, event)

    def set_value_at_time(self, value: float, when: float) -> None:
        self._insert(AutomationEvent(SET, when, float(value)))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(AutomationEvent(LINEAR, end_time, float(value)))

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(AutomationEvent(EXPONENTIAL, end_time, float(value)))

    def set_target_at_time(self, value: float, start_time: float, time_constant: float) -> None:
        self._insert(AutomationEvent(TARGET, start_time, float(value), float(time_constant)))

    def cancel_scheduled_values(self, when: float) -> None:
        self.events = [event for event in self.events if event.time < when]

    def cancel_and_hold(self, when: float) -> float:
        """Drop all automation and pin the value it had at `when`."""
        held = self.value_at(when)
        self.events = [AutomationEvent(SET, when, held)]
        return held

    def ramp_to(self, value: float, now: float, duration: float, exponential: bool = False) -> None:
        """Ramp from the current value to `value` over `duration` seconds."""
        self.cancel_and_hold(now)
        if exponential:
            self.exponential_ramp_to_value_at_time(value, now + duration)
        else:
            self.linear_ramp_to_value_at_time(value, now + duration)

    def prune(self, now: float) -> None:
        """Collapse automation that is entirely in the past."""
        last = -1
        for index, event in enumerate(self.events):
            if event.time <= now:
                last = index
        if last < 0:
            return
        event = self.events[last]
        if event.kind == TARGET:
            start = self.value_at(event.time)
            head = [AutomationEvent(SET, event.time, start), event]
        else:
            head = [AutomationEvent(SET, event.time, event.value)]
        self.events = head + self.events[last + 1:]

    def value_at(self, when: float) -> float:
        return float(self.values(np.array([when], dtype=np.float64))[0])

    def values(self, times: np.ndarray) -> np.ndarray:
        """Evaluate the timeline at each time in `times`."""
        out = np.empty(len(times), dtype=np.float64)
        if not self.events:
            out.fill(self.default)
            return out

        remaining = np.ones(len(times), dtype=bool)
        cur_val = self.default
        cur_time = -math.inf
        target = None  # (start_time, start_value, target_value, time_constant)

        def current(ts):
            if target is None:
                return np.full(np.shape(ts), cur_val, dtype=np.float64)
            start_time, start_value, target_value, tc = target
            return target_value + (start_value - target_value) * np.exp(-(ts - start_time) / tc)

        for event in self.events:
            mask = remaining & (times < event.time)
            if mask.any():
                ts = times[mask]
                span = event.time - cur_time
                if event.kind == LINEAR and math.isfinite(cur_time) and span > 0:
                    start = float(current(cur_time))
                    out[mask] = start + (event.value - start) * (ts - cur_time) / span
                elif (event.kind == EXPONENTIAL and math.isfinite(cur_time) and span > 0
                      and float(current(cur_time)) * event.value > 0):
                    start = float(current(cur_time))
                    out[mask] = start * np.power(event.value / start, (ts - cur_time) / span)
                else:
                    out[mask] = current(ts)
                remaining &= ~mask

            if event.kind == TARGET:
                if event.time_constant > 0:
                    start_value = float(current(event.time))
                    target = (event.time, start_value, event.value, event.time_constant)
                else:
                    target = None
                    cur_val = event.value
            else:
                target = None
                cur_val = event.value
            cur_time = event.time

            if not remaining.any():
                return out

        out[remaining] = current(times[remaining])
        return out
