"""Fixed-timestep scheduler for Commons simulations."""

import logging
import math
import time
from typing import Callable, Optional

from .state import SchedulerState

logger = logging.getLogger(__name__)

FIXED_DT = 1 / 60  # 60 Hz simulation
SPEED_OPTIONS = (0.25, 0.5, 1, 2, 4)
MAX_FRAME_DT = 0.2  # Guards against huge frame gaps (spiral of death)

UpdateCallback = Callable[[float, float], None]
RenderCallback = Callable[[float], None]
StateCallback = Callable[[SchedulerState], None]


class FixedStepScheduler:
    """
    Decouples wall-clock time from simulation time.

    Each tick measures the real time since the previous tick, scales it by
    the speed multiplier, and runs as many ``update(FIXED_DT, elapsed)``
    calls as the accumulated time allows. ``render(alpha)`` then receives
    the fraction of a step left in the accumulator, for interpolating
    visuals between the last two simulated states.

    Implements:
    1. Play/pause and discrete speed control
    2. Accumulator-driven fixed updates
    3. Render interpolation signal
    4. A blocking frame loop with an injectable clock
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self.clock = clock
        self.is_playing = True
        self.speed = 1
        self.accumulator = 0.0
        self.steps = 0
        self._last_time = 0.0
        self._running = False

        self._on_update: Optional[UpdateCallback] = None
        self._on_render: Optional[RenderCallback] = None
        self._on_state_change: Optional[StateCallback] = None

    @property
    def elapsed(self) -> float:
        # Derived from the step count so N updates give exactly N * FIXED_DT
        return self.steps * FIXED_DT

    @property
    def is_running(self) -> bool:
        return self._running

    def set_callbacks(self, on_update: UpdateCallback,
                      on_render: RenderCallback,
                      on_state_change: Optional[StateCallback] = None) -> None:
        self._on_update = on_update
        self._on_render = on_render
        self._on_state_change = on_state_change

    def start(self) -> None:
        if self._running:
            return
        self._last_time = self.clock()
        self._running = True

    def stop(self) -> None:
        """Halt future ticks; a tick already in progress runs to the end."""
        self._running = False

    def tick(self, timestamp: Optional[float] = None) -> int:
        """
        Run one frame of the loop and return the number of fixed updates.

        ``timestamp`` is in seconds; the scheduler clock is read when it is
        omitted. Does nothing unless the scheduler has been started.
        """
        if not self._running:
            return 0

        now = self.clock() if timestamp is None else timestamp
        raw_dt = min(max(0.0, now - self._last_time), MAX_FRAME_DT)
        self._last_time = now

        if not self.is_playing:
            # Still render when paused, just don't advance the simulation
            if self._on_render:
                self._on_render(0.0)
            return 0

        self.accumulator += raw_dt * self.speed

        updates = 0
        while self.accumulator >= FIXED_DT:
            if self._on_update:
                self._on_update(FIXED_DT, self.elapsed)
            self.steps += 1
            self.accumulator -= FIXED_DT
            updates += 1

        if self._on_render:
            self._on_render(self.accumulator / FIXED_DT)
        return updates

    def run(self, frame_interval: float = 1 / 60,
            max_frames: Optional[int] = None,
            sleep: Callable[[float], None] = time.sleep) -> int:
        """
        Tick once per frame until stop() is called or ``max_frames`` ticks
        have run. Returns the number of frames ticked.
        """
        self.start()
        frames = 0
        while self._running:
            self.tick()
            frames += 1
            if max_frames is not None and frames >= max_frames:
                self.stop()
                break
            sleep(frame_interval)
        return frames

    def play(self) -> None:
        self.is_playing = True
        self._notify_state_change()

    def pause(self) -> None:
        self.is_playing = False
        self._notify_state_change()

    def toggle_play(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def set_speed(self, speed: float) -> None:
        """Set the speed multiplier; values outside SPEED_OPTIONS are ignored."""
        if speed not in SPEED_OPTIONS:
            logger.debug("Ignoring unsupported speed %r", speed)
            return
        self.speed = speed
        self._notify_state_change()

    def faster(self) -> None:
        idx = self._speed_index()
        if idx < len(SPEED_OPTIONS) - 1:
            self.speed = SPEED_OPTIONS[idx + 1]
            self._notify_state_change()

    def slower(self) -> None:
        idx = self._speed_index()
        if idx > 0:
            self.speed = SPEED_OPTIONS[idx - 1]
            self._notify_state_change()

    def _speed_index(self) -> int:
        for idx, option in enumerate(SPEED_OPTIONS):
            if math.isclose(option, self.speed):
                return idx
        return SPEED_OPTIONS.index(1)

    def reset(self) -> None:
        """Zero simulation time; play/pause and speed are unaffected."""
        self.steps = 0
        self.accumulator = 0.0
        self._notify_state_change()

    def get_state(self) -> SchedulerState:
        return SchedulerState(
            is_playing=self.is_playing,
            speed=self.speed,
            elapsed=self.elapsed
        )

    def _notify_state_change(self) -> None:
        if self._on_state_change:
            self._on_state_change(self.get_state())
