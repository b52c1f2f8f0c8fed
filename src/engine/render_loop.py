"""
RenderLoop - single consumer pushing the latest frame to the strip at a fixed cadence.

State machine:
  1. Await-first: block until the first ChannelMessage arrives
  2. Steady: push the held frame, record the push time as a latency sample
  3. Sleep whatever is left of the tick period
  4. Non-blocking mailbox fetch; a new message replaces the held one
     (latest-wins), nothing new → re-render the held frame (starvation)
  5. Back to 2

After the first frame the loop never waits on the network, so strip refresh
is decoupled from bursty or stalled producers. A DeviceError from the strip
is fatal: it propagates out of the render task.

Legacy clip messages carry several frames and their own frame rate; the loop
plays the clip through once before fetching again.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Optional

from engine.frame_mailbox import FrameMailbox
from engine.latency_tracker import LatencyTracker
from hardware.led.strip_interface import IPhysicalStrip
from lifecycle.task_registry import create_tracked_task, TaskCategory
from models.frame import ChannelMessage, Frame
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RENDER_ENGINE)
telemetry_log = log.with_category(LogCategory.TELEMETRY)


class WS2811Timing:
    """
    WS2811 protocol timing for the default 208-pixel strip.

    At 800kHz data rate with 24 bits per pixel:
    - Bits per frame: 4,992
    - DMA transfer time: 6.24ms
    - Reset time: 50µs minimum
    """

    DATA_RATE_HZ = 800_000
    BIT_TIME_US = 1.25
    RESET_TIME_US = 50
    BITS_PER_PIXEL = 24

    @classmethod
    def min_frame_time_ms(cls, pixel_count: int) -> float:
        return (cls.BITS_PER_PIXEL * pixel_count * cls.BIT_TIME_US + cls.RESET_TIME_US) / 1000


class RenderLoop:
    """
    Fixed-cadence render loop.

    Example:
        loop = RenderLoop(strip, mailbox, fps=50)
        await loop.start()      # background task
        ...
        await loop.stop()       # exits after the current tick
    """

    def __init__(
        self,
        strip: IPhysicalStrip,
        mailbox: FrameMailbox,
        fps: float = 50.0,
        latency_window: int = 32,
        telemetry_interval: int = 50,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            strip: Driver receiving every rendered frame
            mailbox: Single-slot hand-off from the ingestion workers
            fps: Target render frequency
            latency_window: Capacity of the latency ring buffer
            telemetry_interval: Ticks between console telemetry lines (0 = off)
            clock: Monotonic clock in seconds (injectable for tests)
            sleep: Coroutine used for the tick remainder (injectable for tests)
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.strip = strip
        self.mailbox = mailbox
        self.fps = fps
        self.telemetry_interval = telemetry_interval
        self.latency = LatencyTracker(latency_window)

        self._clock = clock
        self._sleep = sleep

        # Runtime state
        self.running = False
        self.render_task: Optional[asyncio.Task] = None
        self._current: Optional[ChannelMessage] = None
        self._clip_index = 0

        # Metrics
        self.frames_rendered = 0
        self.messages_received = 0
        self.frame_times: Deque[float] = deque(maxlen=300)

        log.info(
            "RenderLoop initialized",
            fps=self.fps,
            leds=strip.led_count,
            timing=f"min={WS2811Timing.min_frame_time_ms(strip.led_count):.2f}ms",
        )

    # === Lifecycle ===

    async def start(self) -> None:
        """Start the render loop as a tracked background task."""
        if self.render_task is not None and not self.render_task.done():
            log.warn("RenderLoop already running")
            return

        self.render_task = create_tracked_task(
            self.run(),
            category=TaskCategory.RENDER,
            description="Render loop",
        )
        log.info(f"Render loop started @ {self.fps} FPS")

    async def stop(self) -> None:
        """Ask the loop to exit after its current tick and wait for it."""
        self.running = False
        task = self.render_task
        if task is None or task.done():
            return

        if self._current is None:
            # Still waiting for the first frame: nothing to finish
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        log.info(
            "RenderLoop stopped",
            frames_rendered=self.frames_rendered,
            messages=self.messages_received,
            dropped=self.mailbox.dropped,
        )

    # === Core Render Loop ===

    async def run(self) -> None:
        """Run the state machine until stop() or a DeviceError."""
        self.running = True
        try:
            log.info("Waiting for first frame...")
            self._accept(await self.mailbox.take())

            while self.running:
                tick_start = self._clock()

                frame = self._current.frames[self._clip_index]
                self._push(frame)
                self._clip_index = (self._clip_index + 1) % len(self._current.frames)
                self._report_telemetry(frame)

                remaining = self._tick_period() - (self._clock() - tick_start)
                if remaining > 0:
                    await self._sleep(remaining)

                # Whole clip played (always true for single-frame messages)
                if self._clip_index == 0:
                    message = self.mailbox.try_take()
                    if message is not None:
                        self._accept(message)
        finally:
            self.running = False
            self.mailbox.close()

    def _accept(self, message: ChannelMessage) -> None:
        self._current = message
        self._clip_index = 0
        self.messages_received += 1

        if message.frame.led_count > self.strip.led_count:
            log.debug(
                "Frame longer than strip, extra LEDs ignored",
                client=message.connection.client_id,
                leds=message.frame.led_count,
                strip=self.strip.led_count,
            )

    def _push(self, frame: Frame) -> None:
        """Push one frame and record how long the device took."""
        start = self._clock()
        self.strip.apply_frame(frame.leds)
        end = self._clock()

        self.latency.push((end - start) * 1000.0)
        self.frames_rendered += 1
        self.frame_times.append(end)

    def _tick_period(self) -> float:
        rate = self._current.frame_rate if self._current is not None and self._current.is_clip else self.fps
        return 1.0 / rate

    def _report_telemetry(self, frame: Frame) -> None:
        if not self.telemetry_interval or self.frames_rendered % self.telemetry_interval:
            return

        connection = self._current.connection
        last = frame.last_led()
        cell = last.to_ansi_cell() if last is not None else " "
        latest = self.latency.samples()[-1]
        telemetry_log.info(
            f"({connection.open_connections}) client {connection.client_id:>2}: "
            f"{latest:.2f} ms ({self.latency.min:.2f}<{self.latency.average():.2f}<{self.latency.max:.2f}) "
            f"[{cell}]"
        )

    # === Metrics ===

    @property
    def current_message(self) -> Optional[ChannelMessage]:
        return self._current

    def get_actual_fps(self) -> float:
        """Get measured FPS over recent frames."""
        if len(self.frame_times) < 2:
            return 0.0
        duration = self.frame_times[-1] - self.frame_times[0]
        if duration <= 0:
            return 0.0
        return (len(self.frame_times) - 1) / duration

    def get_metrics(self) -> Dict:
        """Get performance metrics."""
        connection = self._current.connection if self._current else None
        return {
            "fps_target": self.fps,
            "fps_actual": self.get_actual_fps(),
            "frames_rendered": self.frames_rendered,
            "messages_received": self.messages_received,
            "dropped_messages": self.mailbox.dropped,
            "current_client": connection.client_id if connection else None,
            "latency": self.latency.as_dict(),
        }

    def __repr__(self) -> str:
        metrics = self.get_metrics()
        return (
            f"RenderLoop(fps={metrics['fps_actual']:.1f}/{metrics['fps_target']}, "
            f"rendered={metrics['frames_rendered']}, "
            f"dropped={metrics['dropped_messages']})"
        )
