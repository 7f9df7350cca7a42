"""
FrameDriver — repeating tick source for a PongController.

Runs on the asyncio event loop: measures elapsed wall time, lets the
controller turn it into simulation ticks, then hands the frame to an
optional async callback (the server's broadcast).
"""

import asyncio
import time

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS


class FrameDriver:

    def __init__(self, controller, on_frame=None, frame_dt: float = FRAME_DT):
        self.controller = controller
        self.on_frame = on_frame
        self.frame_dt = frame_dt
        self.frame_count = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, max_frames: int | None = None) -> None:
        """Main loop at ~TARGET_FPS. ``max_frames`` bounds it for headless runs."""
        last_time = time.perf_counter()

        while max_frames is None or self.frame_count < max_frames:
            now = time.perf_counter()
            dt = now - last_time
            last_time = now

            self.controller.step(dt)
            if self.on_frame is not None:
                await self.on_frame()

            self.frame_count += 1

            # Sleep to maintain target FPS
            elapsed = time.perf_counter() - now
            sleep_time = self.frame_dt - elapsed
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
            else:
                await asyncio.sleep(0)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run())
            self._task.add_done_callback(self._report_crash)
        return self._task

    @staticmethod
    def _report_crash(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            print(f"[GAME] frame driver stopped: {exc!r}")

    async def stop(self) -> None:
        """Cancel the loop on teardown and wait for it to unwind."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
