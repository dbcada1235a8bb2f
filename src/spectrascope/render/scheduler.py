"""
Frame scheduling.

A scheduler runs one frame callback per display refresh until its task is
cancelled. Ticks never overlap: each callback returns before the next one
is scheduled.
"""

import abc
import time
from typing import Callable

import pygame

FrameCallback = Callable[[float], None]


class FrameTask:
    """Handle for a repeating frame callback."""

    def __init__(self, callback: FrameCallback):
        self.callback = callback
        self.active = True
        self.frames = 0

    def cancel(self) -> None:
        self.active = False

    def fire(self, now: float) -> bool:
        """Run one tick. Returns False once the task is cancelled."""
        if not self.active:
            return False
        self.callback(now)
        self.frames += 1
        return self.active


class FrameScheduler(abc.ABC):
    """Base class for per-frame schedulers."""

    def __init__(self):
        self.task: FrameTask | None = None

    def start(self, callback: FrameCallback) -> FrameTask:
        """Begin calling ``callback(now)`` once per frame; replaces any running task."""
        self.stop()
        self.task = FrameTask(callback)
        return self.task

    def stop(self) -> None:
        """Cancel the running task; the next tick never fires."""
        if self.task is not None:
            self.task.cancel()
            self.task = None

    @property
    def running(self) -> bool:
        return self.task is not None and self.task.active

    @abc.abstractmethod
    def now(self) -> float:
        """Timestamp passed to frame callbacks, in seconds."""
        pass


class ManualScheduler(FrameScheduler):
    """
    Deterministic scheduler advanced by hand.

    Used for tests and offline rendering; its clock only moves in ``advance``.
    """

    def __init__(self, fps: int = 60, start_time: float = 0.0):
        super().__init__()
        self.fps = fps
        self.time = start_time

    def now(self) -> float:
        return self.time

    def advance(self, frames: int = 1) -> int:
        """Run up to ``frames`` ticks; returns how many actually fired."""
        fired = 0
        for _ in range(frames):
            task = self.task
            if task is None or not task.active:
                break
            self.time += 1.0 / self.fps
            task.fire(self.time)
            fired += 1
        return fired


class PygameScheduler(FrameScheduler):
    """
    Display-refresh loop on top of ``pygame.time.Clock``.

    ``run()`` pumps events between ticks, hands them to the registered
    handlers, fires the frame callback, flips the display and waits for the
    next frame. A ``QUIT`` event cancels the task.
    """

    def __init__(self, fps: int = 60, clock: Callable[[], float] = time.time):
        super().__init__()
        self.fps = fps
        self._clock = clock
        self._handlers: list[Callable[[pygame.event.Event], None]] = []

    def now(self) -> float:
        return self._clock()

    def add_event_handler(self, handler: Callable[[pygame.event.Event], None]) -> None:
        self._handlers.append(handler)

    def run(self) -> None:
        """Block until the task is cancelled."""
        clock = pygame.time.Clock()
        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.stop()
                    break
                for handler in self._handlers:
                    handler(event)
            task = self.task
            if task is None or not task.fire(self.now()):
                break
            pygame.display.flip()
            clock.tick(self.fps)
