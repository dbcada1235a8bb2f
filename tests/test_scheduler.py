"""Tests for frame scheduling."""

import pygame
import pytest

from spectrascope.render.scheduler import FrameTask, ManualScheduler, PygameScheduler


class TestFrameTask:
    def test_fire_counts_frames(self):
        calls = []
        task = FrameTask(calls.append)

        assert task.fire(1.0)
        assert task.fire(2.0)
        assert calls == [1.0, 2.0]
        assert task.frames == 2

    def test_cancelled_task_never_fires(self):
        calls = []
        task = FrameTask(calls.append)
        task.cancel()

        assert not task.fire(1.0)
        assert calls == []


class TestManualScheduler:
    """Tests for the deterministic scheduler."""

    def test_advance_moves_clock(self):
        scheduler = ManualScheduler(fps=50)
        times = []
        scheduler.start(times.append)

        assert scheduler.advance(3) == 3
        assert times == pytest.approx([0.02, 0.04, 0.06])
        assert scheduler.now() == pytest.approx(0.06)

    def test_advance_without_task(self):
        scheduler = ManualScheduler()
        assert scheduler.advance(5) == 0
        assert scheduler.now() == 0.0

    def test_stop_cancels_next_tick(self):
        scheduler = ManualScheduler()
        task = scheduler.start(lambda now: None)
        scheduler.advance(2)
        scheduler.stop()

        assert not task.active
        assert not scheduler.running
        assert scheduler.advance(5) == 0
        assert task.frames == 2

    def test_stop_is_idempotent(self):
        scheduler = ManualScheduler()
        scheduler.stop()
        scheduler.start(lambda now: None)
        scheduler.stop()
        scheduler.stop()
        assert not scheduler.running

    def test_start_replaces_task(self):
        scheduler = ManualScheduler()
        first = scheduler.start(lambda now: None)
        second = scheduler.start(lambda now: None)

        assert not first.active
        assert second.active
        scheduler.advance(1)
        assert (first.frames, second.frames) == (0, 1)

    def test_cancel_from_callback(self):
        """A tick that stops the scheduler is the last one."""
        scheduler = ManualScheduler()
        calls = []

        def tick(now):
            calls.append(now)
            if len(calls) == 2:
                scheduler.stop()

        scheduler.start(tick)
        assert scheduler.advance(10) == 2


class TestPygameScheduler:
    """Tests for the display-refresh loop (dummy SDL video driver)."""

    @pytest.fixture(autouse=True)
    def display(self):
        pygame.init()
        pygame.display.set_mode((32, 32))
        yield
        pygame.quit()

    def test_run_until_stopped(self):
        scheduler = PygameScheduler(fps=1000)
        calls = []

        def tick(now):
            calls.append(now)
            if len(calls) == 3:
                scheduler.stop()

        task = scheduler.start(tick)
        scheduler.run()

        assert len(calls) == 3
        assert task.frames == 3

    def test_quit_event_stops(self):
        scheduler = PygameScheduler(fps=1000)
        task = scheduler.start(lambda now: None)
        pygame.event.post(pygame.event.Event(pygame.QUIT))

        scheduler.run()

        assert not task.active
        assert task.frames == 0

    def test_events_reach_handlers(self):
        scheduler = PygameScheduler(fps=1000)
        keys = []
        scheduler.add_event_handler(
            lambda event: keys.append(event.key) if event.type == pygame.KEYDOWN else None
        )

        def tick(now):
            scheduler.stop()

        scheduler.start(tick)
        pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_SPACE))
        scheduler.run()

        assert keys == [pygame.K_SPACE]

    def test_now_uses_clock(self):
        scheduler = PygameScheduler(clock=lambda: 12.5)
        assert scheduler.now() == 12.5
