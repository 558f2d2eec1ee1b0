"""Integrity watchers: fullscreen, camera liveness and escape-key suppression."""
from __future__ import annotations

import asyncio
from typing import List, Optional, Set

from observability import log_event

from .environment import ESCAPE_KEYS, Detach, Environment, KeyPress
from .errors import CapabilityDenied
from .events import EventChannel, StatusEvent, Subscription, ViolationEvent
from .models import WatcherClass


class Watcher:
    """Base class: owns the violation and status channels for one watcher class."""

    watcher_class: WatcherClass

    def __init__(self, env: Environment, *, session_id: str = "-") -> None:
        self._env = env
        self._session_id = session_id
        self.violations = EventChannel(f"{self.watcher_class}.violations")
        self.status = EventChannel(f"{self.watcher_class}.status")
        self._detach: Optional[Detach] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, listener) -> Subscription:
        return self.violations.subscribe(listener)

    def subscribe_status(self, listener) -> Subscription:
        return self.status.subscribe(listener)

    def start(self) -> None:
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._running = True
        self._attach()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._detach is not None:
            self._detach()
            self._detach = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def _attach(self) -> None:  # pragma: no cover - overridden
        raise NotImplementedError

    def _spawn(self, coro) -> asyncio.Task:
        if self._loop is None:
            raise RuntimeError(f"{self.watcher_class} watcher has not been started")
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _violation(self, detail: str) -> None:
        log_event("violation_observed", self._session_id, watcher=self.watcher_class, detail=detail)
        self.violations.publish(ViolationEvent(watcher=self.watcher_class, detail=detail))

    def _report(self, healthy: bool, detail: str) -> None:
        log_event("watcher_status", self._session_id, watcher=self.watcher_class, healthy=healthy, detail=detail)
        self.status.publish(StatusEvent(watcher=self.watcher_class, healthy=healthy, detail=detail))


class FullscreenWatcher(Watcher):
    """Counts fullscreen exits and tries to re-enter fullscreen after each one."""

    watcher_class: WatcherClass = "fullscreen"

    def _attach(self) -> None:
        self._detach = self._env.on_fullscreen_change(self._on_change)

    def _on_change(self, is_fullscreen: bool) -> None:
        if not self._running:
            return
        if is_fullscreen:
            self._report(True, "fullscreen restored")
            return
        self._violation("exited fullscreen")
        # A listener may have stopped this watcher while handling the violation.
        if self._running:
            self._spawn(self.restore())

    async def restore(self) -> bool:
        """Best-effort request to re-enter fullscreen."""

        if self._env.is_fullscreen():
            return True
        try:
            await self._env.request_fullscreen()
        except CapabilityDenied as exc:
            log_event("fullscreen_restore_failed", self._session_id, watcher=self.watcher_class, detail=str(exc))
            return False
        return self._env.is_fullscreen()


class KeySuppressionWatcher(Watcher):
    """Swallows the escape gesture and counts every occurrence."""

    watcher_class: WatcherClass = "escape_key"

    def _attach(self) -> None:
        self._detach = self._env.on_key_down(self._on_key)

    def _on_key(self, press: KeyPress) -> None:
        if not self._running or press.key not in ESCAPE_KEYS:
            return
        press.prevent_default()
        self._violation(f"suppressed {press.key}")


class CameraWatcher(Watcher):
    """Polls the video track and tries to reacquire the camera when it drops.

    The camera counts as disconnected when the track is not live, or when
    the sampled frame luma stays below ``dark_luma`` for ``dark_samples``
    consecutive polls (covered or frozen lens). One violation is published
    per disconnection episode, after reacquisition has failed.
    """

    watcher_class: WatcherClass = "camera"

    def __init__(
        self,
        env: Environment,
        *,
        session_id: str = "-",
        poll_seconds: float = 3.0,
        dark_luma: float = 10.0,
        dark_samples: int = 3,
        reacquire_attempts: int = 2,
    ) -> None:
        super().__init__(env, session_id=session_id)
        self.poll_seconds = poll_seconds
        self.dark_luma = dark_luma
        self.dark_samples = dark_samples
        self.reacquire_attempts = reacquire_attempts
        self.healthy = True
        self._dark_streak = 0

    def _attach(self) -> None:
        self._spawn(self._poll_loop())

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.poll_seconds)
            await self.check()

    def _frame_dark(self) -> bool:
        luma = self._env.sample_luminance()
        return luma is not None and luma < self.dark_luma

    def _fault(self) -> Optional[str]:
        if not self._env.video_track_live():
            self._dark_streak = 0
            return "video track not live"
        if not self._frame_dark():
            self._dark_streak = 0
            return None
        self._dark_streak += 1
        if self._dark_streak >= self.dark_samples:
            return "video feed dark"
        return None

    async def check(self) -> bool:
        """Run one liveness sample; return the resulting health."""

        fault = self._fault()
        if fault is None:
            if not self.healthy and self._dark_streak == 0:
                self.healthy = True
                self._report(True, "camera reconnected")
            return self.healthy
        reacquired = await self.reacquire()
        if not self._running:
            return self.healthy
        if reacquired:
            self._dark_streak = 0
            if not self.healthy:
                self.healthy = True
                self._report(True, "camera reconnected")
            return True
        if self.healthy:
            self.healthy = False
            self._violation(fault)
            self._report(False, fault)
        return False

    def _candidates(self) -> List[Optional[str]]:
        devices: List[Optional[str]] = [None]
        devices.extend(self._env.list_video_devices())
        return devices[: self.reacquire_attempts]

    async def reacquire(self) -> bool:
        for device_id in self._candidates():
            try:
                await self._env.request_media(device_id)
            except CapabilityDenied as exc:
                log_event("camera_reacquire_failed", self._session_id, watcher=self.watcher_class, detail=str(exc))
                continue
            if self._env.video_track_live() and not self._frame_dark():
                log_event("camera_reacquired", self._session_id, watcher=self.watcher_class, device=device_id)
                return True
        return False


__all__ = ["CameraWatcher", "FullscreenWatcher", "KeySuppressionWatcher", "Watcher"]
