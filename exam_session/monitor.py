"""Integrity monitor composing the three watchers and owning device resources."""
from __future__ import annotations

from typing import List, Optional, Tuple

from config.settings import Settings, settings as default_settings
from observability import log_event

from .environment import Environment
from .errors import CapabilityDenied
from .events import Listener, Subscription
from .watchers import CameraWatcher, FullscreenWatcher, KeySuppressionWatcher, Watcher


class IntegrityMonitor:
    """Acquires camera and fullscreen, runs the watchers, and releases both.

    The monitor is the only component that touches the singleton media and
    fullscreen resources. :meth:`release` is idempotent and safe to call on
    every exit path.
    """

    def __init__(
        self,
        env: Environment,
        *,
        session_id: str = "-",
        config: Optional[Settings] = None,
    ) -> None:
        cfg = config or default_settings
        self._env = env
        self._session_id = session_id
        self.fullscreen = FullscreenWatcher(env, session_id=session_id)
        self.camera = CameraWatcher(
            env,
            session_id=session_id,
            poll_seconds=cfg.CAMERA_POLL_SECONDS,
            dark_luma=cfg.CAMERA_DARK_LUMA,
            dark_samples=cfg.CAMERA_DARK_SAMPLES,
            reacquire_attempts=cfg.CAMERA_REACQUIRE_ATTEMPTS,
        )
        self.keys = KeySuppressionWatcher(env, session_id=session_id)
        self.media_granted = False
        self.fullscreen_granted = False
        self._media_held = False
        self._closed = False

    @property
    def watchers(self) -> Tuple[Watcher, ...]:
        return (self.fullscreen, self.camera, self.keys)

    @property
    def granted(self) -> bool:
        return self.media_granted and self.fullscreen_granted

    async def acquire(self) -> bool:
        """Request camera/microphone and fullscreen; return True if both were granted.

        A partial grant is released again so the session runs either fully
        proctored or not proctored at all.
        """

        try:
            await self._env.request_media()
            self.media_granted = True
            self._media_held = True
        except CapabilityDenied as exc:
            log_event("capability_denied", self._session_id, capability="media", detail=str(exc))

        if self.media_granted:
            try:
                await self._env.request_fullscreen()
                self.fullscreen_granted = True
            except CapabilityDenied as exc:
                log_event("capability_denied", self._session_id, capability="fullscreen", detail=str(exc))

        if not self.granted:
            self.release()
        return self.granted

    def subscribe(self, listener: Listener) -> List[Subscription]:
        return [watcher.subscribe(listener) for watcher in self.watchers]

    def subscribe_status(self, listener: Listener) -> List[Subscription]:
        return [watcher.subscribe_status(listener) for watcher in self.watchers]

    def start(self) -> None:
        if not self.granted or self._closed:
            return
        for watcher in self.watchers:
            watcher.start()
        log_event("monitor_started", self._session_id)

    def stop(self) -> None:
        for watcher in self.watchers:
            watcher.stop()

    def in_fullscreen(self) -> bool:
        return self._env.is_fullscreen()

    def release(self) -> None:
        """Stop the watchers and give back camera and fullscreen.

        Safe to call repeatedly; a grant that lands after an earlier release
        is given back by the next call.
        """

        self.stop()
        self._closed = True
        released = []
        if self._media_held:
            self._media_held = False
            self._env.release_media()
            released.append("media")
        if self._env.is_fullscreen():
            self._env.exit_fullscreen()
            released.append("fullscreen")
        if released:
            log_event("monitor_released", self._session_id, detail=",".join(released))


__all__ = ["IntegrityMonitor"]
