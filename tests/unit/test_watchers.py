"""Fullscreen, escape-key and camera watchers against a fake environment."""
from __future__ import annotations

import asyncio

import pytest

from exam_session.watchers import CameraWatcher, FullscreenWatcher, KeySuppressionWatcher


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


async def test_fullscreen_exit_is_counted_and_restored(env):
    await env.request_fullscreen()
    watcher = FullscreenWatcher(env, session_id="s1")
    violations, status = [], []
    watcher.subscribe(violations.append)
    watcher.subscribe_status(status.append)
    watcher.start()

    env.leave_fullscreen()
    assert [event.watcher for event in violations] == ["fullscreen"]
    await settle()
    assert env.is_fullscreen()
    assert [event.healthy for event in status] == [True]
    watcher.stop()


async def test_fullscreen_restore_refused_leaves_window(env):
    await env.request_fullscreen()
    watcher = FullscreenWatcher(env)
    watcher.start()
    env.fullscreen_ok = False
    env.leave_fullscreen()
    await settle()
    assert not env.is_fullscreen()
    assert await watcher.restore() is False
    watcher.stop()


async def test_stopped_fullscreen_watcher_is_silent(env):
    await env.request_fullscreen()
    watcher = FullscreenWatcher(env)
    violations = []
    watcher.subscribe(violations.append)
    watcher.start()
    watcher.stop()
    env.leave_fullscreen()
    assert violations == []
    assert not watcher.running


async def test_escape_is_suppressed_and_counted(env):
    watcher = KeySuppressionWatcher(env)
    violations = []
    watcher.subscribe(violations.append)
    watcher.start()

    assert env.press("Escape").default_prevented
    assert env.press("Esc").default_prevented
    assert not env.press("a").default_prevented
    assert len(violations) == 2

    watcher.stop()
    assert not env.press("Escape").default_prevented
    assert len(violations) == 2


def _camera(env, **overrides) -> CameraWatcher:
    options = {"poll_seconds": 3600, "dark_luma": 10.0, "dark_samples": 2, "reacquire_attempts": 2}
    options.update(overrides)
    return CameraWatcher(env, session_id="s1", **options)


async def test_camera_unplug_reports_once_per_episode(env):
    await env.request_media()
    watcher = _camera(env)
    violations, status = [], []
    watcher.subscribe(violations.append)
    watcher.subscribe_status(status.append)
    watcher.start()

    env.unplug_camera()
    assert await watcher.check() is False
    assert await watcher.check() is False
    assert len(violations) == 1
    assert violations[0].detail == "video track not live"
    assert env.media_requests == [None, None, "cam-front", None, "cam-front"]

    env.plug_camera()
    assert await watcher.check() is True
    assert [event.healthy for event in status] == [False, True]
    assert watcher.healthy
    watcher.stop()


async def test_camera_reacquires_on_fallback_device(env):
    await env.request_media()
    watcher = _camera(env)
    violations = []
    watcher.subscribe(violations.append)
    watcher.start()

    env.track_live = False
    env.broken_devices = {None}
    assert await watcher.check() is True
    assert violations == []
    assert env.media_requests[-2:] == [None, "cam-front"]
    watcher.stop()


async def test_dark_feed_counts_after_consecutive_samples(env):
    await env.request_media()
    watcher = _camera(env)
    violations = []
    watcher.subscribe(violations.append)
    watcher.start()

    env.luminance = 2.0
    assert await watcher.check() is True
    assert violations == []
    assert await watcher.check() is False
    assert [event.detail for event in violations] == ["video feed dark"]

    env.luminance = 120.0
    assert await watcher.check() is True
    assert watcher.healthy
    watcher.stop()


async def test_camera_without_luma_sampling_relies_on_track_state(env):
    await env.request_media()
    env.luminance = None
    watcher = _camera(env)
    watcher.start()
    for _ in range(5):
        assert await watcher.check() is True
    watcher.stop()


async def test_camera_poll_loop_detects_loss(env):
    await env.request_media()
    watcher = _camera(env, poll_seconds=0.01)
    lost = asyncio.Event()
    watcher.subscribe(lambda _: lost.set())
    watcher.start()
    env.unplug_camera()
    await asyncio.wait_for(lost.wait(), timeout=2)
    assert not watcher.healthy
    watcher.stop()


async def test_unstarted_watcher_refuses_background_work(env):
    watcher = FullscreenWatcher(env, session_id="s1")
    restore = watcher.restore()
    with pytest.raises(RuntimeError, match="fullscreen watcher has not been started"):
        watcher._spawn(restore)
    restore.close()
