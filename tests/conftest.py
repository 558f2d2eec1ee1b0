import asyncio
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Set

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import Settings, settings
from exam_session import Assessment, CapabilityDenied, KeyPress, SessionController, SubmissionFailed


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


class FakeEnvironment:
    """In-memory stand-in for the browser: media, fullscreen and keyboard."""

    def __init__(self) -> None:
        self.media_ok = True
        self.fullscreen_ok = True
        self.camera_present = True
        self.broken_devices: Set[Optional[str]] = set()
        self.devices: List[str] = ["cam-front", "cam-usb"]
        self.media_gate: Optional[asyncio.Event] = None

        self.media_active = False
        self.track_live = False
        self.luminance: Optional[float] = 120.0
        self.fullscreen = False

        self.media_requests: List[Optional[str]] = []
        self.fullscreen_requests = 0
        self.release_calls = 0
        self.exit_calls = 0
        self._fullscreen_listeners: List[Callable[[bool], None]] = []
        self._key_listeners: List[Callable[[KeyPress], None]] = []

    # capability surface
    async def request_media(self, device_id: Optional[str] = None) -> None:
        if self.media_gate is not None:
            await self.media_gate.wait()
        self.media_requests.append(device_id)
        if not self.media_ok:
            raise CapabilityDenied("camera permission denied")
        if not self.camera_present or device_id in self.broken_devices:
            raise CapabilityDenied(f"no camera available for {device_id}")
        self.media_active = True
        self.track_live = True

    def release_media(self) -> None:
        self.release_calls += 1
        self.media_active = False
        self.track_live = False

    async def request_fullscreen(self) -> None:
        self.fullscreen_requests += 1
        if not self.fullscreen_ok:
            raise CapabilityDenied("fullscreen refused")
        self._set_fullscreen(True)

    def exit_fullscreen(self) -> None:
        self.exit_calls += 1
        self._set_fullscreen(False)

    def is_fullscreen(self) -> bool:
        return self.fullscreen

    def list_video_devices(self) -> List[str]:
        return list(self.devices)

    def video_track_live(self) -> bool:
        return self.media_active and self.track_live

    def sample_luminance(self) -> Optional[float]:
        return self.luminance

    def on_fullscreen_change(self, listener):
        self._fullscreen_listeners.append(listener)

        def detach() -> None:
            if listener in self._fullscreen_listeners:
                self._fullscreen_listeners.remove(listener)

        return detach

    def on_key_down(self, listener):
        self._key_listeners.append(listener)

        def detach() -> None:
            if listener in self._key_listeners:
                self._key_listeners.remove(listener)

        return detach

    # learner and device actions
    def leave_fullscreen(self) -> None:
        self._set_fullscreen(False)

    def press(self, key: str) -> KeyPress:
        press = KeyPress(key)
        for listener in list(self._key_listeners):
            listener(press)
        return press

    def unplug_camera(self) -> None:
        self.camera_present = False
        self.track_live = False

    def plug_camera(self) -> None:
        self.camera_present = True

    def _set_fullscreen(self, value: bool) -> None:
        if self.fullscreen == value:
            return
        self.fullscreen = value
        for listener in list(self._fullscreen_listeners):
            listener(value)


class RecordingGateway:
    def __init__(self) -> None:
        self.records = []

    async def write(self, record) -> None:
        self.records.append(record)


class BlockingGateway(RecordingGateway):
    """Holds every write until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def write(self, record) -> None:
        self.started.set()
        await self.release.wait()
        self.records.append(record)


class FailingGateway:
    def __init__(self, exc: Optional[Exception] = None) -> None:
        self.calls = 0
        self.exc = exc or SubmissionFailed("disk full")

    async def write(self, record) -> None:
        self.calls += 1
        raise self.exc


@pytest.fixture
def env() -> FakeEnvironment:
    return FakeEnvironment()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def session_settings() -> Settings:
    # Long intervals: tests drive ticks and camera checks by hand.
    return Settings(_env_file=None, TICK_SECONDS=3600, CAMERA_POLL_SECONDS=3600)


@pytest.fixture
def capital_quiz() -> Assessment:
    return Assessment(
        title="Geography and numbers",
        duration=1,
        batches=["Batch A", "Batch B"],
        questions=[
            {"text": "Capital of France?", "kind": "mcq", "options": ["Paris", "Lyon", "Nice"], "correct_answer": "Paris"},
            {"text": "Pick the even numbers", "kind": "multiple", "options": ["1", "2", "3", "4"], "correct_answer": ["2", "4"]},
            {"text": "Describe a river you know", "kind": "short"},
        ],
    )


@pytest.fixture
async def make_controller(capital_quiz, env, gateway, session_settings):
    created: List[SessionController] = []

    def factory(assessment=None, gateway_=None, env_=None, config=None) -> SessionController:
        controller = SessionController(
            assessment or capital_quiz,
            gateway_ or gateway,
            env_ or env,
            config=config or session_settings,
        )
        created.append(controller)
        return controller

    yield factory
    for controller in created:
        controller.abandon()


@pytest.fixture
def controller(make_controller) -> SessionController:
    return make_controller()


@pytest.fixture
def blocking_gateway() -> BlockingGateway:
    return BlockingGateway()


@pytest.fixture
def failing_gateway() -> FailingGateway:
    return FailingGateway()
