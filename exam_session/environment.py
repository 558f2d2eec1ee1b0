"""Environment capabilities consumed by the integrity monitor."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

Detach = Callable[[], None]

ESCAPE_KEYS = frozenset({"Escape", "Esc"})


@dataclass
class KeyPress:
    """Keyboard event delivered by the environment to key listeners."""

    key: str
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class Environment(Protocol):  # Browser/device capability interface
    async def request_media(self, device_id: Optional[str] = None) -> None:
        """Acquire camera and microphone; raise ``CapabilityDenied`` on refusal."""
        ...

    def release_media(self) -> None: ...

    async def request_fullscreen(self) -> None:
        """Enter fullscreen; raise ``CapabilityDenied`` when refused."""
        ...

    def exit_fullscreen(self) -> None: ...

    def is_fullscreen(self) -> bool: ...

    def list_video_devices(self) -> List[str]: ...

    def video_track_live(self) -> bool: ...

    def sample_luminance(self) -> Optional[float]:
        """Mean luma (0-255) of the current frame, or None when sampling is unsupported."""
        ...

    def on_fullscreen_change(self, listener: Callable[[bool], None]) -> Detach: ...

    def on_key_down(self, listener: Callable[[KeyPress], None]) -> Detach: ...


__all__ = ["Detach", "ESCAPE_KEYS", "Environment", "KeyPress"]
