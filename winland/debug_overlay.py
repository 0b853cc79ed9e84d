"""On-screen debug overlay: frame timing, memory and compositor statistics."""

from __future__ import annotations

import enum
import logging
import time
import tracemalloc
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Union

try:
    import resource
except ImportError:  # not available on every platform
    resource = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 100
LOG_LINE_LENGTH = 256
LINE_HEIGHT = 18
REFERENCE_WIDTH = 1920.0
REFERENCE_HEIGHT = 1080.0
TITLE = "=== Winland Debug ==="

_INFO_MASK = 0xFF


class DebugInfo(enum.IntFlag):
    NONE = 0
    FPS = 1 << 0
    MEMORY = 1 << 1
    SURFACES = 1 << 2
    INPUT = 1 << 3
    RENDER = 1 << 4
    WAYLAND = 1 << 5
    ALL = 0xFF


@dataclass
class DebugStats:
    fps: float = 0.0
    frame_time_ms: float = 0.0
    frame_count: int = 0

    memory_used: int = 0
    memory_total: int = 0
    native_heap: int = 0

    surface_count: int = 0
    mapped_surfaces: int = 0

    input_events_per_second: int = 0

    draw_calls: int = 0
    vertices: int = 0

    connected_clients: int = 0
    pending_messages: int = 0


def _color(r: float, g: float, b: float, a: float) -> tuple[float, float, float, float]:
    return (r, g, b, a)


_ZERO_COLOR = _color(0.0, 0.0, 0.0, 0.0)


@dataclass
class _OverlayState:
    initialized: bool = False
    enabled: bool = False
    show_info: DebugInfo = DebugInfo.NONE
    stats: DebugStats = field(default_factory=DebugStats)
    last_frame_time: int = 0
    frame_counter: int = 0
    fps_accumulator: float = 0.0
    memory_timer: float = 0.0
    font_size: int = 0
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    bg_color: tuple[float, float, float, float] = _ZERO_COLOR
    text_color: tuple[float, float, float, float] = _ZERO_COLOR
    accent_color: tuple[float, float, float, float] = _ZERO_COLOR


class DebugOverlay:
    """Collects statistics and produces the overlay's text and geometry."""

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._state = _OverlayState()
        self._log: deque[str] = deque(maxlen=MAX_LOG_LINES)

    def __getattr__(self, name: str):
        state = self.__dict__.get("_state")
        if state is not None and hasattr(state, name):
            return getattr(state, name)
        raise AttributeError(name)

    @property
    def stats(self) -> DebugStats:
        return self._state.stats

    def init(self) -> None:
        """Set the default layout, colours and shown information."""
        if self._state.initialized:
            return
        self._state = _OverlayState(
            initialized=True,
            enabled=False,
            show_info=DebugInfo.FPS | DebugInfo.MEMORY,
            x=10,
            y=10,
            width=300,
            height=200,
            font_size=14,
            bg_color=_color(0.0, 0.0, 0.0, 0.7),
            text_color=_color(1.0, 1.0, 1.0, 1.0),
            accent_color=_color(0.3, 0.7, 1.0, 1.0),
        )
        logger.info("Debug overlay initialized")

    def terminate(self) -> None:
        if not self._state.initialized:
            return
        self._state = _OverlayState()
        logger.info("Debug overlay terminated")

    def enable(self, enable: bool) -> None:
        self._state.enabled = bool(enable)
        logger.info("Debug overlay %s", "enabled" if enable else "disabled")

    def is_enabled(self) -> bool:
        return self._state.enabled

    def set_position(self, x: int, y: int) -> None:
        self._state.x = x
        self._state.y = y

    def set_size(self, width: int, height: int) -> None:
        self._state.width = width
        self._state.height = height

    def _set_info(self, value: int) -> None:
        self._state.show_info = DebugInfo(value & _INFO_MASK)

    def show_info(self, info: Union[DebugInfo, int]) -> None:
        self._set_info(int(self._state.show_info) | int(info))

    def hide_info(self, info: Union[DebugInfo, int]) -> None:
        self._set_info(int(self._state.show_info) & ~int(info))

    def toggle_info(self, info: Union[DebugInfo, int]) -> None:
        self._set_info(int(self._state.show_info) ^ int(info))

    def update_fps(self, delta_time: float) -> None:
        """Account one frame; recompute the rate once a second has gathered."""
        state = self._state
        state.frame_counter += 1
        state.fps_accumulator += delta_time
        if state.fps_accumulator >= 1.0:
            state.stats.fps = state.frame_counter / state.fps_accumulator
            state.stats.frame_time_ms = (
                state.fps_accumulator / state.frame_counter
            ) * 1000.0
            state.stats.frame_count = state.frame_counter
            state.frame_counter = 0
            state.fps_accumulator = 0.0

    def update_memory(self) -> None:
        """Sample the process's peak resident size and traced heap."""
        if resource is not None:
            usage = resource.getrusage(resource.RUSAGE_SELF)
            self._state.stats.memory_used = usage.ru_maxrss * 1024
        if tracemalloc.is_tracing():
            self._state.stats.native_heap = tracemalloc.get_traced_memory()[0]

    def update_surfaces(self, count: int, mapped: int) -> None:
        self._state.stats.surface_count = count
        self._state.stats.mapped_surfaces = mapped

    def update_input(self, events: int) -> None:
        self._state.stats.input_events_per_second = events

    def update_render(self, draw_calls: int, vertices: int) -> None:
        self._state.stats.draw_calls = draw_calls
        self._state.stats.vertices = vertices

    def update_wayland(self, clients: int, pending: int) -> None:
        self._state.stats.connected_clients = clients
        self._state.stats.pending_messages = pending

    def background_quad(self) -> list[tuple[float, float]]:
        """Corners of the background in clip space, as a triangle strip."""
        s = self._state

        def to_clip(px: float, py: float) -> tuple[float, float]:
            return (
                -1.0 + 2.0 * px / REFERENCE_WIDTH,
                1.0 - 2.0 * py / REFERENCE_HEIGHT,
            )

        left, right = s.x, s.x + s.width
        top, bottom = s.y, s.y + s.height
        return [
            to_clip(left, top),
            to_clip(right, top),
            to_clip(left, bottom),
            to_clip(right, bottom),
        ]

    def render_stats(self) -> list[tuple[int, int, str]]:
        """Return the overlay text as ``(x, y, text)`` lines; empty when disabled."""
        s = self._state
        if not s.enabled:
            return []
        stats = s.stats
        x = s.x + 10
        y = s.y + 10
        lines = [(x, y, TITLE)]
        y += LINE_HEIGHT * 2
        sections = (
            (DebugInfo.FPS,
             f"FPS: {stats.fps:.1f} ({stats.frame_time_ms:.2f} ms)"),
            (DebugInfo.MEMORY,
             f"Memory: {stats.memory_used / (1024.0 * 1024.0):.1f} MB "
             f"(Heap: {stats.native_heap / (1024.0 * 1024.0):.1f} MB)"),
            (DebugInfo.SURFACES,
             f"Surfaces: {stats.surface_count} (Mapped: {stats.mapped_surfaces})"),
            (DebugInfo.INPUT,
             f"Input: {stats.input_events_per_second} events/s"),
            (DebugInfo.RENDER,
             f"Render: {stats.draw_calls} draw calls, {stats.vertices} vertices"),
            (DebugInfo.WAYLAND,
             f"Wayland: {stats.connected_clients} clients, "
             f"{stats.pending_messages} pending"),
        )
        for flag, text in sections:
            if int(s.show_info) & int(flag):
                lines.append((x, y, text))
                y += LINE_HEIGHT
        for _, _, text in lines:
            logger.info("[Overlay] %s", text)
        return lines

    def log(self, message: str) -> None:
        """Append a line to the ring buffer of the last log lines."""
        line = str(message)[: LOG_LINE_LENGTH - 1]
        self._log.append(line)
        logger.info("[Overlay] %s", line)

    def clear_log(self) -> None:
        self._log.clear()

    def log_lines(self) -> list[str]:
        """Return the buffered log lines, oldest first."""
        return list(self._log)

    def begin_frame(self) -> None:
        if not self._state.enabled:
            return
        self._state.last_frame_time = self._clock()

    def end_frame(self) -> None:
        """Close the frame: update the frame rate and, once a second, memory."""
        state = self._state
        if not state.enabled:
            return
        now = self._clock()
        delta_time = (now - state.last_frame_time) / 1_000_000_000.0
        self.update_fps(delta_time)
        state.memory_timer += delta_time
        if state.memory_timer >= 1.0:
            self.update_memory()
            state.memory_timer = 0.0

    def mark_event(self, name: str) -> None:
        if not self._state.enabled:
            return
        self.log(f"Event: {name}")