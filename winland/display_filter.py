"""Colour filters for the compositor output: night, reading, grayscale and more."""

from __future__ import annotations

import copy
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Pixel = tuple[float, float, float, float]
Matrix = tuple[float, ...]


class FilterType(enum.IntEnum):
    NONE = 0
    NIGHT_MODE = 1
    READING_MODE = 2
    COLOR_BLIND = 3
    HIGH_CONTRAST = 4
    GRAYSCALE = 5
    INVERT = 6
    SEPIA = 7
    CUSTOM = 8


class ColorBlindType(enum.IntEnum):
    NONE = 0
    DEUTERANOPIA = 1
    PROTANOPIA = 2
    TRITANOPIA = 3


# 4x4 matrices stored column by column, as the shader receives them.
NIGHT_MODE_MATRIX: Matrix = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 0.9, 0.0, 0.0,
    0.0, 0.0, 0.7, 0.0,
    0.0, 0.0, 0.0, 1.0,
)

GRAYSCALE_MATRIX: Matrix = (
    0.299, 0.587, 0.114, 0.0,
    0.299, 0.587, 0.114, 0.0,
    0.299, 0.587, 0.114, 0.0,
    0.0, 0.0, 0.0, 1.0,
)

SEPIA_MATRIX: Matrix = (
    0.393, 0.769, 0.189, 0.0,
    0.349, 0.686, 0.168, 0.0,
    0.272, 0.534, 0.131, 0.0,
    0.0, 0.0, 0.0, 1.0,
)

INVERT_MATRIX: Matrix = (
    -1.0, 0.0, 0.0, 0.0,
    0.0, -1.0, 0.0, 0.0,
    0.0, 0.0, -1.0, 0.0,
    1.0, 1.0, 1.0, 1.0,
)

_TYPE_NAMES = {
    FilterType.NONE: "None",
    FilterType.NIGHT_MODE: "Night Mode",
    FilterType.READING_MODE: "Reading Mode",
    FilterType.COLOR_BLIND: "Color Blind",
    FilterType.HIGH_CONTRAST: "High Contrast",
    FilterType.GRAYSCALE: "Grayscale",
    FilterType.INVERT: "Invert",
    FilterType.SEPIA: "Sepia",
    FilterType.CUSTOM: "Custom",
}

# Night and reading mode both use the sepia matrix when rendering.
_TYPE_MATRICES = {
    FilterType.NIGHT_MODE: SEPIA_MATRIX,
    FilterType.READING_MODE: SEPIA_MATRIX,
    FilterType.GRAYSCALE: GRAYSCALE_MATRIX,
    FilterType.INVERT: INVERT_MATRIX,
    FilterType.SEPIA: SEPIA_MATRIX,
}


def filter_type_name(filter_type: Union[FilterType, int]) -> str:
    """Human-readable name of a filter type; "Unknown" for other values."""
    try:
        return _TYPE_NAMES[FilterType(filter_type)]
    except ValueError:
        return "Unknown"


def color_matrix(filter_type: Union[FilterType, int]) -> Optional[Matrix]:
    """The colour matrix used for a filter type, or None if it has none."""
    try:
        return _TYPE_MATRICES.get(FilterType(filter_type))
    except ValueError:
        return None


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def apply_matrix(pixel: Sequence[float], matrix: Sequence[float], intensity: float) -> Pixel:
    """Blend an RGBA pixel with its matrix-transformed colour.

    The matrix is column-major; the result is clamped to [0, 1] per channel.
    """
    if len(pixel) != 4 or len(matrix) != 16:
        raise ValueError("pixel needs 4 channels and matrix 16 values")
    filtered = [
        sum(matrix[col * 4 + row] * pixel[col] for col in range(4))
        for row in range(4)
    ]
    blended = (
        orig * (1.0 - intensity) + new * intensity
        for orig, new in zip(pixel, filtered)
    )
    return tuple(_clamp(value) for value in blended)  # type: ignore[return-value]


@dataclass
class NightModeSettings:
    color_temperature: float = 3000.0
    blue_light_reduction: float = 0.5
    dimming: float = 0.2
    auto_schedule: bool = False
    start_hour: int = 22
    end_hour: int = 6


@dataclass
class ReadingModeSettings:
    sepia_intensity: float = 0.3
    contrast: float = 1.1
    sharpness: float = 1.2


@dataclass
class ColorBlindSettings:
    type: ColorBlindType = ColorBlindType.NONE
    severity: float = 1.0


@dataclass
class HighContrastSettings:
    contrast: float = 1.5
    brightness: float = 1.1


@dataclass
class FilterConfig:
    type: FilterType = FilterType.NONE
    enabled: bool = False
    intensity: float = 0.5
    night_mode: NightModeSettings = field(default_factory=NightModeSettings)
    reading_mode: ReadingModeSettings = field(default_factory=ReadingModeSettings)
    color_blind: ColorBlindSettings = field(default_factory=ColorBlindSettings)
    high_contrast: HighContrastSettings = field(default_factory=HighContrastSettings)
    custom_matrix: Matrix = (0.0,) * 16


class DisplayFilter:
    """Holds the filter settings and applies the active filter to pixels."""

    def __init__(self) -> None:
        self.initialized = False
        self.config = FilterConfig()
        self.active = False
        self.auto_enabled = False

    def init(self) -> None:
        """Load the default settings."""
        if self.initialized:
            return
        self.config = FilterConfig()
        self.active = False
        self.auto_enabled = False
        self.initialized = True
        logger.info("Display filter initialized")

    def terminate(self) -> None:
        if not self.initialized:
            return
        self.config = FilterConfig()
        self.active = False
        self.auto_enabled = False
        self.initialized = False
        logger.info("Display filter terminated")

    def set_config(self, config: FilterConfig) -> None:
        if config is None:
            return
        self.config = copy.deepcopy(config)

    def enable(self, enable: bool) -> None:
        self.config.enabled = bool(enable)
        self.active = bool(enable)
        logger.info("Display filter %s", "enabled" if enable else "disabled")

    def is_enabled(self) -> bool:
        return self.config.enabled

    @property
    def intensity(self) -> float:
        return self.config.intensity

    def set_intensity(self, intensity: float) -> None:
        """Set the blend strength, clamped to [0, 1]."""
        self.config.intensity = _clamp(intensity)

    def set_type(self, filter_type: Union[FilterType, int]) -> None:
        self.config.type = FilterType(filter_type)
        logger.info("Filter type set to: %s", filter_type_name(filter_type))

    def _set_mode(self, filter_type: FilterType, enable: bool) -> None:
        if enable:
            self.config.type = filter_type
            self.config.enabled = True
        elif self.config.type == filter_type:
            self.config.enabled = False

    def set_night_mode(self, enable: bool) -> None:
        self._set_mode(FilterType.NIGHT_MODE, enable)
        logger.info("Night mode %s", "enabled" if enable else "disabled")

    def set_color_temperature(self, kelvin: float) -> None:
        self.config.night_mode.color_temperature = kelvin
        logger.info("Color temperature set to: %.0fK", kelvin)

    def set_blue_light_reduction(self, reduction: float) -> None:
        self.config.night_mode.blue_light_reduction = reduction

    def set_night_schedule(self, auto_schedule: bool, start_hour: int, end_hour: int) -> None:
        night = self.config.night_mode
        night.auto_schedule = bool(auto_schedule)
        night.start_hour = start_hour
        night.end_hour = end_hour
        logger.info(
            "Night schedule: %s (%02d:00 - %02d:00)",
            "auto" if auto_schedule else "manual",
            start_hour,
            end_hour,
        )

    def is_night_mode_active(self, hour: Optional[int] = None) -> bool:
        """Whether night mode applies now, or at ``hour`` when given."""
        night = self.config.night_mode
        if not night.auto_schedule:
            return self.config.enabled and self.config.type == FilterType.NIGHT_MODE
        if hour is None:
            hour = time.localtime().tm_hour
        start, end = night.start_hour, night.end_hour
        if start <= end:
            return start <= hour < end
        return hour >= start or hour < end

    def set_reading_mode(self, enable: bool) -> None:
        self._set_mode(FilterType.READING_MODE, enable)
        logger.info("Reading mode %s", "enabled" if enable else "disabled")

    def set_sepia(self, intensity: float) -> None:
        self.config.reading_mode.sepia_intensity = intensity

    def set_sharpness(self, sharpness: float) -> None:
        self.config.reading_mode.sharpness = sharpness

    def set_color_blind_mode(
        self, enable: bool, color_blind_type: Union[ColorBlindType, int]
    ) -> None:
        if enable:
            self.config.type = FilterType.COLOR_BLIND
            self.config.color_blind.type = ColorBlindType(color_blind_type)
            self.config.enabled = True
        elif self.config.type == FilterType.COLOR_BLIND:
            self.config.enabled = False
        logger.info(
            "Color blind mode %s (type: %d)",
            "enabled" if enable else "disabled",
            int(color_blind_type),
        )

    def set_color_blind_severity(self, severity: float) -> None:
        self.config.color_blind.severity = severity

    def set_high_contrast(self, enable: bool) -> None:
        self._set_mode(FilterType.HIGH_CONTRAST, enable)
        logger.info("High contrast %s", "enabled" if enable else "disabled")

    def set_contrast(self, contrast: float) -> None:
        self.config.high_contrast.contrast = contrast

    def set_brightness(self, brightness: float) -> None:
        self.config.high_contrast.brightness = brightness

    def apply(self, pixels: Iterable[Sequence[float]]) -> list[Pixel]:
        """Filter RGBA pixels; they pass unchanged when no filter is in effect."""
        pixels = [tuple(p) for p in pixels]
        if not self.initialized or not self.config.enabled:
            return pixels  # type: ignore[return-value]
        matrix = color_matrix(self.config.type)
        if matrix is None:
            return pixels  # type: ignore[return-value]
        intensity = self.config.intensity
        return [apply_matrix(p, matrix, intensity) for p in pixels]

    def check_schedule(self, hour: Optional[int] = None) -> None:
        """Switch night mode on or off according to the schedule."""
        if not self.config.night_mode.auto_schedule:
            return
        should_enable = self.is_night_mode_active(hour)
        if should_enable and not self.config.enabled:
            self.set_night_mode(True)
            logger.info("Night mode auto-enabled")
        elif (
            not should_enable
            and self.config.enabled
            and self.config.type == FilterType.NIGHT_MODE
        ):
            self.enable(False)
            logger.info("Night mode auto-disabled")

    def enable_auto(self, enable: bool) -> None:
        self.auto_enabled = bool(enable)