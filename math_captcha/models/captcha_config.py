from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType

from math_captcha.config import Settings
from math_captcha.models.challenge import Operator

RGB = tuple[int, int, int]

# Character cell (width, height) of the classic bitmap fonts, by size 1-5.
BITMAP_FONT_CELLS: dict[int, tuple[int, int]] = {
    1: (5, 8),
    2: (6, 13),
    3: (7, 13),
    4: (8, 16),
    5: (9, 15),
}


class CaptchaConfigError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class OperandRange:
    min1: int
    max1: int
    min2: int
    max2: int

    @staticmethod
    def from_mapping(data: Mapping[str, int]) -> "OperandRange":
        try:
            return OperandRange(
                min1=int(data["min1"]),
                max1=int(data["max1"]),
                min2=int(data["min2"]),
                max2=int(data["max2"]),
            )
        except KeyError as e:
            raise CaptchaConfigError(f"Operand range is missing {e.args[0]!r}") from e


DEFAULT_RANGES: Mapping[Operator, OperandRange] = MappingProxyType(
    {
        Operator.ADD: OperandRange(min1=1, max1=50, min2=1, max2=50),
        Operator.SUBTRACT: OperandRange(min1=20, max1=50, min2=1, max2=20),
        Operator.MULTIPLY: OperandRange(min1=2, max1=12, min2=2, max2=9),
    }
)


def parse_operator(value: str | Operator) -> Operator:
    try:
        return Operator(value)
    except ValueError as e:
        raise CaptchaConfigError(f"Unsupported operator: {value!r}") from e


def _check_color(name: str, color: Iterable[int]) -> RGB:
    channels = tuple(color)
    if len(channels) != 3 or not all(
        isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in channels
    ):
        raise CaptchaConfigError(f"{name} must be an RGB triple of 0-255 ints, got {channels!r}")
    return channels  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class CaptchaConfig:
    """
    Immutable CAPTCHA configuration.

    Built once at startup and handed to the service. Every invariant is
    checked here so a bad deployment fails at boot instead of mid-request.
    """

    width: int = 200
    height: int = 60
    ttl_minutes: int = 10
    operators: tuple[Operator, ...] = (Operator.ADD, Operator.SUBTRACT, Operator.MULTIPLY)
    ranges: Mapping[Operator, OperandRange] = field(default_factory=lambda: DEFAULT_RANGES)
    background_color: RGB = (245, 245, 247)
    text_colors: tuple[RGB, ...] = ((30, 30, 50), (50, 30, 80), (30, 60, 60))
    noise_colors: tuple[RGB, ...] = ((200, 200, 210), (180, 190, 200), (210, 200, 190))
    noise_lines: int = 8
    noise_dots: int = 100
    font_size: int = 5
    cache_prefix: str = "math_captcha"

    def __post_init__(self) -> None:
        # Take read-only copies so callers cannot change a config after validation
        object.__setattr__(self, "ranges", MappingProxyType(dict(self.ranges)))
        object.__setattr__(self, "operators", tuple(self.operators))
        object.__setattr__(self, "text_colors", tuple(tuple(c) for c in self.text_colors))
        object.__setattr__(self, "noise_colors", tuple(tuple(c) for c in self.noise_colors))
        object.__setattr__(self, "background_color", tuple(self.background_color))

        if self.width <= 0 or self.height <= 0:
            raise CaptchaConfigError("Image width and height must be positive")
        if self.ttl_minutes <= 0:
            raise CaptchaConfigError("ttl_minutes must be positive")
        if self.noise_lines < 0 or self.noise_dots < 0:
            raise CaptchaConfigError("Noise line and dot counts cannot be negative")
        if self.font_size not in BITMAP_FONT_CELLS:
            raise CaptchaConfigError(f"font_size must be between 1 and 5, got {self.font_size}")
        if not self.cache_prefix:
            raise CaptchaConfigError("cache_prefix cannot be empty")

        if not self.operators:
            raise CaptchaConfigError("At least one operator must be enabled")
        for op in self.operators:
            if not isinstance(op, Operator):
                raise CaptchaConfigError(f"Unsupported operator: {op!r}")
            bounds = self.ranges.get(op)
            if bounds is None:
                raise CaptchaConfigError(f"No operand range configured for operator {op.value!r}")
            if bounds.min1 > bounds.max1 or bounds.min2 > bounds.max2:
                raise CaptchaConfigError(
                    f"Operand range for {op.value!r} has min greater than max: {bounds}"
                )

        _check_color("background_color", self.background_color)
        if not self.text_colors:
            raise CaptchaConfigError("text_colors cannot be empty")
        if not self.noise_colors:
            raise CaptchaConfigError("noise_colors cannot be empty")
        for color in self.text_colors:
            _check_color("text_colors", color)
        for color in self.noise_colors:
            _check_color("noise_colors", color)

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.ttl_minutes)

    @property
    def font_cell(self) -> tuple[int, int]:
        return BITMAP_FONT_CELLS[self.font_size]

    def cache_key(self, token: str) -> str:
        return f"{self.cache_prefix}:{token}"

    @staticmethod
    def from_settings(settings: Settings) -> "CaptchaConfig":
        operators = tuple(parse_operator(op) for op in settings.operators)
        ranges = {
            parse_operator(op): OperandRange.from_mapping(bounds)
            for op, bounds in settings.ranges.items()
        }
        return CaptchaConfig(
            width=settings.width,
            height=settings.height,
            ttl_minutes=settings.ttl_minutes,
            operators=operators,
            ranges=ranges,
            background_color=_check_color("background_color", settings.background_color),
            text_colors=tuple(_check_color("text_colors", c) for c in settings.text_colors),
            noise_colors=tuple(_check_color("noise_colors", c) for c in settings.noise_colors),
            noise_lines=settings.noise_lines,
            noise_dots=settings.noise_dots,
            font_size=settings.font_size,
            cache_prefix=settings.cache_prefix,
        )
