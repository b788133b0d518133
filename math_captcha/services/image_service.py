"""Render CAPTCHA questions as noisy PNG images."""

import base64
import io
import math
import random

from PIL import Image, ImageDraw, ImageFont

from math_captcha.models.captcha_config import CaptchaConfig

DATA_URI_PREFIX = "data:image/png;base64,"

CHAR_SPACING = 2
CHAR_JITTER_Y = 4
CHAR_JITTER_X = 1

CURVE_COLOR = (150, 150, 160)
CURVE_STEP = 10
CURVE_PERIOD = 20
CURVE_AMPLITUDE = 10
CURVE_JITTER = 3

_font: ImageFont.ImageFont | None = None


def _bitmap_font() -> ImageFont.ImageFont:
    global _font
    if _font is None:
        _font = ImageFont.load_default_imagefont()
    return _font


def _glyph_mask(char: str, cell: tuple[int, int]) -> Image.Image:
    """Draw one character with the bitmap font and scale it to the cell size."""
    font = _bitmap_font()
    _, _, right, bottom = font.getbbox(char)
    mask = Image.new("L", (max(right, 1), max(bottom, 1)), 0)
    ImageDraw.Draw(mask).text((0, 0), char, fill=255, font=font)
    return mask.resize(cell, Image.Resampling.NEAREST)


def _draw_noise(draw: ImageDraw.ImageDraw, config: CaptchaConfig, rng: random.Random) -> None:
    width, height = config.width, config.height

    for _ in range(config.noise_lines):
        start = (rng.randint(0, width - 1), rng.randint(0, height - 1))
        end = (rng.randint(0, width - 1), rng.randint(0, height - 1))
        draw.line([start, end], fill=rng.choice(config.noise_colors))

    for _ in range(config.noise_dots):
        point = (rng.randint(0, width - 1), rng.randint(0, height - 1))
        draw.point(point, fill=rng.choice(config.noise_colors))


def _draw_text(image: Image.Image, text: str, config: CaptchaConfig, rng: random.Random) -> None:
    # Characters are placed one at a time so each gets its own offset and colour.
    char_width, char_height = config.font_cell
    advance = char_width + CHAR_SPACING
    start_x = (config.width - len(text) * advance) / 2
    base_y = (config.height - char_height) / 2

    for i, char in enumerate(text):
        if char.isspace():
            continue
        x = start_x + i * advance + rng.randint(-CHAR_JITTER_X, CHAR_JITTER_X)
        y = base_y + rng.randint(-CHAR_JITTER_Y, CHAR_JITTER_Y)
        image.paste(
            rng.choice(config.text_colors),
            (int(x), int(y)),
            _glyph_mask(char, (char_width, char_height)),
        )


def _draw_curve(draw: ImageDraw.ImageDraw, config: CaptchaConfig, rng: random.Random) -> None:
    points = []
    for x in range(0, config.width, CURVE_STEP):
        y = (
            config.height / 2
            + math.sin(x / CURVE_PERIOD) * CURVE_AMPLITUDE
            + rng.randint(-CURVE_JITTER, CURVE_JITTER)
        )
        points.append((x, int(y)))

    if len(points) >= 2:
        draw.line(points, fill=CURVE_COLOR)


def render_image(text: str, config: CaptchaConfig, rng: random.Random | None = None) -> Image.Image:
    """
    Draw the question over background noise with a wavy line through it.

    Args:
        text: Question to draw, ASCII only
        config: Image dimensions, colours and noise settings
        rng: Random source for noise and jitter

    Returns:
        RGB image of exactly config.width x config.height
    """
    rng = rng or random.Random()
    image = Image.new("RGB", (config.width, config.height), config.background_color)
    draw = ImageDraw.Draw(image)

    _draw_noise(draw, config, rng)
    _draw_text(image, text, config, rng)
    _draw_curve(draw, config, rng)

    return image


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_uri(png: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(png).decode("ascii")


def render_challenge_image(
    text: str, config: CaptchaConfig, rng: random.Random | None = None
) -> str:
    """Render the question and return it as a base64 PNG data URI."""
    return to_data_uri(encode_png(render_image(text, config, rng)))
