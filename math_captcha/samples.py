"""
Write sample CAPTCHA images for documentation.

Usage:
    math-captcha-samples
    math-captcha-samples --output-dir docs/images
"""

import argparse
import random
from pathlib import Path

from math_captcha.models.captcha_config import CaptchaConfig
from math_captcha.services.image_service import encode_png, render_image

SAMPLES = {
    "24 + 17 = ?": "captcha-addition.png",
    "45 - 12 = ?": "captcha-subtraction.png",
    "7 x 8 = ?": "captcha-multiplication.png",
    "32 + 15 = ?": "captcha-example.png",
}


def write_samples(
    output_dir: Path,
    config: CaptchaConfig | None = None,
    rng: random.Random | None = None,
) -> list[Path]:
    """Render every sample question into output_dir. Returns the written paths."""
    config = config or CaptchaConfig()
    rng = rng or random.Random()
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for question, filename in SAMPLES.items():
        path = output_dir / filename
        path.write_bytes(encode_png(render_image(question, config, rng)))
        written.append(path)
    return written


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate sample math CAPTCHA images")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("docs"),
        help="Directory to write PNG files to (default: docs)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible noise and jitter",
    )
    args = parser.parse_args(argv)

    print("Generating sample CAPTCHA images...")
    for path in write_samples(args.output_dir, rng=random.Random(args.seed)):
        print(f"  Created: {path}")
    print(f"\nDone! Sample images saved to {args.output_dir}/")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
