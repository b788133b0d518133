from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_prefix="MATH_CAPTCHA_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Image
    width: int = 200
    height: int = 60
    background_color: tuple[int, int, int] = (245, 245, 247)
    text_colors: list[tuple[int, int, int]] = [(30, 30, 50), (50, 30, 80), (30, 60, 60)]
    noise_colors: list[tuple[int, int, int]] = [
        (200, 200, 210),
        (180, 190, 200),
        (210, 200, 190),
    ]
    noise_lines: int = 8
    noise_dots: int = 100
    font_size: int = 5  # bitmap font 1-5

    # Puzzle (complex values are JSON in the environment,
    # e.g. MATH_CAPTCHA_OPERATORS='["+", "-"]')
    operators: list[str] = ["+", "-", "*"]
    ranges: dict[str, dict[str, int]] = {
        "+": {"min1": 1, "max1": 50, "min2": 1, "max2": 50},
        "-": {"min1": 20, "max1": 50, "min2": 1, "max2": 20},
        "*": {"min1": 2, "max1": 12, "min2": 2, "max2": 9},
    }

    # Answer store
    ttl_minutes: int = 10
    cache_prefix: str = "math_captcha"
    store_backend: str = "memory"  # "memory" or "redis"
    redis_url: str = "redis://localhost:6379/0"
    store_reap_interval_seconds: int = 60

    # Routes
    route_enabled: bool = True
    route_path: str = "/captcha"

    # Rate Limiting (slowapi limit strings)
    rate_limit_enabled: bool = True
    rate_limit_generate: str = "30/minute"
    rate_limit_verify: str = "30/minute"

    # CORS
    cors_origins: list[str] | str = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
