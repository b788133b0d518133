"""Arithmetic image CAPTCHAs with one-time, server-side answer verification."""

from math_captcha.models.captcha_config import CaptchaConfig, CaptchaConfigError, OperandRange
from math_captcha.models.challenge import Challenge, Operator
from math_captcha.services.answer_store import (
    AnswerStore,
    AnswerStoreUnavailableError,
    MemoryAnswerStore,
    RedisAnswerStore,
)
from math_captcha.services.captcha_service import MathCaptcha

__all__ = [
    "AnswerStore",
    "AnswerStoreUnavailableError",
    "CaptchaConfig",
    "CaptchaConfigError",
    "Challenge",
    "MathCaptcha",
    "MemoryAnswerStore",
    "Operator",
    "OperandRange",
    "RedisAnswerStore",
]
