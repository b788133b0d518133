from math_captcha.schemas.captcha import (
    CaptchaResponse,
    CaptchaVerifyRequest,
    CaptchaVerifyResponse,
)

__all__ = [
    "CaptchaResponse",
    "CaptchaVerifyRequest",
    "CaptchaVerifyResponse",
]
