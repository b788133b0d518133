from fastapi import Request

from math_captcha.services.captcha_service import MathCaptcha


def get_captcha(request: Request) -> MathCaptcha:
    """Dependency for FastAPI endpoints to get the CAPTCHA service built at startup."""
    return request.app.state.captcha
