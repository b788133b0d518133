from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter

from math_captcha.config import Settings
from math_captcha.dependencies import get_captcha
from math_captcha.schemas.captcha import (
    CaptchaResponse,
    CaptchaVerifyRequest,
    CaptchaVerifyResponse,
)
from math_captcha.services.captcha_service import MathCaptcha
from math_captcha.services.validation import (
    CaptchaIncorrectError,
    CaptchaRequiredError,
    validate_captcha,
)


def build_router(settings: Settings, limiter: Limiter) -> APIRouter:
    """Create the CAPTCHA routes, rate limited per settings."""
    router = APIRouter()

    @router.post("", response_model=CaptchaResponse, status_code=201)
    @limiter.limit(settings.rate_limit_generate)
    async def create_captcha(
        request: Request,
        captcha: MathCaptcha = Depends(get_captcha),
    ):
        """
        Issue a new math CAPTCHA.

        The client shows the image and sends the token back with its answer.
        """
        challenge = captcha.generate()
        return CaptchaResponse(token=challenge.token, image=challenge.image)

    @router.post("/verify", response_model=CaptchaVerifyResponse)
    @limiter.limit(settings.rate_limit_verify)
    async def verify_captcha(
        request: Request,
        solution: CaptchaVerifyRequest,
        captcha: MathCaptcha = Depends(get_captcha),
    ):
        """
        Check a CAPTCHA answer. The token is consumed by this call.
        """
        try:
            validate_captcha(captcha, solution.captcha_token, solution.captcha_answer)
        except CaptchaRequiredError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except CaptchaIncorrectError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return CaptchaVerifyResponse(valid=True)

    return router
