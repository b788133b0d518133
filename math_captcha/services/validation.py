from math_captcha.services.captcha_service import CaptchaGenerator

REQUIRED_MESSAGE = "The CAPTCHA verification is required."
INCORRECT_MESSAGE = "The CAPTCHA answer is incorrect. Please try again."


class CaptchaValidationError(ValueError):
    message = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class CaptchaRequiredError(CaptchaValidationError):
    message = REQUIRED_MESSAGE


class CaptchaIncorrectError(CaptchaValidationError):
    message = INCORRECT_MESSAGE


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_captcha(
    captcha: CaptchaGenerator,
    token: str | None,
    answer: int | str | None,
) -> None:
    """
    Validate a submitted CAPTCHA solution for a form.

    Raises CaptchaRequiredError if the token or answer is missing and
    CaptchaIncorrectError if verification fails. An answer of 0 counts as
    present.
    """
    if _is_missing(token) or _is_missing(answer):
        raise CaptchaRequiredError()

    if not captcha.verify(token, answer):
        raise CaptchaIncorrectError()
