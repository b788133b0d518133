from pydantic import BaseModel, Field, StrictInt, StrictStr


class CaptchaResponse(BaseModel):
    token: str = Field(..., min_length=32, max_length=32)
    image: str = Field(..., description="PNG image as a data:image/png;base64 URI")


class CaptchaVerifyRequest(BaseModel):
    captcha_token: StrictStr | None = Field(None, max_length=128)
    # Strict so JSON true or 1.0 is not quietly turned into the int 1
    captcha_answer: StrictInt | StrictStr | None = Field(
        None, description="Integer or string of digits"
    )


class CaptchaVerifyResponse(BaseModel):
    valid: bool
