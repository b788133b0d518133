import random
import re
import secrets
import string
from collections.abc import Callable
from typing import Protocol

from math_captcha.logging_config import get_logger
from math_captcha.models.captcha_config import CaptchaConfig
from math_captcha.models.challenge import Challenge, Puzzle
from math_captcha.services.answer_store import AnswerStore
from math_captcha.services.image_service import render_challenge_image

logger = get_logger(__name__)

TOKEN_LENGTH = 32
TOKEN_ALPHABET = string.ascii_letters + string.digits

_INTEGER_RE = re.compile(r"[+-]?\d+")


class CaptchaGenerator(Protocol):
    def generate(self) -> Challenge: ...

    def verify(self, token: str, answer: int | str) -> bool: ...


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Generate an unguessable alphanumeric token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def draw_puzzle(config: CaptchaConfig, rng: random.Random) -> Puzzle:
    """Pick an enabled operator and two operands from its configured ranges."""
    operator = rng.choice(config.operators)
    bounds = config.ranges[operator]
    operand1 = rng.randint(bounds.min1, bounds.max1)
    operand2 = rng.randint(bounds.min2, bounds.max2)

    return Puzzle(
        operator=operator,
        operand1=operand1,
        operand2=operand2,
        answer=operator.apply(operand1, operand2),
    )


def parse_answer(answer: object) -> int | None:
    """
    Convert a submitted answer to an int.

    Accepts ints and strings of optionally signed digits with surrounding
    whitespace. Returns None for anything else; bools are not answers.
    """
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer
    if isinstance(answer, str):
        candidate = answer.strip()
        if _INTEGER_RE.fullmatch(candidate):
            return int(candidate)
    return None


class MathCaptcha:
    """
    Issues arithmetic image challenges and verifies answers.

    The expected answer lives only in the answer store, keyed by
    "{cache_prefix}:{token}". Every verification attempt consumes the token.
    """

    def __init__(
        self,
        config: CaptchaConfig,
        store: AnswerStore,
        *,
        rng: random.Random | None = None,
        token_factory: Callable[[], str] = generate_token,
        renderer: Callable[..., str] = render_challenge_image,
    ) -> None:
        self._config = config
        self._store = store
        self._rng = rng or random.Random()
        self._token_factory = token_factory
        self._renderer = renderer

    @property
    def config(self) -> CaptchaConfig:
        return self._config

    def generate(self) -> Challenge:
        """Create a challenge, store its answer and render the question image."""
        puzzle = draw_puzzle(self._config, self._rng)
        token = self._token_factory()

        self._store.put(self._config.cache_key(token), puzzle.answer, self._config.ttl)

        image = self._renderer(puzzle.question, self._config, self._rng)

        logger.info(
            "captcha_generated",
            operator=puzzle.operator.value,
            ttl_minutes=self._config.ttl_minutes,
        )

        return Challenge(token=token, image=image)

    def verify(self, token: str, answer: int | str) -> bool:
        """
        Check an answer against the stored one.

        Returns False for unknown, expired or already used tokens. The stored
        answer is removed whether or not the answer matches.
        """
        expected = self._store.pull(self._config.cache_key(token))
        if expected is None:
            logger.info("captcha_rejected", reason="unknown_token")
            return False

        submitted = parse_answer(answer)
        if submitted is None:
            logger.info("captcha_rejected", reason="malformed_answer")
            return False

        if submitted != expected:
            logger.info("captcha_rejected", reason="wrong_answer")
            return False

        logger.info("captcha_verified")
        return True
