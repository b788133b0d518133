import random

import pytest
from fastapi.testclient import TestClient

from math_captcha.config import Settings
from math_captcha.main import create_app
from math_captcha.models.captcha_config import CaptchaConfig, OperandRange
from math_captcha.models.challenge import Operator
from math_captcha.services.answer_store import MemoryAnswerStore
from math_captcha.services.captcha_service import MathCaptcha
from tests.test_utils import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Fresh in-memory answer store driven by a fake clock."""
    return MemoryAnswerStore(clock=clock)


@pytest.fixture
def fixed_addition_config():
    """Config that always asks '5 + 3 = ?'."""
    return CaptchaConfig(
        operators=(Operator.ADD,),
        ranges={Operator.ADD: OperandRange(min1=5, max1=5, min2=3, max2=3)},
    )


@pytest.fixture
def captcha(store):
    """Service with default configuration and a seeded puzzle source."""
    return MathCaptcha(CaptchaConfig(), store, rng=random.Random(1234))


@pytest.fixture
def fixed_captcha(store, fixed_addition_config):
    return MathCaptcha(fixed_addition_config, store)


@pytest.fixture
def app_settings():
    return Settings(
        operators=["+"],
        ranges={"+": {"min1": 5, "max1": 5, "min2": 3, "max2": 3}},
        store_backend="memory",
        rate_limit_enabled=False,
    )


@pytest.fixture
def client(app_settings):
    """Test client for an app that always asks '5 + 3 = ?', rate limiting disabled."""
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client
