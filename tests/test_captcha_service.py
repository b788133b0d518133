"""Tests for challenge generation and verification."""

import random
import string
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from math_captcha.models.captcha_config import CaptchaConfig, OperandRange
from math_captcha.models.challenge import Operator
from math_captcha.services.answer_store import AnswerStoreUnavailableError
from math_captcha.services.captcha_service import (
    MathCaptcha,
    draw_puzzle,
    generate_token,
    parse_answer,
)
from tests.test_utils import decode_data_uri


def stub_renderer(question, config, rng):
    return "data:image/png;base64,"


def single_operator_captcha(store, operator, bounds, **kwargs):
    config = CaptchaConfig(operators=(operator,), ranges={operator: bounds})
    return MathCaptcha(config, store, **kwargs)


def stored_answer(store, config, token):
    return store.get(config.cache_key(token))


class TestGenerateToken:
    def test_token_is_32_alphanumeric_chars(self):
        token = generate_token()
        assert len(token) == 32
        assert set(token) <= set(string.ascii_letters + string.digits)

    def test_tokens_do_not_collide(self):
        assert len({generate_token() for _ in range(1000)}) == 1000


class TestDrawPuzzle:
    @pytest.mark.parametrize(
        ("operator", "low", "high"),
        [
            (Operator.ADD, 1 + 1, 50 + 50),
            (Operator.SUBTRACT, 20 - 20, 50 - 1),
            (Operator.MULTIPLY, 2 * 2, 12 * 9),
        ],
    )
    def test_answer_within_operator_bounds(self, operator, low, high):
        config = CaptchaConfig(operators=(operator,))
        rng = random.Random(7)

        for _ in range(500):
            puzzle = draw_puzzle(config, rng)
            assert puzzle.operator is operator
            assert low <= puzzle.answer <= high
            assert puzzle.answer == operator.apply(puzzle.operand1, puzzle.operand2)

    def test_operators_chosen_from_enabled_set(self):
        config = CaptchaConfig(operators=(Operator.ADD, Operator.MULTIPLY))
        rng = random.Random(3)

        seen = {draw_puzzle(config, rng).operator for _ in range(200)}

        assert seen == {Operator.ADD, Operator.MULTIPLY}

    def test_question_uses_ascii_x_for_multiplication(self):
        config = CaptchaConfig(
            operators=(Operator.MULTIPLY,),
            ranges={Operator.MULTIPLY: OperandRange(min1=7, max1=7, min2=8, max2=8)},
        )
        puzzle = draw_puzzle(config, random.Random())

        assert puzzle.question == "7 x 8 = ?"
        assert puzzle.answer == 56


class TestGenerate:
    def test_returns_token_and_png_of_configured_size(self, store):
        config = CaptchaConfig(width=240, height=80)
        challenge = MathCaptcha(config, store).generate()

        assert len(challenge.token) == 32
        image = decode_data_uri(challenge.image)
        assert image.format == "PNG"
        assert image.size == (240, 80)

    def test_challenge_exposes_only_token_and_image(self, captcha):
        challenge = captcha.generate()
        token, image = challenge

        assert challenge.as_dict() == {"token": token, "image": image}

    def test_stores_answer_under_prefixed_key(self, store, fixed_addition_config):
        captcha = MathCaptcha(fixed_addition_config, store, token_factory=lambda: "t" * 32)

        captcha.generate()

        assert store.get("math_captcha:" + "t" * 32) == 8

    def test_custom_prefix(self, store):
        config = CaptchaConfig(cache_prefix="signup")
        challenge = MathCaptcha(config, store).generate()

        assert store.get(f"signup:{challenge.token}") is not None

    def test_fixed_addition_question(self, store, fixed_addition_config):
        renderer = MagicMock(return_value="data:image/png;base64,")
        captcha = MathCaptcha(fixed_addition_config, store, renderer=renderer)

        for _ in range(5):
            challenge = captcha.generate()
            assert renderer.call_args.args[0] == "5 + 3 = ?"
            assert stored_answer(store, fixed_addition_config, challenge.token) == 8

    def test_stored_answer_matches_rendered_question(self, store):
        questions = []

        def capture(question, config, rng):
            questions.append(question)
            return "data:image/png;base64,"

        config = CaptchaConfig()
        captcha = MathCaptcha(config, store, rng=random.Random(99), renderer=capture)

        for _ in range(50):
            challenge = captcha.generate()
            left, symbol, right, _, _ = questions[-1].split(" ")
            expected = {
                "+": int(left) + int(right),
                "-": int(left) - int(right),
                "x": int(left) * int(right),
            }[symbol]
            assert stored_answer(store, config, challenge.token) == expected

    def test_answer_stored_with_configured_ttl(self, fixed_addition_config):
        store = MagicMock()
        MathCaptcha(fixed_addition_config, store, renderer=stub_renderer).generate()

        key, value, ttl = store.put.call_args.args
        assert key.startswith("math_captcha:")
        assert value == 8
        assert ttl == timedelta(minutes=10)

    def test_store_failure_propagates(self, fixed_addition_config):
        store = MagicMock()
        store.put.side_effect = AnswerStoreUnavailableError("connection refused")
        renderer = MagicMock()
        captcha = MathCaptcha(fixed_addition_config, store, renderer=renderer)

        with pytest.raises(AnswerStoreUnavailableError):
            captcha.generate()
        renderer.assert_not_called()

    def test_thousand_distinct_tokens(self, store):
        captcha = MathCaptcha(CaptchaConfig(), store, renderer=stub_renderer)

        tokens = {captcha.generate().token for _ in range(1000)}

        assert len(tokens) == 1000
        assert len(store) == 1000


class TestVerify:
    def test_correct_answer_verifies_once(self, fixed_captcha):
        challenge = fixed_captcha.generate()

        assert fixed_captcha.verify(challenge.token, 8) is True
        assert fixed_captcha.verify(challenge.token, 8) is False

    def test_wrong_answer_consumes_token(self, fixed_captcha, store):
        challenge = fixed_captcha.generate()

        assert fixed_captcha.verify(challenge.token, 9) is False
        assert fixed_captcha.verify(challenge.token, 8) is False
        assert len(store) == 0

    def test_never_issued_token(self, fixed_captcha):
        assert fixed_captcha.verify("x" * 32, 8) is False
        assert fixed_captcha.verify("", 8) is False

    def test_expired_token(self, fixed_captcha, clock):
        challenge = fixed_captcha.generate()

        clock.advance(timedelta(minutes=10).total_seconds())

        assert fixed_captcha.verify(challenge.token, 8) is False

    def test_token_valid_just_before_expiry(self, fixed_captcha, clock):
        challenge = fixed_captcha.generate()

        clock.advance(timedelta(minutes=10).total_seconds() - 1)

        assert fixed_captcha.verify(challenge.token, 8) is True

    @pytest.mark.parametrize("answer", [8, "8", " 8 ", "+8", "\t8\n"])
    def test_numeric_string_answers(self, fixed_captcha, answer):
        challenge = fixed_captcha.generate()

        assert fixed_captcha.verify(challenge.token, answer) is True

    def test_subtraction_to_zero(self, store):
        captcha = single_operator_captcha(
            store, Operator.SUBTRACT, OperandRange(min1=20, max1=20, min2=20, max2=20)
        )
        challenge = captcha.generate()

        assert captcha.verify(challenge.token, 0) is True

    @pytest.mark.parametrize("answer", [-4, "-4", " -4"])
    def test_negative_answer_round_trips(self, store, answer):
        captcha = single_operator_captcha(
            store, Operator.SUBTRACT, OperandRange(min1=1, max1=1, min2=5, max2=5)
        )
        challenge = captcha.generate()

        assert captcha.verify(challenge.token, answer) is True

    def test_multiplication(self, store):
        captcha = single_operator_captcha(
            store, Operator.MULTIPLY, OperandRange(min1=6, max1=6, min2=7, max2=7)
        )
        challenge = captcha.generate()

        assert captcha.verify(challenge.token, "42") is True

    @pytest.mark.parametrize("answer", ["abc", "", "8abc", "8.0", "0x8", True, None, 8.0])
    def test_malformed_answer_rejected_and_consumed(self, fixed_captcha, store, answer):
        challenge = fixed_captcha.generate()

        assert fixed_captcha.verify(challenge.token, answer) is False
        assert len(store) == 0

    def test_non_numeric_does_not_match_zero(self, store):
        captcha = single_operator_captcha(
            store, Operator.SUBTRACT, OperandRange(min1=20, max1=20, min2=20, max2=20)
        )
        challenge = captcha.generate()

        assert captcha.verify(challenge.token, "abc") is False

    def test_tokens_are_independent(self, fixed_captcha):
        first = fixed_captcha.generate()
        second = fixed_captcha.generate()

        assert fixed_captcha.verify(first.token, 8) is True
        assert fixed_captcha.verify(second.token, 8) is True

    def test_store_failure_propagates(self, fixed_addition_config):
        store = MagicMock()
        store.pull.side_effect = AnswerStoreUnavailableError("timeout")
        captcha = MathCaptcha(fixed_addition_config, store)

        with pytest.raises(AnswerStoreUnavailableError):
            captcha.verify("a" * 32, 8)


class TestParseAnswer:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(8, 8), (-3, -3), ("8", 8), (" 8 ", 8), ("-12", -12), ("+5", 5), ("007", 7)],
    )
    def test_valid(self, raw, expected):
        assert parse_answer(raw) == expected

    @pytest.mark.parametrize("raw", ["", " ", "eight", "1 2", "--1", "1e3", False, [8], 8.5])
    def test_invalid(self, raw):
        assert parse_answer(raw) is None
