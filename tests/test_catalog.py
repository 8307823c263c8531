"""Tests for the operator catalog."""

import math
import re

import pytest

from evalstage import (
    ArgumentList,
    MapParameters,
    OperatorSymbol,
    PatternCompileError,
    Side,
    operator_spec,
)
from evalstage._catalog import (
    add_stage,
    addition_type_check,
    bitwise_not_stage,
    regex_stage,
    separator_stage,
    ternary_else_stage,
    ternary_if_stage,
)
from evalstage._errors import TYPEERROR_LOGICAL, TYPEERROR_MODIFIER, TYPEERROR_PREFIX, TYPEERROR_TERNARY
from evalstage._values import NO_BRANCH

PARAMS = MapParameters()


def apply(symbol: OperatorSymbol, left: object, right: object) -> object:
    return operator_spec(symbol).operator(left, right, PARAMS)


class TestArithmetic:
    @pytest.mark.parametrize(
        ("symbol", "left", "right", "expected"),
        [
            (OperatorSymbol.PLUS, 1.5, 2.0, 3.5),
            (OperatorSymbol.MINUS, 1.0, 3.0, -2.0),
            (OperatorSymbol.MULTIPLY, 4.0, 2.5, 10.0),
            (OperatorSymbol.DIVIDE, 7.0, 2.0, 3.5),
            (OperatorSymbol.EXPONENT, 2.0, 10.0, 1024.0),
            (OperatorSymbol.MODULUS, 5.5, 2.0, 1.5),
            (OperatorSymbol.MODULUS, -5.5, 2.0, -1.5),
        ],
    )
    def test_float_semantics(self, symbol: OperatorSymbol, left: float, right: float, expected: float) -> None:
        assert apply(symbol, left, right) == expected

    def test_division_by_zero_follows_ieee(self) -> None:
        assert apply(OperatorSymbol.DIVIDE, 1.0, 0.0) == math.inf
        assert apply(OperatorSymbol.DIVIDE, -1.0, 0.0) == -math.inf
        assert math.isnan(apply(OperatorSymbol.DIVIDE, 0.0, 0.0))

    def test_modulus_by_zero_is_nan(self) -> None:
        assert math.isnan(apply(OperatorSymbol.MODULUS, 1.0, 0.0))

    def test_power_overflow_and_domain(self) -> None:
        assert apply(OperatorSymbol.EXPONENT, 10.0, 400.0) == math.inf
        assert math.isnan(apply(OperatorSymbol.EXPONENT, -8.0, 1 / 3))
        assert apply(OperatorSymbol.EXPONENT, 0.0, -1.0) == math.inf

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            (-0.0, -1.0, -math.inf),
            (-0.0, -3.0, -math.inf),
            (-0.0, -2.0, math.inf),
            (-0.0, -0.5, math.inf),
            (0.0, -1.0, math.inf),
        ],
    )
    def test_power_of_zero_to_negative_exponent(self, left: float, right: float, expected: float) -> None:
        assert apply(OperatorSymbol.EXPONENT, left, right) == expected


class TestConcatenation:
    def test_string_then_number(self) -> None:
        assert add_stage("a", 1.0, PARAMS) == "a1"

    def test_number_then_string(self) -> None:
        assert add_stage(1.0, "a", PARAMS) == "1a"

    def test_fractional_number(self) -> None:
        assert add_stage("v=", 2.5, PARAMS) == "v=2.5"

    def test_bool_and_absent_use_display_form(self) -> None:
        assert add_stage("a", True, PARAMS) == "atrue"
        assert add_stage(None, "a", PARAMS) == "<nil>a"


class TestAdditionTypeCheck:
    def test_accepts_numbers(self) -> None:
        assert addition_type_check(1.0, 2.0) is None

    def test_accepts_any_pair_with_a_string(self) -> None:
        assert addition_type_check("a", True) is None
        assert addition_type_check(None, "a") is None

    def test_rejects_right_when_left_is_a_number(self) -> None:
        assert addition_type_check(1.0, True) == Side.RIGHT

    def test_rejects_left_otherwise(self) -> None:
        assert addition_type_check(True, 1.0) == Side.LEFT
        assert addition_type_check(None, None) == Side.LEFT


class TestComparison:
    def test_ordering(self) -> None:
        assert apply(OperatorSymbol.GT, 2.0, 1.0) is True
        assert apply(OperatorSymbol.GTE, 1.0, 1.0) is True
        assert apply(OperatorSymbol.LT, 2.0, 1.0) is False
        assert apply(OperatorSymbol.LTE, 1.0, 2.0) is True

    def test_equality_across_kinds_never_fails(self) -> None:
        assert apply(OperatorSymbol.EQ, 1.0, "1") is False
        assert apply(OperatorSymbol.NEQ, 1.0, "1") is True
        assert apply(OperatorSymbol.EQ, None, None) is True
        assert apply(OperatorSymbol.EQ, "a", "a") is True

    def test_equality_has_no_type_checks(self) -> None:
        spec = operator_spec(OperatorSymbol.EQ)
        assert spec.left_type_check is None
        assert spec.right_type_check is None
        assert spec.type_check is None


class TestLogical:
    def test_and_or(self) -> None:
        assert apply(OperatorSymbol.AND, True, False) is False
        assert apply(OperatorSymbol.OR, True, False) is True

    def test_invert_ignores_left(self) -> None:
        assert apply(OperatorSymbol.INVERT, "ignored", True) is False

    def test_templates(self) -> None:
        assert operator_spec(OperatorSymbol.AND).type_error_format == TYPEERROR_LOGICAL
        assert operator_spec(OperatorSymbol.MINUS).type_error_format == TYPEERROR_MODIFIER
        assert operator_spec(OperatorSymbol.NEGATE).type_error_format == TYPEERROR_PREFIX
        assert operator_spec(OperatorSymbol.TERNARY_TRUE).type_error_format == TYPEERROR_TERNARY


class TestBitwise:
    @pytest.mark.parametrize(
        ("symbol", "left", "right", "expected"),
        [
            (OperatorSymbol.BITWISE_AND, 5.0, 3.0, 1.0),
            (OperatorSymbol.BITWISE_OR, 5.0, 3.0, 7.0),
            (OperatorSymbol.BITWISE_XOR, 3.0, 5.0, 6.0),
            (OperatorSymbol.BITWISE_LSHIFT, 1.0, 3.0, 8.0),
            (OperatorSymbol.BITWISE_RSHIFT, 16.0, 2.0, 4.0),
            # Truncation toward zero before the operation
            (OperatorSymbol.BITWISE_AND, 5.9, 3.9, 1.0),
            (OperatorSymbol.BITWISE_OR, -5.7, 0.0, -5.0),
            # Signed for and/or/xor
            (OperatorSymbol.BITWISE_AND, -1.0, 255.0, 255.0),
            # Unsigned for shifts: -1 is 2**64 - 1
            (OperatorSymbol.BITWISE_RSHIFT, -1.0, 60.0, 15.0),
            (OperatorSymbol.BITWISE_LSHIFT, 1.0, 64.0, 0.0),
            (OperatorSymbol.BITWISE_LSHIFT, 1.0, 63.0, float(1 << 63)),
        ],
    )
    def test_bitwise(self, symbol: OperatorSymbol, left: float, right: float, expected: float) -> None:
        assert apply(symbol, left, right) == expected

    def test_bitwise_not(self) -> None:
        assert bitwise_not_stage(None, 5.0, PARAMS) == -6.0
        assert bitwise_not_stage(None, -1.0, PARAMS) == 0.0

    def test_non_finite_truncates_to_zero(self) -> None:
        assert apply(OperatorSymbol.BITWISE_OR, math.inf, 1.0) == 1.0
        assert apply(OperatorSymbol.BITWISE_AND, math.nan, 1.0) == 0.0

    def test_shift_past_width(self) -> None:
        assert apply(OperatorSymbol.BITWISE_LSHIFT, 1.0, 100.0) == 0.0
        assert apply(OperatorSymbol.BITWISE_RSHIFT, -1.0, 64.0) == 0.0


class TestRegex:
    def test_string_pattern_is_compiled(self) -> None:
        assert regex_stage("foo123", "[0-9]+", PARAMS) is True
        assert regex_stage("foo", "[0-9]+", PARAMS) is False

    def test_not_regex(self) -> None:
        assert apply(OperatorSymbol.NREQ, "foo123", "[0-9]+") is False
        assert apply(OperatorSymbol.NREQ, "foo", "[0-9]+") is True

    def test_invalid_pattern(self) -> None:
        with pytest.raises(PatternCompileError, match=r"Unable to compile regexp pattern '\['") as exc_info:
            regex_stage("foo", "[", PARAMS)
        assert exc_info.value.pattern == "["

    def test_compiled_pattern_skips_compilation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pattern = re.compile("^foo")

        def fail_compile(*args: object, **kwargs: object) -> re.Pattern[str]:
            msg = "compile must not be called"
            raise AssertionError(msg)

        monkeypatch.setattr(re, "compile", fail_compile)
        assert regex_stage("foobar", pattern, PARAMS) is True


class TestTernary:
    def test_if_true_returns_then_branch(self) -> None:
        assert ternary_if_stage(True, 5.0, PARAMS) == 5.0

    def test_if_false_returns_no_branch(self) -> None:
        assert ternary_if_stage(False, 5.0, PARAMS) is NO_BRANCH

    def test_else_keeps_taken_branch(self) -> None:
        assert ternary_else_stage(5.0, 10.0, PARAMS) == 5.0

    def test_else_keeps_absent_then_branch(self) -> None:
        assert ternary_else_stage(None, 10.0, PARAMS) is None

    def test_else_after_false_condition(self) -> None:
        assert ternary_else_stage(NO_BRANCH, 10.0, PARAMS) == 10.0


class TestSeparator:
    def test_two_values(self) -> None:
        assert separator_stage(1.0, 2.0, PARAMS) == ArgumentList((1.0, 2.0))

    def test_right_nested_chain_is_flattened(self) -> None:
        assert separator_stage(1.0, ArgumentList((2.0, 3.0)), PARAMS) == ArgumentList((1.0, 2.0, 3.0))

    def test_left_nested_chain_is_flattened(self) -> None:
        assert separator_stage(ArgumentList((1.0, 2.0)), 3.0, PARAMS) == ArgumentList((1.0, 2.0, 3.0))

    def test_absent_values_are_kept(self) -> None:
        assert separator_stage(None, 2.0, PARAMS) == ArgumentList((None, 2.0))


@pytest.mark.parametrize("symbol", [OperatorSymbol.LITERAL, OperatorSymbol.PARAMETER, OperatorSymbol.FUNCTIONAL])
def test_captured_symbols_need_factories(symbol: OperatorSymbol) -> None:
    with pytest.raises(ValueError, match="factory"):
        operator_spec(symbol)


def test_every_other_symbol_has_a_spec() -> None:
    captured = {OperatorSymbol.LITERAL, OperatorSymbol.PARAMETER, OperatorSymbol.FUNCTIONAL}
    for symbol in OperatorSymbol:
        if symbol not in captured:
            assert callable(operator_spec(symbol).operator)
