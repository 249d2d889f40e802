"""Test class Arithmetic."""
from decimal import Decimal

import pytest

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import DomainError, EvaluationError
from expression_evaluator.core.arithmetic import Arithmetic, signed64
from expression_evaluator.core.values import Value, ValueType


@pytest.fixture
def arithmetic() -> Arithmetic:
    return Arithmetic(EvaluatorSettings())


def real(n) -> Value:
    return Value.from_real(Decimal(str(n)))


def test_real_operands_stay_real(arithmetic) -> None:
    """Operations on two reals produce a real."""
    result = arithmetic.add(real(1), real(2))
    assert result.kind == ValueType.REAL
    assert result.real == 3


def test_complex_operand_promotes(arithmetic) -> None:
    """A complex operand makes the result complex even when the imaginary part cancels."""
    result = arithmetic.add(Value.from_complex(1, 1), Value.from_complex(1, -1))
    assert result.kind == ValueType.COMPLEX
    assert str(result) == "2"


def test_complex_multiply_and_divide(arithmetic) -> None:
    """(1+2i)(3-i) = 5+5i and dividing back gives the original factor."""
    product = arithmetic.multiply(Value.from_complex(1, 2), Value.from_complex(3, -1))
    assert (product.real, product.imaginary) == (5, 5)
    quotient = arithmetic.divide(product, Value.from_complex(3, -1))
    assert (quotient.real, quotient.imaginary) == (1, 2)


def test_precision_follows_settings() -> None:
    """Division is rounded to the configured number of significant digits."""
    result = Arithmetic(EvaluatorSettings(precision=5)).divide(real(1), real(3))
    assert result.real == Decimal("0.33333")


@pytest.mark.parametrize("operation,args", [
    ("divide", (real(1), real(0))),
    ("divide", (Value.from_complex(1, 1), Value.from_complex(0, 0))),
    ("remainder", (real(5), real(0))),
    ("power", (real(0), real(-1))),
    ("ln", (real(0),)),
    ("sinh", (real(1000),)),
])
def test_undefined_results_raise(arithmetic, operation, args):
    """Division by zero, logarithm of zero and overflow raise EvaluationError."""
    with pytest.raises(EvaluationError):
        getattr(arithmetic, operation)(*args)


def test_power(arithmetic) -> None:
    """Powers of reals are exact where possible; x^0 is 1."""
    assert arithmetic.power(real(2), real(10)).real == 1024
    assert arithmetic.power(real(-2), real(3)).real == -8
    assert arithmetic.power(real(0), real(0)).real == 1


def test_non_real_principal_value_promotes(arithmetic) -> None:
    """Square roots and fractional powers of negatives become complex."""
    root = arithmetic.sqrt(real(-4))
    assert root.kind == ValueType.COMPLEX
    assert abs(root.imaginary - 2) < Decimal("1e-12")
    assert arithmetic.power(real(-8), real("0.5")).kind == ValueType.COMPLEX
    assert arithmetic.ln(real(-1)).kind == ValueType.COMPLEX


def test_non_real_principal_value_without_complex() -> None:
    """With complex numbers disabled, a non-real result is a DomainError."""
    arithmetic = Arithmetic(EvaluatorSettings(complex_enabled=False))
    with pytest.raises(DomainError):
        arithmetic.sqrt(real(-4))


def test_remainder_has_sign_of_dividend(arithmetic) -> None:
    """% keeps the sign of the left operand."""
    assert arithmetic.remainder(real(7), real(3)).real == 1
    assert arithmetic.remainder(real(-7), real(3)).real == -1


def test_remainder_of_complex_operand_is_complex(arithmetic) -> None:
    """A complex operand promotes the remainder like every other operator."""
    result = arithmetic.remainder(Value.from_complex(7, 0), real(3))
    assert result.kind == ValueType.COMPLEX
    assert result.real == 1
    assert arithmetic.remainder(real(7), real(3)).kind == ValueType.REAL


def test_compare(arithmetic) -> None:
    """Reals compare by value, anything involving a complex by magnitude."""
    assert arithmetic.compare(real(-5), real(1)) == -1
    assert arithmetic.compare(Value.from_complex(0, -5), real(1)) == 1
    assert arithmetic.compare(Value.from_complex(3, 4), real(5)) == 0


def test_magnitude_and_angle(arithmetic) -> None:
    """magnitude is the Euclidean norm; angle is atan2(im, re)."""
    assert arithmetic.magnitude(Value.from_complex(3, 4)) == 5
    assert arithmetic.magnitude(real(-2)) == 2
    assert arithmetic.angle(Value.from_complex(0, 1)) == Decimal(repr(1.5707963267948966))


def test_rounding_is_componentwise(arithmetic) -> None:
    """floor, ceil and round act on both components."""
    value = Value.from_complex(Decimal("1.5"), Decimal("-1.5"))
    assert (arithmetic.floor(value).real, arithmetic.floor(value).imaginary) == (1, -2)
    assert (arithmetic.ceil(value).real, arithmetic.ceil(value).imaginary) == (2, -1)
    assert (arithmetic.round(value).real, arithmetic.round(value).imaginary) == (2, -2)


@pytest.mark.parametrize("n,expected", [(0, 1), (1, 1), (5, 120), (20, 2432902008176640000)])
def test_factorial(arithmetic, n, expected):
    """Exact factorial multiplies arbitrary precision integers."""
    assert arithmetic.factorial(real(n)).real == expected


def test_factorial_fast_mode() -> None:
    """Fast mode approximates n! with the Gamma function."""
    result = Arithmetic(EvaluatorSettings(exact=False)).factorial(real(5))
    assert result.real == 120


@pytest.mark.parametrize("value", [real(-1), real("2.5"), Value.from_complex(2, 1)])
def test_factorial_domain(arithmetic, value):
    """Negative, fractional and complex factorials are rejected."""
    with pytest.raises(DomainError):
        arithmetic.factorial(value)


@pytest.mark.parametrize("text,expected", [
    ("2.5", Value.from_real(Decimal("2.5"))),
    ("1e3", Value.from_real(1000)),
    ("3i", Value.from_complex(0, 3)),
    ("i", Value.from_complex(0, 1)),
    ("-2i", Value.from_complex(0, -2)),
])
def test_literal(arithmetic, text, expected):
    """Literals parse as reals, or as imaginary numbers with an i suffix."""
    assert arithmetic.literal(text).matches(expected)


def test_complex_literal_disabled() -> None:
    """Imaginary literals are rejected when complex numbers are disabled."""
    with pytest.raises(DomainError):
        Arithmetic(EvaluatorSettings(complex_enabled=False)).literal("3i")


def test_to_int64(arithmetic) -> None:
    """Bitwise operands are truncated toward zero and wrapped to 64 bits."""
    assert arithmetic.to_int64(real("7.9"), "test") == 7
    assert arithmetic.to_int64(real("-7.9"), "test") == -7
    assert arithmetic.to_int64(real(2 ** 64 + 3), "test") == 3
    with pytest.raises(DomainError):
        arithmetic.to_int64(Value.from_complex(1, 1), "test")
    with pytest.raises(DomainError):
        arithmetic.to_int64(Value.from_items([]), "test")


def test_signed64() -> None:
    """signed64 wraps into the two's complement range."""
    assert signed64(2 ** 63) == -(2 ** 63)
    assert signed64(2 ** 64 - 1) == -1
    assert signed64(5) == 5


def test_normalize_strips_trailing_zeros(arithmetic) -> None:
    """normalize removes insignificant zeros and the variable name."""
    value = arithmetic.normalize(Value.from_real(Decimal("2.500")).named("a"))
    assert str(value.real) == "2.5"
    assert value.name is None
    nested = arithmetic.normalize(Value.from_items([Value.from_real(Decimal("1.0"))]))
    assert str(nested.items[0].real) == "1"


def test_arrays_are_not_numbers(arithmetic) -> None:
    """Arithmetic on arrays raises a DomainError."""
    with pytest.raises(DomainError):
        arithmetic.multiply(Value.from_items([real(1)]), real(2))


def test_normalize_keeps_integers_exact(arithmetic) -> None:
    """Stripping trailing zeros never rounds digits beyond the working precision."""
    big = Value.from_real(12345678901234567890123456789012345678901)
    assert str(arithmetic.normalize(big)) == "12345678901234567890123456789012345678901"
    assert str(arithmetic.normalize(real("2.500"))) == "2.5"
