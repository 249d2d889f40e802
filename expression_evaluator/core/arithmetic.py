"""
Arithmetic over Values, bound to one numeric policy.

Reals are computed with ``decimal`` under a context of the configured precision.
Complex numbers use the same decimal context for ``+ - * /`` and fall back to
``cmath`` (double precision) for transcendental functions. A Real is treated as
a Complex with a zero imaginary part, and the result is tagged Real only when
every operand was Real and the result has no imaginary part.
"""
import cmath
import math
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Context, Decimal, localcontext
from functools import wraps
from typing import Callable, Tuple

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import DomainError, EvaluationError, arithmetic_errors
from expression_evaluator.core.values import Value, ValueType

INT64_MASK = (1 << 64) - 1
INT64_SIGN = 1 << 63


def signed64(n: int) -> int:
    """Wrap an integer into the signed 64-bit range."""
    n &= INT64_MASK
    return n - (1 << 64) if n & INT64_SIGN else n


def _guarded(what: str):
    """Run an Arithmetic method inside its decimal context, converting arithmetic failures."""
    def decorator(f):
        @arithmetic_errors(what)
        @wraps(f)
        def wrapper(self, *args, **kwargs):
            with localcontext(self.context):
                return f(self, *args, **kwargs)
        return wrapper
    return decorator


class Arithmetic:
    """
    Value arithmetic for one evaluator.

    :param EvaluatorSettings settings: Precision, factorial mode and complex capability
    """

    def __init__(self, settings: EvaluatorSettings):
        self.settings = settings
        self.context = Context(prec=settings.precision)

    # Conversions =====================================================

    def components(self, value: Value) -> Tuple[Decimal, Decimal]:
        """
        Return ``(real, imaginary)`` of a scalar value.

        :raises DomainError: If the value is an array or polynomial
        """
        if not value.is_scalar:
            raise DomainError(f"Operation not defined for {value.kind.value} operands")
        return value.real, value.imaginary

    def make(self, real: Decimal, imaginary: Decimal, as_real: bool) -> Value:
        """
        Build a scalar result.

        :param bool as_real: True when every operand was Real
        :raises DomainError: If the result is not real and complex numbers are disabled
        """
        if imaginary != 0 and not self.settings.complex_enabled:
            raise DomainError("Result is a complex number but complex numbers are disabled")
        if imaginary == 0 and (as_real or not self.settings.complex_enabled):
            return Value.from_real(real)
        return Value.from_complex(real, imaginary)

    def from_float(self, number: float) -> Decimal:
        if math.isnan(number) or math.isinf(number):
            raise EvaluationError("Undefined result (not a finite number)")
        return Decimal(repr(number + 0.0))

    def _to_complex(self, value: Value) -> complex:
        a, b = self.components(value)
        return complex(float(a), float(b) if b != 0 else 0.0)

    def _from_complex(self, number: complex, as_real: bool) -> Value:
        return self.make(self.from_float(number.real), self.from_float(number.imag), as_real)

    @staticmethod
    def _all_real(*operands: Value) -> bool:
        return all(op.kind == ValueType.REAL for op in operands)

    @_guarded("literal")
    def literal(self, text: str) -> Value:
        """
        Parse a numeric literal; an ``i`` suffix makes it imaginary.

        ``"i"`` is the imaginary unit, ``"3i"`` is ``0+3i``.
        """
        if text.endswith("i"):
            if not self.settings.complex_enabled:
                raise DomainError(f"Complex literal '{text}' but complex numbers are disabled")
            digits = text[:-1]
            if digits in ("", "-"):
                digits += "1"
            return Value.from_complex(0, Decimal(digits))
        return Value.from_real(Decimal(text))

    def to_integer(self, value: Value) -> int:
        """Truncate the real component toward zero."""
        real, _ = self.components(value)
        return int(real)

    def natural(self, value: Value, what: str) -> int:
        """
        Return a non-negative integral real value as ``int``.

        :raises DomainError: If the value is negative, fractional or not real
        """
        real, imaginary = self.components(value)
        if imaginary != 0 or real != real.to_integral_value() or real < 0:
            raise DomainError(f"{what} requires a non-negative integer, got {value}")
        return int(real)

    def to_int64(self, value: Value, what: str) -> int:
        """
        Truncate the real component toward zero and wrap it to 64 bits.

        :raises DomainError: For arrays, polynomials and complex values with an imaginary part
        """
        if not value.is_scalar or value.imaginary != 0:
            raise DomainError(f"{what} requires real operands, got {value}")
        return signed64(int(value.real))

    # Binary operations ===============================================

    @_guarded("addition")
    def add(self, left: Value, right: Value) -> Value:
        a, b = self.components(left)
        c, d = self.components(right)
        return self.make(a + c, b + d, self._all_real(left, right))

    @_guarded("subtraction")
    def subtract(self, left: Value, right: Value) -> Value:
        a, b = self.components(left)
        c, d = self.components(right)
        return self.make(a - c, b - d, self._all_real(left, right))

    @_guarded("multiplication")
    def multiply(self, left: Value, right: Value) -> Value:
        # (a+bi)(c+di) = (ac-bd) + (ad+bc)i
        a, b = self.components(left)
        c, d = self.components(right)
        return self.make(a * c - b * d, a * d + b * c, self._all_real(left, right))

    @_guarded("division")
    def divide(self, left: Value, right: Value) -> Value:
        a, b = self.components(left)
        c, d = self.components(right)
        if c == 0 and d == 0:
            raise EvaluationError(f"Division by zero: {left} / {right}")
        if b == 0 and d == 0:
            return self.make(a / c, Decimal(0), self._all_real(left, right))
        denominator = c * c + d * d
        return self.make((a * c + b * d) / denominator, (b * c - a * d) / denominator, self._all_real(left, right))

    @_guarded("power")
    def power(self, left: Value, right: Value) -> Value:
        a, b = self.components(left)
        c, d = self.components(right)
        as_real = self._all_real(left, right)
        if c == 0 and d == 0:
            return self.make(Decimal(1), Decimal(0), as_real)
        integral = d == 0 and c == c.to_integral_value()
        if a == 0 and b == 0 and d == 0 and c < 0:
            raise EvaluationError(f"Division by zero: {left} ^ {right}")
        if b == 0 and d == 0 and (a >= 0 or integral):
            return self.make(a ** c, Decimal(0), as_real)
        if integral:
            real, imaginary = self._integer_power(a, b, abs(int(c)))
            if c < 0:
                norm = real * real + imaginary * imaginary
                real, imaginary = real / norm, -imaginary / norm
            return self.make(real, imaginary, as_real)
        # Negative base with a fractional exponent, or a complex exponent
        return self._from_complex(self._to_complex(left) ** self._to_complex(right), False)

    @staticmethod
    def _integer_power(a: Decimal, b: Decimal, n: int) -> Tuple[Decimal, Decimal]:
        """(a+bi)^n by repeated squaring, keeping decimal precision."""
        real, imaginary = Decimal(1), Decimal(0)
        while n:
            if n & 1:
                real, imaginary = real * a - imaginary * b, real * b + imaginary * a
            a, b = a * a - b * b, 2 * a * b
            n >>= 1
        return real, imaginary

    @_guarded("remainder")
    def remainder(self, left: Value, right: Value) -> Value:
        """Remainder of the real components; the result has the sign of the dividend."""
        a, _ = self.components(left)
        c, _ = self.components(right)
        if c == 0:
            raise EvaluationError(f"Division by zero: {left} % {right}")
        return self.make(a % c, Decimal(0), self._all_real(left, right))

    # Unary operations ================================================

    def _transcendental(self, value: Value, function: Callable[[complex], complex]) -> Value:
        return self._from_complex(function(self._to_complex(value)), self._all_real(value))

    @_guarded("sqrt")
    def sqrt(self, value: Value) -> Value:
        a, b = self.components(value)
        if value.kind == ValueType.REAL and a >= 0:
            return Value.from_real(a.sqrt())
        return self._transcendental(value, cmath.sqrt)

    @_guarded("ln")
    def ln(self, value: Value) -> Value:
        a, b = self.components(value)
        if a == 0 and b == 0:
            raise EvaluationError("Logarithm of zero")
        if value.kind == ValueType.REAL and a > 0:
            return Value.from_real(a.ln())
        return self._transcendental(value, cmath.log)

    @_guarded("log10")
    def log10(self, value: Value) -> Value:
        a, b = self.components(value)
        if a == 0 and b == 0:
            raise EvaluationError("Logarithm of zero")
        if value.kind == ValueType.REAL and a > 0:
            return Value.from_real(a.log10())
        return self._transcendental(value, cmath.log10)

    @_guarded("sin")
    def sin(self, value: Value) -> Value:
        return self._transcendental(value, cmath.sin)

    @_guarded("cos")
    def cos(self, value: Value) -> Value:
        return self._transcendental(value, cmath.cos)

    @_guarded("tan")
    def tan(self, value: Value) -> Value:
        return self._transcendental(value, cmath.tan)

    @_guarded("asin")
    def asin(self, value: Value) -> Value:
        return self._transcendental(value, cmath.asin)

    @_guarded("acos")
    def acos(self, value: Value) -> Value:
        return self._transcendental(value, cmath.acos)

    @_guarded("atan")
    def atan(self, value: Value) -> Value:
        return self._transcendental(value, cmath.atan)

    @_guarded("sinh")
    def sinh(self, value: Value) -> Value:
        return self._transcendental(value, cmath.sinh)

    @_guarded("cosh")
    def cosh(self, value: Value) -> Value:
        return self._transcendental(value, cmath.cosh)

    @_guarded("tanh")
    def tanh(self, value: Value) -> Value:
        return self._transcendental(value, cmath.tanh)

    @_guarded("conjugate")
    def conjugate(self, value: Value) -> Value:
        a, b = self.components(value)
        return self.make(a, -b, self._all_real(value))

    def invert(self, value: Value) -> Value:
        return self.divide(Value.from_real(1), value)

    @_guarded("negation")
    def negate(self, value: Value) -> Value:
        a, b = self.components(value)
        return self.make(-a, -b, self._all_real(value))

    @_guarded("abs")
    def magnitude(self, value: Value) -> Decimal:
        """Euclidean magnitude ``sqrt(re^2 + im^2)``."""
        a, b = self.components(value)
        if b == 0:
            return abs(a)
        return (a * a + b * b).sqrt()

    @_guarded("angle")
    def angle(self, value: Value) -> Decimal:
        """Argument ``atan2(im, re)`` in radians."""
        a, b = self.components(value)
        return self.from_float(math.atan2(float(b), float(a)))

    @_guarded("polar")
    def polar(self, angle: Value, length: Value) -> Value:
        number = cmath.rect(float(self.components(length)[0]), float(self.components(angle)[0]))
        return self._from_complex(number, False)

    # Comparison and rounding =========================================

    def compare(self, left: Value, right: Value) -> int:
        """
        Order two scalars: by value when both are Real, else by magnitude.

        :return: -1, 0 or 1
        """
        if left.kind == ValueType.REAL and right.kind == ValueType.REAL:
            a, c = left.real, right.real
        else:
            a, c = self.magnitude(left), self.magnitude(right)
        return (a > c) - (a < c)

    def is_true(self, value: Value) -> bool:
        a, b = self.components(value)
        return a != 0 or b != 0

    def _round(self, value: Value, rounding: str) -> Value:
        a, b = self.components(value)
        real = a.to_integral_value(rounding=rounding)
        if value.kind == ValueType.REAL:
            return Value.from_real(real)
        return Value.from_complex(real, b.to_integral_value(rounding=rounding))

    @_guarded("floor")
    def floor(self, value: Value) -> Value:
        return self._round(value, ROUND_FLOOR)

    @_guarded("ceil")
    def ceil(self, value: Value) -> Value:
        return self._round(value, ROUND_CEILING)

    @_guarded("round")
    def round(self, value: Value) -> Value:
        return self._round(value, ROUND_HALF_UP)

    # Integer functions ===============================================

    @_guarded("factorial")
    def factorial(self, value: Value) -> Value:
        """
        ``n!`` for a non-negative integral real.

        Exact mode multiplies arbitrary-precision integers, fast mode uses the Gamma function.
        """
        n = self.natural(value, "Factorial")
        if self.settings.exact:
            result = 1
            for i in range(2, n + 1):
                result *= i
            return Value.from_real(result)
        return Value.from_real(self.from_float(math.gamma(n + 1)))

    # Normalization ===================================================

    @_guarded("normalization")
    def normalize(self, value: Value) -> Value:
        """Strip insignificant trailing zeros componentwise; drop the variable name."""
        if value.is_sequence:
            return value.model_copy(update={"items": tuple(self.normalize(i) for i in value.items), "name": None})

        def strip(d: Decimal) -> Decimal:
            if d == 0:
                return Decimal(0)
            # Wide enough that exact integers are never rounded
            return d.normalize(Context(prec=max(self.context.prec, len(d.as_tuple().digits))))

        if value.kind == ValueType.REAL:
            return Value.from_real(strip(value.real))
        return Value.from_complex(strip(value.real), strip(value.imaginary))
