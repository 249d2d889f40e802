"""Built-in functions callable as ``NAME(arg, ...)``."""
import math
from decimal import Decimal
from functools import reduce
from typing import Callable, List

from pydantic import BaseModel, ConfigDict, Field

from expression_evaluator.common.errors import DomainError, ExpressionValidationError
from expression_evaluator.core.context import EvaluationContext
from expression_evaluator.core.registry import Registry
from expression_evaluator.core.values import Value, ValueType

FunctionFn = Callable[[List[Value], EvaluationContext], Value]

VARIADIC = -1


class Function(BaseModel):
    """A named function with a fixed or variadic number of parameters."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Upper-case function name")
    arity: int = Field(..., ge=VARIADIC, description="Number of parameters, -1 for variadic")
    min_params: int = Field(default=0, ge=0, description="Minimum number of parameters of a variadic function")
    description: str = Field(default="", description="Short help text")
    evaluate: FunctionFn = Field(..., description="(parameters, context) -> result")

    @property
    def variadic(self) -> bool:
        return self.arity == VARIADIC

    def call(self, params: List[Value], ctx: EvaluationContext) -> Value:
        """
        Invoke the function, expanding a sole Array argument of a variadic function.

        :param list params: Evaluated parameters, left to right
        :param EvaluationContext ctx: Session state of the running evaluation
        :return: Function result
        :rtype: Value
        :raises ExpressionValidationError: If too few parameters remain after expansion
        """
        if self.variadic and len(params) == 1 and params[0].kind == ValueType.ARRAY:
            params = list(params[0].items)
        if len(params) < self.min_params:
            raise ExpressionValidationError(
                f"{self.name} requires at least {self.min_params} parameter(s), got {len(params)}")
        return self.evaluate(params, ctx)


FunctionRegistry = Registry[Function]


# Helpers =========================================================

def _truth(flag: bool) -> Value:
    return Value.from_real(1 if flag else 0)


def _scalars(params: List[Value]) -> List[Value]:
    """Flatten a sole Polynomial into its coefficients and check that only numbers remain."""
    if len(params) == 1 and params[0].kind == ValueType.POLYNOMIAL:
        params = list(params[0].items)
    for param in params:
        if not param.is_scalar:
            raise DomainError(f"Expected numbers, got {param.kind.value} {param}")
    return params


def _real(value: Value) -> Value:
    if not value.is_scalar:
        raise DomainError(f"Expected a number, got {value.kind.value} {value}")
    return Value.from_real(value.real)


def _polynomial(params: List[Value]) -> Value:
    """Coerce a parameter list, an Array or a Polynomial into a Polynomial."""
    if len(params) == 1 and params[0].kind == ValueType.POLYNOMIAL:
        return params[0]
    if len(params) == 1 and params[0].kind == ValueType.ARRAY:
        params = list(params[0].items)
    if not params:
        raise ExpressionValidationError("A polynomial needs at least one coefficient")
    return Value.from_coefficients(_scalars(params))


def _unary(method: str) -> FunctionFn:
    def apply(params: List[Value], ctx: EvaluationContext) -> Value:
        return getattr(ctx.arithmetic, method)(params[0])
    return apply


def _from_float(ctx: EvaluationContext, number: float) -> Value:
    return Value.from_real(ctx.arithmetic.from_float(number))


# Logic and random ================================================

def _not(params: List[Value], ctx: EvaluationContext) -> Value:
    return _truth(not ctx.arithmetic.is_true(params[0]))


def _if(params: List[Value], ctx: EvaluationContext) -> Value:
    condition, when_true, when_false = params
    chosen = when_false if _real(condition).real == 0 else when_true
    return chosen.unnamed()


def _random_range(params: List[Value], ctx: EvaluationContext) -> Value:
    low = float(_real(params[0]).real)
    high = float(_real(params[1]).real)
    return _from_float(ctx, low + ctx.rng.random() * (high - low))


def _random_unit(params: List[Value], ctx: EvaluationContext) -> Value:
    return _from_float(ctx, ctx.rng.random())


def _history(params: List[Value], ctx: EvaluationContext) -> Value:
    index = ctx.arithmetic.natural(params[0], "H")
    return ctx.evaluate_nested(ctx.history.get(index))


# Integer functions ===============================================

def _binomial(params: List[Value], ctx: EvaluationContext) -> Value:
    n = ctx.arithmetic.natural(params[0], "BIN")
    k = ctx.arithmetic.natural(params[1], "BIN")
    return Value.from_real(math.comb(n, k))


def _stirling(params: List[Value], ctx: EvaluationContext) -> Value:
    """Stirling number of the second kind, S(n, k)."""
    n = ctx.arithmetic.natural(params[0], "STIR")
    k = ctx.arithmetic.natural(params[1], "STIR")
    if k > n:
        return Value.from_real(0)
    # row[j] holds S(i, j) for the current i
    row = [1] + [0] * k
    for _ in range(n):
        for j in range(k, 0, -1):
            row[j] = j * row[j] + row[j - 1]
        row[0] = 0
    return Value.from_real(row[k])


def _mersenne(params: List[Value], ctx: EvaluationContext) -> Value:
    return ctx.arithmetic.subtract(ctx.arithmetic.power(Value.from_real(2), params[0]), Value.from_real(1))


def _gcd(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(math.gcd(ctx.arithmetic.to_integer(params[0]), ctx.arithmetic.to_integer(params[1])))


def _lcm(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(math.lcm(ctx.arithmetic.to_integer(params[0]), ctx.arithmetic.to_integer(params[1])))


def _is_prime(n: int) -> bool:
    if n < 2:
        return False
    if n % 2 == 0:
        return n == 2
    divisor = 3
    while divisor * divisor <= n:
        if n % divisor == 0:
            return False
        divisor += 2
    return True


def _next_prime(params: List[Value], ctx: EvaluationContext) -> Value:
    candidate = max(ctx.arithmetic.to_integer(params[0]), 2)
    while not _is_prime(candidate):
        candidate += 1
    return Value.from_real(candidate)


def _nibble_swap(params: List[Value], ctx: EvaluationContext) -> Value:
    n = ctx.arithmetic.natural(params[0], "NSWP")
    return Value.from_real(int(format(n, "x")[::-1], 16))


def _byte_swap(params: List[Value], ctx: EvaluationContext) -> Value:
    n = ctx.arithmetic.natural(params[0], "BSWP")
    # Swap within the smallest even number of bytes holding n
    width = max(2, (n.bit_length() + 15) // 16 * 2)
    return Value.from_real(int.from_bytes(n.to_bytes(width, "big"), "little"))


def _bytes_value(params: List[Value], ctx: EvaluationContext) -> Value:
    result = 0
    for param in _scalars(params):
        byte = ctx.arithmetic.to_integer(param)
        if not 0 <= byte <= 255:
            raise DomainError(f"BYT parameter out of range 0..255: {param}")
        result = (result << 8) | byte
    return Value.from_real(result)


def _fibonacci(params: List[Value], ctx: EvaluationContext) -> Value:
    n = ctx.arithmetic.to_integer(params[0])
    if n < 0:
        raise DomainError(f"FIB requires a non-negative input, got {params[0]}")
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return Value.from_real(a)


# Aggregates ======================================================

def _sum(params: List[Value], ctx: EvaluationContext) -> Value:
    return reduce(ctx.arithmetic.add, _scalars(params))


def _product(params: List[Value], ctx: EvaluationContext) -> Value:
    return reduce(ctx.arithmetic.multiply, _scalars(params))


def _arithmetic_mean(params: List[Value], ctx: EvaluationContext) -> Value:
    numbers = _scalars(params)
    return ctx.arithmetic.divide(_sum(numbers, ctx), Value.from_real(len(numbers)))


def _geometric_mean(params: List[Value], ctx: EvaluationContext) -> Value:
    reals = [_real(p) for p in _scalars(params)]
    if any(r.real <= 0 for r in reals):
        raise DomainError("GMEAN requires positive values")
    exponent = ctx.arithmetic.divide(Value.from_real(1), Value.from_real(len(reals)))
    return ctx.arithmetic.power(_product(reals, ctx), exponent)


def _harmonic_mean(params: List[Value], ctx: EvaluationContext) -> Value:
    numbers = _scalars(params)
    reciprocals = _sum([ctx.arithmetic.invert(n) for n in numbers], ctx)
    return ctx.arithmetic.divide(Value.from_real(len(numbers)), Value.from_real(ctx.arithmetic.magnitude(reciprocals)))


def _variance(params: List[Value], ctx: EvaluationContext) -> Value:
    """Sample variance of the real parts."""
    reals = [_real(p) for p in _scalars(params)]
    if len(reals) == 1:
        return Value.from_real(0)
    mean = _arithmetic_mean(reals, ctx)
    squares = [ctx.arithmetic.power(ctx.arithmetic.subtract(r, mean), Value.from_real(2)) for r in reals]
    return ctx.arithmetic.divide(_sum(squares, ctx), Value.from_real(len(reals) - 1))


def _extreme(choose: Callable) -> FunctionFn:
    """MAX or MIN: by value for reals, by magnitude when the first argument is complex."""
    def pick(params: List[Value], ctx: EvaluationContext) -> Value:
        numbers = _scalars(params)
        if numbers[0].kind == ValueType.COMPLEX:
            best = choose(numbers, key=ctx.arithmetic.magnitude)
            return Value.from_complex(best.real, best.imaginary)
        best = choose(numbers, key=lambda number: number.real)
        return Value.from_real(best.real)
    return pick


def _sequence(params: List[Value], ctx: EvaluationContext) -> Value:
    start, step = _real(params[0]), _real(params[1])
    count = ctx.arithmetic.to_integer(params[2])
    items = []
    current = start
    for _ in range(max(count, 0)):
        items.append(current)
        current = ctx.arithmetic.add(current, step)
    return Value.from_items(items)


# Complex numbers =================================================

def _angle(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(ctx.arithmetic.angle(params[0]))


def _magnitude(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(ctx.arithmetic.magnitude(params[0]))


def _imaginary_part(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(ctx.arithmetic.components(params[0])[1])


def _real_part(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_real(ctx.arithmetic.components(params[0])[0])


def _pythagoras(params: List[Value], ctx: EvaluationContext) -> Value:
    a, b = _real(params[0]), _real(params[1])
    return ctx.arithmetic.sqrt(ctx.arithmetic.add(ctx.arithmetic.multiply(a, a), ctx.arithmetic.multiply(b, b)))


# Percent and angle units =========================================

def _percent_of(params: List[Value], ctx: EvaluationContext) -> Value:
    return ctx.arithmetic.multiply(ctx.arithmetic.divide(params[0], Value.from_real(100)), params[1])


def _percentage(params: List[Value], ctx: EvaluationContext) -> Value:
    return ctx.arithmetic.divide(ctx.arithmetic.multiply(params[0], Value.from_real(100)), params[1])


def _radians(params: List[Value], ctx: EvaluationContext) -> Value:
    return _from_float(ctx, math.radians(float(_real(params[0]).real)))


def _degrees(params: List[Value], ctx: EvaluationContext) -> Value:
    return _from_float(ctx, math.degrees(float(_real(params[0]).real)))


# Arrays and polynomials ==========================================

def _array(params: List[Value], ctx: EvaluationContext) -> Value:
    return Value.from_items(params)


def _poly(params: List[Value], ctx: EvaluationContext) -> Value:
    return _polynomial(params)


def _derive(params: List[Value], ctx: EvaluationContext) -> Value:
    coefficients = _polynomial(params).items
    if len(coefficients) == 1:
        return Value.from_coefficients([Value.from_real(0)])
    return Value.from_coefficients(
        ctx.arithmetic.multiply(coefficient, Value.from_real(power))
        for power, coefficient in enumerate(coefficients) if power > 0
    )


def _integrate(params: List[Value], ctx: EvaluationContext) -> Value:
    coefficients = _polynomial(params).items
    return Value.from_coefficients(
        [Value.from_real(0)]
        + [ctx.arithmetic.divide(coefficient, Value.from_real(power + 1))
           for power, coefficient in enumerate(coefficients)]
    )


def _polynomial_value(params: List[Value], ctx: EvaluationContext) -> Value:
    """Evaluate the polynomial at x with Horner's scheme."""
    coefficients = _polynomial([params[0]]).items
    x = params[1]
    result = Value.from_real(Decimal(0))
    for coefficient in reversed(coefficients):
        result = ctx.arithmetic.add(ctx.arithmetic.multiply(result, x), coefficient)
    return result


def build_functions() -> FunctionRegistry:
    """Create the fixed function table."""
    def fn(name: str, arity: int, evaluate: FunctionFn, description: str, min_params: int = 0) -> Function:
        return Function(name=name, arity=arity, evaluate=evaluate, description=description, min_params=min_params)

    functions = [
        fn("NOT", 1, _not, "1 if the argument is 0, else 0"),
        fn("IF", 3, _if, "Third argument if the first is 0, otherwise the second"),
        fn("RND", 2, _random_range, "Random number between the first and second argument"),
        fn("MRS", 0, _random_unit, "Random number in [0, 1)"),
        fn("H", 1, _history, "Evaluate history entry n"),
        fn("BIN", 2, _binomial, "Binomial coefficient 'n choose k'"),
        fn("STIR", 2, _stirling, "Stirling number of the second kind"),
        fn("MERS", 1, _mersenne, "Mersenne number 2^p-1"),
        fn("GCD", 2, _gcd, "Greatest common divisor"),
        fn("LCM", 2, _lcm, "Least common multiple"),
        fn("NPR", 1, _next_prime, "Smallest prime greater or equal to the argument"),
        fn("NSWP", 1, _nibble_swap, "Reverse the hex digits of an integer"),
        fn("BSWP", 1, _byte_swap, "Reverse the bytes of an integer"),
        fn("BYT", VARIADIC, _bytes_value, "Integer made of a sequence of bytes, most significant first",
           min_params=1),
        fn("FIB", 1, _fibonacci, "n-th Fibonacci number"),
        fn("SIN", 1, _unary("sin"), "Sine (radians)"),
        fn("COS", 1, _unary("cos"), "Cosine (radians)"),
        fn("TAN", 1, _unary("tan"), "Tangent (radians)"),
        fn("ASIN", 1, _unary("asin"), "Arc sine"),
        fn("ACOS", 1, _unary("acos"), "Arc cosine"),
        fn("ATAN", 1, _unary("atan"), "Arc tangent"),
        fn("SINH", 1, _unary("sinh"), "Hyperbolic sine"),
        fn("COSH", 1, _unary("cosh"), "Hyperbolic cosine"),
        fn("TANH", 1, _unary("tanh"), "Hyperbolic tangent"),
        fn("RAD", 1, _radians, "Degrees to radians"),
        fn("DEG", 1, _degrees, "Radians to degrees"),
        fn("MAX", VARIADIC, _extreme(max), "Biggest value of a list", min_params=1),
        fn("MIN", VARIADIC, _extreme(min), "Smallest value of a list", min_params=1),
        fn("SUM", VARIADIC, _sum, "Sum of a list", min_params=1),
        fn("PROD", VARIADIC, _product, "Product of a list", min_params=1),
        fn("AMEAN", VARIADIC, _arithmetic_mean, "Arithmetic mean of a list", min_params=1),
        fn("GMEAN", VARIADIC, _geometric_mean, "Geometric mean of a list of positive reals", min_params=1),
        fn("HMEAN", VARIADIC, _harmonic_mean, "Harmonic mean of a list", min_params=1),
        fn("VAR", VARIADIC, _variance, "Sample variance of a list", min_params=1),
        fn("PERC", 2, _percent_of, "First argument percent of the second"),
        fn("PER", 2, _percentage, "How many percent the first argument is of the second"),
        fn("SEQ", 3, _sequence, "Array of count values: start, step, count"),
        fn("ANG", 1, _angle, "Angle of a complex number in radians"),
        fn("ABS", 1, _magnitude, "Absolute value or magnitude"),
        fn("IM", 1, _imaginary_part, "Imaginary part"),
        fn("RE", 1, _real_part, "Real part"),
        fn("POL", 2, lambda params, ctx: ctx.arithmetic.polar(params[0], params[1]),
           "Complex number from polar coordinates: angle, length"),
        fn("CONJ", 1, _unary("conjugate"), "Complex conjugate"),
        fn("INV", 1, _unary("invert"), "Reciprocal 1/x"),
        fn("PYT", 2, _pythagoras, "Hypotenuse sqrt(a^2+b^2)"),
        fn("LN", 1, _unary("ln"), "Natural logarithm"),
        fn("LOG", 1, _unary("log10"), "Logarithm to base 10"),
        fn("SQRT", 1, _unary("sqrt"), "Square root"),
        fn("FLOOR", 1, _unary("floor"), "Round down"),
        fn("CEIL", 1, _unary("ceil"), "Round up"),
        fn("ROU", 1, _unary("round"), "Round half up to the nearest integer"),
        fn("ARR", VARIADIC, _array, "Array of the arguments"),
        fn("POLY", VARIADIC, _poly, "Polynomial from coefficients, constant term first", min_params=1),
        fn("DERIVE", VARIADIC, _derive, "Derivative of a polynomial", min_params=1),
        fn("INTEGRATE", VARIADIC, _integrate, "Antiderivative of a polynomial, constant term 0", min_params=1),
        fn("PVAL", 2, _polynomial_value, "Value of a polynomial at x"),
    ]
    return FunctionRegistry({f.name: f for f in functions})


FUNCTIONS = build_functions()
