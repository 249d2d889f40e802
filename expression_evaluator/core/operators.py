"""Built-in binary operators and their precedence table."""
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from expression_evaluator.common.errors import DomainError
from expression_evaluator.core.arithmetic import signed64
from expression_evaluator.core.context import EvaluationContext
from expression_evaluator.core.registry import Registry
from expression_evaluator.core.values import Value, ValueType

OperatorFn = Callable[[Value, Value, EvaluationContext], Value]


class Operator(BaseModel):
    """A binary infix operator."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Operator symbol or word, e.g. '+' or 'shl'")
    precedence: int = Field(..., description="Higher binds tighter")
    left_assoc: bool = Field(default=True, description="Left (True) or right (False) associative")
    description: str = Field(default="", description="Short help text")
    evaluate: OperatorFn = Field(..., description="(left, right, context) -> result")


OperatorRegistry = Registry[Operator]


def _truth(flag: bool) -> Value:
    return Value.from_real(1 if flag else 0)


# Arithmetic ======================================================

def _add(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    if left.kind == ValueType.ARRAY:
        return Value.from_items(left.items + (right,))
    return ctx.arithmetic.add(left, right)


def _subtract(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    if left.kind == ValueType.ARRAY:
        return Value.from_items(item for item in left.items if not item.matches(right))
    return ctx.arithmetic.subtract(left, right)


def _factorial(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    # The right operand is the 0 inserted by preprocessing ("5!" -> "5!0")
    return ctx.arithmetic.factorial(left)


def _assign(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    if left.name is None:
        raise DomainError(f"Left side of '->' is not a variable: {left}")
    ctx.variables.put(left.name, right)
    return right


# Comparison ======================================================

def _comparison(test: Callable[[int], bool]) -> OperatorFn:
    def compare(left: Value, right: Value, ctx: EvaluationContext) -> Value:
        return _truth(test(ctx.arithmetic.compare(left, right)))
    return compare


def _logical_and(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    return _truth(ctx.arithmetic.is_true(left) and ctx.arithmetic.is_true(right))


def _logical_or(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    return _truth(ctx.arithmetic.is_true(left) or ctx.arithmetic.is_true(right))


# Bitwise =========================================================

def _bitwise(name: str, combine: Callable[[int, int], int]) -> OperatorFn:
    def apply(left: Value, right: Value, ctx: EvaluationContext) -> Value:
        a = ctx.arithmetic.to_int64(left, f"Operator '{name}'")
        b = ctx.arithmetic.to_int64(right, f"Operator '{name}'")
        return Value.from_real(signed64(combine(a, b)))
    return apply


def _invert_bits(left: Value, right: Value, ctx: EvaluationContext) -> Value:
    # Unary: "~5" is rewritten to "0~5", the left operand is ignored
    n = ctx.arithmetic.to_int64(right, "Operator '~'")
    if n < 0:
        raise DomainError(f"Bitwise negation requires a non-negative integer, got {right}")
    width = n.bit_length()
    if width == 0:
        return Value.from_real(1)
    return Value.from_real(n ^ ((1 << width) - 1))


def build_operators() -> OperatorRegistry:
    """
    Create the fixed operator table.

    Precedences must not change: the RPN order of every expression depends on them.
    """
    operators = [
        Operator(name="||", precedence=2, description="Logical OR: 0 if both operands are 0, else 1",
                 evaluate=_logical_or),
        Operator(name="&&", precedence=4, description="Logical AND: 1 if both operands are not 0, else 0",
                 evaluate=_logical_and),
        Operator(name="=", precedence=7, description="Equality",
                 evaluate=_comparison(lambda c: c == 0)),
        Operator(name="!=", precedence=7, description="Inequality",
                 evaluate=_comparison(lambda c: c != 0)),
        Operator(name="or", precedence=7, description="Bitwise OR",
                 evaluate=_bitwise("or", lambda a, b: a | b)),
        Operator(name="and", precedence=7, description="Bitwise AND",
                 evaluate=_bitwise("and", lambda a, b: a & b)),
        Operator(name="xor", precedence=7, description="Bitwise XOR",
                 evaluate=_bitwise("xor", lambda a, b: a ^ b)),
        Operator(name="->", precedence=7, description="Store the right operand in the variable on the left",
                 evaluate=_assign),
        Operator(name="~", precedence=8, description="Bitwise negation of the right operand",
                 evaluate=_invert_bits),
        Operator(name="shl", precedence=8, description="Left bit shift",
                 evaluate=_bitwise("shl", lambda a, b: a << (b & 63))),
        Operator(name="shr", precedence=8, description="Logical right bit shift",
                 evaluate=_bitwise("shr", lambda a, b: (a & 0xFFFFFFFFFFFFFFFF) >> (b & 63))),
        Operator(name=">", precedence=10, description="Greater than",
                 evaluate=_comparison(lambda c: c > 0)),
        Operator(name=">=", precedence=10, description="Greater or equal",
                 evaluate=_comparison(lambda c: c >= 0)),
        Operator(name="<", precedence=10, description="Less than",
                 evaluate=_comparison(lambda c: c < 0)),
        Operator(name="<=", precedence=10, description="Less or equal",
                 evaluate=_comparison(lambda c: c <= 0)),
        Operator(name="+", precedence=20, description="Addition, or append to an array",
                 evaluate=_add),
        Operator(name="-", precedence=20, description="Subtraction, or remove matching elements from an array",
                 evaluate=_subtract),
        Operator(name="*", precedence=30, description="Multiplication",
                 evaluate=lambda left, right, ctx: ctx.arithmetic.multiply(left, right)),
        Operator(name="/", precedence=30, description="Division",
                 evaluate=lambda left, right, ctx: ctx.arithmetic.divide(left, right)),
        Operator(name="%", precedence=30, description="Remainder of the real parts",
                 evaluate=lambda left, right, ctx: ctx.arithmetic.remainder(left, right)),
        Operator(name="^", precedence=40, left_assoc=False, description="Exponentiation",
                 evaluate=lambda left, right, ctx: ctx.arithmetic.power(left, right)),
        Operator(name="!", precedence=50, description="Factorial of the left operand",
                 evaluate=_factorial),
    ]
    return OperatorRegistry({op.name: op for op in operators})


OPERATORS = build_operators()
