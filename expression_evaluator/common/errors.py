"""Exceptions raised while tokenizing, parsing, validating and evaluating expressions."""
from functools import wraps
from typing import Optional


class ExpressionError(Exception):
    """
    Base class of every error raised by the evaluator.

    :param str message: Human readable description
    :param int position: Character offset in the expression, when known
    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at position {self.position})"


class TokenError(ExpressionError):
    """Unrecognized run of symbol characters."""


class ParseError(ExpressionError):
    """Missing operand, mismatched parentheses or unterminated function call."""


class ExpressionValidationError(ExpressionError):
    """RPN does not fit the arity of its operators and functions."""


class DomainError(ExpressionError):
    """Operand outside of the domain of an operator or function."""


class EvaluationError(ExpressionError):
    """Arithmetic produced an undefined result (division by zero, overflow, NaN)."""


class ResourceExhaustedError(ExpressionError):
    """Nested history evaluation exceeded the configured depth."""


def arithmetic_errors(what: str):
    """
    Decorator converting low-level arithmetic failures into EvaluationError.

    ExpressionErrors raised inside the wrapped function pass through.

    :param str what: Name of the operation, used in the message
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except ExpressionError:
                raise
            except (ArithmeticError, ValueError) as exc:
                raise EvaluationError(f"Undefined result for {what}: {exc!r}") from exc
        return wrapper
    return decorator
