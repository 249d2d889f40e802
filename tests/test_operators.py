"""Test the built-in operators."""
import pytest

from expression_evaluator.common.errors import DomainError
from expression_evaluator.core.operators import OPERATORS
from expression_evaluator.session.calculator import Calculator


@pytest.fixture
def calc() -> Calculator:
    return Calculator()


def test_precedence_table() -> None:
    """Operators carry the fixed precedence and associativity."""
    expected = {
        "||": 2, "&&": 4,
        "=": 7, "!=": 7, "or": 7, "and": 7, "xor": 7, "->": 7,
        "~": 8, "shl": 8, "shr": 8,
        ">": 10, ">=": 10, "<": 10, "<=": 10,
        "+": 20, "-": 20,
        "*": 30, "/": 30, "%": 30,
        "^": 40,
        "!": 50,
    }
    assert {op.name: op.precedence for op in OPERATORS} == expected
    assert [op.name for op in OPERATORS if not op.left_assoc] == ["^"]


def test_word_operators_ignore_case() -> None:
    """Word operators are found regardless of case."""
    assert OPERATORS.get("XOR") is OPERATORS["xor"]
    assert "SHL" in OPERATORS
    assert OPERATORS.get(None) is None


@pytest.mark.parametrize("expr,expected", [
    ("2+3*4", "14"),
    ("2^3^2", "512"),
    ("10-3-2", "5"),
    ("-3+4", "1"),
    ("2*(-3)", "-6"),
    ("7%3", "1"),
    ("5!", "120"),
    ("0!", "1"),
    ("3!+1", "7"),
    ("1/4", "0.25"),
    ("(1+2i)*(3-i)", "5+5i"),
    ("i^2", "-1"),
])
def test_arithmetic_operators(calc, expr, expected):
    """Arithmetic operators follow precedence and associativity."""
    assert str(calc.evaluate(expr)) == expected


@pytest.mark.parametrize("expr,expected", [
    ("3>2", "1"),
    ("3<2", "0"),
    ("2>=2", "1"),
    ("2<=1", "0"),
    ("2=2", "1"),
    ("2!=3", "1"),
    ("3+4i=5", "1"),
    ("1&&0", "0"),
    ("2&&3", "1"),
    ("0||0", "0"),
    ("0||2", "1"),
])
def test_comparison_and_logic(calc, expr, expected):
    """Comparisons and logical operators yield 1 or 0."""
    assert str(calc.evaluate(expr)) == expected


@pytest.mark.parametrize("expr,expected", [
    ("6 and 3", "2"),
    ("6 or 3", "7"),
    ("6 xor 3", "5"),
    ("6 XOR 3", "5"),
    ("1 shl 4", "16"),
    ("16 shr 2", "4"),
    ("(0-1) shr 60", "15"),
    ("1 shl 63", "-9223372036854775808"),
    ("7.9 and 5", "5"),
    ("~5", "2"),
    ("~0", "1"),
    ("x1F and b111", "7"),
])
def test_bitwise_operators(calc, expr, expected):
    """Bitwise operators work on 64-bit integers truncated toward zero."""
    assert str(calc.evaluate(expr)) == expected


@pytest.mark.parametrize("expr", [
    "(1+2i) and 1",
    "ARR(1) or 1",
    "~(0-1)",
])
def test_bitwise_domain(calc, expr):
    """Complex, array and negative inversion operands are rejected."""
    with pytest.raises(DomainError):
        calc.evaluate(expr)


def test_assignment(calc) -> None:
    """-> stores the right operand and returns it."""
    assert str(calc.evaluate("x->5")) == "5"
    assert str(calc.evaluate("x")) == "5"
    assert str(calc.evaluate("y->x*2")) == "10"


def test_assignment_needs_a_variable(calc) -> None:
    """Assigning to a literal is a DomainError."""
    with pytest.raises(DomainError):
        calc.evaluate("5->5")


def test_array_append_and_remove(calc) -> None:
    """+ appends to an array and - removes every matching element."""
    assert str(calc.evaluate("ARR(1,2)+3")) == "[1,2,3]"
    assert str(calc.evaluate("ARR(1,2,1,3)-1")) == "[2,3]"
