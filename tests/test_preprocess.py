"""Test normalize_expression."""
import pytest

from expression_evaluator.common.preprocess import normalize_expression


@pytest.mark.parametrize("raw,expected", [
    (" 1 + 2 ", "1+2"),
    ("5!", "5!0"),
    ("5! + 1", "5!0+1"),
    ("2 != 3", "2!=3"),
    ("-3+4", "0-3+4"),
    ("+3", "0+3"),
    ("2*(-3)", "2*(0-3)"),
    ("(+(2))", "(0+(2))"),
    ("(-(-2))", "(0-(0-2))"),
    ("MAX(1,-2)", "MAX(1,0-2)"),
    ("~5", "0~5"),
    ("MAX(~1,2)", "MAX(0~1,2)"),
    ("a or b", "a or b"),
    ("6  XOR  3", "6 XOR 3"),
    ("1e-5", "1e-5"),
    ("a -> 5", "a->5"),
])
def test_normalize_expression(raw, expected):
    """Unary operators are rewritten and whitespace is dropped except between words."""
    assert normalize_expression(raw) == expected
