"""Rewrite user input into the form the tokenizer expects."""
import re

_WHITESPACE = re.compile(r"\s+")
_FACTORIAL = re.compile(r"!(?!=)")
_UNARY_INVERT = re.compile(r"(?:^|(?<=[(,]))~")
_UNARY_SIGN = re.compile(r"(?:^|(?<=[(,]))([+-])")


def _collapse_whitespace(match: re.Match) -> str:
    # Keep one space between two words so "a or b" does not become "aorb"
    text = match.string
    before = text[match.start() - 1] if match.start() > 0 else ""
    after = text[match.end()] if match.end() < len(text) else ""
    if (before.isalnum() or before == "_") and (after.isalnum() or after == "_"):
        return " "
    return ""


def normalize_expression(expression: str) -> str:
    """
    Turn unary operators into binary ones and drop insignificant whitespace.

    - ``5!`` becomes ``5!0``; ``!=`` is left alone
    - a leading ``~``, or one after ``(`` or ``,``, becomes ``0~``
    - a leading ``+``/``-``, or one after ``(`` or ``,``, gets a ``0`` operand

    Examples:
        - ``-(3 + 4)`` gives ``0-(3+4)``
        - ``a or b`` gives ``a or b``

    :param str expression: Raw user input
    :return: Normalized expression
    :rtype: str
    """
    text = _WHITESPACE.sub(_collapse_whitespace, expression.strip())
    text = _FACTORIAL.sub("!0", text)
    text = _UNARY_INVERT.sub("0~", text)
    return _UNARY_SIGN.sub(r"0\1", text)
