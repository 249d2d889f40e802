"""Split a normalized expression into tokens."""
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from expression_evaluator.common.errors import TokenError
from expression_evaluator.core.operators import OPERATORS, OperatorRegistry


class TokenType(str, Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    LEFT_PAREN = "left_paren"
    RIGHT_PAREN = "right_paren"
    COMMA = "comma"
    # Only produced by the parser, once identifiers are resolved
    VARIABLE = "variable"
    FUNCTION = "function"


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Token text as written, or decoded for radix literals")
    position: int = Field(..., ge=0, description="Offset of the first character in the expression")
    kind: TokenType

    def __str__(self) -> str:
        return self.text


def _is_symbol(ch: str) -> bool:
    return not (ch.isalnum() or ch.isspace() or ch in "_(),")


class Tokenizer:
    """
    Single-pass scanner with one character of lookahead and one token of lookback.

    Expects the output of ``normalize_expression``: unary ``+``/``-``/``!``/``~``
    already rewritten into binary forms. Whitespace between tokens is skipped.

    Examples:
        - ``2*-3`` gives ``2``, ``*``, ``-3``
        - ``a->5`` gives ``a``, ``->``, ``5``

    :param str expression: Expression to scan
    :param OperatorRegistry operators: Known operators, used to recognize symbol runs
    """

    def __init__(self, expression: str, operators: OperatorRegistry = OPERATORS):
        self.expression = expression
        self.operators = operators
        self.position = 0
        self.previous: Optional[Token] = None

    def _peek(self, offset: int = 0) -> str:
        index = self.position + offset
        return self.expression[index] if index < len(self.expression) else ""

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self.position += 1

    def has_next(self) -> bool:
        self._skip_whitespace()
        return self.position < len(self.expression)

    def _signed_literal_allowed(self) -> bool:
        return (self.previous is None
                or self.previous.kind in (TokenType.LEFT_PAREN, TokenType.COMMA, TokenType.OPERATOR))

    def _read_number(self) -> str:
        start = self.position
        while True:
            ch = self._peek()
            if ch and (ch.isdigit() or ch in ".eEi"):
                self.position += 1
            elif ch and ch in "+-" and self.position > start and self.expression[self.position - 1] in "eE":
                # Exponent sign, as in 1e-5
                self.position += 1
            else:
                break
        return self.expression[start:self.position]

    def _read_identifier(self) -> str:
        start = self.position
        while self._peek() and (self._peek().isalnum() or self._peek() == "_"):
            self.position += 1
        return self.expression[start:self.position]

    def _read_symbols(self) -> str:
        start = self.position
        while self._peek() and _is_symbol(self._peek()):
            # A '-' after a symbol starts a new token: "*-3" is "*" then "-3"
            if self._peek() == "-" and self.position > start:
                break
            self.position += 1
        return self.expression[start:self.position]

    def next_token(self) -> Token:
        """
        Scan the next token.

        :return: Next token
        :rtype: Token
        :raises TokenError: If a run of symbols is not a known operator
        :raises StopIteration: If the expression is exhausted
        """
        if not self.has_next():
            raise StopIteration
        start = self.position
        ch = self._peek()

        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            token = Token(text=self._read_number(), position=start, kind=TokenType.NUMBER)
        elif ch == "-" and self._peek(1).isdigit() and self._signed_literal_allowed():
            self.position += 1
            token = Token(text="-" + self._read_number(), position=start, kind=TokenType.NUMBER)
        elif ch.isalpha() or ch == "_":
            text = self._read_identifier()
            kind = TokenType.OPERATOR if text in self.operators else TokenType.IDENTIFIER
            token = Token(text=text, position=start, kind=kind)
        elif ch in "(),":
            self.position += 1
            kind = {"(": TokenType.LEFT_PAREN, ")": TokenType.RIGHT_PAREN, ",": TokenType.COMMA}[ch]
            token = Token(text=ch, position=start, kind=kind)
        else:
            text = self._read_symbols()
            if text not in self.operators:
                raise TokenError(f"Unknown operator '{text}'", position=start)
            token = Token(text=text, position=start, kind=TokenType.OPERATOR)

        self.previous = token
        return token

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        return self.next_token()
