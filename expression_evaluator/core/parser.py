"""Convert infix token streams to Reverse Polish Notation."""
import re
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from expression_evaluator.common.errors import ExpressionValidationError, ParseError
from expression_evaluator.common.logger import logger
from expression_evaluator.core.functions import FUNCTIONS, FunctionRegistry
from expression_evaluator.core.operators import OPERATORS, OperatorRegistry
from expression_evaluator.core.tokenizer import Token, Tokenizer, TokenType
from expression_evaluator.session.variables import VariableStore

NUMBER_LITERAL = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?i?$")
RADIX_LITERAL = re.compile(r"^(?:x[0-9a-fA-F]+|o[0-7]+|b[01]+)$")
RADIX = {"x": 16, "o": 8, "b": 2}
IMAGINARY_UNIT = "i"


class ParseResult(BaseModel):
    """RPN of an expression plus the variables it introduced."""

    model_config = ConfigDict(frozen=True)

    rpn: Tuple[Token, ...] = Field(..., description="Tokens in evaluation order")
    declared: Tuple[str, ...] = Field(default=(), description="Unknown identifiers to bind to zero before evaluation")

    def __str__(self) -> str:
        return " ".join(token.text for token in self.rpn)


class ShuntingYardParser:
    """
    Shunting-yard conversion from infix tokens to RPN.

    Operators are held on a stack until an operator of lower precedence (or equal
    precedence, for left-associative operators) arrives. Function calls emit a
    ``(`` marker into the output so the evaluator knows where their parameters start.

    Examples:
        - ``2+3*4`` gives ``2 3 4 * +``
        - ``MAX(1,2)`` gives ``( 1 2 MAX``

    The parser never mutates the variable store: unknown identifiers are returned
    in ``ParseResult.declared`` instead.

    :param OperatorRegistry operators: Known operators
    :param FunctionRegistry functions: Known functions
    :param VariableStore variables: Variables defined so far
    """

    def __init__(self, operators: OperatorRegistry = OPERATORS, functions: FunctionRegistry = FUNCTIONS,
                 variables: Optional[VariableStore] = None):
        self.operators = operators
        self.functions = functions
        self.variables = variables if variables is not None else VariableStore()

    @staticmethod
    def decode_radix(text: str) -> str:
        """
        Convert a hexadecimal (``x1F``), octal (``o17``) or binary (``b101``) literal to decimal text.

        :param str text: Literal including its prefix
        :return: Decimal digits
        :rtype: str
        """
        return str(int(text[1:], RADIX[text[0]]))

    def _resolve_identifier(self, token: Token, declared: List[str], seen: Set[str]) -> Token:
        """Classify an identifier as a literal, a variable or a function name."""
        text = token.text
        if text == IMAGINARY_UNIT:
            return token.model_copy(update={"kind": TokenType.NUMBER})
        if RADIX_LITERAL.match(text):
            return token.model_copy(update={"text": self.decode_radix(text), "kind": TokenType.NUMBER})
        if self.variables.contains_key(text) or text.casefold() in seen:
            return token.model_copy(update={"kind": TokenType.VARIABLE})
        if text in self.functions:
            return token.model_copy(update={"kind": TokenType.FUNCTION})
        VariableStore.check_name(text)
        logger.debug(f"Declaring variable '{text}'")
        declared.append(text)
        seen.add(text.casefold())
        return token.model_copy(update={"kind": TokenType.VARIABLE})

    def _pops_before(self, incoming: Token, top: Token) -> bool:
        """True if ``top`` must leave the stack before ``incoming`` is pushed."""
        if top.kind != TokenType.OPERATOR:
            return False
        o1 = self.operators[incoming.text]
        o2 = self.operators[top.text]
        return (o1.left_assoc and o1.precedence <= o2.precedence) or o1.precedence < o2.precedence

    def parse(self, expression: str) -> ParseResult:
        """
        Convert an expression to RPN.

        :param str expression: Normalized infix expression
        :return: RPN tokens and newly declared variable names
        :rtype: ParseResult
        :raises TokenError: On an unknown symbol
        :raises ParseError: On missing operands, misplaced separators or mismatched parentheses
        :raises ExpressionValidationError: On a separator outside of any function call
        """
        output: List[Token] = []
        stack: List[Token] = []
        declared: List[str] = []
        seen: Set[str] = set()
        previous: Optional[Token] = None
        last_function: Optional[str] = None

        for token in Tokenizer(expression, self.operators):
            if token.kind == TokenType.IDENTIFIER:
                token = self._resolve_identifier(token, declared, seen)

            if token.kind == TokenType.NUMBER:
                if not NUMBER_LITERAL.match(token.text) and token.text != IMAGINARY_UNIT:
                    raise ParseError(f"Malformed number '{token.text}'", position=token.position)
                output.append(token)

            elif token.kind == TokenType.VARIABLE:
                output.append(token)

            elif token.kind == TokenType.FUNCTION:
                stack.append(token)
                last_function = token.text

            elif token.kind == TokenType.COMMA:
                if previous is not None and previous.kind == TokenType.OPERATOR:
                    raise ParseError(f"Missing parameter(s) for operator '{previous.text}'",
                                     position=previous.position)
                if previous is None or previous.kind in (TokenType.COMMA, TokenType.LEFT_PAREN):
                    raise ParseError("Missing parameter before ','", position=token.position)
                while stack and stack[-1].kind != TokenType.LEFT_PAREN:
                    output.append(stack.pop())
                if not stack:
                    if last_function is None:
                        raise ExpressionValidationError("Unexpected ',' outside of a function call",
                                                        position=token.position)
                    raise ParseError(f"Parse error for function '{last_function}'", position=token.position)

            elif token.kind == TokenType.OPERATOR:
                if previous is not None and previous.kind in (TokenType.COMMA, TokenType.LEFT_PAREN):
                    raise ParseError(f"Missing parameter(s) for operator '{token.text}'", position=token.position)
                while stack and self._pops_before(token, stack[-1]):
                    output.append(stack.pop())
                stack.append(token)

            elif token.kind == TokenType.LEFT_PAREN:
                if previous is not None:
                    if previous.kind == TokenType.NUMBER:
                        raise ParseError(f"Missing operator between '{previous.text}' and '('",
                                         position=token.position)
                    if previous.kind == TokenType.FUNCTION:
                        output.append(token)
                stack.append(token)

            elif token.kind == TokenType.RIGHT_PAREN:
                if previous is not None and previous.kind == TokenType.OPERATOR:
                    raise ParseError(f"Missing parameter(s) for operator '{previous.text}'",
                                     position=previous.position)
                if previous is not None and previous.kind == TokenType.COMMA:
                    raise ParseError("Missing parameter after ','", position=previous.position)
                while stack and stack[-1].kind != TokenType.LEFT_PAREN:
                    output.append(stack.pop())
                if not stack:
                    raise ParseError("Mismatched parentheses", position=token.position)
                stack.pop()
                if stack and stack[-1].kind == TokenType.FUNCTION:
                    output.append(stack.pop())

            previous = token

        while stack:
            token = stack.pop()
            if token.kind in (TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN):
                raise ParseError("Mismatched parentheses", position=token.position)
            if token.kind != TokenType.OPERATOR:
                raise ParseError(f"Unknown operator or function: '{token.text}'", position=token.position)
            output.append(token)

        result = ParseResult(rpn=tuple(output), declared=tuple(declared))
        logger.debug(f"RPN of '{expression}': {result}")
        return result
