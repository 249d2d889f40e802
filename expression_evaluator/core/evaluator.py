"""Evaluate validated RPN with a value stack."""
from typing import List, Sequence, Union

from expression_evaluator.common.errors import ExpressionError
from expression_evaluator.core.context import EvaluationContext
from expression_evaluator.core.functions import FUNCTIONS, FunctionRegistry
from expression_evaluator.core.operators import OPERATORS, OperatorRegistry
from expression_evaluator.core.tokenizer import Token, TokenType
from expression_evaluator.core.values import Value


class _ParamsStart:
    """Stack marker for the start of a function parameter list."""

    def __repr__(self) -> str:
        return "PARAMS_START"


PARAMS_START = _ParamsStart()


class Evaluator:
    """
    Single left-to-right pass over RPN.

    :param OperatorRegistry operators: Known operators
    :param FunctionRegistry functions: Known functions
    """

    def __init__(self, operators: OperatorRegistry = OPERATORS, functions: FunctionRegistry = FUNCTIONS):
        self.operators = operators
        self.functions = functions

    def _step(self, token: Token, stack: List[Union[Value, _ParamsStart]], ctx: EvaluationContext) -> None:
        if token.kind == TokenType.OPERATOR:
            right = stack.pop()
            left = stack.pop()
            stack.append(self.operators[token.text].evaluate(left, right, ctx))

        elif token.kind == TokenType.VARIABLE:
            value = ctx.variables.get(token.text)
            # Sequences are never assignment targets
            stack.append(value if value.is_sequence else value.named(token.text))

        elif token.kind == TokenType.LEFT_PAREN:
            stack.append(PARAMS_START)

        elif token.kind == TokenType.FUNCTION:
            params: List[Value] = []
            while stack[-1] is not PARAMS_START:
                params.append(stack.pop())
            stack.pop()
            params.reverse()
            stack.append(self.functions[token.text].call(params, ctx))

        else:
            stack.append(ctx.arithmetic.literal(token.text))

    def evaluate(self, rpn: Sequence[Token], ctx: EvaluationContext) -> Value:
        """
        Compute the value of an RPN sequence.

        :param Sequence[Token] rpn: Validated RPN
        :param EvaluationContext ctx: Session state
        :return: Normalized result
        :rtype: Value
        :raises ExpressionError: If an operator or function fails
        """
        stack: List[Union[Value, _ParamsStart]] = []
        for token in rpn:
            try:
                self._step(token, stack, ctx)
            except ExpressionError as exc:
                if exc.position is None:
                    exc.position = token.position
                raise
        result = stack.pop()
        return ctx.arithmetic.normalize(result)
