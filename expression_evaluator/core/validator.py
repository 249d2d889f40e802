"""Check that an RPN sequence fits the arity of its operators and functions."""
from typing import List, Sequence

from expression_evaluator.common.errors import ExpressionValidationError
from expression_evaluator.core.functions import FUNCTIONS, FunctionRegistry
from expression_evaluator.core.tokenizer import Token, TokenType


def validate(rpn: Sequence[Token], functions: FunctionRegistry = FUNCTIONS) -> None:
    """
    Count operands per scope, one scope per function parameter list.

    Every operator needs two values in the current scope and leaves one. A function
    closes its scope, checks the number of parameters collected in it and adds one
    value to the enclosing scope.

    :param Sequence[Token] rpn: Output of the parser
    :param FunctionRegistry functions: Known functions
    :raises ExpressionValidationError: On missing or surplus operands, wrong parameter counts or empty input
    """
    scopes: List[int] = [0]

    for token in rpn:
        if token.kind == TokenType.OPERATOR:
            if scopes[-1] < 2:
                raise ExpressionValidationError(f"Missing parameter(s) for operator '{token.text}'",
                                                position=token.position)
            # Consumes two values, yields one
            scopes[-1] -= 1

        elif token.kind == TokenType.FUNCTION:
            function = functions[token.text]
            count = scopes.pop()
            if not function.variadic and count != function.arity:
                raise ExpressionValidationError(
                    f"Function {function.name} expected {function.arity} parameter(s), got {count}",
                    position=token.position)
            if function.variadic and count < function.min_params:
                raise ExpressionValidationError(
                    f"Function {function.name} requires at least {function.min_params} parameter(s), got {count}",
                    position=token.position)
            if not scopes:
                raise ExpressionValidationError("Too many function calls, maximum scope exceeded",
                                                position=token.position)
            scopes[-1] += 1

        elif token.kind == TokenType.LEFT_PAREN:
            scopes.append(0)

        else:
            scopes[-1] += 1

    if len(scopes) > 1:
        raise ExpressionValidationError("Too many unhandled function parameter lists")
    if scopes[-1] > 1:
        raise ExpressionValidationError("Too many numbers or variables, missing operator")
    if scopes[-1] < 1:
        raise ExpressionValidationError("Empty expression")
