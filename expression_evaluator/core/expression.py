"""Expression: source text, cached RPN and evaluation entry point."""
import random
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import ResourceExhaustedError
from expression_evaluator.common.logger import logger
from expression_evaluator.core.arithmetic import Arithmetic
from expression_evaluator.core.context import EvaluationContext
from expression_evaluator.core.evaluator import Evaluator
from expression_evaluator.core.functions import FUNCTIONS
from expression_evaluator.core.operators import OPERATORS
from expression_evaluator.core.parser import ParseResult, ShuntingYardParser
from expression_evaluator.core.tokenizer import Token
from expression_evaluator.core.validator import validate
from expression_evaluator.core.values import Value
from expression_evaluator.session.history import History
from expression_evaluator.session.variables import VariableStore


class Expression(BaseModel):
    """
    A normalized infix expression bound to a history and a variable store.

    The RPN is computed on first use and reused by later evaluations.

    Examples:
        - ``str(Expression("2+3*4").evaluate())`` is ``"14"``
        - ``Expression("2+3*4").rpn`` holds ``2 3 4 * +``

    :param str source: Expression text, already passed through ``normalize_expression``
    :param History history: History read by ``H(i)``
    :param VariableStore variables: Variables read and written by the expression
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str = Field(..., description="Normalized expression text")
    history: History = Field(default_factory=History)
    variables: VariableStore = Field(default_factory=VariableStore)
    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings)
    rng: Optional[random.Random] = Field(default=None, description="Random generator, seeded from settings if omitted")
    depth: int = Field(default=0, ge=0, description="Nesting level, incremented by each H() call")

    _parsed: Optional[ParseResult] = PrivateAttr(default=None)

    def __init__(self, source: str, history: Optional[History] = None, variables: Optional[VariableStore] = None,
                 **data):
        if history is not None:
            data["history"] = history
        if variables is not None:
            data["variables"] = variables
        super().__init__(source=source, **data)

    def model_post_init(self, __context) -> None:
        if self.rng is None:
            self.rng = random.Random(self.settings.random_seed)

    def _parse(self) -> ParseResult:
        if self._parsed is None:
            parser = ShuntingYardParser(OPERATORS, FUNCTIONS, self.variables)
            parsed = parser.parse(self.source)
            validate(parsed.rpn, FUNCTIONS)
            self._parsed = parsed
        return self._parsed

    @property
    def rpn(self) -> Tuple[Token, ...]:
        """
        RPN tokens of the expression, parsed and validated once.

        :raises TokenError: On an unknown symbol
        :raises ParseError: On malformed input
        :raises ExpressionValidationError: On operand or parameter count mismatches
        """
        return self._parse().rpn

    def _evaluate_nested(self, source: str) -> Value:
        try:
            nested = Expression(source, self.history, self.variables,
                                settings=self.settings, rng=self.rng, depth=self.depth + 1)
            return nested.evaluate()
        except RecursionError as exc:
            raise ResourceExhaustedError(
                f"History references nested too deeply at level {self.depth + 1}") from exc

    def evaluate(self) -> Value:
        """
        Evaluate the expression.

        Unknown identifiers found while parsing are bound to zero first.

        :return: Normalized result
        :rtype: Value
        :raises ExpressionError: On any tokenizing, parsing, validation or evaluation failure
        :raises ResourceExhaustedError: If nested H() calls exceed ``max_history_depth``
        """
        if self.depth > self.settings.max_history_depth:
            raise ResourceExhaustedError(
                f"History references nested deeper than {self.settings.max_history_depth} levels")
        parsed = self._parse()
        for name in parsed.declared:
            self.variables.declare(name)

        ctx = EvaluationContext(
            settings=self.settings,
            arithmetic=Arithmetic(self.settings),
            variables=self.variables,
            history=self.history,
            rng=self.rng,
            depth=self.depth,
            evaluate_nested=self._evaluate_nested,
        )
        result = Evaluator(OPERATORS, FUNCTIONS).evaluate(parsed.rpn, ctx)
        logger.debug(f"{self.source} = {result}")
        return result
