"""Calculator session: one variable store, one history, one random generator."""
import random
from decimal import Context, Decimal, localcontext
from typing import List

from pydantic import BaseModel, Field, PrivateAttr

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import ExpressionValidationError
from expression_evaluator.common.logger import logger
from expression_evaluator.common.preprocess import normalize_expression
from expression_evaluator.core.expression import Expression
from expression_evaluator.core.values import Value
from expression_evaluator.session.history import History
from expression_evaluator.session.variables import VariableStore

TERM_SEPARATOR = ":"


def compute_pi(precision: int) -> Decimal:
    """Pi to ``precision`` significant digits (series from the ``decimal`` module documentation)."""
    with localcontext(Context(prec=precision + 2)):
        three = Decimal(3)
        lasts, t, s, n, na, d, da = 0, three, 3, 1, 0, 0, 24
        while s != lasts:
            lasts = s
            n, na = n + na, na + 8
            d, da = d + da, da + 32
            t = (t * n) / d
            s += t
    with localcontext(Context(prec=precision)):
        return +s


def compute_e(precision: int) -> Decimal:
    with localcontext(Context(prec=precision)):
        return Decimal(1).exp()


class Calculator(BaseModel):
    """
    Evaluation session.

    Lines may hold several terms separated by ``:``; each term is normalized,
    evaluated, and added to the history unless it is already there.
    The constants ``e``, ``PI``, ``TRUE`` and ``FALSE`` are defined on creation.
    """

    settings: EvaluatorSettings = Field(default_factory=EvaluatorSettings)
    history: History = Field(default_factory=History)
    variables: VariableStore = Field(default_factory=VariableStore)

    _rng: random.Random = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._rng = random.Random(self.settings.random_seed)
        constants = {
            "e": Value.from_real(compute_e(self.settings.precision)),
            "PI": Value.from_real(compute_pi(self.settings.precision)),
            "TRUE": Value.from_real(1),
            "FALSE": Value.from_real(0),
        }
        for name, value in constants.items():
            if not self.variables.contains_key(name):
                self.variables.put(name, value)

    def expression(self, source: str) -> Expression:
        """Bind an already normalized expression to this session."""
        return Expression(source, self.history, self.variables, settings=self.settings, rng=self._rng)

    def evaluate_all(self, line: str) -> List[Value]:
        """
        Evaluate every ``:``-separated term of a line.

        :param str line: Raw user input
        :return: One result per term
        :rtype: List[Value]
        :raises ExpressionError: On the first term that fails; earlier terms keep their effects
        """
        terms = [normalize_expression(term) for term in line.split(TERM_SEPARATOR)]
        terms = [term for term in terms if term]
        if not terms:
            raise ExpressionValidationError("Empty expression")

        results: List[Value] = []
        for term in terms:
            result = self.expression(term).evaluate()
            if not self.history.contains(term):
                self.history.append(term)
            logger.info(f"🧮✅ {term} = {result}")
            results.append(result)
        return results

    def evaluate(self, line: str) -> Value:
        """
        Evaluate a line and return the result of its last term.

        :param str line: Raw user input
        :return: Result of the last term
        :rtype: Value
        """
        return self.evaluate_all(line)[-1]
