"""Test class Expression and the evaluator."""
import random

from pydantic import ValidationError
import pytest

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.common.errors import (
    DomainError,
    EvaluationError,
    ExpressionError,
    ExpressionValidationError,
    ResourceExhaustedError,
)
from expression_evaluator.core.context import EvaluationContext
from expression_evaluator.core.arithmetic import Arithmetic
from expression_evaluator.core.evaluator import Evaluator
from expression_evaluator.core.expression import Expression
from expression_evaluator.core.parser import ShuntingYardParser
from expression_evaluator.core.values import Value
from expression_evaluator.session.history import History
from expression_evaluator.session.variables import VariableStore


@pytest.mark.parametrize("expr,rpn,expected", [
    ("2+3*4", "2 3 4 * +", "14"),
    ("2^3^2", "2 3 2 ^ ^", "512"),
    ("10-3-2", "10 3 - 2 -", "5"),
])
def test_rpn_and_value(expr, rpn, expected):
    """Expressions expose their RPN and evaluate it."""
    expression = Expression(expr)
    assert " ".join(token.text for token in expression.rpn) == rpn
    assert str(expression.evaluate()) == expected


def test_rpn_is_cached(monkeypatch) -> None:
    """Evaluating twice parses once and gives the same result."""
    calls = []
    original = ShuntingYardParser.parse

    def counting_parse(self, expression):
        calls.append(expression)
        return original(self, expression)

    monkeypatch.setattr(ShuntingYardParser, "parse", counting_parse)
    expression = Expression("SUM(SEQ(1,1,5))")
    first = expression.evaluate()
    second = expression.evaluate()
    assert first == second
    assert str(first) == "15"
    assert len(calls) == 1


@pytest.mark.parametrize("expr,error", [
    ("+", ExpressionValidationError),
    ("1,2", ExpressionValidationError),
    ("MAX()", ExpressionValidationError),
    ("1/0", EvaluationError),
])
def test_errors(expr, error):
    """Malformed or undefined expressions raise ExpressionError subclasses."""
    with pytest.raises(error) as excinfo:
        Expression(expr).evaluate()
    assert isinstance(excinfo.value, ExpressionError)


def test_evaluation_error_reports_position() -> None:
    """Errors raised by an operator carry the operator's offset."""
    with pytest.raises(EvaluationError) as excinfo:
        Expression("1+1/0").evaluate()
    assert excinfo.value.position == 3
    assert "position 3" in str(excinfo.value)


def test_declared_variables_are_bound_to_zero() -> None:
    """Unknown identifiers are created with value zero before evaluation."""
    variables = VariableStore()
    assert str(Expression("q+1", variables=variables).evaluate()) == "1"
    assert "q" in variables


def test_assignment_persists_in_store() -> None:
    """a->5 writes to the shared store; a later expression reads it."""
    history, variables = History(), VariableStore()
    assert str(Expression("a->5", history, variables).evaluate()) == "5"
    assert str(Expression("a", history, variables).evaluate()) == "5"
    assert str(variables.get("A")) == "5"


def test_history_replay() -> None:
    """H(i) re-evaluates history entry i."""
    history = History(entries=["2+3", "H(0)*2"])
    assert str(Expression("H(0)", history).evaluate()) == "5"
    assert str(Expression("H(1)+1", history).evaluate()) == "11"


def test_history_index_out_of_range() -> None:
    """H with an unknown index is a DomainError."""
    with pytest.raises(DomainError):
        Expression("H(3)", History(entries=["1"])).evaluate()


def test_history_depth_is_bounded() -> None:
    """Self-referencing history entries stop at max_history_depth."""
    history = History(entries=["H(0)"])
    settings = EvaluatorSettings(max_history_depth=3)
    with pytest.raises(ResourceExhaustedError):
        Expression("H(0)", history, settings=settings).evaluate()


def test_history_depth_at_the_maximum() -> None:
    """The deepest allowed nesting still stops with ResourceExhaustedError."""
    history = History(entries=["H(0)"])
    settings = EvaluatorSettings(max_history_depth=100)
    with pytest.raises(ResourceExhaustedError):
        Expression("H(0)", history, settings=settings).evaluate()


def test_history_depth_is_capped() -> None:
    with pytest.raises(ValidationError):
        EvaluatorSettings(max_history_depth=101)


def test_seeded_random_generator() -> None:
    """The random generator is seeded from the settings."""
    settings = EvaluatorSettings(random_seed=3)
    first = Expression("MRS()", settings=settings).evaluate()
    second = Expression("MRS()", settings=settings).evaluate()
    assert first == second


def test_evaluator_stack_order() -> None:
    """The second value popped is the left operand."""
    rpn = ShuntingYardParser().parse("8-2").rpn
    settings = EvaluatorSettings()
    ctx = EvaluationContext(
        settings=settings,
        arithmetic=Arithmetic(settings),
        variables=VariableStore(),
        history=History(),
        rng=random.Random(0),
        evaluate_nested=lambda source: Value.from_real(0),
    )
    assert str(Evaluator().evaluate(rpn, ctx)) == "6"


def test_named_values_from_variables() -> None:
    """Scalar variables push named values, arrays are pushed as they are."""
    variables = VariableStore()
    variables.put("n", Value.from_real(2))
    variables.put("list", Value.from_items([Value.from_real(1)]))
    assert str(Expression("n->n+1", variables=variables).evaluate()) == "3"
    with pytest.raises(DomainError):
        Expression("list->4", variables=variables).evaluate()
