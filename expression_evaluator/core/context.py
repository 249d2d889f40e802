"""State handed explicitly to every operator and function call."""
import random
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from expression_evaluator.common.config import EvaluatorSettings
from expression_evaluator.core.arithmetic import Arithmetic
from expression_evaluator.core.values import Value
from expression_evaluator.session.history import History
from expression_evaluator.session.variables import VariableStore


class EvaluationContext(BaseModel):
    """
    Session state visible to operators and functions during one evaluation.

    Operators and functions never capture session state; they read it from here.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    settings: EvaluatorSettings
    arithmetic: Arithmetic
    variables: VariableStore
    history: History
    rng: random.Random
    depth: int = Field(default=0, ge=0, description="Nesting level of H() evaluations")
    evaluate_nested: Callable[[str], Value] = Field(..., description="Evaluates a history entry one level deeper")
