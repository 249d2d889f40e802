"""Evaluator settings, chosen once when a session or expression is created."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EvaluatorSettings(BaseModel):
    """
    Numeric policy and resource limits of an evaluator.

    One settings object replaces the separate fixed-precision, arbitrary-precision,
    double-complex and big-complex pipelines: every variant is the same engine
    with a different policy.
    """

    # Settings never change while expressions are being evaluated
    model_config = ConfigDict(frozen=True)

    precision: int = Field(default=34, ge=1, le=10_000, description="Significant decimal digits of arithmetic")
    exact: bool = Field(default=True, description="Exact factorial (True) or Gamma approximation (False)")
    complex_enabled: bool = Field(default=True, description="Allow complex literals and complex results")
    max_history_depth: int = Field(default=16, ge=1, le=100, description="Maximum nesting of H() evaluations")
    random_seed: Optional[int] = Field(default=None, description="Seed of the session random generator")
