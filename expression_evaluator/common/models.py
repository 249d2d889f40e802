from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EvaluationRequest(BaseModel):
    expression: str = Field(..., description="Raw expression as read from the input")
    line_number: int = Field(..., ge=1, description="Line number in the input file")

    @field_validator("expression")
    def expression_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the expression is not empty."""
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v


class EvaluationResult(BaseModel):
    expression: str
    line_number: int = Field(..., ge=1)
    result: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_line(self) -> str:
        """Format as ``expr = result`` or ``expr -> ERROR: message``."""
        if self.ok:
            return f"{self.expression} = {self.result}"
        return f"{self.expression} -> ERROR: {self.error}"
