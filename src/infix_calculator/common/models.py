"""Pydantic models for parsed expressions and evaluation results."""
from pydantic import BaseModel, ConfigDict, Field


class Expression(BaseModel):
    """A single parsed ``left operator right`` line."""

    model_config = ConfigDict(frozen=True)

    left: float = Field(..., description="Left operand")
    operator: str = Field(..., description="Operator token, resolved later through the registry")
    right: float = Field(..., description="Right operand")


class EvaluationResult(BaseModel):
    """Represents the result of an evaluated arithmetic expression."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Original arithmetic expression")
    result: float = Field(..., description="Evaluated numeric result of the expression")

    @property
    def formatted(self) -> str:
        """Result with exactly three decimal places."""
        return f"{self.result:.3f}"
