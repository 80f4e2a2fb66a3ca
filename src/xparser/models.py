"""Pydantic models for calculation requests and results."""

from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt

from .evaluator import NullHandling


class CalculationRequest(BaseModel):
    """A single expression to evaluate, with its variables and null policy."""

    expression: str = Field(..., description="Arithmetic expression as typed by the user")
    # Strict so strings and booleans are rejected rather than coerced
    variables: Dict[str, Optional[Union[StrictFloat, StrictInt]]] = Field(
        default_factory=dict,
        description="Variable values by name; null marks a missing value",
    )
    null_policy: NullHandling = Field(
        NullHandling.NULL_AS_ZERO, description="How missing operands are treated"
    )
    international_format: bool = Field(
        False, description="Swap ',' and '.' before tokenizing"
    )


class CalculationResult(BaseModel):
    """Outcome of one calculation: a value or a typed failure, never both."""

    expression: str = Field(..., description="Original arithmetic expression")
    success: bool = Field(..., description="Whether evaluation succeeded")
    value: Optional[float] = Field(None, description="Evaluated numeric result")
    error: Optional[str] = Field(None, description="Error message if evaluation failed")
    error_type: Optional[str] = Field(
        None, description="Error class name, e.g. LexError or NullValueError"
    )
    error_context: Optional[str] = Field(
        None, description="Error message with a caret under the failing position"
    )
    position: Optional[int] = Field(
        None, description="Offset of the failure in the normalized expression"
    )
