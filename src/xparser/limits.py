"""
Resource limits for tokenizing, parsing and evaluating expressions.

Deep nesting is bounded here rather than by the interpreter's call stack.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError

# Upper bound for max_nesting_depth. A nesting level costs the parser up to
# five stack frames, so this keeps parsing far below the default recursion
# limit of 1000 whatever the configuration says.
MAX_NESTING_DEPTH_CEILING = 128


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum expression string length in characters
    max_expression_length: int = 4096

    # Maximum nesting of parentheses, function calls and negations
    max_nesting_depth: int = 64

    # Maximum number of tree nodes
    max_tree_nodes: int = 2048

    # Maximum function call arguments
    max_function_args: int = 32

    def __post_init__(self) -> None:
        if not 0 < self.max_nesting_depth <= MAX_NESTING_DEPTH_CEILING:
            raise ValueError(
                f"max_nesting_depth must be between 1 and {MAX_NESTING_DEPTH_CEILING}, "
                f"got {self.max_nesting_depth}"
            )


DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that expression length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "max_expression_length", limits.max_expression_length, len(expression)
        )


def check_nesting_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates nesting depth while parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_nesting_depth:
        raise LimitExceededError("max_nesting_depth", limits.max_nesting_depth, depth)


def check_tree_node_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates tree node count after parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_tree_nodes:
        raise LimitExceededError("max_tree_nodes", limits.max_tree_nodes, count)


def check_function_arg_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates function argument count."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_function_args:
        raise LimitExceededError("max_function_args", limits.max_function_args, count)
