"""
Expression tree evaluator.

Evaluates an ExpressionTree against a variable mapping, children before
parents, and returns a number.

Null handling semantics:
- A variable mapped to None is a missing operand; the consuming operation
  applies the null policy to it.
- A variable absent from the mapping is an error regardless of policy.
- Under DROP_NULL an operation whose operands were all dropped fails with
  NullValueError, as does a lone null variable; the result is always a
  number or a typed failure.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from .errors import NullValueError, OperationError, UnresolvedVariableError
from .errors import TypeError as ExprTypeError
from .operations import Operation
from .tree import ExpressionTree, Node, VariableValue

logger = logging.getLogger("xparser.evaluator")

# Values accepted in a variable mapping.
VariableMapping = Mapping[str, Optional[float]]


class NullHandling(str, Enum):
    """Policy for missing (null) operands, fixed for one evaluation."""

    DROP_NULL = "drop_null"
    NULL_AS_ZERO = "null_as_zero"
    THROW_ON_NULL = "throw_error"


def resolve_null_policy(value: Union[NullHandling, str, None]) -> NullHandling:
    """
    Coerces a policy name to NullHandling.

    Unknown names fall back to NULL_AS_ZERO with a warning.
    """
    if value is None:
        return NullHandling.NULL_AS_ZERO
    if isinstance(value, NullHandling):
        return value
    try:
        return NullHandling(value)
    except ValueError:
        logger.warning(
            "invalid_null_handling_mode",
            extra={"mode": value, "fallback": NullHandling.NULL_AS_ZERO.value},
        )
        return NullHandling.NULL_AS_ZERO


def get_type_name(value: Any) -> str:
    """Gets the type name of a value for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


@dataclass
class EvaluationContext:
    """Evaluation context with variable values and the null policy."""

    variables: VariableMapping
    """Variable values available to the expression."""

    null_policy: NullHandling = NullHandling.NULL_AS_ZERO
    """How missing operands are treated."""

    source: Optional[str] = None
    """Source expression for error reporting."""

    def __post_init__(self) -> None:
        self.null_policy = resolve_null_policy(self.null_policy)


class Evaluator:
    """Evaluates an expression tree and returns the result."""

    def __init__(self, context: EvaluationContext):
        self._context = context
        self._policy = context.null_policy
        self._source = context.source

    def evaluate(self, tree: ExpressionTree) -> float:
        """
        Evaluates the tree.

        Children sit at lower arena indices than their parents, so one pass
        in index order sees every operand before the operation consuming it.
        """
        if self._source is None:
            self._source = tree.source

        results: List[Optional[float]] = [None] * len(tree)
        for node in tree.nodes:
            results[node.index] = self._evaluate_node(node, results)

        root = tree.root_node
        value = results[root.index]
        if value is not None:
            return value

        # Only a lone null variable reaches the root unresolved
        if self._policy == NullHandling.NULL_AS_ZERO:
            return 0.0
        raise NullValueError(None, root.position, self._source)

    def _evaluate_node(
        self, node: Node, results: List[Optional[float]]
    ) -> Optional[float]:
        item = node.item

        if item.type == "Number":
            return item.value

        if item.type == "Variable":
            return self._resolve_variable(item, node)

        operands = [results[child] for child in node.children]
        values = self._apply_null_policy(operands, item, node)

        try:
            result = item.apply(values)
        except (ArithmeticError, ValueError) as error:
            raise OperationError(item.name, str(error), node.position, self._source) from error

        if isinstance(result, bool) or not isinstance(result, int | float):
            raise ExprTypeError("number", get_type_name(result), node.position, self._source)
        return float(result)

    def _resolve_variable(self, item: VariableValue, node: Node) -> Optional[float]:
        variables = self._context.variables
        if item.name not in variables:
            raise UnresolvedVariableError(item.name, node.position, self._source)

        value = variables[item.name]
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ExprTypeError("number", get_type_name(value), node.position, self._source)
        return float(value)

    def _apply_null_policy(
        self, operands: List[Optional[float]], operation: Operation, node: Node
    ) -> List[float]:
        values: List[float] = []
        for operand in operands:
            if operand is not None:
                values.append(operand)
            elif self._policy == NullHandling.NULL_AS_ZERO:
                values.append(0.0)
            elif self._policy == NullHandling.THROW_ON_NULL:
                raise NullValueError(operation.name, node.position, self._source)
            # DROP_NULL: omitted from the reduction

        if not values:
            # DROP_NULL left nothing to reduce
            raise NullValueError(operation.name, node.position, self._source)
        return values


def evaluate(
    tree: ExpressionTree,
    variables: Optional[VariableMapping] = None,
    null_policy: Union[NullHandling, str] = NullHandling.NULL_AS_ZERO,
) -> float:
    """
    Evaluates an expression tree.

    Args:
        tree: The tree produced by ``parse``
        variables: Variable values; None marks a missing value
        null_policy: How missing operands are treated

    Returns:
        The numeric result

    Raises:
        UnresolvedVariableError: If a variable is absent from ``variables``
        NullValueError: If an operand is missing under THROW_ON_NULL, or
            DROP_NULL leaves an operation without operands
        OperationError: If an operation fails, e.g. division by zero
    """
    context = EvaluationContext(
        variables=variables or {},
        null_policy=null_policy,
        source=tree.source,
    )
    return Evaluator(context).evaluate(tree)
