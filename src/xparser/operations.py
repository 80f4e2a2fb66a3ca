"""
Operations and the operation registry.

An operation maps a symbol (``+``) or a function name (``ABS``) to a pure
reducer over an ordered sequence of numbers. The registry is built once,
frozen, and then shared read-only by the tokenizer, parser and evaluator.

Infix operators are binary in the expression tree, but their reducers fold
any number of operands left to right, so they still produce a value when
the null policy drops one of the two operands.
"""

import logging
import math
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Dict, Iterator, Optional, Sequence

logger = logging.getLogger("xparser.operations")

# Signature of an operation reducer.
Reducer = Callable[[Sequence[float]], float]

# Characters the tokenizer reserves for itself.
RESERVED_SYMBOLS = frozenset("().,")

ADDITIVE_PRECEDENCE = 1
MULTIPLICATIVE_PRECEDENCE = 2


@dataclass(frozen=True)
class Operation:
    """A named operation with its reducer and arity contract."""

    name: str
    is_function: bool
    reducer: Reducer
    precedence: int = 0
    """Binding strength of an infix operator (higher binds tighter)."""

    min_args: int = 1
    max_args: Optional[int] = None
    """Upper bound on operands, None for unbounded."""

    @property
    def type(self) -> str:
        return "Operation"

    @property
    def is_unary(self) -> bool:
        return not self.is_function and self.max_args == 1

    def accepts(self, count: int) -> bool:
        """Checks whether a node with ``count`` children satisfies the arity."""
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def describe_arity(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.max_args == self.min_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"

    def apply(self, values: Sequence[float]) -> float:
        return self.reducer(values)


# ============================================================
# Built-in reducers
# ============================================================


def _sum(values: Sequence[float]) -> float:
    return reduce(lambda total, value: total + value, values)


def _subtract(values: Sequence[float]) -> float:
    return reduce(lambda total, value: total - value, values)


def _multiply(values: Sequence[float]) -> float:
    return reduce(lambda product, factor: product * factor, values)


def _divide(values: Sequence[float]) -> float:
    def step(quotient: float, divisor: float) -> float:
        if divisor == 0:
            raise ZeroDivisionError("Division by zero")
        return quotient / divisor

    return reduce(step, values)


def _remainder(values: Sequence[float]) -> float:
    # Truncated remainder: the result takes the sign of the dividend
    def step(remainder: float, divisor: float) -> float:
        if divisor == 0:
            raise ZeroDivisionError("Modulo by zero")
        return math.fmod(remainder, divisor)

    return reduce(step, values)


def _negate(values: Sequence[float]) -> float:
    return -values[0]


def _abs(values: Sequence[float]) -> float:
    return abs(values[0])


def _min(values: Sequence[float]) -> float:
    return min(values)


def _max(values: Sequence[float]) -> float:
    return max(values)


def _average(values: Sequence[float]) -> float:
    return _sum(values) / len(values)


# Unary minus. Produced by the parser's negation rule, never registered
# and never matched by name.
NEGATION = Operation(
    name="-",
    is_function=False,
    reducer=_negate,
    min_args=1,
    max_args=1,
)


# ============================================================
# Registry
# ============================================================


def _validate(
    name: str,
    is_function: bool,
    reducer: Reducer,
    precedence: int,
    min_args: int,
    max_args: Optional[int],
) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError("Operation name must be a non-empty string")
    if not callable(reducer):
        raise TypeError(f"Reducer for operation '{name}' is not callable")

    if is_function:
        if not (name.isascii() and name.isalpha()):
            raise ValueError(f"Function name must be alphabetic: '{name}'")
        if min_args < 1:
            raise ValueError(f"Function '{name}' must accept at least one argument")
        if max_args is not None and max_args < min_args:
            raise ValueError(
                f"Function '{name}' has max_args {max_args} below min_args {min_args}"
            )
        return

    if len(name) != 1 or name.isalnum() or name.isspace() or name in RESERVED_SYMBOLS:
        raise ValueError(f"Operator must be a single symbol character: '{name}'")
    if precedence < 1:
        raise ValueError(f"Operator '{name}' needs a precedence of at least 1")


class OperationRegistry:
    """Lookup table of operations keyed by exact, case-sensitive name."""

    def __init__(self) -> None:
        self._operations: Dict[str, Operation] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        is_function: bool,
        reducer: Reducer,
        precedence: int = 0,
        min_args: int = 1,
        max_args: Optional[int] = None,
    ) -> Operation:
        """
        Inserts or overwrites an operation.

        Infix operators always take exactly two operands in the tree, so
        ``min_args``/``max_args`` only apply to functions.

        Raises:
            RuntimeError: If the registry has been frozen
            ValueError: If the name, arity or precedence is malformed
            TypeError: If the reducer is not callable
        """
        if self._frozen:
            raise RuntimeError("Operation registry is frozen")

        _validate(name, is_function, reducer, precedence, min_args, max_args)

        if is_function:
            operation = Operation(name, True, reducer, 0, min_args, max_args)
        else:
            operation = Operation(name, False, reducer, precedence, 2, 2)

        if name in self._operations:
            logger.debug("operation_overwritten", extra={"operation": name})
        self._operations[name] = operation
        logger.debug(
            "operation_registered",
            extra={"operation": name, "is_function": is_function},
        )
        return operation

    def freeze(self) -> "OperationRegistry":
        """Makes the registry read-only and returns it."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[Operation]:
        return self._operations.get(name)

    def is_operator_symbol(self, char: str) -> bool:
        """Returns True iff ``char`` names a registered non-function operation."""
        operation = self._operations.get(char)
        return operation is not None and not operation.is_function

    def is_function_name(self, name: str) -> bool:
        operation = self._operations.get(name)
        return operation is not None and operation.is_function

    def copy(self) -> "OperationRegistry":
        """Returns an unfrozen copy that can be extended."""
        registry = OperationRegistry()
        registry._operations = dict(self._operations)
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)


def create_registry(include_functions: bool = True) -> OperationRegistry:
    """
    Creates an unfrozen registry holding the built-in operations.

    Args:
        include_functions: Also register ABS, MIN, MAX, SUM and AVG

    Returns:
        A registry ready for further ``register`` calls
    """
    registry = OperationRegistry()
    registry.register("+", False, _sum, precedence=ADDITIVE_PRECEDENCE)
    registry.register("-", False, _subtract, precedence=ADDITIVE_PRECEDENCE)
    registry.register("*", False, _multiply, precedence=MULTIPLICATIVE_PRECEDENCE)
    registry.register("/", False, _divide, precedence=MULTIPLICATIVE_PRECEDENCE)
    registry.register("%", False, _remainder, precedence=MULTIPLICATIVE_PRECEDENCE)

    if include_functions:
        registry.register("ABS", True, _abs, min_args=1, max_args=1)
        registry.register("MIN", True, _min)
        registry.register("MAX", True, _max)
        registry.register("SUM", True, _sum)
        registry.register("AVG", True, _average)

    return registry


DEFAULT_REGISTRY = create_registry().freeze()
