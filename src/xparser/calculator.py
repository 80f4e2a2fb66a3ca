"""
Calculator facade.

Runs one expression through normalization, tokenizing, parsing and
evaluation, and delivers a CalculationResult to an optional callback.
Interpreter errors become failed results; anything else propagates.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Mapping, Optional, Union

from .config import ENV_VAR_LOG_LEVEL, CalculatorConfig, config_from_env, enable_logging
from .errors import ExpressionError
from .evaluator import NullHandling, VariableMapping, evaluate, resolve_null_policy
from .models import CalculationRequest, CalculationResult
from .normalize import normalize_expression
from .operations import DEFAULT_REGISTRY, OperationRegistry
from .parser import parse_expression
from .tree import ExpressionTree

logger = logging.getLogger("xparser.calculator")

ResultCallback = Callable[[CalculationResult], None]


class Calculator:
    """
    Evaluates arithmetic expressions with a fixed registry and configuration.

    The registry is copied and the copy frozen, so operations registered on
    the original afterwards do not reach this calculator.
    """

    def __init__(
        self,
        config: Optional[CalculatorConfig] = None,
        registry: OperationRegistry = DEFAULT_REGISTRY,
    ):
        self._config = config or CalculatorConfig()
        self._limits = self._config.to_limits()
        # A private frozen copy; the caller keeps an extendable registry
        self._registry = registry.copy().freeze()

    @classmethod
    def from_env(
        cls,
        registry: OperationRegistry = DEFAULT_REGISTRY,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Calculator":
        env = os.environ if environ is None else environ
        if env.get(ENV_VAR_LOG_LEVEL):
            enable_logging(env[ENV_VAR_LOG_LEVEL])
        return cls(config_from_env(env), registry)

    @property
    def config(self) -> CalculatorConfig:
        return self._config

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    def compile(self, expression: str) -> ExpressionTree:
        """Tokenizes and parses an already normalized expression."""
        return parse_expression(expression, self._registry, self._limits)

    def calculate(
        self,
        expression: str,
        variables: Optional[VariableMapping] = None,
        callback: Optional[ResultCallback] = None,
        null_policy: Union[NullHandling, str, None] = None,
        international_format: Optional[bool] = None,
    ) -> CalculationResult:
        """
        Evaluates an expression.

        Args:
            expression: Expression as typed, e.g. "3+4*ABS(-2)"
            variables: Variable values; None marks a missing value
            callback: Receives the result once evaluation finishes
            null_policy: Overrides the configured null policy
            international_format: Overrides the configured separator swap

        Returns:
            The calculation result, also passed to ``callback``

        Raises:
            pydantic.ValidationError: If the variables are not numeric
        """
        request = CalculationRequest(
            expression=expression,
            variables=dict(variables or {}),
            null_policy=(
                self._config.null_policy
                if null_policy is None
                else resolve_null_policy(null_policy)
            ),
            international_format=(
                self._config.international_format
                if international_format is None
                else international_format
            ),
        )
        return self.calculate_request(request, callback)

    def calculate_request(
        self,
        request: CalculationRequest,
        callback: Optional[ResultCallback] = None,
    ) -> CalculationResult:
        """Evaluates a validated request."""
        normalized = normalize_expression(request.expression, request.international_format)
        logger.debug(
            "calculation_started",
            extra={"expression": normalized, "null_policy": request.null_policy.value},
        )

        try:
            tree = self.compile(normalized)
            value = evaluate(tree, request.variables, request.null_policy)
        except ExpressionError as error:
            logger.debug(
                "calculation_failed",
                extra={
                    "expression": normalized,
                    "error_type": type(error).__name__,
                    "error": error.message,
                },
            )
            result = CalculationResult(
                expression=request.expression,
                success=False,
                error=error.message,
                error_type=type(error).__name__,
                error_context=error.format_with_context(),
                position=error.position,
            )
        else:
            logger.debug(
                "calculation_finished", extra={"expression": normalized, "value": value}
            )
            result = CalculationResult(
                expression=request.expression, success=True, value=value
            )

        if callback is not None:
            callback(result)
        return result


_default_calculator: Optional[Calculator] = None


def calculate(
    expression: str,
    variables: Optional[VariableMapping] = None,
    callback: Optional[ResultCallback] = None,
    null_policy: Union[NullHandling, str, None] = None,
    international_format: Optional[bool] = None,
) -> CalculationResult:
    """Evaluates an expression with the default registry and configuration."""
    global _default_calculator
    if _default_calculator is None:
        _default_calculator = Calculator()
    return _default_calculator.calculate(
        expression, variables, callback, null_policy, international_format
    )
