"""
Arithmetic expression interpreter.

This package evaluates expressions such as ``3+4*ABS(-2)`` through an
explicit, inspectable expression tree with pluggable operations and a
configurable policy for missing operands.
"""

from .calculator import Calculator, calculate
from .config import CalculatorConfig, config_from_env, enable_logging, load_config
from .errors import (
    EvaluationError,
    ExpressionError,
    LexError,
    LimitExceededError,
    NullValueError,
    OperationError,
    SyntaxError,
    TypeError,
    UnresolvedVariableError,
)

# Evaluator
from .evaluator import (
    EvaluationContext,
    Evaluator,
    NullHandling,
    evaluate,
    resolve_null_policy,
)
from .limits import DEFAULT_EXPRESSION_LIMITS, MAX_NESTING_DEPTH_CEILING, ExpressionLimits
from .models import CalculationRequest, CalculationResult
from .normalize import normalize_expression, swap_periods_and_commas

# Operations
from .operations import (
    DEFAULT_REGISTRY,
    NEGATION,
    Operation,
    OperationRegistry,
    create_registry,
)

# Parser
from .parser import Parser, parse, parse_expression

# Tokenizer
from .tokenizer import Token, Tokenizer, TokenType, tokenize, tokens_to_string

# Tree types and utilities
from .tree import (
    ExpressionTree,
    Node,
    NumberValue,
    TreeBuilder,
    Value,
    VariableValue,
    tree_to_string,
)

__all__ = [
    # Facade
    "Calculator",
    "calculate",
    "CalculationRequest",
    "CalculationResult",
    # Configuration
    "CalculatorConfig",
    "config_from_env",
    "load_config",
    "enable_logging",
    # Errors
    "ExpressionError",
    "LexError",
    "SyntaxError",
    "LimitExceededError",
    "EvaluationError",
    "UnresolvedVariableError",
    "NullValueError",
    "OperationError",
    "TypeError",
    # Limits
    "ExpressionLimits",
    "MAX_NESTING_DEPTH_CEILING",
    "DEFAULT_EXPRESSION_LIMITS",
    # Normalization
    "normalize_expression",
    "swap_periods_and_commas",
    # Operations
    "Operation",
    "OperationRegistry",
    "DEFAULT_REGISTRY",
    "NEGATION",
    "create_registry",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    "tokens_to_string",
    # Tree
    "ExpressionTree",
    "Node",
    "NumberValue",
    "VariableValue",
    "Value",
    "TreeBuilder",
    "tree_to_string",
    # Parser
    "Parser",
    "parse",
    "parse_expression",
    # Evaluator
    "NullHandling",
    "EvaluationContext",
    "Evaluator",
    "evaluate",
    "resolve_null_policy",
]
