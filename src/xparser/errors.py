"""
Error types for the arithmetic interpreter.

All interpreter errors extend ExpressionError for consistent handling.
None of them are retried: each one aborts the current evaluation.
"""

from typing import Optional


class ExpressionError(Exception):
    """
    Base error class for all expression-related errors.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with position context.
        """
        if self.expression is None or self.position is None:
            return self.message

        pointer = " " * self.position + "^"
        return f"{self.message}\n  {self.expression}\n  {pointer}"


class LexError(ExpressionError):
    """
    Error thrown when the tokenizer meets an unrecognized character
    or a malformed number.
    """

    pass


class SyntaxError(ExpressionError):
    """
    Error thrown for a malformed token sequence.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
        token_index: Optional[int] = None,
    ):
        super().__init__(message, position, expression)
        self.token_index = token_index


class LimitExceededError(ExpressionError):
    """
    Error thrown when expression limits are exceeded.
    """

    def __init__(self, limit_name: str, limit: int, actual: int):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class EvaluationError(ExpressionError):
    """
    Error thrown during evaluation (runtime error).
    """

    pass


class UnresolvedVariableError(EvaluationError):
    """
    Error thrown when a variable has no entry in the supplied mapping.
    """

    def __init__(
        self,
        name: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"Unresolved variable: {name}", position, expression)
        self.name = name


class NullValueError(EvaluationError):
    """
    Error thrown for a missing operand under the throw-on-null policy.
    """

    def __init__(
        self,
        operation: Optional[str],
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        if operation is None:
            message = "Value was null"
        else:
            message = f"Value was null: operand of '{operation}'"
        super().__init__(message, position, expression)
        self.operation = operation


class OperationError(EvaluationError):
    """
    Error thrown when an operation's reducer fails (e.g. division by zero).
    """

    def __init__(
        self,
        operation: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"{operation}: {message}", position, expression)
        self.operation = operation


class TypeError(EvaluationError):
    """
    Error thrown when a variable resolves to a non-numeric value.
    """

    def __init__(
        self,
        expected: str,
        actual: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        message = f"Type error: expected {expected}, got {actual}"
        super().__init__(message, position, expression)
        self.expected = expected
        self.actual = actual
