"""
Parser for arithmetic expressions.

Parses a stream of tokens into an ExpressionTree using precedence climbing.
Infix precedence comes from the operation registry, so a newly registered
operator parses without changes here.

Precedence (lowest to highest) for the built-in operators:
1. Additive: +, -
2. Multiplicative: *, /, %
3. Unary: -
4. Primary: numbers, variables, function calls, parentheses

Operators of equal precedence associate left to right.
"""

from typing import List, Optional

from .errors import SyntaxError as ExprSyntaxError
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_function_arg_count,
    check_nesting_depth,
    check_tree_node_count,
)
from .operations import DEFAULT_REGISTRY, NEGATION, Operation, OperationRegistry
from .tokenizer import Token, TokenType, tokenize
from .tree import ExpressionTree, NumberValue, TreeBuilder, VariableValue


class Parser:
    """Parser for token streams."""

    def __init__(
        self,
        tokens: List[Token],
        registry: OperationRegistry = DEFAULT_REGISTRY,
        source: Optional[str] = None,
        limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
    ):
        if not tokens or tokens[-1].type != TokenType.EOF:
            end = tokens[-1].position + len(tokens[-1].value) if tokens else 0
            tokens = list(tokens) + [Token(TokenType.EOF, "", end)]
        self._tokens = tokens
        self._registry = registry
        self._source = source
        self._limits = limits
        self._current = 0
        self._nesting = 0
        self._builder = TreeBuilder()

    def parse(self) -> ExpressionTree:
        """Parses the token stream into an expression tree."""
        if self._is_at_end():
            raise self._error("Empty expression")

        root = self._parse_expression()

        if not self._is_at_end():
            token = self._peek()
            if token.type == TokenType.RPAREN:
                raise self._error("Unbalanced parentheses: unexpected ')'")
            raise self._error(f"Unexpected token: {token.value}")

        tree = self._builder.build(root, self._source)

        check_tree_node_count(len(tree), self._limits)

        return tree

    # ============================================================
    # Token Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self._tokens[self._current]

    def _previous(self) -> Token:
        return self._tokens[self._current - 1]

    def _advance(self) -> Token:
        if not self._is_at_end():
            self._current += 1
        return self._previous()

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == token_type

    def _match(self, token_type: TokenType) -> bool:
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _error(self, message: str) -> ExprSyntaxError:
        token = self._peek()
        return ExprSyntaxError(message, token.position, self._source, self._current)

    def _enter(self) -> None:
        self._nesting += 1
        check_nesting_depth(self._nesting, self._limits)

    def _leave(self) -> None:
        self._nesting -= 1

    def _peek_infix(self) -> Optional[Operation]:
        token = self._peek()
        if token.type != TokenType.OPERATOR:
            return None
        operation = self._registry.get(token.value)
        if operation is None or operation.is_function:
            return None
        return operation

    # ============================================================
    # Expression Parsing
    # ============================================================

    def _parse_expression(self) -> int:
        return self._parse_binary(1)

    def _parse_binary(self, min_precedence: int) -> int:
        """Parses infix operators binding at least as tightly as ``min_precedence``."""
        node = self._parse_unary()

        while True:
            operation = self._peek_infix()
            if operation is None or operation.precedence < min_precedence:
                break
            token = self._advance()
            # Higher floor for the right operand keeps equal precedence left-associative
            right = self._parse_binary(operation.precedence + 1)
            node = self._builder.add_operation(operation, (node, right), token.position)

        return node

    def _parse_unary(self) -> int:
        """Parses negation: a '-' where an operand is expected."""
        token = self._peek()
        if token.type == TokenType.OPERATOR and token.value == NEGATION.name:
            self._advance()
            self._enter()
            operand = self._parse_unary()
            self._leave()
            return self._builder.add_operation(NEGATION, (operand,), token.position)

        return self._parse_primary()

    def _parse_primary(self) -> int:
        """Parses numbers, variables, function calls and parentheses."""
        token = self._peek()
        position = token.position

        if self._match(TokenType.NUMBER):
            return self._builder.add_value(NumberValue(float(token.value)), position)

        if self._match(TokenType.IDENTIFIER):
            return self._builder.add_value(VariableValue(token.value), position)

        if self._check(TokenType.FUNCTION):
            return self._parse_function_call()

        if self._match(TokenType.LPAREN):
            self._enter()
            node = self._parse_expression()
            self._consume(TokenType.RPAREN, "Unbalanced parentheses: expected ')'")
            self._leave()
            return node

        if token.type == TokenType.EOF:
            raise self._error("Expected operand at end of expression")
        if token.type == TokenType.OPERATOR:
            raise self._error(f"Missing operand before '{token.value}'")
        if token.type == TokenType.RPAREN:
            raise self._error("Expected operand before ')'")
        raise self._error(f"Unexpected token: {token.value}")

    def _parse_function_call(self) -> int:
        """Parses NAME(arg, arg, ...)."""
        name_index = self._current
        operation = self._registry.get(self._peek().value)
        if operation is None or not operation.is_function:
            raise self._error(f"Unknown function: {self._peek().value}")
        name_token = self._advance()

        self._consume(
            TokenType.LPAREN, f"Function '{name_token.value}' must be followed by '('"
        )
        self._enter()

        args: List[int] = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                args.append(self._parse_expression())

        self._consume(TokenType.RPAREN, "Expected ')' after function arguments")
        self._leave()

        check_function_arg_count(len(args), self._limits)
        if not operation.accepts(len(args)):
            raise ExprSyntaxError(
                f"Function '{operation.name}' expects {operation.describe_arity()} "
                f"argument(s), got {len(args)}",
                name_token.position,
                self._source,
                name_index,
            )

        return self._builder.add_operation(operation, tuple(args), name_token.position)


def parse(
    tokens: List[Token],
    registry: OperationRegistry = DEFAULT_REGISTRY,
    source: Optional[str] = None,
    limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
) -> ExpressionTree:
    """
    Parses a token sequence into an expression tree.

    Args:
        tokens: Tokens produced by ``tokenize``
        registry: The registry the tokens were produced with
        source: Source expression, for error context
        limits: Optional expression limits

    Returns:
        The parsed, immutable tree

    Raises:
        SyntaxError: If the token sequence is malformed
        LimitExceededError: If nesting or size limits are exceeded
    """
    parser = Parser(tokens, registry, source, limits)
    return parser.parse()


def parse_expression(
    source: str,
    registry: OperationRegistry = DEFAULT_REGISTRY,
    limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
) -> ExpressionTree:
    """
    Tokenizes and parses an expression string.

    Raises:
        LexError: If tokenization fails
        SyntaxError: If parsing fails
    """
    tokens = tokenize(source, registry, limits)
    return parse(tokens, registry, source, limits)
