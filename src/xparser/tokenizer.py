"""
Tokenizer (lexer) for arithmetic expressions.

Converts expression strings into a stream of tokens for the parser.

The scan is a single left-to-right pass with one character of lookbehind.
Digits and letters accumulate into runs; a run is flushed before the
character that breaks it is appended, never after. Operator symbols come
from the operation registry, so custom operators and functions need no
changes here.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .errors import LexError
from .limits import ExpressionLimits, check_expression_length
from .operations import DEFAULT_REGISTRY, OperationRegistry


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    NUMBER = "NUMBER"
    IDENTIFIER = "IDENTIFIER"
    OPERATOR = "OPERATOR"
    FUNCTION = "FUNCTION"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"

    # Function argument separator
    COMMA = "COMMA"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int


_NUMBER_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_whitespace(ch: str) -> bool:
    return ch in (" ", "\t", "\n", "\r")


class Tokenizer:
    """Tokenizer for expression strings."""

    def __init__(
        self,
        source: str,
        registry: OperationRegistry = DEFAULT_REGISTRY,
        limits: Optional[ExpressionLimits] = None,
    ):
        self._source = source
        self._registry = registry
        self._limits = limits
        self._tokens: List[Token] = []
        self._run = ""
        self._run_start = 0
        # One entry per open parenthesis: True when it opens an argument list
        self._paren_stack: List[bool] = []

    def tokenize(self) -> List[Token]:
        """Tokenizes the source expression and returns all tokens."""
        check_expression_length(self._source, self._limits)

        previous_char = ""
        for position, ch in enumerate(self._source):
            if _is_digit(ch):
                if self._run and not (_is_digit(previous_char) or previous_char == "."):
                    self._flush()
                self._append(ch, position)
            elif _is_letter(ch):
                if self._run and not _is_letter(previous_char):
                    self._flush()
                self._append(ch, position)
            elif ch == ".":
                self._append(ch, position)
            elif ch == ",":
                if not self._in_argument_list():
                    # Thousands separator: deleted, as if it were never there
                    continue
                self._flush()
                self._add_token(TokenType.COMMA, ch, position)
            elif ch == "(":
                self._flush()
                opens_arguments = bool(self._tokens) and self._tokens[-1].type == TokenType.FUNCTION
                self._paren_stack.append(opens_arguments)
                self._add_token(TokenType.LPAREN, ch, position)
            elif ch == ")":
                self._flush()
                if self._paren_stack:
                    self._paren_stack.pop()
                self._add_token(TokenType.RPAREN, ch, position)
            elif self._registry.is_operator_symbol(ch):
                self._flush()
                self._add_token(TokenType.OPERATOR, ch, position)
            elif _is_whitespace(ch):
                self._flush()
            else:
                raise LexError(
                    f"Unexpected character: '{ch}'", position, self._source
                )
            previous_char = ch

        self._flush()
        self._tokens.append(Token(TokenType.EOF, "", len(self._source)))
        return self._tokens

    def _in_argument_list(self) -> bool:
        return bool(self._paren_stack) and self._paren_stack[-1]

    def _append(self, ch: str, position: int) -> None:
        if not self._run:
            self._run_start = position
        self._run += ch

    def _add_token(self, token_type: TokenType, value: str, position: int) -> None:
        self._tokens.append(Token(token_type, value, position))

    def _flush(self) -> None:
        """Emits the accumulated run, if any, as a single token."""
        if not self._run:
            return

        run, start = self._run, self._run_start
        self._run = ""

        if all(_is_letter(ch) for ch in run):
            if self._registry.is_function_name(run):
                self._add_token(TokenType.FUNCTION, run, start)
            else:
                self._add_token(TokenType.IDENTIFIER, run, start)
            return

        if _NUMBER_PATTERN.fullmatch(run):
            self._add_token(TokenType.NUMBER, run, start)
            return

        raise LexError(f"Malformed number: '{run}'", start, self._source)


def tokenize(
    source: str,
    registry: OperationRegistry = DEFAULT_REGISTRY,
    limits: Optional[ExpressionLimits] = None,
) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize
        registry: Operations whose symbols and function names are recognized
        limits: Optional expression limits

    Returns:
        List of tokens, terminated by an EOF token

    Raises:
        LexError: If the expression contains an unrecognized character
    """
    tokenizer = Tokenizer(source, registry, limits)
    return tokenizer.tokenize()


def tokens_to_string(tokens: Iterable[Token]) -> str:
    """
    Serializes tokens back to back.

    Whitespace and thousands separators are gone; a space is kept only
    where two runs would otherwise merge into one.
    """
    parts: List[str] = []
    previous: Optional[Token] = None
    for token in tokens:
        if token.type == TokenType.EOF:
            break
        if previous is not None and _runs_would_merge(previous, token):
            parts.append(" ")
        parts.append(token.value)
        previous = token
    return "".join(parts)


_RUN_TYPES = (TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.FUNCTION)


def _runs_would_merge(left: Token, right: Token) -> bool:
    if left.type not in _RUN_TYPES or right.type not in _RUN_TYPES:
        return False
    left_is_number = left.type == TokenType.NUMBER
    right_is_number = right.type == TokenType.NUMBER
    if left_is_number == right_is_number:
        return True
    # "A" followed by ".5" reads back as the single run "A.5"
    return right_is_number and right.value.startswith(".")
