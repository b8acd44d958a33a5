"""Parsing of the ``error_types`` option into an event-level bitmask."""
import enum
import re
from typing import Any, Iterable, List, Union

from .errors import InvalidConfigurationError


class ErrorType(enum.IntFlag):
    DEBUG = 1
    INFO = 2
    WARNING = 4
    ERROR = 8
    FATAL = 16
    ALL = DEBUG | INFO | WARNING | ERROR | FATAL


# Sentry event levels, including the aliases the SDK accepts.
LEVEL_FLAGS = {
    "debug": ErrorType.DEBUG,
    "info": ErrorType.INFO,
    "warning": ErrorType.WARNING,
    "warn": ErrorType.WARNING,
    "error": ErrorType.ERROR,
    "fatal": ErrorType.FATAL,
    "critical": ErrorType.FATAL,
}

TOKEN_PATTERN = re.compile(r"\s*(?:(\d+)|([A-Za-z_]+)|(.))")


def level_flag(level: str) -> ErrorType:
    """Flag for a Sentry event level; unknown levels count as errors."""
    return LEVEL_FLAGS.get(str(level).lower(), ErrorType.ERROR)


class ErrorTypesParser:
    """
    Turns an ``error_types`` configuration value into an int bitmask.

    Accepted forms:
        - an int, returned as is
        - a list of level names, OR'ed together
        - an expression such as ``"ALL & ~DEBUG"`` or ``"ERROR | FATAL"``,
          built from names, integers, ``|``, ``^``, ``&``, ``~`` and parentheses
    """

    def __init__(self, value: Union[int, str, Iterable[Any]]):
        self.value = value
        self._tokens: List[str] = []
        self._position = 0

    def parse(self) -> int:
        value = self.value
        if isinstance(value, bool):
            raise InvalidConfigurationError(f"Invalid error types value {value!r}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            return self._parse_expression(value)

        mask = 0
        for item in value:
            mask |= ErrorTypesParser(item).parse()
        return mask

    def _parse_expression(self, expression: str) -> int:
        self._tokens = self._tokenize(expression)
        self._position = 0
        if not self._tokens:
            raise InvalidConfigurationError("The error types expression is empty")

        result = self._or()
        if self._position != len(self._tokens):
            raise InvalidConfigurationError(
                f'Unexpected "{self._tokens[self._position]}" in error types expression "{expression}"'
            )
        return int(result & ErrorType.ALL)

    @staticmethod
    def _tokenize(expression: str) -> List[str]:
        tokens = []
        for number, name, symbol in TOKEN_PATTERN.findall(expression.strip()):
            if symbol and symbol not in "|^&~()":
                raise InvalidConfigurationError(
                    f'Invalid character "{symbol}" in error types expression "{expression}"'
                )
            tokens.append(number or name or symbol)
        return tokens

    def _peek(self) -> str:
        return self._tokens[self._position] if self._position < len(self._tokens) else ""

    def _take(self) -> str:
        token = self._peek()
        if not token:
            raise InvalidConfigurationError("Unexpected end of error types expression")
        self._position += 1
        return token

    # Precedence, loosest first: |, ^, &, unary ~.
    def _or(self) -> int:
        result = self._xor()
        while self._peek() == "|":
            self._take()
            result |= self._xor()
        return result

    def _xor(self) -> int:
        result = self._and()
        while self._peek() == "^":
            self._take()
            result ^= self._and()
        return result

    def _and(self) -> int:
        result = self._unary()
        while self._peek() == "&":
            self._take()
            result &= self._unary()
        return result

    def _unary(self) -> int:
        token = self._take()
        if token == "~":
            return ~self._unary()
        if token == "(":
            result = self._or()
            if self._take() != ")":
                raise InvalidConfigurationError("Unbalanced parentheses in error types expression")
            return result
        if token.isdigit():
            return int(token)
        try:
            return int(ErrorType[token.upper()])
        except KeyError:
            raise InvalidConfigurationError(f'Unknown error type "{token}"') from None
