from dataclasses import dataclass
from typing import Optional

from lox.tokens import Token, TokenKind


@dataclass(frozen=True)
class Diagnostic:
    """A static error or warning reported by the scanner, parser or resolver."""
    line: int
    message: str
    where: str = ''
    severity: str = 'error'

    @classmethod
    def at_token(cls, token: Token, message: str, severity: str = 'error') -> 'Diagnostic':
        if token.kind == TokenKind.EOF:
            where = ' at end'
        else:
            where = f" at '{token.lexeme}'"
        return cls(token.line, message, where, severity)

    @property
    def is_error(self) -> bool:
        return self.severity == 'error'

    def __str__(self) -> str:
        label = 'Error' if self.is_error else 'Warning'
        return f"[line {self.line}] {label}{self.where}: {self.message}"


class LoxError(Exception):
    """Base class for errors raised by the Lox toolchain."""


class ParseError(LoxError):
    """Internal exception used by the parser to unwind to a statement boundary."""


class LoxRuntimeError(LoxError):
    """Exception type used to propagate Lox runtime errors."""
    def __init__(self, token: Optional[Token], message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    @property
    def line(self) -> Optional[int]:
        return self.token.line if self.token is not None else None

    def __str__(self) -> str:
        if self.token is None:
            return self.message
        return f"{self.message}\n[line {self.token.line}]"
