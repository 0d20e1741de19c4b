"""Lexical analysis for the Lox language.

The scanner turns raw source text into a list of tokens terminated by an
``EOF`` token. The whole input is tokenized eagerly. Lexical errors are
recorded in ``Scanner.errors`` and scanning carries on with the rest of the
input, so a single pass reports every bad character in the file.
"""

from __future__ import annotations

from typing import Any, List

from .errors import Diagnostic
from .tokens import KEYWORDS, Token, TokenKind


SINGLE_CHAR_TOKENS = {
    '(': TokenKind.LEFT_PAREN,
    ')': TokenKind.RIGHT_PAREN,
    '{': TokenKind.LEFT_BRACE,
    '}': TokenKind.RIGHT_BRACE,
    ',': TokenKind.COMMA,
    '.': TokenKind.DOT,
    '+': TokenKind.PLUS,
    ';': TokenKind.SEMICOLON,
    '*': TokenKind.STAR,
    '?': TokenKind.QUESTION,
    ':': TokenKind.COLON,
}

# first char -> (second char, two-char kind, one-char kind)
TWO_CHAR_TOKENS = {
    '!': ('=', TokenKind.BANG_EQUAL, TokenKind.BANG),
    '=': ('=', TokenKind.EQUAL_EQUAL, TokenKind.EQUAL),
    '<': ('=', TokenKind.LESS_EQUAL, TokenKind.LESS),
    '>': ('=', TokenKind.GREATER_EQUAL, TokenKind.GREATER),
    '-': ('>', TokenKind.ARROW, TokenKind.MINUS),
}


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def is_alpha(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'


def is_alphanumeric(c: str) -> bool:
    return is_alpha(c) or is_digit(c)


class Scanner:
    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.errors: List[Diagnostic] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        # Restartable: every call tokenizes from the beginning.
        self.tokens = []
        self.errors = []
        self.start = 0
        self.current = 0
        self.line = 1
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TokenKind.EOF, '', None, self.line))
        return self.tokens

    def scan_token(self) -> None:
        c = self.advance()
        if c in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[c])
            return
        if c in TWO_CHAR_TOKENS:
            second, double_kind, single_kind = TWO_CHAR_TOKENS[c]
            self.add_token(double_kind if self.match(second) else single_kind)
            return
        if c == '/':
            if self.match('/'):
                while self.peek() != '\n' and not self.is_at_end():
                    self.advance()
            elif self.match('*'):
                self.block_comment()
            else:
                self.add_token(TokenKind.SLASH)
            return
        if c in (' ', '\r', '\t'):
            return
        if c == '\n':
            self.line += 1
            return
        if c == '"':
            self.string()
            return
        if is_digit(c):
            self.number()
            return
        if is_alpha(c):
            self.identifier()
            return
        self.error(self.line, f"Unexpected character '{c}'.")

    def block_comment(self) -> None:
        start_line = self.line
        while not (self.peek() == '*' and self.peek_next() == '/') and not self.is_at_end():
            if self.advance() == '\n':
                self.line += 1
        if self.is_at_end():
            self.error(start_line, "Unterminated block comment.")
            return
        # closing */
        self.advance()
        self.advance()

    def string(self) -> None:
        while self.peek() != '"' and not self.is_at_end():
            if self.peek() == '\n':
                self.line += 1
            self.advance()
        if self.is_at_end():
            self.error(self.line, "Unterminated string.")
            return
        self.advance()
        value = self.source[self.start + 1:self.current - 1]
        self.add_token(TokenKind.STRING, value)

    def number(self) -> None:
        while is_digit(self.peek()):
            self.advance()
        # A trailing '.' without digits belongs to the next token.
        if self.peek() == '.' and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        self.add_token(TokenKind.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self) -> None:
        while is_alphanumeric(self.peek()):
            self.advance()
        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenKind.IDENTIFIER))

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected: str) -> bool:
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def add_token(self, kind: TokenKind, literal: Any = None) -> None:
        text = self.source[self.start:self.current]
        self.tokens.append(Token(kind, text, literal, self.line))

    def error(self, line: int, message: str) -> None:
        self.errors.append(Diagnostic(line, message))


def tokenize(source: str) -> List[Token]:
    """Convenience wrapper returning only the tokens of ``source``."""
    return Scanner(source).scan_tokens()
