"""Debug renderers for Lox expression trees.

``AstPrinter`` shows an expression in fully parenthesized prefix form and
``RpnPrinter`` in reverse Polish notation. Both are pure and handle every
expression node; they are used by ``python -m lox --print-ast`` and in
tests, never by the interpreter itself.
"""

from __future__ import annotations

from typing import Any

from .ast import (
    Expr, Literal, Grouping, Unary, Binary, Logical, Ternary,
    Variable, Assign, Call, Get, Set, This, Super, FunctionExpr,
)
from .tokens import TokenKind
from .types import stringify


def literal_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return stringify(value)


class AstPrinter:
    def print(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            return literal_text(expr.value)
        if isinstance(expr, Grouping):
            return self.parenthesize('group', expr.expression)
        if isinstance(expr, Unary):
            return self.parenthesize(expr.operator.lexeme, expr.right)
        if isinstance(expr, (Binary, Logical)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, Ternary):
            return self.parenthesize('?:', expr.condition, expr.then_branch, expr.else_branch)
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return f"(= {expr.name.lexeme} {self.print(expr.value)})"
        if isinstance(expr, Call):
            return self.parenthesize('call', expr.callee, *expr.arguments)
        if isinstance(expr, Get):
            return f"(. {self.print(expr.object)} {expr.name.lexeme})"
        if isinstance(expr, Set):
            return f"(= (. {self.print(expr.object)} {expr.name.lexeme}) {self.print(expr.value)})"
        if isinstance(expr, This):
            return 'this'
        if isinstance(expr, Super):
            return f"(super {expr.method.lexeme})"
        if isinstance(expr, FunctionExpr):
            params = ' '.join(param.lexeme for param in expr.params)
            return f"(fun ({params}))"
        raise NotImplementedError(f"print: unexpected expression type {type(expr)}")

    def parenthesize(self, name: str, *exprs: Expr) -> str:
        parts = [name] + [self.print(expr) for expr in exprs]
        return '(' + ' '.join(parts) + ')'


class RpnPrinter:
    def print(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            return literal_text(expr.value)
        if isinstance(expr, Grouping):
            return self.print(expr.expression)
        if isinstance(expr, Unary):
            operator = expr.operator.lexeme
            if expr.operator.kind == TokenKind.MINUS:
                # binary minus already owns '-'
                operator = '~'
            return f"{self.print(expr.right)} {operator}"
        if isinstance(expr, (Binary, Logical)):
            return f"{self.print(expr.left)} {self.print(expr.right)} {expr.operator.lexeme}"
        if isinstance(expr, Ternary):
            return f"{self.print(expr.condition)} {self.print(expr.then_branch)} {self.print(expr.else_branch)} ?:"
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return f"{self.print(expr.value)} {expr.name.lexeme} ="
        if isinstance(expr, Call):
            parts = [self.print(expr.callee)] + [self.print(arg) for arg in expr.arguments]
            parts.append(f"call/{len(expr.arguments)}")
            return ' '.join(parts)
        if isinstance(expr, Get):
            return f"{self.print(expr.object)} {expr.name.lexeme} ."
        if isinstance(expr, Set):
            return f"{self.print(expr.object)} {self.print(expr.value)} {expr.name.lexeme} .="
        if isinstance(expr, This):
            return 'this'
        if isinstance(expr, Super):
            return f"super {expr.method.lexeme} ."
        if isinstance(expr, FunctionExpr):
            return ' '.join([param.lexeme for param in expr.params] + [f"fun/{len(expr.params)}"])
        raise NotImplementedError(f"print: unexpected expression type {type(expr)}")
