"""Abstract Syntax Tree (AST) definitions for the Lox language.

The AST is split into two node families: expressions (``Expr``) and
statements (``Stmt``). Nodes are immutable once built. They compare and
hash by identity, which is what the resolver relies on: two textually
identical ``Variable`` nodes at different places in a program resolve to
different scope distances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .tokens import Token


@dataclass(frozen=True, eq=False)
class Expr:
    """Base class for all expression nodes."""
    pass


@dataclass(frozen=True, eq=False)
class Stmt:
    """Base class for all statement nodes."""
    pass


# Expressions

@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token  # arithmetic, comparison, equality or the comma operator
    right: Expr


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Ternary(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class FunctionExpr(Expr):
    """A function literal. Named declarations and arrow literals share it."""
    params: List[Token]
    body: List[Stmt]


# Statements

@dataclass(frozen=True, eq=False)
class ExprStmt(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class PrintStmt(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class PrintLnStmt(Stmt):
    expression: Optional[Expr]


@dataclass(frozen=True, eq=False)
class VarDecl(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True, eq=False)
class IfStmt(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True, eq=False)
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class BreakStmt(Stmt):
    keyword: Token


@dataclass(frozen=True, eq=False)
class ReturnStmt(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True, eq=False)
class FuncDecl(Stmt):
    name: Token
    function: FunctionExpr


@dataclass(frozen=True, eq=False)
class ClassDecl(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[FuncDecl]
