"""Static scope resolution for Lox programs.

The resolver walks the AST once before interpretation. For every variable
reference, assignment, ``this`` and ``super`` it records how many scopes
out from the use the binding lives. References that match no local scope
get no entry and are looked up in the global scope at run time.

The same pass rejects statically invalid programs (``this``/``super``
outside a class, ``break`` outside a loop, a class inheriting from itself,
a variable read in its own initializer) and warns about locals that are
never used. Errors do not stop the pass; the caller decides whether the
program may run.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, Iterable, List, Optional

from .ast import (
    Expr, Stmt, Literal, Grouping, Unary, Binary, Logical, Ternary,
    Variable, Assign, Call, Get, Set, This, Super, FunctionExpr,
    ExprStmt, PrintStmt, PrintLnStmt, VarDecl, Block, IfStmt, WhileStmt,
    BreakStmt, ReturnStmt, FuncDecl, ClassDecl,
)
from .errors import Diagnostic
from .tokens import Token


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    def __init__(self, known_globals: Iterable[str] = ()):
        # name -> defined? for each open local scope, innermost last
        self.scopes: List[Dict[str, bool]] = []
        # locals declared in each scope and not yet read or assigned
        self.unused: List[Dict[str, Token]] = []
        self.globals: Dict[str, bool] = {name: True for name in known_globals}
        self.locals: Dict[Expr, int] = {}
        self.errors: List[Diagnostic] = []
        self.warnings: List[Diagnostic] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.loop_depth = 0
        # index of the first scope owned by the function being resolved
        self.function_base = 0

    def resolve(self, statements: List[Stmt]) -> Dict[Expr, int]:
        for stmt in statements:
            self.resolve_stmt(stmt)
        return self.locals

    def error(self, token: Token, message: str) -> None:
        self.errors.append(Diagnostic.at_token(token, message))

    # Scopes

    def begin_scope(self) -> None:
        self.scopes.append({})
        self.unused.append({})

    def end_scope(self) -> None:
        self.scopes.pop()
        for name, token in self.unused.pop().items():
            self.warnings.append(Diagnostic.at_token(
                token, f"Local variable '{name}' is never used.", severity='warning'))

    def declare(self, name: Token, track_usage: bool = True) -> None:
        # A redeclaration keeps the earlier binding readable from the initializer.
        if not self.scopes:
            self.globals.setdefault(name.lexeme, False)
            return
        self.scopes[-1].setdefault(name.lexeme, False)
        if track_usage:
            self.unused[-1][name.lexeme] = name

    def define(self, name: Token) -> None:
        if not self.scopes:
            self.globals[name.lexeme] = True
            return
        self.scopes[-1][name.lexeme] = True

    def bind(self, expr: Expr, index: int, name: str) -> None:
        self.locals[expr] = len(self.scopes) - 1 - index
        self.unused[index].pop(name, None)

    def resolve_local(self, expr: Expr, name: Token) -> None:
        for i in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[i]:
                self.bind(expr, i, name.lexeme)
                return
        # not found: global

    def resolve_variable(self, expr: Variable) -> None:
        name = expr.name.lexeme
        pending = False
        for i in range(len(self.scopes) - 1, -1, -1):
            scope = self.scopes[i]
            if name not in scope:
                continue
            if not scope[name] and i >= self.function_base:
                # Read inside its own initializer: look past the pending binding.
                pending = True
                continue
            self.bind(expr, i, name)
            return
        if self.current_function == FunctionType.NONE and self.globals.get(name) is False:
            pending = True
        if pending and not self.globals.get(name, False):
            self.error(expr.name, "Can't read local variable in its own initializer.")

    def resolve_function(self, function: FunctionExpr, kind: FunctionType) -> None:
        enclosing_function = self.current_function
        enclosing_base = self.function_base
        enclosing_loop_depth = self.loop_depth
        self.current_function = kind
        self.function_base = len(self.scopes)
        self.loop_depth = 0

        self.begin_scope()
        for param in function.params:
            self.declare(param, track_usage=False)
            self.define(param)
        for stmt in function.body:
            self.resolve_stmt(stmt)
        self.end_scope()

        self.current_function = enclosing_function
        self.function_base = enclosing_base
        self.loop_depth = enclosing_loop_depth

    # Statements

    def resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Block):
            self.begin_scope()
            for inner in stmt.statements:
                self.resolve_stmt(inner)
            self.end_scope()
            return
        if isinstance(stmt, VarDecl):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
            return
        if isinstance(stmt, FuncDecl):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt.function, FunctionType.FUNCTION)
            return
        if isinstance(stmt, ClassDecl):
            self.resolve_class(stmt)
            return
        if isinstance(stmt, ExprStmt):
            self.resolve_expr(stmt.expression)
            return
        if isinstance(stmt, PrintStmt):
            self.resolve_expr(stmt.expression)
            return
        if isinstance(stmt, PrintLnStmt):
            if stmt.expression is not None:
                self.resolve_expr(stmt.expression)
            return
        if isinstance(stmt, IfStmt):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
            return
        if isinstance(stmt, WhileStmt):
            self.resolve_expr(stmt.condition)
            self.loop_depth += 1
            self.resolve_stmt(stmt.body)
            self.loop_depth -= 1
            return
        if isinstance(stmt, BreakStmt):
            if self.loop_depth == 0:
                self.error(stmt.keyword, "Can't use 'break' outside of a loop.")
            return
        if isinstance(stmt, ReturnStmt):
            if self.current_function == FunctionType.NONE:
                self.error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                self.resolve_expr(stmt.value)
            return
        raise NotImplementedError(f"resolve: unexpected statement type {type(stmt)}")

    def resolve_class(self, stmt: ClassDecl) -> None:
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(stmt.superclass)
            self.begin_scope()
            self.scopes[-1]['super'] = True

        self.begin_scope()
        self.scopes[-1]['this'] = True
        for method in stmt.methods:
            self.resolve_function(method.function, FunctionType.FUNCTION)
        self.end_scope()

        if stmt.superclass is not None:
            self.end_scope()
        self.current_class = enclosing_class

    # Expressions

    def resolve_expr(self, expr: Optional[Expr]) -> None:
        if isinstance(expr, Variable):
            self.resolve_variable(expr)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, Unary):
            self.resolve_expr(expr.right)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
        elif isinstance(expr, Ternary):
            self.resolve_expr(expr.condition)
            self.resolve_expr(expr.then_branch)
            self.resolve_expr(expr.else_branch)
        elif isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for argument in expr.arguments:
                self.resolve_expr(argument)
        elif isinstance(expr, Get):
            self.resolve_expr(expr.object)
        elif isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
        elif isinstance(expr, This):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, Super):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.")
                return
            if self.current_class != ClassType.SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, FunctionExpr):
            self.resolve_function(expr, FunctionType.FUNCTION)
        elif isinstance(expr, Literal):
            pass
        else:
            raise NotImplementedError(f"resolve: unexpected expression type {type(expr)}")
