"""Tree-walking interpreter for the Lox language.

The interpreter executes resolved statements directly. It keeps a cursor
to the current environment which is swapped when a block or function body
is entered and always restored on the way out. Variable references that
the resolver gave a scope distance are looked up exactly that many scopes
out; everything else is a global.

``return`` and ``break`` are not exceptions: ``execute`` hands back a
``ReturnSignal`` or ``BreakSignal`` which enclosing statements pass up until
a function call or loop consumes it. Runtime faults raise
``LoxRuntimeError`` and abort the whole run.
"""

from __future__ import annotations

import math
import sys
from typing import Any, Dict, List, Optional, TextIO

from .ast import (
    Expr, Stmt, Literal, Grouping, Unary, Binary, Logical, Ternary,
    Variable, Assign, Call, Get, Set, This, Super, FunctionExpr,
    ExprStmt, PrintStmt, PrintLnStmt, VarDecl, Block, IfStmt, WhileStmt,
    BreakStmt, ReturnStmt, FuncDecl, ClassDecl,
)
from .environment import Environment
from .errors import LoxRuntimeError
from .signals import BREAK, BreakSignal, ReturnSignal, Signal
from .std import populate_native_environment
from .tokens import Token, TokenKind
from .types import (
    LoxCallable, LoxClass, LoxFunction, LoxInstance,
    is_equal, is_truthy, stringify,
)

# Each Lox call costs a handful of Python frames.
RECURSION_LIMIT = 10000


def raise_recursion_limit(limit: int = RECURSION_LIMIT) -> None:
    if sys.getrecursionlimit() < limit:
        sys.setrecursionlimit(limit)


class Interpreter:
    """Core interpreter that executes a resolved Lox AST."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 out: Optional[TextIO] = None):
        raise_recursion_limit()
        self.globals = populate_native_environment(Environment())
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}
        # None means whatever sys.stdout is at print time
        self.out = out
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self) -> None:
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def resolve(self, locals: Dict[Expr, int]) -> None:
        """Merge a resolver's distance map into the interpreter."""
        self.locals.update(locals)

    def interpret(self, statements: List[Stmt]) -> None:
        for stmt in statements:
            # the resolver rejects top-level return, so a signal cannot reach here
            self.execute(stmt)

    def execute_block(self, statements: List[Stmt], env: Environment) -> Optional[Signal]:
        previous = self.environment
        self.environment = env
        try:
            for stmt in statements:
                signal = self.execute(stmt)
                if signal is not None:
                    return signal
            return None
        finally:
            self.environment = previous

    def execute(self, stmt: Stmt) -> Optional[Signal]:
        if isinstance(stmt, ExprStmt):
            self.evaluate(stmt.expression)
            return None
        if isinstance(stmt, PrintStmt):
            print(stringify(self.evaluate(stmt.expression)), end='', file=self.out)
            return None
        if isinstance(stmt, PrintLnStmt):
            if stmt.expression is None:
                print(file=self.out)
            else:
                print(stringify(self.evaluate(stmt.expression)), file=self.out)
            return None
        if isinstance(stmt, VarDecl):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            if self.debug_level >= 2:
                self.debug(f"define {stmt.name.lexeme} = {stringify(value)}")
            return None
        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(parent=self.environment))
        if isinstance(stmt, IfStmt):
            cond = self.evaluate(stmt.condition)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {stringify(cond)} -> {truthy}")
            if truthy:
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None
        if isinstance(stmt, WhileStmt):
            while is_truthy(self.evaluate(stmt.condition)):
                signal = self.execute(stmt.body)
                if isinstance(signal, BreakSignal):
                    break
                if isinstance(signal, ReturnSignal):
                    return signal
            return None
        if isinstance(stmt, BreakStmt):
            return BREAK
        if isinstance(stmt, ReturnStmt):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return ReturnSignal(value)
        if isinstance(stmt, FuncDecl):
            function = LoxFunction(stmt.function, self.environment, stmt.name.lexeme)
            self.environment.define(stmt.name.lexeme, function)
            if self.debug_level >= 2:
                self.debug(f"define function {stmt.name.lexeme}")
            return None
        if isinstance(stmt, ClassDecl):
            self.execute_class(stmt)
            return None
        raise NotImplementedError(f"execute: unexpected statement type {type(stmt)}")

    def execute_class(self, stmt: ClassDecl) -> None:
        superclass: Optional[LoxClass] = None
        if stmt.superclass is not None:
            value = self.evaluate(stmt.superclass)
            if not isinstance(value, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")
            superclass = value

        self.environment.define(stmt.name.lexeme, None)

        method_env = self.environment
        if superclass is not None:
            method_env = Environment(parent=self.environment)
            method_env.define('super', superclass)

        methods: Dict[str, LoxFunction] = {}
        for method in stmt.methods:
            name = method.name.lexeme
            methods[name] = LoxFunction(method.function, method_env, name, name == 'init')

        klass = LoxClass(stmt.name.lexeme, superclass, methods)
        self.environment.assign(stmt.name, klass)
        if self.debug_level >= 2:
            parent = f" < {superclass.name}" if superclass is not None else ''
            self.debug(f"define class {klass.name}{parent} with {len(methods)} methods")

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Variable):
            return self.look_up_variable(expr.name, expr)
        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        if isinstance(expr, Unary):
            right = self.evaluate(expr.right)
            if expr.operator.kind == TokenKind.BANG:
                return not is_truthy(right)
            if expr.operator.kind == TokenKind.MINUS:
                self.check_number_operand(expr.operator, right)
                return -right
            raise LoxRuntimeError(expr.operator, f"Unknown unary operator '{expr.operator.lexeme}'.")
        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self.apply_binary_op(expr.operator, left, right)
        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.kind == TokenKind.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, Ternary):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)
        if isinstance(expr, Call):
            callee = self.evaluate(expr.callee)
            arguments = [self.evaluate(argument) for argument in expr.arguments]
            return self.call_function(callee, arguments, expr.paren)
        if isinstance(expr, Get):
            obj = self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError(expr.name, "Only instances have properties.")
        if isinstance(expr, Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        if isinstance(expr, This):
            return self.look_up_variable(expr.keyword, expr)
        if isinstance(expr, Super):
            distance = self.locals[expr]
            superclass = self.environment.get_at(distance, expr.keyword)
            # 'this' is always bound one scope inside 'super'
            instance = self.environment.ancestor(distance - 1).values['this']
            method = superclass.find_method(expr.method.lexeme)
            if method is None:
                raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
            return method.bind(instance)
        if isinstance(expr, FunctionExpr):
            return LoxFunction(expr, self.environment)
        raise NotImplementedError(f"evaluate: unexpected expression type {type(expr)}")

    def look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name)
        return self.globals.get(name)

    def call_function(self, callee: Any, arguments: List[Any], paren: Token) -> Any:
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")
        if self.debug_level >= 3:
            self.debug(f"call {callee} with {len(arguments)} arguments (line {paren.line})")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(paren, "Stack overflow.") from None

    def check_number_operand(self, operator: Token, operand: Any) -> None:
        if isinstance(operand, float):
            return
        raise LoxRuntimeError(operator, f"Operand of '{operator.lexeme}' must be a number.")

    def check_number_operands(self, operator: Token, left: Any, right: Any) -> None:
        if isinstance(left, float) and isinstance(right, float):
            return
        raise LoxRuntimeError(operator, f"Operands of '{operator.lexeme}' must be numbers.")

    def apply_binary_op(self, operator: Token, a: Any, b: Any) -> Any:
        kind = operator.kind
        if kind == TokenKind.COMMA:
            return b
        if kind == TokenKind.EQUAL_EQUAL:
            return is_equal(a, b)
        if kind == TokenKind.BANG_EQUAL:
            return not is_equal(a, b)
        if kind == TokenKind.PLUS:
            if isinstance(a, float) and isinstance(b, float):
                return a + b
            if isinstance(a, str) or isinstance(b, str):
                return stringify(a) + stringify(b)
            raise LoxRuntimeError(operator, "Operands of '+' must be two numbers or include a string.")
        self.check_number_operands(operator, a, b)
        if kind == TokenKind.MINUS:
            return a - b
        if kind == TokenKind.STAR:
            return a * b
        if kind == TokenKind.SLASH:
            return divide(a, b)
        if kind == TokenKind.GREATER:
            return a > b
        if kind == TokenKind.GREATER_EQUAL:
            return a >= b
        if kind == TokenKind.LESS:
            return a < b
        if kind == TokenKind.LESS_EQUAL:
            return a <= b
        raise LoxRuntimeError(operator, f"Unknown binary operator '{operator.lexeme}'.")


def divide(a: float, b: float) -> float:
    """IEEE-754 division: dividing by zero yields an infinity or NaN."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b
