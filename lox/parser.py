"""Parser for the Lox language.

A hand-written recursive-descent parser turns the scanner's token list into
a list of statements. Each precedence level of the expression grammar gets
its own ``parse_*`` method, lowest precedence first:

    assignment -> or -> and -> comma -> ternary -> equality -> comparison
    -> term -> factor -> unary -> call -> primary

Syntax errors are recorded in ``Parser.errors``. After an error the parser
discards tokens up to the next statement boundary and carries on, so one
run reports every independent error in the file. The statement that failed
is left out of the result.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from .ast import (
    Expr, Stmt, Literal, Grouping, Unary, Binary, Logical, Ternary,
    Variable, Assign, Call, Get, Set, This, Super, FunctionExpr,
    ExprStmt, PrintStmt, PrintLnStmt, VarDecl, Block, IfStmt, WhileStmt,
    BreakStmt, ReturnStmt, FuncDecl, ClassDecl,
)
from .errors import Diagnostic, ParseError
from .tokens import Token, TokenKind


MAX_ARGUMENTS = 255

# Tokens that start a statement; error recovery stops in front of them.
STATEMENT_KEYWORDS = {
    TokenKind.CLASS,
    TokenKind.FUN,
    TokenKind.VAR,
    TokenKind.FOR,
    TokenKind.IF,
    TokenKind.WHILE,
    TokenKind.PRINT,
    TokenKind.PRINTLN,
    TokenKind.RETURN,
}


class Parser:
    def __init__(self, tokens: List[Token], allow_expression: bool = False):
        self.tokens = tokens
        self.pos = 0
        self.allow_expression = allow_expression
        self.errors: List[Diagnostic] = []
        self.loop_depth = 0
        # Off while parsing call arguments, where ',' separates arguments.
        self.comma_enabled = True

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    # Token helpers

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.peek().kind == TokenKind.EOF

    def advance(self) -> Token:
        if not self.is_at_end():
            self.pos += 1
        return self.previous()

    def check(self, kind: TokenKind) -> bool:
        if self.is_at_end():
            return False
        return self.peek().kind == kind

    def match(self, *kinds: TokenKind) -> bool:
        for kind in kinds:
            if self.check(kind):
                self.advance()
                return True
        return False

    def consume(self, kind: TokenKind, message: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        """Record a syntax error and return (not raise) the unwinding exception."""
        self.errors.append(Diagnostic.at_token(token, message))
        return ParseError(message)

    def synchronize(self) -> None:
        self.advance()
        while not self.is_at_end():
            if self.previous().kind == TokenKind.SEMICOLON:
                return
            if self.peek().kind in STATEMENT_KEYWORDS:
                return
            self.advance()

    @contextmanager
    def comma_operator(self, enabled: bool) -> Iterator[None]:
        saved = self.comma_enabled
        self.comma_enabled = enabled
        try:
            yield
        finally:
            self.comma_enabled = saved

    # Declarations

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenKind.CLASS):
                return self.parse_class_decl()
            if self.match(TokenKind.FUN):
                return self.parse_func_decl('function')
            if self.match(TokenKind.VAR):
                return self.parse_var_decl()
            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None
        except RecursionError:
            self.errors.append(Diagnostic.at_token(self.peek(), "Too much nesting."))
            self.synchronize()
            return None

    def parse_class_decl(self) -> ClassDecl:
        name = self.consume(TokenKind.IDENTIFIER, "Expect class name.")
        superclass: Optional[Variable] = None
        if self.match(TokenKind.LESS):
            self.consume(TokenKind.IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous())
        self.consume(TokenKind.LEFT_BRACE, "Expect '{' before class body.")
        methods: List[FuncDecl] = []
        while not self.check(TokenKind.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.parse_func_decl('method'))
        self.consume(TokenKind.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassDecl(name, superclass, methods)

    def parse_func_decl(self, kind: str) -> FuncDecl:
        name = self.consume(TokenKind.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TokenKind.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self.check(TokenKind.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenKind.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenKind.COMMA):
                    break
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenKind.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self.parse_function_body()
        return FuncDecl(name, FunctionExpr(params, body))

    def parse_var_decl(self) -> VarDecl:
        name = self.consume(TokenKind.IDENTIFIER, "Expect variable name.")
        initializer: Optional[Expr] = None
        if self.match(TokenKind.EQUAL):
            initializer = self.parse_expression()
        if isinstance(initializer, FunctionExpr):
            # the arrow body's closing brace already ends the declaration
            self.match(TokenKind.SEMICOLON)
        else:
            self.consume(TokenKind.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name, initializer)

    # Statements

    def parse_statement(self) -> Stmt:
        if self.match(TokenKind.FOR):
            return self.parse_for_stmt()
        if self.match(TokenKind.IF):
            return self.parse_if_stmt()
        if self.match(TokenKind.PRINT):
            return self.parse_print_stmt()
        if self.match(TokenKind.PRINTLN):
            return self.parse_println_stmt()
        if self.match(TokenKind.RETURN):
            return self.parse_return_stmt()
        if self.match(TokenKind.WHILE):
            return self.parse_while_stmt()
        if self.match(TokenKind.BREAK):
            return self.parse_break_stmt()
        if self.match(TokenKind.LEFT_BRACE):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> List[Stmt]:
        statements: List[Stmt] = []
        with self.comma_operator(True):
            while not self.check(TokenKind.RIGHT_BRACE) and not self.is_at_end():
                stmt = self.parse_declaration()
                if stmt is not None:
                    statements.append(stmt)
        self.consume(TokenKind.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_function_body(self) -> List[Stmt]:
        # 'break' may not cross a function boundary
        saved = self.loop_depth
        self.loop_depth = 0
        try:
            return self.parse_block()
        finally:
            self.loop_depth = saved

    def parse_loop_body(self) -> Stmt:
        self.loop_depth += 1
        try:
            return self.parse_statement()
        finally:
            self.loop_depth -= 1

    def parse_for_stmt(self) -> Stmt:
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Optional[Stmt]
        if self.match(TokenKind.SEMICOLON):
            initializer = None
        elif self.match(TokenKind.VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Optional[Expr] = None
        if not self.check(TokenKind.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[Expr] = None
        if not self.check(TokenKind.RIGHT_PAREN):
            increment = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_loop_body()
        if increment is not None:
            body = Block([body, ExprStmt(increment)])
        if condition is None:
            condition = Literal(True)
        statements: List[Stmt] = []
        if initializer is not None:
            statements.append(initializer)
        statements.append(WhileStmt(condition, body))
        return Block(statements)

    def parse_if_stmt(self) -> IfStmt:
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch: Optional[Stmt] = None
        if self.match(TokenKind.ELSE):
            else_branch = self.parse_statement()
        return IfStmt(condition, then_branch, else_branch)

    def parse_while_stmt(self) -> WhileStmt:
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_loop_body()
        return WhileStmt(condition, body)

    def parse_break_stmt(self) -> BreakStmt:
        keyword = self.previous()
        if self.loop_depth == 0:
            self.error(keyword, "Can't use 'break' outside of a loop.")
        self.consume(TokenKind.SEMICOLON, "Expect ';' after 'break'.")
        return BreakStmt(keyword)

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.previous()
        value: Optional[Expr] = None
        if not self.check(TokenKind.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def parse_print_stmt(self) -> PrintStmt:
        value = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def parse_println_stmt(self) -> PrintLnStmt:
        if self.match(TokenKind.SEMICOLON):
            return PrintLnStmt(None)
        value = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after value.")
        return PrintLnStmt(value)

    def parse_expr_stmt(self) -> Stmt:
        expr = self.parse_expression()
        if self.allow_expression and self.is_at_end():
            return PrintLnStmt(expr)
        self.consume(TokenKind.SEMICOLON, "Expect ';' after expression.")
        return ExprStmt(expr)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assign()

    def parse_assign(self) -> Expr:
        expr = self.parse_logic_or()
        if self.match(TokenKind.EQUAL):
            equals = self.previous()
            value = self.parse_assign()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            # reported, but no need to resynchronize
            self.error(equals, "Invalid assignment target.")
        return expr

    def parse_logic_or(self) -> Expr:
        expr = self.parse_logic_and()
        while self.match(TokenKind.OR):
            operator = self.previous()
            right = self.parse_logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def parse_logic_and(self) -> Expr:
        expr = self.parse_comma()
        while self.match(TokenKind.AND):
            operator = self.previous()
            right = self.parse_comma()
            expr = Logical(expr, operator, right)
        return expr

    def parse_comma(self) -> Expr:
        expr = self.parse_ternary()
        while self.comma_enabled and self.match(TokenKind.COMMA):
            operator = self.previous()
            right = self.parse_ternary()
            expr = Binary(expr, operator, right)
        return expr

    def parse_ternary(self) -> Expr:
        expr = self.parse_equality()
        if self.match(TokenKind.QUESTION):
            then_branch = self.parse_equality()
            self.consume(TokenKind.COLON, "Expect ':' after then branch of conditional expression.")
            else_branch = self.parse_equality()
            expr = Ternary(expr, then_branch, else_branch)
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while self.match(TokenKind.BANG_EQUAL, TokenKind.EQUAL_EQUAL):
            operator = self.previous()
            right = self.parse_comparison()
            expr = Binary(expr, operator, right)
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while self.match(TokenKind.GREATER, TokenKind.GREATER_EQUAL,
                         TokenKind.LESS, TokenKind.LESS_EQUAL):
            operator = self.previous()
            right = self.parse_term()
            expr = Binary(expr, operator, right)
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.match(TokenKind.MINUS, TokenKind.PLUS):
            operator = self.previous()
            right = self.parse_factor()
            expr = Binary(expr, operator, right)
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.match(TokenKind.SLASH, TokenKind.STAR):
            operator = self.previous()
            right = self.parse_unary()
            expr = Binary(expr, operator, right)
        return expr

    def parse_unary(self) -> Expr:
        if self.match(TokenKind.BANG, TokenKind.MINUS):
            operator = self.previous()
            right = self.parse_unary()
            return Unary(operator, right)
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match(TokenKind.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenKind.DOT):
                name = self.consume(TokenKind.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: List[Expr] = []
        if not self.check(TokenKind.RIGHT_PAREN):
            with self.comma_operator(False):
                while True:
                    if len(arguments) >= MAX_ARGUMENTS:
                        self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                    arguments.append(self.parse_assign())
                    if not self.match(TokenKind.COMMA):
                        break
        paren = self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def parse_primary(self) -> Expr:
        if self.match(TokenKind.FALSE):
            return Literal(False)
        if self.match(TokenKind.TRUE):
            return Literal(True)
        if self.match(TokenKind.NIL):
            return Literal(None)
        if self.match(TokenKind.NUMBER, TokenKind.STRING):
            return Literal(self.previous().literal)
        if self.match(TokenKind.SUPER):
            keyword = self.previous()
            self.consume(TokenKind.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenKind.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)
        if self.match(TokenKind.THIS):
            return This(self.previous())
        if self.match(TokenKind.IDENTIFIER):
            return Variable(self.previous())
        if self.match(TokenKind.LEFT_PAREN):
            return self.parse_group_or_arrow()
        raise self.error(self.peek(), "Expect expression.")

    def parse_group_or_arrow(self) -> Expr:
        """Parse ``( expression )`` or an arrow literal ``(a, b) -> { ... }``.

        The parenthesized part is parsed as an ordinary expression first; when
        an ``->`` follows, it is reinterpreted as a parameter list.
        """
        if self.match(TokenKind.RIGHT_PAREN):
            self.consume(TokenKind.ARROW, "Expect '->' after empty parameter list.")
            return self.parse_arrow_body([])
        with self.comma_operator(True):
            expr = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after expression.")
        if self.match(TokenKind.ARROW):
            arrow = self.previous()
            params = self.arrow_params(expr, arrow)
            if len(params) > MAX_ARGUMENTS:
                self.error(arrow, f"Can't have more than {MAX_ARGUMENTS} parameters.")
            return self.parse_arrow_body(params)
        return Grouping(expr)

    def arrow_params(self, expr: Expr, arrow: Token) -> List[Token]:
        if isinstance(expr, Variable):
            return [expr.name]
        if isinstance(expr, Binary) and expr.operator.kind == TokenKind.COMMA:
            return self.arrow_params(expr.left, arrow) + self.arrow_params(expr.right, arrow)
        raise self.error(arrow, "Invalid parameter list.")

    def parse_arrow_body(self, params: List[Token]) -> FunctionExpr:
        self.consume(TokenKind.LEFT_BRACE, "Expect '{' before arrow function body.")
        body = self.parse_function_body()
        return FunctionExpr(params, body)
