"""Source-to-execution pipeline used by the CLI, the REPL and the tests.

``compile_source`` is side-effect free: it scans, parses and resolves a
piece of source text and returns every diagnostic together with the
program, stopping at the first stage that reports errors. ``run_source``
is the driver on top of it: it prints the diagnostics, runs the program on
an interpreter and reports how the run ended.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TextIO

from .ast import Expr, Stmt
from .errors import Diagnostic, LoxRuntimeError
from .interpreter import Interpreter
from .parser import Parser
from .resolver import Resolver
from .scanner import Scanner

EXIT_OK = 0
EXIT_STATIC_ERROR = 65
EXIT_RUNTIME_ERROR = 70


@dataclass
class CompileResult:
    statements: List[Stmt] = field(default_factory=list)
    locals: Dict[Expr, int] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class RunResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    runtime_error: Optional[LoxRuntimeError] = None

    @property
    def exit_code(self) -> int:
        if any(d.is_error for d in self.diagnostics):
            return EXIT_STATIC_ERROR
        if self.runtime_error is not None:
            return EXIT_RUNTIME_ERROR
        return EXIT_OK


def compile_source(source: str, allow_expression: bool = False,
                   known_globals: Iterable[str] = ()) -> CompileResult:
    scanner = Scanner(source)
    tokens = scanner.scan_tokens()
    if scanner.errors:
        return CompileResult(diagnostics=list(scanner.errors))

    parser = Parser(tokens, allow_expression)
    statements = parser.parse()
    if parser.errors:
        return CompileResult(diagnostics=list(parser.errors))

    resolver = Resolver(known_globals)
    locals = resolver.resolve(statements)
    diagnostics = resolver.errors + resolver.warnings
    diagnostics.sort(key=lambda d: d.line)
    return CompileResult(statements, locals, diagnostics)


def run_source(source: str, interpreter: Optional[Interpreter] = None,
               allow_expression: bool = False,
               out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> RunResult:
    """Compile and run ``source``, printing diagnostics as it goes.

    Program output and warnings go to ``out`` (stdout by default) and errors
    to ``err`` (stderr by default). Programs with static errors are not run.
    A runtime error stops the run and is reported once.
    """
    if interpreter is None:
        interpreter = Interpreter(out=out)
    elif out is not None:
        interpreter.out = out
    out = out or sys.stdout
    err = err or sys.stderr

    compiled = compile_source(source, allow_expression, interpreter.globals.names())
    for diagnostic in compiled.warnings:
        print(diagnostic, file=out)
    for diagnostic in compiled.errors:
        print(diagnostic, file=err)
    if not compiled.ok:
        return RunResult(compiled.diagnostics)

    interpreter.resolve(compiled.locals)
    try:
        interpreter.interpret(compiled.statements)
    except LoxRuntimeError as error:
        print(error, file=err)
        return RunResult(compiled.diagnostics, error)
    return RunResult(compiled.diagnostics)
