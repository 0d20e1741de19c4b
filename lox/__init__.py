# Lox language package
# This package provides a scanner, parser, resolver and tree-walking
# interpreter for the Lox scripting language.
from .errors import Diagnostic, LoxError, LoxRuntimeError
from .interpreter import Interpreter
from .pipeline import compile_source, run_source

__all__ = [
    'compile_source',
    'run_source',
    'Interpreter',
    'Diagnostic',
    'LoxError',
    'LoxRuntimeError',
]
