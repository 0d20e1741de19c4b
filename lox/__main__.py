"""CLI entry point for the Lox interpreter.

Usage:
    python -m lox [-v|-vv|-vvv] [script]
    python -m lox --print-ast {infix,rpn} <script>

Options:
  -v            Increase debug verbosity (can be repeated)
  --print-ast   Parse the script and print every top-level expression
                statement with the infix or reverse-Polish debug printer
                instead of running it

With a script, the program is run and the process exits with 65 after a
syntax or resolution error, 70 after a runtime error and 0 otherwise.
Without one, an interactive prompt is started; a trailing expression
without ';' is printed, and errors never end the session.

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .ast import ExprStmt
from .interpreter import Interpreter, raise_recursion_limit
from .pipeline import compile_source, run_source
from .printers import AstPrinter, RpnPrinter

EXIT_NO_INPUT = 66

PRINTERS = {
    'infix': AstPrinter,
    'rpn': RpnPrinter,
}


def print_ast(source: str, style: str) -> int:
    compiled = compile_source(source)
    for diagnostic in compiled.errors:
        print(diagnostic, file=sys.stderr)
    if not compiled.ok:
        return 65
    printer = PRINTERS[style]()
    for stmt in compiled.statements:
        if isinstance(stmt, ExprStmt):
            print(printer.print(stmt.expression))
    return 0


def run_prompt(interpreter: Interpreter) -> None:
    while True:
        try:
            line = input('> ')
        except EOFError:
            print()
            return
        run_source(line, interpreter, allow_expression=True)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='lox', description="Lox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--print-ast', choices=sorted(PRINTERS), metavar='STYLE',
                        help='print expression statements as infix or rpn instead of running')
    parser.add_argument('script', nargs='?', help='Lox script (.lox) to execute')
    args = parser.parse_args(argv)
    raise_recursion_limit()

    if args.script is None:
        if args.print_ast:
            parser.error('--print-ast needs a script')
        interpreter = Interpreter(debug_level=args.v)
        try:
            run_prompt(interpreter)
        finally:
            interpreter.close()
        return

    script = Path(args.script)
    if not script.exists():
        print(f"Error: file {script} not found", file=sys.stderr)
        sys.exit(EXIT_NO_INPUT)
    with open(script, 'r', encoding='utf-8') as f:
        source = f.read()

    if args.print_ast:
        sys.exit(print_ast(source, args.print_ast))

    interpreter = Interpreter(debug_level=args.v)
    try:
        result = run_source(source, interpreter)
    finally:
        interpreter.close()
    sys.exit(result.exit_code)


if __name__ == '__main__':
    main()
