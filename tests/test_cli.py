from pathlib import Path

import pytest

from lox.__main__ import main

EXAMPLES = Path(__file__).parent.parent / 'examples'


def run_main(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_run_script(capsys):
    assert run_main([str(EXAMPLES / 'hello.lox')]) == 0
    assert capsys.readouterr().out == 'Hello, Lox!\n'


def test_runtime_error_exit_code(capsys):
    assert run_main([str(EXAMPLES / 'runtime_error.lox')]) == 70
    assert '[line 2]' in capsys.readouterr().err


def test_syntax_error_exit_code(capsys):
    assert run_main([str(EXAMPLES / 'syntax_error.lox')]) == 65
    assert "Expect variable name." in capsys.readouterr().err


def test_missing_script(capsys, tmp_path):
    assert run_main([str(tmp_path / 'nope.lox')]) == 66
    assert 'not found' in capsys.readouterr().err


def test_print_ast(capsys, tmp_path):
    script = tmp_path / 'exprs.lox'
    script.write_text('1 + 2 * 3;\nvar a = 1;\n(1 + 2) * 3;\n')
    assert run_main(['--print-ast', 'rpn', str(script)]) == 0
    assert capsys.readouterr().out == '1 2 3 * +\n1 2 + 3 *\n'
    assert run_main(['--print-ast', 'infix', str(script)]) == 0
    assert capsys.readouterr().out == '(+ 1 (* 2 3))\n(* (group (+ 1 2)) 3)\n'


def test_verbose_run_writes_debug_file(capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    script = tmp_path / 'prog.lox'
    script.write_text('var a = 1;\nprintln a;\n')
    assert run_main(['-vv', str(script)]) == 0
    assert capsys.readouterr().out == '1\n'
    assert 'define a = 1' in (tmp_path / 'debug.txt').read_text()


def test_repl(capsys, monkeypatch):
    lines = iter(['var a = 2;', 'a * 3', 'print nope;', 'var = ;', 'a'])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr('builtins.input', fake_input)
    main([])
    captured = capsys.readouterr()
    assert captured.out == '6\n2\n\n'
    assert "Undefined variable 'nope'." in captured.err
    assert "Expect variable name." in captured.err


def test_repl_survives_stack_overflow(capsys, monkeypatch):
    lines = iter(['fun f() { f(); }', 'f();', 'println "alive";'])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr('builtins.input', fake_input)
    main([])
    captured = capsys.readouterr()
    assert captured.out == 'alive\n\n'
    assert 'Stack overflow.' in captured.err
