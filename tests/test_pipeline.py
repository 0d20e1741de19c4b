import io

from lox.interpreter import Interpreter
from lox.pipeline import (
    EXIT_OK, EXIT_RUNTIME_ERROR, EXIT_STATIC_ERROR, compile_source, run_source,
)


def test_compile_is_silent(capsys):
    result = compile_source('print 1; { var a = 1; }')
    assert result.ok
    assert len(result.statements) == 2
    assert len(result.warnings) == 1
    captured = capsys.readouterr()
    assert captured.out == ''
    assert captured.err == ''


def test_scan_errors_stop_before_parsing():
    result = compile_source('@ print ;')
    assert [str(d) for d in result.diagnostics] == ["[line 1] Error: Unexpected character '@'."]
    assert result.statements == []
    assert not result.ok


def test_parse_errors_stop_before_resolving():
    result = compile_source('print ;\nprint this;')
    assert [str(d) for d in result.errors] == ["[line 1] Error at ';': Expect expression."]


def test_resolution_errors_gate_the_program():
    result = compile_source('{ var a = a; }')
    assert not result.ok
    assert [d.message for d in result.errors] == ["Can't read local variable in its own initializer."]


def test_diagnostics_are_ordered_by_line():
    result = compile_source('{ var unused = 1;\nprint this; }')
    assert [d.line for d in result.diagnostics] == [1, 2]


def test_warnings_go_to_stdout(capsys):
    result = run_source('{ var unused = 1; }')
    captured = capsys.readouterr()
    assert captured.out == "[line 1] Warning at 'unused': Local variable 'unused' is never used.\n"
    assert captured.err == ''
    assert result.exit_code == EXIT_OK


def test_exit_codes(capsys):
    assert run_source('println 1;').exit_code == EXIT_OK
    assert run_source('println 1').exit_code == EXIT_STATIC_ERROR
    assert run_source('println -nil;').exit_code == EXIT_RUNTIME_ERROR
    capsys.readouterr()


def test_explicit_streams(capsys, tmp_path):
    out_path = tmp_path / 'out.txt'
    err_path = tmp_path / 'err.txt'
    with open(out_path, 'w') as out, open(err_path, 'w') as err:
        run_source('{ var unused = 1; }\nprint nope;', out=out, err=err)
    assert 'never used' in out_path.read_text()
    assert err_path.read_text() == "Undefined variable 'nope'.\n[line 2]\n"
    assert capsys.readouterr().err == ''


def test_program_output_shares_out_with_warnings(capsys):
    buffer = io.StringIO()
    run_source('{ var unused = 1; }\nprint "a";\nprintln "b";', out=buffer)
    assert buffer.getvalue() == (
        "[line 1] Warning at 'unused': Local variable 'unused' is never used.\nab\n")
    assert capsys.readouterr().out == ''


def test_output_stream_is_set_on_a_given_interpreter(capsys):
    interpreter = Interpreter()
    buffer = io.StringIO()
    run_source('println 1;', interpreter, out=buffer)
    assert buffer.getvalue() == '1\n'
    assert capsys.readouterr().out == ''
