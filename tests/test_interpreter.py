import pytest

from lox.interpreter import Interpreter, divide
from lox.pipeline import run_source


def run(source, capsys, interpreter=None):
    result = run_source(source, interpreter)
    captured = capsys.readouterr()
    return result, captured.out, captured.err


def output(source, capsys):
    result, out, err = run(source, capsys)
    assert err == ''
    assert result.exit_code == 0
    return out


def runtime_error(source, capsys):
    result, _, err = run(source, capsys)
    assert result.exit_code == 70
    return result.runtime_error.message


def test_precedence_and_grouping(capsys):
    assert output('print 1 + 2 * 3; print " "; print (1 + 2) * 3;', capsys) == '7 9'


def test_string_concatenation(capsys):
    assert output('println "a" + 1; println 1 + "a"; println "x" + nil;', capsys) == 'a1\n1a\nxnil\n'


def test_plus_type_error(capsys):
    assert runtime_error('println true + 1;', capsys) == (
        "Operands of '+' must be two numbers or include a string.")


def test_numeric_operand_errors(capsys):
    assert runtime_error('println -"a";', capsys) == "Operand of '-' must be a number."
    assert runtime_error('println 1 < "a";', capsys) == "Operands of '<' must be numbers."
    assert runtime_error('println nil * 2;', capsys) == "Operands of '*' must be numbers."


def test_number_formatting(capsys):
    assert output('println 3; println 2.5; println 10 / 4; println -0.5;', capsys) == '3\n2.5\n2.5\n-0.5\n'


def test_division_by_zero_is_ieee():
    assert divide(1.0, 0.0) == float('inf')
    assert divide(-1.0, 0.0) == float('-inf')
    assert divide(0.0, 0.0) != divide(0.0, 0.0)
    assert divide(6.0, 3.0) == 2.0


def test_truthiness(capsys):
    source = 'println 0 ? "t" : "f"; println "" ? "t" : "f"; println nil ? "t" : "f"; println !false;'
    assert output(source, capsys) == 't\nt\nf\ntrue\n'


def test_logical_operators_return_operands(capsys):
    source = 'println nil or "x"; println 1 and 2; println false and 1; println "a" or boom;'
    assert output(source, capsys) == 'x\n2\nfalse\na\n'


def test_equality(capsys):
    source = ('println 1 == 1; println nil == nil; println nil == false; '
              'println true == 1; println "a" == "a"; println 1 != 2;')
    assert output(source, capsys) == 'true\ntrue\nfalse\nfalse\ntrue\ntrue\n'


def test_comma_operator_yields_right_operand(capsys):
    assert output('println (1, 2, 3); var a = "a"; var b = "b"; println (a, b);', capsys) == '3\nb\n'


def test_shadowing_keeps_outer_value(capsys):
    assert output('var x = 1; { var x = x + 1; print x; } print x;', capsys) == '21'


def test_closure_counter(capsys):
    source = '''
        fun makeCounter() {
          var i = 0;
          fun count() { i = i + 1; return i; }
          return count;
        }
        var c = makeCounter();
        c(); c();
        println c();
    '''
    assert output(source, capsys) == '3\n'


def test_closure_captures_resolved_scope(capsys):
    source = '''
        var a = "global";
        {
          fun show() { print a; }
          show();
          var a = "block";
          show();
          print a;
        }
    '''
    assert output(source, capsys) == 'globalglobalblock'


def test_break_leaves_innermost_loop(capsys):
    source = '''
        for (var i = 0; i < 3; i = i + 1) {
          for (var j = 0; j < 3; j = j + 1) {
            if (j == 1) break;
            print i;
            print j;
          }
        }
    '''
    assert output(source, capsys) == '001020'


def test_return_from_inside_loop(capsys):
    assert output('fun f() { while (true) { return 5; } } println f();', capsys) == '5\n'


def test_function_without_return_yields_nil(capsys):
    assert output('fun f() {} println f();', capsys) == 'nil\n'


def test_print_and_println(capsys):
    assert output('print "a"; print "b"; println; println "c";', capsys) == 'ab\nc\n'


def test_callable_errors(capsys):
    assert runtime_error('"x"();', capsys) == 'Can only call functions and classes.'
    assert runtime_error('fun f(a) { return a; } f(1, 2);', capsys) == 'Expected 1 arguments but got 2.'


def test_undefined_variable(capsys):
    result, out, err = run('print "x"; print y;', capsys)
    assert out == 'x'
    assert err == "Undefined variable 'y'.\n[line 1]\n"
    assert result.exit_code == 70


def test_runtime_error_stops_the_run(capsys):
    result, out, _ = run('println "before"; println nil + 1; println "after";', capsys)
    assert out == 'before\n'
    assert result.runtime_error is not None


def test_instances_and_fields(capsys):
    source = '''
        class A { m() { return "method"; } }
        var a = A();
        println a.m();
        a.m = "field";
        println a.m;
        println a;
    '''
    assert output(source, capsys) == 'method\nfield\nA instance\n'


def test_property_errors(capsys):
    assert runtime_error('var a = 1; println a.b;', capsys) == 'Only instances have properties.'
    assert runtime_error('var a = 1; a.b = 2;', capsys) == 'Only instances have fields.'
    assert runtime_error('class A {} println A().b;', capsys) == "Undefined property 'b'."


def test_bound_method_keeps_this(capsys):
    source = '''
        class Box {
          init(n) { this.n = n; }
          get() { return this.n; }
        }
        var g = Box(7).get;
        println g();
    '''
    assert output(source, capsys) == '7\n'


def test_initializer_returns_instance(capsys):
    source = '''
        class A { init() { this.v = 1; return; } }
        var a = A();
        println a.init().v;
        println A;
    '''
    assert output(source, capsys) == '1\nA\n'


def test_class_arity_comes_from_init(capsys):
    assert runtime_error('class P { init(x, y) {} } P(1);', capsys) == 'Expected 2 arguments but got 1.'


def test_super_calls_superclass_method(capsys):
    source = '''
        class A { hi() { return "A"; } }
        class B < A { hi() { return "B" + super.hi(); } }
        class C < B {}
        println C().hi();
    '''
    assert output(source, capsys) == 'BA\n'


def test_missing_super_method(capsys):
    source = 'class A {} class B < A { m() { return super.nope; } } B().m();'
    assert runtime_error(source, capsys) == "Undefined property 'nope'."


def test_superclass_must_be_a_class(capsys):
    assert runtime_error('var NotAClass = "x"; class B < NotAClass {}', capsys) == 'Superclass must be a class.'


def test_arrow_functions(capsys):
    source = '''
        var compose = (f, g) -> { return (x) -> { return f(g(x)); }; };
        var inc = (x) -> { return x + 1; };
        var dbl = (x) -> { return x * 2; };
        println compose(inc, dbl)(5);
        println inc;
    '''
    assert output(source, capsys) == '11\n<fn anonymous>\n'


def test_function_string_forms(capsys):
    assert output('fun f() {} println f; println clock;', capsys) == '<fn f>\n<native fn>\n'


def test_clock(capsys):
    assert output('println clock() > 0;', capsys) == 'true\n'


def test_static_error_prevents_running(capsys):
    result, out, err = run('println "x"; var a = a;', capsys)
    assert out == ''
    assert "Can't read local variable in its own initializer." in err
    assert result.exit_code == 65


def test_session_keeps_state_between_runs(capsys):
    interpreter = Interpreter()
    run_source('var x = 10;', interpreter, allow_expression=True)
    run_source('fun twice(n) { return n * 2; }', interpreter, allow_expression=True)
    run_source('twice(x)', interpreter, allow_expression=True)
    run_source('{ var x = x + 1; println x; }', interpreter, allow_expression=True)
    captured = capsys.readouterr()
    assert captured.out == '20\n11\n'
    assert captured.err == ''


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interpreter = Interpreter(debug_level=3, debug_file=str(debug_file))
    run_source('var a = 1; if (a == 1) { a = 2; }', interpreter)
    interpreter.close()
    trace = debug_file.read_text()
    assert 'define a = 1' in trace
    assert 'if condition true -> True' in trace


@pytest.mark.parametrize('source, expected', [
    ('println 1 > 2 ? "a" : "b";', 'b\n'),
    ('println true ? 1 : 2;', '1\n'),
    ('var f = (n) -> { return n > 0 ? "pos" : "neg"; }; println f(-1);', 'neg\n'),
])
def test_ternary(capsys, source, expected):
    assert output(source, capsys) == expected


def test_deep_recursion(capsys):
    source = 'fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); } println count(500);'
    assert output(source, capsys) == '500\n'


def test_unbounded_recursion_is_a_runtime_error(capsys):
    result, out, err = run('fun f() { f(); }\nprintln "start";\nf();\nprintln "end";', capsys)
    assert out == 'start\n'
    assert err == 'Stack overflow.\n[line 1]\n'
    assert result.exit_code == 70


def test_session_survives_stack_overflow(capsys):
    interpreter = Interpreter()
    run_source('fun f() { f(); }', interpreter, allow_expression=True)
    assert run_source('f();', interpreter, allow_expression=True).exit_code == 70
    run_source('var x = 1;', interpreter, allow_expression=True)
    run_source('println x;', interpreter, allow_expression=True)
    captured = capsys.readouterr()
    assert captured.out == '1\n'
    assert 'Stack overflow.' in captured.err
    assert interpreter.environment is interpreter.globals


def test_nested_parentheses(capsys):
    depth = 200
    assert output('println ' + '(' * depth + '1' + ')' * depth + ';', capsys) == '1\n'
