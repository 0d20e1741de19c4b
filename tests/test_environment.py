import pytest

from lox.environment import Environment
from lox.errors import LoxRuntimeError
from lox.tokens import Token, TokenKind


def name(lexeme):
    return Token(TokenKind.IDENTIFIER, lexeme, None, 1)


def test_define_and_get():
    env = Environment()
    env.define('a', 1.0)
    assert env.get(name('a')) == 1.0


def test_lookup_walks_enclosing_scopes():
    outer = Environment()
    outer.define('a', 'outer')
    inner = Environment(parent=outer)
    assert inner.get(name('a')) == 'outer'
    inner.assign(name('a'), 'changed')
    assert outer.values['a'] == 'changed'
    assert 'a' not in inner.values


def test_undefined_variable():
    env = Environment()
    with pytest.raises(LoxRuntimeError) as exc:
        env.get(name('missing'))
    assert exc.value.message == "Undefined variable 'missing'."
    assert str(exc.value) == "Undefined variable 'missing'.\n[line 1]"
    with pytest.raises(LoxRuntimeError):
        env.assign(name('missing'), 1.0)


def test_distance_access():
    globals_env = Environment()
    middle = Environment(parent=globals_env)
    inner = Environment(parent=middle)
    middle.define('x', 1.0)
    inner.define('x', 2.0)
    assert inner.get_at(0, name('x')) == 2.0
    assert inner.get_at(1, name('x')) == 1.0
    inner.assign_at(1, name('x'), 5.0)
    assert middle.values['x'] == 5.0
    assert inner.ancestor(2) is globals_env


def test_ancestor_out_of_range():
    with pytest.raises(LookupError):
        Environment().ancestor(1)


def test_scopes_can_be_shared():
    shared = Environment()
    first = Environment(parent=shared)
    second = Environment(parent=shared)
    first.assign_at(1, name('n'), 1.0)
    assert second.get(name('n')) == 1.0
