"""Runtime object model for Lox.

Lox values map onto Python values: ``nil`` is ``None``, booleans are
``bool``, numbers are ``float`` and strings are ``str``. Everything callable
implements ``LoxCallable``: native functions, user functions (closures),
classes and bound methods. Instances carry their own field table and a
reference to their class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .environment import Environment
from .errors import LoxRuntimeError
from .signals import ReturnSignal
from .tokens import Token

if TYPE_CHECKING:
    from .ast import FunctionExpr
    from .interpreter import Interpreter


class LoxCallable(ABC):
    @abstractmethod
    def arity(self) -> int:
        ...

    @abstractmethod
    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        ...


class LoxFunction(LoxCallable):
    """A user function together with the environment it closes over."""
    def __init__(self, declaration: 'FunctionExpr', closure: Environment,
                 name: Optional[str] = None, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.name = name
        self.is_initializer = is_initializer

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        environment = Environment(parent=self.closure)
        environment.define('this', instance)
        return LoxFunction(self.declaration, environment, self.name, self.is_initializer)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        environment = Environment(parent=self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)
        signal = interpreter.execute_block(self.declaration.body, environment)
        if self.is_initializer:
            # init always hands back the instance, whatever it returned
            return self.closure.values['this']
        if isinstance(signal, ReturnSignal):
            return signal.value
        return None

    def __str__(self) -> str:
        return f"<fn {self.name or 'anonymous'}>"

    __repr__ = __str__


class LoxClass(LoxCallable):
    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method('init')
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method('init')
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


class LoxInstance:
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"

    __repr__ = __str__


def is_truthy(value: Any) -> bool:
    """Only ``nil`` and ``false`` are falsy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # no coercion: true != 1 even though Python says otherwise
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: Any) -> str:
    """Convert a Lox value to the text ``print`` shows for it."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        text = repr(value)
        if text.endswith('.0'):
            text = text[:-2]
        return text
    return str(value)
