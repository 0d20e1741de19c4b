from dataclasses import dataclass
from typing import Any, Callable, List

from lox.types import LoxCallable


@dataclass
class NativeFunction(LoxCallable):
    name: str
    fn_arity: int
    fn: Callable[[List[Any]], Any]

    def arity(self) -> int:
        return self.fn_arity

    def call(self, interpreter, arguments: List[Any]) -> Any:
        return self.fn(arguments)

    def __str__(self) -> str:
        return "<native fn>"

    def __repr__(self) -> str:
        return f"<native fn {self.name}>"
