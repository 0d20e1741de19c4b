import time
from typing import Any, List

from lox.builtin_function import NativeFunction
from lox.environment import Environment


def populate_native_environment(env: Environment) -> Environment:
    """Define the native functions every Lox program can call."""

    def std_clock(args: List[Any]) -> Any:
        return time.time()

    env.define('clock', NativeFunction('clock', 0, std_clock))
    return env
