"""Explicit control-flow results of statement execution.

``Interpreter.execute`` returns ``None`` when a statement completes normally
and one of these objects when it has to unwind: blocks and ``if`` pass them
upwards, loops consume ``BreakSignal`` and function calls consume
``ReturnSignal``.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class ReturnSignal:
    value: Any


@dataclass(frozen=True)
class BreakSignal:
    pass


BREAK = BreakSignal()

Signal = Union[ReturnSignal, BreakSignal]
