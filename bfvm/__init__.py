"""
bfvm - a minimal virtual machine for the eight-command tape language
====================================================================

    ┌──────────┐    ┌─────────────┐    ┌──────────┐
    │ Program  │───>│ Interpreter │<──>│   Tape   │
    │ (str)    │    │ step / run  │    │ (sparse) │
    └──────────┘    └─────────────┘    └──────────┘
                      │         ^
                 write_byte    poll
                      v         │
                   ByteSink  ByteSource

Modules:
    - machine.py:   Interpreter, error kinds, bracket jump resolution
    - tape.py:      dict-backed signed-address byte tape
    - channels.py:  sink/source capabilities (buffer, queue, stream)
    - config.py:    MachineConfig value + MachineBuilder fluent setters
    - log_setup.py: rich console / file logging for host programs
"""

__version__ = "0.1.0"

from typing import Optional, Union

from .tape import Tape, DEFAULT_MEMORY_VALUE
from .channels import (
    ByteSink, ByteSource, BufferSink, StreamSink, QueueSource, StreamSource,
)
from .machine import (
    Interpreter, MachineError, AlreadyTerminated, MalformedJump, IoFailure,
    StepLimitExceeded, DEFAULT_INPUT_VALUE, COMMANDS,
)
from .config import MachineConfig, MachineBuilder


def run_source(program: str, input_data: Union[bytes, str] = b"", *,
               max_steps: Optional[int] = None) -> bytes:
    """Run a program to completion against in-memory I/O.

    Args:
        program: program text.
        input_data: bytes served to ',' one at a time; once exhausted
            ',' stores DEFAULT_INPUT_VALUE.
        max_steps: optional step budget (StepLimitExceeded when hit).

    Returns:
        Everything the program wrote with '.'.
    """
    sink = BufferSink()
    vm = Interpreter(program, sink=sink, source=QueueSource(input_data))
    vm.run(max_steps=max_steps)
    return sink.getvalue()
