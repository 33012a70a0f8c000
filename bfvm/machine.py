"""
bfvm - Interpreter (the virtual machine)

Executes the eight-command tape language one symbol at a time:

    >   move the tape pointer right
    <   move the tape pointer left
    +   increment the current cell (wraps 255 -> 0)
    -   decrement the current cell (wraps 0 -> 255)
    .   write the current cell to the sink, then flush
    ,   poll the source; ready byte -> cell, otherwise cell = 0
    [   if the current cell is 0, jump past the matching ]
    ]   if the current cell is not 0, jump back past the matching [

Every other character is a comment.

Execution model (one step):
  1. Refuse if terminated (AlreadyTerminated, nothing mutated)
  2. Fetch the symbol at the instruction pointer
  3. Advance the instruction pointer by one
  4. Execute the symbol; brackets may move the pointer again
  5. Count the step, record trace line if tracing

Jump resolution is a linear, depth-counting scan from the bracket at
step time. No jump table is built. An unbalanced program is only noticed
when a jump actually has to be taken, and then surfaces as MalformedJump.

I/O is best-effort: a sink or source that raises does not stop the
machine. The failure is wrapped in IoFailure, logged, and handed to the
on_io_error callback when one is configured. A callback that re-raises
aborts the step.

Usage:
    from bfvm import Interpreter, BufferSink

    sink = BufferSink()
    vm = Interpreter("+++.", sink=sink)
    vm.run()
    assert sink.getvalue() == b"\\x03"
"""

import logging
import time
from typing import Callable, List, Optional

from .channels import ByteSink, ByteSource
from .tape import Tape

log = logging.getLogger(__name__)

DEFAULT_INPUT_VALUE = 0x00

COMMANDS = frozenset('><+-.,[]')


# ──────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────

class MachineError(Exception):
    """Base class for every error the interpreter reports."""


class AlreadyTerminated(MachineError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"Program has terminated (ip={position}) and cannot be stepped")


class MalformedJump(MachineError):
    def __init__(self, bracket: str, position: int):
        self.bracket = bracket
        self.position = position
        direction = 'forward' if bracket == '[' else 'backward'
        super().__init__(
            f"No match for '{bracket}' at position {position} "
            f"({direction} scan ran off the program)")


class IoFailure(MachineError):
    def __init__(self, operation: str, position: int, error: BaseException):
        self.operation = operation  # 'write' or 'read'
        self.position = position
        self.error = error
        super().__init__(
            f"I/O {operation} failed at position {position}: {error}")


class StepLimitExceeded(MachineError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Step limit of {limit} reached before termination")


IoErrorHandler = Callable[[IoFailure], None]


# ──────────────────────────────────────────────
# Interpreter
# ──────────────────────────────────────────────

class Interpreter:
    """Single-program, single-tape interpreter.

    The program is fixed at construction. There is no reset: build a new
    Interpreter to run again.
    """

    def __init__(self, program: str,
                 sink: Optional[ByteSink] = None,
                 source: Optional[ByteSource] = None,
                 on_io_error: Optional[IoErrorHandler] = None):
        if not isinstance(program, str):
            raise TypeError(
                f"program must be str, got {type(program).__name__}")
        self._program = program
        self._sink = sink
        self._source = source
        self._on_io_error = on_io_error

        self._ip = 0
        self._ptr = 0
        self.tape = Tape()
        self.steps = 0

        self._trace = False
        self._trace_output: List[str] = []

        if log.isEnabledFor(logging.DEBUG):
            log.debug("Interpreter created: %d symbols (%d commands), sink=%s, source=%s",
                      len(program), sum(1 for c in program if c in COMMANDS),
                      type(sink).__name__ if sink else None,
                      type(source).__name__ if source else None)

    @classmethod
    def from_config(cls, config) -> 'Interpreter':
        """Build from a MachineConfig."""
        return cls(config.program, sink=config.sink, source=config.source,
                   on_io_error=config.on_io_error)

    @staticmethod
    def builder(program: str):
        """Fluent construction: Interpreter.builder(p).sink(s).build()."""
        from .config import MachineBuilder
        return MachineBuilder(program)

    # ══════════════════════════════════════════════
    # State
    # ══════════════════════════════════════════════

    @property
    def program(self) -> str:
        return self._program

    @property
    def instruction_pointer(self) -> int:
        return self._ip

    @property
    def tape_pointer(self) -> int:
        return self._ptr

    @property
    def current_cell(self) -> int:
        return self.tape.read(self._ptr)

    @property
    def sink(self) -> Optional[ByteSink]:
        return self._sink

    @property
    def source(self) -> Optional[ByteSource]:
        return self._source

    def terminated(self) -> bool:
        """True once the instruction pointer has run off the program end."""
        return self._ip == len(self._program)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self):
        """Execute exactly one instruction.

        Raises AlreadyTerminated if the machine has halted and
        MalformedJump if a bracket has no partner. Neither leaves a
        partial effect behind.
        """
        if self.terminated():
            raise AlreadyTerminated(self._ip)

        pc = self._ip
        symbol = self._program[pc]
        self._ip = pc + 1

        if symbol == '>':
            self._ptr += 1
        elif symbol == '<':
            self._ptr -= 1
        elif symbol == '+':
            self.tape.increment(self._ptr)
        elif symbol == '-':
            self.tape.decrement(self._ptr)
        elif symbol == '.':
            if self._sink is not None:
                self._write_output(pc)
        elif symbol == ',':
            if self._source is not None:
                self._read_input(pc)
        elif symbol == '[':
            if self.tape.read(self._ptr) == 0:
                self._jump_forward(pc)
        elif symbol == ']':
            if self.tape.read(self._ptr) != 0:
                self._jump_backward(pc)

        self.steps += 1

        if self._trace:
            self._trace_output.append(
                f"{self.steps:6d}  ip={pc:<5d} {symbol!r:5s} "
                f"ptr={self._ptr:<5d} cell={self.tape.read(self._ptr):3d}")

        if self.terminated():
            log.debug("Program terminated after %d steps", self.steps)

    def run(self, delay: Optional[float] = None,
            max_steps: Optional[int] = None):
        """Step until terminated.

        Args:
            delay: seconds to sleep between successive steps (paced mode).
                None runs flat out with no suspension.
            max_steps: cap on steps executed by this call; StepLimitExceeded
                is raised when it is hit before termination. The machine
                stays consistent and can be run again.
        """
        if delay is not None and delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        if max_steps is not None and max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps}")

        executed = 0
        while not self.terminated():
            if max_steps is not None and executed >= max_steps:
                raise StepLimitExceeded(max_steps)
            self.step()
            executed += 1
            if delay is not None and not self.terminated():
                time.sleep(delay)

    # ══════════════════════════════════════════════
    # Jump resolution
    # ══════════════════════════════════════════════

    def _jump_forward(self, pc: int):
        """Move ip one past the ']' that closes the '[' at pc."""
        depth = 1
        i = pc + 1
        program = self._program
        while i < len(program):
            c = program[i]
            if c == '[':
                depth += 1
            elif c == ']':
                depth -= 1
                if depth == 0:
                    self._ip = i + 1
                    return
            i += 1
        self._ip = pc
        raise MalformedJump('[', pc)

    def _jump_backward(self, pc: int):
        """Move ip one past the '[' that opens the ']' at pc."""
        depth = 1
        i = pc - 1
        program = self._program
        while i >= 0:
            c = program[i]
            if c == ']':
                depth += 1
            elif c == '[':
                depth -= 1
                if depth == 0:
                    self._ip = i + 1
                    return
            i -= 1
        self._ip = pc
        raise MalformedJump(']', pc)

    # ══════════════════════════════════════════════
    # I/O
    # ══════════════════════════════════════════════

    def _write_output(self, pc: int):
        try:
            self._sink.write_byte(self.tape.read(self._ptr))
        except Exception as e:
            self._report_io_failure(IoFailure('write', pc, e), e)

    def _read_input(self, pc: int):
        try:
            value = self._source.poll()
        except Exception as e:
            self._report_io_failure(IoFailure('read', pc, e), e)
            return
        if value is None:
            value = DEFAULT_INPUT_VALUE
        self.tape.write(self._ptr, value)

    def _report_io_failure(self, failure: IoFailure, cause: BaseException):
        failure.__cause__ = cause
        log.warning("%s", failure)
        if self._on_io_error is not None:
            self._on_io_error(failure)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed step."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def __repr__(self) -> str:
        return (f"Interpreter(ip={self._ip}/{len(self._program)}, "
                f"ptr={self._ptr}, steps={self.steps})")
