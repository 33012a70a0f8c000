"""
bfvm - Machine configuration

A machine is fully described by its program and three optional
collaborators. MachineConfig is that description as a plain value;
MachineBuilder is the chained-setter way of making one.

    vm = (MachineBuilder(",[.,]")
          .source(QueueSource(b"hi"))
          .sink(BufferSink())
          .build())
"""

from dataclasses import dataclass, replace
from typing import Optional

from .channels import ByteSink, ByteSource
from .machine import Interpreter, IoErrorHandler


@dataclass(frozen=True)
class MachineConfig:
    program: str
    sink: Optional[ByteSink] = None
    source: Optional[ByteSource] = None
    on_io_error: Optional[IoErrorHandler] = None

    def build(self) -> Interpreter:
        return Interpreter.from_config(self)


class MachineBuilder:
    """Fluent MachineConfig construction. Each setter returns the builder."""

    def __init__(self, program: str):
        self._config = MachineConfig(program)

    def sink(self, sink: ByteSink) -> 'MachineBuilder':
        self._config = replace(self._config, sink=sink)
        return self

    def source(self, source: ByteSource) -> 'MachineBuilder':
        self._config = replace(self._config, source=source)
        return self

    def on_io_error(self, handler: IoErrorHandler) -> 'MachineBuilder':
        self._config = replace(self._config, on_io_error=handler)
        return self

    def config(self) -> MachineConfig:
        return self._config

    def build(self) -> Interpreter:
        return self._config.build()
