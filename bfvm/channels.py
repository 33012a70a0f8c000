"""
bfvm - Byte Sink / Byte Source Channels

The machine talks to the outside world through two optional capabilities:

  ByteSink    write_byte(value)  - write one byte, then flush
  ByteSource  poll()             - one byte if ready, else None. Never blocks.

Anything with the right method works (duck typed). This module ships the
implementations the CLI and the tests use:

  BufferSink    - bytes land in tx_buffer for programmatic inspection
  StreamSink    - binary file-like object (sys.stdout.buffer, BytesIO, ...)
  QueueSource   - bytes pushed with inject() come out one per poll()
  StreamSource  - binary file-like object, polled without blocking

Simplifications:
  - No buffering beyond what the wrapped stream does; every byte is flushed
  - A source at EOF simply reports "not ready" forever
"""

import io
import os
import select
from collections import deque
from typing import Optional, Protocol, Union


class ByteSink(Protocol):
    def write_byte(self, value: int) -> None:
        ...


class ByteSource(Protocol):
    def poll(self) -> Optional[int]:
        ...


BytesLike = Union[bytes, bytearray, str]


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        return data.encode('latin-1')
    return bytes(data)


# ──────────────────────────────────────────────
# Sinks
# ──────────────────────────────────────────────

class BufferSink:
    """Collects every written byte in tx_buffer."""

    def __init__(self):
        self.tx_buffer: bytearray = bytearray()
        self.flushes = 0

    def write_byte(self, value: int):
        self.tx_buffer.append(value & 0xFF)
        self.flush()

    def flush(self):
        self.flushes += 1

    def getvalue(self) -> bytes:
        return bytes(self.tx_buffer)

    def reset(self):
        self.tx_buffer.clear()
        self.flushes = 0


class StreamSink:
    """Writes each byte to a binary stream and flushes immediately.

    Errors from the stream (OSError, ValueError on a closed file) are
    left to propagate; the machine turns them into IoFailure reports.
    """

    def __init__(self, stream):
        self.stream = stream

    def write_byte(self, value: int):
        self.stream.write(bytes([value & 0xFF]))
        self.stream.flush()


# ──────────────────────────────────────────────
# Sources
# ──────────────────────────────────────────────

class QueueSource:
    """In-memory source. Push bytes in, they come out one per poll()."""

    def __init__(self, data: BytesLike = b""):
        self._rx_queue: deque = deque(_as_bytes(data))

    def inject(self, data: BytesLike):
        """Append bytes to the receive queue."""
        self._rx_queue.extend(_as_bytes(data))

    def poll(self) -> Optional[int]:
        if self._rx_queue:
            return self._rx_queue.popleft()
        return None

    @property
    def pending(self) -> int:
        return len(self._rx_queue)


class StreamSource:
    """Non-blocking reader over a binary stream.

    Streams backed by an OS file descriptor (stdin, pipes, sockets made
    into files) are checked with a zero-timeout select() before reading,
    so an idle terminal never stalls the machine. In-memory streams
    (BytesIO) have no descriptor and are read directly; read(1) on them
    cannot block.
    """

    def __init__(self, stream):
        self.stream = stream
        self.eof = False
        try:
            self._fd: Optional[int] = stream.fileno()
        except (AttributeError, io.UnsupportedOperation):
            self._fd = None

    def _ready(self) -> bool:
        if self._fd is None:
            return True
        readable, _, _ = select.select([self._fd], [], [], 0)
        return bool(readable)

    def poll(self) -> Optional[int]:
        if self.eof or not self._ready():
            return None
        if self._fd is not None:
            # straight to the descriptor; a buffered read could sit on
            # bytes that select() cannot see
            chunk = os.read(self._fd, 1)
        else:
            chunk = self.stream.read(1)
        if not chunk:
            self.eof = True
            return None
        return chunk[0]
