"""
bfvm - Sparse Memory Tape

The tape is unbounded in both directions. Cells are 8-bit and wrap:
incrementing 255 gives 0, decrementing 0 gives 255.

Storage is a plain dict keyed by signed cell address. Only cells that
have been written occupy an entry; every other address reads as
DEFAULT_MEMORY_VALUE. A program that walks a million cells to the left
and writes once costs one dict entry, not a million-byte array.
"""

from typing import Dict, List, Tuple


DEFAULT_MEMORY_VALUE = 0x00


class Tape:
    """Signed-address, byte-valued, sparse memory tape."""

    def __init__(self):
        self._cells: Dict[int, int] = {}

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        return self._cells.get(addr, DEFAULT_MEMORY_VALUE)

    def write(self, addr: int, value: int):
        """Store a value at addr, truncated to 8 bits."""
        self._cells[addr] = value & 0xFF

    def increment(self, addr: int) -> int:
        """Add one to the cell at addr (mod 256). Returns the new value."""
        value = (self.read(addr) + 1) & 0xFF
        self._cells[addr] = value
        return value

    def decrement(self, addr: int) -> int:
        """Subtract one from the cell at addr (mod 256). Returns the new value."""
        value = (self.read(addr) - 1) & 0xFF
        self._cells[addr] = value
        return value

    # --- Inspection ---

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, addr: int) -> bool:
        return addr in self._cells

    def snapshot(self) -> Dict[int, int]:
        """Copy of every touched cell, {addr: value}."""
        return dict(self._cells)

    def window(self, center: int, radius: int = 4) -> List[Tuple[int, int]]:
        """Return [(addr, value), ...] for center-radius .. center+radius.

        Untouched cells show as DEFAULT_MEMORY_VALUE. Reading through the
        window never allocates storage.
        """
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")
        return [(addr, self.read(addr))
                for addr in range(center - radius, center + radius + 1)]

    def __repr__(self) -> str:
        return f"Tape({len(self._cells)} cells)"
