"""
W8 Emulator: Word-Addressed Memory

Flat address space of MEMORY_SIZE cells, one 32-bit word each.
Legal addresses are [0, MEMORY_SIZE). Addresses are never wrapped or
aliased into range: anything outside raises MemoryFault so the engine
can halt cleanly instead of corrupting state.

The image is copied in once at construction, starting at address 0;
the rest of memory is zero.
"""

from typing import Iterable, List, Optional

from ..config import MEMORY_SIZE, WORD_MASK


class EmulatorError(Exception):
    """Base class for machine-level errors."""
    pass


class ImageTooLarge(EmulatorError):
    """Program image does not fit in memory."""
    def __init__(self, length: int, capacity: int = MEMORY_SIZE):
        self.length = length
        self.capacity = capacity
        super().__init__(
            f"Program image too large: {length} words > {capacity} word memory")


class MemoryFault(EmulatorError):
    """Access outside [0, MEMORY_SIZE).

    address is the first offending address; pc is the address of the
    instruction that caused it (None for debugger observer calls).
    """
    def __init__(self, address: int, pc: Optional[int] = None,
                 access: str = 'read'):
        self.address = address
        self.pc = pc
        self.access = access
        where = f" at pc {pc}" if pc is not None else ""
        super().__init__(
            f"Memory fault: {access} of address {address} "
            f"outside [0, {MEMORY_SIZE}){where}")


class Memory:
    """Fixed-size word memory with bounds-checked access."""

    def __init__(self, image: Iterable[int] = (), size: int = MEMORY_SIZE):
        self.size = size
        self._mem: List[int] = [0] * size
        self.load_image(image)

    # --- Bulk load ---

    def load_image(self, image: Iterable[int]) -> int:
        """Copy image words in from address 0. Returns the word count.

        Raises ImageTooLarge before touching memory if the image does
        not fit.
        """
        words = [w & WORD_MASK for w in image]
        if len(words) > self.size:
            raise ImageTooLarge(len(words), self.size)
        self._mem[:len(words)] = words
        return len(words)

    # --- Core read/write ---

    def in_range(self, addr: int) -> bool:
        return 0 <= addr < self.size

    def read(self, addr: int, pc: Optional[int] = None) -> int:
        """Read one word. Raises MemoryFault outside memory."""
        if not self.in_range(addr):
            raise MemoryFault(addr, pc, 'read')
        return self._mem[addr]

    def write(self, addr: int, value: int, pc: Optional[int] = None):
        """Write one word (truncated to 32 bits). Raises MemoryFault outside memory."""
        if not self.in_range(addr):
            raise MemoryFault(addr, pc, 'write')
        self._mem[addr] = value & WORD_MASK

    def read_range(self, start: int, length: int) -> List[int]:
        """Copy of length words starting at start.

        The whole window [start, start + length) must lie inside memory.
        """
        if length < 0:
            raise ValueError(f"Negative length: {length}")
        if start < 0 or start + length > self.size:
            raise MemoryFault(start if not self.in_range(start) else self.size)
        return self._mem[start:start + length]
