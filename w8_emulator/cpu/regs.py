"""
W8 Emulator: CPU Register Set

Register model:
  r0-r7  8 general-purpose 32-bit registers. None is hardwired to zero
         and none is reserved for the return address; JALR names its
         link register explicitly.
  PC     32-bit word index of the next instruction to fetch
  count  executed-instruction counter (monotonic, never wraps)
"""

from typing import List

from ..config import NUM_REGISTERS, WORD_MASK


class Registers:
    """W8 CPU register set."""

    __slots__ = ('_file', 'PC', 'count')

    def __init__(self):
        self._file: List[int] = [0] * NUM_REGISTERS
        self.PC: int = 0       # Program counter (word index)
        self.count: int = 0    # Instructions executed

    # --- General-purpose registers ---

    def read(self, index: int) -> int:
        """Read r<index>. Raises ValueError outside 0-7."""
        self._check(index)
        return self._file[index]

    def write(self, index: int, value: int):
        """Write r<index>, truncated to 32 bits."""
        self._check(index)
        self._file[index] = value & WORD_MASK

    def snapshot(self) -> List[int]:
        """Copy of all 8 register values."""
        return list(self._file)

    @staticmethod
    def _check(index: int):
        if not isinstance(index, int) or not 0 <= index < NUM_REGISTERS:
            raise ValueError(f"Register index out of range: {index!r}")

    # --- Display ---

    def display(self) -> str:
        """One-line register dump for the execution trace."""
        regs = ' '.join(f"r{i}={v:08X}" for i, v in enumerate(self._file))
        return f"PC={self.PC:04X} {regs} N={self.count}"
