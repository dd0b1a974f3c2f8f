"""
W8 Emulator
===========
Emulator, assembler and debugger for the W8 machine: 8 general-purpose
32-bit registers, 65536 words of memory, 8 instruction forms.

Architecture:
    ┌───────────┐    ┌──────────┐    ┌──────────┐    ┌──────────────┐
    │ .asm text │───>│Assembler │───>│  Image   │───>│  W8Emulator  │
    └───────────┘    └──────────┘    │ (words)  │    │ regs + mem   │
                                     └──────────┘    └──────┬───────┘
                                                            │ step()
                                      decode(word) <────────┘
                                      DebugShell / w8kit render state

    - cpu/decoder.py: word <-> instruction dataclasses (total decode)
    - cpu/alu.py:     32-bit wrapping arithmetic, sign extension
    - cpu/regs.py:    r0-r7, PC, executed-instruction counter
    - mem/memory.py:  bounds-checked word memory, MemoryFault
    - emu.py:         fetch/decode/execute, run(), breakpoints
    - disasm.py:      'address: mnemonic operands : description' lines
    - loader.py:      image files (signed decimal per line)
    - assembler.py:   two-pass assembler
    - debugger.py:    interactive shell
"""

__version__ = "0.1.0"

from .cpu.decoder import (
    Instruction, Add, Nor, Lw, Sw, Beq, Jalr, Halt, Noop, decode, encode,
)
from .mem.memory import EmulatorError, ImageTooLarge, MemoryFault
from .emu import W8Emulator, StepOutcome, StopReason, MachineState
from .assembler import Assembler, AssemblerError, assemble
from .loader import parse_image, load_image_file, format_image
