"""
W8 Emulator: Main Emulator Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Word memory (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - ALU operations (cpu/alu.py)

Execution model, one instruction per step():
  1. Fetch the word at PC (MemoryFault if PC is outside memory)
  2. Decode it (total: every word is some instruction)
  3. Execute the handler: update registers, memory, PC
  4. Count the instruction

Machine states:
  RUNNING -> HALTED, one way. The transition happens on HALT or on a
  MemoryFault. Once HALTED every stepping call is a no-op.

A faulting step leaves registers, memory, PC and the counter exactly as
they were before it; only the halted flag and the fault record change.

Termination reasons for run():
  - HALT:     HALT executed (or machine already halted)
  - BREAK:    breakpoint address reached
  - TIMEOUT:  max_steps instructions executed
  - FAULT:    out-of-range fetch, load or store
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple, Union

from .config import DEFAULT_MAX_STEPS, WORD_MASK
from .cpu.regs import Registers
from .cpu.decoder import (
    Instruction, Add, Nor, Lw, Sw, Beq, Jalr, Halt, Noop, decode,
)
from .cpu import alu
from .mem.memory import Memory, MemoryFault
from .disasm import format_instruction
from . import loader

logger = logging.getLogger(__name__)


class StepOutcome(Enum):
    CONTINUED = 'CONTINUED'
    HALTED = 'HALTED'                  # HALT executed by this step
    ALREADY_HALTED = 'ALREADY_HALTED'


class StopReason(Enum):
    HALT = 'HALT'
    BREAK = 'BREAK'
    TIMEOUT = 'TIMEOUT'
    FAULT = 'FAULT'


class MachineState(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'


class W8Emulator:
    """W8 virtual machine.

    Usage:
        emu = W8Emulator.from_file('sum.img')
        reason = emu.run()
        print(emu.read_register(1), emu.read_instruction_count())
    """

    DEFAULT_MAX_STEPS = DEFAULT_MAX_STEPS

    def __init__(self, image: Iterable[int] = ()):
        self.regs = Registers()
        self.mem = Memory(image)      # ImageTooLarge propagates
        self.halted = False
        self.fault: Optional[MemoryFault] = None

        # Breakpoints: addresses where run() stops before executing
        self._breakpoints: Set[int] = set()

        # Instruction dispatch table: form -> handler
        self._dispatch = {
            Add:  self._op_add,
            Nor:  self._op_nor,
            Lw:   self._op_lw,
            Sw:   self._op_sw,
            Beq:  self._op_beq,
            Jalr: self._op_jalr,
            Halt: self._op_halt,
            Noop: self._op_noop,
        }

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'W8Emulator':
        """Build a machine from an image file (signed decimal, one per line)."""
        return cls(loader.load_image_file(path))

    @property
    def state(self) -> MachineState:
        return MachineState.HALTED if self.halted else MachineState.RUNNING

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> StepOutcome:
        """Execute one instruction.

        Raises MemoryFault on an out-of-range fetch, load or store. The
        machine is halted and the fault recorded before it propagates.
        """
        if self.halted:
            return StepOutcome.ALREADY_HALTED

        pc = self.regs.PC
        try:
            instr = decode(self.mem.read(pc, pc=pc))
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%d: %-20s %s", pc, format_instruction(instr),
                             self.regs.display())
            outcome = self._execute(instr)
        except MemoryFault as e:
            self.halted = True
            self.fault = e
            logger.warning("%s", e)
            raise

        self.regs.count += 1
        if outcome is StepOutcome.HALTED:
            logger.info("Machine halted at pc %d after %d instructions",
                        pc, self.regs.count)
        return outcome

    def step_n(self, count: int) -> bool:
        """Step up to count times, stopping at halt. Returns the halted flag."""
        for _ in range(count):
            if self.step() is not StepOutcome.CONTINUED:
                break
        return self.halted

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until halt, breakpoint, fault or max_steps instructions.

        The breakpoint at the starting PC is not checked, so calling run()
        again after a BREAK continues past it.
        """
        if max_steps is None:
            max_steps = self.DEFAULT_MAX_STEPS
        if self.halted:
            return StopReason.HALT

        for executed in range(max_steps):
            if executed and self.regs.PC in self._breakpoints:
                logger.info("Breakpoint hit at %d", self.regs.PC)
                return StopReason.BREAK
            try:
                outcome = self.step()
            except MemoryFault:
                return StopReason.FAULT
            if outcome is not StepOutcome.CONTINUED:
                return StopReason.HALT

        return StopReason.TIMEOUT

    def _execute(self, instr: Instruction) -> StepOutcome:
        return self._dispatch[type(instr)](instr)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Each handler sets PC itself. Handlers that can fault (LW, SW) do
    # the memory access before any register/PC update.

    def _advance(self):
        self.regs.PC = (self.regs.PC + 1) & WORD_MASK

    def _op_add(self, instr: Add) -> StepOutcome:
        r = self.regs
        r.write(instr.dst_reg, alu.add32(r.read(instr.reg_a), r.read(instr.reg_b)))
        self._advance()
        return StepOutcome.CONTINUED

    def _op_nor(self, instr: Nor) -> StepOutcome:
        r = self.regs
        r.write(instr.dst_reg, alu.nor32(r.read(instr.reg_a), r.read(instr.reg_b)))
        self._advance()
        return StepOutcome.CONTINUED

    def _op_lw(self, instr: Lw) -> StepOutcome:
        addr = alu.offset_address(self.regs.read(instr.reg_a), instr.offset)
        value = self.mem.read(addr, pc=self.regs.PC)
        self.regs.write(instr.reg_b, value)
        self._advance()
        return StepOutcome.CONTINUED

    def _op_sw(self, instr: Sw) -> StepOutcome:
        addr = alu.offset_address(self.regs.read(instr.reg_a), instr.offset)
        self.mem.write(addr, self.regs.read(instr.reg_b), pc=self.regs.PC)
        self._advance()
        return StepOutcome.CONTINUED

    def _op_beq(self, instr: Beq) -> StepOutcome:
        r = self.regs
        if r.read(instr.reg_a) == r.read(instr.reg_b):
            # Relative to the BEQ itself, no extra +1
            r.PC = alu.offset_address(r.PC, instr.offset)
        else:
            self._advance()
        return StepOutcome.CONTINUED

    def _op_jalr(self, instr: Jalr) -> StepOutcome:
        r = self.regs
        # Link is written before reg_a is read: with reg_a == reg_b the
        # jump target is the link value.
        r.write(instr.reg_b, r.PC + 1)
        r.PC = r.read(instr.reg_a)
        return StepOutcome.CONTINUED

    def _op_halt(self, instr: Halt) -> StepOutcome:
        self._advance()
        self.halted = True
        return StepOutcome.HALTED

    def _op_noop(self, instr: Noop) -> StepOutcome:
        self._advance()
        return StepOutcome.CONTINUED

    # ══════════════════════════════════════════════
    # Observers (no mutation)
    # ══════════════════════════════════════════════

    def read_register(self, index: int) -> int:
        return self.regs.read(index)

    def read_registers(self) -> List[int]:
        return self.regs.snapshot()

    def read_memory_range(self, start: int, length: int) -> List[int]:
        return self.mem.read_range(start, length)

    def read_pc(self) -> int:
        return self.regs.PC

    def read_instruction_count(self) -> int:
        return self.regs.count

    def peek_instructions(self, count: int) -> List[Tuple[int, Instruction]]:
        """Decode count words from PC onward without executing them."""
        pc = self.regs.PC
        words = self.mem.read_range(pc, count)
        return [(pc + i, decode(w)) for i, w in enumerate(words)]

    # ══════════════════════════════════════════════
    # Breakpoints
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    @property
    def breakpoints(self) -> List[int]:
        return sorted(self._breakpoints)
