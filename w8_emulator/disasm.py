"""
W8 Emulator: Disassembler

Renders decoded instructions for the debugger's `ins` command and for
`w8kit disasm`. Each line reads

    address: mnemonic operands : semantic description

e.g.   12: beq r1 r2 -3 : if r1 == r2 then pc <- pc - 3
"""

from typing import Iterable, List, Tuple

from .cpu.decoder import (
    Instruction, Add, Nor, Lw, Sw, Beq, Jalr, Halt, Noop, decode,
)


def format_operands(instr: Instruction) -> str:
    """Operand field text, assembler order. Empty for HALT/NOOP."""
    if isinstance(instr, (Add, Nor)):
        return f"r{instr.reg_a} r{instr.reg_b} r{instr.dst_reg}"
    if isinstance(instr, (Lw, Sw, Beq)):
        return f"r{instr.reg_a} r{instr.reg_b} {instr.offset}"
    if isinstance(instr, Jalr):
        return f"r{instr.reg_a} r{instr.reg_b}"
    return ""


def format_instruction(instr: Instruction) -> str:
    """'mnemonic operands'"""
    operands = format_operands(instr)
    return f"{instr.mnemonic} {operands}" if operands else instr.mnemonic


def _signed(offset: int) -> str:
    """'+ 3' or '- 3' for an offset term."""
    return f"- {-offset}" if offset < 0 else f"+ {offset}"


def describe(instr: Instruction) -> str:
    """What the instruction does, in register-transfer notation."""
    if isinstance(instr, Add):
        return f"r{instr.dst_reg} <- r{instr.reg_a} + r{instr.reg_b}"
    if isinstance(instr, Nor):
        return f"r{instr.dst_reg} <- ~(r{instr.reg_a} | r{instr.reg_b})"
    if isinstance(instr, Lw):
        return f"r{instr.reg_b} <- mem[r{instr.reg_a} {_signed(instr.offset)}]"
    if isinstance(instr, Sw):
        return f"mem[r{instr.reg_a} {_signed(instr.offset)}] <- r{instr.reg_b}"
    if isinstance(instr, Beq):
        return (f"if r{instr.reg_a} == r{instr.reg_b} "
                f"then pc <- pc {_signed(instr.offset)}")
    if isinstance(instr, Jalr):
        return f"r{instr.reg_b} <- pc + 1; pc <- r{instr.reg_a}"
    if isinstance(instr, Halt):
        return "halt the machine"
    if isinstance(instr, Noop):
        return "do nothing"
    raise TypeError(f"Not an instruction: {instr!r}")


def format_line(address: int, instr: Instruction) -> str:
    return f"{address}: {format_instruction(instr)} : {describe(instr)}"


def disassemble(pairs: Iterable[Tuple[int, Instruction]]) -> List[str]:
    """Render (address, instruction) pairs, e.g. from peek_instructions()."""
    return [format_line(addr, instr) for addr, instr in pairs]


def disassemble_words(words: Iterable[int], base_addr: int = 0) -> List[str]:
    """Decode and render raw image words starting at base_addr."""
    return disassemble(
        (base_addr + i, decode(word)) for i, word in enumerate(words))
