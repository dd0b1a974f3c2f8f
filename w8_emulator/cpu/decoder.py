"""
W8 Emulator: Instruction Decoder

Maps a 32-bit instruction word to one of 8 instruction forms.

Word layout:
  bits 24-22  opcode
  bits 21-19  reg_a
  bits 18-16  reg_b
  bits 15-0   offset (signed 16-bit)      LW / SW / BEQ
  bits 2-0    dst_reg                      ADD / NOR

Formats:
  R  (ADD, NOR)        reg_a, reg_b, dst_reg
  I  (LW, SW, BEQ)     reg_a, reg_b, offset
  J  (JALR)            reg_a, reg_b
  O  (HALT, NOOP)      no operands

decode() is total: every 32-bit word maps to a defined form, and the
3-bit field masks guarantee valid register indices. Bits outside the
fields a form uses are ignored.
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Type

from ..config import (
    WORD_MASK, OPCODE_SHIFT, REG_A_SHIFT, REG_B_SHIFT, FIELD_MASK,
    OFFSET_MASK, OFFSET_MIN, OFFSET_MAX, NUM_REGISTERS,
)
from .alu import twos_complement_16


# ──────────────────────────────────────────────
# Opcode values
# ──────────────────────────────────────────────

OP_ADD  = 0b000
OP_NOR  = 0b001
OP_LW   = 0b010
OP_SW   = 0b011
OP_BEQ  = 0b100
OP_JALR = 0b101
OP_HALT = 0b110
OP_NOOP = 0b111


# ──────────────────────────────────────────────
# Instruction forms
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """Base of the 8 instruction forms."""
    mnemonic: ClassVar[str] = ''
    opcode: ClassVar[int] = -1


@dataclass(frozen=True)
class Add(Instruction):
    reg_a: int
    reg_b: int
    dst_reg: int
    mnemonic: ClassVar[str] = 'add'
    opcode: ClassVar[int] = OP_ADD


@dataclass(frozen=True)
class Nor(Instruction):
    reg_a: int
    reg_b: int
    dst_reg: int
    mnemonic: ClassVar[str] = 'nor'
    opcode: ClassVar[int] = OP_NOR


@dataclass(frozen=True)
class Lw(Instruction):
    reg_a: int
    reg_b: int
    offset: int
    mnemonic: ClassVar[str] = 'lw'
    opcode: ClassVar[int] = OP_LW


@dataclass(frozen=True)
class Sw(Instruction):
    reg_a: int
    reg_b: int
    offset: int
    mnemonic: ClassVar[str] = 'sw'
    opcode: ClassVar[int] = OP_SW


@dataclass(frozen=True)
class Beq(Instruction):
    reg_a: int
    reg_b: int
    offset: int
    mnemonic: ClassVar[str] = 'beq'
    opcode: ClassVar[int] = OP_BEQ


@dataclass(frozen=True)
class Jalr(Instruction):
    reg_a: int
    reg_b: int
    mnemonic: ClassVar[str] = 'jalr'
    opcode: ClassVar[int] = OP_JALR


@dataclass(frozen=True)
class Halt(Instruction):
    mnemonic: ClassVar[str] = 'halt'
    opcode: ClassVar[int] = OP_HALT


@dataclass(frozen=True)
class Noop(Instruction):
    mnemonic: ClassVar[str] = 'noop'
    opcode: ClassVar[int] = OP_NOOP


R_FORMS = (Add, Nor)
I_FORMS = (Lw, Sw, Beq)

# opcode -> form, and mnemonic -> form (used by the assembler)
FORMS: Dict[int, Type[Instruction]] = {
    cls.opcode: cls for cls in (Add, Nor, Lw, Sw, Beq, Jalr, Halt, Noop)
}
MNEMONICS: Dict[str, Type[Instruction]] = {
    cls.mnemonic: cls for cls in FORMS.values()
}


# ──────────────────────────────────────────────
# Field extraction
# ──────────────────────────────────────────────

def _reg(word: int, shift: int) -> int:
    return (word >> shift) & FIELD_MASK


def parse_r(word: int) -> tuple:
    """R format -> (reg_a, reg_b, dst_reg)"""
    return _reg(word, REG_A_SHIFT), _reg(word, REG_B_SHIFT), word & FIELD_MASK


def parse_i(word: int) -> tuple:
    """I format -> (reg_a, reg_b, signed offset)"""
    return (_reg(word, REG_A_SHIFT), _reg(word, REG_B_SHIFT),
            twos_complement_16(word & OFFSET_MASK))


def parse_j(word: int) -> tuple:
    """J format -> (reg_a, reg_b)"""
    return _reg(word, REG_A_SHIFT), _reg(word, REG_B_SHIFT)


def decode(word: int) -> Instruction:
    """Decode one instruction word. Never raises."""
    word &= WORD_MASK
    form = FORMS[(word >> OPCODE_SHIFT) & FIELD_MASK]

    if form in R_FORMS:
        return form(*parse_r(word))
    if form in I_FORMS:
        return form(*parse_i(word))
    if form is Jalr:
        return form(*parse_j(word))
    return form()


# ──────────────────────────────────────────────
# Encoding (inverse of decode, used by the assembler)
# ──────────────────────────────────────────────

def _check_reg(value: int) -> int:
    if not 0 <= value < NUM_REGISTERS:
        raise ValueError(f"Register index out of range: {value}")
    return value


def encode(instr: Instruction) -> int:
    """Encode an instruction value to its 32-bit word.

    Raises ValueError for register indices outside 0-7 or offsets that
    do not fit in a signed 16-bit field.
    """
    word = instr.opcode << OPCODE_SHIFT

    if isinstance(instr, R_FORMS):
        word |= _check_reg(instr.reg_a) << REG_A_SHIFT
        word |= _check_reg(instr.reg_b) << REG_B_SHIFT
        word |= _check_reg(instr.dst_reg)
    elif isinstance(instr, I_FORMS):
        if not OFFSET_MIN <= instr.offset <= OFFSET_MAX:
            raise ValueError(f"Offset out of 16-bit range: {instr.offset}")
        word |= _check_reg(instr.reg_a) << REG_A_SHIFT
        word |= _check_reg(instr.reg_b) << REG_B_SHIFT
        word |= instr.offset & OFFSET_MASK
    elif isinstance(instr, Jalr):
        word |= _check_reg(instr.reg_a) << REG_A_SHIFT
        word |= _check_reg(instr.reg_b) << REG_B_SHIFT

    return word
