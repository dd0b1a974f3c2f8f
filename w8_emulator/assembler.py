"""
Two-Pass Assembler for the W8 machine.

Input:  Assembly text
Output: List of 32-bit image words (write with loader.format_image)

Line syntax:
    [label:] mnemonic operands      ; comment   (# also starts a comment)

Mnemonics (case-insensitive):
    add  rA, rB, rDst        rDst <- rA + rB
    nor  rA, rB, rDst        rDst <- ~(rA | rB)
    lw   rA, rB, off|label   rB <- mem[rA + off]
    sw   rA, rB, off|label   mem[rA + off] <- rB
    beq  rA, rB, off|label   if rA == rB: pc <- pc + off
    jalr rA, rB              rB <- pc + 1; pc <- rA
    halt
    noop
    .fill value|label        raw data word

Registers are r0-r7 (or bare 0-7). Operands may be separated by commas,
whitespace, or both. Numbers are decimal or 0x-prefixed hex.

Label resolution:
  lw/sw/.fill  a label is its absolute address
  beq          a label becomes label - address_of_beq, since the branch
               is relative to the BEQ itself

How the two passes work:
  Pass 1: every non-empty statement occupies exactly one word, so label
          addresses are just statement indices.
  Pass 2: encode each statement with the completed symbol table.
Errors are collected per pass and raised together.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import WORD_MASK, OFFSET_MIN, OFFSET_MAX, NUM_REGISTERS
from .cpu.decoder import (
    MNEMONICS, R_FORMS, I_FORMS, Beq, Jalr, encode,
)

__all__ = ['Assembler', 'AssemblerError', 'assemble']


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


FILL = '.fill'
FILL_MIN = -(1 << 31)       # .fill accepts signed or unsigned 32-bit values

_LABEL_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_REG_RE = re.compile(r'^[rR]?([0-9]+)$')


@dataclass
class AsmLine:
    """Parsed assembly source line."""
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operands: tuple = ()
    line_num: int = 0
    raw: str = ""


def _parse_line(line: str, line_num: int) -> AsmLine:
    """Split one line into label, mnemonic and operand tokens."""
    result = AsmLine(line_num=line_num, raw=line)

    # Strip comment
    text = re.split(r'[;#]', line, maxsplit=1)[0].strip()
    if not text:
        return result

    if ':' in text:
        label, text = text.split(':', 1)
        label = label.strip()
        if not _LABEL_RE.match(label):
            raise AssemblerError(f"Invalid label: '{label}'", line_num, line)
        result.label = label
        text = text.strip()
        if not text:
            return result

    tokens = [t for t in re.split(r'[,\s]+', text) if t]
    result.mnemonic = tokens[0].lower()
    result.operands = tuple(tokens[1:])
    return result


def _parse_register(text: str, line_num: int) -> int:
    m = _REG_RE.match(text)
    if not m or int(m.group(1)) >= NUM_REGISTERS:
        raise AssemblerError(f"Invalid register: '{text}'", line_num)
    return int(m.group(1))


def _parse_value(text: str, symbols: Dict[str, int], line_num: int) -> int:
    """Parse a number or symbol. Supports 123, -5, 0x1F, LABEL."""
    try:
        return int(text, 0)
    except ValueError:
        pass
    if text in symbols:
        return symbols[text]
    raise AssemblerError(f"Undefined symbol: '{text}'", line_num)


# Operand count per mnemonic
_ARITY = {cls.mnemonic: 3 for cls in R_FORMS + I_FORMS}
_ARITY.update({Jalr.mnemonic: 2, 'halt': 0, 'noop': 0, FILL: 1})


class Assembler:
    """Two-pass W8 assembler.

    Usage:
        asm = Assembler()
        words = asm.assemble(source_text)
    """

    def __init__(self):
        self.symbols: Dict[str, int] = {}    # label -> address
        self.words: List[int] = []           # assembled image
        self.errors: List[str] = []
        self._lines: List[AsmLine] = []

    def assemble(self, source: str) -> List[int]:
        """Assemble source text into image words."""
        self.symbols = {}
        self.words = []
        self.errors = []
        self._lines = []

        for i, line in enumerate(source.split('\n'), 1):
            try:
                self._lines.append(_parse_line(line, i))
            except AssemblerError as e:
                self.errors.append(str(e))

        self._pass1()
        if self.errors:
            raise AssemblerError("Pass 1 errors:\n" + "\n".join(self.errors))

        self._pass2()
        if self.errors:
            raise AssemblerError("Pass 2 errors:\n" + "\n".join(self.errors))

        return self.words

    def _pass1(self):
        """Assign addresses to labels and check operand counts."""
        pc = 0
        for line in self._lines:
            if line.label:
                if line.label in self.symbols:
                    self.errors.append(
                        f"Line {line.line_num}: Duplicate label '{line.label}'")
                else:
                    self.symbols[line.label] = pc
            if line.mnemonic is None:
                continue
            arity = _ARITY.get(line.mnemonic)
            if arity is None:
                self.errors.append(
                    f"Line {line.line_num}: Unknown mnemonic: {line.mnemonic}")
            elif len(line.operands) != arity:
                self.errors.append(
                    f"Line {line.line_num}: {line.mnemonic} takes {arity} "
                    f"operand(s), got {len(line.operands)}")
            pc += 1

    def _pass2(self):
        """Encode every statement."""
        pc = 0
        for line in self._lines:
            if line.mnemonic is None:
                continue
            try:
                self.words.append(self._encode_line(line, pc))
            except AssemblerError as e:
                self.errors.append(str(e))
            pc += 1

    def _encode_line(self, line: AsmLine, pc: int) -> int:
        mnem, ops, n = line.mnemonic, line.operands, line.line_num

        if mnem == FILL:
            value = _parse_value(ops[0], self.symbols, n)
            if not FILL_MIN <= value <= WORD_MASK:
                raise AssemblerError(
                    f".fill value {value} does not fit in 32 bits", n)
            return value & WORD_MASK

        form = MNEMONICS[mnem]
        regs = [_parse_register(op, n) for op in ops[:2]]

        if form in R_FORMS:
            return encode(form(regs[0], regs[1], _parse_register(ops[2], n)))

        if form in I_FORMS:
            offset = _parse_value(ops[2], self.symbols, n)
            if form is Beq and ops[2] in self.symbols:
                offset -= pc
            if not OFFSET_MIN <= offset <= OFFSET_MAX:
                raise AssemblerError(
                    f"Offset {offset} does not fit in 16 bits", n)
            return encode(form(regs[0], regs[1], offset))

        if form is Jalr:
            return encode(form(regs[0], regs[1]))

        return encode(form())


def assemble(source: str) -> List[int]:
    """Assemble source text, return image words."""
    return Assembler().assemble(source)
