"""
W8 Emulator: ALU Operations

All arithmetic is on unsigned 32-bit words. Results wrap modulo 2^32;
there are no flags and no overflow faults on this machine.

Offsets in LW/SW/BEQ are 16-bit two's complement and are sign-extended
before being added to a base (register value or pc).
"""

from ..config import WORD_MASK, OFFSET_MASK


def add32(a: int, b: int) -> int:
    """Wrapping 32-bit add. 0xFFFFFFFF + 1 == 0."""
    return (a + b) & WORD_MASK


def nor32(a: int, b: int) -> int:
    """Bitwise NOT (a OR b), kept to 32 bits."""
    return ~(a | b) & WORD_MASK


def twos_complement_16(value: int) -> int:
    """Sign-extend the low 16 bits of value to a Python int (-32768..32767)."""
    value &= OFFSET_MASK
    return value - 0x10000 if value & 0x8000 else value


def offset_address(base: int, offset: int) -> int:
    """base + signed offset with 32-bit wraparound.

    Used for effective addresses (LW/SW) and taken branch targets (BEQ).
    """
    return (base + offset) & WORD_MASK


def to_signed32(value: int) -> int:
    """Reinterpret a 32-bit word as signed (image files store signed ints)."""
    value &= WORD_MASK
    return value - 0x100000000 if value & 0x80000000 else value
