#!/usr/bin/env python3
"""
w8kit - W8 Machine Toolkit
==========================

One CLI for everything:
    w8kit debug   - Interactive debugger on a program image
    w8kit run     - Run an image to completion and dump machine state
    w8kit asm     - Assemble W8 source to an image file
    w8kit disasm  - Disassemble an image file

Usage:
    python w8kit.py <command> [options]
    python w8kit.py --help
    python w8kit.py <command> --help

Examples:
    python w8kit.py asm sum.asm -o sum.img
    python w8kit.py run sum.img --max-steps 100000
    python w8kit.py debug sum.img
    python w8kit.py disasm sum.img --start 0 --count 8
"""

import argparse
import logging
import sys

from w8_emulator import __version__
from w8_emulator.config import LOG_FORMAT
from w8_emulator.assembler import Assembler, AssemblerError
from w8_emulator.debugger import run_shell, format_registers
from w8_emulator.disasm import disassemble_words
from w8_emulator.emu import W8Emulator, StopReason
from w8_emulator.loader import load_image_file, format_image
from w8_emulator.mem.memory import EmulatorError

logger = logging.getLogger("w8kit")


def _parse_int(s):
    """argparse type: non-negative decimal or 0x hex."""
    try:
        value = int(s, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{s}'") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: '{s}'")
    return value


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="w8kit",
        description="W8 Machine Toolkit: assemble, run, debug, disassemble",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  debug      Interactive debugger on a program image
  run        Run an image until halt and print machine state
  asm        Assemble W8 source to an image file
  disasm     Disassemble an image file
""",
    )
    parser.add_argument("--version", action="version", version=f"w8kit {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging (per-instruction trace)")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── debug ────────────────────────────────────────────────────────────
    p_dbg = sub.add_parser("debug", help="Interactive debugger")
    p_dbg.add_argument("image", help="Program image (signed decimal words, one per line)")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run image until halt")
    p_run.add_argument("image", help="Program image")
    p_run.add_argument("--max-steps", type=_parse_int, default=None,
                       help=f"Instruction limit (default: {W8Emulator.DEFAULT_MAX_STEPS})")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble W8 source to an image")
    p_asm.add_argument("input", help="Input .asm file")
    p_asm.add_argument("-o", "--output", help="Output image file (default: stdout)")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble an image")
    p_dis.add_argument("image", help="Program image")
    p_dis.add_argument("--start", type=_parse_int, default=0,
                       help="First word to disassemble (default: 0)")
    p_dis.add_argument("--count", type=_parse_int, default=None,
                       help="Number of words (default: rest of image)")

    # ── Parse and dispatch ───────────────────────────────────────────────
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format=LOG_FORMAT)

    if not args.command:
        parser.print_help()
        return 0

    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except (EmulatorError, OSError) as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

# ── debug ────────────────────────────────────────────────────────────────
def cmd_debug(args):
    emu = W8Emulator.from_file(args.image)
    return run_shell(emu)


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    emu = W8Emulator.from_file(args.image)
    reason = emu.run(args.max_steps)

    if reason is StopReason.FAULT:
        print(f"Fault: {emu.fault}")
    print(f"Stopped: {reason.value}")
    print(format_registers(emu))
    print(f"PC: {emu.read_pc()}")
    print(f"Instructions executed: {emu.read_instruction_count()}")
    return 0 if reason is StopReason.HALT else 1


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args):
    with open(args.input, "r", encoding="utf-8") as f:
        source = f.read()

    asm = Assembler()
    try:
        words = asm.assemble(source)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        return 1

    text = format_image(words)
    if not args.output:
        sys.stdout.write(text)
        return 0

    with open(args.output, "w", encoding="utf-8") as f:
        f.write(text)
    print(f"Assembled {len(words)} words -> {args.output}")
    return 0


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    words = load_image_file(args.image)
    end = len(words) if args.count is None else args.start + args.count
    for line in disassemble_words(words[args.start:end], base_addr=args.start):
        print(line)
    return 0


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND DISPATCH TABLE
# ═════════════════════════════════════════════════════════════════════════════

COMMANDS = {
    "debug": cmd_debug,
    "run": cmd_run,
    "asm": cmd_asm,
    "disasm": cmd_disasm,
}


if __name__ == "__main__":
    sys.exit(main())
