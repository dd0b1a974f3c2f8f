"""
W8 Emulator: Interactive Debug Shell

Line-oriented command loop over a W8Emulator. Every command has a long
and a one-letter form. Output goes to self.stdout so the shell can be
driven from tests with io.StringIO.

Errors are never fatal to the session:
  - unknown command        -> usage hint
  - bad numeric argument   -> CommandParseError, reported
  - MemoryFault            -> reported; a faulting step also halts the machine
"""

import cmd
import logging
from typing import List

from .config import PROMPT, NUM_REGISTERS
from .disasm import disassemble
from .emu import W8Emulator, StopReason
from .mem.memory import MemoryFault

logger = logging.getLogger(__name__)


HELP_MESSAGE = """\
h|help             -> show this help message
s|step `n`         -> step program forward `n` steps (default: 1)
r|regs             -> show current register values
m|mem `addr` `n`   -> show `n` words starting at address `addr` (default: 0 1)
p|pc               -> display current program counter
i|ins `n`          -> disassemble `n` instructions starting at pc (default: 1)
c|count            -> show number of instructions executed
g|run `max`        -> run until halt, breakpoint or `max` instructions
b|break `addr`     -> set a breakpoint at `addr` (no argument: list them)
d|delete `addr`    -> remove the breakpoint at `addr`
q|quit             -> close debugger"""

UNRECOGNIZED = "Unrecognized command. Use `help` for usage."


class CommandParseError(Exception):
    """Unknown command or malformed/missing argument."""
    pass


def _parse_int(text: str, name: str) -> int:
    """Non-negative integer argument, decimal or 0x hex."""
    try:
        value = int(text, 0)
    except ValueError:
        raise CommandParseError(f"Invalid {name}: '{text}'") from None
    if value < 0:
        raise CommandParseError(f"Invalid {name}: '{text}' must not be negative")
    return value


def _args(arg: str, max_count: int) -> List[str]:
    parts = arg.split()
    if len(parts) > max_count:
        raise CommandParseError(f"Too many arguments: '{arg}'")
    return parts


# ══════════════════════════════════════════════
# Rendering (pure functions over engine observers)
# ══════════════════════════════════════════════

def format_registers(emu: W8Emulator) -> str:
    return '\n'.join(f"R{i}: {emu.read_register(i)}"
                     for i in range(NUM_REGISTERS))


def format_memory(words: List[int]) -> str:
    return ' '.join(f'{w:08X}' for w in words)


def format_instructions(emu: W8Emulator, count: int) -> str:
    return '\n'.join(disassemble(emu.peek_instructions(count)))


class DebugShell(cmd.Cmd):
    """Debugger command loop."""

    intro = "W8 debugger. Type `help` for commands."
    prompt = PROMPT

    def __init__(self, emu: W8Emulator, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.emu = emu

    def _print(self, text: str = ""):
        self.stdout.write(text + "\n")

    def onecmd(self, line: str) -> bool:
        try:
            return bool(super().onecmd(line))
        except CommandParseError as e:
            self._print(f"Error: {e}")
        except MemoryFault as e:
            self._print(f"Fault: {e}")
            if self.emu.fault is e:
                self._print("Program has halted")
        return False

    # -- Commands --

    def do_help(self, arg):
        """Show the command summary."""
        self._print(HELP_MESSAGE)

    def do_step(self, arg):
        """Step N instructions: step [n]"""
        parts = _args(arg, 1)
        count = _parse_int(parts[0], "step count") if parts else 1
        if self.emu.step_n(count):
            self._print("Program has halted")

    def do_regs(self, arg):
        """Show register values."""
        _args(arg, 0)
        self._print(format_registers(self.emu))

    def do_mem(self, arg):
        """Show memory words: mem [addr] [n]"""
        parts = _args(arg, 2)
        addr = _parse_int(parts[0], "address") if parts else 0
        count = _parse_int(parts[1], "word count") if len(parts) > 1 else 1
        self._print(format_memory(self.emu.read_memory_range(addr, count)))

    def do_pc(self, arg):
        """Show the program counter."""
        _args(arg, 0)
        self._print(str(self.emu.read_pc()))

    def do_ins(self, arg):
        """Disassemble from pc: ins [n]"""
        parts = _args(arg, 1)
        count = _parse_int(parts[0], "instruction count") if parts else 1
        self._print(format_instructions(self.emu, count))

    def do_count(self, arg):
        """Show the executed-instruction count."""
        _args(arg, 0)
        self._print(str(self.emu.read_instruction_count()))

    def do_run(self, arg):
        """Run until halt/breakpoint/fault: run [max_steps]"""
        parts = _args(arg, 1)
        max_steps = _parse_int(parts[0], "step limit") if parts else None
        reason = self.emu.run(max_steps)
        if reason is StopReason.HALT:
            self._print("Program has halted")
        elif reason is StopReason.BREAK:
            self._print(f"Breakpoint at {self.emu.read_pc()}")
        elif reason is StopReason.FAULT:
            self._print(f"Fault: {self.emu.fault}")
            self._print("Program has halted")
        else:
            limit = self.emu.DEFAULT_MAX_STEPS if max_steps is None else max_steps
            self._print(f"Stopped after {limit} instructions at pc {self.emu.read_pc()}")

    def do_break(self, arg):
        """Set a breakpoint: break [addr]. No argument lists breakpoints."""
        parts = _args(arg, 1)
        if not parts:
            bps = self.emu.breakpoints
            self._print(' '.join(str(a) for a in bps) if bps else "No breakpoints")
            return
        addr = _parse_int(parts[0], "address")
        self.emu.add_breakpoint(addr)
        self._print(f"Breakpoint set at {addr}")

    def do_delete(self, arg):
        """Remove a breakpoint: delete addr"""
        parts = _args(arg, 1)
        if not parts:
            raise CommandParseError("delete needs an address")
        addr = _parse_int(parts[0], "address")
        self.emu.remove_breakpoint(addr)
        self._print(f"Breakpoint removed at {addr}")

    def do_quit(self, arg):
        """Exit the debugger."""
        return True

    def do_EOF(self, arg):
        self._print()
        return True

    # Short aliases
    do_h = do_help
    do_s = do_step
    do_r = do_regs
    do_m = do_mem
    do_p = do_pc
    do_i = do_ins
    do_c = do_count
    do_g = do_run
    do_b = do_break
    do_d = do_delete
    do_q = do_quit

    def default(self, line):
        """Unknown commands are reported, not fatal."""
        logger.debug("Unrecognized command: %r", line)
        self._print(UNRECOGNIZED)

    def emptyline(self):
        """Don't repeat the last command on empty input."""
        pass


def run_shell(emu: W8Emulator, stdin=None, stdout=None) -> int:
    """Run an interactive session until quit/EOF."""
    DebugShell(emu, stdin=stdin, stdout=stdout).cmdloop()
    return 0
