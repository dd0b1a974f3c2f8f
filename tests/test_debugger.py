"""
W8 Emulator: Debug Shell Tests

Drives DebugShell one command at a time with output captured in a
StringIO, the same way an interactive session would.
"""

import io

import pytest

from programs import SUM_PROGRAM
from w8_emulator.debugger import (
    DebugShell, HELP_MESSAGE, UNRECOGNIZED, format_memory, run_shell,
)
from w8_emulator.emu import W8Emulator

# lw r0 r1 2 / jalr r1 r0 / .fill 70000: the third fetch is out of range
JUMP_OUT = [0x00810002, 0x01480000, 70000]


class Session:
    """A shell plus the text it printed since the last command."""

    def __init__(self, program):
        self.emu = W8Emulator(program)
        self.out = io.StringIO()
        self.shell = DebugShell(self.emu, stdout=self.out)

    def __call__(self, line):
        self.out.seek(0)
        self.out.truncate()
        stop = self.shell.onecmd(line)
        return self.out.getvalue(), stop


@pytest.fixture
def sh():
    return Session(SUM_PROGRAM)


def _out(sh, line):
    text, stop = sh(line)
    assert not stop
    return text


# ─── Inspection ─────────────────────

class TestInspect:

    def test_help(self, sh):
        assert _out(sh, "help") == HELP_MESSAGE + "\n"
        assert _out(sh, "h") == HELP_MESSAGE + "\n"

    def test_regs_initial(self, sh):
        expected = "\n".join(f"R{i}: 0" for i in range(8)) + "\n"
        assert _out(sh, "regs") == expected
        assert _out(sh, "r") == expected

    def test_mem_default_is_one_word_at_zero(self, sh):
        assert _out(sh, "m") == "00810005\n"

    def test_mem_range(self, sh):
        assert _out(sh, "mem 5 2") == "00000007 00000023\n"
        assert _out(sh, "m 0x0 2") == "00810005 00820006\n"

    def test_pc_and_count(self, sh):
        assert _out(sh, "p") == "0\n"
        assert _out(sh, "c") == "0\n"

    def test_ins(self, sh):
        assert _out(sh, "i") == "0: lw r0 r1 5 : r1 <- mem[r0 + 5]\n"
        lines = _out(sh, "ins 3").splitlines()
        assert lines[2] == "2: add r1 r2 r3 : r3 <- r1 + r2"

    def test_format_memory_negative_word(self):
        assert format_memory([0xFFFFFFFF, 10]) == "FFFFFFFF 0000000A"


# ─── Stepping ─────────────────────

class TestStep:

    def test_step_default_one(self, sh):
        assert _out(sh, "s") == ""
        assert _out(sh, "p") == "1\n"
        assert "R1: 7" in _out(sh, "r")

    def test_step_n(self, sh):
        _out(sh, "step 3")
        assert "R3: 42" in _out(sh, "r")
        assert _out(sh, "c") == "3\n"
        assert _out(sh, "i") == "3: sw r0 r3 7 : mem[r0 + 7] <- r3\n"

    def test_step_past_halt(self, sh):
        assert _out(sh, "s 10") == "Program has halted\n"
        assert _out(sh, "c") == "5\n"
        assert _out(sh, "m 7") == "0000002A\n"
        # further steps do nothing
        assert _out(sh, "s") == "Program has halted\n"
        assert _out(sh, "c") == "5\n"

    def test_step_zero(self, sh):
        assert _out(sh, "s 0") == ""
        assert _out(sh, "p") == "0\n"


# ─── Run and breakpoints ─────────────────────

class TestRun:

    def test_run_to_halt(self, sh):
        assert _out(sh, "g") == "Program has halted\n"
        assert _out(sh, "m 7") == "0000002A\n"

    def test_run_limit(self, sh):
        assert _out(sh, "run 2") == "Stopped after 2 instructions at pc 2\n"

    def test_breakpoints(self, sh):
        assert _out(sh, "b") == "No breakpoints\n"
        assert _out(sh, "b 3") == "Breakpoint set at 3\n"
        assert _out(sh, "break 1") == "Breakpoint set at 1\n"
        assert _out(sh, "b") == "1 3\n"
        assert _out(sh, "g") == "Breakpoint at 1\n"
        assert _out(sh, "g") == "Breakpoint at 3\n"
        assert _out(sh, "c") == "3\n"
        assert _out(sh, "d 1") == "Breakpoint removed at 1\n"
        assert _out(sh, "b") == "3\n"
        assert _out(sh, "g") == "Program has halted\n"

    def test_run_fault(self):
        sh = Session(JUMP_OUT)
        text = _out(sh, "g")
        assert text.startswith("Fault: Memory fault: read of address 70000")
        assert text.endswith("Program has halted\n")


# ─── Errors ─────────────────────

class TestErrors:

    def test_unknown_command(self, sh):
        assert _out(sh, "frobnicate") == UNRECOGNIZED + "\n"

    def test_empty_line_does_nothing(self, sh):
        _out(sh, "s")
        assert _out(sh, "") == ""
        # the previous command is not repeated
        assert _out(sh, "p") == "1\n"

    def test_malformed_number(self, sh):
        assert _out(sh, "s abc") == "Error: Invalid step count: 'abc'\n"
        assert _out(sh, "p") == "0\n"

    def test_negative_number(self, sh):
        assert _out(sh, "m -1").startswith("Error: Invalid address")

    def test_too_many_arguments(self, sh):
        assert _out(sh, "r 1").startswith("Error: Too many arguments")
        assert _out(sh, "m 1 2 3").startswith("Error: Too many arguments")

    def test_delete_needs_address(self, sh):
        assert _out(sh, "d") == "Error: delete needs an address\n"

    def test_mem_window_out_of_range(self, sh):
        text = _out(sh, "m 65535 2")
        assert text.startswith("Fault: Memory fault")
        # observers never halt the machine
        assert "halted" not in text
        assert not sh.emu.halted

    def test_mem_window_after_halt(self, sh):
        _out(sh, "g")
        text = _out(sh, "m 65535 2")
        # the machine halted earlier; this fault did not halt it
        assert text.startswith("Fault: Memory fault")
        assert "Program has halted" not in text

    def test_step_fault_halts(self):
        sh = Session(JUMP_OUT)
        text = _out(sh, "s 3")
        assert "Fault: Memory fault: read of address 70000" in text
        assert text.endswith("Program has halted\n")
        assert _out(sh, "p") == "70000\n"
        assert _out(sh, "c") == "2\n"
        assert _out(sh, "s") == "Program has halted\n"


# ─── Session loop ─────────────────────

class TestSession:

    def test_quit(self, sh):
        assert sh("q") == ("", True)
        assert sh("quit") == ("", True)

    def test_eof(self, sh):
        assert sh("EOF") == ("\n", True)

    def test_cmdloop(self):
        out = io.StringIO()
        emu = W8Emulator(SUM_PROGRAM)
        assert run_shell(emu, stdin=io.StringIO("s\nr\nq\n"), stdout=out) == 0
        text = out.getvalue()
        assert text.startswith("W8 debugger.")
        assert text.count(">>> ") == 3
        assert "R1: 7" in text
        assert emu.read_pc() == 1

    def test_cmdloop_ends_at_eof(self):
        out = io.StringIO()
        emu = W8Emulator(SUM_PROGRAM)
        run_shell(emu, stdin=io.StringIO("g\n"), stdout=out)
        assert "Program has halted" in out.getvalue()
        assert emu.halted
