"""End-to-end tests for the w8kit command line."""

import io
import sys

import pytest

from programs import SUM_PROGRAM, COUNTDOWN_SOURCE
from w8_emulator.loader import format_image, load_image_file
import w8kit

SUM_SOURCE = """\
        lw   r0 r1 a
        lw   r0 r2 b
        add  r1 r2 r3
        sw   r0 r3 sum
        halt
a:      .fill 7
b:      .fill 35
sum:    .fill 0
"""


@pytest.fixture
def sum_image(tmp_path):
    path = tmp_path / "sum.img"
    path.write_text(format_image(SUM_PROGRAM), encoding="utf-8")
    return path


class TestAsm:

    def test_asm_to_file(self, tmp_path, capsys):
        src = tmp_path / "sum.asm"
        src.write_text(SUM_SOURCE, encoding="utf-8")
        out = tmp_path / "sum.img"
        assert w8kit.main(["asm", str(src), "-o", str(out)]) == 0
        assert "Assembled 8 words" in capsys.readouterr().out
        assert load_image_file(out) == SUM_PROGRAM

    def test_asm_to_stdout(self, tmp_path, capsys):
        src = tmp_path / "sum.asm"
        src.write_text(SUM_SOURCE, encoding="utf-8")
        assert w8kit.main(["asm", str(src)]) == 0
        assert capsys.readouterr().out == format_image(SUM_PROGRAM)

    def test_asm_error(self, tmp_path, capsys):
        src = tmp_path / "bad.asm"
        src.write_text("add r1 r2\n", encoding="utf-8")
        assert w8kit.main(["asm", str(src)]) == 1
        assert "Assembly error" in capsys.readouterr().err


class TestRun:

    def test_run_to_halt(self, sum_image, capsys):
        assert w8kit.main(["run", str(sum_image)]) == 0
        out = capsys.readouterr().out
        assert "Stopped: HALT" in out
        assert "R3: 42" in out
        assert "PC: 5" in out
        assert "Instructions executed: 5" in out

    def test_run_assembled_loop(self, tmp_path, capsys):
        src = tmp_path / "countdown.asm"
        img = tmp_path / "countdown.img"
        src.write_text(COUNTDOWN_SOURCE, encoding="utf-8")
        assert w8kit.main(["asm", str(src), "-o", str(img)]) == 0
        assert w8kit.main(["run", str(img)]) == 0
        out = capsys.readouterr().out
        assert "R1: 0" in out
        assert "Instructions executed: 19" in out

    def test_run_step_limit(self, sum_image, capsys):
        assert w8kit.main(["run", str(sum_image), "--max-steps", "2"]) == 1
        out = capsys.readouterr().out
        assert "Stopped: TIMEOUT" in out
        assert "PC: 2" in out

    def test_run_fault(self, tmp_path, capsys):
        img = tmp_path / "jump.img"
        img.write_text(format_image([0x00810002, 0x01480000, 70000]),
                       encoding="utf-8")
        assert w8kit.main(["run", str(img)]) == 1
        out = capsys.readouterr().out
        assert "Fault: Memory fault" in out
        assert "Stopped: FAULT" in out

    def test_missing_image(self, tmp_path, capsys):
        assert w8kit.main(["run", str(tmp_path / "missing.img")]) == 1
        assert "Error:" in capsys.readouterr().err


class TestDisasm:

    def test_disasm_whole_image(self, sum_image, capsys):
        assert w8kit.main(["disasm", str(sum_image)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 8
        assert lines[0] == "0: lw r0 r1 5 : r1 <- mem[r0 + 5]"
        assert lines[4] == "4: halt : halt the machine"

    def test_disasm_window(self, sum_image, capsys):
        assert w8kit.main(["disasm", str(sum_image), "--start", "2", "--count", "1"]) == 0
        assert capsys.readouterr().out == "2: add r1 r2 r3 : r3 <- r1 + r2\n"

    @pytest.mark.parametrize("flag", ["--start", "--count"])
    def test_negative_window_rejected(self, sum_image, capsys, flag):
        with pytest.raises(SystemExit) as exc:
            w8kit.main(["disasm", str(sum_image), flag, "-1"])
        assert exc.value.code == 2
        err = capsys.readouterr().err
        assert "must not be negative" in err


class TestDebugAndMisc:

    def test_debug_session(self, sum_image, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("s 3\nr\nq\n"))
        assert w8kit.main(["debug", str(sum_image)]) == 0
        assert "R3: 42" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert w8kit.main([]) == 0
        assert "usage: w8kit" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            w8kit.main(["--version"])
        assert exc.value.code == 0
        assert "w8kit 0.1.0" in capsys.readouterr().out
