"""Shared pytest fixtures."""

import pytest

from programs import SUM_PROGRAM
from w8_emulator.emu import W8Emulator


@pytest.fixture
def sum_emu():
    return W8Emulator(SUM_PROGRAM)
