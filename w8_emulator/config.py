"""
W8 Emulator: Machine and Tooling Configuration
===============================================

Fixed machine geometry plus defaults for the debugger and CLI.
Runtime overrides come from w8kit command-line flags.
"""

# =============================================================================
#  MACHINE GEOMETRY
# =============================================================================
MEMORY_SIZE = 65536        # words, addresses 0x0000-0xFFFF
NUM_REGISTERS = 8          # r0-r7, all general purpose
WORD_MASK = 0xFFFFFFFF


# =============================================================================
#  INSTRUCTION FIELDS
# =============================================================================
OPCODE_SHIFT = 22
REG_A_SHIFT = 19
REG_B_SHIFT = 16
FIELD_MASK = 0b111
OFFSET_MASK = 0xFFFF
OFFSET_MIN = -32768
OFFSET_MAX = 32767


# =============================================================================
#  EXECUTION / DEBUGGER DEFAULTS
# =============================================================================
DEFAULT_MAX_STEPS = 10_000_000   # run() gives up with TIMEOUT after this many
PROMPT = ">>> "


# =============================================================================
#  LOGGING
# =============================================================================
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
