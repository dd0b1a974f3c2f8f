"""
W8 Emulator: Program Image Files

Image format: one signed decimal integer per line, each reinterpreted as
an unsigned 32-bit word (so -1 loads as 0xFFFFFFFF). Loading stops at the
first line that does not parse as an integer, a blank line included;
everything after it is ignored and that memory stays zero.

Size is not checked here; W8Emulator/Memory raise ImageTooLarge.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Union

from .config import WORD_MASK
from .cpu.alu import to_signed32

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'[+-]?[0-9]+')


def parse_image(lines: Iterable[str]) -> List[int]:
    """Parse image text lines to words, stopping at the first bad line."""
    words = []
    for line_num, line in enumerate(lines, 1):
        text = line.strip()
        if not _INT_RE.fullmatch(text):
            logger.debug("Image ends at line %d: %r", line_num, line.rstrip('\n'))
            break
        words.append(int(text) & WORD_MASK)
    return words


def load_image_file(path: Union[str, Path]) -> List[int]:
    """Read an image file. FileNotFoundError propagates."""
    path = Path(path)
    with path.open('r', encoding='utf-8') as f:
        words = parse_image(f)
    logger.info("Loaded %d words from %s", len(words), path)
    return words


def format_image(words: Iterable[int]) -> str:
    """Image text for words: signed decimal, one per line, trailing newline."""
    lines = [str(to_signed32(w)) for w in words]
    return '\n'.join(lines) + '\n' if lines else ''
