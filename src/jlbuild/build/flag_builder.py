"""C Compiler Flag Builder.

This module builds the flag list passed to the system C compiler when
linking the shared library and executable stages.

Design:
    - Pure functions of (base platform flags, runtime facts, options)
    - Order is fixed: base, bitness, optimization, debug, user extras
    - User extras go last so they can override anything before them
"""

import shlex
from typing import List, Optional, Sequence

DEBUG_SYMBOLS_LEVEL = 2


def parse_flag_string(flag_string: str) -> List[str]:
    """Parse a flag string that may contain quoted values.

    Example:
        >>> parse_flag_string('-DFOO="bar baz" -DTEST')
        ['-DFOO=bar baz', '-DTEST']
    """
    try:
        return shlex.split(flag_string)
    except ValueError:
        return flag_string.split()


def bitness_flag(word_size: int, arch: str) -> Optional[str]:
    """Return the word-size flag for the C compiler, if one is needed.

    aarch64 has no 32-bit mode in gcc, and 64-bit builds are the
    compiler default, so only 32-bit builds get a flag.
    """
    if arch == "aarch64":
        return None
    if word_size == 32:
        return "-m32"
    return None


def build_flags(
    base_platform_flags: Sequence[str],
    bitness: Optional[str],
    optimize: Optional[int] = None,
    debug: Optional[int] = None,
    extra_flags: Optional[Sequence[str]] = None,
) -> List[str]:
    """Build the ordered C compiler flag list.

    Args:
        base_platform_flags: Include/link flags for the julia runtime
        bitness: Flag from bitness_flag(), or None
        optimize: Optimization level; adds -O<level> when set
        debug: Debug level; only DEBUG_SYMBOLS_LEVEL adds -g. The other
            levels only affect the julia command line
        extra_flags: User flags, appended verbatim

    Returns:
        List of C compiler flags
    """
    flags = list(base_platform_flags)
    if bitness:
        flags.append(bitness)
    if optimize is not None:
        flags.append(f"-O{optimize}")
    if debug == DEBUG_SYMBOLS_LEVEL:
        flags.append("-g")
    if extra_flags:
        flags.extend(extra_flags)
    return flags
