"""Access mode parsing for descriptor-returning open calls.

Mode strings follow the content-resolver convention:

    "r"    read only
    "w"    write only, create, truncate
    "wt"   same as "w"
    "wa"   write only, create, append
    "rw"   read/write, create
    "rwt"  read/write, create, truncate
"""

import os

_MODE_FLAGS: dict[str, int] = {
    "r": os.O_RDONLY,
    "w": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "wt": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "wa": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    "rw": os.O_RDWR | os.O_CREAT,
    "rwt": os.O_RDWR | os.O_CREAT | os.O_TRUNC,
}


def parse_mode(mode: str) -> int:
    """Translate a mode string into os.open flags.

    Args:
        mode: One of r, w, wt, wa, rw, rwt

    Returns:
        Flags suitable for os.open

    Raises:
        ValueError: If the mode is not recognised
    """
    try:
        flags = _MODE_FLAGS[mode]
    except KeyError:
        raise ValueError(f"Invalid access mode: {mode!r}") from None
    return flags | getattr(os, "O_BINARY", 0)


def is_read_only(mode: str) -> bool:
    """Return True for modes that can never create a missing file."""
    return mode == "r"
