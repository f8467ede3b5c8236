"""
Directory naming grammar of a file store.

Interior directories are named after the inclusive range of identifiers they span, leaf
directories after the identifier they hold:

    0_999/100_199/150_159/153

Numbers are plain decimals without sign or leading zeros (except "0" itself), so every bucket
and every identifier has exactly one valid name. Nothing else is persisted: the layout of a
store is completely described by these names.

    parse_dir_name("100_199") == (100, 199)
    parse_dir_name("0100_199") is None
    parse_leaf_name("153") == 153
"""

import re
from typing import Optional

from ..constants import SEP

NUMBER_REGEX = r"(0|[1-9][0-9]*)"
LEAF_RE = re.compile(NUMBER_REGEX)
INTERIOR_RE = re.compile(NUMBER_REGEX + re.escape(SEP) + NUMBER_REGEX)


def join(*parts: str) -> str:
    """join relative names, always using "/" as separator"""
    return "/".join(part for part in parts if part)


def dir_name(lower: int, upper: int) -> str:
    """name of the interior directory spanning lower..upper (inclusive)"""
    if lower < 0 or upper < lower:
        raise ValueError(f"invalid bounds: {lower}, {upper}")
    return f"{lower}{SEP}{upper}"


def bucket_name(id_: int, width: int) -> str:
    """name of the directory of the given width that holds id_"""
    lower = id_ // width * width
    return dir_name(lower, lower + width - 1)


def leaf_name(id_: int) -> str:
    if id_ < 0:
        raise ValueError(f"identifier must not be negative, but got: {id_}")
    return str(id_)


def parse_dir_name(name: str) -> Optional[tuple[int, int]]:
    """return (lower, upper) for a valid interior directory name, None otherwise"""
    m = INTERIOR_RE.fullmatch(name)
    if m is None:
        return None
    lower, upper = int(m[1]), int(m[2])
    if upper < lower:
        return None
    return lower, upper


def parse_leaf_name(name: str) -> Optional[int]:
    """return the identifier for a valid leaf directory name, None otherwise"""
    if LEAF_RE.fullmatch(name) is None:
        return None
    return int(name)
