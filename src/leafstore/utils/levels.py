"""
Level arithmetic for a directory tree with a fixed fan-out ("range").

Leaf directories live at level 0, a directory at level l spans range ** l identifiers.
For range = 10 and identifiers up to 150, the tree looks like this:

    level 3: 0_999
    level 2: 0_99, 100_199
    level 1: 0_9, 10_19, ..., 90_99, 100_109, ..., 150_159
    level 0: 0, 1, 2, ..., 150

The root is always a single directory named 0_<capacity - 1>, so the number of levels needed
for identifier n is the number of base-range digits of n plus one (but at least 2):

    levels_for(99, 10) == 3
    levels_for(100, 10) == 4

A store never has less than MIN_LEVELS levels, even if the first identifiers would fit into
a smaller tree.
"""

from ..constants import MAX_ID, MAX_RANGE, MIN_LEVELS, MIN_RANGE
from ..errors import CapacityOverflowError, ConfigurationError


def check_range(range_: int) -> None:
    """validate a fan-out value"""
    if not isinstance(range_, int) or isinstance(range_, bool):
        raise ConfigurationError(f"range must be an int, but got: {type(range_)}")
    if not MIN_RANGE <= range_ <= MAX_RANGE:
        raise ConfigurationError(f"range must be between {MIN_RANGE} and {MAX_RANGE}, but got: {range_}")


def levels_for(n: int, range_: int) -> int:
    """number of levels (leaf level included) needed to store identifier n"""
    check_range(range_)
    if n < 0:
        raise ValueError(f"identifier must not be negative, but got: {n}")
    levels = 2
    quotient = n
    while quotient >= range_:
        quotient //= range_
        levels += 1
    return levels


def ranges_for(n: int, range_: int, min_levels: int = 2) -> list[int]:
    """bucket widths of all levels (level 0 first) of a tree holding identifier n"""
    levels = max(min_levels, levels_for(n, range_))
    widths = [range_**level for level in range(levels)]
    if widths[-1] > MAX_ID:
        raise CapacityOverflowError(f"{levels} levels of range {range_} exceed the identifier space")
    return widths


def dir_indexes_for(id_: int, ranges: list[int]) -> list[int]:
    """zero-based index of the directory holding id_, for each level width in ranges"""
    # the index is the number of whole buckets below id_, counted per level
    return [id_ // width for width in ranges]


def dir_counts_for(n: int, range_: int) -> list[int]:
    """number of directories at each level > 0 (level 1 first) of a store whose newest leaf is n"""
    widths = ranges_for(n, range_, MIN_LEVELS)[1:]
    return [index + 1 for index in dir_indexes_for(n, widths)]
