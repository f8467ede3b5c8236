"""
Per-level bucket widths and directory counts of a file store.

Only the interior levels (1 .. root) are tracked, level 1 (the directories holding the leaves)
comes first, the root level comes last:

    widths[i] == range ** (i + 1)
    dir_counts[i] == number of directories at level i + 1 (in the whole tree)

The newest directory of a level always is the one with the highest bounds, so widths and
dir_counts are all that is needed to know where the next identifier goes.
"""

from typing import Optional

from .constants import MAX_ID, MIN_LEVELS
from .errors import CapacityOverflowError
from .utils.levels import check_range, dir_counts_for, ranges_for


class RangeTable:
    def __init__(self, range_: int, widths: list[int], dir_counts: list[int]):
        check_range(range_)
        if len(widths) != len(dir_counts):
            raise ValueError("widths and dir_counts must have the same length")
        self.range = range_
        self.widths = list(widths)
        self.dir_counts = list(dir_counts)

    @classmethod
    def fresh(cls, range_: int) -> "RangeTable":
        """table of a new store: MIN_LEVELS levels, one directory at each interior level"""
        widths = ranges_for(0, range_, MIN_LEVELS)[1:]
        return cls(range_, widths, [1] * len(widths))

    @classmethod
    def for_id(cls, next_id: int, range_: int) -> "RangeTable":
        """table of a store whose newest leaf is next_id"""
        widths = ranges_for(next_id, range_, MIN_LEVELS)[1:]
        return cls(range_, widths, dir_counts_for(next_id, range_))

    def __repr__(self):
        return f"<RangeTable(range={self.range!r}, widths={self.widths!r}, dir_counts={self.dir_counts!r})>"

    def __eq__(self, other):
        if not isinstance(other, RangeTable):
            return NotImplemented
        return (self.range, self.widths, self.dir_counts) == (other.range, other.widths, other.dir_counts)

    @property
    def levels(self) -> int:
        """number of levels, leaf level included"""
        return len(self.widths) + 1

    @property
    def capacity(self) -> int:
        """number of identifiers the current tree can hold"""
        return self.widths[-1]

    @property
    def next_range(self) -> int:
        """width of the root level the next deepening would introduce"""
        width = self.widths[-1] * self.range
        if width > MAX_ID:
            raise CapacityOverflowError(f"a root of width {width} exceeds the identifier space")
        return width

    def width_at(self, level: int) -> int:
        return self.widths[self._index(level)]

    def dir_count_at(self, level: int) -> int:
        return self.dir_counts[self._index(level)]

    def increment_dir_count(self, level: int) -> None:
        self.dir_counts[self._index(level)] += 1

    def append_deeper_level(self, width: int) -> None:
        """add a new root level of the given width (holding 1 directory, the new root)"""
        if width != self.next_range:
            raise ValueError(f"new root level must have width {self.next_range}, but got: {width}")
        self.widths.append(width)
        self.dir_counts.append(1)

    def active_bounds(self, level: int) -> tuple[int, int]:
        """(lower, upper) of the newest directory at that level"""
        width = self.width_at(level)
        lower = width * (self.dir_count_at(level) - 1)
        return lower, lower + width - 1

    def exhausted_level(self, next_id: int) -> Optional[int]:
        """the shallowest level below the root whose existing directories can not hold next_id"""
        for level in range(self.levels - 2, 0, -1):
            if next_id >= self.width_at(level) * self.dir_count_at(level):
                return level
        return None

    def _index(self, level):
        if not 1 <= level < self.levels:
            raise IndexError(f"no interior level {level} in a tree with {self.levels} levels")
        return level - 1
