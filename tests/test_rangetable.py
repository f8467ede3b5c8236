"""
Testing for the per-level widths and directory counts.
"""

import pytest

from leafstore.errors import CapacityOverflowError, ConfigurationError
from leafstore.rangetable import RangeTable
from leafstore.utils.levels import dir_counts_for


def test_fresh():
    table = RangeTable.fresh(10)
    assert table.widths == [10, 100]
    assert table.dir_counts == [1, 1]
    assert table.levels == 3
    assert table.capacity == 100
    assert table.next_range == 1000


def test_for_id():
    table = RangeTable.for_id(153, 10)
    assert table.widths == [10, 100, 1000]
    assert table.dir_counts == [16, 2, 1]
    assert table.levels == 4
    assert table.width_at(1) == 10
    assert table.width_at(3) == 1000
    assert table.dir_count_at(1) == 16
    assert table.active_bounds(1) == (150, 159)
    assert table.active_bounds(2) == (100, 199)
    assert table.active_bounds(3) == (0, 999)


@pytest.mark.parametrize("next_id,range_", [(0, 2), (8, 2), (26, 3), (100, 10), (153, 10), (10**6, 100)])
def test_for_id_dir_counts(next_id, range_):
    table = RangeTable.for_id(next_id, range_)
    assert table.dir_counts == dir_counts_for(next_id, range_)
    assert len(table.dir_counts) == table.levels - 1


def test_fresh_equals_for_id_zero():
    assert RangeTable.fresh(7) == RangeTable.for_id(0, 7)
    assert RangeTable.fresh(7) != RangeTable.for_id(7, 7)


def test_growth():
    table = RangeTable.fresh(10)
    assert table.exhausted_level(5) is None
    assert table.exhausted_level(10) == 1
    table.increment_dir_count(1)
    assert table.dir_counts == [2, 1]
    assert table.active_bounds(1) == (10, 19)
    assert table.exhausted_level(19) is None
    # fast-forward to the end of the root's capacity:
    table = RangeTable.for_id(99, 10)
    assert table.dir_counts == [10, 1]
    table.append_deeper_level(table.next_range)
    assert table.widths == [10, 100, 1000]
    assert table.dir_counts == [10, 1, 1]
    assert table.exhausted_level(100) == 2
    table.increment_dir_count(2)
    table.increment_dir_count(1)
    assert table == RangeTable.for_id(100, 10)


def test_append_deeper_level_invalid():
    table = RangeTable.fresh(10)
    with pytest.raises(ValueError):
        table.append_deeper_level(100)


def test_next_range_overflow():
    table = RangeTable(2, [2**level for level in range(1, 63)], [1] * 62)
    assert table.capacity == 2**62
    with pytest.raises(CapacityOverflowError):
        table.next_range


@pytest.mark.parametrize("level", [0, 3, -1])
def test_invalid_level(level):
    table = RangeTable.fresh(10)
    with pytest.raises(IndexError):
        table.width_at(level)


def test_invalid_construction():
    with pytest.raises(ConfigurationError):
        RangeTable(1, [1, 1], [1, 1])
    with pytest.raises(ValueError):
        RangeTable(10, [10, 100], [1])
