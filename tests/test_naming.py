"""
Testing for the directory naming grammar.
"""

import pytest

from leafstore.utils.naming import bucket_name, dir_name, join, leaf_name, parse_dir_name, parse_leaf_name


def test_dir_name():
    assert dir_name(0, 99) == "0_99"
    assert dir_name(100, 199) == "100_199"
    assert dir_name(7, 7) == "7_7"


@pytest.mark.parametrize("lower,upper", [(-1, 9), (10, 9)])
def test_dir_name_invalid(lower, upper):
    with pytest.raises(ValueError):
        dir_name(lower, upper)


@pytest.mark.parametrize(
    "id_,width,name",
    [
        (0, 10, "0_9"),
        (9, 10, "0_9"),
        (10, 10, "10_19"),
        (153, 10, "150_159"),
        (153, 100, "100_199"),
        (153, 1000, "0_999"),
    ],
)
def test_bucket_name(id_, width, name):
    assert bucket_name(id_, width) == name


def test_leaf_name():
    assert leaf_name(0) == "0"
    assert leaf_name(4711) == "4711"
    assert leaf_name(2**63 - 1) == "9223372036854775807"
    with pytest.raises(ValueError):
        leaf_name(-1)


@pytest.mark.parametrize("name,bounds", [("0_9", (0, 9)), ("100_199", (100, 199)), ("7_7", (7, 7))])
def test_parse_dir_name(name, bounds):
    assert parse_dir_name(name) == bounds


@pytest.mark.parametrize(
    "name", ["abc", "0", "0_", "_9", "00_9", "0_09", "9_0", "0_9_19", "-1_9", "0 _9", "0_9 ", "0-9", "0_٩"]
)
def test_parse_dir_name_invalid(name):
    assert parse_dir_name(name) is None


@pytest.mark.parametrize("name,id_", [("0", 0), ("153", 153), ("9223372036854775807", 2**63 - 1)])
def test_parse_leaf_name(name, id_):
    assert parse_leaf_name(name) == id_


@pytest.mark.parametrize("name", ["", "01", "-1", "+1", "1_2", "abc", " 1", "1.0", "١"])
def test_parse_leaf_name_invalid(name):
    assert parse_leaf_name(name) is None


def test_join():
    assert join("0_99", "0_9", "0") == "0_99/0_9/0"
    assert join("", "0_99") == "0_99"
