"""
Tests for recovering the state of a file store from its directory tree.
"""

import pytest

from . import list_dirs

from leafstore.backends.posixfs import PosixFS
from leafstore.errors import StructuralIntegrityError
from leafstore.recovery import check_integrity, find_highest_leaf, find_root, infer_range, recover
from leafstore.store import FileStore


def make_dirs(base, *names):
    for name in names:
        (base / name).mkdir(parents=True)


@pytest.fixture()
def base(tmp_path):
    return tmp_path / "logs"


@pytest.fixture()
def created_store(base):
    store = FileStore(backend=PosixFS(base))
    store.create(range_=10)
    return store


def test_recover_fresh(base, created_store):
    with PosixFS(base) as backend:
        assert find_root(backend) == ("0_99", (0, 99))
        assert infer_range(backend, "0_99", (0, 99)) == 10
        assert find_highest_leaf(backend, "0_99") == ("0_99/0_9/0", 0)
        range_, layout = recover(backend)
    assert range_ == 10
    assert layout.next_id == 0
    assert layout.prefixes == ["0_99/0_9", "0_99"]


def test_recover_manual_tree(base):
    make_dirs(base, *[f"0_99/0_9/{i}" for i in range(10)], "0_99/10_19/10")
    with FileStore(backend=PosixFS(base)) as store:
        assert store.range == 10
        assert store.next_id == 10
        assert store.levels == 3
        assert store.dir_counts == [2, 1]
        assert store.current_leaf == "0_99/10_19/10"


def test_highest_leaf_is_numeric(base):
    # "9" > "10" for strings, but the newest leaf is 10:
    make_dirs(base, "0_9999/0_99/9", "0_9999/0_99/10")
    with FileStore(backend=PosixFS(base)) as store:
        assert store.range == 100
        assert store.next_id == 10
        assert store.current_leaf == "0_9999/0_99/10"


def test_highest_directory_is_numeric(base):
    # "90_99" > "100_109" for strings, but the newest directory is 100_109:
    make_dirs(base, *[f"0_999/0_99/{i}_{i + 9}/{i}" for i in range(0, 100, 10)], "0_999/100_199/100_109/100")
    with PosixFS(base) as backend:
        assert find_highest_leaf(backend, "0_999") == ("0_999/100_199/100_109/100", 100)


def test_payload_files_are_fine(base, created_store):
    with created_store as store:
        store.add("value0")
    (base / "0_99" / "0_9" / "notes.txt").write_text("not a directory")
    with created_store as store:
        assert store.next_id == 1
        assert store.get(0) == "value0"


@pytest.mark.parametrize("name", ["0_99/abc", "0_99/0_9/abc", "0_99/0_9/0/abc"])
def test_invalid_name(base, created_store, name):
    # "abc" is neither an interior nor a leaf directory name.
    (base / name).mkdir()
    before = list_dirs(base)
    with pytest.raises(StructuralIntegrityError):
        created_store.open()
    with PosixFS(base) as backend:
        with pytest.raises(StructuralIntegrityError):
            check_integrity(backend, "0_99", 10)
    # a failing recovery changes nothing:
    assert list_dirs(base) == before


@pytest.mark.parametrize(
    "name",
    [
        "0_99/0_9/01",  # leading zero
        "0_99/00_09",  # leading zero
        "0_99/0_9/+1",  # sign
        "0_99/0_9/1_1",  # interior name at the leaf level
        "0_99/20_39",  # wrong width
        "0_99/5_14",  # not aligned to its width
        "0_99/100_109",  # outside of the parent's range
        "0_99/0_9/10",  # outside of the parent's range
        "0_99/10_19",  # empty interior directory
    ],
)
def test_layout_violations(base, created_store, name):
    (base / name).mkdir()
    with pytest.raises(StructuralIntegrityError):
        created_store.open()


def test_empty_base(base):
    base.mkdir()
    with pytest.raises(StructuralIntegrityError):
        FileStore(backend=PosixFS(base)).open()


@pytest.mark.parametrize(
    "names",
    [
        ["0_99/0_9/0", "0_999/0_99/0_9/1"],  # two roots
        ["10_109/10_19/10"],  # root does not start at 0
        ["root/0_9/0"],  # invalid root name
        ["0_9/0_9/0"],  # range 1
        ["0_99999/0_1/0"],  # range 50000
        ["0_99/0_6/0"],  # 100 is not a multiple of 7
        ["0_99/0/0"],  # no interior directory below the root
        ["0_999/0_99/0_9/0"],  # 4 levels, but id 0 needs only 3
    ],
)
def test_invalid_trees(base, names):
    make_dirs(base, *names)
    with pytest.raises(StructuralIntegrityError):
        FileStore(backend=PosixFS(base)).open()


def test_stray_file_in_base(base, created_store):
    (base / "README").write_text("hello")
    with pytest.raises(StructuralIntegrityError):
        created_store.open()


def test_interrupted_deepening(base, created_store):
    with created_store as store:
        for _ in range(99):
            store.insert()
    # the new root was created, but the old root was not moved into it:
    (base / "0_999").mkdir()
    with pytest.raises(StructuralIntegrityError):
        created_store.open()


def test_interrupted_widening(base, created_store):
    with created_store as store:
        for _ in range(19):
            store.insert()
    # a new level 1 directory was created, but not its first leaf:
    (base / "0_99" / "20_29").mkdir()
    with pytest.raises(StructuralIntegrityError):
        created_store.open()


def test_failed_open_closes_backend(base, created_store):
    (base / "0_99" / "abc").mkdir()
    with pytest.raises(StructuralIntegrityError):
        created_store.open()
    # the backend was closed again, so the store can still be destroyed:
    created_store.destroy()
    assert not base.exists()
