"""
File Store Implementation.

A file store puts every stored item into its own leaf directory, named by a sequential
identifier, inside a directory tree that never has more than <range> entries per directory:

    <base>/0_99/0_9/0/<name>
    <base>/0_99/0_9/1/<name>
    ...
    <base>/0_99/10_19/10/<name>

When the root directory is full, the tree grows deeper: a new, wider root is created and the
old root is moved into it:

    <base>/0_999/0_99/...
    <base>/0_999/100_199/100_109/100/<name>

The tree is self-describing: no metadata is stored, opening a store recovers all state from
the directory names (see recovery.py).

Store internally uses a backend for all filesystem operations and adds:

- backend creation from a URL
- growth of the directory tree
- serialization of payloads
- stats
"""

from collections import Counter
from contextlib import contextmanager
import logging
import pickle
import threading
import time
from typing import Any, Optional

from .backends._base import BackendBase
from .backends.errors import ObjectNotFound, NoBackendGiven, BackendURLInvalid  # noqa
from .backends.posixfs import get_file_backend
from .backends.sftp import get_sftp_backend
from .constants import DEFAULT_RANGE, MAX_ID
from .errors import CapacityOverflowError, PayloadError, StoreMustBeOpen, StoreMustNotBeOpen, StructuralIntegrityError
from .layout import Layout
from .rangetable import RangeTable
from .recovery import check_integrity, find_root, recover
from .utils.levels import check_range, levels_for
from .utils.naming import dir_name, join, leaf_name

logger = logging.getLogger(__name__)


def get_backend(url):
    """parse backend URL and return a backend instance (or None)"""
    backend = get_file_backend(url)
    if backend is not None:
        return backend

    backend = get_sftp_backend(url)
    if backend is not None:
        return backend


class FileStore:
    def __init__(self, url: Optional[str] = None, backend: Optional[BackendBase] = None, *, serializer=pickle):
        self.url = url
        if backend is None and url is not None:
            backend = get_backend(url)
            if backend is None:
                raise BackendURLInvalid(f"Invalid Backend Storage URL: {url}")
        if backend is None:
            raise NoBackendGiven("You need to give a backend instance or a backend url.")
        self.backend = backend
        # payload entries in the leaf directories are named like the store's base directory:
        self.name = backend.name
        self.serializer = serializer
        self.range: Optional[int] = None
        self._layout: Optional[Layout] = None
        # insertions (and refreshs) must not interleave, see _grow.
        self._lock = threading.Lock()
        self._stats: Counter = Counter()

    def __repr__(self):
        if self._layout is None:
            return f"<FileStore(backend={self.backend!r})>"
        return (
            f"<FileStore(backend={self.backend!r}, name={self.name!r}, range={self.range!r}, "
            f"levels={self.levels!r}, ranges={self.ranges!r}, dir_counts={self.dir_counts!r}, "
            f"next_id={self.next_id!r})>"
        )

    def create(self, range_: int = DEFAULT_RANGE) -> None:
        """
        create a new, empty file store with the given fan-out.

        The initial tree has a root directory, one level 1 directory and the leaf for identifier 0,
        e.g. 0_9999/0_99/0 for the default range of 100.
        """
        check_range(range_)  # before touching the filesystem
        layout = Layout(0, RangeTable.fresh(range_))
        self.backend.create()
        with self.backend:
            for name in reversed(layout.prefixes):
                self.backend.mkdir(name)
            self.backend.mkdir(layout.leaf_path())
        logger.info("created file store %r with range %d", self.backend, range_)

    def destroy(self) -> None:
        if self._layout is not None:
            raise StoreMustNotBeOpen()
        self.backend.destroy()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def open(self) -> None:
        """open the store, recovering its state from the directory tree"""
        if self._layout is not None:
            raise StoreMustNotBeOpen()
        self.backend.open()
        try:
            self.range, self._layout = recover(self.backend)
        except Exception:
            self.backend.close()
            raise

    def close(self) -> None:
        if self._layout is None:
            raise StoreMustBeOpen()
        self._layout = None
        self.backend.close()

    def refresh(self) -> None:
        """recover the state again, e.g. after another process changed the tree"""
        if self._layout is None:
            raise StoreMustBeOpen()
        with self._lock:
            self.range, self._layout = recover(self.backend)

    @property
    def layout(self) -> Layout:
        if self._layout is None:
            raise StoreMustBeOpen()
        return self._layout

    @property
    def levels(self) -> int:
        """current number of levels, leaf level included"""
        return self.layout.levels

    @property
    def next_id(self) -> int:
        """identifier of the newest leaf directory, the next add() stores into it"""
        return self.layout.next_id

    @property
    def root(self) -> str:
        return self.layout.root

    @property
    def ranges(self) -> list[int]:
        """bucket widths of the levels > 0 (level 1 first)"""
        return list(self.layout.table.widths)

    @property
    def dir_counts(self) -> list[int]:
        """number of directories at the levels > 0 (level 1 first)"""
        return list(self.layout.table.dir_counts)

    @property
    def current_leaf(self) -> str:
        return self.layout.leaf_path()

    def __len__(self):
        # identifiers 0 .. next_id - 1 are assigned
        return self.next_id

    def levels_for(self, n: int) -> int:
        """number of levels a tree of this store's range needs to hold identifier n"""
        if self.range is None:
            raise StoreMustBeOpen()
        return levels_for(n, self.range)

    def check_integrity(self) -> None:
        """raise StructuralIntegrityError if any directory of the tree breaks the layout rules"""
        check_integrity(self.backend, self.layout.root, self.range)

    def path_for(self, id_: int) -> str:
        """path (relative to the base directory) of the leaf directory of id_"""
        return self.layout.path_for(id_)

    @contextmanager
    def _stats_updater(self, key):
        """update call counters and overall times"""
        start = time.perf_counter_ns()
        yield
        end = time.perf_counter_ns()
        self._stats[f"{key}_calls"] += 1
        self._stats[f"{key}_time"] += end - start

    @property
    def stats(self):
        """
        return statistics like method call counters, overall time [s], overall payload volume
        and the number of times the tree grew wider / deeper.
        """
        st = dict(self._stats)  # copy Counter -> generic dict
        for key in "insert", "add", "get":
            # make sure key is present, even if method was not called
            st[f"{key}_calls"] = st.get(f"{key}_calls", 0)
            # convert integer ns timings to float s
            st[f"{key}_time"] = st.get(f"{key}_time", 0) / 1e9
        for key in "add", "get":
            st[f"{key}_volume"] = st.get(f"{key}_volume", 0)
        for key in "wider", "deeper":
            st[key] = st.get(key, 0)
        return st

    def insert(self) -> int:
        """create the leaf directory for the next identifier and return that identifier"""
        with self._lock, self._stats_updater("insert"):
            return self._grow()

    def _grow(self) -> int:
        layout = self.layout
        table = layout.table
        next_id = layout.next_id + 1
        if next_id > MAX_ID:
            raise CapacityOverflowError("no identifiers left")
        if next_id % self.range == 0:
            # level 1 is full, so at least one new directory is needed.
            if next_id == table.capacity:
                self._grow_deeper()
            self._grow_wider(next_id)
        leaf = join(layout.prefixes[0], leaf_name(next_id))
        self.backend.mkdir(leaf)
        logger.debug("created leaf %s", leaf)
        layout.next_id = next_id
        return next_id

    def _grow_deeper(self) -> None:
        """the root is full: create a new root with the old root as its first subdirectory"""
        layout = self.layout
        table = layout.table
        width = table.next_range
        old_root = layout.root
        new_root = dir_name(0, width - 1)
        self.backend.mkdir(new_root)
        self.backend.move(old_root, join(new_root, old_root))
        table.append_deeper_level(width)
        layout.prefixes = layout.compute_prefixes()
        self._stats["deeper"] += 1
        logger.info("file store %r grew deeper: root %s, %d levels", self.backend, new_root, table.levels)

    def _grow_wider(self, next_id: int) -> None:
        """create a new directory at the shallowest exhausted level and a chain down to level 1"""
        layout = self.layout
        table = layout.table
        level = table.exhausted_level(next_id)
        if level is None:
            raise RuntimeError(f"no level to grow for identifier {next_id}")
        parent = layout.prefixes[level]
        for lvl in range(level, 0, -1):
            width = table.width_at(lvl)
            lower = width * table.dir_count_at(lvl)
            name = join(parent, dir_name(lower, lower + width - 1))
            self.backend.mkdir(name)
            logger.debug("created directory %s", name)
            table.increment_dir_count(lvl)
            layout.prefixes[lvl - 1] = name
            parent = name
        self._stats["wider"] += 1

    def add(self, value: Any) -> int:
        """store value under the next identifier and return that identifier"""
        with self._lock, self._stats_updater("add"):
            data = self.serializer.dumps(value)
            id_ = self.layout.next_id
            # grow first, a deepening moves the tree and thus the leaf of id_:
            self._grow()
            self.backend.store(join(self.layout.path_for(id_), self.name), data)
            self._stats["add_volume"] += len(data)
            return id_

    def get(self, id_: int) -> Any:
        """load and return the value stored under identifier id_"""
        with self._stats_updater("get"):
            if id_ < 0:
                raise ObjectNotFound(str(id_))
            data = self._load(id_)
            self._stats["get_volume"] += len(data)
            try:
                return self.serializer.loads(data)
            except Exception as err:
                raise PayloadError(f"can not decode payload of identifier {id_}: {err!r}") from err

    def _load(self, id_):
        layout = self.layout
        name = join(layout.path_for(id_), self.name)
        try:
            return self.backend.load(name)
        except ObjectNotFound:
            if self.backend.info(layout.root).exists:
                raise
        # the root is gone: another process made the tree deeper since we recovered our state.
        logger.debug("root %s vanished, refreshing state of %r", layout.root, self.backend)
        try:
            self.refresh()
        except StructuralIntegrityError:
            # the deepening is not finished yet, but the old root already sits unchanged below the new one.
            return self.backend.load(self._relocate(layout, name))
        return self.backend.load(join(self.layout.path_for(id_), self.name))

    def _relocate(self, layout, name):
        """name below the current root, given name was resolved under the (moved) root of layout"""
        try:
            _, (_, upper) = find_root(self.backend)
        except StructuralIntegrityError:
            # new root created, old root not moved yet (or moved away again).
            raise ObjectNotFound(name) from None
        parts = []
        width = upper + 1
        while width > layout.table.capacity:
            parts.append(dir_name(0, width - 1))
            width //= self.range
        if width != layout.table.capacity:
            raise ObjectNotFound(name)
        return join(*parts, name)
