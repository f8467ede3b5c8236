"""
Recover the state of a file store from its directory tree.

Nothing but the directory names is persisted, so everything is inferred:

- the base directory contains exactly one entry, the root directory "0_<capacity - 1>".
- the range is the ratio of the root's span and the span of any of its subdirectories.
- the newest leaf is found by always descending into the directory with the highest bounds.
- levels, bucket widths and directory counts follow from range and newest leaf.

Before the state is trusted, the whole tree is checked against the naming and layout rules,
see check_integrity().
"""

import logging

from .backends._base import BackendBase
from .constants import ROOTNS
from .errors import ConfigurationError, StructuralIntegrityError
from .layout import Layout
from .rangetable import RangeTable
from .utils.levels import check_range
from .utils.naming import join, parse_dir_name, parse_leaf_name

logger = logging.getLogger(__name__)


def find_root(backend: BackendBase) -> tuple[str, tuple[int, int]]:
    """return name and bounds of the root directory"""
    entries = list(backend.list(ROOTNS))
    if len(entries) != 1:
        raise StructuralIntegrityError(
            f"{backend!r} does not look like a file store: expected 1 root directory, found {len(entries)} entries"
        )
    root = entries[0]
    bounds = parse_dir_name(root.name) if root.directory else None
    if bounds is None or bounds[0] != 0:
        raise StructuralIntegrityError(f"{backend!r}: invalid root directory name: {root.name}")
    return root.name, bounds


def infer_range(backend: BackendBase, root: str, bounds: tuple[int, int]) -> int:
    """the root always spans exactly range times the span of its subdirectories"""
    for info in backend.list(root):
        child_bounds = parse_dir_name(info.name) if info.directory else None
        if child_bounds is not None:
            break
    else:
        raise StructuralIntegrityError(f"root directory {root} has no valid subdirectory")
    root_span = bounds[1] - bounds[0] + 1
    child_span = child_bounds[1] - child_bounds[0] + 1
    if root_span % child_span != 0:
        raise StructuralIntegrityError(f"span of {root} is not a multiple of the span of {info.name}")
    range_ = root_span // child_span
    try:
        check_range(range_)
    except ConfigurationError as err:
        raise StructuralIntegrityError(f"invalid range {range_} inferred from {root}/{info.name}: {err}") from None
    return range_


def check_integrity(backend: BackendBase, root: str, range_: int) -> None:
    """
    walk the whole tree below root and validate every directory:

    - a directory of width range holds leaf directories named by their identifier.
    - a wider directory holds interior directories of width // range, named "<lower>_<upper>".
    - every directory's range lies inside the range of its parent.
    - interior directories are never empty, leaf directories hold no directories.

    Files (payloads) are not validated.
    """
    bounds = parse_dir_name(root)
    if bounds is None:
        raise StructuralIntegrityError(f"invalid root directory name: {root}")
    todo = [(root, bounds)]
    while todo:
        name, (lower, upper) = todo.pop()
        width = upper - lower + 1
        if width % range_ != 0:
            raise StructuralIntegrityError(f"{name}: span {width} is not a multiple of range {range_}")
        child_width = width // range_
        children = [info.name for info in backend.list(name) if info.directory]
        if not children:
            raise StructuralIntegrityError(f"{name}: empty directory")
        for child in children:
            path = join(name, child)
            if child_width == 1:
                id_ = parse_leaf_name(child)
                if id_ is None:
                    raise StructuralIntegrityError(f"{path}: invalid leaf directory name")
                child_bounds = id_, id_
            else:
                child_bounds = parse_dir_name(child)
                if child_bounds is None:
                    raise StructuralIntegrityError(f"{path}: invalid directory name")
                if child_bounds[1] - child_bounds[0] + 1 != child_width or child_bounds[0] % child_width != 0:
                    raise StructuralIntegrityError(f"{path}: expected a bucket of width {child_width}")
            if not (lower <= child_bounds[0] and child_bounds[1] <= upper):
                raise StructuralIntegrityError(f"{path}: outside of the range of its parent")
            if child_width == 1:
                subdirs = [info.name for info in backend.list(path) if info.directory]
                if subdirs:
                    raise StructuralIntegrityError(f"{path}: leaf directory contains directories: {subdirs}")
            else:
                todo.append((path, child_bounds))


def find_highest_leaf(backend: BackendBase, root: str) -> tuple[str, int]:
    """return path and identifier of the newest leaf directory"""
    name = root
    while True:
        children = [info.name for info in backend.list(name) if info.directory]
        if not children:
            raise StructuralIntegrityError(f"{name}: empty directory")
        leaves = [parse_leaf_name(child) for child in children]
        if all(id_ is not None for id_ in leaves):
            id_ = max(leaves)
            return join(name, str(id_)), id_
        buckets = [(parse_dir_name(child), child) for child in children]
        if any(bounds is None for bounds, _ in buckets):
            raise StructuralIntegrityError(f"{name}: mix of leaf and interior directories")
        _, highest = max(buckets, key=lambda item: item[0][1])
        name = join(name, highest)


def recover(backend: BackendBase) -> tuple[int, Layout]:
    """recover range and layout of the (opened) backend's file store"""
    root, bounds = find_root(backend)
    range_ = infer_range(backend, root, bounds)
    check_integrity(backend, root, range_)
    leaf, next_id = find_highest_leaf(backend, root)
    levels = leaf.count("/") + 1
    layout = Layout(next_id, RangeTable.for_id(next_id, range_))
    # the tree on disk must look exactly like the one we would have grown:
    if layout.levels != levels:
        raise StructuralIntegrityError(f"{leaf}: found {levels} levels, expected {layout.levels}")
    if layout.root != root:
        raise StructuralIntegrityError(f"root directory is {root}, expected {layout.root}")
    if layout.leaf_path() != leaf:
        raise StructuralIntegrityError(f"newest leaf is {leaf}, expected {layout.leaf_path()}")
    logger.info("recovered file store %r: range %d, %d levels, next id %d", backend, range_, levels, next_id)
    return range_, layout
