"""
In-memory mirror of the directory tree of a file store and path resolution.

All names are relative to the base directory of the store and use "/" as separator, e.g. for
range = 10 and next_id = 153:

    root == "0_999"
    prefixes == ["0_999/100_199/150_159", "0_999/100_199", "0_999"]
    leaf_path() == "0_999/100_199/150_159/153"
    path_for(42) == "0_999/0_99/40_49/42"
"""

from .rangetable import RangeTable
from .utils.naming import bucket_name, dir_name, join, leaf_name


class Layout:
    def __init__(self, next_id: int, table: RangeTable):
        self.next_id = next_id
        self.table = table
        self.prefixes = self.compute_prefixes()

    def __repr__(self):
        return f"<Layout(next_id={self.next_id!r}, root={self.root!r}, table={self.table!r})>"

    @property
    def levels(self) -> int:
        return self.table.levels

    @property
    def root(self) -> str:
        return self.prefixes[-1]

    def compute_prefixes(self) -> list[str]:
        """paths of the newest directory at each interior level (level 1 first)"""
        prefixes = []
        parent = ""
        for level in range(self.levels - 1, 0, -1):
            parent = join(parent, dir_name(*self.table.active_bounds(level)))
            prefixes.append(parent)
        prefixes.reverse()
        return prefixes

    def path_for(self, id_: int) -> str:
        """
        path of the leaf directory of id_.

        This neither touches the filesystem nor checks whether id_ was already allocated,
        an identifier > next_id gives a path that does not exist (yet).
        """
        parts = [bucket_name(id_, self.table.width_at(level)) for level in range(self.levels - 1, 0, -1)]
        parts.append(leaf_name(id_))
        return join(*parts)

    def leaf_path(self) -> str:
        """path of the newest leaf directory"""
        return join(self.prefixes[0], leaf_name(self.next_id))
