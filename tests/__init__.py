"""
Tests package.
"""


def list_names(backend, name: str):
    # Backend helper for tests that only need the names of directory members.
    return sorted(info.name for info in backend.list(name))


def list_dirs(path):
    # All directories below path, as sorted relative names (like the store uses them).
    return sorted(p.relative_to(path).as_posix() for p in path.rglob("*") if p.is_dir())
