"""
Demo and tools for LeafStore
============================

Usage:  python -m leafstore demo <storage_url>
        python -m leafstore check <storage_url>
        python -m leafstore info <storage_url>

E.g.:   python -m leafstore demo file:///tmp/leafstore_demo

demo:   creates a small store, adds some items and shows how the tree grows.
        Please be careful: the given storage will be created, used and **completely deleted**!
check:  opens an existing store (this checks the integrity of the whole tree).
info:   opens an existing store and shows its state.
"""

import sys


def run_demo(storage_url):
    from .backends.errors import BackendAlreadyExists
    from .store import FileStore

    store = FileStore(url=storage_url)
    try:
        store.create(range_=3)
    except BackendAlreadyExists:
        print("Error: you must not give an existing directory.")
        return

    with store:
        print(f"Created: {store!r}")
        print("Adding 30 items, a range of 3 makes the tree grow quickly...")
        for i in range(30):
            levels = store.levels
            id_ = store.add({"item": i, "square": i * i})
            if store.levels != levels:
                print(f"After item {id_}: {store.levels} levels, root is {store.root}")
        print(f"Item 7 is stored in {store.path_for(7)}: {store.get(7)}")
        print(f"Newest (empty) leaf directory: {store.current_leaf}")
        print(f"Stats: {store.stats}")

    with store:
        print(f"Reopened (state recovered from directory names): {store!r}")

    answer = input("After you've inspected the storage, enter DESTROY to destroy the storage, anything else to abort: ")
    if answer == "DESTROY":
        store.destroy()


def run_check(storage_url, verbose):
    from .backends.errors import BackendError
    from .errors import StoreError
    from .store import FileStore

    store = FileStore(url=storage_url)
    try:
        with store:
            print(f"{store!r}" if verbose else f"OK: {len(store)} items, {store.levels} levels, range {store.range}")
    except (StoreError, BackendError) as err:
        print(f"Error: {err}")
        return 1
    return 0


if __name__ == "__main__":
    if len(sys.argv) == 3 and sys.argv[1] == "demo":
        run_demo(sys.argv[2])
    elif len(sys.argv) == 3 and sys.argv[1] in ("check", "info"):
        sys.exit(run_check(sys.argv[2], verbose=sys.argv[1] == "info"))
    else:
        print(__doc__)
