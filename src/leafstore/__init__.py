"""
LeafStore - store an unbounded number of items in a self-describing, bounded-fanout directory tree.
"""
