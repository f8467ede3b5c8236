"""
Storage backends: the filesystem primitives a file store is built on.
"""
