"""
Exception classes raised by the file store (see backends.errors for the backend ones).
"""


class StoreError(Exception):
    """Base class for exceptions in this module."""


class ConfigurationError(StoreError, ValueError):
    """Raised when trying to create a store using an invalid range."""


class StructuralIntegrityError(StoreError):
    """The directory tree of the store does not follow the naming / layout rules."""


class CapacityOverflowError(StoreError, OverflowError):
    """Identifiers or bucket widths do not fit into a signed 64bit integer."""


class PayloadError(StoreError):
    """A stored payload could not be decoded."""


class StoreMustBeOpen(StoreError):
    """Store must be open."""


class StoreMustNotBeOpen(StoreError):
    """Store must not be open."""
