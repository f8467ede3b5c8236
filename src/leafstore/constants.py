"""Constants used by LeafStore."""

# Namespace to pass to list() for the storage root:
ROOTNS = ""

# Separates lower and upper bound in the name of an interior directory, e.g. "100_199"
SEP = "_"

# Filename suffix used for a payload while it is being written
TMP_SUFFIX = ".tmp"

# Fan-out ("range"): maximum number of entries in any directory of the tree
DEFAULT_RANGE = 100
MIN_RANGE = 2
MAX_RANGE = 2**15 - 1

# Identifiers and bucket widths must fit into a signed 64bit integer
MAX_ID = 2**63 - 1

# A fresh store has a root directory, one level 1 directory and the leaf layer
MIN_LEVELS = 3

# Maximum name length (a relative path below the base path, deep trees need long names)
MAX_NAME_LENGTH = 4096
