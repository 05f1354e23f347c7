"""
Package-wide defaults.
"""

# Tolerance of the numerical real algebra and of the polytope algebra
DEFAULT_EPS = 1e-10

# Maximum order accepted when generating a space group from generators
DEFAULT_MAX_ORDER = 192

# Maximum number of trial vectors when searching for a general position
DEFAULT_MAX_TRIALS = 512

# Serialized document identification
REVIVER_NAME = "qc_tools:Quasicrystal"
SERIALIZATION_VERSION = "experimental"
