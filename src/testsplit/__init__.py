"""testsplit — round-robin test sharding for parallel runners."""

__version__ = "0.1.0"
