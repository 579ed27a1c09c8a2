"""Course registry service: course records in a key-value store with a membership index."""

__version__ = "0.1.0"
