"""notemap: a note graph with a client-side store and a REST storage backend."""

__version__ = "0.1.0"
