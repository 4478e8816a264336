"""ragsync: keep a vector index in sync with document sources and answer questions over it."""

__version__ = "0.1.0"
