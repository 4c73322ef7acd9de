"""Helper tools for post-processing TSCH simulation runs."""

__version__ = "1.0.0"
