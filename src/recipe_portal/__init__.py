"""Recipe portal data access, query composition and authentication core."""

__version__ = "0.1.0"
