"""Storage layers of a block-based relational database: disk, buffer pool, catalogs and B+ tree indexes."""

__version__ = "0.1.0"