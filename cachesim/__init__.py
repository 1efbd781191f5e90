"""Cycle-level simulation of direct-mapped and four-way LRU caches over a byte-addressed memory."""

__version__ = "0.1.0"