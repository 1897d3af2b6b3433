"""
Conan-compatible package repository served over a key-value storage backend.
"""

__version__ = "0.1.0"
