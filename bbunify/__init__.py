"""
bbunify: basic-block trace unification against a reference set of valid blocks.

This package provides:
- Loading a reference set of valid basic-block addresses
- Parsing per-line execution traces ("<id:hex> <pc:hex> <hits:dec>")
- Filtering entries whose program counter is not a valid block and compacting
  the remaining identifiers into a dense, gap-free sequence
- Writing the result in full or stripped form, for many files in parallel
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
