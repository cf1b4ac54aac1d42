"""
Shared utilities for papertex.

Common functionality used across contexts:
- Async file operations
- Logger setup
- PDF inspection
- Timestamps
"""

from papertex.utils.timestamp import long_date

__all__ = ["long_date"]
