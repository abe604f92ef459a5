# calsynth/marks.py
"""
fast-import mark bookkeeping.

One allocator belongs to one encoding session. Marks start at 1, never repeat
and never skip.
"""

from __future__ import annotations


class MarkAllocator:
    def __init__(self) -> None:
        self._last = 0

    @property
    def last(self) -> int:
        """Most recently issued mark, 0 before the first allocation."""
        return self._last

    def allocate(self) -> int:
        self._last += 1
        return self._last
