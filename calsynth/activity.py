# calsynth/activity.py
"""
Append-only activity log content.

Every synthetic commit adds one line and snapshots the whole buffer into a new
blob, so the final log is an audit trail of the generated history.
"""

from __future__ import annotations


def activity_line(day: str, index: int) -> str:
    """
    Log line for the index-th (1-based) commit of day.
    """
    return f"{day} commit {index}"


class ActivityLog:
    def __init__(self) -> None:
        self._buf = bytearray()
        self._lines = 0

    def append(self, line: str) -> None:
        if "\n" in line:
            raise ValueError("activity line must not contain a newline")

        self._buf += line.encode("utf-8")
        self._buf += b"\n"
        self._lines += 1

    def snapshot(self) -> bytes:
        return bytes(self._buf)

    @property
    def line_count(self) -> int:
        return self._lines

    def __len__(self) -> int:
        return len(self._buf)
