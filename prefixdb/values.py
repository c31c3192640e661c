"""Helpers for interpreting loosely typed database values."""

from __future__ import annotations

import numbers


def is_empty(value: object) -> bool:
    """Return True for ``None``, ``False``, zero, ``""`` and ``"0"``."""

    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, bytes):
        return value in (b"", b"0")
    if isinstance(value, numbers.Number):
        return value == 0
    return False


__all__ = ["is_empty"]
