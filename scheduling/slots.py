"""Appointment number allocation."""

from __future__ import annotations

from typing import FrozenSet, Iterable, Mapping

RESERVED_NUMBERS: Mapping[str, FrozenSet[int]] = {
    "umar": frozenset({1, 2, 3, 10, 15, 20}),
    "samreen": frozenset(
        {1, 2, 3, 4, 5, 8, 9, 12, 13, 16, 17, 20, 21, 25, 26, 29, 30, 33, 34, 37, 38}
    ),
}

DOCTORS = tuple(RESERVED_NUMBERS)


def next_slot(reserved: Iterable[int], in_use: Iterable[int]) -> int:
    """Return the lowest positive integer in neither ``reserved`` nor ``in_use``.

    ``in_use`` must hold the numbers of every appointment in the target queue,
    frozen ones included.
    """

    taken = set(reserved)
    taken.update(in_use)
    candidate = 1
    while candidate in taken:
        candidate += 1
    return candidate
