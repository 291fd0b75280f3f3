"""
Record-count tuples: the per-iteration shape of the generated dataset.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass
from typing import Iterator, Tuple

from aceload.exceptions import ValidationError

# Each planner step adds this many records to a selected record type.
COUNT_STEP = 20


class RecordType(enum.IntEnum):
    USERS = 0
    GROUPS = 1
    MEMBERS = 2
    USER_PERMISSIONS = 3
    GROUP_PERMISSIONS = 4


RECORD_TYPE_COUNT = len(RecordType)


@dataclass(frozen=True)
class RecordCount:
    users: int = 0
    groups: int = 0
    members: int = 0
    user_permissions: int = 0
    group_permissions: int = 0

    def __post_init__(self) -> None:
        for name, value in self._items():
            if value < 0:
                raise ValidationError(f"{name} must not be negative", field=name, value=value)

    def _items(self) -> Tuple[Tuple[str, int], ...]:
        return (
            ("users", self.users),
            ("groups", self.groups),
            ("members", self.members),
            ("user_permissions", self.user_permissions),
            ("group_permissions", self.group_permissions),
        )

    def __getitem__(self, record_type: RecordType) -> int:
        return self._items()[int(record_type)][1]

    def total(self) -> int:
        return sum(value for _, value in self._items())

    def is_sane(self) -> bool:
        """Whether the tuple describes a dataset that can actually be built."""
        if self.members > 0 and self.groups == 0:
            return False
        if self.members > 0 and self.users == 0:
            return False
        if self.members > self.users:
            return False
        if self.user_permissions > 0 and self.users == 0:
            return False
        if self.group_permissions > 0 and self.groups == 0:
            return False
        return True

    def __str__(self) -> str:
        return (
            f"{{users: {self.users}, groups: {self.groups}, members: {self.members}, "
            f"user-permissions: {self.user_permissions}, "
            f"group-permissions: {self.group_permissions}}}"
        )


def record_count_for_iteration(iteration: int) -> RecordCount:
    """
    Map an iteration number to the record counts to generate.

    The low five bits select which record types get an extra step; the bits
    above them are the baseline number of steps for every type. Overflowing
    the low bits therefore bumps all counts at once. Iteration 0 yields the
    empty tuple.
    """
    if iteration < 0:
        raise ValueError("iteration must be non-negative")
    baseline = iteration >> RECORD_TYPE_COUNT
    if baseline == iteration:
        return RecordCount()

    counts = [baseline * COUNT_STEP] * RECORD_TYPE_COUNT
    for record_type in RecordType:
        if iteration & (1 << record_type):
            counts[record_type] += COUNT_STEP
    return RecordCount(*counts)


def iter_record_counts(start: int = 0) -> Iterator[Tuple[int, RecordCount]]:
    """Yield ``(iteration, counts)`` pairs forever, starting at ``start``."""
    for iteration in itertools.count(start):
        yield iteration, record_count_for_iteration(iteration)
