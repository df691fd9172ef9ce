"""Duplicate-key validation for the registration table.

Runs once when a Registry is constructed. Every unordered pair of
handlers is compared and every overlap is reported, so the outcome
never depends on the order modules were discovered in.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Any, FrozenSet, Iterable, List, Optional

import structlog

from .exceptions import DuplicateKeyError
from .module import CommandEntry, collect_commands

logger = structlog.get_logger("chatcmd.registry")


@dataclass(frozen=True)
class DuplicateKey:
    """Two handlers that share at least one key."""

    keys: FrozenSet[str]
    first: CommandEntry
    second: CommandEntry

    def __str__(self) -> str:
        keys = ", ".join(repr(k) for k in sorted(self.keys))
        return f"{self.first.qualname} and {self.second.qualname} share {keys}"


def find_duplicate_keys(entries: Iterable[CommandEntry]) -> List[DuplicateKey]:
    """Return every pair of distinct entries whose key sets intersect."""
    ordered = sorted(set(entries), key=lambda e: e.qualname)
    duplicates = []
    for first, second in combinations(ordered, 2):
        shared = first.keys & second.keys
        if shared:
            duplicates.append(DuplicateKey(frozenset(shared), first, second))
    return duplicates


def validate_entries(entries: Iterable[CommandEntry], log: Optional[Any] = None) -> None:
    """Raise DuplicateKeyError if any two entries share a key.

    Args:
        entries: The registration table.
        log: Diagnostics logger; defaults to the ``chatcmd.registry`` logger.
    """
    log = log if log is not None else logger
    entries = list(entries)
    duplicates = find_duplicate_keys(entries)
    for dup in duplicates:
        log.error(
            "duplicate_command_key",
            keys=sorted(dup.keys),
            first=dup.first.qualname,
            second=dup.second.qualname,
        )
    if duplicates:
        raise DuplicateKeyError(
            "Duplicate command keys: " + "; ".join(str(d) for d in duplicates),
            duplicates=duplicates,
            count=len(duplicates),
        )

    for entry in entries:
        if not entry.contexts:
            log.warning(
                "command_unreachable_no_contexts",
                handler=entry.qualname,
                keys=sorted(entry.keys),
            )


def validate(modules: Iterable[type], log: Optional[Any] = None) -> None:
    """Validate the handlers declared across ``modules``.

    Raises:
        DuplicateKeyError: If any two handlers share a key.
    """
    entries = [entry for cls in modules for entry in collect_commands(cls)]
    validate_entries(entries, log)
