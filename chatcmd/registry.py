"""The immutable set of command modules known to the process.

Build once at startup, either from explicit module classes or by
scanning namespaces, and share freely afterwards: nothing here mutates
after __init__, so concurrent readers need no locking.
"""

from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

import structlog

from .context import ChannelKind
from .discovery import scan_namespaces
from .exceptions import ConfigurationError
from .module import CommandEntry, collect_commands, is_module_type
from .validator import validate_entries

logger = structlog.get_logger("chatcmd.registry")


class Registry:
    """Discovered module types plus a key index over their handlers.

    Args:
        modules: Concrete CommandModule subclasses.
        log: Diagnostics logger for build-time events.

    Raises:
        ConfigurationError: If something that is not a CommandModule
            subclass is passed in.
        DuplicateKeyError: If two handlers share a key.
    """

    def __init__(self, modules: Iterable[type], log: Optional[Any] = None):
        self._log = log if log is not None else logger

        module_set = frozenset(modules)
        for cls in module_set:
            if not is_module_type(cls):
                raise ConfigurationError(
                    f"{cls!r} is not a concrete CommandModule subclass",
                    module="registry",
                )

        entries: List[CommandEntry] = []
        for cls in sorted(module_set, key=lambda c: (c.__module__, c.__qualname__)):
            entries.extend(collect_commands(cls))

        validate_entries(entries, self._log)

        self._modules: FrozenSet[type] = module_set
        self._entries: Tuple[CommandEntry, ...] = tuple(entries)
        self._index: Mapping[str, CommandEntry] = MappingProxyType(
            {key: entry for entry in entries for key in entry.keys}
        )

        self._log.info(
            "registry_built",
            modules=len(self._modules),
            commands=len(self._entries),
            keys=len(self._index),
        )

    @classmethod
    def build(
        cls,
        namespaces: Union[str, Iterable[str]],
        *,
        disabled: Iterable[str] = (),
        log: Optional[Any] = None,
    ) -> "Registry":
        """Scan ``namespaces`` and build a validated registry.

        Args:
            namespaces: Dotted import paths to scan, or a single path.
            disabled: Module class names (``__name__`` or ``__qualname__``)
                to leave out.
            log: Diagnostics logger for build-time events.

        Raises:
            ConfigurationError: If a namespace cannot be scanned.
            DuplicateKeyError: If two handlers share a key.
        """
        log = log if log is not None else logger
        if isinstance(disabled, str):
            disabled = [disabled]
        disabled = set(disabled)

        modules = []
        for module_cls in scan_namespaces(namespaces):
            if module_cls.__name__ in disabled or module_cls.__qualname__ in disabled:
                log.info("module_skipped_disabled", module=module_cls.__qualname__)
                continue
            modules.append(module_cls)
        return cls(modules, log=log)

    # --- Read-only accessors ---

    @property
    def modules(self) -> FrozenSet[type]:
        return self._modules

    @property
    def entries(self) -> Tuple[CommandEntry, ...]:
        """Every registered handler, ordered by module then declaration."""
        return self._entries

    @property
    def keys(self) -> FrozenSet[str]:
        return frozenset(self._index)

    def lookup(self, key: str) -> Optional[CommandEntry]:
        """Exact, case-sensitive lookup of the handler owning ``key``."""
        return self._index.get(key)

    def commands_for(self, kind: ChannelKind) -> List[CommandEntry]:
        """Handlers runnable from ``kind``, sorted by their first key (for help output)."""
        reachable = [e for e in self._entries if kind in e.contexts]
        return sorted(reachable, key=lambda e: sorted(e.keys)[0])

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry(modules={len(self._modules)}, commands={len(self._entries)})"
