"""Key resolution and the invocation results it produces.

resolve() never raises for per-message problems. A key that matches
nothing, a handler called from the wrong conversation kind, or a module
that cannot be constructed all come back as ``Unmatched``, whose run()
does nothing. Only the handler body itself can raise, and that
propagates to whoever calls run().
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

import structlog

from .context import CommandContext
from .exceptions import ModuleInstantiationError
from .module import CommandEntry, CommandModule
from .registry import Registry

logger = structlog.get_logger("chatcmd.resolver")


class MatchFailure(str, Enum):
    """Why a message did not produce a runnable command."""
    NOT_A_COMMAND = "not_a_command"            # Missing trigger prefix
    NOT_FOUND = "not_found"                    # No handler owns the key
    WRONG_CONTEXT = "wrong_context"            # Kind not in handler contexts
    MODULE_UNAVAILABLE = "module_unavailable"  # Module failed to construct


@dataclass(frozen=True)
class Resolved:
    """A handler bound to a fresh module instance, ready to run once.

    A second run() or arun() raises RuntimeError: the module instance
    belongs to a single invocation.
    """

    entry: CommandEntry
    module: CommandModule
    handler: Callable[[], Any]
    _executed: bool = field(default=False, init=False, repr=False, compare=False)

    @property
    def executed(self) -> bool:
        return self._executed

    def _mark_executed(self) -> None:
        if self._executed:
            raise RuntimeError(
                f"{self.entry.qualname} has already been run for this invocation"
            )
        object.__setattr__(self, "_executed", True)

    def run(self) -> Any:
        """Invoke the handler. Exceptions from the handler propagate."""
        self._mark_executed()
        return self.handler()

    async def arun(self) -> Any:
        """Invoke the handler, awaiting its result if it is awaitable."""
        self._mark_executed()
        result = self.handler()
        if inspect.isawaitable(result):
            result = await result
        return result

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Unmatched:
    """Nothing to run. run() and arun() are silent no-ops."""

    reason: MatchFailure
    key: str = ""
    error: Optional[ModuleInstantiationError] = None

    def run(self) -> None:
        return None

    async def arun(self) -> None:
        return None

    def __bool__(self) -> bool:
        return False


Invocation = Union[Resolved, Unmatched]


def _instantiate(entry: CommandEntry, log: Any) -> Union[CommandModule, ModuleInstantiationError]:
    module_cls = entry.module
    try:
        return module_cls()
    except Exception as e:
        error = ModuleInstantiationError(
            f"Couldn't create module: {module_cls.__qualname__}",
            module_name=f"{module_cls.__module__}.{module_cls.__qualname__}",
            error=str(e),
            error_type=type(e).__name__,
        )
        log.error(
            "module_instantiation_failed",
            module=module_cls.__qualname__,
            error=str(e),
            error_type=type(e).__name__,
        )
        return error


def resolve(
    registry: Registry,
    ctx: CommandContext,
    key: str,
    *,
    log: Optional[Any] = None,
) -> Invocation:
    """Find the handler owning ``key`` and bind it to a new module instance.

    Args:
        registry: A validated registry.
        ctx: Context for this message; bound to the new instance.
        key: Exact, case-sensitive command key.
        log: Diagnostics logger; defaults to the ``chatcmd.resolver`` logger.

    Returns:
        Resolved if the handler may run in ``ctx.kind``, otherwise Unmatched.
    """
    log = log if log is not None else logger

    entry = registry.lookup(key)
    if entry is None:
        log.debug("command_not_found", key=key)
        return Unmatched(MatchFailure.NOT_FOUND, key)

    module = _instantiate(entry, log)
    if isinstance(module, ModuleInstantiationError):
        return Unmatched(MatchFailure.MODULE_UNAVAILABLE, key, error=module)

    module.bind_context(ctx)

    if not entry.descriptor.allows(ctx.kind):
        log.debug(
            "command_wrong_context",
            key=key,
            handler=entry.qualname,
            kind=ctx.kind.value,
        )
        return Unmatched(MatchFailure.WRONG_CONTEXT, key)

    return Resolved(entry, module, entry.bind(module))
