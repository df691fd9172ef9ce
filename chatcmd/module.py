"""Command modules and the declarative ``@command`` registration surface.

Module authors subclass CommandModule and mark handler methods with
``@command``::

    class Fun(CommandModule):
        @command("ping", contexts={ChannelKind.DIRECT, ChannelKind.GROUP},
                 description="Check the bot is alive")
        def ping(self):
            self.ctx.reply("pong")

A fresh instance is created for every resolved invocation, so handlers
may keep scratch state on ``self`` without leaking it between messages.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from .context import ALL_CONTEXTS, ChannelKind, CommandContext
from .exceptions import ConfigurationError

# Attribute the decorator stores the descriptor under
DESCRIPTOR_ATTR = "__command__"


class CommandDescriptor(BaseModel):
    """Static metadata for one handler.

    Attributes:
        keys: Case-sensitive keys that select the handler. ``""`` is legal.
        contexts: Conversation kinds the handler may run in. Empty means never.
        description: Help text only, no runtime effect.
    """

    model_config = ConfigDict(frozen=True)

    keys: FrozenSet[StrictStr] = Field(..., min_length=1)
    contexts: FrozenSet[ChannelKind] = Field(default=ALL_CONTEXTS)
    description: str = ""

    def allows(self, kind: ChannelKind) -> bool:
        return kind in self.contexts


def command(
    *keys: str,
    contexts: Iterable[ChannelKind] = ALL_CONTEXTS,
    description: str = "",
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a CommandModule method as a command handler.

    Raises:
        ConfigurationError: If no keys are given or a key is not a string.
    """
    try:
        descriptor = CommandDescriptor(
            keys=frozenset(keys), contexts=frozenset(contexts), description=description
        )
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(
            f"Invalid command declaration: {e}", module="module", keys=list(keys)
        ) from e

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        if hasattr(fn, DESCRIPTOR_ATTR):
            raise ConfigurationError(
                "Handler is already decorated with @command",
                module="module",
                handler=getattr(fn, "__qualname__", repr(fn)),
            )
        setattr(fn, DESCRIPTOR_ATTR, descriptor)
        return fn

    return decorator


def get_descriptor(fn: Any) -> Optional[CommandDescriptor]:
    """Return the descriptor attached to ``fn``, if any."""
    descriptor = getattr(fn, DESCRIPTOR_ATTR, None)
    return descriptor if isinstance(descriptor, CommandDescriptor) else None


class CommandModule:
    """Base class for all command modules.

    Subclasses must be constructible with no arguments. The context
    slot is filled exactly once by the resolver before the handler runs.
    """

    _ctx: Optional[CommandContext] = None

    @property
    def ctx(self) -> CommandContext:
        if self._ctx is None:
            raise RuntimeError(
                f"{type(self).__name__} has no command context bound"
            )
        return self._ctx

    @property
    def log(self):
        """Logger bound to this module's name, routed to the modules log."""
        return structlog.get_logger("chatcmd.modules").bind(module=type(self).__name__)

    @property
    def is_bound(self) -> bool:
        return self._ctx is not None

    def bind_context(self, ctx: CommandContext) -> None:
        if self._ctx is not None:
            raise RuntimeError(
                f"{type(self).__name__} already has a command context bound"
            )
        self._ctx = ctx


def is_module_type(obj: Any) -> bool:
    """Whether ``obj`` is a concrete CommandModule subclass."""
    return (
        isinstance(obj, type)
        and issubclass(obj, CommandModule)
        and obj is not CommandModule
        and not inspect.isabstract(obj)
    )


@dataclass(frozen=True)
class CommandEntry:
    """One row of the registration table: a handler and where it lives."""

    module: type
    name: str
    function: Callable[..., Any]
    descriptor: CommandDescriptor

    @property
    def keys(self) -> FrozenSet[str]:
        return self.descriptor.keys

    @property
    def contexts(self) -> FrozenSet[ChannelKind]:
        return self.descriptor.contexts

    @property
    def description(self) -> str:
        return self.descriptor.description

    @property
    def qualname(self) -> str:
        return f"{self.module.__module__}.{self.module.__qualname__}.{self.name}"

    def bind(self, instance: CommandModule) -> Callable[..., Any]:
        """Bind the registered function to a module instance."""
        return self.function.__get__(instance, self.module)


def collect_commands(module_cls: type) -> List[CommandEntry]:
    """Build table rows for handlers declared directly on ``module_cls``.

    Inherited handlers belong to the class that declares them.
    """
    entries = []
    for name, attr in vars(module_cls).items():
        descriptor = get_descriptor(attr)
        if descriptor is not None and callable(attr):
            entries.append(CommandEntry(module_cls, name, attr, descriptor))
    return entries
