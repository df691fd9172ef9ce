"""Message-level entry point: prefix check, tokenization, resolution.

The gateway builds a CommandContext per incoming message and calls
handle(); the returned invocation is run by the gateway's message loop.
"""

from typing import Any, List, Optional, Tuple

import structlog

from .config import DEFAULT_PREFIX, Config, get_config
from .context import CommandContext
from .registry import Registry
from .resolver import Invocation, MatchFailure, Unmatched, resolve

logger = structlog.get_logger("chatcmd.resolver")


class CommandDispatcher:
    """Routes prefixed chat messages to command handlers.

    Args:
        registry: A validated Registry.
        prefix: Trigger prefix that marks a message as a command.
        log: Diagnostics logger passed through to resolve().
    """

    def __init__(
        self,
        registry: Registry,
        prefix: str = DEFAULT_PREFIX,
        log: Optional[Any] = None,
    ):
        self.registry = registry
        self.prefix = prefix
        self._log = log if log is not None else logger

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "CommandDispatcher":
        """Scan the configured namespaces and build a dispatcher.

        Raises:
            ConfigurationError: If a configured namespace cannot be scanned.
            DuplicateKeyError: If two handlers share a key.
        """
        config = config or get_config()
        registry = Registry.build(config.namespaces, disabled=config.disabled_modules)
        return cls(registry, prefix=config.command_prefix)

    def parse(self, text: str) -> Optional[Tuple[str, List[str]]]:
        """Split a message into ``(key, tokens)``.

        Returns None if ``text`` does not start with the prefix. ``tokens``
        still includes the key as its first element when there is one;
        the key is ``""`` when nothing follows the prefix.
        """
        if not text.startswith(self.prefix):
            return None
        tokens = text[len(self.prefix):].split()
        key = tokens[0] if tokens else ""
        return key, tokens

    def get_command(self, ctx: CommandContext, key: str) -> Invocation:
        """Resolve ``key`` for ``ctx`` without touching its args."""
        return resolve(self.registry, ctx, key, log=self._log)

    def handle(self, ctx: CommandContext, text: str) -> Invocation:
        """Parse ``text``, fill ``ctx`` with its args and key, and resolve."""
        parsed = self.parse(text)
        if parsed is None:
            return Unmatched(MatchFailure.NOT_A_COMMAND)
        key, tokens = parsed
        ctx.set_args_and_key(tokens, key, drop_first=True)
        return self.get_command(ctx, key)
