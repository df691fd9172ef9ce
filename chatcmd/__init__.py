"""Command routing core for chat bots.

Maps a typed key to a handler method on a command module, checks the
conversation kind it may run in, and binds a fresh module instance to
the message's context.
"""

from .config import Config, get_config
from .context import ALL_CONTEXTS, Channel, ChannelKind, CommandContext
from .dispatcher import CommandDispatcher
from .exceptions import (
    ChatCmdError,
    ConfigurationError,
    DuplicateKeyError,
    ErrorCategory,
    ModuleInstantiationError,
)
from .module import CommandDescriptor, CommandEntry, CommandModule, command
from .registry import Registry
from .resolver import Invocation, MatchFailure, Resolved, Unmatched, resolve
from .validator import DuplicateKey, find_duplicate_keys, validate

__version__ = "1.0.0"

__all__ = [
    "ALL_CONTEXTS",
    "Channel",
    "ChannelKind",
    "ChatCmdError",
    "CommandContext",
    "CommandDescriptor",
    "CommandDispatcher",
    "CommandEntry",
    "CommandModule",
    "Config",
    "ConfigurationError",
    "DuplicateKey",
    "DuplicateKeyError",
    "ErrorCategory",
    "Invocation",
    "MatchFailure",
    "ModuleInstantiationError",
    "Registry",
    "Resolved",
    "Unmatched",
    "command",
    "find_duplicate_keys",
    "get_config",
    "resolve",
    "validate",
]
