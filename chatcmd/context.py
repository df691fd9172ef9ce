"""Request-scoped command context and conversation kinds.

A CommandContext is created by the gateway for every incoming message,
handed to exactly one module instance, and dropped once the handler
returns. Reply/send calls are forwarded to the gateway's channel handle.
"""

from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Sequence, Tuple


_EMPTY = ""


class ChannelKind(str, Enum):
    """Kind of conversation a message arrived on."""
    DIRECT = "direct"
    GROUP = "group"
    UNKNOWN = "unknown"

    @classmethod
    def from_channel_type(cls, channel_type: Optional[str]) -> "ChannelKind":
        """Classify a gateway channel type name (e.g. ``"DM"``, ``"GUILD_TEXT"``)."""
        if not channel_type:
            return cls.UNKNOWN
        return _CHANNEL_TYPES.get(channel_type.upper(), cls.UNKNOWN)


_CHANNEL_TYPES = {
    "DM": ChannelKind.DIRECT,
    "PRIVATE": ChannelKind.DIRECT,
    "DIRECT": ChannelKind.DIRECT,
    "GUILD_TEXT": ChannelKind.GROUP,
    "GUILD_NEWS": ChannelKind.GROUP,
    "GUILD_STORE": ChannelKind.GROUP,
    "GROUP_DM": ChannelKind.GROUP,
    "GROUP": ChannelKind.GROUP,
}

ALL_CONTEXTS = frozenset(ChannelKind)


class Channel(Protocol):
    """Reply/send surface of the originating channel, owned by the gateway."""

    def reply(self, message: str) -> Any:
        ...

    def send(self, message: str) -> Any:
        ...


class CommandContext:
    """Per-message state handed to a command module.

    Args:
        kind: Conversation kind supplied by the gateway.
        channel: Handle used by reply() and send().
        author: Optional sender identifier, opaque to this package.
    """

    def __init__(
        self,
        kind: ChannelKind = ChannelKind.UNKNOWN,
        channel: Optional[Channel] = None,
        author: Any = None,
    ):
        self.kind = ChannelKind(kind)
        self.channel = channel
        self.author = author
        self._args: Optional[Tuple[str, ...]] = None
        self._key: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"CommandContext(kind={self.kind.value!r}, key={self.key!r}, "
            f"args={self.args_or_empty!r})"
        )

    # --- Arguments and key ---

    @property
    def args(self) -> Optional[Tuple[str, ...]]:
        """Tokenized arguments, or None if never set."""
        return self._args

    @property
    def args_or_empty(self) -> Tuple[str, ...]:
        return self._args if self._args is not None else ()

    def set_args(self, args: Iterable[str]) -> None:
        self._args = tuple(args)

    def set_args_and_key(
        self, tokens: Sequence[str], key: str, drop_first: bool = False
    ) -> None:
        """Store the user's tokens and the key they resolved to.

        Args:
            tokens: Whitespace-split user input.
            key: The command key.
            drop_first: Skip ``tokens[0]`` (the key itself) when storing args.
        """
        self._args = tuple(tokens[1:] if drop_first else tokens)
        self._key = key

    @property
    def key(self) -> str:
        """The command key; falls back to the first argument, then ``""``."""
        if self._key is not None:
            return self._key
        if self._args:
            return self._args[0]
        return _EMPTY

    @key.setter
    def key(self, value: str) -> None:
        self._key = value

    @property
    def user_input(self) -> str:
        """Arguments joined back together with single spaces."""
        return " ".join(self.args_or_empty)

    # --- Conversation kind ---

    def is_context(self, kind: ChannelKind) -> bool:
        return self.kind == kind

    @property
    def is_direct(self) -> bool:
        return self.is_context(ChannelKind.DIRECT)

    @property
    def is_group(self) -> bool:
        return self.is_context(ChannelKind.GROUP)

    # --- Channel forwarding ---

    def reply(self, message: str) -> Any:
        """Reply to the originating message. Returns whatever the channel returns."""
        if self.channel is None:
            raise RuntimeError("CommandContext has no channel to reply on")
        return self.channel.reply(message)

    def send(self, message: str) -> Any:
        """Send a plain message to the originating channel."""
        if self.channel is None:
            raise RuntimeError("CommandContext has no channel to send on")
        return self.channel.send(message)
