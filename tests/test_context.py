"""Tests for CommandContext and ChannelKind."""

from unittest.mock import MagicMock

import pytest

from chatcmd.context import ChannelKind, CommandContext


@pytest.mark.parametrize(
    "channel_type,expected",
    [
        ("DM", ChannelKind.DIRECT),
        ("dm", ChannelKind.DIRECT),
        ("PRIVATE", ChannelKind.DIRECT),
        ("GUILD_TEXT", ChannelKind.GROUP),
        ("GUILD_NEWS", ChannelKind.GROUP),
        ("GUILD_STORE", ChannelKind.GROUP),
        ("GROUP_DM", ChannelKind.GROUP),
        ("GUILD_VOICE", ChannelKind.UNKNOWN),
        ("", ChannelKind.UNKNOWN),
        (None, ChannelKind.UNKNOWN),
    ],
)
def test_from_channel_type(channel_type, expected):
    """Adapter channel type names map onto ChannelKind."""
    assert ChannelKind.from_channel_type(channel_type) is expected


def test_defaults():
    """A bare context has no args, no key and UNKNOWN kind."""
    ctx = CommandContext()
    assert ctx.kind is ChannelKind.UNKNOWN
    assert ctx.args is None
    assert ctx.args_or_empty == ()
    assert ctx.key == ""
    assert ctx.user_input == ""


def test_kind_accepts_string_value():
    assert CommandContext("group").kind is ChannelKind.GROUP


def test_set_args_is_immutable_copy():
    """Later changes to the source list do not leak into the context."""
    source = ["a", "b"]
    ctx = CommandContext()
    ctx.set_args(source)
    source.append("c")
    assert ctx.args == ("a", "b")
    with pytest.raises(AttributeError):
        ctx.args.append("d")


def test_key_falls_back_to_first_arg():
    """Without an explicit key, the first argument is used."""
    ctx = CommandContext()
    ctx.set_args(["roll", "2d6"])
    assert ctx.key == "roll"
    ctx.key = "dice"
    assert ctx.key == "dice"


def test_set_args_and_key_drop_first():
    """The key token can be stripped from the arguments."""
    ctx = CommandContext()
    ctx.set_args_and_key(["roll", "2d6", "+3"], "roll", drop_first=True)
    assert ctx.args == ("2d6", "+3")
    assert ctx.key == "roll"
    assert ctx.user_input == "2d6 +3"


def test_set_args_and_key_keep_all():
    ctx = CommandContext()
    ctx.set_args_and_key(["roll", "2d6"], "roll")
    assert ctx.args == ("roll", "2d6")


def test_kind_checks():
    direct = CommandContext(ChannelKind.DIRECT)
    group = CommandContext(ChannelKind.GROUP)
    assert direct.is_direct and not direct.is_group
    assert group.is_group and not group.is_direct
    assert group.is_context(ChannelKind.GROUP)
    assert not CommandContext().is_context(ChannelKind.DIRECT)


def test_reply_and_send_forward_to_channel():
    """reply() and send() delegate to the bound channel."""
    channel = MagicMock()
    channel.reply.return_value = "reply-ref"
    ctx = CommandContext(ChannelKind.DIRECT, channel=channel, author="user-1")

    assert ctx.reply("pong") == "reply-ref"
    ctx.send("hello")

    channel.reply.assert_called_once_with("pong")
    channel.send.assert_called_once_with("hello")
    assert ctx.author == "user-1"


def test_reply_without_channel_raises():
    with pytest.raises(RuntimeError, match="no channel"):
        CommandContext().reply("pong")
