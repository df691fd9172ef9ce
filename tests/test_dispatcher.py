"""Tests for CommandDispatcher message handling."""

import textwrap
from unittest.mock import MagicMock

import pytest

from chatcmd.config import Config
from chatcmd.context import ChannelKind, CommandContext
from chatcmd.dispatcher import CommandDispatcher
from chatcmd.exceptions import ConfigurationError
from chatcmd.module import CommandModule, command
from chatcmd.registry import Registry
from chatcmd.resolver import MatchFailure, Resolved, Unmatched


class Dice(CommandModule):
    @command("roll", "r", contexts={ChannelKind.DIRECT, ChannelKind.GROUP})
    def roll(self):
        return list(self.ctx.args)


class Help(CommandModule):
    @command("", contexts={ChannelKind.DIRECT})
    def usage(self):
        return "usage"


@pytest.fixture
def dispatcher():
    return CommandDispatcher(Registry([Dice, Help]), prefix="!")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("!roll 2d6 +1", ("roll", ["roll", "2d6", "+1"])),
        ("!roll   2d6\t+1 ", ("roll", ["roll", "2d6", "+1"])),
        ("!", ("", [])),
        ("!   ", ("", [])),
        ("roll 2d6", None),
        ("?roll", None),
        ("", None),
    ],
)
def test_parse(dispatcher, text, expected):
    """Prefix stripping and whitespace tokenization."""
    assert dispatcher.parse(text) == expected


def test_parse_multi_character_prefix():
    dispatcher = CommandDispatcher(Registry([]), prefix="bot ")
    assert dispatcher.parse("bot roll 1") == ("roll", ["roll", "1"])
    assert dispatcher.parse("roll 1") is None


def test_handle_fills_context_and_resolves(dispatcher):
    """handle() sets key and args before resolving."""
    ctx = CommandContext(ChannelKind.GROUP)

    invocation = dispatcher.handle(ctx, "!roll 2d6 +1")

    assert isinstance(invocation, Resolved)
    assert ctx.key == "roll"
    assert ctx.args == ("2d6", "+1")
    assert invocation.run() == ["2d6", "+1"]


def test_handle_alias_key(dispatcher):
    ctx = CommandContext(ChannelKind.DIRECT)
    assert dispatcher.handle(ctx, "!r 1d20").run() == ["1d20"]


def test_handle_without_prefix_is_not_a_command(dispatcher):
    """Plain chat never reaches the resolver."""
    ctx = CommandContext(ChannelKind.DIRECT)

    invocation = dispatcher.handle(ctx, "hello there")

    assert isinstance(invocation, Unmatched)
    assert invocation.reason is MatchFailure.NOT_A_COMMAND
    assert ctx.args is None


def test_handle_bare_prefix_uses_empty_key(dispatcher):
    """The prefix alone resolves the empty-string key."""
    assert dispatcher.handle(CommandContext(ChannelKind.DIRECT), "!").run() == "usage"
    group = dispatcher.handle(CommandContext(ChannelKind.GROUP), "!")
    assert group.reason is MatchFailure.WRONG_CONTEXT


def test_handle_unknown_command(dispatcher):
    invocation = dispatcher.handle(CommandContext(ChannelKind.DIRECT), "!Roll")
    assert invocation.reason is MatchFailure.NOT_FOUND


def test_get_command_leaves_args_alone(dispatcher):
    ctx = CommandContext(ChannelKind.DIRECT)
    ctx.set_args(["x"])
    invocation = dispatcher.get_command(ctx, "roll")
    assert invocation.run() == ["x"]


def test_dispatcher_passes_logger_to_resolver():
    sink = MagicMock()
    dispatcher = CommandDispatcher(Registry([Dice]), log=sink)
    dispatcher.handle(CommandContext(ChannelKind.DIRECT), "!nope")
    assert sink.debug.call_args.args[0] == "command_not_found"


def test_from_config(tmp_path, monkeypatch):
    """from_config() scans configured namespaces with the configured prefix."""
    monkeypatch.delenv("CHATCMD_PREFIX", raising=False)
    monkeypatch.delenv("CHATCMD_NAMESPACES", raising=False)
    pkg = tmp_path / "dispatch_cfg_pkg"
    pkg.mkdir()
    (pkg / "__init__.py").write_text(
        textwrap.dedent(
            """
            from chatcmd import CommandModule, command

            class Echo(CommandModule):
                @command("echo")
                def echo(self):
                    return self.ctx.user_input

            class Muted(CommandModule):
                @command("mute")
                def mute(self):
                    return "muted"
            """
        )
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "settings.yaml").write_text(
        "command_prefix: '$'\n"
        "namespaces:\n  - dispatch_cfg_pkg\n"
        "disabled_modules:\n  - Muted\n"
    )

    dispatcher = CommandDispatcher.from_config(Config(config_dir))

    assert dispatcher.prefix == "$"
    assert dispatcher.registry.keys == frozenset({"echo"})
    ctx = CommandContext(ChannelKind.GROUP)
    assert dispatcher.handle(ctx, "$echo a  b").run() == "a b"


def test_from_config_with_bad_namespace(tmp_path, monkeypatch):
    """An unimportable configured namespace fails startup."""
    monkeypatch.delenv("CHATCMD_NAMESPACES", raising=False)
    (tmp_path / "settings.yaml").write_text("namespaces: [not_a_real_namespace_xyz]\n")
    with pytest.raises(ConfigurationError):
        CommandDispatcher.from_config(Config(tmp_path))
