import pytest

from xv6sim.flags import OpenFlag
from xv6sim.shell import (
    BackCmd,
    ExecCmd,
    ListCmd,
    PipeCmd,
    RedirCmd,
    ShellSyntaxError,
    parse_cd,
    parse_command,
    tokenize,
)


def test_tokenize_symbols_and_words():
    assert tokenize("a>>b|c") == [
        ("word", "a"),
        (">>", ">>"),
        ("word", "b"),
        ("|", "|"),
        ("word", "c"),
    ]


def test_tokenize_skips_whitespace():
    assert tokenize(" \tls  -l \n") == [("word", "ls"), ("word", "-l")]


def test_tokenize_empty():
    assert tokenize("   \n") == []


def test_simple_exec():
    assert parse_command("echo hello world\n") == ExecCmd(["echo", "hello", "world"])


def test_empty_line_is_empty_exec():
    assert parse_command("\n") == ExecCmd([])


def test_pipe():
    assert parse_command("cat f | wc") == PipeCmd(ExecCmd(["cat", "f"]), ExecCmd(["wc"]))


def test_pipe_is_right_associative():
    cmd = parse_command("a | b | c")
    assert cmd == PipeCmd(ExecCmd(["a"]), PipeCmd(ExecCmd(["b"]), ExecCmd(["c"])))


def test_list():
    assert parse_command("a ; b") == ListCmd(ExecCmd(["a"]), ExecCmd(["b"]))


def test_background():
    assert parse_command("sleep &") == BackCmd(ExecCmd(["sleep"]))


def test_redirections_nest_in_order():
    cmd = parse_command("cat < in > out")
    inner = RedirCmd(ExecCmd(["cat"]), "in", OpenFlag.RDONLY, 0)
    assert cmd == RedirCmd(inner, "out", OpenFlag.WRONLY | OpenFlag.CREATE, 1)


def test_append_redirection_opens_for_write():
    cmd = parse_command("echo x >> log")
    assert cmd == RedirCmd(ExecCmd(["echo", "x"]), "log", OpenFlag.WRONLY | OpenFlag.CREATE, 1)


def test_block_with_redirection():
    cmd = parse_command("(a ; b) > f")
    expected = RedirCmd(
        ListCmd(ExecCmd(["a"]), ExecCmd(["b"])), "f", OpenFlag.WRONLY | OpenFlag.CREATE, 1
    )
    assert cmd == expected


def test_leftovers_error():
    with pytest.raises(ShellSyntaxError, match="leftovers: \\)"):
        parse_command("echo a )")


def test_missing_redirection_file():
    with pytest.raises(ShellSyntaxError, match="missing file for redirection"):
        parse_command("cat <")


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parse_command("(echo a")


def test_symbol_inside_arguments_is_syntax_error():
    with pytest.raises(ShellSyntaxError, match="^syntax$"):
        parse_command("echo (")


def test_too_many_args():
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parse_command(" ".join(["w"] * 10))


def test_nine_args_allowed():
    assert parse_command(" ".join(["w"] * 9)) == ExecCmd(["w"] * 9)


def test_parse_cd():
    assert parse_cd("cd /tmp\n") == "/tmp"
    assert parse_cd("ls\n") is None
    assert parse_cd("cdx\n") is None