import pytest

from minishell.lexer import Command, Redirection
from minishell.redirection import RedirectionError, open_redirections, read_heredoc


def _reader(lines):
    prompts = []
    remaining = iter(lines)

    def read_line(prompt):
        prompts.append(prompt)
        return next(remaining)

    return read_line, prompts


def test_heredoc_stops_at_delimiter():
    read_line, prompts = _reader(["a", "b", "EOF", "never"])
    assert read_heredoc("EOF", read_line) == "a\nb\n"
    assert prompts == ["> "] * 3


def test_heredoc_stops_at_none():
    read_line, _ = _reader(["x", None])
    assert read_heredoc("EOF", read_line) == "x\n"


def test_heredoc_stops_at_eof_error():
    def read_line(prompt):
        raise EOFError

    assert read_heredoc("EOF", read_line) == ""


def test_heredoc_interrupted():
    def read_line(prompt):
        raise KeyboardInterrupt

    with pytest.raises(RedirectionError) as info:
        read_heredoc("EOF", read_line)
    assert info.value.exit_status == 130


def test_no_redirections_inherit():
    with open_redirections(Command(["cat"])) as streams:
        assert streams == (None, None)


def test_output_truncates_and_append_appends(tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"old\n")
    with open_redirections(Command(["x"], [Redirection(">", str(target))])) as (_, out):
        out.write(b"new\n")
    assert target.read_bytes() == b"new\n"
    with open_redirections(Command(["x"], [Redirection(">>", str(target))])) as (_, out):
        out.write(b"more\n")
    assert target.read_bytes() == b"new\nmore\n"


def test_input_file(tmp_path):
    source = tmp_path / "in.txt"
    source.write_bytes(b"content\n")
    with open_redirections(Command(["x"], [Redirection("<", str(source))])) as (inp, out):
        assert inp.read() == b"content\n"
        assert out is None


def test_heredoc_text_becomes_stdin():
    command = Command(["cat"], [Redirection("<<", "EOF")])
    with open_redirections(command, "line\n") as (inp, _):
        assert inp.read() == b"line\n"


def test_input_file_overrides_heredoc(tmp_path):
    source = tmp_path / "in.txt"
    source.write_bytes(b"file\n")
    command = Command(["cat"], [Redirection("<", str(source)), Redirection("<<", "EOF")])
    with open_redirections(command, "heredoc\n") as (inp, _):
        assert inp.read() == b"file\n"


def test_last_output_wins_but_all_created(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    command = Command(["x"], [Redirection(">", str(first)), Redirection(">", str(second))])
    with open_redirections(command) as (_, out):
        out.write(b"data")
    assert first.read_bytes() == b""
    assert second.read_bytes() == b"data"


def test_missing_input_raises_after_earlier_outputs(tmp_path):
    created = tmp_path / "created"
    missing = tmp_path / "missing"
    command = Command(["x"], [Redirection(">", str(created)), Redirection("<", str(missing))])
    with pytest.raises(RedirectionError) as info:
        with open_redirections(command):
            pass
    assert str(missing) in info.value.message
    assert info.value.exit_status == 1
    assert created.exists()


def test_streams_closed_on_exit(tmp_path):
    target = tmp_path / "out"
    with open_redirections(Command(["x"], [Redirection(">", str(target))])) as (_, out):
        pass
    assert out.closed