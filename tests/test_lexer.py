import pytest

from minishell.env import copy_envp
from minishell.lexer import (
    Command,
    Redirection,
    Token,
    parse_line,
    split_commands,
    tokenize,
)
from minishell.validator import ShellSyntaxError


@pytest.fixture
def env():
    return copy_envp(["USER=alice", "F=out.txt"])


def values(tokens):
    return [token.value for token in tokens]


def test_tokenize_simple_words():
    tokens = tokenize("echo hello")
    assert values(tokens) == ["echo", "hello"]
    assert all(token.space_after for token in tokens)


def test_tokenize_pipe_without_spaces():
    tokens = tokenize("echo hi|cat")
    assert values(tokens) == ["echo", "hi", "|", "cat"]
    assert [token.space_after for token in tokens] == [True, False, False, True]


def test_tokenize_heredoc_operator():
    tokens = tokenize("cat<<EOF")
    assert values(tokens) == ["cat", "<<", "EOF"]
    assert tokens[1].redirect_operator
    assert tokens[2].redirect_target
    assert not tokens[0].redirect_operator


def test_tokenize_quoted_section_ends_token():
    tokens = tokenize('echo "a b"c')
    assert values(tokens) == ["echo", '"a b"', "c"]
    assert not tokens[1].space_after


def test_tokenize_blank_line():
    assert tokenize("   \t ") == []


def test_tokenize_operator_without_target_raises():
    with pytest.raises(ShellSyntaxError):
        tokenize("echo >")


def test_tokens_rejoin_to_line_without_blanks():
    line = "ls -l|wc>>log"
    assert "".join(values(tokenize(line))) == line.replace(" ", "")


def test_split_pipeline():
    commands = split_commands(tokenize("ls -l | wc -l"))
    assert [command.argv for command in commands] == [["ls", "-l"], ["wc", "-l"]]


def test_split_extracts_redirections_in_order():
    (command,) = split_commands(tokenize("< in cat > out -n"))
    assert command.argv == ["cat", "-n"]
    assert command.redirections == [Redirection("<", "in"), Redirection(">", "out")]
    assert values(command.tokens) == command.argv


def test_split_only_redirections():
    (command,) = split_commands(tokenize("> out"))
    assert command.argv == []
    assert command.redirections == [Redirection(">", "out")]


def test_split_empty_stage_between_pipes():
    commands = split_commands(tokenize("a | | b"))
    assert [command.argv for command in commands] == [["a"], [], ["b"]]


def test_split_trailing_pipe_raises():
    with pytest.raises(ShellSyntaxError):
        split_commands(tokenize("echo |"))


def test_split_accepts_hand_built_tokens():
    tokens = [Token("echo"), Token(">", redirect_operator=True), Token("f")]
    (command,) = split_commands(tokens)
    assert command == Command(["echo"], [Redirection(">", "f")], [tokens[0]])


def test_parse_line_expands_arguments(env):
    (command,) = parse_line("echo $USER", env, 0)
    assert command.argv == ["echo", env.get("USER")]
    assert values(command.tokens) == ["echo", "$USER"]


def test_parse_line_expands_first_command_targets(env):
    commands = parse_line("cat > $F | cat > $F", env, 0)
    assert commands[0].redirections[0].target == env.get("F")
    assert commands[1].redirections[0].target == "$F"


def test_parse_line_rejects_bad_syntax(env):
    with pytest.raises(ShellSyntaxError) as info:
        parse_line("| ls", env, 0)
    assert info.value.exit_status == 2


def test_parse_line_blank(env):
    assert parse_line("   ", env, 0) == []