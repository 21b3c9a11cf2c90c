import pytest

from minishell.validator import ShellSyntaxError, validate


def _message(line):
    with pytest.raises(ShellSyntaxError) as info:
        validate(line)
    return str(info.value)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "   ",
        "ls -l",
        "echo '|' ';' '<'",
        "echo \"a'b\"",
        "cat > out",
        "cat >> out",
        "cat < in",
        "cat << EOF | wc -l",
        "ls | wc",
        "ls |",
        "echo a;",
    ],
)
def test_accepted_lines(line):
    assert validate(line) is None


@pytest.mark.parametrize(
    "line, token",
    [
        ("| ls", "|"),
        ("  || ls", "||"),
        ("; ls", ";"),
        (";; ls", ";;"),
        ("ls | | wc", "|"),
        ("ls ||| wc", "||"),
        ("a;;b", ";;"),
        ("a ; ; b", ";"),
        ("ls | ; wc", ";"),
    ],
)
def test_separator_errors(line, token):
    assert _message(line) == f"syntax error near unexpected token `{token}'"


@pytest.mark.parametrize("line", ["echo 'abc", 'echo "abc', "echo 'a\" b"])
def test_unclosed_quotes(line):
    assert _message(line) == "syntax error - unclosed quotes"


@pytest.mark.parametrize(
    "line, token",
    [
        ("cat <", "newline"),
        ("cat >", "newline"),
        ("cat >>", "newline"),
        ("cat <<", "newline"),
        ("cat >   ", "newline"),
        ("cat >|", "newline"),
        ("cat <>", "newline"),
        ("cat > |", "|"),
        ("cat <|", "|"),
        ("cat ><", "<"),
        ("cat >> >", ">"),
        ("cat << <", "<"),
        ("cat < ;", ";"),
    ],
)
def test_redirection_errors(line, token):
    assert _message(line) == f"syntax error near unexpected token `{token}'"


def test_error_exit_status():
    with pytest.raises(ShellSyntaxError) as info:
        validate("| x")
    assert info.value.exit_status == 2
    assert info.value.message == str(info.value)


def test_quoted_redirection_is_not_checked():
    assert validate("echo '>'") is None
    assert _message("echo '>' >") == "syntax error near unexpected token `newline'"