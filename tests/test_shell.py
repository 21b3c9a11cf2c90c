import io
import os
import sys

import pytest

from minishell.builtins import ShellExit
from minishell.shell import PROMPT, Shell, main


def _env(tmp_path):
    return {"PATH": os.environ.get("PATH", ""), "HOME": str(tmp_path)}


def _reader(lines):
    remaining = iter(lines)

    def read(prompt):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return read


def test_run_line_echo(tmp_path, capfd):
    shell = Shell(_env(tmp_path))
    assert shell.run_line("echo hi") == 0
    assert capfd.readouterr().out == "hi\n"


def test_empty_line_keeps_status(tmp_path):
    shell = Shell(_env(tmp_path))
    shell.state.exit_status = 7
    assert shell.run_line("") == 7


def test_syntax_error(tmp_path, capfd):
    shell = Shell(_env(tmp_path))
    assert shell.run_line("| ls") == 2
    assert "syntax error near unexpected token `|'" in capfd.readouterr().err
    assert shell.state.exit_status == 2


def test_exit_raises(tmp_path):
    shell = Shell(_env(tmp_path))
    with pytest.raises(ShellExit) as info:
        shell.run_line("exit 5")
    assert info.value.status == 5


def test_export_then_expand(tmp_path, capfd):
    shell = Shell(_env(tmp_path))
    shell.run_line("export GREETING=hello")
    shell.run_line("echo $GREETING")
    assert capfd.readouterr().out == "hello\n"


def test_status_expansion_after_failure(tmp_path, capfd):
    shell = Shell({"PATH": str(tmp_path)})
    assert shell.run_line("no-such-command-here") == 127
    capfd.readouterr()
    shell.run_line("echo $?")
    assert capfd.readouterr().out == "127\n"


def test_loop_exit_with_variable(tmp_path):
    shell = Shell(_env(tmp_path), _reader(["export CODE=7", "exit $CODE"]))
    assert shell.loop() == 7


def test_loop_end_of_input(tmp_path, capfd):
    shell = Shell(_env(tmp_path), _reader(["unset NOTHING"]))
    assert shell.loop() == 0
    assert capfd.readouterr().out.endswith("exit\n")


def test_loop_keeps_last_status_at_end_of_input(tmp_path):
    shell = Shell({"PATH": str(tmp_path)}, _reader(["no-such-command-here"]))
    assert shell.loop() == 127


def test_loop_prompt(tmp_path):
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        raise EOFError

    status = Shell(_env(tmp_path), read).loop()
    assert status == 0
    assert prompts == [PROMPT]


def test_main_reads_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("exit 3\n"))
    assert main([]) == 3