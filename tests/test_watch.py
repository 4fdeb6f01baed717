import io
import subprocess
from pathlib import Path
from unittest.mock import patch

from drillrunner.exercise import Exercise, Mode
from drillrunner.watch import WatchShell, WatchStatus, pending_order, watch

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


def _make(tmp_path, name, text):
    path = Path("exercises") / f"{name}.rs"
    full = tmp_path / path
    full.parent.mkdir(parents=True, exist_ok=True)
    full.write_text(text, encoding="utf-8")
    return Exercise(name=name, path=path, mode=Mode.COMPILE, hint=f"hint for {name}")


def _fake_run(args, capture_output=True):
    return subprocess.CompletedProcess(args, 0, b"", b"")


def test_hint_prints_current_hint(capsys):
    shell = WatchShell("Hello!")
    shell.handle("hint\n")
    assert capsys.readouterr().out == "Hello!\n"


def test_hint_without_hint_prints_nothing(capsys):
    shell = WatchShell()
    shell.handle("hint")
    assert capsys.readouterr().out == ""


def test_hint_can_be_replaced(capsys):
    shell = WatchShell("old")
    shell.hint = "new"
    shell.handle("hint")
    assert capsys.readouterr().out == "new\n"


def test_quit_sets_flag(capsys):
    shell = WatchShell()
    assert not shell.should_quit.is_set()
    shell.handle("  quit  ")
    assert shell.should_quit.is_set()
    assert "Bye!" in capsys.readouterr().out


def test_clear_prints_escape(capsys):
    WatchShell().handle("clear")
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_help_lists_commands(capsys):
    WatchShell().handle("help")
    out = capsys.readouterr().out
    assert "Commands available to you in watch mode:" in out
    assert "quits watch mode" in out


def test_unknown_command(capsys):
    WatchShell().handle("dance")
    assert capsys.readouterr().out == "unknown command: dance\n"


def test_bang_without_command(capsys):
    WatchShell().handle("!   ")
    assert "no command provided" in capsys.readouterr().out


def test_bang_with_missing_program(capsys):
    WatchShell().handle("!no_such_program_for_drills --flag")
    assert "failed to execute command `no_such_program_for_drills --flag`" in capsys.readouterr().out


def test_shell_reads_commands_from_stream(capsys):
    shell = WatchShell(stream=io.StringIO("quit\n"))
    shell.start().join(timeout=5)
    assert shell.should_quit.is_set()
    assert "Bye!" in capsys.readouterr().out


def test_pending_order_puts_changed_first(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    first = _make(tmp_path, "first", PENDING)
    second = _make(tmp_path, "second", PENDING)
    done = _make(tmp_path, "done", FINISHED)
    order = list(pending_order([first, second, done], tmp_path / "exercises" / "second.rs"))
    assert order == [second, first]


def test_pending_order_includes_changed_done_exercise(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    first = _make(tmp_path, "first", PENDING)
    done = _make(tmp_path, "done", FINISHED)
    order = list(pending_order([first, done], tmp_path / "exercises" / "done.rs"))
    assert order == [done, first]


def test_pending_order_unrelated_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    first = _make(tmp_path, "first", PENDING)
    done = _make(tmp_path, "done", FINISHED)
    order = list(pending_order([first, done], tmp_path / "exercises" / "other.rs"))
    assert order == [first]


def test_watch_finishes_when_everything_passes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    exercises = [_make(tmp_path, "first", FINISHED), _make(tmp_path, "second", FINISHED)]
    with patch("subprocess.run", side_effect=_fake_run):
        status = watch(exercises, False, False)
    assert status is WatchStatus.FINISHED