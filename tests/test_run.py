import subprocess
from pathlib import Path

import pytest

from drillrunner.exercise import (
    CompilationError,
    Exercise,
    Mode,
    RunError,
    temp_file_path,
)
from drillrunner.run import reset, run

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "fn main() {\n}\n"


class FakeToolchain:
    def __init__(self, compile_rc=0, run_rc=0, run_stdout="", run_stderr="", compile_stderr=""):
        self.compile_rc = compile_rc
        self.run_rc = run_rc
        self.run_stdout = run_stdout
        self.run_stderr = run_stderr
        self.compile_stderr = compile_stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        args = list(args)
        self.calls.append(args)
        if args[0] in ("rustc", "cargo"):
            return subprocess.CompletedProcess(
                args, self.compile_rc, b"", self.compile_stderr.encode()
            )
        return subprocess.CompletedProcess(
            args, self.run_rc, self.run_stdout.encode(), self.run_stderr.encode()
        )


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_EMOJI", raising=False)
    monkeypatch.delenv("CLICOLOR_FORCE", raising=False)


def install(monkeypatch, **kwargs):
    fake = FakeToolchain(**kwargs)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def make_exercise(tmp_path, name, content, mode=Mode.COMPILE):
    path = tmp_path / f"{name}.rs"
    path.write_text(content, encoding="utf-8")
    return Exercise(name=name, path=Path(path), mode=mode, hint="Hello!")


def test_run_compile_success(tmp_path, monkeypatch, capsys):
    fake = install(monkeypatch, run_stdout="Hello World!")
    exercise = make_exercise(tmp_path, "compSuccess", FINISHED)
    run(exercise, False)
    out = capsys.readouterr().out
    assert "Hello World!" in out
    assert f"Successfully ran {exercise}" in out
    assert fake.calls[1] == [temp_file_path()]


def test_run_compile_failure(tmp_path, monkeypatch, capsys):
    install(monkeypatch, compile_rc=1, compile_stderr="error: expected pattern")
    exercise = make_exercise(tmp_path, "compFailure", "fn main() {\n    let\n}\n")
    with pytest.raises(CompilationError) as info:
        run(exercise, False)
    assert info.value.exercise == exercise
    out = capsys.readouterr().out
    assert f"Compilation of {exercise} failed!, Compiler error message:" in out
    assert "error: expected pattern" in out


def test_run_binary_failure(tmp_path, monkeypatch, capsys):
    install(monkeypatch, run_rc=101, run_stdout="before", run_stderr="panicked")
    exercise = make_exercise(tmp_path, "crash", FINISHED)
    with pytest.raises(RunError) as info:
        run(exercise, False)
    assert info.value.output.stderr == "panicked"
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert out.index("before") < out.index("panicked")


def test_run_compile_exercise_does_not_prompt(tmp_path, monkeypatch, capsys):
    install(monkeypatch)
    exercise = make_exercise(tmp_path, "pending_exercise", PENDING)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(tmp_path, monkeypatch, capsys):
    install(monkeypatch)
    exercise = make_exercise(tmp_path, "pending_test_exercise", PENDING, mode=Mode.TEST)
    run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_success_with_output(tmp_path, monkeypatch, capsys):
    install(monkeypatch, run_stdout="THIS TEST TOO SHALL PASS")
    exercise = make_exercise(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    run(exercise, True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_test_success_without_output(tmp_path, monkeypatch, capsys):
    install(monkeypatch, run_stdout="THIS TEST TOO SHALL PASS")
    exercise = make_exercise(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    run(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_run_test_failure(tmp_path, monkeypatch):
    install(monkeypatch, run_rc=101)
    exercise = make_exercise(tmp_path, "testNotPassed", FINISHED, mode=Mode.TEST)
    with pytest.raises(RunError) as info:
        run(exercise, False)
    assert info.value.exercise == exercise


def test_run_clippy_runs_binary(tmp_path, monkeypatch):
    (tmp_path / "exercises" / "clippy").mkdir(parents=True)
    fake = install(monkeypatch)
    exercise = make_exercise(tmp_path, "clippy1", FINISHED, mode=Mode.CLIPPY)
    run(exercise, False)
    assert fake.calls[-1] == [temp_file_path()]


def test_reset_stashes_exercise(tmp_path, monkeypatch):
    started = []

    class FakePopen:
        def __init__(self, args, **kwargs):
            started.append(list(args))

    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    exercise = make_exercise(tmp_path, "intro1", FINISHED)
    process = reset(exercise)
    assert isinstance(process, FakePopen)
    assert started == [["git", "stash", "--", str(exercise.path)]]


def test_reset_raises_when_git_missing(tmp_path, monkeypatch):
    def missing(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(subprocess, "Popen", missing)
    exercise = make_exercise(tmp_path, "intro1", FINISHED)
    with pytest.raises(FileNotFoundError):
        reset(exercise)