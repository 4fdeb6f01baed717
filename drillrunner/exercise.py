"""Exercise descriptions, compilation, running and progress detection."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping

from .ui import no_emoji

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_PATTERN = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file_path() -> str:
    """Return a scratch binary path unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the scratch binary, ignoring any error."""
    try:
        os.remove(temp_file_path())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class ExerciseState:
    """Progress of an exercise: done, or pending with context lines."""

    context: tuple[ContextLine, ...] = ()

    @property
    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a finished command."""

    stdout: str
    stderr: str


class ExerciseError(Exception):
    """A command for an exercise failed; carries its output."""

    def __init__(self, exercise: "Exercise", output: ExerciseOutput) -> None:
        super().__init__(str(exercise))
        self.exercise = exercise
        self.output = output


class CompilationError(ExerciseError):
    """The exercise did not compile."""


class RunError(ExerciseError):
    """The compiled exercise exited with an error."""


def _execute(args: Iterable[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(args), capture_output=True)


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(result.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(result.stderr or b"").decode("utf-8", errors="replace"),
    )


def _lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _cargo_manifest(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


def _write_manifest(path: str, name: str) -> None:
    try:
        Path(path).write_text(_cargo_manifest(name), encoding="utf-8")
    except OSError as exc:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if no_emoji()
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        raise OSError(message) from exc


class CompiledExercise:
    """A successfully compiled exercise; removes its binary when closed."""

    def __init__(self, exercise: "Exercise") -> None:
        self.exercise = exercise

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise RunError if it fails."""
        return self.exercise._run()

    def close(self) -> None:
        clean()

    def __enter__(self) -> "CompiledExercise":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Exercise":
        try:
            return cls(
                name=str(data["name"]),
                path=Path(data["path"]),
                mode=Mode(data["mode"]),
                hint=str(data["hint"]),
            )
        except KeyError as exc:
            raise ValueError(f"exercise entry is missing {exc}") from exc

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompilationError on failure."""
        target = temp_file_path()
        source = str(self.path)
        rustc_flags = [*RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
        match self.mode:
            case Mode.COMPILE:
                result = _execute(["rustc", source, "-o", target, *rustc_flags])
            case Mode.TEST:
                result = _execute(["rustc", "--test", source, "-o", target, *rustc_flags])
            case Mode.CLIPPY:
                _write_manifest(CLIPPY_CARGO_TOML_PATH, self.name)
                # Build a runnable binary as well; failures surface through clippy.
                _execute(["rustc", source, "-o", target, *rustc_flags])
                _execute(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS]
                )
                result = _execute(
                    [
                        "cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--", "-D", "warnings", "-D", "clippy::float_cmp",
                    ]
                )
            case Mode.BUILD_SCRIPT:
                _write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
                result = _execute(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
                )
        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(self, _output(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = [temp_file_path()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        result = _execute(args)
        output = _output(result)
        if result.returncode != 0:
            raise RunError(self, output)
        return output

    def state(self) -> ExerciseState:
        """Inspect the source for the 'I AM NOT DONE' marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_PATTERN.search(source):
            return ExerciseState()
        lines = _lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_PATTERN.search(line)), None
        )
        if matched is None:
            raise RuntimeError(f"marker in {self.path} does not sit on a single line")
        low = max(matched - CONTEXT, 0)
        context = tuple(
            ContextLine(line=line, number=i + 1, important=i == matched)
            for i, line in enumerate(lines[low : matched + CONTEXT + 1], start=low)
        )
        return ExerciseState(context)

    def looks_done(self) -> bool:
        """Whether the marker has been removed (not proof of a solution)."""
        return self.state().done

    def __str__(self) -> str:
        return str(self.path)


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from a TOML file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    return [Exercise.from_dict(entry) for entry in data["exercises"]]