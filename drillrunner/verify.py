"""Checking exercises in order and prompting the learner about progress."""

from __future__ import annotations

import itertools
import sys
import threading
from typing import Iterable

from .exercise import (
    CompilationError,
    CompiledExercise,
    Exercise,
    ExerciseError,
    Mode,
    RunError,
)
from .ui import blue, bold, no_emoji, separator, success, warn

_BAR_WIDTH = 60
_TICK_CHARS = "⠁⠂⠄⡀⢀⠠⠐⠈"


class VerificationFailed(Exception):
    """Raised by verify() with the first exercise that did not pass."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(str(exercise))
        self.exercise = exercise


def _stderr_is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


class _Spinner:
    """A status line with a spinner, drawn only on a terminal."""

    def __init__(self, message: str, interval: float = 0.1) -> None:
        self._message = message
        self._interval = interval
        self._enabled = _stderr_is_tty()
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        if self._enabled:
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()

    def _spin(self) -> None:
        for frame in itertools.cycle(_TICK_CHARS):
            with self._lock:
                if self._stop.is_set():
                    return
                sys.stderr.write(f"\r\x1b[2K{frame} {self._message}")
                sys.stderr.flush()
            if self._stop.wait(self._interval):
                return

    def set_message(self, message: str) -> None:
        with self._lock:
            self._message = message

    def finish_and_clear(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            sys.stderr.write("\r\x1b[2K")
            sys.stderr.flush()

    def __enter__(self) -> "_Spinner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish_and_clear()


class _ProgressBar:
    """Overall progress across exercises, drawn only on a terminal."""

    def __init__(self, position: int, total: int) -> None:
        self._position = position
        self._total = total
        self._message = ""
        self._enabled = _stderr_is_tty()

    def set_message(self, message: str) -> None:
        self._message = message
        self._draw()

    def inc(self) -> None:
        self._position += 1
        self._draw()

    def _draw(self) -> None:
        if not self._enabled:
            return
        if self._total:
            filled = min(_BAR_WIDTH, self._position * _BAR_WIDTH // self._total)
        else:
            filled = _BAR_WIDTH
        if filled >= _BAR_WIDTH:
            bar = "#" * _BAR_WIDTH
        else:
            bar = "#" * filled + ">" + "-" * (_BAR_WIDTH - filled - 1)
        sys.stderr.write(
            f"\r\x1b[2KProgress: [{bar}] {self._position}/{self._total} {self._message}"
        )
        sys.stderr.flush()


def _percentage(done: int, total: int) -> float:
    return done / total * 100.0 if total else 0.0


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationFailed at the first that fails."""
    num_done, total = progress
    bar = _ProgressBar(num_done, total)
    percentage = _percentage(num_done, total)
    bar.set_message(f"({percentage:.1f} %)")

    for exercise in exercises:
        try:
            match exercise.mode:
                case Mode.TEST | Mode.BUILD_SCRIPT:
                    passed = _compile_and_test(exercise, True, verbose, success_hints)
                case Mode.COMPILE:
                    passed = _compile_and_run_interactively(exercise, success_hints)
                case Mode.CLIPPY:
                    passed = _compile_only(exercise, success_hints)
        except ExerciseError:
            passed = False
        if not passed:
            raise VerificationFailed(exercise)
        if total:
            percentage += 100.0 / total
        bar.inc()
        bar.set_message(f"({percentage:.1f} %)")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's test harness without prompting.

    Raises CompilationError or RunError on failure.
    """
    _compile_and_test(exercise, False, verbose, False)


def _compile(exercise: Exercise, spinner: _Spinner) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as err:
        spinner.finish_and_clear()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        raise


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _Spinner(f"Compiling {exercise}...") as spinner:
        with _compile(exercise, spinner):
            spinner.finish_and_clear()
            return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _Spinner(f"Compiling {exercise}...") as spinner:
        with _compile(exercise, spinner) as compiled:
            spinner.set_message(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as err:
                spinner.finish_and_clear()
                warn(f"Ran {exercise} with errors")
                print(err.output.stdout)
                print(err.output.stderr)
                raise
            spinner.finish_and_clear()
            return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    with _Spinner(f"Testing {exercise}...") as spinner:
        with _compile(exercise, spinner) as compiled:
            try:
                output = compiled.run()
            except RunError as err:
                spinner.finish_and_clear()
                warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
                print(err.output.stdout)
                raise
            spinner.finish_and_clear()
            if verbose:
                print(output.stdout)
            if interactive:
                return prompt_for_completion(exercise, None, success_hints)
            return True


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None = None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is done; otherwise explain how to move on."""
    state = exercise.state()
    if state.done:
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    emoji_free = no_emoji()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if emoji_free
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if emoji_free:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(separator())
        print(prompt_output)
        print(separator())
        print()
    if success_hints:
        print("Hints:")
        print(separator())
        print(exercise.hint)
        print(separator())
        print()

    print("You can keep working on this exercise,")
    print(f"or jump into the next one by removing the {bold('`I AM NOT DONE`')} comment:")
    print()
    for context_line in state.context:
        text = bold(context_line.line) if context_line.important else context_line.line
        number = blue(bold(f"{context_line.number:>2}"))
        print(f"{number} {blue('|')}  {text}")

    return False