"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from .exercise import CompilationError, Exercise, Mode, RunError
from .ui import success, warn
from .verify import _Spinner, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run (or test) one exercise without prompting.

    Raises CompilationError or RunError on failure.
    """
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start 'git stash -- <path>' for the exercise and return the process."""
    return subprocess.Popen(["git", "stash", "--", str(exercise.path)])


def _compile_and_run(exercise: Exercise) -> None:
    with _Spinner(f"Compiling {exercise}...") as spinner:
        try:
            compiled = exercise.compile()
        except CompilationError as err:
            spinner.finish_and_clear()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(err.output.stderr)
            raise

        with compiled:
            spinner.set_message(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as err:
                spinner.finish_and_clear()
                print(err.output.stdout)
                print(err.output.stderr)
                warn(f"Ran {exercise} with errors")
                raise
            spinner.finish_and_clear()
            print(output.stdout)
            success(f"Successfully ran {exercise}")