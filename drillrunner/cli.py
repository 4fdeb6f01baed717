"""Command-line entry point: argument parsing and subcommand dispatch."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Sequence

from .checklist import check_all
from .exercise import Exercise, ExerciseError, load_exercises
from .project import RustAnalyzerProject
from .run import reset, run
from .ui import no_emoji
from .verify import VerificationFailed, verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"
PROG = "drillrunner"

WELCOME = r"""       welcome to...
     _      _ _ _
  __| |_ __(_) | |_ __ _   _ _ __  _ __   ___ _ __
 / _` | '__| | | | '__| | | | '_ \| '_ \ / _ \ '__|
| (_| | |  | | | | |  | |_| | | | | | | |  __/ |
 \__,_|_|  |_|_|_|_|   \__,_|_| |_|_| |_|\___|_|"""

DEFAULT_OUT = """Thanks for installing drillrunner!

Is this your first time? Don't worry, these exercises are made for beginners!
Here's a couple of notes about how things work:

1. The central concept is that you solve exercises. These exercises usually
   have some sort of syntax error in them, which will cause them to fail
   compilation or testing. Sometimes there's a logic error instead of a syntax
   error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   the runner will be able to move on to the next exercise.
2. If you run in watch mode (which we recommend), it'll automatically start
   with the first exercise. Don't get confused by an error message popping up
   as soon as you start! This is part of the exercise that you're supposed to
   solve, so open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `drillrunner hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to ask for help from
   the people who maintain your exercise collection.
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `drillrunner lsp`.

Got all that? Great! To get started, run `drillrunner watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the finish line!           |
+----------------------------------------------------+

We hope you enjoyed working through all of these exercises!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""


class ExerciseNotFound(LookupError):
    """No exercise matches the requested name."""

    def __init__(self, name: str) -> None:
        if name == "next":
            message = (
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        else:
            message = f"No exercise found for '{name}'!"
        super().__init__(message)
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class _Parser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser with all subcommands."""
    parser = _Parser(
        prog=PROG,
        description="A collection of small exercises to get you used to writing and reading code",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("verify", help="verifies all exercises in the recommended order")

    watch_parser = commands.add_parser("watch", help="reruns `verify` when files were edited")
    watch_parser.add_argument(
        "--success-hints", action="store_true", help="show hints on success"
    )

    for name, text in (
        ("run", "runs/tests a single exercise"),
        ("reset", 'resets a single exercise using "git stash -- <filename>"'),
        ("hint", "returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser("list", help="lists the available exercises")
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        dest="pattern",
        default=None,
        help="match exercise names or paths; comma separated patterns are acceptable",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only exercises that have been solved"
    )

    commands.add_parser("lsp", help="enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="grade every exercise and write a result file")
    return parser


def rustc_exists() -> bool:
    """Whether `rustc --version` can be run successfully."""
    try:
        result = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return result.returncode == 0


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Find an exercise by name; 'next' means the first one not yet done."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
    else:
        found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise ExerciseNotFound(name)
    return found


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    pattern: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> list[str]:
    """Return the lines of the exercise listing, header included."""
    lines: list[str] = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    filters = [f for f in (pattern or "").lower().split(",") if f.strip()]
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(f in exercise.name or f in fname for f in filters)
        done = exercise.looks_done()
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if not wanted or not (matches or pattern is None):
            continue
        if paths:
            lines.append(fname)
        elif names:
            lines.append(exercise.name)
        else:
            status = "Done" if done else "Pending"
            lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}")
    return lines


def _exit_code(exc: SystemExit) -> int:
    if exc.code is None:
        return 0
    if isinstance(exc.code, int):
        return exc.code
    return 1


def _list(args: argparse.Namespace, exercises: list[Exercise]) -> int:
    lines = list_exercises(
        exercises, args.paths, args.names, args.pattern, args.unsolved, args.solved
    )
    try:
        for line in lines:
            print(line)
        done = sum(1 for e in exercises if e.looks_done())
        percentage = done / len(exercises) * 100.0 if exercises else 0.0
        print(
            f"Progress: You completed {done} / {len(exercises)} exercises "
            f"({percentage:.1f} %)."
        )
    except BrokenPipeError:
        return 0
    return 0


def _lsp() -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?")
        return 1
    try:
        project.exercises_to_json()
    except OSError:
        print("Couldn't parse the exercise files")
        return 1
    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercises folder")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _watch(args: argparse.Namespace, exercises: list[Exercise], verbose: bool) -> int:
    try:
        status = watch(exercises, verbose, args.success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your 'inotify limit' "
            "has been reached."
        )
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if no_emoji() else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning!")
        print(
            "If you want to continue working on the exercises at a later point, "
            f"you can simply run `{PROG} watch` again"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return _exit_code(exc)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the directory holding {INFO_FILE}")
        print("Try `cd` into your exercise collection first!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    try:
        match args.command:
            case "list":
                return _list(args, exercises)
            case "run":
                exercise = find_exercise(args.name, exercises)
                try:
                    run(exercise, verbose)
                except ExerciseError:
                    return 1
            case "reset":
                exercise = find_exercise(args.name, exercises)
                try:
                    reset(exercise).wait()
                except OSError:
                    return 1
            case "hint":
                print(find_exercise(args.name, exercises).hint)
            case "verify":
                try:
                    verify(exercises, (0, len(exercises)), verbose, False)
                except VerificationFailed:
                    return 1
            case "cicvverify":
                try:
                    check_all(exercises)
                except OSError as exc:
                    print(f"Failed to write the result file: {exc}")
                    return 1
            case "lsp":
                return _lsp()
            case "watch":
                return _watch(args, exercises, verbose)
    except ExerciseNotFound as err:
        print(err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())