"""Watch mode: re-verify exercises whenever their files change."""

from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
from enum import Enum
from pathlib import Path, PurePath
from typing import IO, Iterable, Iterator, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

EXERCISES_DIR = "./exercises"
_RESET_TERMINAL = "\x1bc"


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """The interactive command prompt that runs beside watch mode."""

    def __init__(self, hint: str | None = None, stream: IO[str] | None = None) -> None:
        self._hint = hint
        self._lock = threading.Lock()
        self._stream = stream
        self.should_quit = threading.Event()

    @property
    def hint(self) -> str | None:
        with self._lock:
            return self._hint

    @hint.setter
    def hint(self, value: str | None) -> None:
        with self._lock:
            self._hint = value

    def handle(self, line: str) -> None:
        """Carry out one command typed by the learner."""
        command = line.strip()
        if command == "hint":
            hint = self.hint
            if hint is not None:
                print(hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print("Commands available to you in watch mode:")
            print("  hint   - prints the current exercise's hint")
            print("  clear  - clears the screen")
            print("  quit   - quits watch mode")
            print("  !<cmd> - executes a command, like `!rustc --explain E0381`")
            print("  help   - displays this help message")
            print()
            print("Watch mode automatically re-evaluates the current exercise")
            print("when you edit a file's contents.")
        elif command.startswith("!"):
            shell_command = command[1:]
            parts = shell_command.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts)
            except OSError as exc:
                print(f"failed to execute command `{shell_command}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def start(self) -> threading.Thread:
        """Print the greeting and read commands on a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._loop, daemon=True)
        thread.start()
        return thread

    def _loop(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                continue
            if not line:
                return
            self.handle(line)


def _ends_with(path: PurePath, suffix: PurePath) -> bool:
    tail = suffix.parts
    return bool(tail) and path.parts[-len(tail):] == tail


def pending_order(
    exercises: Sequence[Exercise], changed_path: str | os.PathLike
) -> Iterator[Exercise]:
    """Yield the exercise for the changed file first, then every other pending one."""
    filepath = Path(changed_path).resolve()
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    if changed is not None:
        yield changed
    for exercise in exercises:
        if not exercise.looks_done() and not _ends_with(filepath, exercise.path):
            yield exercise


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: "queue.Queue[Path]") -> None:
        super().__init__()
        self._events = events

    def _record(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(Path(os.fsdecode(event.src_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)


def _clear_screen(stream: IO[str] | None = None) -> None:
    """Reset the terminal with an ANSI escape code and flush it out at once."""
    target = stream if stream is not None else sys.stdout
    target.write(_RESET_TERMINAL + "\n")
    target.flush()


def _drain(first: Path, events: "queue.Queue[Path]") -> list[Path]:
    paths = [first]
    while True:
        try:
            path = events.get_nowait()
        except queue.Empty:
            return paths
        if path not in paths:
            paths.append(path)


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then keep re-verifying as files under ./exercises change."""
    exercises = list(exercises)
    events: "queue.Queue[Path]" = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as failed:
            shell = WatchShell(failed.exercise.hint)
        shell.start()

        while True:
            try:
                first = events.get(timeout=1.0)
            except queue.Empty:
                pass
            else:
                for path in _drain(first, events):
                    if path.suffix != ".rs" or not path.exists():
                        continue
                    pending = pending_order(exercises, path)
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    try:
                        verify(pending, (num_done, len(exercises)), verbose, success_hints)
                        return WatchStatus.FINISHED
                    except VerificationFailed as failed:
                        shell.hint = failed.exercise.hint
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()