"""Grading every exercise at once and recording the results as JSON."""

from __future__ import annotations

import json
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .exercise import Exercise, ExerciseError
from .run import run

DEFAULT_RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Outcome of one exercise."""

    name: str
    result: bool

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "result": self.result}


@dataclass
class ExerciseStatistics:
    """Totals across a grading run."""

    total_exercations: int
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_exercations": self.total_exercations,
            "total_succeeds": self.total_succeeds,
            "total_failures": self.total_failures,
            "total_time": self.total_time,
        }


@dataclass
class ExerciseCheckList:
    """All results of a grading run together with its statistics."""

    statistics: ExerciseStatistics
    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exercises": [result.to_dict() for result in self.exercises],
            "user_name": self.user_name,
            "statistics": self.statistics.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def check_all(
    exercises: Iterable[Exercise],
    result_path: str | os.PathLike = DEFAULT_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, report progress and write the results file."""
    exercises = list(exercises)
    total = len(exercises)
    started = _now()
    checklist = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    correct = 0

    def check(exercise: Exercise, task_started: int) -> None:
        nonlocal correct
        try:
            run(exercise, True)
            passed = True
        except ExerciseError:
            passed = False
        with lock:
            if passed:
                correct += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {correct}")
            print(f"当前修改试卷耗时: {_now() - task_started} s")
            checklist.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if passed:
                checklist.statistics.total_succeeds += 1
            else:
                checklist.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(check, exercise, _now()) for exercise in exercises]
        for future in futures:
            future.result()

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    checklist.statistics.total_time = total_time
    Path(result_path).write_text(checklist.to_json(), encoding="utf-8")
    return checklist