"""Execution policy, executor selection and retrying task batches."""

import contextlib
import logging
import os
import sys
from collections.abc import Callable, Sequence
from concurrent.futures import (
    FIRST_COMPLETED,
    BrokenExecutor,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from typing import Any, TypeAlias

from reachable_nodes.errors import CorruptRecord, PartitionTaskFailure, RoundFailure

logger = logging.getLogger(__name__)

ExecutorClass: TypeAlias = type[ThreadPoolExecutor] | type[ProcessPoolExecutor] | None

# Environment variable to override executor selection.
RN_EXECUTOR_ENV = "RN_EXECUTOR"

# Retries per task after the first attempt.
DEFAULT_RETRIES = 2


def is_gil_enabled() -> bool:
    """Check if GIL is enabled."""
    try:
        return sys._is_gil_enabled()
    except AttributeError:
        return True


def get_executor_class() -> ExecutorClass:
    """
    Select the appropriate executor class.

    Priority:
    1. RN_EXECUTOR env var override ("threads", "processes", or "serial")
    2. Auto-select based on GIL status (disabled -> threads, enabled -> processes)

    "serial" mode runs in the main thread - useful for debugging with breakpoints.
    """
    executor_override = os.environ.get(RN_EXECUTOR_ENV, "").lower()

    if executor_override == "threads":
        return ThreadPoolExecutor
    if executor_override == "processes":
        return ProcessPoolExecutor
    if executor_override == "serial":
        return None

    if is_gil_enabled():
        return ProcessPoolExecutor
    return ThreadPoolExecutor


def describe_executor(executor_class: ExecutorClass) -> str:
    """Convert an executor class into a readable policy name."""
    if executor_class is None:
        return "serial"
    if executor_class is ThreadPoolExecutor:
        return "threads"
    return "processes"


def open_executor(executor_class: ExecutorClass, workers: int | None):
    """Context manager yielding an executor, or None for serial mode."""
    if executor_class is None:
        return contextlib.nullcontext(None)
    return executor_class(max_workers=workers)


def run_tasks(
    executor: Executor | None,
    fn: Callable[..., Any],
    task_args: Sequence[tuple],
    *,
    round_number: int,
    phase: str,
    retries: int = DEFAULT_RETRIES,
) -> list[Any]:
    """
    Run ``fn(*args)`` for every entry of ``task_args`` and return results in order.

    A task raising PartitionTaskFailure is resubmitted up to ``retries`` times.
    Exhausting the budget, a CorruptRecord, a broken pool or any other task
    exception fails the whole batch with RoundFailure. Returns only once every
    task has finished.
    """
    if executor is None:
        return [
            _run_serial(fn, args, round_number=round_number, phase=phase, retries=retries)
            for args in task_args
        ]

    results: list[Any] = [None] * len(task_args)
    attempts = [0] * len(task_args)
    pending: dict[Future, int] = {}

    try:
        for i, args in enumerate(task_args):
            pending[executor.submit(fn, *args)] = i

        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                idx = pending.pop(future)
                try:
                    results[idx] = future.result()
                except PartitionTaskFailure as exc:
                    attempts[idx] += 1
                    if attempts[idx] > retries:
                        raise RoundFailure(round_number, phase, f"{exc} (retries exhausted)") from exc
                    logger.warning(
                        "Round %d %s: %s; retry %d/%d", round_number, phase, exc, attempts[idx], retries
                    )
                    pending[executor.submit(fn, *task_args[idx])] = idx
                except CorruptRecord as exc:
                    raise RoundFailure(round_number, phase, f"corrupt record: {exc}") from exc
                except BrokenExecutor:
                    raise
                except Exception as exc:
                    raise RoundFailure(round_number, phase, f"{type(exc).__name__}: {exc}") from exc
    except BrokenExecutor as exc:
        # A broken pool accepts no resubmissions.
        raise RoundFailure(round_number, phase, f"executor broken: {type(exc).__name__}: {exc}") from exc
    finally:
        for future in pending:
            future.cancel()

    return results


def _run_serial(
    fn: Callable[..., Any],
    args: tuple,
    *,
    round_number: int,
    phase: str,
    retries: int,
) -> Any:
    attempt = 0
    while True:
        try:
            return fn(*args)
        except PartitionTaskFailure as exc:
            attempt += 1
            if attempt > retries:
                raise RoundFailure(round_number, phase, f"{exc} (retries exhausted)") from exc
            logger.warning("Round %d %s: %s; retry %d/%d", round_number, phase, exc, attempt, retries)
        except CorruptRecord as exc:
            raise RoundFailure(round_number, phase, f"corrupt record: {exc}") from exc
        except Exception as exc:
            raise RoundFailure(round_number, phase, f"{type(exc).__name__}: {exc}") from exc
