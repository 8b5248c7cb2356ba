# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Task supervision for the produce/upload pair.

run_concurrently() runs a group of coroutines as a unit: it waits for all
of them, and as soon as one fails it signals the rest, cancels them and
raises the first failure.
"""

import asyncio
import contextvars
import functools
from concurrent.futures import Executor
from typing import Any, Awaitable, Callable, List

import structlog

from s3dump.exceptions import DumpCancelled

logger = structlog.get_logger()

FailureCallback = Callable[[BaseException], None]


async def run_concurrently(
    *aws: Awaitable[Any],
    on_failure: FailureCallback | None = None,
) -> List[Any]:
    """
    Run awaitables concurrently; fail fast on the first error.

    Args:
        *aws: Coroutines or futures to run
        on_failure: Called once with the first error, before the remaining
            tasks are cancelled. Use it to unblock work that cancellation
            cannot reach (threads blocked on a pipe).

    Returns:
        Results in argument order

    Raises:
        The first exception raised by any of the tasks
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    failures: List[BaseException] = []

    def _record(task: asyncio.Future) -> None:
        if not task.cancelled() and task.exception() is not None:
            failures.append(task.exception())

    for task in tasks:
        task.add_done_callback(_record)

    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        if on_failure is not None:
            on_failure(DumpCancelled("Dump cancelled by caller"))
        await _cancel_and_wait(tasks)
        raise

    if not failures:
        return [task.result() for task in tasks]

    first_error = failures[0]
    logger.debug("task_group_failed", error=str(first_error))

    if on_failure is not None:
        on_failure(first_error)
    await _cancel_and_wait(tasks)

    raise first_error


async def _cancel_and_wait(tasks: List[asyncio.Future]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def run_in_thread(
    func: Callable[..., Any],
    *args: Any,
    executor: Executor | None = None,
) -> Any:
    """
    Run a blocking function in a worker thread.

    Unlike asyncio.to_thread(), cancellation waits for the thread to return
    before propagating, so the function is never left running unobserved.
    The function has to notice on its own that it should stop.

    Pass a dedicated executor for functions that block for a long time;
    the loop's default pool is shared with every other caller.
    """
    loop = asyncio.get_running_loop()
    ctx = contextvars.copy_context()
    future = loop.run_in_executor(executor, functools.partial(ctx.run, func, *args))

    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        await asyncio.wait([future])
        if not future.cancelled() and future.exception() is not None:
            logger.debug("cancelled_thread_failed", error=str(future.exception()))
        raise
