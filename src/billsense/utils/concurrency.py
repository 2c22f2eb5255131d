"""Thread-pool helpers for running independent database reads."""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _wrap(task: Callable[[], T], cleanup: Optional[Callable[[], None]]) -> Callable[[], T]:
    def run() -> T:
        try:
            return task()
        finally:
            if cleanup is not None:
                cleanup()

    return run


def run_parallel(
    tasks: dict[str, Callable[[], T]],
    max_workers: int = 6,
    cleanup: Optional[Callable[[], None]] = None,
) -> dict[str, T]:
    """Run independent callables concurrently and join on all of them.

    Args:
        tasks: Mapping of result key to zero-argument callable
        max_workers: Thread pool size
        cleanup: Optional callable run on the worker thread after each task,
            e.g. to release a thread-scoped database session

    Returns:
        Mapping of result key to the callable's return value

    Raises:
        Exception: The first failure in task order, after every task finished
    """
    if not tasks:
        return {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="billsense-read") as pool:
        futures = {key: pool.submit(_wrap(task, cleanup)) for key, task in tasks.items()}

    results: dict[str, T] = {}
    for key, future in futures.items():
        results[key] = future.result()
    return results


def call_with_timeout(
    task: Callable[[], T],
    timeout: float,
    cleanup: Optional[Callable[[], None]] = None,
) -> T:
    """Run a callable on a worker thread, giving up after timeout seconds.

    The worker is not interrupted on timeout; its result is discarded.

    Raises:
        TimeoutError: If the callable did not finish in time
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="billsense-timed")
    try:
        future = pool.submit(_wrap(task, cleanup))
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Call timed out after %.1fs", timeout)
            raise TimeoutError(f"Operation timed out after {timeout}s")
    finally:
        pool.shutdown(wait=False, cancel_futures=True)
