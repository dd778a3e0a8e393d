"""Parallel Executor - bounded parallelism for independent per-scene work."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from viral_video.core.config import Settings


class ParallelExecutor:
    """Runs independent tasks with controlled concurrency and a join barrier."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def execute_batch(
        self,
        tasks: list[Callable],
        task_names: Optional[list[str]] = None,
        max_workers: int = 1,
    ) -> list[tuple[Any, Optional[Exception]]]:
        """
        Execute a batch of tasks and wait for all of them.

        Every task runs to completion even if another one fails, so the
        caller sees the full picture after the barrier.

        Args:
            tasks: List of callable tasks to execute
            task_names: Optional list of task names for logging
            max_workers: Maximum number of parallel workers (1 runs sequentially)

        Returns:
            List of tuples: (result, exception) for each task, in task order
        """
        if not tasks:
            return []

        names = [
            task_names[i] if task_names and i < len(task_names) else f"task_{i+1}"
            for i in range(len(tasks))
        ]

        # If max_workers is 1, execute sequentially
        if max_workers <= 1:
            results = []
            for task, task_name in zip(tasks, names):
                start_time = time.time()
                try:
                    result = task()
                    self.logger.info(f"✅ {task_name} completed in {time.time() - start_time:.2f}s")
                    results.append((result, None))
                except Exception as e:
                    self.logger.error(f"❌ {task_name} failed after {time.time() - start_time:.2f}s: {e}")
                    results.append((None, e))
            return results

        self.logger.info(f"Parallel execution: {len(tasks)} tasks with max {max_workers} workers")
        start_time = time.time()
        results: list[tuple[Any, Optional[Exception]]] = [(None, None)] * len(tasks)
        completed_count = 0

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {executor.submit(task): i for i, task in enumerate(tasks)}

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                completed_count += 1
                elapsed = time.time() - start_time
                try:
                    results[index] = (future.result(), None)
                    self.logger.info(
                        f"✅ {names[index]} completed ({completed_count}/{len(tasks)}) in {elapsed:.2f}s"
                    )
                except Exception as e:
                    self.logger.error(
                        f"❌ {names[index]} failed ({completed_count}/{len(tasks)}) after {elapsed:.2f}s: {e}"
                    )
                    results[index] = (None, e)

        successful = sum(1 for _, error in results if error is None)
        self.logger.info(
            f"Batch complete: {successful}/{len(tasks)} successful in {time.time() - start_time:.2f}s "
            f"(parallelism: {max_workers} workers)"
        )
        return results


def raise_first_error(results: list[tuple[Any, Optional[Exception]]]) -> list[Any]:
    """Return the task results, or re-raise the first failure in task order."""
    for _, error in results:
        if error is not None:
            raise error
    return [result for result, _ in results]
