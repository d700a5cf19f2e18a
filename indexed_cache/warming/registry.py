"""
Warming Task Registry

Ordered, runtime-mutable set of warming tasks shared by administrative calls
and scheduled passes.

The task list is an immutable tuple replaced wholesale under a lock. A pass
takes one snapshot at its start and iterates that, so an add, remove or
toggle landing mid-pass never changes what the pass sees.
"""

import threading
from collections.abc import Iterable

from indexed_cache.core.config.constants import Stage
from indexed_cache.core.exceptions import DuplicateWarmingTaskError, WarmingTaskNotFoundError
from indexed_cache.core.logging.logger import get_logger
from indexed_cache.warming.models import WarmingTask

logger = get_logger(__name__)


class WarmingTaskRegistry:
    """Lock-guarded registry with copy-on-read snapshots."""

    def __init__(self, tasks: Iterable[WarmingTask] = ()):
        self._lock = threading.Lock()
        self._tasks: tuple[WarmingTask, ...] = ()
        for task in tasks:
            self.add(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, name: str) -> bool:
        return any(t.name == name for t in self._tasks)

    def add(self, task: WarmingTask) -> None:
        """
        Append a task.

        Raises:
            DuplicateWarmingTaskError: If a task with the same name exists
        """
        with self._lock:
            if any(t.name == task.name for t in self._tasks):
                raise DuplicateWarmingTaskError(
                    f"Warming task already registered: {task.name}",
                    details={"name": task.name},
                )
            self._tasks = (*self._tasks, task)

        logger.info("Warming task added", stage=Stage.WARMING_REGISTRY,
                    task=task.name, priority=task.priority, enabled=task.enabled)

    def remove(self, name: str) -> bool:
        """
        Remove a task by name.

        Returns:
            True if a task was removed, False if the name was unknown
        """
        with self._lock:
            remaining = tuple(t for t in self._tasks if t.name != name)
            removed = len(remaining) != len(self._tasks)
            self._tasks = remaining

        if removed:
            logger.info("Warming task removed", stage=Stage.WARMING_REGISTRY, task=name)
        return removed

    def toggle(self, name: str, enabled: bool) -> bool:
        """
        Enable or disable a task in place (its position is kept).

        Returns:
            True if the task exists, False if the name was unknown
        """
        with self._lock:
            found = False
            updated = []
            for task in self._tasks:
                if task.name == name:
                    task = task.model_copy(update={"enabled": enabled})
                    found = True
                updated.append(task)
            self._tasks = tuple(updated)

        if found:
            logger.info("Warming task toggled", stage=Stage.WARMING_REGISTRY,
                        task=name, enabled=enabled)
        return found

    def get(self, name: str) -> WarmingTask:
        """
        Look up one task.

        Raises:
            WarmingTaskNotFoundError: If no task has that name
        """
        for task in self._tasks:
            if task.name == name:
                return task
        raise WarmingTaskNotFoundError(
            f"Warming task not found: {name}", details={"name": name}
        )

    def snapshot(self) -> list[WarmingTask]:
        """Registration-ordered copy of every task."""
        with self._lock:
            return list(self._tasks)
