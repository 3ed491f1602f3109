from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .models import EMPTY, Network, NodeId, Task, TaskId

logger = logging.getLogger(__name__)


class CriticalPathSolver:
    """
    Longest first-to-last event path, costed by each task's maximum duration.

    Every path is enumerated depth first, so the cost is exponential in the
    number of branches: fine for networks of tens of events. The network must
    be acyclic; a cycle makes the search run forever.
    """

    def __init__(self, tasks: Sequence[Task]):
        self.tasks = list(tasks)
        self.paths_explored = 0

    def max_duration(self, task_id: Optional[TaskId]) -> float:
        """Maximum duration of the first task with ``task_id``; 0 if there is none."""
        if task_id is EMPTY:
            return 0.0
        for task in self.tasks:
            if task.id == task_id:
                return task.max_duration
        return 0.0

    def solve(self, network: Network) -> List[NodeId]:
        """
        Return the events of the critical path, from the first to the last event.

        Ties keep the path found first; branches are explored in arc order.
        """
        self.paths_explored = 0
        if not network.events:
            return []

        last = network.last
        best_sum: Optional[float] = None
        best_path: List[NodeId] = []

        stack: List[Tuple[List[NodeId], float]] = [([network.first], 0.0)]
        while stack:
            path, total = stack.pop()
            node = path[-1]

            if node == last:
                self.paths_explored += 1
                if best_sum is None or total > best_sum:
                    best_sum = total
                    best_path = path
                continue

            # Reversed so that branches pop in arc order.
            branches = network.outgoing(node)
            for child, label in reversed(branches):
                stack.append((path + [child], total + self.max_duration(label)))

        logger.info(
            "Critical path %s (%s) after %d complete paths",
            " -> ".join(str(n) for n in best_path), best_sum, self.paths_explored,
        )
        return best_path

    def duration_of(self, network: Network, path: Sequence[NodeId]) -> float:
        """Total of the maximum durations of the tasks along ``path``."""
        return sum(self.max_duration(network.arcs.get(link, EMPTY)) for link in zip(path, path[1:]))

    def tasks_on(self, network: Network, path: Sequence[NodeId]) -> List[TaskId]:
        """Task ids carried by the arcs of ``path``; empty arcs are skipped."""
        labels = (network.arcs.get(link, EMPTY) for link in zip(path, path[1:]))
        return [label for label in labels if label is not EMPTY]
