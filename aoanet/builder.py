from __future__ import annotations

import logging
from typing import Optional, Sequence

from .models import EMPTY, CharIndex, IndexDomain, Network, NodeId, Task

logger = logging.getLogger(__name__)


class NetworkBuilder:
    """
    Builds an activity-on-arc network from an ordered list of tasks.

    The task list order doubles as a precedence index: every prerequisite must
    be listed before the tasks that require it. This is not checked here.
    """

    def __init__(self, domain: Optional[IndexDomain] = None):
        self.domain = domain or CharIndex()

    def build(self, tasks: Sequence[Task], start: Optional[NodeId] = None) -> Network:
        """
        Create the network for ``tasks``.

        Args:
            tasks: Ordered tasks, prerequisites first
            start: Id of the first event (defaults to the domain sentinel)

        Returns:
            A network with ``len(tasks) + 1`` events
        """
        network = Network(domain=self.domain)
        node = self.domain.sentinel() if start is None else start

        # Chain of N + 1 events joined by empty arcs keeps every event reachable.
        network.events.append(node)
        for _ in tasks:
            next_node = self.domain.successor(node)
            network.events.append(next_node)
            network.arcs[(node, next_node)] = EMPTY
            node = next_node

        # Task at position j ends at event j and starts at the event closing
        # its nearest preceding prerequisite (or at the first event).
        for j, task in enumerate(tasks, start=1):
            i = self._start_index(tasks, j, task)
            link = (network.events[i], network.events[j])
            previous = network.arcs.get(link, EMPTY)
            if previous is not EMPTY:
                logger.debug("Arc %s -> %s: task %s replaces %s", link[0], link[1], task.id, previous)
            network.arcs[link] = task.id

        logger.info(
            "Built network: %d tasks, %d events, %d arcs",
            len(tasks), len(network.events), len(network.arcs),
        )
        return network

    @staticmethod
    def _start_index(tasks: Sequence[Task], j: int, task: Task) -> int:
        for position in range(j - 1, 0, -1):
            if tasks[position - 1].id in task.required:
                return position
        return 0
