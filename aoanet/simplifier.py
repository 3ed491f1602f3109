from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from .models import EMPTY, Link, Network, NodeId, TaskId

logger = logging.getLogger(__name__)


class LoopPolicy(Enum):
    """When the simplifier repeats its scan over the event chain."""

    # Repeat while a pass leaves the event count unchanged; stop once it shrinks.
    UNTIL_SHRINK = "until_shrink"
    # Repeat while a pass changes anything at all.
    UNTIL_STABLE = "until_stable"

    def should_repeat(self, count_before: int, count_after: int, changed: bool) -> bool:
        if not changed:
            return False
        if self is LoopPolicy.UNTIL_SHRINK:
            return count_before == count_after
        return True


@dataclass(frozen=True)
class Signature:
    """Everything about a network that the maximum-duration total depends on."""

    labels: FrozenSet[Tuple[TaskId, int]]
    precedence: FrozenSet[Tuple[TaskId, TaskId]]
    anchored: FrozenSet[Tuple[TaskId, int]]


@dataclass
class Triple:
    a: NodeId
    b: NodeId
    c: NodeId
    bc_empty: bool
    ab_empty: bool
    ac_exists: bool
    parent: Optional[NodeId]
    c_is_last: bool

    @property
    def removable(self) -> bool:
        """
        Event B is redundant when:
            1) arc BC is empty and arc AC does not exist, or
            2) arcs AB and BC are empty and arc AC exists.
        B must stay if B and C share a parent, unless C is the last event.
        """
        if self.parent is not None and not self.c_is_last:
            return False
        return (self.bc_empty and not self.ac_exists) or (
            self.ab_empty and self.bc_empty and self.ac_exists
        )

    @property
    def rewritable(self) -> bool:
        return self.bc_empty and self.parent is not None


class NetworkSimplifier:
    """
    Removes redundant events and arcs from a network in place.

    Consecutive interior triples (A, B, C) of the event chain are examined in
    order. B is merged into C when it adds no scheduling information;
    otherwise an empty BC arc may absorb the arc from a shared parent of B and
    C. After the loop, isolated events and self-loops are removed.

    With ``strict`` enabled every change is tried on a scratch copy first and
    is committed only if the precedence signature of the network (which tasks
    must finish before which, and which tasks lie on a start-to-finish path)
    is unchanged, so the critical path total never moves.
    """

    def __init__(self, policy: LoopPolicy = LoopPolicy.UNTIL_SHRINK, strict: bool = True):
        self.policy = policy
        self.strict = strict
        self.eliminated: List[NodeId] = []
        self.rewritten: List[Link] = []
        self.rejected: int = 0
        self.passes: int = 0

    def simplify(self, network: Network) -> Network:
        self.eliminated = []
        self.rewritten = []
        self.rejected = 0
        self.passes = 0

        signature = signature_of(network) if self.strict else None

        while True:
            count_before = len(network.events)
            changed = self._scan(network, signature)
            self.passes += 1
            if not self.policy.should_repeat(count_before, len(network.events), changed):
                break

        removed_events = self.remove_isolated_events(network)
        removed_loops = self.remove_self_loops(network)

        logger.info(
            "Simplified network in %d pass(es): %d events eliminated, %d arcs rewritten, "
            "%d changes rejected, %d isolated events and %d self-loops removed",
            self.passes, len(self.eliminated), len(self.rewritten), self.rejected,
            len(removed_events), len(removed_loops),
        )
        return network

    def _scan(self, network: Network, signature: Optional[Signature]) -> bool:
        changed = False
        k = 1
        # The chain shrinks in place, so bounds are re-read every iteration.
        while k < len(network.events) - 1:
            triple = self.inspect(network, k)

            if triple.removable:
                if self._commit(network, signature, lambda n: self.eliminate(n, triple.b, triple.c)):
                    logger.debug("Eliminated event %s into %s", triple.b, triple.c)
                    self.eliminated.append(triple.b)
                    changed = True
                    # Index k now holds C; the next triple is centred on it.
                    continue
            elif triple.rewritable and network.has_arc((triple.b, triple.c)):
                if self._commit(network, signature, lambda n: self.rewrite(n, triple.b, triple.c, triple.parent)):
                    logger.debug(
                        "Rewrote arc %s -> %s with the arc from shared parent %s",
                        triple.b, triple.c, triple.parent,
                    )
                    self.rewritten.append((triple.b, triple.c))
                    changed = True
            k += 1

        return changed

    def _commit(self, network: Network, signature: Optional[Signature], change) -> bool:
        if signature is None:
            change(network)
            return True

        trial = network.copy()
        change(trial)
        if signature_of(trial) != signature:
            self.rejected += 1
            logger.debug("Rejected change: precedence between tasks would differ")
            return False

        network.events[:] = trial.events
        network.arcs.clear()
        network.arcs.update(trial.arcs)
        return True

    @staticmethod
    def inspect(network: Network, k: int) -> Triple:
        """Evaluate the triple centred on ``network.events[k]``."""
        a, b, c = network.events[k - 1], network.events[k], network.events[k + 1]
        return Triple(
            a=a,
            b=b,
            c=c,
            bc_empty=network.is_empty_arc((b, c)),
            ab_empty=network.is_empty_arc((a, b)),
            ac_exists=network.has_arc((a, c)),
            parent=network.shared_parent(b, c),
            c_is_last=(k + 1 == len(network.events) - 1),
        )

    @staticmethod
    def plan_retarget(network: Network, b: NodeId, c: NodeId) -> List[Tuple[Link, Link, Optional[TaskId]]]:
        """List of (old link, new link, label) for every arc touching ``b``."""
        plan = []
        for link, label in network.iter_arcs():
            source, destination = link
            if b not in link:
                continue
            new_link = (c if source == b else source, c if destination == b else destination)
            plan.append((link, new_link, label))
        return plan

    @classmethod
    def eliminate(cls, network: Network, b: NodeId, c: NodeId) -> None:
        """Remove event ``b`` and move all of its arcs onto ``c``."""
        plan = cls.plan_retarget(network, b, c)
        for old_link, new_link, label in plan:
            del network.arcs[old_link]
            # A task already sitting on the destination wins over the moved arc.
            if network.arcs.get(new_link, EMPTY) is EMPTY:
                network.arcs[new_link] = label
        network.events.remove(b)

    @staticmethod
    def rewrite(network: Network, b: NodeId, c: NodeId, parent: NodeId) -> None:
        """Fold the arc from ``parent`` to ``c`` onto the empty arc BC."""
        network.arcs[(b, c)] = network.arcs[(parent, c)]
        del network.arcs[(parent, c)]

    @staticmethod
    def remove_isolated_events(network: Network) -> List[NodeId]:
        isolated = [node for node in network.events if network.is_isolated(node)]
        for node in isolated:
            network.events.remove(node)
        return isolated

    @staticmethod
    def remove_self_loops(network: Network) -> List[Link]:
        loops = [link for link in network.arcs if link[0] == link[1]]
        for link in loops:
            del network.arcs[link]
        return loops


def _reachability(network: Network) -> Dict[NodeId, Set[NodeId]]:
    """Events reachable from each event (each event reaches itself)."""
    children: Dict[NodeId, List[NodeId]] = defaultdict(list)
    for source, destination in network.arcs:
        children[source].append(destination)

    reach: Dict[NodeId, Set[NodeId]] = {}
    for start in network.events:
        seen = {start}
        stack = [start]
        while stack:
            node = stack.pop()
            for child in children[node]:
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        reach[start] = seen
    return reach


def _counted(labels) -> FrozenSet[Tuple[TaskId, int]]:
    return frozenset(Counter(labels).items())


def signature_of(network: Network) -> Signature:
    """
    Precedence signature of ``network``.

    Two networks with the same signature have the same longest start-to-finish
    total for any assignment of task durations.
    """
    reach = _reachability(network)
    tasks = [(link, label) for link, label in network.arcs.items() if label is not EMPTY]

    precedence = set()
    for (_, head), x in tasks:
        reachable = reach.get(head, {head})
        for (tail, _), y in tasks:
            if tail in reachable:
                precedence.add((x, y))

    first, last = network.first, network.last
    from_first = reach.get(first, set())
    anchored = [
        label
        for (tail, head), label in tasks
        if tail in from_first and last in reach.get(head, {head})
    ]

    return Signature(
        labels=_counted(label for _, label in tasks),
        precedence=frozenset(precedence),
        anchored=_counted(anchored),
    )
