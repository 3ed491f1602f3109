from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Hashable, Iterator, List, Optional, Tuple

NodeId = Hashable
TaskId = Hashable
Link = Tuple[NodeId, NodeId]

# Label of an arc that carries no task (a dependency-only arc).
EMPTY = None


class IndexDomain:
    """
    Ordering, sentinel and successor capability for event identifiers.

    Subclasses decide what an event id looks like. The network, the builder
    and the simplifier never compare ids directly; they go through
    ``sort_key`` so that arc iteration order is reproducible.
    """

    name = "abstract"

    def sentinel(self) -> NodeId:
        raise NotImplementedError

    def successor(self, node: NodeId) -> NodeId:
        raise NotImplementedError

    def sort_key(self, node: NodeId) -> Any:
        return node

    def parse(self, raw: Any) -> NodeId:
        """Convert a serialized id (e.g. from JSON) back to a node id."""
        return raw


class CharIndex(IndexDomain):
    """Single characters: '0' is the sentinel, successor is the next code point."""

    name = "letters"

    def sentinel(self) -> str:
        return "0"

    def successor(self, node: str) -> str:
        return chr(ord(node) + 1)


class IntIndex(IndexDomain):
    name = "numbers"

    def sentinel(self) -> int:
        return 0

    def successor(self, node: int) -> int:
        return node + 1

    def parse(self, raw: Any) -> int:
        return int(raw)


class PrefixedIndex(IndexDomain):
    """Ids such as ``e0, e1, ... e10`` ordered by their numeric suffix."""

    name = "events"

    def __init__(self, prefix: str = "e"):
        self.prefix = prefix

    def sentinel(self) -> str:
        return f"{self.prefix}0"

    def successor(self, node: str) -> str:
        return f"{self.prefix}{self._number(node) + 1}"

    def sort_key(self, node: str) -> Tuple[int, str]:
        return (self._number(node), node)

    def _number(self, node: str) -> int:
        return int(node[len(self.prefix):])


@dataclass(frozen=True)
class Task:
    """One unit of work ("work" in the network)."""

    id: TaskId
    required: FrozenSet[TaskId] = field(default_factory=frozenset)
    min_duration: float = 0.0
    max_duration: float = 0.0

    def __post_init__(self) -> None:
        # Accept any iterable for convenience; the stored value is always frozen.
        object.__setattr__(self, "required", frozenset(self.required))

    def __str__(self) -> str:
        required = ",".join(str(r) for r in sorted(self.required, key=str)) or "-"
        return f"{self.id}({required}; {self.min_duration}..{self.max_duration})"


@dataclass
class Network:
    """
    Activity-on-arc network.

    ``events`` is the event chain in order (first = project start, last =
    project finish). ``arcs`` maps an ordered pair of events to the task id
    carried by the arc, or ``EMPTY`` for a dependency-only arc.
    """

    domain: IndexDomain = field(default_factory=CharIndex)
    events: List[NodeId] = field(default_factory=list)
    arcs: Dict[Link, Optional[TaskId]] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = []
        for (source, destination), label in self.iter_arcs():
            line = f"{source} -> {destination}"
            if label is not EMPTY:
                line += f" {label}"
            lines.append(line)
        return "\n".join(lines) + ("\n" if lines else "")

    @property
    def first(self) -> Optional[NodeId]:
        return self.events[0] if self.events else None

    @property
    def last(self) -> Optional[NodeId]:
        return self.events[-1] if self.events else None

    def _link_key(self, link: Link) -> Tuple[Any, Any]:
        return (self.domain.sort_key(link[0]), self.domain.sort_key(link[1]))

    def iter_arcs(self) -> Iterator[Tuple[Link, Optional[TaskId]]]:
        """Arcs in deterministic (source, destination) order."""
        for link in sorted(self.arcs, key=self._link_key):
            yield link, self.arcs[link]

    def has_arc(self, link: Link) -> bool:
        return link in self.arcs

    def is_empty_arc(self, link: Link) -> bool:
        return link in self.arcs and self.arcs[link] is EMPTY

    def is_source(self, node: NodeId) -> bool:
        return any(link[0] == node for link in self.arcs)

    def is_target(self, node: NodeId) -> bool:
        return any(link[1] == node for link in self.arcs)

    def is_isolated(self, node: NodeId) -> bool:
        return not self.is_source(node) and not self.is_target(node)

    def shared_parent(self, node1: NodeId, node2: NodeId) -> Optional[NodeId]:
        """
        First event with a labeled arc into ``node1`` and any arc into ``node2``.

        Returns None when the two events have no such common parent.
        """
        for (parent, child), label in self.iter_arcs():
            if child != node1 or label is EMPTY:
                continue
            if (parent, node2) in self.arcs:
                return parent
        return None

    def outgoing(self, node: NodeId) -> List[Tuple[NodeId, Optional[TaskId]]]:
        return [(link[1], label) for link, label in self.iter_arcs() if link[0] == node]

    def labels(self) -> List[TaskId]:
        return [label for _, label in self.iter_arcs() if label is not EMPTY]

    def copy(self) -> "Network":
        return Network(domain=self.domain, events=list(self.events), arcs=dict(self.arcs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain.name,
            "events": list(self.events),
            "arcs": [
                {"source": link[0], "destination": link[1], "task": label}
                for link, label in self.iter_arcs()
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Network":
        domain = domain_by_name(data.get("domain", CharIndex.name))
        try:
            events = [domain.parse(e) for e in data["events"]]
            arcs = {
                (domain.parse(a["source"]), domain.parse(a["destination"])): a.get("task")
                for a in data["arcs"]
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid network payload: {exc}") from exc
        return cls(domain=domain, events=events, arcs=arcs)


DOMAINS = {
    CharIndex.name: CharIndex,
    IntIndex.name: IntIndex,
    PrefixedIndex.name: PrefixedIndex,
}


def domain_by_name(name: str) -> IndexDomain:
    try:
        return DOMAINS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown event domain '{name}'. Must be one of: {', '.join(sorted(DOMAINS))}."
        ) from None
