from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
import re

import pandas as pd

from .builder import NetworkBuilder
from .models import EMPTY, Network, NodeId, Task, domain_by_name
from .simplifier import LoopPolicy, NetworkSimplifier
from .solver import CriticalPathSolver

DEFAULT_START_EVENTS = {
    "letters": "A",
    "numbers": 0,
    "events": "e0",
}


class AOAScheduler:
    """
    Activity-on-Arc (AOA) Scheduler.

    Keeps an ordered task list, builds the event network for it, simplifies
    the network and finds the critical path by maximum task durations.
    """

    ID_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_]*$"

    def __init__(
        self,
        event_domain: str = "letters",
        start_event: Optional[NodeId] = None,
        loop_policy: LoopPolicy = LoopPolicy.UNTIL_SHRINK,
        strict: bool = True,
    ):
        self.domain = domain_by_name(event_domain)
        self.event_domain = event_domain
        self.start_event = DEFAULT_START_EVENTS.get(event_domain) if start_event is None else start_event
        self.loop_policy = loop_policy
        self.strict = strict

        self.tasks: Dict[str, Task] = {}
        self.descriptions: Dict[str, str] = {}
        self.calculation_log: List[str] = []
        self.raw_network: Optional[Network] = None
        self.network: Optional[Network] = None
        self.critical_path: List[NodeId] = []
        self.critical_tasks: List[str] = []
        self.project_duration: float = 0.0
        self.raw_duration: float = 0.0

    def clear(self) -> None:
        """Clear all tasks and calculations."""
        self.tasks.clear()
        self.descriptions.clear()
        self.reset_calculations()

    def reset_calculations(self) -> None:
        self.calculation_log.clear()
        self.raw_network = None
        self.network = None
        self.critical_path = []
        self.critical_tasks = []
        self.project_duration = 0.0
        self.raw_duration = 0.0

    @property
    def task_list(self) -> List[Task]:
        return list(self.tasks.values())

    def add_task(
        self,
        task_id: str,
        min_duration: float,
        max_duration: float,
        required_str: str = "",
        description: str = "",
    ) -> Tuple[bool, str]:
        """
        Append a task to the project.

        Args:
            task_id: Unique identifier for the task
            min_duration: Shortest duration (must be >= 0)
            max_duration: Longest duration (must be >= min_duration)
            required_str: Prerequisite ids separated by ',', ';' or spaces,
                all of which must already be in the project
            description: Free text shown in tables and reports

        Returns:
            Tuple of (success, message)
        """
        task_id = str(task_id).strip()
        if not task_id:
            return False, "Task ID cannot be empty."
        if not re.match(self.ID_PATTERN, task_id):
            return (
                False,
                "Task ID must start with a letter or digit and contain only letters, digits, and underscores.",
            )
        if task_id in self.tasks:
            return False, f"Task '{task_id}' already exists."

        try:
            min_value = float(min_duration)
            max_value = float(max_duration)
        except (TypeError, ValueError):
            return False, "Durations must be numbers."
        if min_value < 0 or max_value < 0:
            return False, "Durations must be non-negative."
        if min_value > max_value:
            return False, "Minimum duration cannot exceed maximum duration."

        required, parse_error = self._parse_required(required_str, task_id)
        if parse_error:
            return False, parse_error

        self.tasks[task_id] = Task(task_id, frozenset(required), min_value, max_value)
        self.descriptions[task_id] = (description or "").strip()
        self.reset_calculations()
        return True, f"Task '{task_id}' added successfully."

    def _parse_required(self, required_str: str, task_id: str) -> Tuple[List[str], Optional[str]]:
        required: List[str] = []
        if not required_str or not str(required_str).strip():
            return required, None

        for req_id in re.split(r"[;,\s]+", str(required_str).strip()):
            if not req_id or req_id in {"-", "—"}:
                continue
            if req_id == task_id:
                return [], "A task cannot require itself."
            if req_id not in self.tasks:
                return (
                    [],
                    f"Required task '{req_id}' is not defined yet. Add prerequisites before the tasks that need them.",
                )
            if req_id not in required:
                required.append(req_id)

        return required, None

    def remove_task(self, task_id: str) -> Tuple[bool, str]:
        """Remove a task from the project."""
        if task_id not in self.tasks:
            return False, f"Task '{task_id}' not found."

        for task in self.tasks.values():
            if task_id in task.required:
                return False, f"Cannot remove '{task_id}': Task '{task.id}' requires it."

        del self.tasks[task_id]
        self.descriptions.pop(task_id, None)
        self.reset_calculations()
        return True, f"Task '{task_id}' removed."

    def validate_network(self) -> Tuple[bool, str]:
        """
        Validate the task list for calculation readiness.

        Checks for:
        - Missing prerequisite references
        - Prerequisites listed after the tasks that need them
        - Circular dependencies
        """
        if not self.tasks:
            return False, "No tasks defined."

        position = {task_id: idx for idx, task_id in enumerate(self.tasks)}
        for task in self.tasks.values():
            for req_id in sorted(task.required, key=str):
                if req_id not in self.tasks:
                    return False, f"Task '{task.id}' requires undefined task '{req_id}'."

        cycle = self._detect_cycle()
        if cycle:
            return False, f"Circular dependency detected: {' -> '.join(cycle)}"

        for task in self.tasks.values():
            for req_id in sorted(task.required, key=str):
                if position[req_id] > position[task.id]:
                    return (
                        False,
                        f"Task '{task.id}' is listed before its prerequisite '{req_id}'.",
                    )

        return True, "Network is valid."

    def _detect_cycle(self) -> Optional[List[str]]:
        """Detect cycles in the task dependencies using DFS."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color = {task_id: WHITE for task_id in self.tasks}
        parent: Dict[str, str] = {}

        def dfs(node: str) -> Optional[List[str]]:
            color[node] = GRAY
            for req_id in sorted(self.tasks[node].required, key=str):
                if color[req_id] == GRAY:
                    cycle = [req_id, node]
                    current = node
                    while current in parent and parent[current] != req_id:
                        current = parent[current]
                        cycle.insert(1, current)
                    return cycle
                if color[req_id] == WHITE:
                    parent[req_id] = node
                    result = dfs(req_id)
                    if result:
                        return result
            color[node] = BLACK
            return None

        for task_id in self.tasks:
            if color[task_id] == WHITE:
                result = dfs(task_id)
                if result:
                    return result
        return None

    def calculate(self) -> Tuple[bool, str]:
        """
        Build the network, simplify it and find the critical path.
        """
        self.reset_calculations()
        self._log("=" * 70)
        self._log("ACTIVITY-ON-ARC NETWORK CALCULATION")
        self._log("=" * 70)
        self._log("")

        valid, msg = self.validate_network()
        if not valid:
            self._log(f"ERROR: {msg}")
            return False, msg

        tasks = self.task_list
        self._log("TASKS")
        self._log("-" * 50)
        for task in tasks:
            self._log(f"  {task}")

        builder = NetworkBuilder(self.domain)
        self.raw_network = builder.build(tasks, self.start_event)
        self._log_network("\nRAW NETWORK", self.raw_network)

        self.network = self.raw_network.copy()
        simplifier = NetworkSimplifier(policy=self.loop_policy, strict=self.strict)
        simplifier.simplify(self.network)
        self._log_network("\nSIMPLIFIED NETWORK", self.network)
        self._log(f"Loop policy: {self.loop_policy.value}, strict: {self.strict}")
        self._log(f"Passes: {simplifier.passes}")
        self._log(f"Eliminated events: {', '.join(str(e) for e in simplifier.eliminated) or '(none)'}")
        self._log(f"Rewritten arcs: {', '.join(f'{b} -> {c}' for b, c in simplifier.rewritten) or '(none)'}")
        if self.strict:
            self._log(f"Changes rejected to keep task precedence: {simplifier.rejected}")

        solver = CriticalPathSolver(tasks)
        raw_path = solver.solve(self.raw_network)
        self.raw_duration = solver.duration_of(self.raw_network, raw_path)

        self.critical_path = solver.solve(self.network)
        self.project_duration = solver.duration_of(self.network, self.critical_path)
        self.critical_tasks = solver.tasks_on(self.network, self.critical_path)

        self._log("\n\nCRITICAL PATH")
        self._log("-" * 50)
        self._log(f"Events: {' -> '.join(str(e) for e in self.critical_path)}")
        self._log(f"Tasks: {' -> '.join(str(t) for t in self.critical_tasks) or '(none)'}")
        self._log(
            "Duration = "
            + (" + ".join(f"{solver.max_duration(t):g}" for t in self.critical_tasks) or "0")
            + f" = {self.project_duration:g}"
        )
        self._log(f"Complete paths explored: {solver.paths_explored}")
        if self.raw_duration != self.project_duration:
            self._log(
                f"WARNING: raw network total {self.raw_duration:g} differs from simplified "
                f"total {self.project_duration:g}"
            )

        self._log("")
        self._log("=" * 70)
        self._log("CALCULATION COMPLETE")
        self._log(f"Project Duration: {self.project_duration:g}")
        self._log("=" * 70)

        return True, "Calculation completed successfully."

    def _log(self, message: str) -> None:
        self.calculation_log.append(message)

    def _log_network(self, title: str, network: Network) -> None:
        self._log(title)
        self._log("-" * 50)
        self._log(f"Events ({len(network.events)}): {' '.join(str(e) for e in network.events)}")
        for line in str(network).splitlines():
            self._log(f"  {line}")

    def get_tasks_dataframe(self) -> pd.DataFrame:
        """Get the task list as a pandas DataFrame, in list order."""
        data = []
        for task in self.tasks.values():
            data.append(
                {
                    "ID": task.id,
                    "Description": self.descriptions.get(task.id, ""),
                    "Min Duration": task.min_duration,
                    "Max Duration": task.max_duration,
                    "Required": ",".join(r for r in self.tasks if r in task.required),
                    "Critical": "Yes" if task.id in self.critical_tasks else "No",
                }
            )
        return pd.DataFrame(data, columns=["ID", "Description", "Min Duration", "Max Duration", "Required", "Critical"])

    def get_arcs_dataframe(self, simplified: bool = True) -> pd.DataFrame:
        """Get the arcs of the simplified (or raw) network as a pandas DataFrame."""
        network = self.network if simplified else self.raw_network
        columns = ["Source", "Destination", "Task", "Max Duration", "Critical"]
        if network is None:
            return pd.DataFrame(columns=columns)

        critical_links = set(zip(self.critical_path, self.critical_path[1:])) if simplified else set()
        data = []
        for link, label in network.iter_arcs():
            task = self.tasks.get(label) if label is not EMPTY else None
            data.append(
                {
                    "Source": link[0],
                    "Destination": link[1],
                    "Task": "" if label is EMPTY else label,
                    "Max Duration": task.max_duration if task else 0.0,
                    "Critical": "Yes" if link in critical_links else "No",
                }
            )
        return pd.DataFrame(data, columns=columns)

    def get_path_dataframe(self) -> pd.DataFrame:
        """One row per step of the critical path with the running total."""
        columns = ["From", "To", "Task", "Duration", "Cumulative"]
        if self.network is None or len(self.critical_path) < 2:
            return pd.DataFrame(columns=columns)

        data = []
        cumulative = 0.0
        for link in zip(self.critical_path, self.critical_path[1:]):
            label = self.network.arcs.get(link, EMPTY)
            task = self.tasks.get(label) if label is not EMPTY else None
            duration = task.max_duration if task else 0.0
            cumulative += duration
            data.append(
                {
                    "From": link[0],
                    "To": link[1],
                    "Task": "" if label is EMPTY else label,
                    "Duration": duration,
                    "Cumulative": cumulative,
                }
            )
        return pd.DataFrame(data, columns=columns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_domain": self.event_domain,
            "start_event": self.start_event,
            "loop_policy": self.loop_policy.value,
            "strict": self.strict,
            "tasks": [
                {
                    "id": task.id,
                    "description": self.descriptions.get(task.id, ""),
                    "min_duration": task.min_duration,
                    "max_duration": task.max_duration,
                    "required": [r for r in self.tasks if r in task.required],
                }
                for task in self.tasks.values()
            ],
            "raw_network": self.raw_network.to_dict() if self.raw_network else None,
            "network": self.network.to_dict() if self.network else None,
            "critical_path": list(self.critical_path),
            "critical_tasks": list(self.critical_tasks),
            "project_duration": self.project_duration,
            "raw_duration": self.raw_duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AOAScheduler":
        try:
            scheduler = cls(
                event_domain=data.get("event_domain", "letters"),
                start_event=data.get("start_event"),
                loop_policy=LoopPolicy(data.get("loop_policy", LoopPolicy.UNTIL_SHRINK.value)),
                strict=bool(data.get("strict", True)),
            )
            for item in data.get("tasks", []):
                task = Task(
                    str(item["id"]),
                    frozenset(str(r) for r in item.get("required", [])),
                    float(item.get("min_duration", 0.0)),
                    float(item.get("max_duration", 0.0)),
                )
                scheduler.tasks[task.id] = task
                scheduler.descriptions[task.id] = item.get("description", "")
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid scheduler payload: {exc}") from exc

        if data.get("raw_network"):
            scheduler.raw_network = Network.from_dict(data["raw_network"])
        if data.get("network"):
            scheduler.network = Network.from_dict(data["network"])
        scheduler.critical_path = [scheduler.domain.parse(e) for e in data.get("critical_path", [])]
        scheduler.critical_tasks = list(data.get("critical_tasks", []))
        scheduler.project_duration = float(data.get("project_duration", 0.0))
        scheduler.raw_duration = float(data.get("raw_duration", 0.0))
        return scheduler
