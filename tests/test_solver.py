import unittest

from aoanet.builder import NetworkBuilder
from aoanet.models import EMPTY, IntIndex, Network, Task
from aoanet.simplifier import NetworkSimplifier
from aoanet.solver import CriticalPathSolver


def canonical_tasks():
    return [
        Task("1", set(), 4, 7),
        Task("2", set(), 8, 11),
        Task("3", set(), 3, 5),
        Task("4", {"1"}, 7, 10),
        Task("5", {"1", "2", "3"}, 1, 4),
        Task("6", {"3"}, 9, 13),
        Task("7", {"3", "4", "5"}, 8, 12),
        Task("8", {"4"}, 5, 8),
    ]


class TestCriticalPathSolver(unittest.TestCase):
    def test_canonical_raw_network(self):
        tasks = canonical_tasks()
        network = NetworkBuilder().build(tasks, "A")
        solver = CriticalPathSolver(tasks)

        path = solver.solve(network)
        self.assertEqual(path, ["A", "B", "E", "F", "H", "I"])
        self.assertEqual(solver.duration_of(network, path), 29)
        self.assertEqual(solver.tasks_on(network, path), ["1", "4", "7"])

    def test_canonical_simplified_network(self):
        tasks = canonical_tasks()
        network = NetworkSimplifier().simplify(NetworkBuilder().build(tasks, "A"))
        solver = CriticalPathSolver(tasks)

        path = solver.solve(network)
        self.assertEqual(path, ["A", "B", "E", "F", "I"])
        self.assertEqual(solver.duration_of(network, path), 29)
        self.assertEqual(solver.tasks_on(network, path), ["1", "4", "7"])

    def test_numeric_events(self):
        tasks = canonical_tasks()
        network = NetworkBuilder(IntIndex()).build(tasks)
        path = CriticalPathSolver(tasks).solve(network)
        self.assertEqual(path, [0, 1, 4, 5, 7, 8])

    def test_ties_keep_first_path_in_arc_order(self):
        tasks = [Task("x", set(), 0, 5), Task("y", set(), 0, 5)]
        network = Network(
            events=["A", "B", "C", "D"],
            arcs={("A", "C"): "y", ("A", "B"): "x", ("B", "D"): EMPTY, ("C", "D"): EMPTY},
        )
        self.assertEqual(CriticalPathSolver(tasks).solve(network), ["A", "B", "D"])

    def test_strictly_longer_path_wins(self):
        tasks = [Task("x", set(), 0, 5), Task("y", set(), 0, 6)]
        network = Network(
            events=["A", "B", "C", "D"],
            arcs={("A", "B"): "x", ("A", "C"): "y", ("B", "D"): EMPTY, ("C", "D"): EMPTY},
        )
        solver = CriticalPathSolver(tasks)
        self.assertEqual(solver.solve(network), ["A", "C", "D"])
        self.assertEqual(solver.paths_explored, 2)

    def test_unknown_task_and_empty_arcs_cost_nothing(self):
        solver = CriticalPathSolver([Task("1", set(), 1, 2)])
        self.assertEqual(solver.max_duration("1"), 2)
        self.assertEqual(solver.max_duration("missing"), 0)
        self.assertEqual(solver.max_duration(EMPTY), 0)

    def test_first_task_with_duplicate_id_is_used(self):
        solver = CriticalPathSolver([Task("1", set(), 0, 2), Task("1", set(), 0, 9)])
        self.assertEqual(solver.max_duration("1"), 2)

    def test_zero_duration_network_still_returns_a_path(self):
        network = NetworkBuilder().build([Task("1"), Task("2")], "A")
        path = CriticalPathSolver([]).solve(network)
        self.assertEqual(path[0], "A")
        self.assertEqual(path[-1], "C")

    def test_single_and_empty_networks(self):
        solver = CriticalPathSolver([])
        self.assertEqual(solver.solve(Network(events=["A"])), ["A"])
        self.assertEqual(solver.solve(Network()), [])
        self.assertEqual(solver.duration_of(Network(), []), 0)

    def test_path_starts_first_and_ends_last(self):
        tasks = canonical_tasks()
        network = NetworkBuilder().build(tasks, "A")
        path = CriticalPathSolver(tasks).solve(network)
        self.assertEqual(path[0], network.first)
        self.assertEqual(path[-1], network.last)


if __name__ == "__main__":
    unittest.main()
