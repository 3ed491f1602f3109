import unittest

from aoanet.models import (
    EMPTY,
    CharIndex,
    IntIndex,
    Network,
    PrefixedIndex,
    Task,
    domain_by_name,
)


class TestIndexDomains(unittest.TestCase):
    def test_char_index(self):
        domain = CharIndex()
        self.assertEqual(domain.sentinel(), "0")
        self.assertEqual(domain.successor("A"), "B")

    def test_int_index(self):
        domain = IntIndex()
        self.assertEqual(domain.sentinel(), 0)
        self.assertEqual(domain.successor(41), 42)
        self.assertEqual(domain.parse("7"), 7)

    def test_prefixed_index_orders_by_number(self):
        domain = PrefixedIndex("e")
        self.assertEqual(domain.sentinel(), "e0")
        self.assertEqual(domain.successor("e9"), "e10")
        self.assertEqual(sorted(["e10", "e2", "e1"], key=domain.sort_key), ["e1", "e2", "e10"])

    def test_unknown_domain(self):
        with self.assertRaises(ValueError):
            domain_by_name("roman")


class TestTask(unittest.TestCase):
    def test_required_is_frozen(self):
        task = Task("4", ["1"], 7, 10)
        self.assertEqual(task.required, frozenset({"1"}))
        with self.assertRaises(AttributeError):
            task.max_duration = 3

    def test_str(self):
        self.assertEqual(str(Task("5", {"3", "1"}, 1, 4)), "5(1,3; 1..4)")
        self.assertEqual(str(Task("1")), "1(-; 0.0..0.0)")


class TestNetwork(unittest.TestCase):
    def setUp(self):
        self.network = Network(
            domain=CharIndex(),
            events=["A", "B", "C"],
            arcs={("B", "C"): EMPTY, ("A", "C"): "2", ("A", "B"): "1"},
        )

    def test_arcs_iterate_in_link_order(self):
        links = [link for link, _ in self.network.iter_arcs()]
        self.assertEqual(links, [("A", "B"), ("A", "C"), ("B", "C")])

    def test_text_rendering(self):
        self.assertEqual(str(self.network), "A -> B 1\nA -> C 2\nB -> C\n")
        self.assertEqual(str(Network()), "")

    def test_arc_queries(self):
        self.assertTrue(self.network.has_arc(("A", "B")))
        self.assertFalse(self.network.is_empty_arc(("A", "B")))
        self.assertTrue(self.network.is_empty_arc(("B", "C")))
        self.assertFalse(self.network.is_empty_arc(("C", "A")))
        self.assertTrue(self.network.is_source("A"))
        self.assertFalse(self.network.is_target("A"))
        self.assertFalse(self.network.is_isolated("C"))
        self.assertEqual(self.network.first, "A")
        self.assertEqual(self.network.last, "C")
        self.assertEqual(self.network.labels(), ["1", "2"])

    def test_shared_parent(self):
        self.assertEqual(self.network.shared_parent("B", "C"), "A")
        self.assertEqual(self.network.shared_parent("C", "B"), "A")
        self.assertIsNone(self.network.shared_parent("B", "A"))

    def test_shared_parent_ignores_empty_arcs_into_first_event(self):
        network = Network(events=["A", "B", "C"], arcs={("A", "B"): EMPTY, ("A", "C"): "1"})
        self.assertIsNone(network.shared_parent("B", "C"))
        self.assertEqual(network.shared_parent("C", "B"), "A")

    def test_outgoing(self):
        self.assertEqual(self.network.outgoing("A"), [("B", "1"), ("C", "2")])
        self.assertEqual(self.network.outgoing("C"), [])

    def test_copy_is_independent(self):
        clone = self.network.copy()
        clone.events.remove("B")
        del clone.arcs[("A", "B")]
        self.assertEqual(self.network.events, ["A", "B", "C"])
        self.assertIn(("A", "B"), self.network.arcs)

    def test_dict_round_trip_with_numeric_events(self):
        network = Network(domain=IntIndex(), events=[0, 1], arcs={(0, 1): "1"})
        data = network.to_dict()
        self.assertEqual(data["domain"], "numbers")
        restored = Network.from_dict(data)
        self.assertEqual(restored.events, [0, 1])
        self.assertEqual(restored.arcs, {(0, 1): "1"})

    def test_from_dict_rejects_bad_payload(self):
        with self.assertRaises(ValueError):
            Network.from_dict({"domain": "letters", "events": ["A"]})


if __name__ == "__main__":
    unittest.main()
