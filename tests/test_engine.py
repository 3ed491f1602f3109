import unittest

from aoanet.engine import AOAScheduler
from aoanet.simplifier import LoopPolicy

SAMPLE = [
    ("1", 4, 7, ""),
    ("2", 8, 11, ""),
    ("3", 3, 5, ""),
    ("4", 7, 10, "1"),
    ("5", 1, 4, "1,2,3"),
    ("6", 9, 13, "3"),
    ("7", 8, 12, "3;4;5"),
    ("8", 5, 8, "4"),
]


def sample_scheduler(**kwargs):
    scheduler = AOAScheduler(**kwargs)
    for task_id, t_min, t_max, required in SAMPLE:
        ok, message = scheduler.add_task(task_id, t_min, t_max, required)
        assert ok, message
    return scheduler


class TestAOAScheduler(unittest.TestCase):
    def test_canonical_calculation(self):
        scheduler = sample_scheduler()

        ok, _ = scheduler.calculate()
        self.assertTrue(ok)
        self.assertEqual(scheduler.project_duration, 29)
        self.assertEqual(scheduler.raw_duration, 29)
        self.assertEqual(scheduler.critical_path, ["A", "B", "E", "F", "I"])
        self.assertEqual(scheduler.critical_tasks, ["1", "4", "7"])
        self.assertEqual(len(scheduler.raw_network.events), 9)
        self.assertEqual(len(scheduler.network.events), 7)
        self.assertIn("CALCULATION COMPLETE", scheduler.calculation_log)
        self.assertNotIn("WARNING", "\n".join(scheduler.calculation_log))

    def test_event_domains(self):
        scheduler = sample_scheduler(event_domain="numbers")
        scheduler.calculate()
        self.assertEqual(scheduler.critical_path, [0, 1, 4, 5, 8])

        scheduler = sample_scheduler(event_domain="events")
        scheduler.calculate()
        self.assertEqual(scheduler.critical_path, ["e0", "e1", "e4", "e5", "e8"])

    def test_unchecked_simplification_is_reported(self):
        scheduler = sample_scheduler(strict=False)
        ok, _ = scheduler.calculate()
        self.assertTrue(ok)
        self.assertEqual(scheduler.raw_duration, 29)
        self.assertEqual(scheduler.project_duration, 44)
        self.assertIn("WARNING", "\n".join(scheduler.calculation_log))

    def test_add_task_validation(self):
        scheduler = AOAScheduler()
        self.assertEqual(scheduler.add_task("", 1, 2), (False, "Task ID cannot be empty."))
        self.assertFalse(scheduler.add_task("bad id", 1, 2)[0])
        self.assertEqual(scheduler.add_task("A", -1, 2), (False, "Durations must be non-negative."))
        self.assertEqual(
            scheduler.add_task("A", 3, 2), (False, "Minimum duration cannot exceed maximum duration.")
        )
        self.assertEqual(scheduler.add_task("A", "x", 2), (False, "Durations must be numbers."))
        self.assertEqual(scheduler.add_task("A", 1, 2, "A"), (False, "A task cannot require itself."))
        ok, message = scheduler.add_task("A", 1, 2, "B")
        self.assertFalse(ok)
        self.assertIn("not defined yet", message)

        self.assertTrue(scheduler.add_task("A", 1, 2)[0])
        self.assertEqual(scheduler.add_task("A", 1, 2), (False, "Task 'A' already exists."))
        self.assertTrue(scheduler.add_task("B", 1, 2, " A ; A ")[0])
        self.assertEqual(scheduler.tasks["B"].required, frozenset({"A"}))

    def test_remove_task(self):
        scheduler = sample_scheduler()
        ok, message = scheduler.remove_task("4")
        self.assertFalse(ok)
        self.assertIn("requires it", message)

        self.assertTrue(scheduler.remove_task("8")[0])
        self.assertNotIn("8", scheduler.tasks)
        self.assertFalse(scheduler.remove_task("8")[0])

    def test_validate_network(self):
        self.assertEqual(AOAScheduler().validate_network(), (False, "No tasks defined."))

        scheduler = AOAScheduler.from_dict(
            {"tasks": [{"id": "2", "required": ["1"]}, {"id": "1", "max_duration": 3}]}
        )
        self.assertEqual(
            scheduler.validate_network(), (False, "Task '2' is listed before its prerequisite '1'.")
        )

        scheduler = AOAScheduler.from_dict(
            {"tasks": [{"id": "1", "required": ["2"]}, {"id": "2", "required": ["1"]}]}
        )
        ok, message = scheduler.validate_network()
        self.assertFalse(ok)
        self.assertIn("Circular dependency detected", message)
        self.assertFalse(scheduler.calculate()[0])
        self.assertIsNone(scheduler.network)

        scheduler = AOAScheduler.from_dict({"tasks": [{"id": "1", "required": ["9"]}]})
        self.assertEqual(
            scheduler.validate_network(), (False, "Task '1' requires undefined task '9'.")
        )

    def test_dataframes(self):
        scheduler = sample_scheduler()
        self.assertTrue(scheduler.get_arcs_dataframe().empty)
        self.assertTrue(scheduler.get_path_dataframe().empty)

        scheduler.calculate()
        tasks_df = scheduler.get_tasks_dataframe()
        self.assertEqual(list(tasks_df["ID"]), [t[0] for t in SAMPLE])
        self.assertEqual(tasks_df.loc[tasks_df["ID"] == "7", "Required"].item(), "3,4,5")
        self.assertEqual(list(tasks_df.loc[tasks_df["Critical"] == "Yes", "ID"]), ["1", "4", "7"])

        arcs_df = scheduler.get_arcs_dataframe()
        self.assertEqual(len(arcs_df), 12)
        self.assertEqual(len(scheduler.get_arcs_dataframe(simplified=False)), 15)
        self.assertEqual((arcs_df["Critical"] == "Yes").sum(), 4)

        path_df = scheduler.get_path_dataframe()
        self.assertEqual(list(path_df["Task"]), ["1", "4", "", "7"])
        self.assertEqual(path_df["Cumulative"].iloc[-1], 29)

    def test_dict_round_trip(self):
        scheduler = sample_scheduler(loop_policy=LoopPolicy.UNTIL_STABLE)
        scheduler.calculate()

        restored = AOAScheduler.from_dict(scheduler.to_dict())
        self.assertEqual(restored.loop_policy, LoopPolicy.UNTIL_STABLE)
        self.assertEqual(list(restored.tasks), list(scheduler.tasks))
        self.assertEqual(restored.tasks["7"], scheduler.tasks["7"])
        self.assertEqual(restored.critical_path, scheduler.critical_path)
        self.assertEqual(restored.network.arcs, scheduler.network.arcs)
        self.assertEqual(restored.project_duration, 29)

    def test_from_dict_rejects_bad_payload(self):
        with self.assertRaises(ValueError):
            AOAScheduler.from_dict({"tasks": [{"description": "no id"}]})
        with self.assertRaises(ValueError):
            AOAScheduler.from_dict({"event_domain": "roman"})

    def test_clear(self):
        scheduler = sample_scheduler()
        scheduler.calculate()
        scheduler.clear()
        self.assertEqual(scheduler.tasks, {})
        self.assertEqual(scheduler.critical_path, [])
        self.assertIsNone(scheduler.raw_network)


if __name__ == "__main__":
    unittest.main()
