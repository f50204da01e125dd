import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from core.event_bus import EventBus
from core.scheduler import TaskScheduler, normalize_interval
from core.storage import SCHEDULED_TASKS, JsonStore, PersistFailure

T0 = datetime(2026, 3, 1, 9, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class NormalizeIntervalTests(unittest.TestCase):
    def test_reads_first_integer(self):
        self.assertEqual(normalize_interval("*/7 * * * *"), 7)
        self.assertEqual(normalize_interval("every 15 minutes"), 15)

    def test_defaults_and_minimum(self):
        self.assertEqual(normalize_interval(""), 5)
        self.assertEqual(normalize_interval("* * * * *"), 5)
        self.assertEqual(normalize_interval("*/0 * * * *"), 1)
        self.assertEqual(normalize_interval(None, default=3), 3)


class TaskSchedulerTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonStore(Path(self._tmp.name))
        self.clock = FakeClock()
        self.bus = EventBus(history_size=50)
        self.scheduler = TaskScheduler(self.store, event_bus=self.bus, clock=self.clock)

    def tearDown(self):
        self._tmp.cleanup()

    def _create(self, name="News", spec="*/7 * * * *", command="search for AI news"):
        return self.scheduler.create_task(name=name, description="", cron_expression=spec, command=command)

    def test_create_sets_next_run_from_interval(self):
        task = self._create()
        self.assertTrue(task.is_active)
        self.assertEqual(task.next_run, T0 + timedelta(minutes=7))
        self.assertTrue(self.scheduler.has_timer(task.id))
        self.assertEqual(len(self.scheduler.list_tasks()), 1)

    def test_fires_when_due(self):
        task = self._create()
        self.assertEqual(self.scheduler.run_pending(T0 + timedelta(minutes=6)), [])

        fired_at = self.clock.advance(minutes=7)
        results = self.scheduler.run_pending()
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].success)
        self.assertEqual(results[0].actions[0].type.value, "navigation")
        self.assertEqual(results[0].actions[0].details, "search for AI news")

        stored = self.scheduler.get_task(task.id)
        self.assertEqual(stored.last_run, fired_at)
        self.assertEqual(stored.next_run, fired_at + timedelta(minutes=7))
        self.assertTrue(self.scheduler.has_timer(task.id))
        self.assertEqual(len(self.bus.history("task_result")), 1)

    def test_missed_runs_coalesce(self):
        task = self._create(spec="*/5 * * * *")
        results = self.scheduler.run_pending(T0 + timedelta(minutes=60))
        self.assertEqual(len(results), 1)
        self.assertEqual(len(self.scheduler.get_task_results(task.id)), 1)

    def test_toggle_twice_restores_state(self):
        task = self._create()

        paused = self.scheduler.toggle_task(task.id)
        self.assertFalse(paused.is_active)
        self.assertFalse(self.scheduler.has_timer(task.id))
        self.assertEqual(self.scheduler.run_pending(T0 + timedelta(hours=1)), [])

        resumed = self.scheduler.toggle_task(task.id)
        self.assertTrue(resumed.is_active)
        self.assertTrue(self.scheduler.has_timer(task.id))

    def test_deleted_task_never_fires(self):
        task = self._create()
        self.assertTrue(self.scheduler.delete_task(task.id))

        results = self.scheduler.run_pending(T0 + timedelta(minutes=30))
        self.assertEqual(results, [])
        self.assertEqual(self.scheduler.get_task_results(task.id), [])
        self.assertIsNone(self.scheduler.get_task(task.id))

    def test_update_interval_replaces_old_timer(self):
        task = self._create(spec="*/5 * * * *")
        self.clock.advance(minutes=2)
        updated = self.scheduler.update_task(task.id, {"cron_expression": "*/10 * * * *"})
        self.assertEqual(updated.next_run, T0 + timedelta(minutes=12))

        # The original five-minute timer must not fire
        self.assertEqual(self.scheduler.run_pending(T0 + timedelta(minutes=6)), [])
        self.assertEqual(len(self.scheduler.run_pending(T0 + timedelta(minutes=12))), 1)

    def test_update_ignores_unknown_fields(self):
        task = self._create()
        updated = self.scheduler.update_task(task.id, {"name": "Renamed", "id": "hijack"})
        self.assertEqual(updated.id, task.id)
        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(self.scheduler.find_task_by_name("renamed").id, task.id)

    def test_results_are_capped(self):
        task = self._create()
        for _ in range(12):
            self.clock.advance(minutes=1)
            self.scheduler.execute_task(task.id)

        results = self.scheduler.get_task_results(task.id)
        self.assertEqual(len(results), 10)
        self.assertEqual(results[-1].timestamp, self.clock.now)
        self.assertEqual(results[0].timestamp, T0 + timedelta(minutes=3))

    def test_unknown_ids(self):
        self.assertIsNone(self.scheduler.get_task("missing"))
        self.assertIsNone(self.scheduler.update_task("missing", {"name": "x"}))
        self.assertIsNone(self.scheduler.toggle_task("missing"))
        self.assertIsNone(self.scheduler.execute_task("missing"))
        self.assertFalse(self.scheduler.delete_task("missing"))
        self.assertEqual(self.scheduler.get_task_results("missing"), [])

    def test_reload_rearms_active_tasks(self):
        active = self._create(name="Active")
        paused = self._create(name="Paused")
        self.scheduler.toggle_task(paused.id)

        later = FakeClock(T0 + timedelta(hours=2))
        reloaded = TaskScheduler(self.store, clock=later)

        self.assertEqual({t.name for t in reloaded.list_tasks()}, {"Active", "Paused"})
        self.assertTrue(reloaded.has_timer(active.id))
        self.assertFalse(reloaded.has_timer(paused.id))
        # Stale next_run is pushed forward instead of firing immediately
        self.assertEqual(reloaded.get_task(active.id).next_run, later.now + timedelta(minutes=7))
        self.assertEqual(reloaded.run_pending(later.now), [])

    def test_persisted_timestamps_are_iso(self):
        self._create()
        record = self.store.read(SCHEDULED_TASKS)[0]
        self.assertEqual(record["created_at"], T0.isoformat())
        self.assertEqual(record["cron_expression"], "*/7 * * * *")

    def test_corrupt_file_loads_no_tasks(self):
        self.store.path_for(SCHEDULED_TASKS).write_text("{not json", encoding="utf-8")
        scheduler = TaskScheduler(self.store, clock=self.clock)
        self.assertEqual(scheduler.list_tasks(), [])

    def test_wrong_shape_file_loads_no_tasks(self):
        for payload in ("5", "true", '{"id": "abc"}', '[5, "x"]'):
            with self.subTest(payload=payload):
                self.store.path_for(SCHEDULED_TASKS).write_text(payload, encoding="utf-8")
                scheduler = TaskScheduler(self.store, clock=self.clock)
                self.assertEqual(scheduler.list_tasks(), [])

    def test_rejected_update_keeps_task_and_timer(self):
        task = self._create()
        with self.assertRaises(ValidationError):
            self.scheduler.update_task(task.id, {"is_active": "maybe"})

        stored = self.scheduler.get_task(task.id)
        self.assertTrue(stored.is_active)
        self.assertEqual(stored.next_run, task.next_run)
        self.assertTrue(self.scheduler.has_timer(task.id))
        self.assertEqual(len(self.scheduler.run_pending(T0 + timedelta(minutes=7))), 1)

    def test_failed_writes_keep_memory_state(self):
        scheduler = TaskScheduler(UnwritableStore(Path(self._tmp.name)), clock=self.clock)

        task = scheduler.create_task(name="Offline", description="", cron_expression="*/3 * * * *", command="search for cats")
        self.assertEqual(scheduler.get_task(task.id).name, "Offline")
        self.assertTrue(scheduler.has_timer(task.id))
        self.assertEqual(len(scheduler.run_pending(T0 + timedelta(minutes=3))), 1)
        self.assertIsNotNone(scheduler.toggle_task(task.id))
        self.assertTrue(scheduler.delete_task(task.id))


class UnwritableStore(JsonStore):
    def write(self, namespace, data):
        raise PersistFailure(namespace, OSError("read-only file system"))


if __name__ == "__main__":
    unittest.main()
