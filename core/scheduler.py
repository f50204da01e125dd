import heapq
import itertools
import logging
import re
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import BaseModel, Field, ValidationError

from core.actions import BrowserAction, generate_id, navigate
from core.event_bus import EventBus
from core.storage import SCHEDULED_TASKS, ConfigLoadFailure, JsonStore, PersistFailure

# Setup logging
logger = logging.getLogger("scheduler")

DEFAULT_INTERVAL_MINUTES = 5
MAX_RESULTS_PER_TASK = 10
TICK_JOB_ID = "scheduled_task_tick"

# Fields a caller may change through update_task
EDITABLE_FIELDS = ("name", "description", "cron_expression", "command", "is_active")


class ScheduledTask(BaseModel):
    id: str
    name: str
    description: str = ""
    cron_expression: str
    command: str
    is_active: bool = True
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)


class TaskResult(BaseModel):
    task_id: str
    success: bool
    message: str
    actions: List[BrowserAction] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)


def normalize_interval(cron_expression: str, default: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """
    Reduce an interval specification to whole minutes.

    Only the first integer is read ("*/7 * * * *" -> 7); this is not a
    calendar-aware cron parser. Missing numbers fall back to `default`,
    and the result is never below one minute.
    """
    match = re.search(r"\d+", cron_expression or "")
    minutes = int(match.group()) if match else default
    return max(1, minutes)


class TaskScheduler:
    """
    Owns recurring task definitions, their timers and bounded run history.

    Timers live in a min-heap ordered on next_run. Cancelling a timer only
    drops the task's live sequence number, so stale heap entries are skipped
    when they surface. `run_pending` fires everything that is due; `start`
    hands that to an AsyncIOScheduler interval job on the running loop.
    """

    def __init__(
        self,
        store: JsonStore,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_results: int = MAX_RESULTS_PER_TASK,
        default_interval: int = DEFAULT_INTERVAL_MINUTES,
        tick_seconds: float = 1.0,
    ):
        self.store = store
        self.event_bus = event_bus
        self.clock = clock or datetime.now
        self.max_results = max_results
        self.default_interval = default_interval
        self.tick_seconds = tick_seconds

        self.tasks: Dict[str, ScheduledTask] = {}
        self._results: Dict[str, Deque[TaskResult]] = {}
        self._heap: List[Tuple[datetime, int, str]] = []
        self._armed: Dict[str, int] = {}
        self._seq = itertools.count()

        self.scheduler = AsyncIOScheduler()
        self.initialized = False
        self.load_tasks()

    # --- persistence ---

    def load_tasks(self):
        """Load tasks from JSON and arm the active ones."""
        try:
            data = self.store.read(SCHEDULED_TASKS)
        except ConfigLoadFailure as e:
            logger.error(f"Failed to load scheduled tasks: {e}")
            return
        if not data:
            return
        if not isinstance(data, list):
            logger.error(f"Ignoring scheduled tasks file: expected a list, got {type(data).__name__}")
            return

        now = self.clock()
        stale = False
        for task_data in data:
            try:
                task = ScheduledTask.model_validate(task_data)
            except ValidationError as e:
                logger.error(f"Skipping unreadable task record: {e}")
                stale = True
                continue
            self.tasks[task.id] = task
            self._results[task.id] = deque(maxlen=self.max_results)
            if task.is_active:
                if task.next_run is None or task.next_run <= now:
                    task.next_run = now + self._interval(task)
                    stale = True
                self._arm(task)
        if stale:
            self.save_tasks()
        logger.info(f"Loaded {len(self.tasks)} scheduled tasks from disk.")

    def save_tasks(self):
        """Persist tasks to JSON."""
        data = [task.model_dump(mode="json") for task in self.tasks.values()]
        try:
            self.store.write(SCHEDULED_TASKS, data)
        except PersistFailure as e:
            logger.error(f"Failed to save scheduled tasks: {e}")

    # --- timers ---

    def _interval(self, task: ScheduledTask) -> timedelta:
        return timedelta(minutes=normalize_interval(task.cron_expression, self.default_interval))

    def _arm(self, task: ScheduledTask):
        seq = next(self._seq)
        self._armed[task.id] = seq
        heapq.heappush(self._heap, (task.next_run, seq, task.id))
        self._compact()

    def _disarm(self, task_id: str):
        self._armed.pop(task_id, None)

    def _compact(self):
        if len(self._heap) > 2 * len(self._armed) + 16:
            self._heap = [entry for entry in self._heap if self._armed.get(entry[2]) == entry[1]]
            heapq.heapify(self._heap)

    def has_timer(self, task_id: str) -> bool:
        return task_id in self._armed

    def run_pending(self, now: Optional[datetime] = None) -> List[TaskResult]:
        """Fire every armed task whose next_run is at or before `now`."""
        now = now or self.clock()
        fired = []
        while self._heap and self._heap[0][0] <= now:
            _, seq, task_id = heapq.heappop(self._heap)
            if self._armed.get(task_id) != seq:
                continue  # tombstone
            del self._armed[task_id]
            result = self._execute(task_id, now)
            if result:
                fired.append(result)
        return fired

    async def _tick(self):
        self.run_pending()

    def start(self):
        if self.initialized:
            return
        self.scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self.tick_seconds),
            id=TICK_JOB_ID,
            name="Scheduled task timers",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        self.initialized = True
        logger.info(f"✅ Scheduler Service Started ({len(self._armed)} active tasks)")

    def shutdown(self):
        if not self.initialized:
            return
        self.scheduler.shutdown(wait=False)
        self.initialized = False
        logger.info("🛑 Scheduler Service Stopped")

    # --- task lifecycle ---

    def create_task(self, name: str, description: str, cron_expression: str, command: str) -> ScheduledTask:
        """Add a new task; it starts Active with its timer armed."""
        task_id = generate_id()
        while task_id in self.tasks:
            task_id = generate_id()
        now = self.clock()
        task = ScheduledTask(
            id=task_id,
            name=name,
            description=description,
            cron_expression=cron_expression,
            command=command,
            is_active=True,
            created_at=now,
        )
        task.next_run = now + self._interval(task)
        self.tasks[task_id] = task
        self._results[task_id] = deque(maxlen=self.max_results)
        self.save_tasks()
        self._arm(task)
        logger.info(f"⏰ Task '{name}' scheduled every {normalize_interval(cron_expression, self.default_interval)} min (next run {task.next_run.isoformat()})")
        return task.model_copy()

    def list_tasks(self) -> List[ScheduledTask]:
        return [task.model_copy() for task in self.tasks.values()]

    def get_task(self, task_id: str) -> Optional[ScheduledTask]:
        task = self.tasks.get(task_id)
        return task.model_copy() if task else None

    def find_task_by_name(self, name: str) -> Optional[ScheduledTask]:
        wanted = name.strip().lower()
        for task in self.tasks.values():
            if task.name.lower() == wanted:
                return task.model_copy()
        return None

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[ScheduledTask]:
        task = self.tasks.get(task_id)
        if task is None:
            return None

        accepted = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        data = task.model_dump()
        data.update(accepted)
        # A rejected update leaves the task and its timer untouched
        updated = ScheduledTask.model_validate(data)

        # The old timer goes before any field changes
        self._disarm(task_id)
        now = self.clock()
        if "cron_expression" in accepted:
            updated.next_run = now + self._interval(updated)
        if updated.is_active and (updated.next_run is None or updated.next_run <= now):
            updated.next_run = now + self._interval(updated)

        self.tasks[task_id] = updated
        self.save_tasks()
        if updated.is_active:
            self._arm(updated)
        return updated.model_copy()

    def toggle_task(self, task_id: str) -> Optional[ScheduledTask]:
        task = self.tasks.get(task_id)
        if task is None:
            return None
        updated = self.update_task(task_id, {"is_active": not task.is_active})
        logger.info(f"Task '{updated.name}' {'resumed' if updated.is_active else 'paused'}")
        return updated

    def delete_task(self, task_id: str) -> bool:
        if task_id not in self.tasks:
            return False
        self._disarm(task_id)
        task = self.tasks.pop(task_id)
        self._results.pop(task_id, None)
        self.save_tasks()
        logger.info(f"🗑️ Task '{task.name}' deleted")
        return True

    def execute_task(self, task_id: str) -> Optional[TaskResult]:
        """Run a task now, outside its timer."""
        return self._execute(task_id, self.clock())

    def _execute(self, task_id: str, now: datetime) -> Optional[TaskResult]:
        """
        Fire one task. Runs start to finish without awaiting, on the loop that
        owns the scheduler, so two firings of the same task can never overlap.
        """
        task = self.tasks.get(task_id)
        if task is None:
            return None

        logger.info(f"⏰ Executing scheduled task: {task.name}")
        task.last_run = now
        task.next_run = now + self._interval(task)
        self.save_tasks()

        result = TaskResult(
            task_id=task_id,
            success=True,
            message=f'Task "{task.name}" executed successfully',
            actions=[navigate(f"Automated task: {task.name}", details=task.command)],
            timestamp=now,
        )
        self._results.setdefault(task_id, deque(maxlen=self.max_results)).append(result)

        if task.is_active:
            self._arm(task)
        if self.event_bus:
            self.event_bus.publish("task_result", "scheduler", result.model_dump(mode="json"))
        return result

    def get_task_results(self, task_id: str) -> List[TaskResult]:
        return list(self._results.get(task_id, ()))
