import asyncio
import tempfile
import unittest
from pathlib import Path

from core.browser_config import BrowserConfigStore
from core.context_store import ContextStore
from core.event_bus import EventBus
from core.processor import CANCELLED_RESPONSE, CommandProcessor
from core.resolver import IntentResolver
from core.scheduler import TaskScheduler
from core.storage import JsonStore


class CommandProcessorTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        store = JsonStore(Path(self._tmp.name))
        self.bus = EventBus()
        self.context = ContextStore(store)
        self.scheduler = TaskScheduler(store, event_bus=self.bus)
        resolver = IntentResolver(self.context, self.scheduler, BrowserConfigStore(store, platform="linux"))
        self.processor = CommandProcessor(resolver, self.bus, latency_seconds=0, reveal_delay_seconds=0)

    def tearDown(self):
        self._tmp.cleanup()

    async def test_process_resolves_and_publishes(self):
        outcome = await self.processor.process("search for cats")

        self.assertFalse(outcome.cancelled)
        self.assertEqual(outcome.result.intent, "web_search")
        self.assertEqual(outcome.response, outcome.result.response)
        self.assertEqual(self.processor.active, {})

        events = self.bus.history("actions")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["data"]["command_id"], outcome.id)
        self.assertEqual(len(events[0]["data"]["actions"]), 4)

    async def test_cancel_before_start_changes_nothing(self):
        handle = self.processor.start('schedule "News" to search for AI news every 10 minutes')
        self.assertTrue(self.processor.cancel(handle.id))

        outcome = await self.processor.process(handle.text, handle)

        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.response, CANCELLED_RESPONSE)
        self.assertIsNone(outcome.result)
        self.assertEqual(self.context.get_full_context().previous_commands, [])
        self.assertEqual(self.scheduler.list_tasks(), [])
        self.assertEqual(self.bus.history(), [])

    async def test_cancel_during_latency(self):
        self.processor.latency_seconds = 5
        before = self.context.get_full_context()

        handle = self.processor.start("login to GitHub")
        running = asyncio.create_task(self.processor.process(handle.text, handle))
        await asyncio.sleep(0.01)
        self.assertIn(handle.id, self.processor.active)
        self.assertTrue(self.processor.cancel(handle.id))

        outcome = await asyncio.wait_for(running, timeout=1)
        self.assertTrue(outcome.cancelled)
        self.assertEqual(self.context.get_full_context(), before)
        self.assertNotIn(handle.id, self.processor.active)

    async def test_cancel_unknown(self):
        self.assertFalse(self.processor.cancel("missing"))

    async def test_reveal_word_by_word(self):
        words = [w async for w in self.processor.reveal("I've opened https://github.com.")]
        self.assertEqual(words, ["I've", "opened", "https://github.com."])

    async def test_cancel_stops_reveal_but_keeps_state(self):
        handle = self.processor.start("go to github.com")
        outcome = await self.processor.process(handle.text, handle)

        revealed = []
        async for word in self.processor.reveal("one two three four", handle):
            revealed.append(word)
            if len(revealed) == 2:
                handle.cancel()

        self.assertEqual(revealed, ["one", "two"])
        self.assertFalse(outcome.cancelled)
        self.assertEqual(self.context.current_site, "https://github.com")


if __name__ == "__main__":
    unittest.main()
