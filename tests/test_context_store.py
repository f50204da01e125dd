import tempfile
import unittest
from pathlib import Path

from core.context_store import ContextStore
from core.storage import CONVERSATION_CONTEXT, JsonStore, PersistFailure


class ContextStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonStore(Path(self._tmp.name))
        self.context = ContextStore(self.store)

    def tearDown(self):
        self._tmp.cleanup()

    def test_defaults(self):
        ctx = self.context.get_full_context()
        self.assertEqual(ctx.previous_commands, [])
        self.assertEqual(ctx.extracted_data, {})
        self.assertIsNone(ctx.current_session.site_context)
        self.assertEqual(ctx.user_preferences.default_search_engine, "google")

    def test_command_history_is_capped_most_recent_first(self):
        for i in range(11):
            self.context.add_command(f"command {i}")
        commands = self.context.get_full_context().previous_commands
        self.assertEqual(len(commands), 10)
        self.assertEqual(commands[0], "command 10")
        self.assertEqual(commands[-1], "command 1")

    def test_add_topic_is_idempotent(self):
        self.context.add_topic("weather")
        self.context.add_topic("weather")
        self.assertEqual(self.context.get_full_context().recent_topics, ["weather"])

    def test_extracted_data_recency(self):
        self.context.add_extracted_data("googleSearch", {"query": "a"})
        self.context.add_extracted_data("weather", {"temperature": "72°F"})
        self.assertEqual(self.context.most_recent_extracted_key(), "weather")

        self.context.add_extracted_data("googleSearch", {"query": "b"})
        self.assertEqual(self.context.most_recent_extracted_key(), "googleSearch")
        self.assertEqual(self.context.get_extracted_data("googleSearch"), {"query": "b"})
        self.assertEqual(
            self.context.most_recent_extracted_key(lambda key: key == "weather"),
            "weather",
        )
        self.assertIsNone(self.context.most_recent_extracted_key(lambda key: key.endswith("Profile")))

    def test_snapshots_are_copies(self):
        self.context.add_extracted_data("weather", {"temperature": "72°F"})
        snapshot = self.context.get_full_context()
        snapshot.extracted_data["weather"]["temperature"] = "0°F"
        snapshot.previous_commands.append("tampered")

        value = self.context.get_extracted_data("weather")
        value["temperature"] = "-10°F"

        self.assertEqual(self.context.get_extracted_data("weather"), {"temperature": "72°F"})
        self.assertEqual(self.context.get_full_context().previous_commands, [])

    def test_reload_yields_equal_context(self):
        self.context.add_command("search for cats")
        self.context.add_topic("web search")
        self.context.update_current_site("https://www.google.com")
        self.context.add_extracted_data("googleSearch", {"query": "cats"})
        self.context.add_favorite_website("https://github.com")

        reloaded = ContextStore(self.store)
        self.assertEqual(reloaded.get_full_context(), self.context.get_full_context())

    def test_reset_session_keeps_memory(self):
        self.context.add_command("go to github.com")
        self.context.update_current_site("https://github.com")
        old_session = self.context.get_full_context().current_session

        self.context.reset_session()

        ctx = self.context.get_full_context()
        self.assertNotEqual(ctx.current_session.session_id, old_session.session_id)
        self.assertIsNone(ctx.current_session.site_context)
        self.assertEqual(ctx.previous_commands, ["go to github.com"])

    def test_clear_all(self):
        self.context.add_command("hello")
        self.context.add_extracted_data("weather", {})
        self.context.clear_all()
        ctx = ContextStore(self.store).get_full_context()
        self.assertEqual(ctx.previous_commands, [])
        self.assertEqual(ctx.extracted_data, {})

    def test_preferences(self):
        self.context.update_preference("default_search_engine", "bing")
        self.assertEqual(self.context.get_full_context().user_preferences.default_search_engine, "bing")
        with self.assertRaises(KeyError):
            self.context.update_preference("theme", "dark")

    def test_favorites(self):
        self.context.add_favorite_website("https://github.com")
        self.context.add_favorite_website("https://github.com")
        self.context.add_favorite_website("https://news.ycombinator.com")
        self.context.remove_favorite_website("https://github.com")
        self.assertEqual(
            self.context.get_full_context().user_preferences.favorite_websites,
            ["https://news.ycombinator.com"],
        )

    def test_corrupt_file_loads_defaults(self):
        self.store.path_for(CONVERSATION_CONTEXT).write_text("[1, 2", encoding="utf-8")
        ctx = ContextStore(self.store).get_full_context()
        self.assertEqual(ctx.previous_commands, [])

    def test_failed_writes_keep_memory_state(self):
        context = ContextStore(UnwritableStore(Path(self._tmp.name)))
        context.add_command("search for cats")
        context.add_extracted_data("googleSearch", {"query": "cats"})
        context.update_current_site("https://www.google.com")

        ctx = context.get_full_context()
        self.assertEqual(ctx.previous_commands, ["search for cats"])
        self.assertEqual(ctx.extracted_data, {"googleSearch": {"query": "cats"}})
        self.assertEqual(context.current_site, "https://www.google.com")
        self.assertFalse(self.store.exists(CONVERSATION_CONTEXT))

    def test_scalar_file_loads_defaults(self):
        self.store.path_for(CONVERSATION_CONTEXT).write_text("5", encoding="utf-8")
        self.assertEqual(ContextStore(self.store).get_full_context().previous_commands, [])

    def test_wrong_shape_loads_defaults(self):
        self.store.write(CONVERSATION_CONTEXT, {"previous_commands": "not a list"})
        ctx = ContextStore(self.store).get_full_context()
        self.assertEqual(ctx.previous_commands, [])


class UnwritableStore(JsonStore):
    def write(self, namespace, data):
        raise PersistFailure(namespace, OSError("read-only file system"))


if __name__ == "__main__":
    unittest.main()
