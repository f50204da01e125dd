import tempfile
import unittest
from pathlib import Path

from core.browser_config import BrowserConfigStore
from core.platform_utils import (
    LINUX,
    MACOS,
    UNKNOWN,
    WINDOWS,
    default_user_agent,
    detect_platform,
    get_default_browser_path,
    get_platform_specific_command,
    is_extension_supported,
    is_proxy_supported,
)
from core.storage import BROWSER_CONFIG, JsonStore


class PlatformProbeTests(unittest.TestCase):
    def test_detect_platform(self):
        self.assertEqual(detect_platform("Windows"), WINDOWS)
        self.assertEqual(detect_platform("Darwin"), MACOS)
        self.assertEqual(detect_platform("Linux"), LINUX)
        self.assertEqual(detect_platform("Plan9"), UNKNOWN)
        self.assertIn(detect_platform(), (WINDOWS, MACOS, LINUX, UNKNOWN))

    def test_platform_helpers(self):
        self.assertTrue(get_default_browser_path(WINDOWS).endswith("chrome.exe"))
        self.assertEqual(get_default_browser_path(UNKNOWN), "")
        self.assertEqual(get_platform_specific_command("open browser", MACOS), 'open -a "Google Chrome"')
        self.assertEqual(get_platform_specific_command("open browser", UNKNOWN), "open browser")
        self.assertEqual(get_platform_specific_command("refresh", LINUX), "refresh")
        self.assertTrue(is_proxy_supported(LINUX))
        self.assertFalse(is_extension_supported(UNKNOWN))


class BrowserConfigStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonStore(Path(self._tmp.name))
        self.config = BrowserConfigStore(self.store, platform=LINUX)

    def tearDown(self):
        self._tmp.cleanup()

    def test_defaults(self):
        config = self.config.get_config()
        self.assertIsNone(config.proxy)
        self.assertEqual(config.extensions, [])
        self.assertEqual(config.platform, LINUX)
        self.assertEqual(config.user_agent, default_user_agent(LINUX))

    def test_extensions(self):
        self.assertTrue(self.config.add_extension("Dark Reader"))
        self.assertFalse(self.config.add_extension("Dark Reader"))
        self.assertTrue(self.config.remove_extension("dark reader"))
        self.assertFalse(self.config.remove_extension("dark reader"))

    def test_changes_persist(self):
        self.config.set_proxy("10.0.0.1:3128")
        self.config.add_extension("Dark Reader")
        self.config.set_user_agent("TestAgent/1.0")

        reloaded = BrowserConfigStore(self.store, platform=LINUX).get_config()
        self.assertEqual(reloaded.proxy, "10.0.0.1:3128")
        self.assertEqual(reloaded.extensions, ["Dark Reader"])
        self.assertEqual(reloaded.user_agent, "TestAgent/1.0")

    def test_update_ignores_platform(self):
        updated = self.config.update({"proxy": "localhost:8888", "platform": WINDOWS, "bogus": 1})
        self.assertEqual(updated.proxy, "localhost:8888")
        self.assertEqual(updated.platform, LINUX)

    def test_platform_is_probed_not_loaded(self):
        self.store.write(BROWSER_CONFIG, {"platform": WINDOWS, "extensions": ["A"]})
        config = BrowserConfigStore(self.store, platform=MACOS).get_config()
        self.assertEqual(config.platform, MACOS)
        self.assertEqual(config.extensions, ["A"])

    def test_corrupt_file_loads_defaults(self):
        self.store.path_for(BROWSER_CONFIG).write_text("not json", encoding="utf-8")
        config = BrowserConfigStore(self.store, platform=LINUX).get_config()
        self.assertEqual(config.extensions, [])
        self.assertEqual(config.user_agent, default_user_agent(LINUX))


if __name__ == "__main__":
    unittest.main()
