"""
Utility functions for cross-platform compatibility
"""

import platform as _platform
from typing import Optional

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"
UNKNOWN = "unknown"

PLATFORMS = (WINDOWS, MACOS, LINUX, UNKNOWN)

_USER_AGENTS = {
    WINDOWS: "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    MACOS: "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    LINUX: "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    UNKNOWN: "Mozilla/5.0 (compatible; BrowserAgent/1.0)",
}

_BROWSER_PATHS = {
    WINDOWS: r"C:\Program Files\Google\Chrome\Application\chrome.exe",
    MACOS: "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    LINUX: "/usr/bin/google-chrome",
}

_OPEN_BROWSER_COMMANDS = {
    WINDOWS: "start chrome",
    MACOS: 'open -a "Google Chrome"',
    LINUX: "google-chrome",
}


def detect_platform(system: Optional[str] = None) -> str:
    """Map the host OS name onto windows / macos / linux / unknown."""
    name = (system if system is not None else _platform.system()).lower()
    if name.startswith("win") or "cygwin" in name:
        return WINDOWS
    if name in ("darwin", "macos") or name.startswith("mac"):
        return MACOS
    if name.startswith("linux") or "x11" in name:
        return LINUX
    return UNKNOWN


def default_user_agent(platform: str) -> str:
    return _USER_AGENTS.get(platform, _USER_AGENTS[UNKNOWN])


def get_default_browser_path(platform: str) -> str:
    return _BROWSER_PATHS.get(platform, "")


def get_platform_specific_command(command: str, platform: str) -> str:
    # Only "open browser" has a per-platform form for now
    if "open browser" in command.lower():
        return _OPEN_BROWSER_COMMANDS.get(platform, command)
    return command


def is_proxy_supported(platform: str) -> bool:
    return platform != UNKNOWN


def is_extension_supported(platform: str) -> bool:
    return platform != UNKNOWN
