import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from core.platform_utils import PLATFORMS, UNKNOWN, default_user_agent, detect_platform
from core.storage import BROWSER_CONFIG, ConfigLoadFailure, JsonStore, PersistFailure

logger = logging.getLogger("browser_config")


class BrowserConfig(BaseModel):
    proxy: Optional[str] = None
    extensions: List[str] = Field(default_factory=list)
    user_agent: str = ""
    platform: str = UNKNOWN


class BrowserConfigStore:
    """Proxy / extensions / user agent for the (synthetic) browser, persisted under `browserConfig`."""

    def __init__(self, store: JsonStore, platform: Optional[str] = None):
        self.store = store
        # The platform probe runs once, at construction
        self.platform = platform if platform in PLATFORMS else detect_platform()
        self._config = self._load()

    def _defaults(self) -> BrowserConfig:
        return BrowserConfig(platform=self.platform, user_agent=default_user_agent(self.platform))

    def _load(self) -> BrowserConfig:
        try:
            data = self.store.read(BROWSER_CONFIG)
            if data is None:
                return self._defaults()
            config = BrowserConfig.model_validate(data)
        except (ConfigLoadFailure, ValidationError) as e:
            logger.error(f"❌ Failed to load browser config, using defaults: {e}")
            return self._defaults()
        if not config.user_agent:
            config.user_agent = default_user_agent(self.platform)
        config.platform = self.platform
        return config

    def _save(self):
        try:
            self.store.write(BROWSER_CONFIG, self._config.model_dump(mode="json"))
        except PersistFailure as e:
            logger.error(f"❌ Failed to save browser config: {e}")

    def get_config(self) -> BrowserConfig:
        return self._config.model_copy(deep=True)

    def set_proxy(self, proxy: Optional[str]):
        self._config.proxy = proxy or None
        logger.info(f"Proxy set to {self._config.proxy or 'direct connection'}")
        self._save()

    def add_extension(self, name: str) -> bool:
        if name in self._config.extensions:
            return False
        self._config.extensions.append(name)
        self._save()
        return True

    def remove_extension(self, name: str) -> bool:
        remaining = [ext for ext in self._config.extensions if ext.lower() != name.lower()]
        if len(remaining) == len(self._config.extensions):
            return False
        self._config.extensions = remaining
        self._save()
        return True

    def set_user_agent(self, user_agent: str):
        self._config.user_agent = user_agent or default_user_agent(self.platform)
        self._save()

    def update(self, changes: Dict[str, Any]) -> BrowserConfig:
        """Apply a partial update; `platform` is owned by the probe and ignored."""
        data = self._config.model_dump()
        data.update({k: v for k, v in changes.items() if k in BrowserConfig.model_fields and k != "platform"})
        self._config = BrowserConfig.model_validate(data)
        if not self._config.user_agent:
            self._config.user_agent = default_user_agent(self.platform)
        self._save()
        return self.get_config()
