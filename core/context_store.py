"""
Conversation Context Store

Durable conversational memory shared across turns:
- recent topics and previous commands (most-recent-first, capped)
- extracted-data cache (key order doubles as recency order)
- current session (id, start time, current site pointer)
- user preferences (default search engine, favorite websites)

Every mutation writes the full snapshot to the `conversationContext`
namespace. Storage failures are logged and never surface to callers.
"""

import copy
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from core.actions import generate_id
from core.storage import CONVERSATION_CONTEXT, ConfigLoadFailure, JsonStore, PersistFailure

logger = logging.getLogger("context_store")

MAX_HISTORY = 10


class CurrentSession(BaseModel):
    start_time: datetime = Field(default_factory=datetime.now)
    session_id: str = Field(default_factory=generate_id)
    site_context: Optional[str] = None


class UserPreferences(BaseModel):
    default_search_engine: str = "google"
    favorite_websites: List[str] = Field(default_factory=list)


class ConversationContext(BaseModel):
    recent_topics: List[str] = Field(default_factory=list)
    previous_commands: List[str] = Field(default_factory=list)
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    current_session: CurrentSession = Field(default_factory=CurrentSession)
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)


class ContextStore:
    def __init__(self, store: JsonStore, max_history: int = MAX_HISTORY):
        self.store = store
        self.max_history = max_history
        self._context = self._load()

    def _load(self) -> ConversationContext:
        try:
            data = self.store.read(CONVERSATION_CONTEXT)
            if data is None:
                return ConversationContext()
            context = ConversationContext.model_validate(data)
            logger.info(f"Loaded conversation context (session {context.current_session.session_id})")
            return context
        except (ConfigLoadFailure, ValidationError) as e:
            logger.error(f"❌ Failed to load conversation context, using defaults: {e}")
            return ConversationContext()

    def _save(self):
        try:
            self.store.write(CONVERSATION_CONTEXT, self._context.model_dump(mode="json"))
        except PersistFailure as e:
            logger.error(f"❌ Failed to save conversation context: {e}")

    def get_full_context(self) -> ConversationContext:
        """Deep copy; mutating it never touches the store."""
        return self._context.model_copy(deep=True)

    @property
    def current_site(self) -> Optional[str]:
        return self._context.current_session.site_context

    def add_command(self, command: str):
        commands = self._context.previous_commands
        commands.insert(0, command)
        del commands[self.max_history:]
        self._save()

    def update_current_site(self, site_url: Optional[str]):
        self._context.current_session.site_context = site_url
        self._save()

    def add_extracted_data(self, key: str, data: Any):
        cache = self._context.extracted_data
        # Re-insert so the key moves to the most-recent end
        cache.pop(key, None)
        cache[key] = data
        self._save()

    def get_extracted_data(self, key: Optional[str] = None) -> Any:
        if key:
            return copy.deepcopy(self._context.extracted_data.get(key))
        return self.get_full_context().extracted_data

    def most_recent_extracted_key(self, predicate: Optional[Callable[[str], bool]] = None) -> Optional[str]:
        for key in reversed(list(self._context.extracted_data)):
            if predicate is None or predicate(key):
                return key
        return None

    def add_topic(self, topic: str):
        topics = self._context.recent_topics
        if topic in topics:
            return
        topics.insert(0, topic)
        del topics[self.max_history:]
        self._save()

    def update_preference(self, key: str, value: Any):
        if key not in UserPreferences.model_fields:
            raise KeyError(f"Unknown preference: {key}")
        prefs = self._context.user_preferences.model_dump()
        prefs[key] = value
        self._context.user_preferences = UserPreferences.model_validate(prefs)
        self._save()

    def add_favorite_website(self, url: str):
        favorites = self._context.user_preferences.favorite_websites
        if url not in favorites:
            favorites.append(url)
            self._save()

    def remove_favorite_website(self, url: str):
        prefs = self._context.user_preferences
        prefs.favorite_websites = [site for site in prefs.favorite_websites if site != url]
        self._save()

    def reset_session(self):
        self._context.current_session = CurrentSession()
        logger.info(f"♻️ New session {self._context.current_session.session_id}")
        self._save()

    def clear_all(self):
        self._context = ConversationContext()
        self._save()
