"""
Intent Resolver

Classifies a (contextually rewritten) command into exactly one intent and
builds its synthetic browser outcome. Rules are evaluated top-down and the
first match wins; the order is part of the contract ("schedule a google
search" is a scheduling command, not a search).

Side effects on the Context Store (topics, site pointer, extracted data)
and on the Task Scheduler / Browser Config Store happen synchronously
inside `resolve`.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from urllib.parse import quote

from core import fixtures, intents
from core.actions import (
    ActionStatus,
    BrowserAction,
    CommandResult,
    ExtractedData,
    click,
    extract,
    navigate,
    type_text,
)
from core.browser_config import BrowserConfigStore
from core.context_store import ContextStore
from core.platform_utils import is_extension_supported, is_proxy_supported
from core.rewriter import rewrite_command
from core.scheduler import ScheduledTask, TaskScheduler, normalize_interval

logger = logging.getLogger("resolver")

FALLBACK_RESPONSE = "I've processed your command. Is there anything specific you'd like me to do in the browser?"


@dataclass
class IntentOutcome:
    response: str
    actions: List[BrowserAction] = field(default_factory=list)
    new_url: Optional[str] = None
    extracted_data: List[ExtractedData] = field(default_factory=list)


@dataclass
class IntentRule:
    name: str
    matches: Callable[[str], bool]
    handler: Callable[[str], IntentOutcome]


class IntentResolver:
    def __init__(self, context: ContextStore, scheduler: TaskScheduler, browser_config: BrowserConfigStore):
        self.context = context
        self.scheduler = scheduler
        self.browser_config = browser_config
        self.rules = [
            IntentRule("schedule_task", intents.is_task_management, self._handle_schedule),
            IntentRule("configure_proxy", intents.is_proxy_command, self._handle_proxy),
            IntentRule("install_extension", intents.is_extension_command, self._handle_extension),
            IntentRule("web_search", intents.is_search_command, self._handle_search),
            IntentRule("navigate", intents.is_navigation_command, self._handle_navigation),
            IntentRule("login", intents.is_login_command, self._handle_login),
            IntentRule("extract_data", intents.is_extraction_command, self._handle_extraction),
            IntentRule("weather", intents.is_weather_command, self._handle_weather),
            IntentRule("show_previous_results", intents.is_previous_results_command, self._handle_previous_results),
            IntentRule("fallback", lambda text: True, self._handle_fallback),
        ]

    def match(self, command: str) -> IntentRule:
        for rule in self.rules:
            if rule.matches(command):
                return rule
        return self.rules[-1]

    def classify(self, command: str) -> str:
        return self.match(intents.normalize(command)).name

    def resolve(self, command: str) -> CommandResult:
        original = intents.normalize(command)
        if original:
            self.context.add_command(original)

        rewrite = rewrite_command(original, self.context.get_full_context())
        rule = self.match(rewrite.command)
        outcome = rule.handler(rewrite.command)

        response = outcome.response
        if rewrite.contextual:
            response = f"{rewrite.clarification} {response}"
        if outcome.new_url:
            self.context.update_current_site(outcome.new_url)

        logger.info(f"🧭 '{original}' -> {rule.name} ({len(outcome.actions)} actions)")
        return CommandResult(
            intent=rule.name,
            command=rewrite.command,
            original_command=original,
            response=response,
            actions=outcome.actions,
            new_url=outcome.new_url,
            extracted_data=outcome.extracted_data,
            contextual=rewrite.contextual,
        )

    # --- 1. scheduling ---

    def _handle_schedule(self, text: str) -> IntentOutcome:
        self.context.add_topic("task scheduling")
        action = intents.task_management_action(text)
        if action == "list":
            return self._list_tasks()
        if action in ("pause", "resume", "delete"):
            return self._manage_task(action, text)

        name = intents.task_name(text)
        command = intents.task_command(text)
        minutes = intents.interval_minutes(text)
        spec = intents.interval_spec(minutes)
        task = self.scheduler.create_task(
            name=name,
            description=f'Runs "{command}" every {minutes} minute(s)',
            cron_expression=spec,
            command=command,
        )
        actions = [
            navigate("Open task scheduler"),
            type_text(f'Set task name: "{name}"'),
            type_text(f"Set interval: every {minutes} minute(s)", details=spec),
            click('Click "Save task" button'),
        ]
        return IntentOutcome(
            response=(
                f'I\'ve scheduled "{name}" to run "{command}" every {minutes} minute(s). '
                f"The next run is at {task.next_run.strftime('%H:%M')}."
            ),
            actions=actions,
        )

    def _list_tasks(self) -> IntentOutcome:
        tasks = self.scheduler.list_tasks()
        action = extract("Read scheduled tasks", details=f"{len(tasks)} tasks")
        if not tasks:
            return IntentOutcome(
                response='You don\'t have any scheduled tasks yet. Try: schedule "Daily News" to search for AI news every 60 minutes.',
                actions=[action],
            )

        summaries = [_task_summary(task) for task in tasks]
        self.context.add_extracted_data("scheduledTasks", summaries)
        lines = [
            f"- {s['name']}: {s['command']} every {s['interval_minutes']} min ({s['status']})"
            for s in summaries
        ]
        return IntentOutcome(
            response=f"You have {len(tasks)} scheduled task(s):\n" + "\n".join(lines),
            actions=[action],
            extracted_data=[ExtractedData(type="json", title="Scheduled tasks", content=summaries)],
        )

    def _manage_task(self, action: str, text: str) -> IntentOutcome:
        name = intents.quoted_phrase(text)
        task = self.scheduler.find_task_by_name(name) if name else None
        if task is None:
            target = f'named "{name}"' if name else "with that name"
            return IntentOutcome(
                response=f"I couldn't find a scheduled task {target}. Put the task name in quotes, for example: pause task \"Daily News\".",
            )

        if action == "delete":
            self.scheduler.delete_task(task.id)
            return IntentOutcome(
                response=f'I\'ve deleted the scheduled task "{task.name}".',
                actions=[click(f'Delete task "{task.name}"')],
            )

        wants_active = action == "resume"
        if task.is_active != wants_active:
            task = self.scheduler.toggle_task(task.id)
        state = "resumed" if task.is_active else "paused"
        return IntentOutcome(
            response=f'Task "{task.name}" is {state}.',
            actions=[click(f'{"Resume" if wants_active else "Pause"} task "{task.name}"')],
        )

    # --- 2. proxy ---

    def _handle_proxy(self, text: str) -> IntentOutcome:
        self.context.add_topic("proxy configuration")
        platform = self.browser_config.platform
        if not is_proxy_supported(platform):
            return IntentOutcome(
                response="Proxy configuration isn't supported on this platform.",
                actions=[navigate("Open browser proxy settings", details=fixtures.PROXY_SETTINGS_URL, status=ActionStatus.ERROR)],
            )

        if intents.wants_removal(text):
            self.browser_config.set_proxy(None)
            return IntentOutcome(
                response="I've removed the proxy. The browser now connects directly.",
                actions=[
                    navigate("Open browser proxy settings", details=fixtures.PROXY_SETTINGS_URL),
                    type_text("Clear proxy address"),
                    click('Click "Save" button'),
                ],
            )

        address = intents.proxy_address(text)
        if address is None:
            return IntentOutcome(
                response="Which proxy should I use? Give me the address as host:port, for example 127.0.0.1:8080.",
                actions=[navigate("Open browser proxy settings", details=fixtures.PROXY_SETTINGS_URL)],
            )

        self.browser_config.set_proxy(address)
        return IntentOutcome(
            response=f"I've configured the browser to use the proxy at {address}.",
            actions=[
                navigate("Open browser proxy settings", details=fixtures.PROXY_SETTINGS_URL),
                type_text(f"Enter proxy address: {address}"),
                click('Click "Save" button'),
            ],
        )

    # --- 3. extensions ---

    def _handle_extension(self, text: str) -> IntentOutcome:
        self.context.add_topic("browser extensions")
        name = intents.extension_name(text)
        if not is_extension_supported(self.browser_config.platform):
            return IntentOutcome(
                response="Browser extensions aren't supported on this platform.",
                actions=[navigate("Open extension store", details=fixtures.EXTENSION_STORE_URL, status=ActionStatus.ERROR)],
            )

        if intents.wants_removal(text):
            removed = self.browser_config.remove_extension(name)
            return IntentOutcome(
                response=f'I\'ve removed the "{name}" extension.' if removed else f'The "{name}" extension isn\'t installed.',
                actions=[
                    navigate("Open extensions page", details="chrome://extensions"),
                    type_text(f'Find extension "{name}"'),
                    click('Click "Remove" button'),
                ],
            )

        store_url = f"{fixtures.EXTENSION_STORE_URL}/search/{quote(name, safe='')}"
        added = self.browser_config.add_extension(name)
        return IntentOutcome(
            response=f'I\'ve installed the "{name}" extension.' if added else f'The "{name}" extension is already installed.',
            actions=[
                navigate("Open extension store", details=fixtures.EXTENSION_STORE_URL),
                type_text(f'Search for "{name}"'),
                click('Click "Add to Chrome" button'),
            ],
            new_url=store_url,
        )

    # --- 4. search ---

    def _handle_search(self, text: str) -> IntentOutcome:
        self.context.add_topic("web search")
        preferred = self.context.get_full_context().user_preferences.default_search_engine
        engine = intents.search_engine(text, preferred)
        info = intents.SEARCH_ENGINES[engine]
        term = intents.search_term(text)
        url = intents.search_url(engine, term)
        results = fixtures.search_results(term)

        payload = {"query": term, "engine": info["label"], "url": url, "results": results}
        self.context.add_extracted_data(f"{engine}Search", payload)
        return IntentOutcome(
            response=f'I\'ve searched {info["label"]} for "{term}". Here are the top {len(results)} results.',
            actions=[
                navigate(f"Navigate to {info['label']}", details=info["home"]),
                type_text(f'Type search query: "{term}"'),
                click(info["button"]),
                extract("Extract search results", details=f"{len(results)} results"),
            ],
            new_url=url,
            extracted_data=[
                ExtractedData(type="json", title=f'{info["label"]} results for "{term}"', content=payload, source=url)
            ],
        )

    # --- 5. navigation ---

    def _handle_navigation(self, text: str) -> IntentOutcome:
        self.context.add_topic("navigation")
        url = intents.navigation_target(text) or intents.KNOWN_SITES["google"]
        if url == intents.KNOWN_SITES["google"]:
            response = "I've navigated to Google's homepage. What would you like to search for?"
        else:
            response = f"I've opened {url}."
        return IntentOutcome(
            response=response,
            actions=[navigate(f"Navigate to {url}", details=url)],
            new_url=url,
        )

    # --- 6. login ---

    def _handle_login(self, text: str) -> IntentOutcome:
        site, base_url = intents.login_site(text)
        self.context.add_topic(f"{site} login")
        key = intents.profile_key(site)
        profile = fixtures.profile(site)
        self.context.add_extracted_data(key, profile)
        return IntentOutcome(
            response=f"I've logged into {site} successfully. You're now on the dashboard.",
            actions=[
                navigate(f"Navigate to {site} login page", details=f"{base_url}/login"),
                type_text("Enter username/email", details="Credentials masked for security"),
                type_text("Enter password", details="Credentials masked for security"),
                click('Click "Sign In" button'),
                extract(f"Extract {site} profile information"),
            ],
            new_url=f"{base_url}/dashboard",
            extracted_data=[ExtractedData(type="json", title=f"{site} profile", content=profile, source=base_url)],
        )

    # --- 7. extraction ---

    def _handle_extraction(self, text: str) -> IntentOutcome:
        self.context.add_topic("data extraction")
        kind = intents.data_type(text)
        explicit = intents.extraction_source(text)
        source = explicit or self.context.current_site
        label = source or "the current page"
        content = fixtures.extraction(kind, source or "https://example.com")

        self.context.add_extracted_data("latestExtraction", {"type": kind, "source": label, "content": content})
        if explicit:
            first = navigate(f"Navigate to {explicit}", details=explicit)
        else:
            first = navigate("Focus the current page", details=source or "about:blank")
        return IntentOutcome(
            response=f"I've extracted {kind} data from {label}.",
            actions=[first, extract(f"Extract {kind} data", details=label)],
            new_url=explicit,
            extracted_data=[ExtractedData(type=kind, title=f"Extracted {kind} from {label}", content=content, source=source)],
        )

    # --- 8. weather ---

    def _handle_weather(self, text: str) -> IntentOutcome:
        self.context.add_topic("weather")
        location = intents.weather_location(text)
        report = fixtures.weather(location)
        self.context.add_extracted_data("weather", report)
        return IntentOutcome(
            response=f"I checked the weather. It's currently {report['temperature']} and sunny in {location}.",
            actions=[
                navigate("Navigate to weather service", details=fixtures.WEATHER_URL),
                extract("Extract current weather data"),
            ],
            new_url=fixtures.WEATHER_URL,
            extracted_data=[ExtractedData(type="json", title=f"Weather in {location}", content=report, source=fixtures.WEATHER_URL)],
        )

    # --- 9. previous results ---

    def _handle_previous_results(self, text: str) -> IntentOutcome:
        cache = self.context.get_extracted_data()
        if not cache:
            return IntentOutcome(
                response=(
                    "I haven't extracted any data yet. Try a search, a login or "
                    "\"extract the table from github.com\" first."
                ),
            )

        category = intents.recall_category(text)
        key = None
        if category:
            key = self.context.most_recent_extracted_key(_CATEGORY_KEYS[category])
        prefix = ""
        if key is None:
            if category:
                prefix = f"I don't have any {category} results, so here is the latest data instead. "
            key = self.context.most_recent_extracted_key()

        return IntentOutcome(
            response=f'{prefix}Here are the most recent results I have for "{key}".',
            actions=[extract(f'Retrieve cached data "{key}"')],
            extracted_data=[ExtractedData(type="json", title=f"Previously extracted: {key}", content=cache[key])],
        )

    # --- 10. fallback ---

    def _handle_fallback(self, text: str) -> IntentOutcome:
        return IntentOutcome(
            response=FALLBACK_RESPONSE,
            actions=[navigate(f"Process command: {text}")],
        )


_CATEGORY_KEYS = {
    "weather": lambda key: key == "weather",
    "search": lambda key: key.endswith("Search"),
    "profile": lambda key: key.endswith("Profile"),
    "extraction": lambda key: key == "latestExtraction",
    "tasks": lambda key: key == "scheduledTasks",
}


def _task_summary(task: ScheduledTask) -> dict:
    return {
        "id": task.id,
        "name": task.name,
        "command": task.command,
        "interval_minutes": normalize_interval(task.cron_expression),
        "status": "active" if task.is_active else "paused",
        "next_run": task.next_run.isoformat() if task.next_run else None,
    }
