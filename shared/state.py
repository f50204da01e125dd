# Shared State Module
# Builds the services that the routers and the console share

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import Request

from config.settings_loader import (
    get_command_latency,
    get_data_dir,
    get_event_history_size,
    get_max_history,
    get_reveal_delay,
    get_scheduler_setting,
)
from core.browser_config import BrowserConfigStore
from core.context_store import ContextStore
from core.event_bus import EventBus
from core.processor import CommandProcessor
from core.resolver import IntentResolver
from core.scheduler import TaskScheduler
from core.storage import JsonStore


@dataclass
class AgentServices:
    store: JsonStore
    event_bus: EventBus
    context: ContextStore
    browser_config: BrowserConfigStore
    scheduler: TaskScheduler
    resolver: IntentResolver
    processor: CommandProcessor


def build_services(
    data_dir: Optional[Path] = None,
    clock: Optional[Callable[[], datetime]] = None,
    latency_seconds: Optional[float] = None,
    reveal_delay_seconds: Optional[float] = None,
    platform: Optional[str] = None,
) -> AgentServices:
    """Wire every store and service against one data directory. Unset arguments come from settings."""
    store = JsonStore(Path(data_dir) if data_dir else get_data_dir())
    event_bus = EventBus(history_size=get_event_history_size())
    context = ContextStore(store, max_history=get_max_history())
    browser_config = BrowserConfigStore(store, platform=platform)
    scheduler = TaskScheduler(
        store,
        event_bus=event_bus,
        clock=clock,
        max_results=int(get_scheduler_setting("max_results_per_task")),
        default_interval=int(get_scheduler_setting("default_interval_minutes")),
        tick_seconds=float(get_scheduler_setting("tick_seconds")),
    )
    resolver = IntentResolver(context, scheduler, browser_config)
    processor = CommandProcessor(
        resolver,
        event_bus,
        latency_seconds=get_command_latency() if latency_seconds is None else latency_seconds,
        reveal_delay_seconds=get_reveal_delay() if reveal_delay_seconds is None else reveal_delay_seconds,
    )
    return AgentServices(
        store=store,
        event_bus=event_bus,
        context=context,
        browser_config=browser_config,
        scheduler=scheduler,
        resolver=resolver,
        processor=processor,
    )


def get_services(request: Request) -> AgentServices:
    """FastAPI dependency: the services attached to the running app."""
    return request.app.state.services
