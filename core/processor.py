import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

from core.actions import CommandResult, generate_id
from core.event_bus import EventBus
from core.resolver import IntentResolver

logger = logging.getLogger("processor")

CANCELLED_RESPONSE = "Command cancelled. Nothing was changed."


class CommandAborted(Exception):
    """Raised inside `process` when the caller cancels before resolution."""

    def __init__(self, command_id: str):
        super().__init__(f"Command {command_id} was cancelled")
        self.command_id = command_id


@dataclass
class CommandHandle:
    text: str
    id: str = field(default_factory=generate_id)
    _event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait_cancelled(self):
        await self._event.wait()


@dataclass
class CommandOutcome:
    id: str
    command: str
    cancelled: bool
    response: str
    result: Optional[CommandResult] = None


class CommandProcessor:
    """
    Runs one command through the resolver after a simulated think time.

    The latency window is the only point where a command can be cancelled
    without effect: resolution itself has no awaits, so once it starts the
    context, scheduler and event history are updated as a unit.
    """

    def __init__(self, resolver: IntentResolver, event_bus: EventBus, latency_seconds: float = 2.0, reveal_delay_seconds: float = 0.04):
        self.resolver = resolver
        self.event_bus = event_bus
        self.latency_seconds = latency_seconds
        self.reveal_delay_seconds = reveal_delay_seconds
        self.active: Dict[str, CommandHandle] = {}

    def start(self, text: str) -> CommandHandle:
        handle = CommandHandle(text=text)
        self.active[handle.id] = handle
        return handle

    def cancel(self, command_id: str) -> bool:
        handle = self.active.get(command_id)
        if handle is None:
            return False
        handle.cancel()
        logger.info(f"🛑 Cancel requested for command {command_id}")
        return True

    async def process(self, text: str, handle: Optional[CommandHandle] = None) -> CommandOutcome:
        handle = handle or self.start(text)
        self.active.setdefault(handle.id, handle)
        try:
            await self._think(handle)
            result = self.resolver.resolve(text)
        except CommandAborted:
            logger.info(f"Command {handle.id} aborted before resolution")
            return CommandOutcome(id=handle.id, command=text, cancelled=True, response=CANCELLED_RESPONSE)
        finally:
            self.active.pop(handle.id, None)

        self.event_bus.publish(
            "actions",
            "processor",
            {
                "command_id": handle.id,
                "intent": result.intent,
                "command": result.original_command,
                "actions": [action.model_dump(mode="json") for action in result.actions],
            },
        )
        return CommandOutcome(id=handle.id, command=text, cancelled=False, response=result.response, result=result)

    async def _think(self, handle: CommandHandle):
        if handle.cancelled:
            raise CommandAborted(handle.id)
        if self.latency_seconds > 0:
            try:
                await asyncio.wait_for(handle.wait_cancelled(), timeout=self.latency_seconds)
            except asyncio.TimeoutError:
                pass
        if handle.cancelled:
            raise CommandAborted(handle.id)

    async def reveal(self, response: str, handle: Optional[CommandHandle] = None) -> AsyncIterator[str]:
        """Yield the response one word at a time until done or cancelled."""
        for word in response.split(" "):
            if handle is not None and handle.cancelled:
                return
            yield word
            if self.reveal_delay_seconds > 0:
                await asyncio.sleep(self.reveal_delay_seconds)
