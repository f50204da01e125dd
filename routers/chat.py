import asyncio
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from core.actions import BrowserAction, ExtractedData
from shared.state import AgentServices, get_services

router = APIRouter(prefix="/chat", tags=["Chat"])


class CommandRequest(BaseModel):
    command: str


class CommandResponse(BaseModel):
    id: str
    command: str
    cancelled: bool
    response: str
    intent: Optional[str] = None
    contextual: bool = False
    actions: List[BrowserAction] = []
    new_url: Optional[str] = None
    extracted_data: List[ExtractedData] = []


def _to_response(outcome) -> CommandResponse:
    result = outcome.result
    if result is None:
        return CommandResponse(id=outcome.id, command=outcome.command, cancelled=outcome.cancelled, response=outcome.response)
    return CommandResponse(
        id=outcome.id,
        command=outcome.command,
        cancelled=outcome.cancelled,
        response=outcome.response,
        intent=result.intent,
        contextual=result.contextual,
        actions=result.actions,
        new_url=result.new_url,
        extracted_data=result.extracted_data,
    )


@router.post("/commands", response_model=CommandResponse)
async def run_command(request: CommandRequest, services: AgentServices = Depends(get_services)):
    """Run one command through the agent and return its full outcome."""
    outcome = await services.processor.process(request.command)
    return _to_response(outcome)


@router.post("/commands/{command_id}/cancel")
async def cancel_command(command_id: str, services: AgentServices = Depends(get_services)):
    if not services.processor.cancel(command_id):
        raise HTTPException(status_code=404, detail="Command not found or already finished")
    return {"status": "cancelled", "id": command_id}


@router.get("/commands/stream")
async def stream_command(command: str, request: Request, services: AgentServices = Depends(get_services)):
    """
    Server-Sent Events for a single command.

    Emits `started` with the command id (so the client can cancel), then
    one `word` event per revealed word, then `done` with the full outcome.
    """
    processor = services.processor

    async def event_generator():
        # Registered only once the client is actually reading the stream
        handle = processor.start(command)
        try:
            yield {"event": "started", "data": json.dumps({"id": handle.id})}
            outcome = await processor.process(command, handle)
            async for word in processor.reveal(outcome.response, handle):
                if await request.is_disconnected():
                    handle.cancel()
                    break
                yield {"event": "word", "data": word}
            yield {"event": "done", "data": _to_response(outcome).model_dump_json()}
        except asyncio.CancelledError:
            handle.cancel()
            raise
        finally:
            processor.active.pop(handle.id, None)

    return EventSourceResponse(event_generator())


@router.get("/actions")
async def list_actions(limit: int = 50, services: AgentServices = Depends(get_services)):
    """Recent action batches from commands and scheduled task runs."""
    events = [e for e in services.event_bus.history() if e["type"] in ("actions", "task_result")]
    return events[-limit:] if limit > 0 else []
