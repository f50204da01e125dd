from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse
from shared.state import AgentServices, get_services
import asyncio
import json

router = APIRouter(tags=["Stream"])

@router.get("/events")
async def event_stream(request: Request, services: AgentServices = Depends(get_services)):
    """
    Server-Sent Events (SSE) endpoint.
    Clients receive every action batch and scheduled task result as it is published.
    """
    event_bus = services.event_bus
    queue = await event_bus.subscribe()

    async def event_generator():
        try:
            while True:
                # Check for client disconnect
                if await request.is_disconnected():
                    break

                event = await queue.get()
                yield {
                    "event": event["type"],
                    "data": json.dumps(event)
                }
        except asyncio.CancelledError:
            pass
        finally:
            event_bus.unsubscribe(queue)

    return EventSourceResponse(event_generator())
